from __future__ import annotations

from typing import Optional, Sequence

import mysql.connector

from ..common.academic import ClassContext, ClassIdentity
from ..core.enums import AccountStatus, Role
from ..core.exceptions import DuplicateResourceError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from ..users.mysql_user_repository import insert_user
from .model import Student, StudentDraft
from .repository import StudentRepository

_SELECT = """
    SELECT student_id, user_id, roll_number, name, email, mobile, parent_contact, batch, year,
           semester, section, class_id, class_assigned, faculty_id, department, status
    FROM students
"""

# Student-side columns an update may touch; name/email/mobile are mirrored onto users.
_UPDATABLE = (
    "roll_number", "name", "email", "mobile", "parent_contact", "batch", "year",
    "semester", "section", "class_id", "class_assigned",
)
_MIRRORED_ON_USER = ("name", "email", "mobile")


def _row_to_student(row: dict) -> Student:
    return Student(
        student_id=int(row["student_id"]),
        user_id=int(row["user_id"]),
        roll_number=row["roll_number"],
        name=row["name"],
        email=row["email"],
        batch=row["batch"],
        year=row["year"],
        semester=int(row["semester"]),
        section=row["section"],
        class_id=row["class_id"],
        class_assigned=row["class_assigned"],
        faculty_id=int(row["faculty_id"]),
        department=row["department"],
        mobile=row.get("mobile") or None,
        parent_contact=row.get("parent_contact") or None,
        status=AccountStatus(row.get("status") or AccountStatus.ACTIVE.value),
    )


def _duplicate_error(exc: Exception) -> DuplicateResourceError:
    msg = str(getattr(exc, "msg", exc))
    if "uq_roll_per_batch_department" in msg:
        return DuplicateResourceError(
            "Student already exists with this roll number in the same batch", code="DUPLICATE_ROLL_NUMBER"
        )
    return DuplicateResourceError("Student already exists with this email", code="DUPLICATE_EMAIL")


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE student_id=%s", (student_id,))
            row = fetchone(cur)
            return _row_to_student(row) if row else None

    def roll_number_taken(self, roll_number: str, *, batch: str, department: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 FROM students
                WHERE roll_number=%s AND batch=%s AND department=%s AND status='active'
                LIMIT 1
                """,
                (roll_number, batch, department),
            )
            return fetchone(cur) is not None

    def mobile_taken(self, mobile: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 FROM students WHERE mobile=%s AND status='active' LIMIT 1", (mobile,))
            return fetchone(cur) is not None

    def create_student_account(
        self,
        draft: StudentDraft,
        *,
        password_hash: str,
        ctx: ClassContext,
        identity: ClassIdentity,
        faculty_id: int,
        created_by: int,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                user_id = insert_user(
                    cur,
                    name=draft.name,
                    email=draft.email,
                    password_hash=password_hash,
                    role=Role.STUDENT,
                    department=ctx.department,
                    mobile=draft.mobile,
                    created_by=created_by,
                )
                cur.execute(
                    """
                    INSERT INTO students
                        (user_id, roll_number, name, email, mobile, parent_contact, batch, year, semester,
                         section, class_id, class_assigned, faculty_id, department, status, created_by)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, 'active', %s)
                    """,
                    (
                        user_id,
                        draft.roll_number,
                        draft.name,
                        draft.email,
                        draft.mobile,
                        draft.parent_contact,
                        ctx.batch,
                        ctx.year,
                        ctx.semester,
                        ctx.section,
                        identity.class_id,
                        identity.class_assigned,
                        faculty_id,
                        ctx.department,
                        created_by,
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                raise _duplicate_error(e)
            raise

    def list_by_class(self, ctx: ClassContext, *, include_inactive: bool = False) -> Sequence[Student]:
        where = ["batch=%s", "year=%s", "semester=%s", "section=%s"]
        params: list = [ctx.batch, ctx.year, ctx.semester, ctx.section]
        if ctx.department:
            where.append("department=%s")
            params.append(ctx.department)
        if not include_inactive:
            where.append("status='active'")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE " + " AND ".join(where) + " ORDER BY roll_number", tuple(params))
            return [_row_to_student(r) for r in fetchall(cur)]

    def update_student(self, student_id: int, *, fields: dict) -> bool:
        student_sets: list[str] = []
        student_params: list = []
        user_sets: list[str] = []
        user_params: list = []
        for col in _UPDATABLE:
            if col in fields:
                student_sets.append(f"{col}=%s")
                student_params.append(fields[col])
                if col in _MIRRORED_ON_USER:
                    user_sets.append(f"{col}=%s")
                    user_params.append(fields[col])
        if not student_sets:
            return False
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"UPDATE students SET {', '.join(student_sets)} WHERE student_id=%s",
                    tuple(student_params + [student_id]),
                )
                changed = cur.rowcount > 0
                if user_sets:
                    cur.execute(
                        f"""
                        UPDATE users u JOIN students s ON s.user_id = u.user_id
                        SET {', '.join('u.' + s for s in user_sets)}
                        WHERE s.student_id=%s
                        """,
                        tuple(user_params + [student_id]),
                    )
                return changed
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                raise _duplicate_error(e)
            raise

    def deactivate(self, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE students s JOIN users u ON u.user_id = s.user_id
                SET s.status='inactive', u.status='inactive'
                WHERE s.student_id=%s AND s.status='active'
                """,
                (student_id,),
            )
            return cur.rowcount > 0
