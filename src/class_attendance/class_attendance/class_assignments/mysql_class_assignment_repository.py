from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.academic import ClassContext
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ClassAssignment
from .repository import ClassAssignmentRepository

_SELECT = """
    SELECT a.assignment_id, a.faculty_id, a.batch, a.year, a.semester, a.section, a.department,
           a.attendance_start_date, a.attendance_end_date, a.active, a.notes, a.assigned_by,
           a.assigned_at, u.name AS faculty_name
    FROM class_assignments a
    JOIN faculty f ON f.faculty_id = a.faculty_id
    JOIN users u ON u.user_id = f.user_id
"""

_UPDATABLE = ("notes", "attendance_start_date", "attendance_end_date")


def _row_to_assignment(row: dict) -> ClassAssignment:
    return ClassAssignment(
        assignment_id=int(row["assignment_id"]),
        faculty_id=int(row["faculty_id"]),
        batch=row["batch"],
        year=row["year"],
        semester=int(row["semester"]),
        section=row["section"],
        department=row["department"],
        attendance_start_date=row.get("attendance_start_date"),
        attendance_end_date=row.get("attendance_end_date"),
        active=bool(row.get("active")),
        notes=row.get("notes"),
        assigned_by=row.get("assigned_by"),
        assigned_at=row.get("assigned_at"),
        faculty_name=row.get("faculty_name"),
    )


def _deactivate_binding(cur, *, faculty_id: int, batch: str, year: str, semester: int, section: str) -> None:
    cur.execute(
        """
        UPDATE faculty_class_bindings SET active=0
        WHERE faculty_id=%s AND batch=%s AND year=%s AND semester=%s AND section=%s
        """,
        (faculty_id, batch, year, semester, section),
    )


class MySQLClassAssignmentRepository(ClassAssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, assignment_id: int) -> Optional[ClassAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.assignment_id=%s", (assignment_id,))
            row = fetchone(cur)
            return _row_to_assignment(row) if row else None

    def get_active_for_class(self, ctx: ClassContext) -> Optional[ClassAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE a.batch=%s AND a.year=%s AND a.semester=%s AND a.section=%s
                  AND a.department=%s AND a.active=1
                """,
                (ctx.batch, ctx.year, ctx.semester, ctx.section, ctx.department),
            )
            row = fetchone(cur)
            return _row_to_assignment(row) if row else None

    def list_for_faculty(self, faculty_id: int, *, active_only: bool = True) -> Sequence[ClassAssignment]:
        sql = _SELECT + " WHERE a.faculty_id=%s"
        if active_only:
            sql += " AND a.active=1"
        sql += " ORDER BY a.assigned_at DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (faculty_id,))
            return [_row_to_assignment(r) for r in fetchall(cur)]

    def list_for_department(self, department: Optional[str], *, active_only: bool = True) -> Sequence[ClassAssignment]:
        where: list[str] = []
        params: list = []
        if department:
            where.append("a.department=%s")
            params.append(department)
        if active_only:
            where.append("a.active=1")
        sql = _SELECT
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY a.batch, a.year, a.semester, a.section"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_assignment(r) for r in fetchall(cur)]

    def assign(
        self,
        *,
        faculty_id: int,
        ctx: ClassContext,
        attendance_start_date: Optional[date],
        attendance_end_date: Optional[date],
        notes: Optional[str],
        assigned_by: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT assignment_id, faculty_id FROM class_assignments
                WHERE batch=%s AND year=%s AND semester=%s AND section=%s AND department=%s AND active=1
                FOR UPDATE
                """,
                (ctx.batch, ctx.year, ctx.semester, ctx.section, ctx.department),
            )
            previous = fetchone(cur)
            if previous:
                cur.execute(
                    """
                    UPDATE class_assignments
                    SET active=0, deactivated_at=NOW(), deactivated_by=%s
                    WHERE assignment_id=%s
                    """,
                    (assigned_by, previous["assignment_id"]),
                )
                _deactivate_binding(
                    cur,
                    faculty_id=int(previous["faculty_id"]),
                    batch=ctx.batch,
                    year=ctx.year,
                    semester=ctx.semester,
                    section=ctx.section,
                )

            cur.execute(
                """
                INSERT INTO class_assignments
                    (faculty_id, batch, year, semester, section, department,
                     attendance_start_date, attendance_end_date, active, notes, assigned_by)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, 1, %s, %s)
                """,
                (
                    faculty_id,
                    ctx.batch,
                    ctx.year,
                    ctx.semester,
                    ctx.section,
                    ctx.department,
                    attendance_start_date,
                    attendance_end_date,
                    notes,
                    assigned_by,
                ),
            )
            assignment_id = int(cur.lastrowid)

            cur.execute(
                """
                INSERT INTO faculty_class_bindings (faculty_id, batch, year, semester, section, active, origin)
                VALUES (%s, %s, %s, %s, %s, 1, 'assigned')
                ON DUPLICATE KEY UPDATE active=1, origin='assigned'
                """,
                (faculty_id, ctx.batch, ctx.year, ctx.semester, ctx.section),
            )
            cur.execute("UPDATE faculty SET is_class_advisor=1 WHERE faculty_id=%s", (faculty_id,))
            return assignment_id

    def update(self, assignment_id: int, *, fields: dict) -> bool:
        sets: list[str] = []
        params: list = []
        for col in _UPDATABLE:
            if col in fields:
                sets.append(f"{col}=%s")
                params.append(fields[col])
        if not sets:
            return False
        params.append(assignment_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE class_assignments SET {', '.join(sets)} WHERE assignment_id=%s", tuple(params))
            return cur.rowcount > 0

    def deactivate(self, assignment_id: int, *, deactivated_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT faculty_id, batch, year, semester, section FROM class_assignments WHERE assignment_id=%s AND active=1",
                (assignment_id,),
            )
            row = fetchone(cur)
            if not row:
                return False
            cur.execute(
                """
                UPDATE class_assignments
                SET active=0, deactivated_at=NOW(), deactivated_by=%s
                WHERE assignment_id=%s
                """,
                (deactivated_by, assignment_id),
            )
            _deactivate_binding(
                cur,
                faculty_id=int(row["faculty_id"]),
                batch=row["batch"],
                year=row["year"],
                semester=int(row["semester"]),
                section=row["section"],
            )
            return True
