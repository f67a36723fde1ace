from __future__ import annotations

from collections import defaultdict
from typing import Optional, Sequence

from ..core.enums import AccountStatus, BindingOrigin, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from ..users.mysql_user_repository import insert_user
from .model import ClassBinding, Faculty
from .repository import FacultyRepository

_FACULTY_SELECT = """
    SELECT f.faculty_id, f.user_id, u.name, u.email, f.department, f.position,
           f.is_class_advisor, f.status
    FROM faculty f
    JOIN users u ON u.user_id = f.user_id
"""

_UPDATABLE = ("department", "position", "is_class_advisor")


def _row_to_binding(row: dict) -> ClassBinding:
    return ClassBinding(
        batch=row["batch"],
        year=row["year"],
        semester=int(row["semester"]),
        section=row["section"],
        active=bool(row["active"]),
        origin=BindingOrigin(row["origin"]),
        binding_id=int(row["binding_id"]),
    )


def _row_to_faculty(row: dict, bindings: Sequence[ClassBinding]) -> Faculty:
    return Faculty(
        faculty_id=int(row["faculty_id"]),
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        department=row["department"],
        position=row.get("position"),
        is_class_advisor=bool(row.get("is_class_advisor")),
        status=AccountStatus(row.get("status") or AccountStatus.ACTIVE.value),
        bindings=tuple(bindings),
    )


class MySQLFacultyRepository(FacultyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _hydrate(self, cur, rows: list[dict]) -> list[Faculty]:
        if not rows:
            return []
        ids = [int(r["faculty_id"]) for r in rows]
        cur.execute(
            f"""
            SELECT binding_id, faculty_id, batch, year, semester, section, active, origin
            FROM faculty_class_bindings
            WHERE faculty_id IN ({in_clause(ids)})
            ORDER BY origin, binding_id
            """,
            tuple(ids),
        )
        by_faculty: dict[int, list[ClassBinding]] = defaultdict(list)
        for b in fetchall(cur):
            by_faculty[int(b["faculty_id"])].append(_row_to_binding(b))
        return [_row_to_faculty(r, by_faculty.get(int(r["faculty_id"]), [])) for r in rows]

    def get_by_id(self, faculty_id: int) -> Optional[Faculty]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_FACULTY_SELECT + " WHERE f.faculty_id=%s", (faculty_id,))
            row = fetchone(cur)
            found = self._hydrate(cur, [row] if row else [])
            return found[0] if found else None

    def get_by_user_id(self, user_id: int) -> Optional[Faculty]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_FACULTY_SELECT + " WHERE f.user_id=%s", (user_id,))
            row = fetchone(cur)
            found = self._hydrate(cur, [row] if row else [])
            return found[0] if found else None

    def find_bound(
        self,
        *,
        batch: Optional[str],
        year: Optional[str],
        semester: Optional[int],
        section: Optional[str],
        department: Optional[str],
    ) -> Sequence[tuple[Faculty, ClassBinding]]:
        where = ["f.status='active'", "b.active=1", "b.batch=%s", "b.year=%s", "b.semester=%s"]
        params: list = [batch, year, semester]
        if section:
            where.append("b.section=%s")
            params.append(section)
        if department:
            where.append("f.department=%s")
            params.append(department)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT DISTINCT f.faculty_id
                FROM faculty f
                JOIN faculty_class_bindings b ON b.faculty_id = f.faculty_id
                WHERE {' AND '.join(where)}
                ORDER BY f.faculty_id
                """,
                tuple(params),
            )
            ids = [int(r["faculty_id"]) for r in fetchall(cur)]
            if not ids:
                return []
            cur.execute(_FACULTY_SELECT + f" WHERE f.faculty_id IN ({in_clause(ids)}) ORDER BY f.faculty_id", tuple(ids))
            faculty = self._hydrate(cur, fetchall(cur))

        pairs: list[tuple[Faculty, ClassBinding]] = []
        for f in faculty:
            for b in f.bindings:
                if b.active and b.batch == batch and b.year == year and b.semester == semester and (
                    not section or b.section == section
                ):
                    pairs.append((f, b))
        return pairs

    def find_department_advisor(self, department: str) -> Optional[Faculty]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _FACULTY_SELECT
                + " WHERE f.department=%s AND f.is_class_advisor=1 AND f.status='active' ORDER BY f.faculty_id LIMIT 1",
                (department,),
            )
            row = fetchone(cur)
            found = self._hydrate(cur, [row] if row else [])
            return found[0] if found else None

    def list_by_department(self, department: Optional[str], *, include_inactive: bool = False) -> Sequence[Faculty]:
        where: list[str] = []
        params: list = []
        if department:
            where.append("f.department=%s")
            params.append(department)
        if not include_inactive:
            where.append("f.status='active'")
        sql = _FACULTY_SELECT
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY u.name"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return self._hydrate(cur, fetchall(cur))

    def create_faculty(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        mobile: Optional[str],
        department: str,
        position: Optional[str],
        is_class_advisor: bool,
        created_by: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            user_id = insert_user(
                cur,
                name=name,
                email=email,
                password_hash=password_hash,
                role=Role.FACULTY,
                department=department,
                mobile=mobile,
                created_by=created_by,
            )
            cur.execute(
                """
                INSERT INTO faculty (user_id, department, position, is_class_advisor, status)
                VALUES (%s, %s, %s, %s, 'active')
                """,
                (user_id, department, position, 1 if is_class_advisor else 0),
            )
            return int(cur.lastrowid)

    def update_faculty(self, faculty_id: int, *, fields: dict) -> bool:
        sets: list[str] = []
        params: list = []
        for col in _UPDATABLE:
            if col in fields:
                sets.append(f"f.{col}=%s")
                params.append(fields[col])
        for col in ("name", "mobile"):
            if col in fields:
                sets.append(f"u.{col}=%s")
                params.append(fields[col])
        if "department" in fields:
            sets.append("u.department=%s")
            params.append(fields["department"])
        if not sets:
            return False
        params.append(faculty_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE faculty f JOIN users u ON u.user_id = f.user_id SET {', '.join(sets)} WHERE f.faculty_id=%s",
                tuple(params),
            )
            return cur.rowcount > 0

    def set_status(self, faculty_id: int, *, status: AccountStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE faculty f JOIN users u ON u.user_id = f.user_id
                SET f.status=%s, u.status=%s
                WHERE f.faculty_id=%s
                """,
                (status.value, status.value, faculty_id),
            )
            changed = cur.rowcount > 0
            if status == AccountStatus.INACTIVE:
                cur.execute("UPDATE faculty_class_bindings SET active=0 WHERE faculty_id=%s", (faculty_id,))
                cur.execute(
                    "UPDATE class_assignments SET active=0, deactivated_at=NOW() WHERE faculty_id=%s AND active=1",
                    (faculty_id,),
                )
            return changed
