from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AccountStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_USER_COLUMNS = "user_id, name, email, password_hash, role, department, mobile, status, last_login"

# Columns an update may touch; anything else in ``fields`` is ignored.
_UPDATABLE = ("name", "email", "role", "department", "mobile")


def row_to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        department=row.get("department"),
        mobile=row.get("mobile"),
        status=AccountStatus(row.get("status") or AccountStatus.ACTIVE.value),
        last_login=row.get("last_login"),
    )


def insert_user(cur, *, name, email, password_hash, role: Role, department, mobile, created_by) -> int:
    """INSERT on an open cursor so callers can pair it with other writes in one transaction."""

    cur.execute(
        """
        INSERT INTO users (name, email, password_hash, role, department, mobile, status, created_by)
        VALUES (%s, %s, %s, %s, %s, %s, 'active', %s)
        """,
        (name, email.lower(), password_hash, role.value, department, mobile, created_by),
    )
    return int(cur.lastrowid)


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE user_id=%s", (user_id,))
            row = fetchone(cur)
            return row_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE email=%s", (email.lower(),))
            row = fetchone(cur)
            return row_to_user(row) if row else None

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        department: Optional[str],
        mobile: Optional[str],
        created_by: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_user(
                cur,
                name=name,
                email=email,
                password_hash=password_hash,
                role=role,
                department=department,
                mobile=mobile,
                created_by=created_by,
            )

    def update_user(self, user_id: int, *, fields: dict) -> bool:
        sets: list[str] = []
        params: list = []
        for col in _UPDATABLE:
            if col in fields:
                value = fields[col]
                if isinstance(value, Role):
                    value = value.value
                sets.append(f"{col}=%s")
                params.append(value)
        if not sets:
            return False
        params.append(user_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE users SET {', '.join(sets)} WHERE user_id=%s", tuple(params))
            return cur.rowcount > 0

    def set_status(self, user_id: int, *, status: AccountStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET status=%s WHERE user_id=%s", (status.value, user_id))
            return cur.rowcount > 0

    def set_password_hash(self, user_id: int, *, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET password_hash=%s WHERE user_id=%s", (password_hash, user_id))
            return cur.rowcount > 0

    def touch_last_login(self, user_id: int, *, when: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET last_login=%s WHERE user_id=%s", (when, user_id))

    def list_users(
        self,
        *,
        role: Optional[Role] = None,
        department: Optional[str] = None,
        status: Optional[AccountStatus] = None,
    ) -> Sequence[User]:
        where: list[str] = []
        params: list = []
        if role is not None:
            where.append("role=%s")
            params.append(role.value)
        if department:
            where.append("department=%s")
            params.append(department)
        if status is not None:
            where.append("status=%s")
            params.append(status.value)
        sql = f"SELECT {_USER_COLUMNS} FROM users"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY user_id DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [row_to_user(r) for r in fetchall(cur)]

    def count_by_role(self) -> dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role, COUNT(*) AS n FROM users WHERE status='active' GROUP BY role")
            return {r["role"]: int(r["n"]) for r in fetchall(cur)}
