from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import mysql.connector

from ..core.exceptions import DuplicateResourceError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import Holiday
from .repository import HolidayRepository

_SELECT = """
    SELECT holiday_id, holiday_date, department, reason, created_by, updated_by,
           is_deleted, created_at, updated_at
    FROM holidays
"""

DUPLICATE_HOLIDAY = "Holiday already exists for this date in this department"


def _row_to_holiday(row: dict) -> Holiday:
    return Holiday(
        holiday_id=int(row["holiday_id"]),
        holiday_date=row["holiday_date"],
        department=row["department"],
        reason=row["reason"],
        created_by=int(row["created_by"]),
        updated_by=row.get("updated_by"),
        is_deleted=bool(row.get("is_deleted")),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLHolidayRepository(HolidayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, holiday_id: int) -> Optional[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE holiday_id=%s AND is_deleted=0", (holiday_id,))
            row = fetchone(cur)
            return _row_to_holiday(row) if row else None

    def find_live(self, holiday_date: date, department: str) -> Optional[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE holiday_date=%s AND department=%s AND is_deleted=0",
                (holiday_date, department),
            )
            row = fetchone(cur)
            return _row_to_holiday(row) if row else None

    def list_live(self, department: str, *, start: date, end: date) -> Sequence[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + " WHERE department=%s AND is_deleted=0 AND holiday_date BETWEEN %s AND %s ORDER BY holiday_date",
                (department, start, end),
            )
            return [_row_to_holiday(r) for r in fetchall(cur)]

    def create(self, *, holiday_date: date, department: str, reason: str, created_by: int) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO holidays (holiday_date, department, reason, created_by)
                    VALUES (%s, %s, %s, %s)
                    """,
                    (holiday_date, department, reason, created_by),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateResourceError(DUPLICATE_HOLIDAY, code="DUPLICATE_HOLIDAY")
            raise

    def update(self, holiday_id: int, *, holiday_date: date, reason: str, updated_by: int) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE holidays SET holiday_date=%s, reason=%s, updated_by=%s
                    WHERE holiday_id=%s AND is_deleted=0
                    """,
                    (holiday_date, reason, updated_by, holiday_id),
                )
                return cur.rowcount > 0
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateResourceError(DUPLICATE_HOLIDAY, code="DUPLICATE_HOLIDAY")
            raise

    def soft_delete(self, holiday_id: int, *, deleted_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE holidays SET is_deleted=1, deleted_at=NOW(), updated_by=%s
                WHERE holiday_id=%s AND is_deleted=0
                """,
                (deleted_by, holiday_id),
            )
            return cur.rowcount > 0
