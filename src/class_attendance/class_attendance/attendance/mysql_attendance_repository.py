from __future__ import annotations

from datetime import date
from typing import Mapping, Optional, Sequence

from ..common.academic import ClassContext
from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord, AttendanceReportRow
from .repository import AttendanceRepository

_COLUMNS = """
    a.attendance_id, a.student_id, a.attendance_date, a.status, a.batch, a.year, a.semester,
    a.section, a.marked_by, a.reason, a.marked_at
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        student_id=int(r["student_id"]),
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        batch=r["batch"],
        year=r["year"],
        semester=int(r["semester"]),
        section=r["section"],
        marked_by=int(r["marked_by"]),
        reason=r.get("reason"),
        marked_at=r.get("marked_at"),
    )


def _class_filter(ctx: ClassContext) -> tuple[str, list]:
    where = "a.batch=%s AND a.year=%s AND a.semester=%s AND a.section=%s"
    params: list = [ctx.batch, ctx.year, ctx.semester, ctx.section]
    if ctx.department:
        where += " AND s.department=%s"
        params.append(ctx.department)
    return where, params


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert_many(
        self,
        *,
        attendance_date: date,
        ctx: ClassContext,
        statuses: Mapping[int, AttendanceStatus],
        marked_by: int,
        reasons: Optional[Mapping[int, str]] = None,
    ) -> int:
        if not statuses:
            return 0
        reasons = reasons or {}
        params = [
            (
                student_id,
                attendance_date,
                status.value,
                ctx.batch,
                ctx.year,
                ctx.semester,
                ctx.section,
                reasons.get(student_id),
                marked_by,
            )
            for student_id, status in statuses.items()
        ]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO attendance_records
                    (student_id, attendance_date, status, batch, year, semester, section, reason, marked_by)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    batch=VALUES(batch),
                    year=VALUES(year),
                    semester=VALUES(semester),
                    section=VALUES(section),
                    reason=VALUES(reason),
                    marked_by=VALUES(marked_by)
                """,
                params,
            )
        return len(params)

    def get_for_student_and_date(self, student_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records a WHERE a.student_id=%s AND a.attendance_date=%s",
                (student_id, attendance_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def update_reason(self, attendance_id: int, reason: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE attendance_records SET reason=%s WHERE attendance_id=%s", (reason, attendance_id))

    def list_for_class_date(self, ctx: ClassContext, attendance_date: date) -> Sequence[AttendanceRecord]:
        where, params = _class_filter(ctx)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records a
                JOIN students s ON s.student_id = a.student_id
                WHERE {where} AND a.attendance_date=%s
                """,
                tuple(params + [attendance_date]),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_student(
        self, student_id: int, *, start: Optional[date] = None, end: Optional[date] = None
    ) -> Sequence[AttendanceRecord]:
        where = ["a.student_id=%s"]
        params: list = [student_id]
        if start:
            where.append("a.attendance_date >= %s")
            params.append(start)
        if end:
            where.append("a.attendance_date <= %s")
            params.append(end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records a WHERE {' AND '.join(where)} ORDER BY a.attendance_date DESC",
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def get_report_rows(self, ctx: ClassContext, *, start: date, end: date) -> Sequence[AttendanceReportRow]:
        where, params = _class_filter(ctx)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT a.student_id, s.roll_number, s.name, s.department, a.attendance_date, a.status, a.reason
                FROM attendance_records a
                JOIN students s ON s.student_id = a.student_id
                WHERE {where} AND a.attendance_date BETWEEN %s AND %s
                ORDER BY a.attendance_date, s.roll_number
                """,
                tuple(params + [start, end]),
            )
            return [
                AttendanceReportRow(
                    student_id=int(r["student_id"]),
                    roll_number=r["roll_number"],
                    name=r["name"],
                    department=r["department"],
                    attendance_date=r["attendance_date"],
                    status=AttendanceStatus(r["status"]),
                    reason=r.get("reason"),
                )
                for r in fetchall(cur)
            ]
