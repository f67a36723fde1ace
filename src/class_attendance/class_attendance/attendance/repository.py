from __future__ import annotations

from datetime import date
from typing import Mapping, Optional, Protocol, Sequence

from ..common.academic import ClassContext
from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, AttendanceReportRow


class AttendanceRepository(Protocol):
    def upsert_many(
        self,
        *,
        attendance_date: date,
        ctx: ClassContext,
        statuses: Mapping[int, AttendanceStatus],
        marked_by: int,
        reasons: Optional[Mapping[int, str]] = None,
    ) -> int:
        """Write one record per student id for the day, overwriting existing ones, in one transaction."""

        raise NotImplementedError

    def get_for_student_and_date(self, student_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def update_reason(self, attendance_id: int, reason: str) -> None:
        raise NotImplementedError

    def list_for_class_date(self, ctx: ClassContext, attendance_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_student(
        self, student_id: int, *, start: Optional[date] = None, end: Optional[date] = None
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_report_rows(self, ctx: ClassContext, *, start: date, end: date) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError
