from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from ..attendance.repository import AttendanceRepository
from ..attendance.service import summarize
from ..common.academic import ClassContext, derive_class_identity
from ..common.datetime_utils import coerce_date
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..faculty.access import ClassAccessPolicy
from ..students.repository import StudentRepository
from ..users.model import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportData:
    class_id: str
    start: date
    end: date
    rows: list[dict]
    summary: list[dict]
    absentees: list[dict]
    totals: dict

    def to_dict(self) -> dict:
        return {
            "classId": self.class_id,
            "startDate": self.start.isoformat(),
            "endDate": self.end.isoformat(),
            "rows": self.rows,
            "summary": self.summary,
            "absentees": self.absentees,
            "totals": self.totals,
        }


class ReportService:
    def __init__(self, attendance: AttendanceRepository, students: StudentRepository, access: ClassAccessPolicy):
        self._attendance = attendance
        self._students = students
        self._access = access

    def build_class_report(self, user: User, ctx: ClassContext, *, start: Any, end: Any) -> ReportData:
        self._access.require(user, ctx)
        start_v = coerce_date(start, "startDate")
        end_v = coerce_date(end, "endDate")
        if start_v > end_v:
            raise ValidationError("startDate must not be after endDate")

        query_rows = self._attendance.get_report_rows(ctx, start=start_v, end=end_v)

        out_rows: list[dict] = []
        statuses_by_student: dict[int, list[AttendanceStatus]] = {}
        for r in query_rows:
            out_rows.append(
                {
                    "date": r.attendance_date.strftime("%Y-%m-%d"),
                    "rollNumber": r.roll_number,
                    "name": r.name,
                    "status": r.status.value,
                    "reason": r.reason or "",
                }
            )
            statuses_by_student.setdefault(r.student_id, []).append(r.status)

        # Students without any record in the range still get a summary line.
        summary = []
        for student in self._students.list_by_class(ctx):
            counts = summarize(statuses_by_student.get(student.student_id, []))
            summary.append({"rollNumber": student.roll_number, "name": student.name, **counts})
        summary.sort(key=lambda s: s["rollNumber"])

        absentees = [r for r in out_rows if r["status"] == AttendanceStatus.ABSENT.value]
        absentees.sort(key=lambda r: (r["rollNumber"], r["date"]))

        overall = summarize(r.status for r in query_rows)
        totals = {
            "students": len(summary),
            "days": len({r["date"] for r in out_rows}),
            "records": overall["total"],
            "present": overall["present"],
            "absent": overall["absent"],
            "od": overall["od"],
            "percentage": overall["percentage"],
        }

        class_id = derive_class_identity(ctx).class_id
        logger.info("Report for %s %s..%s: %d rows", class_id, start_v, end_v, len(out_rows))
        return ReportData(
            class_id=class_id,
            start=start_v,
            end=end_v,
            rows=out_rows,
            summary=summary,
            absentees=absentees,
            totals=totals,
        )
