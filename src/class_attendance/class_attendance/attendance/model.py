from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """One student's status for one calendar day."""

    attendance_id: int
    student_id: int
    attendance_date: date
    status: AttendanceStatus
    batch: str
    year: str
    semester: int
    section: str
    marked_by: int
    reason: Optional[str] = None
    marked_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "studentId": self.student_id,
            "date": self.attendance_date.isoformat(),
            "status": self.status.value,
            "reason": self.reason,
            "markedBy": self.marked_by,
            "markedAt": self.marked_at.isoformat() if self.marked_at else None,
        }


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for reports: a record joined with its student."""

    student_id: int
    roll_number: str
    name: str
    department: str
    attendance_date: date
    status: AttendanceStatus
    reason: Optional[str] = None


@dataclass
class MarkResult:
    attendance_date: date
    class_id: str
    present: list[str] = field(default_factory=list)
    absent: list[str] = field(default_factory=list)
    od: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.present) + len(self.absent) + len(self.od)

    def to_dict(self) -> dict:
        return {
            "date": self.attendance_date.isoformat(),
            "classId": self.class_id,
            "marked": {"present": self.present, "absent": self.absent, "od": self.od},
            "totalStudents": self.total,
            "presentCount": len(self.present),
            "absentCount": len(self.absent),
            "odCount": len(self.od),
        }
