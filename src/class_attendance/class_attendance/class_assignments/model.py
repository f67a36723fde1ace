from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.academic import ClassContext, derive_class_identity


@dataclass(frozen=True)
class ClassAssignment:
    """Canonical "this faculty owns this class" record, plus its attendance window."""

    assignment_id: int
    faculty_id: int
    batch: str
    year: str
    semester: int
    section: str
    department: str
    attendance_start_date: Optional[date] = None
    attendance_end_date: Optional[date] = None
    active: bool = True
    notes: Optional[str] = None
    assigned_by: Optional[int] = None
    assigned_at: Optional[datetime] = None
    faculty_name: Optional[str] = None

    @property
    def context(self) -> ClassContext:
        return ClassContext(
            batch=self.batch,
            year=self.year,
            semester=self.semester,
            section=self.section,
            department=self.department,
        )

    def to_dict(self) -> dict:
        identity = derive_class_identity(self.context)
        return {
            "id": self.assignment_id,
            "facultyId": self.faculty_id,
            "facultyName": self.faculty_name,
            "batch": self.batch,
            "year": self.year,
            "semester": self.semester,
            "section": self.section,
            "department": self.department,
            "classId": identity.class_id,
            "classDisplay": f"{self.year} | Semester {self.semester} | Section {self.section}",
            "attendanceStartDate": self.attendance_start_date.isoformat() if self.attendance_start_date else None,
            "attendanceEndDate": self.attendance_end_date.isoformat() if self.attendance_end_date else None,
            "active": self.active,
            "notes": self.notes,
            "assignedBy": self.assigned_by,
            "assignedAt": self.assigned_at.isoformat() if self.assigned_at else None,
        }


@dataclass(frozen=True)
class WindowDecision:
    allowed: bool
    reason: Optional[str] = None
    code: Optional[str] = None

    def to_dict(self) -> dict:
        out: dict = {"allowed": self.allowed}
        if self.reason:
            out["reason"] = self.reason
        if self.code:
            out["code"] = self.code
        return out
