from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..common.academic import ClassContext
from ..core.enums import AccountStatus


@dataclass(frozen=True)
class Student:
    """Roster entry. ``faculty_id`` is a snapshot taken when the student was created."""

    student_id: int
    user_id: int
    roll_number: str
    name: str
    email: str
    batch: str
    year: str
    semester: int
    section: str
    class_id: str
    class_assigned: str
    faculty_id: int
    department: str
    mobile: Optional[str] = None
    parent_contact: Optional[str] = None
    status: AccountStatus = AccountStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE

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
        return {
            "id": self.student_id,
            "userId": self.user_id,
            "rollNumber": self.roll_number,
            "name": self.name,
            "email": self.email,
            "mobile": self.mobile,
            "parentContact": self.parent_contact,
            "batch": self.batch,
            "year": self.year,
            "semester": self.semester,
            "section": self.section,
            "classId": self.class_id,
            "classAssigned": self.class_assigned,
            "facultyId": self.faculty_id,
            "department": self.department,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class StudentDraft:
    """Validated input for one new student."""

    roll_number: str
    name: str
    email: str
    password: str
    mobile: Optional[str] = None
    parent_contact: Optional[str] = None


@dataclass
class BulkResult:
    total: int
    successful: list[dict] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)

    def add_failure(self, index: int, row: dict, message: str, *, code: Optional[str] = None, details: Any = None):
        error: dict = {"message": message}
        if code:
            error["code"] = code
        if details:
            error["details"] = details
        self.failed.append({"index": index, "studentData": row, "error": error})

    def to_dict(self) -> dict:
        return {"successful": self.successful, "failed": self.failed, "total": self.total}
