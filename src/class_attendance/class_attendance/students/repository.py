from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..common.academic import ClassContext, ClassIdentity
from .model import Student, StudentDraft


class StudentRepository(Protocol):
    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def roll_number_taken(self, roll_number: str, *, batch: str, department: str) -> bool:
        """Active student with this roll number in the same batch and department."""
        raise NotImplementedError

    def mobile_taken(self, mobile: str) -> bool:
        raise NotImplementedError

    def create_student_account(
        self,
        draft: StudentDraft,
        *,
        password_hash: str,
        ctx: ClassContext,
        identity: ClassIdentity,
        faculty_id: int,
        created_by: int,
    ) -> int:
        """Insert the User and Student rows in one transaction; returns student_id."""
        raise NotImplementedError

    def list_by_class(self, ctx: ClassContext, *, include_inactive: bool = False) -> Sequence[Student]:
        """Roster ordered by roll number; ``ctx.department`` narrows when set."""
        raise NotImplementedError

    def update_student(self, student_id: int, *, fields: dict) -> bool:
        raise NotImplementedError

    def deactivate(self, student_id: int) -> bool:
        """Soft delete: the student row and its user account both go inactive."""
        raise NotImplementedError
