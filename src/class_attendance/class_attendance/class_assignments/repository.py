from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..common.academic import ClassContext
from .model import ClassAssignment


class ClassAssignmentRepository(Protocol):
    def get_by_id(self, assignment_id: int) -> Optional[ClassAssignment]:
        raise NotImplementedError

    def get_active_for_class(self, ctx: ClassContext) -> Optional[ClassAssignment]:
        """Active assignment for the class tuple; ``ctx.department`` must be set."""
        raise NotImplementedError

    def list_for_faculty(self, faculty_id: int, *, active_only: bool = True) -> Sequence[ClassAssignment]:
        raise NotImplementedError

    def list_for_department(self, department: Optional[str], *, active_only: bool = True) -> Sequence[ClassAssignment]:
        raise NotImplementedError

    def assign(
        self,
        *,
        faculty_id: int,
        ctx: ClassContext,
        attendance_start_date: Optional[date],
        attendance_end_date: Optional[date],
        notes: Optional[str],
        assigned_by: int,
    ) -> int:
        """Replace the class owner in one transaction.

        Deactivates the current active assignment and its binding, inserts the
        new assignment and an active ``assigned`` binding for ``faculty_id``,
        and flags the faculty as class advisor.
        """
        raise NotImplementedError

    def update(self, assignment_id: int, *, fields: dict) -> bool:
        raise NotImplementedError

    def deactivate(self, assignment_id: int, *, deactivated_by: int) -> bool:
        """Deactivate the assignment and the matching binding together."""
        raise NotImplementedError
