from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import AccountStatus
from .model import AuditEntry, ClassBinding, Faculty


class FacultyRepository(Protocol):
    """Faculty rows with their class bindings loaded."""

    def get_by_id(self, faculty_id: int) -> Optional[Faculty]:
        raise NotImplementedError

    def get_by_user_id(self, user_id: int) -> Optional[Faculty]:
        raise NotImplementedError

    def find_bound(
        self,
        *,
        batch: Optional[str],
        year: Optional[str],
        semester: Optional[int],
        section: Optional[str],
        department: Optional[str],
    ) -> Sequence[tuple[Faculty, ClassBinding]]:
        """Active faculty holding an active binding that matches the given fields.

        ``None`` for ``section`` or ``department`` means "any".
        """
        raise NotImplementedError

    def find_department_advisor(self, department: str) -> Optional[Faculty]:
        raise NotImplementedError

    def list_by_department(self, department: Optional[str], *, include_inactive: bool = False) -> Sequence[Faculty]:
        raise NotImplementedError

    def create_faculty(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        mobile: Optional[str],
        department: str,
        position: Optional[str],
        is_class_advisor: bool,
        created_by: Optional[int],
    ) -> int:
        """Insert the User and Faculty rows in one transaction; returns faculty_id."""
        raise NotImplementedError

    def update_faculty(self, faculty_id: int, *, fields: dict) -> bool:
        raise NotImplementedError

    def set_status(self, faculty_id: int, *, status: AccountStatus) -> bool:
        raise NotImplementedError


class AuditRepository(Protocol):
    def append(self, entry: AuditEntry) -> None:
        raise NotImplementedError

    def list_recent(
        self,
        *,
        faculty_id: Optional[int] = None,
        class_id: Optional[str] = None,
        limit: int = 50,
    ) -> Sequence[AuditEntry]:
        raise NotImplementedError
