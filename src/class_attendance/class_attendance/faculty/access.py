from __future__ import annotations

from typing import Optional

from ..common.academic import ClassContext
from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from ..users.model import User
from .model import Faculty
from .repository import FacultyRepository
from .resolver import FacultyResolver


class ClassAccessPolicy:
    """Who may read or write a class roster.

    Admin and principal see every class, an HOD sees the classes of their own
    department and a faculty member only the classes they hold a binding for.
    """

    def __init__(self, faculty: FacultyRepository, resolver: FacultyResolver):
        self._faculty = faculty
        self._resolver = resolver

    def own_faculty(self, user: User) -> Optional[Faculty]:
        if user.role != Role.FACULTY:
            return None
        return self._faculty.get_by_user_id(user.user_id)

    def can_access(self, user: User, ctx: ClassContext) -> bool:
        if user.role in (Role.ADMIN, Role.PRINCIPAL):
            return True
        if user.role == Role.HOD:
            return bool(ctx.department) and ctx.department == user.department
        if user.role == Role.FACULTY:
            faculty = self.own_faculty(user)
            return bool(faculty) and self._resolver.validate_binding(faculty.faculty_id, ctx)
        return False

    def require(self, user: User, ctx: ClassContext) -> None:
        if not self.can_access(user, ctx):
            raise AuthorizationError(
                f"User {user.user_id} ({user.role.value}) has no access to "
                f"{ctx.batch}/{ctx.year}/{ctx.semester}/{ctx.section}/{ctx.department}"
            )
