from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Optional

from ..common.academic import ClassContext
from ..common.datetime_utils import coerce_date, optional_date, today
from ..common.validators import clean_str
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..faculty.repository import FacultyRepository
from ..users.model import User
from .model import ClassAssignment, WindowDecision
from .repository import ClassAssignmentRepository
from .window import AttendanceWindowValidator, validate_window_dates

logger = logging.getLogger(__name__)

MAX_NOTES_LENGTH = 500


class ClassAssignmentService:
    def __init__(
        self,
        assignments: ClassAssignmentRepository,
        faculty: FacultyRepository,
        window: AttendanceWindowValidator,
        *,
        clock: Callable[[], date] = today,
    ):
        self._assignments = assignments
        self._faculty = faculty
        self._window = window
        self._clock = clock

    def get_assignment(self, assignment_id: int) -> ClassAssignment:
        assignment = self._assignments.get_by_id(assignment_id)
        if not assignment:
            raise NotFoundError("Class assignment not found")
        return assignment

    def _own_faculty_id(self, user: User) -> Optional[int]:
        if user.role != Role.FACULTY:
            return None
        faculty = self._faculty.get_by_user_id(user.user_id)
        return faculty.faculty_id if faculty else None

    def can_manage(self, user: User, assignment: ClassAssignment) -> bool:
        if user.role in (Role.ADMIN, Role.PRINCIPAL):
            return True
        if user.role == Role.HOD:
            return user.department == assignment.department
        if user.role == Role.FACULTY:
            return self._own_faculty_id(user) == assignment.faculty_id
        return False

    def _require_manage(self, user: User, assignment: ClassAssignment) -> None:
        if not self.can_manage(user, assignment):
            raise AuthorizationError(f"User {user.user_id} cannot manage assignment {assignment.assignment_id}")

    def get_for_user(self, user: User, assignment_id: int) -> ClassAssignment:
        assignment = self.get_assignment(assignment_id)
        self._require_manage(user, assignment)
        return assignment

    def list_for_faculty(self, user: User, faculty_id: int, *, active_only: bool = True) -> list[ClassAssignment]:
        if user.role == Role.FACULTY and self._own_faculty_id(user) != faculty_id:
            raise AuthorizationError(f"User {user.user_id} cannot list classes of faculty {faculty_id}")
        if user.role == Role.HOD:
            faculty = self._faculty.get_by_id(faculty_id)
            if not faculty or faculty.department != user.department:
                raise AuthorizationError(f"User {user.user_id} cannot list classes of faculty {faculty_id}")
        return list(self._assignments.list_for_faculty(faculty_id, active_only=active_only))

    def list_for_department(self, user: User, department: Optional[str] = None) -> list[ClassAssignment]:
        if user.role == Role.HOD:
            department = user.department
        elif user.role not in (Role.ADMIN, Role.PRINCIPAL):
            raise AuthorizationError(f"User {user.user_id} cannot list department assignments")
        return list(self._assignments.list_for_department(department or None))

    def get_current_for_class(self, ctx: ClassContext) -> Optional[ClassAssignment]:
        if not ctx.department:
            raise ValidationError("Department is required")
        return self._assignments.get_active_for_class(ctx)

    def update_attendance_dates(self, user: User, assignment_id: int, *, start: Any, end: Any) -> ClassAssignment:
        assignment = self.get_assignment(assignment_id)
        self._require_manage(user, assignment)

        start_v = optional_date(start, "attendanceStartDate")
        end_v = optional_date(end, "attendanceEndDate")
        validate_window_dates(start_v, end_v)

        self._assignments.update(
            assignment_id, fields={"attendance_start_date": start_v, "attendance_end_date": end_v}
        )
        logger.info(
            "Attendance window for assignment %s set to %s..%s by %s", assignment_id, start_v, end_v, user.user_id
        )
        return self.get_assignment(assignment_id)

    def update_assignment(self, user: User, assignment_id: int, *, data: dict) -> ClassAssignment:
        assignment = self.get_assignment(assignment_id)
        self._require_manage(user, assignment)

        fields: dict = {}
        if "notes" in data:
            notes = clean_str(data.get("notes"))
            if len(notes) > MAX_NOTES_LENGTH:
                raise ValidationError(f"Notes cannot exceed {MAX_NOTES_LENGTH} characters")
            fields["notes"] = notes or None
        if "attendanceStartDate" in data or "attendanceEndDate" in data:
            start_v = optional_date(data.get("attendanceStartDate", assignment.attendance_start_date), "attendanceStartDate")
            end_v = optional_date(data.get("attendanceEndDate", assignment.attendance_end_date), "attendanceEndDate")
            validate_window_dates(start_v, end_v)
            fields["attendance_start_date"] = start_v
            fields["attendance_end_date"] = end_v

        if fields:
            self._assignments.update(assignment_id, fields=fields)
        return self.get_assignment(assignment_id)

    def deactivate(self, user: User, assignment_id: int) -> None:
        assignment = self.get_assignment(assignment_id)
        if user.role == Role.FACULTY:
            raise AuthorizationError("Faculty cannot deactivate class assignments")
        self._require_manage(user, assignment)
        if not self._assignments.deactivate(assignment_id, deactivated_by=user.user_id):
            raise ValidationError("Class assignment is already inactive")
        logger.info("Assignment %s deactivated by %s", assignment_id, user.user_id)

    def can_mark(self, assignment_id: int, target_date: Any = None) -> WindowDecision:
        assignment = self.get_assignment(assignment_id)
        day = coerce_date(target_date, "date") if clean_str(target_date) else self._clock()
        return self._window.can_mark_attendance(assignment, day)
