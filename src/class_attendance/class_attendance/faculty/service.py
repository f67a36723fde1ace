from __future__ import annotations

import logging
from typing import Any, Optional

from werkzeug.security import generate_password_hash

from ..class_assignments.model import ClassAssignment
from ..class_assignments.repository import ClassAssignmentRepository
from ..class_assignments.window import validate_window_dates
from ..common.academic import ClassContext, normalize_department
from ..common.datetime_utils import optional_date
from ..common.validators import clean_str, is_valid_email, is_valid_mobile
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import AccountStatus, Role
from ..core.exceptions import AuthorizationError, DuplicateResourceError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .model import Faculty
from .repository import FacultyRepository

logger = logging.getLogger(__name__)


class FacultyService:
    """Use case: faculty accounts and their class assignments (HOD and above)."""

    def __init__(self, faculty: FacultyRepository, users: UserRepository, assignments: ClassAssignmentRepository):
        self._faculty = faculty
        self._users = users
        self._assignments = assignments

    def _scope_department(self, user: User, requested: Any = None) -> Optional[str]:
        if user.role == Role.HOD:
            return user.department
        if clean_str(requested):
            return normalize_department(requested)
        return None

    def _require_faculty(self, user: User, faculty_id: int) -> Faculty:
        faculty = self._faculty.get_by_id(faculty_id)
        if not faculty:
            raise NotFoundError("Faculty not found")
        if user.role == Role.HOD and faculty.department != user.department:
            raise AuthorizationError(f"HOD {user.user_id} cannot manage faculty {faculty_id}")
        if user.role == Role.FACULTY and faculty.user_id != user.user_id:
            raise AuthorizationError(f"User {user.user_id} cannot view faculty {faculty_id}")
        return faculty

    def create_faculty(self, user: User, *, data: dict) -> Faculty:
        errors: list[str] = []
        name = clean_str(data.get("name"))
        email = clean_str(data.get("email")).lower()
        password = data.get("password") or ""
        mobile = clean_str(data.get("mobile")) or None
        if not name:
            errors.append("Name is required")
        if not is_valid_email(email):
            errors.append("Valid email is required")
        if len(password) < MIN_PASSWORD_LENGTH:
            errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if mobile and not is_valid_mobile(mobile):
            errors.append("Mobile number must be 10 digits")

        department = None
        try:
            department = self._scope_department(user, data.get("department"))
        except ValidationError as e:
            errors.append(e.message)
        if not department and not errors:
            errors.append("Department is required")
        if errors:
            raise ValidationError("Validation failed", details=errors)

        if self._users.get_by_email(email):
            raise DuplicateResourceError("A user with this email already exists", code="DUPLICATE_EMAIL")

        faculty_id = self._faculty.create_faculty(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            mobile=mobile,
            department=department,
            position=clean_str(data.get("position")) or None,
            is_class_advisor=bool(data.get("isClassAdvisor", False)),
            created_by=user.user_id,
        )
        logger.info("Faculty %s created in %s by %s", faculty_id, department, user.user_id)
        return self._require_faculty(user, faculty_id)

    def list_faculty(self, user: User, *, department: Any = None, include_inactive: bool = False) -> list[Faculty]:
        scope = self._scope_department(user, department)
        return list(self._faculty.list_by_department(scope, include_inactive=include_inactive))

    def get_faculty(self, user: User, faculty_id: int) -> Faculty:
        return self._require_faculty(user, faculty_id)

    def update_faculty(self, user: User, faculty_id: int, *, data: dict) -> Faculty:
        self._require_faculty(user, faculty_id)
        fields: dict = {}
        if "name" in data:
            name = clean_str(data.get("name"))
            if not name:
                raise ValidationError("Name is required")
            fields["name"] = name
        if "mobile" in data:
            mobile = clean_str(data.get("mobile")) or None
            if mobile and not is_valid_mobile(mobile):
                raise ValidationError("Mobile number must be 10 digits")
            fields["mobile"] = mobile
        if "position" in data:
            fields["position"] = clean_str(data.get("position")) or None
        if "isClassAdvisor" in data:
            fields["is_class_advisor"] = 1 if data.get("isClassAdvisor") else 0
        if "department" in data:
            if user.role == Role.HOD:
                raise AuthorizationError("HOD cannot move faculty across departments")
            fields["department"] = normalize_department(data.get("department"))

        if fields:
            self._faculty.update_faculty(faculty_id, fields=fields)
        return self._require_faculty(user, faculty_id)

    def deactivate_faculty(self, user: User, faculty_id: int) -> None:
        self._require_faculty(user, faculty_id)
        self._faculty.set_status(faculty_id, status=AccountStatus.INACTIVE)
        logger.info("Faculty %s deactivated by %s", faculty_id, user.user_id)

    def assign_class(self, user: User, faculty_id: int, *, data: dict) -> ClassAssignment:
        faculty = self._require_faculty(user, faculty_id)
        if not faculty.is_active:
            raise ValidationError("Cannot assign a class to an inactive faculty member")

        ctx = ClassContext.parse(
            batch=data.get("batch"),
            year=data.get("year"),
            semester=data.get("semester"),
            section=data.get("section"),
            department=faculty.department,
        )
        start = optional_date(data.get("attendanceStartDate"), "attendanceStartDate")
        end = optional_date(data.get("attendanceEndDate"), "attendanceEndDate")
        if start or end:
            validate_window_dates(start, end)
        notes = clean_str(data.get("notes")) or None

        previous = self._assignments.get_active_for_class(ctx)
        assignment_id = self._assignments.assign(
            faculty_id=faculty_id,
            ctx=ctx,
            attendance_start_date=start,
            attendance_end_date=end,
            notes=notes,
            assigned_by=user.user_id,
        )
        if previous and previous.faculty_id != faculty_id:
            logger.info(
                "Class %s/%s/%s/%s reassigned from faculty %s to %s",
                ctx.batch, ctx.year, ctx.semester, ctx.section, previous.faculty_id, faculty_id,
            )
        else:
            logger.info("Faculty %s assigned to %s/%s/%s/%s", faculty_id, ctx.batch, ctx.year, ctx.semester, ctx.section)

        created = self._assignments.get_by_id(assignment_id)
        if created is None:
            raise NotFoundError("Class assignment not found")
        return created

    def remove_class(self, user: User, faculty_id: int, assignment_id: int) -> None:
        self._require_faculty(user, faculty_id)
        assignment = self._assignments.get_by_id(assignment_id)
        if not assignment or assignment.faculty_id != faculty_id:
            raise NotFoundError("Class assignment not found")
        if not self._assignments.deactivate(assignment_id, deactivated_by=user.user_id):
            raise ValidationError("Class assignment is already inactive")
        logger.info("Assignment %s removed from faculty %s by %s", assignment_id, faculty_id, user.user_id)

    def list_assigned_classes(self, user: User) -> list[ClassAssignment]:
        faculty = self._faculty.get_by_user_id(user.user_id)
        if not faculty:
            raise NotFoundError("Faculty profile not found")
        return list(self._assignments.list_for_faculty(faculty.faculty_id, active_only=True))
