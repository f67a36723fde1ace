from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from werkzeug.security import generate_password_hash

from ..common.academic import ClassContext, derive_class_identity
from ..common.validators import clean_str, is_valid_email, is_valid_mobile
from ..core.constants import DEFAULT_STUDENT_PASSWORD, MIN_PASSWORD_LENGTH
from ..core.enums import AuditOperation, AuditStatus, Role
from ..core.exceptions import AuthorizationError, DomainError, DuplicateResourceError, NotFoundError, ValidationError
from ..faculty.access import ClassAccessPolicy
from ..faculty.audit import AuditTrail
from ..faculty.model import Resolution
from ..faculty.resolver import FacultyResolver
from ..users.model import User
from ..users.repository import UserRepository
from .model import BulkResult, Student, StudentDraft
from .repository import StudentRepository
from .upload import normalize_rows

logger = logging.getLogger(__name__)

_CLASS_FIELDS = ("batch", "year", "semester", "section")


def validate_student_data(data: Mapping[str, Any], *, password_required: bool = True) -> StudentDraft:
    """Check one student's fields and collect every problem before raising."""

    errors: list[str] = []
    roll_number = clean_str(data.get("rollNumber"))
    name = clean_str(data.get("name"))
    email = clean_str(data.get("email")).lower()
    mobile = clean_str(data.get("mobile")) or None
    parent_contact = clean_str(data.get("parentContact")) or None
    password = clean_str(data.get("password"))

    if not roll_number:
        errors.append("Roll number is required")
    if not name:
        errors.append("Name is required")
    if not email:
        errors.append("Email is required")
    elif not is_valid_email(email):
        errors.append("Invalid email format")
    if mobile and not is_valid_mobile(mobile):
        errors.append("Mobile number must be exactly 10 digits")
    if parent_contact and not is_valid_mobile(parent_contact):
        errors.append("Parent contact must be exactly 10 digits")
    if password:
        if len(password) < MIN_PASSWORD_LENGTH:
            errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    elif password_required:
        errors.append("Password is required")

    if errors:
        raise ValidationError("Validation failed", details=errors)

    return StudentDraft(
        roll_number=roll_number,
        name=name,
        email=email,
        password=password or DEFAULT_STUDENT_PASSWORD,
        mobile=mobile,
        parent_contact=parent_contact,
    )


class StudentService:
    def __init__(
        self,
        students: StudentRepository,
        users: UserRepository,
        resolver: FacultyResolver,
        access: ClassAccessPolicy,
        audit: AuditTrail,
    ):
        self._students = students
        self._users = users
        self._resolver = resolver
        self._access = access
        self._audit = audit

    def class_context(self, user: User, data: Mapping[str, Any]) -> ClassContext:
        department = user.scoped_department(data.get("department"))
        return ClassContext.parse(
            batch=data.get("batch"),
            year=data.get("year"),
            semester=data.get("semester"),
            section=data.get("section"),
            department=department,
        )

    def _check_duplicates(self, draft: StudentDraft, ctx: ClassContext) -> None:
        if self._users.get_by_email(draft.email):
            raise DuplicateResourceError("Student already exists with this email", code="DUPLICATE_EMAIL")
        if self._students.roll_number_taken(draft.roll_number, batch=ctx.batch, department=ctx.department):
            raise DuplicateResourceError(
                "Student already exists with this roll number in the same batch", code="DUPLICATE_ROLL_NUMBER"
            )
        if draft.mobile and self._students.mobile_taken(draft.mobile):
            raise DuplicateResourceError("Student already exists with this mobile number", code="DUPLICATE_MOBILE")

    def _insert(self, draft: StudentDraft, ctx: ClassContext, resolution: Resolution, user: User) -> int:
        return self._students.create_student_account(
            draft,
            password_hash=generate_password_hash(draft.password),
            ctx=ctx,
            identity=derive_class_identity(ctx),
            faculty_id=resolution.faculty_id,
            created_by=user.user_id,
        )

    def create_student(
        self, user: User, data: Mapping[str, Any], ctx: ClassContext, *, class_id: Optional[str] = None
    ) -> Student:
        draft = validate_student_data(data)
        self._access.require(user, ctx)
        self._check_duplicates(draft, ctx)

        resolution = self._resolver.resolve(
            user=user,
            class_id=class_id,
            batch=ctx.batch,
            year=ctx.year,
            semester=ctx.semester,
            section=ctx.section,
            department=ctx.department,
        )
        student_id = self._insert(draft, ctx, resolution, user)
        logger.info(
            "Student %s (%s) created for faculty %s via %s",
            student_id, draft.roll_number, resolution.faculty_id, resolution.source.value,
        )
        self._audit.record(
            AuditOperation.MANUAL_CREATE,
            faculty_id=resolution.faculty_id,
            class_id=derive_class_identity(ctx).class_id,
            source=resolution.source,
            user_id=user.user_id,
            student_ids=[student_id],
        )
        return self._require_student(student_id)

    def bulk_create(
        self,
        user: User,
        rows: Iterable[Mapping[str, Any]],
        ctx: ClassContext,
        *,
        class_id: Optional[str] = None,
    ) -> BulkResult:
        """Create every valid row; each row succeeds or fails on its own.

        Rows are validated up front, including roll numbers and emails repeated
        inside the file (the first occurrence is kept), so a rejected row never
        reaches the database.
        """

        normalized = normalize_rows(rows)
        result = BulkResult(total=len(normalized))
        if not normalized:
            raise ValidationError("No student rows to import")

        self._access.require(user, ctx)
        resolution = self._resolver.resolve(
            user=user,
            class_id=class_id,
            batch=ctx.batch,
            year=ctx.year,
            semester=ctx.semester,
            section=ctx.section,
            department=ctx.department,
        )
        if not self._resolver.validate_binding(resolution.faculty_id, ctx):
            raise AuthorizationError("Faculty not authorized for this class")

        accepted: list[tuple[int, dict, StudentDraft]] = []
        seen_rolls: set[str] = set()
        seen_emails: set[str] = set()
        for index, row in enumerate(normalized):
            try:
                draft = validate_student_data(row, password_required=False)
            except ValidationError as e:
                result.add_failure(index, row, e.message, code=e.code, details=e.details)
                continue
            if draft.roll_number in seen_rolls:
                result.add_failure(index, row, "Duplicate roll number in file", code="DUPLICATE_ROLL_NUMBER")
                continue
            if draft.email in seen_emails:
                result.add_failure(index, row, "Duplicate email in file", code="DUPLICATE_EMAIL")
                continue
            seen_rolls.add(draft.roll_number)
            seen_emails.add(draft.email)
            accepted.append((index, row, draft))

        created_ids: list[int] = []
        for index, row, draft in accepted:
            try:
                self._check_duplicates(draft, ctx)
                student_id = self._insert(draft, ctx, resolution, user)
            except DomainError as e:
                result.add_failure(index, row, e.message, code=e.code, details=e.details)
                continue
            except Exception:
                logger.exception("Bulk row %s (%s) failed", index, draft.roll_number)
                result.add_failure(index, row, "Failed to create student")
                continue
            created_ids.append(student_id)
            result.successful.append({"index": index, "studentId": student_id, "rollNumber": draft.roll_number})
        result.failed.sort(key=lambda f: f["index"])

        if not result.failed:
            status = AuditStatus.SUCCESS
        elif created_ids:
            status = AuditStatus.PARTIAL_SUCCESS
        else:
            status = AuditStatus.FAILED
        logger.info(
            "Bulk upload for %s by user %s: %d created, %d failed",
            derive_class_identity(ctx).class_id, user.user_id, len(created_ids), len(result.failed),
        )
        self._audit.record(
            AuditOperation.BULK_UPLOAD,
            faculty_id=resolution.faculty_id,
            class_id=derive_class_identity(ctx).class_id,
            source=resolution.source,
            user_id=user.user_id,
            student_ids=created_ids,
            status=status,
            error_message=f"{len(result.failed)} of {result.total} rows failed" if result.failed else None,
        )
        return result

    def _require_student(self, student_id: int) -> Student:
        student = self._students.get_by_id(student_id)
        if not student:
            raise NotFoundError("Student not found")
        return student

    def _require_visible(self, user: User, student_id: int) -> Student:
        student = self._require_student(student_id)
        if user.role == Role.STUDENT:
            if student.user_id != user.user_id:
                raise AuthorizationError(f"Student user {user.user_id} cannot view student {student_id}")
            return student
        self._access.require(user, student.context)
        return student

    def list_students(self, user: User, ctx: ClassContext, *, include_inactive: bool = False) -> list[Student]:
        self._access.require(user, ctx)
        return list(self._students.list_by_class(ctx, include_inactive=include_inactive))

    def get_student(self, user: User, student_id: int) -> Student:
        return self._require_visible(user, student_id)

    def update_student(self, user: User, student_id: int, *, data: Mapping[str, Any]) -> Student:
        student = self._require_visible(user, student_id)
        if user.role == Role.STUDENT:
            raise AuthorizationError(f"Student user {user.user_id} cannot edit student records")

        errors: list[str] = []
        fields: dict = {}
        if "rollNumber" in data:
            roll_number = clean_str(data.get("rollNumber"))
            if not roll_number:
                errors.append("Roll number is required")
            fields["roll_number"] = roll_number
        if "name" in data:
            name = clean_str(data.get("name"))
            if not name:
                errors.append("Name is required")
            fields["name"] = name
        if "email" in data:
            email = clean_str(data.get("email")).lower()
            if not is_valid_email(email):
                errors.append("Invalid email format")
            fields["email"] = email
        for key, column, label in (("mobile", "mobile", "Mobile number"), ("parentContact", "parent_contact", "Parent contact")):
            if key in data:
                value = clean_str(data.get(key)) or None
                if value and not is_valid_mobile(value):
                    errors.append(f"{label} must be exactly 10 digits")
                fields[column] = value
        if errors:
            raise ValidationError("Validation failed", details=errors)

        ctx: Optional[ClassContext] = None
        if any(k in data for k in _CLASS_FIELDS):
            ctx = ClassContext.parse(
                batch=data.get("batch", student.batch),
                year=data.get("year", student.year),
                semester=data.get("semester", student.semester),
                section=data.get("section", student.section),
                department=student.department,
            )
            self._access.require(user, ctx)
            identity = derive_class_identity(ctx)
            fields.update(
                batch=ctx.batch,
                year=ctx.year,
                semester=ctx.semester,
                section=ctx.section,
                class_id=identity.class_id,
                class_assigned=identity.class_assigned,
            )

        email = fields.get("email")
        if email and email != student.email:
            existing = self._users.get_by_email(email)
            if existing and existing.user_id != student.user_id:
                raise DuplicateResourceError("Student already exists with this email", code="DUPLICATE_EMAIL")
        roll_number = fields.get("roll_number", student.roll_number)
        batch = ctx.batch if ctx else student.batch
        if (roll_number, batch) != (student.roll_number, student.batch):
            if self._students.roll_number_taken(roll_number, batch=batch, department=student.department):
                raise DuplicateResourceError(
                    "Student already exists with this roll number in the same batch", code="DUPLICATE_ROLL_NUMBER"
                )
        mobile = fields.get("mobile")
        if mobile and mobile != student.mobile and self._students.mobile_taken(mobile):
            raise DuplicateResourceError("Student already exists with this mobile number", code="DUPLICATE_MOBILE")

        if fields:
            self._students.update_student(student_id, fields=fields)
            logger.info("Student %s updated by %s: %s", student_id, user.user_id, sorted(fields))
        return self._require_student(student_id)

    def deactivate_student(self, user: User, student_id: int) -> None:
        student = self._require_visible(user, student_id)
        if user.role == Role.STUDENT:
            raise AuthorizationError(f"Student user {user.user_id} cannot deactivate students")
        if not self._students.deactivate(student_id):
            raise ValidationError("Student is already inactive")
        logger.info("Student %s (%s) deactivated by %s", student_id, student.roll_number, user.user_id)
