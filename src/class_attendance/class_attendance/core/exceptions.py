from __future__ import annotations

from datetime import date
from typing import Optional, Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""

    code: Optional[str] = None

    def __init__(self, message: str, *, code: Optional[str] = None, details: Sequence[str] = ()):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = list(details)


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class DuplicateResourceError(ValidationError):
    """Raised when a unique field (email, roll number, mobile, holiday date) already exists."""


class HolidayError(ValidationError):
    """Raised when attendance is marked on a Sunday or a declared holiday."""

    code = "HOLIDAY"


class AttendanceWindowError(ValidationError):
    """Base for attendance window violations."""


class StartDateNotSetError(AttendanceWindowError):
    code = "START_DATE_NOT_SET"

    def __init__(self):
        super().__init__("Attendance start date has not been set for this class")


class BeforeWindowError(AttendanceWindowError):
    code = "BEFORE_WINDOW"

    def __init__(self, start_date: date):
        super().__init__(f"Attendance cannot be marked before {start_date.isoformat()}")
        self.boundary = start_date


class AfterWindowError(AttendanceWindowError):
    code = "AFTER_WINDOW"

    def __init__(self, end_date: date):
        super().__init__(f"Attendance cannot be marked after {end_date.isoformat()}")
        self.boundary = end_date


class NoFacultyFoundError(DomainError):
    """Raised when no faculty binding can be resolved for a class."""

    code = "NO_FACULTY_FOUND"

    def __init__(self, message: str = "No valid faculty found for the specified class"):
        super().__init__(message)


class NotFoundError(DomainError):
    """Raised when a requested record does not exist."""


class AuthenticationError(DomainError):
    """Raised when login credentials or tokens are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""
