from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles, highest privilege first."""

    ADMIN = "admin"
    PRINCIPAL = "principal"
    HOD = "hod"
    FACULTY = "faculty"
    STUDENT = "student"


class AccountStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class AttendanceStatus(str, Enum):
    """Attendance status stored per student and date.

    OD (on duty) counts as present for percentages but is reported separately.
    """

    PRESENT = "Present"
    ABSENT = "Absent"
    OD = "OD"


class BindingOrigin(str, Enum):
    """Where a faculty class binding came from.

    LEGACY bindings were migrated from the old single-class scalar columns.
    """

    ASSIGNED = "assigned"
    LEGACY = "legacy"


class ResolutionSource(str, Enum):
    USER_SESSION = "user_session"
    USER_SESSION_LEGACY = "user_session_legacy"
    CLASS_MAPPING = "class_mapping"
    CLASS_MAPPING_LEGACY = "class_mapping_legacy"
    BATCH_LOOKUP = "batch_lookup"
    BATCH_LOOKUP_LEGACY = "batch_lookup_legacy"
    DEPARTMENT_FALLBACK = "department_fallback"


class AuditOperation(str, Enum):
    FACULTY_RESOLUTION = "faculty_resolution"
    MANUAL_CREATE = "manual_create"
    BULK_UPLOAD = "bulk_upload"
    ATTENDANCE_MARK = "attendance_mark"
    ATTENDANCE_EDIT = "attendance_edit"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILED = "failed"
