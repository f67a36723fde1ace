"""Faculty-class resolver.

Maps ``(user, class descriptor)`` to the faculty record allowed to act on
that class. Strategies run in a fixed order and the first hit wins:

1. session faculty with a binding for the class (``user_session``)
2. session faculty that is a class advisor (``user_session_legacy``)
3. parsed ``class_id`` lookup (``class_mapping``)
4. batch/year/semester lookup, section optional (``batch_lookup``)
5. any active class advisor of the department (``department_fallback``)

Strategies 1, 3 and 4 search the same binding list; a hit on a binding
migrated from the old single-class columns gets the ``_legacy`` tag.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Union

from ..common.academic import ClassContext, build_class_id, loose_semester, loose_year, parse_class_id
from ..common.validators import clean_str, is_valid_batch
from ..core.constants import DEFAULT_SECTION, DEPARTMENTS
from ..core.enums import AuditOperation, ResolutionSource, Role
from ..core.exceptions import NoFacultyFoundError, ValidationError
from ..users.model import User
from .audit import AuditTrail
from .model import ClassBinding, Faculty, Resolution
from .repository import FacultyRepository

logger = logging.getLogger(__name__)

_LEGACY_TAG = {
    ResolutionSource.USER_SESSION: ResolutionSource.USER_SESSION_LEGACY,
    ResolutionSource.CLASS_MAPPING: ResolutionSource.CLASS_MAPPING_LEGACY,
    ResolutionSource.BATCH_LOOKUP: ResolutionSource.BATCH_LOOKUP_LEGACY,
}


@dataclass(frozen=True)
class _Lookup:
    batch: Optional[str]
    year: Optional[str]
    semester: Optional[int]
    section: Optional[str]

    @property
    def complete(self) -> bool:
        return self.batch is not None and self.year is not None and self.semester is not None

    def context(self) -> ClassContext:
        return ClassContext(
            batch=self.batch,
            year=self.year,
            semester=self.semester,
            section=self.section or DEFAULT_SECTION,
        )


def _lookup_from(batch: Any, year: Any, semester: Any, section: Any) -> _Lookup:
    batch_v = clean_str(batch)
    section_v = clean_str(section).upper()
    return _Lookup(
        batch=batch_v if is_valid_batch(batch_v) else None,
        year=loose_year(year) if clean_str(year) else None,
        semester=loose_semester(semester) if clean_str(semester) else None,
        section=section_v or None,
    )


def _canonical_department(value: Any) -> Optional[str]:
    raw = clean_str(value)
    for dept in DEPARTMENTS:
        if dept.lower() == raw.lower():
            return dept
    return raw or None


def _tag(source: ResolutionSource, binding: ClassBinding) -> ResolutionSource:
    return _LEGACY_TAG[source] if binding.is_legacy else source


def _pick(pairs: Sequence[tuple[Faculty, ClassBinding]]) -> Optional[tuple[Faculty, ClassBinding]]:
    if not pairs:
        return None
    return sorted(pairs, key=lambda p: (p[1].is_legacy, p[0].faculty_id))[0]


class FacultyResolver:
    def __init__(self, faculty: FacultyRepository, audit: AuditTrail):
        self._faculty = faculty
        self._audit = audit

    def resolve(
        self,
        *,
        user: Optional[User] = None,
        class_id: Optional[str] = None,
        batch: Any = None,
        year: Any = None,
        semester: Any = None,
        section: Any = None,
        department: Any = None,
        operation: AuditOperation = AuditOperation.FACULTY_RESOLUTION,
    ) -> Resolution:
        lookup = _lookup_from(batch, year, semester, section)
        department_v = _canonical_department(department)

        resolution = (
            self._from_session(user, lookup)
            or self._from_class_id(class_id, department_v)
            or self._from_batch(lookup, department_v)
            or self._from_department(department_v)
        )
        if resolution is None:
            logger.error(
                "No faculty found: user=%s class_id=%s lookup=%s department=%s",
                user.user_id if user else None, class_id, lookup, department_v,
            )
            raise NoFacultyFoundError()

        audit_class_id = clean_str(class_id) or (build_class_id(lookup.context()) if lookup.complete else None)
        self._audit.record(
            operation,
            faculty_id=resolution.faculty_id,
            class_id=audit_class_id,
            source=resolution.source,
            user_id=user.user_id if user else None,
        )
        return resolution

    def _from_session(self, user: Optional[User], lookup: _Lookup) -> Optional[Resolution]:
        if user is None or user.role != Role.FACULTY:
            return None
        faculty = self._faculty.get_by_user_id(user.user_id)
        if not faculty or not faculty.is_active:
            return None

        if lookup.complete:
            binding = faculty.find_binding(lookup.context())
            if binding:
                source = _tag(ResolutionSource.USER_SESSION, binding)
                logger.info("Faculty %s resolved from user session (%s)", faculty.faculty_id, source.value)
                return Resolution(faculty.faculty_id, faculty, source)

        if faculty.is_class_advisor:
            logger.info("Faculty %s resolved from user session without class match", faculty.faculty_id)
            return Resolution(faculty.faculty_id, faculty, ResolutionSource.USER_SESSION_LEGACY)
        return None

    def _from_class_id(self, class_id: Optional[str], department: Optional[str]) -> Optional[Resolution]:
        if not clean_str(class_id):
            return None
        try:
            ctx = parse_class_id(class_id)
        except ValidationError:
            logger.info("Class id %r is not parseable; trying batch lookup", class_id)
            return None
        hit = _pick(
            self._faculty.find_bound(
                batch=ctx.batch,
                year=ctx.year,
                semester=ctx.semester,
                section=ctx.section,
                department=department,
            )
        )
        if not hit:
            return None
        faculty, binding = hit
        source = _tag(ResolutionSource.CLASS_MAPPING, binding)
        logger.info("Faculty %s resolved from class id %s (%s)", faculty.faculty_id, class_id, source.value)
        return Resolution(faculty.faculty_id, faculty, source)

    def _from_batch(self, lookup: _Lookup, department: Optional[str]) -> Optional[Resolution]:
        if not lookup.complete:
            return None
        hit = _pick(
            self._faculty.find_bound(
                batch=lookup.batch,
                year=lookup.year,
                semester=lookup.semester,
                section=lookup.section,
                department=department,
            )
        )
        if not hit:
            return None
        faculty, binding = hit
        source = _tag(ResolutionSource.BATCH_LOOKUP, binding)
        logger.info("Faculty %s resolved from batch lookup (%s)", faculty.faculty_id, source.value)
        return Resolution(faculty.faculty_id, faculty, source)

    def _from_department(self, department: Optional[str]) -> Optional[Resolution]:
        if not department:
            return None
        faculty = self._faculty.find_department_advisor(department)
        if not faculty:
            return None
        logger.warning(
            "Faculty %s resolved from department fallback for %s; class binding is missing",
            faculty.faculty_id, department,
        )
        return Resolution(faculty.faculty_id, faculty, ResolutionSource.DEPARTMENT_FALLBACK)

    def validate_binding(self, faculty_id: Optional[int], metadata: Union[ClassContext, Mapping[str, Any], None]) -> bool:
        """True when the faculty is active and holds a binding for the class. Never raises."""

        try:
            if faculty_id is None:
                return False
            meta = metadata.to_dict() if isinstance(metadata, ClassContext) else dict(metadata or {})
            faculty = self._faculty.get_by_id(int(faculty_id))
            if not faculty or not faculty.is_active:
                logger.warning("Binding check: faculty %s missing or inactive", faculty_id)
                return False

            department = _canonical_department(meta.get("department"))
            if department and department != faculty.department:
                logger.warning("Binding check: faculty %s department %s != %s", faculty_id, faculty.department, department)
                return False

            batch = clean_str(meta.get("batch")) or None
            year = semester = None
            if clean_str(meta.get("year")):
                year = loose_year(meta.get("year"))
                if year is None:
                    return False
            if clean_str(meta.get("semester")):
                semester = loose_semester(meta.get("semester"))
                if semester is None:
                    return False
            section = clean_str(meta.get("section")).upper() or None

            for binding in faculty.bindings:
                if binding.matches(batch=batch, year=year, semester=semester, section=section):
                    return True
            logger.warning("Binding check: faculty %s holds no binding for %s", faculty_id, meta)
            return False
        except Exception:
            logger.exception("Binding check failed for faculty %s", faculty_id)
            return False
