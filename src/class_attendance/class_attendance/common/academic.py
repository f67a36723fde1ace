"""Class identity: canonical academic values and the derived class keys.

Every place that needs a ``class_id`` or ``class_assigned`` string goes
through :func:`derive_class_identity`; nothing else formats these keys.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

from ..core.constants import (
    DEFAULT_SECTION,
    DEPARTMENTS,
    MAX_SEMESTER,
    MIN_SEMESTER,
    SECTIONS,
    YEARS_OF_STUDY,
)
from ..core.exceptions import ValidationError
from .validators import clean_str, is_valid_batch

_YEAR_RE = re.compile(r"^([1-4])\s*(st|nd|rd|th)?(\s*year)?$", re.IGNORECASE)
_DIGITS_RE = re.compile(r"\d+")


def normalize_year(value: Any) -> str:
    """'1', 1, '1st', '1st year' -> '1st Year'. Anything else is rejected."""

    raw = clean_str(value)
    match = _YEAR_RE.match(raw)
    if not match:
        raise ValidationError(f"Year must be one of: {', '.join(YEARS_OF_STUDY)}")
    return YEARS_OF_STUDY[int(match.group(1)) - 1]


def normalize_semester(value: Any) -> int:
    """3, '3', 'Sem 3' -> 3. Must land in 1..8."""

    if isinstance(value, bool):
        raise ValidationError("Semester must be a number between 1 and 8")
    if isinstance(value, int):
        number = value
    else:
        match = _DIGITS_RE.search(clean_str(value))
        if not match:
            raise ValidationError("Semester must be a number between 1 and 8")
        number = int(match.group(0))
    if not MIN_SEMESTER <= number <= MAX_SEMESTER:
        raise ValidationError("Semester must be a number between 1 and 8")
    return number


def normalize_section(value: Any) -> str:
    raw = clean_str(value).upper()
    if not raw:
        return DEFAULT_SECTION
    if raw not in SECTIONS:
        raise ValidationError(f"Section must be one of: {', '.join(SECTIONS)}")
    return raw


def normalize_department(value: Any) -> str:
    raw = clean_str(value)
    for dept in DEPARTMENTS:
        if dept.lower() == raw.lower():
            return dept
    raise ValidationError(f"Department must be one of: {', '.join(DEPARTMENTS)}")


def normalize_batch(value: Any) -> str:
    raw = clean_str(value)
    if not is_valid_batch(raw):
        raise ValidationError("Batch must be in format YYYY-YYYY")
    return raw


def loose_year(value: Any) -> Optional[str]:
    try:
        return normalize_year(value)
    except ValidationError:
        return None


def loose_semester(value: Any) -> Optional[int]:
    try:
        return normalize_semester(value)
    except ValidationError:
        return None


@dataclass(frozen=True)
class ClassContext:
    """The tuple that identifies one roster."""

    batch: str
    year: str
    semester: int
    section: str = DEFAULT_SECTION
    department: Optional[str] = None

    @classmethod
    def parse(
        cls,
        *,
        batch: Any,
        year: Any,
        semester: Any,
        section: Any = None,
        department: Any = None,
        require_department: bool = False,
    ) -> "ClassContext":
        errors: list[str] = []

        def _collect(fn, value):
            try:
                return fn(value)
            except ValidationError as e:
                errors.append(e.message)
                return None

        batch_v = _collect(normalize_batch, batch)
        year_v = _collect(normalize_year, year)
        semester_v = _collect(normalize_semester, semester)
        section_v = _collect(normalize_section, section)

        department_v = None
        if clean_str(department):
            department_v = _collect(normalize_department, department)
        elif require_department:
            errors.append("Department is required")

        if errors:
            raise ValidationError("Invalid class parameters", details=errors)

        return cls(batch=batch_v, year=year_v, semester=semester_v, section=section_v, department=department_v)

    def with_department(self, department: Optional[str]) -> "ClassContext":
        return ClassContext(
            batch=self.batch,
            year=self.year,
            semester=self.semester,
            section=self.section,
            department=department,
        )

    @property
    def year_number(self) -> int:
        return YEARS_OF_STUDY.index(self.year) + 1

    def to_dict(self) -> dict:
        return {
            "batch": self.batch,
            "year": self.year,
            "semester": self.semester,
            "section": self.section,
            "department": self.department,
        }


@dataclass(frozen=True)
class ClassIdentity:
    class_id: str
    class_assigned: str


def build_class_id(ctx: ClassContext) -> str:
    return f"{ctx.batch}_{ctx.year}_{ctx.semester}_{ctx.section}"


def build_class_assigned(ctx: ClassContext) -> str:
    return f"{ctx.year_number}{ctx.section}"


def derive_class_identity(ctx: ClassContext) -> ClassIdentity:
    return ClassIdentity(class_id=build_class_id(ctx), class_assigned=build_class_assigned(ctx))


def parse_class_id(class_id: str, *, department: Optional[str] = None) -> ClassContext:
    """Inverse of :func:`build_class_id`: 'batch_year_semester_section'."""

    parts = clean_str(class_id).split("_")
    if len(parts) < 4:
        raise ValidationError(f"Invalid class identifier: {class_id!r}")
    batch, year, semester, section = parts[:4]
    return ClassContext.parse(batch=batch, year=year, semester=semester, section=section, department=department)
