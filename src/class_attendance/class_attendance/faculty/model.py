from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from ..common.academic import ClassContext
from ..core.constants import DEFAULT_SECTION
from ..core.enums import AccountStatus, AuditOperation, AuditStatus, BindingOrigin, ResolutionSource


@dataclass(frozen=True)
class ClassBinding:
    """One class a faculty member may act on.

    Legacy bindings come from the old single-class columns and match on
    whichever fields the caller supplies; assigned bindings need the full tuple.
    """

    batch: str
    year: str
    semester: int
    section: str = DEFAULT_SECTION
    active: bool = True
    origin: BindingOrigin = BindingOrigin.ASSIGNED
    binding_id: Optional[int] = None

    @property
    def is_legacy(self) -> bool:
        return self.origin == BindingOrigin.LEGACY

    def matches(
        self,
        *,
        batch: Optional[str],
        year: Optional[str],
        semester: Optional[int],
        section: Optional[str],
    ) -> bool:
        if not self.active:
            return False
        wanted = (("batch", batch), ("year", year), ("semester", semester), ("section", section))
        for name, value in wanted:
            if value is None:
                if self.is_legacy or name == "section":
                    continue
                return False
            if getattr(self, name) != value:
                return False
        return True

    def matches_context(self, ctx: ClassContext) -> bool:
        return self.matches(batch=ctx.batch, year=ctx.year, semester=ctx.semester, section=ctx.section)

    def to_dict(self) -> dict:
        return {
            "batch": self.batch,
            "year": self.year,
            "semester": self.semester,
            "section": self.section,
            "active": self.active,
            "origin": self.origin.value,
        }


@dataclass(frozen=True)
class Faculty:
    faculty_id: int
    user_id: int
    name: str
    email: str
    department: str
    position: Optional[str] = None
    is_class_advisor: bool = False
    status: AccountStatus = AccountStatus.ACTIVE
    bindings: Sequence[ClassBinding] = field(default_factory=tuple)

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE

    def find_binding(self, ctx: ClassContext, *, require_section: bool = True) -> Optional[ClassBinding]:
        """First active binding for ``ctx``; assigned bindings win over legacy ones."""

        section = ctx.section if require_section else None
        hits = [
            b
            for b in self.bindings
            if b.matches(batch=ctx.batch, year=ctx.year, semester=ctx.semester, section=section)
        ]
        hits.sort(key=lambda b: b.is_legacy)
        return hits[0] if hits else None

    def to_dict(self) -> dict:
        return {
            "id": self.faculty_id,
            "userId": self.user_id,
            "name": self.name,
            "email": self.email,
            "department": self.department,
            "position": self.position,
            "isClassAdvisor": self.is_class_advisor,
            "status": self.status.value,
            "assignedClasses": [b.to_dict() for b in self.bindings if b.active],
        }


@dataclass(frozen=True)
class Resolution:
    faculty_id: int
    faculty: Faculty
    source: ResolutionSource

    def to_dict(self) -> dict:
        return {"facultyId": self.faculty_id, "source": self.source.value}


@dataclass(frozen=True)
class AuditEntry:
    operation: AuditOperation
    faculty_id: Optional[int]
    class_id: Optional[str]
    source: Optional[ResolutionSource]
    user_id: Optional[int]
    resolved_at: datetime
    student_count: int = 0
    student_ids: Sequence[int] = field(default_factory=tuple)
    status: AuditStatus = AuditStatus.SUCCESS
    error_message: Optional[str] = None
