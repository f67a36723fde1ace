from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from ..core.enums import AuditOperation, AuditStatus, ResolutionSource
from .model import AuditEntry
from .repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditTrail:
    """Append-only diagnostic log of faculty resolutions and roster writes.

    A failed write is logged and dropped; callers never see it.
    """

    def __init__(self, repo: AuditRepository, *, clock: Callable[[], datetime] = datetime.now):
        self._repo = repo
        self._clock = clock

    def record(
        self,
        operation: AuditOperation,
        *,
        faculty_id: Optional[int] = None,
        class_id: Optional[str] = None,
        source: Optional[ResolutionSource] = None,
        user_id: Optional[int] = None,
        student_ids: Iterable[int] = (),
        student_count: Optional[int] = None,
        status: AuditStatus = AuditStatus.SUCCESS,
        error_message: Optional[str] = None,
    ) -> Optional[AuditEntry]:
        ids = tuple(student_ids)
        entry = AuditEntry(
            operation=operation,
            faculty_id=faculty_id,
            class_id=class_id,
            source=source,
            user_id=user_id,
            resolved_at=self._clock(),
            student_count=len(ids) if student_count is None else int(student_count),
            student_ids=ids,
            status=status,
            error_message=error_message,
        )
        try:
            self._repo.append(entry)
        except Exception:
            logger.exception("Audit write failed for %s (faculty=%s, class=%s)", operation.value, faculty_id, class_id)
            return None
        logger.info(
            "Audit %s faculty=%s class=%s source=%s count=%s status=%s",
            operation.value,
            faculty_id,
            class_id,
            source.value if source else None,
            entry.student_count,
            status.value,
        )
        return entry
