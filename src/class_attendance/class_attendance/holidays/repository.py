from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Holiday


class HolidayRepository(Protocol):
    """Only live (not soft-deleted) holidays are returned by the finders."""

    def get_by_id(self, holiday_id: int) -> Optional[Holiday]:
        raise NotImplementedError

    def find_live(self, holiday_date: date, department: str) -> Optional[Holiday]:
        raise NotImplementedError

    def list_live(self, department: str, *, start: date, end: date) -> Sequence[Holiday]:
        raise NotImplementedError

    def create(self, *, holiday_date: date, department: str, reason: str, created_by: int) -> int:
        raise NotImplementedError

    def update(self, holiday_id: int, *, holiday_date: date, reason: str, updated_by: int) -> bool:
        raise NotImplementedError

    def soft_delete(self, holiday_id: int, *, deleted_by: int) -> bool:
        raise NotImplementedError
