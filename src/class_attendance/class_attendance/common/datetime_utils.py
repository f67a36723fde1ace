from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union

from ..core.exceptions import ValidationError

SUNDAY = 6


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def coerce_date(value: Union[str, date, datetime, None], field_name: str = "date") -> date:
    """Accept a date, a datetime or an ISO string and return a calendar date.

    Time components are dropped; attendance is tracked per calendar day.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    raw = str(value).strip()
    try:
        return parse_iso_date(raw[:10])
    except ValueError:
        raise ValidationError(f"{field_name} must be a valid date (YYYY-MM-DD)")


def optional_date(value: Union[str, date, datetime, None], field_name: str = "date") -> Optional[date]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return coerce_date(value, field_name)


def is_sunday(value: date) -> bool:
    return value.weekday() == SUNDAY


def today() -> date:
    """Current local date.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return date.today()


def now_local() -> datetime:
    return datetime.now()
