from __future__ import annotations

import re
from typing import Any, Optional

from ..core.exceptions import ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MOBILE_RE = re.compile(r"^[0-9]{10}$")
BATCH_RE = re.compile(r"^\d{4}-\d{4}$")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(str(value)) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return str(value)


def clean_str(value: Any) -> str:
    """Stringify spreadsheet/JSON values; floats like 9876543210.0 come back from Excel cells."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def is_valid_email(value: Any) -> bool:
    return bool(EMAIL_RE.match(clean_str(value)))


def is_valid_mobile(value: Any) -> bool:
    return bool(MOBILE_RE.match(clean_str(value)))


def is_valid_batch(value: Any) -> bool:
    return bool(BATCH_RE.match(clean_str(value)))
