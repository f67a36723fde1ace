"""Spreadsheet upload parsing for bulk student import (CSV / XLSX)."""

from __future__ import annotations

import io
import logging
import re
from pathlib import PurePath
from typing import Any, Iterable, Mapping

import pandas as pd

from ..common.validators import clean_str
from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".csv", ".xlsx")

HEADER_VARIANTS: dict[str, tuple[str, ...]] = {
    "rollNumber": ("Roll Number", "rollNumber", "RollNumber", "roll_number", "Roll_Number", "Roll No", "rollNo", "RollNo"),
    "name": ("Name", "name", "Student Name", "studentName", "student_name", "Full Name", "fullName", "full_name"),
    "email": ("Email", "email", "Email Address", "emailAddress", "email_address", "E-mail", "e_mail"),
    "mobile": ("Mobile", "mobile", "Mobile Number", "mobileNumber", "mobile_number", "Phone", "phone", "Phone Number"),
    "parentContact": ("Parent Contact", "parentContact", "parent_contact", "Parent Phone", "parentPhone", "parent_phone"),
    "password": ("Password", "password", "Pass", "pass"),
}


def _header_key(header: Any) -> str:
    return re.sub(r"[\s_\-.]", "", clean_str(header)).lower()


_CANONICAL_BY_KEY: dict[str, str] = {
    _header_key(variant): canonical for canonical, variants in HEADER_VARIANTS.items() for variant in variants
}


def normalize_row(row: Mapping[str, Any]) -> dict[str, str]:
    """Map header variants ("Roll No", "roll_number", ...) onto canonical field names.

    Unknown columns are dropped. When two columns map to the same field the
    first non-empty value wins.
    """

    out: dict[str, str] = {}
    for header, value in row.items():
        canonical = _CANONICAL_BY_KEY.get(_header_key(header))
        if not canonical:
            continue
        text = clean_str(value)
        if text and not out.get(canonical):
            out[canonical] = text
        else:
            out.setdefault(canonical, text)
    return out


def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> list[dict[str, str]]:
    return [normalize_row(r) for r in rows]


def read_upload(file_storage) -> list[dict[str, Any]]:
    """Parse an uploaded werkzeug ``FileStorage`` into row dicts (cells as strings)."""

    filename = getattr(file_storage, "filename", None) or ""
    suffix = PurePath(filename).suffix.lower()
    if suffix not in ALLOWED_EXTENSIONS:
        raise ValidationError("Only CSV and Excel files (.csv, .xlsx) are allowed")

    payload = file_storage.read()
    if not payload:
        raise ValidationError("Uploaded file is empty")

    try:
        if suffix == ".csv":
            df = pd.read_csv(io.BytesIO(payload), dtype=str, keep_default_na=False, encoding="utf-8-sig")
        else:
            df = pd.read_excel(io.BytesIO(payload), dtype=str, keep_default_na=False)
    except (ValueError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.warning("Could not parse upload %s: %s", filename, e)
        raise ValidationError("Could not read the uploaded file")

    df = df.loc[~(df.astype(str).apply(lambda col: col.str.strip()) == "").all(axis=1)]
    if df.empty:
        raise ValidationError("No data rows found in the uploaded file")

    logger.info("Parsed upload %s: %d rows, columns=%s", filename, len(df), list(df.columns))
    return df.to_dict(orient="records")
