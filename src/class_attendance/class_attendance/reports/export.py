"""Report downloads: one Excel workbook with three sheets, or one CSV per report kind."""

from __future__ import annotations

import csv
import io

import pandas as pd

from ..core.exceptions import ValidationError
from .service import ReportData

REPORT_KINDS = ("summary", "detailed", "absentees")

FIELDNAMES = {
    "summary": ["rollNumber", "name", "present", "absent", "od", "total", "percentage"],
    "detailed": ["date", "rollNumber", "name", "status", "reason"],
    "absentees": ["date", "rollNumber", "name", "reason"],
}

SHEET_NAMES = {"summary": "Summary", "detailed": "Detailed", "absentees": "Absentees"}


def _rows_for(report: ReportData, kind: str) -> list[dict]:
    if kind == "summary":
        return report.summary
    if kind == "detailed":
        return report.rows
    if kind == "absentees":
        return report.absentees
    raise ValidationError(f"kind must be one of {', '.join(REPORT_KINDS)}")


def export_csv(report: ReportData, kind: str = "summary") -> bytes:
    rows = _rows_for(report, kind)
    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=FIELDNAMES[kind], extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    # BOM so Excel opens the file as UTF-8.
    return out.getvalue().encode("utf-8-sig")


def export_excel(report: ReportData) -> bytes:
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        for kind in REPORT_KINDS:
            df = pd.DataFrame(_rows_for(report, kind), columns=FIELDNAMES[kind])
            df.to_excel(writer, index=False, sheet_name=SHEET_NAMES[kind])
    return output.getvalue()


def export_filename(report: ReportData, extension: str, kind: str = "report") -> str:
    return (
        f"attendance_{kind}_{report.class_id}_"
        f"{report.start.strftime('%Y%m%d')}_{report.end.strftime('%Y%m%d')}.{extension}"
    ).replace(" ", "")
