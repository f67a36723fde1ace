from __future__ import annotations

from flask import Flask, request

from ..common.academic import ClassContext
from ..common.http import ok
from ..container import Container
from ..core.exceptions import ValidationError
from ..users.auth import current_user
from .export import REPORT_KINDS, export_csv, export_excel, export_filename

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    reports = container.report_service

    def _download(payload: bytes, *, mimetype: str, filename: str):
        return app.response_class(
            payload,
            mimetype=mimetype,
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.get("/api/reports/class", endpoint="reports_class")
    @guard.faculty_and_above
    def class_report():
        user = current_user()
        args = request.args
        ctx = ClassContext.parse(
            batch=args.get("batch"),
            year=args.get("year"),
            semester=args.get("semester"),
            section=args.get("section"),
            department=user.scoped_department(args.get("department")),
        )
        report = reports.build_class_report(user, ctx, start=args.get("startDate"), end=args.get("endDate"))

        fmt = (args.get("format") or "json").lower()
        kind = (args.get("kind") or "summary").lower()
        if kind not in REPORT_KINDS:
            raise ValidationError(f"kind must be one of {', '.join(REPORT_KINDS)}")

        if fmt == "json":
            return ok(report.to_dict())
        if fmt == "excel":
            return _download(export_excel(report), mimetype=XLSX_MIMETYPE, filename=export_filename(report, "xlsx"))
        if fmt == "csv":
            return _download(export_csv(report, kind), mimetype="text/csv", filename=export_filename(report, "csv", kind))
        raise ValidationError("format must be one of json, excel, csv")
