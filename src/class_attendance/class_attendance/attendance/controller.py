from __future__ import annotations

from flask import Flask, request

from ..common.academic import ClassContext
from ..common.http import json_body, ok
from ..container import Container
from ..core.exceptions import ValidationError
from ..users.auth import current_user


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    attendance = container.attendance_service

    @app.post("/api/attendance/mark-students", endpoint="attendance_mark_students")
    @guard.faculty_and_above
    def mark_students():
        result = attendance.mark_students(current_user(), json_body())
        return ok(result.to_dict(), message="Attendance saved successfully")

    @app.put("/api/attendance/edit-student", endpoint="attendance_edit_student")
    @guard.faculty_and_above
    def edit_student():
        data = json_body()
        try:
            student_id = int(data.get("studentId"))
        except (TypeError, ValueError):
            raise ValidationError("studentId is required")
        record = attendance.edit_student(
            current_user(),
            student_id,
            attendance_date=data.get("date"),
            status=data.get("status"),
            reason=data.get("reason"),
        )
        return ok({"record": record.to_dict()}, message="Attendance updated successfully")

    @app.patch("/api/attendance/reason", endpoint="attendance_submit_reason")
    @guard.authenticate
    def submit_reason():
        data = json_body()
        try:
            student_id = int(data.get("studentId"))
        except (TypeError, ValueError):
            raise ValidationError("studentId is required")
        record = attendance.submit_reason(
            current_user(),
            student_id,
            attendance_date=data.get("date"),
            reason=data.get("reason"),
        )
        return ok({"record": record.to_dict()}, message="Reason submitted successfully")

    @app.get("/api/attendance/history-by-class", endpoint="attendance_history_by_class")
    @guard.faculty_and_above
    def history_by_class():
        user = current_user()
        args = request.args
        ctx = ClassContext.parse(
            batch=args.get("batch"),
            year=args.get("year"),
            semester=args.get("semester"),
            section=args.get("section"),
            department=user.scoped_department(args.get("department")),
        )
        return ok(attendance.history_by_class(user, ctx, args.get("date")))

    @app.get("/api/attendance/student/<int:student_id>", endpoint="attendance_student_history")
    @guard.authenticate
    def student_history(student_id: int):
        data = attendance.student_history(
            current_user(),
            student_id,
            start=request.args.get("startDate"),
            end=request.args.get("endDate"),
        )
        return ok(data)
