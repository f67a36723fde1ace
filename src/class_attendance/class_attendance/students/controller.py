from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, ok
from ..core.exceptions import ValidationError
from ..container import Container
from ..users.auth import current_user
from .upload import read_upload


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    students = container.student_service

    @app.get("/api/faculty/students", endpoint="faculty_list_students")
    @guard.faculty_and_above
    def list_students():
        user = current_user()
        ctx = students.class_context(user, request.args)
        include_inactive = request.args.get("includeInactive", "").lower() in ("1", "true", "yes")
        items = students.list_students(user, ctx, include_inactive=include_inactive)
        return ok({"students": [s.to_dict() for s in items], "count": len(items), "class": ctx.to_dict()})

    @app.post("/api/faculty/students", endpoint="faculty_create_student")
    @guard.faculty_and_above
    def create_student():
        user = current_user()
        data = json_body()
        ctx = students.class_context(user, data)
        student = students.create_student(user, data, ctx, class_id=data.get("classId"))
        return ok({"student": student.to_dict()}, message="Student created successfully", status=201)

    @app.put("/api/faculty/students/<int:student_id>", endpoint="faculty_update_student")
    @guard.faculty_and_above
    def update_student(student_id: int):
        student = students.update_student(current_user(), student_id, data=json_body())
        return ok({"student": student.to_dict()}, message="Student updated successfully")

    @app.delete("/api/faculty/students/<int:student_id>", endpoint="faculty_delete_student")
    @guard.faculty_and_above
    def delete_student(student_id: int):
        students.deactivate_student(current_user(), student_id)
        return ok(message="Student deactivated successfully")

    @app.post("/api/students/bulk-upload", endpoint="students_bulk_upload")
    @guard.faculty_and_above
    def bulk_upload():
        user = current_user()
        file_storage = request.files.get("file")
        if file_storage is None:
            raise ValidationError("No file uploaded")
        ctx = students.class_context(user, request.form)
        rows = read_upload(file_storage)
        result = students.bulk_create(user, rows, ctx, class_id=request.form.get("classId"))
        message = (
            f"Bulk upload completed: {len(result.successful)} successful, {len(result.failed)} failed"
        )
        return ok(result.to_dict(), message=message)

    @app.get("/api/students/<int:student_id>", endpoint="students_get")
    @guard.authenticate
    def get_student(student_id: int):
        student = students.get_student(current_user(), student_id)
        return ok({"student": student.to_dict()})
