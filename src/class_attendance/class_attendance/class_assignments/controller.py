from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, ok
from ..container import Container
from ..users.auth import current_user


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    assignments = container.class_assignment_service

    @app.get("/api/class-assignment/<int:assignment_id>", endpoint="class_assignment_get")
    @guard.faculty_and_above
    def get_assignment(assignment_id: int):
        assignment = assignments.get_for_user(current_user(), assignment_id)
        return ok({"assignment": assignment.to_dict()})

    @app.put("/api/class-assignment/<int:assignment_id>", endpoint="class_assignment_update")
    @guard.faculty_and_above
    def update_assignment(assignment_id: int):
        assignment = assignments.update_assignment(current_user(), assignment_id, data=json_body())
        return ok({"assignment": assignment.to_dict()}, message="Class assignment updated successfully")

    @app.put("/api/class-assignment/<int:assignment_id>/attendance-dates", endpoint="class_assignment_dates")
    @guard.faculty_and_above
    def update_attendance_dates(assignment_id: int):
        data = json_body()
        assignment = assignments.update_attendance_dates(
            current_user(),
            assignment_id,
            start=data.get("attendanceStartDate"),
            end=data.get("attendanceEndDate"),
        )
        return ok({"assignment": assignment.to_dict()}, message="Attendance dates updated successfully")

    @app.get("/api/class-assignment/<int:assignment_id>/can-mark", endpoint="class_assignment_can_mark")
    @guard.faculty_and_above
    def can_mark(assignment_id: int):
        assignments.get_for_user(current_user(), assignment_id)
        decision = assignments.can_mark(assignment_id, request.args.get("date"))
        return ok(decision.to_dict())

    @app.put("/api/class-assignment/<int:assignment_id>/deactivate", endpoint="class_assignment_deactivate")
    @guard.hod_and_above
    def deactivate(assignment_id: int):
        assignments.deactivate(current_user(), assignment_id)
        return ok(message="Class assignment deactivated successfully")

    @app.get("/api/class-assignment/faculty/<int:faculty_id>", endpoint="class_assignment_for_faculty")
    @guard.faculty_and_above
    def list_for_faculty(faculty_id: int):
        active_only = request.args.get("includeInactive", "").lower() not in ("1", "true", "yes")
        items = assignments.list_for_faculty(current_user(), faculty_id, active_only=active_only)
        return ok({"assignments": [a.to_dict() for a in items], "count": len(items)})

    @app.get("/api/class-assignment/department", endpoint="class_assignment_for_department")
    @guard.hod_and_above
    def list_for_department():
        items = assignments.list_for_department(current_user(), request.args.get("department"))
        return ok({"assignments": [a.to_dict() for a in items], "count": len(items)})
