from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, ok
from ..container import Container
from ..users.auth import current_user


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    faculty = container.faculty_service

    @app.post("/api/faculty/create", endpoint="faculty_create")
    @guard.hod_and_above
    def create_faculty():
        created = faculty.create_faculty(current_user(), data=json_body())
        return ok({"faculty": created.to_dict()}, message="Faculty created successfully", status=201)

    @app.get("/api/faculty/list", endpoint="faculty_list")
    @guard.hod_and_above
    def list_faculty():
        include_inactive = request.args.get("includeInactive", "").lower() in ("1", "true", "yes")
        items = faculty.list_faculty(
            current_user(), department=request.args.get("department"), include_inactive=include_inactive
        )
        return ok({"faculty": [f.to_dict() for f in items], "count": len(items)})

    @app.get("/api/faculty/assigned-classes", endpoint="faculty_assigned_classes")
    @guard.faculty_and_above
    def assigned_classes():
        items = faculty.list_assigned_classes(current_user())
        return ok({"classes": [a.to_dict() for a in items], "count": len(items)})

    @app.get("/api/faculty/<int:faculty_id>", endpoint="faculty_get")
    @guard.faculty_and_above
    def get_faculty(faculty_id: int):
        return ok({"faculty": faculty.get_faculty(current_user(), faculty_id).to_dict()})

    @app.put("/api/faculty/<int:faculty_id>", endpoint="faculty_update")
    @guard.hod_and_above
    def update_faculty(faculty_id: int):
        updated = faculty.update_faculty(current_user(), faculty_id, data=json_body())
        return ok({"faculty": updated.to_dict()}, message="Faculty updated successfully")

    @app.delete("/api/faculty/<int:faculty_id>", endpoint="faculty_delete")
    @guard.hod_and_above
    def delete_faculty(faculty_id: int):
        faculty.deactivate_faculty(current_user(), faculty_id)
        return ok(message="Faculty deactivated successfully")

    @app.post("/api/faculty/<int:faculty_id>/assign-class", endpoint="faculty_assign_class")
    @guard.hod_and_above
    def assign_class(faculty_id: int):
        assignment = faculty.assign_class(current_user(), faculty_id, data=json_body())
        return ok({"assignment": assignment.to_dict()}, message="Class assigned successfully", status=201)

    @app.delete("/api/faculty/<int:faculty_id>/class/<int:assignment_id>", endpoint="faculty_remove_class")
    @guard.hod_and_above
    def remove_class(faculty_id: int, assignment_id: int):
        faculty.remove_class(current_user(), faculty_id, assignment_id)
        return ok(message="Class removed successfully")
