from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, ok
from ..container import Container
from ..users.auth import current_user


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    holidays = container.holiday_service

    @app.get("/api/holidays", endpoint="holidays_list")
    @guard.faculty_and_above
    def list_holidays():
        args = request.args
        items = holidays.list(
            current_user(),
            start=args.get("startDate"),
            end=args.get("endDate"),
            year=args.get("year"),
            department=args.get("department"),
        )
        return ok({"holidays": [h.to_dict() for h in items], "count": len(items)})

    @app.post("/api/holidays", endpoint="holidays_create")
    @guard.faculty_and_above
    def create_holiday():
        data = json_body()
        holiday = holidays.create(
            current_user(),
            holiday_date=data.get("date"),
            reason=data.get("reason"),
            department=data.get("department"),
        )
        return ok({"holiday": holiday.to_dict()}, message="Holiday declared successfully", status=201)

    @app.put("/api/holidays/<int:holiday_id>", endpoint="holidays_update")
    @guard.faculty_and_above
    def update_holiday(holiday_id: int):
        data = json_body()
        holiday = holidays.update(current_user(), holiday_id, holiday_date=data.get("date"), reason=data.get("reason"))
        return ok({"holiday": holiday.to_dict()}, message="Holiday updated successfully")

    @app.delete("/api/holidays/<int:holiday_id>", endpoint="holidays_delete")
    @guard.faculty_and_above
    def delete_holiday(holiday_id: int):
        holidays.delete(current_user(), holiday_id)
        return ok(message="Holiday deleted successfully")

    @app.get("/api/holidays/check/<day>", endpoint="holidays_check")
    @guard.faculty_and_above
    def check_holiday(day: str):
        return ok(holidays.check(current_user(), day, department=request.args.get("department")))
