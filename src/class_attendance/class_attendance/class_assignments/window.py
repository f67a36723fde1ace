"""Attendance window: a class may only be marked between its start and end dates."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..core.exceptions import (
    AfterWindowError,
    AttendanceWindowError,
    BeforeWindowError,
    StartDateNotSetError,
    ValidationError,
)
from ..holidays.service import HolidayCalendar
from .model import ClassAssignment, WindowDecision

logger = logging.getLogger(__name__)


def check_window(assignment: ClassAssignment, target_date: date) -> None:
    """Raise the matching ``AttendanceWindowError`` when ``target_date`` is outside the window.

    Both boundaries are inclusive.
    """

    start = assignment.attendance_start_date
    end = assignment.attendance_end_date
    if start is None:
        raise StartDateNotSetError()
    if target_date < start:
        raise BeforeWindowError(start)
    if end is not None and target_date > end:
        raise AfterWindowError(end)


def validate_window_dates(start: Optional[date], end: Optional[date]) -> None:
    if start is None:
        raise ValidationError("Attendance start date is required")
    if end is not None and not start < end:
        raise ValidationError("Attendance end date must be after the start date")


class AttendanceWindowValidator:
    def __init__(self, calendar: HolidayCalendar):
        self._calendar = calendar

    def can_mark_attendance(self, assignment: ClassAssignment, target_date: date) -> WindowDecision:
        try:
            check_window(assignment, target_date)
        except AttendanceWindowError as e:
            return WindowDecision(allowed=False, reason=e.message, code=e.code)

        if self._calendar.is_holiday(target_date, assignment.department):
            holiday = self._calendar.holiday_on(target_date, assignment.department)
            reason = f"{target_date.isoformat()} is a holiday: {holiday.reason}" if holiday else (
                f"{target_date.isoformat()} is a Sunday"
            )
            return WindowDecision(allowed=False, reason=reason, code="HOLIDAY")

        return WindowDecision(allowed=True)
