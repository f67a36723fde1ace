from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Optional

from ..common.datetime_utils import coerce_date, is_sunday, optional_date, today
from ..common.validators import clean_str
from ..core.enums import Role
from ..core.exceptions import DuplicateResourceError, NotFoundError, ValidationError
from ..users.model import User
from .model import Holiday
from .repository import HolidayRepository

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 255


class HolidayCalendar:
    """Answers "can anyone mark attendance on this date for this department?"."""

    def __init__(self, holidays: HolidayRepository):
        self._holidays = holidays

    def holiday_on(self, day: date, department: Optional[str]) -> Optional[Holiday]:
        if not department:
            return None
        return self._holidays.find_live(day, department)

    def is_holiday(self, day: date, department: Optional[str]) -> bool:
        if is_sunday(day):
            return True
        return self.holiday_on(day, department) is not None


class HolidayService:
    def __init__(self, holidays: HolidayRepository, calendar: HolidayCalendar, *, clock: Callable[[], date] = today):
        self._holidays = holidays
        self._calendar = calendar
        self._clock = clock

    def _require_in_scope(self, user: User, holiday_id: int) -> Holiday:
        holiday = self._holidays.get_by_id(holiday_id)
        if not holiday:
            raise NotFoundError("Holiday not found")
        if user.role not in (Role.ADMIN, Role.PRINCIPAL) and holiday.department != user.department:
            raise NotFoundError("Holiday not found")
        return holiday

    @staticmethod
    def _clean_reason(reason: Any) -> str:
        value = clean_str(reason)
        if not value or len(value) > MAX_REASON_LENGTH:
            raise ValidationError(f"Reason is required and must be between 1-{MAX_REASON_LENGTH} characters")
        return value

    def create(self, user: User, *, holiday_date: Any, reason: Any, department: Any = None) -> Holiday:
        day = coerce_date(holiday_date, "Date")
        reason_v = self._clean_reason(reason)
        department_v = user.scoped_department(department)

        if self._holidays.find_live(day, department_v):
            raise DuplicateResourceError(
                "Holiday already exists for this date in this department", code="DUPLICATE_HOLIDAY"
            )
        holiday_id = self._holidays.create(
            holiday_date=day, department=department_v, reason=reason_v, created_by=user.user_id
        )
        logger.info("Holiday %s created for %s on %s by %s", holiday_id, department_v, day, user.user_id)
        created = self._holidays.get_by_id(holiday_id)
        if created is None:
            raise NotFoundError("Holiday not found")
        return created

    def list(
        self,
        user: User,
        *,
        start: Any = None,
        end: Any = None,
        year: Any = None,
        department: Any = None,
    ) -> list[Holiday]:
        department_v = user.scoped_department(department)
        start_v = optional_date(start, "startDate")
        end_v = optional_date(end, "endDate")
        if start_v and end_v:
            if start_v > end_v:
                raise ValidationError("startDate must not be after endDate")
        else:
            if clean_str(year):
                try:
                    year_v = int(clean_str(year))
                except ValueError:
                    raise ValidationError("year must be a number")
            else:
                year_v = self._clock().year
            start_v, end_v = date(year_v, 1, 1), date(year_v, 12, 31)
        return list(self._holidays.list_live(department_v, start=start_v, end=end_v))

    def update(self, user: User, holiday_id: int, *, holiday_date: Any, reason: Any) -> Holiday:
        holiday = self._require_in_scope(user, holiday_id)
        day = coerce_date(holiday_date, "Date")
        reason_v = self._clean_reason(reason)

        clash = self._holidays.find_live(day, holiday.department)
        if clash and clash.holiday_id != holiday_id:
            raise DuplicateResourceError("Holiday already exists on this date", code="DUPLICATE_HOLIDAY")

        self._holidays.update(holiday_id, holiday_date=day, reason=reason_v, updated_by=user.user_id)
        logger.info("Holiday %s moved %s -> %s by %s", holiday_id, holiday.holiday_date, day, user.user_id)
        return self._require_in_scope(user, holiday_id)

    def delete(self, user: User, holiday_id: int) -> None:
        self._require_in_scope(user, holiday_id)
        if not self._holidays.soft_delete(holiday_id, deleted_by=user.user_id):
            raise NotFoundError("Holiday not found")
        logger.info("Holiday %s deleted by %s", holiday_id, user.user_id)

    def check(self, user: User, day: Any, *, department: Any = None) -> dict:
        day_v = coerce_date(day, "Date")
        department_v = user.scoped_department(department)
        holiday = self._calendar.holiday_on(day_v, department_v)
        return {
            "date": day_v.isoformat(),
            "department": department_v,
            "isHoliday": self._calendar.is_holiday(day_v, department_v),
            "isSunday": is_sunday(day_v),
            "holiday": holiday.to_dict() if holiday else None,
        }
