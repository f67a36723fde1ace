from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Mapping, Optional

from ..class_assignments.repository import ClassAssignmentRepository
from ..class_assignments.window import check_window
from ..common.academic import ClassContext, derive_class_identity
from ..common.datetime_utils import coerce_date, is_sunday, optional_date, today
from ..common.validators import clean_str
from ..core.constants import NOT_MARKED
from ..core.enums import AttendanceStatus, AuditOperation, Role
from ..core.exceptions import (
    AuthorizationError,
    HolidayError,
    NoFacultyFoundError,
    NotFoundError,
    ValidationError,
)
from ..faculty.access import ClassAccessPolicy
from ..faculty.audit import AuditTrail
from ..holidays.service import HolidayCalendar
from ..students.model import Student
from ..students.repository import StudentRepository
from ..users.model import User
from .model import AttendanceRecord, MarkResult
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _roll_list(payload: Mapping[str, Any], key: str) -> list[str]:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{key} must be an array")
    rolls: list[str] = []
    for item in value:
        roll = clean_str(item)
        if roll and roll not in rolls:
            rolls.append(roll)
    return rolls


def parse_status(value: Any) -> AttendanceStatus:
    text = clean_str(value)
    for status in AttendanceStatus:
        if text.lower() == status.value.lower():
            return status
    raise ValidationError("Status must be one of Present, Absent, OD")


def summarize(statuses) -> dict:
    """Counts per status; OD counts as attended in the percentage."""

    counts = {s: 0 for s in AttendanceStatus}
    for status in statuses:
        counts[status] += 1
    total = sum(counts.values())
    attended = counts[AttendanceStatus.PRESENT] + counts[AttendanceStatus.OD]
    return {
        "present": counts[AttendanceStatus.PRESENT],
        "absent": counts[AttendanceStatus.ABSENT],
        "od": counts[AttendanceStatus.OD],
        "total": total,
        "percentage": round(attended * 100.0 / total, 2) if total else 0.0,
    }


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        students: StudentRepository,
        assignments: ClassAssignmentRepository,
        calendar: HolidayCalendar,
        access: ClassAccessPolicy,
        audit: AuditTrail,
        *,
        clock: Callable[[], date] = today,
    ):
        self._attendance = attendance
        self._students = students
        self._assignments = assignments
        self._calendar = calendar
        self._access = access
        self._audit = audit
        self._clock = clock

    def _ensure_working_day(self, day: date, department: Optional[str]) -> None:
        if is_sunday(day):
            raise HolidayError(f"Cannot mark attendance on {day.isoformat()}: it is a Sunday")
        holiday = self._calendar.holiday_on(day, department)
        if holiday:
            raise HolidayError(f"Cannot mark attendance on {day.isoformat()}: {holiday.reason}")

    def mark_students(self, user: User, payload: Mapping[str, Any]) -> MarkResult:
        """Mark a whole class for one day.

        Every roster student gets a record: Absent when listed in
        ``absentRollNumbers``, OD when listed in ``odRollNumbers``, Present
        otherwise. Nothing is written unless every check passes, and marking
        the same day again overwrites the earlier records.
        """

        ctx = ClassContext.parse(
            batch=payload.get("batch"),
            year=payload.get("year"),
            semester=payload.get("semester"),
            section=payload.get("section"),
            department=user.scoped_department(payload.get("department")),
        )
        day = coerce_date(payload.get("date"), "date") if clean_str(payload.get("date")) else self._clock()
        absent = _roll_list(payload, "absentRollNumbers")
        od = _roll_list(payload, "odRollNumbers")

        both = [r for r in absent if r in od]
        if both:
            raise ValidationError("Roll numbers cannot be both absent and on duty", details=both)

        self._ensure_working_day(day, ctx.department)

        self._access.require(user, ctx)
        assignment = self._assignments.get_active_for_class(ctx)
        if assignment is None:
            raise NoFacultyFoundError("No active class assignment for this class")
        check_window(assignment, day)

        roster = list(self._students.list_by_class(ctx))
        if not roster:
            raise NotFoundError("No students found for this class")
        by_roll = {s.roll_number: s for s in roster}
        unknown = [r for r in absent + od if r not in by_roll]
        if unknown:
            raise ValidationError("Invalid roll numbers for this class", details=unknown)

        class_id = derive_class_identity(ctx).class_id
        result = MarkResult(attendance_date=day, class_id=class_id)
        statuses: dict[int, AttendanceStatus] = {}
        for student in roster:
            if student.roll_number in absent:
                statuses[student.student_id] = AttendanceStatus.ABSENT
                result.absent.append(student.roll_number)
            elif student.roll_number in od:
                statuses[student.student_id] = AttendanceStatus.OD
                result.od.append(student.roll_number)
            else:
                statuses[student.student_id] = AttendanceStatus.PRESENT
                result.present.append(student.roll_number)

        self._attendance.upsert_many(attendance_date=day, ctx=ctx, statuses=statuses, marked_by=user.user_id)
        logger.info(
            "Attendance for %s on %s marked by %s: %d present, %d absent, %d od",
            class_id, day, user.user_id, len(result.present), len(result.absent), len(result.od),
        )
        self._audit.record(
            AuditOperation.ATTENDANCE_MARK,
            faculty_id=assignment.faculty_id,
            class_id=class_id,
            user_id=user.user_id,
            student_ids=list(statuses),
        )
        return result

    def _require_student(self, student_id: int) -> Student:
        student = self._students.get_by_id(student_id)
        if not student:
            raise NotFoundError("Student not found")
        return student

    def edit_student(
        self,
        user: User,
        student_id: int,
        *,
        attendance_date: Any,
        status: Any,
        reason: Any = None,
    ) -> AttendanceRecord:
        """Correct one student's record; the window and holiday rules do not apply here."""

        day = coerce_date(attendance_date, "date")
        status_v = parse_status(status)
        reason_v = clean_str(reason) or None
        if reason_v and len(reason_v) > 255:
            raise ValidationError("Reason cannot exceed 255 characters")

        student = self._require_student(student_id)
        if not student.is_active:
            raise ValidationError("Student is inactive")
        self._access.require(user, student.context)

        self._attendance.upsert_many(
            attendance_date=day,
            ctx=student.context,
            statuses={student.student_id: status_v},
            marked_by=user.user_id,
            reasons={student.student_id: reason_v} if reason_v else None,
        )
        logger.info("Attendance of student %s on %s set to %s by %s", student_id, day, status_v.value, user.user_id)
        self._audit.record(
            AuditOperation.ATTENDANCE_EDIT,
            faculty_id=student.faculty_id,
            class_id=student.class_id,
            user_id=user.user_id,
            student_ids=[student.student_id],
        )
        record = self._attendance.get_for_student_and_date(student.student_id, day)
        if record is None:
            raise NotFoundError("Attendance record not found")
        return record

    def submit_reason(self, user: User, student_id: int, *, attendance_date: Any, reason: Any) -> AttendanceRecord:
        """Attach an absence reason to an existing Absent record.

        Students may only touch their own records; staff go through the class access check.
        """

        day = coerce_date(attendance_date, "date")
        reason_v = clean_str(reason)
        if not reason_v:
            raise ValidationError("Reason is required")
        if len(reason_v) > 255:
            raise ValidationError("Reason cannot exceed 255 characters")

        student = self._require_student(student_id)
        if user.role == Role.STUDENT:
            if student.user_id != user.user_id:
                raise AuthorizationError(f"Student user {user.user_id} cannot submit a reason for student {student_id}")
        else:
            self._access.require(user, student.context)

        record = self._attendance.get_for_student_and_date(student.student_id, day)
        if record is None:
            raise NotFoundError("Attendance record not found")
        if record.status != AttendanceStatus.ABSENT:
            raise ValidationError("Can only submit reasons for absent attendance")

        self._attendance.update_reason(record.attendance_id, reason_v)
        logger.info("Absence reason for student %s on %s submitted by %s", student_id, day, user.user_id)
        return self._attendance.get_for_student_and_date(student.student_id, day)

    def history_by_class(self, user: User, ctx: ClassContext, attendance_date: Any = None) -> dict:
        self._access.require(user, ctx)
        day = coerce_date(attendance_date, "date") if clean_str(attendance_date) else self._clock()
        roster = self._students.list_by_class(ctx)
        marked = {r.student_id: r for r in self._attendance.list_for_class_date(ctx, day)}

        rows = []
        for student in roster:
            record = marked.get(student.student_id)
            rows.append(
                {
                    "studentId": student.student_id,
                    "rollNumber": student.roll_number,
                    "name": student.name,
                    "status": record.status.value if record else NOT_MARKED,
                    "reason": record.reason if record else None,
                }
            )
        return {
            "date": day.isoformat(),
            "classId": derive_class_identity(ctx).class_id,
            "isMarked": bool(marked),
            "students": rows,
            "summary": summarize(r.status for r in marked.values()),
        }

    def student_history(self, user: User, student_id: int, *, start: Any = None, end: Any = None) -> dict:
        student = self._require_student(student_id)
        if user.role == Role.STUDENT:
            if student.user_id != user.user_id:
                raise AuthorizationError(f"Student user {user.user_id} cannot view student {student_id}")
        else:
            self._access.require(user, student.context)

        start_v = optional_date(start, "startDate")
        end_v = optional_date(end, "endDate")
        if start_v and end_v and start_v > end_v:
            raise ValidationError("startDate must not be after endDate")

        records = list(self._attendance.list_for_student(student_id, start=start_v, end=end_v))
        return {
            "student": student.to_dict(),
            "records": [r.to_dict() for r in records],
            "summary": summarize(r.status for r in records),
        }
