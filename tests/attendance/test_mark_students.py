from __future__ import annotations

from datetime import date

import pytest

from src.class_attendance.class_attendance.attendance.service import parse_status, summarize
from src.class_attendance.class_attendance.core.enums import AttendanceStatus, AuditOperation
from src.class_attendance.class_attendance.core.exceptions import (
    AuthorizationError,
    BeforeWindowError,
    HolidayError,
    NoFacultyFoundError,
    NotFoundError,
    ValidationError,
)

CLASS_FIELDS = {"batch": "2023-2027", "year": "2nd Year", "semester": 3, "section": "A"}


def _payload(day="2025-01-15", absent=("R2",), od=("R4",), **extra):
    return {**CLASS_FIELDS, "date": day, "absentRollNumbers": list(absent), "odRollNumbers": list(od), **extra}


def _statuses(world, roster, day):
    out = {}
    for roll, student in roster.items():
        record = world.attendance.get_for_student_and_date(student.student_id, day)
        out[roll] = record.status if record else None
    return out


def test_everyone_not_listed_is_present(world, roster):
    result = world.container.attendance_service.mark_students(world.faculty_user, _payload())

    assert _statuses(world, roster, date(2025, 1, 15)) == {
        "R1": AttendanceStatus.PRESENT,
        "R2": AttendanceStatus.ABSENT,
        "R3": AttendanceStatus.PRESENT,
        "R4": AttendanceStatus.OD,
    }
    assert result.to_dict()["marked"] == {"present": ["R1", "R3"], "absent": ["R2"], "od": ["R4"]}
    assert result.total == 4
    assert result.class_id == "2023-2027_2nd Year_3_A"


def test_marking_the_same_day_again_overwrites(world, roster):
    service = world.container.attendance_service
    service.mark_students(world.faculty_user, _payload())
    service.mark_students(world.faculty_user, _payload(absent=["R3"], od=[]))

    day = date(2025, 1, 15)
    assert _statuses(world, roster, day) == {
        "R1": AttendanceStatus.PRESENT,
        "R2": AttendanceStatus.PRESENT,
        "R3": AttendanceStatus.ABSENT,
        "R4": AttendanceStatus.PRESENT,
    }
    assert len([k for k in world.attendance.by_key if k[1] == day]) == 4


def test_roll_in_both_lists_writes_nothing(world, roster):
    with pytest.raises(ValidationError) as exc:
        world.container.attendance_service.mark_students(world.faculty_user, _payload(absent=["R2"], od=["R2", "R4"]))

    assert exc.value.details == ["R2"]
    assert world.attendance.writes == 0


def test_unknown_roll_number_writes_nothing(world, roster):
    with pytest.raises(ValidationError) as exc:
        world.container.attendance_service.mark_students(world.faculty_user, _payload(absent=["R2", "R9"]))

    assert exc.value.details == ["R9"]
    assert world.attendance.writes == 0


def test_sunday_is_rejected_before_the_window_is_checked(world, roster):
    # 2024-12-29 is a Sunday before the window opens on 2025-01-01.
    with pytest.raises(HolidayError) as exc:
        world.container.attendance_service.mark_students(world.faculty_user, _payload(day="2024-12-29"))

    assert exc.value.code == "HOLIDAY"


def test_declared_holiday_is_rejected_before_the_window_is_checked(world, roster):
    world.container.holiday_service.create(world.hod, holiday_date="2024-12-31", reason="Year end")

    with pytest.raises(HolidayError) as exc:
        world.container.attendance_service.mark_students(world.faculty_user, _payload(day="2024-12-31"))

    assert "Year end" in exc.value.message


def test_day_outside_window_is_rejected(world, roster):
    with pytest.raises(BeforeWindowError):
        world.container.attendance_service.mark_students(world.faculty_user, _payload(day="2024-12-31"))

    assert world.attendance.writes == 0


def test_unbound_faculty_cannot_mark(world, roster):
    with pytest.raises(AuthorizationError):
        world.container.attendance_service.mark_students(world.other_faculty_user, _payload())


def test_class_without_active_assignment_cannot_be_marked(world, roster):
    world.container.class_assignment_service.deactivate(world.hod, world.assignment_id)

    with pytest.raises(NoFacultyFoundError):
        world.container.attendance_service.mark_students(world.hod, _payload())


def test_empty_roster_is_not_found(world):
    with pytest.raises(NotFoundError):
        world.container.attendance_service.mark_students(world.faculty_user, _payload(absent=[], od=[]))


def test_admin_must_send_department(world, roster):
    service = world.container.attendance_service

    with pytest.raises(ValidationError):
        service.mark_students(world.admin, _payload())

    result = service.mark_students(world.admin, _payload(department="cse"))
    assert result.total == 4


def test_marking_is_audited_against_the_class_owner(world, roster):
    world.container.attendance_service.mark_students(world.hod, _payload())

    entry = world.audit.entries[-1]
    assert entry.operation == AuditOperation.ATTENDANCE_MARK
    assert entry.faculty_id == world.faculty_id
    assert entry.user_id == world.hod.user_id
    assert entry.student_count == 4


def test_edit_ignores_window_and_holidays(world, roster):
    record = world.container.attendance_service.edit_student(
        world.faculty_user,
        roster["R2"].student_id,
        attendance_date="2024-12-29",
        status="od",
        reason="Sports meet",
    )

    assert record.status == AttendanceStatus.OD
    assert record.reason == "Sports meet"
    assert world.audit.entries[-1].operation == AuditOperation.ATTENDANCE_EDIT


def test_edit_overwrites_a_marked_day(world, roster):
    service = world.container.attendance_service
    service.mark_students(world.faculty_user, _payload())

    service.edit_student(world.faculty_user, roster["R2"].student_id, attendance_date="2025-01-15", status="Present")

    assert _statuses(world, roster, date(2025, 1, 15))["R2"] == AttendanceStatus.PRESENT


def test_edit_rejects_unknown_status_and_long_reason(world, roster):
    service = world.container.attendance_service
    student_id = roster["R1"].student_id

    with pytest.raises(ValidationError):
        service.edit_student(world.faculty_user, student_id, attendance_date="2025-01-15", status="Late")
    with pytest.raises(ValidationError):
        service.edit_student(
            world.faculty_user, student_id, attendance_date="2025-01-15", status="Absent", reason="x" * 256
        )
    with pytest.raises(NotFoundError):
        service.edit_student(world.faculty_user, 999, attendance_date="2025-01-15", status="Absent")


def test_history_by_class_shows_unmarked_students(world, roster, class_2a):
    service = world.container.attendance_service

    before = service.history_by_class(world.faculty_user, class_2a, "2025-01-15")
    assert before["isMarked"] is False
    assert {s["status"] for s in before["students"]} == {"Not Marked"}

    service.mark_students(world.faculty_user, _payload())
    after = service.history_by_class(world.faculty_user, class_2a, "2025-01-15")

    assert after["isMarked"] is True
    assert [s["status"] for s in after["students"]] == ["Present", "Absent", "Present", "OD"]
    assert after["summary"]["percentage"] == 75.0


def test_student_sees_only_own_history(world, roster):
    service = world.container.attendance_service
    service.mark_students(world.faculty_user, _payload())
    service.mark_students(world.faculty_user, _payload(day="2025-01-16", absent=["R4"], od=[]))

    r4_user = world.users.get_by_id(roster["R4"].user_id)
    history = service.student_history(r4_user, roster["R4"].student_id)

    assert [r["status"] for r in history["records"]] == ["Absent", "OD"]
    assert history["summary"]["percentage"] == 50.0

    with pytest.raises(AuthorizationError):
        service.student_history(r4_user, roster["R1"].student_id)


def test_student_history_respects_the_date_range(world, roster):
    service = world.container.attendance_service
    service.mark_students(world.faculty_user, _payload())
    service.mark_students(world.faculty_user, _payload(day="2025-01-16"))

    history = service.student_history(
        world.hod, roster["R1"].student_id, start="2025-01-16", end="2025-01-16"
    )

    assert [r["date"] for r in history["records"]] == ["2025-01-16"]
    with pytest.raises(ValidationError):
        service.student_history(world.hod, roster["R1"].student_id, start="2025-01-17", end="2025-01-16")


def test_student_submits_reason_for_own_absence(world, roster):
    service = world.container.attendance_service
    service.mark_students(world.faculty_user, _payload())
    r2_user = world.users.get_by_id(roster["R2"].user_id)

    record = service.submit_reason(r2_user, roster["R2"].student_id, attendance_date="2025-01-15", reason="  Fever ")

    assert record.reason == "Fever"
    assert record.status == AttendanceStatus.ABSENT


def test_reason_only_for_own_record(world, roster):
    service = world.container.attendance_service
    service.mark_students(world.faculty_user, _payload())
    r1_user = world.users.get_by_id(roster["R1"].user_id)

    with pytest.raises(AuthorizationError):
        service.submit_reason(r1_user, roster["R2"].student_id, attendance_date="2025-01-15", reason="Fever")


def test_reason_only_for_absent_records(world, roster):
    service = world.container.attendance_service
    service.mark_students(world.faculty_user, _payload())
    r4_user = world.users.get_by_id(roster["R4"].user_id)

    with pytest.raises(ValidationError) as exc:
        service.submit_reason(r4_user, roster["R4"].student_id, attendance_date="2025-01-15", reason="Seminar")
    assert exc.value.message == "Can only submit reasons for absent attendance"


def test_reason_for_unmarked_day_is_not_found(world, roster):
    r2_user = world.users.get_by_id(roster["R2"].user_id)

    with pytest.raises(NotFoundError):
        world.container.attendance_service.submit_reason(
            r2_user, roster["R2"].student_id, attendance_date="2025-01-15", reason="Fever"
        )


def test_summarize_counts_od_as_attended():
    summary = summarize(
        [AttendanceStatus.PRESENT, AttendanceStatus.OD, AttendanceStatus.ABSENT, AttendanceStatus.PRESENT]
    )

    assert summary == {"present": 2, "absent": 1, "od": 1, "total": 4, "percentage": 75.0}
    assert summarize([])["percentage"] == 0.0


def test_parse_status_is_case_insensitive():
    assert parse_status(" absent ") == AttendanceStatus.ABSENT
    assert parse_status("OD") == AttendanceStatus.OD
