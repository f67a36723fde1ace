from __future__ import annotations

import logging

import pytest

from src.class_attendance.class_attendance.common.academic import ClassContext
from src.class_attendance.class_attendance.core.enums import AuditOperation, BindingOrigin, ResolutionSource, Role
from src.class_attendance.class_attendance.core.exceptions import NoFacultyFoundError
from src.class_attendance.class_attendance.faculty.model import ClassBinding, Faculty

FIRST_YEAR = {"batch": "2025-2029", "year": "1st Year", "semester": 1, "section": "A", "department": "CSE"}


def _add_faculty(world, faculty_id, *, bindings=(), advisor=False, department="CSE"):
    user = world.add_user(f"Faculty {faculty_id}", f"fac{faculty_id}@school.local", role=Role.FACULTY, department=department)
    return world.faculty.add(
        Faculty(
            faculty_id=faculty_id,
            user_id=user.user_id,
            name=user.name,
            email=user.email,
            department=department,
            is_class_advisor=advisor,
            bindings=tuple(bindings),
        )
    )


def test_session_faculty_with_binding_wins(world, class_2a):
    resolution = world.container.resolver.resolve(user=world.faculty_user, **class_2a.to_dict())

    assert resolution.faculty_id == world.faculty_id
    assert resolution.source == ResolutionSource.USER_SESSION


def test_session_advisor_without_matching_binding_is_legacy_session(world):
    resolution = world.container.resolver.resolve(user=world.faculty_user, **FIRST_YEAR)

    assert resolution.faculty_id == world.faculty_id
    assert resolution.source == ResolutionSource.USER_SESSION_LEGACY


def test_class_id_lookup_when_session_does_not_match(world):
    resolution = world.container.resolver.resolve(
        user=world.other_faculty_user, class_id="2023-2027_2nd Year_3_A", department="CSE"
    )

    assert resolution.faculty_id == world.faculty_id
    assert resolution.source == ResolutionSource.CLASS_MAPPING


@pytest.mark.parametrize("class_id", ["2A", "2023-2027_2nd Year_3_Z", "not_a_class"])
def test_unparseable_class_id_falls_through_to_batch_lookup(world, class_2a, class_id):
    resolution = world.container.resolver.resolve(user=world.hod, class_id=class_id, **class_2a.to_dict())

    assert resolution.faculty_id == world.faculty_id
    assert resolution.source == ResolutionSource.BATCH_LOOKUP


def test_unparseable_class_id_alone_reaches_department_fallback(world):
    resolution = world.container.resolver.resolve(user=world.hod, class_id="2A", department="CSE")

    assert resolution.source == ResolutionSource.DEPARTMENT_FALLBACK


def test_batch_lookup_for_non_faculty_callers(world, class_2a):
    resolution = world.container.resolver.resolve(user=world.hod, **class_2a.to_dict())

    assert resolution.faculty_id == world.faculty_id
    assert resolution.source == ResolutionSource.BATCH_LOOKUP


def test_batch_lookup_ignores_missing_section(world, class_2a):
    resolution = world.container.resolver.resolve(
        user=world.admin, batch=class_2a.batch, year="2", semester="3", department="cse"
    )

    assert resolution.source == ResolutionSource.BATCH_LOOKUP


def test_migrated_binding_is_tagged_legacy(world):
    legacy = ClassBinding("2025-2029", "1st Year", 1, "A", origin=BindingOrigin.LEGACY)
    _add_faculty(world, 3, bindings=[legacy])

    resolution = world.container.resolver.resolve(user=world.admin, **FIRST_YEAR)

    assert resolution.faculty_id == 3
    assert resolution.source == ResolutionSource.BATCH_LOOKUP_LEGACY


def test_assigned_binding_beats_legacy_binding_for_the_same_class(world):
    _add_faculty(world, 3, bindings=[ClassBinding("2025-2029", "1st Year", 1, "A", origin=BindingOrigin.LEGACY)])
    _add_faculty(world, 4, bindings=[ClassBinding("2025-2029", "1st Year", 1, "A")])

    resolution = world.container.resolver.resolve(user=world.admin, **FIRST_YEAR)

    assert resolution.faculty_id == 4
    assert resolution.source == ResolutionSource.BATCH_LOOKUP


def test_department_fallback_is_logged_as_warning(world, caplog):
    caplog.set_level(logging.WARNING)

    resolution = world.container.resolver.resolve(user=world.hod, **FIRST_YEAR)

    assert resolution.faculty_id == world.faculty_id
    assert resolution.source == ResolutionSource.DEPARTMENT_FALLBACK
    assert any(r.levelno == logging.WARNING and "department fallback" in r.getMessage() for r in caplog.records)


def test_no_candidate_raises(world):
    with pytest.raises(NoFacultyFoundError) as exc:
        world.container.resolver.resolve(user=world.admin, **{**FIRST_YEAR, "department": "IT"})

    assert exc.value.code == "NO_FACULTY_FOUND"


def test_every_resolution_is_audited_with_its_source(world, class_2a):
    world.container.resolver.resolve(user=world.faculty_user, **class_2a.to_dict())
    world.container.resolver.resolve(user=world.hod, **FIRST_YEAR)

    sources = [(e.operation, e.source) for e in world.audit.entries]
    assert sources == [
        (AuditOperation.FACULTY_RESOLUTION, ResolutionSource.USER_SESSION),
        (AuditOperation.FACULTY_RESOLUTION, ResolutionSource.DEPARTMENT_FALLBACK),
    ]
    assert world.audit.entries[0].class_id == "2023-2027_2nd Year_3_A"


def test_audit_store_failure_does_not_block_resolution(world, class_2a):
    world.audit.fail = True

    resolution = world.container.resolver.resolve(user=world.faculty_user, **class_2a.to_dict())

    assert resolution.faculty_id == world.faculty_id
    assert world.audit.entries == []


def test_validate_binding_for_bound_and_unbound_faculty(world, class_2a):
    resolver = world.container.resolver

    assert resolver.validate_binding(world.faculty_id, class_2a) is True
    assert resolver.validate_binding(world.other_faculty_id, class_2a) is False
    assert resolver.validate_binding(world.faculty_id, class_2a.with_department("ECE")) is False
    assert resolver.validate_binding(world.faculty_id, {**class_2a.to_dict(), "section": "B"}) is False


def test_validate_binding_skips_missing_section_only_for_assigned_bindings(world):
    resolver = world.container.resolver
    _add_faculty(world, 3, bindings=[ClassBinding("2025-2029", "1st Year", 1, "B", origin=BindingOrigin.LEGACY)])

    assert resolver.validate_binding(world.faculty_id, {"batch": "2023-2027", "year": "2", "semester": "3"}) is True
    assert resolver.validate_binding(world.faculty_id, {"batch": "2023-2027", "semester": "3"}) is False
    assert resolver.validate_binding(3, {"batch": "2025-2029"}) is True


def test_validate_binding_never_raises(world, class_2a):
    resolver = world.container.resolver

    assert resolver.validate_binding(None, class_2a) is False
    assert resolver.validate_binding("not-a-number", class_2a) is False
    assert resolver.validate_binding(world.faculty_id, {**class_2a.to_dict(), "semester": "abc"}) is False
    assert resolver.validate_binding(999, class_2a) is False


def test_reassignment_moves_the_binding(world, class_2a):
    world.container.faculty_service.assign_class(
        world.hod,
        world.other_faculty_id,
        data={"batch": "2023-2027", "year": "2nd Year", "semester": 3, "section": "A", "attendanceStartDate": "2025-01-01"},
    )
    resolver = world.container.resolver

    assert resolver.validate_binding(world.faculty_id, class_2a) is False
    assert resolver.validate_binding(world.other_faculty_id, class_2a) is True
    assert world.assignments.get_active_for_class(class_2a).faculty_id == world.other_faculty_id


def test_inactive_binding_never_matches():
    binding = ClassBinding("2023-2027", "2nd Year", 3, "A", active=False)
    ctx = ClassContext(batch="2023-2027", year="2nd Year", semester=3, section="A")

    assert binding.matches_context(ctx) is False
