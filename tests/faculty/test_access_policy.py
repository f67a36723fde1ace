from __future__ import annotations

import pytest

from src.class_attendance.class_attendance.core.enums import Role
from src.class_attendance.class_attendance.core.exceptions import AuthorizationError


def test_admin_and_principal_reach_every_class(world, class_2a):
    access = world.container.access
    principal = world.add_user("Principal", "principal@school.local", Role.PRINCIPAL, None)

    assert access.can_access(world.admin, class_2a.with_department("ECE"))
    assert access.can_access(principal, class_2a)


def test_hod_is_limited_to_own_department(world, class_2a):
    access = world.container.access

    assert access.can_access(world.hod, class_2a)
    assert not access.can_access(world.hod, class_2a.with_department("IT"))


def test_faculty_needs_a_binding(world, class_2a):
    access = world.container.access

    assert access.can_access(world.faculty_user, class_2a)
    assert not access.can_access(world.other_faculty_user, class_2a)
    with pytest.raises(AuthorizationError):
        access.require(world.other_faculty_user, class_2a)


def test_students_never_reach_a_roster(world, roster, class_2a):
    student_user = world.users.get_by_id(roster["R1"].user_id)

    assert not world.container.access.can_access(student_user, class_2a)
