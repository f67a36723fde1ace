from __future__ import annotations

import pytest

from src.class_attendance.class_attendance.common.academic import (
    ClassContext,
    derive_class_identity,
    normalize_semester,
    normalize_year,
    parse_class_id,
)
from src.class_attendance.class_attendance.core.enums import Role
from src.class_attendance.class_attendance.core.exceptions import AuthorizationError, ValidationError
from src.class_attendance.class_attendance.users.model import User


@pytest.mark.parametrize("raw", ["2", 2, "2nd", "2nd year", "2ND YEAR"])
def test_year_variants_normalize_to_canonical_label(raw):
    assert normalize_year(raw) == "2nd Year"


@pytest.mark.parametrize("raw", ["5", "second", "", None])
def test_unknown_years_are_rejected(raw):
    with pytest.raises(ValidationError):
        normalize_year(raw)


def test_semester_accepts_labels_and_rejects_out_of_range():
    assert normalize_semester("Sem 3") == 3
    assert normalize_semester(8) == 8
    with pytest.raises(ValidationError):
        normalize_semester(9)
    with pytest.raises(ValidationError):
        normalize_semester(True)


def test_parse_collects_every_field_error():
    with pytest.raises(ValidationError) as exc:
        ClassContext.parse(batch="23-27", year="9th", semester="x", section="Z", department="Physics")

    assert exc.value.message == "Invalid class parameters"
    assert len(exc.value.details) == 5


def test_section_defaults_to_a_and_department_is_canonicalised():
    ctx = ClassContext.parse(batch="2023-2027", year="2", semester="3", department="cse")

    assert ctx.section == "A"
    assert ctx.department == "CSE"


def test_class_identity_is_derived_from_canonical_values():
    ctx = ClassContext.parse(batch="2023-2027", year="2nd", semester=3, section="b")
    identity = derive_class_identity(ctx)

    assert identity.class_id == "2023-2027_2nd Year_3_B"
    assert identity.class_assigned == "2B"


def test_class_id_parses_back_to_the_same_context():
    ctx = ClassContext(batch="2024-2028", year="1st Year", semester=1, section="C")

    assert parse_class_id(derive_class_identity(ctx).class_id) == ctx


def test_malformed_class_id_is_rejected():
    with pytest.raises(ValidationError):
        parse_class_id("2023-2027_2nd Year")


def _user(role, department=None):
    return User(user_id=7, name="U", email="u@school.local", password_hash="", role=role, department=department)


def test_admin_must_name_a_department():
    admin = _user(Role.ADMIN)

    assert admin.scoped_department("it") == "IT"
    with pytest.raises(ValidationError):
        admin.scoped_department(None)


def test_department_bound_roles_are_pinned_to_their_own_department():
    hod = _user(Role.HOD, "CSE")

    assert hod.scoped_department(None) == "CSE"
    assert hod.scoped_department("cse") == "CSE"
    with pytest.raises(AuthorizationError):
        hod.scoped_department("ECE")


def test_account_without_department_cannot_be_scoped():
    with pytest.raises(ValidationError):
        _user(Role.FACULTY).scoped_department("CSE")
