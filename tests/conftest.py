from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.class_attendance.class_attendance.attendance.model import AttendanceRecord, AttendanceReportRow
from src.class_attendance.class_attendance.class_assignments.model import ClassAssignment
from src.class_attendance.class_attendance.common.academic import ClassContext, derive_class_identity
from src.class_attendance.class_attendance.container import Container, wire
from src.class_attendance.class_attendance.core.enums import AccountStatus, Role
from src.class_attendance.class_attendance.core.exceptions import DuplicateResourceError
from src.class_attendance.class_attendance.faculty.model import ClassBinding, Faculty
from src.class_attendance.class_attendance.holidays.model import Holiday
from src.class_attendance.class_attendance.students.model import Student, StudentDraft
from src.class_attendance.class_attendance.users.model import User
from src.class_attendance.class_attendance.users.service import TokenService

PASSWORD = "secret123"
_PASSWORD_HASH = generate_password_hash(PASSWORD)


class InMemoryUsers:
    def __init__(self):
        self.by_id: dict[int, User] = {}
        self._next_id = 1
        self.logins: list[int] = []

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.by_id.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        email = (email or "").strip().lower()
        return next((u for u in self.by_id.values() if u.email == email), None)

    def create_user(self, *, name, email, password_hash, role, department, mobile, created_by) -> int:
        if self.get_by_email(email):
            raise DuplicateResourceError("A user with this email already exists", code="DUPLICATE_EMAIL")
        user_id = self._next_id
        self._next_id += 1
        self.by_id[user_id] = User(
            user_id=user_id,
            name=name,
            email=email.lower(),
            password_hash=password_hash,
            role=role,
            department=department,
            mobile=mobile,
        )
        return user_id

    def update_user(self, user_id: int, *, fields: dict) -> bool:
        if user_id not in self.by_id:
            return False
        self.by_id[user_id] = replace(self.by_id[user_id], **fields)
        return True

    def set_status(self, user_id: int, *, status: AccountStatus) -> bool:
        return self.update_user(user_id, fields={"status": status})

    def set_password_hash(self, user_id: int, *, password_hash: str) -> bool:
        return self.update_user(user_id, fields={"password_hash": password_hash})

    def touch_last_login(self, user_id: int, *, when: datetime) -> None:
        self.logins.append(user_id)
        self.update_user(user_id, fields={"last_login": when})

    def list_users(self, *, role=None, department=None, status=None):
        return [
            u
            for u in self.by_id.values()
            if (role is None or u.role == role)
            and (department is None or u.department == department)
            and (status is None or u.status == status)
        ]

    def count_by_role(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for u in self.by_id.values():
            counts[u.role.value] = counts.get(u.role.value, 0) + 1
        return counts


class InMemoryFaculty:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.by_id: dict[int, Faculty] = {}
        self._next_id = 1

    def add(self, faculty: Faculty) -> Faculty:
        self.by_id[faculty.faculty_id] = faculty
        self._next_id = max(self._next_id, faculty.faculty_id + 1)
        return faculty

    def get_by_id(self, faculty_id: int) -> Optional[Faculty]:
        return self.by_id.get(faculty_id)

    def get_by_user_id(self, user_id: int) -> Optional[Faculty]:
        return next((f for f in self.by_id.values() if f.user_id == user_id), None)

    def find_bound(self, *, batch, year, semester, section, department):
        pairs = []
        for f in sorted(self.by_id.values(), key=lambda f: f.faculty_id):
            if not f.is_active or (department and f.department != department):
                continue
            for b in f.bindings:
                if b.active and (b.batch, b.year, b.semester) == (batch, year, semester) and (
                    not section or b.section == section
                ):
                    pairs.append((f, b))
        return pairs

    def find_department_advisor(self, department: str) -> Optional[Faculty]:
        hits = [
            f for f in self.by_id.values() if f.department == department and f.is_class_advisor and f.is_active
        ]
        return min(hits, key=lambda f: f.faculty_id) if hits else None

    def list_by_department(self, department, *, include_inactive=False):
        return [
            f
            for f in self.by_id.values()
            if (not department or f.department == department) and (include_inactive or f.is_active)
        ]

    def create_faculty(self, *, name, email, password_hash, mobile, department, position, is_class_advisor, created_by):
        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=password_hash,
            role=Role.FACULTY,
            department=department,
            mobile=mobile,
            created_by=created_by,
        )
        faculty_id = self._next_id
        self.add(
            Faculty(
                faculty_id=faculty_id,
                user_id=user_id,
                name=name,
                email=email,
                department=department,
                position=position,
                is_class_advisor=is_class_advisor,
            )
        )
        return faculty_id

    def update_faculty(self, faculty_id: int, *, fields: dict) -> bool:
        faculty = self.by_id.get(faculty_id)
        if not faculty:
            return False
        known = {k: v for k, v in fields.items() if k in ("name", "department", "position", "is_class_advisor")}
        if "is_class_advisor" in known:
            known["is_class_advisor"] = bool(known["is_class_advisor"])
        self.by_id[faculty_id] = replace(faculty, **known)
        return True

    def set_status(self, faculty_id: int, *, status: AccountStatus) -> bool:
        faculty = self.by_id.get(faculty_id)
        if not faculty:
            return False
        bindings = faculty.bindings
        if status == AccountStatus.INACTIVE:
            bindings = tuple(replace(b, active=False) for b in bindings)
        self.by_id[faculty_id] = replace(faculty, status=status, bindings=bindings)
        self._users.set_status(faculty.user_id, status=status)
        return True

    def set_binding(self, faculty_id: int, binding: ClassBinding) -> None:
        faculty = self.by_id[faculty_id]
        key = (binding.batch, binding.year, binding.semester, binding.section)
        others = tuple(b for b in faculty.bindings if (b.batch, b.year, b.semester, b.section) != key)
        self.by_id[faculty_id] = replace(faculty, bindings=others + (binding,))


class InMemoryAudit:
    def __init__(self):
        self.entries = []
        self.fail = False

    def append(self, entry) -> None:
        if self.fail:
            raise RuntimeError("audit store unavailable")
        self.entries.append(entry)

    def list_recent(self, *, faculty_id=None, class_id=None, limit=50):
        items = [
            e
            for e in self.entries
            if (faculty_id is None or e.faculty_id == faculty_id) and (class_id is None or e.class_id == class_id)
        ]
        return list(reversed(items))[:limit]


class InMemoryAssignments:
    def __init__(self, faculty: InMemoryFaculty):
        self._faculty = faculty
        self.by_id: dict[int, ClassAssignment] = {}
        self._next_id = 1

    def get_by_id(self, assignment_id: int) -> Optional[ClassAssignment]:
        return self.by_id.get(assignment_id)

    def get_active_for_class(self, ctx: ClassContext) -> Optional[ClassAssignment]:
        return next(
            (
                a
                for a in self.by_id.values()
                if a.active
                and (a.batch, a.year, a.semester, a.section, a.department)
                == (ctx.batch, ctx.year, ctx.semester, ctx.section, ctx.department)
            ),
            None,
        )

    def list_for_faculty(self, faculty_id: int, *, active_only: bool = True):
        return [a for a in self.by_id.values() if a.faculty_id == faculty_id and (a.active or not active_only)]

    def list_for_department(self, department, *, active_only: bool = True):
        return [
            a
            for a in self.by_id.values()
            if (not department or a.department == department) and (a.active or not active_only)
        ]

    def _unbind(self, assignment: ClassAssignment) -> None:
        self._faculty.set_binding(
            assignment.faculty_id,
            ClassBinding(assignment.batch, assignment.year, assignment.semester, assignment.section, active=False),
        )

    def assign(self, *, faculty_id, ctx, attendance_start_date, attendance_end_date, notes, assigned_by) -> int:
        previous = self.get_active_for_class(ctx)
        if previous:
            self.by_id[previous.assignment_id] = replace(previous, active=False)
            self._unbind(previous)
        assignment_id = self._next_id
        self._next_id += 1
        self.by_id[assignment_id] = ClassAssignment(
            assignment_id=assignment_id,
            faculty_id=faculty_id,
            batch=ctx.batch,
            year=ctx.year,
            semester=ctx.semester,
            section=ctx.section,
            department=ctx.department,
            attendance_start_date=attendance_start_date,
            attendance_end_date=attendance_end_date,
            notes=notes,
            assigned_by=assigned_by,
        )
        self._faculty.set_binding(faculty_id, ClassBinding(ctx.batch, ctx.year, ctx.semester, ctx.section))
        self._faculty.update_faculty(faculty_id, fields={"is_class_advisor": True})
        return assignment_id

    def update(self, assignment_id: int, *, fields: dict) -> bool:
        if assignment_id not in self.by_id:
            return False
        self.by_id[assignment_id] = replace(self.by_id[assignment_id], **fields)
        return True

    def deactivate(self, assignment_id: int, *, deactivated_by: int) -> bool:
        assignment = self.by_id.get(assignment_id)
        if not assignment or not assignment.active:
            return False
        self.by_id[assignment_id] = replace(assignment, active=False)
        self._unbind(assignment)
        return True


class InMemoryStudents:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.by_id: dict[int, Student] = {}
        self._next_id = 1
        self.created: list[int] = []

    def get_by_id(self, student_id: int) -> Optional[Student]:
        return self.by_id.get(student_id)

    def roll_number_taken(self, roll_number: str, *, batch: str, department: str) -> bool:
        return any(
            s.is_active and (s.roll_number, s.batch, s.department) == (roll_number, batch, department)
            for s in self.by_id.values()
        )

    def mobile_taken(self, mobile: str) -> bool:
        return any(s.is_active and s.mobile == mobile for s in self.by_id.values())

    def create_student_account(self, draft, *, password_hash, ctx, identity, faculty_id, created_by) -> int:
        if self.roll_number_taken(draft.roll_number, batch=ctx.batch, department=ctx.department):
            raise DuplicateResourceError("duplicate roll number", code="DUPLICATE_ROLL_NUMBER")
        user_id = self._users.create_user(
            name=draft.name,
            email=draft.email,
            password_hash=password_hash,
            role=Role.STUDENT,
            department=ctx.department,
            mobile=draft.mobile,
            created_by=created_by,
        )
        student_id = self._next_id
        self._next_id += 1
        self.by_id[student_id] = Student(
            student_id=student_id,
            user_id=user_id,
            roll_number=draft.roll_number,
            name=draft.name,
            email=draft.email,
            batch=ctx.batch,
            year=ctx.year,
            semester=ctx.semester,
            section=ctx.section,
            class_id=identity.class_id,
            class_assigned=identity.class_assigned,
            faculty_id=faculty_id,
            department=ctx.department,
            mobile=draft.mobile,
            parent_contact=draft.parent_contact,
        )
        self.created.append(student_id)
        return student_id

    def list_by_class(self, ctx: ClassContext, *, include_inactive: bool = False):
        items = [
            s
            for s in self.by_id.values()
            if (s.batch, s.year, s.semester, s.section) == (ctx.batch, ctx.year, ctx.semester, ctx.section)
            and (not ctx.department or s.department == ctx.department)
            and (include_inactive or s.is_active)
        ]
        return sorted(items, key=lambda s: s.roll_number)

    def update_student(self, student_id: int, *, fields: dict) -> bool:
        if student_id not in self.by_id:
            return False
        self.by_id[student_id] = replace(self.by_id[student_id], **fields)
        return True

    def deactivate(self, student_id: int) -> bool:
        student = self.by_id.get(student_id)
        if not student or not student.is_active:
            return False
        self.by_id[student_id] = replace(student, status=AccountStatus.INACTIVE)
        self._users.set_status(student.user_id, status=AccountStatus.INACTIVE)
        return True


class InMemoryAttendance:
    def __init__(self, students: InMemoryStudents):
        self._students = students
        self.by_key: dict[tuple[int, date], AttendanceRecord] = {}
        self._next_id = 1
        self.writes = 0

    def upsert_many(self, *, attendance_date, ctx, statuses, marked_by, reasons=None) -> int:
        reasons = reasons or {}
        for student_id, status in statuses.items():
            key = (student_id, attendance_date)
            existing = self.by_key.get(key)
            attendance_id = existing.attendance_id if existing else self._next_id
            if not existing:
                self._next_id += 1
            self.by_key[key] = AttendanceRecord(
                attendance_id=attendance_id,
                student_id=student_id,
                attendance_date=attendance_date,
                status=status,
                batch=ctx.batch,
                year=ctx.year,
                semester=ctx.semester,
                section=ctx.section,
                marked_by=marked_by,
                reason=reasons.get(student_id),
            )
            self.writes += 1
        return len(statuses)

    def get_for_student_and_date(self, student_id: int, attendance_date: date):
        return self.by_key.get((student_id, attendance_date))

    def update_reason(self, attendance_id: int, reason: str) -> None:
        for key, record in self.by_key.items():
            if record.attendance_id == attendance_id:
                self.by_key[key] = replace(record, reason=reason)
                self.writes += 1

    def _in_class(self, record: AttendanceRecord, ctx: ClassContext) -> bool:
        student = self._students.get_by_id(record.student_id)
        return (record.batch, record.year, record.semester, record.section) == (
            ctx.batch, ctx.year, ctx.semester, ctx.section,
        ) and (not ctx.department or (student and student.department == ctx.department))

    def list_for_class_date(self, ctx: ClassContext, attendance_date: date):
        return [r for r in self.by_key.values() if r.attendance_date == attendance_date and self._in_class(r, ctx)]

    def list_for_student(self, student_id: int, *, start=None, end=None):
        items = [
            r
            for r in self.by_key.values()
            if r.student_id == student_id
            and (start is None or r.attendance_date >= start)
            and (end is None or r.attendance_date <= end)
        ]
        return sorted(items, key=lambda r: r.attendance_date, reverse=True)

    def get_report_rows(self, ctx: ClassContext, *, start: date, end: date):
        rows = []
        for r in self.by_key.values():
            if not (start <= r.attendance_date <= end and self._in_class(r, ctx)):
                continue
            student = self._students.get_by_id(r.student_id)
            rows.append(
                AttendanceReportRow(
                    student_id=r.student_id,
                    roll_number=student.roll_number,
                    name=student.name,
                    department=student.department,
                    attendance_date=r.attendance_date,
                    status=r.status,
                    reason=r.reason,
                )
            )
        return sorted(rows, key=lambda r: (r.attendance_date, r.roll_number))


class InMemoryHolidays:
    def __init__(self):
        self.by_id: dict[int, Holiday] = {}
        self._next_id = 1

    def get_by_id(self, holiday_id: int) -> Optional[Holiday]:
        holiday = self.by_id.get(holiday_id)
        return holiday if holiday and not holiday.is_deleted else None

    def find_live(self, holiday_date: date, department: str) -> Optional[Holiday]:
        return next(
            (
                h
                for h in self.by_id.values()
                if not h.is_deleted and h.holiday_date == holiday_date and h.department == department
            ),
            None,
        )

    def list_live(self, department: str, *, start: date, end: date):
        items = [
            h
            for h in self.by_id.values()
            if not h.is_deleted and h.department == department and start <= h.holiday_date <= end
        ]
        return sorted(items, key=lambda h: h.holiday_date)

    def create(self, *, holiday_date, department, reason, created_by) -> int:
        if self.find_live(holiday_date, department):
            raise DuplicateResourceError("duplicate holiday", code="DUPLICATE_HOLIDAY")
        holiday_id = self._next_id
        self._next_id += 1
        self.by_id[holiday_id] = Holiday(
            holiday_id=holiday_id,
            holiday_date=holiday_date,
            department=department,
            reason=reason,
            created_by=created_by,
        )
        return holiday_id

    def update(self, holiday_id: int, *, holiday_date, reason, updated_by) -> bool:
        holiday = self.get_by_id(holiday_id)
        if not holiday:
            return False
        self.by_id[holiday_id] = replace(holiday, holiday_date=holiday_date, reason=reason, updated_by=updated_by)
        return True

    def soft_delete(self, holiday_id: int, *, deleted_by: int) -> bool:
        holiday = self.get_by_id(holiday_id)
        if not holiday:
            return False
        self.by_id[holiday_id] = replace(holiday, is_deleted=True, updated_by=deleted_by)
        return True


def _make_user(users: InMemoryUsers, name: str, email: str, role: Role, department: Optional[str] = "CSE") -> User:
    user_id = users.create_user(
        name=name,
        email=email,
        password_hash=_PASSWORD_HASH,
        role=role,
        department=department,
        mobile=None,
        created_by=None,
    )
    return users.get_by_id(user_id)


CLASS_2A = ClassContext(batch="2023-2027", year="2nd Year", semester=3, section="A", department="CSE")


@dataclass
class World:
    """A CSE department with one assigned class of four students (R1..R4)."""

    users: InMemoryUsers
    faculty: InMemoryFaculty
    audit: InMemoryAudit
    assignments: InMemoryAssignments
    students: InMemoryStudents
    attendance: InMemoryAttendance
    holidays: InMemoryHolidays
    container: Container

    admin: User
    hod: User
    faculty_user: User
    other_faculty_user: User
    faculty_id: int
    other_faculty_id: int
    assignment_id: int

    def add_user(self, name: str, email: str, role: Role, department: Optional[str] = "CSE") -> User:
        return _make_user(self.users, name, email, role, department)

    def add_student(self, roll_number: str, ctx: ClassContext = CLASS_2A, *, faculty_id: Optional[int] = None) -> Student:
        student_id = self.students.create_student_account(
            StudentDraft(roll_number=roll_number, name=f"Student {roll_number}", email=f"{roll_number.lower()}@school.local", password=PASSWORD),
            password_hash=_PASSWORD_HASH,
            ctx=ctx,
            identity=derive_class_identity(ctx),
            faculty_id=faculty_id or self.faculty_id,
            created_by=self.admin.user_id,
        )
        return self.students.get_by_id(student_id)


def build_world() -> World:
    users = InMemoryUsers()
    faculty = InMemoryFaculty(users)
    audit = InMemoryAudit()
    assignments = InMemoryAssignments(faculty)
    students = InMemoryStudents(users)
    attendance = InMemoryAttendance(students)
    holidays = InMemoryHolidays()
    container = wire(
        users_repo=users,
        faculty_repo=faculty,
        audit_repo=audit,
        assignments_repo=assignments,
        students_repo=students,
        attendance_repo=attendance,
        holidays_repo=holidays,
        tokens=TokenService("test-jwt-secret"),
    )

    admin = _make_user(users, "Admin", "admin@school.local", Role.ADMIN, None)
    hod = _make_user(users, "HOD CSE", "hod.cse@school.local", Role.HOD)
    faculty_user = _make_user(users, "Faculty F", "f@school.local", Role.FACULTY)
    other_faculty_user = _make_user(users, "Faculty G", "g@school.local", Role.FACULTY)
    faculty.add(Faculty(faculty_id=1, user_id=faculty_user.user_id, name="Faculty F", email="f@school.local", department="CSE"))
    faculty.add(Faculty(faculty_id=2, user_id=other_faculty_user.user_id, name="Faculty G", email="g@school.local", department="CSE"))

    assignment_id = assignments.assign(
        faculty_id=1,
        ctx=CLASS_2A,
        attendance_start_date=date(2025, 1, 1),
        attendance_end_date=None,
        notes=None,
        assigned_by=hod.user_id,
    )

    return World(
        users=users,
        faculty=faculty,
        audit=audit,
        assignments=assignments,
        students=students,
        attendance=attendance,
        holidays=holidays,
        container=container,
        admin=admin,
        hod=hod,
        faculty_user=faculty_user,
        other_faculty_user=other_faculty_user,
        faculty_id=1,
        other_faculty_id=2,
        assignment_id=assignment_id,
    )


@pytest.fixture
def world() -> World:
    return build_world()


@pytest.fixture
def roster(world: World) -> dict[str, Student]:
    return {roll: world.add_student(roll) for roll in ("R1", "R2", "R3", "R4")}


@pytest.fixture
def class_2a() -> ClassContext:
    return CLASS_2A
