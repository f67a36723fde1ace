from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .class_assignments.mysql_class_assignment_repository import MySQLClassAssignmentRepository
from .class_assignments.repository import ClassAssignmentRepository
from .class_assignments.service import ClassAssignmentService
from .class_assignments.window import AttendanceWindowValidator
from .database.connection import DBConfig, DatabaseConnection
from .faculty.access import ClassAccessPolicy
from .faculty.audit import AuditTrail
from .faculty.mysql_audit_repository import MySQLAuditRepository
from .faculty.mysql_faculty_repository import MySQLFacultyRepository
from .faculty.repository import AuditRepository, FacultyRepository
from .faculty.resolver import FacultyResolver
from .faculty.service import FacultyService
from .holidays.mysql_holiday_repository import MySQLHolidayRepository
from .holidays.repository import HolidayRepository
from .holidays.service import HolidayCalendar, HolidayService
from .reports.service import ReportService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .students.service import StudentService
from .users.auth import AuthGuard
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, TokenService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    faculty_repo: FacultyRepository
    audit_repo: AuditRepository
    assignments_repo: ClassAssignmentRepository
    students_repo: StudentRepository
    attendance_repo: AttendanceRepository
    holidays_repo: HolidayRepository

    tokens: TokenService
    guard: AuthGuard
    audit: AuditTrail
    resolver: FacultyResolver
    access: ClassAccessPolicy
    calendar: HolidayCalendar
    window: AttendanceWindowValidator

    auth_service: AuthService
    user_service: UserService
    faculty_service: FacultyService
    class_assignment_service: ClassAssignmentService
    student_service: StudentService
    attendance_service: AttendanceService
    holiday_service: HolidayService
    report_service: ReportService


def wire(
    *,
    users_repo: UserRepository,
    faculty_repo: FacultyRepository,
    audit_repo: AuditRepository,
    assignments_repo: ClassAssignmentRepository,
    students_repo: StudentRepository,
    attendance_repo: AttendanceRepository,
    holidays_repo: HolidayRepository,
    tokens: TokenService,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build every service on top of the given repositories."""

    auth_service = AuthService(users_repo, tokens)
    audit = AuditTrail(audit_repo)
    resolver = FacultyResolver(faculty_repo, audit)
    access = ClassAccessPolicy(faculty_repo, resolver)
    calendar = HolidayCalendar(holidays_repo)
    window = AttendanceWindowValidator(calendar)

    return Container(
        conn=conn,
        users_repo=users_repo,
        faculty_repo=faculty_repo,
        audit_repo=audit_repo,
        assignments_repo=assignments_repo,
        students_repo=students_repo,
        attendance_repo=attendance_repo,
        holidays_repo=holidays_repo,
        tokens=tokens,
        guard=AuthGuard(auth_service),
        audit=audit,
        resolver=resolver,
        access=access,
        calendar=calendar,
        window=window,
        auth_service=auth_service,
        user_service=UserService(users_repo),
        faculty_service=FacultyService(faculty_repo, users_repo, assignments_repo),
        class_assignment_service=ClassAssignmentService(assignments_repo, faculty_repo, window),
        student_service=StudentService(students_repo, users_repo, resolver, access, audit),
        attendance_service=AttendanceService(
            attendance_repo, students_repo, assignments_repo, calendar, access, audit
        ),
        holiday_service=HolidayService(holidays_repo, calendar),
        report_service=ReportService(attendance_repo, students_repo, access),
    )


def build_container(
    *,
    db_config: dict,
    jwt_secret: str,
    access_minutes: int = 15,
    refresh_days: int = 7,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return wire(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        faculty_repo=MySQLFacultyRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        assignments_repo=MySQLClassAssignmentRepository(conn),
        students_repo=MySQLStudentRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        holidays_repo=MySQLHolidayRepository(conn),
        tokens=TokenService(jwt_secret, access_minutes=access_minutes, refresh_days=refresh_days),
    )
