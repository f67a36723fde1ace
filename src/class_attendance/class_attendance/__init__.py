"""Class Attendance package.

This package is organized by feature modules (users, faculty, students,
attendance, holidays, ...) with a thin Flask JSON controller layer and
service/repository layers underneath.
"""
