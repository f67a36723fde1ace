from __future__ import annotations

import pytest

from src.class_attendance.class_attendance.database.migrations import (
    MigrationReport,
    backfill_student_class_ids,
    migrate_legacy_faculty_bindings,
)
from src.class_attendance.class_attendance.database.mysql_base import db_cursor


class FakeCursor:
    def __init__(self, rows):
        self._rows = rows
        self.executed = []
        self.rowcount = 0

    def execute(self, sql, params=None):
        self.executed.append((" ".join(sql.split()), params))
        self.rowcount = 1

    def fetchall(self):
        return self._rows

    def close(self):
        pass


class FakeConnection:
    def __init__(self, rows):
        self.cursor_obj = FakeCursor(rows)
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=True):
        return self.cursor_obj

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeConnectionFactory:
    def __init__(self, rows=()):
        self.conn = FakeConnection(list(rows))

    def connect(self):
        return self.conn


def _writes(factory):
    return [params for sql, params in factory.conn.cursor_obj.executed if not sql.startswith("SELECT")]


def test_legacy_columns_become_legacy_bindings():
    factory = FakeConnectionFactory(
        [
            {"faculty_id": 1, "batch": "2023-2027", "year": "2", "semester": "3", "section": "a"},
            {"faculty_id": 2, "batch": "2023", "year": "2nd Year", "semester": 3, "section": "A"},
            {"faculty_id": 3, "batch": "2024-2028", "year": "1st Year", "semester": 1, "section": None},
        ]
    )

    report = migrate_legacy_faculty_bindings(factory)

    assert report == MigrationReport(scanned=3, migrated=2, skipped=1)
    assert _writes(factory) == [
        (1, "2023-2027", "2nd Year", 3, "A"),
        (3, "2024-2028", "1st Year", 1, "A"),
    ]
    assert factory.conn.committed


def test_backfill_only_touches_rows_whose_keys_differ():
    factory = FakeConnectionFactory(
        [
            {"student_id": 1, "batch": "2023-2027", "year": "2nd Year", "semester": 3, "section": "A",
             "class_id": "2023-2027_2nd Year_3_A", "class_assigned": "2A"},
            {"student_id": 2, "batch": "2023-2027", "year": "2", "semester": "3", "section": "b",
             "class_id": "old", "class_assigned": "old"},
            {"student_id": 3, "batch": "bad", "year": "2", "semester": 3, "section": "A",
             "class_id": None, "class_assigned": None},
        ]
    )

    report = backfill_student_class_ids(factory)

    assert report == MigrationReport(scanned=3, migrated=1, skipped=1)
    assert _writes(factory) == [("2nd Year", 3, "B", "2023-2027_2nd Year_3_B", "2B", 2)]


def test_db_cursor_rolls_back_on_error():
    factory = FakeConnectionFactory()

    with pytest.raises(RuntimeError):
        with db_cursor(factory) as (_, cur):
            cur.execute("UPDATE students SET name=%s", ("x",))
            raise RuntimeError("boom")

    assert factory.conn.rolled_back
    assert not factory.conn.committed
    assert factory.conn.closed
