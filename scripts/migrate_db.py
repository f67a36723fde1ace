"""Run the one-off data migrations (legacy faculty bindings, student class ids)."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.class_attendance.class_attendance.database.connection import DBConfig, DatabaseConnection
from src.class_attendance.class_attendance.database.migrations import (
    backfill_student_class_ids,
    migrate_legacy_faculty_bindings,
)


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    conn = DatabaseConnection(DBConfig.from_dict(dict(settings.DB_CONFIG)))

    bindings = migrate_legacy_faculty_bindings(conn)
    print(f"OK: legacy bindings scanned={bindings.scanned} migrated={bindings.migrated} skipped={bindings.skipped}")
    students = backfill_student_class_ids(conn)
    print(f"OK: student class ids scanned={students.scanned} migrated={students.migrated} skipped={students.skipped}")


if __name__ == "__main__":
    main()
