from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.class_attendance.class_attendance.database.bootstrap import apply_seed_sql, ensure_demo_users
from src.class_attendance.class_attendance.database.connection import DBConfig, DatabaseConnection
from src.class_attendance.class_attendance.database.migrations import (
    backfill_student_class_ids,
    migrate_legacy_faculty_bindings,
)


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    # seed.sql references the demo admin, so the accounts go in first.
    ensure_demo_users(db_config)
    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")

    # Brings faculty and student rows from older installs onto class bindings and class ids.
    conn = DatabaseConnection(DBConfig.from_dict(db_config))
    bindings = migrate_legacy_faculty_bindings(conn)
    students = backfill_student_class_ids(conn)
    print(f"OK: legacy bindings migrated={bindings.migrated}, student class ids migrated={students.migrated}")

    print(
        "OK: Seeded database -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
