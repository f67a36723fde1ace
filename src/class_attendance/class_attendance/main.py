from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .class_assignments.controller import register as register_class_assignments
from .common.http import ok, register_error_handlers
from .common.logging_setup import configure_logging
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .database.connection import DBConfig, DatabaseConnection
from .database.migrations import backfill_student_class_ids, migrate_legacy_faculty_bindings
from .faculty.controller import register as register_faculty
from .holidays.controller import register as register_holidays
from .reports.controller import register as register_reports
from .students.controller import register as register_students
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _bootstrap_database(db_config: dict, *, auto_init: bool, auto_seed: bool) -> None:
    if auto_init:
        apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        conn = DatabaseConnection(DBConfig.from_dict(db_config))
        for report in (migrate_legacy_faculty_bindings(conn), backfill_student_class_ids(conn)):
            logger.info("Migration: %s", report)
    if auto_seed:
        # Holidays in seed.sql reference the demo admin account.
        ensure_demo_users(db_config)
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        logger.info("Demo seed ready")


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(str(getattr(settings, "LOG_LEVEL", "INFO")))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["MAX_CONTENT_LENGTH"] = int(getattr(settings, "MAX_UPLOAD_MB", 5)) * 1024 * 1024

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        _bootstrap_database(
            db_config,
            auto_init=bool(getattr(settings, "AUTO_INIT_DB", False)),
            auto_seed=bool(getattr(settings, "AUTO_SEED_DB", False)),
        )
        container = build_container(
            db_config=db_config,
            jwt_secret=getattr(settings, "JWT_SECRET", None) or app.secret_key,
            access_minutes=int(getattr(settings, "JWT_ACCESS_MINUTES", 15)),
            refresh_days=int(getattr(settings, "JWT_REFRESH_DAYS", 7)),
        )

    app.extensions["container"] = container
    register_error_handlers(app)

    @app.get("/api/health", endpoint="health")
    def health():
        return ok({"service": "class-attendance"}, message="OK")

    register_users(app, container)
    register_faculty(app, container)
    register_class_assignments(app, container)
    register_students(app, container)
    register_attendance(app, container)
    register_holidays(app, container)
    register_reports(app, container)

    return app
