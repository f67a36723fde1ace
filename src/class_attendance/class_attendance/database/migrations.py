"""One-off data migrations.

Both functions are idempotent and safe to re-run after a deploy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..common.academic import ClassContext, derive_class_identity, loose_semester, loose_year
from ..common.validators import clean_str, is_valid_batch
from ..core.constants import DEFAULT_SECTION, SECTIONS
from ..core.exceptions import ValidationError
from .connection import DatabaseConnection
from .mysql_base import db_cursor, fetchall

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MigrationReport:
    scanned: int
    migrated: int
    skipped: int


def migrate_legacy_faculty_bindings(conn_factory: DatabaseConnection) -> MigrationReport:
    """Copy the old single-class columns on ``faculty`` into ``faculty_class_bindings``.

    Rows whose legacy values cannot be normalized are skipped and logged.
    """

    migrated = 0
    skipped = 0
    with db_cursor(conn_factory) as (_, cur):
        cur.execute(
            """
            SELECT faculty_id, batch, year, semester, section
            FROM faculty
            WHERE batch IS NOT NULL AND year IS NOT NULL AND semester IS NOT NULL
            """
        )
        rows = fetchall(cur)
        for row in rows:
            batch = clean_str(row.get("batch"))
            year = loose_year(row.get("year"))
            semester = loose_semester(row.get("semester"))
            section = clean_str(row.get("section")).upper() or DEFAULT_SECTION
            if not is_valid_batch(batch) or year is None or semester is None or section not in SECTIONS:
                logger.warning(
                    "Skipping legacy binding for faculty %s: batch=%r year=%r semester=%r section=%r",
                    row["faculty_id"], row.get("batch"), row.get("year"), row.get("semester"), row.get("section"),
                )
                skipped += 1
                continue

            cur.execute(
                """
                INSERT IGNORE INTO faculty_class_bindings (faculty_id, batch, year, semester, section, active, origin)
                VALUES (%s, %s, %s, %s, %s, 1, 'legacy')
                """,
                (row["faculty_id"], batch, year, semester, section),
            )
            migrated += cur.rowcount

    report = MigrationReport(scanned=len(rows), migrated=migrated, skipped=skipped)
    logger.info("Legacy faculty bindings: %s", report)
    return report


def backfill_student_class_ids(conn_factory: DatabaseConnection) -> MigrationReport:
    """Recompute ``class_id`` / ``class_assigned`` for every student row."""

    migrated = 0
    skipped = 0
    with db_cursor(conn_factory) as (_, cur):
        cur.execute("SELECT student_id, batch, year, semester, section, class_id, class_assigned FROM students")
        rows = fetchall(cur)
        for row in rows:
            try:
                ctx = ClassContext.parse(
                    batch=row["batch"], year=row["year"], semester=row["semester"], section=row["section"]
                )
            except ValidationError as e:
                logger.warning("Skipping student %s: %s %s", row["student_id"], e.message, e.details)
                skipped += 1
                continue

            identity = derive_class_identity(ctx)
            if identity.class_id == row["class_id"] and identity.class_assigned == row["class_assigned"]:
                continue
            cur.execute(
                """
                UPDATE students
                SET year=%s, semester=%s, section=%s, class_id=%s, class_assigned=%s
                WHERE student_id=%s
                """,
                (ctx.year, ctx.semester, ctx.section, identity.class_id, identity.class_assigned, row["student_id"]),
            )
            migrated += 1

    report = MigrationReport(scanned=len(rows), migrated=migrated, skipped=skipped)
    logger.info("Student class identity backfill: %s", report)
    return report
