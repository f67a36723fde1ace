from __future__ import annotations

import json
from typing import Optional, Sequence

from ..core.enums import AuditOperation, AuditStatus, ResolutionSource
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, load_json_list
from .model import AuditEntry
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, entry: AuditEntry) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO faculty_audit_logs
                    (operation, faculty_id, class_id, source, user_id, student_count, student_ids,
                     status, error_message, resolved_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    entry.operation.value,
                    entry.faculty_id,
                    entry.class_id,
                    entry.source.value if entry.source else None,
                    entry.user_id,
                    int(entry.student_count),
                    json.dumps(list(entry.student_ids)),
                    entry.status.value,
                    (entry.error_message or None) and entry.error_message[:500],
                    entry.resolved_at,
                ),
            )

    def list_recent(
        self,
        *,
        faculty_id: Optional[int] = None,
        class_id: Optional[str] = None,
        limit: int = 50,
    ) -> Sequence[AuditEntry]:
        where: list[str] = []
        params: list = []
        if faculty_id is not None:
            where.append("faculty_id=%s")
            params.append(faculty_id)
        if class_id:
            where.append("class_id=%s")
            params.append(class_id)
        sql = """
            SELECT operation, faculty_id, class_id, source, user_id, student_count, student_ids,
                   status, error_message, resolved_at
            FROM faculty_audit_logs
        """
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY resolved_at DESC, audit_id DESC LIMIT %s"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [
                AuditEntry(
                    operation=AuditOperation(r["operation"]),
                    faculty_id=r.get("faculty_id"),
                    class_id=r.get("class_id"),
                    source=ResolutionSource(r["source"]) if r.get("source") else None,
                    user_id=r.get("user_id"),
                    resolved_at=r["resolved_at"],
                    student_count=int(r.get("student_count") or 0),
                    student_ids=tuple(load_json_list(r.get("student_ids"))),
                    status=AuditStatus(r["status"]),
                    error_message=r.get("error_message"),
                )
                for r in fetchall(cur)
            ]
