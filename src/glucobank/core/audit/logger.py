"""Audit logger: PHI-free trail of tool usage, deletions, exports and imports.

Records every tool invocation and data-changing event without storing the
health values themselves:

* ``tool_input_hash``: SHA-256 of canonical JSON (no raw values in logs).
* ``record_kind`` / ``record_id``: which collection and record were touched.
"""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from glucobank.core.storage.database import RecordDatabase

logger = logging.getLogger(__name__)


def _hash_input(data: Any) -> str:
    """SHA-256 hash of canonical JSON.

    Returns:
        Hex-encoded SHA-256 digest, or empty string if ``data`` is not
        JSON-serializable.
    """
    try:
        canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode()).hexdigest()
    except (TypeError, ValueError):
        return ""


@dataclass
class AuditEvent:
    """A single audit log entry."""

    action: str                          # 'tool_invocation' | 'data_delete' | 'data_export' | 'data_import'
    tool_name: str = ""
    tool_input_hash: str = ""
    record_kind: str | None = None
    record_id: str | None = None
    duration_ms: float | None = None
    status: str = "success"              # 'success' | 'failure'
    error_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class AuditLogger:
    """Records audit events to the ``audit_log`` SQLite table.

    All writes are committed immediately so no audit entry is lost on crash.

    Usage::

        audit = AuditLogger(record_db)
        audit.log_tool_call(tool_name="log_glucose", tool_input={"glucose": 112})
        audit.log_data_delete(tool_name="delete_entry", record_kind="meals",
                              record_id="...", count=1)
    """

    def __init__(self, database: RecordDatabase) -> None:
        self._db = database

    # ---------------------------------------------------------------
    # Write
    # ---------------------------------------------------------------

    def log_event(self, event: AuditEvent) -> str:
        """Insert an audit event and return its UUID (empty string on failure)."""
        event_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc).isoformat()

        metadata_json = (
            json.dumps(event.metadata, separators=(",", ":"))
            if event.metadata
            else None
        )

        try:
            conn = self._db.connection
            conn.execute(
                """INSERT INTO audit_log
                   (id, timestamp, action, tool_name, tool_input_hash,
                    record_kind, record_id, duration_ms, status, error_type,
                    metadata_json)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    event_id,
                    now,
                    event.action,
                    event.tool_name or None,
                    event.tool_input_hash or None,
                    event.record_kind,
                    event.record_id,
                    event.duration_ms,
                    event.status,
                    event.error_type,
                    metadata_json,
                ),
            )
            conn.commit()
        except Exception:
            logger.exception("Failed to write audit event; event lost")
            return ""

        return event_id

    def log_tool_call(
        self,
        tool_name: str,
        tool_input: Any = None,
        *,
        record_kind: str | None = None,
        record_id: str | None = None,
        duration_ms: float | None = None,
        status: str = "success",
        error_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Log a tool invocation. ``tool_input`` is hashed, never stored raw."""
        return self.log_event(AuditEvent(
            action="tool_invocation",
            tool_name=tool_name,
            tool_input_hash=_hash_input(tool_input) if tool_input else "",
            record_kind=record_kind,
            record_id=record_id,
            duration_ms=duration_ms,
            status=status,
            error_type=error_type,
            metadata=metadata or {},
        ))

    def log_data_delete(
        self,
        *,
        tool_name: str = "",
        record_kind: str | None = None,
        record_id: str | None = None,
        count: int = 0,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Log a deletion of one record or of whole collections."""
        return self.log_event(AuditEvent(
            action="data_delete",
            tool_name=tool_name,
            record_kind=record_kind,
            record_id=record_id,
            metadata={**(metadata or {}), "records_deleted": count},
        ))

    def log_data_transfer(
        self,
        action: str,
        *,
        tool_name: str = "",
        counts: dict[str, int] | None = None,
    ) -> str:
        """Log an export or import with per-collection record counts."""
        return self.log_event(AuditEvent(
            action=action,
            tool_name=tool_name,
            metadata={"record_counts": counts or {}},
        ))

    # ---------------------------------------------------------------
    # Read
    # ---------------------------------------------------------------

    def get_events(
        self,
        *,
        action: str | None = None,
        tool_name: str | None = None,
        since: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Query audit events with optional filters, newest first."""
        conditions: list[str] = []
        params: list[Any] = []

        if action:
            conditions.append("action = ?")
            params.append(action)
        if tool_name:
            conditions.append("tool_name = ?")
            params.append(tool_name)
        if since:
            conditions.append("timestamp >= ?")
            params.append(since)

        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""
        query = f"SELECT * FROM audit_log{where} ORDER BY timestamp DESC LIMIT ?"
        params.append(limit)

        rows = self._db.connection.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def count_events(self, *, action: str | None = None, since: str | None = None) -> int:
        """Count audit events, optionally by action and since a timestamp."""
        conditions: list[str] = []
        params: list[Any] = []
        if action:
            conditions.append("action = ?")
            params.append(action)
        if since:
            conditions.append("timestamp >= ?")
            params.append(since)
        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""
        row = self._db.connection.execute(
            f"SELECT COUNT(*) FROM audit_log{where}", params
        ).fetchone()
        return row[0]
