"""MCP tools for viewing the audit trail.

The audit log never contains glucose values, doses or meal details: only
which tools ran, when, and how many records were exported, imported or
deleted.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from glucobank.core.audit.logger import AuditLogger

logger = logging.getLogger(__name__)


def register_audit_tools(
    mcp: FastMCP,
    audit_logger: AuditLogger,
) -> None:
    """Register audit trail tools on the MCP server."""

    @mcp.tool
    async def audit_summary(
        ctx: Context,
        days: int = 30,
    ) -> str:
        """View recent tool usage, deletions, exports and imports.

        Args:
            days: Number of days to look back (default: 30).
        """
        since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()

        recent_events = audit_logger.get_events(since=since, limit=20)
        display_events = [
            {
                "timestamp": event.get("timestamp"),
                "action": event.get("action"),
                "tool_name": event.get("tool_name"),
                "record_kind": event.get("record_kind"),
                "status": event.get("status"),
                "duration_ms": event.get("duration_ms"),
            }
            for event in recent_events
        ]

        return json.dumps({
            "status": "ok",
            "period_days": days,
            "total_events": audit_logger.count_events(since=since),
            "deletions": audit_logger.count_events(action="data_delete", since=since),
            "exports": audit_logger.count_events(action="data_export", since=since),
            "imports": audit_logger.count_events(action="data_import", since=since),
            "recent_events": display_events,
            "note": "This audit trail contains no health values.",
        }, indent=2)
