"""MCP tools for reading and changing the user's diary settings."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from glucobank.core.audit.logger import AuditLogger
    from glucobank.core.storage.repository import RecordRepository

from glucobank.core.storage.models import GlucoseUnit, TargetRange

logger = logging.getLogger(__name__)


def register_settings_tools(
    mcp: FastMCP,
    repository: RecordRepository,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register user settings tools on the MCP server."""

    @mcp.tool
    async def get_settings(ctx: Context) -> str:
        """Show your name, glucose unit, target range and reminder preference."""
        return json.dumps({"status": "ok", "settings": repository.get_user_settings().to_dict()})

    @mcp.tool
    async def update_settings(
        ctx: Context,
        name: str | None = None,
        glucose_unit: str | None = None,
        target_min: float | None = None,
        target_max: float | None = None,
        reminder_enabled: bool | None = None,
    ) -> str:
        """Change diary settings. Only the fields you pass change.

        Args:
            name: Your name, used for greetings.
            glucose_unit: 'mg/dL' or 'mmol/L' (display only; values are stored in mg/dL).
            target_min: Lower bound of your target range in mg/dL.
            target_max: Upper bound of your target range in mg/dL.
            reminder_enabled: Whether reminders are on.
        """
        if name is not None and not name.strip():
            return json.dumps({"status": "error", "message": "Please enter your name."})

        if glucose_unit is not None:
            try:
                glucose_unit = GlucoseUnit(glucose_unit).value
            except ValueError:
                return json.dumps({
                    "status": "error",
                    "message": f"Unknown unit {glucose_unit!r}. "
                               f"Use one of {[u.value for u in GlucoseUnit]}.",
                })

        target_range = None
        if target_min is not None or target_max is not None:
            current = repository.get_user_settings().target_range
            low = current.min if target_min is None else target_min
            high = current.max if target_max is None else target_max
            if low >= high:
                return json.dumps({
                    "status": "error",
                    "message": "Minimum glucose must be less than maximum glucose.",
                })
            target_range = TargetRange(min=low, max=high)

        updated = repository.update_user_settings(
            name=name.strip() if name is not None else None,
            glucose_unit=glucose_unit,
            target_range=target_range,
            reminder_enabled=reminder_enabled,
        )
        changed = [
            field for field, value in (
                ("name", name), ("glucose_unit", glucose_unit),
                ("target_range", target_range), ("reminder_enabled", reminder_enabled),
            ) if value is not None
        ]
        logger.info("Updated settings: %s", ", ".join(changed) or "none")
        if audit_logger is not None:
            audit_logger.log_tool_call(tool_name="update_settings")
        return json.dumps({"status": "saved", "settings": updated.to_dict()})
