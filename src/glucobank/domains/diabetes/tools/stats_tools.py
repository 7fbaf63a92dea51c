"""MCP tools for glucose statistics, history charts and insights.

These tools read record snapshots and compute everything on request; no
derived value is ever stored.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from glucobank.core.audit.logger import AuditLogger
    from glucobank.domains.diabetes.domain_logic.glucose_analyzer import GlucoseAnalyzer

from glucobank.domains.diabetes.domain_logic.classification import (
    GLUCOSE_CATEGORIES,
    classify,
)
from glucobank.domains.diabetes.domain_logic.stats_models import (
    DEFAULT_HISTORY_PERIOD,
    HISTORY_PERIODS,
)

logger = logging.getLogger(__name__)


def register_stats_tools(
    mcp: FastMCP,
    analyzer: GlucoseAnalyzer,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register statistics and insight tools on the MCP server."""

    @mcp.tool
    async def daily_overview(ctx: Context) -> str:
        """Today's glucose, insulin and carb summary plus the last 7 days.

        Includes the most recent glucose reading with its color category,
        today's average glucose and time in range, today's total insulin and
        carbs, and the 7-day average glucose and time in range. A value of 0
        means no data was logged for that statistic.
        """
        start = time.monotonic()
        overview = analyzer.daily_overview()
        if audit_logger is not None:
            audit_logger.log_tool_call(
                tool_name="daily_overview",
                duration_ms=(time.monotonic() - start) * 1000,
            )
        return json.dumps({"status": "ok", **overview}, indent=2)

    @mcp.tool
    async def history_report(
        ctx: Context,
        period_days: int = DEFAULT_HISTORY_PERIOD,
    ) -> str:
        """Glucose history over a period: statistics, daily chart series, insights.

        Args:
            period_days: Number of days to look back. Typical choices are
                7, 14, 30 or 90.
        """
        if period_days < 1:
            logger.info("Rejected history period of %d days", period_days)
            return json.dumps({
                "status": "error",
                "message": "period_days must be at least 1.",
                "suggested_periods": list(HISTORY_PERIODS),
            })

        start = time.monotonic()
        report = analyzer.history_report(period_days)
        if audit_logger is not None:
            audit_logger.log_tool_call(
                tool_name="history_report",
                tool_input={"period_days": period_days},
                duration_ms=(time.monotonic() - start) * 1000,
            )
        return json.dumps({"status": "ok", **report}, indent=2)

    @mcp.tool
    async def classify_glucose(ctx: Context, glucose: float) -> str:
        """Show the display category and color for a glucose value (mg/dL).

        Args:
            glucose: Glucose level in mg/dL.
        """
        category = classify(glucose)
        return json.dumps({
            "glucose": glucose,
            "category": category.label,
            "color": category.color,
            "categories": [c.to_dict() for c in GLUCOSE_CATEGORIES],
        })
