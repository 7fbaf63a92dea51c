"""MCP Prompts: pre-built interaction templates for the diabetes diary."""

from __future__ import annotations

from fastmcp import FastMCP


def register_diary_prompts(mcp: FastMCP) -> None:
    """Register diabetes diary MCP prompts."""

    @mcp.prompt()
    def daily_check_in_prompt() -> str:
        """Prompt template for a quick look at today."""
        return """Let's do my daily diabetes check-in. Please:

1. Show my latest glucose reading and what category it falls in
2. Summarize today's average glucose and time in range
3. Tell me how much insulin and how many carbs I've logged today
4. Compare today with my last 7 days

Keep it short and encouraging."""

    @mcp.prompt()
    def period_review_prompt(period_days: int = 14) -> str:
        """Prompt template for reviewing glucose history over a period."""
        return f"""Let's review my last {period_days} days of diabetes data. I'd like to:

1. See my average glucose and time in range for the period
2. Look at the daily average chart for patterns
3. Check my average daily insulin and carbs
4. Hear the insights and what I could try next

This is for my own tracking, not a replacement for my care team's advice."""
