"""MCP resources describing the diary's fixed reference tables."""

from __future__ import annotations

import json

from fastmcp import FastMCP

from glucobank.core.storage.models import GlucoseUnit, InsulinType, MealType
from glucobank.domains.diabetes.domain_logic.classification import GLUCOSE_CATEGORIES
from glucobank.domains.diabetes.domain_logic.stats_models import HISTORY_PERIODS
from glucobank.domains.diabetes.domain_logic.validation import (
    CARBS_MAX,
    CARBS_MIN,
    GLUCOSE_MAX,
    GLUCOSE_MIN,
    INSULIN_MAX_UNITS,
)


def register_reference_resources(mcp: FastMCP) -> None:
    """Register glucose category and input-limit resources on the MCP server."""

    @mcp.resource("glucose://categories")
    def glucose_categories_resource() -> str:
        """Glucose color categories, entry types, input limits and history periods."""
        return json.dumps(
            {
                "categories": [c.to_dict() for c in GLUCOSE_CATEGORIES],
                "insulin_types": [t.value for t in InsulinType],
                "meal_types": [t.value for t in MealType],
                "glucose_units": [u.value for u in GlucoseUnit],
                "input_limits": {
                    "glucose_mg_dl": {"min": GLUCOSE_MIN, "max": GLUCOSE_MAX},
                    "insulin_units": {"min_exclusive": 0, "max": INSULIN_MAX_UNITS},
                    "carbs_g": {"min": CARBS_MIN, "max": CARBS_MAX},
                },
                "history_periods": list(HISTORY_PERIODS),
            },
            indent=2,
        )
