"""Input checks applied before records are created, and display helpers."""

from __future__ import annotations

from datetime import datetime, tzinfo

from glucobank.core.storage.models import GlucoseUnit
from glucobank.domains.diabetes.domain_logic.aggregator import round_half_up
from glucobank.domains.diabetes.domain_logic.temporal_filter import to_local

GLUCOSE_MIN, GLUCOSE_MAX = 20, 600
INSULIN_MAX_UNITS = 100
CARBS_MIN, CARBS_MAX = 0, 300

MG_DL_PER_MMOL_L = 18.0


def validate_glucose_reading(glucose: float) -> bool:
    return GLUCOSE_MIN <= glucose <= GLUCOSE_MAX


def validate_insulin_dose(units: float) -> bool:
    return 0 < units <= INSULIN_MAX_UNITS


def validate_carb_amount(carbs: float) -> bool:
    return CARBS_MIN <= carbs <= CARBS_MAX


def convert_glucose(mg_dl: float, unit: GlucoseUnit | str) -> float:
    """Express an mg/dL value in the user's display unit.

    mmol/L values are rounded to one decimal; mg/dL values pass through.
    """
    if GlucoseUnit(unit) is GlucoseUnit.MMOL_L:
        return round_half_up(mg_dl / MG_DL_PER_MMOL_L, 1)
    return mg_dl


def format_date(ts: datetime, tz: tzinfo | None = None) -> str:
    """``Mar 5, 2026`` style date in ``tz``."""
    local = to_local(ts, tz)
    return f"{local:%b} {local.day}, {local.year}"


def format_time(ts: datetime, tz: tzinfo | None = None) -> str:
    """``02:30 PM`` style time in ``tz``."""
    return f"{to_local(ts, tz):%I:%M %p}"


def format_datetime(ts: datetime, tz: tzinfo | None = None) -> str:
    return f"{format_date(ts, tz)} {format_time(ts, tz)}"
