"""MCP tools for logging, editing and listing diary entries.

These tools are the input layer: they validate values before anything is
persisted, so the statistics code can assume plausible records.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import tzinfo
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from glucobank.core.audit.logger import AuditLogger
    from glucobank.core.storage.repository import RecordRepository

from glucobank.core.storage.models import InsulinType, MealType, RecordKind
from glucobank.core.storage.repository import RepositoryError
from glucobank.domains.diabetes.domain_logic.classification import classify
from glucobank.domains.diabetes.domain_logic.validation import (
    CARBS_MAX,
    GLUCOSE_MAX,
    GLUCOSE_MIN,
    INSULIN_MAX_UNITS,
    format_datetime,
    validate_carb_amount,
    validate_glucose_reading,
    validate_insulin_dose,
)

logger = logging.getLogger(__name__)


def _error(message: str) -> str:
    return json.dumps({"status": "error", "message": message})


def _clean_notes(notes: str) -> str | None:
    notes = notes.strip()
    return notes or None


def register_entry_tools(
    mcp: FastMCP,
    repository: RecordRepository,
    audit_logger: AuditLogger | None = None,
    tz: tzinfo | None = None,
) -> None:
    """Register diary entry tools on the MCP server."""

    def _audit(tool_name: str, tool_input: dict, start: float, **kwargs: Any) -> None:
        if audit_logger is not None:
            audit_logger.log_tool_call(
                tool_name=tool_name,
                tool_input=tool_input,
                duration_ms=(time.monotonic() - start) * 1000,
                **kwargs,
            )

    @mcp.tool
    async def log_glucose(
        ctx: Context,
        glucose: float,
        notes: str = "",
    ) -> str:
        """Record a blood glucose reading.

        Args:
            glucose: Glucose level in mg/dL (20-600).
            notes: Optional notes (e.g., 'before lunch', 'after exercise').
        """
        start = time.monotonic()
        if not validate_glucose_reading(glucose):
            return _error(
                f"Please enter a glucose value between {GLUCOSE_MIN} and {GLUCOSE_MAX} mg/dL."
            )

        reading = repository.add_glucose_reading(glucose, notes=_clean_notes(notes))
        category = classify(reading.glucose)
        _audit("log_glucose", {"glucose": glucose}, start,
               record_kind=RecordKind.GLUCOSE.value, record_id=reading.id)
        return json.dumps({
            "status": "saved",
            "record": reading.to_dict(),
            "category": category.label,
            "color": category.color,
        })

    @mcp.tool
    async def log_insulin(
        ctx: Context,
        units: float,
        insulin_type: str = InsulinType.RAPID_ACTING.value,
        notes: str = "",
    ) -> str:
        """Record an insulin injection.

        Args:
            units: Dose in units (greater than 0, at most 100).
            insulin_type: 'rapid_acting' or 'long_acting'.
            notes: Optional notes.
        """
        start = time.monotonic()
        if not validate_insulin_dose(units):
            return _error(
                f"Please enter a valid dose between 0.1 and {INSULIN_MAX_UNITS} units."
            )
        try:
            kind = InsulinType(insulin_type)
        except ValueError:
            return _error(
                f"Unknown insulin type {insulin_type!r}. "
                f"Use one of {[t.value for t in InsulinType]}."
            )

        injection = repository.add_insulin_injection(units, kind, notes=_clean_notes(notes))
        _audit("log_insulin", {"units": units, "insulin_type": kind.value}, start,
               record_kind=RecordKind.INSULIN.value, record_id=injection.id)
        return json.dumps({"status": "saved", "record": injection.to_dict()})

    @mcp.tool
    async def log_meal(
        ctx: Context,
        name: str,
        carbs: float,
        meal_type: str = MealType.SNACK.value,
        notes: str = "",
    ) -> str:
        """Record a meal and its carbohydrates.

        Args:
            name: What was eaten (e.g., 'Oatmeal with berries').
            carbs: Carbohydrates in grams (0-300).
            meal_type: 'breakfast', 'lunch', 'dinner' or 'snack'.
            notes: Optional notes.
        """
        start = time.monotonic()
        if not name.strip():
            return _error("Please enter a meal name.")
        if not validate_carb_amount(carbs):
            return _error(f"Please enter a valid carb amount between 0 and {CARBS_MAX}g.")
        try:
            kind = MealType(meal_type)
        except ValueError:
            return _error(
                f"Unknown meal type {meal_type!r}. Use one of {[t.value for t in MealType]}."
            )

        meal = repository.add_meal(name.strip(), carbs, kind, notes=_clean_notes(notes))
        _audit("log_meal", {"carbs": carbs, "meal_type": kind.value}, start,
               record_kind=RecordKind.MEAL.value, record_id=meal.id)
        return json.dumps({"status": "saved", "record": meal.to_dict()})

    @mcp.tool
    async def update_entry(
        ctx: Context,
        kind: str,
        record_id: str,
        glucose: float | None = None,
        units: float | None = None,
        insulin_type: str | None = None,
        name: str | None = None,
        carbs: float | None = None,
        meal_type: str | None = None,
        notes: str | None = None,
    ) -> str:
        """Edit a previously logged entry. Only the fields you pass change.

        Args:
            kind: 'glucose_readings', 'insulin_injections' or 'meals'.
            record_id: ID of the entry to edit.
            glucose: New glucose value (glucose readings).
            units: New dose (insulin injections).
            insulin_type: New insulin type (insulin injections).
            name: New meal name (meals).
            carbs: New carbohydrate amount (meals).
            meal_type: New meal type (meals).
            notes: New notes (any kind). An empty string clears them.
        """
        start = time.monotonic()
        if glucose is not None and not validate_glucose_reading(glucose):
            return _error(
                f"Please enter a glucose value between {GLUCOSE_MIN} and {GLUCOSE_MAX} mg/dL."
            )
        if units is not None and not validate_insulin_dose(units):
            return _error(f"Please enter a valid dose between 0.1 and {INSULIN_MAX_UNITS} units.")
        if carbs is not None and not validate_carb_amount(carbs):
            return _error(f"Please enter a valid carb amount between 0 and {CARBS_MAX}g.")
        if name is not None and not name.strip():
            return _error("Please enter a meal name.")

        changes: dict[str, Any] = {
            "glucose": glucose,
            "units": units,
            "name": name.strip() if name is not None else None,
            "carbs": carbs,
            "type": insulin_type if insulin_type is not None else meal_type,
        }
        changes = {k: v for k, v in changes.items() if v is not None}
        if notes is not None:
            changes["notes"] = notes.strip()
        if not changes:
            return _error("No changes provided.")

        try:
            updated = repository.update_record(kind, record_id, **changes)
        except RepositoryError as exc:
            return _error(str(exc))
        except ValueError as exc:
            return _error(f"Invalid value: {exc}")

        _audit("update_entry", {"kind": kind, "fields": sorted(changes)}, start,
               record_kind=kind, record_id=record_id)
        if not updated:
            return json.dumps({
                "status": "not_found",
                "record_id": record_id,
                "message": "No entry found with that ID.",
            })
        return json.dumps({"status": "updated", "record_id": record_id,
                           "fields": sorted(changes)})

    @mcp.tool
    async def delete_entry(
        ctx: Context,
        kind: str,
        record_id: str,
    ) -> str:
        """Permanently delete one diary entry.

        Args:
            kind: 'glucose_readings', 'insulin_injections' or 'meals'.
            record_id: ID of the entry to delete.
        """
        try:
            deleted = repository.delete_record(kind, record_id)
        except RepositoryError as exc:
            return _error(str(exc))

        if not deleted:
            return json.dumps({
                "status": "not_found",
                "record_id": record_id,
                "message": "No entry found with that ID.",
            })
        if audit_logger is not None:
            audit_logger.log_data_delete(
                tool_name="delete_entry", record_kind=kind, record_id=record_id, count=1
            )
        return json.dumps({"status": "deleted", "kind": kind, "record_id": record_id})

    @mcp.tool
    async def list_entries(
        ctx: Context,
        kind: str = RecordKind.GLUCOSE.value,
        limit: int = 20,
    ) -> str:
        """List the most recent diary entries of one kind, newest first.

        Args:
            kind: 'glucose_readings', 'insulin_injections' or 'meals'.
            limit: Maximum number of entries to return.
        """
        try:
            records = repository.get_records(kind)
        except RepositoryError as exc:
            return _error(str(exc))

        entries = []
        for record in records[:max(limit, 0)]:
            entry = record.to_dict()
            entry["display_time"] = format_datetime(record.timestamp, tz)
            if RecordKind(kind) is RecordKind.GLUCOSE:
                category = classify(record.glucose)  # type: ignore[union-attr]
                entry["category"] = category.label
                entry["color"] = category.color
            entries.append(entry)

        return json.dumps({
            "status": "ok",
            "kind": kind,
            "total": len(records),
            "count": len(entries),
            "entries": entries,
        }, indent=2)
