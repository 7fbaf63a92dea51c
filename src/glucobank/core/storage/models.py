"""Data models for the record store.

Three record kinds share one base shape (id, timestamp, notes). Records are
immutable: edits made through the repository replace the stored copy.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union


class InsulinType(str, Enum):
    RAPID_ACTING = "rapid_acting"
    LONG_ACTING = "long_acting"


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class GlucoseUnit(str, Enum):
    MG_DL = "mg/dL"
    MMOL_L = "mmol/L"


class RecordKind(str, Enum):
    """Stored collection names, one per record kind."""

    GLUCOSE = "glucose_readings"
    INSULIN = "insulin_injections"
    MEAL = "meals"


@dataclass(frozen=True)
class Record:
    """Shared shape of every stored record."""

    id: str
    timestamp: datetime  # creation instant, timezone-aware
    notes: str | None = None

    def _base_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "timestamp": self.timestamp.isoformat()}
        if self.notes is not None:
            out["notes"] = self.notes
        return out


@dataclass(frozen=True)
class GlucoseReading(Record):
    """One blood glucose measurement in mg/dL."""

    glucose: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {**self._base_dict(), "glucose": self.glucose}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GlucoseReading:
        return cls(
            id=str(data["id"]),
            timestamp=_parse_timestamp(data["timestamp"]),
            notes=data.get("notes"),
            glucose=coerce_number(data.get("glucose")),
        )


@dataclass(frozen=True)
class InsulinInjection(Record):
    """One insulin dose in units."""

    units: float = 0.0
    type: InsulinType = InsulinType.RAPID_ACTING

    def to_dict(self) -> dict[str, Any]:
        return {**self._base_dict(), "units": self.units, "type": self.type.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InsulinInjection:
        return cls(
            id=str(data["id"]),
            timestamp=_parse_timestamp(data["timestamp"]),
            notes=data.get("notes"),
            units=coerce_number(data.get("units")),
            type=InsulinType(data.get("type", InsulinType.RAPID_ACTING.value)),
        )


@dataclass(frozen=True)
class Meal(Record):
    """One meal with its carbohydrate estimate in grams."""

    name: str = ""
    carbs: float = 0.0
    type: MealType = MealType.SNACK

    def to_dict(self) -> dict[str, Any]:
        return {
            **self._base_dict(),
            "name": self.name,
            "carbs": self.carbs,
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Meal:
        return cls(
            id=str(data["id"]),
            timestamp=_parse_timestamp(data["timestamp"]),
            notes=data.get("notes"),
            name=str(data.get("name", "")),
            carbs=coerce_number(data.get("carbs")),
            type=MealType(data.get("type", MealType.SNACK.value)),
        )


AnyRecord = Union[GlucoseReading, InsulinInjection, Meal]

RECORD_CLASSES: dict[RecordKind, type[AnyRecord]] = {
    RecordKind.GLUCOSE: GlucoseReading,
    RecordKind.INSULIN: InsulinInjection,
    RecordKind.MEAL: Meal,
}

# Fields a user may change after creation (id and timestamp never change).
EDITABLE_FIELDS: dict[RecordKind, frozenset[str]] = {
    RecordKind.GLUCOSE: frozenset({"glucose", "notes"}),
    RecordKind.INSULIN: frozenset({"units", "type", "notes"}),
    RecordKind.MEAL: frozenset({"name", "carbs", "type", "notes"}),
}


@dataclass(frozen=True)
class TargetRange:
    """User's personal glucose target band (inclusive). Invariant: min < max."""

    min: float = 80
    max: float = 140

    def contains(self, glucose: float) -> bool:
        return self.min <= glucose <= self.max


@dataclass(frozen=True)
class UserSettings:
    name: str = ""
    glucose_unit: GlucoseUnit = GlucoseUnit.MG_DL
    target_range: TargetRange = field(default_factory=TargetRange)
    reminder_enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "glucoseUnit": self.glucose_unit.value,
            "targetRange": {"min": self.target_range.min, "max": self.target_range.max},
            "reminderEnabled": self.reminder_enabled,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> UserSettings:
        """Build settings from a stored dict, falling back to defaults per key."""
        defaults = cls()
        if not data:
            return defaults
        target = data.get("targetRange") or {}
        return cls(
            name=str(data.get("name", defaults.name)),
            glucose_unit=GlucoseUnit(data.get("glucoseUnit", defaults.glucose_unit.value)),
            target_range=TargetRange(
                min=target.get("min", defaults.target_range.min),
                max=target.get("max", defaults.target_range.max),
            ),
            reminder_enabled=bool(data.get("reminderEnabled", defaults.reminder_enabled)),
        )


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    # Accept the trailing "Z" written by JavaScript's toISOString().
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def coerce_number(value: Any) -> float:
    """Coerce a stored numeric field; missing or non-finite values become 0."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0
