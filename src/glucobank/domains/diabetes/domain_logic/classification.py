"""Glucose severity categories and value classification.

The category table defines four display buckets, but ``classify`` only
separates the two extremes: anything from 80 to 400 inclusive is reported as
Normal, so the High bucket is never returned. Time-in-range math uses the
user's own :class:`~glucobank.core.storage.models.TargetRange`, not these
buckets.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GlucoseCategory:
    """A named severity bucket used to pick a display color."""

    min: float
    max: float
    label: str
    color: str

    def to_dict(self) -> dict:
        return {"min": self.min, "max": self.max, "label": self.label, "color": self.color}


LOW = GlucoseCategory(min=0, max=80, label="Low", color="#2196F3")
NORMAL = GlucoseCategory(min=80, max=140, label="Normal", color="#4CAF50")
HIGH = GlucoseCategory(min=140, max=180, label="High", color="#FF9800")
VERY_HIGH = GlucoseCategory(min=180, max=400, label="Very High", color="#FF5252")

GLUCOSE_CATEGORIES = (LOW, NORMAL, HIGH, VERY_HIGH)


def classify(glucose: float) -> GlucoseCategory:
    """Map a glucose value (mg/dL) to its display category.

    Values below 80 are Low, values above 400 are Very High, everything else
    is Normal. High is unreachable here (see module docstring).
    """
    if glucose < LOW.max:
        return LOW
    if glucose > VERY_HIGH.max:
        return VERY_HIGH
    return NORMAL


def get_color(glucose: float) -> str:
    """Display color for a glucose value."""
    return classify(glucose).color
