"""Tests for entry validation and display formatting."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from glucobank.core.storage.models import GlucoseUnit
from glucobank.domains.diabetes.domain_logic.validation import (
    convert_glucose,
    format_date,
    format_datetime,
    format_time,
    validate_carb_amount,
    validate_glucose_reading,
    validate_insulin_dose,
)


class TestValidators:
    @pytest.mark.parametrize("value, ok", [(20, True), (600, True), (19.9, False), (601, False)])
    def test_glucose(self, value, ok):
        assert validate_glucose_reading(value) is ok

    @pytest.mark.parametrize("value, ok", [(0.1, True), (100, True), (0, False), (100.5, False)])
    def test_insulin(self, value, ok):
        assert validate_insulin_dose(value) is ok

    @pytest.mark.parametrize("value, ok", [(0, True), (300, True), (-1, False), (301, False)])
    def test_carbs(self, value, ok):
        assert validate_carb_amount(value) is ok


class TestConvertGlucose:
    def test_mg_dl_passes_through(self):
        assert convert_glucose(140, GlucoseUnit.MG_DL) == 140

    def test_mmol_l_one_decimal(self):
        assert convert_glucose(180, "mmol/L") == 10.0
        assert convert_glucose(100, GlucoseUnit.MMOL_L) == 5.6


class TestFormatting:
    TS = datetime(2026, 3, 5, 14, 30, tzinfo=timezone.utc)

    def test_format_date(self):
        assert format_date(self.TS, timezone.utc) == "Mar 5, 2026"

    def test_format_time(self):
        assert format_time(self.TS, timezone.utc) == "02:30 PM"

    def test_format_datetime_in_other_zone(self):
        tz = timezone(timedelta(hours=-5))
        assert format_datetime(self.TS, tz) == "Mar 5, 2026 09:30 AM"
