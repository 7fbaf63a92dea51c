"""Tests for RecordRepository: collections, edits, settings, export/import."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from glucobank.core.storage.database import RecordDatabase
from glucobank.core.storage.encryption import BlobEncryptor
from glucobank.core.storage.models import (
    GlucoseUnit,
    InsulinType,
    MealType,
    RecordKind,
    TargetRange,
)
from glucobank.core.storage.repository import RecordRepository, RepositoryError

T0 = datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------

class TestAddAndRead:
    def test_empty_store_returns_empty_lists(self, record_repository):
        assert record_repository.get_glucose_readings() == []
        assert record_repository.get_insulin_injections() == []
        assert record_repository.get_meals() == []

    def test_add_glucose_reading(self, record_repository):
        reading = record_repository.add_glucose_reading(112, notes="before lunch")
        assert reading.id
        assert reading.timestamp.tzinfo is not None
        stored = record_repository.get_glucose_readings()
        assert stored == [reading]

    def test_new_records_are_prepended(self, record_repository):
        first = record_repository.add_glucose_reading(100, timestamp=T0)
        second = record_repository.add_glucose_reading(120, timestamp=T0 + timedelta(hours=1))
        ids = [r.id for r in record_repository.get_glucose_readings()]
        assert ids == [second.id, first.id]

    def test_ids_are_unique(self, record_repository):
        ids = {record_repository.add_glucose_reading(100).id for _ in range(5)}
        assert len(ids) == 5

    def test_add_insulin_and_meal(self, record_repository):
        injection = record_repository.add_insulin_injection(4, "long_acting")
        meal = record_repository.add_meal("Oatmeal", 45, MealType.BREAKFAST)
        assert record_repository.get_insulin_injections()[0].type is InsulinType.LONG_ACTING
        assert record_repository.get_meals() == [meal]
        assert injection.units == 4

    def test_invalid_insulin_type_raises(self, record_repository):
        with pytest.raises(ValueError):
            record_repository.add_insulin_injection(4, "medium")

    def test_reads_return_fresh_snapshots(self, record_repository):
        record_repository.add_glucose_reading(100)
        snapshot = record_repository.get_glucose_readings()
        snapshot.clear()
        assert len(record_repository.get_glucose_readings()) == 1

    def test_unknown_kind_raises(self, record_repository):
        with pytest.raises(RepositoryError, match="Unknown record kind"):
            record_repository.get_records("vitals")

    def test_data_is_encrypted_at_rest(self, record_repository, record_db):
        record_repository.add_meal("Secret pancakes", 60, "breakfast")
        raw = record_db.connection.execute(
            "SELECT value_enc FROM collections WHERE key = 'meals'"
        ).fetchone()[0]
        assert "pancakes" not in raw

    def test_persists_across_reopen(self, tmp_path):
        key = BlobEncryptor.generate_key()
        path = str(tmp_path / "records.db")
        with RecordDatabase(path) as db:
            RecordRepository(db, BlobEncryptor(key)).add_glucose_reading(150)
        with RecordDatabase(path) as db:
            readings = RecordRepository(db, BlobEncryptor(key)).get_glucose_readings()
        assert [r.glucose for r in readings] == [150]


class TestUpdateAndDelete:
    def test_update_changes_only_given_fields(self, record_repository):
        reading = record_repository.add_glucose_reading(112, notes="old", timestamp=T0)
        assert record_repository.update_record("glucose_readings", reading.id, glucose=130)
        updated = record_repository.get_glucose_readings()[0]
        assert updated.glucose == 130
        assert updated.notes == "old"
        assert updated.timestamp == T0

    def test_empty_notes_clear_the_field(self, record_repository):
        reading = record_repository.add_glucose_reading(112, notes="old", timestamp=T0)
        assert record_repository.update_record("glucose_readings", reading.id, notes="")
        assert record_repository.get_glucose_readings()[0].notes is None

    def test_update_none_values_are_ignored(self, record_repository):
        meal = record_repository.add_meal("Toast", 30, "breakfast")
        record_repository.update_record(RecordKind.MEAL, meal.id, carbs=None, name="Bagel")
        stored = record_repository.get_meals()[0]
        assert stored.name == "Bagel"
        assert stored.carbs == 30

    def test_update_coerces_type(self, record_repository):
        meal = record_repository.add_meal("Toast", 30, "breakfast")
        record_repository.update_record("meals", meal.id, type="snack")
        assert record_repository.get_meals()[0].type is MealType.SNACK

    def test_update_rejects_non_editable_field(self, record_repository):
        reading = record_repository.add_glucose_reading(112)
        with pytest.raises(RepositoryError, match="Cannot edit"):
            record_repository.update_record("glucose_readings", reading.id, units=3)

    def test_update_missing_record_returns_false(self, record_repository):
        assert record_repository.update_record("meals", "nope", name="x") is False

    def test_delete_record(self, record_repository):
        keep = record_repository.add_glucose_reading(100)
        drop = record_repository.add_glucose_reading(200)
        assert record_repository.delete_record("glucose_readings", drop.id) is True
        assert record_repository.get_glucose_readings() == [keep]

    def test_delete_missing_record_returns_false(self, record_repository):
        record_repository.add_glucose_reading(100)
        assert record_repository.delete_record("glucose_readings", "nope") is False
        assert len(record_repository.get_glucose_readings()) == 1

    def test_count_records(self, record_repository):
        record_repository.add_glucose_reading(100)
        record_repository.add_glucose_reading(110)
        record_repository.add_meal("Toast", 30, "breakfast")
        assert record_repository.count_records() == {
            "glucose_readings": 2,
            "insulin_injections": 0,
            "meals": 1,
        }


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class TestUserSettings:
    def test_defaults_when_unset(self, record_repository):
        settings = record_repository.get_user_settings()
        assert settings.glucose_unit is GlucoseUnit.MG_DL
        assert settings.target_range == TargetRange(80, 140)

    def test_update_merges_fields(self, record_repository):
        record_repository.update_user_settings(name="Sam")
        record_repository.update_user_settings(glucose_unit="mmol/L",
                                               target_range=TargetRange(70, 180))
        settings = record_repository.get_user_settings()
        assert settings.name == "Sam"
        assert settings.glucose_unit is GlucoseUnit.MMOL_L
        assert settings.target_range == TargetRange(70, 180)
        assert settings.reminder_enabled is True


# ---------------------------------------------------------------------------
# Export / import / clear
# ---------------------------------------------------------------------------

class TestExportImport:
    def test_export_document_shape(self, record_repository):
        record_repository.add_glucose_reading(112)
        record_repository.add_insulin_injection(3, "rapid_acting")
        document = record_repository.export_all()
        assert set(document) == {
            "glucoseReadings", "insulinInjections", "meals", "userSettings", "exportDate",
        }
        assert document["glucoseReadings"][0]["glucose"] == 112
        assert document["meals"] == []
        assert document["userSettings"]["glucoseUnit"] == "mg/dL"

    def test_import_replaces_everything(self, record_repository, record_db):
        record_repository.add_glucose_reading(112)
        record_repository.update_user_settings(name="Sam")
        document = record_repository.export_all()

        other = RecordRepository(record_db, BlobEncryptor(BlobEncryptor.generate_key()))
        other.clear_all()
        counts = other.import_all(document)

        assert counts == {"glucose_readings": 1, "insulin_injections": 0, "meals": 0}
        assert other.get_glucose_readings()[0].glucose == 112
        assert other.get_user_settings().name == "Sam"

    def test_import_sorts_newest_first(self, record_repository):
        older = (T0 - timedelta(days=1)).isoformat()
        newer = T0.isoformat()
        record_repository.import_all({
            "glucoseReadings": [
                {"id": "old", "timestamp": older, "glucose": 90},
                {"id": "new", "timestamp": newer, "glucose": 150},
            ],
        })
        assert [r.id for r in record_repository.get_glucose_readings()] == ["new", "old"]

    def test_malformed_import_leaves_store_untouched(self, record_repository):
        record_repository.add_glucose_reading(112)
        with pytest.raises(RepositoryError, match="Malformed"):
            record_repository.import_all({"glucoseReadings": [{"glucose": 100}]})
        assert len(record_repository.get_glucose_readings()) == 1

    def test_import_rejects_non_list_collection(self, record_repository):
        with pytest.raises(RepositoryError, match="must be a list"):
            record_repository.import_all({"meals": {"id": "m"}})

    def test_import_rejects_non_object(self, record_repository):
        with pytest.raises(RepositoryError, match="JSON object"):
            record_repository.import_all([])  # type: ignore[arg-type]

    def test_clear_all(self, record_repository):
        record_repository.add_glucose_reading(112)
        record_repository.add_meal("Toast", 30, "breakfast")
        record_repository.update_user_settings(name="Sam")
        assert record_repository.clear_all() == 2
        assert record_repository.get_glucose_readings() == []
        assert record_repository.get_user_settings().name == ""
