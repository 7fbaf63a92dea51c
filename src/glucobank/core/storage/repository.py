"""Record repository: whole-collection load/save for the encrypted record store.

Each record kind lives in one flat, newest-first collection stored as a single
encrypted JSON blob (a key-value layout). Every read returns a fresh snapshot;
every write replaces the whole collection.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from glucobank.core.storage.database import RecordDatabase
from glucobank.core.storage.encryption import BlobEncryptor
from glucobank.core.storage.models import (
    EDITABLE_FIELDS,
    RECORD_CLASSES,
    AnyRecord,
    GlucoseReading,
    GlucoseUnit,
    InsulinInjection,
    InsulinType,
    Meal,
    MealType,
    RecordKind,
    TargetRange,
    UserSettings,
)

logger = logging.getLogger(__name__)

USER_SETTINGS_KEY = "user_settings"

# Top-level keys of the portable export document.
_EXPORT_KEYS: dict[RecordKind, str] = {
    RecordKind.GLUCOSE: "glucoseReadings",
    RecordKind.INSULIN: "insulinInjections",
    RecordKind.MEAL: "meals",
}


class RepositoryError(Exception):
    """Raised when repository operations fail."""


class RecordRepository:
    """Collection-level repository for glucose, insulin and meal records.

    Usage::

        db = RecordDatabase(":memory:")
        db.initialize()
        repo = RecordRepository(db, BlobEncryptor(key="..."))

        reading = repo.add_glucose_reading(112, notes="before lunch")
        readings = repo.get_glucose_readings()  # newest first
    """

    def __init__(self, database: RecordDatabase, encryptor: BlobEncryptor) -> None:
        self._db = database
        self._enc = encryptor

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    # ------------------------------------------------------------------
    # Raw key-value access
    # ------------------------------------------------------------------

    def _load(self, key: str) -> Any:
        row = self._db.connection.execute(
            "SELECT value_enc FROM collections WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        return self._enc.decrypt(row["value_enc"])

    def _store(self, key: str, value: Any, *, item_count: int, commit: bool = True) -> None:
        conn = self._db.connection
        conn.execute(
            """INSERT INTO collections (key, value_enc, item_count, updated_at)
               VALUES (?, ?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET
                   value_enc = excluded.value_enc,
                   item_count = excluded.item_count,
                   updated_at = excluded.updated_at""",
            (key, self._enc.encrypt(value), item_count, self._now().isoformat()),
        )
        if commit:
            conn.commit()

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def get_records(self, kind: RecordKind) -> list[AnyRecord]:
        """Return a newest-first snapshot of one collection."""
        kind = _coerce_kind(kind)
        raw = self._load(kind.value) or []
        record_cls = RECORD_CLASSES[kind]
        return [record_cls.from_dict(item) for item in raw]

    def _save_records(
        self, kind: RecordKind, records: list[AnyRecord], *, commit: bool = True
    ) -> None:
        self._store(
            kind.value,
            [r.to_dict() for r in records],
            item_count=len(records),
            commit=commit,
        )

    def get_glucose_readings(self) -> list[GlucoseReading]:
        return self.get_records(RecordKind.GLUCOSE)  # type: ignore[return-value]

    def get_insulin_injections(self) -> list[InsulinInjection]:
        return self.get_records(RecordKind.INSULIN)  # type: ignore[return-value]

    def get_meals(self) -> list[Meal]:
        return self.get_records(RecordKind.MEAL)  # type: ignore[return-value]

    def _prepend(self, kind: RecordKind, record: AnyRecord) -> AnyRecord:
        records = self.get_records(kind)
        records.insert(0, record)
        self._save_records(kind, records)
        logger.info("Saved %s record %s", kind.value, record.id)
        return record

    def add_glucose_reading(
        self,
        glucose: float,
        notes: str | None = None,
        *,
        timestamp: datetime | None = None,
    ) -> GlucoseReading:
        """Create and persist a glucose reading at the front of the collection.

        Args:
            glucose: Value in mg/dL. Range validation is the caller's job.
            notes: Optional free-text annotation.
            timestamp: Override for the creation instant (backfills, tests).
        """
        reading = GlucoseReading(
            id=self._new_id(),
            timestamp=timestamp or self._now(),
            notes=notes,
            glucose=glucose,
        )
        return self._prepend(RecordKind.GLUCOSE, reading)  # type: ignore[return-value]

    def add_insulin_injection(
        self,
        units: float,
        insulin_type: InsulinType | str,
        notes: str | None = None,
        *,
        timestamp: datetime | None = None,
    ) -> InsulinInjection:
        """Create and persist an insulin injection."""
        injection = InsulinInjection(
            id=self._new_id(),
            timestamp=timestamp or self._now(),
            notes=notes,
            units=units,
            type=InsulinType(insulin_type),
        )
        return self._prepend(RecordKind.INSULIN, injection)  # type: ignore[return-value]

    def add_meal(
        self,
        name: str,
        carbs: float,
        meal_type: MealType | str,
        notes: str | None = None,
        *,
        timestamp: datetime | None = None,
    ) -> Meal:
        """Create and persist a meal."""
        meal = Meal(
            id=self._new_id(),
            timestamp=timestamp or self._now(),
            notes=notes,
            name=name,
            carbs=carbs,
            type=MealType(meal_type),
        )
        return self._prepend(RecordKind.MEAL, meal)  # type: ignore[return-value]

    def update_record(self, kind: RecordKind | str, record_id: str, **changes: Any) -> bool:
        """Apply field changes to one stored record.

        Only the kind's editable fields may change; ``None`` values are
        ignored so callers can pass optional arguments straight through.
        Empty ``notes`` clear the record's notes.

        Returns:
            True if the record was found and saved, False otherwise.

        Raises:
            RepositoryError: If a change names a non-editable field.
        """
        kind = _coerce_kind(kind)
        unknown = set(changes) - EDITABLE_FIELDS[kind]
        if unknown:
            raise RepositoryError(
                f"Cannot edit {sorted(unknown)} on {kind.value}. "
                f"Editable: {sorted(EDITABLE_FIELDS[kind])}"
            )
        updates = {k: v for k, v in changes.items() if v is not None}
        if "notes" in updates:
            updates["notes"] = updates["notes"] or None
        if "type" in updates:
            updates["type"] = (
                InsulinType(updates["type"]) if kind is RecordKind.INSULIN
                else MealType(updates["type"])
            )

        records = self.get_records(kind)
        for index, record in enumerate(records):
            if record.id == record_id:
                records[index] = dataclasses.replace(record, **updates)
                self._save_records(kind, records)
                logger.info("Updated %s record %s (%s)", kind.value, record_id, sorted(updates))
                return True
        return False

    def delete_record(self, kind: RecordKind | str, record_id: str) -> bool:
        """Delete one record by id.

        Returns:
            True if a record was found and deleted, False otherwise.
        """
        kind = _coerce_kind(kind)
        records = self.get_records(kind)
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) == len(records):
            return False
        self._save_records(kind, remaining)
        logger.info("Deleted %s record %s", kind.value, record_id)
        return True

    def count_records(self) -> dict[str, int]:
        """Return the number of stored records per collection."""
        rows = self._db.connection.execute(
            "SELECT key, item_count FROM collections"
        ).fetchall()
        stored = {row["key"]: row["item_count"] for row in rows}
        return {kind.value: stored.get(kind.value, 0) for kind in RecordKind}

    # ------------------------------------------------------------------
    # User settings
    # ------------------------------------------------------------------

    def get_user_settings(self) -> UserSettings:
        """Return stored settings, with defaults for anything unset."""
        return UserSettings.from_dict(self._load(USER_SETTINGS_KEY))

    def update_user_settings(
        self,
        *,
        name: str | None = None,
        glucose_unit: GlucoseUnit | str | None = None,
        target_range: TargetRange | None = None,
        reminder_enabled: bool | None = None,
    ) -> UserSettings:
        """Merge the given fields over the current settings and persist them."""
        current = self.get_user_settings()
        updated = UserSettings(
            name=current.name if name is None else name,
            glucose_unit=(
                current.glucose_unit if glucose_unit is None else GlucoseUnit(glucose_unit)
            ),
            target_range=current.target_range if target_range is None else target_range,
            reminder_enabled=(
                current.reminder_enabled if reminder_enabled is None else reminder_enabled
            ),
        )
        self._store(USER_SETTINGS_KEY, updated.to_dict(), item_count=1)
        logger.info("Updated user settings")
        return updated

    # ------------------------------------------------------------------
    # Export / import / clear
    # ------------------------------------------------------------------

    def export_all(self) -> dict[str, Any]:
        """Return every collection plus settings as a portable JSON document."""
        document: dict[str, Any] = {
            _EXPORT_KEYS[kind]: [r.to_dict() for r in self.get_records(kind)]
            for kind in RecordKind
        }
        document["userSettings"] = self.get_user_settings().to_dict()
        document["exportDate"] = self._now().isoformat()
        return document

    def import_all(self, document: dict[str, Any]) -> dict[str, int]:
        """Replace all stored data with the contents of an export document.

        The document is fully parsed before anything is written, so a
        malformed document leaves the store untouched.

        Returns:
            Number of imported records per collection.

        Raises:
            RepositoryError: If the document is malformed.
        """
        if not isinstance(document, dict):
            raise RepositoryError("Import document must be a JSON object")

        parsed: dict[RecordKind, list[AnyRecord]] = {}
        try:
            for kind in RecordKind:
                items = document.get(_EXPORT_KEYS[kind]) or []
                if not isinstance(items, list):
                    raise RepositoryError(f"{_EXPORT_KEYS[kind]} must be a list")
                records = [RECORD_CLASSES[kind].from_dict(item) for item in items]
                records.sort(key=lambda r: r.timestamp, reverse=True)
                parsed[kind] = records
            settings = UserSettings.from_dict(document.get("userSettings"))
        except RepositoryError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise RepositoryError(f"Malformed import document: {exc}") from exc

        conn = self._db.connection
        for kind, records in parsed.items():
            self._save_records(kind, records, commit=False)
        self._store(USER_SETTINGS_KEY, settings.to_dict(), item_count=1, commit=False)
        conn.commit()

        counts = {kind.value: len(records) for kind, records in parsed.items()}
        logger.info("Imported records: %s", counts)
        return counts

    def clear_all(self) -> int:
        """Delete every collection and the user settings.

        Returns:
            Total number of records removed.
        """
        total = sum(self.count_records().values())
        conn = self._db.connection
        conn.execute("DELETE FROM collections")
        conn.commit()
        logger.warning("Cleared ALL data: %d records removed", total)
        return total


def _coerce_kind(kind: RecordKind | str) -> RecordKind:
    try:
        return RecordKind(kind)
    except ValueError:
        valid = [k.value for k in RecordKind]
        raise RepositoryError(f"Unknown record kind: {kind!r}. Valid: {valid}") from None
