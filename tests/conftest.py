"""Shared test fixtures for GlucoBank tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("LOCAL_TIMEZONE", "")
    monkeypatch.setenv("DB_PATH", str(tmp_path / "records.db"))
    monkeypatch.setenv("EXPORT_DIR", str(tmp_path / "exports"))

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def record_db():
    """Create an in-memory RecordDatabase for testing."""
    from glucobank.core.storage.database import RecordDatabase

    db = RecordDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def blob_encryptor():
    """Create a BlobEncryptor with a fresh test key."""
    from glucobank.core.storage.encryption import BlobEncryptor

    return BlobEncryptor(BlobEncryptor.generate_key())


@pytest.fixture
def record_repository(record_db, blob_encryptor):
    """Create a RecordRepository backed by in-memory SQLite."""
    from glucobank.core.storage.repository import RecordRepository

    return RecordRepository(record_db, blob_encryptor)


@pytest.fixture
def audit_logger(record_db):
    """Create an AuditLogger backed by in-memory SQLite."""
    from glucobank.core.audit.logger import AuditLogger

    return AuditLogger(record_db)
