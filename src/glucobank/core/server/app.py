"""GlucoBank diabetes diary MCP server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastmcp import FastMCP

from glucobank.core.audit.logger import AuditLogger
from glucobank.core.config.settings import get_settings
from glucobank.core.storage.database import RecordDatabase
from glucobank.core.storage.encryption import BlobEncryptor, EncryptionError
from glucobank.core.storage.repository import RecordRepository
from glucobank.domains.diabetes.domain_logic.glucose_analyzer import GlucoseAnalyzer
from glucobank.domains.diabetes.prompts.diary_prompts import register_diary_prompts
from glucobank.domains.diabetes.resources.reference import register_reference_resources
from glucobank.domains.diabetes.tools.audit_tools import register_audit_tools
from glucobank.domains.diabetes.tools.data_management_tools import (
    register_data_management_tools,
)
from glucobank.domains.diabetes.tools.entry_tools import register_entry_tools
from glucobank.domains.diabetes.tools.settings_tools import register_settings_tools
from glucobank.domains.diabetes.tools.stats_tools import register_stats_tools

logger = logging.getLogger(__name__)

SERVER_VERSION = "0.1.0"


def _resolve_timezone(name: str) -> tzinfo | None:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        logger.warning("Unknown LOCAL_TIMEZONE %r; using system local time", name)
        return None


def _open_storage(db_path: str, encryption_key: str) -> tuple[RecordDatabase, RecordRepository]:
    """Open the encrypted record store, or an ephemeral one without a key."""
    if encryption_key:
        try:
            encryptor = BlobEncryptor(encryption_key)
        except EncryptionError as exc:
            logger.error("Failed to initialize storage: %s", exc)
            raise
        database = RecordDatabase(db_path)
    else:
        logger.warning(
            "No ENCRYPTION_KEY configured; using an in-memory store. "
            "Entries will be lost when the server stops."
        )
        encryptor = BlobEncryptor(BlobEncryptor.generate_key())
        database = RecordDatabase(":memory:")

    database.initialize()
    logger.info(
        "Record store initialized: %s (schema v%d)",
        db_path if encryption_key else ":memory:",
        database.get_schema_version(),
    )
    return database, RecordRepository(database, encryptor)


def create_app(
    *,
    database_override: RecordDatabase | None = None,
    repository_override: RecordRepository | None = None,
    timezone_override: tzinfo | None = None,
) -> FastMCP:
    """Create and configure the GlucoBank MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Opens the encrypted record store (or uses the overrides)
    3. Creates the audit logger and the glucose analyzer
    4. Registers all tools, resources, and prompts

    ``database_override`` and ``repository_override`` must be given together.
    """
    settings = get_settings()

    server = FastMCP(
        "GlucoBank Diabetes Diary",
        instructions=(
            "Personal diabetes diary. Log glucose readings, insulin injections "
            "and meals, then review daily overviews, period history with daily "
            "chart series, time in range, and plain-language insights."
        ),
    )

    # --- Storage ---
    if (database_override is None) != (repository_override is None):
        raise ValueError("database_override and repository_override must be given together")
    if database_override is not None and repository_override is not None:
        database, repository = database_override, repository_override
    else:
        database, repository = _open_storage(settings.db_path, settings.encryption_key)

    audit_logger = AuditLogger(database)
    tz = timezone_override or _resolve_timezone(settings.local_timezone)
    analyzer = GlucoseAnalyzer(repository, tz=tz)

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": "GlucoBank Diabetes Diary",
            "version": SERVER_VERSION,
            "schema_version": database.get_schema_version(),
            "persistent": bool(settings.encryption_key) or database_override is not None,
            "records_stored": repository.count_records(),
        }

    register_entry_tools(server, repository, audit_logger, tz=tz)
    register_stats_tools(server, analyzer, audit_logger)
    register_settings_tools(server, repository, audit_logger)
    register_data_management_tools(
        server, repository, audit_logger, default_export_dir=settings.export_dir
    )
    register_audit_tools(server, audit_logger)
    logger.info("Diary tools registered")

    # --- Register resources and prompts ---
    register_reference_resources(server)
    register_diary_prompts(server)

    return server


# Module-level instance for FastMCP discovery ("...app.py:mcp").
# Lazy: only created when this attribute is accessed (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
