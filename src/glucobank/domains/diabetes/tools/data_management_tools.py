"""MCP tools for exporting, importing and clearing diary data.

Export produces one portable JSON document
(``glucoseReadings, insulinInjections, meals, userSettings, exportDate``).
Import and clear replace or remove everything and are audit-logged.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from glucobank.core.audit.logger import AuditLogger
    from glucobank.core.storage.repository import RecordRepository

from glucobank.core.storage.repository import RepositoryError

logger = logging.getLogger(__name__)

_RECORD_KEYS = ("glucoseReadings", "insulinInjections", "meals")


def export_filename(export_date: datetime) -> str:
    """``diabetes_data_YYYY-MM-DD.json``."""
    return f"diabetes_data_{export_date.date().isoformat()}.json"


def register_data_management_tools(
    mcp: FastMCP,
    repository: RecordRepository,
    audit_logger: AuditLogger | None = None,
    default_export_dir: str = "",
) -> None:
    """Register data export, import and deletion tools on the MCP server."""

    @mcp.tool
    async def export_data(
        ctx: Context,
        write_file: bool = False,
        directory: str = "",
    ) -> str:
        """Export every glucose reading, insulin injection, meal and your settings.

        Args:
            write_file: Also save the export as a JSON file.
            directory: Folder for the file. Defaults to the configured export folder.
        """
        document = repository.export_all()
        counts = {key: len(document[key]) for key in _RECORD_KEYS}

        result: dict = {"status": "exported", "record_counts": counts}
        if write_file:
            target_dir = Path(directory or default_export_dir).expanduser()
            target_dir.mkdir(parents=True, exist_ok=True)
            path = target_dir / export_filename(
                datetime.fromisoformat(document["exportDate"])
            )
            path.write_text(json.dumps(document, indent=2), encoding="utf-8")
            logger.info("Exported diary data to %s", path)
            result["file"] = str(path)
        else:
            result["data"] = document

        if audit_logger is not None:
            audit_logger.log_data_transfer("data_export", tool_name="export_data", counts=counts)
        return json.dumps(result, indent=2)

    @mcp.tool
    async def import_data(
        ctx: Context,
        document_json: str = "",
        file_path: str = "",
        confirm: str = "",
    ) -> str:
        """Replace ALL stored data with a previously exported document.

        Args:
            document_json: The export document as a JSON string.
            file_path: Path to an export file (used when document_json is empty).
            confirm: Must be exactly 'REPLACE_ALL' to proceed. Safety gate.
        """
        if confirm != "REPLACE_ALL":
            return json.dumps({
                "status": "cancelled",
                "message": (
                    "Importing replaces every stored entry and your settings. "
                    "Call this tool again with confirm='REPLACE_ALL' to proceed."
                ),
            })

        try:
            if document_json:
                document = json.loads(document_json)
            elif file_path:
                document = json.loads(Path(file_path).expanduser().read_text(encoding="utf-8"))
            else:
                return json.dumps({
                    "status": "error",
                    "message": "Provide document_json or file_path.",
                })
        except (OSError, json.JSONDecodeError) as exc:
            return json.dumps({"status": "error", "message": f"Could not read document: {exc}"})

        try:
            counts = repository.import_all(document)
        except RepositoryError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        if audit_logger is not None:
            audit_logger.log_data_transfer("data_import", tool_name="import_data", counts=counts)
        return json.dumps({"status": "imported", "record_counts": counts})

    @mcp.tool
    async def clear_all_data(
        ctx: Context,
        confirm: str = "",
    ) -> str:
        """Permanently delete ALL diary entries and reset settings to defaults.

        This cannot be undone.

        Args:
            confirm: Must be exactly 'DELETE_ALL' to proceed. Safety gate.
        """
        if confirm != "DELETE_ALL":
            return json.dumps({
                "status": "cancelled",
                "message": (
                    "To clear all data, call this tool with confirm='DELETE_ALL'. "
                    "This action cannot be undone."
                ),
            })

        count = repository.clear_all()
        if audit_logger is not None:
            audit_logger.log_data_delete(
                tool_name="clear_all_data",
                count=count,
                metadata={"confirmed": True},
            )
        return json.dumps({
            "status": "all_deleted",
            "records_deleted": count,
            "settings": repository.get_user_settings().to_dict(),
            "message": "All data has been permanently deleted.",
        })
