"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """GlucoBank server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback: the diary holds personal health data and there is
    # no auth layer. Opt into `0.0.0.0` explicitly when you intend remote access.
    glucobank_host: str = "127.0.0.1"
    glucobank_port: int = 8001
    glucobank_log_level: str = "info"
    # If binding to non-loopback, refuse to start unless this is set true.
    glucobank_allow_insecure_bind: bool = False

    # Storage (record collections)
    db_path: str = "~/.glucobank/records.db"

    # Encryption (Fernet key). Empty -> ephemeral in-memory store.
    encryption_key: str = ""

    # IANA timezone name used for "today" and day bucketing. Empty -> system local.
    local_timezone: str = ""

    # Default directory for export_data when no directory is given.
    export_dir: str = "~/.glucobank/exports"


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
