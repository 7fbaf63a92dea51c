"""GlucoBank server entry point: ``python -m glucobank.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from glucobank.core.config.settings import get_settings
from glucobank.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the GlucoBank MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.glucobank_log_level.upper(), logging.INFO)
    )

    logger = logging.getLogger(__name__)
    if not settings.glucobank_allow_insecure_bind and not _is_loopback_host(
        settings.glucobank_host
    ):
        raise RuntimeError(
            "Refusing to bind GlucoBank to a non-loopback host without an auth layer. "
            "Set GLUCOBANK_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info(
        "Starting GlucoBank diary server on %s:%d",
        settings.glucobank_host,
        settings.glucobank_port,
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.glucobank_host,
        port=settings.glucobank_port,
    )


if __name__ == "__main__":
    run()
