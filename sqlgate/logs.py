"""File-only logging setup.

stdout carries MCP protocol frames, so every record (ours, asyncpg's and the
MCP SDK's) is routed to a size-capped rotating file instead of a console.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from .config import GatewaySettings

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def configure_logging(settings: GatewaySettings) -> logging.Handler:
    """Attach the rotating file handler to the root logger and return it."""

    handler: logging.Handler
    try:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            settings.log_file,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
    except OSError:
        # Unwritable log location: stay silent rather than fall back to stdio.
        handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    level = logging.getLevelName(settings.log_level)
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level if isinstance(level, int) else logging.INFO)
    return handler


__all__ = ["LOG_FORMAT", "configure_logging"]
