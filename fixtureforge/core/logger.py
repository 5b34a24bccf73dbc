"""Structured logging configuration for fixture builds."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .config import get_config

#: Extra attributes copied into JSON payloads when present on a record.
EXTRA_KEYS = ("model", "identity", "story", "epoch")


class JSONFormatter(logging.Formatter):
    """Render log records as JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload, default=str)


def configure_logging(level: str | int | None = None, *, logger_name: str = "fixtureforge") -> None:
    """Send ``fixtureforge`` logs to stdout as JSON at ``level``.

    ``level`` defaults to the configured ``LOG_LEVEL``.

    Only the package logger is touched; the root logger (and pytest's
    capture handlers) are left alone.
    """

    if level is None:
        level = get_config().LOG_LEVEL
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    logger = logging.getLogger(logger_name)
    logger.handlers.clear()
    logger.addHandler(handler)
    level_value: int | str = level
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level_value = resolved if isinstance(resolved, int) else level.upper()
    logger.setLevel(level_value)


__all__ = ["JSONFormatter", "configure_logging", "EXTRA_KEYS"]
