"""Structured logging helpers for applications embedding :mod:`qsign`.

The library itself only emits DEBUG records with ``extra`` context (shape and
field names, never values). These helpers route them to JSON lines.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TextIO

from qsign.settings import QsignSettings, get_settings

__all__ = ["JsonFormatter", "configure_structured_logging"]

_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        }
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "context": context,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, sort_keys=True)


def configure_structured_logging(
    logger: logging.Logger | None = None,
    *,
    level: int | None = None,
    settings: QsignSettings | None = None,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Attach a JSON stream handler to ``logger``.

    Args:
        logger: Target logger; the ``qsign`` package logger by default.
        level: Explicit level. When omitted ``QSIGN_LOG_LEVEL`` is used.
        settings: Pre-instantiated settings consulted for the level.
        stream: Output stream; ``sys.stderr`` by default.

    Returns:
        The installed handler, so callers can remove it again.
    """

    target = logger or logging.getLogger("qsign")
    if level is None:
        level = (settings or get_settings()).log_level_number
    target.setLevel(level)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonFormatter())
    target.addHandler(handler)
    return handler
