"""JSON console logging for the gateway.

Besides the message, each event carries the forecast context attached through
``extra=``: which provider a line is about, the failure kind, the upstream
status and the retry attempt. Every string value passes through redaction.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from .redaction import sanitize_for_logging, sanitize_text

CONTEXT_FIELDS = ("provider", "kind", "status_code", "attempt", "outcomes", "matches")


def provider_context(
    provider: Any,
    kind: Any = None,
    status_code: int | None = None,
    **fields: Any,
) -> dict[str, Any]:
    """Build an ``extra=`` mapping for a provider-scoped log line."""
    context: dict[str, Any] = {"provider": str(provider)}
    if kind is not None:
        context["kind"] = str(kind)
    if status_code is not None:
        context["status_code"] = status_code
    context.update(fields)
    return context


class JsonConsoleFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message and forecast context."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize_text(record.getMessage()),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                event[field] = sanitize_for_logging(value)
        if record.exc_info:
            event["exception"] = sanitize_text(self.formatException(record.exc_info))
        return json.dumps(event, default=str)


def setup_logger(name: str = "forecast_gateway", level: int | str = logging.INFO) -> logging.Logger:
    """Return the gateway logger with a single JSON stderr handler attached."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    if not any(isinstance(handler.formatter, JsonConsoleFormatter) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(JsonConsoleFormatter())
        logger.addHandler(handler)
    return logger
