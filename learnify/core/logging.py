"""JSON-lines logging for the API process.

Every record carries the request correlation id set by the HTTP middleware.
Auth code passes ``user_id`` and friends through ``extra=``; those keys are
copied to the top level of the JSON object when present.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

SERVICE_NAME = "learnify-api"

CORRELATION_ID_CTX: ContextVar[str] = ContextVar("correlation_id", default="")

_EXTRA_KEYS = ("user_id", "notification_id", "path", "method", "status_code", "deleted")

# Server loggers that otherwise install their own plain-text handlers.
_ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class JsonLogFormatter(logging.Formatter):
    """Render a record as one JSON object stamped with the record's own time."""

    def __init__(self, service: str = SERVICE_NAME) -> None:
        super().__init__()
        self._service = service

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "ts": created.isoformat(timespec="milliseconds"),
            "service": self._service,
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        correlation_id = CORRELATION_ID_CTX.get()
        if correlation_id:
            entry["correlation_id"] = correlation_id
        entry.update(
            {
                key: getattr(record, key)
                for key in _EXTRA_KEYS
                if getattr(record, key, None) not in (None, "")
            }
        )
        if record.exc_info:
            exc_type = record.exc_info[0]
            entry["error_type"] = exc_type.__name__ if exc_type else ""
            entry["traceback"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Route root and server loggers through a single stdout JSON handler."""
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonLogFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.getLevelNamesMapping().get(level.strip().upper(), logging.INFO))

    for name in _ROUTED_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True


def set_correlation_id(correlation_id: str) -> None:
    """Bind the correlation id for the current request context."""
    CORRELATION_ID_CTX.set(correlation_id)
