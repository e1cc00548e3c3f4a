from __future__ import annotations

import json
import logging
import sys

from learnify.core.logging import (
    CORRELATION_ID_CTX,
    JsonLogFormatter,
    set_correlation_id,
    setup_logging,
)


def _record(message: str, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="learnify.auth.service",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_event_with_extras_and_correlation_id() -> None:
    token = CORRELATION_ID_CTX.set("")
    try:
        set_correlation_id("req-42")
        line = JsonLogFormatter().format(_record("user_logged_in", user_id="u1", path=""))
    finally:
        CORRELATION_ID_CTX.reset(token)

    entry = json.loads(line)
    assert entry["event"] == "user_logged_in"
    assert entry["level"] == "info"
    assert entry["service"] == "learnify-api"
    assert entry["correlation_id"] == "req-42"
    assert entry["user_id"] == "u1"
    assert "path" not in entry


def test_formatter_records_exception_type() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record("unexpected_exception")
        record.exc_info = sys.exc_info()

    entry = json.loads(JsonLogFormatter().format(record))

    assert entry["error_type"] == "RuntimeError"
    assert "boom" in entry["traceback"]


def test_setup_logging_routes_server_loggers_to_root() -> None:
    setup_logging("debug")

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert isinstance(root.handlers[0].formatter, JsonLogFormatter)
    assert logging.getLogger("uvicorn.access").handlers == []
    assert logging.getLogger("uvicorn.access").propagate is True
    setup_logging("INFO")
