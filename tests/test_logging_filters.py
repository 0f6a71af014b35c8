"""Tests for log formatting and redaction of call data."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from callgate.adapters.scheduler.manual import ManualScheduler
from callgate.core import logging as callgate_logging
from callgate.core.config import LogSettings
from callgate.core.logging import JsonFormatter, SensitiveDataFilter, configure_logging
from callgate.services.rate_limited import LockThrottler


def _capture(logger_name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_call_arguments_are_redacted():
    """Arguments of wrapped calls never reach the output."""

    logger, stream = _capture("test_call_redaction")

    logger.debug(
        "gate.executed",
        extra={
            "gate": "search",
            "call_args": ("alice@example.com",),
            "call_kwargs": {"token": "sk-secret"},
        },
    )

    output = stream.getvalue()
    assert "alice@example.com" not in output
    assert "sk-secret" not in output
    assert "[REDACTED]" in output
    assert "search" in output


def test_safe_fields_pass_through():
    logger, stream = _capture("test_safe_fields")

    logger.info("gate.dropped", extra={"gate": "on_scroll", "reason": "locked", "at": 1.5})

    payload = json.loads(stream.getvalue())
    assert payload["message"] == "gate.dropped"
    assert payload["level"] == "info"
    assert payload["reason"] == "locked"
    assert payload["at"] == 1.5
    assert "[REDACTED]" not in stream.getvalue()


def test_nested_sensitive_fields_are_redacted():
    logger, stream = _capture("test_nested")

    logger.info(
        "nested_event",
        extra={"payload": {"password": "hunter2", "count": 5}},
    )

    output = stream.getvalue()
    assert "hunter2" not in output
    assert '"count": 5' in output


def test_wrapper_execution_log_hides_arguments():
    logger, stream = _capture("callgate.services.rate_limited")
    scheduler = ManualScheduler()
    throttled = LockThrottler(lambda query: None, 0.25, scheduler=scheduler)

    try:
        throttled("private search terms")
        throttled("dropped")
    finally:
        logger.handlers.clear()
        logger.propagate = True

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert [line["message"] for line in lines] == ["gate.executed", "gate.dropped"]
    assert lines[0]["call_args"] == "[REDACTED]"
    assert "private search terms" not in stream.getvalue()


def test_exception_info_is_included():
    logger, stream = _capture("test_exc")

    try:
        raise RuntimeError("handler failed")
    except RuntimeError:
        logger.exception("gate.failed")

    payload = json.loads(stream.getvalue())
    assert "RuntimeError: handler failed" in payload["exception"]


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_logging_installs_json_handler(restore_root_logger):
    configure_logging(LogSettings(level="warning", format="json", output="stdout"))

    root = restore_root_logger
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert any(isinstance(f, SensitiveDataFilter) for f in root.handlers[0].filters)


def test_configure_logging_plain_file_output(restore_root_logger, tmp_path):
    log_file = tmp_path / "logs" / "callgate.log"

    configure_logging(
        LogSettings(format="plain", output="file", file_path=str(log_file), max_bytes=1024)
    )
    logging.getLogger("callgate.test").warning("gate.disposed")
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert log_file.is_file()
    assert "gate.disposed" in log_file.read_text(encoding="utf-8")
    handler = restore_root_logger.handlers[0]
    assert isinstance(handler, callgate_logging.RotatingFileHandler)
    handler.close()


def test_default_keys_cover_call_data_and_credentials():
    assert {"call_args", "call_kwargs", "argument", "result", "value"} <= callgate_logging.SENSITIVE_KEYS_DEFAULT
    assert {"token", "secret", "password"} <= callgate_logging.SENSITIVE_KEYS_DEFAULT
    assert "api_key" not in callgate_logging.SENSITIVE_KEYS_DEFAULT
    assert "authorization" not in callgate_logging.SENSITIVE_KEYS_DEFAULT
