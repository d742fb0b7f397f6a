"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from app.core.config import LogSettings
from app.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    configure_logging,
    set_request_id,
)


@pytest.fixture
def capture():
    """Logger wired to an in-memory JSON handler with redaction."""
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def test_store_credentials_are_redacted(capture):
    logger, stream = capture

    logger.info(
        "store_event",
        extra={
            "redis_token": "AXXsecret",
            "authorization": "Bearer AXXsecret",
            "backend": "upstash",
        },
    )

    output = stream.getvalue()
    assert "AXXsecret" not in output
    assert "[REDACTED]" in output
    assert "upstash" in output


def test_raw_client_addresses_are_redacted(capture):
    logger, stream = capture

    logger.warning(
        "rate_limit.denied",
        extra={
            "identifier": "203.0.113.9",
            "key_hash": "abc123",
            "retry_after_s": 4,
        },
    )

    record = json.loads(stream.getvalue())
    assert record["identifier"] == "[REDACTED]"
    assert record["key_hash"] == "abc123"
    assert record["retry_after_s"] == 4
    assert record["level"] == "warning"


def test_nested_headers_are_redacted(capture):
    logger, stream = capture

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "CF-Connecting-IP": "198.51.100.7",
                "user-agent": "pytest",
            },
        },
    )

    output = stream.getvalue()
    assert "198.51.100.7" not in output
    assert "pytest" in output


def test_request_id_comes_from_context(capture):
    logger, stream = capture
    set_request_id("req-123")

    logger.info("safe_event", extra={"route": "/todos/{todo_id}", "status": 200})

    record = json.loads(stream.getvalue())
    assert record["request_id"] == "req-123"
    assert record["route"] == "/todos/{todo_id}"
    assert "[REDACTED]" not in stream.getvalue()


def test_record_attributes_stay_out_of_the_payload(capture):
    logger, stream = capture

    try:
        raise RuntimeError("store exploded")
    except RuntimeError:
        logger.exception("counter_store.unavailable", extra={"attempts": 2})

    record = json.loads(stream.getvalue())
    assert record["message"] == "counter_store.unavailable"
    assert record["attempts"] == 2
    assert "RuntimeError: store exploded" in record["exc_info"]
    for attr in ("lineno", "pathname", "thread", "args", "msg", "taskName"):
        assert attr not in record


def test_configure_logging_installs_single_stdout_json_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level

    try:
        configure_logging(LogSettings(level="debug", format="json"))

        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler.formatter, JsonFormatter)
        assert any(isinstance(f, SensitiveDataFilter) for f in handler.filters)
        assert root.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
