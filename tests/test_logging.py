"""Tests for the structured logging system (lease_registry/logging_config.py)."""

import json
import logging
from datetime import datetime, timedelta, timezone
from io import StringIO
from uuid import uuid4

import pytest

from lease_registry.domain.dtos import LeaseState
from lease_registry.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    """Parse all JSON log lines from a stream."""
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "lease_registry.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("lease_offered", extra={"duration": 2, "tenant": "0xbob"})

        record = _parse_log(stream)
        assert record["duration"] == 2
        assert record["tenant"] == "0xbob"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        LogContext.set(correlation_id="abc-123", operation="sign_lease")
        logger.info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["operation"] == "sign_lease"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_registry_exception_code_extracted(self):
        """Registry exceptions carry a .code attribute and their context."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        from lease_registry.exceptions import NoTerminationRequestError

        try:
            raise NoTerminationRequestError(7)
        except NoTerminationRequestError:
            logger.error("termination_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "NO_TERMINATION_REQUEST"
        assert record["exc_type"] == "NoTerminationRequestError"
        assert record["exc_property_index"] == 7

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "actor" not in record

    def test_special_types_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        uid = uuid4()
        when = datetime(2024, 1, 1, tzinfo=timezone.utc)
        logger.info(
            "typed",
            extra={
                "entry_id": uid,
                "when": when,
                "period": timedelta(days=1),
                "state": LeaseState.ACTIVE,
            },
        )

        record = _parse_log(stream)
        assert record["entry_id"] == str(uid)
        assert record["when"] == when.isoformat()
        assert record["period"] == 86400.0
        assert record["state"] == "active"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # default level is INFO, so the debug line is dropped
        assert len(logs) == 2
        for record in logs:
            assert "ts" in record
            assert "level" in record
            assert "logger" in record
            assert "message" in record


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", actor="0xalice")
        ctx = LogContext.get_all()
        assert ctx == {"correlation_id": "x", "actor": "0xalice"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner"):
            assert LogContext.get_all()["correlation_id"] == "inner"
        assert LogContext.get_all()["correlation_id"] == "outer"

    def test_bind_restores_none(self):
        """bind() restores to None if there was no previous value."""
        assert "correlation_id" not in LogContext.get_all()
        with LogContext.bind(correlation_id="temp"):
            assert LogContext.get_all()["correlation_id"] == "temp"
        assert "correlation_id" not in LogContext.get_all()

    def test_bind_skips_none_values(self):
        with LogContext.bind(operation="add_property", actor=None):
            assert LogContext.get_all() == {"operation": "add_property"}

    def test_all_fields(self):
        LogContext.set(
            correlation_id="c",
            actor="a",
            operation="o",
            property_index="3",
        )
        ctx = LogContext.get_all()
        assert len(ctx) == 4
        assert ctx["property_index"] == "3"

    def test_int_property_index_stored_as_string(self):
        with LogContext.bind(property_index=0):
            assert LogContext.get_all() == {"property_index": "0"}

    def test_bind_rejects_unknown_field(self):
        with pytest.raises(TypeError, match="tenant"):
            with LogContext.bind(tenant="0xbob"):
                pass
        assert LogContext.get_all() == {}


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        root = logging.getLogger("lease_registry")
        assert len(root.handlers) == 1

    def test_get_logger_returns_child(self):
        logger = get_logger("services.lease")
        assert logger.name == "lease_registry.services.lease"

    def test_logger_hierarchy(self):
        """Child loggers inherit the lease_registry root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        child = get_logger("deep.nested.module")
        child.debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "lease_registry.deep.nested.module"
