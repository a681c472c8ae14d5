"""Tests for JSON log formatter.

Tests verify that logs are formatted with:
- Required schema fields (timestamp, level, service, trace_id, message)
- Context from ``extra={"context": ...}`` or loose extras
- Exception information
"""

import json
import logging
import sys

import pytest

from libs.common.logging.formatter import JSONFormatter


def _record(msg: str = "Test message", level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test",
        level=level,
        pathname="/path/to/file.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Test suite for JSONFormatter."""

    @pytest.fixture
    def formatter(self) -> JSONFormatter:
        return JSONFormatter(service_name="edge_gateway")

    def test_required_fields(self, formatter: JSONFormatter) -> None:
        log_dict = json.loads(formatter.format(_record(trace_id="trace-123")))

        assert log_dict["level"] == "INFO"
        assert log_dict["service"] == "edge_gateway"
        assert log_dict["trace_id"] == "trace-123"
        assert log_dict["message"] == "Test message"
        assert log_dict["source"]["line"] == 42

    def test_timestamp_is_utc_millis(self, formatter: JSONFormatter) -> None:
        log_dict = json.loads(formatter.format(_record()))

        assert log_dict["timestamp"].endswith("Z")
        # YYYY-MM-DDTHH:MM:SS.mmmZ
        assert len(log_dict["timestamp"]) == 24

    def test_missing_trace_id_is_null(self, formatter: JSONFormatter) -> None:
        log_dict = json.loads(formatter.format(_record()))

        assert log_dict["trace_id"] is None

    def test_explicit_context(self, formatter: JSONFormatter) -> None:
        record = _record(context={"peer_address": "192.0.2.1", "claimed_address": "198.51.100.9"})

        log_dict = json.loads(formatter.format(record))

        assert log_dict["context"] == {
            "peer_address": "192.0.2.1",
            "claimed_address": "198.51.100.9",
        }

    def test_loose_extras_become_context(self, formatter: JSONFormatter) -> None:
        log_dict = json.loads(formatter.format(_record(cache_key="trusted_ranges:cloudflare")))

        assert log_dict["context"] == {"cache_key": "trusted_ranges:cloudflare"}

    def test_context_omitted_when_disabled(self) -> None:
        formatter = JSONFormatter(service_name="edge_gateway", include_context=False)

        log_dict = json.loads(formatter.format(_record(context={"a": 1})))

        assert "context" not in log_dict

    def test_exception_info(self, formatter: JSONFormatter) -> None:
        try:
            raise ValueError("bad listing")
        except ValueError:
            record = _record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        log_dict = json.loads(formatter.format(record))

        assert log_dict["exception"]["type"] == "ValueError"
        assert log_dict["exception"]["message"] == "bad listing"
        assert "Traceback" in log_dict["exception"]["traceback"]
