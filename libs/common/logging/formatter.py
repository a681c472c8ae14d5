"""JSON log formatter for the edge gateway.

Example log output:
    {
        "timestamp": "2026-03-02T10:30:00.000Z",
        "level": "WARNING",
        "service": "edge_gateway",
        "trace_id": "0f6c...",
        "message": "Peer is not a trusted proxy but sent a client IP header; ...",
        "context": {"peer_address": "192.0.2.1", "claimed_address": "198.51.100.9"},
        "source": {"file": "...", "line": 171, "function": "_restore"}
    }
"""

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any

# LogRecord attributes that never belong in the "context" object
_RESERVED_FIELDS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "trace_id",
        "context",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON documents.

    Attributes:
        service_name: Value of the "service" field on every record
        include_context: Whether to emit the "context" object
    """

    def __init__(
        self, service_name: str, include_context: bool = True, *args: Any, **kwargs: Any
    ) -> None:
        super().__init__(*args, **kwargs)
        self.service_name = service_name
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=UTC)
        log_entry: dict[str, Any] = {
            "timestamp": created.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "service": self.service_name,
            "trace_id": getattr(record, "trace_id", None),
            "message": record.getMessage(),
        }

        if self.include_context:
            context = self._extract_context(record)
            if context:
                log_entry["context"] = context

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        log_entry["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }
        return json.dumps(log_entry, default=str)

    def _extract_context(self, record: logging.LogRecord) -> dict[str, Any] | None:
        """Prefer an explicit ``extra={"context": {...}}``, else any other extras."""
        context = getattr(record, "context", None)
        if context and isinstance(context, dict):
            return dict(context)

        extra = {
            key: value for key, value in record.__dict__.items() if key not in _RESERVED_FIELDS
        }
        return extra or None
