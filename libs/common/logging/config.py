"""Logging setup shared by the gateway service and command-line tools.

Example:
    >>> from libs.common.logging.config import configure_logging
    >>> configure_logging(service_name="edge_gateway", log_level="INFO")
"""

import logging
import sys
from typing import TextIO

from libs.common.logging.context import get_trace_id
from libs.common.logging.formatter import JSONFormatter


class TraceIDFilter(logging.Filter):
    """Stamp the current trace ID onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = get_trace_id()
        return True


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    include_context: bool = True,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Install a JSON stream handler on the root logger.

    Replaces any handlers already attached to the root logger, so calling it
    twice does not duplicate output.

    Args:
        service_name: Name emitted in the "service" field
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_context: Whether to emit the "context" object
        stream: Output stream (default: stdout; the CLI passes stderr)

    Returns:
        The configured root logger

    Raises:
        ValueError: If log_level is not a known level name
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter(service_name=service_name, include_context=include_context))
    handler.addFilter(TraceIDFilter())
    root_logger.addHandler(handler)

    return root_logger


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context_fields: object,
) -> None:
    """Log ``message`` with ``context_fields`` under the record's "context" key.

    Example:
        >>> log_with_context(logger, "WARNING", "Possible spoofing attempt", peer_address="192.0.2.1")
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra={"context": context_fields})
