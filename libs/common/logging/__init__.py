"""Structured JSON logging with per-request trace IDs.

Usage:
    # At service startup
    from libs.common.logging import configure_logging
    configure_logging(service_name="edge_gateway", log_level="INFO")

    # Anywhere
    import logging
    from libs.common.logging import log_with_context
    logger = logging.getLogger(__name__)
    log_with_context(logger, "WARNING", "Possible spoofing attempt", peer_address="192.0.2.1")
"""

from libs.common.logging.config import (
    TraceIDFilter,
    configure_logging,
    log_with_context,
)
from libs.common.logging.context import (
    TRACE_ID_HEADER,
    LogContext,
    clear_trace_id,
    generate_trace_id,
    get_trace_id,
    set_trace_id,
)
from libs.common.logging.formatter import JSONFormatter
from libs.common.logging.http_client import TracedHTTPXSyncClient, get_traced_sync_client
from libs.common.logging.middleware import ASGITraceIDMiddleware

__all__ = [
    # Configuration
    "configure_logging",
    "log_with_context",
    "TraceIDFilter",
    # Trace ID management
    "generate_trace_id",
    "get_trace_id",
    "set_trace_id",
    "clear_trace_id",
    "LogContext",
    "TRACE_ID_HEADER",
    # Outgoing requests and inbound middleware
    "TracedHTTPXSyncClient",
    "get_traced_sync_client",
    "ASGITraceIDMiddleware",
    "JSONFormatter",
]
