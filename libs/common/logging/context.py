"""Trace ID context for correlating every log line of one request.

The trace ID lives in a ContextVar, so each request task (and the worker
thread it hands off to via ``run_in_threadpool``) sees its own value.

Example:
    >>> set_trace_id("req-42")
    >>> get_trace_id()
    'req-42'
"""

import contextvars
import uuid
from types import TracebackType

_trace_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("trace_id", default=None)

# Propagated on inbound requests, responses and outgoing range fetches
TRACE_ID_HEADER = "X-Trace-ID"


def generate_trace_id() -> str:
    """Return a new UUID4 trace ID."""
    return str(uuid.uuid4())


def get_trace_id() -> str | None:
    """Return the trace ID of the current context, or None."""
    return _trace_id_var.get()


def set_trace_id(trace_id: str) -> None:
    """Set the trace ID for the current context.

    Raises:
        ValueError: If trace_id is empty
    """
    if not trace_id:
        raise ValueError("Trace ID cannot be empty")
    _trace_id_var.set(trace_id)


def clear_trace_id() -> None:
    _trace_id_var.set(None)


class LogContext:
    """Scope a trace ID to a block, restoring the previous one on exit.

    Used by the command-line tools, which have no inbound request to take an
    ID from.

    Example:
        >>> with LogContext() as trace_id:
        ...     provider.refresh()
    """

    def __init__(self, trace_id: str | None = None) -> None:
        self.trace_id = trace_id or generate_trace_id()
        self.previous_trace_id: str | None = None

    def __enter__(self) -> str:
        self.previous_trace_id = get_trace_id()
        set_trace_id(self.trace_id)
        return self.trace_id

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self.previous_trace_id is not None:
            set_trace_id(self.previous_trace_id)
        else:
            clear_trace_id()
