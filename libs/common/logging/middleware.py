"""ASGI middleware that scopes a trace ID to each inbound request.

The trace ID is taken from the X-Trace-ID request header (or generated),
set in the logging context for the duration of the request and echoed on
the response, including error responses.

Example:
    >>> app = FastAPI()
    >>> app.add_middleware(ASGITraceIDMiddleware)
"""

from typing import Any

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from libs.common.logging.context import (
    TRACE_ID_HEADER,
    clear_trace_id,
    generate_trace_id,
    set_trace_id,
)

_HEADER_KEY = TRACE_ID_HEADER.lower().encode()


class ASGITraceIDMiddleware:
    """Pure ASGI trace ID middleware for HTTP scopes."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers: dict[bytes, Any] = dict(scope.get("headers", []))
        raw = headers.get(_HEADER_KEY)
        trace_id = raw.decode("latin-1") if raw else generate_trace_id()
        set_trace_id(trace_id)

        async def send_with_trace_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_headers = list(message.get("headers", []))
                response_headers.append((_HEADER_KEY, trace_id.encode("latin-1")))
                message["headers"] = response_headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_trace_id)
        finally:
            clear_trace_id()
