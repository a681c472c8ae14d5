"""Client IP restore middleware.

Runs the trust decision for every HTTP and WebSocket connection and, when
the decision is RESTORE, rewrites ``scope["client"]`` so ``request.client``
reports the original client for everything downstream.

The decision is exposed as ``request.state.client_ip_decision``.

Example:
    >>> app = FastAPI()
    >>> app.add_middleware(ClientIpRestoreMiddleware, restorer=restorer)
"""

from __future__ import annotations

from starlette.concurrency import run_in_threadpool
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send

from libs.proxy_trust import ClientIpRestorer, RestoreOutcome

DEFAULT_CLIENT_IP_HEADER = "CF-Connecting-IP"
DECISION_STATE_KEY = "client_ip_decision"


class ClientIpRestoreMiddleware:
    """Pure ASGI middleware applying ClientIpRestorer to each connection."""

    def __init__(
        self,
        app: ASGIApp,
        restorer: ClientIpRestorer,
        header_name: str = DEFAULT_CLIENT_IP_HEADER,
    ) -> None:
        """
        Args:
            app: ASGI application to wrap
            restorer: Decision service shared across requests
            header_name: Header carrying the claimed client IP
        """
        self.app = app
        self.restorer = restorer
        self.header_name = header_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        client = scope.get("client")
        peer_host, peer_port = (client[0], client[1]) if client else ("", 0)
        claimed = Headers(scope=scope).get(self.header_name)

        ctx = self.restorer.context_for(peer_host, claimed)
        # The cache-miss path performs blocking HTTP fetches
        outcome: RestoreOutcome = await run_in_threadpool(self.restorer.restore, ctx)

        scope = dict(scope)
        scope["state"] = {**scope.get("state", {}), DECISION_STATE_KEY: outcome.decision.value}
        if outcome.restored:
            scope["client"] = (outcome.client_host, peer_port)

        await self.app(scope, receive, send)
