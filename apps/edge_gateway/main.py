"""
Edge Gateway FastAPI Application.

Sits behind the trusted proxy network (Cloudflare by default) and restores
the original client IP from the CF-Connecting-IP header, but only for
connections whose peer address belongs to the proxy's published ranges.

Key Features:
- Client IP restoration middleware (fail-closed on range fetch failures)
- GET /health - Health check with range cache status
- GET /client-ip - Canonical client address and trust decision for this request
- GET /metrics - Prometheus metrics

Environment Variables:
    CLIENT_IP_RESTORE_ENABLED: Enable restoration (default: false)
    CLIENT_IP_HEADER: Claimed client IP header (default: CF-Connecting-IP)
    TRUSTED_RANGES_IPV4_URL / TRUSTED_RANGES_IPV6_URL: Range listing URLs
    RANGE_CACHE_BACKEND: memory | redis (default: memory)
    LOG_LEVEL: Logging level (default: INFO)

Usage:
    $ uvicorn apps.edge_gateway.main:app --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from prometheus_client import make_asgi_app

from apps.edge_gateway import __version__
from apps.edge_gateway.dependencies import build_provider, build_restorer, close_provider
from apps.edge_gateway.middleware import DECISION_STATE_KEY, ClientIpRestoreMiddleware
from config.settings import Settings, get_settings
from libs.common.logging import ASGITraceIDMiddleware, configure_logging
from libs.proxy_trust import RedisRangeCache, TrustedRangeProvider

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    provider: TrustedRangeProvider | None = None,
) -> FastAPI:
    """
    Build the edge gateway application.

    Args:
        settings: Settings to use (default: environment via get_settings())
        provider: Preconfigured range provider (default: built from settings)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    configure_logging(service_name=settings.service_name, log_level=settings.log_level)

    provider = provider or build_provider(settings)
    restorer = build_restorer(settings, provider)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            f"Edge Gateway starting (version={__version__}, "
            f"restore_enabled={settings.client_ip_restore_enabled}, "
            f"header={settings.client_ip_header}, cache={settings.range_cache_backend})"
        )
        try:
            yield
        finally:
            close_provider(provider)
            logger.info("Edge Gateway stopped")

    app = FastAPI(
        title="Edge Gateway",
        description="Restores client IPs for requests relayed by the trusted proxy network",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.provider = provider
    app.state.restorer = restorer

    # Added last so it runs first and trace IDs cover restore decisions
    app.add_middleware(
        ClientIpRestoreMiddleware,
        restorer=restorer,
        header_name=settings.client_ip_header,
    )
    app.add_middleware(ASGITraceIDMiddleware)

    # Plain def: cache reads and the Redis PING block, so it runs in the threadpool
    @app.get("/health")
    def health() -> dict[str, Any]:
        entry = provider.cached_entry()
        body: dict[str, Any] = {
            "status": "healthy",
            "version": __version__,
            "client_ip_restore_enabled": settings.client_ip_restore_enabled,
            "trusted_ranges_cached": entry is not None,
            "trusted_range_count": len(entry.ranges) if entry else 0,
            "trusted_ranges_fetched_at": entry.fetched_at.isoformat() if entry else None,
        }
        if isinstance(provider.cache, RedisRangeCache):
            redis_healthy = provider.cache.health_check()
            body["redis_healthy"] = redis_healthy
            if not redis_healthy:
                body["status"] = "degraded"
        return body

    @app.get("/client-ip")
    async def client_ip(request: Request) -> dict[str, Any]:
        return {
            "client_ip": request.client.host if request.client else None,
            "decision": getattr(request.state, DECISION_STATE_KEY, None),
        }

    app.mount("/metrics", make_asgi_app())
    return app


app = create_app()
