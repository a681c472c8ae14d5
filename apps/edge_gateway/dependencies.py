"""Builders for the edge gateway's range cache, provider and restorer.

Shared by the FastAPI service and the ``scripts/trusted_ranges.py`` CLI so
both resolve the same cache backend and key from settings.
"""

from __future__ import annotations

import logging

from config.settings import Settings
from libs.proxy_trust import (
    ClientIpRestorer,
    InMemoryRangeCache,
    RangeCache,
    RedisRangeCache,
    TrustedRangeProvider,
)
from libs.redis_client import RedisClient, RedisConnectionError

logger = logging.getLogger(__name__)


def build_range_cache(settings: Settings) -> RangeCache:
    """Create the configured cache backend.

    Falls back to an in-memory cache when Redis is unreachable at startup;
    each worker then fetches its own copy of the ranges.
    """
    if settings.range_cache_backend != "redis":
        return InMemoryRangeCache()

    try:
        redis_client = RedisClient(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password.get_secret_value() or None,
        )
    except RedisConnectionError as e:
        logger.warning(f"Redis unavailable ({e}); caching trusted ranges in memory")
        return InMemoryRangeCache()

    return RedisRangeCache(redis_client)


def build_provider(settings: Settings, cache: RangeCache | None = None) -> TrustedRangeProvider:
    return TrustedRangeProvider(
        ipv4_url=settings.trusted_ranges_ipv4_url,
        ipv6_url=settings.trusted_ranges_ipv6_url,
        cache=cache if cache is not None else build_range_cache(settings),
        timeout=settings.range_fetch_timeout_seconds,
        cache_key=settings.range_cache_key,
    )


def build_restorer(settings: Settings, provider: TrustedRangeProvider) -> ClientIpRestorer:
    return ClientIpRestorer(provider, enabled=settings.client_ip_restore_enabled)


def close_provider(provider: TrustedRangeProvider) -> None:
    """Release the provider's HTTP client and, for Redis, the connection pool."""
    provider.close()
    if isinstance(provider.cache, RedisRangeCache):
        provider.cache.close()
