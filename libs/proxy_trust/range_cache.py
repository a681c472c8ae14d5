"""
Cache backends for the trusted proxy range set.

The provider treats the cache as an opaque key/value store holding a single
CacheEntry under a well-known key. Entries are immutable; a refresh replaces
the stored entry wholesale so readers never observe a partial RangeSet.

Backends:
    InMemoryRangeCache: Per-process store, publish-by-reference
    RedisRangeCache: Shared store across workers via RedisClient

Example:
    >>> cache = InMemoryRangeCache()
    >>> provider = TrustedRangeProvider(cache=cache, ...)
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from redis.exceptions import RedisError

from libs.common.exceptions import RangeCacheError, RangeParseError
from libs.proxy_trust.ip_ranges import RangeSet
from libs.redis_client import RedisClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A cached RangeSet with its fetch time and permanence flag."""

    ranges: RangeSet
    fetched_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    permanent: bool = True


class RangeCache(Protocol):
    """
    Key/value store used by TrustedRangeProvider.

    Backends raise RangeCacheError when the store itself is unreachable;
    a missing or unusable entry is a plain miss (None).
    """

    def get(self, key: str) -> CacheEntry | None: ...

    def set(self, key: str, entry: CacheEntry) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryRangeCache:
    """
    Process-local range cache.

    Reads take no lock; a write replaces the dict slot with a new frozen
    CacheEntry in a single assignment.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._write_lock = threading.Lock()

    def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    def set(self, key: str, entry: CacheEntry) -> None:
        with self._write_lock:
            self._entries[key] = entry

    def delete(self, key: str) -> None:
        with self._write_lock:
            self._entries.pop(key, None)


class RedisRangeCache:
    """
    Redis-backed range cache shared by every gateway worker.

    Key Format:
        {key} -> JSON {"ranges": [...], "fetched_at": "...", "permanent": true}

    Permanent entries are stored without expiry; non-permanent ones use
    ``ttl`` seconds. Corrupt payloads (including an empty range list) are
    logged and reported as a miss. Redis errors surface as RangeCacheError.
    """

    def __init__(self, redis_client: RedisClient, ttl: int = 86400) -> None:
        """
        Initialize Redis range cache.

        Args:
            redis_client: Initialized Redis client
            ttl: Expiry in seconds for non-permanent entries (default: 1 day)
        """
        self.redis = redis_client
        self.ttl = ttl

    def get(self, key: str) -> CacheEntry | None:
        try:
            data = self.redis.get(key)
        except RedisError as e:
            logger.warning(f"Redis range cache read failed for '{key}': {e}")
            raise RangeCacheError(f"Cannot read '{key}' from Redis: {e}") from e

        if data is None:
            return None

        try:
            payload = json.loads(data)
            if not payload["ranges"]:
                raise ValueError("entry holds no ranges")
            return CacheEntry(
                ranges=RangeSet.from_strings(payload["ranges"]),
                fetched_at=datetime.fromisoformat(payload["fetched_at"]),
                permanent=bool(payload.get("permanent", True)),
            )
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, RangeParseError) as e:
            logger.error(f"Corrupt range cache entry under '{key}': {e}")
            return None

    def set(self, key: str, entry: CacheEntry) -> None:
        payload = json.dumps(
            {
                "ranges": entry.ranges.to_strings(),
                "fetched_at": entry.fetched_at.isoformat(),
                "permanent": entry.permanent,
            }
        )
        try:
            self.redis.set(key, payload, ex=None if entry.permanent else self.ttl)
        except RedisError as e:
            logger.error(f"Redis range cache write failed for '{key}': {e}")
            raise RangeCacheError(f"Cannot write '{key}' to Redis: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self.redis.delete(key)
        except RedisError as e:
            logger.error(f"Redis range cache delete failed for '{key}': {e}")
            raise RangeCacheError(f"Cannot delete '{key}' from Redis: {e}") from e

    def health_check(self) -> bool:
        return self.redis.health_check()

    def close(self) -> None:
        self.redis.close()


__all__ = ["CacheEntry", "InMemoryRangeCache", "RangeCache", "RedisRangeCache"]
