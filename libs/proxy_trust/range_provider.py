"""
Trusted proxy range provider with a permanent cache.

The provider lazily downloads the proxy network's published IPv4 and IPv6
listings, parses them into a single RangeSet and stores it in the injected
cache. Cached entries never expire on their own; they live until
``invalidate()`` or ``refresh()`` replaces them.

Example:
    >>> provider = TrustedRangeProvider(
    ...     ipv4_url="https://www.cloudflare.com/ips-v4",
    ...     ipv6_url="https://www.cloudflare.com/ips-v6",
    ...     cache=InMemoryRangeCache(),
    ... )
    >>> ranges = provider.get_trusted_ranges()
    >>> "173.245.48.1" in ranges
    True
"""

from __future__ import annotations

import logging
import threading

import httpx

from libs.common.exceptions import (
    ConfigurationError,
    RangeCacheError,
    RangeFetchError,
    RangeParseError,
)
from libs.common.logging import get_traced_sync_client, log_with_context
from libs.proxy_trust import metrics
from libs.proxy_trust.ip_ranges import RangeSet, parse_range_listing
from libs.proxy_trust.range_cache import CacheEntry, RangeCache
from libs.redis_client.keys import RedisKeys

logger = logging.getLogger(__name__)

DEFAULT_CACHE_KEY = RedisKeys.trusted_ranges("cloudflare")


class TrustedRangeProvider:
    """
    Supplies the current trusted RangeSet, fetching on cache miss.

    Concurrent cache misses are coalesced: the first caller fetches while the
    others wait on the refresh lock and then read the freshly published entry.

    Attributes:
        ipv4_url: URL of the IPv4 prefix listing
        ipv6_url: URL of the IPv6 prefix listing
        cache: Range cache backend
        cache_key: Key the range set is stored under
    """

    def __init__(
        self,
        ipv4_url: str,
        ipv6_url: str,
        cache: RangeCache,
        http_client: httpx.Client | None = None,
        timeout: float = 5.0,
        cache_key: str = DEFAULT_CACHE_KEY,
    ) -> None:
        """
        Initialize the provider.

        Args:
            ipv4_url: URL returning one IPv4 CIDR per line
            ipv6_url: URL returning one IPv6 CIDR per line
            cache: Cache backend shared with other readers
            http_client: Optional preconfigured client (owned by the caller)
            timeout: Per-request timeout in seconds when creating our own client
            cache_key: Cache key for the range set

        Raises:
            ConfigurationError: If either listing URL is empty
        """
        if not ipv4_url or not ipv6_url:
            raise ConfigurationError("Both IPv4 and IPv6 range listing URLs are required")

        self.ipv4_url = ipv4_url
        self.ipv6_url = ipv6_url
        self.cache = cache
        self.cache_key = cache_key
        self._owns_client = http_client is None
        self._http = http_client or get_traced_sync_client(timeout=timeout, follow_redirects=True)
        self._refresh_lock = threading.Lock()
        self._local_entry: CacheEntry | None = None

    def get_trusted_ranges(self) -> RangeSet:
        """
        Return the cached RangeSet, fetching it on a cache miss.

        While the cache backend is unreachable, the last range set this
        process fetched is served instead, so an outage costs one fetch
        cycle rather than one per request.

        Returns:
            Non-empty RangeSet covering both IPv4 and IPv6 listings

        Raises:
            RangeFetchError: If either listing cannot be downloaded
            RangeParseError: If either listing is malformed
        """
        entry = self._read_cache()
        if entry is not None:
            metrics.record_cache_lookup(hit=True)
            return entry.ranges

        metrics.record_cache_lookup(hit=False)
        with self._refresh_lock:
            # Another caller may have published while we waited
            entry = self._read_cache()
            if entry is not None:
                return entry.ranges
            return self._fetch_and_store(require_cached=False)

    def refresh(self) -> RangeSet:
        """
        Fetch both listings now and replace the cached entry.

        The previous entry is left untouched if the fetch cycle fails.

        Raises:
            TrustedRangesUnavailable: If either listing cannot be fetched or parsed
            RangeCacheError: If the new entry could not be stored
        """
        with self._refresh_lock:
            return self._fetch_and_store(require_cached=True)

    def invalidate(self) -> None:
        """
        Evict the cached range set so the next lookup refetches.

        Raises:
            RangeCacheError: If the cache backend could not delete the entry
        """
        self._local_entry = None
        self.cache.delete(self.cache_key)
        logger.info(f"Trusted range cache invalidated (key={self.cache_key})")

    def cached_entry(self) -> CacheEntry | None:
        return self._read_cache()

    def _read_cache(self) -> CacheEntry | None:
        try:
            entry = self.cache.get(self.cache_key)
        except RangeCacheError:
            return self._local_entry
        # Backend reachable again: it is authoritative
        self._local_entry = None
        return entry

    def _fetch_and_store(self, require_cached: bool) -> RangeSet:
        try:
            ipv4 = parse_range_listing(self._fetch_listing(self.ipv4_url), version=4)
            ipv6 = parse_range_listing(self._fetch_listing(self.ipv6_url), version=6)
        except RangeFetchError as e:
            metrics.record_fetch("fetch_error")
            log_with_context(logger, "ERROR", f"Trusted range fetch failed: {e}", url=e.url)
            raise
        except RangeParseError as e:
            metrics.record_fetch("parse_error")
            log_with_context(logger, "ERROR", f"Trusted range listing rejected: {e}", line=e.line)
            raise

        ranges = ipv4.union(ipv6)
        metrics.record_fetch("success")
        entry = CacheEntry(ranges=ranges, permanent=True)
        try:
            self.cache.set(self.cache_key, entry)
        except RangeCacheError as e:
            self._local_entry = entry
            log_with_context(
                logger,
                "WARNING",
                f"Trusted ranges fetched but not cached; serving process-local copy: {e}",
                cache_key=self.cache_key,
            )
            if require_cached:
                raise
            return ranges

        self._local_entry = None
        log_with_context(
            logger,
            "INFO",
            "Trusted ranges fetched and cached",
            ipv4_count=len(ipv4),
            ipv6_count=len(ipv6),
            cache_key=self.cache_key,
        )
        return ranges

    def _fetch_listing(self, url: str) -> str:
        try:
            response = self._http.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise RangeFetchError(f"GET {url} failed: {e}", url=url) from e
        return response.text

    def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            self._http.close()

    def __repr__(self) -> str:
        return f"TrustedRangeProvider(ipv4_url={self.ipv4_url}, ipv6_url={self.ipv6_url})"


__all__ = ["DEFAULT_CACHE_KEY", "TrustedRangeProvider"]
