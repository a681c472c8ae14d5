"""
Shared fixtures for edge gateway tests.

Provides an in-memory range cache, a provider wired to the mocked listing
URLs in tests/fixtures/range_listings.py (respx intercepts the fetches) and
a provider whose cache is already seeded with those ranges.
"""

import pytest

from libs.proxy_trust import (
    CacheEntry,
    InMemoryRangeCache,
    RangeSet,
    TrustedRangeProvider,
)
from tests.fixtures.range_listings import IPV4_LISTING, IPV4_URL, IPV6_LISTING, IPV6_URL


@pytest.fixture()
def range_cache() -> InMemoryRangeCache:
    return InMemoryRangeCache()


@pytest.fixture()
def provider(range_cache: InMemoryRangeCache):
    """Provider with an empty cache; fetches go to IPV4_URL / IPV6_URL."""
    provider = TrustedRangeProvider(
        ipv4_url=IPV4_URL,
        ipv6_url=IPV6_URL,
        cache=range_cache,
        timeout=1.0,
    )
    yield provider
    provider.close()


@pytest.fixture()
def seeded_provider(provider: TrustedRangeProvider, range_cache: InMemoryRangeCache):
    """Provider whose cache already holds the sample ranges (no network needed)."""
    ranges = RangeSet.from_strings((IPV4_LISTING + IPV6_LISTING).split())
    range_cache.set(provider.cache_key, CacheEntry(ranges=ranges))
    return provider
