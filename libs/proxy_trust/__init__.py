"""
Trusted proxy client IP restoration.

Components:
    TrustedRangeProvider: Cached trusted proxy ranges, fetched on miss
    evaluate: Pure per-request trust decision
    ClientIpRestorer: Applies decisions to live requests (logging + metrics)
    InMemoryRangeCache / RedisRangeCache: Range cache backends

Usage:
    from libs.proxy_trust import ClientIpRestorer, InMemoryRangeCache, TrustedRangeProvider

    provider = TrustedRangeProvider(ipv4_url, ipv6_url, cache=InMemoryRangeCache())
    restorer = ClientIpRestorer(provider, enabled=True)
    outcome = restorer.restore(restorer.context_for(peer, header_value))
"""

from .ip_ranges import IpRange, RangeSet, is_member, parse_address, parse_range_listing
from .range_cache import CacheEntry, InMemoryRangeCache, RangeCache, RedisRangeCache
from .range_provider import DEFAULT_CACHE_KEY, TrustedRangeProvider
from .trust_gate import ClientIpRestorer, Decision, RequestContext, RestoreOutcome, evaluate

__all__ = [
    "CacheEntry",
    "ClientIpRestorer",
    "DEFAULT_CACHE_KEY",
    "Decision",
    "InMemoryRangeCache",
    "IpRange",
    "RangeCache",
    "RangeSet",
    "RedisRangeCache",
    "RequestContext",
    "RestoreOutcome",
    "TrustedRangeProvider",
    "evaluate",
    "is_member",
    "parse_address",
    "parse_range_listing",
]
