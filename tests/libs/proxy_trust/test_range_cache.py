"""
Tests for trusted range cache backends.

Covers:
- in-memory get/set/delete and whole-entry replacement
- Redis JSON round trip and permanence (no expiry)
- corrupt or empty payloads degrade to a miss
- Redis errors surface as RangeCacheError
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from fakeredis import FakeRedis
from redis.exceptions import RedisError

from libs.common.exceptions import RangeCacheError
from libs.proxy_trust import CacheEntry, InMemoryRangeCache, RangeSet, RedisRangeCache
from libs.redis_client import RedisClient

KEY = "trusted_ranges:cloudflare"


@pytest.fixture()
def entry() -> CacheEntry:
    return CacheEntry(
        ranges=RangeSet.from_strings(["203.0.113.0/24", "2606:4700::/32"]),
        fetched_at=datetime(2026, 3, 2, 10, 30, tzinfo=UTC),
    )


class TestInMemoryRangeCache:
    def test_miss_returns_none(self):
        assert InMemoryRangeCache().get(KEY) is None

    def test_set_then_get_returns_same_entry(self, entry):
        cache = InMemoryRangeCache()
        cache.set(KEY, entry)

        assert cache.get(KEY) is entry

    def test_set_replaces_entry_wholesale(self, entry):
        cache = InMemoryRangeCache()
        cache.set(KEY, entry)
        replacement = CacheEntry(ranges=RangeSet.from_strings(["198.51.100.0/24"]))

        cache.set(KEY, replacement)

        assert cache.get(KEY) is replacement
        assert entry.ranges.to_strings() == ["203.0.113.0/24", "2606:4700::/32"]

    def test_delete_is_idempotent(self, entry):
        cache = InMemoryRangeCache()
        cache.set(KEY, entry)

        cache.delete(KEY)
        cache.delete(KEY)

        assert cache.get(KEY) is None


class TestRedisRangeCache:
    @pytest.fixture()
    def fake_redis(self) -> FakeRedis:
        return FakeRedis(decode_responses=True)

    @pytest.fixture()
    def cache(self, fake_redis) -> RedisRangeCache:
        return RedisRangeCache(RedisClient.from_connection(fake_redis))

    def test_round_trip(self, cache, entry):
        cache.set(KEY, entry)

        loaded = cache.get(KEY)

        assert loaded == entry

    def test_permanent_entry_has_no_expiry(self, cache, fake_redis, entry):
        cache.set(KEY, entry)

        assert fake_redis.ttl(KEY) == -1

    def test_non_permanent_entry_uses_ttl(self, fake_redis, entry):
        cache = RedisRangeCache(RedisClient.from_connection(fake_redis), ttl=120)

        cache.set(KEY, CacheEntry(ranges=entry.ranges, permanent=False))

        assert 0 < fake_redis.ttl(KEY) <= 120

    def test_delete_removes_key(self, cache, fake_redis, entry):
        cache.set(KEY, entry)

        cache.delete(KEY)

        assert fake_redis.get(KEY) is None
        assert cache.get(KEY) is None

    def test_corrupt_payload_is_a_miss(self, cache, fake_redis, caplog):
        fake_redis.set(KEY, '{"ranges": ["not-a-cidr"], "fetched_at": "2026-03-02T10:30:00+00:00"}')

        assert cache.get(KEY) is None
        assert "Corrupt range cache entry" in caplog.text

    def test_invalid_json_is_a_miss(self, cache, fake_redis):
        fake_redis.set(KEY, "{not json")

        assert cache.get(KEY) is None

    def test_empty_range_list_is_a_miss(self, cache, fake_redis, caplog):
        fake_redis.set(KEY, '{"ranges": [], "fetched_at": "2026-03-02T10:30:00+00:00"}')

        assert cache.get(KEY) is None
        assert "Corrupt range cache entry" in caplog.text

    def test_read_error_raises_cache_error(self, caplog):
        redis_client = MagicMock()
        redis_client.get.side_effect = RedisError("down")

        with pytest.raises(RangeCacheError):
            RedisRangeCache(redis_client).get(KEY)
        assert "read failed" in caplog.text

    def test_write_error_raises_cache_error(self, entry, caplog):
        redis_client = MagicMock()
        redis_client.set.side_effect = RedisError("down")

        with pytest.raises(RangeCacheError):
            RedisRangeCache(redis_client).set(KEY, entry)
        assert "write failed" in caplog.text

    def test_delete_error_raises_cache_error(self, caplog):
        redis_client = MagicMock()
        redis_client.delete.side_effect = RedisError("down")

        with pytest.raises(RangeCacheError):
            RedisRangeCache(redis_client).delete(KEY)
        assert "delete failed" in caplog.text

    def test_health_check_and_close_delegate(self):
        redis_client = MagicMock()
        redis_client.health_check.return_value = False
        cache = RedisRangeCache(redis_client)

        assert cache.health_check() is False
        cache.close()
        redis_client.close.assert_called_once()
