"""
Redis connection manager for the shared trusted range cache.

Every gateway worker reads the same range set from Redis, so reads sit on
the request path of a cache miss check. Transient connection failures are
retried briefly; anything else surfaces as a RedisError for the caller
(RedisRangeCache) to treat as a miss.

Example:
    >>> from libs.redis_client import RedisClient, RedisKeys
    >>> with RedisClient(host="localhost", port=6379) as client:
    ...     client.get(RedisKeys.trusted_ranges("cloudflare"))
"""

from __future__ import annotations

import logging
from typing import Any, cast

import redis
from redis.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)

# Three attempts, 0.1s..1s apart; the last RedisError propagates unchanged
_retry_transient = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    retry=retry_if_exception_type((ConnectionError, TimeoutError)),
    reraise=True,
)


class RedisConnectionError(Exception):
    """Redis did not answer the startup PING."""

    pass


class RedisClient:
    """
    Pooled Redis connection with retried get/set/delete.

    Attributes:
        host: Server hostname ("external" for wrapped connections)
        port: Server port
        db: Database index
        pool: Connection pool, or None for wrapped connections
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: str | None = None,
        decode_responses: bool = True,
        max_connections: int = 10,
        socket_connect_timeout: int = 2,
        socket_timeout: int = 2,
    ):
        """
        Open a pool and verify the server with PING.

        Timeouts are in seconds.

        Raises:
            RedisConnectionError: If the server cannot be reached
        """
        self.host = host
        self.port = port
        self.db = db

        logger.info(f"Connecting to range cache Redis at {host}:{port} (db={db})")

        try:
            self.pool = ConnectionPool(
                host=host,
                port=port,
                db=db,
                password=password,
                decode_responses=decode_responses,
                max_connections=max_connections,
                socket_connect_timeout=socket_connect_timeout,
                socket_timeout=socket_timeout,
            )
            self._client = redis.Redis(connection_pool=self.pool)
            self._client.ping()
        except (ConnectionError, TimeoutError) as e:
            logger.error(f"Redis PING failed at {host}:{port}: {e}")
            raise RedisConnectionError(f"Cannot connect to Redis at {host}:{port}") from e

        logger.info("Range cache Redis connected")

    @classmethod
    def from_connection(cls, connection: Any) -> RedisClient:
        """
        Wrap an existing redis-compatible connection (e.g. fakeredis in tests).

        The wrapped connection is not pinged and has no pool to disconnect.
        """
        client = cls.__new__(cls)
        client.host = "external"
        client.port = 0
        client.db = 0
        client.pool = None
        client._client = connection
        return client

    @_retry_transient
    def get(self, key: str) -> str | None:
        """Return the value at ``key``, or None when absent."""
        try:
            return cast(str | None, self._client.get(key))
        except RedisError as e:
            logger.error(f"Redis GET {key!r} failed: {e}")
            raise

    @_retry_transient
    def set(self, key: str, value: str, ex: int | None = None) -> None:
        """
        Store ``value`` at ``key``.

        Args:
            key: Redis key
            value: Serialized payload
            ex: Expiry in seconds; None keeps the key until deleted
        """
        try:
            if ex:
                self._client.setex(key, ex, value)
            else:
                self._client.set(key, value)
        except RedisError as e:
            logger.error(f"Redis SET {key!r} failed: {e}")
            raise

    @_retry_transient
    def delete(self, *keys: str) -> int:
        """Delete ``keys`` and return how many existed."""
        if not keys:
            return 0
        try:
            return cast(int, self._client.delete(*keys))
        except RedisError as e:
            logger.error(f"Redis DELETE {keys!r} failed: {e}")
            raise

    def health_check(self) -> bool:
        try:
            self._client.ping()
        except RedisError as e:
            logger.warning(f"Range cache Redis unhealthy: {e}")
            return False
        return True

    def close(self) -> None:
        """Disconnect the pool (no-op for wrapped connections)."""
        if self.pool is None:
            return
        logger.info("Closing range cache Redis pool")
        self.pool.disconnect()

    def __enter__(self) -> RedisClient:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"RedisClient(host={self.host}, port={self.port}, db={self.db})"
