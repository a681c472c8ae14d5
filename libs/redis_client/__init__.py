"""
Redis client library for the edge gateway.

Components:
    RedisClient: Connection manager with retry logic
    RedisKeys: Key format definitions

Usage:
    from libs.redis_client import RedisClient, RedisKeys

    redis_client = RedisClient(host="localhost", port=6379)
    redis_client.get(RedisKeys.trusted_ranges("cloudflare"))
"""

from .client import RedisClient, RedisConnectionError
from .keys import RedisKeys

__all__ = [
    "RedisClient",
    "RedisConnectionError",
    "RedisKeys",
]

__version__ = "0.1.0"
