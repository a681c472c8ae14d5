"""
Centralized Redis key formats for the edge gateway.

Usage:
    from libs.redis_client.keys import RedisKeys

    key = RedisKeys.trusted_ranges("cloudflare")
    # Returns: "trusted_ranges:cloudflare"
"""


class RedisKeys:
    """Redis key format definitions."""

    @staticmethod
    def trusted_ranges(network: str) -> str:
        """
        Generate the key holding a trusted proxy network's range set.

        Format: "trusted_ranges:{network}"

        Examples:
            >>> RedisKeys.trusted_ranges("cloudflare")
            'trusted_ranges:cloudflare'

        Used By:
            - TrustedRangeProvider (cache key for the permanent range entry)
        """
        return f"trusted_ranges:{network}"


__all__ = ["RedisKeys"]
