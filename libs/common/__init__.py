"""Common utilities and exceptions."""

from libs.common.exceptions import (
    ConfigurationError,
    EdgeGatewayError,
    RangeCacheError,
    RangeFetchError,
    RangeParseError,
    TrustedRangesUnavailable,
)

__all__ = [
    "EdgeGatewayError",
    "ConfigurationError",
    "TrustedRangesUnavailable",
    "RangeFetchError",
    "RangeParseError",
    "RangeCacheError",
]
