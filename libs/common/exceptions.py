"""
Exception hierarchy for the edge gateway.

Errors raised by the trusted-range machinery are organized so callers can
catch the whole "ranges unavailable" family with a single except clause
and decide on fail-closed behavior themselves.
"""


class EdgeGatewayError(Exception):
    """
    Base exception for all edge gateway errors.

    Example:
        >>> try:
        ...     provider.get_trusted_ranges()
        ... except EdgeGatewayError as e:
        ...     logger.error(f"Edge gateway error: {e}")
    """

    pass


class ConfigurationError(EdgeGatewayError):
    """
    Raised when required configuration is missing or inconsistent.

    Example:
        >>> if not settings.trusted_ranges_ipv4_url:
        ...     raise ConfigurationError("TRUSTED_RANGES_IPV4_URL not configured")
    """

    pass


class TrustedRangesUnavailable(EdgeGatewayError):
    """
    Raised when the trusted proxy range set cannot be produced.

    Callers treat this as "ranges unavailable for this request" and must not
    restore the client address.
    """

    pass


class RangeFetchError(TrustedRangesUnavailable):
    """
    Raised when a remote range listing cannot be downloaded.

    Covers transport errors, timeouts and non-2xx responses.

    Attributes:
        url: The listing URL that failed
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class RangeParseError(TrustedRangesUnavailable):
    """
    Raised when a downloaded listing is not a valid list of network prefixes.

    Attributes:
        line: The offending line, if the failure is line-specific
    """

    def __init__(self, message: str, line: str | None = None) -> None:
        super().__init__(message)
        self.line = line


class RangeCacheError(EdgeGatewayError):
    """
    Raised when the range cache backend cannot be read or written.

    The request path degrades to a process-local copy; operator commands
    (refresh, invalidate) report it as a failure.

    Example:
        >>> try:
        ...     provider.invalidate()
        ... except RangeCacheError as e:
        ...     print(f"Cache unavailable: {e}")
    """

    pass
