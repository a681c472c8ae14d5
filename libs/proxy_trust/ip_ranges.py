"""IP range parsing and fail-closed membership checks."""

from __future__ import annotations

import ipaddress
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TypeAlias

from libs.common.exceptions import RangeParseError

IpRange: TypeAlias = ipaddress.IPv4Network | ipaddress.IPv6Network
IpAddress: TypeAlias = ipaddress.IPv4Address | ipaddress.IPv6Address


def parse_address(value: str | None) -> IpAddress | None:
    """Parse an address literal, returning None when it is not a valid IP.

    IPv4-mapped IPv6 addresses (``::ffff:203.0.113.5``) are unwrapped to
    their IPv4 form so they match IPv4 ranges.
    """
    if not value:
        return None
    try:
        addr = ipaddress.ip_address(value.strip())
    except ValueError:
        return None
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        return addr.ipv4_mapped
    return addr


@dataclass(frozen=True)
class RangeSet:
    """Immutable, ordered collection of trusted network prefixes."""

    ranges: tuple[IpRange, ...] = ()

    @classmethod
    def from_strings(cls, values: Iterable[str]) -> RangeSet:
        """Build a RangeSet from CIDR strings.

        Raises:
            RangeParseError: If any value is not a valid network prefix
        """
        return cls(tuple(_parse_range(value) for value in values))

    def to_strings(self) -> list[str]:
        return [str(network) for network in self.ranges]

    def union(self, other: RangeSet) -> RangeSet:
        return RangeSet(self.ranges + other.ranges)

    def __contains__(self, address: object) -> bool:
        if isinstance(address, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            address = str(address)
        if not isinstance(address, str):
            return False
        return is_member(address, self)

    def __iter__(self) -> Iterator[IpRange]:
        return iter(self.ranges)

    def __len__(self) -> int:
        return len(self.ranges)


def _parse_range(value: str) -> IpRange:
    try:
        return ipaddress.ip_network(value.strip(), strict=False)
    except ValueError as exc:
        raise RangeParseError(f"Invalid network prefix: {value!r}", line=value) from exc


def parse_range_listing(text: str, *, version: int | None = None) -> RangeSet:
    """Parse a newline-delimited CIDR listing into a RangeSet.

    Lines are trimmed and blank lines skipped. Every remaining line must be a
    network prefix, and of the given IP version when ``version`` is set.

    Raises:
        RangeParseError: On an invalid or wrong-family line, or an empty listing
    """
    networks: list[IpRange] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        network = _parse_range(stripped)
        if version is not None and network.version != version:
            raise RangeParseError(
                f"Expected IPv{version} prefix, got {stripped!r}", line=stripped
            )
        networks.append(network)

    if not networks:
        raise RangeParseError("Range listing contains no network prefixes")
    return RangeSet(tuple(networks))


def is_member(address: str | None, ranges: Iterable[IpRange]) -> bool:
    """Return True if ``address`` falls inside any of ``ranges``.

    Malformed or missing addresses are never members. Cross-family checks
    (IPv4 address against an IPv6 network) are always False.
    """
    addr = parse_address(address)
    if addr is None:
        return False
    return any(addr.version == network.version and addr in network for network in ranges)


__all__ = [
    "IpAddress",
    "IpRange",
    "RangeSet",
    "is_member",
    "parse_address",
    "parse_range_listing",
]
