#!/usr/bin/env python3
"""
Trusted range cache CLI.

Commands:
    show        Print the cached range set (fetching it on a miss)
    refresh     Refetch both listings and replace the cached set
    invalidate  Evict the cached set; the next request refetches

Example:
    $ python scripts/trusted_ranges.py show
    $ RANGE_CACHE_BACKEND=redis python scripts/trusted_ranges.py refresh
    $ python scripts/trusted_ranges.py invalidate
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from apps.edge_gateway.dependencies import build_provider, close_provider  # noqa: E402
from config.settings import Settings, get_settings  # noqa: E402
from libs.common.exceptions import RangeCacheError, TrustedRangesUnavailable  # noqa: E402
from libs.common.logging import LogContext, configure_logging  # noqa: E402
from libs.proxy_trust import TrustedRangeProvider  # noqa: E402


def cmd_show(provider: TrustedRangeProvider, args: argparse.Namespace) -> int:
    cached = provider.cached_entry()
    ranges = provider.get_trusted_ranges()
    entry = provider.cached_entry()
    if args.json:
        print(
            json.dumps(
                {
                    "cached": cached is not None,
                    "fetched_at": entry.fetched_at.isoformat() if entry else None,
                    "ranges": ranges.to_strings(),
                },
                indent=2,
            )
        )
    else:
        source = "cache" if cached is not None else "remote"
        print(f"{len(ranges)} trusted ranges (from {source}):")
        for network in ranges:
            print(f"  {network}")
    return 0


def cmd_refresh(provider: TrustedRangeProvider, args: argparse.Namespace) -> int:
    ranges = provider.refresh()
    print(f"Refreshed {len(ranges)} trusted ranges")
    return 0


def cmd_invalidate(provider: TrustedRangeProvider, args: argparse.Namespace) -> int:
    provider.invalidate()
    print(f"Invalidated cache key {provider.cache_key}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage the trusted proxy range cache")
    subparsers = parser.add_subparsers(dest="command", required=True)

    show = subparsers.add_parser("show", help="Print the trusted range set")
    show.add_argument("--json", action="store_true", help="Emit JSON")
    show.set_defaults(func=cmd_show)

    refresh = subparsers.add_parser("refresh", help="Refetch and replace the cached set")
    refresh.set_defaults(func=cmd_refresh)

    invalidate = subparsers.add_parser("invalidate", help="Evict the cached set")
    invalidate.set_defaults(func=cmd_invalidate)

    return parser


def main(
    argv: list[str] | None = None,
    settings: Settings | None = None,
    provider: TrustedRangeProvider | None = None,
) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or get_settings()
    configure_logging(
        service_name=f"{settings.service_name}_cli",
        log_level=settings.log_level,
        stream=sys.stderr,
    )
    provider = provider or build_provider(settings)

    try:
        with LogContext():
            return int(args.func(provider, args))
    except TrustedRangesUnavailable as e:
        print(f"Trusted ranges unavailable: {e}", file=sys.stderr)
        return 1
    except RangeCacheError as e:
        print(f"Range cache unavailable: {e}", file=sys.stderr)
        return 1
    finally:
        close_provider(provider)


if __name__ == "__main__":
    sys.exit(main())
