"""Prometheus metrics for client IP restoration."""

from __future__ import annotations

from prometheus_client import Counter

client_ip_restore_decisions_total = Counter(
    "client_ip_restore_decisions_total",
    "Client IP restore decisions by outcome",
    ["decision"],
)

trusted_range_fetches_total = Counter(
    "trusted_range_fetches_total",
    "Trusted range fetch cycles",
    ["outcome"],  # success, fetch_error, parse_error
)

trusted_range_cache_lookups_total = Counter(
    "trusted_range_cache_lookups_total",
    "Trusted range cache lookups",
    ["result"],  # hit, miss
)


def record_decision(decision: str) -> None:
    client_ip_restore_decisions_total.labels(decision=decision).inc()


def record_fetch(outcome: str) -> None:
    trusted_range_fetches_total.labels(outcome=outcome).inc()


def record_cache_lookup(hit: bool) -> None:
    trusted_range_cache_lookups_total.labels(result="hit" if hit else "miss").inc()
