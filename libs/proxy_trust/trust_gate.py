"""
Per-request trust decision for a claimed client IP header.

``evaluate()`` is a pure classification of one request against a RangeSet.
``ClientIpRestorer`` is the caller around it: it loads the ranges, logs the
anomalies, records metrics and produces the canonical client address.

Decision ordering:
    disabled -> no claim -> peer already equals claim -> untrusted peer -> restore

Example:
    >>> ctx = RequestContext(peer_address="203.0.113.5", claimed_address="198.51.100.9")
    >>> evaluate(ctx, RangeSet.from_strings(["203.0.113.0/24"]))
    <Decision.RESTORE: 'restore'>
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from libs.common.exceptions import TrustedRangesUnavailable
from libs.common.logging import log_with_context
from libs.proxy_trust import metrics
from libs.proxy_trust.ip_ranges import RangeSet, is_member, parse_address
from libs.proxy_trust.range_provider import TrustedRangeProvider

logger = logging.getLogger(__name__)


class Decision(StrEnum):
    RESTORE = "restore"
    UNCHANGED = "unchanged"
    REJECT_SPOOF = "reject_spoof"
    ALREADY_RESTORED = "already_restored"
    NOT_PROXIED = "not_proxied"


@dataclass(frozen=True)
class RequestContext:
    """Inputs for one trust evaluation.

    Attributes:
        peer_address: Network-layer source address of the connection
        claimed_address: Value of the client IP header, None when absent
        restoration_enabled: Static configuration flag
    """

    peer_address: str
    claimed_address: str | None = None
    restoration_enabled: bool = True

    @property
    def has_claim(self) -> bool:
        return bool(self.claimed_address and self.claimed_address.strip())


@dataclass(frozen=True)
class RestoreOutcome:
    """Decision plus the address downstream code must treat as the client."""

    decision: Decision
    client_host: str

    @property
    def restored(self) -> bool:
        return self.decision is Decision.RESTORE


def _same_address(peer: str, claim: str) -> bool:
    peer_addr = parse_address(peer)
    claim_addr = parse_address(claim)
    if peer_addr is not None and claim_addr is not None:
        return peer_addr == claim_addr
    return peer.strip() == claim.strip()


def evaluate(ctx: RequestContext, ranges: RangeSet) -> Decision:
    """Classify a request. Never raises, including for malformed literals."""
    if not ctx.restoration_enabled:
        return Decision.UNCHANGED
    if not ctx.has_claim:
        return Decision.NOT_PROXIED

    claim = ctx.claimed_address or ""
    if _same_address(ctx.peer_address, claim):
        return Decision.ALREADY_RESTORED
    if not is_member(ctx.peer_address, ranges):
        return Decision.REJECT_SPOOF
    return Decision.RESTORE


class ClientIpRestorer:
    """
    Applies ``evaluate()`` to live requests.

    The provider is only consulted when restoration is enabled and a claim is
    present. Range unavailability is fail-closed: the request proceeds with
    its observed peer address.

    Example:
        >>> restorer = ClientIpRestorer(provider, enabled=True)
        >>> outcome = restorer.restore(RequestContext("203.0.113.5", "198.51.100.9"))
        >>> outcome.client_host
        '198.51.100.9'
    """

    def __init__(self, provider: TrustedRangeProvider, enabled: bool) -> None:
        self.provider = provider
        self.enabled = enabled

    def context_for(self, peer_address: str, claimed_address: str | None) -> RequestContext:
        return RequestContext(
            peer_address=peer_address,
            claimed_address=claimed_address,
            restoration_enabled=self.enabled,
        )

    def restore(self, ctx: RequestContext) -> RestoreOutcome:
        outcome = self._restore(ctx)
        metrics.record_decision(outcome.decision.value)
        return outcome

    def _restore(self, ctx: RequestContext) -> RestoreOutcome:
        unchanged = RestoreOutcome(Decision.UNCHANGED, ctx.peer_address)

        if not ctx.restoration_enabled:
            return unchanged

        if not ctx.has_claim:
            log_with_context(
                logger,
                "WARNING",
                "Request did not arrive through the trusted proxy",
                peer_address=ctx.peer_address,
            )
            return RestoreOutcome(Decision.NOT_PROXIED, ctx.peer_address)

        try:
            ranges = self.provider.get_trusted_ranges()
        except TrustedRangesUnavailable as e:
            log_with_context(
                logger,
                "ERROR",
                f"Trusted ranges unavailable, client IP not restored: {e}",
                peer_address=ctx.peer_address,
            )
            return unchanged

        decision = evaluate(ctx, ranges)
        claim = (ctx.claimed_address or "").strip()

        if decision is Decision.ALREADY_RESTORED:
            log_with_context(
                logger,
                "ERROR",
                "Request has already been restored upstream; disable one of the restore layers",
                peer_address=ctx.peer_address,
            )
            return RestoreOutcome(decision, ctx.peer_address)

        if decision is Decision.REJECT_SPOOF:
            log_with_context(
                logger,
                "WARNING",
                "Peer is not a trusted proxy but sent a client IP header; possible spoofing attempt",
                peer_address=ctx.peer_address,
                claimed_address=claim,
            )
            return RestoreOutcome(decision, ctx.peer_address)

        if parse_address(claim) is None:
            log_with_context(
                logger,
                "WARNING",
                "Trusted proxy sent a malformed client IP header; keeping peer address",
                peer_address=ctx.peer_address,
                claimed_address=claim,
            )
            return unchanged

        return RestoreOutcome(Decision.RESTORE, claim)


__all__ = ["ClientIpRestorer", "Decision", "RequestContext", "RestoreOutcome", "evaluate"]
