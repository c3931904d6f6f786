"""Resolution authority - the oracle or the creator declares the outcome, once."""

from __future__ import annotations

from echobet.models.market import MarketRecord, MarketStatus, Outcome
from echobet.protocol.errors import MarketAlreadyResolved, MarketNotExpired, UnauthorizedResolver
from echobet.protocol.lifecycle import FINAL, ensure_transition


def is_authorized_resolver(market: MarketRecord, resolver: str) -> bool:
    return resolver == market.oracle or resolver == market.creator


def apply_resolution(market: MarketRecord, resolver: str, outcome: int | Outcome, now: int) -> MarketRecord:
    """Return the resolved market.

    Only the staking deadline gates resolution, not the reveal deadline: an
    early resolution ends the reveal window for any bet still hidden.
    """
    if market.status in FINAL:
        raise MarketAlreadyResolved(f"market is {market.status.value}")
    if not market.deadline_passed(now):
        raise MarketNotExpired(f"resolution opens at {market.deadline} (now {now})")
    if not is_authorized_resolver(market, resolver):
        raise UnauthorizedResolver(f"{resolver} is neither oracle nor creator")
    final = Outcome.parse(outcome)
    return market.model_copy(
        update={
            "outcome": final,
            "status": ensure_transition(market.status, MarketStatus.RESOLVED),
            "resolved_at": now,
        }
    )
