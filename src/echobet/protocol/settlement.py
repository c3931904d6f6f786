"""Pari-mutuel settlement.

A winner receives their stake back plus a share of the losing pool
proportional to their stake in the winning pool:

    payout = bet + floor(bet * losing_pool / winning_pool)

The product is computed at 128-bit width and only the final payout is
narrowed back to 64 bits. Floor rounding leaves at most (winners - 1) units
of the losing pool undistributed in the vault.
"""

from __future__ import annotations

from echobet.models.bet import BetRecord
from echobet.models.market import MarketRecord, MarketStatus, Outcome
from echobet.protocol.checked import U64_MAX, U128_MAX, checked_add, checked_mul, floor_div, narrow
from echobet.protocol.errors import (
    AlreadyClaimed,
    DidNotWin,
    InsufficientPoolFunds,
    InvalidMarketId,
    InvalidSigner,
    MarketNotResolved,
    NotRevealed,
)


def share_of_losers(bet: int, winning_pool: int, losing_pool: int) -> int:
    """floor(bet * losing / winning) in u128; zero when nobody is on the winning side."""
    if winning_pool == 0:
        return 0
    return floor_div(checked_mul(bet, losing_pool, limit=U128_MAX), winning_pool)


def compute_payout(bet: int, winning_pool: int, losing_pool: int) -> int:
    """Stake plus share of losers, narrowed to u64 (Overflow instead of truncation)."""
    wide = checked_add(bet, share_of_losers(bet, winning_pool, losing_pool), limit=U128_MAX)
    return narrow(wide, U64_MAX)


def quote_payout(market: MarketRecord, outcome: Outcome, amount: int) -> int:
    """Payout an extra `amount` revealed on `outcome` would receive if that side won."""
    winning, losing = market.pools_for(outcome)
    return compute_payout(amount, checked_add(winning, amount), losing)


def apply_claim(
    market: MarketRecord,
    bet: BetRecord,
    caller: str,
    vault_balance: int,
) -> tuple[BetRecord, int]:
    """Return (claimed bet, payout). Rejects rather than ever paying a partial amount."""
    if market.status != MarketStatus.RESOLVED or market.outcome is None:
        raise MarketNotResolved(f"market is {market.status.value}")
    if bet.participant != caller:
        raise InvalidSigner("bet belongs to another participant")
    if bet.market != market.address:
        raise InvalidMarketId("bet belongs to another market")
    if not bet.is_revealed or bet.revealed_outcome is None:
        raise NotRevealed()
    if bet.is_claimed:
        raise AlreadyClaimed()
    if bet.revealed_outcome != market.outcome:
        raise DidNotWin(f"bet on {bet.revealed_outcome.name}, market resolved {market.outcome.name}")

    winning, losing = market.pools_for(market.outcome)
    payout = compute_payout(bet.amount, winning, losing)
    if vault_balance < payout:
        raise InsufficientPoolFunds(f"vault holds {vault_balance}, payout is {payout}")
    return bet.model_copy(update={"is_claimed": True}), payout
