"""Commit and reveal rules.

Both functions are pure: they check every precondition, compute every checked
sum, and only then return updated copies of the records. The caller persists
the copies inside one transaction.
"""

from __future__ import annotations

from echobet.models.bet import BetRecord
from echobet.models.market import MarketRecord, MarketStatus, Outcome
from echobet.protocol.addressing import bet_address
from echobet.protocol.checked import U32_MAX, U64_MAX, checked_add
from echobet.protocol.commitment import HASH_LENGTH, SALT_LENGTH, verify_commitment
from echobet.protocol.errors import (
    AlreadyRevealed,
    CommitmentMismatch,
    InvalidCommitment,
    InvalidMarketId,
    InvalidSigner,
    MarketAlreadyResolved,
    MarketExpired,
    MarketNotExpired,
    Overflow,
    RevealPeriodEnded,
    ZeroBetAmount,
)
from echobet.protocol.lifecycle import REVEALABLE, ensure_transition


def apply_commit(
    market: MarketRecord,
    participant: str,
    amount: int,
    commitment_hash: bytes,
    now: int,
) -> tuple[MarketRecord, BetRecord]:
    """Return (market with total_pool increased, new bet). Uniqueness is the store's job."""
    # New entries close as soon as reveals begin, even before the nominal deadline.
    if market.status != MarketStatus.OPEN:
        raise MarketExpired(f"market is {market.status.value}")
    if market.deadline_passed(now):
        raise MarketExpired(f"deadline {market.deadline} passed (now {now})")
    if amount <= 0:
        raise ZeroBetAmount()
    if amount > U64_MAX:
        raise Overflow(f"amount {amount} exceeds u64")
    if len(commitment_hash) != HASH_LENGTH:
        raise InvalidCommitment(f"got {len(commitment_hash)} bytes")
    total_pool = checked_add(market.total_pool, amount)

    bet = BetRecord(
        address=bet_address(market.address, participant),
        market=market.address,
        participant=participant,
        commitment_hash=bytes(commitment_hash),
        amount=amount,
        committed_at=now,
    )
    return market.model_copy(update={"total_pool": total_pool}), bet


def apply_reveal(
    market: MarketRecord,
    bet: BetRecord,
    caller: str,
    outcome: int | Outcome,
    salt: bytes,
    now: int,
) -> tuple[MarketRecord, BetRecord]:
    """Open the caller's commitment and move its stake into the matching side pool."""
    if market.status not in REVEALABLE:
        raise MarketAlreadyResolved(f"market is {market.status.value}")
    if bet.participant != caller:
        raise InvalidSigner("bet belongs to another participant")
    if bet.market != market.address:
        raise InvalidMarketId("bet belongs to another market")
    if bet.is_revealed:
        raise AlreadyRevealed()
    if not market.deadline_passed(now):
        raise MarketNotExpired(f"reveal opens at {market.deadline} (now {now})")
    if market.reveal_deadline_passed(now):
        raise RevealPeriodEnded(f"reveal closed at {market.reveal_deadline} (now {now})")
    side = Outcome.parse(outcome)
    if len(salt) != SALT_LENGTH or not verify_commitment(bet.commitment_hash, bet.amount, side, salt):
        raise CommitmentMismatch()

    update: dict[str, object] = {
        "status": ensure_transition(market.status, MarketStatus.REVEALING),
    }
    if side is Outcome.YES:
        update["yes_pool"] = checked_add(market.yes_pool, bet.amount)
        update["yes_count"] = checked_add(market.yes_count, 1, limit=U32_MAX)
    elif side is Outcome.NO:
        update["no_pool"] = checked_add(market.no_pool, bet.amount)
        update["no_count"] = checked_add(market.no_count, 1, limit=U32_MAX)
    else:
        raise ValueError(f"unhandled outcome {side!r}")

    revealed = bet.model_copy(
        update={
            "revealed_outcome": side,
            "revealed_salt": bytes(salt),
            "is_revealed": True,
            "revealed_at": now,
        }
    )
    return market.model_copy(update=update), revealed
