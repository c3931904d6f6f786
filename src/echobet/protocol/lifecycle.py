"""Market lifecycle - creation validation and the forward-only status state machine.

    OPEN ──first reveal──> REVEALING ──resolve──> RESOLVED
      └────────────────────resolve──────────────────┘

CANCELLED is part of the status type but no transition leads to it.
"""

from __future__ import annotations

from echobet.models.market import DEFAULT_REVEAL_PERIOD, MAX_QUESTION_LENGTH, MarketRecord, MarketStatus
from echobet.protocol.addressing import market_address, vault_address
from echobet.protocol.checked import U64_MAX, checked_add_i64
from echobet.protocol.errors import (
    DeadlineInPast,
    InvalidMarketId,
    InvalidTransition,
    QuestionTooLong,
)

ALLOWED_TRANSITIONS: dict[MarketStatus, frozenset[MarketStatus]] = {
    MarketStatus.OPEN: frozenset({MarketStatus.REVEALING, MarketStatus.RESOLVED}),
    MarketStatus.REVEALING: frozenset({MarketStatus.RESOLVED}),
    MarketStatus.RESOLVED: frozenset(),
    MarketStatus.CANCELLED: frozenset(),
}

# Statuses in which a bet may still be revealed / a market may still be resolved.
REVEALABLE = frozenset({MarketStatus.OPEN, MarketStatus.REVEALING})
FINAL = frozenset({MarketStatus.RESOLVED, MarketStatus.CANCELLED})


def can_transition(current: MarketStatus, target: MarketStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: MarketStatus, target: MarketStatus) -> MarketStatus:
    """Return target if the move is forward (or a no-op); raise InvalidTransition otherwise."""
    if not can_transition(current, target):
        raise InvalidTransition(f"{current.value} -> {target.value}")
    return target


def effective_reveal_period(reveal_period: int | None, default: int = DEFAULT_REVEAL_PERIOD) -> int:
    """Unset or non-positive reveal periods fall back to the default."""
    if reveal_period is None or reveal_period <= 0:
        return default
    return reveal_period


def build_market(
    *,
    creator: str,
    oracle: str,
    market_id: int,
    question: str,
    deadline: int,
    now: int,
    reveal_period: int | None = None,
    default_reveal_period: int = DEFAULT_REVEAL_PERIOD,
    max_question_length: int = MAX_QUESTION_LENGTH,
) -> MarketRecord:
    """Validate creation inputs and return a fresh OPEN market. No side effects."""
    if not 0 <= market_id <= U64_MAX:
        raise InvalidMarketId(f"market_id out of u64 range: {market_id}")
    question_len = len(question.encode("utf-8"))
    if question_len > max_question_length:
        raise QuestionTooLong(f"question is {question_len} bytes (max {max_question_length})")
    if deadline <= now:
        raise DeadlineInPast(f"deadline {deadline} is not after now {now}")
    period = effective_reveal_period(reveal_period, default_reveal_period)
    reveal_deadline = checked_add_i64(deadline, period)

    address = market_address(creator, market_id)
    return MarketRecord(
        address=address,
        vault=vault_address(address),
        creator=creator,
        oracle=oracle,
        market_id=market_id,
        question=question,
        deadline=deadline,
        reveal_deadline=reveal_deadline,
        status=MarketStatus.OPEN,
        created_at=now,
    )
