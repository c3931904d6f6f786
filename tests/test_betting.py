"""Commit and reveal rules (pure functions)."""

import pytest

from echobet.models import MarketStatus, Outcome
from echobet.protocol.betting import apply_commit, apply_reveal
from echobet.protocol.checked import U32_MAX, U64_MAX
from echobet.protocol.commitment import compute_commitment_hash
from echobet.protocol.errors import (
    AlreadyRevealed,
    CommitmentMismatch,
    InvalidCommitment,
    InvalidOutcome,
    InvalidSigner,
    MarketAlreadyResolved,
    MarketExpired,
    MarketNotExpired,
    Overflow,
    RevealPeriodEnded,
    ZeroBetAmount,
)
from echobet.protocol.lifecycle import build_market

NOW = 1_000
DEADLINE = 2_000
REVEAL_END = 2_500
SALT = b"\x07" * 32


@pytest.fixture
def open_market():
    return build_market(
        creator="alice", oracle="oracle", market_id=1, question="Q?", deadline=DEADLINE, now=NOW, reveal_period=500
    )


def _commit(market, who="bob", amount=100, outcome=Outcome.YES, now=NOW):
    digest = compute_commitment_hash(amount, outcome, SALT)
    return apply_commit(market, who, amount, digest, now)


def test_commit_adds_to_total_only(open_market):
    market, bet = _commit(open_market, amount=250)
    assert market.total_pool == 250
    assert market.yes_pool == market.no_pool == 0
    assert bet.amount == 250
    assert not bet.is_revealed and not bet.is_claimed
    assert bet.committed_at == NOW
    # Input record untouched.
    assert open_market.total_pool == 0


def test_commit_closes_at_deadline(open_market):
    _commit(open_market, now=DEADLINE - 1)
    with pytest.raises(MarketExpired):
        _commit(open_market, now=DEADLINE)


def test_commit_rejected_once_revealing(open_market):
    revealing = open_market.model_copy(update={"status": MarketStatus.REVEALING})
    with pytest.raises(MarketExpired):
        _commit(revealing)


def test_commit_amount_checks(open_market):
    with pytest.raises(ZeroBetAmount):
        apply_commit(open_market, "bob", 0, bytes(32), NOW)
    with pytest.raises(Overflow):
        apply_commit(open_market, "bob", U64_MAX + 1, bytes(32), NOW)


def test_commit_hash_length(open_market):
    with pytest.raises(InvalidCommitment):
        apply_commit(open_market, "bob", 1, bytes(31), NOW)


def test_commit_total_overflow(open_market):
    full = open_market.model_copy(update={"total_pool": U64_MAX})
    with pytest.raises(Overflow):
        _commit(full, amount=1)


def test_reveal_moves_stake_to_side(open_market):
    market, bet = _commit(open_market, amount=300, outcome=Outcome.NO)
    market, bet = apply_reveal(market, bet, "bob", Outcome.NO, SALT, DEADLINE)
    assert market.status == MarketStatus.REVEALING
    assert market.no_pool == 300 and market.no_count == 1
    assert market.yes_pool == 0 and market.yes_count == 0
    assert bet.is_revealed
    assert bet.revealed_outcome is Outcome.NO
    assert bet.revealed_salt == SALT
    assert bet.revealed_at == DEADLINE


def test_reveal_window(open_market):
    market, bet = _commit(open_market)
    with pytest.raises(MarketNotExpired):
        apply_reveal(market, bet, "bob", 1, SALT, DEADLINE - 1)
    apply_reveal(market, bet, "bob", 1, SALT, REVEAL_END - 1)
    with pytest.raises(RevealPeriodEnded):
        apply_reveal(market, bet, "bob", 1, SALT, REVEAL_END)


def test_reveal_must_match_commitment(open_market):
    market, bet = _commit(open_market, outcome=Outcome.YES)
    with pytest.raises(CommitmentMismatch):
        apply_reveal(market, bet, "bob", Outcome.NO, SALT, DEADLINE)
    with pytest.raises(CommitmentMismatch):
        apply_reveal(market, bet, "bob", Outcome.YES, b"\x08" * 32, DEADLINE)
    with pytest.raises(CommitmentMismatch):
        apply_reveal(market, bet, "bob", Outcome.YES, SALT[:16], DEADLINE)


def test_reveal_rejects_invalid_outcome(open_market):
    market, bet = _commit(open_market)
    with pytest.raises(InvalidOutcome):
        apply_reveal(market, bet, "bob", 2, SALT, DEADLINE)


def test_reveal_only_by_owner(open_market):
    market, bet = _commit(open_market)
    with pytest.raises(InvalidSigner):
        apply_reveal(market, bet, "mallory", Outcome.YES, SALT, DEADLINE)


def test_reveal_once(open_market):
    market, bet = _commit(open_market)
    market, bet = apply_reveal(market, bet, "bob", Outcome.YES, SALT, DEADLINE)
    with pytest.raises(AlreadyRevealed):
        apply_reveal(market, bet, "bob", Outcome.YES, SALT, DEADLINE)


def test_reveal_after_resolution(open_market):
    market, bet = _commit(open_market)
    resolved = market.model_copy(update={"status": MarketStatus.RESOLVED, "outcome": Outcome.YES})
    with pytest.raises(MarketAlreadyResolved):
        apply_reveal(resolved, bet, "bob", Outcome.YES, SALT, DEADLINE)


def test_outcome_parse():
    assert Outcome.parse("yes") is Outcome.YES
    assert Outcome.parse("NO") is Outcome.NO
    assert Outcome.parse("1") is Outcome.YES
    assert Outcome.parse(0) is Outcome.NO
    for bad in (2, -1, "maybe", True, 1.0):
        with pytest.raises(InvalidOutcome):
            Outcome.parse(bad)


@pytest.mark.parametrize(
    "side,update",
    [
        (Outcome.YES, {"yes_pool": U64_MAX - 1}),
        (Outcome.NO, {"no_pool": U64_MAX - 1}),
        (Outcome.YES, {"yes_count": U32_MAX}),
        (Outcome.NO, {"no_count": U32_MAX}),
    ],
)
def test_reveal_side_totals_overflow(open_market, side, update):
    market, bet = _commit(open_market, amount=5, outcome=side)
    saturated = market.model_copy(update=update)
    with pytest.raises(Overflow):
        apply_reveal(saturated, bet, "bob", side, SALT, DEADLINE)
