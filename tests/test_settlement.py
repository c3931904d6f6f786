"""Pari-mutuel payout math and claim rules."""

import pytest

from echobet.models import BetRecord, MarketStatus, Outcome
from echobet.protocol.checked import U64_MAX
from echobet.protocol.errors import (
    AlreadyClaimed,
    DidNotWin,
    InsufficientPoolFunds,
    InvalidSigner,
    MarketNotResolved,
    NotRevealed,
    Overflow,
)
from echobet.protocol.lifecycle import build_market
from echobet.protocol.settlement import apply_claim, compute_payout, quote_payout, share_of_losers


def test_payout_formula():
    # Two YES bettors of 1000 each, one NO of 1000: each winner gets 1000 + 500.
    assert compute_payout(1_000, 2_000, 1_000) == 1_500
    # Floor rounding.
    assert compute_payout(1, 3, 1) == 1
    assert share_of_losers(2, 3, 1) == 0
    assert share_of_losers(3, 3, 1) == 1


def test_no_losers_returns_stake():
    assert compute_payout(700, 700, 0) == 700


def test_empty_winning_pool_shares_nothing():
    assert share_of_losers(10, 0, 500) == 0


def test_wide_intermediate_product():
    # bet * losing overflows u64 but fits u128; payout itself fits u64.
    big = 2**40
    assert compute_payout(big, big, big) == 2 * big


def test_payout_narrowing_overflow():
    with pytest.raises(Overflow):
        compute_payout(U64_MAX, U64_MAX, U64_MAX)


def test_winners_never_receive_more_than_the_pool():
    stakes = [3, 7, 11, 13]
    winning = sum(stakes)
    losing = 1_009
    paid = sum(compute_payout(s, winning, losing) for s in stakes)
    assert paid <= winning + losing
    # Floor loss is bounded by one unit per winner beyond the first.
    assert winning + losing - paid <= len(stakes) - 1


def test_quote_payout_includes_hypothetical_stake():
    m = build_market(creator="a", oracle="o", market_id=1, question="Q?", deadline=10, now=0)
    m = m.model_copy(update={"total_pool": 300, "yes_pool": 100, "no_pool": 200})
    # 100 more on YES: 100 + floor(100 * 200 / 200)
    assert quote_payout(m, Outcome.YES, 100) == 200
    # 100 more on NO: 100 + floor(100 * 100 / 300)
    assert quote_payout(m, Outcome.NO, 100) == 133


@pytest.fixture
def resolved_market():
    m = build_market(creator="alice", oracle="oracle", market_id=1, question="Q?", deadline=10, now=0)
    return m.model_copy(
        update={
            "status": MarketStatus.RESOLVED,
            "outcome": Outcome.YES,
            "total_pool": 3_000,
            "yes_pool": 2_000,
            "no_pool": 1_000,
            "yes_count": 2,
            "no_count": 1,
        }
    )


def _bet(market, who="bob", outcome=Outcome.YES, revealed=True, claimed=False, amount=1_000):
    return BetRecord(
        address=f"bet-{who}",
        market=market.address,
        participant=who,
        commitment_hash=bytes(32),
        amount=amount,
        revealed_outcome=outcome if revealed else None,
        is_revealed=revealed,
        is_claimed=claimed,
    )


def test_claim_pays_winner(resolved_market):
    bet, payout = apply_claim(resolved_market, _bet(resolved_market), "bob", 3_000)
    assert payout == 1_500
    assert bet.is_claimed


def test_claim_rejections(resolved_market):
    m = resolved_market
    with pytest.raises(MarketNotResolved):
        apply_claim(m.model_copy(update={"status": MarketStatus.REVEALING, "outcome": None}), _bet(m), "bob", 3_000)
    with pytest.raises(InvalidSigner):
        apply_claim(m, _bet(m), "mallory", 3_000)
    with pytest.raises(NotRevealed):
        apply_claim(m, _bet(m, revealed=False), "bob", 3_000)
    with pytest.raises(AlreadyClaimed):
        apply_claim(m, _bet(m, claimed=True), "bob", 3_000)
    with pytest.raises(DidNotWin):
        apply_claim(m, _bet(m, outcome=Outcome.NO), "bob", 3_000)


def test_claim_never_pays_partially(resolved_market):
    with pytest.raises(InsufficientPoolFunds):
        apply_claim(resolved_market, _bet(resolved_market), "bob", 1_499)
