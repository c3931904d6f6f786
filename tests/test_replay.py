"""Replay determinism and audit against stored state."""

from conftest import DEADLINE, salt_for
from echobet.models import Outcome, ProtocolEvent
from echobet.replay.engine import audit_market, replay_events, replay_market


def _event(seq, event_type, market="m", **payload):
    return ProtocolEvent(seq=seq, event_type=event_type, market=market, participant=None, ts=seq, payload=payload)


def test_replay_events_golden():
    events = [
        _event(1, "market_created"),
        _event(2, "bet_committed", amount=100),
        _event(3, "bet_committed", amount=50),
        _event(4, "bet_committed", market="other", amount=999),
        _event(5, "bet_revealed", amount=100, outcome=1),
        _event(6, "bet_revealed", amount=50, outcome=0),
        _event(7, "market_resolved", outcome=1, unrevealed_pool=0),
        _event(8, "winnings_claimed", payout=150),
    ]
    tally = replay_events("m", events)
    assert tally.created
    assert (tally.total_pool, tally.yes_pool, tally.no_pool) == (150, 100, 50)
    assert (tally.yes_count, tally.no_count) == (1, 1)
    assert tally.outcome is Outcome.YES
    assert tally.paid_out == 150 and tally.claims == 1
    assert tally.expected_vault_balance == 0
    assert tally.events_processed == 7
    assert replay_events("m", events) == tally


def test_replay_matches_live_engine(engine, clock, market, place):
    place(market.address, "bob", 70, Outcome.YES)
    place(market.address, "carol", 30, Outcome.NO)
    place(market.address, "dave", 5, Outcome.NO)
    clock.set(DEADLINE)

    engine.reveal_bet(market.address, "bob", Outcome.YES, salt_for("bob"))
    engine.reveal_bet(market.address, "carol", Outcome.NO, salt_for("carol"))
    engine.resolve_market(market.address, "oracle", Outcome.YES)
    engine.claim_winnings(market.address, "bob")

    first = replay_market(engine.store, market.address)
    second = replay_market(engine.store, market.address)
    assert first == second

    report = audit_market(engine.store, engine.vault, engine.get_market(market.address))
    assert report.ok, report.mismatches
    assert report.tally.total_pool == 105
    assert report.tally.paid_out == 100
    assert engine.vault.balance(market.vault) == 5


def test_audit_detects_tampering(engine, market, place):
    place(market.address, "bob", 10, Outcome.YES)
    tampered = engine.get_market(market.address).model_copy(update={"total_pool": 11})
    engine.store.update_market(tampered)
    report = audit_market(engine.store, engine.vault, engine.get_market(market.address))
    assert not report.ok
    assert any(line.startswith("total_pool") for line in report.mismatches)
