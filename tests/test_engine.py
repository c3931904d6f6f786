"""End-to-end market flows through MarketEngine on the in-memory store and vault."""

import threading

import pytest

from conftest import DEADLINE, REVEAL_PERIOD, T0, salt_for
from echobet.models import MarketStatus, Outcome
from echobet.protocol.checked import U64_MAX
from echobet.protocol.errors import (
    AlreadyClaimed,
    BetNotFound,
    CommitmentMismatch,
    DidNotWin,
    DuplicateCommitment,
    DuplicateMarket,
    InsufficientFunds,
    MarketAlreadyResolved,
    MarketExpired,
    MarketNotExpired,
    MarketNotFound,
    NotRevealed,
    Overflow,
    UnauthorizedResolver,
)
from echobet.replay.engine import audit_market


def _reveal(engine, market, who, outcome):
    return engine.reveal_bet(market, who, outcome, salt_for(who))


def test_create_market_opens_vault_and_logs_event(engine, market):
    assert market.status == MarketStatus.OPEN
    assert market.deadline == DEADLINE
    assert market.reveal_deadline == DEADLINE + REVEAL_PERIOD
    assert engine.vault.balance(market.vault) == 0
    events = engine.store.list_events(market.address)
    assert [e.event_type for e in events] == ["market_created"]
    assert events[0].payload["market_id"] == 1


def test_duplicate_market_rejected(engine, market):
    with pytest.raises(DuplicateMarket):
        engine.create_market("alice", "oracle", 1, "Again?", DEADLINE)
    # Same id under another creator is a different market.
    other = engine.create_market("bob", "oracle", 1, "Other?", DEADLINE)
    assert other.address != market.address


def test_commit_escrows_stake(engine, market, place):
    bet = place(market.address, "bob", 1_000, Outcome.YES)
    assert bet.amount == 1_000
    assert engine.vault.balance("bob") == 0
    assert engine.vault.balance(market.vault) == 1_000
    m = engine.get_market(market.address)
    assert m.total_pool == 1_000
    assert m.yes_pool == m.no_pool == 0


def test_one_bet_per_participant(engine, market, place):
    place(market.address, "bob", 100, Outcome.YES)
    with pytest.raises(DuplicateCommitment):
        place(market.address, "bob", 100, Outcome.NO)
    assert engine.get_market(market.address).total_pool == 100


def test_failed_deposit_rolls_back(engine, market):
    engine.fund("bob", 50)
    with pytest.raises(InsufficientFunds):
        engine.commit_bet(market.address, "bob", 100, bytes(32))
    assert engine.get_market(market.address).total_pool == 0
    with pytest.raises(BetNotFound):
        engine.get_bet(market.address, "bob")
    assert [e.event_type for e in engine.store.list_events(market.address)] == ["market_created"]
    assert engine.vault.balance("bob") == 50


def test_unknown_market(engine):
    with pytest.raises(MarketNotFound):
        engine.commit_bet("nope", "bob", 1, bytes(32))
    with pytest.raises(MarketNotFound):
        engine.summary("nope")


def test_full_market_yes_wins(engine, clock, market, place):
    place(market.address, "bob", 1_000, Outcome.YES)
    place(market.address, "carol", 1_000, Outcome.YES)
    place(market.address, "dave", 1_000, Outcome.NO)

    clock.set(DEADLINE)
    for who, side in [("bob", Outcome.YES), ("carol", Outcome.YES), ("dave", Outcome.NO)]:
        _reveal(engine, market.address, who, side)
    m = engine.get_market(market.address)
    assert m.status == MarketStatus.REVEALING
    assert (m.yes_pool, m.no_pool, m.yes_count, m.no_count) == (2_000, 1_000, 2, 1)

    clock.set(DEADLINE + REVEAL_PERIOD)
    resolved = engine.resolve_market(market.address, "oracle", "yes")
    assert resolved.outcome is Outcome.YES

    assert engine.claim_winnings(market.address, "bob") == 1_500
    assert engine.claim_winnings(market.address, "carol") == 1_500
    with pytest.raises(DidNotWin):
        engine.claim_winnings(market.address, "dave")
    assert engine.vault.balance(market.vault) == 0
    assert engine.vault.balance("bob") == 1_500

    report = audit_market(engine.store, engine.vault, engine.get_market(market.address))
    assert report.ok, report.mismatches
    assert report.tally.paid_out == 3_000


def test_claim_is_single_shot(engine, clock, market, place):
    place(market.address, "bob", 500, Outcome.NO)
    place(market.address, "carol", 300, Outcome.YES)
    clock.set(DEADLINE)
    _reveal(engine, market.address, "bob", Outcome.NO)
    _reveal(engine, market.address, "carol", Outcome.YES)
    engine.resolve_market(market.address, "alice", Outcome.NO)

    assert engine.claim_winnings(market.address, "bob") == 800
    with pytest.raises(AlreadyClaimed):
        engine.claim_winnings(market.address, "bob")
    assert engine.vault.balance("bob") == 800
    assert engine.vault.balance(market.vault) == 0


def test_first_reveal_closes_betting(engine, clock, market, place):
    place(market.address, "bob", 100, Outcome.YES)
    clock.set(DEADLINE)
    _reveal(engine, market.address, "bob", Outcome.YES)
    engine.fund("carol", 100)
    with pytest.raises(MarketExpired):
        engine.commit_bet(market.address, "carol", 100, bytes(32))


def test_early_resolution_forfeits_unrevealed_stake(engine, clock, market, place):
    place(market.address, "bob", 400, Outcome.YES)
    place(market.address, "carol", 600, Outcome.NO)
    clock.set(DEADLINE)
    _reveal(engine, market.address, "bob", Outcome.YES)
    resolved = engine.resolve_market(market.address, "oracle", Outcome.YES)
    assert resolved.unrevealed_pool == 600

    with pytest.raises(MarketAlreadyResolved):
        _reveal(engine, market.address, "carol", Outcome.NO)
    with pytest.raises(NotRevealed):
        engine.claim_winnings(market.address, "carol")

    # Carol's stake never entered a side pool, so Bob only gets his own back.
    assert engine.claim_winnings(market.address, "bob") == 400
    assert engine.vault.balance(market.vault) == 600

    dash = engine.dashboard("carol")
    assert dash.forfeited == 1
    assert dash.forfeited_stake == 600
    assert engine.summary(market.address).unrevealed_pool == 600


def test_resolver_authority(engine, clock, market):
    clock.set(DEADLINE)
    with pytest.raises(UnauthorizedResolver):
        engine.resolve_market(market.address, "bob", Outcome.YES)
    assert engine.get_market(market.address).status == MarketStatus.OPEN


def test_pool_conservation_and_event_order(engine, clock, market, place):
    stakes = {"b1": (10, Outcome.YES), "b2": (20, Outcome.NO), "b3": (30, Outcome.YES), "b4": (40, Outcome.NO)}
    for who, (amount, side) in stakes.items():
        place(market.address, who, amount, side)
    clock.set(DEADLINE + 1)
    for who in ("b1", "b2", "b3"):
        _reveal(engine, market.address, who, stakes[who][1])
    m = engine.get_market(market.address)
    assert m.total_pool == 100
    assert m.yes_pool + m.no_pool <= m.total_pool
    assert m.unrevealed_pool == 40
    assert engine.vault.balance(m.vault) == m.total_pool

    types = [e.event_type for e in engine.store.list_events(market.address)]
    assert types == ["market_created"] + ["bet_committed"] * 4 + ["bet_revealed"] * 3
    seqs = [e.seq for e in engine.store.list_events()]
    assert seqs == sorted(seqs)


def test_summary_and_quotes(engine, clock, market, place):
    place(market.address, "bob", 300, Outcome.YES)
    place(market.address, "carol", 100, Outcome.NO)
    clock.set(DEADLINE)
    _reveal(engine, market.address, "bob", Outcome.YES)
    _reveal(engine, market.address, "carol", Outcome.NO)

    s = engine.summary(market.address, quote_amount=100)
    assert s.bettors == 2
    assert s.yes_share == pytest.approx(0.75)
    assert s.no_share == pytest.approx(0.25)
    assert s.vault_balance == 400
    assert s.yes_quote == 125  # 100 + floor(100 * 100 / 400)
    assert s.no_quote == 250  # 100 + floor(100 * 300 / 200)
    assert engine.summary(market.address).yes_quote is None


def test_dashboard_across_markets(engine, clock, market, place):
    second = engine.create_market("alice", "oracle", 2, "Second?", DEADLINE)
    place(market.address, "bob", 100, Outcome.YES)
    place(market.address, "carol", 100, Outcome.NO)
    place(second.address, "bob", 50, Outcome.NO)
    clock.set(DEADLINE)
    _reveal(engine, market.address, "bob", Outcome.YES)
    _reveal(engine, market.address, "carol", Outcome.NO)
    engine.resolve_market(market.address, "oracle", Outcome.YES)

    bob = engine.dashboard("bob")
    assert bob.total_bets == 2
    assert bob.total_wagered == 150
    assert (bob.wins, bob.losses, bob.pending, bob.claimable) == (1, 0, 1, 1)
    engine.claim_winnings(market.address, "bob")
    assert engine.dashboard("bob").claimable == 0
    assert engine.dashboard("carol").losses == 1


def test_concurrent_commits_keep_totals(engine, market):
    participants = [f"p{i}" for i in range(20)]
    for p in participants:
        engine.fund(p, 10)
    errors = []

    def worker(p):
        try:
            engine.commit_bet(market.address, p, 10, bytes(32))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(p,)) for p in participants]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert not errors
    m = engine.get_market(market.address)
    assert m.total_pool == 200
    assert engine.vault.balance(m.vault) == 200
    assert len(engine.list_bets(market.address)) == 20


def test_commit_timestamp_comes_from_clock(engine, market, place):
    place(market.address, "bob", 10, Outcome.YES)
    bet = engine.get_bet(market.address, "bob")
    assert bet.committed_at == T0


def test_two_sided_market_default_reveal_period(engine, clock, place):
    m = engine.create_market("alice", "oracle", 10, "Coin lands heads?", T0 + 1_000)
    assert m.reveal_deadline == T0 + 1_000 + 86_400
    place(m.address, "bob", 100, Outcome.YES)
    place(m.address, "carol", 100, Outcome.NO)
    clock.set(T0 + 1_000)
    _reveal(engine, m.address, "bob", Outcome.YES)
    _reveal(engine, m.address, "carol", Outcome.NO)
    engine.resolve_market(m.address, "oracle", Outcome.YES)
    assert engine.claim_winnings(m.address, "bob") == 200
    with pytest.raises(DidNotWin):
        engine.claim_winnings(m.address, "carol")


def test_reveal_with_other_outcome_is_rejected(engine, clock, market, place):
    place(market.address, "bob", 100, Outcome.YES)
    clock.set(DEADLINE)
    with pytest.raises(CommitmentMismatch):
        _reveal(engine, market.address, "bob", Outcome.NO)
    bet = engine.get_bet(market.address, "bob")
    assert not bet.is_revealed
    assert engine.get_market(market.address).status == MarketStatus.OPEN


def test_reveal_before_deadline_is_rejected(engine, clock, market, place):
    place(market.address, "bob", 100, Outcome.YES)
    clock.set(DEADLINE - 1)
    with pytest.raises(MarketNotExpired):
        _reveal(engine, market.address, "bob", Outcome.YES)


def test_three_bettors_no_wins(engine, clock, market, place):
    bettors = [("bob", 50, Outcome.YES), ("carol", 30, Outcome.NO), ("dave", 20, Outcome.NO)]
    for who, amount, side in bettors:
        place(market.address, who, amount, side)
    clock.set(DEADLINE)
    for who, _, side in bettors:
        _reveal(engine, market.address, who, side)
    engine.resolve_market(market.address, "oracle", Outcome.NO)
    assert engine.claim_winnings(market.address, "carol") == 60
    assert engine.claim_winnings(market.address, "dave") == 40
    assert engine.vault.balance(market.vault) == 0


def test_failed_reveal_leaves_market_and_bet_untouched(engine, clock, market, place):
    place(market.address, "bob", 5, Outcome.YES)
    saturated = engine.get_market(market.address).model_copy(update={"yes_pool": U64_MAX - 1})
    engine.store.update_market(saturated)
    clock.set(DEADLINE)

    with pytest.raises(Overflow):
        _reveal(engine, market.address, "bob", Outcome.YES)

    m = engine.get_market(market.address)
    assert m.status == MarketStatus.OPEN
    assert m.yes_pool == U64_MAX - 1
    assert m.yes_count == 0
    bet = engine.get_bet(market.address, "bob")
    assert not bet.is_revealed
    assert bet.revealed_salt is None
    assert [e.event_type for e in engine.store.list_events(market.address)] == ["market_created", "bet_committed"]
