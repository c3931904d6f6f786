"""Deterministic replay of the protocol event log - rebuild pool tallies and audit stored state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from echobet.models import MarketRecord, Outcome, ProtocolEvent
from echobet.services.base import EscrowVault
from echobet.storage.base import RecordStore


@dataclass
class PoolTally:
    """Market totals reconstructed from events alone."""

    market: str
    created: bool = False
    total_pool: int = 0
    yes_pool: int = 0
    no_pool: int = 0
    yes_count: int = 0
    no_count: int = 0
    outcome: Outcome | None = None
    paid_out: int = 0
    claims: int = 0
    events_processed: int = 0

    @property
    def expected_vault_balance(self) -> int:
        return self.total_pool - self.paid_out


@dataclass
class AuditReport:
    market: str
    tally: PoolTally
    mismatches: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.mismatches


def replay_events(market: str, events: Iterable[ProtocolEvent]) -> PoolTally:
    """Fold events (in append order) into a tally. Same events -> same tally."""
    tally = PoolTally(market=market)
    for event in events:
        if event.market != market:
            continue
        tally.events_processed += 1
        payload = event.payload
        if event.event_type == "market_created":
            tally.created = True
        elif event.event_type == "bet_committed":
            tally.total_pool += int(payload["amount"])
        elif event.event_type == "bet_revealed":
            side = Outcome(int(payload["outcome"]))
            if side is Outcome.YES:
                tally.yes_pool += int(payload["amount"])
                tally.yes_count += 1
            else:
                tally.no_pool += int(payload["amount"])
                tally.no_count += 1
        elif event.event_type == "market_resolved":
            tally.outcome = Outcome(int(payload["outcome"]))
        elif event.event_type == "winnings_claimed":
            tally.paid_out += int(payload["payout"])
            tally.claims += 1
    return tally


def replay_market(store: RecordStore, market: str) -> PoolTally:
    return replay_events(market, store.list_events(market=market))


def _compare(report: AuditReport, name: str, stored: object, replayed: object) -> None:
    if stored != replayed:
        report.mismatches.append(f"{name}: stored={stored} replayed={replayed}")


def audit_market(store: RecordStore, vault: EscrowVault, market: MarketRecord) -> AuditReport:
    """Compare a stored market (and its vault) against the replayed event log."""
    tally = replay_market(store, market.address)
    report = AuditReport(market=market.address, tally=tally)
    if not tally.created:
        report.mismatches.append("market_created event missing")
    _compare(report, "total_pool", market.total_pool, tally.total_pool)
    _compare(report, "yes_pool", market.yes_pool, tally.yes_pool)
    _compare(report, "no_pool", market.no_pool, tally.no_pool)
    _compare(report, "yes_count", market.yes_count, tally.yes_count)
    _compare(report, "no_count", market.no_count, tally.no_count)
    _compare(report, "outcome", market.outcome, tally.outcome)

    revealed = [b for b in store.list_bets(market=market.address) if b.is_revealed]
    _compare(report, "revealed_stake", market.yes_pool + market.no_pool, sum(b.amount for b in revealed))
    _compare(report, "vault_balance", vault.balance(market.vault), tally.expected_vault_balance)
    if market.yes_pool + market.no_pool > market.total_pool:
        report.mismatches.append("revealed pools exceed total_pool")
    return report
