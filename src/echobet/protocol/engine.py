"""Market engine - the five protocol operations plus read models.

Each operation reads the clock once, runs the pure rule for that operation
(which checks every guard and computes every checked sum up front), then
applies store writes, the event append and finally the vault transfer inside
one store transaction. A failure anywhere leaves no visible change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

import structlog

from echobet.models import DEFAULT_REVEAL_PERIOD, MAX_QUESTION_LENGTH, BetRecord, MarketRecord, MarketStatus, Outcome
from echobet.protocol.addressing import bet_address
from echobet.protocol.betting import apply_commit, apply_reveal
from echobet.protocol.errors import BetNotFound, DuplicateCommitment, EchoBetError, MarketNotFound
from echobet.protocol.lifecycle import build_market
from echobet.protocol.resolution import apply_resolution
from echobet.protocol.settlement import apply_claim, quote_payout
from echobet.services.base import Clock, EscrowVault, VaultAuthority
from echobet.storage.base import RecordStore

log = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class MarketSummary:
    """Display view of a market. Shares are floats for display only."""

    market: MarketRecord
    yes_share: float | None
    no_share: float | None
    bettors: int
    unrevealed_pool: int
    vault_balance: int
    yes_quote: int | None = None
    no_quote: int | None = None


@dataclass
class ParticipantDashboard:
    """Per-participant aggregate over all bets."""

    participant: str
    bets: list[BetRecord] = field(default_factory=list)
    total_bets: int = 0
    total_wagered: int = 0
    wins: int = 0
    losses: int = 0
    pending: int = 0
    claimable: int = 0
    forfeited: int = 0
    forfeited_stake: int = 0


class MarketEngine:
    """Runs protocol operations against a record store, an escrow vault and a clock."""

    def __init__(
        self,
        store: RecordStore,
        vault: EscrowVault,
        clock: Clock,
        *,
        default_reveal_period: int = DEFAULT_REVEAL_PERIOD,
        max_question_length: int = MAX_QUESTION_LENGTH,
    ) -> None:
        self.store = store
        self.vault = vault
        self.clock = clock
        self.default_reveal_period = default_reveal_period
        self.max_question_length = max_question_length
        # Shared by every engine on the same records.
        self._lock = store.lock

    def _run(self, op: str, fn: Callable[[int], T], **context: Any) -> T:
        """Serialize, read the clock once, run fn(now) in a transaction, log rejections."""
        with self._lock:
            now = self.clock.now()
            try:
                with self.store.transaction():
                    return fn(now)
            except EchoBetError as e:
                log.warning(f"{op}_rejected", code=e.code, detail=e.detail, **context)
                raise

    def _market(self, address: str) -> MarketRecord:
        market = self.store.get_market(address)
        if market is None:
            raise MarketNotFound(f"market {address} not found")
        return market

    def _bet(self, market: str, participant: str) -> BetRecord:
        bet = self.store.get_bet(bet_address(market, participant))
        if bet is None:
            raise BetNotFound(f"{participant} has no bet on {market}")
        return bet

    # ==================== OPERATIONS ====================

    def create_market(
        self,
        creator: str,
        oracle: str,
        market_id: int,
        question: str,
        deadline: int,
        reveal_period: int | None = None,
    ) -> MarketRecord:
        def op(now: int) -> MarketRecord:
            market = build_market(
                creator=creator,
                oracle=oracle,
                market_id=market_id,
                question=question,
                deadline=deadline,
                now=now,
                reveal_period=reveal_period,
                default_reveal_period=self.default_reveal_period,
                max_question_length=self.max_question_length,
            )
            self.store.insert_market(market)
            self.store.append_event(
                "market_created",
                market.address,
                creator,
                now,
                {
                    "creator": creator,
                    "oracle": oracle,
                    "market_id": market_id,
                    "deadline": market.deadline,
                    "reveal_deadline": market.reveal_deadline,
                },
            )
            self.vault.open(market.vault)
            log.info("market_created", market=market.address, market_id=market_id, creator=creator)
            return market

        return self._run("create_market", op, creator=creator, market_id=market_id)

    def commit_bet(self, market: str, participant: str, amount: int, commitment_hash: bytes) -> BetRecord:
        def op(now: int) -> BetRecord:
            current = self._market(market)
            if self.store.get_bet(bet_address(market, participant)) is not None:
                raise DuplicateCommitment(f"{participant} already committed to {market}")
            updated, bet = apply_commit(current, participant, amount, commitment_hash, now)
            self.store.insert_bet(bet)
            self.store.update_market(updated)
            self.store.append_event("bet_committed", market, participant, now, {"amount": amount})
            self.vault.deposit(updated.vault, participant, amount, ts=now)
            log.info("bet_committed", market=market, participant=participant, amount=amount)
            return bet

        return self._run("commit_bet", op, market=market, participant=participant)

    def reveal_bet(self, market: str, participant: str, outcome: int | Outcome, salt: bytes) -> BetRecord:
        def op(now: int) -> BetRecord:
            current = self._market(market)
            bet = self._bet(market, participant)
            updated, revealed = apply_reveal(current, bet, participant, outcome, salt, now)
            self.store.update_market(updated)
            self.store.update_bet(revealed)
            self.store.append_event(
                "bet_revealed",
                market,
                participant,
                now,
                {"amount": revealed.amount, "outcome": int(revealed.revealed_outcome)},
            )
            log.info(
                "bet_revealed",
                market=market,
                participant=participant,
                outcome=revealed.revealed_outcome.name,
                status=updated.status.value,
            )
            return revealed

        return self._run("reveal_bet", op, market=market, participant=participant)

    def resolve_market(self, market: str, resolver: str, outcome: int | Outcome) -> MarketRecord:
        def op(now: int) -> MarketRecord:
            current = self._market(market)
            resolved = apply_resolution(current, resolver, outcome, now)
            self.store.update_market(resolved)
            self.store.append_event(
                "market_resolved",
                market,
                resolver,
                now,
                {"outcome": int(resolved.outcome), "unrevealed_pool": resolved.unrevealed_pool},
            )
            log.info(
                "market_resolved",
                market=market,
                outcome=resolved.outcome.name,
                resolver=resolver,
                unrevealed_pool=resolved.unrevealed_pool,
            )
            return resolved

        return self._run("resolve_market", op, market=market, resolver=resolver)

    def claim_winnings(self, market: str, participant: str) -> int:
        def op(now: int) -> int:
            current = self._market(market)
            bet = self._bet(market, participant)
            claimed, payout = apply_claim(current, bet, participant, self.vault.balance(current.vault))
            self.store.update_bet(claimed)
            self.store.append_event("winnings_claimed", market, participant, now, {"payout": payout})
            self.vault.withdraw(
                current.vault,
                participant,
                payout,
                VaultAuthority(vault=current.vault, market=current.address),
                ts=now,
            )
            log.info("winnings_claimed", market=market, participant=participant, payout=payout)
            return payout

        return self._run("claim_winnings", op, market=market, participant=participant)

    def fund(self, account: str, amount: int) -> int:
        """Credit a participant account (development faucet). Returns the new balance."""

        def op(now: int) -> int:
            balance = self.vault.fund(account, amount, ts=now)
            log.info("account_funded", account=account, amount=amount, balance=balance)
            return balance

        return self._run("fund", op, account=account)

    # ==================== READ MODELS ====================

    def get_market(self, address: str) -> MarketRecord:
        return self._market(address)

    def get_bet(self, market: str, participant: str) -> BetRecord:
        return self._bet(market, participant)

    def list_markets(self, status: MarketStatus | None = None) -> list[MarketRecord]:
        return self.store.list_markets(status=status)

    def list_bets(self, market: str) -> list[BetRecord]:
        return self.store.list_bets(market=market)

    def summary(self, address: str, quote_amount: int | None = None) -> MarketSummary:
        market = self._market(address)
        revealed = market.revealed_pool
        yes_share = market.yes_pool / revealed if revealed else None
        no_share = market.no_pool / revealed if revealed else None
        summary = MarketSummary(
            market=market,
            yes_share=yes_share,
            no_share=no_share,
            bettors=market.bettors,
            unrevealed_pool=market.unrevealed_pool,
            vault_balance=self.vault.balance(market.vault),
        )
        if quote_amount:
            summary.yes_quote = quote_payout(market, Outcome.YES, quote_amount)
            summary.no_quote = quote_payout(market, Outcome.NO, quote_amount)
        return summary

    def dashboard(self, participant: str) -> ParticipantDashboard:
        """Wins, losses, pending and forfeited stakes across all of a participant's bets."""
        dash = ParticipantDashboard(participant=participant)
        markets: dict[str, MarketRecord | None] = {}
        for bet in self.store.list_bets(participant=participant):
            if bet.market not in markets:
                markets[bet.market] = self.store.get_market(bet.market)
            market = markets[bet.market]
            dash.bets.append(bet)
            dash.total_bets += 1
            dash.total_wagered += bet.amount
            if market is None or market.status != MarketStatus.RESOLVED:
                dash.pending += 1
                continue
            won = bet.won(market.outcome)
            if won is None:
                dash.forfeited += 1
                dash.forfeited_stake += bet.amount
            elif won:
                dash.wins += 1
                if not bet.is_claimed:
                    dash.claimable += 1
            else:
                dash.losses += 1
        return dash
