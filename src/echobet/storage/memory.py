"""In-memory record store: an arena of records plus a composite-key index."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from echobet.models import BetRecord, MarketRecord, MarketStatus, ProtocolEvent
from echobet.protocol.errors import BetNotFound, DuplicateCommitment, DuplicateMarket, MarketNotFound
from echobet.storage.base import RecordStore


class MemoryRecordStore(RecordStore):
    """Records live in insertion-ordered arenas; the index maps address -> arena slot."""

    def __init__(self) -> None:
        self._markets: list[MarketRecord] = []
        self._bets: list[BetRecord] = []
        self._market_index: dict[str, int] = {}
        self._bet_index: dict[str, int] = {}
        # (market, participant) -> bet slot
        self._bet_pair_index: dict[tuple[str, str], int] = {}
        self._events: list[ProtocolEvent] = []
        self._undo: list[Callable[[], None]] | None = None
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Writes are recorded in an undo log and reverted in reverse order on error."""
        if self._undo is not None:
            yield
            return
        self._undo = []
        try:
            yield
        except BaseException:
            for undo in reversed(self._undo):
                undo()
            raise
        finally:
            self._undo = None

    def _on_rollback(self, undo: Callable[[], None]) -> None:
        if self._undo is not None:
            self._undo.append(undo)

    def _drop_market(self, address: str) -> None:
        del self._market_index[address]
        self._markets.pop()

    def _drop_bet(self, address: str, pair: tuple[str, str]) -> None:
        del self._bet_index[address]
        del self._bet_pair_index[pair]
        self._bets.pop()


    # --- Markets ---
    def insert_market(self, market: MarketRecord) -> None:
        if market.address in self._market_index:
            raise DuplicateMarket(f"market {market.address} exists")
        self._market_index[market.address] = len(self._markets)
        self._markets.append(market.model_copy())
        address = market.address
        self._on_rollback(lambda: self._drop_market(address))

    def get_market(self, address: str) -> MarketRecord | None:
        slot = self._market_index.get(address)
        return None if slot is None else self._markets[slot].model_copy()

    def update_market(self, market: MarketRecord) -> None:
        slot = self._market_index.get(market.address)
        if slot is None:
            raise MarketNotFound(market.address)
        previous = self._markets[slot]
        self._markets[slot] = market.model_copy()
        self._on_rollback(lambda: self._markets.__setitem__(slot, previous))

    def list_markets(self, status: MarketStatus | None = None) -> list[MarketRecord]:
        return [m.model_copy() for m in self._markets if status is None or m.status == status]

    # --- Bets ---
    def insert_bet(self, bet: BetRecord) -> None:
        pair = (bet.market, bet.participant)
        if bet.address in self._bet_index or pair in self._bet_pair_index:
            raise DuplicateCommitment(f"{bet.participant} already committed to {bet.market}")
        slot = len(self._bets)
        self._bets.append(bet.model_copy())
        self._bet_index[bet.address] = slot
        self._bet_pair_index[pair] = slot
        address = bet.address
        self._on_rollback(lambda: self._drop_bet(address, pair))

    def get_bet(self, address: str) -> BetRecord | None:
        slot = self._bet_index.get(address)
        return None if slot is None else self._bets[slot].model_copy()

    def update_bet(self, bet: BetRecord) -> None:
        slot = self._bet_index.get(bet.address)
        if slot is None:
            raise BetNotFound(bet.address)
        previous = self._bets[slot]
        self._bets[slot] = bet.model_copy()
        self._on_rollback(lambda: self._bets.__setitem__(slot, previous))

    def list_bets(self, market: str | None = None, participant: str | None = None) -> list[BetRecord]:
        return [
            b.model_copy()
            for b in self._bets
            if (market is None or b.market == market) and (participant is None or b.participant == participant)
        ]

    # --- Events ---
    def append_event(
        self,
        event_type: str,
        market: str,
        participant: str | None,
        ts: int,
        payload: dict[str, Any],
    ) -> None:
        self._events.append(
            ProtocolEvent(
                seq=len(self._events) + 1,
                event_type=event_type,
                market=market,
                participant=participant,
                ts=ts,
                payload=dict(payload),
            )
        )
        self._on_rollback(self._events.pop)

    def list_events(self, market: str | None = None) -> list[ProtocolEvent]:
        return [e.model_copy() for e in self._events if market is None or e.market == market]
