"""Record store interface - markets and bets keyed by derived addresses."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any

from echobet.models import BetRecord, MarketRecord, MarketStatus, ProtocolEvent


class RecordStore(ABC):
    """Durable create/read/update for MarketRecord and BetRecord.

    Inserts enforce key uniqueness. Writes made inside `transaction()` are
    applied together or not at all.
    """

    @property
    @abstractmethod
    def lock(self) -> threading.RLock:
        """Serializes protocol operations on these records across engines."""
        ...

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        ...

    @abstractmethod
    def insert_market(self, market: MarketRecord) -> None:
        """Raises DuplicateMarket if the address exists."""
        ...

    @abstractmethod
    def get_market(self, address: str) -> MarketRecord | None:
        ...

    @abstractmethod
    def update_market(self, market: MarketRecord) -> None:
        ...

    @abstractmethod
    def list_markets(self, status: MarketStatus | None = None) -> list[MarketRecord]:
        ...

    @abstractmethod
    def insert_bet(self, bet: BetRecord) -> None:
        """Raises DuplicateCommitment if the address exists."""
        ...

    @abstractmethod
    def get_bet(self, address: str) -> BetRecord | None:
        ...

    @abstractmethod
    def update_bet(self, bet: BetRecord) -> None:
        ...

    @abstractmethod
    def list_bets(self, market: str | None = None, participant: str | None = None) -> list[BetRecord]:
        ...

    @abstractmethod
    def append_event(
        self,
        event_type: str,
        market: str,
        participant: str | None,
        ts: int,
        payload: dict[str, Any],
    ) -> None:
        ...

    @abstractmethod
    def list_events(self, market: str | None = None) -> list[ProtocolEvent]:
        """Events in append order."""
        ...
