"""DuckDB record store - wraps the table modules behind the RecordStore interface."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator

import structlog

from echobet.models import BetRecord, MarketRecord, MarketStatus, ProtocolEvent
from echobet.protocol.errors import BetNotFound, DuplicateCommitment, DuplicateMarket, MarketNotFound
from echobet.storage import bets as bet_rows
from echobet.storage import markets as market_rows
from echobet.storage.base import RecordStore
from echobet.storage.db import get_connection, init_schema
from echobet.storage.event_log import append_event, stream_events

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)

# One lock per database file, shared by every store opened on it in this process.
_DB_LOCKS: dict[str, threading.RLock] = {}
_DB_LOCKS_GUARD = threading.Lock()


def database_lock(db_path: str | Path) -> threading.RLock:
    """Process-wide lock for a database file. ':memory:' databases are private, so each gets its own."""
    if str(db_path) == ":memory:":
        return threading.RLock()
    key = str(Path(db_path).resolve())
    with _DB_LOCKS_GUARD:
        return _DB_LOCKS.setdefault(key, threading.RLock())


class DuckDBRecordStore(RecordStore):
    """Record store on one DuckDB connection. `transaction()` maps to BEGIN/COMMIT/ROLLBACK."""

    def __init__(self, conn: DuckDBPyConnection, lock: threading.RLock | None = None) -> None:
        self.conn = conn
        self._lock = lock or threading.RLock()
        self._in_tx = False

    @classmethod
    def open(cls, db_path: str | Path) -> DuckDBRecordStore:
        lock = database_lock(db_path)
        with lock:
            conn = get_connection(db_path)
            init_schema(conn)
        return cls(conn, lock)

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def close(self) -> None:
        self.conn.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._in_tx:
            # Joined into the enclosing transaction.
            yield
            return
        self.conn.begin()
        self._in_tx = True
        try:
            yield
        except BaseException:
            self.conn.rollback()
            log.debug("transaction_rolled_back")
            raise
        else:
            self.conn.commit()
        finally:
            self._in_tx = False

    # --- Markets ---
    def insert_market(self, market: MarketRecord) -> None:
        if market_rows.market_exists(self.conn, market.address):
            raise DuplicateMarket(f"market {market.address} exists")
        market_rows.insert_market(self.conn, market)

    def get_market(self, address: str) -> MarketRecord | None:
        return market_rows.get_market(self.conn, address)

    def update_market(self, market: MarketRecord) -> None:
        if not market_rows.market_exists(self.conn, market.address):
            raise MarketNotFound(market.address)
        market_rows.update_market(self.conn, market)

    def list_markets(self, status: MarketStatus | None = None) -> list[MarketRecord]:
        return market_rows.list_markets(self.conn, status=status)

    # --- Bets ---
    def insert_bet(self, bet: BetRecord) -> None:
        if bet_rows.bet_exists(self.conn, bet.address, bet.market, bet.participant):
            raise DuplicateCommitment(f"{bet.participant} already committed to {bet.market}")
        bet_rows.insert_bet(self.conn, bet)

    def get_bet(self, address: str) -> BetRecord | None:
        return bet_rows.get_bet(self.conn, address)

    def update_bet(self, bet: BetRecord) -> None:
        if bet_rows.get_bet(self.conn, bet.address) is None:
            raise BetNotFound(bet.address)
        bet_rows.update_bet(self.conn, bet)

    def list_bets(self, market: str | None = None, participant: str | None = None) -> list[BetRecord]:
        return bet_rows.list_bets(self.conn, market=market, participant=participant)

    # --- Events ---
    def append_event(
        self,
        event_type: str,
        market: str,
        participant: str | None,
        ts: int,
        payload: dict[str, Any],
    ) -> None:
        append_event(self.conn, event_type, market, participant, ts, payload)

    def list_events(self, market: str | None = None) -> list[ProtocolEvent]:
        return stream_events(self.conn, market=market)
