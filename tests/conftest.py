"""Shared fixtures: pinned clock, in-memory store and vault, temp DuckDB."""

import shutil
import tempfile
from pathlib import Path

import pytest

from echobet.protocol.commitment import compute_commitment_hash
from echobet.protocol.engine import MarketEngine
from echobet.services.clock import FixedClock
from echobet.services.vault import InMemoryVault
from echobet.storage.db import get_connection, init_schema
from echobet.storage.memory import MemoryRecordStore

T0 = 1_700_000_000
DEADLINE = T0 + 3_600
REVEAL_PERIOD = 600


def salt_for(participant: str) -> bytes:
    """Stable per-participant salt so tests can reveal without bookkeeping."""
    return participant.encode().ljust(32, b"\x00")[:32]


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def engine(clock):
    return MarketEngine(MemoryRecordStore(), InMemoryVault(), clock)


@pytest.fixture
def market(engine):
    return engine.create_market(
        creator="alice",
        oracle="oracle",
        market_id=1,
        question="Will it rain tomorrow?",
        deadline=DEADLINE,
        reveal_period=REVEAL_PERIOD,
    )


@pytest.fixture
def place(engine):
    """Fund, then commit a hidden bet. Returns the bet record."""

    def _place(market_address: str, participant: str, amount: int, outcome: int):
        engine.fund(participant, amount)
        digest = compute_commitment_hash(amount, outcome, salt_for(participant))
        return engine.commit_bet(market_address, participant, amount, digest)

    return _place


@pytest.fixture
def temp_db():
    tmp = tempfile.mkdtemp()
    path = Path(tmp) / "test.duckdb"
    conn = get_connection(path)
    init_schema(conn)
    yield conn
    conn.close()
    shutil.rmtree(tmp, ignore_errors=True)
