"""DuckDB connection and schema init."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import duckdb

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

SCHEMA_SQL = """
CREATE SEQUENCE IF NOT EXISTS event_seq START 1;
CREATE SEQUENCE IF NOT EXISTS transfer_seq START 1;

-- Markets keyed by address derived from (creator, market_id)
CREATE TABLE IF NOT EXISTS markets (
    address         VARCHAR PRIMARY KEY,
    vault           VARCHAR NOT NULL,
    creator         VARCHAR NOT NULL,
    oracle          VARCHAR NOT NULL,
    market_id       UBIGINT NOT NULL,
    question        VARCHAR NOT NULL,
    deadline        BIGINT NOT NULL,
    reveal_deadline BIGINT NOT NULL,
    status          VARCHAR NOT NULL,
    outcome         UTINYINT,
    total_pool      UBIGINT NOT NULL,
    yes_pool        UBIGINT NOT NULL,
    no_pool         UBIGINT NOT NULL,
    yes_count       UINTEGER NOT NULL,
    no_count        UINTEGER NOT NULL,
    created_at      BIGINT NOT NULL,
    resolved_at     BIGINT NOT NULL,
    UNIQUE (creator, market_id)
);

-- Bets keyed by address derived from (market, participant)
CREATE TABLE IF NOT EXISTS bets (
    address          VARCHAR PRIMARY KEY,
    market           VARCHAR NOT NULL,
    participant      VARCHAR NOT NULL,
    commitment_hash  BLOB NOT NULL,
    amount           UBIGINT NOT NULL,
    revealed_outcome UTINYINT,
    revealed_salt    BLOB,
    is_revealed      BOOLEAN NOT NULL,
    is_claimed       BOOLEAN NOT NULL,
    committed_at     BIGINT NOT NULL,
    revealed_at      BIGINT NOT NULL,
    UNIQUE (market, participant)
);

-- Escrow balances (participant accounts and market vaults)
CREATE TABLE IF NOT EXISTS vault_balances (
    account         VARCHAR PRIMARY KEY,
    is_vault        BOOLEAN NOT NULL,
    balance         UBIGINT NOT NULL
);

-- Transfer ledger (append-only)
CREATE TABLE IF NOT EXISTS vault_transfers (
    id              BIGINT PRIMARY KEY DEFAULT nextval('transfer_seq'),
    kind            VARCHAR NOT NULL,
    source          VARCHAR,
    dest            VARCHAR NOT NULL,
    amount          UBIGINT NOT NULL,
    created_at      BIGINT NOT NULL
);

-- Protocol event log (append-only, one row per successful operation)
CREATE TABLE IF NOT EXISTS protocol_events (
    id              BIGINT PRIMARY KEY DEFAULT nextval('event_seq'),
    event_type      VARCHAR NOT NULL,
    market          VARCHAR NOT NULL,
    participant     VARCHAR,
    ts              BIGINT NOT NULL,
    payload         JSON NOT NULL
);
"""


def get_connection(db_path: str | Path, read_only: bool = False) -> DuckDBPyConnection:
    """Return a DuckDB connection. Caller must close or use as context manager.
    ':memory:' opens a throwaway in-process database."""
    if str(db_path) == ":memory:":
        return duckdb.connect(":memory:")
    path = Path(db_path)
    if not read_only:
        path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path), read_only=read_only)


def init_schema(conn: DuckDBPyConnection) -> None:
    """Create tables and sequences if they do not exist."""
    for stmt in SCHEMA_SQL.split(";"):
        stmt = stmt.strip()
        if stmt:
            try:
                conn.execute(stmt)
            except duckdb.Error as e:
                if "already exists" not in str(e).lower():
                    raise
