"""Bet (commitment) persistence."""

from __future__ import annotations

from typing import TYPE_CHECKING

from echobet.models import BetRecord, Outcome

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

COLUMNS = [
    "address",
    "market",
    "participant",
    "commitment_hash",
    "amount",
    "revealed_outcome",
    "revealed_salt",
    "is_revealed",
    "is_claimed",
    "committed_at",
    "revealed_at",
]
_SELECT = f"SELECT {', '.join(COLUMNS)} FROM bets"


def _from_row(row: tuple) -> BetRecord:
    data = dict(zip(COLUMNS, row))
    data["commitment_hash"] = bytes(data["commitment_hash"])
    if data["revealed_salt"] is not None:
        data["revealed_salt"] = bytes(data["revealed_salt"])
    if data["revealed_outcome"] is not None:
        data["revealed_outcome"] = Outcome(data["revealed_outcome"])
    return BetRecord(**data)


def bet_exists(conn: DuckDBPyConnection, address: str, market: str, participant: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM bets WHERE address = ? OR (market = ? AND participant = ?)",
        [address, market, participant],
    ).fetchone()
    return row is not None


def insert_bet(conn: DuckDBPyConnection, bet: BetRecord) -> None:
    placeholders = ", ".join("?" for _ in COLUMNS)
    conn.execute(
        f"INSERT INTO bets ({', '.join(COLUMNS)}) VALUES ({placeholders})",
        [
            bet.address,
            bet.market,
            bet.participant,
            bet.commitment_hash,
            bet.amount,
            int(bet.revealed_outcome) if bet.revealed_outcome is not None else None,
            bet.revealed_salt,
            bet.is_revealed,
            bet.is_claimed,
            bet.committed_at,
            bet.revealed_at,
        ],
    )


def update_bet(conn: DuckDBPyConnection, bet: BetRecord) -> None:
    """Write reveal/claim columns back. Hash and amount are immutable."""
    conn.execute(
        """
        UPDATE bets SET
            revealed_outcome = ?,
            revealed_salt = ?,
            is_revealed = ?,
            is_claimed = ?,
            revealed_at = ?
        WHERE address = ?
        """,
        [
            int(bet.revealed_outcome) if bet.revealed_outcome is not None else None,
            bet.revealed_salt,
            bet.is_revealed,
            bet.is_claimed,
            bet.revealed_at,
            bet.address,
        ],
    )


def get_bet(conn: DuckDBPyConnection, address: str) -> BetRecord | None:
    row = conn.execute(f"{_SELECT} WHERE address = ?", [address]).fetchone()
    return _from_row(row) if row else None


def list_bets(
    conn: DuckDBPyConnection,
    market: str | None = None,
    participant: str | None = None,
) -> list[BetRecord]:
    """List bets in commit order, optionally filtered by market and/or participant."""
    conditions = []
    params = []
    if market:
        conditions.append("market = ?")
        params.append(market)
    if participant:
        conditions.append("participant = ?")
        params.append(participant)
    where = " AND ".join(conditions) if conditions else "1=1"
    rows = conn.execute(f"{_SELECT} WHERE {where} ORDER BY committed_at, address", params).fetchall()
    return [_from_row(r) for r in rows]
