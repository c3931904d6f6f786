"""Market persistence."""

from __future__ import annotations

from typing import TYPE_CHECKING

from echobet.models import MarketRecord, MarketStatus, Outcome

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

COLUMNS = [
    "address",
    "vault",
    "creator",
    "oracle",
    "market_id",
    "question",
    "deadline",
    "reveal_deadline",
    "status",
    "outcome",
    "total_pool",
    "yes_pool",
    "no_pool",
    "yes_count",
    "no_count",
    "created_at",
    "resolved_at",
]
_SELECT = f"SELECT {', '.join(COLUMNS)} FROM markets"


def _to_row(market: MarketRecord) -> list:
    return [
        market.address,
        market.vault,
        market.creator,
        market.oracle,
        market.market_id,
        market.question,
        market.deadline,
        market.reveal_deadline,
        market.status.value,
        int(market.outcome) if market.outcome is not None else None,
        market.total_pool,
        market.yes_pool,
        market.no_pool,
        market.yes_count,
        market.no_count,
        market.created_at,
        market.resolved_at,
    ]


def _from_row(row: tuple) -> MarketRecord:
    data = dict(zip(COLUMNS, row))
    data["status"] = MarketStatus(data["status"])
    data["outcome"] = Outcome(data["outcome"]) if data["outcome"] is not None else None
    return MarketRecord(**data)


def market_exists(conn: DuckDBPyConnection, address: str) -> bool:
    row = conn.execute("SELECT 1 FROM markets WHERE address = ?", [address]).fetchone()
    return row is not None


def insert_market(conn: DuckDBPyConnection, market: MarketRecord) -> None:
    """Insert a new market row. Caller checks uniqueness first."""
    placeholders = ", ".join("?" for _ in COLUMNS)
    conn.execute(
        f"INSERT INTO markets ({', '.join(COLUMNS)}) VALUES ({placeholders})",
        _to_row(market),
    )


def update_market(conn: DuckDBPyConnection, market: MarketRecord) -> None:
    """Write the mutable columns back (status, outcome, pools, counts, resolved_at)."""
    conn.execute(
        """
        UPDATE markets SET
            status = ?,
            outcome = ?,
            total_pool = ?,
            yes_pool = ?,
            no_pool = ?,
            yes_count = ?,
            no_count = ?,
            resolved_at = ?
        WHERE address = ?
        """,
        [
            market.status.value,
            int(market.outcome) if market.outcome is not None else None,
            market.total_pool,
            market.yes_pool,
            market.no_pool,
            market.yes_count,
            market.no_count,
            market.resolved_at,
            market.address,
        ],
    )


def get_market(conn: DuckDBPyConnection, address: str) -> MarketRecord | None:
    row = conn.execute(f"{_SELECT} WHERE address = ?", [address]).fetchone()
    return _from_row(row) if row else None


def list_markets(conn: DuckDBPyConnection, status: MarketStatus | None = None) -> list[MarketRecord]:
    """List markets in creation order, optionally filtered by status."""
    if status is not None:
        rows = conn.execute(
            f"{_SELECT} WHERE status = ? ORDER BY created_at, address", [status.value]
        ).fetchall()
    else:
        rows = conn.execute(f"{_SELECT} ORDER BY created_at, address").fetchall()
    return [_from_row(r) for r in rows]
