"""Protocol event append and query - append-only audit log."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from echobet.models import ProtocolEvent

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


def append_event(
    conn: DuckDBPyConnection,
    event_type: str,
    market: str,
    participant: str | None,
    ts: int,
    payload: dict[str, Any],
) -> None:
    """Append a single protocol event."""
    conn.execute(
        """
        INSERT INTO protocol_events (event_type, market, participant, ts, payload)
        VALUES (?, ?, ?, ?, ?)
        """,
        [event_type, market, participant, ts, json.dumps(payload)],
    )


def stream_events(
    conn: DuckDBPyConnection,
    market: str | None = None,
    start_ts: int | None = None,
    end_ts: int | None = None,
) -> list[ProtocolEvent]:
    """Events in append order, optionally filtered by market and time."""
    conditions = []
    params: list[Any] = []
    if market:
        conditions.append("market = ?")
        params.append(market)
    if start_ts is not None:
        conditions.append("ts >= ?")
        params.append(start_ts)
    if end_ts is not None:
        conditions.append("ts <= ?")
        params.append(end_ts)
    where = " AND ".join(conditions) if conditions else "1=1"
    rows = conn.execute(
        f"SELECT id, event_type, market, participant, ts, payload FROM protocol_events WHERE {where} ORDER BY id ASC",
        params,
    ).fetchall()
    events = []
    for seq, event_type, mkt, participant, ts, payload_json in rows:
        payload = json.loads(payload_json) if isinstance(payload_json, str) else payload_json
        events.append(
            ProtocolEvent(seq=seq, event_type=event_type, market=mkt, participant=participant, ts=ts, payload=payload)
        )
    return events


def log_stats(conn: DuckDBPyConnection) -> dict[str, Any]:
    """Return event log statistics: total count, min/max ts, counts by type and by market."""
    total = conn.execute("SELECT COUNT(*) FROM protocol_events").fetchone()[0]
    range_row = conn.execute("SELECT MIN(ts), MAX(ts) FROM protocol_events").fetchone()
    by_type = conn.execute(
        "SELECT event_type, COUNT(*) AS cnt FROM protocol_events GROUP BY event_type ORDER BY cnt DESC"
    ).fetchall()
    by_market = conn.execute(
        "SELECT market, COUNT(*) AS cnt FROM protocol_events GROUP BY market ORDER BY cnt DESC LIMIT 20"
    ).fetchall()
    return {
        "total_events": total,
        "min_ts": range_row[0],
        "max_ts": range_row[1],
        "by_type": [{"event_type": r[0], "count": r[1]} for r in by_type],
        "by_market": [{"market": r[0], "count": r[1]} for r in by_market],
    }
