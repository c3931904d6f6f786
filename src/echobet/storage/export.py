"""Export protocol events to Parquet."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


def export_events_to_parquet(
    conn: DuckDBPyConnection,
    output_path: str | Path,
    market: str | None = None,
) -> int:
    """Export protocol_events to a Parquet file. Optional filter by market. Returns row count."""
    path = Path(output_path).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    path_str = str(path).replace("'", "''")
    if market:
        market_str = market.replace("'", "''")
        conn.execute(
            f"COPY (SELECT * FROM protocol_events WHERE market = '{market_str}' ORDER BY id) "
            f"TO '{path_str}' (FORMAT PARQUET)"
        )
        count = conn.execute("SELECT COUNT(*) FROM protocol_events WHERE market = ?", [market]).fetchone()[0]
    else:
        conn.execute(
            f"COPY (SELECT * FROM protocol_events ORDER BY id) TO '{path_str}' (FORMAT PARQUET)",
        )
        count = conn.execute("SELECT COUNT(*) FROM protocol_events").fetchone()[0]
    return count
