"""Replay subcommand: audit markets against the event log."""

from __future__ import annotations

import typer

from echobet.cli.context import open_engine
from echobet.replay.engine import audit_market

app = typer.Typer(help="Rebuild pools from the event log and audit stored state")


@app.command("audit")
def audit(
    ctx: typer.Context,
    market: str | None = typer.Argument(None, help="Market address (default: all markets)"),
) -> None:
    """Replay events and compare pools, counts and vault balances with stored records."""
    failures = 0
    with open_engine(ctx) as engine:
        markets = [engine.get_market(market)] if market else engine.list_markets()
        for m in markets:
            report = audit_market(engine.store, engine.vault, m)
            t = report.tally
            state = "ok" if report.ok else "MISMATCH"
            typer.echo(
                f"  {m.address[:16]}...  {state:<8}  events={t.events_processed}  "
                f"total={t.total_pool}  yes={t.yes_pool}  no={t.no_pool}  paid={t.paid_out}"
            )
            for line in report.mismatches:
                typer.echo(f"      {line}")
            if not report.ok:
                failures += 1
        typer.echo(f"Audited {len(markets)} markets, {failures} with mismatches")
    if failures:
        raise typer.Exit(1)
