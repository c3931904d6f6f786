"""Market subcommand: create, list, show, resolve."""

from __future__ import annotations

from datetime import datetime, timezone

import typer

from echobet.cli.context import open_engine
from echobet.models import MarketStatus

app = typer.Typer(help="Create, inspect and resolve markets")


def _fmt_ts(ts: int) -> str:
    if not ts:
        return "-"
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%SZ")


@app.command("create")
def create(
    ctx: typer.Context,
    creator: str = typer.Option(..., "--creator", help="Creator identity"),
    market_id: int = typer.Option(..., "--id", help="Creator-scoped market ID"),
    question: str = typer.Option(..., "--question", "-q", help="Question (max 256 bytes)"),
    oracle: str | None = typer.Option(None, "--oracle", help="Oracle identity (default: creator)"),
    deadline: int | None = typer.Option(None, "--deadline", help="Betting close (unix seconds)"),
    closes_in: int | None = typer.Option(None, "--closes-in", help="Betting closes N seconds from now"),
    reveal_period: int | None = typer.Option(None, "--reveal-period", help="Reveal window in seconds"),
) -> None:
    """Create a market. Exactly one of --deadline / --closes-in is required."""
    if (deadline is None) == (closes_in is None):
        typer.echo("Give exactly one of --deadline or --closes-in")
        raise typer.Exit(1)
    with open_engine(ctx) as engine:
        if closes_in is not None:
            deadline = engine.clock.now() + closes_in
        market = engine.create_market(
            creator=creator,
            oracle=oracle or creator,
            market_id=market_id,
            question=question,
            deadline=deadline,
            reveal_period=reveal_period,
        )
        typer.echo(f"Market: {market.address}")
        typer.echo(f"Vault: {market.vault}")
        typer.echo(f"Betting closes: {_fmt_ts(market.deadline)}  Reveal closes: {_fmt_ts(market.reveal_deadline)}")


@app.command("list")
def list_markets(
    ctx: typer.Context,
    status: MarketStatus | None = typer.Option(None, "--status", "-s", help="Filter by status"),
) -> None:
    """List markets."""
    with open_engine(ctx) as engine:
        rows = engine.list_markets(status=status)
        for m in rows:
            typer.echo(
                f"  {m.address[:16]}...  {m.status.value:<9}  pool={m.total_pool:<10}  "
                f"bettors={m.bettors:<4}  {m.question[:60]}"
            )
        typer.echo(f"Total: {len(rows)} markets")


@app.command("show")
def show(
    ctx: typer.Context,
    market: str = typer.Argument(..., help="Market address"),
    quote: int | None = typer.Option(None, "--quote", help="Quote payouts for this stake"),
) -> None:
    """Show a market's pools, status and timing."""
    with open_engine(ctx) as engine:
        s = engine.summary(market, quote_amount=quote)
        m = s.market
        typer.echo(f"Market: {m.address}")
        typer.echo(f"Question: {m.question}")
        typer.echo(f"Creator: {m.creator}  Oracle: {m.oracle}  ID: {m.market_id}")
        typer.echo(f"Status: {m.status.value}  Outcome: {m.outcome.name if m.outcome is not None else '-'}")
        typer.echo(f"Deadline: {_fmt_ts(m.deadline)}  Reveal deadline: {_fmt_ts(m.reveal_deadline)}")
        typer.echo(f"Total pool: {m.total_pool}  YES: {m.yes_pool} ({m.yes_count})  NO: {m.no_pool} ({m.no_count})")
        typer.echo(f"Unrevealed: {s.unrevealed_pool}  Vault balance: {s.vault_balance}")
        if s.yes_share is not None:
            typer.echo(f"Revealed split: YES {s.yes_share:.1%} / NO {s.no_share:.1%}")
        if quote:
            typer.echo(f"Quote for {quote}: YES wins -> {s.yes_quote}  NO wins -> {s.no_quote}")


@app.command("resolve")
def resolve(
    ctx: typer.Context,
    market: str = typer.Argument(..., help="Market address"),
    resolver: str = typer.Option(..., "--resolver", help="Oracle or creator identity"),
    outcome: str = typer.Option(..., "--outcome", "-o", help="yes/no or 1/0"),
) -> None:
    """Declare the final outcome."""
    with open_engine(ctx) as engine:
        m = engine.resolve_market(market, resolver, outcome)
        typer.echo(f"Resolved {m.address[:16]}... -> {m.outcome.name}")
        if m.unrevealed_pool:
            typer.echo(f"Unrevealed stake forfeited: {m.unrevealed_pool}")
