"""Bet subcommand: commit, reveal, claim, list, dashboard."""

from __future__ import annotations

import typer

from echobet.cli.context import open_engine
from echobet.models import Outcome
from echobet.protocol.checked import U64_MAX
from echobet.protocol.commitment import compute_commitment_hash, generate_salt, parse_hex32
from echobet.protocol.errors import EchoBetError
from echobet.storage.secrets import SecretStore, StoredOpening

app = typer.Typer(help="Commit, reveal and claim bets")


def _secrets(ctx: typer.Context) -> SecretStore:
    return SecretStore(ctx.obj["settings"].secrets_path)


def _outcome(value: str) -> Outcome:
    try:
        return Outcome.parse(value)
    except EchoBetError as e:
        typer.echo(f"Error [{e.code}]: {e.detail}", err=True)
        raise typer.Exit(1) from e


def _hex_arg(value: str, what: str) -> bytes:
    try:
        return parse_hex32(value, what)
    except ValueError as e:
        typer.echo(str(e))
        raise typer.Exit(1) from e


@app.command("commit")
def commit(
    ctx: typer.Context,
    market: str = typer.Argument(..., help="Market address"),
    participant: str = typer.Option(..., "--participant", "-u", help="Bettor identity"),
    amount: int = typer.Option(..., "--amount", "-a", help="Stake in base units"),
    outcome: str | None = typer.Option(None, "--outcome", "-o", help="yes/no; kept locally until reveal"),
    salt: str | None = typer.Option(None, "--salt", help="32-byte hex salt (default: random)"),
    commitment_hash: str | None = typer.Option(
        None, "--hash", help="Precomputed 32-byte hex commitment (outcome and salt stay with you)"
    ),
) -> None:
    """Commit a hidden bet. The opening is stored locally for `bet reveal`."""
    store = _secrets(ctx)
    opening: StoredOpening | None = None
    previous = store.get(market, participant)
    if commitment_hash is not None:
        digest = _hex_arg(commitment_hash, "commitment hash")
    else:
        if outcome is None:
            typer.echo("--outcome is required unless --hash is given")
            raise typer.Exit(1)
        side = _outcome(outcome)
        salt_bytes = _hex_arg(salt, "salt") if salt else generate_salt()
        digest = compute_commitment_hash(amount, side, salt_bytes) if 0 < amount <= U64_MAX else bytes(32)
        opening = StoredOpening(
            market=market, participant=participant, amount=amount, outcome=side, salt=salt_bytes.hex()
        )
        # Saved before the commit so a crash in between never loses the salt.
        store.save(opening)
    with open_engine(ctx) as engine:
        try:
            bet = engine.commit_bet(market, participant, amount, digest)
        except EchoBetError:
            # Put back whatever opening was there before; it may belong to an escrowed bet.
            if opening is not None:
                if previous is not None:
                    store.save(previous)
                else:
                    store.clear(market, participant)
            raise
        typer.echo(f"Committed {bet.amount} to {market[:16]}...  bet={bet.address[:16]}...")
        typer.echo(f"Commitment: {bet.commitment_hash.hex()}")
        if opening is not None:
            typer.echo(f"Opening saved to {store.path}; keep it until you reveal.")


@app.command("reveal")
def reveal(
    ctx: typer.Context,
    market: str = typer.Argument(..., help="Market address"),
    participant: str = typer.Option(..., "--participant", "-u", help="Bettor identity"),
    outcome: str | None = typer.Option(None, "--outcome", "-o", help="Override stored outcome"),
    salt: str | None = typer.Option(None, "--salt", help="Override stored salt (hex)"),
) -> None:
    """Reveal a committed bet after the deadline."""
    stored = _secrets(ctx).get(market, participant)
    if (outcome is None or salt is None) and stored is None:
        typer.echo("No stored opening for this bet; pass --outcome and --salt")
        raise typer.Exit(1)
    side = _outcome(outcome) if outcome is not None else stored.outcome
    salt_bytes = _hex_arg(salt, "salt") if salt is not None else stored.salt_bytes
    with open_engine(ctx) as engine:
        bet = engine.reveal_bet(market, participant, side, salt_bytes)
        typer.echo(f"Revealed {bet.revealed_outcome.name} for {bet.amount} on {market[:16]}...")


@app.command("claim")
def claim(
    ctx: typer.Context,
    market: str = typer.Argument(..., help="Market address"),
    participant: str = typer.Option(..., "--participant", "-u", help="Bettor identity"),
) -> None:
    """Claim winnings on a resolved market."""
    with open_engine(ctx) as engine:
        payout = engine.claim_winnings(market, participant)
        _secrets(ctx).clear(market, participant)
        typer.echo(f"Paid out {payout} to {participant}")


@app.command("list")
def list_bets(
    ctx: typer.Context,
    market: str = typer.Argument(..., help="Market address"),
) -> None:
    """List bets on a market."""
    with open_engine(ctx) as engine:
        engine.get_market(market)
        rows = engine.list_bets(market)
        for b in rows:
            side = b.revealed_outcome.name if b.revealed_outcome is not None else "hidden"
            flags = "claimed" if b.is_claimed else ""
            typer.echo(f"  {b.participant:<20} {b.amount:>12}  {side:<6} {flags}")
        typer.echo(f"Total: {len(rows)} bets")


@app.command("dashboard")
def dashboard(
    ctx: typer.Context,
    participant: str = typer.Argument(..., help="Bettor identity"),
) -> None:
    """Summarize a participant's bets across markets."""
    with open_engine(ctx) as engine:
        d = engine.dashboard(participant)
        typer.echo(f"Participant: {d.participant}")
        typer.echo(f"Bets: {d.total_bets}  Wagered: {d.total_wagered}")
        typer.echo(f"Wins: {d.wins}  Losses: {d.losses}  Pending: {d.pending}  Claimable: {d.claimable}")
        if d.forfeited:
            typer.echo(f"Forfeited (never revealed): {d.forfeited} bets, {d.forfeited_stake} staked")
