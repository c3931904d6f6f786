"""Commitment subcommand: salt, hash, verify - offline helpers, no database."""

from __future__ import annotations

import typer

from echobet.models import Outcome
from echobet.protocol.commitment import compute_commitment_hash, generate_salt, parse_hex32, verify_commitment
from echobet.protocol.errors import EchoBetError

app = typer.Typer(help="Offline commitment helpers")


def _outcome(value: str) -> Outcome:
    try:
        return Outcome.parse(value)
    except EchoBetError as e:
        typer.echo(f"Error [{e.code}]: {e.detail}", err=True)
        raise typer.Exit(1) from e


def _parse(value: str, what: str) -> bytes:
    try:
        return parse_hex32(value, what)
    except ValueError as e:
        typer.echo(str(e))
        raise typer.Exit(1) from e


@app.command("salt")
def salt() -> None:
    """Print a fresh random 32-byte salt (hex)."""
    typer.echo(generate_salt().hex())


@app.command("hash")
def hash_cmd(
    amount: int = typer.Option(..., "--amount", "-a"),
    outcome: str = typer.Option(..., "--outcome", "-o", help="yes/no or 1/0"),
    salt: str = typer.Option(..., "--salt", help="32-byte hex salt"),
) -> None:
    """Compute SHA-256(amount LE64 || outcome || salt)."""
    try:
        digest = compute_commitment_hash(amount, _outcome(outcome), _parse(salt, "salt"))
    except ValueError as e:
        typer.echo(str(e))
        raise typer.Exit(1) from e
    typer.echo(digest.hex())


@app.command("verify")
def verify(
    commitment_hash: str = typer.Argument(..., help="32-byte hex commitment"),
    amount: int = typer.Option(..., "--amount", "-a"),
    outcome: str = typer.Option(..., "--outcome", "-o"),
    salt: str = typer.Option(..., "--salt"),
) -> None:
    """Check an opening against a commitment. Exit code 1 on mismatch."""
    try:
        ok = verify_commitment(_parse(commitment_hash, "commitment"), amount, _outcome(outcome), _parse(salt, "salt"))
    except ValueError as e:
        typer.echo(str(e))
        raise typer.Exit(1) from e
    typer.echo("match" if ok else "mismatch")
    if not ok:
        raise typer.Exit(1)
