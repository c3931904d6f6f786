"""Vault subcommand: fund, balance."""

from __future__ import annotations

import typer

from echobet.cli.context import open_engine

app = typer.Typer(help="Escrow balances")


@app.command("fund")
def fund(
    ctx: typer.Context,
    account: str = typer.Argument(..., help="Participant identity"),
    amount: int = typer.Option(..., "--amount", "-a", help="Base units to credit"),
) -> None:
    """Credit a participant account (test/dev funding)."""
    with open_engine(ctx) as engine:
        balance = engine.fund(account, amount)
        typer.echo(f"{account}: {balance}")


@app.command("balance")
def balance(
    ctx: typer.Context,
    account: str = typer.Argument(..., help="Participant identity or vault address"),
) -> None:
    """Show an account or vault balance."""
    with open_engine(ctx) as engine:
        typer.echo(f"{account}: {engine.vault.balance(account)}")
