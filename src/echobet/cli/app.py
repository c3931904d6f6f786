"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from echobet.config import get_settings
from echobet.config.settings import configure_logging

app = typer.Typer(
    name="echobet",
    help="EchoBet - commit-reveal binary prediction markets with pari-mutuel settlement.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
    db: str | None = typer.Option(None, "--db", help="Database path (overrides config)"),
    now: int | None = typer.Option(
        None, "--now", help="Pin the clock to this unix time (simulations and demos)"
    ),
) -> None:
    """Configure logging and store options in context."""
    settings = get_settings(profile, config_dir)
    if db:
        settings.storage["db_path"] = db
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile, "now": now}


# Subcommands registered from other modules
from echobet.cli import api_cmd, bets, commitment, log, markets, replay, vault  # noqa: E402

app.add_typer(markets.app, name="market")
app.add_typer(bets.app, name="bet")
app.add_typer(vault.app, name="vault")
app.add_typer(commitment.app, name="commitment")
app.add_typer(log.app, name="log")
app.add_typer(replay.app, name="replay")
app.add_typer(api_cmd.app, name="api")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
