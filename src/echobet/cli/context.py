"""Shared CLI helpers - engine construction and error reporting."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import typer

from echobet.config.settings import Settings
from echobet.protocol.engine import MarketEngine
from echobet.protocol.errors import EchoBetError
from echobet.services.clock import FixedClock, SystemClock
from echobet.storage.store import DuckDBRecordStore
from echobet.storage.vault import DuckDBVault


@contextmanager
def open_engine(ctx: typer.Context) -> Iterator[MarketEngine]:
    """Engine over the configured DuckDB file. Protocol errors exit with code 1."""
    settings: Settings = ctx.obj["settings"]
    now: int | None = ctx.obj.get("now")
    store = DuckDBRecordStore.open(settings.db_path)
    clock = FixedClock(now) if now is not None else SystemClock()
    try:
        yield MarketEngine(
            store,
            DuckDBVault(store.conn),
            clock,
            default_reveal_period=settings.default_reveal_period_sec,
            max_question_length=settings.max_question_length,
        )
    except EchoBetError as e:
        typer.echo(f"Error [{e.code}]: {e.detail}", err=True)
        raise typer.Exit(1) from e
    finally:
        store.close()
