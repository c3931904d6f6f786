"""ProtocolEvent - append-only record of a committed operation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ProtocolEvent(BaseModel):
    """One successful operation, appended in the same transaction as its effects."""

    seq: int | None = None
    event_type: str
    market: str
    participant: str | None = None
    ts: int
    payload: dict[str, Any] = Field(default_factory=dict)
