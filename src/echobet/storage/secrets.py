"""Client-side keeper of commitment openings (amount, outcome, salt) between commit and reveal.

Lives next to the client, never in the record store: the market only ever
sees the hash until the participant reveals.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from echobet.models import Outcome


class StoredOpening(BaseModel):
    """What a participant must remember to reveal later."""

    market: str
    participant: str
    amount: int
    outcome: Outcome
    salt: str  # hex

    @property
    def salt_bytes(self) -> bytes:
        return bytes.fromhex(self.salt)


class SecretStore:
    """JSON file keyed by market and participant. Written with owner-only permissions."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    @staticmethod
    def _key(market: str, participant: str) -> str:
        return f"{market}:{participant}"

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as f:
            return json.load(f)

    def _save(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.chmod(tmp, 0o600)
        tmp.replace(self.path)

    def save(self, opening: StoredOpening) -> None:
        data = self._load()
        data[self._key(opening.market, opening.participant)] = opening.model_dump(mode="json")
        self._save(data)

    def get(self, market: str, participant: str) -> StoredOpening | None:
        raw = self._load().get(self._key(market, participant))
        return StoredOpening(**raw) if raw else None

    def clear(self, market: str, participant: str) -> None:
        data = self._load()
        if data.pop(self._key(market, participant), None) is not None:
            self._save(data)
