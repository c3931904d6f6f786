"""BetRecord - one hidden stake per (market, participant)."""

from __future__ import annotations

from pydantic import BaseModel, Field

from echobet.models.market import Outcome
from echobet.protocol.checked import U64_MAX


class BetRecord(BaseModel):
    """Committed bet. Revealed once, claimed at most once, never deleted."""

    address: str
    market: str  # market address
    participant: str
    commitment_hash: bytes = Field(..., min_length=32, max_length=32)
    amount: int = Field(..., gt=0, le=U64_MAX)
    revealed_outcome: Outcome | None = None
    revealed_salt: bytes | None = None
    is_revealed: bool = False
    is_claimed: bool = False
    committed_at: int = 0
    revealed_at: int = 0

    def won(self, outcome: Outcome | None) -> bool | None:
        """True/False once both sides are known, else None."""
        if outcome is None or not self.is_revealed:
            return None
        return self.revealed_outcome == outcome
