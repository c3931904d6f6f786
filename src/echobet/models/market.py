"""MarketRecord, MarketStatus, Outcome - market entity and its enumerations."""

from __future__ import annotations

from enum import Enum, IntEnum

from pydantic import BaseModel, Field

from echobet.protocol.checked import U32_MAX, U64_MAX
from echobet.protocol.errors import InvalidOutcome

MAX_QUESTION_LENGTH = 256
DEFAULT_REVEAL_PERIOD = 24 * 60 * 60


class Outcome(IntEnum):
    """Binary outcome. Wire value is the single commitment byte."""

    NO = 0
    YES = 1

    @classmethod
    def parse(cls, value: int | str | Outcome) -> Outcome:
        """Accept 0/1, 'yes'/'no' (any case). Raises InvalidOutcome otherwise."""
        if isinstance(value, Outcome):
            return value
        if isinstance(value, str):
            name = value.strip().upper()
            if name in cls.__members__:
                return cls[name]
            try:
                value = int(name)
            except ValueError:
                raise InvalidOutcome(f"invalid outcome: {value!r}") from None
        if isinstance(value, bool) or not isinstance(value, int) or value not in (0, 1):
            raise InvalidOutcome(f"invalid outcome: {value!r}")
        return cls(value)


class MarketStatus(str, Enum):
    """Market lifecycle status. Cancelled is reserved; no operation reaches it."""

    OPEN = "open"
    REVEALING = "revealing"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class MarketRecord(BaseModel):
    """A binary market: configuration, time bounds, status and aggregated pools."""

    address: str
    vault: str
    creator: str
    oracle: str
    market_id: int = Field(..., ge=0, le=U64_MAX)
    question: str
    deadline: int  # unix seconds
    reveal_deadline: int
    status: MarketStatus = MarketStatus.OPEN
    outcome: Outcome | None = None
    total_pool: int = Field(0, ge=0, le=U64_MAX)
    yes_pool: int = Field(0, ge=0, le=U64_MAX)
    no_pool: int = Field(0, ge=0, le=U64_MAX)
    yes_count: int = Field(0, ge=0, le=U32_MAX)
    no_count: int = Field(0, ge=0, le=U32_MAX)
    created_at: int = 0
    resolved_at: int = 0

    def deadline_passed(self, now: int) -> bool:
        return now >= self.deadline

    def reveal_deadline_passed(self, now: int) -> bool:
        return now >= self.reveal_deadline

    def pools_for(self, outcome: Outcome) -> tuple[int, int]:
        """(winning_pool, losing_pool) if `outcome` wins."""
        if outcome is Outcome.YES:
            return self.yes_pool, self.no_pool
        if outcome is Outcome.NO:
            return self.no_pool, self.yes_pool
        raise ValueError(f"unhandled outcome {outcome!r}")

    @property
    def revealed_pool(self) -> int:
        return self.yes_pool + self.no_pool

    @property
    def unrevealed_pool(self) -> int:
        """Stake committed but not (yet) revealed. Forfeited once the market resolves."""
        return self.total_pool - self.revealed_pool

    @property
    def bettors(self) -> int:
        return self.yes_count + self.no_count
