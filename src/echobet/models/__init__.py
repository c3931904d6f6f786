"""Canonical records (Pydantic) - MarketRecord, BetRecord, ProtocolEvent."""

from echobet.models.bet import BetRecord
from echobet.models.event import ProtocolEvent
from echobet.models.market import (
    DEFAULT_REVEAL_PERIOD,
    MAX_QUESTION_LENGTH,
    MarketRecord,
    MarketStatus,
    Outcome,
)

__all__ = [
    "MarketRecord",
    "MarketStatus",
    "Outcome",
    "BetRecord",
    "ProtocolEvent",
    "MAX_QUESTION_LENGTH",
    "DEFAULT_REVEAL_PERIOD",
]
