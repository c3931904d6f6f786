"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from echobet.models import BetRecord, MarketRecord


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. commitment_mismatch")


# --- Markets ---
class CreateMarketRequest(BaseModel):
    creator: str
    oracle: str
    market_id: int = Field(..., ge=0)
    question: str
    deadline: int = Field(..., description="Unix seconds; betting closes at this instant")
    reveal_period: int | None = Field(None, description="Seconds after deadline; default 86400")


class MarketResponse(BaseModel):
    address: str
    vault: str
    creator: str
    oracle: str
    market_id: int
    question: str
    deadline: int
    reveal_deadline: int
    status: str
    outcome: str | None = None
    total_pool: int
    yes_pool: int
    no_pool: int
    yes_count: int
    no_count: int
    unrevealed_pool: int
    created_at: int
    resolved_at: int

    @classmethod
    def from_record(cls, m: MarketRecord) -> MarketResponse:
        return cls(
            **m.model_dump(exclude={"status", "outcome"}),
            status=m.status.value,
            outcome=m.outcome.name if m.outcome is not None else None,
            unrevealed_pool=m.unrevealed_pool,
        )


class MarketsListResponse(BaseModel):
    markets: list[MarketResponse]
    total: int


class MarketSummaryResponse(BaseModel):
    market: MarketResponse
    yes_share: float | None = Field(None, description="Share of revealed stake on YES (display only)")
    no_share: float | None = None
    bettors: int
    unrevealed_pool: int
    vault_balance: int
    yes_quote: int | None = Field(None, description="Payout for quote_amount if YES wins")
    no_quote: int | None = None


# --- Bets ---
class CommitRequest(BaseModel):
    participant: str
    amount: int = Field(..., description="Stake in base units")
    commitment_hash: str = Field(..., description="32-byte hex digest")


class RevealRequest(BaseModel):
    participant: str
    outcome: int | str = Field(..., description="1/YES or 0/NO")
    salt: str = Field(..., description="32-byte hex salt used in the commitment")


class ResolveRequest(BaseModel):
    resolver: str
    outcome: int | str


class ClaimRequest(BaseModel):
    participant: str


class ClaimResponse(BaseModel):
    market: str
    participant: str
    payout: int


class BetResponse(BaseModel):
    address: str
    market: str
    participant: str
    commitment_hash: str
    amount: int
    revealed_outcome: str | None = None
    is_revealed: bool
    is_claimed: bool
    committed_at: int
    revealed_at: int

    @classmethod
    def from_record(cls, b: BetRecord) -> BetResponse:
        # The salt is not echoed back; it is only meaningful to its owner.
        return cls(
            address=b.address,
            market=b.market,
            participant=b.participant,
            commitment_hash=b.commitment_hash.hex(),
            amount=b.amount,
            revealed_outcome=b.revealed_outcome.name if b.revealed_outcome is not None else None,
            is_revealed=b.is_revealed,
            is_claimed=b.is_claimed,
            committed_at=b.committed_at,
            revealed_at=b.revealed_at,
        )


class BetsListResponse(BaseModel):
    bets: list[BetResponse]
    total: int


class DashboardResponse(BaseModel):
    participant: str
    total_bets: int
    total_wagered: int
    wins: int
    losses: int
    pending: int
    claimable: int
    forfeited: int
    forfeited_stake: int
    bets: list[BetResponse] = Field(default_factory=list)


# --- Vault ---
class FundRequest(BaseModel):
    account: str
    amount: int = Field(..., gt=0)


class BalanceResponse(BaseModel):
    account: str
    balance: int


# --- Events ---
class EventsStatsResponse(BaseModel):
    total_events: int
    by_type: list[dict[str, Any]]
