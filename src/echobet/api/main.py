"""FastAPI backend exposing the market protocol over HTTP."""

from __future__ import annotations

from collections import Counter
from typing import Iterator

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from echobet.api.schemas import (
    BalanceResponse,
    BetResponse,
    BetsListResponse,
    ClaimRequest,
    ClaimResponse,
    CommitRequest,
    CreateMarketRequest,
    DashboardResponse,
    EventsStatsResponse,
    FundRequest,
    HealthResponse,
    MarketResponse,
    MarketsListResponse,
    MarketSummaryResponse,
    ResolveRequest,
    RevealRequest,
)
from echobet.config import Settings, get_settings
from echobet.models import MarketStatus
from echobet.protocol.commitment import parse_hex32
from echobet.protocol.engine import MarketEngine
from echobet.protocol.errors import (
    ArithmeticFailure,
    AuthorizationError,
    EchoBetError,
    InputError,
    IntegrityError,
    InvalidCommitment,
    NotFound,
    ResourceError,
    StateConflict,
    TemporalGateError,
)
from echobet.services.clock import SystemClock
from echobet.storage.store import DuckDBRecordStore
from echobet.storage.vault import DuckDBVault

# Set by run_api() so get_engine() uses the CLI-resolved settings.
_settings: Settings | None = None

_STATUS_BY_CATEGORY: list[tuple[type[EchoBetError], int]] = [
    (NotFound, 404),
    (InputError, 400),
    (IntegrityError, 422),
    (AuthorizationError, 403),
    (TemporalGateError, 409),
    (StateConflict, 409),
    (ResourceError, 409),
    (ArithmeticFailure, 422),
]


def get_engine() -> Iterator[MarketEngine]:
    """One DuckDB-backed engine per request."""
    settings = _settings or get_settings()
    store = DuckDBRecordStore.open(settings.db_path)
    try:
        yield MarketEngine(
            store,
            DuckDBVault(store.conn),
            SystemClock(),
            default_reveal_period=settings.default_reveal_period_sec,
            max_question_length=settings.max_question_length,
        )
    finally:
        store.close()


app = FastAPI(title="EchoBet API", version="0.1.0")
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


def _error_json(code: str, message: str, status_code: int = 404) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code},
    )


@app.exception_handler(EchoBetError)
def protocol_error_handler(request: Request, exc: EchoBetError) -> JSONResponse:
    status_code = next((s for cls, s in _STATUS_BY_CATEGORY if isinstance(exc, cls)), 500)
    return _error_json(exc.code, exc.detail, status_code)


def _hex32(value: str, what: str) -> bytes:
    try:
        return parse_hex32(value, what)
    except ValueError as e:
        raise InvalidCommitment(str(e)) from e


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok")


# --- Markets ---
@app.get("/markets", response_model=MarketsListResponse)
def markets_list(
    status: MarketStatus | None = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    engine: MarketEngine = Depends(get_engine),
) -> MarketsListResponse:
    """List markets with optional status filter and limit/offset."""
    all_markets = engine.list_markets(status=status)
    page = all_markets[offset : offset + limit]
    return MarketsListResponse(markets=[MarketResponse.from_record(m) for m in page], total=len(all_markets))


@app.post("/markets", response_model=MarketResponse, status_code=201)
def markets_create(body: CreateMarketRequest, engine: MarketEngine = Depends(get_engine)) -> MarketResponse:
    market = engine.create_market(
        creator=body.creator,
        oracle=body.oracle,
        market_id=body.market_id,
        question=body.question,
        deadline=body.deadline,
        reveal_period=body.reveal_period,
    )
    return MarketResponse.from_record(market)


@app.get("/markets/{address}", response_model=MarketSummaryResponse)
def market_detail(
    address: str,
    quote_amount: int | None = Query(None, gt=0, description="Quote payouts for this stake"),
    engine: MarketEngine = Depends(get_engine),
) -> MarketSummaryResponse:
    s = engine.summary(address, quote_amount=quote_amount)
    return MarketSummaryResponse(
        market=MarketResponse.from_record(s.market),
        yes_share=s.yes_share,
        no_share=s.no_share,
        bettors=s.bettors,
        unrevealed_pool=s.unrevealed_pool,
        vault_balance=s.vault_balance,
        yes_quote=s.yes_quote,
        no_quote=s.no_quote,
    )


@app.get("/markets/{address}/bets", response_model=BetsListResponse)
def market_bets(address: str, engine: MarketEngine = Depends(get_engine)) -> BetsListResponse:
    engine.get_market(address)
    bets = engine.list_bets(address)
    return BetsListResponse(bets=[BetResponse.from_record(b) for b in bets], total=len(bets))


# --- Protocol operations ---
@app.post("/markets/{address}/commit", response_model=BetResponse, status_code=201)
def market_commit(address: str, body: CommitRequest, engine: MarketEngine = Depends(get_engine)) -> BetResponse:
    commitment_hash = _hex32(body.commitment_hash, "commitment_hash")
    bet = engine.commit_bet(address, body.participant, body.amount, commitment_hash)
    return BetResponse.from_record(bet)


@app.post("/markets/{address}/reveal", response_model=BetResponse)
def market_reveal(address: str, body: RevealRequest, engine: MarketEngine = Depends(get_engine)) -> BetResponse:
    salt = _hex32(body.salt, "salt")
    bet = engine.reveal_bet(address, body.participant, body.outcome, salt)
    return BetResponse.from_record(bet)


@app.post("/markets/{address}/resolve", response_model=MarketResponse)
def market_resolve(address: str, body: ResolveRequest, engine: MarketEngine = Depends(get_engine)) -> MarketResponse:
    market = engine.resolve_market(address, body.resolver, body.outcome)
    return MarketResponse.from_record(market)


@app.post("/markets/{address}/claim", response_model=ClaimResponse)
def market_claim(address: str, body: ClaimRequest, engine: MarketEngine = Depends(get_engine)) -> ClaimResponse:
    payout = engine.claim_winnings(address, body.participant)
    return ClaimResponse(market=address, participant=body.participant, payout=payout)


# --- Participants / vault ---
@app.get("/participants/{participant}/dashboard", response_model=DashboardResponse)
def participant_dashboard(participant: str, engine: MarketEngine = Depends(get_engine)) -> DashboardResponse:
    d = engine.dashboard(participant)
    return DashboardResponse(
        participant=d.participant,
        total_bets=d.total_bets,
        total_wagered=d.total_wagered,
        wins=d.wins,
        losses=d.losses,
        pending=d.pending,
        claimable=d.claimable,
        forfeited=d.forfeited,
        forfeited_stake=d.forfeited_stake,
        bets=[BetResponse.from_record(b) for b in d.bets],
    )


@app.post("/vault/fund", response_model=BalanceResponse)
def vault_fund(body: FundRequest, engine: MarketEngine = Depends(get_engine)) -> BalanceResponse:
    balance = engine.fund(body.account, body.amount)
    return BalanceResponse(account=body.account, balance=balance)


@app.get("/vault/{account}", response_model=BalanceResponse)
def vault_balance(account: str, engine: MarketEngine = Depends(get_engine)) -> BalanceResponse:
    return BalanceResponse(account=account, balance=engine.vault.balance(account))


@app.get("/events/stats", response_model=EventsStatsResponse)
def events_stats(engine: MarketEngine = Depends(get_engine)) -> EventsStatsResponse:
    events = engine.store.list_events()
    counts = Counter(e.event_type for e in events)
    return EventsStatsResponse(
        total_events=len(events),
        by_type=[{"event_type": t, "count": c} for t, c in counts.most_common()],
    )


def run_api(host: str = "127.0.0.1", port: int = 8000, settings: Settings | None = None) -> None:
    """Run uvicorn server."""
    global _settings
    _settings = settings
    import uvicorn

    uvicorn.run(app, host=host, port=port)
