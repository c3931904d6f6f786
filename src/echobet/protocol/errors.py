"""Typed protocol errors. Every failure carries a stable machine-readable code."""

from __future__ import annotations


class EchoBetError(Exception):
    """Base for all protocol failures. Raised before any state is mutated."""

    code: str = "error"
    message: str = "Protocol error"

    def __init__(self, message: str | None = None, **context: object) -> None:
        self.detail = message or self.message
        self.context = context
        super().__init__(self.detail)

    def to_dict(self) -> dict[str, object]:
        return {"detail": self.detail, "code": self.code}


# --- Categories ---
class InputError(EchoBetError):
    """Bad input shape or value. Caller corrects input and resubmits."""


class TemporalGateError(EchoBetError):
    """Operation attempted outside its allowed time window."""


class IntegrityError(EchoBetError):
    """Cryptographic binding check failed."""


class AuthorizationError(EchoBetError):
    """Caller is not allowed to act on this record."""


class StateConflict(EchoBetError):
    """State machine guard rejected the operation."""


class NotFound(StateConflict):
    """Referenced record does not exist."""


class ArithmeticFailure(EchoBetError):
    """Checked arithmetic failed."""


class ResourceError(EchoBetError):
    """Not enough funds to carry out a transfer."""


# --- Input ---
class QuestionTooLong(InputError):
    code = "question_too_long"
    message = "Question too long"


class DeadlineInPast(InputError):
    code = "deadline_in_past"
    message = "Deadline must be in the future"


class ZeroBetAmount(InputError):
    code = "zero_bet_amount"
    message = "Bet amount must be greater than zero"


class InvalidOutcome(InputError):
    code = "invalid_outcome"
    message = "Invalid outcome"


class InvalidCommitment(InputError):
    code = "invalid_commitment"
    message = "Commitment hash must be 32 bytes"


# --- Temporal ---
class MarketExpired(TemporalGateError):
    code = "market_expired"
    message = "Market deadline has already passed"


class MarketNotExpired(TemporalGateError):
    code = "market_not_expired"
    message = "Market deadline has not passed yet"


class RevealPeriodEnded(TemporalGateError):
    code = "reveal_period_ended"
    message = "Reveal period has ended"


# --- Integrity ---
class CommitmentMismatch(IntegrityError):
    code = "commitment_mismatch"
    message = "Commitment hash does not match"


# --- Authorization ---
class UnauthorizedResolver(AuthorizationError):
    code = "unauthorized_resolver"
    message = "Unauthorized resolver"


class InvalidSigner(AuthorizationError):
    code = "invalid_signer"
    message = "Invalid signer"


class InvalidMarketId(AuthorizationError):
    code = "invalid_market_id"
    message = "Invalid market ID"


# --- State conflicts ---
class AlreadyRevealed(StateConflict):
    code = "already_revealed"
    message = "Bet has already been revealed"


class AlreadyClaimed(StateConflict):
    code = "already_claimed"
    message = "Winnings have already been claimed"


class MarketAlreadyResolved(StateConflict):
    code = "market_already_resolved"
    message = "Market has already been resolved"


class MarketNotResolved(StateConflict):
    code = "market_not_resolved"
    message = "Market is not resolved yet"


class NotRevealed(StateConflict):
    code = "not_revealed"
    message = "Bet has not been revealed yet"


class DidNotWin(StateConflict):
    code = "did_not_win"
    message = "User did not win"


class DuplicateMarket(StateConflict):
    code = "duplicate_market"
    message = "Market already exists for this creator and market ID"


class DuplicateCommitment(StateConflict):
    code = "duplicate_commitment"
    message = "Participant has already committed to this market"


class InvalidTransition(StateConflict):
    code = "invalid_transition"
    message = "Market status cannot move backwards"


class MarketNotFound(NotFound):
    code = "market_not_found"
    message = "Market not found"


class BetNotFound(NotFound):
    code = "bet_not_found"
    message = "Bet not found"


# --- Arithmetic ---
class Overflow(ArithmeticFailure):
    code = "overflow"
    message = "Arithmetic overflow"


# --- Resources ---
class InsufficientPoolFunds(ResourceError):
    code = "insufficient_pool_funds"
    message = "Insufficient pool funds"


class InsufficientFunds(ResourceError):
    code = "insufficient_funds"
    message = "Insufficient funds"
