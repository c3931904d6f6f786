"""Resolution authority and gating."""

import pytest

from echobet.models import MarketStatus, Outcome
from echobet.protocol.errors import InvalidOutcome, MarketAlreadyResolved, MarketNotExpired, UnauthorizedResolver
from echobet.protocol.lifecycle import build_market
from echobet.protocol.resolution import apply_resolution, is_authorized_resolver

DEADLINE = 2_000


@pytest.fixture
def open_market():
    return build_market(creator="alice", oracle="oracle", market_id=1, question="Q?", deadline=DEADLINE, now=1_000)


@pytest.mark.parametrize("resolver", ["oracle", "alice"])
def test_oracle_or_creator_resolves(open_market, resolver):
    assert is_authorized_resolver(open_market, resolver)
    resolved = apply_resolution(open_market, resolver, Outcome.YES, DEADLINE)
    assert resolved.status == MarketStatus.RESOLVED
    assert resolved.outcome is Outcome.YES
    assert resolved.resolved_at == DEADLINE


def test_stranger_cannot_resolve(open_market):
    with pytest.raises(UnauthorizedResolver):
        apply_resolution(open_market, "mallory", Outcome.YES, DEADLINE)


def test_not_before_deadline(open_market):
    with pytest.raises(MarketNotExpired):
        apply_resolution(open_market, "oracle", Outcome.YES, DEADLINE - 1)


def test_resolution_allowed_inside_reveal_window(open_market):
    # Only the staking deadline gates resolution.
    assert open_market.reveal_deadline > DEADLINE
    apply_resolution(open_market, "oracle", Outcome.NO, DEADLINE)


def test_resolution_is_final(open_market):
    resolved = apply_resolution(open_market, "oracle", Outcome.YES, DEADLINE)
    with pytest.raises(MarketAlreadyResolved):
        apply_resolution(resolved, "oracle", Outcome.NO, DEADLINE + 1)


def test_check_order_resolved_before_authority(open_market):
    resolved = apply_resolution(open_market, "oracle", Outcome.YES, DEADLINE)
    with pytest.raises(MarketAlreadyResolved):
        apply_resolution(resolved, "mallory", Outcome.YES, DEADLINE)


def test_invalid_outcome(open_market):
    with pytest.raises(InvalidOutcome):
        apply_resolution(open_market, "oracle", 3, DEADLINE)
