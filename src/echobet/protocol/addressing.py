"""Deterministic record addresses derived from seeds - used as record-store keys."""

from __future__ import annotations

import hashlib

from echobet.protocol.checked import U64_MAX
from echobet.protocol.errors import InvalidMarketId

MARKET_SEED = b"market"
COMMITMENT_SEED = b"commitment"
VAULT_SEED = b"vault"


def _derive(*seeds: bytes) -> str:
    hasher = hashlib.sha256()
    for seed in seeds:
        # Length prefix keeps ("ab", "c") and ("a", "bc") distinct.
        hasher.update(len(seed).to_bytes(4, "little"))
        hasher.update(seed)
    return hasher.hexdigest()


def market_address(creator: str, market_id: int) -> str:
    """Address of the market created by `creator` under `market_id`."""
    if not 0 <= market_id <= U64_MAX:
        raise InvalidMarketId(f"market_id out of u64 range: {market_id}")
    return _derive(MARKET_SEED, creator.encode(), market_id.to_bytes(8, "little"))


def vault_address(market: str) -> str:
    """Escrow vault address owned by a market."""
    return _derive(VAULT_SEED, market.encode())


def bet_address(market: str, participant: str) -> str:
    """Address of the single bet a participant may hold on a market."""
    return _derive(COMMITMENT_SEED, market.encode(), participant.encode())
