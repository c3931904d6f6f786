"""Commitment hash: SHA-256(amount u64 LE || outcome u8 || salt[32]).

The amount is bound alongside the outcome so a reveal cannot claim a
different stake than the one escrowed at commit time, and the outcome cannot
be chosen after the deadline.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

from echobet.protocol.checked import U64_MAX

SALT_LENGTH = 32
HASH_LENGTH = 32


def compute_commitment_hash(amount: int, outcome: int, salt: bytes) -> bytes:
    """Return the 32-byte commitment digest. Pure and deterministic."""
    if not 0 <= amount <= U64_MAX:
        raise ValueError(f"amount out of u64 range: {amount}")
    if not 0 <= int(outcome) <= 0xFF:
        raise ValueError(f"outcome out of u8 range: {outcome}")
    if len(salt) != SALT_LENGTH:
        raise ValueError(f"salt must be {SALT_LENGTH} bytes, got {len(salt)}")
    hasher = hashlib.sha256()
    hasher.update(amount.to_bytes(8, "little"))
    hasher.update(bytes([int(outcome)]))
    hasher.update(bytes(salt))
    return hasher.digest()


def verify_commitment(commitment_hash: bytes, amount: int, outcome: int, salt: bytes) -> bool:
    """True if (amount, outcome, salt) opens the commitment."""
    if len(commitment_hash) != HASH_LENGTH or len(salt) != SALT_LENGTH:
        return False
    return hmac.compare_digest(compute_commitment_hash(amount, outcome, salt), bytes(commitment_hash))


def generate_salt() -> bytes:
    """Fresh 32-byte secret salt from the OS CSPRNG."""
    return secrets.token_bytes(SALT_LENGTH)


def parse_hex32(value: str, what: str = "value") -> bytes:
    """Decode a 32-byte hex string (optional 0x prefix)."""
    s = (value or "").strip()
    if s.startswith("0x"):
        s = s[2:]
    try:
        raw = bytes.fromhex(s)
    except ValueError as e:
        raise ValueError(f"{what} is not valid hex") from e
    if len(raw) != 32:
        raise ValueError(f"{what} must be 32 bytes, got {len(raw)}")
    return raw
