"""Fixed-width checked integer arithmetic. Python ints are unbounded, so widths are enforced here."""

from __future__ import annotations

from echobet.protocol.errors import Overflow

U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1
I64_MIN = -(2**63)
I64_MAX = 2**63 - 1


def _fits(value: int, lo: int, hi: int) -> bool:
    return lo <= value <= hi


def checked_add(a: int, b: int, limit: int = U64_MAX) -> int:
    """a + b for unsigned operands; raises Overflow past limit."""
    result = a + b
    if not _fits(result, 0, limit):
        raise Overflow(f"{a} + {b} exceeds {limit}")
    return result


def checked_add_i64(a: int, b: int) -> int:
    """Signed 64-bit addition (timestamps)."""
    result = a + b
    if not _fits(result, I64_MIN, I64_MAX):
        raise Overflow(f"{a} + {b} outside i64")
    return result


def checked_mul(a: int, b: int, limit: int = U128_MAX) -> int:
    result = a * b
    if not _fits(result, 0, limit):
        raise Overflow(f"{a} * {b} exceeds {limit}")
    return result


def floor_div(numerator: int, denominator: int) -> int:
    """Integer floor division; callers handle the zero-denominator case before calling."""
    if denominator <= 0:
        raise Overflow("division by non-positive denominator")
    return numerator // denominator


def narrow(value: int, limit: int = U64_MAX) -> int:
    """Narrow a wide unsigned value; losing magnitude is an Overflow, never truncation."""
    if not _fits(value, 0, limit):
        raise Overflow(f"{value} does not fit in target width")
    return value
