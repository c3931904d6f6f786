"""Clock implementations."""

from __future__ import annotations

import time


class SystemClock:
    """Wall clock in unix seconds."""

    def now(self) -> int:
        return int(time.time())


class FixedClock:
    """Manually driven clock for tests and simulations."""

    def __init__(self, start: int = 1_700_000_000) -> None:
        self.current = start

    def now(self) -> int:
        return self.current

    def advance(self, seconds: int) -> int:
        self.current += seconds
        return self.current

    def set(self, ts: int) -> None:
        self.current = ts
