"""Collaborator interfaces consumed by the market engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol


class Clock(Protocol):
    """Source of the current time. Read once per operation."""

    def now(self) -> int: ...


@dataclass(frozen=True)
class VaultAuthority:
    """Withdrawal authority scoped to exactly one market vault."""

    vault: str
    market: str


class EscrowVault(ABC):
    """Custodian of staked funds. Balances are integer base units."""

    @abstractmethod
    def open(self, vault: str) -> None:
        """Register an empty vault for a new market."""
        ...

    @abstractmethod
    def balance(self, account: str) -> int:
        """Balance of a vault or participant account (0 if unknown)."""
        ...

    @abstractmethod
    def deposit(self, vault: str, source: str, amount: int, *, ts: int) -> None:
        """Move `amount` from participant `source` into `vault`. `ts` is the operation time."""
        ...

    @abstractmethod
    def withdraw(self, vault: str, dest: str, amount: int, authority: VaultAuthority, *, ts: int) -> None:
        """Move `amount` out of `vault` to `dest`. Rejects foreign authority or overdraft."""
        ...

    @abstractmethod
    def fund(self, account: str, amount: int, *, ts: int) -> int:
        """Credit a participant account from outside the system. Returns the new balance."""
        ...
