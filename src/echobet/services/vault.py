"""In-memory escrow vault."""

from __future__ import annotations

from typing import Any

import structlog

from echobet.protocol.checked import checked_add
from echobet.protocol.errors import InsufficientFunds, InsufficientPoolFunds, InvalidSigner, ZeroBetAmount
from echobet.services.base import EscrowVault, VaultAuthority

log = structlog.get_logger(__name__)


class InMemoryVault(EscrowVault):
    """Balances per account (participants and market vaults) plus a transfer ledger."""

    def __init__(self) -> None:
        self._balances: dict[str, int] = {}
        self._vaults: set[str] = set()
        self.transfers: list[dict[str, Any]] = []

    def open(self, vault: str) -> None:
        self._vaults.add(vault)
        self._balances.setdefault(vault, 0)

    def balance(self, account: str) -> int:
        return self._balances.get(account, 0)

    def fund(self, account: str, amount: int, *, ts: int) -> int:
        if amount <= 0:
            raise ZeroBetAmount("funding amount must be positive")
        self._balances[account] = checked_add(self.balance(account), amount)
        self.transfers.append({"kind": "fund", "source": None, "dest": account, "amount": amount, "ts": ts})
        return self._balances[account]

    def deposit(self, vault: str, source: str, amount: int, *, ts: int) -> None:
        if vault not in self._vaults:
            raise InvalidSigner(f"unknown vault {vault}")
        available = self.balance(source)
        if available < amount:
            raise InsufficientFunds(f"{source} holds {available}, needs {amount}")
        new_vault = checked_add(self.balance(vault), amount)
        self._balances[source] = available - amount
        self._balances[vault] = new_vault
        self.transfers.append({"kind": "deposit", "source": source, "dest": vault, "amount": amount, "ts": ts})

    def withdraw(self, vault: str, dest: str, amount: int, authority: VaultAuthority, *, ts: int) -> None:
        if authority.vault != vault or vault not in self._vaults:
            log.warning("vault_withdraw_denied", vault=vault, authority=authority.vault)
            raise InvalidSigner("authority is not scoped to this vault")
        held = self.balance(vault)
        if held < amount:
            raise InsufficientPoolFunds(f"vault holds {held}, requested {amount}")
        new_dest = checked_add(self.balance(dest), amount)
        self._balances[vault] = held - amount
        self._balances[dest] = new_dest
        self.transfers.append({"kind": "withdraw", "source": vault, "dest": dest, "amount": amount, "ts": ts})
