"""DuckDB-backed escrow vault: balances table plus transfer ledger."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from echobet.protocol.checked import checked_add
from echobet.protocol.errors import InsufficientFunds, InsufficientPoolFunds, InvalidSigner, ZeroBetAmount
from echobet.services.base import EscrowVault, VaultAuthority

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)


class DuckDBVault(EscrowVault):
    """Vault sharing the record store's connection, so transfers join its transaction."""

    def __init__(self, conn: DuckDBPyConnection) -> None:
        self._conn = conn

    def _row(self, account: str) -> tuple[int, bool] | None:
        row = self._conn.execute(
            "SELECT balance, is_vault FROM vault_balances WHERE account = ?", [account]
        ).fetchone()
        return (int(row[0]), bool(row[1])) if row else None

    def _set_balance(self, account: str, balance: int, is_vault: bool = False) -> None:
        if self._row(account) is None:
            self._conn.execute(
                "INSERT INTO vault_balances (account, is_vault, balance) VALUES (?, ?, ?)",
                [account, is_vault, balance],
            )
        else:
            self._conn.execute("UPDATE vault_balances SET balance = ? WHERE account = ?", [balance, account])

    def _record(self, kind: str, source: str | None, dest: str, amount: int, ts: int) -> None:
        self._conn.execute(
            "INSERT INTO vault_transfers (kind, source, dest, amount, created_at) VALUES (?, ?, ?, ?, ?)",
            [kind, source, dest, amount, ts],
        )

    def _is_vault(self, vault: str) -> bool:
        row = self._row(vault)
        return row is not None and row[1]

    def open(self, vault: str) -> None:
        if self._row(vault) is None:
            self._set_balance(vault, 0, is_vault=True)

    def balance(self, account: str) -> int:
        row = self._row(account)
        return row[0] if row else 0

    def fund(self, account: str, amount: int, *, ts: int) -> int:
        if amount <= 0:
            raise ZeroBetAmount("funding amount must be positive")
        new_balance = checked_add(self.balance(account), amount)
        self._set_balance(account, new_balance)
        self._record("fund", None, account, amount, ts)
        return new_balance

    def deposit(self, vault: str, source: str, amount: int, *, ts: int) -> None:
        if not self._is_vault(vault):
            raise InvalidSigner(f"unknown vault {vault}")
        available = self.balance(source)
        if available < amount:
            raise InsufficientFunds(f"{source} holds {available}, needs {amount}")
        new_vault = checked_add(self.balance(vault), amount)
        self._set_balance(source, available - amount)
        self._set_balance(vault, new_vault, is_vault=True)
        self._record("deposit", source, vault, amount, ts)

    def withdraw(self, vault: str, dest: str, amount: int, authority: VaultAuthority, *, ts: int) -> None:
        if authority.vault != vault or not self._is_vault(vault):
            log.warning("vault_withdraw_denied", vault=vault, authority=authority.vault)
            raise InvalidSigner("authority is not scoped to this vault")
        held = self.balance(vault)
        if held < amount:
            raise InsufficientPoolFunds(f"vault holds {held}, requested {amount}")
        new_dest = checked_add(self.balance(dest), amount)
        self._set_balance(vault, held - amount, is_vault=True)
        self._set_balance(dest, new_dest)
        self._record("withdraw", vault, dest, amount, ts)

    def transfers(self, account: str | None = None) -> list[dict[str, Any]]:
        """Ledger rows touching `account` (or all), oldest first."""
        sql = "SELECT kind, source, dest, amount, created_at FROM vault_transfers"
        if account:
            rows = self._conn.execute(f"{sql} WHERE source = ? OR dest = ? ORDER BY id", [account, account]).fetchall()
        else:
            rows = self._conn.execute(f"{sql} ORDER BY id").fetchall()
        return [{"kind": r[0], "source": r[1], "dest": r[2], "amount": int(r[3]), "ts": int(r[4])} for r in rows]
