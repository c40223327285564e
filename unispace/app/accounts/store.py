"""In-memory persistence for accounts and their wallet ledgers."""
from __future__ import annotations

import threading
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterator, List, Optional, Protocol, Sequence

from ..entitlements.models import Account
from ..wallet.models import WalletTransaction


class AccountRepository(Protocol):
    """Persistence operations required by the policy services."""

    def get(self, account_id: str) -> Optional[Account]:
        ...

    def require(self, account_id: str) -> Account:
        ...

    def save(self, account: Account) -> Account:
        ...

    def find_by_email(self, email: str) -> Optional[Account]:
        ...

    def record_transaction(self, transaction: WalletTransaction) -> WalletTransaction:
        ...

    def list_transactions(self, account_id: str, *, limit: int = 50) -> Sequence[WalletTransaction]:
        ...

    def locked(self, *account_ids: str):
        ...


class InMemoryAccountStore:
    """Account store keeping records in process memory.

    Mutations for a given account are serialized through :meth:`locked`, which
    acquires one re-entrant lock per account id in a stable order.
    """

    def __init__(self, accounts: Optional[Sequence[Account]] = None) -> None:
        self._accounts: Dict[str, Account] = {}
        self._transactions: Dict[str, List[WalletTransaction]] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()
        for account in accounts or ():
            self.save(account)

    def get(self, account_id: str) -> Optional[Account]:
        return self._accounts.get(account_id)

    def require(self, account_id: str) -> Account:
        account = self._accounts.get(account_id)
        if account is None:
            raise LookupError(f"Account not found: {account_id}")
        return account

    def save(self, account: Account) -> Account:
        self._accounts[account.id] = account
        return account

    def find_by_email(self, email: str) -> Optional[Account]:
        needle = email.strip().lower()
        if not needle:
            return None
        for account in self._accounts.values():
            if account.email.lower() == needle:
                return account
        return None

    def record_transaction(self, transaction: WalletTransaction) -> WalletTransaction:
        self._transactions.setdefault(transaction.account_id, []).insert(0, transaction)
        return transaction

    def list_transactions(self, account_id: str, *, limit: int = 50) -> Sequence[WalletTransaction]:
        return list(self._transactions.get(account_id, ())[:limit])

    def _lock_for(self, account_id: str) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[account_id] = lock
            return lock

    @contextmanager
    def locked(self, *account_ids: str) -> Iterator[None]:
        """Hold the per-account locks for the duration of the block."""

        with ExitStack() as stack:
            for account_id in sorted(set(account_ids)):
                stack.enter_context(self._lock_for(account_id))
            yield
