# services/ledger.py
"""
Banking ledger collaborator.

Amounts crossing this boundary are milliunits (see core/amount.py).
InMemoryLedger backs local runs and tests; production wires a client for
the real budgeting API behind the same protocol.
"""

import datetime as dt
import itertools
from typing import Dict, List, Optional, Protocol

from models.transaction import LedgerAccount, LedgerTransaction


class LedgerError(RuntimeError):
    pass


class LedgerClient(Protocol):
    async def get_accounts(self) -> List[LedgerAccount]: ...

    async def get_transactions(self, account_id: Optional[str] = None, days: int = 30) -> List[LedgerTransaction]: ...

    async def get_categories(self) -> List[str]: ...

    async def create_transaction(
        self,
        account_id: str,
        amount: int,
        payee: str,
        category_name: Optional[str] = None,
        date: Optional[dt.date] = None,
        memo: str = "",
    ) -> LedgerTransaction: ...


class InMemoryLedger:
    def __init__(
        self,
        accounts: Optional[List[LedgerAccount]] = None,
        categories: Optional[List[str]] = None,
    ):
        self.accounts: Dict[str, LedgerAccount] = {a.id: a for a in (accounts or [])}
        self.categories = list(categories or ["Groceries", "Dining Out", "Transport", "Bills", "Income"])
        self.transactions: List[LedgerTransaction] = []
        self._ids = itertools.count(1)

    async def get_accounts(self) -> List[LedgerAccount]:
        return list(self.accounts.values())

    async def get_transactions(self, account_id: Optional[str] = None, days: int = 30) -> List[LedgerTransaction]:
        since = dt.date.today() - dt.timedelta(days=days)
        return [
            tx
            for tx in self.transactions
            if tx.date >= since and (account_id is None or tx.account_id == account_id)
        ]

    async def get_categories(self) -> List[str]:
        return list(self.categories)

    async def create_transaction(
        self,
        account_id: str,
        amount: int,
        payee: str,
        category_name: Optional[str] = None,
        date: Optional[dt.date] = None,
        memo: str = "",
    ) -> LedgerTransaction:
        account = self.accounts.get(account_id)
        if account is None:
            raise LedgerError(f"Unknown account: {account_id}")

        tx = LedgerTransaction(
            id=f"tx-{next(self._ids)}",
            account_id=account_id,
            date=date or dt.date.today(),
            amount=amount,
            payee_name=payee,
            category_name=category_name,
            memo=memo,
        )
        self.transactions.append(tx)
        account.balance += amount
        return tx
