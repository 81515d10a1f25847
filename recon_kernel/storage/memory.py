"""
InMemoryStorage -- dict-backed LedgerStorage.

Insertion-ordered and guarded by a single lock, so concurrent callers see
each individual call as atomic.  Nothing stronger: a read followed by a
write from the same caller can still interleave with another caller,
which is exactly the window the event processor's per-key lock closes.

Also carries the CRUD-layer seeding helpers (``add_order`` and friends)
used by tests, the CLI demo data and local runs.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from decimal import Decimal
from typing import Any
from uuid import uuid4

from recon_kernel.domain.records import (
    CreditAccount,
    FinancialTransaction,
    NewTransaction,
    Order,
)
from recon_kernel.logging_config import get_logger

logger = get_logger("storage.memory")


class InMemoryStorage:
    """Thread-safe in-process implementation of ``LedgerStorage``."""

    def __init__(
        self,
        orders: list[Order] | None = None,
        transactions: list[FinancialTransaction] | None = None,
        credit_accounts: list[CreditAccount] | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._orders: dict[str, Order] = {o.id: o for o in orders or ()}
        self._transactions: dict[str, FinancialTransaction] = {
            t.id: t for t in transactions or ()
        }
        self._credit_accounts: dict[str, CreditAccount] = {
            a.id: a for a in credit_accounts or ()
        }

    # -------------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------------

    def get_all_orders(self) -> list[Order]:
        with self._lock:
            return list(self._orders.values())

    def get_order(self, order_id: str) -> Order | None:
        with self._lock:
            return self._orders.get(order_id)

    def add_order(self, order: Order) -> Order:
        with self._lock:
            self._orders[order.id] = order
        return order

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def get_all_transactions(self) -> list[FinancialTransaction]:
        with self._lock:
            return list(self._transactions.values())

    def get_transaction(self, transaction_id: str) -> FinancialTransaction | None:
        with self._lock:
            return self._transactions.get(transaction_id)

    def add_transaction(self, transaction: FinancialTransaction) -> FinancialTransaction:
        with self._lock:
            self._transactions[transaction.id] = transaction
        return transaction

    def create_transaction(self, payload: NewTransaction) -> FinancialTransaction:
        transaction = FinancialTransaction(
            id=str(uuid4()),
            type=payload.type,
            amount=payload.amount,
            status=payload.status,
            category=payload.category,
            description=payload.description,
            date=payload.date,
            metadata=dict(payload.metadata),
        )
        with self._lock:
            self._transactions[transaction.id] = transaction
        logger.debug(
            "transaction_stored",
            extra={"transaction_id": transaction.id},
        )
        return transaction

    def update_transaction(
        self,
        transaction_id: str,
        *,
        status: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> FinancialTransaction | None:
        with self._lock:
            current = self._transactions.get(transaction_id)
            if current is None:
                return None
            changes: dict[str, Any] = {}
            if status is not None:
                changes["status"] = status
            if metadata is not None:
                changes["metadata"] = dict(metadata)
            updated = replace(current, **changes)
            self._transactions[transaction_id] = updated
            return updated

    # -------------------------------------------------------------------------
    # Credit accounts
    # -------------------------------------------------------------------------

    def get_all_credit_accounts(self) -> list[CreditAccount]:
        with self._lock:
            return list(self._credit_accounts.values())

    def get_credit_account(self, credit_account_id: str) -> CreditAccount | None:
        with self._lock:
            return self._credit_accounts.get(credit_account_id)

    def add_credit_account(self, account: CreditAccount) -> CreditAccount:
        with self._lock:
            self._credit_accounts[account.id] = account
        return account

    def update_credit_account(
        self,
        credit_account_id: str,
        *,
        remaining_amount: Decimal | None = None,
        status: str | None = None,
    ) -> CreditAccount | None:
        with self._lock:
            current = self._credit_accounts.get(credit_account_id)
            if current is None:
                return None
            changes: dict[str, Any] = {}
            if remaining_amount is not None:
                changes["remaining_amount"] = remaining_amount
            if status is not None:
                changes["status"] = status
            updated = replace(current, **changes)
            self._credit_accounts[credit_account_id] = updated
            return updated
