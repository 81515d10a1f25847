"""
LedgerStorage protocol -- the CRUD collaborator the engine runs against.

Contract:
    Plain record CRUD over orders, ledger transactions and credit
    accounts.  Reads return frozen records from recon_kernel.domain.records;
    ``get_*`` for a missing id returns ``None`` rather than raising.

Failure modes:
    Any I/O failure surfaces as ``TransientStorageError``.  Implementations
    never leak driver exceptions.

Non-goals:
    - No multi-entity transactions: each call is independently durable.
    - No pagination: ``get_all_*`` loads the full set.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from recon_kernel.domain.records import (
    CreditAccount,
    FinancialTransaction,
    LedgerSnapshot,
    NewTransaction,
    Order,
)


@runtime_checkable
class LedgerStorage(Protocol):
    """Storage interface consumed by every reconciliation component."""

    def get_all_orders(self) -> list[Order]: ...

    def get_order(self, order_id: str) -> Order | None: ...

    def get_all_transactions(self) -> list[FinancialTransaction]: ...

    def create_transaction(self, payload: NewTransaction) -> FinancialTransaction:
        """Persist a new ledger entry and return it with its assigned id."""
        ...

    def update_transaction(
        self,
        transaction_id: str,
        *,
        status: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> FinancialTransaction | None:
        """Change status and/or replace metadata; ``None`` if the id is unknown."""
        ...

    def get_all_credit_accounts(self) -> list[CreditAccount]: ...

    def get_credit_account(self, credit_account_id: str) -> CreditAccount | None: ...

    def update_credit_account(
        self,
        credit_account_id: str,
        *,
        remaining_amount: Decimal | None = None,
        status: str | None = None,
    ) -> CreditAccount | None:
        """Force-write derived fields; ``None`` if the id is unknown."""
        ...


def load_snapshot(storage: LedgerStorage) -> LedgerSnapshot:
    """Read all three record sets, orders first, as one snapshot."""
    return LedgerSnapshot(
        orders=tuple(storage.get_all_orders()),
        transactions=tuple(storage.get_all_transactions()),
        credit_accounts=tuple(storage.get_all_credit_accounts()),
    )
