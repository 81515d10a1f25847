"""
SqlAlchemyStorage -- LedgerStorage over the CRUD layer's relational tables.

Contract:
    Each public call runs in its own ``session_scope()``: committed on
    success, rolled back on failure.  Records handed back are frozen
    copies, never live ORM objects.

Failure modes:
    Every ``SQLAlchemyError`` is re-raised as ``TransientStorageError``
    carrying the operation name, so callers handle one error type
    regardless of backend.

Ordering:
    ``get_all_*`` results are ordered by primary key (transactions by
    date, then id) so identical tables always yield identical snapshots.
"""

from __future__ import annotations

from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Generator

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from recon_kernel.db.engine import session_scope
from recon_kernel.domain.records import (
    CreditAccount,
    FinancialTransaction,
    NewTransaction,
    Order,
)
from recon_kernel.exceptions import TransientStorageError
from recon_kernel.logging_config import get_logger
from recon_kernel.models.ledger import (
    CreditAccountModel,
    FinancialTransactionModel,
    OrderModel,
)

logger = get_logger("storage.sqlalchemy")


class SqlAlchemyStorage:
    """Relational implementation of ``LedgerStorage``."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _scope(self, operation: str) -> Generator[Session, None, None]:
        try:
            with session_scope(self._session_factory) as session:
                yield session
        except SQLAlchemyError as exc:
            logger.warning(
                "storage_operation_failed",
                extra={"operation": operation, "error": str(exc)},
            )
            raise TransientStorageError(operation, str(exc)) from exc

    # -------------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------------

    def get_all_orders(self) -> list[Order]:
        with self._scope("get_all_orders") as session:
            rows = session.execute(
                select(OrderModel).order_by(OrderModel.id)
            ).scalars().all()
            return [row.to_record() for row in rows]

    def get_order(self, order_id: str) -> Order | None:
        with self._scope("get_order") as session:
            row = session.get(OrderModel, order_id)
            return row.to_record() if row is not None else None

    def add_order(self, order: Order) -> Order:
        with self._scope("add_order") as session:
            session.merge(OrderModel.from_record(order))
        return order

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def get_all_transactions(self) -> list[FinancialTransaction]:
        with self._scope("get_all_transactions") as session:
            rows = session.execute(
                select(FinancialTransactionModel).order_by(
                    FinancialTransactionModel.date,
                    FinancialTransactionModel.id,
                )
            ).scalars().all()
            return [row.to_record() for row in rows]

    def get_transaction(self, transaction_id: str) -> FinancialTransaction | None:
        with self._scope("get_transaction") as session:
            row = session.get(FinancialTransactionModel, transaction_id)
            return row.to_record() if row is not None else None

    def add_transaction(self, transaction: FinancialTransaction) -> FinancialTransaction:
        with self._scope("add_transaction") as session:
            session.merge(FinancialTransactionModel.from_record(transaction))
        return transaction

    def create_transaction(self, payload: NewTransaction) -> FinancialTransaction:
        with self._scope("create_transaction") as session:
            row = FinancialTransactionModel.from_new(payload)
            session.add(row)
            session.flush()
            return row.to_record()

    def update_transaction(
        self,
        transaction_id: str,
        *,
        status: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> FinancialTransaction | None:
        with self._scope("update_transaction") as session:
            row = session.get(FinancialTransactionModel, transaction_id)
            if row is None:
                return None
            if status is not None:
                row.status = status
            if metadata is not None:
                # New dict so the JSON column registers the change
                row.metadata_ = dict(metadata)
            session.flush()
            return row.to_record()

    # -------------------------------------------------------------------------
    # Credit accounts
    # -------------------------------------------------------------------------

    def get_all_credit_accounts(self) -> list[CreditAccount]:
        with self._scope("get_all_credit_accounts") as session:
            rows = session.execute(
                select(CreditAccountModel).order_by(CreditAccountModel.id)
            ).scalars().all()
            return [row.to_record() for row in rows]

    def get_credit_account(self, credit_account_id: str) -> CreditAccount | None:
        with self._scope("get_credit_account") as session:
            row = session.get(CreditAccountModel, credit_account_id)
            return row.to_record() if row is not None else None

    def add_credit_account(self, account: CreditAccount) -> CreditAccount:
        with self._scope("add_credit_account") as session:
            session.merge(CreditAccountModel.from_record(account))
        return account

    def update_credit_account(
        self,
        credit_account_id: str,
        *,
        remaining_amount: Decimal | None = None,
        status: str | None = None,
    ) -> CreditAccount | None:
        with self._scope("update_credit_account") as session:
            row = session.get(CreditAccountModel, credit_account_id)
            if row is None:
                return None
            if remaining_amount is not None:
                row.remaining_amount = remaining_amount
            if status is not None:
                row.status = status
            session.flush()
            return row.to_record()
