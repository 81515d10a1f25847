"""
ORM models for the three record sets the reconciliation engine reads.

Contract:
    OrderModel, FinancialTransactionModel and CreditAccountModel mirror the
    CRUD layer's tables.  Each has ``to_record()`` / ``from_record()``
    round-trip methods onto the frozen types in recon_kernel.domain.records.

The transaction correlation key lives inside the JSON ``metadata`` column
and is deliberately not a foreign key: an order may be deleted by the CRUD
layer while its ledger entry stays.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from recon_kernel.db.base import Base
from recon_kernel.domain.records import (
    CreditAccount,
    FinancialTransaction,
    NewTransaction,
    Order,
)


class OrderModel(Base):
    __tablename__ = "orders"

    __table_args__ = (
        Index("ix_orders_status", "status"),
    )

    status: Mapped[str] = mapped_column(String(20), nullable=False)
    total: Mapped[Decimal] = mapped_column(nullable=False)
    payment_method: Mapped[str] = mapped_column(String(30), nullable=False)
    customer_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    def to_record(self) -> Order:
        return Order(
            id=self.id,
            status=self.status,
            total=Decimal(self.total),
            payment_method=self.payment_method,
            customer_id=self.customer_id,
        )

    @classmethod
    def from_record(cls, record: Order) -> OrderModel:
        return cls(
            id=record.id,
            status=record.status,
            total=record.total,
            payment_method=record.payment_method,
            customer_id=record.customer_id,
        )


class FinancialTransactionModel(Base):
    """Ledger entry row. ``metadata`` is a reserved name on declarative classes."""

    __tablename__ = "financial_transactions"

    __table_args__ = (
        Index("ix_financial_transactions_status", "status"),
        Index("ix_financial_transactions_date", "date"),
    )

    type: Mapped[str] = mapped_column(String(20), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    date: Mapped[datetime | None] = mapped_column(nullable=True)
    metadata_: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True,
    )

    def to_record(self) -> FinancialTransaction:
        return FinancialTransaction(
            id=self.id,
            type=self.type,
            amount=Decimal(self.amount),
            status=self.status,
            category=self.category,
            description=self.description,
            date=self.date,
            metadata=dict(self.metadata_ or {}),
        )

    @classmethod
    def from_new(cls, payload: NewTransaction) -> FinancialTransactionModel:
        return cls(
            type=payload.type,
            category=payload.category,
            description=payload.description,
            amount=payload.amount,
            status=payload.status,
            date=payload.date,
            metadata_=dict(payload.metadata),
        )

    @classmethod
    def from_record(cls, record: FinancialTransaction) -> FinancialTransactionModel:
        return cls(
            id=record.id,
            type=record.type,
            category=record.category,
            description=record.description,
            amount=record.amount,
            status=record.status,
            date=record.date,
            metadata_=dict(record.metadata),
        )


class CreditAccountModel(Base):
    __tablename__ = "credit_accounts"

    __table_args__ = (
        Index("ix_credit_accounts_status", "status"),
    )

    customer_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    account_number: Mapped[str] = mapped_column(String(50), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    paid_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    remaining_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    next_payment_date: Mapped[date | None] = mapped_column(nullable=True)

    def to_record(self) -> CreditAccount:
        return CreditAccount(
            id=self.id,
            customer_id=self.customer_id,
            account_number=self.account_number,
            total_amount=Decimal(self.total_amount),
            paid_amount=Decimal(self.paid_amount),
            remaining_amount=Decimal(self.remaining_amount),
            status=self.status,
            next_payment_date=self.next_payment_date,
        )

    @classmethod
    def from_record(cls, record: CreditAccount) -> CreditAccountModel:
        return cls(
            id=record.id,
            customer_id=record.customer_id,
            account_number=record.account_number,
            total_amount=record.total_amount,
            paid_amount=record.paid_amount,
            remaining_amount=record.remaining_amount,
            status=record.status,
            next_payment_date=record.next_payment_date,
        )
