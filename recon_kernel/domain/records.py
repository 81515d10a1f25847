"""
recon_kernel.domain.records -- Frozen record types shared by every layer.

ZERO I/O. Storage implementations build these from their rows; services
and the drift scanner only ever read them. Mutations go back through the
storage collaborator as explicit update calls.

Money fields are ``Decimal``; status fields hold the string values of the
enums below so unrecognised statuses written by the CRUD layer still load.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


# =============================================================================
# Status enums
# =============================================================================


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionStatus(str, Enum):
    """Ledger entry lifecycle: pending -> completed, {pending, completed} -> cancelled."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"  # Terminal


class CreditAccountStatus(str, Enum):
    ACTIVE = "active"
    PAID = "paid"  # Derived: remaining balance reached zero
    CLOSED = "closed"  # Explicit; never overridden by drift checks
    SUSPENDED = "suspended"


# Orders in these states must have a ledger entry
BILLABLE_ORDER_STATUSES = frozenset({
    OrderStatus.CONFIRMED.value,
    OrderStatus.COMPLETED.value,
})

# Metadata keys used as weak references from a transaction to its source
ORDER_CORRELATION_KEY = "orderId"
CREDIT_CORRELATION_KEY = "creditAccountId"

# Metadata ``source`` values stamped by the event processor
SOURCE_ORDER_WEBHOOK = "order_webhook"
SOURCE_CREDIT_WEBHOOK = "credit_webhook"
WEBHOOK_SOURCES = frozenset({SOURCE_ORDER_WEBHOOK, SOURCE_CREDIT_WEBHOOK})


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class Order:
    id: str
    status: str
    total: Decimal
    payment_method: str
    customer_id: str | None = None

    @property
    def is_billable(self) -> bool:
        return self.status in BILLABLE_ORDER_STATUSES


@dataclass(frozen=True)
class FinancialTransaction:
    """Append-only ledger entry; linked to its source only through metadata."""

    id: str
    type: str
    amount: Decimal
    status: str
    category: str
    description: str
    date: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def order_id(self) -> str | None:
        """Correlated order id, if this entry was booked for an order."""
        value = (self.metadata or {}).get(ORDER_CORRELATION_KEY)
        return str(value) if value else None

    @property
    def credit_account_id(self) -> str | None:
        """Correlated credit account id, if this entry records a payment."""
        value = (self.metadata or {}).get(CREDIT_CORRELATION_KEY)
        return str(value) if value else None

    @property
    def is_cancelled(self) -> bool:
        return self.status == TransactionStatus.CANCELLED.value


@dataclass(frozen=True)
class NewTransaction:
    """Payload for ``LedgerStorage.create_transaction``."""

    type: str
    category: str
    description: str
    amount: Decimal
    status: str
    date: datetime
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CreditAccount:
    id: str
    customer_id: str | None
    account_number: str
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    status: str
    next_payment_date: date | None = None


@dataclass(frozen=True)
class LedgerSnapshot:
    """Full point-in-time read of the three record sets, in storage order."""

    orders: tuple[Order, ...] = ()
    transactions: tuple[FinancialTransaction, ...] = ()
    credit_accounts: tuple[CreditAccount, ...] = ()


def order_lock_key(order_id: str) -> str:
    """Serialization key for everything touching one order's ledger entry."""
    return f"order:{order_id}"


def credit_lock_key(credit_account_id: str) -> str:
    """Serialization key for payments booked against one credit account."""
    return f"credit:{credit_account_id}"
