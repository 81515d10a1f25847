"""
Pure domain layer.

Frozen records, money helpers and the clock abstraction.  No ORM, no
database, no I/O (except SystemClock, the one sanctioned source of time).
"""

from recon_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from recon_kernel.domain.records import (
    CreditAccount,
    CreditAccountStatus,
    FinancialTransaction,
    LedgerSnapshot,
    NewTransaction,
    Order,
    OrderStatus,
    TransactionStatus,
    TransactionType,
)

__all__ = [
    "Clock",
    "CreditAccount",
    "CreditAccountStatus",
    "DeterministicClock",
    "FinancialTransaction",
    "LedgerSnapshot",
    "NewTransaction",
    "Order",
    "OrderStatus",
    "SystemClock",
    "TransactionStatus",
    "TransactionType",
]
