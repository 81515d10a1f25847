"""ORM models for the CRUD layer's order, ledger and credit account tables."""

from recon_kernel.models.ledger import (
    CreditAccountModel,
    FinancialTransactionModel,
    OrderModel,
)

__all__ = [
    "CreditAccountModel",
    "FinancialTransactionModel",
    "OrderModel",
]
