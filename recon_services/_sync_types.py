"""
Frozen result and event types for the event processor.

Follows the pattern of the batch domain types: frozen dataclasses with
enum discriminators and tuples for immutable collections.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any


class WebhookEventType(str, Enum):
    ORDER_CONFIRMED = "order_confirmed"
    ORDER_CANCELLED = "order_cancelled"
    CREDIT_PAYMENT = "credit_payment"


@dataclass(frozen=True)
class WebhookEvent:
    """A business event delivered by the CRUD layer.

    ``type`` stays a plain string so unknown types reach the dispatcher and
    are rejected there with a proper failure result.
    """

    type: str
    entity_id: str
    entity: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    triggered_at: datetime | None = None


@dataclass(frozen=True)
class SyncedData:
    """Summary of the ledger effect of one processed event."""

    type: str
    amount: Decimal
    source: str
    description: str


@dataclass(frozen=True)
class FinancialSyncResult:
    """Outcome of one event-processor operation. Never raised, always returned."""

    success: bool
    message: str
    transaction_id: str | None = None
    synced_data: SyncedData | None = None
    error_code: str | None = None
    created: bool = False  # True only when a new ledger entry was written

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "transaction_id": self.transaction_id,
            "created": self.created,
        }
        if self.error_code is not None:
            payload["error_code"] = self.error_code
        if self.synced_data is not None:
            payload["synced_data"] = {
                "type": self.synced_data.type,
                "amount": str(self.synced_data.amount),
                "source": self.synced_data.source,
                "description": self.synced_data.description,
            }
        return payload


@dataclass(frozen=True)
class HistoricalSyncResult:
    """Outcome of one backfill pass."""

    success: bool
    synced_orders: int
    synced_credit_accounts: int
    errors: tuple[str, ...] = ()
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "synced_orders": self.synced_orders,
            "synced_credit_accounts": self.synced_credit_accounts,
            "errors": list(self.errors),
            "message": self.message,
        }
