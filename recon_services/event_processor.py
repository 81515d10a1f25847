"""
FinancialEventProcessor -- Translates business events into ledger entries.

Responsibility:
    Turns order confirmations, order cancellations and credit payments
    into income transactions on the financial ledger, and backfills
    ledger entries for historical orders and credit payments that never
    produced one.

Architecture position:
    Services -- imperative shell over the LedgerStorage collaborator.
    Depends only on recon_kernel; the scheduler and remediator compose it.

Invariants enforced:
    - Order idempotency: one ledger entry per order.  The lookup and the
      create run while holding the per-order key lock, so a webhook and a
      scheduler tick handling the same order cannot both create one.
    - Append-only ledger: cancellation is a status transition plus
      metadata annotation, never a delete.  Cancelled is terminal.
    - Credit payments are NOT idempotent by default: every call books one
      entry.  Callers that can redeliver pass ``payment_reference`` to get
      at-most-once booking per reference.

Failure modes:
    Domain errors (missing order/account, storage I/O, bad payloads,
    unknown event types) never escape: each public operation returns a
    ``FinancialSyncResult`` with ``success=False`` and the error ``code``.
    Backfill records per-entity errors and keeps going.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from recon_kernel.domain.clock import Clock, SystemClock
from recon_kernel.domain.records import (
    CreditAccount,
    CreditAccountStatus,
    FinancialTransaction,
    NewTransaction,
    Order,
    SOURCE_CREDIT_WEBHOOK,
    SOURCE_ORDER_WEBHOOK,
    TransactionStatus,
    TransactionType,
    credit_lock_key,
    order_lock_key,
)
from recon_kernel.domain.values import ZERO, format_money, to_money
from recon_kernel.exceptions import (
    CreditAccountNotFoundError,
    InvalidEventPayloadError,
    OrderNotFoundError,
    ReconciliationError,
    TransientStorageError,
    UnsupportedEventTypeError,
)
from recon_kernel.logging_config import LogContext, get_logger
from recon_kernel.storage.base import LedgerStorage, load_snapshot
from recon_kernel.utils.locking import KeyedLock

from recon_config.schema import SyncConfig

from recon_services._sync_types import (
    FinancialSyncResult,
    HistoricalSyncResult,
    SyncedData,
    WebhookEvent,
    WebhookEventType,
)

logger = get_logger("services.event_processor")

CANCELLATION_REASON = "order_cancelled"


class FinancialEventProcessor:
    """Event-to-ledger translator with per-key serialized idempotency.

    Contract:
        - ``process_order_confirmation()`` books at most one entry per order.
        - ``process_order_cancellation()`` soft-cancels the order's entry.
        - ``process_credit_payment()`` books one entry per call.
        - ``sync_historical_data()`` backfills missing entries.
        - ``trigger_webhook()`` dispatches on ``event.type``.

    Non-goals:
        - Does NOT move transactions from pending to completed.
        - Does NOT lock across processes (see KeyedLock).
    """

    def __init__(
        self,
        storage: LedgerStorage,
        clock: Clock | None = None,
        config: SyncConfig | None = None,
        locks: KeyedLock | None = None,
    ) -> None:
        self._storage = storage
        self._clock = clock or SystemClock()
        self._config = config or SyncConfig()
        self._locks = locks or KeyedLock()

    # -------------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------------

    def process_order_confirmation(self, order_id: str) -> FinancialSyncResult:
        """Book the income entry for a confirmed order, once."""
        key = order_lock_key(order_id)
        with LogContext.bind(correlation_key=key):
            try:
                with self._locks.hold(key):
                    return self._confirm_order(order_id)
            except ReconciliationError as exc:
                return self._failure(exc, "order_confirmation_failed", order_id=order_id)

    def _confirm_order(self, order_id: str) -> FinancialSyncResult:
        order = self._require_order(order_id)

        existing = self._find_order_transaction(order_id)
        if existing is not None:
            logger.info(
                "order_transaction_exists",
                extra={"order_id": order_id, "transaction_id": existing.id},
            )
            return FinancialSyncResult(
                success=True,
                transaction_id=existing.id,
                message=f"Transaction already exists for order {order_id}",
            )

        is_credit = order.payment_method == self._config.credit_payment_method
        now = self._clock.now()
        payload = NewTransaction(
            type=TransactionType.INCOME.value,
            category=(
                self._config.installment_category
                if is_credit
                else self._config.sale_category
            ),
            description=(
                f"Order #{order.id[:8]} - {'Credit' if is_credit else 'Cash sale'}"
            ),
            amount=order.total,
            status=(
                TransactionStatus.PENDING.value
                if is_credit
                else TransactionStatus.COMPLETED.value
            ),
            date=now,
            metadata={
                "orderId": order.id,
                "customerId": order.customer_id,
                "paymentMethod": order.payment_method,
                "orderTotal": format_money(order.total),
                "syncedAt": now.isoformat(),
                "source": SOURCE_ORDER_WEBHOOK,
            },
        )
        transaction = self._storage.create_transaction(payload)

        logger.info(
            "order_transaction_created",
            extra={
                "order_id": order.id,
                "transaction_id": transaction.id,
                "amount": order.total,
                "status": payload.status,
            },
        )
        return FinancialSyncResult(
            success=True,
            transaction_id=transaction.id,
            message=f"Ledger transaction created for order {order.id}",
            synced_data=SyncedData(
                type=TransactionType.INCOME.value,
                amount=order.total,
                source="order",
                description=payload.description,
            ),
            created=True,
        )

    def process_order_cancellation(self, order_id: str) -> FinancialSyncResult:
        """Cancel the order's ledger entry; no entry is a successful no-op."""
        key = order_lock_key(order_id)
        with LogContext.bind(correlation_key=key):
            try:
                with self._locks.hold(key):
                    return self._cancel_order(order_id)
            except ReconciliationError as exc:
                return self._failure(exc, "order_cancellation_failed", order_id=order_id)

    def _cancel_order(self, order_id: str) -> FinancialSyncResult:
        transaction = self._find_order_transaction(order_id)
        if transaction is None:
            return FinancialSyncResult(
                success=True,
                message=f"No ledger transaction to cancel for order {order_id}",
            )

        if transaction.is_cancelled:
            return FinancialSyncResult(
                success=True,
                transaction_id=transaction.id,
                message=f"Ledger transaction already cancelled for order {order_id}",
            )

        metadata = dict(transaction.metadata)
        metadata["cancelledAt"] = self._clock.now().isoformat()
        metadata["cancellationReason"] = CANCELLATION_REASON

        updated = self._storage.update_transaction(
            transaction.id,
            status=TransactionStatus.CANCELLED.value,
            metadata=metadata,
        )
        if updated is None:
            raise TransientStorageError(
                "update_transaction",
                f"transaction {transaction.id} disappeared before cancellation",
            )

        logger.info(
            "order_transaction_cancelled",
            extra={
                "order_id": order_id,
                "transaction_id": updated.id,
                "previous_status": transaction.status,
            },
        )
        return FinancialSyncResult(
            success=True,
            transaction_id=updated.id,
            message=f"Ledger transaction cancelled for order {order_id}",
            synced_data=SyncedData(
                type=transaction.type,
                amount=transaction.amount,
                source="order",
                description=f"Cancellation: {transaction.description}",
            ),
        )

    # -------------------------------------------------------------------------
    # Credit payments
    # -------------------------------------------------------------------------

    def process_credit_payment(
        self,
        credit_account_id: str,
        payment_amount: Decimal | str | int,
        payment_reference: str | None = None,
    ) -> FinancialSyncResult:
        """Book one payment entry against a credit account.

        Without ``payment_reference`` every call books a new entry; the
        caller guarantees at-most-once delivery.  With it, a second call
        for the same account and reference returns the first entry.
        """
        key = credit_lock_key(credit_account_id)
        with LogContext.bind(correlation_key=key):
            try:
                amount = _parse_payment_amount(payment_amount)
                with self._locks.hold(key):
                    return self._book_payment(
                        credit_account_id, amount, payment_reference,
                    )
            except ReconciliationError as exc:
                return self._failure(
                    exc, "credit_payment_failed", credit_account_id=credit_account_id,
                )

    def _book_payment(
        self,
        credit_account_id: str,
        amount: Decimal,
        payment_reference: str | None,
    ) -> FinancialSyncResult:
        account = self._require_credit_account(credit_account_id)

        if payment_reference is not None:
            existing = self._find_payment(credit_account_id, payment_reference)
            if existing is not None:
                logger.info(
                    "credit_payment_exists",
                    extra={
                        "credit_account_id": credit_account_id,
                        "payment_reference": payment_reference,
                        "transaction_id": existing.id,
                    },
                )
                return FinancialSyncResult(
                    success=True,
                    transaction_id=existing.id,
                    message=f"Payment {payment_reference} already recorded",
                )

        now = self._clock.now()
        metadata: dict[str, Any] = {
            "creditAccountId": credit_account_id,
            "customerId": account.customer_id,
            "accountNumber": account.account_number,
            "paymentAmount": format_money(amount),
            "syncedAt": now.isoformat(),
            "source": SOURCE_CREDIT_WEBHOOK,
        }
        if payment_reference is not None:
            metadata["paymentReference"] = payment_reference

        payload = NewTransaction(
            type=TransactionType.INCOME.value,
            category=self._config.installment_category,
            description=f"Credit payment - Account {account.account_number}",
            amount=amount,
            status=TransactionStatus.COMPLETED.value,
            date=now,
            metadata=metadata,
        )
        transaction = self._storage.create_transaction(payload)

        logger.info(
            "credit_payment_recorded",
            extra={
                "credit_account_id": credit_account_id,
                "transaction_id": transaction.id,
                "amount": amount,
            },
        )
        return FinancialSyncResult(
            success=True,
            transaction_id=transaction.id,
            message=f"Credit payment recorded: {format_money(amount)}",
            synced_data=SyncedData(
                type=TransactionType.INCOME.value,
                amount=amount,
                source="credit",
                description=payload.description,
            ),
            created=True,
        )

    # -------------------------------------------------------------------------
    # Backfill
    # -------------------------------------------------------------------------

    def sync_historical_data(self) -> HistoricalSyncResult:
        """Create ledger entries missing for existing orders and payments.

        Orders: every confirmed/completed order without a correlated entry
        goes through ``process_order_confirmation`` (which re-checks under
        the order lock).  Credit accounts: every active account whose
        non-cancelled payment entries sum below ``paid_amount`` gets one
        entry for the shortfall.
        """
        logger.info("historical_sync_started")
        try:
            snapshot = load_snapshot(self._storage)
        except ReconciliationError as exc:
            logger.error(
                "historical_sync_failed",
                extra={"error_code": exc.code, "error": str(exc)},
            )
            return HistoricalSyncResult(
                success=False,
                synced_orders=0,
                synced_credit_accounts=0,
                errors=(str(exc),),
                message="Historical sync failed",
            )

        errors: list[str] = []
        synced_orders = 0
        synced_accounts = 0

        booked_orders = {t.order_id for t in snapshot.transactions if t.order_id}
        for order in snapshot.orders:
            if not order.is_billable or order.id in booked_orders:
                continue
            logger.info("historical_order_sync", extra={"order_id": order.id})
            try:
                result = self.process_order_confirmation(order.id)
            except Exception as exc:
                logger.exception("historical_order_sync_error", extra={"order_id": order.id})
                errors.append(f"Order {order.id}: {exc}")
                continue
            if result.success:
                synced_orders += 1
            else:
                errors.append(f"Order {order.id}: {result.message}")

        paid_by_account = _sum_payments(snapshot.transactions)
        for account in snapshot.credit_accounts:
            if _payment_shortfall(account, paid_by_account) is None:
                continue
            try:
                result = self._backfill_credit_account(account.id)
            except Exception as exc:
                logger.exception(
                    "historical_credit_sync_error",
                    extra={"credit_account_id": account.id},
                )
                errors.append(f"Credit account {account.id}: {exc}")
                continue
            if result is None:
                continue
            if result.success:
                synced_accounts += 1
            else:
                errors.append(f"Credit account {account.id}: {result.message}")

        message = (
            f"Historical sync completed: {synced_orders} orders, "
            f"{synced_accounts} credit accounts"
        )
        logger.info(
            "historical_sync_completed",
            extra={
                "synced_orders": synced_orders,
                "synced_credit_accounts": synced_accounts,
                "error_count": len(errors),
            },
        )
        return HistoricalSyncResult(
            success=True,
            synced_orders=synced_orders,
            synced_credit_accounts=synced_accounts,
            errors=tuple(errors),
            message=message,
        )

    def _backfill_credit_account(
        self, credit_account_id: str,
    ) -> FinancialSyncResult | None:
        """Book the account's current shortfall, or return None if there is none.

        The shortfall is recomputed from fresh reads under the account's key
        lock, so a payment booked after the backfill snapshot is counted.
        """
        key = credit_lock_key(credit_account_id)
        with LogContext.bind(correlation_key=key):
            try:
                with self._locks.hold(key):
                    account = self._require_credit_account(credit_account_id)
                    paid_by_account = _sum_payments(
                        tuple(self._storage.get_all_transactions()),
                    )
                    shortfall = _payment_shortfall(account, paid_by_account)
                    if shortfall is None:
                        logger.info(
                            "historical_credit_sync_skipped",
                            extra={"credit_account_id": credit_account_id},
                        )
                        return None
                    logger.info(
                        "historical_credit_sync",
                        extra={
                            "credit_account_id": credit_account_id,
                            "shortfall": shortfall,
                        },
                    )
                    return self._book_payment(credit_account_id, shortfall, None)
            except ReconciliationError as exc:
                return self._failure(
                    exc, "credit_payment_failed", credit_account_id=credit_account_id,
                )

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def trigger_webhook(self, event: WebhookEvent) -> FinancialSyncResult:
        """Route one webhook event to its handler."""
        with LogContext.bind(event_type=event.type):
            logger.info(
                "webhook_received",
                extra={"event_type": event.type, "entity_id": event.entity_id},
            )
            if event.type == WebhookEventType.ORDER_CONFIRMED.value:
                return self.process_order_confirmation(event.entity_id)
            if event.type == WebhookEventType.ORDER_CANCELLED.value:
                return self.process_order_cancellation(event.entity_id)
            if event.type == WebhookEventType.CREDIT_PAYMENT.value:
                amount = event.data.get("amount")
                if amount is None:
                    return self._failure(
                        InvalidEventPayloadError(event.type, "amount", "is required"),
                        "webhook_rejected",
                    )
                reference = event.data.get("paymentReference")
                return self.process_credit_payment(
                    event.entity_id,
                    amount,
                    payment_reference=str(reference) if reference else None,
                )
            return self._failure(
                UnsupportedEventTypeError(
                    event.type, tuple(t.value for t in WebhookEventType),
                ),
                "webhook_rejected",
            )

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _require_order(self, order_id: str) -> Order:
        order = self._storage.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def _require_credit_account(self, credit_account_id: str) -> CreditAccount:
        account = self._storage.get_credit_account(credit_account_id)
        if account is None:
            raise CreditAccountNotFoundError(credit_account_id)
        return account

    def _find_order_transaction(self, order_id: str) -> FinancialTransaction | None:
        for transaction in self._storage.get_all_transactions():
            if transaction.order_id == order_id:
                return transaction
        return None

    def _find_payment(
        self, credit_account_id: str, payment_reference: str,
    ) -> FinancialTransaction | None:
        for transaction in self._storage.get_all_transactions():
            if (
                transaction.credit_account_id == credit_account_id
                and transaction.metadata.get("paymentReference") == payment_reference
            ):
                return transaction
        return None

    def _failure(
        self,
        exc: ReconciliationError,
        event: str,
        **extra: Any,
    ) -> FinancialSyncResult:
        logger.warning(
            event,
            extra={"error_code": exc.code, "error": str(exc), **extra},
        )
        return FinancialSyncResult(
            success=False,
            message=str(exc),
            error_code=exc.code,
        )


# =============================================================================
# Helpers
# =============================================================================


def _parse_payment_amount(value: Decimal | str | int) -> Decimal:
    try:
        amount = to_money(value)
    except ValueError as exc:
        raise InvalidEventPayloadError(
            WebhookEventType.CREDIT_PAYMENT.value, "amount", "is not a number",
        ) from exc
    if not amount.is_finite():
        raise InvalidEventPayloadError(
            WebhookEventType.CREDIT_PAYMENT.value, "amount", "is not a number",
        )
    if amount <= ZERO:
        raise InvalidEventPayloadError(
            WebhookEventType.CREDIT_PAYMENT.value, "amount", "must be positive",
        )
    return amount


def _sum_payments(
    transactions: tuple[FinancialTransaction, ...],
) -> dict[str, Decimal]:
    """Non-cancelled ledger amounts per correlated credit account."""
    totals: dict[str, Decimal] = {}
    for transaction in transactions:
        account_id = transaction.credit_account_id
        if not account_id or transaction.is_cancelled:
            continue
        totals[account_id] = totals.get(account_id, ZERO) + transaction.amount
    return totals


def _payment_shortfall(
    account: CreditAccount,
    paid_by_account: dict[str, Decimal],
) -> Decimal | None:
    """Amount paid on the account but missing from the ledger, if any."""
    if account.status != CreditAccountStatus.ACTIVE.value:
        return None
    if account.paid_amount <= ZERO:
        return None
    transacted = paid_by_account.get(account.id, ZERO)
    if transacted >= account.paid_amount:
        return None
    return account.paid_amount - transacted
