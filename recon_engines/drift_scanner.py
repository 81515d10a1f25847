"""
Drift scanner -- Pure engine comparing derived and stored ledger state.

Detects, over one full ``LedgerSnapshot``:

    1. missing_transaction    (high)    billable order without a ledger entry
    2. duplicate_transaction  (medium)  several entries share an order key
    3. amount_mismatch/order  (high)    entry amount != order total
    4. amount_mismatch/credit (medium)  remaining != max(0, total - paid)
    5. status_mismatch/credit (low)     status disagrees with the balance

Architecture: recon_engines -- pure calculation, zero I/O, zero storage
access.  Rules run independently, in the order above, each walking its
records in snapshot order, so an unchanged snapshot always yields an
identical list.
"""

from __future__ import annotations

from collections import Counter
from decimal import Decimal

from recon_kernel.domain.records import (
    CreditAccount,
    CreditAccountStatus,
    FinancialTransaction,
    LedgerSnapshot,
    Order,
)
from recon_kernel.domain.values import (
    DEFAULT_TOLERANCE,
    amounts_match,
    expected_remaining,
)
from recon_kernel.logging_config import get_logger

from recon_engines.drift_types import (
    DriftSummary,
    EntityType,
    Inconsistency,
    InconsistencyType,
    Severity,
)

logger = get_logger("engines.drift_scanner")


def index_by_order(
    transactions: tuple[FinancialTransaction, ...] | list[FinancialTransaction],
) -> dict[str, list[FinancialTransaction]]:
    """Group ledger entries by correlated order id, preserving input order."""
    index: dict[str, list[FinancialTransaction]] = {}
    for transaction in transactions:
        order_id = transaction.order_id
        if order_id:
            index.setdefault(order_id, []).append(transaction)
    return index


def expected_account_status(account: CreditAccount) -> str:
    """Status implied by the account balance: ``paid`` once nothing remains."""
    remaining = expected_remaining(account.total_amount, account.paid_amount)
    if remaining <= 0:
        return CreditAccountStatus.PAID.value
    return CreditAccountStatus.ACTIVE.value


def detect_inconsistencies(
    snapshot: LedgerSnapshot,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> list[Inconsistency]:
    """Run every drift rule over ``snapshot`` and return the findings."""
    by_order = index_by_order(snapshot.transactions)

    findings: list[Inconsistency] = []
    findings.extend(_check_missing_transactions(snapshot.orders, by_order))
    findings.extend(_check_duplicate_transactions(by_order))
    findings.extend(_check_order_amounts(snapshot.orders, by_order, tolerance))
    for account in snapshot.credit_accounts:
        findings.extend(_check_credit_account(account, tolerance))

    logger.debug(
        "drift_scan_completed",
        extra={
            "orders": len(snapshot.orders),
            "transactions": len(snapshot.transactions),
            "credit_accounts": len(snapshot.credit_accounts),
            "inconsistencies": len(findings),
        },
    )
    return findings


def summarize(inconsistencies: list[Inconsistency]) -> DriftSummary:
    """Aggregate counts by type and severity."""
    by_type = Counter(i.type.value for i in inconsistencies)
    by_severity = Counter(i.severity.value for i in inconsistencies)
    return DriftSummary(
        total=len(inconsistencies),
        critical=by_severity.get(Severity.HIGH.value, 0),
        by_type=dict(sorted(by_type.items())),
        by_severity=dict(sorted(by_severity.items())),
    )


# =============================================================================
# Rules
# =============================================================================


def _check_missing_transactions(
    orders: tuple[Order, ...],
    by_order: dict[str, list[FinancialTransaction]],
) -> list[Inconsistency]:
    findings = []
    for order in orders:
        if not order.is_billable or order.id in by_order:
            continue
        findings.append(Inconsistency(
            type=InconsistencyType.MISSING_TRANSACTION,
            entity_type=EntityType.ORDER,
            entity_id=order.id,
            description="Confirmed order has no matching ledger transaction",
            severity=Severity.HIGH,
            expected_value={"has_transaction": True, "amount": order.total},
            actual_value={"has_transaction": False},
        ))
    return findings


def _check_duplicate_transactions(
    by_order: dict[str, list[FinancialTransaction]],
) -> list[Inconsistency]:
    findings = []
    for order_id, transactions in by_order.items():
        if len(transactions) <= 1:
            continue
        findings.append(Inconsistency(
            type=InconsistencyType.DUPLICATE_TRANSACTION,
            entity_type=EntityType.ORDER,
            entity_id=order_id,
            description="Several ledger transactions reference the same order",
            severity=Severity.MEDIUM,
            expected_value={"transaction_count": 1},
            actual_value={
                "transaction_count": len(transactions),
                "transaction_ids": [t.id for t in transactions],
            },
        ))
    return findings


def _check_order_amounts(
    orders: tuple[Order, ...],
    by_order: dict[str, list[FinancialTransaction]],
    tolerance: Decimal,
) -> list[Inconsistency]:
    findings = []
    for order in orders:
        transactions = by_order.get(order.id)
        if not transactions:
            continue
        # First correlated entry is the one the processor's idempotency check finds
        transaction = transactions[0]
        if amounts_match(order.total, transaction.amount, tolerance):
            continue
        findings.append(Inconsistency(
            type=InconsistencyType.AMOUNT_MISMATCH,
            entity_type=EntityType.ORDER,
            entity_id=order.id,
            description="Order total differs from its ledger transaction amount",
            severity=Severity.HIGH,
            expected_value={"amount": order.total},
            actual_value={"amount": transaction.amount, "transaction_id": transaction.id},
        ))
    return findings


def _check_credit_account(
    account: CreditAccount,
    tolerance: Decimal,
) -> list[Inconsistency]:
    findings = []
    remaining = expected_remaining(account.total_amount, account.paid_amount)

    if not amounts_match(account.remaining_amount, remaining, tolerance):
        findings.append(Inconsistency(
            type=InconsistencyType.AMOUNT_MISMATCH,
            entity_type=EntityType.CREDIT_ACCOUNT,
            entity_id=account.id,
            description="Credit account remaining balance is inconsistent",
            severity=Severity.MEDIUM,
            expected_value={"remaining_amount": remaining},
            actual_value={"remaining_amount": account.remaining_amount},
        ))

    expected_status = expected_account_status(account)
    if (
        account.status != expected_status
        and account.status != CreditAccountStatus.CLOSED.value
    ):
        findings.append(Inconsistency(
            type=InconsistencyType.STATUS_MISMATCH,
            entity_type=EntityType.CREDIT_ACCOUNT,
            entity_id=account.id,
            description="Credit account status is inconsistent with its balance",
            severity=Severity.LOW,
            expected_value={"status": expected_status},
            actual_value={"status": account.status},
        ))

    return findings
