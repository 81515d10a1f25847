"""
Tests for recon_engines.drift_scanner -- pure drift detection.

Snapshots are built directly from frozen records; no storage involved.
"""

from decimal import Decimal

import pytest

from recon_kernel.domain.records import (
    CreditAccount,
    FinancialTransaction,
    LedgerSnapshot,
    Order,
)

from recon_engines.drift_scanner import (
    detect_inconsistencies,
    expected_account_status,
    index_by_order,
    summarize,
)
from recon_engines.drift_types import EntityType, InconsistencyType, Severity


def _order(order_id, status="confirmed", total="100.00", method="cash"):
    return Order(id=order_id, status=status, total=Decimal(total), payment_method=method)


def _txn(txn_id, order_id=None, amount="100.00", status="completed", account_id=None):
    metadata = {}
    if order_id:
        metadata["orderId"] = order_id
    if account_id:
        metadata["creditAccountId"] = account_id
    return FinancialTransaction(
        id=txn_id,
        type="income",
        amount=Decimal(amount),
        status=status,
        category="Sales",
        description="x",
        metadata=metadata,
    )


def _account(account_id, total="1000", paid="0", remaining=None, status="active"):
    if remaining is None:
        remaining = max(Decimal(total) - Decimal(paid), Decimal("0"))
    return CreditAccount(
        id=account_id,
        customer_id="c",
        account_number="CR-1",
        total_amount=Decimal(total),
        paid_amount=Decimal(paid),
        remaining_amount=Decimal(remaining),
        status=status,
    )


class TestMissingTransaction:
    def test_confirmed_order_without_entry_is_high(self):
        snapshot = LedgerSnapshot(orders=(_order("o1"),))

        [finding] = detect_inconsistencies(snapshot)

        assert finding.type is InconsistencyType.MISSING_TRANSACTION
        assert finding.entity_type is EntityType.ORDER
        assert finding.entity_id == "o1"
        assert finding.severity is Severity.HIGH
        assert finding.expected_value["amount"] == Decimal("100.00")
        assert finding.actual_value == {"has_transaction": False}

    @pytest.mark.parametrize("status", ["pending", "cancelled"])
    def test_non_billable_orders_ignored(self, status):
        snapshot = LedgerSnapshot(orders=(_order("o1", status=status),))
        assert detect_inconsistencies(snapshot) == []

    def test_completed_order_is_billable(self):
        snapshot = LedgerSnapshot(orders=(_order("o1", status="completed"),))
        assert len(detect_inconsistencies(snapshot)) == 1

    def test_cancelled_entry_still_counts_as_present(self):
        snapshot = LedgerSnapshot(
            orders=(_order("o1"),),
            transactions=(_txn("t1", order_id="o1", status="cancelled"),),
        )
        assert detect_inconsistencies(snapshot) == []


class TestDuplicateTransaction:
    def test_two_entries_for_one_order(self):
        snapshot = LedgerSnapshot(
            orders=(_order("o1"),),
            transactions=(_txn("t1", "o1"), _txn("t2", "o1")),
        )

        findings = detect_inconsistencies(snapshot)

        assert [f.type for f in findings] == [InconsistencyType.DUPLICATE_TRANSACTION]
        assert findings[0].severity is Severity.MEDIUM
        assert findings[0].actual_value["transaction_ids"] == ["t1", "t2"]
        assert findings[0].actual_value["transaction_count"] == 2

    def test_duplicate_reported_even_without_order(self):
        snapshot = LedgerSnapshot(transactions=(_txn("t1", "gone"), _txn("t2", "gone")))
        [finding] = detect_inconsistencies(snapshot)
        assert finding.entity_id == "gone"


class TestOrderAmountMismatch:
    def test_difference_beyond_tolerance(self):
        snapshot = LedgerSnapshot(
            orders=(_order("o1", total="100.00"),),
            transactions=(_txn("t1", "o1", amount="90.00"),),
        )

        [finding] = detect_inconsistencies(snapshot)

        assert finding.type is InconsistencyType.AMOUNT_MISMATCH
        assert finding.entity_type is EntityType.ORDER
        assert finding.severity is Severity.HIGH
        assert finding.actual_value == {"amount": Decimal("90.00"), "transaction_id": "t1"}

    def test_one_cent_is_within_tolerance(self):
        snapshot = LedgerSnapshot(
            orders=(_order("o1", total="100.00"),),
            transactions=(_txn("t1", "o1", amount="100.01"),),
        )
        assert detect_inconsistencies(snapshot) == []

    def test_compares_first_correlated_entry(self):
        snapshot = LedgerSnapshot(
            orders=(_order("o1", total="100.00"),),
            transactions=(_txn("t1", "o1", amount="100.00"), _txn("t2", "o1", amount="5.00")),
        )
        types = [f.type for f in detect_inconsistencies(snapshot)]
        assert types == [InconsistencyType.DUPLICATE_TRANSACTION]


class TestCreditAccountChecks:
    def test_remaining_mismatch_is_medium(self):
        snapshot = LedgerSnapshot(
            credit_accounts=(_account("a1", total="1000", paid="700", remaining="500"),),
        )

        [finding] = detect_inconsistencies(snapshot)

        assert finding.type is InconsistencyType.AMOUNT_MISMATCH
        assert finding.entity_type is EntityType.CREDIT_ACCOUNT
        assert finding.severity is Severity.MEDIUM
        assert finding.expected_value == {"remaining_amount": Decimal("300")}
        assert finding.actual_value == {"remaining_amount": Decimal("500")}

    def test_overpaid_account_expects_zero_remaining(self):
        snapshot = LedgerSnapshot(
            credit_accounts=(_account("a1", total="1000", paid="1200", remaining="0", status="paid"),),
        )
        assert detect_inconsistencies(snapshot) == []

    def test_fully_paid_but_active_is_low_status_mismatch(self):
        snapshot = LedgerSnapshot(
            credit_accounts=(_account("a1", total="1000", paid="1000", status="active"),),
        )

        [finding] = detect_inconsistencies(snapshot)

        assert finding.type is InconsistencyType.STATUS_MISMATCH
        assert finding.severity is Severity.LOW
        assert finding.expected_value == {"status": "paid"}

    def test_closed_account_never_status_mismatch(self):
        snapshot = LedgerSnapshot(
            credit_accounts=(_account("a1", total="1000", paid="200", status="closed"),),
        )
        assert detect_inconsistencies(snapshot) == []

    def test_suspended_account_with_balance_expects_active(self):
        snapshot = LedgerSnapshot(
            credit_accounts=(_account("a1", total="1000", paid="200", status="suspended"),),
        )
        [finding] = detect_inconsistencies(snapshot)
        assert finding.expected_value == {"status": "active"}

    def test_both_checks_fire_on_one_account(self):
        snapshot = LedgerSnapshot(
            credit_accounts=(_account("a1", total="1000", paid="1000", remaining="50"),),
        )
        types = [f.type for f in detect_inconsistencies(snapshot)]
        assert types == [InconsistencyType.AMOUNT_MISMATCH, InconsistencyType.STATUS_MISMATCH]

    def test_expected_account_status(self):
        assert expected_account_status(_account("a", total="10", paid="10")) == "paid"
        assert expected_account_status(_account("a", total="10", paid="3")) == "active"


class TestOrderingAndSummary:
    def test_rules_emitted_in_fixed_order(self):
        snapshot = LedgerSnapshot(
            orders=(_order("o1"), _order("o2", total="50.00"), _order("o3")),
            transactions=(
                _txn("t1", "o2", amount="10.00"),
                _txn("t2", "o3"),
                _txn("t3", "o3"),
            ),
            credit_accounts=(_account("a1", total="100", paid="100", remaining="7"),),
        )

        findings = detect_inconsistencies(snapshot)

        assert [(f.type.value, f.entity_id) for f in findings] == [
            ("missing_transaction", "o1"),
            ("duplicate_transaction", "o3"),
            ("amount_mismatch", "o2"),
            ("amount_mismatch", "a1"),
            ("status_mismatch", "a1"),
        ]

    def test_summarize_counts(self):
        snapshot = LedgerSnapshot(
            orders=(_order("o1"), _order("o2")),
            credit_accounts=(_account("a1", total="100", paid="100", status="active"),),
        )

        summary = summarize(detect_inconsistencies(snapshot))

        assert summary.total == 3
        assert summary.critical == 2
        assert summary.by_type == {"missing_transaction": 2, "status_mismatch": 1}
        assert summary.by_severity == {"high": 2, "low": 1}

    def test_index_by_order_skips_uncorrelated(self):
        index = index_by_order([_txn("t1", "o1"), _txn("t2", account_id="a1")])
        assert list(index) == ["o1"]

    def test_to_dict_is_plain(self):
        [finding] = detect_inconsistencies(LedgerSnapshot(orders=(_order("o1"),)))
        payload = finding.to_dict()
        assert payload["type"] == "missing_transaction"
        assert payload["severity"] == "high"
        assert payload["entity_type"] == "order"
