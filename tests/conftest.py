"""
Pytest fixtures for the reconciliation engine test suite.

Provides:
- Deterministic clock and in-memory storage for most tests
- SQLite-backed SqlAlchemyStorage for storage-contract tests
- Record factories that seed the storage the way the CRUD layer would
- Structured log capture
"""

import json
import logging
from io import StringIO
from decimal import Decimal
from uuid import uuid4

import pytest

from recon_kernel.db.engine import (
    create_tables,
    init_engine_from_url,
    make_session_factory,
)
from recon_kernel.domain.clock import DeterministicClock
from recon_kernel.domain.records import (
    CreditAccount,
    FinancialTransaction,
    Order,
    SOURCE_CREDIT_WEBHOOK,
    SOURCE_ORDER_WEBHOOK,
)
from recon_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from recon_kernel.storage.memory import InMemoryStorage
from recon_kernel.storage.sqlalchemy_store import SqlAlchemyStorage

from recon_config.schema import SyncConfig
from recon_services.event_processor import FinancialEventProcessor

from recon_batch.orchestrator import SyncOrchestrator
from recon_batch.services.ticker import ManualTicker


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture recon_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, processor):
            processor.process_order_confirmation(order_id)
            logs = captured_logs()
            assert any(r["message"] == "order_transaction_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("recon_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Core fixtures
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def config():
    return SyncConfig()


@pytest.fixture
def processor(storage, clock, config):
    return FinancialEventProcessor(storage, clock=clock, config=config)


@pytest.fixture
def ticker(clock):
    return ManualTicker(clock=clock)


@pytest.fixture
def orchestrator(storage, clock, config, ticker):
    return SyncOrchestrator.from_storage(
        storage, config=config, clock=clock, ticker=ticker,
    )


@pytest.fixture
def sqlite_engine():
    engine = init_engine_from_url("sqlite:///:memory:")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sqlite_storage(sqlite_engine):
    return SqlAlchemyStorage(make_session_factory(sqlite_engine))


# =============================================================================
# Record factories
# =============================================================================


@pytest.fixture
def add_order(storage):
    """Seed an order; ``target`` overrides the default in-memory storage."""

    def _add(
        order_id=None,
        status="confirmed",
        total="100.00",
        payment_method="cash",
        customer_id="cust-1",
        target=None,
    ) -> Order:
        order = Order(
            id=order_id or str(uuid4()),
            status=status,
            total=Decimal(total),
            payment_method=payment_method,
            customer_id=customer_id,
        )
        return (target or storage).add_order(order)

    return _add


@pytest.fixture
def add_credit_account(storage):
    """Seed a credit account; ``remaining`` defaults to the derived value."""

    def _add(
        account_id=None,
        total="1000.00",
        paid="0.00",
        remaining=None,
        status="active",
        account_number="CR-0001",
        customer_id="cust-1",
        target=None,
    ) -> CreditAccount:
        total_amount = Decimal(total)
        paid_amount = Decimal(paid)
        if remaining is None:
            remaining_amount = max(Decimal("0"), total_amount - paid_amount)
        else:
            remaining_amount = Decimal(remaining)
        account = CreditAccount(
            id=account_id or str(uuid4()),
            customer_id=customer_id,
            account_number=account_number,
            total_amount=total_amount,
            paid_amount=paid_amount,
            remaining_amount=remaining_amount,
            status=status,
        )
        return (target or storage).add_credit_account(account)

    return _add


@pytest.fixture
def add_transaction(storage, clock):
    """Seed a ledger entry correlated to an order or a credit account."""

    def _add(
        order_id=None,
        credit_account_id=None,
        amount="100.00",
        status="completed",
        transaction_id=None,
        target=None,
    ) -> FinancialTransaction:
        metadata = {}
        if order_id is not None:
            metadata = {"orderId": order_id, "source": SOURCE_ORDER_WEBHOOK}
        elif credit_account_id is not None:
            metadata = {
                "creditAccountId": credit_account_id,
                "source": SOURCE_CREDIT_WEBHOOK,
            }
        transaction = FinancialTransaction(
            id=transaction_id or str(uuid4()),
            type="income",
            amount=Decimal(amount),
            status=status,
            category="Sales",
            description="seeded",
            date=clock.now(),
            metadata=metadata,
        )
        return (target or storage).add_transaction(transaction)

    return _add
