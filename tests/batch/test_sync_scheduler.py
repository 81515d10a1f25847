"""
Tests for recon_batch.services.scheduler.SyncScheduler.

Validates the job pipeline (scan, backfill, remediate), the total-function
contract of run_sync_job(), start/stop lifecycle under virtual time, and
status / detailed stats.
"""

import threading
import time
from decimal import Decimal

import pytest

from recon_kernel.exceptions import TransientStorageError

from recon_batch.orchestrator import SyncOrchestrator
from recon_batch.services.ticker import ThreadTicker


@pytest.fixture
def scheduler(orchestrator):
    return orchestrator.scheduler


class TestRunSyncJob:
    def test_scan_backfill_remediate(
        self, scheduler, storage, add_order, add_credit_account, clock,
    ):
        add_order(order_id="O1", total="150.00")
        add_credit_account(account_id="A1", total="500", paid="200", remaining="250")

        result = scheduler.run_sync_job()

        assert result.success
        assert result.job_id.startswith("sync_")
        assert result.detected_inconsistencies == 2
        assert result.synced_orders == 1
        assert result.synced_credit_accounts == 1
        # O1 was already booked by the backfill; remediation re-confirms it
        assert result.fixed_inconsistencies == 2
        assert result.start_time == clock.now()
        assert storage.get_credit_account("A1").remaining_amount == Decimal("300")
        order_entries = [t for t in storage.get_all_transactions() if t.order_id == "O1"]
        assert len(order_entries) == 1

    def test_clean_ledger(self, scheduler):
        result = scheduler.run_sync_job()

        assert result.success
        assert result.detected_inconsistencies == 0
        assert result.errors == ()
        assert result.message.startswith("Sync completed: 0 orders")

    def test_each_job_gets_new_id_and_overwrites_last(self, scheduler):
        first = scheduler.run_sync_job()
        second = scheduler.run_sync_job()

        assert first.job_id != second.job_id
        assert scheduler.get_status().last_job_result is second

    def test_never_raises_when_storage_is_down(self, scheduler, storage, monkeypatch):
        def down():
            raise TransientStorageError("get_all_orders", "connection refused")

        monkeypatch.setattr(storage, "get_all_orders", down)

        result = scheduler.run_sync_job()

        assert not result.success
        assert result.end_time >= result.start_time
        assert result.duration == (result.end_time - result.start_time).total_seconds()
        assert "connection refused" in result.errors[0]
        assert scheduler.get_status().last_job_result is result

    def test_never_raises_on_unexpected_error(self, orchestrator, monkeypatch):
        def boom(inconsistencies):
            raise RuntimeError("remediator exploded")

        monkeypatch.setattr(orchestrator.remediator, "fix_critical_inconsistencies", boom)

        result = orchestrator.scheduler.run_sync_job()

        assert not result.success
        assert result.errors == ("RuntimeError: remediator exploded",)

    def test_partial_failure_keeps_success(self, scheduler, storage, add_order, monkeypatch):
        add_order(order_id="O1")

        def flaky(order_id):
            raise TransientStorageError("get_order", "timeout")

        monkeypatch.setattr(storage, "get_order", flaky)

        result = scheduler.run_sync_job()

        assert result.success
        assert result.errors
        assert result.synced_orders == 0

    def test_job_id_bound_to_logs(self, scheduler, captured_logs):
        result = scheduler.run_sync_job()

        logs = captured_logs()
        completed = next(r for r in logs if r["message"] == "sync_job_completed")
        assert completed["job_id"] == result.job_id


class TestLifecycle:
    def test_start_runs_immediately(self, scheduler, ticker):
        scheduler.start(interval_minutes=30)

        assert scheduler.is_running
        assert ticker.fired == 1
        assert scheduler.get_status().last_job_result is not None

    def test_ticks_every_interval(self, scheduler, ticker):
        scheduler.start(interval_minutes=30)

        assert ticker.advance(29 * 60) == 0
        assert ticker.advance(60) == 1
        assert ticker.advance(90 * 60) == 3
        assert ticker.fired == 5

    def test_start_twice_is_noop(self, scheduler, ticker):
        scheduler.start(interval_minutes=30)
        scheduler.start(interval_minutes=5)

        ticker.advance(30 * 60)
        assert ticker.fired == 2

    def test_stop_cancels_future_ticks(self, scheduler, ticker):
        scheduler.start(interval_minutes=30)
        scheduler.stop()

        assert ticker.advance(120 * 60) == 0
        assert not scheduler.is_running
        assert scheduler.get_status().uptime == 0

    def test_restart_after_stop(self, scheduler, ticker):
        scheduler.start()
        scheduler.stop()
        scheduler.start()
        assert ticker.fired == 2

    def test_uptime_follows_clock(self, scheduler, ticker, clock):
        scheduler.start(interval_minutes=30)
        ticker.advance(45 * 60)

        assert scheduler.get_status().uptime == pytest.approx(45 * 60)

    def test_rejects_non_positive_interval(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.start(interval_minutes=0)
        assert not scheduler.is_running


class TestStats:
    def test_detailed_stats(
        self, scheduler, add_order, add_transaction, add_credit_account,
    ):
        add_order(order_id="O1")
        add_order(order_id="O2", status="pending")
        add_transaction(order_id="O1", amount="50.00")
        add_credit_account(account_id="A1", total="100", paid="100", status="active")
        add_credit_account(account_id="A2", status="closed")

        stats = scheduler.get_detailed_stats()

        assert stats.data_integrity.total_orders == 2
        assert stats.data_integrity.confirmed_orders == 1
        assert stats.data_integrity.total_transactions == 1
        assert stats.data_integrity.webhook_transactions == 1
        assert stats.data_integrity.total_credit_accounts == 2
        assert stats.data_integrity.active_credit_accounts == 1
        assert stats.sync_status.inconsistencies_detected == 2
        assert stats.sync_status.critical_inconsistencies == 1
        assert stats.sync_status.inconsistencies_by_type == {
            "amount_mismatch": 1,
            "status_mismatch": 1,
        }
        assert stats.performance.jobs_executed == 0
        assert stats.performance.success_rate == 0.0

    def test_performance_after_a_job(self, scheduler, clock):
        scheduler.run_sync_job()

        stats = scheduler.get_detailed_stats()

        assert stats.performance.jobs_executed == 1
        assert stats.performance.success_rate == 100.0
        assert stats.sync_status.last_job_result.success
        payload = stats.to_dict()
        assert payload["performance"]["jobs_executed"] == 1
        assert payload["sync_status"]["last_job_result"]["success"] is True

    def test_status_to_dict(self, scheduler):
        payload = scheduler.get_status().to_dict()
        assert payload == {"is_running": False, "last_job_result": None, "uptime": 0.0}


class TestThreadedRestart:
    @pytest.mark.slow
    def test_restart_while_a_slow_job_is_in_flight(self, storage, clock, config, monkeypatch):
        orchestrator = SyncOrchestrator.from_storage(
            storage, config=config, clock=clock, ticker=ThreadTicker(join_timeout=0.05),
        )
        scheduler = orchestrator.scheduler
        drift_service = orchestrator.drift_service
        real_detect = drift_service.detect_inconsistencies
        release = threading.Event()
        first_job = threading.Event()
        calls = []

        def slow_first_scan(snapshot=None):
            calls.append(1)
            if len(calls) == 1:
                first_job.set()
                release.wait(timeout=5)
            return real_detect(snapshot)

        monkeypatch.setattr(drift_service, "detect_inconsistencies", slow_first_scan)

        scheduler.start(interval_minutes=0.001)
        assert first_job.wait(timeout=5)
        scheduler.stop()
        scheduler.start(interval_minutes=0.001)
        release.set()

        deadline = time.monotonic() + 5
        while scheduler.get_detailed_stats().performance.jobs_executed < 3:
            assert time.monotonic() < deadline
            time.sleep(0.01)
        assert scheduler.is_running
        scheduler.stop()
