"""
SyncScheduler -- Periodic reconciliation job runner.

Contract:
    Each run executes, in order:
        1. drift scan over a full storage snapshot
        2. historical backfill through the event processor
        3. remediation of the step-1 findings
    and records one ``JobResult``, overwriting the previous one.

Architecture: recon_batch/services.  Composes the services layer; the
    ticker decides when runs happen, the injected Clock stamps them.

Invariants enforced:
    - All timestamps from the injected Clock.
    - ``run_sync_job()`` is total: it never raises.  Any exception becomes
      a ``success=False`` result.
    - Runs are serialized: a tick that lands while a run is in flight
      waits for it.
    - Graceful shutdown: ``stop()`` cancels future ticks; an in-flight run
      completes.
"""

from __future__ import annotations

import threading
from uuid import uuid4

from recon_kernel.domain.clock import Clock, SystemClock
from recon_kernel.domain.records import (
    BILLABLE_ORDER_STATUSES,
    CreditAccountStatus,
    WEBHOOK_SOURCES,
)
from recon_kernel.logging_config import LogContext, get_logger

from recon_engines.drift_scanner import summarize

from recon_services.drift_service import DriftDetectionService
from recon_services.event_processor import FinancialEventProcessor
from recon_services.remediator import Remediator

from recon_batch.domain.types import (
    JOB_ID_PREFIX,
    DataIntegrityStats,
    DetailedStats,
    JobResult,
    PerformanceStats,
    SchedulerStatus,
    SyncStatusStats,
)
from recon_batch.services.ticker import ThreadTicker, Ticker

logger = get_logger("batch.scheduler")

DEFAULT_INTERVAL_MINUTES = 30


class SyncScheduler:
    """In-process periodic scheduler for the reconciliation job.

    Contract:
        - ``start()`` / ``stop()`` drive the ticker.
        - ``run_sync_job()`` runs one pass (public for manual triggers).
        - ``get_status()`` / ``get_detailed_stats()`` for monitoring.

    Non-goals:
        - NOT a distributed scheduler (no leader election).
        - Does NOT persist job history (one in-memory result).
    """

    def __init__(
        self,
        processor: FinancialEventProcessor,
        drift_service: DriftDetectionService,
        remediator: Remediator,
        clock: Clock | None = None,
        ticker: Ticker | None = None,
    ):
        self._processor = processor
        self._drift_service = drift_service
        self._remediator = remediator
        self._clock = clock or SystemClock()
        self._ticker = ticker or ThreadTicker()
        self._state_lock = threading.Lock()
        self._job_lock = threading.Lock()
        self._started_at = None
        self._last_result: JobResult | None = None
        self._jobs_executed = 0

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self, interval_minutes: float = DEFAULT_INTERVAL_MINUTES) -> None:
        """Run once now, then every ``interval_minutes``.  No-op if running."""
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        with self._state_lock:
            if self._started_at is not None:
                logger.info("scheduler_already_running")
                return
            self._started_at = self._clock.now()
        logger.info("scheduler_started", extra={"interval_minutes": interval_minutes})
        self._ticker.start(interval_minutes * 60, self.run_sync_job)

    def stop(self) -> None:
        with self._state_lock:
            if self._started_at is None:
                return
            self._started_at = None
        self._ticker.stop()
        logger.info("scheduler_stopped")

    @property
    def is_running(self) -> bool:
        return self._started_at is not None

    # -------------------------------------------------------------------------
    # Job
    # -------------------------------------------------------------------------

    def run_sync_job(self) -> JobResult:
        """Scan, backfill, remediate; record and return the result."""
        with self._job_lock:
            job_id = f"{JOB_ID_PREFIX}{uuid4().hex}"
            with LogContext.bind(job_id=job_id):
                result = self._run(job_id)
            self._last_result = result
            self._jobs_executed += 1
            return result

    def _run(self, job_id: str) -> JobResult:
        start_time = self._clock.now()
        logger.info("sync_job_started")
        try:
            inconsistencies = self._drift_service.detect_inconsistencies()
            backfill = self._processor.sync_historical_data()
            fixed = self._remediator.fix_critical_inconsistencies(inconsistencies)
        except Exception as exc:
            logger.exception("sync_job_failed")
            return JobResult(
                job_id=job_id,
                success=False,
                start_time=start_time,
                end_time=self._clock.now(),
                errors=(f"{type(exc).__name__}: {exc}",),
                message="Sync job failed",
            )

        result = JobResult(
            job_id=job_id,
            success=True,
            start_time=start_time,
            end_time=self._clock.now(),
            synced_orders=backfill.synced_orders,
            synced_credit_accounts=backfill.synced_credit_accounts,
            detected_inconsistencies=len(inconsistencies),
            fixed_inconsistencies=fixed,
            errors=backfill.errors,
            message=(
                f"Sync completed: {backfill.synced_orders} orders, "
                f"{backfill.synced_credit_accounts} credit accounts, "
                f"{fixed} of {len(inconsistencies)} inconsistencies fixed"
            ),
        )
        logger.info(
            "sync_job_completed",
            extra={
                "synced_orders": result.synced_orders,
                "synced_credit_accounts": result.synced_credit_accounts,
                "detected_inconsistencies": result.detected_inconsistencies,
                "fixed_inconsistencies": result.fixed_inconsistencies,
                "error_count": len(result.errors),
                "duration_ms": result.duration_ms,
            },
        )
        return result

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    def get_status(self) -> SchedulerStatus:
        started_at = self._started_at
        uptime = 0.0
        if started_at is not None:
            uptime = (self._clock.now() - started_at).total_seconds()
        return SchedulerStatus(
            is_running=started_at is not None,
            last_job_result=self._last_result,
            uptime=uptime,
        )

    def get_detailed_stats(self) -> DetailedStats:
        """Recompute integrity counts and a fresh drift scan.

        Storage failures propagate.
        """
        snapshot = self._drift_service.load_snapshot()
        summary = summarize(self._drift_service.detect_inconsistencies(snapshot))
        last = self._last_result

        return DetailedStats(
            data_integrity=DataIntegrityStats(
                total_orders=len(snapshot.orders),
                confirmed_orders=sum(
                    1 for o in snapshot.orders if o.status in BILLABLE_ORDER_STATUSES
                ),
                total_transactions=len(snapshot.transactions),
                webhook_transactions=sum(
                    1 for t in snapshot.transactions
                    if t.metadata.get("source") in WEBHOOK_SOURCES
                ),
                total_credit_accounts=len(snapshot.credit_accounts),
                active_credit_accounts=sum(
                    1 for a in snapshot.credit_accounts
                    if a.status == CreditAccountStatus.ACTIVE.value
                ),
            ),
            sync_status=SyncStatusStats(
                inconsistencies_detected=summary.total,
                critical_inconsistencies=summary.critical,
                inconsistencies_by_type=summary.by_type,
                last_job_result=last,
            ),
            performance=PerformanceStats(
                last_sync_duration_ms=last.duration_ms if last else 0,
                jobs_executed=self._jobs_executed,
                success_rate=100.0 if last and last.success else 0.0,
            ),
        )
