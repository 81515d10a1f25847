"""
recon_batch.domain.types -- Pure frozen dataclasses for the sync job.

ZERO I/O.  Follows the pattern of the service result types: frozen
dataclasses, tuples for immutable collections, ``to_dict()`` for the
JSON surfaces (CLI, stats).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


JOB_ID_PREFIX = "sync_"


@dataclass(frozen=True)
class JobResult:
    """Immutable result of one ``run_sync_job()`` pass.

    Only the most recent result is retained in memory; restarting the
    process loses it.
    """

    job_id: str
    success: bool
    start_time: datetime
    end_time: datetime
    synced_orders: int = 0
    synced_credit_accounts: int = 0
    detected_inconsistencies: int = 0
    fixed_inconsistencies: int = 0
    errors: tuple[str, ...] = ()
    message: str = ""

    @property
    def duration(self) -> float:
        """Wall time of the run in seconds, by the injected clock."""
        return (self.end_time - self.start_time).total_seconds()

    @property
    def duration_ms(self) -> int:
        return int(self.duration * 1000)

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "success": self.success,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_ms": self.duration_ms,
            "synced_orders": self.synced_orders,
            "synced_credit_accounts": self.synced_credit_accounts,
            "detected_inconsistencies": self.detected_inconsistencies,
            "fixed_inconsistencies": self.fixed_inconsistencies,
            "errors": list(self.errors),
            "message": self.message,
        }


@dataclass(frozen=True)
class SchedulerStatus:
    is_running: bool
    last_job_result: JobResult | None
    uptime: float  # seconds since start(), 0 when stopped

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_running": self.is_running,
            "last_job_result": (
                self.last_job_result.to_dict() if self.last_job_result else None
            ),
            "uptime": self.uptime,
        }


@dataclass(frozen=True)
class DataIntegrityStats:
    total_orders: int
    confirmed_orders: int
    total_transactions: int
    webhook_transactions: int
    total_credit_accounts: int
    active_credit_accounts: int


@dataclass(frozen=True)
class SyncStatusStats:
    inconsistencies_detected: int
    critical_inconsistencies: int
    inconsistencies_by_type: dict[str, int] = field(default_factory=dict)
    last_job_result: JobResult | None = None


@dataclass(frozen=True)
class PerformanceStats:
    last_sync_duration_ms: int
    jobs_executed: int
    success_rate: float  # percent, over the retained result only


@dataclass(frozen=True)
class DetailedStats:
    """Live snapshot computed by ``SyncScheduler.get_detailed_stats()``."""

    data_integrity: DataIntegrityStats
    sync_status: SyncStatusStats
    performance: PerformanceStats

    def to_dict(self) -> dict[str, Any]:
        last = self.sync_status.last_job_result
        return {
            "data_integrity": {
                "total_orders": self.data_integrity.total_orders,
                "confirmed_orders": self.data_integrity.confirmed_orders,
                "total_transactions": self.data_integrity.total_transactions,
                "webhook_transactions": self.data_integrity.webhook_transactions,
                "total_credit_accounts": self.data_integrity.total_credit_accounts,
                "active_credit_accounts": self.data_integrity.active_credit_accounts,
            },
            "sync_status": {
                "inconsistencies_detected": self.sync_status.inconsistencies_detected,
                "critical_inconsistencies": self.sync_status.critical_inconsistencies,
                "inconsistencies_by_type": dict(self.sync_status.inconsistencies_by_type),
                "last_job_result": last.to_dict() if last else None,
            },
            "performance": {
                "last_sync_duration_ms": self.performance.last_sync_duration_ms,
                "jobs_executed": self.performance.jobs_executed,
                "success_rate": self.performance.success_rate,
            },
        }
