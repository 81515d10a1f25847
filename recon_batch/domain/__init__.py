"""recon_batch.domain -- Pure types for the sync job. ZERO I/O."""

from recon_batch.domain.types import (
    JOB_ID_PREFIX,
    DataIntegrityStats,
    DetailedStats,
    JobResult,
    PerformanceStats,
    SchedulerStatus,
    SyncStatusStats,
)

__all__ = [
    "JOB_ID_PREFIX",
    "DataIntegrityStats",
    "DetailedStats",
    "JobResult",
    "PerformanceStats",
    "SchedulerStatus",
    "SyncStatusStats",
]
