"""
DriftDetectionService -- Service wrapper for the drift scanner.

Loads one LedgerSnapshot through the storage collaborator and delegates
to the pure ``recon_engines.drift_scanner`` engine.

Architecture: recon_services -- imperative shell.  Read-only.

Failure modes:
    Storage failures propagate.  The caller (the sync job) treats them
    as a scanner-level failure.
"""

from __future__ import annotations

from decimal import Decimal

from recon_kernel.domain.records import LedgerSnapshot
from recon_kernel.domain.values import DEFAULT_TOLERANCE
from recon_kernel.logging_config import get_logger
from recon_kernel.storage.base import LedgerStorage, load_snapshot

from recon_engines.drift_scanner import detect_inconsistencies, summarize
from recon_engines.drift_types import Inconsistency

logger = get_logger("services.drift_detection")


class DriftDetectionService:
    """Scan the stored ledger for drift.

    Non-goals:
        - Does NOT modify any data (see Remediator).
        - Does NOT persist findings.
    """

    def __init__(
        self,
        storage: LedgerStorage,
        amount_tolerance: Decimal = DEFAULT_TOLERANCE,
    ) -> None:
        self._storage = storage
        self._amount_tolerance = amount_tolerance

    def load_snapshot(self) -> LedgerSnapshot:
        return load_snapshot(self._storage)

    def detect_inconsistencies(
        self, snapshot: LedgerSnapshot | None = None,
    ) -> list[Inconsistency]:
        """Scan ``snapshot`` (or a freshly loaded one) and return findings."""
        if snapshot is None:
            snapshot = self.load_snapshot()
        findings = detect_inconsistencies(snapshot, self._amount_tolerance)

        summary = summarize(findings)
        logger.info(
            "drift_detected" if findings else "drift_scan_clean",
            extra={
                "total": summary.total,
                "critical": summary.critical,
                "by_type": summary.by_type,
            },
        )
        return findings
