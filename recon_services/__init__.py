"""
recon_services -- Imperative shell over the ledger storage.

Services own I/O (storage reads and writes, clock, logging) and delegate
pure calculation to recon_engines.
"""

from recon_services._sync_types import (
    FinancialSyncResult,
    HistoricalSyncResult,
    SyncedData,
    WebhookEvent,
    WebhookEventType,
)
from recon_services.drift_service import DriftDetectionService
from recon_services.event_processor import FinancialEventProcessor
from recon_services.remediator import Remediator

__all__ = [
    "DriftDetectionService",
    "FinancialEventProcessor",
    "FinancialSyncResult",
    "HistoricalSyncResult",
    "Remediator",
    "SyncedData",
    "WebhookEvent",
    "WebhookEventType",
]
