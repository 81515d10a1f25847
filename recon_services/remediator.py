"""
Remediator -- Applies safe corrective actions for detected drift.

Fixable:
    missing_transaction (order)        -> book it via the event processor
    amount_mismatch (credit_account)   -> overwrite remaining_amount
    status_mismatch (credit_account)   -> overwrite status

Surfaced only (no automatic action):
    duplicate_transaction, amount_mismatch (order)

Each item is handled independently; a failing item is logged and the
pass continues.  The return value counts fixes actually applied.
"""

from __future__ import annotations

from collections.abc import Iterable

from recon_kernel.logging_config import get_logger
from recon_kernel.storage.base import LedgerStorage

from recon_engines.drift_types import EntityType, Inconsistency, InconsistencyType

from recon_services.event_processor import FinancialEventProcessor

logger = get_logger("services.remediator")


class Remediator:
    """Write derived values back over drifted records."""

    def __init__(
        self,
        storage: LedgerStorage,
        processor: FinancialEventProcessor,
    ) -> None:
        self._storage = storage
        self._processor = processor

    def fix_critical_inconsistencies(
        self, inconsistencies: Iterable[Inconsistency],
    ) -> int:
        fixed = 0
        for inconsistency in inconsistencies:
            try:
                applied = self._fix(inconsistency)
            except Exception:
                logger.exception(
                    "remediation_failed",
                    extra={
                        "inconsistency_type": inconsistency.type.value,
                        "entity_id": inconsistency.entity_id,
                    },
                )
                continue
            if applied:
                fixed += 1
                logger.info(
                    "remediation_applied",
                    extra={
                        "inconsistency_type": inconsistency.type.value,
                        "entity_type": inconsistency.entity_type.value,
                        "entity_id": inconsistency.entity_id,
                    },
                )

        logger.info("remediation_completed", extra={"fixed": fixed})
        return fixed

    def _fix(self, inconsistency: Inconsistency) -> bool:
        kind = inconsistency.type
        entity = inconsistency.entity_type

        if kind is InconsistencyType.MISSING_TRANSACTION and entity is EntityType.ORDER:
            result = self._processor.process_order_confirmation(inconsistency.entity_id)
            if not result.success:
                logger.warning(
                    "remediation_rejected",
                    extra={
                        "entity_id": inconsistency.entity_id,
                        "error_code": result.error_code,
                        "error": result.message,
                    },
                )
            return result.success

        if entity is not EntityType.CREDIT_ACCOUNT:
            return False

        if kind is InconsistencyType.AMOUNT_MISMATCH:
            updated = self._storage.update_credit_account(
                inconsistency.entity_id,
                remaining_amount=inconsistency.expected_value["remaining_amount"],
            )
            return updated is not None

        if kind is InconsistencyType.STATUS_MISMATCH:
            updated = self._storage.update_credit_account(
                inconsistency.entity_id,
                status=inconsistency.expected_value["status"],
            )
            return updated is not None

        return False
