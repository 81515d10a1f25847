"""
Drift detection domain types.

Pure frozen dataclasses and enums produced by the drift scanner and
consumed by the remediator and the scheduler's stats.  Inconsistencies
are transient: computed per scan, never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class InconsistencyType(str, Enum):
    MISSING_TRANSACTION = "missing_transaction"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    AMOUNT_MISMATCH = "amount_mismatch"
    STATUS_MISMATCH = "status_mismatch"


class EntityType(str, Enum):
    ORDER = "order"
    CREDIT_ACCOUNT = "credit_account"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class Inconsistency:
    """One detected divergence between derived and stored state.

    ``expected_value`` / ``actual_value`` hold the fields that disagree,
    keyed by field name, e.g. ``{"remaining_amount": Decimal("300.00")}``.
    """

    type: InconsistencyType
    entity_type: EntityType
    entity_id: str
    description: str
    severity: Severity
    expected_value: dict[str, Any] = field(default_factory=dict)
    actual_value: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "entity_type": self.entity_type.value,
            "entity_id": self.entity_id,
            "description": self.description,
            "severity": self.severity.value,
            "expected_value": dict(self.expected_value),
            "actual_value": dict(self.actual_value),
        }


@dataclass(frozen=True)
class DriftSummary:
    """Counts over one inconsistency list."""

    total: int = 0
    critical: int = 0  # severity HIGH
    by_type: dict[str, int] = field(default_factory=dict)
    by_severity: dict[str, int] = field(default_factory=dict)
