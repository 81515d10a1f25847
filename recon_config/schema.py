"""
Configuration schema (``recon_config.schema``).

Frozen dataclasses only; parsing and validation live in ``loader``.
Defaults here are the values the engine runs with when a key is absent
from the YAML file.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal


@dataclass(frozen=True)
class SyncConfig:
    """Runtime settings for the reconciliation engine."""

    interval_minutes: float = 30
    amount_tolerance: Decimal = Decimal("0.01")
    sale_category: str = "Sales"
    installment_category: str = "Installment"
    credit_payment_method: str = "credit"
    log_level: str = "INFO"
    database_url: str | None = None

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))
