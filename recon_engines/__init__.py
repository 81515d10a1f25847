"""
recon_engines -- Pure calculation engines.

Zero I/O: engines receive fully loaded snapshots from the service layer
and return frozen findings.  Nothing here touches storage or the clock.
"""

from recon_engines.drift_scanner import detect_inconsistencies, summarize
from recon_engines.drift_types import (
    DriftSummary,
    EntityType,
    Inconsistency,
    InconsistencyType,
    Severity,
)

__all__ = [
    "DriftSummary",
    "EntityType",
    "Inconsistency",
    "InconsistencyType",
    "Severity",
    "detect_inconsistencies",
    "summarize",
]
