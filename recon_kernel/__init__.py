"""
Reconciliation Kernel

Shared foundation for the retail ledger reconciliation engine:
- Frozen order / ledger / credit account records with Decimal money
- The storage collaborator protocol (in-memory and SQLAlchemy backends)
- Typed exceptions, structured JSON logging, injectable clock
- Per-correlation-key locking for idempotent ledger writes
"""

__version__ = "0.1.0"
