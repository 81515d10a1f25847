"""Storage collaborator: the LedgerStorage protocol and its implementations."""

from recon_kernel.storage.base import LedgerStorage, load_snapshot
from recon_kernel.storage.memory import InMemoryStorage
from recon_kernel.storage.sqlalchemy_store import SqlAlchemyStorage

__all__ = [
    "InMemoryStorage",
    "LedgerStorage",
    "SqlAlchemyStorage",
    "load_snapshot",
]
