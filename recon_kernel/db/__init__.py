"""Database layer - engine, session scope and declarative base."""

from recon_kernel.db.base import Base, new_id
from recon_kernel.db.engine import (
    create_tables,
    drop_tables,
    init_engine_from_url,
    make_session_factory,
    session_scope,
)

__all__ = [
    "Base",
    "new_id",
    "create_tables",
    "drop_tables",
    "init_engine_from_url",
    "make_session_factory",
    "session_scope",
]
