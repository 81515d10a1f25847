"""
Module: recon_kernel.db.engine
Responsibility: SQLAlchemy engine construction, session factories and
    the transactional scope used by ``SqlAlchemyStorage``.

Unlike a process-global engine, every function here takes or returns the
engine explicitly; the composition root owns its lifecycle.

Failure modes:
    - SQLAlchemyError from create_engine on a malformed URL.
    - Connection pool exhaustion if pool_size + max_overflow is exceeded.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from recon_kernel.logging_config import get_logger

logger = get_logger("db.engine")


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
) -> Engine:
    """
    Create a SQLAlchemy engine for ``database_url``.

    SQLite URLs get a single shared connection (``StaticPool``) so that an
    in-memory database is visible to every session and every thread; other
    backends get a regular pre-pinged connection pool.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_engine(
            database_url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
        )

    logger.info(
        "engine_initialized",
        extra={"dialect": engine.dialect.name, "echo": echo},
    )
    return engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Session factory bound to ``engine``; objects stay usable after commit."""
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(
    session_factory: sessionmaker[Session],
) -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    On normal exit the session is committed and closed. On exception it is
    rolled back and closed, and the exception is re-raised to the caller.

    Usage:
        with session_scope(factory) as session:
            session.add(entity)
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(engine: Engine) -> None:
    """Create the orders / credit accounts / transactions tables if missing."""
    from recon_kernel.db.base import Base
    import recon_kernel.models  # noqa: F401  (registers the ORM tables)

    Base.metadata.create_all(engine)


def drop_tables(engine: Engine) -> None:
    """Drop all tables. Use with caution - primarily for testing."""
    from recon_kernel.db.base import Base
    import recon_kernel.models  # noqa: F401

    Base.metadata.drop_all(engine)
