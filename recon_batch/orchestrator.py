"""
SyncOrchestrator -- DI container for the reconciliation engine.

Contract:
    Wires storage, clock, config, event processor, drift service,
    remediator and scheduler.  Single place where all dependencies are
    composed; nothing below it builds its own collaborators.

Architecture: recon_batch (top-level).  The canonical entry point for
    webhooks, manual jobs and the background scheduler.

Invariants enforced:
    - Clock injection (every component receives the same Clock).
    - One KeyedLock shared by every processor path, so webhook and
      scheduler handling of the same order serialize.
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from recon_kernel.db.engine import (
    create_tables,
    init_engine_from_url,
    make_session_factory,
)
from recon_kernel.domain.clock import Clock, SystemClock
from recon_kernel.logging_config import get_logger
from recon_kernel.storage.base import LedgerStorage
from recon_kernel.storage.sqlalchemy_store import SqlAlchemyStorage
from recon_kernel.utils.locking import KeyedLock

from recon_config.schema import SyncConfig

from recon_services.drift_service import DriftDetectionService
from recon_services.event_processor import FinancialEventProcessor
from recon_services.remediator import Remediator

from recon_batch.services.scheduler import SyncScheduler
from recon_batch.services.ticker import Ticker

logger = get_logger("batch.orchestrator")


class SyncOrchestrator:
    """DI container for the reconciliation engine.

    Contract:
        - ``from_storage()`` wires everything over an existing storage.
        - ``from_database_url()`` also builds the SQLAlchemy engine.
        - Component properties expose the wired services.

    Non-goals:
        - Does NOT start the scheduler automatically -- caller decides.
    """

    def __init__(
        self,
        storage: LedgerStorage,
        processor: FinancialEventProcessor,
        drift_service: DriftDetectionService,
        remediator: Remediator,
        scheduler: SyncScheduler,
        config: SyncConfig,
        clock: Clock,
        engine: Engine | None = None,
    ) -> None:
        self._storage = storage
        self._processor = processor
        self._drift_service = drift_service
        self._remediator = remediator
        self._scheduler = scheduler
        self._config = config
        self._clock = clock
        self._engine = engine

    # -------------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------------

    @classmethod
    def from_storage(
        cls,
        storage: LedgerStorage,
        config: SyncConfig | None = None,
        clock: Clock | None = None,
        ticker: Ticker | None = None,
        engine: Engine | None = None,
    ) -> SyncOrchestrator:
        """Create a fully wired orchestrator over ``storage``.

        Args:
            storage: Any LedgerStorage implementation.
            config: Optional settings; defaults apply when omitted.
            clock: Optional clock for deterministic testing.
            ticker: Optional ticker; tests pass a ManualTicker.
        """
        effective_config = config or SyncConfig()
        effective_clock = clock or SystemClock()

        processor = FinancialEventProcessor(
            storage,
            clock=effective_clock,
            config=effective_config,
            locks=KeyedLock(),
        )
        drift_service = DriftDetectionService(
            storage, amount_tolerance=effective_config.amount_tolerance,
        )
        remediator = Remediator(storage, processor)
        scheduler = SyncScheduler(
            processor=processor,
            drift_service=drift_service,
            remediator=remediator,
            clock=effective_clock,
            ticker=ticker,
        )
        return cls(
            storage=storage,
            processor=processor,
            drift_service=drift_service,
            remediator=remediator,
            scheduler=scheduler,
            config=effective_config,
            clock=effective_clock,
            engine=engine,
        )

    @classmethod
    def from_database_url(
        cls,
        database_url: str,
        config: SyncConfig | None = None,
        clock: Clock | None = None,
        ticker: Ticker | None = None,
        create_schema: bool = False,
    ) -> SyncOrchestrator:
        """Build the SQLAlchemy engine and storage, then wire as above.

        ``create_schema`` creates missing tables; in production the CRUD
        layer owns the schema.
        """
        engine = init_engine_from_url(database_url)
        if create_schema:
            try:
                create_tables(engine)
            except Exception:
                engine.dispose()
                raise
        storage = SqlAlchemyStorage(make_session_factory(engine))
        logger.info("orchestrator_created", extra={"dialect": engine.dialect.name})
        return cls.from_storage(
            storage, config=config, clock=clock, ticker=ticker, engine=engine,
        )

    def close(self) -> None:
        """Stop the scheduler and release the database engine, if any."""
        self._scheduler.stop()
        if self._engine is not None:
            self._engine.dispose()

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def storage(self) -> LedgerStorage:
        return self._storage

    @property
    def processor(self) -> FinancialEventProcessor:
        return self._processor

    @property
    def drift_service(self) -> DriftDetectionService:
        return self._drift_service

    @property
    def remediator(self) -> Remediator:
        return self._remediator

    @property
    def scheduler(self) -> SyncScheduler:
        return self._scheduler

    @property
    def config(self) -> SyncConfig:
        return self._config

    @property
    def clock(self) -> Clock:
        return self._clock
