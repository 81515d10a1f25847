"""
Tickers -- Drive the scheduler's periodic callback.

``ThreadTicker`` runs the callback on a daemon thread: once immediately,
then every ``interval_seconds`` until stopped.  ``ManualTicker`` fires
only when a test advances virtual time, so scheduler behaviour can be
asserted without sleeping.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Callable

from recon_kernel.logging_config import get_logger

logger = get_logger("batch.ticker")

TickCallback = Callable[[], object]


class Ticker(ABC):
    """Periodic trigger.  ``start()`` fires the callback once right away."""

    @abstractmethod
    def start(self, interval_seconds: float, callback: TickCallback) -> None:
        ...

    @abstractmethod
    def stop(self) -> None:
        """Cancel future ticks.  A callback already running completes."""
        ...

    @property
    @abstractmethod
    def is_running(self) -> bool:
        ...


class ThreadTicker(Ticker):
    """Background-thread ticker, the production default.

    Every ``start()`` gets its own thread and stop event.  A thread whose
    callback outlasts ``join_timeout`` in ``stop()`` is left to finish on
    its own and does not block a later ``start()``.
    """

    def __init__(self, join_timeout: float = 30.0) -> None:
        self._join_timeout = join_timeout
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self, interval_seconds: float, callback: TickCallback) -> None:
        if self.is_running:
            logger.warning("ticker_already_running")
            return
        previous = self._thread
        if previous is not None and previous.is_alive():
            logger.warning(
                "ticker_previous_run_in_flight",
                extra={"thread": previous.name},
            )
        stop_event = threading.Event()
        self._stop_event = stop_event
        self._thread = threading.Thread(
            target=self._run_loop,
            args=(interval_seconds, callback, stop_event),
            name="recon-sync-ticker",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        if (
            thread is not None
            and thread.is_alive()
            and thread is not threading.current_thread()
        ):
            thread.join(timeout=self._join_timeout)
            if thread.is_alive():
                logger.warning(
                    "ticker_stop_timed_out",
                    extra={"join_timeout": self._join_timeout},
                )

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop_event.is_set()
        )

    @staticmethod
    def _run_loop(
        interval_seconds: float,
        callback: TickCallback,
        stop_event: threading.Event,
    ) -> None:
        while not stop_event.is_set():
            try:
                callback()
            except Exception:
                logger.exception("ticker_callback_failed")
            stop_event.wait(timeout=interval_seconds)


class ManualTicker(Ticker):
    """Virtual-time ticker for tests.

    ``advance(seconds)`` moves virtual time forward and fires the callback
    once per interval boundary crossed.  An attached ``DeterministicClock``
    (anything with ``advance(seconds)``) is moved in step before each fire.
    """

    def __init__(self, clock=None) -> None:
        self._clock = clock
        self._interval: float | None = None
        self._callback: TickCallback | None = None
        self._until_next = 0.0
        self.fired = 0

    def start(self, interval_seconds: float, callback: TickCallback) -> None:
        if self.is_running:
            return
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._interval = interval_seconds
        self._callback = callback
        self._until_next = interval_seconds
        self._fire()

    def stop(self) -> None:
        self._callback = None
        self._interval = None

    @property
    def is_running(self) -> bool:
        return self._callback is not None

    def advance(self, seconds: float) -> int:
        """Advance virtual time; return how many ticks fired."""
        fired = 0
        remaining = seconds
        while self.is_running and remaining >= self._until_next:
            remaining -= self._until_next
            self._move_clock(self._until_next)
            self._until_next = self._interval
            self._fire()
            fired += 1
        if self.is_running:
            self._until_next -= remaining
        self._move_clock(remaining)
        return fired

    def _move_clock(self, seconds: float) -> None:
        if self._clock is not None and seconds > 0:
            self._clock.advance(seconds)

    def _fire(self) -> None:
        callback = self._callback
        if callback is None:
            return
        self.fired += 1
        try:
            callback()
        except Exception:
            logger.exception("ticker_callback_failed")
