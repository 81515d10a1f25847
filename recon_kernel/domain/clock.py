"""
Clock -- Injectable time source.

Services, the drift scanner and the scheduler take a ``Clock`` instead of
calling ``datetime.now()``, so job timestamps, uptime and ledger entry
dates can be pinned in tests.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Guarantees:
        ``now()`` returns a timezone-aware ``datetime``.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    """Production clock, UTC wall time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock.  ``now()`` stays put until ``advance()`` moves it.

    ``ManualTicker`` advances an attached clock in step with virtual time.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._start = fixed_time or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        self._elapsed = 0.0

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)

    def advance(self, seconds: float = 1) -> None:
        self._elapsed += seconds
