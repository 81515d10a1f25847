"""
Per-key mutual exclusion.

The event processor's idempotency check is a read-then-write against the
storage collaborator. Two callers handling the same correlation key (a
webhook and a scheduler tick, say) must not interleave between the read
and the write, or both see "no transaction yet" and both create one.

``KeyedLock`` hands out one ``threading.Lock`` per key. Entries are
reference-counted and dropped when the last holder leaves, so the
registry does not grow with the number of orders ever processed.

Scope: one process. Deployments with several writer processes need a
uniqueness constraint on the correlation key in storage instead.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from recon_kernel.logging_config import get_logger

logger = get_logger("utils.locking")


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class KeyedLock:
    """Registry of reference-counted locks keyed by string."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Block until ``key`` is free, hold it for the ``with`` body."""
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.holders += 1

        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        """Number of keys currently held or waited on."""
        with self._guard:
            return len(self._entries)
