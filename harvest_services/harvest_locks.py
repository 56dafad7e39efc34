"""
HarvestLockRegistry -- in-process serialization of harvest recomputation.

Two recomputations of the same harvest must not interleave their
read-compute-write sequences, or the later writer could persist a snapshot
computed from older data.  The registry hands out one re-entrant lock per
harvest id; different harvests never contend.

Across processes the row lock taken by the service
(``SELECT ... FOR UPDATE`` on the harvest) provides the same guarantee on
PostgreSQL.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from uuid import UUID

from harvest_kernel.logging_config import get_logger

logger = get_logger("services.harvest_locks")


class HarvestLockRegistry:
    """
    Registry of per-harvest re-entrant locks.

    Guarantees:
        - While any thread holds or waits for a harvest, every caller gets
          the same lock object for it.
        - Locks are re-entrant: a thread already holding a harvest lock may
          acquire it again (recompute_harvest_financials holds it around
          the service call, which acquires it too).
        - An entry lives only while someone holds or waits for it, so the
          registry never grows past the number of harvests in flight.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}
        self._users: dict[str, int] = {}

    def _checkout(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: str) -> None:
        with self._guard:
            remaining = self._users[key] - 1
            if remaining:
                self._users[key] = remaining
            else:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def hold(self, harvest_id: UUID | str) -> Iterator[None]:
        """Hold the lock of ``harvest_id`` for the duration of the block."""
        key = str(harvest_id)
        lock = self._checkout(key)
        try:
            with lock:
                logger.debug("harvest_lock_acquired", extra={"harvest_id": key})
                try:
                    yield
                finally:
                    logger.debug("harvest_lock_released", extra={"harvest_id": key})
        finally:
            self._checkin(key)

    def __len__(self) -> int:
        """Number of harvests currently held or waited for."""
        with self._guard:
            return len(self._locks)


# Shared by every service that is not given a registry explicitly.
default_lock_registry = HarvestLockRegistry()
