"""Per-claim serialization and in-flight tracking for reconciliations."""

from __future__ import annotations

import threading
import time
from collections import Counter
from contextlib import contextmanager
from typing import Hashable, Iterator


class KeyedLocks:
    """One lock per key, created on demand and dropped once unused.

    Holders of different keys never block each other.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}
        self._users: Counter[Hashable] = Counter()

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] += 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._users[key] -= 1
                if self._users[key] <= 0:
                    del self._users[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class InflightTracker:
    """Counts running reconciliations and refuses new ones once closed."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._active: Counter[Hashable] = Counter()
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    @property
    def count(self) -> int:
        with self._cond:
            return sum(self._active.values())

    def enter(self, key: Hashable) -> bool:
        """Register a reconciliation for ``key``; False once closed."""
        with self._cond:
            if self._closed:
                return False
            self._active[key] += 1
            return True

    def exit(self, key: Hashable) -> None:
        with self._cond:
            self._active[key] -= 1
            if self._active[key] <= 0:
                del self._active[key]
            self._cond.notify_all()

    def close(self) -> None:
        """Stop accepting new reconciliations."""
        with self._cond:
            self._closed = True

    def wait_idle(self, timeout: float) -> list[Hashable]:
        """Wait up to ``timeout`` seconds for running reconciliations.

        Returns:
            Keys still running when the timeout elapsed (empty when idle)
        """
        deadline = time.monotonic() + timeout
        with self._cond:
            while self._active:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._cond.wait(remaining)
            return list(self._active)
