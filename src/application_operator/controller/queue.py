"""Rate-limited, deduplicating work queue.

Semantics follow the client-go workqueue used by Kubernetes controllers:

- An item added several times before a worker picks it up is processed once.
- An item is never handed to two workers at the same time. Adding it while
  it is being processed marks it dirty; it is queued again on :meth:`done`.
- :meth:`add_after` schedules an item for later; :meth:`add_rate_limited`
  does so with a per-item exponential backoff that :meth:`forget` resets.
"""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from collections import deque
from collections.abc import Callable, Hashable


class WorkQueue:
    """Thread-safe work queue shared by the watch threads and the workers."""

    def __init__(
        self,
        *,
        backoff_base: float = 1.0,
        backoff_max: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._backoff_base = backoff_base
        self._backoff_max = backoff_max
        self._clock = clock

        self._cond = threading.Condition()
        self._queue: deque[Hashable] = deque()
        self._dirty: set[Hashable] = set()
        self._processing: set[Hashable] = set()
        self._waiting: list[tuple[float, int, Hashable]] = []
        self._sequence = itertools.count()
        self._failures: dict[Hashable, int] = {}
        self._shutting_down = False

    # =========================================================================
    # Producers
    # =========================================================================

    def add(self, item: Hashable) -> None:
        """Queue ``item`` unless it is already waiting to be processed."""
        with self._cond:
            self._add_locked(item)

    def add_after(self, item: Hashable, delay: float) -> None:
        """Queue ``item`` once ``delay`` seconds have passed."""
        if delay <= 0:
            self.add(item)
            return
        with self._cond:
            if self._shutting_down:
                return
            heapq.heappush(self._waiting, (self._clock() + delay, next(self._sequence), item))
            self._cond.notify()

    def add_rate_limited(self, item: Hashable) -> float:
        """Queue ``item`` after its backoff delay.

        The delay is ``backoff_base * 2 ** (failures - 1)`` capped at
        ``backoff_max``, where ``failures`` counts calls since the last
        :meth:`forget`.

        Returns:
            The delay that was applied.
        """
        with self._cond:
            failures = self._failures.get(item, 0) + 1
            self._failures[item] = failures
        delay = min(self._backoff_base * 2 ** (failures - 1), self._backoff_max)
        self.add_after(item, delay)
        return delay

    def forget(self, item: Hashable) -> None:
        """Reset the backoff of ``item``."""
        with self._cond:
            self._failures.pop(item, None)

    def num_requeues(self, item: Hashable) -> int:
        with self._cond:
            return self._failures.get(item, 0)

    # =========================================================================
    # Consumers
    # =========================================================================

    def get(self, timeout: float | None = None) -> Hashable | None:
        """Block until an item is ready and mark it as processing.

        Returns:
            The item, or None on shutdown or when ``timeout`` expires.
        """
        deadline = None if timeout is None else self._clock() + timeout
        with self._cond:
            while True:
                if self._shutting_down:
                    return None
                self._promote_ready_locked()
                if self._queue:
                    item = self._queue.popleft()
                    self._dirty.discard(item)
                    self._processing.add(item)
                    return item

                wait: float | None = None
                if self._waiting:
                    wait = max(self._waiting[0][0] - self._clock(), 0.0)
                if deadline is not None:
                    remaining = deadline - self._clock()
                    if remaining <= 0:
                        return None
                    wait = remaining if wait is None else min(wait, remaining)
                self._cond.wait(wait)

    def done(self, item: Hashable) -> None:
        """Release ``item``; it is queued again if it was added meanwhile."""
        with self._cond:
            self._processing.discard(item)
            if item in self._dirty:
                self._queue.append(item)
                self._cond.notify()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def shut_down(self) -> None:
        """Stop handing out items and wake every blocked consumer."""
        with self._cond:
            self._shutting_down = True
            self._cond.notify_all()

    @property
    def shutting_down(self) -> bool:
        with self._cond:
            return self._shutting_down

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)

    # =========================================================================
    # Internals (caller holds the lock)
    # =========================================================================

    def _add_locked(self, item: Hashable) -> None:
        if self._shutting_down or item in self._dirty:
            return
        self._dirty.add(item)
        if item in self._processing:
            return
        self._queue.append(item)
        self._cond.notify()

    def _promote_ready_locked(self) -> None:
        now = self._clock()
        while self._waiting and self._waiting[0][0] <= now:
            _, _, item = heapq.heappop(self._waiting)
            self._add_locked(item)
