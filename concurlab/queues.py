"""Bounded FIFO queues of integers, each guarded by a different primitive.

All queues keep the same statistics: how many adds and gets were tried
and how many succeeded. ``UnsafeQueue`` has no locking at all.
``SpinlockQueue`` and ``MutexQueue`` never block: ``add`` on a full queue
returns ``False`` and ``get`` on an empty one returns ``None``.
``CondvarQueue`` and ``SemaphoreQueue`` block until there is room or data.
"""

from __future__ import annotations

import contextlib
import os
import threading
import time
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass

_SEMAPHORE_POLL_SECONDS = 0.05


class QueueClosedError(RuntimeError):
    """The queue was closed before or while an operation waited on it."""


@dataclass(frozen=True)
class QueueStats:
    """A snapshot of a queue's size and operation counters."""

    size: int
    add_attempts: int
    get_attempts: int
    add_count: int
    get_count: int


class _SpinLock:
    """Busy-waiting test-and-set lock."""

    def __init__(self) -> None:
        self._flag = threading.Lock()

    def __enter__(self) -> None:
        while not self._flag.acquire(blocking=False):
            time.sleep(0)

    def __exit__(self, exc_type, exc, tb) -> None:
        self._flag.release()


class BaseQueue:
    """Bounded FIFO queue holding at most ``max_count`` values.

    With ``monitor_interval`` set, a background thread prints the stats
    line every ``monitor_interval`` seconds until the queue is closed.
    """

    def __init__(self, max_count: int, monitor_interval: float | None = None) -> None:
        if max_count < 0:
            raise ValueError("max_count must not be negative")
        self.max_count = max_count
        self._items: deque[int] = deque()
        self._add_attempts = 0
        self._get_attempts = 0
        self._add_count = 0
        self._get_count = 0
        self._closed = False
        self._monitor_stop = threading.Event()
        self._monitor: threading.Thread | None = None
        if monitor_interval is not None:
            self._monitor = threading.Thread(
                target=self._run_monitor,
                args=(monitor_interval,),
                name="qmonitor",
                daemon=True,
            )
            self._monitor.start()

    def _guard(self) -> contextlib.AbstractContextManager:
        return contextlib.nullcontext()

    def _check_open(self) -> None:
        if self._closed:
            raise QueueClosedError("queue is closed")

    def _push(self, value: int) -> None:
        self._items.append(value)
        self._add_count += 1

    def _pop(self) -> int:
        value = self._items.popleft()
        self._get_count += 1
        return value

    def add(self, value: int) -> bool:
        """Append ``value``; returns ``False`` when the queue is full."""
        with self._guard():
            self._check_open()
            self._add_attempts += 1
            if len(self._items) >= self.max_count:
                return False
            self._push(value)
            return True

    def get(self) -> int | None:
        """Remove and return the oldest value, or ``None`` when empty."""
        with self._guard():
            self._check_open()
            self._get_attempts += 1
            if not self._items:
                return None
            return self._pop()

    @property
    def stats(self) -> QueueStats:
        """Current size and counters."""
        with self._guard():
            return QueueStats(
                size=len(self._items),
                add_attempts=self._add_attempts,
                get_attempts=self._get_attempts,
                add_count=self._add_count,
                get_count=self._get_count,
            )

    @property
    def closed(self) -> bool:
        return self._closed

    def format_stats(self) -> str:
        """Return the one-line statistics report."""
        s = self.stats
        return (
            f"queue stats: current size {s.size}; "
            f"attempts: ({s.add_attempts} {s.get_attempts} {s.add_attempts - s.get_attempts}); "
            f"counts ({s.add_count} {s.get_count} {s.add_count - s.get_count})"
        )

    def close(self) -> None:
        """Stop the monitor, drop the stored values and refuse further use."""
        with self._guard():
            self._closed = True
            self._items.clear()
        self._wake_waiters()
        self._monitor_stop.set()
        if self._monitor is not None and self._monitor is not threading.current_thread():
            self._monitor.join()

    def _wake_waiters(self) -> None:
        """Release threads blocked in ``add`` or ``get``."""

    def _run_monitor(self, interval: float) -> None:
        print(
            f"qmonitor: [{os.getpid()} {os.getppid()} {threading.get_native_id()}]",
            flush=True,
        )
        while not self._monitor_stop.is_set():
            print(self.format_stats(), flush=True)
            self._monitor_stop.wait(interval)

    def __len__(self) -> int:
        with self._guard():
            return len(self._items)

    def __iter__(self) -> Iterator[int]:
        with self._guard():
            return iter(list(self._items))

    def __enter__(self) -> BaseQueue:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class UnsafeQueue(BaseQueue):
    """Queue with no synchronisation; safe only from a single thread."""


class SpinlockQueue(BaseQueue):
    """Non-blocking queue guarded by a busy-waiting spinlock."""

    def __init__(self, max_count: int, monitor_interval: float | None = None) -> None:
        self._spin = _SpinLock()
        super().__init__(max_count, monitor_interval)

    def _guard(self) -> contextlib.AbstractContextManager:
        return self._spin


class MutexQueue(BaseQueue):
    """Non-blocking queue guarded by a mutex."""

    def __init__(self, max_count: int, monitor_interval: float | None = None) -> None:
        self._mutex = threading.Lock()
        super().__init__(max_count, monitor_interval)

    def _guard(self) -> contextlib.AbstractContextManager:
        return self._mutex


class CondvarQueue(BaseQueue):
    """Blocking queue: writers wait while full, readers wait while empty."""

    def __init__(self, max_count: int, monitor_interval: float | None = None) -> None:
        self._mutex = threading.Lock()
        self._not_full = threading.Condition(self._mutex)
        self._not_empty = threading.Condition(self._mutex)
        super().__init__(max_count, monitor_interval)

    def _guard(self) -> contextlib.AbstractContextManager:
        return self._mutex

    def add(self, value: int) -> bool:
        """Append ``value``, waiting for room; raises ``QueueClosedError`` on close."""
        with self._not_full:
            while len(self._items) >= self.max_count and not self._closed:
                self._not_full.wait()
            self._check_open()
            self._add_attempts += 1
            self._push(value)
            self._not_empty.notify()
            return True

    def get(self) -> int:
        """Remove the oldest value, waiting for one; raises ``QueueClosedError`` on close."""
        with self._not_empty:
            while not self._items and not self._closed:
                self._not_empty.wait()
            self._check_open()
            self._get_attempts += 1
            value = self._pop()
            self._not_full.notify()
            return value

    def _wake_waiters(self) -> None:
        with self._mutex:
            self._not_full.notify_all()
            self._not_empty.notify_all()


class SemaphoreQueue(BaseQueue):
    """Blocking queue counting free and filled slots with two semaphores."""

    def __init__(self, max_count: int, monitor_interval: float | None = None) -> None:
        if max_count < 0:
            raise ValueError("max_count must not be negative")
        self._mutex = threading.Lock()
        self._empty_slots = threading.Semaphore(max_count)
        self._filled_slots = threading.Semaphore(0)
        super().__init__(max_count, monitor_interval)

    def _guard(self) -> contextlib.AbstractContextManager:
        return self._mutex

    def _acquire(self, semaphore: threading.Semaphore) -> None:
        while not semaphore.acquire(timeout=_SEMAPHORE_POLL_SECONDS):
            self._check_open()
        if self._closed:
            semaphore.release()
            self._check_open()

    def add(self, value: int) -> bool:
        """Append ``value``, waiting for a free slot; raises ``QueueClosedError`` on close."""
        with self._mutex:
            self._check_open()
            self._add_attempts += 1
        self._acquire(self._empty_slots)
        with self._mutex:
            self._check_open()
            self._push(value)
        self._filled_slots.release()
        return True

    def get(self) -> int:
        """Remove the oldest value, waiting for one; raises ``QueueClosedError`` on close."""
        with self._mutex:
            self._check_open()
            self._get_attempts += 1
        self._acquire(self._filled_slots)
        with self._mutex:
            self._check_open()
            value = self._pop()
        self._empty_slots.release()
        return value