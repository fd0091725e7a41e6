"""Hand-made locks: a busy-waiting spinlock and a mutex that knows its owner."""

from __future__ import annotations

import threading
import time


class SpinLock:
    """Test-and-set lock that spins until it becomes free.

    Any thread may release it, and releasing a free lock does nothing.
    """

    def __init__(self) -> None:
        self._flag = threading.Lock()

    @property
    def locked(self) -> bool:
        """Whether some thread holds the lock."""
        return self._flag.locked()

    def acquire(self) -> None:
        """Spin until the lock is taken."""
        while not self._flag.acquire(blocking=False):
            time.sleep(0)

    def release(self) -> None:
        """Free the lock; a lock that is already free stays free."""
        try:
            self._flag.release()
        except RuntimeError:
            pass

    def __enter__(self) -> SpinLock:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class OwnedMutex:
    """Sleeping mutex that records its owner; only the owner may unlock it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owner: int | None = None

    @property
    def owner(self) -> int | None:
        """Thread identifier of the holder, or ``None`` when free."""
        return self._owner

    @property
    def locked(self) -> bool:
        """Whether some thread holds the mutex."""
        return self._lock.locked()

    def acquire(self) -> None:
        """Sleep until the mutex is free, then take it."""
        self._lock.acquire()
        self._owner = threading.get_ident()

    def release(self) -> None:
        """Free the mutex; raises ``RuntimeError`` unless called by its owner."""
        if self._owner != threading.get_ident():
            raise RuntimeError("mutex is not held by this thread")
        self._owner = None
        self._lock.release()

    def __enter__(self) -> OwnedMutex:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()