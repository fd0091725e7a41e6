"""Fixed-size pool of worker threads fed from a last-in-first-out task stack."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

MAX_THREADS = 10

_log = logging.getLogger(__name__)


class ThreadPool:
    """Runs ``function(argument)`` tasks on ``max_threads`` worker threads.

    The most recently pushed task is taken first. On shutdown the workers
    stop taking tasks; tasks still waiting are dropped.
    """

    def __init__(self, max_threads: int = MAX_THREADS) -> None:
        self._tasks: list[tuple[Callable[[Any], Any], Any]] = []
        self._cond = threading.Condition()
        self._stop = False
        self._threads = [
            threading.Thread(target=self._worker, name=f"pool-worker-{n}", daemon=True)
            for n in range(max_threads)
        ]
        for thread in self._threads:
            thread.start()

    @property
    def stopped(self) -> bool:
        """Whether shutdown has been requested."""
        with self._cond:
            return self._stop

    @property
    def pending(self) -> int:
        """Number of tasks waiting for a worker."""
        with self._cond:
            return len(self._tasks)

    def _worker(self) -> None:
        while True:
            with self._cond:
                while not self._tasks and not self._stop:
                    self._cond.wait()
                if self._stop:
                    return
                function, argument = self._tasks.pop()
            try:
                function(argument)
            except Exception:
                _log.exception("task %r failed", function)

    def push_task(self, function: Callable[[Any], Any], argument: Any) -> None:
        """Queue ``function(argument)`` to run on a worker."""
        with self._cond:
            if self._stop:
                raise RuntimeError("thread pool has been shut down")
            self._tasks.append((function, argument))
            self._cond.notify()

    def shutdown(self) -> None:
        """Stop the workers, wait for running tasks and drop pending ones."""
        with self._cond:
            self._stop = True
            self._cond.notify_all()
        current = threading.current_thread()
        for thread in self._threads:
            if thread is not current:
                thread.join()
        with self._cond:
            self._tasks.clear()

    def __enter__(self) -> ThreadPool:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()