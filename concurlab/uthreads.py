"""Cooperative user-level threads driven by a single scheduler.

A task is ``func(arg)``. A plain function runs to completion in one go;
a generator function gives up the processor at each ``yield``. At every
switch the scheduler resumes the first ready thread counting from the most
recently created one, so a thread that yields keeps running while it is
the first ready one.
"""

from __future__ import annotations

import argparse
import inspect
import sys
from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

TASKS = 100


class UThreadStatus(Enum):
    IDLE = "idle"
    READY = "ready"
    TERMINATED = "terminated"


@dataclass(eq=False)
class UThread:
    """A slot that runs one task at a time."""

    id: int
    status: UThreadStatus = UThreadStatus.IDLE
    func: Callable[[Any], Any] | None = None
    arg: Any = None
    _runner: Generator[Any, None, Any] | None = field(default=None, repr=False)


class UThreadScheduler:
    """Runs added tasks cooperatively until none is ready."""

    def __init__(self) -> None:
        self._uthreads: list[UThread] = []
        self._next_id = 0
        self.finished = False
        self.active: UThread | None = None

    @property
    def uthreads(self) -> tuple[UThread, ...]:
        """All thread slots, most recently created first."""
        return tuple(self._uthreads)

    def __len__(self) -> int:
        return len(self._uthreads)

    def add(self, func: Callable[[Any], Any], arg: Any = None) -> UThread:
        """Schedule ``func(arg)`` on an idle slot, creating one if none is idle."""
        uthread = next(
            (u for u in self._uthreads if u.status is UThreadStatus.IDLE), None
        )
        if uthread is None:
            uthread = UThread(self._next_id)
            self._next_id += 1
            self._uthreads.insert(0, uthread)
        uthread.func = func
        uthread.arg = arg
        uthread._runner = None
        uthread.status = UThreadStatus.READY
        return uthread

    def _first_ready(self) -> UThread | None:
        return next(
            (u for u in self._uthreads if u.status is UThreadStatus.READY), None
        )

    @staticmethod
    def _step(uthread: UThread) -> bool:
        """Run ``uthread`` up to its next yield; returns whether it finished."""
        try:
            if uthread._runner is None:
                result = uthread.func(uthread.arg)
                if not inspect.isgenerator(result):
                    uthread.status = UThreadStatus.TERMINATED
                    return True
                uthread._runner = result
            next(uthread._runner)
        except StopIteration:
            uthread._runner = None
            uthread.status = UThreadStatus.TERMINATED
            return True
        except Exception:
            uthread._runner = None
            uthread.status = UThreadStatus.TERMINATED
            raise
        return False

    def run(self) -> None:
        """Run ready tasks until none is left; does nothing once finished."""
        if self.finished:
            return
        current = self._first_ready()
        if current is None:
            return
        while True:
            self.active = current
            done = self._step(current)
            following = self._first_ready()
            if following is None:
                self.finished = True
                self.active = None
                return
            if done:
                current.status = UThreadStatus.IDLE
            current = following

    def reset(self) -> None:
        """Allow ``run`` to be called again after it finished."""
        self.finished = False


def _counting_task(counter: list[int]) -> Generator[None, None, None]:
    counter[0] += 1
    yield
    counter[0] += 1


def main(argv: list[str] | None = None) -> int:
    """Run many counting tasks cooperatively and print the final count."""
    parser = argparse.ArgumentParser(description="Cooperative user-thread demo.")
    parser.add_argument("--tasks", type=int, default=TASKS)
    args = parser.parse_args(argv)
    if args.tasks < 0:
        parser.error("--tasks must not be negative")

    counter = [0]
    scheduler = UThreadScheduler()
    for _ in range(args.tasks):
        scheduler.add(_counting_task, counter)
    scheduler.run()
    print(f"COUNT = {counter[0]}", flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())