"""Counter benchmark: many threads increment one shared counter under a lock."""

from __future__ import annotations

import argparse
import os
import sys
import threading
from contextlib import AbstractContextManager

from concurlab.locks import OwnedMutex, SpinLock

NUM_THREADS = 20
INCREMENTS = 1_000_000
NUM_CPU = 4


def _set_cpu(n: int) -> None:
    setter = getattr(os, "sched_setaffinity", None)
    if setter is None:
        return
    try:
        setter(0, {n})
    except OSError:
        print(f"set_cpu: pthread_setaffinity failed for cpu {n}", flush=True)


def run_counter_benchmark(
    lock: AbstractContextManager,
    threads: int = NUM_THREADS,
    increments: int = INCREMENTS,
) -> int:
    """Run ``threads`` workers doing ``increments`` guarded increments each.

    Worker ``i`` is pinned to CPU ``i % NUM_CPU`` where the platform allows.
    Returns the final counter value.
    """
    if threads < 0 or increments < 0:
        raise ValueError("threads and increments must not be negative")
    counter = 0

    def work(index: int) -> None:
        nonlocal counter
        _set_cpu(index % NUM_CPU)
        for _ in range(increments):
            with lock:
                counter += 1

    workers = [
        threading.Thread(target=work, args=(index,), name=f"counter-{index}")
        for index in range(threads)
    ]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()
    return counter


def main(argv: list[str] | None = None) -> int:
    """Run the benchmark with the spinlock, then with the mutex."""
    parser = argparse.ArgumentParser(description="Shared counter lock benchmark.")
    parser.add_argument("--threads", type=int, default=NUM_THREADS)
    parser.add_argument("--increments", type=int, default=INCREMENTS)
    args = parser.parse_args(argv)
    if args.threads < 0 or args.increments < 0:
        parser.error("--threads and --increments must not be negative")

    value = run_counter_benchmark(SpinLock(), args.threads, args.increments)
    print(f"Final counter value with spinlock: {value}", flush=True)
    value = run_counter_benchmark(OwnedMutex(), args.threads, args.increments)
    print(f"Final counter value with mutex: {value}", flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())