"""Stress test of a hand-over-hand locked linked list of strings.

Three reader routines walk the list and count neighbouring pairs whose
string lengths ascend, descend or are equal. Swap routines walk the same
list and occasionally exchange two neighbours. Each node carries its own
lock, which is a spinlock, a mutex or a read-write lock.
"""

from __future__ import annotations

import argparse
import operator
import random
import sys
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum

MAX_STRING_LENGTH = 100
STORAGE_SIZE = 1000
SWAP_CHANCE = 100
DEFAULT_DURATION = 10.0
PRINT_INTERVAL = 1.0


class LockKind(str, Enum):
    """The primitive that guards each node."""

    SPINLOCK = "spinlock"
    MUTEX = "mutex"
    RWLOCK = "rwlock"


class ReadWriteLock:
    """Lock held by many readers at once or by a single writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    def acquire_read(self) -> None:
        """Wait until no writer holds the lock, then join the readers."""
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        """Leave the readers; raises ``RuntimeError`` if none hold the lock."""
        with self._cond:
            if self._readers == 0:
                raise RuntimeError("read lock is not held")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        """Wait until nobody holds the lock, then take it exclusively."""
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True

    def release_write(self) -> None:
        """Give up exclusive ownership; raises ``RuntimeError`` if not held."""
        with self._cond:
            if not self._writer:
                raise RuntimeError("write lock is not held")
            self._writer = False
            self._cond.notify_all()

    def _release_any(self) -> None:
        with self._cond:
            writer = self._writer
        if writer:
            self.release_write()
        else:
            self.release_read()


class _SpinLock:
    def __init__(self) -> None:
        self._flag = threading.Lock()

    def acquire(self) -> None:
        while not self._flag.acquire(blocking=False):
            time.sleep(0)

    def release(self) -> None:
        self._flag.release()


class NodeLock:
    """Per-node lock of the chosen kind with read, write and unlock."""

    def __init__(self, kind: LockKind) -> None:
        self.kind = LockKind(kind)
        if self.kind is LockKind.RWLOCK:
            self._rw: ReadWriteLock | None = ReadWriteLock()
            self._exclusive = None
        else:
            self._rw = None
            self._exclusive = _SpinLock() if self.kind is LockKind.SPINLOCK else threading.Lock()

    def read_lock(self) -> None:
        """Take the lock for reading (exclusively unless it is a read-write lock)."""
        if self._rw is not None:
            self._rw.acquire_read()
        else:
            self._exclusive.acquire()

    def write_lock(self) -> None:
        """Take the lock for writing."""
        if self._rw is not None:
            self._rw.acquire_write()
        else:
            self._exclusive.acquire()

    def unlock(self) -> None:
        """Release the lock; raises ``RuntimeError`` when it is not held."""
        if self._rw is not None:
            self._rw._release_any()
        else:
            self._exclusive.release()


@dataclass(eq=False)
class Node:
    """One list element: its string, its lock and the following node."""

    value: str
    lock: NodeLock
    next: Node | None = None


class LinkedList:
    """Singly linked list whose head stays fixed; ``stop`` ends the routines."""

    def __init__(self, first: Node) -> None:
        self.first = first
        self.stop = False

    def __iter__(self) -> Iterator[Node]:
        node: Node | None = self.first
        while node is not None:
            yield node
            node = node.next

    def __len__(self) -> int:
        return sum(1 for _ in self)


@dataclass
class StressStats:
    """Matches and completed passes of each routine kind."""

    asc_count: int = 0
    asc_iter: int = 0
    desc_count: int = 0
    desc_iter: int = 0
    eq_count: int = 0
    eq_iter: int = 0
    swap_count: int = 0
    swap_iter: int = 0
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def _bump(self, **deltas: int) -> None:
        with self._lock:
            for name, delta in deltas.items():
                setattr(self, name, getattr(self, name) + delta)

    def __str__(self) -> str:
        return (
            f"asc: {self.asc_count}/{self.asc_iter},\t\t"
            f"desc: {self.desc_count}/{self.desc_iter},\t\t"
            f"eq: {self.eq_count}/{self.eq_iter},\t\t"
            f"swap: {self.swap_count}/{self.swap_iter}"
        )


def build_list(
    size: int, max_length: int, lock_kind: LockKind, rng: random.Random
) -> LinkedList:
    """Build ``size`` nodes of ``'0'`` strings shorter than ``max_length - 1``."""
    if size < 1:
        raise ValueError("size must be at least 1")
    if max_length < 2:
        raise ValueError("max_length must be at least 2")
    kind = LockKind(lock_kind)
    nodes = [
        Node("0" * rng.randrange(max_length - 1), NodeLock(kind)) for _ in range(size)
    ]
    for node, following in zip(nodes, nodes[1:]):
        node.next = following
    return LinkedList(nodes[0])


def _compare_routine(
    linked_list: LinkedList,
    stats: StressStats,
    name: str,
    compare: Callable[[int, int], bool],
) -> None:
    while not linked_list.stop:
        matched = 0
        prev = linked_list.first
        prev.lock.read_lock()
        while prev.next is not None:
            cur = prev.next
            size = len(prev.value)
            cur.lock.read_lock()
            prev.lock.unlock()
            if compare(size, len(cur.value)):
                matched += 1
            prev = cur
        prev.lock.unlock()
        stats._bump(**{f"{name}_count": matched, f"{name}_iter": 1})


def asc_routine(linked_list: LinkedList, stats: StressStats) -> None:
    """Count pairs whose second string is longer, pass after pass, until stopped."""
    _compare_routine(linked_list, stats, "asc", operator.lt)


def desc_routine(linked_list: LinkedList, stats: StressStats) -> None:
    """Count pairs whose second string is shorter, pass after pass, until stopped."""
    _compare_routine(linked_list, stats, "desc", operator.gt)


def eq_routine(linked_list: LinkedList, stats: StressStats) -> None:
    """Count pairs of equally long strings, pass after pass, until stopped."""
    _compare_routine(linked_list, stats, "eq", operator.eq)


def swap_routine(linked_list: LinkedList, stats: StressStats, rng: random.Random) -> None:
    """Walk the list, swapping a node with its successor one time in a hundred."""
    while not linked_list.stop:
        swaps = 0
        prev = linked_list.first
        prev.lock.read_lock()
        while prev.next is not None:
            cur = prev.next
            if rng.randrange(SWAP_CHANCE) != 0:
                cur.lock.read_lock()
                prev.lock.unlock()
                prev = cur
                continue
            cur.lock.write_lock()
            following = cur.next
            if following is None:
                cur.lock.unlock()
                break
            following.lock.write_lock()
            prev.next = following
            prev.lock.unlock()
            cur.next = following.next
            cur.lock.unlock()
            following.next = cur
            swaps += 1
            prev = following
            prev.lock.unlock()
            prev.lock.read_lock()
        prev.lock.unlock()
        stats._bump(swap_count=swaps, swap_iter=1)


def print_routine(
    linked_list: LinkedList, stats: StressStats, interval: float = PRINT_INTERVAL
) -> None:
    """Print the statistics line every ``interval`` seconds until stopped."""
    while not linked_list.stop:
        time.sleep(interval)
        print(stats, flush=True)


def run(
    lock_kind: LockKind,
    duration: float = DEFAULT_DURATION,
    size: int = STORAGE_SIZE,
    seed: int | None = None,
) -> StressStats:
    """Run all routines on a fresh list for ``duration`` seconds."""
    master = random.Random(seed)
    linked_list = build_list(size, MAX_STRING_LENGTH, lock_kind, master)
    stats = StressStats()
    jobs: list[tuple[Callable[..., None], tuple]] = [
        (asc_routine, (linked_list, stats)),
        (desc_routine, (linked_list, stats)),
        (eq_routine, (linked_list, stats)),
        (print_routine, (linked_list, stats)),
    ]
    jobs.extend(
        (swap_routine, (linked_list, stats, random.Random(master.random())))
        for _ in range(3)
    )
    threads: list[threading.Thread] = []
    try:
        for target, args in jobs:
            thread = threading.Thread(target=target, args=args, daemon=True)
            thread.start()
            threads.append(thread)
        time.sleep(duration)
    finally:
        linked_list.stop = True
        for thread in threads:
            thread.join()
    return stats


def main(argv: list[str] | None = None) -> int:
    """Run the linked-list stress test and print the final statistics."""
    parser = argparse.ArgumentParser(description="Linked-list locking stress test.")
    parser.add_argument(
        "--lock",
        choices=[kind.value for kind in LockKind],
        default=LockKind.MUTEX.value,
        help="lock guarding each node",
    )
    parser.add_argument("--duration", type=float, default=DEFAULT_DURATION)
    parser.add_argument("--size", type=int, default=STORAGE_SIZE)
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args(argv)
    if args.size < 1:
        parser.error("--size must be at least 1")
    stats = run(LockKind(args.lock), args.duration, args.size, args.seed)
    print(stats, flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())