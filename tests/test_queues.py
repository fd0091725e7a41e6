import threading
import time

import pytest

from concurlab.queues import (
    CondvarQueue,
    MutexQueue,
    QueueClosedError,
    QueueStats,
    SemaphoreQueue,
    SpinlockQueue,
    UnsafeQueue,
)

ALL_KINDS = [UnsafeQueue, SpinlockQueue, MutexQueue, CondvarQueue, SemaphoreQueue]
NONBLOCKING = [UnsafeQueue, SpinlockQueue, MutexQueue]
BLOCKING = [CondvarQueue, SemaphoreQueue]
THREAD_SAFE = [SpinlockQueue, MutexQueue, CondvarQueue, SemaphoreQueue]

EMPTY_STATS = QueueStats(size=0, add_attempts=0, get_attempts=0, add_count=0, get_count=0)


@pytest.mark.parametrize("kind", ALL_KINDS)
def test_fifo_order(kind):
    with kind(1000) as q:
        for value in range(10):
            assert q.add(value) is True
        assert len(q) == 10
        assert [q.get() for _ in range(10)] == list(range(10))
        assert len(q) == 0
        assert q.stats == QueueStats(
            size=0, add_attempts=10, get_attempts=10, add_count=10, get_count=10
        )


@pytest.mark.parametrize("kind", NONBLOCKING)
def test_demo_sequence_stats(kind):
    with kind(1000) as q:
        for value in range(10):
            q.add(value)
        results = [q.get() for _ in range(12)]
        assert results == list(range(10)) + [None, None]
        assert q.stats == QueueStats(
            size=0, add_attempts=10, get_attempts=12, add_count=10, get_count=10
        )
        assert q.format_stats() == (
            "queue stats: current size 0; attempts: (10 12 -2); counts (10 10 0)"
        )


@pytest.mark.parametrize("kind", NONBLOCKING)
def test_full_queue_rejects(kind):
    with kind(2) as q:
        assert q.add(1) is True
        assert q.add(2) is True
        assert q.add(3) is False
        assert q.stats == QueueStats(
            size=2, add_attempts=3, get_attempts=0, add_count=2, get_count=0
        )
        assert q.get() == 1


@pytest.mark.parametrize("kind", ALL_KINDS)
def test_closed_queue_raises(kind):
    q = kind(4)
    q.add(7)
    assert q.stats == QueueStats(
        size=1, add_attempts=1, get_attempts=0, add_count=1, get_count=0
    )
    q.close()
    assert q.closed
    assert len(q) == 0
    with pytest.raises(QueueClosedError):
        q.add(1)


@pytest.mark.parametrize("kind", ALL_KINDS)
def test_negative_capacity_rejected(kind):
    with pytest.raises(ValueError):
        kind(-1)
    with kind(1) as q:
        assert q.stats == EMPTY_STATS


@pytest.mark.parametrize("kind", BLOCKING)
def test_add_blocks_until_room(kind):
    with kind(1) as q:
        q.add(1)
        worker = threading.Thread(target=q.add, args=(2,), daemon=True)
        worker.start()
        worker.join(0.2)
        assert worker.is_alive()
        assert q.get() == 1
        worker.join(5)
        assert not worker.is_alive()
        assert q.get() == 2
        assert q.stats == QueueStats(
            size=0, add_attempts=2, get_attempts=2, add_count=2, get_count=2
        )


@pytest.mark.parametrize("kind", BLOCKING)
def test_get_blocks_until_value(kind):
    with kind(4) as q:
        received = []
        worker = threading.Thread(target=lambda: received.append(q.get()), daemon=True)
        worker.start()
        worker.join(0.2)
        assert worker.is_alive()
        q.add(42)
        worker.join(5)
        assert received == [42]
        assert q.stats == QueueStats(
            size=0, add_attempts=1, get_attempts=1, add_count=1, get_count=1
        )


@pytest.mark.parametrize("kind", BLOCKING)
def test_close_wakes_blocked_reader(kind):
    q = kind(4)
    q.add(1)
    assert q.get() == 1
    assert q.stats == QueueStats(
        size=0, add_attempts=1, get_attempts=1, add_count=1, get_count=1
    )
    errors = []

    def read():
        try:
            q.get()
        except QueueClosedError as exc:
            errors.append(exc)

    worker = threading.Thread(target=read, daemon=True)
    worker.start()
    time.sleep(0.1)
    q.close()
    worker.join(5)
    assert not worker.is_alive()
    assert len(errors) == 1


@pytest.mark.parametrize("kind", THREAD_SAFE)
def test_concurrent_reader_sees_every_value_in_order(kind):
    total = 2000
    q = kind(100)
    assert q.stats == EMPTY_STATS
    received = []

    def write():
        value = 0
        while value < total:
            if q.add(value):
                value += 1

    def read():
        while len(received) < total:
            value = q.get()
            if value is not None:
                received.append(value)

    reader = threading.Thread(target=read, daemon=True)
    writer = threading.Thread(target=write, daemon=True)
    reader.start()
    writer.start()
    writer.join(30)
    reader.join(30)
    q.close()
    assert received == list(range(total))
    stats = q.stats
    assert stats.add_count == total
    assert stats.get_count == total
    assert stats.add_attempts >= stats.add_count
    assert stats.get_attempts >= stats.get_count


def test_monitor_prints_stats(capsys):
    q = MutexQueue(10, monitor_interval=0.01)
    q.add(5)
    time.sleep(0.1)
    q.close()
    out = capsys.readouterr().out
    assert out.startswith("qmonitor: [")
    assert "queue stats: current size" in out


def test_iteration_is_snapshot():
    with MutexQueue(5) as q:
        q.add(3)
        q.add(4)
        assert list(q) == [3, 4]
        assert len(q) == 2