import socket

import pytest

from concurlab.subscription import SubscriptionManager
from concurlab.threadpool import ThreadPool


def _recv_exact(sock, size):
    sock.settimeout(5)
    received = b""
    while len(received) < size:
        part = sock.recv(size - len(received))
        if not part:
            break
        received += part
    return received


@pytest.fixture
def pair():
    left, right = socket.socketpair()
    yield left, right
    left.close()
    right.close()


def test_subscribe_starts_with_no_chunks(pair):
    manager = SubscriptionManager()
    subscriber = manager.subscribe(pair[0])
    assert subscriber.chunk_loaded == 0
    assert manager.subscribers == (subscriber,)


def test_add_chunk_sends_to_subscriber(pair):
    manager = SubscriptionManager()
    subscriber = manager.subscribe(pair[0])
    manager.add_chunk(b"hello")
    assert _recv_exact(pair[1], 5) == b"hello"
    assert subscriber.chunk_loaded == 1
    assert len(manager.container) == 1


def test_late_subscriber_receives_earlier_chunks(pair):
    manager = SubscriptionManager()
    manager.add_chunk(b"first-")
    subscriber = manager.subscribe(pair[0])
    manager.add_chunk(b"second")
    assert _recv_exact(pair[1], 12) == b"first-second"
    assert subscriber.chunk_loaded == len(manager.container)


def test_empty_chunk_is_not_stored(pair):
    manager = SubscriptionManager()
    manager.add_chunk(b"data")
    manager.add_chunk(b"")
    assert len(manager.container) == 1


def test_unsubscribe_closes_socket(pair):
    manager = SubscriptionManager()
    subscriber = manager.subscribe(pair[0])
    manager.unsubscribe(subscriber)
    assert manager.subscribers == ()
    pair[1].settimeout(5)
    assert pair[1].recv(10) == b""


def test_unsubscribe_unknown_raises(pair):
    manager = SubscriptionManager()
    subscriber = manager.subscribe(pair[0])
    manager.unsubscribe(subscriber)
    with pytest.raises(ValueError):
        manager.unsubscribe(subscriber)


def test_finish_pending_chunks_removes_everyone():
    manager = SubscriptionManager()
    pairs = [socket.socketpair() for _ in range(3)]
    for left, _ in pairs:
        manager.subscribe(left)
    manager.finish_pending_chunks()
    assert manager.subscribers == ()
    for left, right in pairs:
        assert left.fileno() == -1
        right.close()


def test_close_drops_chunks(pair):
    manager = SubscriptionManager()
    manager.subscribe(pair[0])
    manager.add_chunk(b"abc")
    manager.close()
    assert len(manager.container) == 0
    assert manager.subscribers == ()


def test_try_claim_only_once():
    manager = SubscriptionManager()
    assert manager.try_claim() is True
    assert manager.try_claim() is False
    assert manager.is_busy is True


def test_pool_delivers_to_all_subscribers():
    pairs = [socket.socketpair() for _ in range(3)]
    with ThreadPool(2) as pool:
        manager = SubscriptionManager(pool=pool)
        subscribers = [manager.subscribe(left) for left, _ in pairs]
        manager.add_chunk(b"one")
        manager.add_chunk(b"two")
        assert all(sub.chunk_loaded == 2 for sub in subscribers)
    for left, right in pairs:
        assert _recv_exact(right, 6) == b"onetwo"
        left.close()
        right.close()


def test_send_failure_keeps_subscriber_without_progress():
    left, right = socket.socketpair()
    right.close()
    manager = SubscriptionManager()
    subscriber = manager.subscribe(left)
    manager.add_chunk(b"lost")
    assert subscriber.chunk_loaded == 0
    assert subscriber in manager.subscribers
    left.close()