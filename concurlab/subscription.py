"""Fan-out of downloaded chunks to every client waiting on the same URL."""

from __future__ import annotations

import socket
import threading
from dataclasses import dataclass, field

from concurlab.chunk import ChunkContainer
from concurlab.common import send_data
from concurlab.log import log_message
from concurlab.threadpool import ThreadPool


@dataclass(eq=False)
class Subscriber:
    """A client socket and how many chunks it has received so far."""

    sock: socket.socket
    chunk_loaded: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def fd(self) -> int:
        return self.sock.fileno()


class SubscriptionManager:
    """Keeps the chunks of one response and sends them to all subscribers.

    Without a pool, chunks are sent to each subscriber in turn; with one,
    each subscriber is served by a pool task and ``add_chunk`` waits for
    all of them to finish.
    """

    def __init__(self, pool: ThreadPool | None = None) -> None:
        self.container = ChunkContainer()
        self._subscribers: list[Subscriber] = []
        self._lock = threading.RLock()
        self._cond = threading.Condition(self._lock)
        self._pending = 0
        self._busy = False
        self._busy_lock = threading.Lock()
        self._pool = pool

    @property
    def subscribers(self) -> tuple[Subscriber, ...]:
        with self._lock:
            return tuple(self._subscribers)

    @property
    def is_busy(self) -> bool:
        with self._busy_lock:
            return self._busy

    def try_claim(self) -> bool:
        """Mark the session as owned; only the first caller gets ``True``."""
        with self._busy_lock:
            if self._busy:
                return False
            self._busy = True
            return True

    def subscribe(self, sock: socket.socket) -> Subscriber:
        """Add ``sock`` as a subscriber that has received nothing yet."""
        subscriber = Subscriber(sock)
        with self._lock:
            self._subscribers.append(subscriber)
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """Remove ``subscriber`` and close its socket."""
        with self._lock:
            try:
                self._subscribers.remove(subscriber)
            except ValueError:
                raise ValueError("subscriber is not subscribed") from None
        with subscriber.lock:
            fd = subscriber.sock.fileno()
            subscriber.sock.close()
        log_message(fd, "connection closed")

    def add_chunk(self, data: bytes) -> None:
        """Store ``data`` and deliver every missing chunk to all subscribers."""
        with self._cond:
            self.container.add(data)
            self._send_chunks()
            while self._pending > 0:
                self._cond.wait()

    def finish_pending_chunks(self) -> None:
        """Unsubscribe everyone, closing their sockets."""
        for subscriber in self.subscribers:
            self.unsubscribe(subscriber)

    def close(self) -> None:
        """Drop the stored chunks and unsubscribe everyone."""
        with self._lock:
            self.container = ChunkContainer()
        self.finish_pending_chunks()

    def _send_chunks(self) -> None:
        total = len(self.container)
        for subscriber in list(self._subscribers):
            if subscriber.chunk_loaded == total:
                continue
            if self._pool is None:
                self._send_to(subscriber)
            else:
                self._pool.push_task(self._send_task, subscriber)
                self._pending += 1

    def _send_task(self, subscriber: Subscriber) -> None:
        try:
            self._send_to(subscriber)
        finally:
            with self._cond:
                self._pending -= 1
                self._cond.notify_all()

    def _send_to(self, subscriber: Subscriber) -> None:
        with subscriber.lock:
            while (chunk := self.container.get(subscriber.chunk_loaded)) is not None:
                try:
                    send_data(subscriber.sock, chunk.data)
                except OSError:
                    log_message(subscriber.fd, "Error sending data to subscriber")
                    return
                subscriber.chunk_loaded += 1