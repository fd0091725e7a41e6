"""Shared state of a running proxy: port, session map and worker pool."""

from __future__ import annotations

from concurlab.hashmap import HashMap
from concurlab.threadpool import ThreadPool


class ProxyContext:
    """State the server, the handlers and the sessions share.

    ``map`` holds the live sessions keyed by request URL and ``pool`` runs
    work in parallel when ``parallel`` is set.
    """

    def __init__(self, port: int, parallel: bool = False) -> None:
        self.stop = False
        self.port = port
        self.parallel = parallel
        self.map = HashMap()
        self.pool = ThreadPool()

    def close(self) -> None:
        """Ask the server loop to stop and shut the worker pool down."""
        self.stop = True
        self.pool.shutdown()

    def __enter__(self) -> ProxyContext:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()