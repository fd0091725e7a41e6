"""Fixed-size chained hash table keyed by strings."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

from concurlab.common import hashn

MAX_KEY_LENGTH = 512
TABLE_SIZE = 128


@dataclass
class _Entry:
    key: str
    value: Any


class HashMap:
    """String-keyed map with ``TABLE_SIZE`` buckets.

    Keys are significant only up to ``MAX_KEY_LENGTH`` characters. Inserting
    a key that is already present shadows the older entry rather than
    replacing it; deleting removes the newest entry.
    """

    def __init__(self) -> None:
        self._table: list[list[_Entry]] = [[] for _ in range(TABLE_SIZE)]
        self._lock = threading.Lock()

    @staticmethod
    def _normalise(key: str) -> str:
        return key[:MAX_KEY_LENGTH]

    def _bucket(self, key: str) -> list[_Entry]:
        return self._table[hashn(key, MAX_KEY_LENGTH) % TABLE_SIZE]

    def insert(self, key: str, value: Any) -> None:
        """Add ``value`` under ``key`` in front of any older entry."""
        key = self._normalise(key)
        with self._lock:
            self._bucket(key).insert(0, _Entry(key, value))

    def get(self, key: str) -> Any:
        """Return the newest value for ``key``, or ``None`` when absent."""
        key = self._normalise(key)
        with self._lock:
            return next(
                (entry.value for entry in self._bucket(key) if entry.key == key),
                None,
            )

    def delete(self, key: str) -> None:
        """Remove the newest entry for ``key``; missing keys are ignored."""
        key = self._normalise(key)
        with self._lock:
            bucket = self._bucket(key)
            for position, entry in enumerate(bucket):
                if entry.key == key:
                    del bucket[position]
                    return

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return sum(len(bucket) for bucket in self._table)