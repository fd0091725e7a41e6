"""Ordered container of downloaded data chunks."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class Chunk:
    """One block of data with its position in the container."""

    index: int
    data: bytes

    def __len__(self) -> int:
        return len(self.data)


class ChunkContainer:
    """Append-only sequence of chunks, indexed from zero."""

    def __init__(self) -> None:
        self._chunks: list[Chunk] = []

    def add(self, data: bytes) -> Chunk | None:
        """Append a copy of ``data`` as a new chunk; empty data is ignored."""
        if not data:
            return None
        chunk = Chunk(len(self._chunks), bytes(data))
        self._chunks.append(chunk)
        return chunk

    def get(self, index: int) -> Chunk | None:
        """Return the chunk at ``index``, or ``None`` when out of range."""
        if 0 <= index < len(self._chunks):
            return self._chunks[index]
        return None

    def __len__(self) -> int:
        return len(self._chunks)

    def __iter__(self) -> Iterator[Chunk]:
        return iter(list(self._chunks))