"""Small helpers shared by the proxy: hashing, host parsing and socket sends."""

from __future__ import annotations

import socket

_DJB2_SEED = 5381
_UINT32_MASK = 0xFFFFFFFF
_SEND_FLAGS = getattr(socket, "MSG_NOSIGNAL", 0)


def hashn(text: str | bytes, max_size: int) -> int:
    """Return the 32-bit djb2 hash of at most ``max_size`` bytes of ``text``.

    Hashing stops at the first NUL byte. Bytes above 127 count as signed
    values, as a plain ``char`` would.
    """
    data = text.encode("utf-8") if isinstance(text, str) else bytes(text)
    value = _DJB2_SEED
    for byte in data[:max_size]:
        if byte == 0:
            break
        signed = byte - 256 if byte > 127 else byte
        value = (value * 33 + signed) & _UINT32_MASK
    return value


def parse_host(url: str) -> str:
    """Return the host part of ``url``: what follows ``://`` up to the next ``/``."""
    _, sep, rest = url.partition("://")
    start = rest if sep else url
    host, _, _ = start.partition("/")
    return host


def send_data(sock: socket.socket, data: bytes) -> None:
    """Send all of ``data`` over ``sock``; raises ``OSError`` on failure."""
    view = memoryview(data)
    while view:
        sent = sock.send(view, _SEND_FLAGS)
        view = view[sent:]