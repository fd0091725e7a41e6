"""Console log lines of the form ``[id] :: message``."""

from __future__ import annotations

from concurlab.common import parse_host


def log_message(ident: object, msg: str, *args: object) -> None:
    """Print ``[ident] :: msg`` followed by any extra values, space separated."""
    parts = [msg, *(str(arg) for arg in args)]
    print(f"[{ident}] :: {' '.join(parts)}", flush=True)


def log_url(url: str, msg: str) -> None:
    """Print a log line tagged with the host of ``url``."""
    print(f"[{parse_host(url)}] :: {msg}", flush=True)