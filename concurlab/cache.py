"""On-disk cache of complete responses, one file per method, host and URL."""

from __future__ import annotations

from pathlib import Path

from concurlab.common import hashn, parse_host
from concurlab.http_utils import HTTP_PATH_LEN, HttpRequest
from concurlab.log import log_message
from concurlab.subscription import SubscriptionManager

CACHE_BUFFER_SIZE = 4048
DEFAULT_CACHE_DIR = Path("../cache")


def cachename_for(request: HttpRequest) -> str:
    """Return the cache file name ``<method>_<host>_<hash>.cch`` for ``request``."""
    host = parse_host(request.path)
    digest = hashn(request.path, HTTP_PATH_LEN)
    return f"{request.method}_{host}_{digest}.cch"


class CacheStore:
    """Cache files kept in one directory."""

    def __init__(self, directory: str | Path = DEFAULT_CACHE_DIR) -> None:
        self.directory = Path(directory)

    def path_for(self, name: str) -> Path:
        """Return the full path of the cache file ``name``."""
        return self.directory / name

    def share(self, manager: SubscriptionManager, name: str) -> None:
        """Feed the cache file ``name`` to ``manager`` in fixed-size chunks.

        Raises ``OSError`` when the file cannot be read.
        """
        log_message("CACHE", "cache file name:", name)
        with self.path_for(name).open("rb") as file:
            while block := file.read(CACHE_BUFFER_SIZE):
                manager.add_chunk(block)

    def save(self, manager: SubscriptionManager, name: str) -> None:
        """Write every chunk held by ``manager`` to the cache file ``name``."""
        self.directory.mkdir(parents=True, exist_ok=True)
        with self.path_for(name).open("wb") as file:
            for chunk in manager.container:
                file.write(chunk.data)

    def exists(self, name: str) -> bool:
        """Whether the cache file ``name`` is present."""
        return self.path_for(name).exists()