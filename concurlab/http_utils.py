"""Parsing of client requests and forwarding them to the origin server."""

from __future__ import annotations

import http.client
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from concurlab.log import log_message, log_url

if TYPE_CHECKING:
    from concurlab.subscription import SubscriptionManager

HTTP_REQUEST_BYTES_LEN = 4096
HTTP_METHOD_LEN = 8
HTTP_VERSION_LEN = 16
HTTP_PATH_LEN = 512
HTTP_BODY_LEN = 512
HTTP_HEADER_LEN = 256
MAX_PARSED_HEADERS = 10
MAX_PARSED_PATH = 255
ACCEPT_TIMEOUT_MS = 5000

_READ_BLOCK = 16384


class HttpRequestError(OSError):
    """The upstream request could not be carried out."""


class HttpMethod(IntEnum):
    UNDEFINED = -1
    GET = 0
    POST = 1
    PUT = 2
    DELETE = 3
    HEAD = 4
    PATCH = 5


@dataclass
class HttpRequest:
    """A parsed client request; ``path`` is the absolute URL asked for."""

    method: str
    path: str
    version: str
    headers: list[str] = field(default_factory=list)
    body: str = ""


@dataclass
class RequestContext:
    """Ties an upstream download to the session that receives its data."""

    request: HttpRequest
    manager: SubscriptionManager
    proxy_context: Any = None
    downloaded_quarter: int = 0

    def on_data(self, data: bytes) -> int:
        """Hand received bytes to the session; returns how many were taken."""
        self.manager.add_chunk(data)
        return len(data)

    def on_progress(self, downloaded: int, total: int) -> None:
        """Log download progress at the start, a third, two thirds and the end."""
        if total <= 0:
            return
        progress = downloaded / total * 100
        if progress >= 0 and self.downloaded_quarter == 0:
            log_url(self.request.path, "Downloaded: 0% ... Started!")
            self.downloaded_quarter = 1
        elif progress >= 33 and self.downloaded_quarter < 2:
            log_url(self.request.path, "Downloaded: 33% ...")
            self.downloaded_quarter = 2
        elif progress >= 66 and self.downloaded_quarter < 3:
            log_url(self.request.path, "Downloaded: 66% ...")
            self.downloaded_quarter = 3
        elif progress >= 100 and self.downloaded_quarter < 4:
            log_url(self.request.path, "Downloaded: 100% ... Completed!")
            self.downloaded_quarter = 4


def parse_http_request(raw: str | bytes) -> HttpRequest:
    """Parse a request line, up to ten headers and a body.

    Raises ``ValueError`` when there is no complete request line.
    """
    text = raw.decode("latin-1") if isinstance(raw, (bytes, bytearray)) else raw
    text = text.split("\0", 1)[0]
    terminator = "\r\n" if "\r\n" in text else "\n"
    request_line, sep, rest = text.partition(terminator)
    if not sep:
        raise ValueError("request line is not terminated")
    tokens = request_line.split()
    if len(tokens) < 3:
        raise ValueError(f"malformed request line: {request_line!r}")
    method, path, version = tokens[:3]

    headers: list[str] = []
    while rest:
        line, sep, remainder = rest.partition(terminator)
        if not sep:
            break
        rest = remainder
        if not line:
            break
        if len(headers) < MAX_PARSED_HEADERS:
            headers.append(line[: HTTP_HEADER_LEN - 1])

    return HttpRequest(
        method=method[: HTTP_METHOD_LEN - 1],
        path=path[:MAX_PARSED_PATH],
        version=version[: HTTP_VERSION_LEN - 1],
        headers=headers,
        body=rest[: HTTP_BODY_LEN - 1],
    )


def parse_method(text: str) -> HttpMethod:
    """Map a method name to ``HttpMethod``; unknown names give ``UNDEFINED``."""
    try:
        method = HttpMethod[text]
    except KeyError:
        method = HttpMethod.UNDEFINED
    if method is HttpMethod.UNDEFINED:
        log_message("parse_method()", "Unsupported method", text)
    return method


def _split_header(line: str) -> tuple[str, str] | None:
    name, sep, value = line.partition(":")
    name = name.strip()
    if not sep or not name:
        return None
    return name, value.strip()


def _format_head(response: http.client.HTTPResponse) -> bytes:
    version = "HTTP/1.0" if response.version == 10 else "HTTP/1.1"
    lines = [f"{version} {response.status} {response.reason}"]
    lines.extend(
        f"{name}: {value}"
        for name, value in response.getheaders()
        if name.lower() != "transfer-encoding"
    )
    return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1")


def send_http_request(context: RequestContext) -> int:
    """Fetch the request's URL and stream the raw response into the session.

    Returns the response status code. Raises ``HttpRequestError`` when the
    origin cannot be reached or the exchange fails.
    """
    request = context.request
    parts = urlsplit(request.path)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise HttpRequestError(f"unsupported URL: {request.path}")
    connection_class = (
        http.client.HTTPSConnection if parts.scheme == "https" else http.client.HTTPConnection
    )
    target = parts.path or "/"
    if parts.query:
        target += "?" + parts.query

    method = parse_method(request.method)
    if method in (HttpMethod.POST, HttpMethod.PUT):
        verb, payload = method.name, request.body.encode("latin-1")
    elif method is HttpMethod.DELETE:
        verb, payload = "DELETE", None
    else:
        verb, payload = "GET", None

    headers = [pair for pair in map(_split_header, request.headers) if pair]
    names = {name.lower() for name, _ in headers}

    try:
        connection = connection_class(parts.hostname, parts.port)
        try:
            connection.putrequest(
                verb, target, skip_host="host" in names, skip_accept_encoding=True
            )
            for name, value in headers:
                connection.putheader(name, value)
            if payload is not None:
                if "content-length" not in names:
                    connection.putheader("Content-Length", str(len(payload)))
                if verb == "POST" and "content-type" not in names:
                    connection.putheader("Content-Type", "application/x-www-form-urlencoded")
            connection.endheaders(payload)
            response = connection.getresponse()
            context.on_data(_format_head(response))
            total = response.length or 0
            downloaded = 0
            context.on_progress(downloaded, total)
            while block := response.read(_READ_BLOCK):
                downloaded += len(block)
                context.on_data(block)
                context.on_progress(downloaded, total)
            return response.status
        finally:
            connection.close()
    except (OSError, http.client.HTTPException, ValueError) as exc:
        raise HttpRequestError(f"request to {request.path} failed: {exc}") from exc