"""Serving one proxy client: parse its request, then join or run a session."""

from __future__ import annotations

import socket
import threading

from concurlab.cache import CacheStore, cachename_for
from concurlab.context import ProxyContext
from concurlab.http_utils import (
    HTTP_REQUEST_BYTES_LEN,
    HttpRequest,
    HttpRequestError,
    RequestContext,
    parse_http_request,
    send_http_request,
)
from concurlab.log import log_message
from concurlab.subscription import SubscriptionManager

SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")
BLOCKED_PATH = "http://o.pki.goog/we2"

_CACHE = CacheStore()
_sessions_lock = threading.Lock()


def handle_client(client_socket: socket.socket, context: ProxyContext) -> None:
    """Serve ``client_socket``, on the pool when the context is parallel."""
    if context.parallel:
        context.pool.push_task(_serve, (client_socket, context))
    else:
        _serve((client_socket, context))


def validate_request(request: HttpRequest | None) -> bool:
    """Whether the request uses HTTP/1.0 or 1.1 and is not for the blocked URL."""
    if request is None:
        return False
    return request.version in SUPPORTED_VERSIONS and request.path != BLOCKED_PATH


def is_success_code(code: int) -> bool:
    """Whether ``code`` is a 2xx status."""
    return 200 <= code < 300


def _serve(job: tuple[socket.socket, ProxyContext]) -> None:
    sock, context = job
    fd = sock.fileno()
    try:
        raw = sock.recv(HTTP_REQUEST_BYTES_LEN - 1)
    except OSError as exc:
        log_message(fd, "recv failed:", exc)
        sock.close()
        return
    try:
        request = parse_http_request(raw)
    except ValueError as exc:
        log_message(fd, "unparsable request:", exc)
        sock.close()
        return

    log_message(fd, "request url:", request.path)

    if not validate_request(request):
        log_message(fd, "invalid request!")
        sock.close()
        return

    manager = _session_for(request.path, context)
    manager.subscribe(sock)

    if not manager.try_claim():
        return

    try:
        if _CACHE.exists(cachename_for(request)):
            log_message(fd, "cache file found!")
            _share_cache(manager, request)
        else:
            log_message(fd, "cache file not found.")
            _download_and_send(manager, request, context)
        manager.finish_pending_chunks()
    finally:
        with _sessions_lock:
            context.map.delete(request.path)
        manager.close()


def _session_for(path: str, context: ProxyContext) -> SubscriptionManager:
    with _sessions_lock:
        manager = context.map.get(path)
        if manager is None:
            manager = SubscriptionManager(context.pool if context.parallel else None)
            context.map.insert(path, manager)
        return manager


def _download_and_send(
    manager: SubscriptionManager, request: HttpRequest, context: ProxyContext
) -> None:
    request_context = RequestContext(request, manager, context)
    try:
        code = send_http_request(request_context)
    except HttpRequestError as exc:
        log_message("DOWNLOAD", "failed:", exc)
        return
    if not is_success_code(code):
        return
    try:
        _CACHE.save(manager, cachename_for(request))
    except OSError as exc:
        log_message("CACHE", "unable to save:", exc)


def _share_cache(manager: SubscriptionManager, request: HttpRequest) -> None:
    try:
        _CACHE.share(manager, cachename_for(request))
    except OSError as exc:
        log_message("CACHE", "unable to read:", exc)