import threading

import pytest

from concurlab.context import ProxyContext


def test_port_and_defaults_are_kept():
    with ProxyContext(8080) as context:
        assert context.port == 8080
        assert context.stop is False
        assert context.parallel is False
        assert len(context.map) == 0


def test_map_stores_sessions():
    with ProxyContext(9000) as context:
        session = object()
        context.map.insert("http://example.com/", session)
        assert context.map.get("http://example.com/") is session


def test_pool_runs_tasks():
    with ProxyContext(9001) as context:
        done = threading.Event()
        context.pool.push_task(lambda event: event.set(), done)
        assert done.wait(5)


def test_close_stops_pool_and_sets_stop():
    context = ProxyContext(9002)
    context.close()
    assert context.stop is True
    assert context.pool.stopped is True
    with pytest.raises(RuntimeError):
        context.pool.push_task(print, None)


def test_context_manager_closes():
    with ProxyContext(9003, parallel=True) as context:
        assert context.parallel is True
    assert context.pool.stopped is True