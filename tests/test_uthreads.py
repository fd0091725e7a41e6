import pytest

from concurlab.uthreads import UThreadScheduler, UThreadStatus, main


def _counting(counter):
    counter[0] += 1
    yield
    counter[0] += 1


def _two_step(arg):
    events, name = arg
    events.append(name + "1")
    yield
    events.append(name + "2")


def test_every_task_runs_to_completion():
    scheduler = UThreadScheduler()
    counter = [0]
    tasks = 25
    for _ in range(tasks):
        scheduler.add(_counting, counter)
    scheduler.run()
    assert counter[0] == 2 * tasks
    assert scheduler.finished


def test_most_recent_task_runs_first():
    scheduler = UThreadScheduler()
    order = []
    for name in ("a", "b", "c"):
        scheduler.add(order.append, name)
    scheduler.run()
    assert order == ["c", "b", "a"]


def test_yield_keeps_first_ready_thread_running():
    scheduler = UThreadScheduler()
    events = []
    scheduler.add(_two_step, (events, "a"))
    scheduler.add(_two_step, (events, "b"))
    scheduler.run()
    assert events == ["b1", "b2", "a1", "a2"]
    assert scheduler.finished
    assert len(scheduler) == 2


def test_finished_slots_become_idle_and_are_reused():
    scheduler = UThreadScheduler()
    a = scheduler.add(lambda _: None)
    b = scheduler.add(lambda _: None)
    c = scheduler.add(lambda _: None)
    scheduler.run()
    assert a.status is UThreadStatus.TERMINATED
    assert b.status is UThreadStatus.IDLE
    assert c.status is UThreadStatus.IDLE
    reused = scheduler.add(lambda _: None)
    assert reused is c
    assert len(scheduler) == 3


def test_run_after_finish_needs_reset():
    scheduler = UThreadScheduler()
    seen = []
    scheduler.add(seen.append, 1)
    scheduler.run()
    scheduler.add(seen.append, 2)
    scheduler.run()
    assert seen == [1]
    scheduler.reset()
    scheduler.run()
    assert seen == [1, 2]


def test_run_without_tasks_does_not_finish():
    scheduler = UThreadScheduler()
    scheduler.run()
    assert not scheduler.finished
    assert len(scheduler) == 0


def test_task_error_propagates():
    scheduler = UThreadScheduler()

    def broken(_):
        raise ValueError("bad task")

    uthread = scheduler.add(broken)
    with pytest.raises(ValueError):
        scheduler.run()
    assert uthread.status is UThreadStatus.TERMINATED


def test_main_prints_count(capsys):
    assert main([]) == 0
    assert "COUNT = 200" in capsys.readouterr().out