import threading

import pytest

from apmtrace.internal import periodic
from apmtrace.internal import service
from tests.utils import wait_for


def test_periodic():
    x = {"OK": False}

    thread_started = threading.Event()
    thread_continue = threading.Event()

    def _run_periodic():
        thread_started.set()
        x["OK"] = True
        thread_continue.wait()

    def _on_shutdown():
        x["DOWN"] = True

    t = periodic.PeriodicThread(0.001, _run_periodic, on_shutdown=_on_shutdown)
    t.start()
    thread_started.wait()
    thread_continue.set()
    assert t.is_alive()
    assert t.daemon
    t.stop()
    t.join()
    assert not t.is_alive()
    assert x["OK"]
    assert x["DOWN"]


def test_periodic_run_now():
    ran = threading.Event()

    t = periodic.PeriodicThread(60, ran.set, run_now=True)
    t.start()
    try:
        assert ran.wait(5)
    finally:
        t.stop()
        t.join()


def test_periodic_double_start():
    def _run_periodic():
        pass

    t = periodic.PeriodicThread(0.1, _run_periodic)
    t.start()
    try:
        with pytest.raises(RuntimeError):
            t.start()
    finally:
        t.stop()
        t.join()


def test_periodic_error():
    x = {"OK": False}

    thread_started = threading.Event()
    thread_continue = threading.Event()

    def _run_periodic():
        thread_started.set()
        thread_continue.wait()
        raise ValueError

    def _on_shutdown():
        x["DOWN"] = True

    t = periodic.PeriodicThread(0.001, _run_periodic, on_shutdown=_on_shutdown)
    t.start()
    thread_started.wait()
    thread_continue.set()
    t.stop()
    t.join()
    assert "DOWN" not in x


def test_is_alive_before_start():
    def x():
        pass

    t = periodic.PeriodicThread(1, x)
    assert not t.is_alive()


def test_periodic_service_start_stop():
    t = periodic.PeriodicService(1)
    t.start()
    with pytest.raises(service.ServiceStatusError):
        t.start()
    t.stop()
    t.join()
    with pytest.raises(service.ServiceStatusError):
        t.stop()
    t.join()
    t.join()


def test_periodic_join_no_start():
    t = periodic.PeriodicService(1)
    t.join()
    with pytest.raises(service.ServiceStatusError):
        t.stop()
    t.join()


def test_periodic_service_interval_update():
    t = periodic.PeriodicService(1)
    t.start()
    try:
        t.interval = 2
        assert t._worker.interval == 2
    finally:
        t.stop()
        t.join()


def test_periodic_task_tick_errors_are_isolated():
    calls = []

    def target():
        calls.append(None)
        if len(calls) % 2:
            raise ValueError("flaky")

    t = periodic.PeriodicTask(0.001, target=target)
    t.start()
    try:
        assert wait_for(lambda: t.ticks >= 4)
    finally:
        t.stop()
        t.join()

    assert t.failed_ticks >= 2
    assert t.ticks - t.failed_ticks >= 1


def test_periodic_task_timeout():
    release = threading.Event()
    calls = []

    def hang():
        calls.append(None)
        release.wait(10)

    t = periodic.PeriodicTask(0.001, timeout=0.05, target=hang)
    assert t.timeout == 0.05
    t.start()
    try:
        assert wait_for(lambda: t.failed_ticks >= 2)
        assert t.last_tick_ok is False
    finally:
        release.set()
        t.stop()
        t.join()

    assert t._executor is None


def test_periodic_task_timeout_successful_ticks():
    t = periodic.PeriodicTask(0.001, timeout=5, target=lambda: None)
    t.start()
    try:
        assert wait_for(lambda: t.ticks >= 3)
    finally:
        t.stop()
        t.join()

    assert t.failed_ticks == 0
    assert t.last_tick_ok is True


def test_periodic_service_on_shutdown():
    class Shutdown(periodic.PeriodicService):
        down = False

        def on_shutdown(self):
            self.down = True

    t = Shutdown(0.001)
    t.start()
    t.stop()
    t.join()
    assert t.down


def test_periodic_task_on_result():
    calls = []
    results = []

    def target():
        calls.append(None)
        return len(calls)

    t = periodic.PeriodicTask(0.001, timeout=5, target=target, on_result=results.append)
    t.start()
    try:
        assert wait_for(lambda: len(results) >= 3)
    finally:
        t.stop()
        t.join()

    assert results[:3] == [1, 2, 3]


def test_periodic_task_timed_out_tick_is_not_delivered():
    release = threading.Event()
    calls = []
    results = []

    def target():
        calls.append(None)
        if len(calls) == 1:
            release.wait(10)
        return len(calls)

    t = periodic.PeriodicTask(0.001, timeout=0.05, target=target, on_result=results.append)
    t.start()
    try:
        assert wait_for(lambda: t.failed_ticks >= 5)
        # Ticks are skipped while the timed out one runs, nothing piles up behind it
        assert t.tick_in_flight
        assert len(calls) == 1
        assert t._executor._work_queue.qsize() == 0
        assert results == []

        release.set()
        assert wait_for(lambda: len(results) >= 2)
    finally:
        release.set()
        t.stop()
        t.join()

    assert 1 not in results
    assert results[0] == 2
    assert results == sorted(set(results))
    assert len(results) <= len(calls) - 1


def test_periodic_task_stop_with_tick_in_flight():
    started = threading.Event()
    results = []

    def target():
        started.set()
        threading.Event().wait(0.3)
        return "late"

    t = periodic.PeriodicTask(0.001, timeout=0.05, target=target, on_result=results.append)
    t.start()
    assert started.wait(5)
    assert wait_for(lambda: t.failed_ticks >= 1)
    t.stop()
    t.join()

    assert not t.tick_in_flight
    assert t._executor is None
    threading.Event().wait(0.5)
    assert results == []
