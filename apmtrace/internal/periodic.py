# -*- encoding: utf-8 -*-
from concurrent import futures
import threading
import typing  # noqa:F401

import attr

from apmtrace.internal import service
from apmtrace.internal.logger import get_logger


log = get_logger(__name__)


class PeriodicThread(threading.Thread):
    """Periodic thread.

    This class can be used to instantiate a worker thread that will run its `target` function every `interval`
    seconds.
    """

    def __init__(
        self,
        interval,  # type: float
        target,  # type: typing.Callable[[], typing.Any]
        name=None,  # type: typing.Optional[str]
        on_shutdown=None,  # type: typing.Optional[typing.Callable[[], typing.Any]]
        run_now=False,  # type: bool
    ):
        # type: (...) -> None
        """Create a periodic thread.

        :param interval: The interval in seconds to wait between execution of the periodic function.
        :param target: The periodic function to execute every interval.
        :param name: The name of the thread.
        :param on_shutdown: The function to call when the thread shuts down.
        :param run_now: Run the target once right away instead of waiting for the first interval.
        """
        super(PeriodicThread, self).__init__(name=name)
        self._target = target
        self._on_shutdown = on_shutdown
        self._run_now = run_now
        self.interval = interval
        self.quit = threading.Event()
        self.daemon = True

    def stop(self):
        """Stop the thread."""
        if self.is_alive():
            self.quit.set()

    def run(self):
        """Run the target function periodically."""
        if self._run_now and not self.quit.is_set():
            self._target()
        while not self.quit.wait(self.interval):
            self._target()
        if self._on_shutdown is not None:
            self._on_shutdown()


@attr.s(eq=False)
class PeriodicService(service.Service):
    """A service that runs periodically.

    Every tick is isolated: an exception raised by :meth:`periodic` is logged and counted as a failed tick, the
    schedule goes on. The value returned by :meth:`periodic` is handed to :meth:`on_result` on the periodic thread.

    When a ``timeout`` is given, :meth:`periodic` runs on a single worker and a tick still running after ``timeout``
    seconds is reported as failed: its result is dropped and, until it returns, the following ticks are skipped and
    reported as failed too. At most one tick is ever in flight.
    """

    _interval = attr.ib(type=float)
    _timeout = attr.ib(type=typing.Optional[float], default=None)
    _run_now = attr.ib(type=bool, default=False)
    _worker = attr.ib(default=None, init=False, repr=False)
    _executor = attr.ib(default=None, init=False, repr=False)
    _pending = attr.ib(default=None, init=False, repr=False)
    ticks = attr.ib(type=int, default=0, init=False)
    failed_ticks = attr.ib(type=int, default=0, init=False)
    last_tick_ok = attr.ib(type=typing.Optional[bool], default=None, init=False)

    __thread_class__ = PeriodicThread

    @property
    def interval(self):
        # type: (...) -> float
        return self._interval

    @interval.setter
    def interval(
        self,
        value,  # type: float
    ):
        # type: (...) -> None
        self._interval = value
        # Update the interval of the PeriodicThread based on ours
        if self._worker:
            self._worker.interval = value

    @property
    def timeout(self):
        # type: (...) -> typing.Optional[float]
        return self._timeout

    @property
    def tick_in_flight(self):
        # type: (...) -> bool
        """Whether a timed out tick is still running on the executor."""
        return self._pending is not None and not self._pending.done()

    def _start_service(self, *args, **kwargs):
        # type: (typing.Any, typing.Any) -> None
        """Start the periodic service."""
        if self._timeout is not None:
            self._executor = futures.ThreadPoolExecutor(
                max_workers=1,
                thread_name_prefix="%s:tick" % self.__class__.__name__,
            )
        self._worker = self.__thread_class__(
            self.interval,
            target=self._tick,
            name="%s:%s" % (self.__class__.__module__, self.__class__.__name__),
            on_shutdown=self._shutdown,
            run_now=self._run_now,
        )
        self._worker.start()

    def _stop_service(self, *args, **kwargs):
        # type: (typing.Any, typing.Any) -> None
        """Stop the periodic thread."""
        self._worker.stop()
        super(PeriodicService, self)._stop_service(*args, **kwargs)

    def join(
        self,
        timeout=None,  # type: typing.Optional[float]
    ):
        # type: (...) -> None
        if self._worker:
            self._worker.join(timeout)

    def _run_periodic(self):
        # type: (...) -> typing.Any
        if self._executor is None:
            return self.periodic()

        future = self._executor.submit(self.periodic)
        try:
            return future.result(timeout=self._timeout)
        except futures.TimeoutError:
            future.cancel()
            self._pending = future
            raise

    def _tick(self):
        # type: (...) -> bool
        if self.tick_in_flight:
            log.error("%s tick skipped, the previous tick is still running", self.__class__.__name__)
            ok = False
        else:
            self._pending = None
            try:
                self.on_result(self._run_periodic())
            except futures.TimeoutError:
                log.error("%s tick timed out after %ss", self.__class__.__name__, self._timeout)
                ok = False
            except Exception:
                log.error("Error while running %s tick", self.__class__.__name__, exc_info=True)
                ok = False
            else:
                ok = True

        self.ticks += 1
        if not ok:
            self.failed_ticks += 1
        self.last_tick_ok = ok
        return ok

    def _shutdown(self):
        # type: (...) -> None
        if self._executor is not None:
            # A hung tick must not block the shutdown, its result is never delivered
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
            self._pending = None
        self.on_shutdown()

    def on_shutdown(self):
        pass

    def on_result(self, result):
        # type: (typing.Any) -> None
        pass

    def periodic(self):
        # type: (...) -> typing.Any
        pass


@attr.s(eq=False)
class PeriodicTask(PeriodicService):
    """Periodic service running an arbitrary callable.

    ``on_result``, when given, receives what ``target`` returned, from the periodic thread and only for the ticks that
    completed in time.
    """

    _target = attr.ib(type=typing.Optional[typing.Callable[[], typing.Any]], default=None)
    _on_result = attr.ib(type=typing.Optional[typing.Callable[[typing.Any], typing.Any]], default=None)

    def periodic(self):
        # type: (...) -> typing.Any
        if self._target is not None:
            return self._target()
        return None

    def on_result(self, result):
        # type: (typing.Any) -> None
        if self._on_result is not None:
            self._on_result(result)
