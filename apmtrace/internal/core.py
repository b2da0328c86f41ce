"""
Event hub connecting instrumentation producers to their consumers.

Producers only emit ``(name, correlation id, payload)`` triples, either through
:func:`instrument` or by dispatching ``notification.start`` /
``notification.finish`` themselves. Consumers register callbacks with
:func:`on`. A failing listener never propagates its exception to the producer.
"""
from collections import defaultdict
from contextlib import contextmanager
import contextvars
import itertools
from typing import Any  # noqa:F401
from typing import Callable  # noqa:F401
from typing import Dict  # noqa:F401
from typing import Iterator  # noqa:F401
from typing import List  # noqa:F401
from typing import Optional  # noqa:F401
from typing import Tuple  # noqa:F401

from apmtrace.internal.logger import get_logger


log = get_logger(__name__)


NOTIFICATION_START = "notification.start"
NOTIFICATION_FINISH = "notification.finish"


class EventHub:
    def __init__(self):
        self.reset()

    def has_listeners(self, event_id):
        # type: (str) -> bool
        return bool(self._listeners.get(event_id))

    def on(self, event_id, callback):
        # type: (str, Callable) -> None
        if callback not in self._listeners[event_id]:
            self._listeners[event_id].append(callback)

    def off(self, event_id, callback):
        # type: (str, Callable) -> None
        listeners = self._listeners.get(event_id)
        if listeners and callback in listeners:
            listeners.remove(callback)

    def reset(self):
        if hasattr(self, "_listeners"):
            del self._listeners
        self._listeners = defaultdict(list)  # type: Dict[str, List[Callable]]

    def dispatch(self, event_id, args, *other_args):
        # type: (...) -> Tuple[List[Optional[Any]], List[Optional[Exception]]]
        if not isinstance(args, list):
            args = [args] + list(other_args)
        else:
            if other_args:
                raise TypeError(
                    "When the first argument expected by the event handler is a list, all arguments "
                    "must be passed in a list. For example, use dispatch('foo', [[l1, l2], arg2]) "
                    "instead of dispatch('foo', [l1, l2], arg2)."
                )
        results = []
        exceptions = []
        for listener in list(self._listeners.get(event_id, [])):
            result = None
            exception = None
            try:
                result = listener(*args)
            except Exception as exc:
                log.debug("Listener %r failed on event %s", listener, event_id, exc_info=True)
                exception = exc
            results.append(result)
            exceptions.append(exception)
        return results, exceptions


_EVENT_HUB = contextvars.ContextVar("EventHub_var", default=EventHub())


def has_listeners(event_id):
    # type: (str) -> bool
    return _EVENT_HUB.get().has_listeners(event_id)


def on(event_id, callback):
    # type: (str, Callable) -> None
    return _EVENT_HUB.get().on(event_id, callback)


def off(event_id, callback):
    # type: (str, Callable) -> None
    return _EVENT_HUB.get().off(event_id, callback)


def reset_listeners():
    # type: () -> None
    _EVENT_HUB.get().reset()


def dispatch(event_id, args, *other_args):
    # type: (...) -> Tuple[List[Optional[Any]], List[Optional[Exception]]]
    return _EVENT_HUB.get().dispatch(event_id, args, *other_args)


_notification_ids = itertools.count(1)


def start_notification(name, payload=None, notification_id=None):
    # type: (str, Optional[Dict[str, Any]], Optional[Any]) -> Any
    """Emit the start of ``name`` and return its correlation id."""
    if notification_id is None:
        notification_id = next(_notification_ids)
    dispatch(NOTIFICATION_START, [name, notification_id, payload if payload is not None else {}])
    return notification_id


def finish_notification(name, notification_id, payload=None):
    # type: (str, Any, Optional[Dict[str, Any]]) -> None
    dispatch(NOTIFICATION_FINISH, [name, notification_id, payload if payload is not None else {}])


@contextmanager
def instrument(name, payload=None):
    # type: (str, Optional[Dict[str, Any]]) -> Iterator[Dict[str, Any]]
    """Wrap a block of code in a start/finish notification pair.

    The payload is yielded so the block can add to it before the finish event::

        with core.instrument("render_template.template", {"identifier": path}) as payload:
            payload["locals"] = len(context)
    """
    payload = payload if payload is not None else {}
    notification_id = start_notification(name, payload)
    try:
        yield payload
    finally:
        finish_notification(name, notification_id, payload)
