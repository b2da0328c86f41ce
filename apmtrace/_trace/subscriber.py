import re
from typing import TYPE_CHECKING
from typing import Any
from typing import Dict
from typing import Optional
from typing import Pattern

from apmtrace._trace.normalizers import Normalizers
from apmtrace._trace.transaction import Notification
from apmtrace.constants import SKIP
from apmtrace.internal import core
from apmtrace.internal.logger import get_logger


if TYPE_CHECKING:  # pragma: no cover
    from apmtrace._trace.tracer import Tracer


log = get_logger(__name__)


class Subscriber(object):
    """Turn start/finish instrumentation events into spans.

    Events are ``(name, id, payload)`` triples. A start event opens a span when
    a normalizer is registered for its name and does not skip it; every start
    event seen during a transaction pushes a notification on the transaction
    so that the finish event with the same id can find its span back.
    """

    def __init__(self, tracer, normalizers=None):
        # type: (Tracer, Optional[Normalizers]) -> None
        self._tracer = tracer
        self.normalizers = normalizers if normalizers is not None else Normalizers.build(tracer.config)
        self._registered = False
        self._pattern = None  # type: Optional[Pattern[str]]
        self._pattern_keys = None  # type: Optional[tuple]

    @property
    def registered(self):
        # type: () -> bool
        return self._registered

    def register(self):
        # type: () -> None
        if self._registered:
            self.unregister()

        core.on(core.NOTIFICATION_START, self._on_start)
        core.on(core.NOTIFICATION_FINISH, self._on_finish)
        self._registered = True

    def unregister(self):
        # type: () -> None
        core.off(core.NOTIFICATION_START, self._on_start)
        core.off(core.NOTIFICATION_FINISH, self._on_finish)
        self._registered = False

    @property
    def pattern(self):
        # type: () -> Pattern[str]
        """Single regex matching every event name a normalizer is registered for."""
        keys = self.normalizers.keys()
        if self._pattern is None or keys != self._pattern_keys:
            # An empty alternation would match everything
            alternatives = "|".join(re.escape(k) for k in keys) or r"(?!)"
            self._pattern = re.compile("^(?:%s)$" % alternatives)
            self._pattern_keys = keys
        return self._pattern

    def matches(self, name):
        # type: (str) -> bool
        return self.pattern.match(name) is not None

    def _on_start(self, name, id, payload):
        if self.matches(name):
            self.start(name, id, payload)

    def _on_finish(self, name, id, payload):
        if self.matches(name):
            self.finish(name, id, payload)

    def start(self, name, id, payload):
        # type: (str, Any, Dict[str, Any]) -> None
        transaction = self._tracer.current_transaction()
        if transaction is None:
            return

        normalized = self.normalizers.normalize(transaction, name, payload)

        if normalized is SKIP:
            span = None
        else:
            span_name, span_type, subtype, action, context = normalized  # type: ignore[misc]
            span = self._tracer.start_span(span_name, span_type, subtype=subtype, action=action, context=context)

        transaction.notifications.push(Notification(id, span))

    def finish(self, name, id, payload):
        # type: (str, Any, Dict[str, Any]) -> None
        transaction = self._tracer.current_transaction()
        if transaction is None:
            return

        notification = transaction.notifications.pop(id)
        if notification is None:
            log.debug("No started notification for %s:%r", name, id)
            return

        span = notification.span
        if span is None:
            return

        if self._tracer.config.capture_span_frames() and span.original_backtrace is None:
            span.original_backtrace = self.normalizers.backtrace(name, payload)

        if span is self._tracer.current_span():
            self._tracer.end_span()
