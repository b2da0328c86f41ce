import threading
from typing import TYPE_CHECKING
from typing import Any
from typing import Dict
from typing import Optional

from pymongo import monitoring

from apmtrace._trace.context import Context
from apmtrace.internal.logger import get_logger


if TYPE_CHECKING:  # pragma: no cover
    from apmtrace._trace.span import Span
    from apmtrace._trace.tracer import Tracer


log = get_logger(__name__)


class CommandTracer(monitoring.CommandListener):
    """Open a span when a command starts, end it when the command succeeds or fails.

    Commands are matched by request id. A span is only ended while it is the
    current span, so commands overlapping other instrumentation never close a
    span they do not own.
    """

    TYPE = "db.mongodb.query"

    def __init__(self, tracer):
        # type: (Tracer) -> None
        self._tracer = tracer
        self._spans = {}  # type: Dict[Any, Span]
        self._lock = threading.Lock()

    def started(self, event):
        if self._tracer.current_transaction() is None:
            return

        span = self._tracer.start_span(str(event.command_name), self.TYPE, context=self.build_context(event))
        if span is None:
            return

        with self._lock:
            self._spans[event.request_id] = span

    def succeeded(self, event):
        self._end(event)

    def failed(self, event):
        self._end(event)

    def _end(self, event):
        with self._lock:
            span = self._spans.pop(event.request_id, None)

        if span is not None and span is self._tracer.current_span():
            self._tracer.end_span()

    @staticmethod
    def build_context(event):
        # type: (Any) -> Context
        # Admin commands are not run on a collection, their command value is 1
        collection = event.command.get(event.command_name)  # type: Optional[Any]
        statement = None
        if collection is not None and collection != 1:
            statement = "%s.%s" % (collection, event.command_name)

        return Context(
            db={
                "instance": event.database_name,
                "statement": statement,
                "type": "mongodb",
                "user": None,
            }
        )


def patch(tracer):
    # type: (Tracer) -> CommandTracer
    """Register a :class:`CommandTracer` for every client created afterwards."""
    listener = CommandTracer(tracer)
    monitoring.register(listener)
    log.debug("Registered pymongo command listener %r", listener)
    return listener
