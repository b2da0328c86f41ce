import time
from typing import TYPE_CHECKING
from typing import Any
from typing import List
from typing import Optional

import attr

from apmtrace._trace.context import Context
from apmtrace.constants import DEFAULT_TRANSACTION_TYPE
from apmtrace.internal import rand


if TYPE_CHECKING:  # pragma: no cover
    from apmtrace._trace.span import Span  # noqa:F401


@attr.s(slots=True, eq=False)
class Notification(object):
    """An instrumentation event started but not finished yet."""

    id = attr.ib(type=Any)
    span = attr.ib(default=None, type=Optional["Span"])


class NotificationStack(object):
    """Stack of open notifications of a transaction.

    Entries are only ever appended, and removed by :meth:`pop`. Finish events
    do not always arrive in LIFO order, so :meth:`pop` scans from the top for
    the matching correlation id and drops the entries sitting above it: those
    events never signalled their completion before an enclosing one did.
    """

    __slots__ = ["_items"]

    def __init__(self):
        self._items = []  # type: List[Notification]

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def __repr__(self):
        return "NotificationStack(%r)" % ([n.id for n in self._items],)

    def push(self, notification):
        # type: (Notification) -> None
        self._items.append(notification)

    def pop(self, notification_id):
        # type: (Any) -> Optional[Notification]
        """Remove and return the topmost notification with ``notification_id``.

        Unmatched entries above it are discarded. When no entry matches, the
        stack is left untouched and None is returned.
        """
        items = self._items
        for index in range(len(items) - 1, -1, -1):
            if items[index].id == notification_id:
                notification = items[index]
                del items[index:]
                return notification
        return None

    def clear(self):
        # type: () -> None
        del self._items[:]


class Transaction(object):
    """Top level unit of work, e.g. one request."""

    __slots__ = [
        "id",
        "trace_id",
        "name",
        "type",
        "sampled",
        "context",
        "notifications",
        "result",
        "outcome",
        "timestamp",
        "duration",
        "started_spans",
        "dropped_spans",
        "breakdown",
        "_start",
        "_child_durations",
    ]

    def __init__(
        self,
        name: Optional[str] = None,
        type: Optional[str] = None,
        context: Optional[Context] = None,
        trace_id: Optional[str] = None,
        sampled: bool = True,
    ) -> None:
        self.id = rand.span_id()
        self.trace_id = trace_id or rand.trace_id()
        self.name = name
        self.type = type or DEFAULT_TRANSACTION_TYPE
        self.sampled = sampled
        self.context = context if context is not None else Context()
        self.notifications = NotificationStack()
        self.result = None  # type: Optional[str]
        self.outcome = None  # type: Optional[str]
        self.timestamp = None  # type: Optional[float]
        self.duration = None  # type: Optional[float]
        self.started_spans = 0
        self.dropped_spans = 0
        # (span type, span subtype) -> [self time sum, count], filled as spans end
        self.breakdown = {}  # type: dict
        self._start = None  # type: Optional[float]
        self._child_durations = 0.0

    def __repr__(self):
        return "<Transaction id=%s name=%r type=%s sampled=%s>" % (self.id, self.name, self.type, self.sampled)

    @property
    def started(self) -> bool:
        return self._start is not None

    @property
    def stopped(self) -> bool:
        return self.duration is not None

    @property
    def running(self) -> bool:
        return self.started and not self.stopped

    @property
    def self_time(self) -> Optional[float]:
        if self.duration is None:
            return None
        return max(self.duration - self._child_durations, 0.0)

    def start(self) -> "Transaction":
        self.timestamp = time.time()
        self._start = time.monotonic()
        return self

    def stop(self, result: Optional[str] = None) -> "Transaction":
        if self._start is None or self.duration is not None:
            return self
        self.duration = time.monotonic() - self._start
        if result is not None:
            self.result = result
        return self

    def add_breakdown(self, span):
        # type: (Span) -> None
        """Account the self time of a finished span for breakdown metrics."""
        if span.self_time is None:
            return
        entry = self.breakdown.setdefault((span.type, span.subtype), [0.0, 0])
        entry[0] += span.self_time
        entry[1] += 1
