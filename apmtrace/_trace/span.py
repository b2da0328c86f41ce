import time
from typing import TYPE_CHECKING
from typing import Any
from typing import List
from typing import Optional
from typing import Union

from apmtrace._trace.context import Context
from apmtrace.constants import DEFAULT_SPAN_TYPE
from apmtrace.internal import rand


if TYPE_CHECKING:  # pragma: no cover
    from apmtrace._trace.stacktrace import Stacktrace
    from apmtrace._trace.transaction import Transaction


class Span(object):
    """A named operation nested in a transaction.

    The parent of a span is either another span or, for top level spans, the
    transaction itself. Timestamps are wall clock seconds, durations are
    measured with a monotonic clock.
    """

    __slots__ = [
        "id",
        "name",
        "type",
        "subtype",
        "action",
        "context",
        "transaction",
        "parent",
        "original_backtrace",
        "stacktrace",
        "timestamp",
        "duration",
        "_start",
        "_child_durations",
    ]

    def __init__(
        self,
        name: str,
        type: Optional[str] = None,
        subtype: Optional[str] = None,
        action: Optional[str] = None,
        context: Optional[Context] = None,
        transaction: Optional["Transaction"] = None,
        parent: Optional["Span"] = None,
    ) -> None:
        self.id = rand.span_id()
        self.name = name

        if type and "." in type and subtype is None and action is None:
            # "db.mongodb.query" -> type, subtype, action
            type, _, rest = type.partition(".")
            subtype, _, action = rest.partition(".")
            subtype = subtype or None
            action = action or None

        self.type = type or DEFAULT_SPAN_TYPE
        self.subtype = subtype
        self.action = action
        self.context = context if context is not None else Context()
        self.transaction = transaction
        self.parent = parent
        self.original_backtrace = None  # type: Optional[List[Any]]
        self.stacktrace = None  # type: Optional[Stacktrace]
        self.timestamp = None  # type: Optional[float]
        self.duration = None  # type: Optional[float]
        self._start = None  # type: Optional[float]
        self._child_durations = 0.0

    def __repr__(self):
        return "<Span id=%s name=%r type=%s running=%s>" % (self.id, self.name, self.type, self.running)

    @property
    def trace_id(self) -> Optional[str]:
        return self.transaction.trace_id if self.transaction is not None else None

    @property
    def transaction_id(self) -> Optional[str]:
        return self.transaction.id if self.transaction is not None else None

    @property
    def parent_id(self) -> Optional[str]:
        if self.parent is not None:
            return self.parent.id
        return self.transaction_id

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
        """Duration minus the time spent in direct children."""
        if self.duration is None:
            return None
        return max(self.duration - self._child_durations, 0.0)

    def start(self) -> "Span":
        self.timestamp = time.time()
        self._start = time.monotonic()
        return self

    def stop(self) -> "Span":
        if self._start is None or self.duration is not None:
            return self
        self.duration = time.monotonic() - self._start
        parent = self.parent if self.parent is not None else self.transaction  # type: Union[Span, Transaction, None]
        if parent is not None:
            parent._child_durations += self.duration
        return self

    def is_long_enough(self, min_duration: float) -> bool:
        """Whether the span lasted at least ``min_duration`` seconds; a negative threshold matches every span."""
        if min_duration < 0:
            return True
        return self.duration is not None and self.duration >= min_duration
