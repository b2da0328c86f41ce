import abc
import contextvars
from typing import Any
from typing import Optional
from typing import Union

from apmtrace._trace.span import Span
from apmtrace._trace.transaction import Transaction
from apmtrace.internal.logger import get_logger


log = get_logger(__name__)


ActiveItem = Union[Span, Transaction]
_APM_CONTEXTVAR: contextvars.ContextVar[Optional[ActiveItem]] = contextvars.ContextVar(
    "apmtrace_contextvar", default=None
)


class BaseContextProvider(metaclass=abc.ABCMeta):
    """
    A ``ContextProvider`` retrieves what is currently executing: the active
    span or, when no span is running, the active transaction. Context
    providers must inherit this class and implement:
    * the ``active`` method, that returns the current active item
    * the ``activate`` method, that sets the current active item
    """

    @abc.abstractmethod
    def activate(self, item: Optional[ActiveItem]) -> None:
        pass

    @abc.abstractmethod
    def active(self) -> Optional[ActiveItem]:
        pass

    def current_transaction(self) -> Optional[Transaction]:
        item = self.active()
        if item is None:
            return None
        if type(item) is Transaction:
            return item
        return item.transaction  # type: ignore[union-attr]

    def current_span(self) -> Optional[Span]:
        item = self.active()
        if type(item) is Span:
            return item
        return None

    def __call__(self, *args: Any, **kwargs: Any) -> Optional[ActiveItem]:
        return self.active()


class DefaultContextProvider(BaseContextProvider):
    """Context provider that retrieves the active item from a context variable.

    Every thread and every asyncio task has its own value; a task created while
    a span is active starts with that span active, but activating another item
    in the task does not change what its creator sees.
    """

    def activate(self, item: Optional[ActiveItem]) -> None:
        """Makes the given span or transaction active in the current execution."""
        _APM_CONTEXTVAR.set(item)

    def active(self) -> Optional[ActiveItem]:
        """Returns the active span or transaction for the current execution."""
        item = _APM_CONTEXTVAR.get()
        if item is not None and item.stopped:
            return self._update_active(item)
        return item

    def _update_active(self, item: ActiveItem) -> Optional[ActiveItem]:
        """Skip the items stopped without going through the tracer.

        When a span is stopped, the active item becomes its first running
        ancestor: a parent span or the transaction. A stopped transaction
        leaves nothing active.
        """
        new_active: Optional[ActiveItem] = item
        while new_active is not None and new_active.stopped:
            if type(new_active) is Span:
                new_active = new_active.parent if new_active.parent is not None else new_active.transaction
            else:
                new_active = None
        log.debug("Active item %r is stopped, activating %r", item, new_active)
        self.activate(new_active)
        return new_active
