from typing import TYPE_CHECKING
from typing import Any
from typing import Optional

from apmtrace._trace.context import Context
from apmtrace._trace.error import Error
from apmtrace._trace.error import ErrorException
from apmtrace._trace.error import ErrorLog
from apmtrace._trace.provider import BaseContextProvider
from apmtrace._trace.stacktrace import StacktraceBuilder
from apmtrace.internal.utils.formats import reverse_merge


if TYPE_CHECKING:  # pragma: no cover
    from apmtrace._trace.transaction import Transaction
    from apmtrace.settings.config import Config


class ErrorBuilder(object):
    """Build :class:`Error` records from exceptions and log messages.

    Errors are stamped with the current trace: transaction and trace ids, the
    id of their parent (running span or transaction) and a
    ``{"sampled", "type"}`` snapshot of the transaction. Labels are only ever
    added as defaults, values set by the caller are kept. The configured
    ``default_labels`` go on exception errors only, log errors carry the
    labels they are given.
    """

    def __init__(self, config, context_provider, stacktrace_builder=None):
        # type: (Config, BaseContextProvider, Optional[StacktraceBuilder]) -> None
        self._config = config
        self._context_provider = context_provider
        self._stacktrace_builder = stacktrace_builder or StacktraceBuilder()

    def build_exception(self, exception, context=None, handled=True):
        # type: (BaseException, Optional[Context], bool) -> Error
        error = Error(context=context if context is not None else Context())
        error.exception = ErrorException.from_exception(exception, handled=handled)

        reverse_merge(error.context.labels, self._config.default_labels)

        if exception.__traceback__ is not None:
            self._add_stacktrace(error, error.exception, exception.__traceback__)

        self._add_current_transaction_fields(error, self._context_provider.current_transaction())

        return error

    def build_log(self, message, context=None, backtrace=None, **attrs):
        # type: (str, Optional[Context], Optional[Any], Any) -> Error
        error = Error(context=context if context is not None else Context())
        error.log = ErrorLog(message, **attrs)

        if backtrace is not None:
            self._add_stacktrace(error, error.log, backtrace)

        self._add_current_transaction_fields(error, self._context_provider.current_transaction())

        return error

    def _add_stacktrace(self, error, target, backtrace):
        # type: (Error, Any, Any) -> None
        stacktrace = self._stacktrace_builder.build(backtrace, type="error")
        if stacktrace is None:
            return

        target.stacktrace = stacktrace
        error.culprit = stacktrace.frames[0].function if stacktrace.frames else None

    def _add_current_transaction_fields(self, error, transaction):
        # type: (Error, Optional[Transaction]) -> None
        if transaction is None:
            return

        span = self._context_provider.current_span()

        error.transaction_id = transaction.id
        error.transaction = {"sampled": transaction.sampled, "type": transaction.type}
        error.trace_id = transaction.trace_id
        error.parent_id = span.id if span is not None else transaction.id

        if transaction.context is None:
            return

        reverse_merge(error.context.labels, transaction.context.labels)
        reverse_merge(error.context.custom, transaction.context.custom)
