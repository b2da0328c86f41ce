from contextlib import contextmanager
import logging
from typing import Any
from typing import Callable
from typing import Dict
from typing import Iterator
from typing import Optional

from apmtrace._trace.context import Context
from apmtrace._trace.error import Error
from apmtrace._trace.error_builder import ErrorBuilder
from apmtrace._trace.metadata import Metadata
from apmtrace._trace.normalizers import Normalizers
from apmtrace._trace.provider import BaseContextProvider
from apmtrace._trace.provider import DefaultContextProvider
from apmtrace._trace.record import Record
from apmtrace._trace.span import Span
from apmtrace._trace.stacktrace import StacktraceBuilder
from apmtrace._trace.subscriber import Subscriber
from apmtrace._trace.transaction import Transaction
from apmtrace.constants import ERROR
from apmtrace.constants import METRICSET
from apmtrace.constants import SPAN
from apmtrace.constants import TRANSACTION
from apmtrace.internal.logger import get_logger
from apmtrace.internal.runtime.metricset import Metricset
from apmtrace.internal.runtime.runtime_metrics import MetricsRegistry
from apmtrace.settings._log_level import log_level
from apmtrace.settings.config import Config


log = get_logger(__name__)


Sink = Callable[[Record], None]


class ExistingTransactionError(RuntimeError):
    pass


class Tracer(object):
    """
    Tracer keeps track of what is currently executing, a transaction and a
    stack of nested spans, and hands what it captures to a sink::

        tracer = Tracer(sink=transport.send)
        with tracer.capture_transaction("GET /users", "request"):
            with tracer.capture_span("SELECT FROM users", "db.postgresql.query"):
                ...

    The current transaction and span are bound to the calling thread or
    asyncio task. When ``config.recording`` is false no span is created.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        sink: Optional[Sink] = None,
        context_provider: Optional[BaseContextProvider] = None,
        stacktrace_builder: Optional[StacktraceBuilder] = None,
        normalizers: Optional[Normalizers] = None,
    ) -> None:
        self.config = config if config is not None else Config()
        self.context_provider = context_provider if context_provider is not None else DefaultContextProvider()
        self.stacktrace_builder = stacktrace_builder if stacktrace_builder is not None else StacktraceBuilder()
        self.error_builder = ErrorBuilder(self.config, self.context_provider, self.stacktrace_builder)
        self.metrics = MetricsRegistry(self.config, self._on_metricset)
        self.subscriber = Subscriber(self, normalizers)
        self.metadata = Metadata.build(self.config)
        self._sink = sink

        logging.getLogger("apmtrace").setLevel(log_level(self.config.log_level))

    @property
    def normalizers(self) -> Normalizers:
        return self.subscriber.normalizers

    def start(self) -> None:
        """Start collecting metrics and listening to instrumentation events."""
        self.metrics.start()
        self.subscriber.register()

    def stop(self) -> None:
        self.subscriber.unregister()
        self.metrics.stop()

    def _emit(self, kind: str, body: Any) -> None:
        if self._sink is None:
            return
        try:
            self._sink(Record(kind, body))
        except Exception:
            log.error("Error while handing %s to the sink", kind, exc_info=True)

    def _on_metricset(self, metricset: Metricset) -> None:
        self._emit(METRICSET, metricset)

    # Execution context

    def current_transaction(self) -> Optional[Transaction]:
        return self.context_provider.current_transaction()

    def current_span(self) -> Optional[Span]:
        return self.context_provider.current_span()

    def start_transaction(
        self,
        name: Optional[str] = None,
        type: Optional[str] = None,
        context: Optional[Context] = None,
        trace_id: Optional[str] = None,
        sampled: Optional[bool] = None,
    ) -> Transaction:
        current = self.current_transaction()
        if current is not None:
            raise ExistingTransactionError("Transactions may not be nested. Already inside %r" % (current,))

        transaction = Transaction(
            name=name,
            type=type,
            context=context,
            trace_id=trace_id,
            sampled=self.config.recording if sampled is None else sampled,
        )
        transaction.start()
        self.context_provider.activate(transaction)
        return transaction

    def end_transaction(self, result: Optional[str] = None) -> Optional[Transaction]:
        transaction = self.current_transaction()
        if transaction is None:
            return None

        transaction.stop(result)
        # Events that never finished are dropped with their transaction
        transaction.notifications.clear()
        self.context_provider.activate(None)

        self.metrics.observe_transaction(transaction)
        self._emit(TRANSACTION, transaction)
        return transaction

    def start_span(
        self,
        name: str,
        type: Optional[str] = None,
        subtype: Optional[str] = None,
        action: Optional[str] = None,
        context: Optional[Context] = None,
    ) -> Optional[Span]:
        if not self.config.recording:
            return None

        transaction = self.current_transaction()
        if transaction is None:
            return None

        span = Span(
            name,
            type,
            subtype=subtype,
            action=action,
            context=context,
            transaction=transaction,
            parent=self.current_span(),
        )
        span.start()
        transaction.started_spans += 1
        self.context_provider.activate(span)
        return span

    def end_span(self) -> Optional[Span]:
        span = self.current_span()
        if span is None:
            return None

        span.stop()
        self.context_provider.activate(span.parent if span.parent is not None else span.transaction)

        min_duration = self.config.span_frames_min_duration
        if span.original_backtrace is not None and min_duration != 0 and span.is_long_enough(min_duration):
            span.stacktrace = self.stacktrace_builder.build(span.original_backtrace, type="span")

        transaction = span.transaction
        if transaction is not None:
            transaction.add_breakdown(span)
            if transaction.sampled:
                self._emit(SPAN, span)
        return span

    @contextmanager
    def capture_transaction(
        self,
        name: Optional[str] = None,
        type: Optional[str] = None,
        context: Optional[Context] = None,
        trace_id: Optional[str] = None,
        sampled: Optional[bool] = None,
    ) -> Iterator[Transaction]:
        transaction = self.start_transaction(name, type, context=context, trace_id=trace_id, sampled=sampled)
        try:
            yield transaction
        except BaseException as e:
            self.report(e, handled=False)
            transaction.outcome = "failure"
            raise
        else:
            transaction.outcome = "success"
        finally:
            self.end_transaction()

    @contextmanager
    def capture_span(
        self,
        name: str,
        type: Optional[str] = None,
        subtype: Optional[str] = None,
        action: Optional[str] = None,
        context: Optional[Context] = None,
    ) -> Iterator[Optional[Span]]:
        span = self.start_span(name, type, subtype=subtype, action=action, context=context)
        try:
            yield span
        finally:
            if span is not None and span is self.current_span():
                self.end_span()

    # Errors

    def report(
        self, exception: BaseException, context: Optional[Context] = None, handled: bool = True
    ) -> Error:
        error = self.error_builder.build_exception(exception, context=context, handled=handled)
        self._emit(ERROR, error)
        return error

    def report_message(
        self, message: str, context: Optional[Context] = None, backtrace: Optional[Any] = None, **attrs: Any
    ) -> Error:
        error = self.error_builder.build_log(message, context=context, backtrace=backtrace, **attrs)
        self._emit(ERROR, error)
        return error

    def set_labels(self, labels: Dict[str, Any]) -> None:
        """Set labels on the current transaction, if any."""
        transaction = self.current_transaction()
        if transaction is not None:
            transaction.context.labels.update(labels)
