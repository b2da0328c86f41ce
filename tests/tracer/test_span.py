import pytest

from apmtrace._trace.context import Context
from apmtrace._trace.record import Record
from apmtrace._trace.span import Span
from apmtrace._trace.transaction import Transaction
from apmtrace.internal import rand


def test_span_lifecycle():
    transaction = Transaction("t").start()
    span = Span("s", transaction=transaction)

    assert not span.started
    assert not span.running
    assert span.self_time is None

    span.start()
    assert span.running
    assert span.timestamp is not None

    span.stop()
    assert span.stopped
    assert not span.running
    duration = span.duration
    span.stop()
    assert span.duration == duration


def test_span_ids():
    transaction = Transaction("t")
    parent = Span("parent", transaction=transaction)
    child = Span("child", transaction=transaction, parent=parent)

    assert len(child.id) == 16
    assert child.trace_id == transaction.trace_id
    assert child.transaction_id == transaction.id
    assert child.parent_id == parent.id
    assert parent.parent_id == transaction.id
    assert Span("orphan").parent_id is None


def test_span_type_defaults():
    assert Span("s").type == "custom"
    span = Span("s", "db.redis")
    assert (span.type, span.subtype, span.action) == ("db", "redis", None)


def test_child_durations_reduce_self_time():
    transaction = Transaction("t").start()
    parent = Span("parent", transaction=transaction).start()
    child = Span("child", transaction=transaction, parent=parent).start()
    child.stop()
    parent.stop()
    transaction.stop("HTTP 2xx")

    assert parent.self_time == pytest.approx(parent.duration - child.duration)
    assert transaction.self_time == pytest.approx(transaction.duration - parent.duration)
    assert transaction.result == "HTTP 2xx"


def test_is_long_enough():
    span = Span("s")
    assert not span.is_long_enough(0.001)
    assert span.is_long_enough(-1)

    span.start().stop()
    assert span.is_long_enough(0)
    assert not span.is_long_enough(60)


def test_transaction_defaults():
    transaction = Transaction()

    assert transaction.type == "custom"
    assert transaction.sampled
    assert len(transaction.id) == 16
    assert len(transaction.trace_id) == 32
    assert Transaction(trace_id="abc").trace_id == "abc"


def test_context_to_dict():
    context = Context(labels={"a": "1"}, db={"type": "sql"})
    assert context.to_dict() == {"labels": {"a": "1"}, "db": {"type": "sql"}}
    assert Context().to_dict() == {}


def test_record_kind():
    assert Record("span", None).kind == "span"
    with pytest.raises(ValueError):
        Record("unknown", None)


def test_rand():
    assert rand.span_id() != rand.span_id()
    assert int(rand.trace_id(), 16) >= 0
    assert 0 <= rand.rand64bits() < 2 ** 64
