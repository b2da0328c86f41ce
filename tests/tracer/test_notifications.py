from apmtrace._trace.transaction import Notification
from apmtrace._trace.transaction import NotificationStack


def _stack(*ids):
    stack = NotificationStack()
    for id in ids:
        stack.push(Notification(id))
    return stack


def test_pop_top():
    stack = _stack("a", "b")

    notification = stack.pop("b")

    assert notification.id == "b"
    assert [n.id for n in stack] == ["a"]


def test_pop_discards_entries_above_match():
    stack = _stack("a", "b", "c")

    notification = stack.pop("a")

    assert notification.id == "a"
    assert len(stack) == 0


def test_pop_topmost_duplicate():
    stack = _stack("a", "b", "a", "c")

    stack.pop("a")

    assert [n.id for n in stack] == ["a", "b"]


def test_pop_missing_leaves_stack_untouched():
    stack = _stack("a", "b")

    assert stack.pop("z") is None
    assert [n.id for n in stack] == ["a", "b"]


def test_pop_empty():
    assert NotificationStack().pop("a") is None


def test_clear():
    stack = _stack("a", "b")
    stack.clear()
    assert len(stack) == 0
