import time

from apmtrace._trace.normalizers import Normalizer
from apmtrace.constants import SKIP


def kinds(records):
    return [r.kind for r in records]


def bodies(records, kind):
    return [r.body for r in records if r.kind == kind]


def wait_for(predicate, timeout=5.0, interval=0.005):
    """Poll ``predicate`` until it is true or ``timeout`` seconds elapsed."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class StaticNormalizer(Normalizer):
    """Normalizer returning a span named after the event id in the payload."""

    def __init__(self, config, span_type="custom.test.run", skip=False, backtrace=None):
        super(StaticNormalizer, self).__init__(config)
        self.span_type = span_type
        self.skip = skip
        self._backtrace = backtrace
        self.backtrace_calls = 0

    def normalize(self, transaction, name, payload):
        if self.skip or payload.get("skip"):
            return SKIP
        return payload.get("name", name), self.span_type, None, None, None

    def backtrace(self, name, payload):
        self.backtrace_calls += 1
        if self._backtrace is not None:
            return self._backtrace
        return super(StaticNormalizer, self).backtrace(name, payload)
