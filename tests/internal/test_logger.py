import logging

import mock
import pytest

import apmtrace.internal.logger
from apmtrace.internal.logger import APMFormatter
from apmtrace.internal.logger import LoggingBucket
from apmtrace.internal.logger import get_logger
from apmtrace.internal.logger import log_filter


@pytest.fixture(autouse=True)
def reset_buckets():
    apmtrace.internal.logger._buckets.clear()
    apmtrace.internal.logger._rate_limit = 60
    yield
    apmtrace.internal.logger._buckets.clear()
    apmtrace.internal.logger._rate_limit = 60


def _make_record(logger, msg="test", level=logging.INFO, fn="module.py", lno=5):
    return logger.makeRecord(logger.name, level, fn, lno, msg, (), None)


def test_get_logger():
    log = get_logger("test.apmtrace.logger")

    assert isinstance(log, logging.Logger)
    assert log_filter in log.filters
    assert log.name == "test.apmtrace.logger"
    assert log.propagate

    # The filter is only added once
    assert get_logger("test.apmtrace.logger").filters.count(log_filter) == 1


def test_rate_limit_per_call_site():
    log = get_logger("test.apmtrace.ratelimit")
    log.setLevel(logging.INFO)

    with mock.patch("time.monotonic", return_value=1000.0):
        assert log_filter(_make_record(log, lno=1))
        assert not log_filter(_make_record(log, lno=1))
        assert not log_filter(_make_record(log, lno=1))
        # Another call site has its own bucket
        assert log_filter(_make_record(log, lno=2))

    with mock.patch("time.monotonic", return_value=1061.0):
        record = _make_record(log, lno=1)
        assert log_filter(record)
        assert record.skipped == 2


def test_no_rate_limit_in_debug():
    log = get_logger("test.apmtrace.debug")
    log.setLevel(logging.DEBUG)

    for _ in range(5):
        assert log_filter(_make_record(log))


def test_rate_limit_disabled():
    apmtrace.internal.logger._rate_limit = 0
    log = get_logger("test.apmtrace.disabled")
    log.setLevel(logging.INFO)

    for _ in range(5):
        assert log_filter(_make_record(log))


def test_logging_bucket():
    bucket = LoggingBucket(float("-inf"), 0)
    record = _make_record(logging.getLogger("test.apmtrace.bucket"))

    with mock.patch("time.monotonic", return_value=10.0):
        assert bucket.is_sampled(record, 60)
        assert not bucket.is_sampled(record, 60)

    assert bucket.skipped == 1


def test_formatter_reports_skipped():
    formatter = APMFormatter()
    record = _make_record(logging.getLogger("test.apmtrace.format"), msg="hello")

    assert formatter.format(record) == "INFO hello"

    record.skipped = 3
    assert formatter.format(record) == "INFO hello [3 skipped]"
