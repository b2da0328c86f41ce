import pytest

from apmtrace._trace.provider import _APM_CONTEXTVAR
from apmtrace._trace.tracer import Tracer
from apmtrace.internal import core
from apmtrace.settings.config import Config


@pytest.fixture(autouse=True)
def reset_execution_context():
    token = _APM_CONTEXTVAR.set(None)
    yield
    _APM_CONTEXTVAR.reset(token)


@pytest.fixture(autouse=True)
def reset_event_hub():
    """Reset event hub after each test to prevent listener leakage between tests."""
    yield
    core.reset_listeners()


@pytest.fixture
def config():
    config = Config()
    config.collect_metrics = False
    return config


@pytest.fixture
def records():
    return []


@pytest.fixture
def tracer(config, records):
    tracer = Tracer(config=config, sink=records.append)
    try:
        yield tracer
    finally:
        tracer.stop()
