import logging

import pytest

from apmtrace.settings import config as global_config
from apmtrace.settings._log_level import log_level
from apmtrace.settings.config import Config
from apmtrace.settings.config import parse_duration


def test_defaults():
    config = Config(source={})

    assert config.service_name == "python_service"
    assert config.recording is True
    assert config.collect_metrics is True
    assert config.metrics_interval == 30.0
    assert config.breakdown_metrics is True
    assert config.span_frames_min_duration == 0.005
    assert config.default_labels == {}
    assert config.global_labels == {}
    assert config.view_paths == []
    assert config.log_level == logging.INFO
    assert config.capture_span_frames()


def test_global_config():
    assert isinstance(global_config, Config)


def test_mutable_defaults_not_shared():
    a = Config(source={})
    b = Config(source={})

    a.default_labels["env"] = "production"
    a.view_paths.append("/srv/app/templates")

    assert b.default_labels == {}
    assert b.view_paths == []


def test_from_source():
    config = Config(
        source={
            "APM_SERVICE_NAME": "billing",
            "APM_RECORDING": "false",
            "APM_COLLECT_METRICS": "false",
            "APM_METRICS_INTERVAL": "10s",
            "APM_BREAKDOWN_METRICS": "false",
            "APM_SPAN_FRAMES_MIN_DURATION": "20",
            "APM_DEFAULT_LABELS": "env:production,region:eu",
            "APM_GLOBAL_LABELS": "team:payments",
            "APM_VIEW_PATHS": "/srv/app/templates, /srv/app/emails",
            "APM_LOG_LEVEL": "warn",
        }
    )

    assert config.service_name == "billing"
    assert config.recording is False
    assert config.collect_metrics is False
    assert config.metrics_interval == 10.0
    assert config.breakdown_metrics is False
    assert config.span_frames_min_duration == pytest.approx(0.02)
    assert config.default_labels == {"env": "production", "region": "eu"}
    assert config.global_labels == {"team": "payments"}
    assert config.view_paths == ["/srv/app/templates", "/srv/app/emails"]
    assert config.log_level == logging.WARNING


def test_from_environment(monkeypatch):
    monkeypatch.setenv("APM_SERVICE_NAME", "from-env")
    monkeypatch.setenv("APM_METRICS_INTERVAL", "1m")

    config = Config()

    assert config.service_name == "from-env"
    assert config.metrics_interval == 60.0


def test_attributes_are_assignable():
    config = Config(source={})
    config.recording = False
    assert config.recording is False


@pytest.mark.parametrize(
    "value,expected",
    [
        ("0", 0.0),
        ("-1", -0.001),
        ("5ms", 0.005),
        ("250ms", 0.25),
        ("20", 0.02),
        ("1s", 1.0),
        ("2m", 120.0),
    ],
)
def test_span_frames_min_duration(value, expected):
    config = Config(source={"APM_SPAN_FRAMES_MIN_DURATION": value})
    assert config.span_frames_min_duration == pytest.approx(expected)


def test_capture_span_frames():
    assert not Config(source={"APM_SPAN_FRAMES_MIN_DURATION": "0"}).capture_span_frames()
    assert Config(source={"APM_SPAN_FRAMES_MIN_DURATION": "-1"}).capture_span_frames()


@pytest.mark.parametrize(
    "value,expected",
    [("30", 30.0), ("30s", 30.0), ("500ms", 0.5), ("1m", 60.0), (" 1.5S ", 1.5)],
)
def test_parse_duration(value, expected):
    assert parse_duration(value) == pytest.approx(expected)


@pytest.mark.parametrize("value", ["", "abc", "10h", "1.2.3"])
def test_parse_duration_invalid(value):
    with pytest.raises(ValueError):
        parse_duration(value)


@pytest.mark.parametrize("value", ["0", "-5s"])
def test_metrics_interval_must_be_positive(value):
    with pytest.raises(ValueError):
        Config(source={"APM_METRICS_INTERVAL": value})


@pytest.mark.parametrize(
    "value,expected",
    [
        ("debug", logging.DEBUG),
        ("info", logging.INFO),
        ("warn", logging.WARNING),
        ("error", logging.ERROR),
        ("fatal", logging.CRITICAL),
        ("trace", logging.DEBUG),
        ("warning", logging.WARNING),
        ("critical", logging.CRITICAL),
        ("off", logging.CRITICAL),
        ("DEBUG", logging.DEBUG),
        (" Warn ", logging.WARNING),
        ("verbose", logging.INFO),
        ("", logging.INFO),
        (None, logging.INFO),
        (logging.ERROR, logging.ERROR),
        (42, logging.INFO),
        (True, logging.INFO),
    ],
)
def test_log_level(value, expected):
    assert log_level(value) == expected
