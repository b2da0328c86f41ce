import logging
import re
import typing as t

from envier import Env

from apmtrace.internal.utils.formats import parse_list_str
from apmtrace.internal.utils.formats import parse_tags_str
from apmtrace.settings._log_level import log_level as _parse_log_level


_DURATION_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*(ms|s|m)?\s*$", re.IGNORECASE)
_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0}


def parse_duration(value: str, default_unit: str = "s") -> float:
    """Parse ``"5ms"``, ``"30s"``, ``"1m"`` or a bare number in ``default_unit`` into seconds."""
    match = _DURATION_RE.match(value)
    if match is None:
        raise ValueError("Invalid duration: %r" % value)
    amount, unit = match.groups()
    return float(amount) * _UNITS[(unit or default_unit).lower()]


def _parse_span_frames_min_duration(value: str) -> float:
    return parse_duration(value, default_unit="ms")


def _validate_positive(value: float) -> None:
    if value <= 0:
        raise ValueError("value must be positive, got %r" % value)


class Config(Env):
    """Configuration consumed by the tracing core.

    Values are read from ``APM_*`` environment variables, or from an explicit ``source`` mapping::

        Config(source={"APM_RECORDING": "false", "APM_METRICS_INTERVAL": "10s"})

    Attributes can be reassigned afterwards.
    """

    __prefix__ = "apm"

    service_name = Env.var(str, "service_name", default="python_service", help="Name of the instrumented service")

    recording = Env.var(
        bool,
        "recording",
        default=True,
        help_type="Boolean",
        help="Global kill switch: when false no new span nor metricset is produced",
    )

    collect_metrics = Env.var(bool, "collect_metrics", default=True, help_type="Boolean")

    metrics_interval = Env.var(
        float,
        "metrics_interval",
        parser=parse_duration,
        default=30.0,
        validator=_validate_positive,
        help_type="Duration",
        help="Interval between two metrics collections, in seconds unless a unit is given",
    )

    breakdown_metrics = Env.var(bool, "breakdown_metrics", default=True, help_type="Boolean")

    span_frames_min_duration = Env.var(
        float,
        "span_frames_min_duration",
        parser=_parse_span_frames_min_duration,
        default=0.005,
        help_type="Duration",
        help=(
            "Spans lasting at least this long get a stacktrace; 0 disables frame capture, "
            "a negative value captures frames for every span. Milliseconds unless a unit is given"
        ),
    )

    default_labels = Env.var(dict, "default_labels", parser=parse_tags_str, default={})

    global_labels = Env.var(dict, "global_labels", parser=parse_tags_str, default={})

    view_paths = Env.var(list, "view_paths", parser=parse_list_str, default=[])

    log_level = Env.var(int, "log_level", parser=_parse_log_level, default=logging.INFO, help_type="String")

    def __init__(self, *args: t.Any, **kwargs: t.Any) -> None:
        super(Config, self).__init__(*args, **kwargs)
        # Do not share the mutable defaults between instances
        self.default_labels = dict(self.default_labels)
        self.global_labels = dict(self.global_labels)
        self.view_paths = list(self.view_paths)

    def capture_span_frames(self) -> bool:
        return self.span_frames_min_duration != 0
