import time
from typing import Any
from typing import Dict
from typing import Optional

import attr


def _now_us():
    # type: () -> int
    return int(time.time() * 1000000)


@attr.s(eq=False)
class Metricset(object):
    """Timestamped batch of samples produced by one metric producer."""

    samples = attr.ib(factory=dict, type=Dict[str, float])
    timestamp = attr.ib(factory=_now_us, type=int)
    tags = attr.ib(factory=dict, type=Dict[str, str])
    transaction = attr.ib(default=None, type=Optional[Dict[str, Any]])
    span = attr.ib(default=None, type=Optional[Dict[str, Any]])

    def __bool__(self):
        return bool(self.samples)
