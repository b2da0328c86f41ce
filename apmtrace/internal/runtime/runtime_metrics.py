import threading
from typing import TYPE_CHECKING
from typing import Callable  # noqa:F401
from typing import Dict  # noqa:F401
from typing import List  # noqa:F401
from typing import Mapping  # noqa:F401
from typing import Optional  # noqa:F401

from apmtrace.constants import BREAKDOWN_METRICS
from apmtrace.constants import SYSTEM_METRICS
from apmtrace.constants import TRANSACTION_METRICS
from apmtrace.constants import VM_METRICS

from .. import periodic
from ..logger import get_logger
from .metric_collectors import BreakdownSet
from .metric_collectors import CpuMemSet
from .metric_collectors import MetricSet  # noqa:F401
from .metric_collectors import TransactionSet
from .metric_collectors import VMSet
from .metricset import Metricset  # noqa:F401


if TYPE_CHECKING:  # pragma: no cover
    from apmtrace._trace.transaction import Transaction
    from apmtrace.settings.config import Config


log = get_logger(__name__)


DEFAULT_SETS = {
    SYSTEM_METRICS: CpuMemSet,
    VM_METRICS: VMSet,
    BREAKDOWN_METRICS: BreakdownSet,
    TRANSACTION_METRICS: TransactionSet,
}  # type: Mapping[str, Callable[[Config], MetricSet]]


class MetricsRegistry(object):
    """Collect metrics from a set of producers on a background thread.

    Every ``config.metrics_interval`` seconds, and once right after
    :meth:`start`, the metricsets of all the producers are handed to
    ``callback``, one call per metricset. Nothing is collected while
    ``config.recording`` is false. A failing producer fails its tick only, the
    next one runs on schedule. The batch of a producer hung past
    ``TIMEOUT_INTERVAL`` is dropped and the ticks are failed until it returns.
    ``callback`` is only called from the periodic thread, never after
    :meth:`stop` returns.
    """

    TIMEOUT_INTERVAL = 5.0  # seconds

    def __init__(self, config, callback, sets=None):
        # type: (Config, Callable[[Metricset], None], Optional[Mapping[str, Callable[[Config], MetricSet]]]) -> None
        self.config = config
        self.callback = callback
        self._set_factories = sets if sets is not None else DEFAULT_SETS
        self.sets = {}  # type: Dict[str, MetricSet]
        self._task = None  # type: Optional[periodic.PeriodicTask]
        self._lock = threading.Lock()

    @property
    def running(self):
        # type: () -> bool
        return self._task is not None

    @property
    def task(self):
        # type: () -> Optional[periodic.PeriodicTask]
        return self._task

    def start(self):
        # type: () -> None
        with self._lock:
            if self.running:
                return

            if not self.config.collect_metrics:
                log.debug("Skipping metrics")
                return

            log.debug("Starting metrics")

            sets = {}
            for key, factory in self._set_factories.items():
                log.debug("Adding metrics collector %r", factory)
                sets[key] = factory(self.config)
            self.sets = sets

            task = periodic.PeriodicTask(
                self.config.metrics_interval,
                timeout=self.TIMEOUT_INTERVAL,
                run_now=True,
                target=self._collect_tick,
                on_result=self._send,
            )
            task.start()
            self._task = task

    def stop(self):
        # type: () -> None
        with self._lock:
            task = self._task
            if task is None:
                return

            log.debug("Stopping metrics")
            task.stop()
            self._task = None

        # Wait for the in-flight tick, unless called from the tick itself
        if task._worker is not threading.current_thread():
            task.join()

    def get(self, key):
        # type: (str) -> MetricSet
        return self.sets[key]

    def collect_and_send(self):
        # type: () -> None
        self._send(self._collect_tick())

    def _collect_tick(self):
        # type: () -> Optional[List[Metricset]]
        if not self.config.recording:
            return None

        log.debug("Collecting metrics")
        return self.collect()

    def _send(self, metricsets):
        # type: (Optional[List[Metricset]]) -> None
        if not metricsets:
            return
        for metricset in metricsets:
            self.callback(metricset)

    def collect(self):
        # type: () -> List[Metricset]
        metricsets = []  # type: List[Metricset]
        for metric_set in self.sets.values():
            collected = metric_set.collect()
            if not collected:
                continue
            metricsets.extend(m for m in collected if m is not None)
        return metricsets

    def observe_transaction(self, transaction):
        # type: (Transaction) -> None
        """Feed the span scoped producers with an ended transaction."""
        if not self.running:
            return
        for key in (BREAKDOWN_METRICS, TRANSACTION_METRICS):
            metric_set = self.sets.get(key)
            if metric_set is not None and hasattr(metric_set, "observe_transaction"):
                metric_set.observe_transaction(transaction)
