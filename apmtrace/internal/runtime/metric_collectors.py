import gc
import os
import threading
from typing import TYPE_CHECKING
from typing import Callable  # noqa:F401
from typing import Dict  # noqa:F401
from typing import List  # noqa:F401
from typing import Optional  # noqa:F401
from typing import Tuple  # noqa:F401

import psutil

from ..logger import get_logger
from .constants import APP_SPAN_TYPE
from .constants import GC_COLLECTIONS
from .constants import GC_COUNT_GEN0
from .constants import GC_COUNT_GEN1
from .constants import GC_COUNT_GEN2
from .constants import PROCESS_CPU_TOTAL_NORM_PCT
from .constants import PROCESS_MEMORY_RSS
from .constants import PROCESS_MEMORY_SIZE
from .constants import SPAN_SELF_TIME_COUNT
from .constants import SPAN_SELF_TIME_SUM
from .constants import SYSTEM_CPU_TOTAL_NORM_PCT
from .constants import SYSTEM_MEMORY_ACTUAL_FREE
from .constants import SYSTEM_MEMORY_TOTAL
from .constants import THREAD_COUNT
from .constants import TRANSACTION_BREAKDOWN_COUNT
from .constants import TRANSACTION_DURATION_COUNT
from .constants import TRANSACTION_DURATION_SUM
from .metricset import Metricset


if TYPE_CHECKING:  # pragma: no cover
    from apmtrace._trace.transaction import Transaction
    from apmtrace.settings.config import Config


log = get_logger(__name__)


class MetricSet(object):
    """A metric producer.

    ``collect()`` returns a list of :class:`Metricset` or None when there is
    nothing to report.
    """

    def __init__(self, config):
        # type: (Config) -> None
        self._config = config
        self.disabled = False

    def __repr__(self):
        return "%s(disabled=%s)" % (self.__class__.__name__, self.disabled)

    def collect(self):
        # type: () -> Optional[List[Metricset]]
        if self.disabled:
            return None
        samples = self.collect_samples()
        if not samples:
            return None
        return [Metricset(samples=samples)]

    def collect_samples(self):
        # type: () -> Dict[str, float]
        return {}


class CpuMemSet(MetricSet):
    """System and process CPU and memory usage.

    Performs batched operations via proc.oneshot() to optimize the calls.
    See https://psutil.readthedocs.io/en/latest/#psutil.Process.oneshot
    for more information.
    """

    system_funs = {
        SYSTEM_CPU_TOTAL_NORM_PCT: lambda: psutil.cpu_percent(interval=None) / 100.0,
        SYSTEM_MEMORY_ACTUAL_FREE: lambda: psutil.virtual_memory().available,
        SYSTEM_MEMORY_TOTAL: lambda: psutil.virtual_memory().total,
    }  # type: Dict[str, Callable[[], float]]
    process_funs = {
        PROCESS_CPU_TOTAL_NORM_PCT: lambda p: p.cpu_percent(interval=None) / 100.0 / (psutil.cpu_count() or 1),
        PROCESS_MEMORY_SIZE: lambda p: p.memory_info().vms,
        PROCESS_MEMORY_RSS: lambda p: p.memory_info().rss,
    }  # type: Dict[str, Callable[[psutil.Process], float]]

    def __init__(self, config):
        super(CpuMemSet, self).__init__(config)
        self.proc = psutil.Process(os.getpid())
        # The first cpu_percent call only sets the reference point
        psutil.cpu_percent(interval=None)
        self.proc.cpu_percent(interval=None)

    def collect_samples(self):
        samples = {}

        for metric, system_fun in self.system_funs.items():
            try:
                samples[metric] = system_fun()
            except Exception:
                log.debug("Unable to read %s", metric, exc_info=True)

        with self.proc.oneshot():
            for metric, process_fun in self.process_funs.items():
                try:
                    samples[metric] = process_fun(self.proc)
                except Exception:
                    log.debug("Unable to read %s", metric, exc_info=True)

        return samples


class VMSet(MetricSet):
    """Interpreter metrics: garbage collector generations and threads.

    More information at https://docs.python.org/3/library/gc.html
    """

    def collect_samples(self):
        counts = gc.get_count()
        return {
            GC_COUNT_GEN0: counts[0],
            GC_COUNT_GEN1: counts[1],
            GC_COUNT_GEN2: counts[2],
            GC_COLLECTIONS: sum(stat.get("collections", 0) for stat in gc.get_stats()),
            THREAD_COUNT: threading.active_count(),
        }


class SpanScopedSet(MetricSet):
    """Counters aggregated per transaction (and span) between two collections.

    The tracer feeds the set as transactions end; ``collect`` reports one
    metricset per scope and resets the counters.
    """

    def __init__(self, config):
        super(SpanScopedSet, self).__init__(config)
        self._lock = threading.Lock()
        self._scopes = {}  # type: Dict[Tuple, Dict[str, float]]

    def increment(self, scope, samples):
        # type: (Tuple, Dict[str, float]) -> None
        with self._lock:
            counters = self._scopes.setdefault(scope, {})
            for key, value in samples.items():
                counters[key] = counters.get(key, 0) + value

    def collect(self):
        if self.disabled:
            return None

        with self._lock:
            scopes, self._scopes = self._scopes, {}

        if not scopes:
            return None

        return [self.metricset_for(scope, samples) for scope, samples in scopes.items()]

    def metricset_for(self, scope, samples):
        # type: (Tuple, Dict[str, float]) -> Metricset
        return Metricset(samples=samples, transaction={"name": scope[0], "type": scope[1]})

    def observe_transaction(self, transaction):
        # type: (Transaction) -> None
        pass


class BreakdownSet(SpanScopedSet):
    """Self time of the spans of each transaction, per span type and subtype."""

    def __init__(self, config):
        super(BreakdownSet, self).__init__(config)
        self.disabled = not config.breakdown_metrics

    def metricset_for(self, scope, samples):
        transaction_name, transaction_type, span_type, span_subtype = scope
        span = {"type": span_type}
        if span_subtype:
            span["subtype"] = span_subtype
        return Metricset(
            samples=samples,
            transaction={"name": transaction_name, "type": transaction_type},
            span=span,
        )

    def observe_transaction(self, transaction):
        if self.disabled or not transaction.sampled:
            return

        for (span_type, span_subtype), (self_time, count) in transaction.breakdown.items():
            self.increment(
                (transaction.name, transaction.type, span_type, span_subtype),
                {SPAN_SELF_TIME_SUM: int(self_time * 1000000), SPAN_SELF_TIME_COUNT: count},
            )

        if transaction.self_time is not None:
            self.increment(
                (transaction.name, transaction.type, APP_SPAN_TYPE, None),
                {SPAN_SELF_TIME_SUM: int(transaction.self_time * 1000000), SPAN_SELF_TIME_COUNT: 1},
            )


class TransactionSet(SpanScopedSet):
    """Duration of the transactions, per transaction name and type."""

    def observe_transaction(self, transaction):
        if self.disabled or transaction.duration is None:
            return

        samples = {
            TRANSACTION_DURATION_SUM: int(transaction.duration * 1000000),
            TRANSACTION_DURATION_COUNT: 1,
        }
        if self._config.breakdown_metrics and transaction.sampled:
            samples[TRANSACTION_BREAKDOWN_COUNT] = 1

        self.increment((transaction.name, transaction.type), samples)
