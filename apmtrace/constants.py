# Record kinds handed to the sink
TRANSACTION = "transaction"
SPAN = "span"
ERROR = "error"
METRICSET = "metricset"

RECORD_KINDS = frozenset((TRANSACTION, SPAN, ERROR, METRICSET))

# Metric producer keys
SYSTEM_METRICS = "system"
VM_METRICS = "vm"
BREAKDOWN_METRICS = "breakdown"
TRANSACTION_METRICS = "transaction"

DEFAULT_TRANSACTION_TYPE = "custom"
DEFAULT_SPAN_TYPE = "custom"


class _Skip(object):
    """Returned by a normalizer that chose not to trace an event."""

    __slots__ = ()

    def __repr__(self):
        return "SKIP"

    def __reduce__(self):
        return "SKIP"


SKIP = _Skip()
