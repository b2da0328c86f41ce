from apmtrace._version import __version__  # noqa:I001
from apmtrace._trace.context import Context
from apmtrace._trace.error import Error
from apmtrace._trace.normalizers import Normalizer
from apmtrace._trace.normalizers import Normalizers
from apmtrace._trace.record import Record
from apmtrace._trace.span import Span
from apmtrace._trace.tracer import ExistingTransactionError
from apmtrace._trace.tracer import Tracer
from apmtrace._trace.transaction import Transaction
from apmtrace.constants import SKIP
from apmtrace.ext.sql import summarize
from apmtrace.settings import Config


__all__ = [
    "__version__",
    "Config",
    "Context",
    "Error",
    "ExistingTransactionError",
    "Normalizer",
    "Normalizers",
    "Record",
    "SKIP",
    "Span",
    "Tracer",
    "Transaction",
    "summarize",
]
