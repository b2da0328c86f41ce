import time
from typing import Any
from typing import Dict
from typing import Optional

import attr

from apmtrace._trace.context import Context
from apmtrace._trace.stacktrace import Stacktrace
from apmtrace.internal import rand


@attr.s(eq=False)
class ErrorException(object):
    message = attr.ib(type=str)
    type = attr.ib(type=str)
    module = attr.ib(default=None, type=Optional[str])
    handled = attr.ib(default=True, type=bool)
    attributes = attr.ib(default=None, type=Optional[Dict[str, Any]])
    stacktrace = attr.ib(default=None, type=Optional[Stacktrace])

    @classmethod
    def from_exception(cls, exception, handled=True):
        # type: (BaseException, bool) -> ErrorException
        exc_type = type(exception)
        module = exc_type.__module__
        attributes = {k: v for k, v in getattr(exception, "__dict__", {}).items() if not k.startswith("_")}
        return cls(
            message="%s: %s" % (exc_type.__name__, exception),
            type=exc_type.__name__,
            module=None if module == "builtins" else module,
            handled=handled,
            attributes=attributes or None,
        )


@attr.s(eq=False)
class ErrorLog(object):
    message = attr.ib(type=str)
    level = attr.ib(default="error", type=str)
    logger_name = attr.ib(default="default", type=str)
    param_message = attr.ib(default=None, type=Optional[str])
    stacktrace = attr.ib(default=None, type=Optional[Stacktrace])


@attr.s(eq=False)
class Error(object):
    """An exception or a logged message, with the trace it happened in."""

    context = attr.ib(factory=Context, type=Context)
    id = attr.ib(factory=rand.span_id, type=str)
    timestamp = attr.ib(factory=time.time, type=float)
    exception = attr.ib(default=None, type=Optional[ErrorException])
    log = attr.ib(default=None, type=Optional[ErrorLog])
    culprit = attr.ib(default=None, type=Optional[str])
    transaction_id = attr.ib(default=None, type=Optional[str])
    trace_id = attr.ib(default=None, type=Optional[str])
    parent_id = attr.ib(default=None, type=Optional[str])
    transaction = attr.ib(default=None, type=Optional[Dict[str, Any]])
