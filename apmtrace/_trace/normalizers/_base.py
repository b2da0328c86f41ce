from typing import TYPE_CHECKING
from typing import Any
from typing import Dict
from typing import Iterator
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Type
from typing import Union

from apmtrace._trace.context import Context
from apmtrace._trace.stacktrace import capture_backtrace
from apmtrace.constants import SKIP
from apmtrace.constants import _Skip
from apmtrace.internal.logger import get_logger


if TYPE_CHECKING:  # pragma: no cover
    from apmtrace._trace.span import Span
    from apmtrace._trace.transaction import Transaction
    from apmtrace.settings.config import Config


log = get_logger(__name__)


SpanDescriptor = Tuple[str, Optional[str], Optional[str], Optional[str], Optional[Context]]
Normalized = Union[SpanDescriptor, _Skip]

_BUILTINS = {}  # type: Dict[str, Type[Normalizer]]


class Normalizer(object):
    """Turn the payload of an instrumentation event into a span descriptor.

    Subclasses defining ``event_names`` are registered as built-in normalizers
    for those events and instantiated by :meth:`Normalizers.build`.
    """

    event_names = ()  # type: Sequence[str]

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        if "event_names" not in cls.__dict__:
            return

        for event_name in cls.event_names:
            _BUILTINS[event_name] = cls

    def __init__(self, config):
        # type: (Config) -> None
        self._config = config

    def normalize(self, transaction, name, payload):
        # type: (Transaction, str, Dict[str, Any]) -> Normalized
        """Return ``(name, type, subtype, action, context)`` or ``SKIP``."""
        return SKIP

    def stacktrace_top(self, span):
        # type: (Span) -> Optional[Any]
        return None

    def source_location(self, payload):
        # type: (Dict[str, Any]) -> Optional[Any]
        return None

    def backtrace(self, name, payload):
        # type: (str, Dict[str, Any]) -> Optional[Any]
        return capture_backtrace()


class Normalizers(object):
    """Registry of the normalizers by exact event name."""

    def __init__(self, normalizers=None):
        # type: (Optional[Dict[str, Normalizer]]) -> None
        self._normalizers = dict(normalizers or {})  # type: Dict[str, Normalizer]

    def __repr__(self):
        return "Normalizers(%r)" % (sorted(self._normalizers),)

    def __contains__(self, name):
        return name in self._normalizers

    def __iter__(self):
        # type: () -> Iterator[str]
        return iter(self._normalizers)

    @classmethod
    def build(cls, config):
        # type: (Config) -> Normalizers
        """Instantiate every built-in normalizer, once per class."""
        instances = {}  # type: Dict[Type[Normalizer], Normalizer]
        normalizers = {}
        for name, normalizer_cls in _BUILTINS.items():
            if normalizer_cls not in instances:
                instances[normalizer_cls] = normalizer_cls(config)
            normalizers[name] = instances[normalizer_cls]
        return cls(normalizers)

    def register(self, name, normalizer):
        # type: (str, Normalizer) -> None
        log.debug("Registering normalizer %r for %s", normalizer, name)
        self._normalizers[name] = normalizer

    def unregister(self, name):
        # type: (str) -> None
        self._normalizers.pop(name, None)

    def keys(self):
        # type: () -> Sequence[str]
        return tuple(self._normalizers)

    def for_name(self, name):
        # type: (str) -> Optional[Normalizer]
        return self._normalizers.get(name)

    def normalize(self, transaction, name, payload):
        # type: (Transaction, str, Dict[str, Any]) -> Normalized
        normalizer = self._normalizers.get(name)
        if normalizer is None:
            return SKIP
        return normalizer.normalize(transaction, name, payload)

    def backtrace(self, name, payload):
        # type: (str, Dict[str, Any]) -> Optional[Any]
        normalizer = self._normalizers.get(name)
        if normalizer is None:
            return None
        return normalizer.backtrace(name, payload)
