from collections import OrderedDict
from functools import wraps
from inspect import FullArgSpec
from inspect import getfullargspec
from inspect import isgeneratorfunction
from threading import RLock
from typing import Any
from typing import Callable
from typing import TypeVar


miss = object()

T = TypeVar("T")
F = Callable[[T], Any]


class LRUCache(OrderedDict):
    """Bounded LRU cache implementation.

    This cache is designed for memoizing functions with a single hashable
    argument and is safe to share between threads. Reading a key refreshes
    its recency; inserting a new key in a full cache evicts the least recently
    used one, so the cache never holds more than ``maxsize`` entries.
    """

    def __init__(self, maxsize: int = 256) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1, got %r" % (maxsize,))
        super(LRUCache, self).__init__()
        self.maxsize = maxsize
        self.lock = RLock()

    def get(self, key: T, f: F) -> Any:  # type: ignore[override]
        """Get a value from the cache.

        If the value with the given key is not in the cache, the expensive
        function ``f`` is called on the key to generate it. The return value is
        then stored in the cache and returned to the caller.
        """
        with self.lock:
            value = super(LRUCache, self).get(key, miss)
            if value is not miss:
                self.move_to_end(key)
                return value

        # Computed outside of the lock: two threads missing on the same key
        # may both call f, the last one to insert wins.
        value = f(key)

        with self.lock:
            if key in self:
                self.move_to_end(key)
            else:
                while len(self) >= self.maxsize:
                    self.popitem(last=False)
            self[key] = value

        return value


def cached(maxsize: int = 256) -> Callable[[F], F]:
    """Decorator for memoizing functions of a single argument (LRU policy)."""

    def cached_wrapper(f: F) -> F:
        cache = LRUCache(maxsize)

        def cached_f(key: T) -> Any:
            return cache.get(key, f)

        cached_f.cache = cache  # type: ignore[attr-defined]
        cached_f.invalidate = cache.clear  # type: ignore[attr-defined]

        return cached_f

    return cached_wrapper


def is_not_void_function(f: Callable, argspec: FullArgSpec) -> bool:
    return bool(
        argspec.args
        or argspec.varargs
        or argspec.varkw
        or argspec.defaults
        or argspec.kwonlyargs
        or argspec.kwonlydefaults
        or isgeneratorfunction(f)
    )


def callonce(f: Callable[[], Any]) -> Callable[[], Any]:
    """Decorator for executing a function only the first time.

    The result, or the exception raised, is remembered and returned (raised)
    again by every following call.
    """
    argspec = getfullargspec(f)
    if is_not_void_function(f, argspec):
        raise ValueError("The callonce decorator can only be applied to functions with no arguments")

    @wraps(f)
    def _():
        # type: () -> Any
        try:
            retval, exc = f.__callonce_result__  # type: ignore[attr-defined]
        except AttributeError:
            try:
                retval = f()
                exc = None
            except Exception as e:
                retval = None
                exc = e
            f.__callonce_result__ = retval, exc  # type: ignore[attr-defined]

        if exc is not None:
            raise exc

        return retval

    return _
