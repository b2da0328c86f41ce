import os
import sysconfig
import traceback
import types
from typing import Any
from typing import Iterable
from typing import List
from typing import Optional
from typing import Tuple

import attr

from apmtrace.internal.utils.cache import cached


# A frame as given by traceback.FrameSummary or a (filename, lineno, function, line) tuple
RawFrame = Tuple[str, Optional[int], str, Optional[str]]

_PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__))) + os.sep

_sysconfig_paths = sysconfig.get_paths()
_LIBRARY_PATHS = tuple(
    sorted(
        {
            os.path.normpath(_sysconfig_paths[k])
            for k in ("stdlib", "platstdlib", "purelib", "platlib")
            if _sysconfig_paths.get(k)
        },
        key=len,
        reverse=True,
    )
)


@attr.s(frozen=True, slots=True)
class Frame(object):
    filename = attr.ib(type=str)
    abs_path = attr.ib(type=str)
    lineno = attr.ib(type=Optional[int])
    function = attr.ib(type=str)
    context_line = attr.ib(type=Optional[str], default=None)
    library_frame = attr.ib(type=bool, default=False)


@attr.s(eq=False)
class Stacktrace(object):
    """Frames of a stacktrace, innermost first."""

    frames = attr.ib(factory=list, type=List[Frame])
    type = attr.ib(default="error", type=str)

    def __len__(self):
        return len(self.frames)


def is_library_path(abs_path):
    # type: (str) -> bool
    return "site-packages" in abs_path or "dist-packages" in abs_path or abs_path.startswith(_LIBRARY_PATHS)


@cached(maxsize=2048)
def _build_frame(raw):
    # type: (RawFrame) -> Frame
    abs_path, lineno, function, line = raw
    library = is_library_path(abs_path)
    return Frame(
        filename=_relative_filename(abs_path, library),
        abs_path=abs_path,
        lineno=lineno,
        function=function,
        context_line=line.strip() if line else None,
        library_frame=library,
    )


def _relative_filename(abs_path, library):
    # type: (str, bool) -> str
    if library:
        for root in _LIBRARY_PATHS:
            if abs_path.startswith(root + os.sep):
                return abs_path[len(root) + 1 :]
        return os.path.basename(abs_path)
    try:
        return os.path.relpath(abs_path)
    except ValueError:
        # Different drive on windows
        return abs_path


class StacktraceBuilder(object):
    """Resolve tracebacks and captured stacks into :class:`Stacktrace` objects.

    Frames are memoized so that resolving the same call sites again is cheap.
    """

    def build(self, backtrace, type="error"):
        # type: (Any, str) -> Optional[Stacktrace]
        """Build a stacktrace from a traceback object or from frames ordered outermost first.

        The result lists the innermost frame first. Returns None when there is no frame.
        """
        raw_frames = self._raw_frames(backtrace)
        if not raw_frames:
            return None
        frames = [_build_frame(raw) for raw in reversed(raw_frames)]
        return Stacktrace(frames=frames, type=type)

    @staticmethod
    def _raw_frames(backtrace):
        # type: (Any) -> List[RawFrame]
        if backtrace is None:
            return []
        if isinstance(backtrace, types.TracebackType):
            backtrace = traceback.extract_tb(backtrace)
        return [_to_raw(frame) for frame in backtrace]  # type: ignore[union-attr]


def _to_raw(frame):
    # type: (Iterable[Any]) -> RawFrame
    filename, lineno, function, line = tuple(frame)[:4]
    return (filename, lineno, function, line)


def capture_backtrace():
    # type: () -> traceback.StackSummary
    """Capture the current stack, outermost frame first, leaving out the frames of this package."""
    return traceback.StackSummary.from_list(
        [frame for frame in traceback.extract_stack() if not frame.filename.startswith(_PACKAGE_DIR)]
    )
