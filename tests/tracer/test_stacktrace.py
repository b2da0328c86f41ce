import os
import sys
import traceback

from apmtrace._trace.stacktrace import _PACKAGE_DIR
from apmtrace._trace.stacktrace import StacktraceBuilder
from apmtrace._trace.stacktrace import capture_backtrace
from apmtrace._trace.stacktrace import is_library_path


def _inner():
    raise KeyError("missing")


def _outer():
    _inner()


def test_build_from_traceback():
    try:
        _outer()
    except KeyError:
        tb = sys.exc_info()[2]

    stacktrace = StacktraceBuilder().build(tb)

    assert stacktrace.type == "error"
    assert [f.function for f in stacktrace.frames] == ["_inner", "_outer", "test_build_from_traceback"]
    frame = stacktrace.frames[0]
    assert frame.abs_path == __file__
    assert frame.context_line == 'raise KeyError("missing")'
    assert not frame.library_frame
    assert len(stacktrace) == 3


def test_build_from_frames_innermost_first():
    stacktrace = StacktraceBuilder().build(traceback.extract_stack(), type="span")

    assert stacktrace.type == "span"
    assert stacktrace.frames[0].function == "test_build_from_frames_innermost_first"


def test_build_from_tuples():
    frames = [("/srv/app/main.py", 1, "main", "run()"), ("/srv/app/run.py", 10, "run", None)]

    stacktrace = StacktraceBuilder().build(frames)

    assert [f.function for f in stacktrace.frames] == ["run", "main"]
    assert stacktrace.frames[0].context_line is None


def test_build_nothing():
    builder = StacktraceBuilder()
    assert builder.build(None) is None
    assert builder.build([]) is None


def test_library_frames():
    assert is_library_path(os.__file__)
    assert is_library_path("/usr/lib/python3/site-packages/lib/module.py")
    assert not is_library_path(__file__)

    stacktrace = StacktraceBuilder().build([(os.__file__, 1, "f", None)])
    frame = stacktrace.frames[0]
    assert frame.library_frame
    assert frame.filename == "os.py"


def test_capture_backtrace():
    backtrace = capture_backtrace()

    assert backtrace[-1].name == "test_capture_backtrace"
    assert not any(f.filename.startswith(_PACKAGE_DIR) for f in backtrace)
