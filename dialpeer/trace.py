# Call tracer for debugging resolutions

import functools
import logging
import os
import sys

from . import thread_state

__export__ = [
    "trace",
    "trace_enable",
]

tracelog = logging.getLogger("T")

_pkg = os.path.dirname(os.path.abspath(__file__)) + os.sep
_own = {"trace.py", "log.py"}

# set default values
type(thread_state).log_level = 0


def fpos(frame):
    fn = frame.f_code.co_filename
    fb = os.path.basename(fn)
    if fb == "__init__.py":
        fb = os.path.basename(os.path.dirname(fn))
    elif fb.endswith(".py"):
        fb = fb[:-3]
    return f"{fb}:{frame.f_lineno}"


def fname(frame):
    if "self" in frame.f_locals:
        class_name = frame.f_locals["self"].__class__.__name__
        return f"{class_name}.{frame.f_code.co_name}"
    else:
        return frame.f_code.co_name


def log_frame(frame, add=""):
    indent = " " * thread_state.log_level
    tracelog.debug("%d %-14s %s%s %s", thread_state.id, fpos(frame), indent, fname(frame), add)


def skip_log(frame):
    fn = os.path.abspath(frame.f_code.co_filename)
    if not fn.startswith(_pkg):
        return True
    if os.path.basename(fn) in _own:
        return True
    # comprehensions, lambdas, genexprs
    return frame.f_code.co_name[0] == "<"


def _tracer(frame, event, arg):
    if event != "call" or skip_log(frame):
        return None
    thread_state.log_level += 1
    log_frame(frame, ">")
    return _local


def _local(frame, event, arg):
    if event == "return":
        log_frame(frame, f"< {arg !r}")
        thread_state.log_level -= 1
    elif event == "exception":
        log_frame(frame, f"E {arg[1] !r}")
    return _local


_do_trace = False


def trace(proc):
    """
    A wrapper that traces a function
    """

    @functools.wraps(proc)
    def pac(*a, **k):
        if not _do_trace:
            return proc(*a, **k)

        tf = sys.gettrace()
        level = thread_state.log_level
        sys.settrace(_tracer)
        try:
            return proc(*a, **k)
        finally:
            sys.settrace(tf)
            thread_state.log_level = level

    return pac


def trace_enable(flag):
    global _do_trace
    _do_trace = bool(flag)
