# Logging setup, and writing a call's events to the log
from __future__ import annotations

import copy
import logging
import logging.config

logger = logging.getLogger("L")

_levels = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "translation": logging.INFO,
    "inbound": logging.INFO,
    "outbound": logging.INFO,
    "final": logging.INFO,
    "start": logging.DEBUG,
    "info": logging.DEBUG,
}


def _level(kind):
    return _levels.get(kind, logging.INFO)


def init(stderr=False, level=logging.DEBUG):
    from . import LOGGING

    cfg = copy.deepcopy(LOGGING)
    cfg["root"]["level"] = level
    if not stderr:
        cfg["root"]["handlers"] = ["null"]
    logging.config.dictConfig(cfg)


def dump_state(st, log=None):
    """Log the events of a resolved call, one line each."""
    if log is None:
        log = logger
    for evt in st.events:
        log.log(_level(evt.kind), "%s %s", evt.kind, evt.message)
