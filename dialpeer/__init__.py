# everybody needs these
from __future__ import annotations

import logging
import threading

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(levelname)s %(name)s T%(thread)d %(message)s'
            },
        },
    'handlers': {
        'null': {
            'class': 'logging.NullHandler',
            },
        'stderr': {
            'class': 'logging.StreamHandler',
            'stream': 'ext://sys.stderr',
            'formatter': 'verbose',
            'level': logging.DEBUG,
            },
        },
    'root': {
        'handlers': ['stderr'],
        'level': logging.DEBUG,
        },
    }


class _State(threading.local):
    # runs once in each thread that touches it
    def __init__(self):
        self.id = threading.get_ident()


thread_state = _State()

from . import log as log  # noqa:E402,PLC0414
from ._call import CallState, Event, State  # noqa:E402
from ._config import Cfg, load_configuration  # noqa:E402
from ._errors import (  # noqa:E402
    AmbiguousEgressMatch,
    CallError,
    ConfigError,
    NoEgressMatch,
    NoIngressMatch,
    PatternError,
    UnknownReference,
)
from ._peer import EgressPeer, Field, IngressPeer, Origin, Phase, Profile, Rule  # noqa:E402
from ._resolve import Resolver  # noqa:E402
from ._util import MatchResult, Pattern, apply_rule, compile_pattern, match  # noqa:E402

__all__ = [
    "AmbiguousEgressMatch",
    "CallError",
    "CallState",
    "Cfg",
    "ConfigError",
    "EgressPeer",
    "Event",
    "Field",
    "IngressPeer",
    "MatchResult",
    "NoEgressMatch",
    "NoIngressMatch",
    "Origin",
    "Pattern",
    "PatternError",
    "Phase",
    "Profile",
    "Resolver",
    "Rule",
    "State",
    "UnknownReference",
    "apply_rule",
    "compile_pattern",
    "load_configuration",
    "match",
    "thread_state",
]
