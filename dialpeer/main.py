"""
Main code for setting up a dial-peer resolver.
"""

from contextlib import suppress
import logging

from dialpeer._config import Cfg
from dialpeer._resolve import Resolver
import dialpeer.log as log_
from dialpeer.trace import trace_enable

logger = logging.getLogger("main")


def mod_init(cfg="/etc/dialpeer/config.yaml", stderr=False):
    """
    Load the configuration and return a ready `Resolver`.

    A broken configuration raises `ConfigError`; nothing gets resolved
    with it.
    """
    log_.init(stderr=stderr)

    cfg = Cfg(cfg)
    with suppress(KeyError, TypeError):
        trace_enable(cfg["debug"]["trace"])
    logger.debug("Resolver ready: %d origins", len(cfg.origin))
    return Resolver(cfg, logger=logger)
