"""
Classes to hold dial-peer data
"""

from __future__ import annotations

from enum import Enum

from ._errors import ConfigError
from ._util import Pattern, apply_rule


class Field(str, Enum):
    CALLING = "calling"
    CALLED = "called"


class Phase(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


class Origin:
    """
    A class of signaling sources, e.g. the platform a call arrives from.

    Calls from a `carrier` origin pick their outbound dial-peer by
    incoming called number instead of by destination pattern.
    """

    def __init__(self, tag, name=None, addr=(), carrier=False):
        self.tag = tag
        self.name = name or tag
        if isinstance(addr, str):
            addr = (addr,)
        self.addr = tuple(addr)
        self.carrier = carrier

    def __repr__(self):
        return f"Origin({self.tag}{' carrier' if self.carrier else ''})"


class Rule:
    def __init__(self, name, field: Field, pattern: Pattern, result: str):
        self.name = name
        self.field = field
        self.pattern = pattern
        self.result = result

    def __call__(self, nr: str) -> str:
        return apply_rule(nr, self)

    def __repr__(self):
        return f"Rule({self.name}: {self.field.value} {self.pattern.source!r} > {self.result!r})"


class Profile:
    def __init__(self, name, field: Field, rule: Rule):
        self.name = name
        self.field = field
        self.rule = rule

    def __repr__(self):
        return f"Profile({self.name}: {self.field.value} rule {self.rule.name})"


class DialPeer:
    """
    Common dial-peer settings.

    `tenant` is informational; `tls` and `srtp` describe the security of
    the call leg.
    """

    inbound = False

    def __init__(self, id, description="", tenant=None, tls=False, srtp=False):  # noqa:A002
        self.id = id
        self.description = description
        self.tenant = tenant
        self.tls = tls
        self.srtp = srtp

    @property
    def security(self) -> dict:
        return dict(tls=self.tls, srtp=self.srtp)

    def info(self) -> dict:
        return dict(id=self.id, description=self.description, tenant=self.tenant, **self.security)


class IngressPeer(DialPeer):
    inbound = True

    def __init__(self, id, origin, **kw):  # noqa:A002
        super().__init__(id, **kw)
        self.origin = origin

    def __repr__(self):
        return f"In({self.id}: {self.origin})"


class EgressPeer(DialPeer):
    """
    An outbound dial-peer.

    Exactly one of @destination (a catalog pattern) and
    @incoming_called (an inline pattern) is set.
    """

    def __init__(self, id, destination=None, incoming_called=None, translations=(), platform=None, **kw):  # noqa:A002
        super().__init__(id, **kw)
        if (destination is None) == (incoming_called is None):
            raise ConfigError(f"Dial-peer {id}: need exactly one of destination and incoming-called")
        self.destination = destination
        self.incoming_called = incoming_called
        self.translations = tuple(translations)
        self.platform = platform

    @property
    def selector(self) -> Pattern:
        if self.destination is not None:
            return self.destination
        return self.incoming_called

    def profiles(self, phase: Phase):
        for ph, prof in self.translations:
            if ph is phase:
                yield prof

    def __repr__(self):
        return f"Out({self.id}: {self.selector.source!r})"
