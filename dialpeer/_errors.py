"""
Error types.

`ConfigError` and its subclasses are raised while loading a configuration.
`CallError` subclasses are never raised by the resolver; they are stored in
the `CallState` of the call they apply to.
"""

from __future__ import annotations


class ConfigError(ValueError):
    pass


class PatternError(ConfigError):
    def __str__(self):
        return f"Bad pattern {self.args[0]!r}: {self.args[1]}"


class UnknownReference(ConfigError):
    """A name that's used somewhere but never defined.

    Arguments: kind, name, user.
    """

    def __str__(self):
        return f"Unknown {self.args[0]} {self.args[1]!r} in {self.args[2]}"


class CallError(Exception):
    fatal = True

    def __eq__(self, other):
        return type(self) is type(other) and self.args == other.args

    def __hash__(self):
        return hash((type(self), self.args))


class NoIngressMatch(CallError):
    def __init__(self, origin):
        super().__init__(origin)
        self.origin = origin

    def __str__(self):
        return f"No inbound dial-peer for origin {self.origin!r}"


class NoEgressMatch(CallError):
    def __init__(self, origin, called):
        super().__init__(origin, called)
        self.origin = origin
        self.called = called

    def __str__(self):
        return f"No outbound dial-peer for {self.called!r} (from {self.origin!r})"


class AmbiguousEgressMatch(CallError):
    fatal = False

    def __init__(self, selected, candidates):
        candidates = tuple(candidates)
        super().__init__(selected, candidates)
        self.selected = selected
        self.candidates = candidates

    def __str__(self):
        ids = ", ".join(str(c) for c in self.candidates)
        return f"Multiple outbound dial-peers matched ({ids}). Selected {self.selected}."
