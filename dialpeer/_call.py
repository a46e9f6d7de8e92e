"""
The record of one call resolution.
"""

from __future__ import annotations

from enum import Enum


class State(str, Enum):
    START = "start"
    INGRESS_MATCHED = "ingress_matched"
    EGRESS_MATCHED = "egress_matched"
    TRANSLATING = "translating"
    DONE = "done"
    FAILED = "failed"


# allowed transitions; nothing is ever re-entered
_next = {
    State.START: {State.INGRESS_MATCHED, State.FAILED},
    State.INGRESS_MATCHED: {State.EGRESS_MATCHED, State.FAILED},
    State.EGRESS_MATCHED: {State.TRANSLATING},
    State.TRANSLATING: {State.DONE},
    State.DONE: set(),
    State.FAILED: set(),
}


class Event:
    """
    One entry of a call's event log.

    @kind is one of start, inbound, outbound, warning, translation, info,
    final, error. Additional data is kept in @data.
    """

    __slots__ = ("kind", "message", "data")

    def __init__(self, kind, message, **data):
        self.kind = kind
        self.message = message
        self.data = data

    def __getitem__(self, k):
        return self.data[k]

    def as_dict(self):
        return dict(kind=self.kind, message=self.message, **self.data)

    def __repr__(self):
        return f"Event({self.kind}: {self.message})"


class CallState:
    """
    Everything a resolution found out about one call.

    A resolver fills this in while it runs and seals it before returning
    it; after that, attributes can no longer be assigned.

    @calling_steps and @called_steps hold the value of the respective
    number after each translation step, one entry per applied profile.
    """

    _sealed = False

    def __init__(self, origin, calling, called):
        self.origin = origin
        self.calling = calling
        self.called = called
        self.state = State.START

        self.ingress = None
        self.egress = None
        self.platform = None

        # working copy
        self.cur_calling = calling
        self.cur_called = called

        self.calling_steps = []
        self.called_steps = []
        self.translations = []
        self.final_calling = None
        self.final_called = None

        self.warnings = []
        self.error = None
        self.events = []

    def __setattr__(self, k, v):
        if self._sealed:
            raise AttributeError(f"CallState is sealed: {k}")
        super().__setattr__(k, v)

    def goto(self, state: State):
        if state not in _next[self.state]:
            raise RuntimeError(f"Bad transition {self.state.value} > {state.value}")
        self.state = state

    def add(self, kind, message, **data) -> Event:
        evt = Event(kind, message, **data)
        self.events.append(evt)
        return evt

    def warn(self, warning):
        self.warnings.append(warning)
        self.add("warning", str(warning), warning=warning)

    def fail(self, error):
        self.error = error
        self.add("error", str(error), error=error)
        self.goto(State.FAILED)

    def seal(self):
        for k in ("calling_steps", "called_steps", "translations", "warnings", "events"):
            setattr(self, k, tuple(getattr(self, k)))
        del self.cur_calling
        del self.cur_called
        super().__setattr__("_sealed", True)

    @property
    def ok(self) -> bool:
        return self.error is None and self.state is State.DONE

    def to_dict(self) -> dict:
        """A plain-data view of the result, e.g. for rendering."""
        return dict(
            origin=self.origin,
            calling=self.calling,
            called=self.called,
            state=self.state.value,
            ingress=None if self.ingress is None else self.ingress.info(),
            egress=None if self.egress is None else self.egress.info(),
            platform=self.platform,
            calling_steps=list(self.calling_steps),
            called_steps=list(self.called_steps),
            translations=[dict(t) for t in self.translations],
            final_calling=self.final_calling,
            final_called=self.final_called,
            warnings=[str(w) for w in self.warnings],
            error=None if self.error is None else str(self.error),
            events=[
                {k: (str(v) if isinstance(v, Exception) else v) for k, v in e.as_dict().items()}
                for e in self.events
            ],
        )

    def __repr__(self):
        if self.error is not None:
            return f"Call({self.origin}: {self.calling} > {self.called}: {self.error})"
        return (
            f"Call({self.origin}: {self.calling} > {self.called}"
            f" = {self.final_calling} > {self.final_called})"
        )
