"""
Call resolution: ingress match, egress match, number translation.
"""

from __future__ import annotations

import logging

from ._call import CallState, State
from ._errors import AmbiguousEgressMatch, NoEgressMatch, NoIngressMatch
from ._peer import EgressPeer, Field, IngressPeer, Phase, Profile
from ._util import apply_rule, match
from .trace import trace


class Resolver:
    """
    Resolves calls against a loaded configuration.

    The configuration is never modified, so one resolver may be used by
    any number of threads at the same time.
    """

    def __init__(self, cfg, logger=None):
        self.cfg = cfg
        self.log = logger or logging.getLogger(__name__)

        self.SRC = {}
        for tag, origin in cfg.origin.items():
            for addr in origin.addr:
                self.SRC[addr] = tag

    def origin_of(self, addr) -> str | None:
        return self.SRC.get(addr)

    def ingress(self, origin) -> IngressPeer | None:
        # table order, not a dict: the first claim wins
        for peer in self.cfg.ingress:
            if peer.origin == origin:
                return peer
        return None

    def egress(self, origin, called: str) -> tuple[EgressPeer | None, list[EgressPeer]]:
        """Find the outbound dial-peer for @called.

        Returns the selected peer (or `None`) and the list of all
        candidates, best first.
        """
        o = self.cfg.origin.get(origin)
        if o is not None and o.carrier:
            cands = [p for p in self.cfg.egress if p.incoming_called is not None and match(p.incoming_called, called)]
        else:
            cands = [p for p in self.cfg.egress if p.destination is not None and match(p.destination, called)]
        if not cands:
            return None, cands

        if self.cfg.longest:
            # stable: equal lengths stay in table order
            cands.sort(key=lambda p: len(p.selector.source), reverse=True)

        pref = self.cfg.prefer.get(origin)
        if pref is not None:
            for p in cands:
                if p.id == pref:
                    return p, cands
        return cands[0], cands

    def apply_profile(self, st: CallState, phase: Phase, profile: Profile):
        fld = profile.field
        old = st.cur_calling if fld is Field.CALLING else st.cur_called
        new = apply_rule(old, profile.rule)

        if new != old:
            rec = dict(field=fld.value, old=old, new=new, profile=profile.name, rule=profile.rule.name, phase=phase.value)
            st.translations.append(rec)
            st.add(
                "translation",
                f"{fld.value} translated ({phase.value}) by {profile.name!r} (rule {profile.rule.name}): {old} > {new}",
                **rec,
            )
            if fld is Field.CALLING:
                st.cur_calling = new
            else:
                st.cur_called = new
        else:
            st.add(
                "info",
                f"No {fld.value} translation by {profile.name!r} ({phase.value})",
                field=fld.value,
                profile=profile.name,
                phase=phase.value,
            )
        st.calling_steps.append(st.cur_calling)
        st.called_steps.append(st.cur_called)

    @trace
    def resolve_call(self, origin, calling: str, called: str) -> CallState:
        """
        Route one call.

        Always returns a sealed `CallState`. If routing fails, its
        `error` is set and the steps after the failure are missing.
        """
        st = CallState(origin, calling, called)
        try:
            self._resolve(st)
        finally:
            st.seal()
        if st.error is not None:
            self.log.info("Call from %s: %s > %s: %s", origin, calling, called, st.error)
        else:
            self.log.debug("Call from %s: %s > %s: %r", origin, calling, called, st)
        return st

    def resolve_from(self, addr, calling: str, called: str) -> CallState:
        """Route a call that arrived from @addr."""
        origin = self.origin_of(addr)
        if origin is None:
            self.log.debug("Unknown source %s", addr)
        return self.resolve_call(origin, calling, called)

    def _resolve(self, st):
        st.add("start", f"Call initiated: calling {st.calling}, called {st.called}")

        ing = self.ingress(st.origin)
        if ing is None:
            st.fail(NoIngressMatch(st.origin))
            return
        st.ingress = ing
        st.goto(State.INGRESS_MATCHED)
        st.add("inbound", f"Inbound dial-peer {ing.id} ({ing.description})", id=ing.id)

        egr, cands = self.egress(st.origin, st.cur_called)
        if egr is None:
            st.fail(NoEgressMatch(st.origin, st.cur_called))
            return
        if len(cands) > 1:
            w = AmbiguousEgressMatch(egr.id, [p.id for p in cands])
            self.log.warning("%s", w)
            st.warn(w)
        st.egress = egr
        st.platform = self.cfg.platform_of(egr)
        st.goto(State.EGRESS_MATCHED)
        st.add("outbound", f"Outbound dial-peer {egr.id} ({egr.description})", id=egr.id, platform=st.platform)

        st.goto(State.TRANSLATING)
        for phase in (Phase.INCOMING, Phase.OUTGOING):
            for prof in egr.profiles(phase):
                self.apply_profile(st, phase, prof)

        st.final_calling = st.cur_calling
        st.final_called = st.cur_called
        st.goto(State.DONE)
        st.add("final", f"Final call state: calling {st.final_calling}, called {st.final_called}")
