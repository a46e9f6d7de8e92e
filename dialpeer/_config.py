"""
Config file analysis

The configuration is a YAML file::

    debug:
      trace: false

    # Signaling sources. Calls from a carrier origin select their
    # outbound dial-peer by incoming called number.
    origin:
      zoom:
        name: Zoom Phone
        addr: ["144.195.121.212", "206.247.121.212"]
      cucm:
        name: CUCM
        addr: "192.168.210.21"
      itsp:
        name: PSTN (ITSP)
        addr: "192.168.130.5"
        carrier: true

    # How to pick among several matching outbound dial-peers
    policy:
      longest: true  # longest pattern source wins; false: table order
      prefer:  # this dial-peer wins outright if it matched at all
        zoom: 1100

    # Destination classification, first hit wins
    platform:
    - match: CUCM  # substring of the description
      name: CUCM
    - destination: ["110"]  # destination pattern names
      name: PSTN

    # Numbering plan. These are usually kept in a separate file.
    pattern: !include plan/patterns.yaml
    rule:
      "301":
        type: called
        match: '^\\+1620555(\\d{4})$'
        result: "101$1"

    profile:
      IN_PSTN_TO_ZOOM:
        target: called
        rule: "301"

    dial-peer:
    - id: 1000
      type: inbound
      description: IN_ZOOM_TO_CUBE
      origin: zoom
      tls: true
      srtp: true

    - id: 1010
      type: outbound
      description: OUT_ZOOM_TO_CUCM
      destination: "101"   # a name from `pattern`
      translate:
      - outgoing: OUT_ZOOM_TO_CUCM_CPN

    - id: 3010
      type: outbound
      description: IN_ITSP_TO_ZOOM
      incoming-called: '^\\+1620555\\d{4}$'
      translate:
      - incoming: IN_PSTN_TO_ZOOM

Every name that's referenced must exist; problems are reported by
raising `ConfigError` while loading.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

import yaml

from ._errors import ConfigError, UnknownReference
from ._peer import EgressPeer, Field, IngressPeer, Origin, Phase, Profile, Rule
from ._util import compile_pattern, template_refs

logger = logging.getLogger(__name__)

k_sections = ("debug", "origin", "policy", "platform", "pattern", "rule", "profile", "dial-peer")
k_peer_opt = ("description", "tenant", "tls", "srtp")
k_peer = ("id", "type") + k_peer_opt


class IncludeLoader(yaml.SafeLoader):
    def __init__(self, base, stream):
        self.base = base
        super().__init__(stream)


def load_include(loader, node):
    fn = os.path.join(loader.base, loader.construct_scalar(node))
    with open(fn) as f:
        return _load(os.path.dirname(fn), f)


IncludeLoader.add_constructor("!include", load_include)


def _load(base, stream):
    loader = IncludeLoader(base, stream)
    try:
        return loader.get_single_data()
    finally:
        loader.dispose()


def _name(n):
    # YAML turns 101 into an integer
    if isinstance(n, (int, str)) and not isinstance(n, bool):
        return str(n)
    raise ConfigError(f"Name {n!r} must be a string")


def _section(cfg, k, typ=Mapping):
    v = cfg.get(k)
    if v is None:
        return {} if typ is Mapping else ()
    if not isinstance(v, typ) or isinstance(v, str):
        raise ConfigError(f"Section {k!r} must be a {'mapping' if typ is Mapping else 'list'}")
    return v


def _field(v, where) -> Field:
    try:
        return Field(v)
    except ValueError:
        raise ConfigError(f"{where}: {v!r} is neither 'calling' nor 'called'") from None


class Cfg:
    """
    A loaded and checked configuration.

    @cfg is either the path of a YAML file or a mapping with the same
    structure.
    """

    def __init__(self, cfg="/etc/dialpeer/config.yaml"):
        if isinstance(cfg, Mapping):
            cfg = dict(cfg)
        else:
            try:
                with open(cfg) as f:
                    cfg = _load(os.path.dirname(os.fspath(cfg)), f)
            except OSError as exc:
                raise ConfigError(f"Cannot read {cfg}: {exc}") from exc
            except yaml.YAMLError as exc:
                raise ConfigError(f"Cannot parse {cfg}: {exc}") from exc
        if not isinstance(cfg, Mapping):
            raise ConfigError("The configuration must be a mapping")

        for k in cfg:
            if k not in k_sections:
                raise ConfigError(f"Unknown section {k!r}")
        self.cfg = cfg

        self.origin = {}
        for tag, od in _section(cfg, "origin").items():
            tag = _name(tag)
            try:
                self.origin[tag] = Origin(tag, **(od or {}))
            except TypeError as exc:
                raise ConfigError(f"Origin {tag}: {exc}") from None
        if not self.origin:
            raise ConfigError("No origins")

        self.patterns = {}
        for n, src in _section(cfg, "pattern").items():
            n = _name(n)
            self.patterns[n] = compile_pattern(src, n)

        self.rules = {}
        for n, rd in _section(cfg, "rule").items():
            n = _name(n)
            self.rules[n] = self._rule(n, rd)

        self.profiles = {}
        for n, pd in _section(cfg, "profile").items():
            n = _name(n)
            self.profiles[n] = self._profile(n, pd)

        self.peers = []
        self.ingress = []
        self.egress = []
        ids = set()
        for pd in _section(cfg, "dial-peer", list):
            peer = self._peer(pd)
            if peer.id in ids:
                raise ConfigError(f"Duplicate dial-peer {peer.id}")
            ids.add(peer.id)
            self.peers.append(peer)
            if peer.inbound:
                self.ingress.append(peer)
            else:
                self.egress.append(peer)

        self._policy(_section(cfg, "policy"), ids)
        self._platforms(_section(cfg, "platform", list))
        self._check_origins()

        logger.info(
            "Loaded %d patterns, %d rules, %d profiles, %d dial-peers",
            len(self.patterns),
            len(self.rules),
            len(self.profiles),
            len(self.peers),
        )

    def __getitem__(self, k):
        return self.cfg[k]

    def _rule(self, n, rd):
        where = f"rule {n}"
        try:
            src = rd["match"]
            res = rd["result"]
            field = rd["type"]
        except (KeyError, TypeError):
            raise ConfigError(f"{where}: needs 'type', 'match' and 'result'") from None
        if not isinstance(res, str):
            raise ConfigError(f"{where}: result {res!r} must be a string")
        pat = compile_pattern(src)
        if bad := sorted(r for r in template_refs(res) if r > pat.groups):
            raise ConfigError(f"{where}: result {res!r} refers to missing group(s) {bad}")
        return Rule(n, _field(field, where), pat, res)

    def _profile(self, n, pd):
        where = f"profile {n}"
        try:
            rn = _name(pd["rule"])
            field = pd["target"]
        except (KeyError, TypeError):
            raise ConfigError(f"{where}: needs 'target' and 'rule'") from None
        try:
            rule = self.rules[rn]
        except KeyError:
            raise UnknownReference("rule", rn, where) from None
        field = _field(field, where)
        if field is not rule.field:
            raise ConfigError(f"{where}: targets {field.value} but rule {rn} is for {rule.field.value}")
        return Profile(n, field, rule)

    def _peer(self, pd):
        if not isinstance(pd, Mapping) or "id" not in pd:
            raise ConfigError(f"Dial-peer {pd!r} has no id")
        pid = pd["id"]
        where = f"dial-peer {pid}"
        kw = {k: pd[k] for k in k_peer_opt if k in pd}
        if not isinstance(kw.get("description", ""), str):
            raise ConfigError(f"{where}: description {kw['description']!r} must be a string")

        typ = pd.get("type")
        if typ == "inbound":
            if (extra := set(pd) - set(k_peer) - {"origin"}):
                raise ConfigError(f"{where}: unknown keys {sorted(extra)}")
            try:
                tag = _name(pd["origin"])
            except KeyError:
                raise ConfigError(f"{where}: needs an origin") from None
            if tag not in self.origin:
                raise UnknownReference("origin", tag, where)
            return IngressPeer(pid, tag, **kw)

        if typ != "outbound":
            raise ConfigError(f"{where}: type {typ!r} is neither 'inbound' nor 'outbound'")
        if (extra := set(pd) - set(k_peer) - {"destination", "incoming-called", "translate", "platform"}):
            raise ConfigError(f"{where}: unknown keys {sorted(extra)}")

        dest = icn = None
        if (dn := pd.get("destination")) is not None:
            dn = _name(dn)
            try:
                dest = self.patterns[dn]
            except KeyError:
                raise UnknownReference("pattern", dn, where) from None
        if (src := pd.get("incoming-called")) is not None:
            icn = compile_pattern(src)

        trans = []
        for t in pd.get("translate") or ():
            if not isinstance(t, Mapping) or len(t) != 1:
                raise ConfigError(f"{where}: translation {t!r} must be 'incoming: NAME' or 'outgoing: NAME'")
            (ph, pn), = t.items()
            try:
                ph = Phase(ph)
            except ValueError:
                raise ConfigError(f"{where}: phase {ph!r} is neither 'incoming' nor 'outgoing'") from None
            pn = _name(pn)
            try:
                trans.append((ph, self.profiles[pn]))
            except KeyError:
                raise UnknownReference("profile", pn, where) from None

        return EgressPeer(pid, destination=dest, incoming_called=icn, translations=trans, platform=pd.get("platform"), **kw)

    def _policy(self, pol, ids):
        self.longest = bool(pol.get("longest", True))
        self.prefer = {}
        for tag, pid in _section(pol, "prefer").items():
            tag = _name(tag)
            if tag not in self.origin:
                raise UnknownReference("origin", tag, "policy")
            if pid not in ids:
                raise UnknownReference("dial-peer", pid, f"policy for {tag}")
            self.prefer[tag] = pid

    def _platforms(self, pls):
        self.platforms = []
        for pl in pls:
            if not isinstance(pl, Mapping) or "name" not in pl:
                raise ConfigError(f"Platform {pl!r} has no name")
            if not isinstance(pl.get("match", ""), (str, type(None))):
                raise ConfigError(f"Platform {pl['name']}: match {pl['match']!r} must be a string")
            dests = pl.get("destination", ())
            if isinstance(dests, (str, int)):
                dests = (dests,)
            dests = tuple(_name(d) for d in dests)
            for d in dests:
                if d not in self.patterns:
                    raise UnknownReference("pattern", d, f"platform {pl['name']}")
            self.platforms.append((pl.get("match"), dests, pl["name"]))

    def _check_origins(self):
        seen = {}
        for peer in self.ingress:
            if peer.origin in seen:
                logger.warning(
                    "Dial-peer %s: origin %s is already claimed by %s",
                    peer.id,
                    peer.origin,
                    seen[peer.origin].id,
                )
            else:
                seen[peer.origin] = peer
        for tag in self.origin:
            if tag not in seen:
                logger.warning("Origin %s has no inbound dial-peer", tag)

    def platform_of(self, peer: EgressPeer) -> str | None:
        """Classify the destination of an outbound dial-peer."""
        if peer.platform is not None:
            return peer.platform
        dn = None if peer.destination is None else peer.destination.name
        for kw, dests, name in self.platforms:
            if kw is not None and kw in peer.description:
                return name
            if dn is not None and dn in dests:
                return name
        return None


def load_configuration(source) -> Cfg:
    """
    Load and check a configuration from a file name or a mapping.
    """
    return Cfg(source)
