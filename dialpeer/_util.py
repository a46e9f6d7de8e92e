from __future__ import annotations

import re

from ._errors import PatternError

# $1..$9 refer to groups, $0 and $& to the whole match
_nr = re.compile(r"\$(\d|&)")


class Pattern:
    """
    A named, compiled phone number pattern.

    Matching uses `re.search`, so the pattern source decides whether it
    is anchored. No match state is kept here.
    """

    __slots__ = ("name", "source", "_re")

    def __init__(self, name, source, rx):
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "source", source)
        object.__setattr__(self, "_re", rx)

    def __setattr__(self, k, v):
        raise AttributeError(f"Pattern is read-only: {k}")

    @property
    def groups(self) -> int:
        return self._re.groups

    def __repr__(self):
        if self.name is None:
            return f"Pattern({self.source!r})"
        return f"Pattern({self.name}: {self.source!r})"


class MatchResult:
    __slots__ = ("matched", "groups", "start", "end")

    def __init__(self, m=None):
        if m is None:
            self.matched = False
            self.groups = ()
            self.start = self.end = -1
        else:
            self.matched = True
            self.groups = (m.group(0),) + tuple(g or "" for g in m.groups())
            self.start, self.end = m.span()

    def __bool__(self):
        return self.matched

    def __repr__(self):
        if not self.matched:
            return "MatchResult(-)"
        return f"MatchResult({self.start}:{self.end} {self.groups!r})"


def compile_pattern(source, name=None) -> Pattern:
    if not isinstance(source, str):
        raise PatternError(source, "must be a string")
    try:
        rx = re.compile(source)
    except re.error as exc:
        raise PatternError(source, str(exc)) from None
    return Pattern(name, source, rx)


def match(pattern: Pattern, nr: str) -> MatchResult:
    """
    Look for @pattern in @nr. Returns a fresh `MatchResult`.
    """
    return MatchResult(pattern._re.search(nr))  # noqa:SLF001


def template_refs(template: str) -> set[int]:
    """The group numbers a replacement template refers to."""
    return {0 if p == "&" else int(p) for p in _nr.findall(template)}


def expand(template: str, m: MatchResult) -> str:
    def repl(p):
        g = p[1]
        return m.groups[0 if g == "&" else int(g)]

    return _nr.sub(repl, template)


def apply_rule(nr: str, rule) -> str:
    """
    Rewrite @nr with @rule.

    Only the first match is replaced; text before and after it is kept.
    If the rule's pattern doesn't match, @nr is returned unchanged.
    """
    m = match(rule.pattern, nr)
    if not m:
        return nr
    return nr[: m.start] + expand(rule.result, m) + nr[m.end :]
