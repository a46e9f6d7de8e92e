from __future__ import annotations

import pytest

from dialpeer import Field, PatternError, Rule, apply_rule, compile_pattern, match
from dialpeer._util import template_refs


def _rule(src, res, field=Field.CALLED):
    return Rule("t", field, compile_pattern(src), res)


def test_compile():
    p = compile_pattern(r"^301\d{3}$", "101")
    assert p.name == "101"
    assert p.source == r"^301\d{3}$"
    assert p.groups == 0
    with pytest.raises(AttributeError):
        p.source = "x"


@pytest.mark.parametrize("src", ["(", "[0-9", "*1", None, 301])
def test_compile_bad(src):
    with pytest.raises(PatternError):
        compile_pattern(src)


def test_match():
    p = compile_pattern(r"^\+1620555(\d{4})$")
    m = match(p, "+16205558080")
    assert m
    assert m.groups == ("+16205558080", "8080")
    assert (m.start, m.end) == (0, 12)

    m = match(p, "+16205558080x")
    assert not m
    assert m.groups == ()


def test_match_unanchored():
    p = compile_pattern(r"555")
    m = match(p, "+16205558080")
    assert m.start == 5
    assert m.groups == ("555",)


def test_match_optional_group():
    m = match(compile_pattern(r"^(\+)?(\d+)$"), "1234")
    assert m.groups == ("1234", "", "1234")


def test_match_is_fresh():
    p = compile_pattern(r"\d")
    a = match(p, "a1")
    b = match(p, "2b")
    assert (a.start, b.start) == (1, 0)
    assert match(p, "a1").start == 1
    assert a is not match(p, "a1")


_rules = [
    # pattern, template, number, result
    (r"^\+1620555(\d{4})$", "101$1", "+16205558080", "1018080"),
    (r"^\+13035553(\d{3})$", "301$1", "+13035553001", "301001"),
    (r"\+16205558080", "108080", "+16205558080", "108080"),
    (r"301001", "+13035553001", "301001", "+13035553001"),
    (r"301001", "+13035553001", "9301001#", "9+13035553001#"),
    (r"^0(\d+)", "+49$1", "0911123", "+49911123"),
    (r"^0(\d+)", "+49$1", "911123", "911123"),
    (r"1", "X", "1111", "X111"),
    (r"(\d)(\d)", "$2$1", "a1234", "a2134"),
    (r"^\d{3}", "<$0>", "101001", "<101>001"),
    (r"^\d{3}", "<$&>", "101001", "<101>001"),
    (r"^(\+)?(1)", "$1$2", "123", "123"),
    (r"x", "y", "", ""),
]


@pytest.mark.parametrize("src,res,nr,out", _rules)
def test_apply_rule(src, res, nr, out):
    assert apply_rule(nr, _rule(src, res)) == out


def test_rule_callable():
    r = _rule(r"^\+1620555(\d{4})$", "101$1")
    assert r("+16205558080") == "1018080"


def test_apply_rule_idempotent():
    # the pattern no longer matches what it produced
    for src, res, nr, _ in _rules:
        rule = _rule(src, res)
        once = apply_rule(nr, rule)
        if match(rule.pattern, once):
            continue
        assert apply_rule(once, rule) == once


def test_template_refs():
    assert template_refs("101$1") == {1}
    assert template_refs("$&-$0-$2") == {0, 2}
    assert template_refs("+49") == set()
