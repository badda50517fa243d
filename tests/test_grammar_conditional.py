"""Parsing the condition mini-language."""

from __future__ import annotations

import pytest

from ivroute.errors import GrammarSyntaxError, InversionError, MalformedRangeError
from ivroute.evaluation import effective_segments
from ivroute.grammar.conditional import (
    BoundedRange,
    IVRangeTriple,
    LogicalExpression,
    StatExpression,
    UnboundedRange,
    VariableExpression,
    parse_condition,
    to_source,
)


def test_blank_condition_parses_to_none() -> None:
    assert parse_condition("") is None
    assert parse_condition("   ") is None


def test_stat_ranges() -> None:
    assert parse_condition("atk = 20-25") == StatExpression("atk", BoundedRange(20, 25))
    assert parse_condition("atk = 20 – 25") == StatExpression("atk", BoundedRange(20, 25))
    assert parse_condition("speed = 30+") == StatExpression("speed", UnboundedRange(30, "+"))
    assert parse_condition("startingLevel = 5") == StatExpression("startingLevel", 5)


def test_iv_triples_and_wildcards() -> None:
    expected = StatExpression("atk", IVRangeTriple(5, UnboundedRange(10, "+"), "x"))
    assert parse_condition("atk = 5 / 10+ / x") == expected
    assert parse_condition("atk = (5 / 10+ / x)") == expected

    inverse = parse_condition("def = ~(# / 5- / 31)")
    assert isinstance(inverse, StatExpression)
    assert inverse.expression == IVRangeTriple("#", UnboundedRange(5, "-"), 31, inverse=True)


def test_variable_expressions() -> None:
    assert parse_condition("$rival == 'fire'") == VariableExpression("rival", "==", "fire")
    assert parse_condition('$rival != "water"') == VariableExpression("rival", "!=", "water")
    assert parse_condition("$badges >= 3") == VariableExpression("badges", ">=", 3)
    assert parse_condition("$skip == true") == VariableExpression("skip", "==", True)


def test_logical_chains_nest_to_the_right() -> None:
    a, b, c = (VariableExpression(name, "==", 1) for name in "abc")
    assert parse_condition("$a == 1 && $b == 1 && $c == 1") == LogicalExpression(
        "&&", a, LogicalExpression("&&", b, c)
    )
    assert parse_condition("$a == 1 || $b == 1 && $c == 1") == LogicalExpression(
        "||", a, LogicalExpression("&&", b, c)
    )
    assert parse_condition("$a == 1 && $b == 1 || $c == 1") == LogicalExpression(
        "||", LogicalExpression("&&", a, b), c
    )
    assert parse_condition("$a == 1 && ($b == 1 || $c == 1)") == LogicalExpression(
        "&&", a, LogicalExpression("||", b, c)
    )


def test_round_trip_through_source() -> None:
    text = "atk = 5 / 10+ / x && $rival == 'fire' || spe = ~(# / 5- / 31)"
    tree = parse_condition(text)
    assert parse_condition(to_source(tree)) == tree
    assert to_source(parse_condition("atk = 5 / 10+ / x && $rival == 'fire'")) == (
        "(atk = (5 / 10+ / x) && $rival == 'fire')"
    )


def test_inverting_a_bounded_range_fails() -> None:
    condition = parse_condition("hp = ~(31–31 / # / #)")
    assert isinstance(condition, StatExpression)
    assert isinstance(condition.expression, IVRangeTriple)
    with pytest.raises(InversionError, match="Cannot invert a bounded range"):
        effective_segments(condition.expression)


def test_reversed_bounded_range_is_malformed() -> None:
    with pytest.raises(MalformedRangeError, match="upper limit must be greater"):
        parse_condition("atk = 25-20")


def test_missing_range_reports_location() -> None:
    with pytest.raises(GrammarSyntaxError) as excinfo:
        parse_condition("atk = ")
    assert excinfo.value.found is None
    assert excinfo.value.location is not None
    assert excinfo.value.location.start.offset == 6


def test_trailing_garbage_is_rejected() -> None:
    with pytest.raises(GrammarSyntaxError):
        parse_condition("atk = 5 /")


def test_unknown_stat_suggests_closest_name() -> None:
    with pytest.raises(GrammarSyntaxError, match="did you mean atk"):
        parse_condition("atak = 5")


@pytest.mark.parametrize("literal", ["100000000000000000000.5", "0.0000001", "-0.00000025", "12.0"])
def test_float_comparisons_round_trip_without_exponents(literal: str) -> None:
    tree = parse_condition(f"$a == {literal}")
    source = to_source(tree)
    assert "e" not in source.lower()
    assert parse_condition(source) == tree
