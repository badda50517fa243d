"""Evaluating conditions and calculations against an analysed tracker."""

from __future__ import annotations

import math

import pytest

from ivroute.constants import StatLine
from ivroute.errors import EvaluationError, InversionError, MissingLevelError, UnknownVariableError
from ivroute.evaluation import (
    EvaluationContext,
    cast_variable,
    evaluate_calculation,
    evaluate_condition,
    format_condition,
    format_value_set,
    invert_segment,
)
from ivroute.grammar import parse_calculation, parse_condition
from ivroute.grammar.conditional import BoundedRange, UnboundedRange
from ivroute.nature import analyze_tracker
from ivroute.tracker import Tracker

VARIABLES = {"rival": "fire", "badges": 3, "unset": None}


@pytest.fixture(scope="module")
def tracker() -> Tracker:
    """Attack narrowed to 20-24 unmodified or 10-14 boosted; reduced is impossible."""

    return Tracker(
        name="Zigzagoon",
        base_stats=(StatLine.filled(40),),
        recorded_stats={0: {10: {"attack": 15}, 20: {"attack": 25}}},
    )


def _context(tracker: Tracker, level: int | str | None = 20) -> EvaluationContext:
    analysis = analyze_tracker(tracker)
    return EvaluationContext(
        tracker=tracker,
        ranges=analysis.ranges,
        nature=analysis.nature,
        level=level,
        source=tracker.name,
        variables=VARIABLES,
    )


def _condition(text: str, context: EvaluationContext) -> bool:
    condition = parse_condition(text)
    assert condition is not None
    return evaluate_condition(condition, context)


def _calculate(text: str, context: EvaluationContext) -> list[float]:
    return evaluate_calculation(parse_calculation(text), context)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("atk = # / 20-24 / #", True),
        ("atk = # / 25+ / x", False),
        ("atk = x / x / 14-", True),
        ("atk = 0 / x / x", False),
        ("atk = ~(# / 25+ / 31)", True),
        ("atk = 25", True),
        ("atk = 26+", False),
        ("startingLevel = 5", True),
        ("startingLevel = 6+", False),
    ],
)
def test_stat_conditions(tracker: Tracker, text: str, expected: bool) -> None:
    assert _condition(text, _context(tracker)) is expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("$rival == 'fire'", True),
        ("$rival != 'fire'", False),
        ("$badges >= 3", True),
        ("$badges < 3", False),
        ("$badges == '3'", False),
        ("$unset == 1", False),
        ("$rival == 'fire' && ($badges > 5 || atk = # / 20-24 / #)", True),
    ],
)
def test_variable_conditions(tracker: Tracker, text: str, expected: bool) -> None:
    assert _condition(text, _context(tracker)) is expected


def test_condition_errors(tracker: Tracker) -> None:
    context = _context(tracker)
    with pytest.raises(UnknownVariableError):
        _condition("$missing == 1", context)
    with pytest.raises(UnknownVariableError):
        _condition("$rival == 'water' && $missing == 1", context)
    with pytest.raises(EvaluationError, match="only allowed for numerical values"):
        _condition("$rival > 1", context)
    with pytest.raises(EvaluationError, match="Compact IV range is not valid"):
        _condition("startingLevel = 5 / 5 / 5", context)
    with pytest.raises(MissingLevelError):
        _condition("atk = 25", _context(tracker, level=None))
    with pytest.raises(EvaluationError, match="not a valid level"):
        _condition("atk = 25", _context(tracker, level="soon"))
    with pytest.raises(EvaluationError, match="No IV tracker source matches the name Nobody"):
        _condition("atk = 5 / 5 / 5", EvaluationContext(source="Nobody"))


def test_invert_segment() -> None:
    assert invert_segment(0) == UnboundedRange(1, "+")
    assert invert_segment(31) == UnboundedRange(30, "-")
    assert invert_segment("#") == "x"
    assert invert_segment("X") == "#"
    assert invert_segment(UnboundedRange(0, "+")) == "x"
    assert invert_segment(UnboundedRange(10, "+")) == UnboundedRange(9, "-")
    assert invert_segment(UnboundedRange(10, "-")) == UnboundedRange(11, "+")
    with pytest.raises(InversionError, match="unless it is 0 or 31"):
        invert_segment(15)
    with pytest.raises(InversionError, match="bounded range"):
        invert_segment(BoundedRange(3, 5))


def test_format_condition() -> None:
    condition = parse_condition("atk = # / 20-24 / # && $rival == 'fire'")
    assert condition is not None
    assert format_condition(condition) == "(Attack is (# / 20–24 / #) AND $rival == 'fire')"
    starting = parse_condition("startingLevel = 5")
    assert starting is not None
    assert format_condition(starting) == "Starting level is 5"


def test_calculations_with_stats_and_variables(tracker: Tracker) -> None:
    context = _context(tracker)
    assert _calculate("atk * 2", context) == [50]
    assert _calculate("$badges + 1", context) == [4]
    assert _calculate("$unset + 1", context) == [1]
    assert _calculate("startingLevel + 1", _context(tracker, level=None)) == [6]


def test_stat_references_take_the_cross_product(tracker: Tracker) -> None:
    values = _calculate("hp - hp", _context(tracker))
    assert len(values) == 49
    assert format_value_set(values) == "-6 - 6"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("floor(7 / 2)", 3),
        ("1 / 0", math.inf),
        ("-1 / 0", -math.inf),
        ("7 % 3", 1),
        ("-7 % 3", -1),
        ("2 ** 10", 1024),
        ("2 ** -1", 0.5),
        ("round(2.5)", 3),
        ("round(-2.5)", -2),
        ("sign(-3)", -1),
        ("log(0)", -math.inf),
        ("abs(-4)", 4),
        ("log2(8)", 3),
    ],
)
def test_numeric_semantics(text: str, expected: float) -> None:
    assert _calculate(text, EvaluationContext()) == [expected]


@pytest.mark.parametrize("text", ["0 / 0", "7 % 0", "sqrt(-1)", "log(-1)"])
def test_invalid_numeric_results_are_nan(text: str) -> None:
    (value,) = _calculate(text, EvaluationContext())
    assert math.isnan(value)
    assert format_value_set([value]) == "(Unable to calculate: invalid value)"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("sqrt(2 ** 2000)", math.inf),
        ("(2 ** 2000) / 3", math.inf),
        ("9 ** 9 ** 9", math.inf),
        ("-2 ** 1025", -math.inf),
        ("floor(2 ** 1023 * 4)", math.inf),
    ],
)
def test_results_beyond_double_range_become_infinite(text: str, expected: float) -> None:
    assert _calculate(text, EvaluationContext()) == [expected]


def test_large_integers_stay_within_double_precision() -> None:
    (value,) = _calculate("2 ** 60 + 1", EvaluationContext())
    assert isinstance(value, float)
    assert value == 2.0**60
    assert _calculate("100000000000000000000 % 7", EvaluationContext()) == [math.fmod(1e20, 7)]
    assert _calculate("2 ** 52 + 1", EvaluationContext()) == [2**52 + 1]


def test_calculation_errors(tracker: Tracker) -> None:
    context = _context(tracker)
    with pytest.raises(EvaluationError, match="is not a number"):
        _calculate("$rival + 1", context)
    with pytest.raises(UnknownVariableError):
        _calculate("$missing", context)
    with pytest.raises(MissingLevelError):
        _calculate("atk", _context(tracker, level=None))


def test_format_value_set() -> None:
    assert format_value_set([3, 5, 4]) == "3 - 5"
    assert format_value_set([3, 5, 4], "min") == "3"
    assert format_value_set([3, 5, 4], "max") == "5"
    assert format_value_set([1, 1, 2], "list") == "1, 2"
    assert format_value_set([2.0]) == "2"
    assert format_value_set([math.inf]) == "Infinity"
    assert format_value_set([]) == "N/A"
    assert format_value_set([1], "median") == "Invalid formatter median."


def test_cast_variable() -> None:
    assert cast_variable("number", "12abc") == 12
    assert cast_variable("number", "-4") == -4
    assert math.isnan(cast_variable("number", "abc"))
    assert cast_variable("boolean", "true") is True
    assert cast_variable("boolean", "yes") is False
    assert cast_variable("text", "fire") == "fire"
    assert cast_variable("number", None) is None
