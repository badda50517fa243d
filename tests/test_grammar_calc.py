"""Parsing the calculation mini-language."""

from __future__ import annotations

import pytest

from ivroute.errors import GrammarSyntaxError
from ivroute.grammar.calc import Function, Operation, Variable, parse_calculation, to_source
from ivroute.grammar.nodes import NodeType


def test_multiplication_binds_tighter_than_addition() -> None:
    assert parse_calculation("1 + 2 * 3") == Operation("+", 1, Operation("*", 2, 3))


def test_subtraction_is_left_associative() -> None:
    assert parse_calculation("10 - 4 - 3") == Operation("-", Operation("-", 10, 4), 3)
    assert parse_calculation("10-4") == Operation("-", 10, 4)


def test_power_is_right_associative() -> None:
    assert parse_calculation("2 ** 3 ** 2") == Operation("**", 2, Operation("**", 3, 2))
    assert parse_calculation("2 * 3 ** 2") == Operation("*", 2, Operation("**", 3, 2))


def test_functions_variables_and_stats() -> None:
    tree = parse_calculation("floor($badges / 2) + log10(atk)")
    assert tree == Operation(
        "+",
        Function("floor", Operation("/", Variable("badges"), 2)),
        Function("log10", "atk"),
    )
    assert tree.type is NodeType.OPERATION
    assert parse_calculation("-2.5") == -2.5
    assert parse_calculation("startingLevel") == "startingLevel"


def test_round_trip_through_source() -> None:
    for text in ("1 + 2 * 3", "(1 + 2) * 3", "abs($x - spa) % 4", "2 ** -1"):
        tree = parse_calculation(text)
        assert parse_calculation(to_source(tree)) == tree
    assert to_source(parse_calculation("1 + 2 * 3")) == "(1 + (2 * 3))"


@pytest.mark.parametrize(
    "text", ["100000000000000000000.5 + 1", "0.0000001 * $x", "-0.00000025", "3.0 ** 2"]
)
def test_float_literals_print_without_exponents(text: str) -> None:
    tree = parse_calculation(text)
    source = to_source(tree)
    assert "e" not in source.lower()
    assert parse_calculation(source) == tree


def test_incomplete_input_reports_location() -> None:
    with pytest.raises(GrammarSyntaxError) as excinfo:
        parse_calculation("1 +")
    error = excinfo.value
    assert error.found is None
    assert error.location is not None
    assert error.location.start.offset == 3
    assert error.location.start.column == 4
    assert "end of input" in error.message
    assert "number" in error.expected


def test_empty_input_is_a_syntax_error() -> None:
    with pytest.raises(GrammarSyntaxError):
        parse_calculation("")


def test_unknown_stat_suggests_closest_name() -> None:
    with pytest.raises(GrammarSyntaxError, match="did you mean attack") as excinfo:
        parse_calculation("atack + 1")
    assert excinfo.value.found == "atack"
    payload = excinfo.value.to_payload()
    assert payload["category"] == "parse_error"
    assert payload["location"]["start"]["offset"] == 0
