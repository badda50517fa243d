"""Evaluate parsed calculations and conditions against a tracker's inferred state."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

from .constants import ConfirmedNature, Stat, format_stat_name
from .errors import (
    ConfigurationError,
    EvaluationError,
    InversionError,
    MissingLevelError,
    UnknownVariableError,
)
from .formatting import RANGE_SEPARATOR
from .grammar.calc import Calculation, Function, Operation, Variable
from .grammar.conditional import (
    ANY_VALUE,
    BoundedRange,
    Condition,
    IVRangeSegment,
    IVRangeTriple,
    LogicalExpression,
    RangeSegment,
    StatExpression,
    UnboundedRange,
    VariableExpression,
    format_range_segment,
)
from .inference import IVRangeSet, possible_stats
from .nature import filter_by_nature_adjustments
from .stat_names import STARTING_LEVEL, is_iv_stat, match_stat
from .tracker import Tracker

__all__ = [
    "EvaluationContext",
    "VALUE_FORMATS",
    "invert_segment",
    "effective_segments",
    "evaluate_range",
    "possible_stats_at_level",
    "evaluate_condition",
    "format_condition",
    "cast_variable",
    "evaluate_calculation",
    "format_value_set",
]

Number = Union[int, float]
VALUE_FORMATS = ("min", "max", "range", "list")
MAX_SAFE_INTEGER = 2**53 - 1


@dataclass(frozen=True)
class EvaluationContext:
    """What an expression may refer to.

    ``ranges`` and ``nature`` come from :func:`ivroute.nature.analyze_tracker`.
    ``variables`` maps every registered route variable to its typed value,
    with ``None`` for variables that have not been set.
    """

    tracker: Tracker | None = None
    ranges: Mapping[Stat, IVRangeSet] | None = None
    nature: ConfirmedNature | None = None
    level: int | str | None = None
    evolution: int | None = None
    source: str | None = None
    variables: Mapping[str, Any] = field(default_factory=dict)


def invert_segment(segment: IVRangeSegment) -> IVRangeSegment:
    """Return the segment matching exactly the IVs *segment* does not.

    Raises:
        InversionError: For bounded ranges and for single values other than
            0 and 31.
    """

    if segment == ANY_VALUE:
        return "x"
    if segment in ("x", "X"):
        return ANY_VALUE
    if isinstance(segment, int):
        if segment == 0:
            return UnboundedRange(1, "+")
        if segment == 31:
            return UnboundedRange(30, "-")
        raise InversionError("Cannot invert a single IV value unless it is 0 or 31.")
    if isinstance(segment, BoundedRange):
        raise InversionError("Cannot invert a bounded range.")
    if isinstance(segment, UnboundedRange):
        if segment.operator == "+":
            return "x" if segment.value == 0 else UnboundedRange(segment.value - 1, "-")
        return "x" if segment.value == 31 else UnboundedRange(segment.value + 1, "+")
    raise InversionError(f"Unexpected range segment {segment!r}.")


def effective_segments(triple: IVRangeTriple) -> tuple[IVRangeSegment, IVRangeSegment, IVRangeSegment]:
    if triple.inverse:
        return (
            invert_segment(triple.negative),
            invert_segment(triple.neutral),
            invert_segment(triple.positive),
        )
    return triple.segments()


def evaluate_range(values: Iterable[int], segment: RangeSegment) -> bool:
    """Whether any of *values* falls inside *segment*."""

    if isinstance(segment, int):
        return segment in set(values)
    if isinstance(segment, BoundedRange):
        return any(segment.start <= value <= segment.end for value in values)
    if isinstance(segment, UnboundedRange):
        if segment.operator == "-":
            return any(value <= segment.value for value in values)
        return any(value >= segment.value for value in values)
    raise EvaluationError(f"Unexpected range segment {segment!r}.")


def _require_analysis(context: EvaluationContext) -> tuple[Tracker, Mapping[Stat, IVRangeSet], ConfirmedNature]:
    if context.tracker is None or context.ranges is None or context.nature is None:
        raise EvaluationError(
            f"No IV tracker source matches the name {context.source}.",
            context={"source": context.source},
        )
    return context.tracker, context.ranges, context.nature


def _resolve_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    try:
        return int(str(level).strip())
    except ValueError:
        raise EvaluationError(f"{level} is not a valid level.") from None


def possible_stats_at_level(stat: str, level: int, context: EvaluationContext) -> list[int]:
    """Values the canonical *stat* could show at *level* (or the starting level)."""

    tracker, ranges, nature = _require_analysis(context)
    if stat == STARTING_LEVEL:
        return [tracker.starting_level]
    if is_iv_stat(stat):
        return list(possible_stats(stat, level, ranges, nature, tracker, context.evolution).valid)
    raise EvaluationError(f"{stat} cannot be compared against a level.")


def _evaluate_iv_expression(stat_name: str, triple: IVRangeTriple, context: EvaluationContext) -> bool:
    stat = match_stat(stat_name)
    if not is_iv_stat(stat):
        raise EvaluationError(f"Compact IV range is not valid for comparisons against {stat_name}")
    _, ranges, nature = _require_analysis(context)
    range_set = ranges[stat]
    pairs = filter_by_nature_adjustments(
        range_set,
        stat,
        nature,
        list(zip(effective_segments(triple), range_set.hypotheses())),
    )
    for segment, domain in pairs:
        if segment in ("x", "X"):
            continue
        if segment == ANY_VALUE:
            if not domain.is_empty:
                return True
            continue
        if evaluate_range(domain.values(), segment):
            return True
    return False


def _evaluate_stat_expression(stat_name: str, segment: RangeSegment, context: EvaluationContext) -> bool:
    stat = match_stat(stat_name)
    if stat == STARTING_LEVEL:
        level = 0
    elif context.level is None:
        raise MissingLevelError(
            f"A level is required to compare {format_stat_name(stat)} against a stat value."
        )
    else:
        level = _resolve_level(context.level)
    return evaluate_range(possible_stats_at_level(stat, level, context), segment)


def _strictly_equal(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, str) or isinstance(right, str):
        return isinstance(left, str) and isinstance(right, str) and left == right
    return left == right


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


_COMPARISONS: Mapping[str, Callable[[Number, Number], bool]] = {
    "<": lambda left, right: left < right,
    "<=": lambda left, right: left <= right,
    ">": lambda left, right: left > right,
    ">=": lambda left, right: left >= right,
}


def _evaluate_variable_expression(node: VariableExpression, context: EvaluationContext) -> bool:
    if node.variable not in context.variables:
        raise UnknownVariableError(
            f"Variable {node.variable} is not registered.", context={"variable": node.variable}
        )
    value = context.variables[node.variable]
    if value is None:
        return False
    if node.operator == "==":
        return _strictly_equal(node.expression, value)
    if node.operator == "!=":
        return not _strictly_equal(node.expression, value)
    if not _is_number(node.expression) or not _is_number(value):
        raise EvaluationError("Inequality expressions are only allowed for numerical values.")
    comparison = _COMPARISONS.get(node.operator)
    if comparison is None:
        raise ConfigurationError(f"The comparison {node.operator} is not supported.")
    return comparison(value, node.expression)


def evaluate_condition(condition: Condition, context: EvaluationContext) -> bool:
    """Evaluate a parsed condition.

    IV triples are checked against the inferred IV domains, one segment per
    nature hypothesis that is still possible. A bare range is checked against
    every stat value the tracker could show at ``context.level``.

    Raises:
        EvaluationError: Or one of its subclasses, as soon as any part of the
            condition cannot be evaluated. Both sides of ``&&`` and ``||`` are
            always evaluated, so an error on either side propagates.
    """

    if isinstance(condition, StatExpression):
        if isinstance(condition.expression, IVRangeTriple):
            return _evaluate_iv_expression(condition.stat, condition.expression, context)
        return _evaluate_stat_expression(condition.stat, condition.expression, context)
    if isinstance(condition, LogicalExpression):
        left = evaluate_condition(condition.left, context)
        right = evaluate_condition(condition.right, context)
        return (left and right) if condition.operator == "&&" else (left or right)
    if isinstance(condition, VariableExpression):
        return _evaluate_variable_expression(condition, context)
    raise EvaluationError(f"Unexpected condition node {condition!r}.")


def _condition_stat_label(stat_name: str) -> str:
    stat = match_stat(stat_name)
    if stat == STARTING_LEVEL:
        return "Starting level"
    return format_stat_name(stat)


def format_condition(condition: Condition) -> str:
    """Describe *condition* for display, e.g. ``(Attack is (x / 20+ / #) AND $rival == 'fire')``."""

    if isinstance(condition, StatExpression):
        label = _condition_stat_label(condition.stat)
        expression = condition.expression
        if isinstance(expression, IVRangeTriple):
            segments = " / ".join(
                format_range_segment(segment, RANGE_SEPARATOR) for segment in effective_segments(expression)
            )
            return f"{label} is ({segments})"
        return f"{label} is {format_range_segment(expression, RANGE_SEPARATOR)}"
    if isinstance(condition, LogicalExpression):
        conjunction = "AND" if condition.operator == "&&" else "OR"
        return f"({format_condition(condition.left)} {conjunction} {format_condition(condition.right)})"
    if isinstance(condition, VariableExpression):
        value = condition.expression
        if isinstance(value, str):
            rendered = f"'{value}'"
        elif isinstance(value, bool):
            rendered = "true" if value else "false"
        else:
            rendered = str(value)
        return f"${condition.variable} {condition.operator} {rendered}"
    raise EvaluationError(f"Unexpected condition node {condition!r}.")


def _parse_int_prefix(value: str) -> Number:
    text = value.strip()
    sign = ""
    if text[:1] in ("+", "-"):
        sign, text = text[0], text[1:]
    digits = ""
    for character in text:
        if not character.isdigit():
            break
        digits += character
    return int(sign + digits) if digits else math.nan


def cast_variable(variable_type: str, value: str | None) -> Any:
    """Convert a stored variable string to its declared type.

    Numbers follow integer-prefix parsing (``"12abc"`` is 12) and become NaN
    when no digits lead the string.
    """

    if value is None:
        return None
    if variable_type == "number":
        return _parse_int_prefix(value)
    if variable_type == "boolean":
        return value == "true"
    return value


def _round_half_up(value: float) -> Number:
    if not math.isfinite(value):
        return value
    return math.floor(value + 0.5)


def _finite_only(function: Callable[[float], int]) -> Callable[[Number], Number]:
    def wrapped(value: Number) -> Number:
        if isinstance(value, float) and not math.isfinite(value):
            return value
        return function(value)

    return wrapped


def _sign(value: Number) -> Number:
    if math.isnan(value):
        return math.nan
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def _logarithm(function: Callable[[float], float]) -> Callable[[Number], float]:
    def wrapped(value: Number) -> float:
        if math.isnan(value) or value < 0:
            return math.nan
        if value == 0:
            return -math.inf
        if math.isinf(value):
            return math.inf
        return function(value)

    return wrapped


def _sqrt(value: Number) -> float:
    if math.isnan(value) or value < 0:
        return math.nan
    return math.sqrt(value)


FUNCTIONS: Mapping[str, Callable[[Number], Number]] = {
    "floor": _finite_only(math.floor),
    "ceil": _finite_only(math.ceil),
    "round": _round_half_up,
    "sqrt": _sqrt,
    "log": _logarithm(math.log),
    "log2": _logarithm(math.log2),
    "log10": _logarithm(math.log10),
    "trunc": _finite_only(math.trunc),
    "sign": _sign,
    "abs": abs,
}


def _divide(left: Number, right: Number) -> Number:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _modulo(left: Number, right: Number) -> Number:
    if right == 0 or math.isinf(left) or math.isnan(left) or math.isnan(right):
        return math.nan
    if isinstance(left, int) and isinstance(right, int):
        return int(math.fmod(left, right))
    return math.fmod(left, right)


def _power(left: Number, right: Number) -> Number:
    try:
        result = math.pow(left, right)
    except OverflowError:
        odd_exponent = float(right).is_integer() and int(right) % 2 == 1
        return -math.inf if left < 0 and odd_exponent else math.inf
    except ValueError:
        if left == 0:
            return math.inf
        return math.nan
    if isinstance(left, int) and isinstance(right, int) and right >= 0:
        return _as_double(int(result))
    return result


def _as_double(value: Number) -> Number:
    """Keep integers only while a double holds them exactly."""

    if isinstance(value, int) and abs(value) > MAX_SAFE_INTEGER:
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    return value


OPERATIONS: Mapping[str, Callable[[Number, Number], Number]] = {
    "+": lambda left, right: _as_double(left + right),
    "-": lambda left, right: _as_double(left - right),
    "*": lambda left, right: _as_double(left * right),
    "/": _divide,
    "%": _modulo,
    "**": _power,
}


def evaluate_calculation(node: Calculation, context: EvaluationContext) -> list[Number]:
    """Evaluate *node* to every value it could take.

    Stat references contribute one value per possible stat value, and a
    binary operation combines every left value with every right value.

    Raises:
        EvaluationError: For unknown trackers, unregistered or non-numeric
            variables, and missing or invalid levels.
        ConfigurationError: For operators or functions outside the
            supported set.
    """

    if isinstance(node, bool):
        raise EvaluationError(f"Unexpected calculation node {node!r}.")
    if isinstance(node, (int, float)):
        return [_as_double(node)]
    if isinstance(node, str):
        stat = match_stat(node)
        _require_analysis(context)
        if context.level is None and stat != STARTING_LEVEL:
            raise MissingLevelError(
                "The level attribute must be specified when calculating with a stat that is not startingLevel"
            )
        level = 0 if context.level is None else _resolve_level(context.level)
        return possible_stats_at_level(stat, level, context)
    if isinstance(node, Variable):
        if node.name not in context.variables:
            raise UnknownVariableError(
                f"The variable {node.name} is not registered.", context={"variable": node.name}
            )
        value = context.variables[node.name]
        if value is None:
            return [0]
        if not _is_number(value):
            raise EvaluationError(
                f"The variable {node.name} is not a number, and thus cannot be used in calculations."
            )
        return [_as_double(value)]
    if isinstance(node, Function):
        function = FUNCTIONS.get(node.name)
        if function is None:
            raise ConfigurationError(
                f"The function {node.name} is not supported by the calculation directive."
            )
        values = evaluate_calculation(node.expression, context)
        return [_as_double(function(value)) for value in values]
    if isinstance(node, Operation):
        operation = OPERATIONS.get(node.operator)
        if operation is None:
            raise ConfigurationError(
                f"The operator {node.operator} is not supported by the calculation directive."
            )
        left_values = evaluate_calculation(node.left, context)
        right_values = evaluate_calculation(node.right, context)
        return [operation(left, right) for left in left_values for right in right_values]
    raise EvaluationError(f"Unexpected calculation node {node!r}.")


def _format_number(value: Number) -> str:
    if isinstance(value, float):
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def format_value_set(values: Sequence[Number], value_format: str = "range") -> str:
    """Summarise calculation outcomes as ``min``, ``max``, ``range`` or ``list``."""

    if any(isinstance(value, float) and math.isnan(value) for value in values):
        return "(Unable to calculate: invalid value)"
    if not values:
        return "N/A"
    if value_format == "min":
        return _format_number(min(values))
    if value_format == "max":
        return _format_number(max(values))
    if value_format == "range":
        if all(value == values[0] for value in values):
            return _format_number(values[0])
        return f"{_format_number(min(values))} - {_format_number(max(values))}"
    if value_format == "list":
        unique: list[Number] = []
        for value in values:
            if value not in unique:
                unique.append(value)
        return ", ".join(_format_number(value) for value in unique)
    return f"Invalid formatter {value_format}."
