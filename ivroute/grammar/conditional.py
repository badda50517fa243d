"""Boolean conditions over a tracker's stats and route variables.

Grammar::

    Expression      = _ Term? _
    Term            = Or
    Or              = And (_ "||" _ Or)*
    And             = Factor (_ "&&" _ And)*
    Factor          = "(" _ Term _ ")" / StatExpression / VariableExpression
    StatExpression  = _ Stat _ "=" _ Range
    Range           = IVRange / RangeSegment
    IVRange         = Delimited / "~" _ Delimited
    Delimited       = Positive / "(" _ Positive _ ")"
    Positive        = _ IVSegment _ "/" _ IVSegment _ "/" _ IVSegment _
    IVSegment       = RangeSegment / "#" / "x" / "X"
    RangeSegment    = Bounded / Unbounded / Integer
    Bounded         = Integer _ ("–" / "-" / "—") _ Integer
    Unbounded       = Integer _ ("-" / "+")
    VariableExpression = "$" Name _ ("==" / "!=" / "<=" / ">=" / "<" / ">") _ Value

``&&`` and ``||`` are both right-recursive with no precedence table, so an
``&&`` chain nests inside an ``||`` operand only by construction; parenthesise
mixed expressions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar, Literal, Union

from ..errors import MalformedRangeError, UnknownStatError
from ..stat_names import match_stat
from ._peg import INTEGER, Cursor, number_source
from .nodes import NodeType

__all__ = [
    "BoundedRange",
    "UnboundedRange",
    "RangeSegment",
    "IVRangeSegment",
    "IVRangeTriple",
    "StatExpression",
    "LogicalExpression",
    "VariableExpression",
    "Condition",
    "ANY_VALUE",
    "WILDCARDS",
    "parse_condition",
    "to_source",
    "format_range_segment",
]

ANY_VALUE = "#"
WILDCARDS = ("#", "x", "X")


@dataclass(frozen=True)
class BoundedRange:
    start: int
    end: int

    type: ClassVar[NodeType] = NodeType.BOUNDED_RANGE


@dataclass(frozen=True)
class UnboundedRange:
    """``value-`` (at most) or ``value+`` (at least)."""

    value: int
    operator: Literal["-", "+"]

    type: ClassVar[NodeType] = NodeType.UNBOUNDED_RANGE


RangeSegment = Union[BoundedRange, UnboundedRange, int]
IVRangeSegment = Union[RangeSegment, str]


@dataclass(frozen=True)
class IVRangeTriple:
    negative: IVRangeSegment
    neutral: IVRangeSegment
    positive: IVRangeSegment
    inverse: bool = False

    type: ClassVar[NodeType] = NodeType.IV_RANGE

    def segments(self) -> tuple[IVRangeSegment, IVRangeSegment, IVRangeSegment]:
        return self.negative, self.neutral, self.positive


@dataclass(frozen=True)
class StatExpression:
    stat: str
    expression: Union[IVRangeTriple, RangeSegment]

    type: ClassVar[NodeType] = NodeType.STAT_EXPRESSION


@dataclass(frozen=True)
class LogicalExpression:
    operator: Literal["&&", "||"]
    left: "Condition"
    right: "Condition"

    type: ClassVar[NodeType] = NodeType.LOGICAL_EXPRESSION


VariableValue = Union[int, float, bool, str]


@dataclass(frozen=True)
class VariableExpression:
    variable: str
    operator: str
    expression: VariableValue

    type: ClassVar[NodeType] = NodeType.VARIABLE_EXPRESSION


Condition = Union[StatExpression, LogicalExpression, VariableExpression]

_STAT_WORD = re.compile(r"[A-Za-z_]+")
_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER = re.compile(r"-?[0-9]+(?:\.[0-9]+)?")
_COMPARISONS = ("==", "!=", "<=", ">=", "<", ">")


class _ConditionParser:
    def __init__(self, text: str) -> None:
        self.cursor = Cursor(text)

    def parse(self) -> Condition | None:
        cursor = self.cursor
        cursor.skip_whitespace()
        start = cursor.pos
        term = self.term()
        if term is None:
            cursor.pos = start
        cursor.skip_whitespace()
        if not cursor.at_end:
            cursor.expect("end of input")
            raise cursor.syntax_error()
        return term

    def term(self) -> Condition | None:
        return self.disjunction()

    def disjunction(self) -> Condition | None:
        return self._chain("||", self.conjunction, self.disjunction)

    def conjunction(self) -> Condition | None:
        return self._chain("&&", self.factor, self.conjunction)

    def _chain(self, operator, operand, rest) -> Condition | None:
        cursor = self.cursor
        node = operand()
        if node is None:
            return None
        while True:
            save = cursor.pos
            cursor.skip_whitespace()
            if cursor.literal(operator) is None:
                cursor.pos = save
                return node
            cursor.skip_whitespace()
            right = rest()
            if right is None:
                cursor.pos = save
                return node
            node = LogicalExpression(operator, node, right)

    def factor(self) -> Condition | None:
        cursor = self.cursor
        start = cursor.pos
        if cursor.literal("(") is not None:
            cursor.skip_whitespace()
            inner = self.term()
            if inner is not None:
                cursor.skip_whitespace()
                if cursor.literal(")") is not None:
                    return inner
            cursor.pos = start
        node = self.stat_expression()
        if node is not None:
            return node
        cursor.pos = start
        return self.variable_expression()

    def stat_expression(self) -> StatExpression | None:
        cursor = self.cursor
        start = cursor.pos
        cursor.skip_whitespace()
        word_start = cursor.pos
        word = cursor.pattern(_STAT_WORD, "stat name")
        if word is None:
            cursor.pos = start
            return None
        try:
            match_stat(word)
        except UnknownStatError as exc:
            raise cursor.error_here(exc.message, word_start, "stat name") from exc
        cursor.skip_whitespace()
        if cursor.literal("=") is None:
            cursor.pos = start
            return None
        cursor.skip_whitespace()
        expression = self.range()
        if expression is None:
            cursor.pos = start
            return None
        return StatExpression(word, expression)

    def range(self) -> Union[IVRangeTriple, RangeSegment, None]:
        triple = self.iv_range()
        if triple is not None:
            return triple
        return self.range_segment()

    def iv_range(self) -> IVRangeTriple | None:
        cursor = self.cursor
        start = cursor.pos
        triple = self.delimited()
        if triple is not None:
            return triple
        cursor.pos = start
        if cursor.literal("~") is None:
            return None
        cursor.skip_whitespace()
        triple = self.delimited()
        if triple is None:
            cursor.pos = start
            return None
        return IVRangeTriple(triple.negative, triple.neutral, triple.positive, inverse=True)

    def delimited(self) -> IVRangeTriple | None:
        cursor = self.cursor
        start = cursor.pos
        triple = self.positive()
        if triple is not None:
            return triple
        cursor.pos = start
        if cursor.literal("(") is None:
            return None
        cursor.skip_whitespace()
        triple = self.positive()
        if triple is None:
            cursor.pos = start
            return None
        cursor.skip_whitespace()
        if cursor.literal(")") is None:
            cursor.pos = start
            return None
        return triple

    def positive(self) -> IVRangeTriple | None:
        cursor = self.cursor
        start = cursor.pos
        segments: list[IVRangeSegment] = []
        for index in range(3):
            cursor.skip_whitespace()
            if index:
                if cursor.literal("/") is None:
                    cursor.pos = start
                    return None
                cursor.skip_whitespace()
            segment = self.iv_segment()
            if segment is None:
                cursor.pos = start
                return None
            segments.append(segment)
        cursor.skip_whitespace()
        return IVRangeTriple(segments[0], segments[1], segments[2])

    def iv_segment(self) -> IVRangeSegment | None:
        segment = self.range_segment()
        if segment is not None:
            return segment
        return self.cursor.one_of(*WILDCARDS)

    def range_segment(self) -> RangeSegment | None:
        cursor = self.cursor
        start = cursor.pos
        for alternative in (self.bounded, self.unbounded, self.integer):
            result = alternative()
            if result is not None:
                return result
            cursor.pos = start
        return None

    def integer(self) -> int | None:
        cursor = self.cursor
        cursor.skip_whitespace()
        digits = cursor.pattern(INTEGER, "integer")
        return None if digits is None else int(digits)

    def bounded(self) -> BoundedRange | None:
        cursor = self.cursor
        start = cursor.pos
        low = self.integer()
        if low is None:
            return None
        cursor.skip_whitespace()
        if cursor.one_of("–", "-", "—") is None:
            return None
        cursor.skip_whitespace()
        high = self.integer()
        if high is None:
            return None
        if high < low:
            raise MalformedRangeError(
                "BoundedRange: upper limit must be greater than or equal to lower limit.",
                context={"from": low, "to": high, "offset": start},
            )
        return BoundedRange(low, high)

    def unbounded(self) -> UnboundedRange | None:
        cursor = self.cursor
        value = self.integer()
        if value is None:
            return None
        cursor.skip_whitespace()
        operator = cursor.one_of("-", "+")
        if operator is None:
            return None
        return UnboundedRange(value, "-" if operator == "-" else "+")

    def variable_expression(self) -> VariableExpression | None:
        cursor = self.cursor
        start = cursor.pos
        cursor.skip_whitespace()
        if cursor.literal("$") is None:
            cursor.pos = start
            return None
        name = cursor.pattern(_NAME, "variable name")
        if name is None:
            cursor.pos = start
            return None
        cursor.skip_whitespace()
        operator = cursor.one_of(*_COMPARISONS)
        if operator is None:
            cursor.pos = start
            return None
        cursor.skip_whitespace()
        value = self.variable_value()
        if value is None:
            cursor.pos = start
            return None
        return VariableExpression(name, operator, value)

    def variable_value(self) -> VariableValue | None:
        cursor = self.cursor
        number = cursor.pattern(_NUMBER, "number")
        if number is not None:
            return float(number) if "." in number else int(number)
        keyword = cursor.one_of("true", "false")
        if keyword is not None:
            return keyword == "true"
        for quote in ("'", '"'):
            start = cursor.pos
            if cursor.literal(quote) is None:
                continue
            end = cursor.text.find(quote, cursor.pos)
            if end == -1:
                cursor.pos = start
                cursor.expect(f"closing {quote}")
                continue
            value = cursor.text[cursor.pos:end]
            cursor.pos = end + 1
            return value
        return None


def parse_condition(text: str) -> Condition | None:
    """Parse *text*; an empty or blank condition yields ``None``.

    Raises:
        GrammarSyntaxError: On malformed input, with expected tokens and location.
        MalformedRangeError: When a bounded range ends below its start.
    """

    return _ConditionParser(text).parse()


def format_range_segment(segment: IVRangeSegment, separator: str = "-") -> str:
    if isinstance(segment, str):
        return segment
    if isinstance(segment, int):
        return str(segment)
    if isinstance(segment, BoundedRange):
        return f"{segment.start}{separator}{segment.end}"
    if isinstance(segment, UnboundedRange):
        return f"{segment.value}{segment.operator}"
    raise TypeError(f"Unexpected range segment: {segment!r}")


def _value_source(value: VariableValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"' if "'" in value else f"'{value}'"
    return number_source(value)


def to_source(condition: Condition | None) -> str:
    """Render *condition* back to parseable source, fully parenthesised."""

    if condition is None:
        return ""
    if isinstance(condition, StatExpression):
        expression = condition.expression
        if isinstance(expression, IVRangeTriple):
            body = " / ".join(format_range_segment(part) for part in expression.segments())
            prefix = "~" if expression.inverse else ""
            return f"{condition.stat} = {prefix}({body})"
        return f"{condition.stat} = {format_range_segment(expression)}"
    if isinstance(condition, LogicalExpression):
        return f"({to_source(condition.left)} {condition.operator} {to_source(condition.right)})"
    if isinstance(condition, VariableExpression):
        return f"${condition.variable} {condition.operator} {_value_source(condition.expression)}"
    raise TypeError(f"Unexpected condition node: {condition!r}")

