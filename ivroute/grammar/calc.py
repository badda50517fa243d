"""Arithmetic over numbers, route variables, and tracker stat references.

Grammar::

    Expression     = _ Additive _
    Additive       = Multiplicative (_ ("+" / "-") _ Multiplicative)*
    Multiplicative = Power (_ ("*" / "/" / "%") _ Power)*
    Power          = Primary (_ "**" _ Power)?
    Primary        = "(" _ Additive _ ")" / Function / Number / "$" Name / Stat
    Function       = FunctionName _ "(" _ Additive _ ")"
    Number         = "-"? [0-9]+ ("." [0-9]+)?

A bare stat name (``attack``, ``spa``, ``startingLevel``) stands for every
value that stat could take, so evaluating a calculation yields a list of
outcomes rather than a single number.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar, Union

from ..errors import UnknownStatError
from ..stat_names import match_stat
from ._peg import Cursor, number_source
from .nodes import NodeType

__all__ = [
    "FUNCTION_NAMES",
    "OPERATORS",
    "Operation",
    "Variable",
    "Function",
    "Calculation",
    "parse_calculation",
    "to_source",
]

FUNCTION_NAMES = ("floor", "ceil", "round", "sqrt", "log", "log2", "log10", "trunc", "sign", "abs")
OPERATORS = ("+", "-", "*", "/", "%", "**")


@dataclass(frozen=True)
class Operation:
    operator: str
    left: "Calculation"
    right: "Calculation"

    type: ClassVar[NodeType] = NodeType.OPERATION


@dataclass(frozen=True)
class Variable:
    name: str

    type: ClassVar[NodeType] = NodeType.VARIABLE


@dataclass(frozen=True)
class Function:
    name: str
    expression: "Calculation"

    type: ClassVar[NodeType] = NodeType.FUNCTION


# Numbers are literals and strings are stat references.
Calculation = Union[Operation, Variable, Function, int, float, str]

_NUMBER = re.compile(r"-?[0-9]+(?:\.[0-9]+)?")
_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_STAT_WORD = re.compile(r"[A-Za-z_]+")
# Longest names first so ``log10`` is not read as ``log``.
_FUNCTIONS_BY_LENGTH = tuple(sorted(FUNCTION_NAMES, key=len, reverse=True))


class _CalcParser:
    def __init__(self, text: str) -> None:
        self.cursor = Cursor(text)

    def parse(self) -> Calculation:
        cursor = self.cursor
        cursor.skip_whitespace()
        node = self.additive()
        cursor.skip_whitespace()
        if node is None or not cursor.at_end:
            if node is not None:
                cursor.expect("end of input")
            raise cursor.syntax_error()
        return node

    def _left_assoc(self, operators: tuple[str, ...], operand) -> Calculation | None:
        cursor = self.cursor
        node = operand()
        if node is None:
            return None
        while True:
            save = cursor.pos
            cursor.skip_whitespace()
            operator = self._binary_operator(operators)
            if operator is None:
                cursor.pos = save
                return node
            cursor.skip_whitespace()
            right = operand()
            if right is None:
                cursor.pos = save
                return node
            node = Operation(operator, node, right)

    def _binary_operator(self, operators: tuple[str, ...]) -> str | None:
        cursor = self.cursor
        for operator in operators:
            start = cursor.pos
            if cursor.literal(operator) is None:
                continue
            # "*" must not swallow the first half of "**".
            if operator == "*" and cursor.peek() == "*":
                cursor.pos = start
                continue
            return operator
        return None

    def additive(self) -> Calculation | None:
        return self._left_assoc(("+", "-"), self.multiplicative)

    def multiplicative(self) -> Calculation | None:
        return self._left_assoc(("*", "/", "%"), self.power)

    def power(self) -> Calculation | None:
        cursor = self.cursor
        base = self.primary()
        if base is None:
            return None
        save = cursor.pos
        cursor.skip_whitespace()
        if cursor.literal("**") is None:
            cursor.pos = save
            return base
        cursor.skip_whitespace()
        exponent = self.power()
        if exponent is None:
            cursor.pos = save
            return base
        return Operation("**", base, exponent)

    def primary(self) -> Calculation | None:
        cursor = self.cursor
        start = cursor.pos
        if cursor.literal("(") is not None:
            cursor.skip_whitespace()
            inner = self.additive()
            cursor.skip_whitespace()
            if inner is not None and cursor.literal(")") is not None:
                return inner
            cursor.pos = start
            return None

        for alternative in (self.function, self.number, self.variable, self.stat):
            node = alternative()
            if node is not None:
                return node
            cursor.pos = start
        return None

    def function(self) -> Function | None:
        cursor = self.cursor
        start = cursor.pos
        name = cursor.one_of(*_FUNCTIONS_BY_LENGTH)
        if name is None:
            return None
        cursor.skip_whitespace()
        if cursor.literal("(") is None:
            cursor.pos = start
            return None
        cursor.skip_whitespace()
        inner = self.additive()
        cursor.skip_whitespace()
        if inner is None or cursor.literal(")") is None:
            cursor.pos = start
            return None
        return Function(name, inner)

    def number(self) -> Union[int, float, None]:
        text = self.cursor.pattern(_NUMBER, "number")
        if text is None:
            return None
        return float(text) if "." in text else int(text)

    def variable(self) -> Variable | None:
        cursor = self.cursor
        start = cursor.pos
        if cursor.literal("$") is None:
            return None
        name = cursor.pattern(_NAME, "variable name")
        if name is None:
            cursor.pos = start
            return None
        return Variable(name)

    def stat(self) -> str | None:
        cursor = self.cursor
        start = cursor.pos
        word = cursor.pattern(_STAT_WORD, "stat name")
        if word is None:
            return None
        try:
            match_stat(word)
        except UnknownStatError as exc:
            raise cursor.error_here(exc.message, start, "stat name") from exc
        return word


def parse_calculation(text: str) -> Calculation:
    """Parse *text* into a calculation tree.

    Raises:
        GrammarSyntaxError: When *text* is empty or malformed, or names an
            unknown stat.
    """

    return _CalcParser(text).parse()


def to_source(node: Calculation) -> str:
    """Render *node* as source text with every binary operation parenthesised."""

    if isinstance(node, bool):
        raise TypeError(f"Unexpected calculation node: {node!r}")
    if isinstance(node, (int, float)):
        return number_source(node)
    if isinstance(node, str):
        return node
    if isinstance(node, Variable):
        return f"${node.name}"
    if isinstance(node, Function):
        return f"{node.name}({to_source(node.expression)})"
    if isinstance(node, Operation):
        return f"({to_source(node.left)} {node.operator} {to_source(node.right)})"
    raise TypeError(f"Unexpected calculation node: {node!r}")
