"""Node kinds shared by the calc and conditional grammars."""

from __future__ import annotations

from enum import Enum

__all__ = ["NodeType"]


class NodeType(str, Enum):
    STAT_EXPRESSION = "statExpression"
    LOGICAL_EXPRESSION = "logicalExpression"
    VARIABLE_EXPRESSION = "variableExpression"
    BOUNDED_RANGE = "boundedRange"
    UNBOUNDED_RANGE = "unboundedRange"
    IV_RANGE = "ivRange"
    OPERATION = "operation"
    VARIABLE = "variable"
    FUNCTION = "function"
