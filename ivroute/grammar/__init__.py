"""Parsers for the calculation and condition mini-languages used in routes."""

from __future__ import annotations

from .calc import Calculation, parse_calculation
from .conditional import Condition, parse_condition
from .nodes import NodeType

__all__ = [
    "Calculation",
    "Condition",
    "NodeType",
    "parse_calculation",
    "parse_condition",
]
