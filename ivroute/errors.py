"""Centralised error taxonomy for ivroute."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Mapping, Tuple

__all__ = [
    "IVRouteError",
    "DependencyError",
    "InputValidationError",
    "UnknownTrackerError",
    "ConfigurationError",
    "EvaluationError",
    "UnknownStatError",
    "UnknownVariableError",
    "MissingLevelError",
    "InversionError",
    "MalformedRangeError",
    "GrammarSyntaxError",
    "SourcePosition",
    "SourceSpan",
    "sanitize_context",
]


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return sanitize_context(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_sanitize_value(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return repr(value)


def sanitize_context(context: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a JSON-friendly copy of contextual logging or error data."""

    return {str(key): _sanitize_value(value) for key, value in context.items()}


@dataclass(eq=False)
class IVRouteError(Exception):
    """Base class for structured, actionable errors raised by the package."""

    message: str
    remediation: str | None = None
    context: Dict[str, Any] | None = None

    category: ClassVar[str] = "internal_error"

    def __post_init__(self) -> None:  # pragma: no cover - trivial
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def to_payload(self, *, trace_id: str | None = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "category": self.category,
            "message": self.message,
        }
        if self.remediation:
            payload["remediation"] = self.remediation
        if self.context:
            payload["context"] = sanitize_context(self.context)
        if trace_id:
            payload["trace_id"] = trace_id
        return payload


class DependencyError(IVRouteError):
    category = "dependency_error"


class InputValidationError(IVRouteError):
    category = "input_error"


class UnknownTrackerError(InputValidationError):
    category = "unknown_tracker"


class ConfigurationError(IVRouteError):
    """An unsupported generation, operator, or function reached the core."""

    category = "configuration_error"


class EvaluationError(IVRouteError):
    category = "evaluation_error"


@dataclass(eq=False)
class UnknownStatError(EvaluationError):
    suggestion: str | None = None

    category: ClassVar[str] = "unknown_stat"


class UnknownVariableError(EvaluationError):
    category = "unknown_variable"


class MissingLevelError(EvaluationError):
    category = "missing_level"


class InversionError(EvaluationError):
    category = "inversion_error"


class MalformedRangeError(EvaluationError):
    category = "malformed_range"


@dataclass(frozen=True)
class SourcePosition:
    """Zero-based ``offset`` with one-based ``line`` and ``column``."""

    offset: int
    line: int
    column: int


@dataclass(frozen=True)
class SourceSpan:
    start: SourcePosition
    end: SourcePosition


@dataclass(eq=False)
class GrammarSyntaxError(IVRouteError):
    """Malformed grammar input, always recoverable by the caller."""

    expected: Tuple[str, ...] = ()
    found: str | None = None
    location: SourceSpan | None = None

    category: ClassVar[str] = "parse_error"

    def to_payload(self, *, trace_id: str | None = None) -> Dict[str, Any]:
        payload = super().to_payload(trace_id=trace_id)
        payload["expected"] = list(self.expected)
        payload["found"] = self.found
        if self.location is not None:
            payload["location"] = {
                "start": vars(self.location.start),
                "end": vars(self.location.end),
            }
        return payload
