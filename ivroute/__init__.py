"""Infer hidden IVs from observed stats and evaluate route damage and conditions."""

from __future__ import annotations

import re
from importlib import metadata as _metadata
from pathlib import Path

from .compaction import (
    CompactRange,
    OneShotResult,
    calculate_kill_ranges,
    combine_identical_lines,
    filter_to_stat_range,
)
from .constants import (
    IV_STATS,
    NATURES,
    STATS,
    ConfirmedNature,
    Nature,
    StatLine,
    get_nature,
)
from .damage import DamageParameters, calculate_ranges, damage_rolls
from .errors import (
    ConfigurationError,
    EvaluationError,
    GrammarSyntaxError,
    InputValidationError,
    IVRouteError,
)
from .evaluation import (
    EvaluationContext,
    evaluate_calculation,
    evaluate_condition,
    format_condition,
    format_value_set,
)
from .formulas import calculate_hp, calculate_stat
from .grammar import parse_calculation, parse_condition
from .hidden_power import hidden_power_type
from .inference import IVRange, IVRangeSet, infer_ranges, possible_stats
from .nature import analyze_tracker, resolve_nature
from .rolls import sum_rolls
from .route import RouteState, apply_command, build_calculation_set
from .tracker import Tracker


def _read_local_version() -> str:
    """Return the project version from ``pyproject.toml`` when not installed."""

    pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
    if pyproject.is_file():
        match = re.search(
            r'^version\s*=\s*"([^"]+)"', pyproject.read_text(), re.MULTILINE
        )
        if match:
            return match.group(1)
    return "0.0.0"


try:
    __version__ = _metadata.version("ivroute")
except _metadata.PackageNotFoundError:
    __version__ = _read_local_version()

__all__ = [
    "CompactRange",
    "ConfigurationError",
    "ConfirmedNature",
    "DamageParameters",
    "EvaluationContext",
    "EvaluationError",
    "GrammarSyntaxError",
    "IVRange",
    "IVRangeSet",
    "IVRouteError",
    "IV_STATS",
    "InputValidationError",
    "NATURES",
    "Nature",
    "OneShotResult",
    "RouteState",
    "STATS",
    "StatLine",
    "Tracker",
    "__version__",
    "analyze_tracker",
    "apply_command",
    "build_calculation_set",
    "calculate_hp",
    "calculate_kill_ranges",
    "calculate_ranges",
    "calculate_stat",
    "combine_identical_lines",
    "damage_rolls",
    "evaluate_calculation",
    "evaluate_condition",
    "filter_to_stat_range",
    "format_condition",
    "format_value_set",
    "get_nature",
    "hidden_power_type",
    "infer_ranges",
    "parse_calculation",
    "parse_condition",
    "possible_stats",
    "resolve_nature",
    "sum_rolls",
]
