"""Human-readable labels for damage rolls, IV ranges, and stat ranges."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from .constants import MAX_IV, MIN_IV

__all__ = [
    "format_damage_range",
    "format_iv_range",
    "format_iv_split",
    "format_stat_range",
]

RANGE_SEPARATOR = "–"


class _IVBounds(Protocol):
    start: int
    end: int


class _IVSplit(Protocol):
    negative: _IVBounds | None
    neutral: _IVBounds | None
    positive: _IVBounds | None


def format_damage_range(values: Sequence[int]) -> str:
    """Summarise a sorted roll list, bracketing lone extreme rolls.

    ``[10, 11, 11, ..., 13, 14]`` becomes ``"(10) / 11–13 / (14)"``.
    """

    if not values:
        raise ValueError("Cannot format an empty damage roll list.")
    first, last = values[0], values[-1]
    if first == last:
        return str(first)
    if len(values) < 4:
        return f"{first}{RANGE_SEPARATOR}{last}"

    second, second_last = values[1], values[-2]
    parts: list[str] = []
    if first != second:
        parts.append(f"({first})")
    if second == second_last:
        parts.append(str(second))
    else:
        parts.append(f"{second}{RANGE_SEPARATOR}{second_last}")
    if second_last != last:
        parts.append(f"({last})")
    return " / ".join(parts)


def format_iv_range(bounds: _IVBounds | None) -> str:
    """Render an IV interval; ``x`` marks an impossible or absent hypothesis."""

    if bounds is None or bounds.start == -1:
        return "x"
    start, end = bounds.start, bounds.end
    if start == MIN_IV and end == MAX_IV:
        return "0+"
    if start == MIN_IV:
        return "0" if end == MIN_IV else f"{end}-"
    if end == MAX_IV:
        return str(MAX_IV) if start == MAX_IV else f"{start}+"
    if start == end:
        return str(start)
    return f"{start}{RANGE_SEPARATOR}{end}"


def format_iv_split(split: _IVSplit) -> str:
    """``negative / neutral / positive`` summary of a compact row."""

    return " / ".join(
        format_iv_range(part) for part in (split.negative, split.neutral, split.positive)
    )


def format_stat_range(stat_from: int, stat_to: int) -> str:
    if stat_from == stat_to:
        return str(stat_from)
    return f"{stat_from}{RANGE_SEPARATOR}{stat_to}"
