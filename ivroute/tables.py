"""Row-oriented views of tracker analyses and damage tables.

Rows are plain dictionaries so callers can print them, dump them as JSON or
CSV, or hand them to pandas through :func:`build_dataframe` when the optional
``pandas`` extra is installed.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any

from .constants import STATS, ConfirmedNature, format_stat_name
from .errors import DependencyError
from .formatting import format_iv_range
from .inference import IVRangeSet

pd: ModuleType | None
try:
    import pandas as pd
except ModuleNotFoundError:  # pragma: no cover - executed when pandas is absent.
    pd = None

if TYPE_CHECKING:  # pragma: no cover - type checking only.
    from pandas import DataFrame

__all__ = [
    "Row",
    "IV_RANGE_COLUMNS",
    "DAMAGE_COLUMNS",
    "iv_range_rows",
    "damage_rows",
    "write_csv",
    "build_dataframe",
    "export_csv",
]

Row = dict[str, Any]

IV_RANGE_COLUMNS = ("Stat", "Negative", "Neutral", "Positive", "Combined", "Nature")
DAMAGE_COLUMNS = ("IVs", "Stat", "Outcome")


def _nature_marker(stat: str, nature: ConfirmedNature) -> str:
    if nature.positive == stat and nature.negative == stat:
        return "neutral"
    if nature.positive == stat:
        return "+"
    if nature.negative == stat:
        return "-"
    return ""


def iv_range_rows(ranges: Mapping[str, IVRangeSet], nature: ConfirmedNature) -> list[Row]:
    """One row per stat with every hypothesis interval rendered as text."""

    rows: list[Row] = []
    for stat in STATS:
        range_set = ranges[stat]
        rows.append(
            {
                "Stat": format_stat_name(stat),
                "Negative": format_iv_range(range_set.negative),
                "Neutral": format_iv_range(range_set.neutral),
                "Positive": format_iv_range(range_set.positive),
                "Combined": format_iv_range(range_set.combined),
                "Nature": _nature_marker(stat, nature),
            }
        )
    return rows


def damage_rows(lines: Iterable[tuple[str, str, str]]) -> list[Row]:
    """Rows from ``(ivs, stat, outcome)`` lines such as :meth:`DamageTable.lines`.

    The outcome is the damage dealt or the kill chance.
    """

    rows: list[Row] = []
    for ivs, stat_range, outcome in lines:
        rows.append({"IVs": ivs, "Stat": stat_range, "Outcome": outcome})
    return rows


def write_csv(rows: Sequence[Row], path: Path | str, columns: Sequence[str] | None = None) -> Path:
    """Write *rows* to *path* as CSV, creating parent directories as needed."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fieldnames = list(columns) if columns is not None else list(rows[0].keys()) if rows else []
    with target.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=fieldnames, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)
    return target


def build_dataframe(rows: Sequence[Row], columns: Sequence[str] | None = None) -> "DataFrame":
    """Return *rows* as a :class:`pandas.DataFrame`.

    Raises:
        DependencyError: If pandas is not installed.
    """

    if pd is None:
        raise DependencyError(
            "pandas is required to build data frames.",
            remediation="Install the 'pandas' extra: pip install ivroute[pandas].",
        )
    return pd.DataFrame(list(rows), columns=list(columns) if columns is not None else None)


def export_csv(rows: Sequence[Row], path: Path | str, columns: Sequence[str] | None = None) -> Path:
    """Save *rows* as CSV through pandas when available, else the ``csv`` module."""

    if pd is None:
        return write_csv(rows, path, columns)
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    build_dataframe(rows, columns).to_csv(target, index=False)
    return target
