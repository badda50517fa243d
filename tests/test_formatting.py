"""Display labels for rolls, IV intervals and stat ranges."""

from __future__ import annotations

import pytest

from ivroute.compaction import CompactRange
from ivroute.formatting import format_damage_range, format_iv_range, format_iv_split, format_stat_range
from ivroute.inference import IVRange


def test_lone_extreme_rolls_are_bracketed() -> None:
    rolls = [10, 11, 11, 11, 12, 12, 12, 12, 12, 13, 13, 13, 13, 13, 13, 14]
    assert format_damage_range(rolls) == "(10) / 11–13 / (14)"


def test_damage_range_shortcuts() -> None:
    assert format_damage_range([7] * 16) == "7"
    assert format_damage_range([1, 2, 3]) == "1–3"
    assert format_damage_range([10, 10, 11, 12, 14, 14]) == "10–14"
    with pytest.raises(ValueError):
        format_damage_range([])


@pytest.mark.parametrize(
    ("bounds", "expected"),
    [
        (IVRange.FULL, "0+"),
        (IVRange(0, 10), "10-"),
        (IVRange(20, 31), "20+"),
        (IVRange(0, 0), "0"),
        (IVRange(31, 31), "31"),
        (IVRange(5, 5), "5"),
        (IVRange(3, 7), "3–7"),
        (IVRange.EMPTY, "x"),
        (None, "x"),
    ],
)
def test_iv_range_labels(bounds: IVRange | None, expected: str) -> None:
    assert format_iv_range(bounds) == expected


def test_iv_split_and_stat_range() -> None:
    row = CompactRange((5,) * 16, "5", 20, 22, negative=IVRange(0, 31), neutral=IVRange(3, 7))
    assert format_iv_split(row) == "0+ / 3–7 / x"
    assert format_stat_range(20, 22) == "20–22"
    assert format_stat_range(20, 20) == "20"
