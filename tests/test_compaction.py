"""Merging damage tables into compact rows and kill-chance buckets."""

from __future__ import annotations

from ivroute.compaction import calculate_kill_ranges, combine_identical_lines, filter_to_stat_range
from ivroute.constants import ConfirmedNature
from ivroute.damage import NatureResult, StatRange
from ivroute.formatting import format_damage_range
from ivroute.inference import IVRange, IVRangeSet

ROLLS = (10, 10, 11, 11, 11, 12, 12, 12, 12, 13, 13, 13, 13, 13, 14, 14)
HIGH_ROLLS = (15,) * 16
TOP_ROLLS = (16,) * 16


def _segment(stat: int, from_iv: int, to_iv: int, rolls: tuple[int, ...]) -> StatRange:
    return StatRange(stat, from_iv, to_iv, rolls, format_damage_range(rolls), rolls[0], rolls[-1])


def _results() -> list[NatureResult]:
    return [
        NatureResult("negative", "Negative Nature", (_segment(20, 0, 31, ROLLS),)),
        NatureResult(
            "neutral",
            "Neutral Nature",
            (_segment(22, 0, 15, ROLLS), _segment(23, 16, 31, HIGH_ROLLS)),
        ),
        NatureResult("positive", "Positive Nature", (_segment(25, 0, 31, TOP_ROLLS),)),
    ]


def test_identical_rolls_merge_across_hypotheses() -> None:
    combined = combine_identical_lines(_results())
    assert list(combined) == ["10–14", "15", "16"]

    shared = combined["10–14"]
    assert shared.negative == IVRange(0, 31)
    assert shared.neutral == IVRange(0, 15)
    assert shared.positive is None
    assert (shared.stat_from, shared.stat_to) == (20, 22)


def test_kill_buckets_count_rolls_at_or_above_threshold() -> None:
    buckets = calculate_kill_ranges(_results(), 12)
    assert sorted(buckets) == [11, 16]

    partial = buckets[11]
    assert partial.successes == sum(1 for roll in ROLLS if roll >= 12)
    assert len(partial.component_results) == 1
    assert partial.negative == IVRange(0, 31)
    assert partial.neutral == IVRange(0, 15)

    certain = buckets[16]
    assert len(certain.component_results) == 2
    assert certain.neutral == IVRange(16, 31)
    assert certain.positive == IVRange(0, 31)
    assert (certain.stat_from, certain.stat_to) == (23, 25)


def test_rows_outside_the_confirmed_hypothesis_are_dropped() -> None:
    buckets = calculate_kill_ranges(_results(), 12)
    full = IVRangeSet.from_hypotheses(IVRange.FULL, IVRange.FULL, IVRange.FULL)
    boosted = ConfirmedNature(positive="attack", negative="speed")
    assert list(filter_to_stat_range(buckets, boosted, "attack", full)) == [16]
    assert sorted(filter_to_stat_range(buckets, ConfirmedNature(), "attack", full)) == [11, 16]


def test_rows_outside_the_inferred_domain_are_dropped() -> None:
    combined = combine_identical_lines(_results())
    narrowed = IVRangeSet.from_hypotheses(IVRange.EMPTY, IVRange(20, 24), IVRange.EMPTY)
    kept = filter_to_stat_range(combined, ConfirmedNature(), "attack", narrowed)
    assert list(kept) == ["15"]
