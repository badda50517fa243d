"""Merge per-nature damage tables into compact rows and kill-chance buckets."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import TypeVar, Union

from .constants import NATURE_TYPES, ConfirmedNature, NatureType
from .damage import NatureResult
from .inference import IVRange, IVRangeSet
from .nature import possible_nature_adjustments

__all__ = [
    "CompactRange",
    "OneShotResult",
    "combine_identical_lines",
    "calculate_kill_ranges",
    "merge_iv_ranges",
    "is_iv_within_range",
    "filter_to_stat_range",
]


@dataclass(frozen=True)
class CompactRange:
    """One damage row plus the IVs under each hypothesis that produce it.

    A hypothesis that never produced this row is ``None``.
    """

    damage_values: tuple[int, ...]
    damage_range_output: str
    stat_from: int
    stat_to: int
    negative: IVRange | None = None
    neutral: IVRange | None = None
    positive: IVRange | None = None

    def hypothesis(self, nature_type: NatureType) -> IVRange | None:
        return getattr(self, nature_type)


@dataclass(frozen=True)
class OneShotResult:
    """Rows sharing the same number of rolls at or above a health threshold."""

    successes: int
    stat_from: int
    stat_to: int
    negative: IVRange | None
    neutral: IVRange | None
    positive: IVRange | None
    component_results: tuple[CompactRange, ...]

    def hypothesis(self, nature_type: NatureType) -> IVRange | None:
        return getattr(self, nature_type)


def combine_identical_lines(results: Sequence[NatureResult]) -> dict[str, CompactRange]:
    """Merge segments of every hypothesis that share a damage label.

    Hypotheses are visited negative, neutral, positive, and segments in
    increasing IV order, so each hypothesis keeps its first lower bound and
    extends its upper bound as later segments match.
    """

    by_key = {result.key: result for result in results}
    combined: dict[str, CompactRange] = {}
    for nature_type in NATURE_TYPES:
        result = by_key.get(nature_type)
        if result is None:
            continue
        for segment in result.range_segments:
            label = segment.damage_range_output
            current = combined.get(label)
            if current is None:
                combined[label] = CompactRange(
                    damage_values=segment.damage_values,
                    damage_range_output=label,
                    stat_from=segment.stat,
                    stat_to=segment.stat,
                    **{nature_type: IVRange(segment.from_iv, segment.to_iv)},
                )
                continue
            previous = current.hypothesis(nature_type)
            start = previous.start if previous is not None else segment.from_iv
            combined[label] = replace(
                current,
                damage_values=segment.damage_values,
                stat_from=min(current.stat_from, segment.stat),
                stat_to=max(current.stat_to, segment.stat),
                **{nature_type: IVRange(start, segment.to_iv)},
            )
    return combined


def merge_iv_ranges(first: IVRange | None, second: IVRange | None) -> IVRange | None:
    """Min/max union of two optional hypothesis ranges."""

    if first is None:
        return second
    if second is None:
        return first
    return first.hull(second)


def calculate_kill_ranges(
    results: Sequence[NatureResult],
    health_threshold: int,
) -> dict[int, OneShotResult]:
    """Bucket compact rows by how many of their rolls reach *health_threshold*."""

    buckets: dict[int, OneShotResult] = {}
    for compact in combine_identical_lines(results).values():
        successes = sum(1 for value in compact.damage_values if value >= health_threshold)
        current = buckets.get(successes)
        if current is None:
            buckets[successes] = OneShotResult(
                successes=successes,
                stat_from=compact.stat_from,
                stat_to=compact.stat_to,
                negative=compact.negative,
                neutral=compact.neutral,
                positive=compact.positive,
                component_results=(compact,),
            )
            continue
        buckets[successes] = OneShotResult(
            successes=successes,
            stat_from=min(current.stat_from, compact.stat_from),
            stat_to=max(current.stat_to, compact.stat_to),
            negative=merge_iv_ranges(current.negative, compact.negative),
            neutral=merge_iv_ranges(current.neutral, compact.neutral),
            positive=merge_iv_ranges(current.positive, compact.positive),
            component_results=(*current.component_results, compact),
        )
    return buckets


Row = Union[CompactRange, OneShotResult]
RowT = TypeVar("RowT", CompactRange, OneShotResult)


def _overlaps(candidate: IVRange | None, domain: IVRange) -> bool:
    return candidate is not None and candidate.overlaps(domain)


def is_iv_within_range(
    row: Row,
    nature: ConfirmedNature,
    stat: str,
    range_set: IVRangeSet,
) -> bool:
    """Whether *row* can still happen given the tracker's current IV domain."""

    if nature.positive == stat and nature.negative == stat:
        return _overlaps(row.neutral, range_set.neutral)
    if nature.negative == stat:
        return _overlaps(row.negative, range_set.negative)
    if nature.positive == stat:
        return _overlaps(row.positive, range_set.positive)

    flags = possible_nature_adjustments(range_set, stat, nature)
    return any(
        _overlaps(row.hypothesis(nature_type), range_set[nature_type])
        for nature_type, keep in zip(NATURE_TYPES, flags)
        if keep
    )


def filter_to_stat_range(
    rows: Mapping[object, RowT],
    nature: ConfirmedNature,
    stat: str,
    range_set: IVRangeSet,
) -> dict[object, RowT]:
    """Drop rows that no IV in the tracker's current domain can produce."""

    return {
        key: row for key, row in rows.items() if is_iv_within_range(row, nature, stat, range_set)
    }
