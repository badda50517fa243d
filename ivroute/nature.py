"""Nature resolution across the six inferred IV domains."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import TypeVar

from .constants import (
    IV_STATS,
    ConfirmedNature,
    Stat,
    generation_at_most,
    get_nature,
)
from .inference import IVRange, IVRangeSet, tracker_ranges
from .tracker import NatureOverrides, Tracker

__all__ = [
    "resolve_nature",
    "possible_nature_adjustments",
    "filter_by_nature_adjustments",
    "relevant_combined_range",
    "apply_confirmed_nature",
    "TrackerAnalysis",
    "analyze_tracker",
]

T = TypeVar("T")

NEUTRAL_PAIRING = ConfirmedNature(positive="attack", negative="attack")


def _infer_from_domains(ranges: Mapping[str, IVRangeSet]) -> ConfirmedNature:
    confirmed_negative = next(
        (stat for stat in IV_STATS if ranges[stat].positive.is_empty and ranges[stat].neutral.is_empty),
        None,
    )
    confirmed_positive = next(
        (stat for stat in IV_STATS if ranges[stat].negative.is_empty and ranges[stat].neutral.is_empty),
        None,
    )

    possible_negatives = [stat for stat in IV_STATS if not ranges[stat].negative.is_empty]
    possible_positives = [stat for stat in IV_STATS if not ranges[stat].positive.is_empty]

    negative_by_exclusion = (
        possible_negatives[0] if confirmed_positive and len(possible_negatives) == 1 else None
    )
    positive_by_exclusion = (
        possible_positives[0] if confirmed_negative and len(possible_positives) == 1 else None
    )

    return ConfirmedNature(
        positive=confirmed_positive or positive_by_exclusion,
        negative=confirmed_negative or negative_by_exclusion,
    )


def _pinned_pair(overrides: NatureOverrides) -> tuple[Stat | None, Stat | None]:
    if overrides.static_nature:
        nature = get_nature(overrides.static_nature)
        return nature.positive, nature.negative
    if len(overrides.direct_input_natures) == 1:
        nature = get_nature(overrides.direct_input_natures[0])
        return nature.positive, nature.negative
    return overrides.positive, overrides.negative


def resolve_nature(
    ranges: Mapping[str, IVRangeSet],
    overrides: NatureOverrides | None = None,
) -> ConfirmedNature:
    """Determine the boosted and reduced stat implied by *ranges*.

    A stat is confirmed reduced when both its unmodified and boosted domains
    are empty, and confirmed boosted in the mirrored case. Once one side is
    confirmed, the other side is confirmed by exclusion if only one stat still
    admits that hypothesis.

    Pins from *overrides* (a static nature, a single direct-input nature, or a
    manual choice) take precedence, but only when the pinned stat's matching
    domain is still possible. A pin the observations contradict is dropped in
    favour of the evidence.
    """

    inferred = _infer_from_domains(ranges)
    if overrides is None:
        return inferred

    pinned_positive, pinned_negative = _pinned_pair(overrides)
    if pinned_positive is not None and pinned_positive == pinned_negative:
        if ranges[pinned_positive].neutral.is_empty:
            return inferred
        return ConfirmedNature(positive=pinned_positive, negative=pinned_negative)

    positive = inferred.positive
    negative = inferred.negative
    if pinned_positive is not None and not ranges[pinned_positive].positive.is_empty:
        positive = pinned_positive
    if pinned_negative is not None and not ranges[pinned_negative].negative.is_empty:
        negative = pinned_negative
    return ConfirmedNature(positive=positive, negative=negative)


def possible_nature_adjustments(
    range_set: IVRangeSet,
    stat: str,
    nature: ConfirmedNature,
) -> tuple[bool, bool, bool]:
    """Return which of (reduced, unmodified, boosted) still apply to *stat*."""

    negative_open = not range_set.negative.is_empty
    positive_open = not range_set.positive.is_empty

    if nature.positive == stat and nature.negative == stat:
        return False, True, False
    if nature.positive == stat:
        return False, False, True
    if nature.negative == stat:
        return True, False, False
    if nature.positive is None and not negative_open and (nature.negative is not None or positive_open):
        return False, True, True
    if nature.negative is None and negative_open and (nature.positive is not None or not positive_open):
        return True, True, False
    if nature.negative is None and nature.positive is None and negative_open and positive_open:
        return True, True, True
    return False, True, False


def filter_by_nature_adjustments(
    range_set: IVRangeSet,
    stat: str,
    nature: ConfirmedNature,
    values: Sequence[T],
) -> list[T]:
    """Keep the entries of a ``(negative, neutral, positive)`` triple that still apply."""

    flags = possible_nature_adjustments(range_set, stat, nature)
    return [value for value, keep in zip(values, flags) if keep]


def relevant_combined_range(range_set: IVRangeSet, stat: str, nature: ConfirmedNature) -> IVRange:
    """Union of the hypothesis intervals *nature* leaves open for *stat*."""

    positive, negative = nature.positive, nature.negative
    both_pinned_here = positive == stat and negative == stat

    candidates: list[IVRange] = []
    if not (positive is not None and (positive != stat or negative == stat)):
        candidates.append(range_set.positive)
    if not ((positive == stat or negative == stat) and not both_pinned_here):
        candidates.append(range_set.neutral)
    if not (negative is not None and (negative != stat or positive == stat)):
        candidates.append(range_set.negative)

    combined = IVRange.EMPTY
    for candidate in candidates:
        combined = combined.hull(candidate)
    return combined


def apply_confirmed_nature(
    ranges: Mapping[Stat, IVRangeSet],
    nature: ConfirmedNature,
) -> dict[Stat, IVRangeSet]:
    """Recompute every stat's combined interval for *nature*."""

    return {
        stat: replace(range_set, combined=relevant_combined_range(range_set, stat, nature))
        for stat, range_set in ranges.items()
    }


@dataclass(frozen=True)
class TrackerAnalysis:
    """Fully resolved IV ranges and nature for a tracker."""

    ranges: dict[Stat, IVRangeSet]
    nature: ConfirmedNature


def analyze_tracker(tracker: Tracker) -> TrackerAnalysis:
    """Infer every IV range, resolve the nature, and narrow combined intervals."""

    ranges = tracker_ranges(tracker)
    if generation_at_most(tracker.generation, 2):
        nature = NEUTRAL_PAIRING
    else:
        nature = resolve_nature(ranges, tracker.nature_overrides())
    return TrackerAnalysis(apply_confirmed_nature(ranges, nature), nature)
