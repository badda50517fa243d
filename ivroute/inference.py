"""Infer the IV domains consistent with a tracker's recorded stats.

Every stat carries three candidate intervals, one per nature hypothesis
(reduced, unmodified, boosted). Each recorded observation can only narrow an
interval; an interval that no IV satisfies becomes :data:`IVRange.EMPTY`
and stays empty.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import ClassVar

from .constants import (
    MAX_IV,
    MIN_IV,
    NATURE_MODIFIERS,
    NATURE_TYPES,
    STATS,
    ConfirmedNature,
    Generation,
    NatureType,
    Stat,
    StatLine,
)
from .errors import InputValidationError
from .formulas import stat as stat_value
from .tracker import ObservationTimeline, Tracker

__all__ = [
    "IVRange",
    "IVRangeSet",
    "StatValuePossibilitySet",
    "narrow_range",
    "infer_stat_range",
    "infer_ranges",
    "tracker_ranges",
    "possible_stat_values",
    "possible_stats",
]


@dataclass(frozen=True)
class IVRange:
    """Inclusive IV interval; ``(-1, -1)`` marks an impossible hypothesis."""

    start: int
    end: int

    EMPTY: ClassVar["IVRange"]
    FULL: ClassVar["IVRange"]

    def __post_init__(self) -> None:
        if (self.start, self.end) == (-1, -1):
            return
        if not MIN_IV <= self.start <= self.end <= MAX_IV:
            raise ValueError(f"Invalid IV range: {self.start}-{self.end}.")

    @classmethod
    def single(cls, iv: int) -> "IVRange":
        return cls(iv, iv)

    @classmethod
    def spanning(cls, values: Iterable[int]) -> "IVRange":
        """Return the smallest range holding every value, or :data:`EMPTY`."""

        collected = list(values)
        if not collected:
            return cls.EMPTY
        return cls(min(collected), max(collected))

    @property
    def is_empty(self) -> bool:
        return self.start == -1

    def values(self) -> range:
        if self.is_empty:
            return range(0)
        return range(self.start, self.end + 1)

    def __contains__(self, iv: object) -> bool:
        return isinstance(iv, int) and not self.is_empty and self.start <= iv <= self.end

    @property
    def width(self) -> int:
        return 0 if self.is_empty else self.end - self.start + 1

    def intersect(self, other: "IVRange") -> "IVRange":
        if self.is_empty or other.is_empty:
            return IVRange.EMPTY
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if start > end:
            return IVRange.EMPTY
        return IVRange(start, end)

    def hull(self, other: "IVRange") -> "IVRange":
        """Smallest range covering both; empty ranges are ignored."""

        if self.is_empty:
            return other
        if other.is_empty:
            return self
        return IVRange(min(self.start, other.start), max(self.end, other.end))

    def overlaps(self, other: "IVRange") -> bool:
        return not self.intersect(other).is_empty

    def as_tuple(self) -> tuple[int, int]:
        return self.start, self.end


IVRange.EMPTY = IVRange(-1, -1)
IVRange.FULL = IVRange(MIN_IV, MAX_IV)


@dataclass(frozen=True)
class IVRangeSet:
    """The three per-hypothesis intervals of one stat plus their combination."""

    negative: IVRange
    neutral: IVRange
    positive: IVRange
    combined: IVRange

    def __getitem__(self, nature_type: str) -> IVRange:
        if nature_type not in NATURE_TYPES:
            raise KeyError(nature_type)
        return getattr(self, nature_type)

    def hypotheses(self) -> tuple[IVRange, IVRange, IVRange]:
        return self.negative, self.neutral, self.positive

    @classmethod
    def from_hypotheses(cls, negative: IVRange, neutral: IVRange, positive: IVRange) -> "IVRangeSet":
        """Build a set whose combined range is the union of all three."""

        return cls(negative, neutral, positive, negative.hull(neutral).hull(positive))


def _ev_for(schedule: Mapping[int, StatLine], level: int, stat: str) -> int:
    line = schedule.get(level)
    return line[stat] if line is not None else 0


def narrow_range(
    domain: IVRange,
    stat: str,
    level: int,
    base: int,
    ev: int,
    modifier: float,
    generation: Generation,
    observed: int,
) -> IVRange:
    """Intersect *domain* with the IVs that reproduce *observed* at *level*."""

    matches = [
        iv
        for iv in domain.values()
        if stat_value(stat, level, base, iv, ev, modifier, generation) == observed
    ]
    if not matches:
        return IVRange.EMPTY
    return IVRange(max(domain.start, min(matches)), min(domain.end, max(matches)))


def infer_stat_range(
    stat: Stat,
    timeline: ObservationTimeline,
    base_stats_by_evolution: Sequence[StatLine],
    effort_schedule: Mapping[int, StatLine],
    generation: Generation,
    static_iv: int = -1,
) -> IVRangeSet:
    """Return the :class:`IVRangeSet` for *stat* given every recorded observation.

    Args:
        stat: Stat to infer.
        timeline: ``evolution -> level -> stat -> value`` observations. Missing
            or zero values are treated as "not recorded".
        base_stats_by_evolution: Base stats indexed by evolution stage.
        effort_schedule: EVs accumulated by each level.
        generation: Ruleset of the tracked game.
        static_iv: A known IV (``-1`` when not fixed). The domain starts
            collapsed to it, so a conflicting observation empties the domain.

    Returns:
        The three hypothesis intervals with a provisional combined interval
        equal to their union.
    """

    initial = IVRange.FULL if static_iv < 0 else IVRange.single(static_iv)
    ranges: dict[NatureType, IVRange] = {}
    for nature_type in NATURE_TYPES:
        modifier = NATURE_MODIFIERS[nature_type]
        domain = initial
        for evolution in sorted(timeline):
            if not 0 <= evolution < len(base_stats_by_evolution):
                raise InputValidationError(
                    f"Stats were recorded for evolution stage {evolution}, "
                    "which has no base stats."
                )
            base = base_stats_by_evolution[evolution][stat]
            levels = timeline[evolution]
            for level in sorted(levels):
                if domain.is_empty:
                    break
                observed = levels[level].get(stat)
                if not observed:
                    continue
                ev = _ev_for(effort_schedule, level, stat)
                domain = narrow_range(domain, stat, level, base, ev, modifier, generation, observed)
        ranges[nature_type] = domain
    return IVRangeSet.from_hypotheses(ranges["negative"], ranges["neutral"], ranges["positive"])


def infer_ranges(
    timeline: ObservationTimeline,
    base_stats_by_evolution: Sequence[StatLine],
    effort_schedule: Mapping[int, StatLine],
    generation: Generation,
    static_ivs: StatLine | None = None,
) -> dict[Stat, IVRangeSet]:
    """Run :func:`infer_stat_range` for all six stats."""

    return {
        stat: infer_stat_range(
            stat,
            timeline,
            base_stats_by_evolution,
            effort_schedule,
            generation,
            static_ivs[stat] if static_ivs is not None else -1,
        )
        for stat in STATS
    }


def _direct_input_ranges(tracker: Tracker) -> dict[Stat, IVRangeSet]:
    ranges: dict[Stat, IVRangeSet] = {}
    for stat in STATS:
        iv = tracker.direct_input_ivs[stat]
        domain = IVRange.FULL if iv < 0 else IVRange.single(iv)
        ranges[stat] = IVRangeSet.from_hypotheses(domain, domain, domain)
    return ranges


def tracker_ranges(tracker: Tracker) -> dict[Stat, IVRangeSet]:
    """Infer ranges from a tracker, honouring direct input mode."""

    if tracker.direct_input:
        return _direct_input_ranges(tracker)
    return infer_ranges(
        tracker.recorded_stats,
        tracker.base_stats,
        tracker.effort_schedule,
        tracker.generation,
        tracker.static_ivs,
    )


@dataclass(frozen=True)
class StatValuePossibilitySet:
    """Stat values reachable by any IV (``possible``) and by the inferred ones (``valid``)."""

    possible: tuple[int, ...]
    valid: tuple[int, ...]


def possible_stat_values(
    stat: str,
    level: int,
    base: int,
    domain: IVRange,
    ev: int,
    modifiers: Sequence[float],
    generation: Generation,
) -> StatValuePossibilitySet:
    possible = {
        stat_value(stat, level, base, iv, ev, modifier, generation)
        for iv in IVRange.FULL.values()
        for modifier in modifiers
    }
    valid = {
        stat_value(stat, level, base, iv, ev, modifier, generation)
        for iv in domain.values()
        for modifier in modifiers
    }
    return StatValuePossibilitySet(tuple(sorted(possible)), tuple(sorted(valid)))


def possible_stats(
    stat: Stat,
    level: int,
    ranges: Mapping[str, IVRangeSet],
    nature: ConfirmedNature,
    tracker: Tracker,
    evolution: int | None = None,
) -> StatValuePossibilitySet:
    """Return the stat values *stat* could show at *level*.

    Hypotheses ruled out by *nature*, or whose IV interval is empty, are
    skipped.
    """

    hypotheses: list[NatureType] = ["neutral"] if stat == "hp" else list(NATURE_TYPES)
    if nature.positive == stat and nature.negative == stat:
        hypotheses = ["neutral"]
    if nature.negative is not None and nature.negative != stat:
        hypotheses = [key for key in hypotheses if key != "negative"]
    if nature.positive is not None and nature.positive != stat:
        hypotheses = [key for key in hypotheses if key != "positive"]

    base = tracker.base_stats_for(evolution)[stat]
    ev = tracker.evs_at(level, stat)
    possible: set[int] = set()
    valid: set[int] = set()
    for nature_type in hypotheses:
        domain = ranges[stat][nature_type]
        if domain.is_empty:
            continue
        values = possible_stat_values(
            stat, level, base, domain, ev, [NATURE_MODIFIERS[nature_type]], tracker.generation
        )
        possible.update(values.possible)
        valid.update(values.valid)
    return StatValuePossibilitySet(tuple(sorted(possible)), tuple(sorted(valid)))
