"""Nature resolution across the six IV domains."""

from __future__ import annotations

from ivroute.constants import STATS, ConfirmedNature, StatLine
from ivroute.inference import IVRange, IVRangeSet
from ivroute.nature import (
    analyze_tracker,
    possible_nature_adjustments,
    relevant_combined_range,
    resolve_nature,
)
from ivroute.tracker import NatureOverrides, Tracker

EMPTY = IVRange.EMPTY
FULL = IVRange.FULL


def _ranges(**overrides: tuple[IVRange, IVRange, IVRange]) -> dict[str, IVRangeSet]:
    ranges = {stat: IVRangeSet.from_hypotheses(FULL, FULL, FULL) for stat in STATS}
    for stat, hypotheses in overrides.items():
        ranges[stat] = IVRangeSet.from_hypotheses(*hypotheses)
    return ranges


def test_nature_is_confirmed_from_empty_hypotheses() -> None:
    ranges = _ranges(attack=(FULL, EMPTY, EMPTY), speed=(EMPTY, EMPTY, FULL))
    assert resolve_nature(ranges) == ConfirmedNature(positive="speed", negative="attack")


def test_resolution_is_symmetric() -> None:
    ranges = _ranges(attack=(EMPTY, EMPTY, FULL), speed=(FULL, EMPTY, EMPTY))
    assert resolve_nature(ranges) == ConfirmedNature(positive="attack", negative="speed")


def test_other_side_is_confirmed_by_exclusion() -> None:
    """Once attack is reduced, speed is the only stat left that can be boosted."""

    boosted_impossible = (FULL, FULL, EMPTY)
    ranges = _ranges(
        attack=(FULL, EMPTY, EMPTY),
        defense=boosted_impossible,
        sp_attack=boosted_impossible,
        sp_defense=boosted_impossible,
    )
    assert resolve_nature(ranges) == ConfirmedNature(positive="speed", negative="attack")


def test_unconstrained_domains_leave_the_nature_open() -> None:
    assert resolve_nature(_ranges()) == ConfirmedNature()


def test_static_nature_pins_both_sides() -> None:
    overrides = NatureOverrides(static_nature="adamant")
    assert resolve_nature(_ranges(), overrides) == ConfirmedNature("attack", "sp_attack")


def test_contradicted_pin_is_ignored() -> None:
    ranges = _ranges(attack=(FULL, FULL, EMPTY))
    overrides = NatureOverrides(positive="attack")
    assert resolve_nature(ranges, overrides).positive is None


def test_neutral_pin_requires_a_possible_neutral_domain() -> None:
    overrides = NatureOverrides(positive="defense", negative="defense")
    assert resolve_nature(_ranges(), overrides) == ConfirmedNature("defense", "defense")
    ranges = _ranges(defense=(FULL, EMPTY, FULL))
    assert resolve_nature(ranges, overrides) == ConfirmedNature()


def test_adjustments_follow_the_confirmed_nature() -> None:
    range_set = IVRangeSet.from_hypotheses(FULL, FULL, FULL)
    assert possible_nature_adjustments(range_set, "attack", ConfirmedNature()) == (True, True, True)
    assert possible_nature_adjustments(
        range_set, "attack", ConfirmedNature("attack", "speed")
    ) == (False, False, True)
    assert possible_nature_adjustments(
        range_set, "defense", ConfirmedNature("attack", "speed")
    ) == (False, True, False)


def test_combined_range_narrows_to_the_confirmed_hypothesis() -> None:
    range_set = IVRangeSet.from_hypotheses(IVRange(0, 4), IVRange(10, 14), IVRange(20, 24))
    nature = ConfirmedNature(positive="attack", negative="speed")
    assert relevant_combined_range(range_set, "attack", nature) == IVRange(20, 24)
    assert relevant_combined_range(range_set, "speed", nature) == IVRange(0, 4)
    assert relevant_combined_range(range_set, "defense", nature) == IVRange(10, 14)
    assert relevant_combined_range(range_set, "defense", ConfirmedNature()) == IVRange(0, 24)


def test_early_generations_use_the_neutral_pairing() -> None:
    tracker = Tracker(name="Rattata", base_stats=(StatLine.filled(40),), generation=2)
    analysis = analyze_tracker(tracker)
    assert analysis.nature == ConfirmedNature("attack", "attack")
    assert analysis.ranges["defense"].combined == FULL


def test_analysis_applies_the_nature_to_combined_ranges() -> None:
    tracker = Tracker(
        name="Zigzagoon",
        base_stats=(StatLine.filled(40),),
        static_nature="jolly",
    )
    analysis = analyze_tracker(tracker)
    assert analysis.nature == ConfirmedNature("speed", "sp_attack")
    assert analysis.ranges["speed"].combined == FULL
