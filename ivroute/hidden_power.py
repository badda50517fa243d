"""Most probable Hidden Power type from partially known IVs."""

from __future__ import annotations

import itertools
import math
from collections.abc import Mapping

from .constants import STATS, ConfirmedNature
from .inference import IVRangeSet

__all__ = ["HIDDEN_POWER_TYPES", "unique_iv_values", "odd_probability", "hidden_power_type"]

HIDDEN_POWER_TYPES: tuple[str, ...] = (
    "Fighting",
    "Flying",
    "Poison",
    "Ground",
    "Rock",
    "Bug",
    "Ghost",
    "Steel",
    "Fire",
    "Water",
    "Grass",
    "Electric",
    "Psychic",
    "Ice",
    "Dragon",
    "Dark",
)

# Bit weight of each stat's least significant IV bit in the type index.
_BIT_WEIGHTS: Mapping[str, int] = {
    "hp": 1,
    "attack": 2,
    "defense": 4,
    "speed": 8,
    "sp_attack": 16,
    "sp_defense": 32,
}


def unique_iv_values(range_set: IVRangeSet, stat: str, nature: ConfirmedNature) -> list[int]:
    """Candidate IVs of *stat* under every hypothesis *nature* leaves open."""

    if nature.negative == stat and nature.positive == stat:
        return list(range_set.neutral.values())
    if nature.negative == stat:
        return list(range_set.negative.values())
    if nature.positive == stat:
        return list(range_set.positive.values())

    values: set[int] = set(range_set.neutral.values())
    if nature.negative is None:
        values.update(range_set.negative.values())
    if nature.positive is None:
        values.update(range_set.positive.values())
    return sorted(values)


def odd_probability(range_set: IVRangeSet, stat: str, nature: ConfirmedNature, odd: bool) -> float:
    values = unique_iv_values(range_set, stat, nature)
    if not values:
        return 0.0
    return sum(1 for value in values if value % 2 == int(odd)) / len(values)


def hidden_power_type(ranges: Mapping[str, IVRangeSet], nature: ConfirmedNature) -> str | None:
    """Return the Hidden Power type of the most likely IV parity combination.

    ``None`` is returned when every combination is impossible.
    """

    best_probability = 0.0
    best: dict[str, bool] | None = None
    for combination in itertools.product((False, True), repeat=len(STATS)):
        parity = dict(zip(STATS, combination))
        probability = math.prod(
            odd_probability(ranges[stat], stat, nature, parity[stat]) for stat in STATS
        )
        if probability > best_probability:
            best_probability = probability
            best = parity

    if best is None:
        return None
    index = sum(_BIT_WEIGHTS[stat] for stat, odd in best.items() if odd)
    return HIDDEN_POWER_TYPES[index * 15 // 63]
