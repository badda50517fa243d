"""Sixteen-roll damage calculation with per-generation modifier ordering.

The damage formula truncates after every multiplication. Which multipliers
land before the random factor and which after differs between generations, and
those differences change the resulting rolls, so :func:`modifier_stages`
keeps every generation's ordering separate instead of unifying them.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from .constants import (
    LGPE,
    MAX_IV,
    MIN_IV,
    NATURE_MODIFIERS,
    NATURE_TYPES,
    Generation,
    NatureType,
    Stat,
    generation_at_least,
    generation_at_most,
    validate_generation,
)
from .errors import ConfigurationError
from .formatting import format_damage_range
from .formulas import apply_combat_stages, calculate_stat

__all__ = [
    "ROLL_COUNT",
    "RANDOM_FACTORS",
    "damage_rolls",
    "critical_multiplier",
    "multi_target_modifier",
    "screen_modifier",
    "ModifierStages",
    "DamageParameters",
    "modifier_stages",
    "StatRange",
    "NatureResult",
    "stat_segments",
    "calculate_ranges",
]

ROLL_COUNT = 16
RANDOM_FACTORS: tuple[float, ...] = tuple((85 + roll) / 100 for roll in range(ROLL_COUNT))

WEATHER_BOOST = 1.5
WEATHER_REDUCTION = 0.5
STAB_MODIFIER = 1.5
TORRENT_MODIFIER = 1.5


def _fold(value: float, modifiers: Sequence[float]) -> float:
    result = value
    for modifier in modifiers:
        result = math.trunc(result * modifier)
    return result


def damage_rolls(
    level: int,
    power: float,
    attack: float,
    defense: float,
    base_power_modifiers: Sequence[float] = (),
    pre_random_modifiers: Sequence[float] = (),
    post_random_modifiers: Sequence[float] = (),
    generation: Generation | None = None,
) -> list[int]:
    """Return the sixteen damage values from the lowest to the highest roll.

    Args:
        level: Attacker level.
        power: Move base power.
        attack: Attacker's final attacking stat.
        defense: Defender's final defending stat.
        base_power_modifiers: Multipliers folded into the move power.
        pre_random_modifiers: Multipliers applied to the base damage before
            the random factor.
        post_random_modifiers: Multipliers applied after the random factor.
        generation: Optional ruleset, validated when given.

    Raises:
        ConfigurationError: On an unsupported generation or a non-positive
            defending stat.
    """

    if generation is not None:
        validate_generation(generation)
    if defense <= 0:
        raise ConfigurationError(f"Defending stat must be positive, got {defense}.")
    if level < 1 or power < 0 or attack < 0:
        raise ConfigurationError("Level must be positive; power and attack non-negative.")

    level_modifier = math.trunc(2 * level / 5) + 2
    adjusted_power = _fold(power, base_power_modifiers)
    base_damage = math.trunc(math.floor(level_modifier * adjusted_power * attack / defense) / 50) + 2

    return [
        int(_fold(base_damage, [*pre_random_modifiers, factor, *post_random_modifiers]))
        for factor in RANDOM_FACTORS
    ]


def critical_multiplier(generation: Generation) -> float:
    return 2.0 if generation_at_most(generation, 5) else 1.5


def multi_target_modifier(generation: Generation) -> float:
    return 0.5 if generation == 3 else 0.75


def screen_modifier(multi_target: bool) -> float:
    return 2 / 3 if multi_target else 0.5


@dataclass(frozen=True)
class DamageParameters:
    """Everything needed to tabulate damage across a tracker's IV domain.

    ``offensive`` means the tracked Pokémon attacks; otherwise it defends and
    the opponent's stat and level drive the attack.
    """

    level: int
    base_stat: int
    move_power: int
    opponent_stat: int
    opponent_level: int
    generation: Generation = 4
    stat: Stat = "attack"
    evs: int = 0
    combat_stages: int = 0
    opponent_combat_stages: int = 0
    type_effectiveness: float = 1.0
    stab: bool = False
    torrent: bool = False
    weather_boosted: bool = False
    weather_reduced: bool = False
    multi_target: bool = False
    critical_hit: bool = False
    screen: bool = False
    offensive: bool = True
    friendship: int = 0
    other_modifier: float = 1.0
    other_power_modifier: float = 1.0

    def __post_init__(self) -> None:
        validate_generation(self.generation)
        if self.level < 1 or self.opponent_level < 1:
            raise ConfigurationError("Levels must be at least 1.")
        if self.move_power < 0:
            raise ConfigurationError("Move power cannot be negative.")
        if not -6 <= self.combat_stages <= 6 or not -6 <= self.opponent_combat_stages <= 6:
            raise ConfigurationError("Combat stages must be between -6 and +6.")
        if self.type_effectiveness < 0:
            raise ConfigurationError("Type effectiveness cannot be negative.")


@dataclass(frozen=True)
class ModifierStages:
    base_power: tuple[float, ...]
    pre_random: tuple[float, ...]
    post_random: tuple[float, ...]


def modifier_stages(params: DamageParameters) -> ModifierStages:
    """Place each active multiplier in its generation's fold stage.

    Generations 3 and 9 are the best verified orderings; the others follow
    the same structure and may differ from the games in rare edge cases.
    """

    generation = params.generation
    crit = critical_multiplier(generation) if params.critical_hit else 1.0
    screen = screen_modifier(params.multi_target) if params.screen and not params.critical_hit else 1.0
    spread = multi_target_modifier(generation) if params.multi_target else 1.0
    weather = (
        WEATHER_BOOST if params.weather_boosted else 1.0,
        WEATHER_REDUCTION if params.weather_reduced else 1.0,
    )
    stab = STAB_MODIFIER if params.stab else 1.0
    effectiveness = params.type_effectiveness

    base_power: list[float] = []
    pre_random: list[float] = []
    post_random: list[float] = []

    if generation == 4:
        base_power.extend([screen, spread, *weather])
    base_power.append(params.other_power_modifier)

    if generation_at_least(generation, 5) or generation == LGPE:
        pre_random.extend([spread, *weather])
    elif generation == 3:
        pre_random.append(spread)
    pre_random.append(crit)
    if generation == 3:
        pre_random.extend([stab, effectiveness])
    else:
        post_random.extend([stab, effectiveness])
    if generation_at_least(generation, 5):
        post_random.append(screen)
    post_random.append(params.other_modifier)

    return ModifierStages(tuple(base_power), tuple(pre_random), tuple(post_random))


@dataclass(frozen=True)
class StatRange:
    """IVs ``from_iv..to_iv`` share ``stat`` and therefore the same rolls."""

    stat: int
    from_iv: int
    to_iv: int
    damage_values: tuple[int, ...]
    damage_range_output: str
    min_damage: int
    max_damage: int

    @property
    def start(self) -> int:
        return self.from_iv

    @property
    def end(self) -> int:
        return self.to_iv


@dataclass(frozen=True)
class NatureResult:
    """All stat segments for one nature hypothesis."""

    key: NatureType
    name: str
    range_segments: tuple[StatRange, ...]


_NATURE_LABELS = {"negative": "Negative Nature", "neutral": "Neutral Nature", "positive": "Positive Nature"}


def stat_segments(
    level: int,
    base: int,
    ev: int,
    modifier: float,
    generation: Generation,
    *,
    friendship: int = 0,
) -> list[tuple[int, int, int]]:
    """Group IVs 0..31 into ``(stat, from_iv, to_iv)`` runs of equal stat value."""

    segments: list[tuple[int, int, int]] = []
    for iv in range(MIN_IV, MAX_IV + 1):
        value = calculate_stat(level, base, iv, ev, modifier, generation, friendship=friendship)
        if segments and segments[-1][0] == value:
            segments[-1] = (value, segments[-1][1], iv)
        else:
            segments.append((value, iv, iv))
    return segments


def calculate_ranges(params: DamageParameters) -> list[NatureResult]:
    """Tabulate damage for every IV under each of the three nature hypotheses."""

    stages = modifier_stages(params)
    generation = params.generation
    opponent = apply_combat_stages(params.opponent_stat, params.opponent_combat_stages)
    power: float = params.move_power
    if params.torrent and generation_at_most(generation, 4):
        power *= TORRENT_MODIFIER
    results: list[NatureResult] = []

    for nature_type in NATURE_TYPES:
        segments: list[StatRange] = []
        for value, from_iv, to_iv in stat_segments(
            params.level,
            params.base_stat,
            params.evs,
            NATURE_MODIFIERS[nature_type],
            generation,
            friendship=params.friendship,
        ):
            own: float = apply_combat_stages(value, params.combat_stages)
            if params.offensive:
                if params.torrent and generation_at_least(generation, 5):
                    own *= TORRENT_MODIFIER
                rolls = damage_rolls(
                    params.level,
                    power,
                    own,
                    opponent,
                    stages.base_power,
                    stages.pre_random,
                    stages.post_random,
                )
            else:
                attacking: float = opponent
                if params.torrent and generation_at_least(generation, 5):
                    attacking *= TORRENT_MODIFIER
                rolls = damage_rolls(
                    params.opponent_level,
                    power,
                    attacking,
                    own,
                    stages.base_power,
                    stages.pre_random,
                    stages.post_random,
                )
            segments.append(
                StatRange(
                    stat=value,
                    from_iv=from_iv,
                    to_iv=to_iv,
                    damage_values=tuple(rolls),
                    damage_range_output=format_damage_range(rolls),
                    min_damage=rolls[0],
                    max_damage=rolls[-1],
                )
            )
        results.append(NatureResult(nature_type, _NATURE_LABELS[nature_type], tuple(segments)))
    return results
