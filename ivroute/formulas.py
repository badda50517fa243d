"""Integer stat formulas for every supported ruleset.

Every function mirrors the game's integer arithmetic: intermediate results are
floored before they are used, never after.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Literal

from .constants import LGPE, Generation, generation_at_most, validate_generation
from .errors import ConfigurationError

__all__ = [
    "gen1_stat",
    "gen3_stat",
    "lgpe_stat",
    "calculate_hp",
    "calculate_stat",
    "stat",
    "apply_combat_stages",
    "friendship_modifier",
    "FriendshipEvent",
    "FRIENDSHIP_EVENTS",
    "friendship_gain",
]


def _check_inputs(level: int, base: int, iv: int, ev: int) -> None:
    if level < 1:
        raise ConfigurationError(f"Level must be at least 1, got {level}.")
    if base < 0 or iv < 0 or ev < 0:
        raise ConfigurationError("Base stats, IVs, and EVs must be non-negative.")


def _early_ev_term(ev: int) -> int:
    return math.ceil(math.sqrt(ev)) // 4


def gen1_stat(level: int, base: int, iv: int, ev: int) -> int:
    """Return a non-HP stat under the generation 1 and 2 formula (no natures)."""

    return ((2 * (base + iv) + _early_ev_term(ev)) * level) // 100 + 5


def gen3_stat(level: int, base: int, iv: int, ev: int, modifier: float) -> int:
    """Return a non-HP stat under the generation 3+ formula.

    Args:
        level: Current level.
        base: Species base stat.
        iv: Individual value in ``[0, 31]``.
        ev: Accumulated effort value.
        modifier: Nature multiplier, one of ``0.9``, ``1.0`` or ``1.1``.
    """

    return math.floor((((2 * base + iv + ev // 4) * level) // 100 + 5) * modifier)


def friendship_modifier(friendship: int) -> float:
    """Return the LGPE friendship multiplier, ``1.00`` up to ``1.10``."""

    return 1 + math.floor(10 * (friendship / 255)) / 100


def lgpe_stat(
    level: int,
    base: int,
    iv: int,
    award: int,
    modifier: float,
    friendship: int = 0,
) -> int:
    """Return a non-HP stat under the Let's Go rules.

    Awakening values are added after the nature and friendship multipliers
    instead of feeding the base formula.
    """

    natured = math.floor((((2 * base + iv) * level) // 100 + 5) * modifier)
    return math.floor(natured * friendship_modifier(friendship)) + award


def calculate_hp(level: int, base: int, iv: int, ev: int, generation: Generation) -> int:
    """Return max HP; natures never apply to HP."""

    validate_generation(generation)
    _check_inputs(level, base, iv, ev)
    if generation == LGPE:
        return ((2 * base + iv) * level) // 100 + level + 10 + ev
    if generation_at_most(generation, 2):
        return ((2 * (base + iv) + _early_ev_term(ev)) * level) // 100 + level + 10
    return ((2 * base + iv + ev // 4) * level) // 100 + level + 10


def calculate_stat(
    level: int,
    base: int,
    iv: int,
    ev: int,
    modifier: float,
    generation: Generation,
    *,
    friendship: int = 0,
) -> int:
    """Return a non-HP stat for *generation*.

    ``ev`` holds awakening values for LGPE. ``modifier`` is ignored before
    generation 3 because natures did not exist yet.
    """

    validate_generation(generation)
    _check_inputs(level, base, iv, ev)
    if generation == LGPE:
        return lgpe_stat(level, base, iv, ev, modifier, friendship)
    if generation_at_most(generation, 2):
        return gen1_stat(level, base, iv, ev)
    return gen3_stat(level, base, iv, ev, modifier)


def stat(
    stat_name: str,
    level: int,
    base: int,
    iv: int,
    ev: int,
    modifier: float,
    generation: Generation,
    *,
    friendship: int = 0,
) -> int:
    """Dispatch to :func:`calculate_hp` or :func:`calculate_stat` by stat name."""

    if stat_name == "hp":
        return calculate_hp(level, base, iv, ev, generation)
    return calculate_stat(level, base, iv, ev, modifier, generation, friendship=friendship)


def apply_combat_stages(value: float, stage: int) -> int:
    """Apply an in-battle stage between -6 and +6 to an already computed stat."""

    if stage > 0:
        return math.floor(value * ((stage + 2) / 2))
    if stage < 0:
        return math.floor(value * (2 / (abs(stage) + 2)))
    return math.floor(value)


FriendshipEvent = Literal["level", "candy", "x_item", "gym_fight"]

# (gain below 100 friendship, gain at 100 or more)
FRIENDSHIP_EVENTS: Mapping[str, tuple[int, int]] = {
    "level": (2, 1),
    "candy": (5, 3),
    "x_item": (1, 1),
    "gym_fight": (4, 4),
}


def friendship_gain(event: str, friendship: int) -> int:
    """Return the friendship a Let's Go partner gains from *event*."""

    try:
        low, high = FRIENDSHIP_EVENTS[event]
    except KeyError:
        raise ConfigurationError(f"Unknown friendship event: {event!r}.") from None
    return low if friendship < 100 else high
