"""Type matchups used to derive STAB and type effectiveness for damage tables."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

__all__ = [
    "TYPE_NAMES",
    "TypeMatchups",
    "TYPE_CHART",
    "is_type_name",
    "defensive_effectiveness",
    "move_effectiveness",
    "is_stab",
]

TYPE_NAMES: tuple[str, ...] = (
    "normal",
    "fighting",
    "flying",
    "poison",
    "ground",
    "rock",
    "bug",
    "ghost",
    "steel",
    "fire",
    "water",
    "grass",
    "electric",
    "psychic",
    "ice",
    "dragon",
    "dark",
    "fairy",
)


@dataclass(frozen=True)
class TypeMatchups:
    """Defending types an attacking type hits for double, half, or no damage."""

    double: frozenset[str]
    half: frozenset[str]
    immune: frozenset[str]


def _matchups(double: Iterable[str] = (), half: Iterable[str] = (), immune: Iterable[str] = ()) -> TypeMatchups:
    return TypeMatchups(frozenset(double), frozenset(half), frozenset(immune))


TYPE_CHART: Mapping[str, TypeMatchups] = {
    "normal": _matchups(half=["rock", "steel"], immune=["ghost"]),
    "fighting": _matchups(
        double=["normal", "rock", "steel", "ice", "dark"],
        half=["flying", "poison", "bug", "psychic", "fairy"],
        immune=["ghost"],
    ),
    "flying": _matchups(double=["fighting", "bug", "grass"], half=["rock", "steel", "electric"]),
    "poison": _matchups(
        double=["grass", "fairy"], half=["poison", "ground", "rock", "ghost"], immune=["steel"]
    ),
    "ground": _matchups(
        double=["poison", "rock", "steel", "fire", "electric"],
        half=["bug", "grass"],
        immune=["flying"],
    ),
    "rock": _matchups(double=["flying", "bug", "fire", "ice"], half=["fighting", "ground", "steel"]),
    "bug": _matchups(
        double=["grass", "psychic", "dark"],
        half=["fighting", "flying", "poison", "ghost", "steel", "fire"],
    ),
    "ghost": _matchups(double=["ghost", "psychic"], half=["dark"], immune=["normal"]),
    "steel": _matchups(double=["rock", "ice", "fairy"], half=["steel", "fire", "water", "electric"]),
    "fire": _matchups(double=["bug", "steel", "grass"], half=["rock", "fire", "water", "dragon"]),
    "water": _matchups(double=["ground", "rock", "fire"], half=["water", "grass", "dragon"]),
    "grass": _matchups(
        double=["ground", "rock", "water"],
        half=["flying", "poison", "bug", "steel", "fire", "grass", "dragon"],
    ),
    "electric": _matchups(
        double=["flying", "water"], half=["grass", "electric", "dragon"], immune=["ground"]
    ),
    "psychic": _matchups(double=["fighting", "poison"], half=["steel", "psychic"], immune=["dark"]),
    "ice": _matchups(
        double=["flying", "ground", "grass", "dragon"], half=["steel", "fire", "water", "ice"]
    ),
    "dragon": _matchups(double=["dragon"], half=["steel"], immune=["fairy"]),
    "dark": _matchups(double=["ghost", "psychic"], half=["fighting", "dark", "fairy"]),
    "fairy": _matchups(double=["fighting", "dragon", "dark"], half=["poison", "steel", "fire"]),
}


def is_type_name(value: str) -> bool:
    return value in TYPE_CHART


def defensive_effectiveness(move_type: str, defending_type: str) -> float:
    """Multiplier of *move_type* against a single *defending_type*."""

    matchups = TYPE_CHART[move_type]
    if defending_type in matchups.immune:
        return 0.0
    if defending_type in matchups.double:
        return 2.0
    if defending_type in matchups.half:
        return 0.5
    return 1.0


def move_effectiveness(move_type: str, *defending_types: str) -> float:
    """Combined multiplier against up to two defending types.

    Raises:
        KeyError: If any type name is unknown.
    """

    for name in (move_type, *defending_types):
        if name not in TYPE_CHART:
            raise KeyError(name)
    multiplier = 1.0
    for defending_type in defending_types[:2]:
        multiplier *= defensive_effectiveness(move_type, defending_type)
    return multiplier


def is_stab(move_type: str | None, attacker_types: Iterable[str]) -> bool:
    return move_type is not None and move_type in set(attacker_types)
