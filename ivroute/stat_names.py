"""Resolve the stat spellings accepted in route expressions."""

from __future__ import annotations

from collections.abc import Mapping

from .constants import STATS
from .errors import UnknownStatError

__all__ = ["STARTING_LEVEL", "STAT_ALIASES", "levenshtein", "match_stat", "is_iv_stat"]

STARTING_LEVEL = "starting_level"

STAT_ALIASES: Mapping[str, tuple[str, ...]] = {
    STARTING_LEVEL: ("startinglevel", "caughtlevel"),
    "hp": ("hp", "health"),
    "attack": ("atk", "attack"),
    "defense": ("def", "defense"),
    "sp_attack": ("spa", "spatk", "spattack", "specialattack"),
    "sp_defense": ("spd", "spdef", "spdefense", "specialdefense"),
    "speed": ("spe", "speed"),
}


def levenshtein(first: str, second: str) -> int:
    """Edit distance between two strings."""

    if len(first) < len(second):
        first, second = second, first
    previous = list(range(len(second) + 1))
    for i, left in enumerate(first, start=1):
        current = [i]
        for j, right in enumerate(second, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (left != right),
                )
            )
        previous = current
    return previous[-1]


def _normalise(name: str) -> str:
    return name.strip().lower().replace("_", "").replace(" ", "")


def match_stat(name: str) -> str:
    """Return the canonical stat for *name*, including ``starting_level``.

    Raises:
        UnknownStatError: With the closest known spelling as ``suggestion``.
    """

    key = _normalise(name)
    for stat, aliases in STAT_ALIASES.items():
        if key in aliases:
            return stat

    suggestion = min(
        (alias for aliases in STAT_ALIASES.values() for alias in aliases),
        key=lambda alias: levenshtein(key, alias),
    )
    raise UnknownStatError(
        f"{name} is not a valid stat; did you mean {suggestion}?",
        suggestion=suggestion,
    )


def is_iv_stat(stat: str) -> bool:
    return stat in STATS
