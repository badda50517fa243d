"""Stat names, natures, and generation helpers shared across ivroute."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, fields, replace
from typing import Literal, Union

from .errors import ConfigurationError

__all__ = [
    "Stat",
    "STATS",
    "IV_STATS",
    "MIN_IV",
    "MAX_IV",
    "StatLine",
    "NatureType",
    "NATURE_TYPES",
    "NATURE_MODIFIERS",
    "Nature",
    "NATURES",
    "get_nature",
    "Generation",
    "LGPE",
    "SUPPORTED_GENERATIONS",
    "parse_generation",
    "validate_generation",
    "generation_at_least",
    "generation_at_most",
    "format_stat_name",
    "ConfirmedNature",
]

Stat = Literal["hp", "attack", "defense", "sp_attack", "sp_defense", "speed"]

STATS: tuple[Stat, ...] = ("hp", "attack", "defense", "sp_attack", "sp_defense", "speed")
# Stats a nature can touch.
IV_STATS: tuple[Stat, ...] = STATS[1:]

MIN_IV = 0
MAX_IV = 31

_STAT_DISPLAY_NAMES: Mapping[str, str] = {
    "hp": "HP",
    "attack": "Attack",
    "defense": "Defense",
    "sp_attack": "Sp. Attack",
    "sp_defense": "Sp. Defense",
    "speed": "Speed",
    "starting_level": "Starting Level",
}


def format_stat_name(stat: str) -> str:
    """Return the display label for *stat*."""

    return _STAT_DISPLAY_NAMES.get(stat, stat)


@dataclass(frozen=True)
class StatLine:
    """One integer per battle stat."""

    hp: int = 0
    attack: int = 0
    defense: int = 0
    sp_attack: int = 0
    sp_defense: int = 0
    speed: int = 0

    @classmethod
    def from_sequence(cls, values: Sequence[int]) -> "StatLine":
        """Build a stat line from ``[hp, atk, def, spa, spd, spe]``.

        Missing trailing entries default to ``0``.
        """

        if len(values) > len(STATS):
            raise ValueError(f"A stat line holds {len(STATS)} values, got {len(values)}.")
        padded = list(values) + [0] * (len(STATS) - len(values))
        return cls(*(int(value) for value in padded))

    @classmethod
    def filled(cls, value: int) -> "StatLine":
        return cls(*([value] * len(STATS)))

    def __getitem__(self, stat: str) -> int:
        if stat not in STATS:
            raise KeyError(stat)
        return getattr(self, stat)

    def replace(self, stat: str, value: int) -> "StatLine":
        if stat not in STATS:
            raise KeyError(stat)
        return replace(self, **{stat: value})

    def as_tuple(self) -> tuple[int, ...]:
        return tuple(getattr(self, field.name) for field in fields(self))

    def items(self) -> Iterable[tuple[Stat, int]]:
        return zip(STATS, self.as_tuple())


NatureType = Literal["negative", "neutral", "positive"]

NATURE_TYPES: tuple[NatureType, ...] = ("negative", "neutral", "positive")

NATURE_MODIFIERS: Mapping[NatureType, float] = {
    "negative": 0.9,
    "neutral": 1.0,
    "positive": 1.1,
}


@dataclass(frozen=True)
class Nature:
    """A nature boosts ``positive`` and reduces ``negative``; equal stats cancel out."""

    name: str
    positive: Stat
    negative: Stat

    @property
    def is_neutral(self) -> bool:
        return self.positive == self.negative

    def modifier(self, stat: str) -> float:
        if self.is_neutral or stat == "hp":
            return NATURE_MODIFIERS["neutral"]
        if stat == self.positive:
            return NATURE_MODIFIERS["positive"]
        if stat == self.negative:
            return NATURE_MODIFIERS["negative"]
        return NATURE_MODIFIERS["neutral"]


def _build_natures() -> dict[str, Nature]:
    table: tuple[tuple[str, Stat, Stat], ...] = (
        ("hardy", "attack", "attack"),
        ("lonely", "attack", "defense"),
        ("adamant", "attack", "sp_attack"),
        ("naughty", "attack", "sp_defense"),
        ("brave", "attack", "speed"),
        ("bold", "defense", "attack"),
        ("docile", "defense", "defense"),
        ("impish", "defense", "sp_attack"),
        ("lax", "defense", "sp_defense"),
        ("relaxed", "defense", "speed"),
        ("modest", "sp_attack", "attack"),
        ("mild", "sp_attack", "defense"),
        ("bashful", "sp_attack", "sp_attack"),
        ("rash", "sp_attack", "sp_defense"),
        ("quiet", "sp_attack", "speed"),
        ("calm", "sp_defense", "attack"),
        ("gentle", "sp_defense", "defense"),
        ("careful", "sp_defense", "sp_attack"),
        ("quirky", "sp_defense", "sp_defense"),
        ("sassy", "sp_defense", "speed"),
        ("timid", "speed", "attack"),
        ("hasty", "speed", "defense"),
        ("jolly", "speed", "sp_attack"),
        ("naive", "speed", "sp_defense"),
        ("serious", "speed", "speed"),
    )
    return {name: Nature(name, positive, negative) for name, positive, negative in table}


NATURES: Mapping[str, Nature] = _build_natures()


def get_nature(name: str) -> Nature:
    """Return the nature called *name* (case-insensitive) or raise :class:`KeyError`."""

    key = name.strip().lower()
    nature = NATURES.get(key)
    if nature is None:
        raise KeyError(name)
    return nature


Generation = Union[int, str]

LGPE = "lgpe"
SUPPORTED_GENERATIONS: tuple[Generation, ...] = (1, 2, 3, 4, 5, 6, 7, 8, 9, LGPE)


def validate_generation(generation: Generation) -> Generation:
    """Return *generation* unchanged or raise :class:`ConfigurationError`."""

    if isinstance(generation, bool) or generation not in SUPPORTED_GENERATIONS:
        raise ConfigurationError(
            f"Unsupported generation: {generation!r}.",
            remediation="Use an integer from 1 to 9 or 'lgpe'.",
        )
    return generation


def parse_generation(raw: str | int | None, default: Generation = 4) -> Generation:
    """Parse a directive's generation attribute."""

    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return default
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text == LGPE:
            return LGPE
        try:
            return validate_generation(int(text))
        except ValueError:
            raise ConfigurationError(f"Unsupported generation: {raw!r}.") from None
    return validate_generation(raw)


def generation_at_least(generation: Generation, minimum: int) -> bool:
    """Numbered comparison; the LGPE ruleset never satisfies it."""

    return generation != LGPE and int(generation) >= minimum


def generation_at_most(generation: Generation, maximum: int) -> bool:
    return generation != LGPE and int(generation) <= maximum


@dataclass(frozen=True)
class ConfirmedNature:
    """The boosted and reduced stat, each ``None`` while undetermined."""

    positive: Stat | None = None
    negative: Stat | None = None

    @property
    def is_resolved(self) -> bool:
        return self.positive is not None and self.negative is not None
