"""The long-lived IV tracker record for one tracked Pokémon."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

from .constants import (
    Generation,
    StatLine,
    Stat,
    get_nature,
    validate_generation,
)
from .errors import InputValidationError

__all__ = [
    "ObservationTimeline",
    "EVSchedule",
    "NO_STATIC_IVS",
    "DEFAULT_STARTING_LEVEL",
    "Tracker",
    "NatureOverrides",
]

# evolution stage -> level -> stat -> observed value
ObservationTimeline = Mapping[int, Mapping[int, Mapping[str, int]]]
# starting level -> level -> EVs gained by that level
EVSchedule = Mapping[int, Mapping[int, StatLine]]

NO_STATIC_IVS = StatLine.filled(-1)
DEFAULT_STARTING_LEVEL = 5


@dataclass(frozen=True)
class NatureOverrides:
    """Operator or route supplied nature hints."""

    positive: Stat | None = None
    negative: Stat | None = None
    static_nature: str | None = None
    direct_input_natures: tuple[str, ...] = ()


@dataclass(frozen=True)
class Tracker:
    """Everything known about one tracked Pokémon.

    Instances are never mutated; :func:`ivroute.route.apply_command` returns
    updated copies.
    """

    name: str
    base_stats: tuple[StatLine, ...]
    generation: Generation = 4
    evolution: int = 0
    starting_level: int = DEFAULT_STARTING_LEVEL
    current_level: int = DEFAULT_STARTING_LEVEL
    calculate_hidden_power: bool = False
    recorded_stats: ObservationTimeline = field(default_factory=dict)
    ev_segments: EVSchedule = field(default_factory=dict)
    manual_positive_nature: Stat | None = None
    manual_negative_nature: Stat | None = None
    static_ivs: StatLine = NO_STATIC_IVS
    static_nature: str | None = None
    direct_input: bool = False
    direct_input_natures: tuple[str, ...] = ()
    direct_input_ivs: StatLine = NO_STATIC_IVS
    types: tuple[str, ...] = ()
    level_increment_lines: Mapping[int, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        validate_generation(self.generation)
        if self.base_stats and not 0 <= self.evolution < len(self.base_stats):
            raise InputValidationError(
                f"Evolution stage {self.evolution} is outside the "
                f"{len(self.base_stats)} registered base stat lines for {self.name}."
            )
        if self.static_nature is not None:
            try:
                get_nature(self.static_nature)
            except KeyError:
                raise InputValidationError(
                    f"{self.static_nature} is not a valid nature."
                ) from None

    def base_stats_for(self, evolution: int | None = None) -> StatLine:
        """Return the base stats for *evolution* (default: the current stage)."""

        index = self.evolution if evolution is None else evolution
        if not 0 <= index < len(self.base_stats):
            raise InputValidationError(
                f"No base stats registered for evolution stage {index} of {self.name}."
            )
        return self.base_stats[index]

    @property
    def effort_schedule(self) -> Mapping[int, StatLine]:
        """The EV segment that applies to the current starting level."""

        return self.ev_segments.get(self.starting_level, {})

    def evs_at(self, level: int, stat: str) -> int:
        line = self.effort_schedule.get(level)
        return line[stat] if line is not None else 0

    def observations(self) -> Iterator[tuple[int, int, Mapping[str, int]]]:
        """Yield ``(evolution, level, recorded stats)`` in ascending order."""

        for evolution in sorted(self.recorded_stats):
            levels = self.recorded_stats[evolution]
            for level in sorted(levels):
                yield evolution, level, levels[level]

    def nature_overrides(self) -> NatureOverrides:
        return NatureOverrides(
            positive=self.manual_positive_nature,
            negative=self.manual_negative_nature,
            static_nature=self.static_nature,
            direct_input_natures=self.direct_input_natures if self.direct_input else (),
        )
