"""Chance that several independent damage rolls add up to a KO.

Each hit contributes one of its rolls and may independently be a critical
hit, which replaces the roll with its critical counterpart times the critical
multiplier. Success counts are tallied per number of critical hits so the
caller can weight them by binomial critical-hit odds.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from .errors import InputValidationError

__all__ = [
    "DEFAULT_CRIT_MULTIPLIER",
    "DEFAULT_CRIT_DENOMINATOR",
    "parse_rolls",
    "CritOdds",
    "crit_odds",
    "count_successes",
    "RollSumResult",
    "sum_rolls",
]

DEFAULT_CRIT_MULTIPLIER = 2.0
DEFAULT_CRIT_DENOMINATOR = 16


def parse_rolls(text: str) -> list[int]:
    """Parse a comma separated roll list such as ``"10, 10, 11"``."""

    if not text.strip():
        raise InputValidationError("Roll input is empty.")
    try:
        return [int(value.strip()) for value in text.split(",")]
    except ValueError:
        raise InputValidationError(f"Roll input is invalid: {text}.") from None


@dataclass(frozen=True)
class CritOdds:
    """Probability of one specific set of ``crits`` hits critting, and how many such sets exist."""

    crits: int
    odds: float
    binomial_coefficient: int


def crit_odds(hits: int, denominator: int = DEFAULT_CRIT_DENOMINATOR) -> list[CritOdds]:
    if denominator <= 0:
        raise InputValidationError("Critical hit denominator must be positive.")
    chance = 1 / denominator
    return [
        CritOdds(crits, chance**crits * (1 - chance) ** (hits - crits), math.comb(hits, crits))
        for crits in range(hits + 1)
    ]


def count_successes(
    rolls: Sequence[Sequence[int]],
    threshold: int,
    adjusted_rolls: Sequence[Sequence[int]] | None = None,
    crit_multiplier: float = DEFAULT_CRIT_MULTIPLIER,
) -> list[int]:
    """Count roll combinations reaching *threshold*, indexed by number of crits.

    Every roll set is truncated to the length of the first one. Entry ``k``
    counts (roll combination, crit subset of size ``k``) pairs whose total is
    at least *threshold*. A missing or zero adjusted roll falls back to the
    normal roll.
    """

    if not rolls:
        return [0]
    width = len(rolls[0])
    adjusted_rolls = adjusted_rolls or []

    # (total damage, crit count) -> number of ways
    totals: Counter[tuple[int, int]] = Counter({(0, 0): 1})
    for index, roll_set in enumerate(rolls):
        adjusted = adjusted_rolls[index] if index < len(adjusted_rolls) else []
        step: Counter[tuple[int, int]] = Counter()
        for sub_index, value in enumerate(roll_set[:width]):
            crit_base = adjusted[sub_index] if sub_index < len(adjusted) and adjusted[sub_index] else value
            crit_value = math.trunc(crit_base * crit_multiplier)
            for (total, crits), ways in totals.items():
                step[(total + value, crits)] += ways
                step[(total + crit_value, crits + 1)] += ways
        totals = step

    successes = [0] * (len(rolls) + 1)
    for (total, crits), ways in totals.items():
        if total >= threshold:
            successes[crits] += ways
    return successes


@dataclass(frozen=True)
class RollSumResult:
    combination_count: int
    successes: tuple[int, ...]
    odds: tuple[CritOdds, ...]
    include_crits: bool

    @property
    def critless_probability(self) -> float:
        """Chance to reach the threshold when no hit crits."""

        if not self.combination_count:
            return 0.0
        return self.successes[0] / self.combination_count

    def probability_with_crits(self, crits: int) -> float:
        """Chance to reach the threshold given exactly *crits* critical hits."""

        possibilities = self.combination_count * self.odds[crits].binomial_coefficient
        return self.successes[crits] / possibilities if possibilities else 0.0

    @property
    def overall_probability(self) -> float:
        if not self.include_crits:
            return self.critless_probability
        if not self.combination_count:
            return 0.0
        return sum(
            self.successes[odds.crits] / self.combination_count * odds.odds for odds in self.odds
        )


def sum_rolls(
    rolls: Sequence[Sequence[int]],
    threshold: int,
    *,
    adjusted_rolls: Sequence[Sequence[int]] | None = None,
    crit_multiplier: float = DEFAULT_CRIT_MULTIPLIER,
    crit_denominator: int = DEFAULT_CRIT_DENOMINATOR,
    include_crits: bool = False,
) -> RollSumResult:
    """Tally every way the hits described by *rolls* can reach *threshold*."""

    combination_count = len(rolls[0]) ** len(rolls) if rolls else 0
    return RollSumResult(
        combination_count=combination_count,
        successes=tuple(count_successes(rolls, threshold, adjusted_rolls, crit_multiplier)),
        odds=tuple(crit_odds(len(rolls), crit_denominator)),
        include_crits=include_crits,
    )
