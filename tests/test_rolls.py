"""Multi-hit KO probabilities."""

from __future__ import annotations

import pytest

from ivroute.errors import InputValidationError
from ivroute.rolls import count_successes, crit_odds, parse_rolls, sum_rolls


def test_parse_rolls() -> None:
    assert parse_rolls("10, 11,12") == [10, 11, 12]
    with pytest.raises(InputValidationError, match="empty"):
        parse_rolls("  ")
    with pytest.raises(InputValidationError, match="invalid"):
        parse_rolls("10, eleven")


def test_successes_are_indexed_by_crit_count() -> None:
    """Two hits of 5: 10 without crits, 15 with one, 20 with two."""

    assert count_successes([[5, 5], [5, 5]], 10) == [4, 8, 4]
    assert count_successes([[5, 5], [5, 5]], 11) == [0, 8, 4]


def test_adjusted_rolls_replace_crit_values() -> None:
    assert count_successes([[5]], 14, adjusted_rolls=[[7]]) == [0, 1]
    assert count_successes([[5]], 14, adjusted_rolls=[[0]]) == [0, 0]


def test_probabilities_combine_crit_odds() -> None:
    result = sum_rolls([[5, 5], [5, 5]], 11, include_crits=True)
    assert result.combination_count == 4
    assert result.critless_probability == 0
    assert result.probability_with_crits(1) == pytest.approx(1.0)
    assert result.overall_probability == pytest.approx(1 - (15 / 16) ** 2)

    without = sum_rolls([[5, 5], [5, 5]], 11)
    assert not without.include_crits
    assert without.overall_probability == 0


def test_crit_odds_binomial_coefficients() -> None:
    odds = crit_odds(3, 16)
    assert [entry.binomial_coefficient for entry in odds] == [1, 3, 3, 1]
    assert sum(entry.odds * entry.binomial_coefficient for entry in odds) == pytest.approx(1.0)
    with pytest.raises(InputValidationError):
        crit_odds(2, 0)


def test_empty_roll_list() -> None:
    result = sum_rolls([], 10)
    assert result.combination_count == 0
    assert result.overall_probability == 0.0
