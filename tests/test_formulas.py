"""Tests for the per-generation stat formulas."""

from __future__ import annotations

import pytest

from ivroute.constants import StatLine
from ivroute.errors import ConfigurationError
from ivroute.formulas import (
    apply_combat_stages,
    calculate_hp,
    calculate_stat,
    friendship_gain,
    friendship_modifier,
    gen1_stat,
    lgpe_stat,
    stat,
)
from ivroute.inference import infer_stat_range


def test_gen4_boosted_stat_matches_worked_example() -> None:
    """Level 50, base 100, IV 31, no EVs and a boosting nature gives 132."""

    assert calculate_stat(50, 100, 31, 0, 1.1, 4) == 132
    assert calculate_stat(50, 100, 31, 0, 1.0, 4) == 120
    assert calculate_stat(50, 100, 31, 0, 0.9, 4) == 108


def test_early_generations_ignore_nature_and_use_sqrt_ev_term() -> None:
    assert calculate_stat(50, 100, 15, 0, 1.1, 2) == gen1_stat(50, 100, 15, 0) == 120
    # ceil(sqrt(65535)) // 4 == 64
    assert gen1_stat(50, 100, 15, 65535) == 152


def test_hp_formulas_per_ruleset() -> None:
    assert calculate_hp(50, 100, 31, 0, 4) == 175
    assert calculate_hp(50, 100, 15, 0, 2) == 175
    assert calculate_hp(50, 100, 31, 0, "lgpe") == 175
    assert calculate_hp(50, 100, 31, 10, "lgpe") == 185


def test_lgpe_awards_are_added_after_multipliers() -> None:
    assert friendship_modifier(0) == pytest.approx(1.0)
    assert friendship_modifier(255) == pytest.approx(1.1)
    assert lgpe_stat(50, 100, 31, 200, 1.1, 255) == 345
    assert calculate_stat(50, 100, 31, 200, 1.1, "lgpe", friendship=255) == 345


def test_stat_dispatches_hp_separately() -> None:
    assert stat("hp", 50, 100, 31, 0, 1.1, 4) == calculate_hp(50, 100, 31, 0, 4)
    assert stat("attack", 50, 100, 31, 0, 1.1, 4) == 132


def test_combat_stages() -> None:
    assert apply_combat_stages(100, 0) == 100
    assert apply_combat_stages(100, 2) == 200
    assert apply_combat_stages(100, 6) == 400
    assert apply_combat_stages(100, -1) == 66


def test_invalid_inputs_raise_configuration_errors() -> None:
    with pytest.raises(ConfigurationError, match="Unsupported generation"):
        calculate_stat(50, 100, 31, 0, 1.0, 10)
    with pytest.raises(ConfigurationError, match="Level must be at least 1"):
        calculate_stat(0, 100, 31, 0, 1.0, 4)
    with pytest.raises(ConfigurationError):
        calculate_hp(50, -1, 31, 0, 4)


def test_friendship_gain_drops_past_one_hundred() -> None:
    assert friendship_gain("level", 50) == 2
    assert friendship_gain("level", 150) == 1
    assert friendship_gain("candy", 99) == 5
    with pytest.raises(ConfigurationError, match="Unknown friendship event"):
        friendship_gain("haircut", 0)


@pytest.mark.parametrize("generation", [1, 2, 3, 4, 5, "lgpe"])
@pytest.mark.parametrize("iv", [0, 15, 31])
def test_inferred_domain_contains_the_iv_that_produced_the_stat(generation: object, iv: int) -> None:
    """A single observation never rules out the IV it was computed from."""

    observed = stat("attack", 30, 80, iv, 0, 1.1, generation)
    ranges = infer_stat_range(
        "attack",
        {0: {30: {"attack": observed}}},
        (StatLine.filled(80),),
        {},
        generation,
    )
    assert iv in ranges.positive
