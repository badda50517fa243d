"""Type chart lookups used for automatic STAB and effectiveness."""

from __future__ import annotations

import pytest

from ivroute.typechart import TYPE_CHART, TYPE_NAMES, is_stab, is_type_name, move_effectiveness


def test_chart_covers_every_type() -> None:
    assert len(TYPE_NAMES) == 18
    assert set(TYPE_CHART) == set(TYPE_NAMES)


@pytest.mark.parametrize(
    ("move_type", "defending", "expected"),
    [
        ("electric", ("water", "flying"), 4.0),
        ("fire", ("grass",), 2.0),
        ("normal", ("fighting",), 1.0),
        ("water", ("water",), 0.5),
        ("grass", ("fire", "dragon"), 0.25),
        ("ghost", ("normal", "psychic"), 0.0),
    ],
)
def test_dual_type_effectiveness(move_type: str, defending: tuple[str, ...], expected: float) -> None:
    assert move_effectiveness(move_type, *defending) == expected


def test_unknown_type_is_rejected() -> None:
    assert not is_type_name("sound")
    with pytest.raises(KeyError):
        move_effectiveness("sound", "normal")


def test_stab_requires_a_matching_attacker_type() -> None:
    assert is_stab("water", ["water", "ground"])
    assert not is_stab("normal", ["water"])
    assert not is_stab(None, ["water"])
