"""Hidden Power type from IV parity."""

from __future__ import annotations

from ivroute.constants import STATS, ConfirmedNature
from ivroute.hidden_power import hidden_power_type, odd_probability, unique_iv_values
from ivroute.inference import IVRange, IVRangeSet


def _known(iv: int) -> dict[str, IVRangeSet]:
    domain = IVRange.single(iv)
    return {stat: IVRangeSet.from_hypotheses(domain, domain, domain) for stat in STATS}


def test_all_odd_ivs_give_dark() -> None:
    assert hidden_power_type(_known(31), ConfirmedNature()) == "Dark"


def test_all_even_ivs_give_fighting() -> None:
    assert hidden_power_type(_known(30), ConfirmedNature()) == "Fighting"


def test_impossible_domains_give_no_type() -> None:
    empty = IVRangeSet.from_hypotheses(IVRange.EMPTY, IVRange.EMPTY, IVRange.EMPTY)
    ranges = {stat: empty for stat in STATS}
    assert hidden_power_type(ranges, ConfirmedNature()) is None


def test_confirmed_nature_limits_candidate_ivs() -> None:
    range_set = IVRangeSet.from_hypotheses(IVRange(0, 1), IVRange(10, 11), IVRange(20, 23))
    boosted = ConfirmedNature(positive="attack", negative="speed")
    assert unique_iv_values(range_set, "attack", boosted) == [20, 21, 22, 23]
    assert unique_iv_values(range_set, "defense", boosted) == [10, 11]
    assert unique_iv_values(range_set, "defense", ConfirmedNature()) == [0, 1, 10, 11, 20, 21, 22, 23]
    assert odd_probability(range_set, "attack", boosted, odd=True) == 0.5
