from __future__ import annotations

import pytest

from wager_analytics.consolidation import (
    american_to_decimal,
    combined_american_odds,
    consolidate,
    decimal_to_american,
    resolve_parlay_outcome,
)
from wager_analytics.models import Parlay, Single, WagerLeg, unit_legs


def _leg(leg_id: str, **fields) -> WagerLeg:
    return WagerLeg(id=leg_id, **fields)


def _parlay_leg(leg_id: str, group: str = "p1", **fields) -> WagerLeg:
    return WagerLeg(id=leg_id, parlay_group_id=group, is_parlay=True, **fields)


def test_consolidate_partitions_by_group_and_flag() -> None:
    legs = [
        _leg("s1", status="won"),
        _parlay_leg("a", "p1", status="won"),
        _parlay_leg("b", "p2", status="lost"),
        _parlay_leg("c", "p1", status="won"),
        # group id without the parlay flag stays a single
        _leg("s2", parlay_group_id="p3", is_parlay=False),
        # parlay flag without a group id stays a single
        _leg("s3", is_parlay=True),
    ]

    result = consolidate(legs)

    assert [parlay.parlay_group_id for parlay in result.parlays] == ["p1", "p2"]
    assert [leg.id for leg in result.parlays[0].legs] == ["a", "c"]
    assert [leg.id for leg in result.singles] == ["s1", "s2", "s3"]
    assert result.total_units == 5


def test_every_leg_belongs_to_exactly_one_unit() -> None:
    legs = [
        _parlay_leg("a", "p1"),
        _leg("s1"),
        _parlay_leg("b", "p1"),
        _parlay_leg("c", "p2"),
    ]

    units = consolidate(legs).units()
    seen = [leg.id for unit in units for leg in unit_legs(unit)]

    assert sorted(seen) == ["a", "b", "c", "s1"]
    assert isinstance(units[0], Parlay)
    assert isinstance(units[-1], Single)


def test_parlay_all_won_without_profit_uses_payout() -> None:
    legs = [
        _parlay_leg("a", stake=100, potential_payout=250, status="won"),
        _parlay_leg("b", stake=100, potential_payout=250, status="won"),
    ]

    parlay = consolidate(legs).parlays[0]

    assert parlay.status == "won"
    assert parlay.profit == 150
    assert parlay.stake == 100
    assert parlay.potential_payout == 250


def test_parlay_with_lost_leg_loses_stake() -> None:
    legs = [
        _parlay_leg("a", stake=40, status="pending"),
        _parlay_leg("b", stake=40, status="lost"),
        _parlay_leg("c", stake=40, status="won"),
    ]

    parlay = consolidate(legs).parlays[0]

    assert parlay.status == "lost"
    assert parlay.profit == -40


def test_recorded_profit_wins_over_leg_statuses() -> None:
    legs = [
        _parlay_leg("a", stake=10, status="pending", profit=0),
        _parlay_leg("b", stake=10, status="pending", profit=35.5),
    ]

    parlay = consolidate(legs).parlays[0]

    assert parlay.status == "won"
    assert parlay.profit == 35.5


def test_zero_recorded_profit_defers_to_later_leg() -> None:
    legs = [
        _parlay_leg("a", stake=10, status="lost", profit=0.0),
        _parlay_leg("b", stake=10, status="lost", profit=-10.0),
    ]

    assert resolve_parlay_outcome(legs, stake=10, potential_payout=40) == ("lost", -10.0)


def test_lost_leg_beats_pending_legs_in_any_position() -> None:
    legs = [
        _parlay_leg("a", status="lost"),
        _parlay_leg("b", status="pending"),
        _parlay_leg("c", status="pending"),
    ]

    assert resolve_parlay_outcome(legs, stake=25, potential_payout=200) == ("lost", -25.0)

def test_negative_recorded_profit_marks_lost() -> None:
    parlay = consolidate([_parlay_leg("a", stake=10, status="won", profit=-10)]).parlays[0]

    assert parlay.status == "lost"
    assert parlay.profit == -10


def test_representative_stake_and_payout_pick_first_positive() -> None:
    legs = [
        _parlay_leg("a", stake=0, potential_payout=0, status="won"),
        _parlay_leg("b", stake=0, potential_payout=300, status="won"),
        _parlay_leg("c", stake=50, potential_payout=999, status="won"),
    ]

    parlay = consolidate(legs).parlays[0]

    assert parlay.stake == 50
    assert parlay.potential_payout == 300
    assert parlay.profit == 250


@pytest.mark.parametrize(
    ("statuses", "expected"),
    [
        (("won", "pending"), ("pending", 0.0)),
        (("void", "void"), ("void", 0.0)),
        (("won", "void"), ("won", 80.0)),
        (("won", "push"), ("pending", 0.0)),
        (("cancelled", "won"), ("pending", 0.0)),
    ],
)
def test_resolve_parlay_outcome_by_status(
    statuses: tuple[str, ...], expected: tuple[str, float]
) -> None:
    legs = [_parlay_leg(str(index), status=status) for index, status in enumerate(statuses)]

    assert resolve_parlay_outcome(legs, stake=20, potential_payout=100) == expected


@pytest.mark.parametrize(
    ("price", "expected"),
    [
        (100, 2.0),
        (150, 2.5),
        (-200, 1.5),
        (0, None),
        (-50, None),
    ],
)
def test_american_to_decimal(price: float, expected: float | None) -> None:
    assert american_to_decimal(price) == expected


@pytest.mark.parametrize(
    ("decimal_odds", "expected"),
    [
        (2.0, 100),
        (3.5, 250),
        (1.5, -200),
        (1.0, None),
    ],
)
def test_decimal_to_american(decimal_odds: float, expected: int | None) -> None:
    assert decimal_to_american(decimal_odds) == expected


def test_combined_odds_multiplies_priced_legs() -> None:
    legs = [
        _parlay_leg("a", odds=100),
        _parlay_leg("b", odds=100),
        _parlay_leg("c"),
    ]

    assert combined_american_odds(legs) == 300
    assert combined_american_odds([_parlay_leg("d")]) is None
    assert consolidate(legs).parlays[0].odds == 300
