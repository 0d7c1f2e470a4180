from __future__ import annotations

import pytest

from wager_analytics.aggregation import (
    METRIC_KEYS,
    STAKE_LARGE,
    STAKE_MEDIUM,
    STAKE_SMALL,
    aggregate,
    breakdown,
    custom_aggregate,
    dimension_key,
    format_label,
    odds_range_bucket,
    stake_size_bucket,
    time_of_day_bucket,
)
from wager_analytics.consolidation import consolidate
from wager_analytics.metrics import compute_metrics
from wager_analytics.models import WagerLeg
from wager_analytics.time_utils import resolve_timezone


def _legs() -> list[WagerLeg]:
    return [
        WagerLeg(id="s1", sport="NBA", status="won", stake=10, potential_payout=20),
        WagerLeg(id="s2", sport="NFL", status="lost", stake=10),
        WagerLeg(
            id="m1",
            sport="NBA",
            status="won",
            stake=5,
            potential_payout=20,
            parlay_group_id="mixed",
            is_parlay=True,
        ),
        WagerLeg(
            id="m2",
            sport="NFL",
            status="won",
            stake=5,
            potential_payout=20,
            parlay_group_id="mixed",
            is_parlay=True,
        ),
        WagerLeg(
            id="n1",
            sport="NBA",
            status="lost",
            stake=10,
            potential_payout=30,
            parlay_group_id="nba",
            is_parlay=True,
        ),
        WagerLeg(
            id="n2",
            sport="NBA",
            status="won",
            stake=10,
            potential_payout=30,
            parlay_group_id="nba",
            is_parlay=True,
        ),
    ]


def test_breakdown_puts_each_unit_in_one_bucket() -> None:
    units = consolidate(_legs()).units()

    entries = breakdown(units, "sport")

    assert [entry.key for entry in entries] == ["Multi-Sport Parlays", "NBA", "NFL"]
    by_key = {entry.key: entry for entry in entries}
    assert (by_key["NBA"].count, by_key["NBA"].profit, by_key["NBA"].wins) == (2, 0.0, 1)
    assert (by_key["NFL"].count, by_key["NFL"].profit, by_key["NFL"].wins) == (1, -10.0, 0)
    multi = by_key["Multi-Sport Parlays"]
    assert (multi.count, multi.profit, multi.wins, multi.stake) == (1, 15.0, 1, 5.0)
    assert multi.win_rate == 100.0
    assert multi.roi == 300.0
    assert sum(entry.count for entry in entries) == compute_metrics(units).total_bets


def test_breakdown_buckets_missing_values_as_unknown() -> None:
    units = consolidate([WagerLeg(id="a"), WagerLeg(id="b", sport="MLB")]).units()

    entries = breakdown(units, "sport")

    assert [entry.key for entry in entries] == ["MLB", "Unknown"]
    assert entries[1].roi == 0.0


def test_breakdown_dates_sort_chronologically_with_unknown_last() -> None:
    units = consolidate(
        [
            WagerLeg(id="a", game_date="2026-01-03"),
            WagerLeg(id="b", game_date="not a date"),
            WagerLeg(id="c", game_date="2026-01-01T18:00:00Z"),
        ]
    ).units()

    assert [entry.key for entry in breakdown(units, "game_date")] == [
        "2026-01-01",
        "2026-01-03",
        "Unknown",
    ]


def test_breakdown_of_empty_input_is_empty() -> None:
    assert breakdown([], "league") == []


def test_custom_aggregate_counts_raw_legs() -> None:
    points = custom_aggregate(_legs(), "sport", "count")

    assert [(point.key, point.value) for point in points] == [("NBA", 4.0), ("NFL", 2.0)]


def test_custom_aggregate_profit_uses_leg_fallback() -> None:
    points = custom_aggregate(_legs(), "sport", "profit")

    # m1 / m2 / n2 each resolve to payout minus stake on their own
    assert {point.key: point.value for point in points} == {"NBA": 35.0, "NFL": 5.0}


def test_custom_aggregate_rejects_unknown_keys() -> None:
    with pytest.raises(ValueError, match="unknown dimension"):
        custom_aggregate(_legs(), "weather", "count")
    with pytest.raises(ValueError, match="unknown metric"):
        custom_aggregate(_legs(), "sport", "sharpe")
    with pytest.raises(ValueError, match="unknown dimension"):
        breakdown([], "weather")


def _priced_legs() -> list[WagerLeg]:
    return [
        WagerLeg(id="a", odds=-110, status="won", stake=11, potential_payout=21),
        WagerLeg(id="b", odds=150, status="lost", stake=10),
        WagerLeg(id="c", odds=200, status="won", stake=10, potential_payout=30),
        WagerLeg(id="d", odds=-200, status="won", stake=20, potential_payout=30),
        WagerLeg(id="e", odds=250, status="lost", stake=4),
        WagerLeg(id="f", status="void", stake=5),
        WagerLeg(id="g", odds=300, status="pending", stake=5),
    ]


@pytest.mark.parametrize(
    ("metric", "expected"),
    [
        ("count", 7.0),
        ("wins_count", 3.0),
        ("losses_count", 2.0),
        ("win_rate", 60.0),
        ("profit", 26.0),
        ("roi", 26.0 / 65.0 * 100.0),
        ("total_staked", 65.0),
        ("average_stake", 65.0 / 7.0),
        ("average_odds", 590.0 / 6.0),
        ("median_odds", 175.0),
        ("void_count", 1.0),
        ("longshot_hit_rate", 50.0),
        ("chalk_hit_rate", 100.0),
        ("max_win", 20.0),
        ("max_loss", 10.0),
    ],
)
def test_leg_metric_catalog(metric: str, expected: float) -> None:
    points = custom_aggregate(_priced_legs(), "bet_source", metric)

    assert len(points) == 1
    assert points[0].key == "Manual Bet"
    assert points[0].value == pytest.approx(expected)


def test_profit_variance_is_population_stddev() -> None:
    legs = [
        WagerLeg(id="a", status="won", stake=10, potential_payout=20),
        WagerLeg(id="b", status="lost", stake=10),
    ]

    assert custom_aggregate(legs, "sport", "profit_variance")[0].value == pytest.approx(10.0)


def test_every_catalog_metric_handles_empty_buckets() -> None:
    leg = WagerLeg(id="a", status="pending")

    for metric in METRIC_KEYS:
        value = custom_aggregate([leg], "sport", metric)[0].value
        assert value == value  # not NaN


def test_day_of_week_uses_canonical_order() -> None:
    legs = [
        WagerLeg(id="mon", placed_at="2026-01-05T15:00:00Z"),
        WagerLeg(id="sun", placed_at="2026-01-04T15:00:00Z"),
        WagerLeg(id="none"),
    ]

    points = custom_aggregate(legs, "placed_at_day_of_week", "count")

    assert [point.key for point in points] == ["Sunday", "Monday", "Unknown"]


def test_day_of_week_follows_configured_zone() -> None:
    leg = WagerLeg(id="a", placed_at="2026-01-05T01:00:00Z")
    tz = resolve_timezone("America/New_York")

    assert dimension_key(leg, "placed_at_day_of_week") == "Monday"
    assert dimension_key(leg, "placed_at_day_of_week", tz=tz) == "Sunday"
    assert dimension_key(leg, "placed_at_time_of_day", tz=tz) == "Evening (6PM-10PM)"


@pytest.mark.parametrize(
    ("hour", "expected"),
    [
        (6, "Morning (6AM-12PM)"),
        (11, "Morning (6AM-12PM)"),
        (12, "Afternoon (12PM-6PM)"),
        (18, "Evening (6PM-10PM)"),
        (22, "Late Night (10PM-6AM)"),
        (5, "Late Night (10PM-6AM)"),
    ],
)
def test_time_of_day_bucket(hour: int, expected: str) -> None:
    assert time_of_day_bucket(hour) == expected


@pytest.mark.parametrize(
    ("stake", "expected"),
    [
        (0, STAKE_SMALL),
        (25, STAKE_SMALL),
        (25.01, STAKE_MEDIUM),
        (100, STAKE_MEDIUM),
        (101, STAKE_LARGE),
    ],
)
def test_stake_size_bucket(stake: float, expected: str) -> None:
    assert stake_size_bucket(stake) == expected


@pytest.mark.parametrize(
    ("odds", "expected"),
    [
        (-150, "Chalk (≤-150)"),
        (-149, "Even Money (-149 to +149)"),
        (None, "Even Money (-149 to +149)"),
        (149, "Even Money (-149 to +149)"),
        (150, "Longshots (≥+150)"),
    ],
)
def test_odds_range_bucket(odds: float | None, expected: str) -> None:
    assert odds_range_bucket(odds) == expected


def test_stake_buckets_sort_canonically() -> None:
    legs = [
        WagerLeg(id="a", stake=500),
        WagerLeg(id="b", stake=50),
        WagerLeg(id="c", stake=5),
    ]

    points = custom_aggregate(legs, "stake_size_bucket", "count")

    assert [point.key for point in points] == [STAKE_SMALL, STAKE_MEDIUM, STAKE_LARGE]


def test_structure_and_source_dimensions_keep_insertion_order() -> None:
    legs = [
        WagerLeg(id="a", bet_type="parlay"),
        WagerLeg(id="b", bet_source="copy"),
        WagerLeg(id="c", is_parlay=True, parlay_group_id="g"),
    ]

    structure = custom_aggregate(legs, "parlay_vs_straight", "count")
    source = custom_aggregate(legs, "bet_source", "count")

    assert [(p.key, p.value) for p in structure] == [("Parlay", 2.0), ("Straight", 1.0)]
    assert [(p.key, p.value) for p in source] == [("Manual Bet", 2.0), ("Copy Bet", 1.0)]


def test_copy_bet_flag_marks_copy_source() -> None:
    legs = [
        WagerLeg(id="a", bet_source="manual", is_copy_bet=True),
        WagerLeg(id="b", bet_source="COPY"),
        WagerLeg(id="c"),
    ]

    assert [dimension_key(leg, "bet_source") for leg in legs] == [
        "Copy Bet",
        "Copy Bet",
        "Manual Bet",
    ]


def test_max_loss_reports_largest_lost_stake() -> None:
    legs = [
        WagerLeg(id="a", status="lost", stake=50, profit=0, sport="NBA"),
        WagerLeg(id="b", status="lost", stake=20, profit=-5, sport="NBA"),
        WagerLeg(id="c", status="won", stake=80, profit=60, sport="NBA"),
    ]

    points = custom_aggregate(legs, "sport", "max_loss")

    assert [(p.key, p.value) for p in points] == [("NBA", 50.0)]

def test_bet_type_labels_are_title_cased() -> None:
    points = custom_aggregate([WagerLeg(id="a", bet_type="player_prop")], "bet_type", "count")

    assert points[0].key == "player_prop"
    assert points[0].label == "Player Prop"
    assert format_label("Unknown", "bet_type") == "Unknown"
    assert format_label("player_prop", "sport") == "player_prop"


def test_aggregate_keeps_first_seen_order() -> None:
    rows = aggregate([3, 1, 4, 1, 5], key=lambda n: "odd" if n % 2 else "even", reduce=sum)

    assert rows == [("odd", 10), ("even", 4)]


def test_aggregation_is_idempotent() -> None:
    units = consolidate(_legs()).units()

    first = [entry.to_dict() for entry in breakdown(units, "sport")]
    second = [entry.to_dict() for entry in breakdown(units, "sport")]

    assert first == second
    assert [p.to_dict() for p in custom_aggregate(_legs(), "sport", "roi")] == [
        p.to_dict() for p in custom_aggregate(_legs(), "sport", "roi")
    ]
