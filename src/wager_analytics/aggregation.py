"""Group-and-reduce engine behind breakdown views and custom charts.

Both modes partition their input with a dimension key and reduce every partition:

- `breakdown` works on consolidated wager units. A parlay lands in one bucket; when
  its legs disagree on the dimension it goes to the `Multi-<Dimension> Parlays` bucket.
- `custom_aggregate` works on raw legs, so each parlay leg is counted on its own.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, tzinfo
from statistics import median, pstdev
from typing import Any, Literal, TypeVar

from wager_analytics.models import (
    SETTLED_STATUSES,
    STATUS_LOST,
    STATUS_WON,
    VOIDED_STATUSES,
    WagerLeg,
    WagerUnit,
    resolve_leg_profit,
    unit_legs,
    unit_profit,
    unit_stake,
)
from wager_analytics.time_utils import calendar_date, local_datetime

logger = logging.getLogger(__name__)

T = TypeVar("T")

Dimension = Literal[
    "sport",
    "league",
    "sportsbook",
    "bet_type",
    "side",
    "prop_type",
    "player_name",
    "home_team",
    "away_team",
    "game_date",
    "placed_at",
    "placed_at_day_of_week",
    "placed_at_time_of_day",
    "stake_size_bucket",
    "odds_range_bucket",
    "bet_source",
    "parlay_vs_straight",
]

CATEGORY_DIMENSIONS: tuple[str, ...] = (
    "sport",
    "league",
    "sportsbook",
    "bet_type",
    "side",
    "prop_type",
    "player_name",
    "home_team",
    "away_team",
)
DATE_DIMENSIONS: tuple[str, ...] = ("game_date", "placed_at")
DIMENSIONS: tuple[str, ...] = (
    *CATEGORY_DIMENSIONS,
    *DATE_DIMENSIONS,
    "placed_at_day_of_week",
    "placed_at_time_of_day",
    "stake_size_bucket",
    "odds_range_bucket",
    "bet_source",
    "parlay_vs_straight",
)

DIMENSION_LABELS: dict[str, str] = {
    "sport": "Sport",
    "league": "League",
    "sportsbook": "Sportsbook",
    "bet_type": "Bet Type",
    "side": "Side",
    "prop_type": "Prop Type",
    "player_name": "Player",
    "home_team": "Home Team",
    "away_team": "Away Team",
    "game_date": "Game Date",
    "placed_at": "Date Placed",
    "placed_at_day_of_week": "Day",
    "placed_at_time_of_day": "Time of Day",
    "stake_size_bucket": "Stake Size",
    "odds_range_bucket": "Odds Range",
    "bet_source": "Bet Source",
    "parlay_vs_straight": "Bet Structure",
}

UNKNOWN = "Unknown"

DAYS_OF_WEEK: tuple[str, ...] = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

TIME_MORNING = "Morning (6AM-12PM)"
TIME_AFTERNOON = "Afternoon (12PM-6PM)"
TIME_EVENING = "Evening (6PM-10PM)"
TIME_LATE_NIGHT = "Late Night (10PM-6AM)"

STAKE_SMALL = "Small (≤$25)"
STAKE_MEDIUM = "Medium ($25-$100)"
STAKE_LARGE = "Large (>$100)"

ODDS_CHALK = "Chalk (≤-150)"
ODDS_EVEN = "Even Money (-149 to +149)"
ODDS_LONGSHOT = "Longshots (≥+150)"

CANONICAL_ORDERS: dict[str, tuple[str, ...]] = {
    "placed_at_day_of_week": DAYS_OF_WEEK,
    "stake_size_bucket": (STAKE_SMALL, STAKE_MEDIUM, STAKE_LARGE),
    "odds_range_bucket": (ODDS_CHALK, ODDS_EVEN, ODDS_LONGSHOT),
}

LONGSHOT_MIN_ODDS = 200.0
CHALK_MAX_ODDS = -150.0


def validate_dimension(dimension: str) -> str:
    if dimension not in DIMENSIONS:
        raise ValueError(f"unknown dimension: {dimension}")
    return dimension


def time_of_day_bucket(hour: int) -> str:
    if 6 <= hour < 12:
        return TIME_MORNING
    if 12 <= hour < 18:
        return TIME_AFTERNOON
    if 18 <= hour < 22:
        return TIME_EVENING
    return TIME_LATE_NIGHT


def stake_size_bucket(stake: float) -> str:
    if stake <= 25:
        return STAKE_SMALL
    if stake <= 100:
        return STAKE_MEDIUM
    return STAKE_LARGE


def odds_range_bucket(odds: float | None) -> str:
    price = odds if odds is not None else 0.0
    if price <= -150:
        return ODDS_CHALK
    if -149 <= price <= 149:
        return ODDS_EVEN
    if price >= 150:
        return ODDS_LONGSHOT
    return UNKNOWN


def dimension_key(leg: WagerLeg, dimension: str, *, tz: tzinfo = UTC) -> str:
    """Bucket key of a single leg for `dimension`."""
    if dimension in CATEGORY_DIMENSIONS:
        return leg.category(dimension) or UNKNOWN
    if dimension in DATE_DIMENSIONS:
        day = calendar_date(leg.game_date if dimension == "game_date" else leg.placed_at, tz)
        return day.isoformat() if day is not None else UNKNOWN
    if dimension == "placed_at_day_of_week":
        placed = local_datetime(leg.placed_at, tz)
        return DAYS_OF_WEEK[(placed.weekday() + 1) % 7] if placed is not None else UNKNOWN
    if dimension == "placed_at_time_of_day":
        placed = local_datetime(leg.placed_at, tz)
        return time_of_day_bucket(placed.hour) if placed is not None else UNKNOWN
    if dimension == "stake_size_bucket":
        return stake_size_bucket(leg.stake)
    if dimension == "odds_range_bucket":
        return odds_range_bucket(leg.odds)
    if dimension == "bet_source":
        copied = leg.is_copy_bet or (leg.bet_source or "").lower() == "copy"
        return "Copy Bet" if copied else "Manual Bet"
    if dimension == "parlay_vs_straight":
        is_parlay = leg.is_parlay or (leg.bet_type or "").lower() == "parlay"
        return "Parlay" if is_parlay else "Straight"
    raise ValueError(f"unknown dimension: {dimension}")


def multi_bucket_label(dimension: str) -> str:
    return f"Multi-{DIMENSION_LABELS.get(dimension, dimension)} Parlays"


def unit_dimension_key(unit: WagerUnit, dimension: str, *, tz: tzinfo = UTC) -> str:
    """Bucket key of a wager unit; parlays with disagreeing legs share the multi bucket."""
    keys = {dimension_key(leg, dimension, tz=tz) for leg in unit_legs(unit)}
    if len(keys) == 1:
        return keys.pop()
    return multi_bucket_label(dimension)


def format_label(key: str, dimension: str) -> str:
    if dimension == "bet_type" and key != UNKNOWN:
        return " ".join(word[:1].upper() + word[1:] for word in key.split("_"))
    return key


def group_by(items: Iterable[T], key: Callable[[T], str]) -> dict[str, list[T]]:
    """Partition `items` by key, keeping first-seen key order."""
    groups: dict[str, list[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def aggregate(
    items: Iterable[T],
    key: Callable[[T], str],
    reduce: Callable[[list[T]], float],
) -> list[tuple[str, float]]:
    return [(bucket, reduce(members)) for bucket, members in group_by(items, key).items()]


def order_by_dimension(items: Iterable[T], dimension: str, key: Callable[[T], str]) -> list[T]:
    """Order buckets for display.

    Date dimensions sort chronologically with Unknown last; day/stake/odds buckets use
    their canonical order; plain categories sort alphabetically; the rest keep
    insertion order.
    """
    rows = list(items)
    if dimension in DATE_DIMENSIONS:
        return sorted(rows, key=lambda row: (key(row) == UNKNOWN, key(row)))
    canonical = CANONICAL_ORDERS.get(dimension)
    if canonical is not None:
        rank = {value: index for index, value in enumerate(canonical)}
        return sorted(rows, key=lambda row: rank.get(key(row), len(canonical)))
    if dimension in CATEGORY_DIMENSIONS:
        return sorted(rows, key=lambda row: (key(row).casefold(), key(row)))
    return rows


@dataclass(frozen=True)
class BreakdownEntry:
    key: str
    count: int
    profit: float
    wins: int
    stake: float

    @property
    def win_rate(self) -> float:
        return (self.wins / self.count) * 100.0 if self.count > 0 else 0.0

    @property
    def roi(self) -> float:
        return (self.profit / self.stake) * 100.0 if self.stake != 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "count": self.count,
            "profit": self.profit,
            "wins": self.wins,
            "stake": self.stake,
            "win_rate": self.win_rate,
            "roi": self.roi,
        }


def _breakdown_entry(key: str, units: Sequence[WagerUnit]) -> BreakdownEntry:
    profits = [unit_profit(unit) for unit in units]
    return BreakdownEntry(
        key=key,
        count=len(units),
        profit=sum(profits, 0.0),
        wins=sum(1 for profit in profits if profit > 0),
        stake=sum((unit_stake(unit) for unit in units), 0.0),
    )


def breakdown(
    units: Iterable[WagerUnit],
    dimension: str,
    *,
    tz: tzinfo = UTC,
) -> list[BreakdownEntry]:
    """Per-bucket count/profit/wins over consolidated units; one bucket per unit."""
    validate_dimension(dimension)
    groups = group_by(units, lambda unit: unit_dimension_key(unit, dimension, tz=tz))
    entries = [_breakdown_entry(key, members) for key, members in groups.items()]
    logger.debug("breakdown by %s produced %d buckets", dimension, len(entries))
    return order_by_dimension(entries, dimension, key=lambda entry: entry.key)


# Leg metrics for custom charts. Rates are percentages.


def _settled(legs: Iterable[WagerLeg]) -> list[WagerLeg]:
    return [leg for leg in legs if leg.status in SETTLED_STATUSES]


def _hit_rate(legs: Iterable[WagerLeg]) -> float:
    settled = _settled(legs)
    if not settled:
        return 0.0
    won = sum(1 for leg in settled if leg.status == STATUS_WON)
    return (won / len(settled)) * 100.0


def _count(legs: Sequence[WagerLeg]) -> float:
    return float(len(legs))


def _wins_count(legs: Sequence[WagerLeg]) -> float:
    return float(sum(1 for leg in legs if leg.status == STATUS_WON))


def _losses_count(legs: Sequence[WagerLeg]) -> float:
    return float(sum(1 for leg in legs if leg.status == STATUS_LOST))


def _profit(legs: Sequence[WagerLeg]) -> float:
    return sum((resolve_leg_profit(leg) for leg in legs), 0.0)


def _total_staked(legs: Sequence[WagerLeg]) -> float:
    return sum((leg.stake for leg in legs), 0.0)


def _roi(legs: Sequence[WagerLeg]) -> float:
    staked = _total_staked(legs)
    if staked == 0:
        return 0.0
    return (_profit(legs) / staked) * 100.0


def _average_stake(legs: Sequence[WagerLeg]) -> float:
    return _total_staked(legs) / len(legs) if legs else 0.0


def _present_odds(legs: Sequence[WagerLeg]) -> list[float]:
    return [leg.odds for leg in legs if leg.odds is not None]


def _average_odds(legs: Sequence[WagerLeg]) -> float:
    odds = _present_odds(legs)
    return sum(odds) / len(odds) if odds else 0.0


def _median_odds(legs: Sequence[WagerLeg]) -> float:
    odds = _present_odds(legs)
    return float(median(odds)) if odds else 0.0


def _void_count(legs: Sequence[WagerLeg]) -> float:
    return float(sum(1 for leg in legs if leg.status in VOIDED_STATUSES))


def _longshot_hit_rate(legs: Sequence[WagerLeg]) -> float:
    return _hit_rate(leg for leg in legs if leg.odds is not None and leg.odds >= LONGSHOT_MIN_ODDS)


def _chalk_hit_rate(legs: Sequence[WagerLeg]) -> float:
    return _hit_rate(leg for leg in legs if leg.odds is not None and leg.odds <= CHALK_MAX_ODDS)


def _max_win(legs: Sequence[WagerLeg]) -> float:
    wins = [resolve_leg_profit(leg) for leg in legs if leg.status == STATUS_WON]
    return max(wins) if wins else 0.0


def _max_loss(legs: Sequence[WagerLeg]) -> float:
    stakes = [leg.stake for leg in legs if leg.status == STATUS_LOST]
    return max(stakes) if stakes else 0.0


def _profit_variance(legs: Sequence[WagerLeg]) -> float:
    """Population standard deviation of per-leg profit."""
    if not legs:
        return 0.0
    return float(pstdev([resolve_leg_profit(leg) for leg in legs]))


MetricFn = Callable[[Sequence[WagerLeg]], float]

Metric = Literal[
    "count",
    "wins_count",
    "losses_count",
    "win_rate",
    "profit",
    "roi",
    "total_staked",
    "average_stake",
    "average_odds",
    "median_odds",
    "void_count",
    "longshot_hit_rate",
    "chalk_hit_rate",
    "max_win",
    "max_loss",
    "profit_variance",
]

METRICS: dict[str, MetricFn] = {
    "count": _count,
    "wins_count": _wins_count,
    "losses_count": _losses_count,
    "win_rate": _hit_rate,
    "profit": _profit,
    "roi": _roi,
    "total_staked": _total_staked,
    "average_stake": _average_stake,
    "average_odds": _average_odds,
    "median_odds": _median_odds,
    "void_count": _void_count,
    "longshot_hit_rate": _longshot_hit_rate,
    "chalk_hit_rate": _chalk_hit_rate,
    "max_win": _max_win,
    "max_loss": _max_loss,
    "profit_variance": _profit_variance,
}
METRIC_KEYS: tuple[str, ...] = tuple(METRICS)


def validate_metric(metric: str) -> str:
    if metric not in METRICS:
        raise ValueError(f"unknown metric: {metric}")
    return metric


@dataclass(frozen=True)
class ChartPoint:
    key: str
    label: str
    value: float

    def to_dict(self) -> dict[str, Any]:
        return json.loads(json.dumps(self, default=lambda o: o.__dict__, sort_keys=True))


def custom_aggregate(
    legs: Iterable[WagerLeg],
    dimension: str,
    metric: str,
    *,
    tz: tzinfo = UTC,
) -> list[ChartPoint]:
    """Reduce raw legs per dimension bucket with one catalog metric.

    Parlay legs are not consolidated here; each leg counts once in its own bucket.
    """
    validate_dimension(dimension)
    reduce = METRICS[validate_metric(metric)]
    rows = aggregate(legs, lambda leg: dimension_key(leg, dimension, tz=tz), reduce)
    points = [
        ChartPoint(key=key, label=format_label(key, dimension), value=value) for key, value in rows
    ]
    logger.debug("custom chart %s/%s produced %d points", dimension, metric, len(points))
    return order_by_dimension(points, dimension, key=lambda point: point.key)
