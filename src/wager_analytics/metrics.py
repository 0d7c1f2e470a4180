"""Aggregate performance metrics over consolidated wager units."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from typing import Any, Literal

from wager_analytics.consolidation import consolidate
from wager_analytics.models import (
    SETTLED_STATUSES,
    STATUS_WON,
    VOIDED_STATUSES,
    Parlay,
    Single,
    WagerLeg,
    WagerUnit,
    unit_event_time,
    unit_legs,
    unit_profit,
    unit_stake,
    unit_status,
)
from wager_analytics.time_utils import calendar_date, parse_iso_z

logger = logging.getLogger(__name__)

StreakType = Literal["win", "loss", "none"]


@dataclass(frozen=True)
class Metrics:
    total_bets: int
    win_rate: float
    roi: float
    total_profit: float
    total_stake: float
    avg_stake: float
    biggest_win: float
    biggest_loss: float
    straight_count: int
    parlay_count: int
    void_count: int
    current_streak: int
    streak_type: StreakType

    def to_dict(self) -> dict[str, Any]:
        return json.loads(json.dumps(self, default=lambda o: o.__dict__, sort_keys=True))


@dataclass(frozen=True)
class TimelinePoint:
    date: str
    profit: float
    bets: int
    cumulative_profit: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "profit": self.profit,
            "bets": self.bets,
            "cumulative_profit": self.cumulative_profit,
        }


def compute_metrics(units: Sequence[WagerUnit]) -> Metrics:
    """Summarize a list of wager units; an empty list yields all-zero metrics."""
    total_bets = len(units)
    parlay_count = sum(1 for unit in units if isinstance(unit, Parlay))
    straight_count = sum(1 for unit in units if isinstance(unit, Single))

    profits = [unit_profit(unit) for unit in units]
    total_profit = sum(profits, 0.0)
    total_stake = sum((unit_stake(unit) for unit in units), 0.0)

    settled = [unit for unit in units if unit_status(unit) in SETTLED_STATUSES]
    won_count = sum(1 for unit in settled if unit_status(unit) == STATUS_WON)
    win_rate = (won_count / len(settled)) * 100.0 if settled else 0.0

    roi = (total_profit / total_stake) * 100.0 if total_stake != 0 else 0.0
    avg_stake = total_stake / total_bets if total_bets > 0 else 0.0

    nonzero = [profit for profit in profits if profit != 0]
    biggest_win = max(0.0, max(nonzero)) if nonzero else 0.0
    biggest_loss = max(0.0, -min(nonzero)) if nonzero else 0.0

    void_count = sum(
        1 for unit in units for leg in unit_legs(unit) if leg.status in VOIDED_STATUSES
    )
    current_streak, streak_type = compute_streak(settled)

    return Metrics(
        total_bets=total_bets,
        win_rate=win_rate,
        roi=roi,
        total_profit=total_profit,
        total_stake=total_stake,
        avg_stake=avg_stake,
        biggest_win=biggest_win,
        biggest_loss=biggest_loss,
        straight_count=straight_count,
        parlay_count=parlay_count,
        void_count=void_count,
        current_streak=current_streak,
        streak_type=streak_type,
    )


def metrics_for_legs(legs: Iterable[WagerLeg]) -> Metrics:
    return compute_metrics(consolidate(legs).units())


def compute_streak(units: Iterable[WagerUnit]) -> tuple[int, StreakType]:
    """Length and type of the run of identical outcomes ending at the most recent unit.

    Only dated won/lost units take part; ties keep input order.
    """
    dated: list[tuple[datetime, WagerUnit]] = []
    for unit in units:
        if unit_status(unit) not in SETTLED_STATUSES:
            continue
        parsed = parse_iso_z(unit_event_time(unit))
        if parsed is not None:
            dated.append((parsed, unit))
    if not dated:
        return 0, "none"
    ordered = [unit for _, unit in sorted(dated, key=lambda pair: pair[0], reverse=True)]
    latest = unit_status(ordered[0])
    streak = 0
    for unit in ordered:
        if unit_status(unit) != latest:
            break
        streak += 1
    return streak, ("win" if latest == STATUS_WON else "loss")


def profit_timeline(units: Iterable[WagerUnit], *, tz: tzinfo = UTC) -> list[TimelinePoint]:
    """Daily profit of settled units with a running cumulative total."""
    daily: dict[str, tuple[float, int]] = {}
    skipped = 0
    for unit in units:
        if unit_status(unit) not in SETTLED_STATUSES:
            continue
        day = calendar_date(unit_event_time(unit), tz)
        if day is None:
            skipped += 1
            continue
        key = day.isoformat()
        profit, bets = daily.get(key, (0.0, 0))
        daily[key] = (profit + unit_profit(unit), bets + 1)
    if skipped:
        logger.debug("profit timeline skipped %d undated units", skipped)

    points: list[TimelinePoint] = []
    cumulative = 0.0
    for key in sorted(daily):
        profit, bets = daily[key]
        cumulative += profit
        points.append(
            TimelinePoint(date=key, profit=profit, bets=bets, cumulative_profit=cumulative)
        )
    return points
