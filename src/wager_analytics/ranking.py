"""Composite marketplace ranking score for published strategies."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from wager_analytics.time_utils import parse_iso_z, utc_now
from wager_analytics.util.parsing import clean_str, float_or_zero, safe_int

logger = logging.getLogger(__name__)

WEIGHT_ROI = 0.4
WEIGHT_WIN_RATE = 0.1
WEIGHT_VOLUME = 0.25
WEIGHT_LONGEVITY = 0.2
WEIGHT_SUBSCRIBERS = 0.05

NEGATIVE_ROI_MULTIPLIER = 0.1
LOW_WIN_RATE_THRESHOLD = 0.3
LOW_WIN_RATE_ROI_TRIGGER = 15.0
LOW_WIN_RATE_MIN_MULTIPLIER = 0.6

# (threshold, score) pairs, highest threshold first
VOLUME_STEPS: tuple[tuple[int, float], ...] = (
    (1000, 100.0),
    (500, 85.0),
    (250, 70.0),
    (100, 55.0),
    (50, 40.0),
    (20, 25.0),
)
LONGEVITY_STEPS: tuple[tuple[int, float], ...] = (
    (730, 100.0),
    (365, 90.0),
    (180, 70.0),
    (90, 50.0),
    (30, 30.0),
)
SUBSCRIBER_STEPS: tuple[tuple[int, float], ...] = (
    (1000, 100.0),
    (500, 85.0),
    (100, 70.0),
    (25, 50.0),
    (5, 30.0),
)


@dataclass(frozen=True)
class RankingInputs:
    """Per-strategy performance snapshot; `win_rate` is a 0..1 fraction."""

    roi_percentage: float = 0.0
    win_rate: float = 0.0
    total_bets: int = 0
    start_date: str | None = None
    subscriber_count: int = 0

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> RankingInputs:
        return cls(
            roi_percentage=float_or_zero(row.get("roi_percentage")),
            win_rate=float_or_zero(row.get("win_rate")),
            total_bets=safe_int(row.get("total_bets")) or 0,
            start_date=clean_str(row.get("start_date")),
            subscriber_count=safe_int(row.get("subscriber_count")) or 0,
        )


@dataclass(frozen=True)
class ScoreComponents:
    roi_score: float
    win_rate_score: float
    volume_score: float
    longevity_score: float
    subscriber_score: float
    weighted_total: float
    negative_roi_penalty: bool
    low_win_rate_multiplier: float
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "roi_score": self.roi_score,
            "win_rate_score": self.win_rate_score,
            "volume_score": self.volume_score,
            "longevity_score": self.longevity_score,
            "subscriber_score": self.subscriber_score,
            "weighted_total": self.weighted_total,
            "negative_roi_penalty": self.negative_roi_penalty,
            "low_win_rate_multiplier": self.low_win_rate_multiplier,
            "score": self.score,
        }


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


def _step_score(value: float, steps: tuple[tuple[int, float], ...]) -> float | None:
    for threshold, points in steps:
        if value >= threshold:
            return points
    return None


def roi_score(roi: float) -> float:
    if roi < 0:
        return 0.0
    return _clamp((roi + 20.0) * 2.5)


def win_rate_score(win_rate: float) -> float:
    return _clamp(win_rate * 100.0)


def volume_score(total_bets: int, roi: float) -> float:
    """Step score for bet volume, boosted by up to 50% when ROI is positive."""
    points = _step_score(total_bets, VOLUME_STEPS)
    if points is None:
        points = total_bets * 1.25
    if roi > 0:
        points = min(100.0, points * min(1.5, 1.0 + roi / 100.0))
    return _clamp(points)


def days_active(start_date: str | None, *, now: datetime) -> float | None:
    started = parse_iso_z(start_date)
    if started is None:
        return None
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return (now - started).total_seconds() / 86400.0


def longevity_score(start_date: str | None, *, now: datetime) -> float:
    days = days_active(start_date, now=now)
    if days is None:
        return 0.0
    points = _step_score(days, LONGEVITY_STEPS)
    if points is None:
        points = max(5.0, days)
    return _clamp(points)


def subscriber_score(subscriber_count: int) -> float:
    points = _step_score(subscriber_count, SUBSCRIBER_STEPS)
    if points is None:
        points = subscriber_count * 6.0
    return _clamp(points)


def score_components(inputs: RankingInputs, *, now: datetime | None = None) -> ScoreComponents:
    reference = now if now is not None else utc_now()
    roi = inputs.roi_percentage
    components = (
        roi_score(roi),
        win_rate_score(inputs.win_rate),
        volume_score(inputs.total_bets, roi),
        longevity_score(inputs.start_date, now=reference),
        subscriber_score(inputs.subscriber_count),
    )
    weighted = (
        components[0] * WEIGHT_ROI
        + components[1] * WEIGHT_WIN_RATE
        + components[2] * WEIGHT_VOLUME
        + components[3] * WEIGHT_LONGEVITY
        + components[4] * WEIGHT_SUBSCRIBERS
    )

    total = weighted
    negative_roi = roi < 0
    if negative_roi:
        total *= NEGATIVE_ROI_MULTIPLIER

    # win rate under 30% with ROI over 15% scales down, floor 0.6
    low_win_rate_multiplier = 1.0
    if inputs.win_rate < LOW_WIN_RATE_THRESHOLD and roi > LOW_WIN_RATE_ROI_TRIGGER:
        low_win_rate_multiplier = max(
            LOW_WIN_RATE_MIN_MULTIPLIER,
            1.0 - (LOW_WIN_RATE_THRESHOLD - inputs.win_rate) * 2.0,
        )
        total *= low_win_rate_multiplier

    return ScoreComponents(
        roi_score=components[0],
        win_rate_score=components[1],
        volume_score=components[2],
        longevity_score=components[3],
        subscriber_score=components[4],
        weighted_total=weighted,
        negative_roi_penalty=negative_roi,
        low_win_rate_multiplier=low_win_rate_multiplier,
        score=round(total, 2),
    )


def score(inputs: RankingInputs, *, now: datetime | None = None) -> float:
    """Marketplace rank score, rounded to 2 decimals."""
    return score_components(inputs, now=now).score


def rank_strategies(
    rows: Iterable[Mapping[str, Any]],
    *,
    now: datetime | None = None,
    limit: int | None = None,
    min_total_bets: int = 0,
) -> list[dict[str, Any]]:
    """Score strategy rows and order them best first.

    Rows below `min_total_bets` are dropped; ties break on `strategy_id`.
    """
    reference = now if now is not None else utc_now()
    scored: list[dict[str, Any]] = []
    dropped = 0
    for row in rows:
        inputs = RankingInputs.from_mapping(row)
        if inputs.total_bets < min_total_bets:
            dropped += 1
            continue
        scored.append({**row, "marketplace_rank_score": score(inputs, now=reference)})
    if dropped:
        logger.debug("dropped %d strategies below %d bets", dropped, min_total_bets)

    scored.sort(key=lambda row: (-row["marketplace_rank_score"], str(row.get("strategy_id", ""))))
    if limit is not None and limit >= 0:
        return scored[:limit]
    return scored
