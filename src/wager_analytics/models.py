"""Wager records and the derived wager units counted by every aggregation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, assert_never

from wager_analytics.util.parsing import clean_str, float_or_zero, safe_bool, safe_float

STATUS_PENDING = "pending"
STATUS_WON = "won"
STATUS_LOST = "lost"
STATUS_VOID = "void"
STATUS_PUSH = "push"
STATUS_CANCELLED = "cancelled"

SETTLED_STATUSES = frozenset({STATUS_WON, STATUS_LOST})
VOIDED_STATUSES = frozenset({STATUS_VOID, STATUS_CANCELLED})

CATEGORY_FIELDS: tuple[str, ...] = (
    "sport",
    "league",
    "bet_type",
    "side",
    "sportsbook",
    "prop_type",
    "player_name",
    "home_team",
    "away_team",
)

_PARLAY_ID_KEYS = ("parlay_group_id", "parlay_id")


@dataclass(frozen=True)
class WagerLeg:
    """One raw wager row; possibly a single leg of a parlay."""

    id: str
    user_id: str = ""
    sport: str | None = None
    league: str | None = None
    bet_type: str | None = None
    side: str | None = None
    sportsbook: str | None = None
    prop_type: str | None = None
    player_name: str | None = None
    home_team: str | None = None
    away_team: str | None = None
    odds: float | None = None
    stake: float = 0.0
    potential_payout: float = 0.0
    profit: float | None = None
    status: str = STATUS_PENDING
    placed_at: str | None = None
    game_date: str | None = None
    parlay_group_id: str | None = None
    is_parlay: bool = False
    bet_source: str | None = None
    is_copy_bet: bool = False

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> WagerLeg:
        """Build a leg from a loosely typed row, resolving defaults field by field."""
        parlay_group_id = None
        for key in _PARLAY_ID_KEYS:
            parlay_group_id = clean_str(row.get(key))
            if parlay_group_id is not None:
                break
        categories = {name: clean_str(row.get(name)) for name in CATEGORY_FIELDS}
        return cls(
            id=clean_str(row.get("id")) or "",
            user_id=clean_str(row.get("user_id")) or "",
            odds=safe_float(row.get("odds")),
            stake=float_or_zero(row.get("stake")),
            potential_payout=float_or_zero(row.get("potential_payout")),
            profit=safe_float(row.get("profit")),
            status=normalize_status(row.get("status")),
            placed_at=clean_str(row.get("placed_at")),
            game_date=clean_str(row.get("game_date")),
            parlay_group_id=parlay_group_id,
            is_parlay=safe_bool(row.get("is_parlay")),
            bet_source=clean_str(row.get("bet_source")),
            is_copy_bet=safe_bool(row.get("is_copy_bet")),
            **categories,
        )

    @property
    def is_parlay_member(self) -> bool:
        return self.is_parlay and self.parlay_group_id is not None

    @property
    def event_time(self) -> str | None:
        """Game date when known, otherwise the placement time."""
        return self.game_date or self.placed_at

    def category(self, name: str) -> str | None:
        if name not in CATEGORY_FIELDS:
            raise ValueError(f"unknown category field: {name}")
        return getattr(self, name)


def normalize_status(value: Any) -> str:
    status = clean_str(value)
    return status.lower() if status else STATUS_PENDING


def resolve_leg_profit(leg: WagerLeg) -> float:
    """Recorded profit, else derived from the leg status."""
    if leg.profit is not None:
        return leg.profit
    if leg.status == STATUS_WON:
        return leg.potential_payout - leg.stake
    if leg.status == STATUS_LOST:
        return -leg.stake
    return 0.0


@dataclass(frozen=True)
class Single:
    leg: WagerLeg


@dataclass(frozen=True)
class Parlay:
    """A consolidated parlay; stake, status and profit belong to the whole group."""

    parlay_group_id: str
    legs: tuple[WagerLeg, ...]
    stake: float
    potential_payout: float
    status: str
    profit: float
    odds: int | None = None


WagerUnit = Single | Parlay


def unit_legs(unit: WagerUnit) -> tuple[WagerLeg, ...]:
    if isinstance(unit, Single):
        return (unit.leg,)
    if isinstance(unit, Parlay):
        return unit.legs
    assert_never(unit)


def unit_status(unit: WagerUnit) -> str:
    if isinstance(unit, Single):
        return unit.leg.status
    if isinstance(unit, Parlay):
        return unit.status
    assert_never(unit)


def unit_stake(unit: WagerUnit) -> float:
    if isinstance(unit, Single):
        return unit.leg.stake
    if isinstance(unit, Parlay):
        return unit.stake
    assert_never(unit)


def unit_profit(unit: WagerUnit) -> float:
    if isinstance(unit, Single):
        return resolve_leg_profit(unit.leg)
    if isinstance(unit, Parlay):
        return unit.profit
    assert_never(unit)


def unit_event_time(unit: WagerUnit) -> str | None:
    """Event time of a unit; a parlay is dated by its first leg."""
    if isinstance(unit, Single):
        return unit.leg.event_time
    if isinstance(unit, Parlay):
        return unit.legs[0].event_time
    assert_never(unit)
