"""Collapse raw wager legs into singles and parlay groups."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from wager_analytics.models import (
    STATUS_LOST,
    STATUS_PENDING,
    STATUS_PUSH,
    STATUS_VOID,
    STATUS_WON,
    Parlay,
    Single,
    WagerLeg,
    WagerUnit,
)

logger = logging.getLogger(__name__)

_LEG_SETTLED_STATUSES = frozenset({STATUS_WON, STATUS_LOST, STATUS_VOID, STATUS_PUSH})


@dataclass(frozen=True)
class ConsolidatedWagers:
    parlays: tuple[Parlay, ...]
    singles: tuple[WagerLeg, ...]

    def units(self) -> list[WagerUnit]:
        """Parlays first (in first-seen order), then singles in input order."""
        return [*self.parlays, *(Single(leg) for leg in self.singles)]

    @property
    def total_units(self) -> int:
        return len(self.parlays) + len(self.singles)


def consolidate(legs: Iterable[WagerLeg]) -> ConsolidatedWagers:
    """Group parlay legs by parlay id; every other leg stays a single."""
    groups: dict[str, list[WagerLeg]] = {}
    singles: list[WagerLeg] = []
    for leg in legs:
        if leg.is_parlay and leg.parlay_group_id is not None:
            groups.setdefault(leg.parlay_group_id, []).append(leg)
        else:
            singles.append(leg)

    parlays = tuple(build_parlay(group_id, members) for group_id, members in groups.items())
    logger.debug("consolidated %d parlays and %d singles", len(parlays), len(singles))
    return ConsolidatedWagers(parlays=parlays, singles=tuple(singles))


def build_parlay(parlay_group_id: str, legs: Sequence[WagerLeg]) -> Parlay:
    if not legs:
        raise ValueError(f"parlay {parlay_group_id} has no legs")
    stake = next((leg.stake for leg in legs if leg.stake > 0), 0.0)
    potential_payout = next(
        (leg.potential_payout for leg in legs if leg.potential_payout > 0),
        0.0,
    )
    status, profit = resolve_parlay_outcome(
        legs,
        stake=stake,
        potential_payout=potential_payout,
    )
    return Parlay(
        parlay_group_id=parlay_group_id,
        legs=tuple(legs),
        stake=stake,
        potential_payout=potential_payout,
        status=status,
        profit=profit,
        odds=combined_american_odds(legs),
    )


def resolve_parlay_outcome(
    legs: Sequence[WagerLeg],
    *,
    stake: float,
    potential_payout: float,
) -> tuple[str, float]:
    """Return (status, profit) for a parlay group.

    A recorded non-zero profit on any leg wins over leg-status analysis. Otherwise a
    single lost leg loses the stake even while other legs are still open.
    """
    recorded = next(
        (leg.profit for leg in legs if leg.profit is not None and leg.profit != 0),
        None,
    )
    if recorded is not None:
        profit = recorded
        return (STATUS_WON if profit > 0 else STATUS_LOST), profit

    settled = sum(1 for leg in legs if leg.status in _LEG_SETTLED_STATUSES)
    won = sum(1 for leg in legs if leg.status == STATUS_WON)
    lost = sum(1 for leg in legs if leg.status == STATUS_LOST)
    voided = sum(1 for leg in legs if leg.status == STATUS_VOID)
    total = len(legs)

    if lost > 0:
        return STATUS_LOST, -stake
    if settled < total:
        return STATUS_PENDING, 0.0
    if voided == total:
        return STATUS_VOID, 0.0
    if won == total - voided:
        return STATUS_WON, potential_payout - stake
    # mixed won/push legs
    logger.debug("parlay with push legs left pending: %s", legs[0].parlay_group_id)
    return STATUS_PENDING, 0.0


def american_to_decimal(price: float) -> float | None:
    if price >= 100:
        return 1.0 + price / 100.0
    if price <= -100:
        return 1.0 + 100.0 / abs(price)
    return None


def decimal_to_american(decimal_odds: float) -> int | None:
    if decimal_odds <= 1.0:
        return None
    if decimal_odds >= 2.0:
        return round((decimal_odds - 1.0) * 100.0)
    return round(-100.0 / (decimal_odds - 1.0))


def combined_american_odds(legs: Iterable[WagerLeg]) -> int | None:
    """Combined price of all legs with usable odds, as American odds."""
    combined = 1.0
    priced = 0
    for leg in legs:
        if leg.odds is None:
            continue
        decimal_odds = american_to_decimal(leg.odds)
        if decimal_odds is None:
            continue
        combined *= decimal_odds
        priced += 1
    if priced == 0:
        return None
    return decimal_to_american(combined)
