"""Parlay-aware leg filtering for callers that feed the aggregation engine.

Singles must match the filter themselves. A parlay is kept whole when any of its legs
matches, so consolidation still sees every sibling leg.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from wager_analytics.models import WagerLeg

_LEAGUE_ALIASES: dict[str, str] = {
    "ncaab": "NCAAB",
    "ncaam": "NCAAB",
    "ncaamb": "NCAAB",
    "ncaa men's basketball": "NCAAB",
    "college basketball": "NCAAB",
    "ncaa basketball": "NCAAB",
    "nfl": "NFL",
    "football": "NFL",
    "nba": "NBA",
    "basketball": "NBA",
    "wnba": "WNBA",
    "women's basketball": "WNBA",
    "womens basketball": "WNBA",
    "mlb": "MLB",
    "baseball": "MLB",
    "nhl": "NHL",
    "hockey": "NHL",
    "ncaaf": "NCAAF",
    "college football": "NCAAF",
    "mls": "MLS",
    "soccer": "MLS",
    "ucl": "UCL",
    "champions league": "UCL",
}


def normalize_league(league: str) -> str:
    return _LEAGUE_ALIASES.get(league.strip().lower(), league.strip().upper())


def normalize_sportsbook(name: str) -> str:
    return "".join(name.lower().split())


@dataclass(frozen=True)
class LegFilter:
    leagues: tuple[str, ...] = ()
    bet_types: tuple[str, ...] = ()
    sportsbooks: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.leagues or self.bet_types or self.sportsbooks)

    def matches(self, leg: WagerLeg) -> bool:
        if self.leagues:
            wanted = {normalize_league(value) for value in self.leagues}
            if normalize_league(leg.league or leg.sport or "") not in wanted:
                return False
        if self.bet_types and (leg.bet_type or "") not in self.bet_types:
            return False
        # legs without a sportsbook pass the sportsbook filter
        if self.sportsbooks and leg.sportsbook:
            wanted_books = {normalize_sportsbook(value) for value in self.sportsbooks}
            if normalize_sportsbook(leg.sportsbook) not in wanted_books:
                return False
        return True


def filter_legs(legs: Iterable[WagerLeg], leg_filter: LegFilter) -> list[WagerLeg]:
    """Apply `leg_filter`, pulling in every leg of a parlay that has one matching leg."""
    rows = list(legs)
    if leg_filter.is_empty:
        return rows
    matched_parlays = {
        leg.parlay_group_id
        for leg in rows
        if leg.parlay_group_id is not None and leg_filter.matches(leg)
    }
    out: list[WagerLeg] = []
    for leg in rows:
        if leg.parlay_group_id is not None:
            if leg.parlay_group_id in matched_parlays:
                out.append(leg)
        elif leg_filter.matches(leg):
            out.append(leg)
    return out
