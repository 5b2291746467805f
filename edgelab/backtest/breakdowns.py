"""
Backtest Breakdown Aggregators.

Groups settled bets into time and context buckets:
    - monthly: 'YYYY-MM' of the game date
    - season: caller-supplied season label containing the bet's year,
      falling back to the bare year
    - team: the player's team
    - day of week: Monday through Sunday

Profit per bucket is rounded to 2 decimals; rates are unrounded.
"""

from dataclasses import dataclass
from typing import List, Sequence

import pandas as pd

from .simulator import SessionResult


DAYS_OF_WEEK = [
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"
]


@dataclass(frozen=True)
class MonthlyBreakdown:
    month: str
    games: int
    hits: int
    hit_rate: float
    profit: float

    def to_dict(self) -> dict:
        return {
            'month': self.month,
            'games': self.games,
            'hits': self.hits,
            'hitRate': self.hit_rate,
            'profit': self.profit,
        }


@dataclass(frozen=True)
class SeasonBreakdown:
    season: str
    games: int
    hits: int
    hit_rate: float
    profit: float
    roi: float

    def to_dict(self) -> dict:
        return {
            'season': self.season,
            'games': self.games,
            'hits': self.hits,
            'hitRate': self.hit_rate,
            'profit': self.profit,
            'roi': self.roi,
        }


@dataclass(frozen=True)
class TeamBreakdown:
    team: str
    games: int
    hit_rate: float
    profit: float

    def to_dict(self) -> dict:
        return {
            'team': self.team,
            'games': self.games,
            'hitRate': self.hit_rate,
            'profit': self.profit,
        }


@dataclass(frozen=True)
class DayOfWeekBreakdown:
    day: str
    games: int
    hit_rate: float

    def to_dict(self) -> dict:
        return {'day': self.day, 'games': self.games, 'hitRate': self.hit_rate}


def resolve_season(year: str, seasons: Sequence[str]) -> str:
    """
    Map a bet's year to a season label.

    Returns the first season whose label contains the year as a substring
    ('2024' -> '2024-25'), falling back to the bare year.
    """
    for season in seasons:
        if year in season:
            return season
    return year


def _grouped_totals(df: pd.DataFrame, key: str) -> pd.DataFrame:
    """games / hits / profit per bucket, sorted by bucket key."""
    return (
        df.groupby(key, sort=True)
        .agg(games=('won', 'size'), hits=('won', 'sum'), profit=('profit', 'sum'))
    )


def build_monthly_breakdown(session: SessionResult) -> List[MonthlyBreakdown]:
    """Per-month results in ascending month order."""
    if session.num_bets == 0:
        return []

    totals = _grouped_totals(session.to_dataframe(), 'month')
    return [
        MonthlyBreakdown(
            month=str(month),
            games=int(row.games),
            hits=int(row.hits),
            hit_rate=_rate(row.hits, row.games),
            profit=round(float(row.profit), 2),
        )
        for month, row in totals.iterrows()
    ]


def build_season_breakdown(
    session: SessionResult,
    seasons: Sequence[str]
) -> List[SeasonBreakdown]:
    """
    Per-season results sorted by season label.

    Seasons with no settled bets are left out.
    """
    if session.num_bets == 0:
        return []

    df = session.to_dataframe()
    df['season'] = [resolve_season(year, seasons) for year in df['year']]

    totals = _grouped_totals(df, 'season')
    return [
        SeasonBreakdown(
            season=str(season),
            games=int(row.games),
            hits=int(row.hits),
            hit_rate=_rate(row.hits, row.games),
            profit=round(float(row.profit), 2),
            roi=_rate(row.profit, row.games),
        )
        for season, row in totals.iterrows()
    ]


def build_team_breakdown(session: SessionResult) -> List[TeamBreakdown]:
    """Per-team results; bets without a team are left out."""
    if session.num_bets == 0:
        return []

    df = session.to_dataframe()
    df = df[df['team'].notna()]
    if df.empty:
        return []

    totals = _grouped_totals(df, 'team')
    return [
        TeamBreakdown(
            team=str(team),
            games=int(row.games),
            hit_rate=_rate(row.hits, row.games),
            profit=round(float(row.profit), 2),
        )
        for team, row in totals.iterrows()
    ]


def build_day_of_week_breakdown(session: SessionResult) -> List[DayOfWeekBreakdown]:
    """Per-weekday results in Monday..Sunday order; undated bets are left out."""
    if session.num_bets == 0:
        return []

    weekdays = [
        (DAYS_OF_WEEK[bet.timestamp.dayofweek], bet.won)
        for bet in session.bets
        if bet.timestamp is not None
    ]
    if not weekdays:
        return []

    df = pd.DataFrame(weekdays, columns=['day', 'won'])
    counts = df.groupby('day').agg(games=('won', 'size'), hits=('won', 'sum'))

    return [
        DayOfWeekBreakdown(
            day=day,
            games=int(counts.loc[day, 'games']),
            hit_rate=_rate(counts.loc[day, 'hits'], counts.loc[day, 'games']),
        )
        for day in DAYS_OF_WEEK
        if day in counts.index
    ]


def _rate(numerator: float, denominator: float) -> float:
    return float(numerator) / float(denominator) if denominator > 0 else 0.0
