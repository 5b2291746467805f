"""
Unit tests for monthly, season, team and day-of-week breakdowns.
"""

import pytest

from edgelab.backtest.breakdowns import (
    build_day_of_week_breakdown,
    build_monthly_breakdown,
    build_season_breakdown,
    build_team_breakdown,
    resolve_season,
)
from edgelab.backtest.simulator import BetSimulator, SessionResult, settle_bet


PAYOUT_110 = 100 / 110


@pytest.fixture
def session(make_log):
    """Five bets across two months, two seasons and two teams."""
    logs = [
        make_log(date="2023-12-30", actual=25, team="BOS"),   # Saturday, hit
        make_log(date="2024-01-01", actual=15, team="BOS"),   # Monday, miss
        make_log(date="2024-01-08", actual=25, team="NYK"),   # Monday, hit
        make_log(date="2024-01-10", actual=25, team="NYK"),   # Wednesday, hit
        make_log(date="2024-11-05", actual=25, team=None),    # Tuesday, hit
    ]
    return BetSimulator(PAYOUT_110).simulate_session([settle_bet(log) for log in logs])


class TestResolveSeason:

    def test_first_containing_season_wins(self):
        assert resolve_season("2024", ["2023-24", "2024-25"]) == "2024-25"
        assert resolve_season("2023", ["2023-24", "2024-25"]) == "2023-24"

    def test_short_labels_fall_back_to_year(self):
        # '2023-24' does not contain the string '2024'
        assert resolve_season("2024", ["2023-24"]) == "2024"
        assert resolve_season("2022", []) == "2022"


class TestMonthlyBreakdown:

    def test_buckets_sorted_by_month(self, session):
        months = build_monthly_breakdown(session)

        assert [m.month for m in months] == ["2023-12", "2024-01", "2024-11"]
        january = months[1]
        assert january.games == 3
        assert january.hits == 2
        assert january.hit_rate == pytest.approx(2 / 3)
        assert january.profit == round(2 * PAYOUT_110 - 1, 2)

    def test_empty(self):
        assert build_monthly_breakdown(SessionResult()) == []


class TestSeasonBreakdown:

    def test_seasons(self, session):
        seasons = build_season_breakdown(session, ["2023-24", "2024-25", "2025-26"])

        # 2023 -> 2023-24; 2024 -> 2024-25 (first label containing '2024')
        assert [s.season for s in seasons] == ["2023-24", "2024-25"]
        assert seasons[0].games == 1
        assert seasons[1].games == 4
        assert seasons[1].hits == 3
        assert seasons[1].roi == pytest.approx((3 * PAYOUT_110 - 1) / 4)
        assert seasons[1].profit == round(3 * PAYOUT_110 - 1, 2)

    def test_bare_year_fallback(self, session):
        seasons = build_season_breakdown(session, [])
        assert [s.season for s in seasons] == ["2023", "2024"]

    def test_to_dict(self, session):
        data = build_season_breakdown(session, [])[0].to_dict()
        assert set(data) == {"season", "games", "hits", "hitRate", "profit", "roi"}


class TestTeamBreakdown:

    def test_teams_without_abbrev_are_left_out(self, session):
        teams = build_team_breakdown(session)

        assert [t.team for t in teams] == ["BOS", "NYK"]
        assert teams[0].games == 2
        assert teams[0].hit_rate == pytest.approx(0.5)
        assert teams[1].profit == round(2 * PAYOUT_110, 2)


class TestDayOfWeekBreakdown:

    def test_weekday_order(self, session):
        days = build_day_of_week_breakdown(session)

        assert [d.day for d in days] == ["Monday", "Tuesday", "Wednesday", "Saturday"]
        monday = days[0]
        assert monday.games == 2
        assert monday.hit_rate == pytest.approx(0.5)

    def test_undated_bets_are_left_out(self, make_log):
        session = BetSimulator(1.0).simulate_session([settle_bet(make_log(date="TBD"))])
        assert build_day_of_week_breakdown(session) == []
