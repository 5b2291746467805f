"""
Integration tests for the filter backtesting engine.

Tests cover:
    - Filter and settle gates
    - Chronological accounting regardless of input order
    - Zero-match results free of NaN / infinity
    - Determinism across repeated runs
    - Config from settings
"""

import json
import logging
import math

import pytest

from edgelab.backtest.engine import BacktestConfig, BacktestEngine, BacktestResult, run_backtest
from edgelab.backtest.metrics import SampleSize
from edgelab.core.config import Settings
from edgelab.filters.conditions import CustomFilter, FilterCondition


PAYOUT_110 = 100 / 110


@pytest.fixture
def minutes_filter():
    return CustomFilter(name="Heavy Minutes", sport="nba", id="flt-1", conditions=[
        FilterCondition("minutes", "gte", 30, label="Minutes"),
    ])


@pytest.fixture
def engine(synthetic_registry):
    return BacktestEngine(registry=synthetic_registry)


def _all_numbers_finite(value) -> bool:
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, dict):
        return all(_all_numbers_finite(v) for v in value.values())
    if isinstance(value, list):
        return all(_all_numbers_finite(v) for v in value)
    return True


class TestRunBacktest:
    """Tests for BacktestEngine.run_backtest."""

    def test_hit_miss_hit_scenario(self, engine, minutes_filter, make_logs):
        logs = make_logs([True, False, True], minutes=35)

        result = engine.run_backtest(minutes_filter, logs, seasons=["2023-24"], assumed_odds=-110)
        m = result.metrics

        assert m.hits == 2
        assert m.misses == 1
        assert m.hit_rate == pytest.approx(0.667, abs=1e-3)
        assert m.total_profit == pytest.approx(0.818, abs=1e-3)
        assert m.max_drawdown == pytest.approx(1.0)
        assert m.longest_win_streak == 1
        assert m.longest_loss_streak == 1
        assert m.roi == pytest.approx((2 * PAYOUT_110 - 1) / 3)

    def test_input_order_is_irrelevant(self, engine, minutes_filter, make_logs):
        logs = make_logs([True, False, True], minutes=35)

        forward = engine.run_backtest(minutes_filter, logs)
        shuffled = engine.run_backtest(minutes_filter, [logs[2], logs[0], logs[1]])

        assert shuffled.equity_curve == forward.equity_curve
        assert shuffled.metrics.max_drawdown == forward.metrics.max_drawdown

    def test_filter_gate(self, engine, minutes_filter, make_logs):
        logs = make_logs([True, True], minutes=35) + make_logs([False, False], start_day=10, minutes=20)

        result = engine.run_backtest(minutes_filter, logs)

        assert result.metrics.total_games == 2
        assert result.metrics.hit_rate == 1.0

    def test_settle_gate_skips_missing_lines(self, engine, minutes_filter, make_log):
        logs = [
            make_log(date="2024-01-01", actual=30, line=20.5, minutes=35),
            make_log(date="2024-01-02", actual=30, line=None, minutes=35),
        ]

        result = engine.run_backtest(minutes_filter, logs)

        assert result.metrics.total_games == 1
        assert result.skipped == 1
        assert len(result.equity_curve) == 1

    def test_unusable_actual_counts_as_a_loss(self, engine, minutes_filter, make_log):
        logs = [
            make_log(date="2024-01-01", actual=30, line=20.5, minutes=35),
            make_log(date="2024-01-02", actual="DNP", line=20.5, minutes=35),
        ]

        result = engine.run_backtest(minutes_filter, logs)

        assert result.skipped == 0
        assert result.metrics.total_games == 2
        assert result.metrics.misses == 1
        assert result.to_dict()["equityCurve"][1]["actualValue"] is None
        json.dumps(result.to_dict())

    def test_under_direction_push_is_miss(self, engine, make_log):
        under = CustomFilter(name="Unders", sport="nba", direction="under", conditions=[
            FilterCondition("minutes", "gte", 0),
        ])
        logs = [
            make_log(date="2024-01-01", actual=19, line=20, minutes=30),
            make_log(date="2024-01-02", actual=20, line=20, minutes=30),
        ]

        result = engine.run_backtest(under, logs)

        assert [p.result.value for p in result.equity_curve] == ["hit", "miss"]

    def test_empty_match_set(self, engine, minutes_filter, make_logs):
        result = engine.run_backtest(minutes_filter, make_logs([True, False], minutes=5))
        m = result.metrics

        assert m.total_games == 0
        assert m.hit_rate == 0
        assert m.roi == 0
        assert m.sharpe_ratio == 0
        assert m.kelly_fraction == 0
        assert m.sample_size == SampleSize.INSUFFICIENT
        assert result.equity_curve == []
        assert result.monthly_breakdown == []
        assert result.season_breakdown == []
        assert _all_numbers_finite(result.to_dict())

    def test_no_logs(self, engine, minutes_filter):
        result = engine.run_backtest(minutes_filter, [])
        assert result.metrics.total_games == 0

    def test_deterministic(self, engine, minutes_filter, make_logs):
        logs = make_logs([True, False, True, True, False, False, True], minutes=40)

        first = engine.run_backtest(minutes_filter, logs, ["2023-24"]).to_dict()
        second = engine.run_backtest(minutes_filter, logs, ["2023-24"]).to_dict()
        first.pop("executionTimeMs")
        second.pop("executionTimeMs")

        assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)

    def test_does_not_mutate_inputs(self, engine, minutes_filter, make_logs):
        logs = make_logs([False, True], minutes=40)
        snapshot = list(logs)

        engine.run_backtest(minutes_filter, logs)

        assert logs == snapshot

    def test_positive_odds(self, engine, minutes_filter, make_logs):
        result = engine.run_backtest(minutes_filter, make_logs([True, False], minutes=40),
                                     assumed_odds=150)

        assert result.metrics.total_profit == pytest.approx(0.5)

    def test_non_finite_odds_rejected(self, engine, minutes_filter):
        with pytest.raises(ValueError, match="assumed_odds"):
            engine.run_backtest(minutes_filter, [], assumed_odds=math.nan)

    def test_logs_one_summary_line(self, engine, minutes_filter, make_logs, caplog):
        with caplog.at_level(logging.INFO, logger="edgelab.backtest.engine"):
            engine.run_backtest(minutes_filter, make_logs([True], minutes=40))

        records = [r for r in caplog.records if r.name == "edgelab.backtest.engine"]
        assert len(records) == 1
        assert "Heavy Minutes" in records[0].getMessage()


class TestBacktestResult:
    """Tests for result serialization."""

    def test_to_dict(self, engine, minutes_filter, make_logs):
        result = engine.run_backtest(minutes_filter, make_logs([True, False], minutes=40),
                                     seasons=["2023-24"])

        data = result.to_dict()

        assert data["filterId"] == "flt-1"
        assert data["filterName"] == "Heavy Minutes"
        assert data["seasons"] == ["2023-24"]
        assert data["totalGames"] == 2
        assert data["equityCurve"][0]["gameNumber"] == 1
        assert data["monthlyBreakdown"][0]["month"] == "2024-01"
        assert data["seasonBreakdown"][0]["season"] == "2024"
        assert data["byTeam"][0]["team"] == "BOS"
        assert data["byTeam"][0]["games"] == 2
        assert [d["day"] for d in data["byDayOfWeek"]] == ["Monday", "Tuesday"]
        assert "teamBreakdown" not in data
        assert data["executionTimeMs"] >= 0
        json.dumps(data)

    def test_summary(self, engine, minutes_filter, make_logs):
        result = engine.run_backtest(minutes_filter, make_logs([True], minutes=40))

        assert isinstance(result, BacktestResult)
        assert "Heavy Minutes" in result.summary()


class TestConvenienceFunction:

    def test_run_backtest(self, minutes_filter, synthetic_registry, make_logs):
        result = run_backtest(minutes_filter, make_logs([True, False, True], minutes=35),
                              ["2023-24"], assumed_odds=-110, registry=synthetic_registry)

        assert result.metrics.hits == 2

    def test_default_registry(self, make_log):
        custom_filter = CustomFilter(name="Rested", sport="nba", conditions=[
            FilterCondition("rest_days", "gte", 2),
        ])
        logs = [make_log(rest_days=3), make_log(date="2024-01-02", rest_days=0)]

        assert run_backtest(custom_filter, logs).metrics.total_games == 1


class TestBacktestConfig:

    def test_from_settings(self):
        settings = Settings(DEFAULT_ASSUMED_ODDS=-120, KELLY_CAP=0.1,
                            SAMPLE_SIZE_INSUFFICIENT=5, SAMPLE_SIZE_LOW=10,
                            SAMPLE_SIZE_MODERATE=20)

        config = BacktestConfig.from_settings(settings)

        assert config.assumed_odds == -120
        assert config.kelly_cap == 0.1
        assert config.sample_thresholds == (5, 10, 20)

    def test_config_odds_used_by_default(self, synthetic_registry, minutes_filter, make_logs):
        engine = BacktestEngine(synthetic_registry, BacktestConfig(assumed_odds=100))

        result = engine.run_backtest(minutes_filter, make_logs([True], minutes=40))

        assert result.metrics.total_profit == pytest.approx(1.0)
