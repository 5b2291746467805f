"""
Backtesting Framework for Custom Prop Filters.

Components:
    - engine: Filter-to-result orchestrator
    - simulator: Chronological flat-stake bet settlement
    - metrics: Aggregate and risk metrics
    - breakdowns: Monthly, season, team and weekday buckets
"""

from .engine import BacktestConfig, BacktestEngine, BacktestResult, run_backtest
from .simulator import (
    BetOutcome,
    BetSimulator,
    EquityCurvePoint,
    SessionResult,
    SettledBet,
    settle_bet
)
from .metrics import BacktestMetrics, SampleSize, calculate_metrics, calculate_sharpe_ratio
from .breakdowns import (
    DayOfWeekBreakdown,
    MonthlyBreakdown,
    SeasonBreakdown,
    TeamBreakdown
)

__all__ = [
    # Engine
    "BacktestConfig",
    "BacktestEngine",
    "BacktestResult",
    "run_backtest",
    # Simulator
    "BetOutcome",
    "BetSimulator",
    "EquityCurvePoint",
    "SessionResult",
    "SettledBet",
    "settle_bet",
    # Metrics
    "BacktestMetrics",
    "SampleSize",
    "calculate_metrics",
    "calculate_sharpe_ratio",
    # Breakdowns
    "DayOfWeekBreakdown",
    "MonthlyBreakdown",
    "SeasonBreakdown",
    "TeamBreakdown",
]
