"""
Filter Backtesting Engine Module.

Runs a custom filter over historical enriched game logs and simulates
flat-stake wagering on every settleable match.

Pipeline:
    1. Filter gate - the filter must match the record
    2. Settle gate - a line must be posted for the record's primary stat
    3. Chronological simulation at a fixed assumed price
    4. Aggregate and risk metrics
    5. Monthly, season, team and day-of-week breakdowns

The engine holds no mutable state between runs: identical inputs always
produce identical results apart from the execution timer.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple
import logging
import math
import time

from .breakdowns import (
    DayOfWeekBreakdown,
    MonthlyBreakdown,
    SeasonBreakdown,
    TeamBreakdown,
    build_day_of_week_breakdown,
    build_monthly_breakdown,
    build_season_breakdown,
    build_team_breakdown,
)
from .metrics import DEFAULT_ANNUALIZATION, BacktestMetrics, calculate_metrics
from .simulator import BetSimulator, EquityCurvePoint, SessionResult, SettledBet, settle_bet
from ..core.config import Settings, get_settings
from ..data.game_log import EnrichedGameLog
from ..filters.conditions import CustomFilter
from ..filters.engine import FilterEngine
from ..filters.registry import FieldRegistry
from ..strategies.kelly import DEFAULT_KELLY_CAP, american_to_decimal


logger = logging.getLogger(__name__)


DEFAULT_ASSUMED_ODDS = -110


# ============================================================================
# Configuration and Results
# ============================================================================

@dataclass
class BacktestConfig:
    """
    Configuration for backtesting.

    Attributes:
        assumed_odds: American odds assumed for every bet
        annualization_factor: Betting opportunities per year for Sharpe
        kelly_cap: Ceiling for the reported Kelly fraction
        sample_thresholds: Upper bounds for insufficient/low/moderate samples
    """
    assumed_odds: float = DEFAULT_ASSUMED_ODDS
    annualization_factor: float = DEFAULT_ANNUALIZATION
    kelly_cap: float = DEFAULT_KELLY_CAP
    sample_thresholds: Tuple[int, int, int] = (30, 100, 500)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "BacktestConfig":
        """Build a config from environment-backed settings."""
        settings = settings or get_settings()
        return cls(
            assumed_odds=settings.DEFAULT_ASSUMED_ODDS,
            annualization_factor=settings.SHARPE_ANNUALIZATION,
            kelly_cap=settings.KELLY_CAP,
            sample_thresholds=(
                settings.SAMPLE_SIZE_INSUFFICIENT,
                settings.SAMPLE_SIZE_LOW,
                settings.SAMPLE_SIZE_MODERATE,
            ),
        )


@dataclass(frozen=True)
class BacktestResult:
    """
    Complete result of a filter backtest.

    Attributes:
        filter_id: Id of the filter that was run, if any
        filter_name: Name of the filter that was run
        seasons: Season labels supplied by the caller
        metrics: Aggregate and risk metrics
        equity_curve: One point per settled bet, chronological
        monthly_breakdown: Results per 'YYYY-MM'
        season_breakdown: Results per season label
        team_breakdown: Results per team
        day_of_week_breakdown: Results per weekday
        execution_time_ms: Wall time of the run (cosmetic)
        session: Bet-by-bet simulation output
        skipped: Matched records that could not be settled
    """
    filter_id: Optional[str]
    filter_name: str
    seasons: Tuple[str, ...]
    metrics: BacktestMetrics
    equity_curve: List[EquityCurvePoint] = field(default_factory=list)
    monthly_breakdown: List[MonthlyBreakdown] = field(default_factory=list)
    season_breakdown: List[SeasonBreakdown] = field(default_factory=list)
    team_breakdown: List[TeamBreakdown] = field(default_factory=list)
    day_of_week_breakdown: List[DayOfWeekBreakdown] = field(default_factory=list)
    execution_time_ms: float = 0.0
    session: Optional[SessionResult] = None
    skipped: int = 0

    def summary(self) -> str:
        """Generate summary string."""
        seasons = ', '.join(self.seasons) if self.seasons else 'all'
        return f"""
Backtest Summary
================
Filter: {self.filter_name}
Seasons: {seasons}

{self.metrics}
"""

    def to_dict(self) -> dict:
        """Convert to a JSON-ready dictionary with metrics flattened in."""
        data = {
            'filterId': self.filter_id,
            'filterName': self.filter_name,
            'seasons': list(self.seasons),
        }
        data.update(self.metrics.to_dict())
        data.update({
            'equityCurve': [p.to_dict() for p in self.equity_curve],
            'monthlyBreakdown': [b.to_dict() for b in self.monthly_breakdown],
            'seasonBreakdown': [b.to_dict() for b in self.season_breakdown],
            'byTeam': [b.to_dict() for b in self.team_breakdown],
            'byDayOfWeek': [b.to_dict() for b in self.day_of_week_breakdown],
            'executionTimeMs': self.execution_time_ms,
        })
        return data


# ============================================================================
# Main Backtest Engine
# ============================================================================

class BacktestEngine:
    """
    Flat-stake backtesting engine for custom filters.

    Example:
        >>> engine = BacktestEngine(FieldRegistry.default())
        >>> result = engine.run_backtest(
        ...     my_filter,
        ...     game_logs,
        ...     seasons=["2023-24", "2024-25"],
        ... )
        >>> print(result.metrics)
    """

    def __init__(
        self,
        registry: Optional[FieldRegistry] = None,
        config: Optional[BacktestConfig] = None
    ):
        """
        Initialize the backtest engine.

        Args:
            registry: Field registry used to resolve condition fields
            config: Backtesting configuration
        """
        self.filter_engine = FilterEngine(registry)
        self.config = config or BacktestConfig()

    @property
    def registry(self) -> FieldRegistry:
        return self.filter_engine.registry

    def run_backtest(
        self,
        custom_filter: CustomFilter,
        game_logs: Iterable[EnrichedGameLog],
        seasons: Sequence[str] = (),
        assumed_odds: Optional[float] = None
    ) -> BacktestResult:
        """
        Run a complete backtest.

        Args:
            custom_filter: Filter to evaluate
            game_logs: Historical records, any order
            seasons: Season labels used to bucket the season breakdown
            assumed_odds: American odds for every bet (config default if None)

        Returns:
            BacktestResult with metrics, equity curve and breakdowns

        Raises:
            ValueError: If assumed_odds is not a finite number
        """
        start = time.perf_counter()

        odds = self.config.assumed_odds if assumed_odds is None else assumed_odds
        if not math.isfinite(odds):
            raise ValueError(f"assumed_odds must be finite, got {odds}")

        direction = custom_filter.effective_direction
        matched = 0
        skipped = 0
        settled: List[SettledBet] = []

        for log in game_logs:
            if not self.filter_engine.evaluate(custom_filter, log).matches:
                continue
            matched += 1

            bet = settle_bet(log, direction)
            if bet is None:
                skipped += 1
                logger.debug(
                    f"Skipping {log.player_name} on {log.date_string}: "
                    f"no line for '{log.primary_stat_key}'"
                )
                continue
            settled.append(bet)

        simulator = BetSimulator(payout_multiplier=american_to_decimal(odds))
        session = simulator.simulate_session(settled)

        metrics = calculate_metrics(
            session,
            annualization_factor=self.config.annualization_factor,
            kelly_cap=self.config.kelly_cap,
            sample_thresholds=self.config.sample_thresholds,
        )

        seasons = tuple(seasons)
        result = BacktestResult(
            filter_id=custom_filter.id,
            filter_name=custom_filter.name,
            seasons=seasons,
            metrics=metrics,
            equity_curve=session.equity_curve,
            monthly_breakdown=build_monthly_breakdown(session),
            season_breakdown=build_season_breakdown(session, seasons),
            team_breakdown=build_team_breakdown(session),
            day_of_week_breakdown=build_day_of_week_breakdown(session),
            execution_time_ms=(time.perf_counter() - start) * 1000,
            session=session,
            skipped=skipped,
        )

        logger.info(
            f"Backtest '{custom_filter.name}': {matched} matched, "
            f"{session.num_bets} settled, {skipped} skipped, "
            f"hit rate={metrics.hit_rate:.2%}, ROI={metrics.roi:+.2%}"
        )

        return result


# ============================================================================
# Convenience Function
# ============================================================================

def run_backtest(
    custom_filter: CustomFilter,
    game_logs: Iterable[EnrichedGameLog],
    seasons: Sequence[str] = (),
    assumed_odds: float = DEFAULT_ASSUMED_ODDS,
    registry: Optional[FieldRegistry] = None,
    config: Optional[BacktestConfig] = None
) -> BacktestResult:
    """
    Backtest a filter over historical game logs.

    Example:
        >>> result = run_backtest(my_filter, logs, ["2024-25"], assumed_odds=-115)
        >>> result.metrics.hit_rate
    """
    engine = BacktestEngine(registry=registry, config=config)
    return engine.run_backtest(custom_filter, game_logs, seasons, assumed_odds)
