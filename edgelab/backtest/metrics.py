"""
Backtesting Performance Metrics Module.

Aggregate and risk metrics for a flat-stake prop backtest.

Metrics Categories:
    1. Profitability - hit rate, total profit, ROI per unit wagered
    2. Drawdown & Streaks - taken from the chronological session walk
    3. Risk-Adjusted - Sharpe ratio, capped Kelly fraction
    4. Confidence - coarse sample-size bucket and advisory warning

Every ratio falls back to 0 when its denominator is 0, so results never
contain NaN or infinity.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple
import numpy as np

from .simulator import SessionResult
from ..strategies.kelly import DEFAULT_KELLY_CAP, kelly_fraction


DEFAULT_ANNUALIZATION = 250  # betting opportunities per year


class SampleSize(str, Enum):
    """Coarse confidence label derived from the number of settled bets."""
    INSUFFICIENT = "insufficient"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


INSUFFICIENT_WARNING_TEMPLATE = "Fewer than {threshold} matches: results are not statistically reliable"
INSUFFICIENT_WARNING = INSUFFICIENT_WARNING_TEMPLATE.format(threshold=30)
LOW_SAMPLE_WARNING = "Sample size is limited. Results may not reflect true edge."


@dataclass
class BacktestMetrics:
    """
    Aggregate backtest metrics.

    Attributes:
        total_games: Number of settled bets
        hits: Winning bets
        misses: Losing bets (pushes included)
        hit_rate: hits / total_games
        total_units_wagered: One unit per settled bet
        total_profit: Net units won
        roi: total_profit / total_units_wagered

        max_drawdown: Largest drop from the running high-water mark (units)
        longest_win_streak: Longest run of consecutive hits
        longest_loss_streak: Longest run of consecutive misses

        sharpe_ratio: Annualized mean/std of per-bet profit
        kelly_fraction: Capped Kelly fraction at the observed hit rate

        sample_size: Confidence bucket
        confidence_warning: Advisory text for small samples
    """
    # Profitability
    total_games: int = 0
    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0
    total_units_wagered: float = 0.0
    total_profit: float = 0.0
    roi: float = 0.0

    # Drawdown & streaks
    max_drawdown: float = 0.0
    longest_win_streak: int = 0
    longest_loss_streak: int = 0

    # Risk-adjusted
    sharpe_ratio: float = 0.0
    kelly_fraction: float = 0.0

    # Confidence
    sample_size: SampleSize = SampleSize.INSUFFICIENT
    confidence_warning: Optional[str] = INSUFFICIENT_WARNING

    def __str__(self) -> str:
        """Human-readable summary."""
        return f"""
═══════════════════════════════════════════════════════════════
                    BACKTEST PERFORMANCE REPORT
═══════════════════════════════════════════════════════════════

📊 RESULTS
   Games:               {self.total_games:,}
   Hits / Misses:       {self.hits:,} / {self.misses:,}
   Hit Rate:            {self.hit_rate:.2%}
   Total Profit:        {self.total_profit:+.2f}u
   ROI:                 {self.roi:+.2%}

📉 DRAWDOWN & STREAKS
   Max Drawdown:        {self.max_drawdown:.2f}u
   Longest Win Streak:  {self.longest_win_streak}
   Longest Loss Streak: {self.longest_loss_streak}

📈 RISK
   Sharpe Ratio:        {self.sharpe_ratio:.2f}
   Kelly Fraction:      {self.kelly_fraction:.2%}

🎯 CONFIDENCE
   Sample Size:         {self.sample_size.value}
   {self.confidence_warning or ''}
═══════════════════════════════════════════════════════════════
"""

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'totalGames': self.total_games,
            'hits': self.hits,
            'misses': self.misses,
            'hitRate': self.hit_rate,
            'totalUnitsWagered': self.total_units_wagered,
            'totalProfit': self.total_profit,
            'roi': self.roi,
            'maxDrawdown': self.max_drawdown,
            'longestWinStreak': self.longest_win_streak,
            'longestLossStreak': self.longest_loss_streak,
            'sharpeRatio': self.sharpe_ratio,
            'kellyFraction': self.kelly_fraction,
            'sampleSize': self.sample_size.value,
            'confidenceWarning': self.confidence_warning,
        }


def calculate_metrics(
    session: SessionResult,
    annualization_factor: float = DEFAULT_ANNUALIZATION,
    kelly_cap: float = DEFAULT_KELLY_CAP,
    sample_thresholds: Tuple[int, int, int] = (30, 100, 500)
) -> BacktestMetrics:
    """
    Calculate aggregate metrics from a simulated session.

    Args:
        session: Chronological session from BetSimulator
        annualization_factor: Betting opportunities per year for Sharpe
        kelly_cap: Ceiling for the Kelly fraction
        sample_thresholds: Upper bounds for insufficient/low/moderate

    Returns:
        BacktestMetrics with all calculated values
    """
    total = session.num_bets
    hits = session.num_hits
    hit_rate = hits / total if total > 0 else 0.0
    roi = session.total_profit / total if total > 0 else 0.0

    sample_size, warning = assess_sample_size(total, sample_thresholds)

    return BacktestMetrics(
        total_games=total,
        hits=hits,
        misses=total - hits,
        hit_rate=hit_rate,
        total_units_wagered=float(total),
        total_profit=session.total_profit,
        roi=roi,
        max_drawdown=session.max_drawdown,
        longest_win_streak=session.longest_win_streak,
        longest_loss_streak=session.longest_loss_streak,
        sharpe_ratio=calculate_sharpe_ratio(session.profits, annualization_factor),
        kelly_fraction=kelly_fraction(hit_rate, session.payout_multiplier, kelly_cap),
        sample_size=sample_size,
        confidence_warning=warning,
    )


def calculate_sharpe_ratio(
    profits: Sequence[float],
    annualization_factor: float = DEFAULT_ANNUALIZATION
) -> float:
    """
    Annualized Sharpe ratio of per-bet profits.

    Uses the population standard deviation. Returns 0 for fewer than two
    bets or when every bet returned the same profit.

    Args:
        profits: Per-bet profit series in units
        annualization_factor: Betting opportunities per year

    Returns:
        (mean / std) * sqrt(annualization_factor)
    """
    if len(profits) < 2:
        return 0.0

    returns = np.asarray(profits, dtype=float)

    # exact check: identical profits can still leave float noise in std
    if np.all(returns == returns[0]):
        return 0.0

    std_return = returns.std()
    if std_return == 0 or not np.isfinite(std_return):
        return 0.0

    sharpe = (returns.mean() / std_return) * np.sqrt(annualization_factor)
    return float(sharpe) if np.isfinite(sharpe) else 0.0


def assess_sample_size(
    total: int,
    thresholds: Tuple[int, int, int] = (30, 100, 500)
) -> Tuple[SampleSize, Optional[str]]:
    """
    Bucket a sample size and attach an advisory warning.

    The warning is informational only; results are never suppressed.

    Returns:
        Tuple of (SampleSize, warning or None)
    """
    insufficient, low, moderate = thresholds

    if total < insufficient:
        return SampleSize.INSUFFICIENT, INSUFFICIENT_WARNING_TEMPLATE.format(threshold=insufficient)
    if total < low:
        return SampleSize.LOW, LOW_SAMPLE_WARNING
    if total < moderate:
        return SampleSize.MODERATE, None
    return SampleSize.HIGH, None
