"""
Kelly Criterion and Odds Conversion for Prop Backtests.

For a binary bet with hit probability p and net payout b per unit staked:

.. math::

    f^* = \\frac{p \\cdot b - q}{b}

Where:
    - f* = optimal fraction of bankroll to wager
    - p = probability of hitting (the backtest hit rate)
    - q = 1 - p
    - b = net payout multiplier (0.909 at -110)

The backtest reports a capped Kelly fraction: a negative edge floors at 0
and the optimum is capped at 25% of bankroll regardless of the computed
value. The historical hit rate is an estimate, and full Kelly on an
overstated edge over-bets.

References
----------
- Kelly, J.L. (1956). "A New Interpretation of Information Rate"
- Thorp, E.O. (2006). "The Kelly Criterion in Blackjack Sports Betting..."
"""

from dataclasses import dataclass
import numpy as np


DEFAULT_KELLY_CAP = 0.25


def american_to_decimal(american_odds: float) -> float:
    """
    Convert American odds to the net payout multiplier per unit staked.

    The stake itself is not included: -110 pays 0.909 units profit on a
    1-unit win, +150 pays 1.5.

    Examples:
        >>> round(american_to_decimal(-110), 3)
        0.909
        >>> american_to_decimal(150)
        1.5
    """
    if american_odds < 0:
        return 100 / abs(american_odds)
    return american_odds / 100


@dataclass
class KellyResult:
    """
    Result of a Kelly calculation.

    Attributes:
        fraction: Recommended wager as fraction of bankroll (after clamping)
        raw_kelly: Unclamped Kelly fraction
        is_positive_ev: Whether the raw edge is positive
        capped: Whether the cap reduced the fraction
    """
    fraction: float
    raw_kelly: float
    is_positive_ev: bool
    capped: bool = False


def kelly_criterion(
    hit_rate: float,
    payout_multiplier: float,
    cap: float = DEFAULT_KELLY_CAP
) -> KellyResult:
    """
    Capped Kelly fraction for a flat-odds prop strategy.

    Args:
        hit_rate: Observed probability of hitting, in [0, 1]
        payout_multiplier: Net payout per unit staked (b)
        cap: Maximum fraction returned

    Returns:
        KellyResult with ``fraction`` in ``[0, cap]``

    Example:
        >>> # 60% hit rate at -110
        >>> round(kelly_criterion(0.60, 100 / 110).raw_kelly, 3)
        0.16
        >>> # 80% hit rate at -110 is capped
        >>> kelly_criterion(0.80, 100 / 110).fraction
        0.25
    """
    if payout_multiplier <= 0 or not np.isfinite(payout_multiplier):
        return KellyResult(fraction=0.0, raw_kelly=0.0, is_positive_ev=False)

    p = float(hit_rate)
    q = 1 - p
    b = payout_multiplier

    raw_kelly = (b * p - q) / b
    if not np.isfinite(raw_kelly):
        raw_kelly = 0.0

    fraction = max(0.0, min(cap, raw_kelly))

    return KellyResult(
        fraction=fraction,
        raw_kelly=raw_kelly,
        is_positive_ev=raw_kelly > 0,
        capped=raw_kelly > cap,
    )


def kelly_fraction(
    hit_rate: float,
    payout_multiplier: float,
    cap: float = DEFAULT_KELLY_CAP
) -> float:
    """Clamped Kelly fraction in ``[0, cap]``."""
    return kelly_criterion(hit_rate, payout_multiplier, cap).fraction
