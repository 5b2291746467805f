"""Staking math for prop backtests."""

from .kelly import (
    KellyResult,
    american_to_decimal,
    kelly_criterion,
    kelly_fraction
)

__all__ = [
    "KellyResult",
    "american_to_decimal",
    "kelly_criterion",
    "kelly_fraction",
]
