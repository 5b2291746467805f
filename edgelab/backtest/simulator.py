"""
Flat-Stake Bet Simulator Module.

Settles matched game logs as 1-unit bets at a fixed assumed price and walks
them in chronological order, tracking the path-dependent state a bettor
would have lived through:

    - cumulative profit and the rolling ROI after every bet
    - high-water mark and drawdown from it
    - independent win and loss streaks

Settlement Rules:
    - A record is settleable only if a line was posted for its primary stat
    - Over hits iff actual > line, under hits iff actual < line
    - A push (actual == line) is graded as a miss in both directions
    - A non-numeric or non-finite actual value is graded as a miss
"""

from dataclasses import dataclass, field
from enum import Enum
import math
from typing import Iterable, List, Optional

import pandas as pd

from ..data.game_log import EnrichedGameLog
from ..filters.conditions import Direction, is_number


class BetOutcome(str, Enum):
    """Graded result of a settled bet."""
    HIT = "hit"
    MISS = "miss"


@dataclass(frozen=True)
class SettledBet:
    """A matched game log graded against its posted line."""
    log: EnrichedGameLog
    line: float
    actual_value: Optional[float]
    outcome: BetOutcome
    timestamp: Optional[pd.Timestamp] = None

    @property
    def won(self) -> bool:
        return self.outcome == BetOutcome.HIT

    @property
    def date(self) -> str:
        return self.log.date_string

    @property
    def month(self) -> str:
        """'YYYY-MM' bucket key."""
        if self.timestamp is not None:
            return self.timestamp.strftime("%Y-%m")
        return self.date[:7]

    @property
    def year(self) -> str:
        if self.timestamp is not None:
            return self.timestamp.strftime("%Y")
        return self.date[:4]


def settle_bet(
    log: EnrichedGameLog,
    direction: Direction = Direction.OVER
) -> Optional[SettledBet]:
    """
    Grade a matched log, or return None if it can't be settled.

    A record without a finite numeric line for its primary stat is skipped
    rather than raised on. Once a line is posted the bet stands: an actual
    value that can't be compared (e.g. "DNP" or NaN) grades as a miss and
    is reported as None.
    """
    line = log.prop_line
    if not is_number(line) or not math.isfinite(line):
        return None

    actual = log.actual_value
    if not is_number(actual) or not math.isfinite(actual):
        actual = None
        is_hit = False
    elif direction == Direction.UNDER:
        is_hit = actual < line
    else:
        is_hit = actual > line

    return SettledBet(
        log=log,
        line=line,
        actual_value=actual,
        outcome=BetOutcome.HIT if is_hit else BetOutcome.MISS,
        timestamp=log.timestamp,
    )


def sort_chronologically(bets: Iterable[SettledBet]) -> List[SettledBet]:
    """
    Stable ascending sort by game date.

    Bets on the same date keep their input order; bets with an unparseable
    date go last, also in input order.
    """
    return sorted(
        bets,
        key=lambda b: (b.timestamp is None, b.timestamp.value if b.timestamp is not None else 0)
    )


@dataclass(frozen=True)
class EquityCurvePoint:
    """
    One point of the equity curve, emitted per settled bet.

    Attributes:
        date: Game date as supplied
        game_number: 1-based position in chronological order
        cumulative_profit: Units won/lost so far
        cumulative_roi: cumulative_profit / game_number (rolling, not final)
        result: 'hit' or 'miss'
        player_name: Display context
        stat: Primary stat key
        line: Posted line
        actual_value: Actual stat value (None if not numeric)
    """
    date: str
    game_number: int
    cumulative_profit: float
    cumulative_roi: float
    result: BetOutcome
    player_name: str
    stat: str
    line: float
    actual_value: Optional[float]

    def to_dict(self) -> dict:
        return {
            'date': self.date,
            'gameNumber': self.game_number,
            'cumulativeProfit': self.cumulative_profit,
            'cumulativeROI': self.cumulative_roi,
            'result': self.result.value,
            'playerName': self.player_name,
            'stat': self.stat,
            'line': self.line,
            'actualValue': self.actual_value,
        }


@dataclass
class SessionResult:
    """Bet-by-bet outcome of a simulated flat-stake session."""
    bets: List[SettledBet] = field(default_factory=list)
    profits: List[float] = field(default_factory=list)
    equity_curve: List[EquityCurvePoint] = field(default_factory=list)
    payout_multiplier: float = 0.0
    total_profit: float = 0.0
    max_drawdown: float = 0.0
    longest_win_streak: int = 0
    longest_loss_streak: int = 0

    @property
    def num_bets(self) -> int:
        return len(self.bets)

    @property
    def num_hits(self) -> int:
        return sum(1 for b in self.bets if b.won)

    @property
    def num_misses(self) -> int:
        return self.num_bets - self.num_hits

    def to_dataframe(self) -> pd.DataFrame:
        """Convert settled bets to a DataFrame for aggregation."""
        columns = [
            'date', 'timestamp', 'month', 'year', 'player_name', 'team',
            'stat', 'line', 'actual_value', 'won', 'outcome', 'profit',
        ]
        return pd.DataFrame([
            {
                'date': b.date,
                'timestamp': b.timestamp,
                'month': b.month,
                'year': b.year,
                'player_name': b.log.player_name,
                'team': b.log.team_abbrev,
                'stat': b.log.primary_stat_key,
                'line': b.line,
                'actual_value': b.actual_value,
                'won': b.won,
                'outcome': b.outcome.value,
                'profit': profit,
            }
            for b, profit in zip(self.bets, self.profits)
        ], columns=columns)


class BetSimulator:
    """
    Simulates flat 1-unit staking at a fixed payout.

    Example:
        >>> simulator = BetSimulator(payout_multiplier=100 / 110)
        >>> session = simulator.simulate_session(settled_bets)
        >>> session.max_drawdown
    """

    def __init__(self, payout_multiplier: float):
        """
        Args:
            payout_multiplier: Net units won per unit staked on a hit
        """
        self.payout_multiplier = payout_multiplier

    def bet_profit(self, bet: SettledBet) -> float:
        return self.payout_multiplier if bet.won else -1.0

    def simulate_session(self, bets: Iterable[SettledBet]) -> SessionResult:
        """
        Settle bets in date order and track the running bankroll path.

        Input order does not matter beyond breaking ties between bets on
        the same date.
        """
        ordered = sort_chronologically(bets)

        profits: List[float] = []
        equity_curve: List[EquityCurvePoint] = []

        cumulative_profit = 0.0
        high_water_mark = 0.0
        max_drawdown = 0.0
        win_streak = 0
        loss_streak = 0
        longest_win_streak = 0
        longest_loss_streak = 0

        for game_number, bet in enumerate(ordered, start=1):
            profit = self.bet_profit(bet)
            cumulative_profit += profit
            profits.append(profit)

            high_water_mark = max(high_water_mark, cumulative_profit)
            max_drawdown = max(max_drawdown, high_water_mark - cumulative_profit)

            if bet.won:
                win_streak += 1
                loss_streak = 0
                longest_win_streak = max(longest_win_streak, win_streak)
            else:
                loss_streak += 1
                win_streak = 0
                longest_loss_streak = max(longest_loss_streak, loss_streak)

            equity_curve.append(EquityCurvePoint(
                date=bet.date,
                game_number=game_number,
                cumulative_profit=cumulative_profit,
                cumulative_roi=cumulative_profit / game_number,
                result=bet.outcome,
                player_name=bet.log.player_name,
                stat=bet.log.primary_stat_key,
                line=bet.line,
                actual_value=bet.actual_value,
            ))

        return SessionResult(
            bets=ordered,
            profits=profits,
            equity_curve=equity_curve,
            payout_multiplier=self.payout_multiplier,
            total_profit=cumulative_profit,
            max_drawdown=max_drawdown,
            longest_win_streak=longest_win_streak,
            longest_loss_streak=longest_loss_streak,
        )
