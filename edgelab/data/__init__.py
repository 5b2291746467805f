"""Game-log records consumed by the filter and backtest engines."""

from .game_log import EnrichedGameLog, to_snake_case

__all__ = ["EnrichedGameLog", "to_snake_case"]
