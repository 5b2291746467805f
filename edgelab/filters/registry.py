"""
Filter Field Registry.

Defines the fields users can build filter conditions from. Each field knows
how to extract its value from an EnrichedGameLog. Extraction functions must
be pure: backtests are only reproducible if a field always returns the same
value for the same record.

The registry is an explicit object handed to the filter and backtest engines,
so tests can register synthetic fields without touching shared state.
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from .conditions import FilterOperator
from ..data.game_log import EnrichedGameLog


FieldExtractor = Callable[..., Any]


@dataclass(frozen=True)
class FieldOption:
    """Selectable value for 'select' / 'multi_select' fields."""
    value: Any
    label: str


@dataclass(frozen=True)
class FieldDef:
    """
    Capability describing one filterable field.

    Attributes:
        key: Registry key referenced by FilterCondition.field
        label: Display label
        category: UI grouping, e.g. 'Matchup', 'Rest'
        description: Help text
        sport: Sport code or 'all'
        type: 'select', 'number', 'range', 'boolean' or 'multi_select'
        default_operator: Operator pre-selected when building a condition
        extractor: ``fn(log, player=None, game=None) -> value``
    """
    key: str
    label: str
    extractor: FieldExtractor
    category: str = "General"
    description: str = ""
    sport: str = "all"
    type: str = "number"
    default_operator: FilterOperator = FilterOperator.GTE
    options: tuple = ()
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    unit: Optional[str] = None

    def evaluate(self, log: EnrichedGameLog, player: Any = None, game: Any = None) -> Any:
        """Extract this field's value from a game log."""
        return self.extractor(log, player, game)

    def applies_to(self, sport: str) -> bool:
        return self.sport == "all" or self.sport == sport


class FieldRegistry:
    """
    Lookup table of field definitions keyed by field key.

    Example:
        >>> registry = FieldRegistry.default()
        >>> registry.get_field_def('rest_days').label
        'Days of Rest'
        >>> registry.register(FieldDef('age', 'Age', lambda log, p, g: log.get('age')))
    """

    def __init__(self, fields: Iterable[FieldDef] = ()):
        self._fields: "OrderedDict[str, FieldDef]" = OrderedDict()
        for field_def in fields:
            self.register(field_def)

    @classmethod
    def default(cls) -> "FieldRegistry":
        """Registry holding the built-in catalog of universal and sport fields."""
        return cls(BUILTIN_FIELDS)

    def register(self, field_def: FieldDef) -> None:
        if field_def.key in self._fields:
            raise ValueError(f"Field already registered: {field_def.key}")
        self._fields[field_def.key] = field_def

    def get_field_def(self, key: str) -> Optional[FieldDef]:
        return self._fields.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._fields

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self):
        return iter(self._fields.values())

    def fields_for_sport(self, sport: str) -> List[FieldDef]:
        """All fields available for a sport, universal fields included."""
        return [f for f in self._fields.values() if f.applies_to(sport)]

    def fields_by_category(self, sport: str) -> Dict[str, List[FieldDef]]:
        grouped: Dict[str, List[FieldDef]] = OrderedDict()
        for field_def in self.fields_for_sport(sport):
            grouped.setdefault(field_def.category, []).append(field_def)
        return grouped

    def categories(self, sport: str) -> List[str]:
        return list(self.fields_by_category(sport))


# ============================================================================
# Built-in Catalog
# ============================================================================

def _attr(key: str, default: Any = None, scale: float = 1.0) -> FieldExtractor:
    """Extractor reading ``key`` from the log, falling back to ``default``."""
    def extract(log, player=None, game=None):
        value = log.get(key)
        if value is None:
            value = default
        if scale != 1.0 and value is not None:
            return value * scale
        return value
    return extract


def _home_away(log, player=None, game=None):
    return "home" if log.get("is_home") else "away"


def _wind_speed(log, player=None, game=None):
    weather = log.get("weather") or {}
    return weather.get("wind_speed", weather.get("windSpeed", 0))


_HOME_AWAY_OPTIONS = (FieldOption("home", "Home"), FieldOption("away", "Away"))
_HAND_OPTIONS = (FieldOption("L", "Left-handed"), FieldOption("R", "Right-handed"))

UNIVERSAL_FIELDS = (
    FieldDef("home_away", "Home / Away", _home_away, category="Venue",
             description="Whether the player is at home or on the road",
             type="select", options=_HOME_AWAY_OPTIONS,
             default_operator=FilterOperator.EQ),
    FieldDef("is_back_to_back", "Back-to-Back", _attr("is_back_to_back"), category="Rest",
             description="Whether the game is on a back-to-back",
             type="boolean", default_operator=FilterOperator.EQ),
    FieldDef("rest_days", "Days of Rest", _attr("rest_days"), category="Rest",
             description="Number of days since last game",
             min=0, max=14, step=1, unit="days"),
    FieldDef("opponent_def_rank", "Opponent Defense Rank", _attr("opponent_def_rank"),
             category="Matchup",
             description="Opponent defense ranking for this stat/position (1=best, 30=worst)",
             type="range", min=1, max=30, step=1,
             default_operator=FilterOperator.BETWEEN),
    FieldDef("stat_avg_l5", "Average (Last 5)", _attr("stat_avg_l5", 0), category="Performance",
             description="Player average for this stat over the last 5 games",
             min=0, max=100, step=0.5),
    FieldDef("stat_avg_l10", "Average (Last 10)", _attr("stat_avg_l10", 0), category="Performance",
             description="Player average for this stat over the last 10 games",
             min=0, max=100, step=0.5),
    FieldDef("hit_rate_l10", "Hit Rate (Last 10)", _attr("hit_rate_l10", 0, scale=100),
             category="Performance",
             description="Percentage of last 10 games where the line was hit",
             min=0, max=100, step=5, unit="%"),
    FieldDef("season_game_number", "Season Game Number", _attr("season_game_number", 0),
             category="Team Context",
             description="How far into the season (e.g., game 40 of 82)",
             type="range", min=1, max=162, step=1,
             default_operator=FilterOperator.BETWEEN),
    FieldDef("game_total", "Vegas Game Total", _attr("game_total", 0), category="Betting Lines",
             description="The Vegas over/under total for the game",
             min=0, max=300, step=0.5),
    FieldDef("team_implied_total", "Team Implied Total", _attr("team_implied_total", 0),
             category="Betting Lines",
             description="The implied team total derived from spread + game total",
             min=0, max=150, step=0.5),
    FieldDef("team_spread", "Team Spread", _attr("team_spread", 0), category="Betting Lines",
             description="Point spread for the team (negative = favored)",
             min=-30, max=30, step=0.5, default_operator=FilterOperator.BETWEEN),
)

NBA_FIELDS = (
    FieldDef("opponent_pace_rank", "Opponent Pace Rank", _attr("opponent_pace_rank", 15),
             category="Matchup", sport="nba",
             description="Opponent pace ranking (1=fastest, 30=slowest)",
             type="range", min=1, max=30, step=1,
             default_operator=FilterOperator.BETWEEN),
    FieldDef("key_teammate_out", "Key Teammate Out", _attr("key_teammate_out", False),
             category="Team Context", sport="nba",
             description="Whether a key teammate is missing from the lineup",
             type="boolean", default_operator=FilterOperator.EQ),
)

MLB_FIELDS = (
    FieldDef("opposing_pitcher_hand", "Opposing Pitcher Hand",
             _attr("opposing_pitcher_hand", "R"), category="Matchup", sport="mlb",
             description="Handedness of the opposing pitcher",
             type="select", options=_HAND_OPTIONS, default_operator=FilterOperator.EQ),
    FieldDef("opposing_pitcher_era", "Opposing Pitcher ERA",
             _attr("opposing_pitcher_era", 4.0), category="Matchup", sport="mlb",
             description="ERA of the opposing starting pitcher",
             min=0, max=10, step=0.1),
    FieldDef("is_day_game", "Day Game", _attr("is_day_game", False), category="Venue",
             sport="mlb", description="Whether it is a day game or night game",
             type="boolean", default_operator=FilterOperator.EQ),
    FieldDef("ballpark_factor", "Ballpark Factor", _attr("ballpark_factor", 100),
             category="Venue", sport="mlb",
             description="Park factor for the stat (>100 = hitter-friendly)",
             min=80, max=120, step=1),
    FieldDef("wind_speed", "Wind Speed", _wind_speed, category="Weather", sport="mlb",
             description="Wind speed at the ballpark (mph)",
             min=0, max=40, step=1, unit="mph"),
)

NFL_FIELDS = (
    FieldDef("is_indoor", "Indoor Game", _attr("is_indoor", False), category="Venue",
             sport="nfl",
             description="Whether the game is played indoors (dome/retractable roof)",
             type="boolean", default_operator=FilterOperator.EQ),
    FieldDef("is_primetime", "Primetime Game", _attr("is_primetime", False),
             category="Team Context", sport="nfl",
             description="Sunday Night, Monday Night, or Thursday Night game",
             type="boolean", default_operator=FilterOperator.EQ),
    FieldDef("week_number", "Week Number", _attr("week_number", 0), category="Team Context",
             sport="nfl", description="NFL week number (1-18 regular season)",
             type="range", min=1, max=22, step=1,
             default_operator=FilterOperator.BETWEEN),
    FieldDef("is_divisional", "Divisional Game", _attr("is_divisional", False),
             category="Matchup", sport="nfl",
             description="Whether the opponent is in the same division",
             type="boolean", default_operator=FilterOperator.EQ),
)

BUILTIN_FIELDS = UNIVERSAL_FIELDS + NBA_FIELDS + MLB_FIELDS + NFL_FIELDS
