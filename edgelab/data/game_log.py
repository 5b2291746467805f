"""
Enriched Game Log records.

One player-game record with the stat line, the prop lines posted before the
game, and the pre-computed context fields that filter conditions read.
Records are supplied by the ingestion layer and treated as read-only.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd


DateLike = Union[str, date, datetime]

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

# acronyms that the generic camelCase split would break apart
_KEY_ALIASES = {
    "opposingPitcherERA": "opposing_pitcher_era",
}


def to_snake_case(key: str) -> str:
    """'primaryStatKey' -> 'primary_stat_key'."""
    if key in _KEY_ALIASES:
        return _KEY_ALIASES[key]
    return _CAMEL_RE.sub("_", key).lower()


@dataclass(frozen=True)
class EnrichedGameLog:
    """
    Single player-game record.

    Attributes:
        date: Game date (ISO string, date or datetime)
        player_name: Display name
        primary_stat_key: Stat the prop is graded on, e.g. 'points'
        stats: Actual stat line, stat -> value
        prop_lines: Posted lines, stat -> line (may omit the primary stat)
        player_id: Player identifier
        team_abbrev: Player's team
        opponent_abbrev: Opponent team
        is_home: Whether the player's team is at home
        extras: Any further pre-computed fields (rest_days, game_total, ...)
    """
    date: DateLike
    player_name: str
    primary_stat_key: str
    stats: Mapping[str, float] = field(default_factory=dict)
    prop_lines: Mapping[str, float] = field(default_factory=dict)
    player_id: Optional[str] = None
    team_abbrev: Optional[str] = None
    opponent_abbrev: Optional[str] = None
    is_home: Optional[bool] = None
    extras: Mapping[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Read a field by name: declared attributes first, then extras."""
        if key in _DECLARED and key != "extras":
            value = getattr(self, key)
            return default if value is None else value
        return self.extras.get(key, default)

    @property
    def prop_line(self) -> Optional[float]:
        """Line posted for the primary stat, if any."""
        if not self.prop_lines:
            return None
        return self.prop_lines.get(self.primary_stat_key)

    @property
    def actual_value(self) -> Any:
        """Actual primary stat value, 0 when not recorded."""
        value = self.stats.get(self.primary_stat_key) if self.stats else None
        return 0 if value is None else value

    @property
    def date_string(self) -> str:
        """Date as supplied, rendered as an ISO string where possible."""
        if isinstance(self.date, (date, datetime)):
            return self.date.isoformat()
        return str(self.date)

    @property
    def timestamp(self) -> Optional[pd.Timestamp]:
        """Parsed date, or None when it can't be parsed."""
        parsed = pd.to_datetime(self.date, errors="coerce")
        if parsed is None or pd.isna(parsed):
            return None
        return parsed

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EnrichedGameLog":
        """
        Build a record from a mapping with snake_case or camelCase keys.

        Unknown keys are kept in ``extras``.
        """
        normalized = {to_snake_case(k): v for k, v in data.items()}
        kwargs: Dict[str, Any] = {}
        extras: Dict[str, Any] = dict(normalized.pop("extras", None) or {})

        for key, value in normalized.items():
            if key in _DECLARED:
                kwargs[key] = value
            else:
                extras[key] = value

        for required in ("date", "player_name", "primary_stat_key"):
            if required not in kwargs:
                raise ValueError(f"Game log missing required field '{required}'")

        kwargs["stats"] = dict(kwargs.get("stats") or {})
        kwargs["prop_lines"] = dict(kwargs.get("prop_lines") or {})
        return cls(extras=extras, **kwargs)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> List["EnrichedGameLog"]:
        return [cls.from_dict(r) for r in records]

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> List["EnrichedGameLog"]:
        """
        Build records from a flat DataFrame.

        Columns named ``stats.<stat>`` and ``prop_lines.<stat>`` (as produced
        by ``pd.json_normalize``) are folded back into their mappings; NaN
        cells are treated as missing.
        """
        logs = []
        for row in df.to_dict(orient="records"):
            record: Dict[str, Any] = {}
            stats = row.pop("stats", None)
            stats = dict(stats) if isinstance(stats, dict) else {}
            prop_lines = row.pop("prop_lines", None)
            prop_lines = dict(prop_lines) if isinstance(prop_lines, dict) else {}

            for key, value in row.items():
                if _is_missing(value):
                    continue
                if key.startswith("stats."):
                    stats[key[len("stats."):]] = value
                elif key.startswith("prop_lines.") or key.startswith("propLines."):
                    prop_lines[key.split(".", 1)[1]] = value
                else:
                    record[key] = value

            record["stats"] = stats
            record["prop_lines"] = prop_lines
            logs.append(cls.from_dict(record))
        return logs


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # containers are never "missing"
        return False


_DECLARED = frozenset(EnrichedGameLog.__dataclass_fields__)
