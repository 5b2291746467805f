"""
Unit tests for the field registry and built-in catalog.
"""

import pytest

from edgelab.data.game_log import EnrichedGameLog
from edgelab.filters.registry import BUILTIN_FIELDS, FieldDef, FieldRegistry


class TestFieldRegistry:
    """Tests for FieldRegistry."""

    def test_default_holds_builtin_catalog(self, registry):
        assert len(registry) == len(BUILTIN_FIELDS)
        assert "rest_days" in registry
        assert registry.get_field_def("rest_days").label == "Days of Rest"

    def test_unknown_key_returns_none(self, registry):
        assert registry.get_field_def("not_a_field") is None

    def test_default_returns_independent_registries(self):
        first = FieldRegistry.default()
        first.register(FieldDef("age", "Age", lambda log, player=None, game=None: 27))

        assert "age" in first
        assert "age" not in FieldRegistry.default()

    def test_duplicate_key_rejected(self, registry):
        with pytest.raises(ValueError, match="rest_days"):
            registry.register(FieldDef("rest_days", "Rest", lambda log, p=None, g=None: 0))

    def test_fields_for_sport_includes_universal(self, registry):
        nba_keys = {f.key for f in registry.fields_for_sport("nba")}

        assert "opponent_pace_rank" in nba_keys
        assert "rest_days" in nba_keys
        assert "ballpark_factor" not in nba_keys

    def test_fields_by_category(self, registry):
        grouped = registry.fields_by_category("mlb")

        assert "Weather" in grouped
        assert [f.key for f in grouped["Weather"]] == ["wind_speed"]
        assert registry.categories("mlb") == list(grouped)


class TestBuiltinExtractors:
    """Tests for built-in field extraction and defaults."""

    @pytest.fixture
    def bare_log(self):
        return EnrichedGameLog(date="2024-01-01", player_name="P", primary_stat_key="points")

    def test_home_away(self, registry, bare_log):
        field_def = registry.get_field_def("home_away")
        home = EnrichedGameLog(date="2024-01-01", player_name="P",
                               primary_stat_key="points", is_home=True)

        assert field_def.evaluate(home) == "home"
        assert field_def.evaluate(bare_log) == "away"

    @pytest.mark.parametrize("key,expected", [
        ("opponent_pace_rank", 15),
        ("opposing_pitcher_hand", "R"),
        ("opposing_pitcher_era", 4.0),
        ("ballpark_factor", 100),
        ("stat_avg_l5", 0),
        ("key_teammate_out", False),
        ("wind_speed", 0),
    ])
    def test_defaults_when_missing(self, registry, bare_log, key, expected):
        assert registry.get_field_def(key).evaluate(bare_log) == expected

    def test_rest_days_has_no_default(self, registry, bare_log):
        assert registry.get_field_def("rest_days").evaluate(bare_log) is None

    def test_hit_rate_reported_as_percent(self, registry):
        log = EnrichedGameLog(date="2024-01-01", player_name="P", primary_stat_key="points",
                              extras={"hit_rate_l10": 0.7})

        assert registry.get_field_def("hit_rate_l10").evaluate(log) == pytest.approx(70.0)

    def test_wind_speed_reads_nested_weather(self, registry):
        log = EnrichedGameLog(date="2024-06-01", player_name="P", primary_stat_key="hits",
                              extras={"weather": {"windSpeed": 12}})

        assert registry.get_field_def("wind_speed").evaluate(log) == 12
