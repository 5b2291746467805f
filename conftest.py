"""
Pytest configuration and shared fixtures for EdgeLab testing.

This file provides:
- Field registries (built-in catalog and a small synthetic one)
- Game log factories
- Sample filters
"""

from typing import Any, Dict, List

import pytest

from edgelab.data.game_log import EnrichedGameLog
from edgelab.filters.conditions import CustomFilter, FilterCondition
from edgelab.filters.registry import FieldDef, FieldRegistry


# ============================================================================
# Registries
# ============================================================================

@pytest.fixture
def registry() -> FieldRegistry:
    """Built-in field catalog."""
    return FieldRegistry.default()


@pytest.fixture
def synthetic_registry() -> FieldRegistry:
    """
    Registry with plain pass-through fields.

    Usage:
        def test_age_filter(synthetic_registry, make_log):
            log = make_log(age=27)
    """
    return FieldRegistry([
        FieldDef("age", "Age", lambda log, player=None, game=None: log.get("age")),
        FieldDef("minutes", "Minutes", lambda log, player=None, game=None: log.get("minutes")),
        FieldDef("position", "Position", lambda log, player=None, game=None: log.get("position"),
                 type="select"),
        FieldDef("is_home", "Home Game", lambda log, player=None, game=None: log.is_home,
                 type="boolean"),
    ])


# ============================================================================
# Test Data Factories
# ============================================================================

@pytest.fixture
def make_log():
    """
    Factory fixture for single game logs.

    Usage:
        def test_settle(make_log):
            log = make_log(date="2024-01-02", actual=25, line=20.5)
    """
    def _create(
        date: str = "2024-01-01",
        actual: Any = 25,
        line: Any = 20.5,
        stat: str = "points",
        player_name: str = "Test Player",
        team: str = "BOS",
        **extras
    ) -> EnrichedGameLog:
        is_home = extras.pop("is_home", None)
        prop_lines: Dict[str, Any] = {} if line is None else {stat: line}
        return EnrichedGameLog(
            date=date,
            player_name=player_name,
            primary_stat_key=stat,
            stats={stat: actual},
            prop_lines=prop_lines,
            team_abbrev=team,
            is_home=is_home,
            extras=extras,
        )

    return _create


@pytest.fixture
def make_logs(make_log):
    """
    Factory fixture for a run of daily game logs.

    Usage:
        def test_session(make_logs):
            logs = make_logs([True, False, True])  # hit, miss, hit vs line 20.5
    """
    def _create(outcomes: List[bool], start_day: int = 1, line: float = 20.5, **extras):
        return [
            make_log(
                date=f"2024-01-{start_day + i:02d}",
                actual=line + 5 if won else line - 5,
                line=line,
                **extras
            )
            for i, won in enumerate(outcomes)
        ]

    return _create


@pytest.fixture
def sample_filter() -> CustomFilter:
    """Two-condition NBA filter on the synthetic registry fields."""
    return CustomFilter(
        name="Prime Age Starters",
        sport="nba",
        direction="over",
        conditions=[
            FilterCondition("age", "between", [25, 30], label="Age"),
            FilterCondition("minutes", "gte", 25, label="Minutes"),
        ],
    )


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
