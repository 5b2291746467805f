"""
Filter Execution Engine.

Evaluates custom filters against enriched game logs. Used both for live
matching and as the first stage of a backtest.

Unknown field keys are treated differently depending on the stage:
    - validate_filter reports them as errors (fail loud, before use)
    - evaluate_filter skips them, so the condition is vacuously true
"""

import logging
from typing import Any, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Union

from .conditions import (
    CustomFilter,
    FilterCondition,
    FilterOperator,
    MatchedCondition,
    display_value,
    evaluate_condition,
    format_threshold,
)
from .registry import FieldRegistry
from ..data.game_log import EnrichedGameLog


logger = logging.getLogger(__name__)


class FilterEvaluation(NamedTuple):
    """Outcome of evaluating one filter against one record."""
    matches: bool
    matched_conditions: List[MatchedCondition]


class FilterPartition(NamedTuple):
    """Order-preserving split of records into matches and non-matches."""
    matches: List[EnrichedGameLog]
    non_matches: List[EnrichedGameLog]


class FilterValidationError(ValueError):
    """Raised when a filter definition fails static validation."""

    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class FilterEngine:
    """
    Filter evaluator bound to a field registry.

    Example:
        >>> engine = FilterEngine(FieldRegistry.default())
        >>> result = engine.evaluate(my_filter, game_log)
        >>> if result.matches:
        ...     for match in result.matched_conditions:
        ...         print(match.label, match.threshold)
    """

    def __init__(self, registry: Optional[FieldRegistry] = None):
        self.registry = registry if registry is not None else FieldRegistry.default()

    def evaluate(
        self,
        custom_filter: CustomFilter,
        log: EnrichedGameLog,
        player: Any = None,
        game: Any = None
    ) -> FilterEvaluation:
        """
        Check whether a record passes every condition.

        Conditions are checked in declared order; the first failure
        short-circuits with no partial explanation.

        Raises:
            Whatever a field definition raises while extracting a value.
        """
        matched: List[MatchedCondition] = []

        for condition in custom_filter.conditions:
            field_def = self.registry.get_field_def(condition.field)
            if field_def is None:
                logger.debug(f"Skipping unresolved field '{condition.field}'")
                continue

            actual = field_def.evaluate(log, player, game)
            if not evaluate_condition(condition.operator, actual, condition.value):
                return FilterEvaluation(False, [])

            matched.append(MatchedCondition(
                field=condition.field,
                label=condition.label or field_def.label,
                value=display_value(actual),
                threshold=format_threshold(condition.operator, condition.value),
            ))

        return FilterEvaluation(True, matched)

    def evaluate_batch(
        self,
        custom_filter: CustomFilter,
        logs: Iterable[EnrichedGameLog]
    ) -> FilterPartition:
        """Partition records into matches and non-matches, preserving order."""
        matches: List[EnrichedGameLog] = []
        non_matches: List[EnrichedGameLog] = []

        for log in logs:
            if self.evaluate(custom_filter, log).matches:
                matches.append(log)
            else:
                non_matches.append(log)

        return FilterPartition(matches, non_matches)

    def validate(self, custom_filter: Union[CustomFilter, Mapping[str, Any]]) -> List[str]:
        """
        Static checks on a filter definition.

        Accepts a built CustomFilter or a partial mapping straight from the
        filter builder, so shape problems are reported instead of raised.

        Returns:
            List of error messages (empty if valid)
        """
        if not isinstance(custom_filter, (CustomFilter, Mapping)):
            return ["Filter definition must be an object"]

        errors: List[str] = []
        name, conditions = _filter_parts(custom_filter)

        if not isinstance(name, str) or not name.strip():
            errors.append("Filter name is required")

        if conditions is not None and not isinstance(conditions, (list, tuple)):
            errors.append("Conditions must be a list")
            return errors

        if not conditions:
            errors.append("At least one condition is required")
            return errors

        for i, condition in enumerate(conditions, start=1):
            if not isinstance(condition, (FilterCondition, Mapping)):
                errors.append(f"Condition {i} must be an object")
                continue

            field_key, operator, value = _condition_parts(condition)

            field_def = self.registry.get_field_def(field_key) if isinstance(field_key, str) else None
            if field_def is None:
                errors.append(f"Unknown field: {field_key}")
                continue

            try:
                op = FilterOperator.parse(operator)
            except ValueError:
                errors.append(f"Unknown operator '{operator}' for \"{field_def.label}\"")
                continue

            if value is None:
                errors.append(f"Value is required for \"{field_def.label}\"")

            if op == FilterOperator.BETWEEN:
                if not isinstance(value, (list, tuple)) or len(value) != 2:
                    errors.append(
                        f"\"{field_def.label}\" with 'between' operator requires [min, max] array"
                    )

        return errors

    def ensure_valid(self, custom_filter: Union[CustomFilter, Mapping[str, Any]]) -> None:
        """Raise FilterValidationError if the filter has any validation errors."""
        errors = self.validate(custom_filter)
        if errors:
            raise FilterValidationError(errors)


def _filter_parts(custom_filter: Union[CustomFilter, Mapping[str, Any]]):
    if isinstance(custom_filter, CustomFilter):
        return custom_filter.name, list(custom_filter.conditions)
    return custom_filter.get("name"), custom_filter.get("conditions")


def _condition_parts(condition: Union[FilterCondition, Mapping[str, Any]]):
    if isinstance(condition, FilterCondition):
        return condition.field, condition.operator, condition.value.raw
    return condition.get("field"), condition.get("operator"), condition.get("value")


def summarize_filter(custom_filter: CustomFilter) -> str:
    """
    Human-readable, AND-joined summary of a filter.

    Example:
        'Points >= 20 AND Minutes >= 25 (over)'
    """
    if not custom_filter.conditions:
        return "No conditions set"

    parts = [
        f"{c.label or c.field} {format_threshold(c.operator, c.value)}"
        for c in custom_filter.conditions
    ]
    direction = f" ({custom_filter.direction.value})" if custom_filter.direction else ""
    return " AND ".join(parts) + direction


# ============================================================================
# Convenience Functions
# ============================================================================

def evaluate_filter(
    custom_filter: CustomFilter,
    log: EnrichedGameLog,
    player: Any = None,
    game: Any = None,
    registry: Optional[FieldRegistry] = None
) -> FilterEvaluation:
    """Evaluate one filter against one record (see FilterEngine.evaluate)."""
    return FilterEngine(registry).evaluate(custom_filter, log, player, game)


def evaluate_filter_batch(
    custom_filter: CustomFilter,
    logs: Iterable[EnrichedGameLog],
    registry: Optional[FieldRegistry] = None
) -> FilterPartition:
    """Partition records by filter match (see FilterEngine.evaluate_batch)."""
    return FilterEngine(registry).evaluate_batch(custom_filter, logs)


def validate_filter(
    custom_filter: Union[CustomFilter, Mapping[str, Any]],
    registry: Optional[FieldRegistry] = None
) -> List[str]:
    """Validate a filter definition (see FilterEngine.validate)."""
    return FilterEngine(registry).validate(custom_filter)
