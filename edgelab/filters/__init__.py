"""
Custom Filter Evaluation.

Components:
    - conditions: Condition model, operators and the condition evaluator
    - registry: Field definitions resolving condition fields to values
    - engine: Filter evaluation, batch partitioning and validation
"""

from .conditions import (
    CustomFilter,
    Direction,
    FilterCondition,
    FilterOperator,
    MatchedCondition,
    RangeValue,
    ScalarValue,
    SetValue,
    evaluate_condition,
    format_threshold
)
from .registry import FieldDef, FieldOption, FieldRegistry
from .engine import (
    FilterEngine,
    FilterEvaluation,
    FilterPartition,
    FilterValidationError,
    evaluate_filter,
    evaluate_filter_batch,
    summarize_filter,
    validate_filter
)

__all__ = [
    # Conditions
    "CustomFilter",
    "Direction",
    "FilterCondition",
    "FilterOperator",
    "MatchedCondition",
    "RangeValue",
    "ScalarValue",
    "SetValue",
    "evaluate_condition",
    "format_threshold",
    # Registry
    "FieldDef",
    "FieldOption",
    "FieldRegistry",
    # Engine
    "FilterEngine",
    "FilterEvaluation",
    "FilterPartition",
    "FilterValidationError",
    "evaluate_filter",
    "evaluate_filter_batch",
    "summarize_filter",
    "validate_filter",
]
