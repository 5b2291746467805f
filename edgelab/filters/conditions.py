"""
Filter Condition Model and Evaluator.

A condition is one ``(field, operator, value)`` triple. Values are a tagged
union keyed on operator arity so that malformed combinations (a scalar for
``between``, a pair for ``gt``) are rejected when the condition is built,
not discovered record by record.

Operator Semantics:
    - eq / neq: exact (in)equality, booleans never equal numbers
    - gt / gte / lt / lte: numeric only, anything else fails
    - between: inclusive ``lo <= actual <= hi``, never reordered
    - in: membership, malformed set fails closed
    - not_in: non-membership, malformed set fails open
"""

from dataclasses import dataclass
from enum import Enum
from numbers import Real
from typing import Any, Mapping, Optional, Sequence, Tuple, Union


class FilterOperator(str, Enum):
    """Supported comparison operators."""
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    BETWEEN = "between"
    IN = "in"
    NOT_IN = "not_in"

    @property
    def symbol(self) -> str:
        return _SYMBOLS.get(self, self.value)

    @classmethod
    def parse(cls, value: Union[str, "FilterOperator"]) -> "FilterOperator":
        """Resolve an operator, raising ValueError for unknown names."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown operator: {value!r}") from None


_SYMBOLS = {
    FilterOperator.EQ: "=",
    FilterOperator.NEQ: "!=",
    FilterOperator.GT: ">",
    FilterOperator.GTE: ">=",
    FilterOperator.LT: "<",
    FilterOperator.LTE: "<=",
}

_NUMERIC_OPERATORS = frozenset({
    FilterOperator.GT, FilterOperator.GTE, FilterOperator.LT, FilterOperator.LTE
})
_SET_OPERATORS = frozenset({FilterOperator.IN, FilterOperator.NOT_IN})


# ============================================================================
# Condition Values
# ============================================================================

@dataclass(frozen=True)
class ScalarValue:
    """Single comparison value (eq, neq, gt, gte, lt, lte)."""
    value: Any

    @property
    def raw(self) -> Any:
        return self.value


@dataclass(frozen=True)
class RangeValue:
    """Ordered ``[low, high]`` pair for ``between``. Not reordered."""
    low: float
    high: float

    def __post_init__(self):
        if not (is_number(self.low) and is_number(self.high)):
            raise ValueError(
                f"Range bounds must be numeric, got [{self.low!r}, {self.high!r}]"
            )

    @property
    def raw(self) -> Tuple[float, float]:
        return (self.low, self.high)


@dataclass(frozen=True)
class SetValue:
    """Collection of candidate values for ``in`` / ``not_in``."""
    values: Tuple[Any, ...]

    @property
    def raw(self) -> Tuple[Any, ...]:
        return self.values


ConditionValue = Union[ScalarValue, RangeValue, SetValue]


def is_number(value: Any) -> bool:
    """True for real numbers, excluding booleans."""
    return isinstance(value, Real) and not isinstance(value, bool)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def coerce_value(operator: FilterOperator, raw: Any) -> ConditionValue:
    """
    Build the tagged value matching an operator's arity.

    Args:
        operator: Condition operator
        raw: Plain value, ``[lo, hi]`` pair or collection (or an
            already-tagged value, checked for arity)

    Returns:
        ScalarValue, RangeValue or SetValue

    Raises:
        ValueError: If the value is missing or its shape does not fit
            the operator
    """
    if isinstance(raw, (ScalarValue, RangeValue, SetValue)):
        expected_type = _value_type_for(operator)
        if not isinstance(raw, expected_type):
            raise ValueError(
                f"Operator '{operator.value}' requires {expected_type.__name__}, "
                f"got {type(raw).__name__}"
            )
        return raw

    if raw is None:
        raise ValueError(f"Value is required for operator '{operator.value}'")

    if operator == FilterOperator.BETWEEN:
        if not _is_sequence(raw) or len(raw) != 2:
            raise ValueError("'between' operator requires a [min, max] pair")
        low, high = list(raw)
        return RangeValue(low=low, high=high)

    if operator in _SET_OPERATORS:
        if not _is_sequence(raw):
            raise ValueError(f"'{operator.value}' operator requires a list of values")
        values = tuple(raw)
        # sets have no order; sort for a stable display
        if isinstance(raw, (set, frozenset)):
            values = tuple(sorted(raw, key=repr))
        return SetValue(values=values)

    if _is_sequence(raw):
        raise ValueError(f"'{operator.value}' operator requires a single value")
    if operator in _NUMERIC_OPERATORS and not is_number(raw):
        raise ValueError(f"'{operator.value}' operator requires a numeric value, got {raw!r}")
    return ScalarValue(value=raw)


def _value_type_for(operator: FilterOperator) -> type:
    if operator == FilterOperator.BETWEEN:
        return RangeValue
    if operator in _SET_OPERATORS:
        return SetValue
    return ScalarValue


# ============================================================================
# Filter Definitions
# ============================================================================

@dataclass(frozen=True)
class FilterCondition:
    """
    One ``(field, operator, value)`` triple.

    Attributes:
        field: Field registry key, e.g. 'opponent_def_rank'
        operator: Comparison operator
        value: Tagged value; plain values are coerced on construction
        label: Display label, e.g. 'Opponent Defense Rank'
        category: Display category, e.g. 'Matchup'
        value_label: Human-readable value, e.g. '20-30'
    """
    field: str
    operator: FilterOperator
    value: ConditionValue
    label: Optional[str] = None
    category: Optional[str] = None
    value_label: Optional[str] = None

    def __post_init__(self):
        operator = FilterOperator.parse(self.operator)
        # frozen dataclass, so normalise through object.__setattr__
        object.__setattr__(self, "operator", operator)
        object.__setattr__(self, "value", coerce_value(operator, self.value))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FilterCondition":
        if "field" not in data or "operator" not in data:
            raise ValueError("Condition requires 'field' and 'operator'")
        return cls(
            field=data["field"],
            operator=data["operator"],
            value=data.get("value"),
            label=data.get("label", data.get("fieldLabel")),
            category=data.get("category", data.get("fieldCategory")),
            value_label=data.get("value_label", data.get("valueLabel")),
        )

    def to_dict(self) -> dict:
        raw = self.value.raw
        return {
            "field": self.field,
            "operator": self.operator.value,
            "value": list(raw) if isinstance(raw, tuple) else raw,
            "label": self.label,
            "category": self.category,
            "value_label": self.value_label,
        }


class Direction(str, Enum):
    """Side of the prop being backed."""
    OVER = "over"
    UNDER = "under"


@dataclass(frozen=True)
class CustomFilter:
    """
    Named, ordered, AND-combined set of conditions plus a betting direction.

    Condition order only affects how early evaluation short-circuits.
    """
    name: str
    sport: str
    conditions: Tuple[FilterCondition, ...] = ()
    direction: Optional[Direction] = None
    id: Optional[str] = None
    description: Optional[str] = None
    prop_type: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "conditions", tuple(self.conditions))
        if self.direction is not None:
            try:
                object.__setattr__(self, "direction", Direction(self.direction))
            except ValueError:
                raise ValueError(
                    f"Direction must be 'over' or 'under', got {self.direction!r}"
                ) from None

    @property
    def effective_direction(self) -> Direction:
        return self.direction or Direction.OVER

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CustomFilter":
        """
        Build a filter from a plain mapping (e.g. parsed JSON).

        Raises:
            ValueError: If any condition is malformed
        """
        conditions = tuple(
            c if isinstance(c, FilterCondition) else FilterCondition.from_dict(c)
            for c in data.get("conditions") or ()
        )
        return cls(
            name=data.get("name", ""),
            sport=data.get("sport", "all"),
            conditions=conditions,
            direction=data.get("direction"),
            id=data.get("id"),
            description=data.get("description"),
            prop_type=data.get("prop_type", data.get("propType")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sport": self.sport,
            "description": self.description,
            "prop_type": self.prop_type,
            "direction": self.direction.value if self.direction else None,
            "conditions": [c.to_dict() for c in self.conditions],
        }


@dataclass(frozen=True)
class MatchedCondition:
    """Human-readable explanation of one passing condition."""
    field: str
    label: str
    value: str
    threshold: str

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "label": self.label,
            "value": self.value,
            "threshold": self.threshold,
        }


# ============================================================================
# Evaluation
# ============================================================================

def _strict_equals(actual: Any, expected: Any) -> bool:
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    try:
        return bool(actual == expected)
    except (TypeError, ValueError):
        # ambiguous comparisons (e.g. arrays) do not count as equal
        return False


def _contains(values: Sequence[Any], actual: Any) -> bool:
    return any(_strict_equals(actual, candidate) for candidate in values)


def evaluate_condition(
    operator: Union[str, FilterOperator],
    actual: Any,
    expected: Any
) -> bool:
    """
    Decide whether a single condition passes.

    Never raises: shape or type mismatches fail closed, except for
    ``not_in`` with a malformed value set, which fails open so that a
    misconfigured exclusion list does not silently exclude everything.

    Args:
        operator: Operator name or FilterOperator
        actual: Value extracted from the record
        expected: Raw expected value or tagged ConditionValue

    Returns:
        True if the condition passes
    """
    try:
        op = FilterOperator(operator)
    except ValueError:
        return False

    if isinstance(expected, (ScalarValue, RangeValue, SetValue)):
        expected = expected.raw

    if op == FilterOperator.EQ:
        return _strict_equals(actual, expected)
    if op == FilterOperator.NEQ:
        return not _strict_equals(actual, expected)

    if op in _NUMERIC_OPERATORS:
        if not (is_number(actual) and is_number(expected)):
            return False
        if op == FilterOperator.GT:
            return actual > expected
        if op == FilterOperator.GTE:
            return actual >= expected
        if op == FilterOperator.LT:
            return actual < expected
        return actual <= expected

    if op == FilterOperator.BETWEEN:
        if not is_number(actual) or not _is_sequence(expected) or len(expected) != 2:
            return False
        low, high = list(expected)
        if not (is_number(low) and is_number(high)):
            return False
        return low <= actual <= high

    if op == FilterOperator.IN:
        if not _is_sequence(expected):
            return False
        return _contains(list(expected), actual)

    # NOT_IN
    if not _is_sequence(expected):
        return True
    return not _contains(list(expected), actual)


# ============================================================================
# Display Formatting
# ============================================================================

def display_value(value: Any) -> str:
    """Render a value for explanations: 27.0 -> '27', True -> 'true'."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Enum):
        return display_value(value.value)
    if _is_sequence(value):
        return ",".join(display_value(v) for v in value)
    return str(value)


def format_threshold(operator: Union[str, FilterOperator], value: Any) -> str:
    """
    Format a condition's threshold for display.

    Examples:
        >>> format_threshold('gte', 20)
        '>= 20'
        >>> format_threshold('between', [25, 30])
        '25-30'
        >>> format_threshold('not_in', ['BOS', 'NYK'])
        'not BOS, NYK'
    """
    if isinstance(value, (ScalarValue, RangeValue, SetValue)):
        value = value.raw

    try:
        op = FilterOperator(operator)
    except ValueError:
        return display_value(value)

    if op in _SYMBOLS:
        return f"{op.symbol} {display_value(value)}"
    if op == FilterOperator.BETWEEN:
        if _is_sequence(value) and len(value) == 2:
            low, high = list(value)
            return f"{display_value(low)}-{display_value(high)}"
        return display_value(value)

    joined = ", ".join(display_value(v) for v in value) if _is_sequence(value) else None
    if op == FilterOperator.IN:
        return joined if joined is not None else display_value(value)
    return f"not {joined}" if joined is not None else f"not {display_value(value)}"
