"""condQL parameter bag: ConditionHash, coercion helpers and predicates."""
from condql.conditions.converter import ParseResult
from condql.conditions.hash import ConditionHash
from condql.conditions.predicates import (
    array_not_empty,
    int_greater_zero,
    is_array,
    is_time_between,
    string_not_empty,
)

__all__ = [
    "ConditionHash",
    "ParseResult",
    "array_not_empty",
    "int_greater_zero",
    "is_array",
    "is_time_between",
    "string_not_empty",
]
