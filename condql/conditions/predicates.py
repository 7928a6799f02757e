"""Reusable ``predicate`` callables for ``is_contains`` and the typed builder.

Example::

    builder.when(o.name, predicate=string_not_empty)
    builder.between(o.amount, predicate=is_array(Decimal, 2))
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Sequence

from condql.conditions import converter


def string_not_empty(value: str | None) -> bool:
    return bool(value)


def is_time_between(value: Any) -> bool:
    """True when ``value`` is a sequence of exactly two datetimes (or ISO strings)."""
    if not converter.is_sequence_value(value):
        return False
    ok, parsed = converter.parse_composite(list(value), list[datetime])
    return ok and len(parsed) == 2


def is_array(item_type: type, length: int) -> Callable[[Sequence[Any]], bool]:
    """Return a predicate accepting sequences of ``length`` ``item_type`` items.

    The ``between`` default for a field of type ``T`` is ``is_array(T, 2)``.
    """
    item_type = converter.unwrap_optional(item_type)

    def _check(values: Sequence[Any]) -> bool:
        if not converter.is_sequence_value(values) or len(values) != length:
            return False
        if item_type is object:
            return True
        return all(isinstance(item, item_type) for item in values)

    return _check


def array_not_empty(values: Sequence[Any] | None) -> bool:
    return values is not None and len(values) > 0


def int_greater_zero(value: int) -> bool:
    return value > 0
