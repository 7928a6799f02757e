"""Type coercion helpers used by :class:`~condql.conditions.hash.ConditionHash`.

Every conversion here is exception-free by contract: a failed conversion
returns the caller-supplied default (``to_*`` helpers) or a
``ParseResult(ok=False, value=default)`` (``parse_*`` helpers).

Composite targets (``list[int]``, ``dict[str, Any]``, pydantic models) are
converted by a JSON round trip through pydantic, so any value pydantic can
serialize can be re-read as any type pydantic can validate.
"""

from __future__ import annotations

import math
import types
from collections import abc
from dataclasses import dataclass, is_dataclass
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_EVEN, Decimal
from enum import Enum
from functools import lru_cache
from typing import Any, Generic, Iterable, Iterator, TypeVar, Union, get_args, get_origin

import pydantic_core
from pydantic import BaseModel, TypeAdapter

T = TypeVar("T")

#: Python types treated as numeric for widening / narrowing.  ``bool`` is a
#: subclass of ``int`` but is deliberately not listed.
NUMERIC_TYPES: tuple[type, ...] = (int, float, Decimal)

INT16_MIN, INT16_MAX = -(2**15), 2**15 - 1
INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1

_COERCION_ERRORS = (ValueError, TypeError, ArithmeticError, OverflowError)


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Outcome of a coercion attempt.

    Unpacks like a tuple::

        ok, value = conditions.parse("age", int, 0)

    Attributes:
        ok: ``True`` when the conversion succeeded.
        value: The converted value, or the caller's default on failure.
    """

    ok: bool
    value: T

    def __iter__(self) -> Iterator[Any]:
        yield self.ok
        yield self.value


# ---------------------------------------------------------------------------
# Type inspection
# ---------------------------------------------------------------------------


def unwrap_optional(target: Any) -> Any:
    """Return ``X`` for ``Optional[X]`` / ``X | None``, otherwise ``target``."""
    origin = get_origin(target)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(target) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return target


def _is_class(target: Any) -> bool:
    return isinstance(target, type) and get_origin(target) is None


def is_type_like(target: Any) -> bool:
    """True for classes, generic aliases, unions and ``Any``."""
    return isinstance(target, type) or get_origin(target) is not None or target is Any


def is_numeric_type(target: Any) -> bool:
    """True for ``int``, ``float`` and ``Decimal`` (and subclasses), never ``bool``."""
    return (
        _is_class(target)
        and issubclass(target, NUMERIC_TYPES)
        and not issubclass(target, bool)
    )


def is_enum_type(target: Any) -> bool:
    return _is_class(target) and issubclass(target, Enum)


def is_composite_type(target: Any) -> bool:
    """True for sequence, set and mapping types and for structured models."""
    origin = get_origin(target) or target
    if not isinstance(origin, type):
        return False
    if issubclass(origin, (str, bytes, bytearray)):
        return False
    if issubclass(origin, BaseModel) or is_dataclass(origin):
        return True
    return issubclass(origin, (list, tuple, set, frozenset, dict, abc.Collection))


def is_sequence_value(value: Any) -> bool:
    """True for list-like runtime values (lists, tuples, sets), never strings."""
    return isinstance(value, (list, tuple, set, frozenset))


@lru_cache(maxsize=256)
def _adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


# ---------------------------------------------------------------------------
# Saturating integer narrowing
# ---------------------------------------------------------------------------


def to_byte(src: int) -> int:
    """Clamp ``src`` to the unsigned 8-bit range."""
    return max(0, min(0xFF, src))


def to_short(src: int) -> int:
    """Clamp ``src`` to the signed 16-bit range."""
    return max(INT16_MIN, min(INT16_MAX, src))


def to_int32(src: int) -> int:
    """Clamp ``src`` to the signed 32-bit range."""
    return max(INT32_MIN, min(INT32_MAX, src))


# ---------------------------------------------------------------------------
# Scalar conversions with defaults
# ---------------------------------------------------------------------------


def _parse_integer(src: Any, low: int, high: int, base: int = 10) -> int | None:
    if src is None:
        return None
    try:
        value = int(str(src).strip(), base)
    except ValueError:
        return None
    if value < low or value > high:
        return None
    return value


def to_int(src: Any, default: int = 0, base: int = 10) -> int:
    """Parse a signed 32-bit integer from ``str(src)``; ``default`` on failure.

    Args:
        src: Source object.
        default: Value returned when parsing fails or overflows.
        base: Radix of the source string (16, 10, 8, 2, ...).
    """
    value = _parse_integer(src, INT32_MIN, INT32_MAX, base)
    return default if value is None else value


def to_long(src: Any, default: int = 0, base: int = 10) -> int:
    """Parse a signed 64-bit integer from ``str(src)``; ``default`` on failure."""
    value = _parse_integer(src, INT64_MIN, INT64_MAX, base)
    return default if value is None else value


def to_int16(src: Any, default: int = 0, base: int = 10) -> int:
    """Parse a signed 16-bit integer from ``str(src)``; ``default`` on failure."""
    value = _parse_integer(src, INT16_MIN, INT16_MAX, base)
    return default if value is None else value


def to_double(src: Any, default: float = 0.0) -> float:
    if src is None:
        return default
    try:
        return float(str(src))
    except ValueError:
        return default


def to_str(src: Any, default: str = "", disallow_empty: bool = True) -> str:
    """Return ``str(src)``, or ``default`` for ``None`` (and ``""`` when
    ``disallow_empty``)."""
    if src is None:
        return default
    text = str(src)
    if disallow_empty and not text:
        return default
    return text


def to_datetime(src: Any, default: datetime | None = None) -> datetime | None:
    ok, value = parse(src, datetime, default)
    return value if ok else default


def to(src: Any, target: type[T], default: T | None = None) -> T | None:
    """Convert ``src`` to ``target``; ``default`` on failure."""
    ok, value = parse(src, target, default)
    return value if ok else default


# ---------------------------------------------------------------------------
# Typed parse functions (explicit success flag)
# ---------------------------------------------------------------------------


def parse_number(src: Any, target: type[T], default: T | None = None) -> ParseResult[T]:
    """Numeric widening / narrowing between ``int``, ``float`` and ``Decimal``.

    Fractional values narrowed to ``int`` round half-to-even; strings must
    hold a literal of the target type.
    """
    try:
        if issubclass(target, int):
            if isinstance(src, float):
                if not math.isfinite(src):
                    return ParseResult(False, default)
                return ParseResult(True, target(round(src)))
            if isinstance(src, Decimal):
                return ParseResult(True, target(int(src.to_integral_value(ROUND_HALF_EVEN))))
            if isinstance(src, str):
                return ParseResult(True, target(int(src.strip())))
            return ParseResult(True, target(int(src)))
        if issubclass(target, Decimal):
            if isinstance(src, str):
                return ParseResult(True, target(src.strip()))
            if isinstance(src, float):
                return ParseResult(True, target(repr(src)))
            return ParseResult(True, target(src))
        return ParseResult(True, target(src))
    except _COERCION_ERRORS:
        return ParseResult(False, default)


def parse_enum(src: Any, target: type[T], default: T | None = None) -> ParseResult[T]:
    """Parse an enum member by name (case-insensitive fallback) or by value.

    The result must be a defined member of ``target``.
    """
    if isinstance(src, target):
        return ParseResult(True, src)
    if isinstance(src, str):
        text = src.strip()
        members = target.__members__
        if text in members:
            return ParseResult(True, members[text])
        for name, member in members.items():
            if name.lower() == text.lower():
                return ParseResult(True, member)
        try:
            src = int(text)
        except ValueError:
            pass
    try:
        return ParseResult(True, target(src))
    except _COERCION_ERRORS:
        return ParseResult(False, default)


def parse_composite(src: Any, target: type[T], default: T | None = None) -> ParseResult[T]:
    """Round-trip ``src`` through JSON and validate it as ``target``."""
    try:
        payload = pydantic_core.to_json(src)
        return ParseResult(True, _adapter(target).validate_json(payload))
    except _COERCION_ERRORS:
        return ParseResult(False, default)


def parse(src: Any, target: Any, default: Any = None) -> ParseResult[Any]:
    """Best-effort conversion of ``src`` to ``target``.

    ``Optional[X]`` targets convert to ``X`` and treat ``""`` as missing.
    """
    unwrapped = unwrap_optional(target)
    if src is None:
        return ParseResult(False, default)
    if unwrapped is not target and str(src) == "":
        return ParseResult(False, default)
    target = unwrapped

    if target is Any or target is object:
        return ParseResult(True, src)
    try:
        if _is_class(target) and type(src) is target:
            return ParseResult(True, src)
        if is_numeric_type(target):
            if isinstance(src, bool):
                return ParseResult(True, target(int(src)))
            return parse_number(src, target, default)
        if is_enum_type(target):
            return parse_enum(src, target, default)
        if target is str:
            return ParseResult(True, str(src))
        if is_composite_type(target):
            return parse_composite(src, target, default)
        if target in (datetime, date) and isinstance(src, str):
            return ParseResult(True, _adapter(target).validate_python(src.strip()))
        return ParseResult(True, _adapter(target).validate_python(src))
    except _COERCION_ERRORS:
        return ParseResult(False, default)


# ---------------------------------------------------------------------------
# Misc helpers
# ---------------------------------------------------------------------------


def concat(items: Iterable[Any], separator: str) -> str:
    return separator.join(str(item) for item in items)


def split_to_ints(text: str, *separators: str) -> list[int]:
    """Split ``text`` on any of ``separators`` and keep the integer pieces."""
    pieces = [text]
    for sep in separators or (",",):
        pieces = [p for piece in pieces for p in piece.split(sep)]
    result: list[int] = []
    for piece in pieces:
        value = _parse_integer(piece, INT32_MIN, INT32_MAX)
        if value is not None:
            result.append(value)
    return result


def to_unix(moment: datetime) -> int:
    """Seconds since the Unix epoch; naive datetimes are taken as local time."""
    return int(moment.timestamp())


def from_unix_millis(milliseconds: int) -> datetime:
    """UTC datetime for a millisecond Unix timestamp."""
    return datetime.fromtimestamp(milliseconds / 1000, tz=timezone.utc)
