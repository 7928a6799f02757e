"""ConditionHash: the case-insensitive parameter bag that drives clause emission.

Callers fill a ``ConditionHash`` from request parameters (or from an object's
simple-typed attributes) and hand it to a
:class:`~condql.compile.typed.TypedSqlBuilder`.  Each ``when`` / ``between``
/ ``set`` call asks the bag whether the field is present and coercible; if
not, the clause is silently dropped.

Keys are normalised to lowercase on every access.  The bag is a read-only
:class:`~collections.abc.Mapping`; the only mutators are :meth:`push`,
:meth:`remove` and :meth:`order_by`.
"""

from __future__ import annotations

from collections import abc
from dataclasses import fields as dataclass_fields
from dataclasses import is_dataclass
from decimal import Decimal
from typing import Any, Callable, Iterator, TypeVar

from pydantic import BaseModel

from condql.conditions import converter
from condql.conditions.converter import ParseResult

T = TypeVar("T")

#: Attribute value types imported by :meth:`ConditionHash.from_object`.
SIMPLE_TYPES: tuple[type, ...] = (int, float, Decimal, str)

PAGE_INDEX_KEY = "PageIndex"
PAGE_SIZE_KEY = "PageSize"
ORDER_BY_KEY = "OrderBy"
ASC_KEY = "ASC"

DEFAULT_PAGE_INDEX = 1
DEFAULT_PAGE_SIZE = 20


def _normalize(key: Any) -> str:
    name = getattr(key, "name", key) if not isinstance(key, str) else key
    return str(name).lower()


def _object_attributes(obj: Any) -> dict[str, Any]:
    if isinstance(obj, abc.Mapping):
        return {str(k): v for k, v in obj.items()}
    if isinstance(obj, BaseModel):
        return dict(obj)
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclass_fields(obj)}
    return {k: v for k, v in vars(obj).items() if not k.startswith("_")}


def _object_annotations(obj: Any) -> dict[str, Any]:
    if isinstance(obj, BaseModel):
        return {name: info.annotation for name, info in type(obj).model_fields.items()}
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: f.type for f in dataclass_fields(obj)}
    return {}


def _length_satisfies(length: int, expected_len: int) -> bool:
    if expected_len < -1:
        return True
    if expected_len == -1:
        return length > 0
    return length == expected_len


class ConditionHash(abc.Mapping):
    """Case-insensitive mapping of query parameters with typed accessors.

    Example::

        conditions = ConditionHash({"Status": "5", "Name": "bob"})
        conditions.get("status", int, 0)          # 5
        conditions.parse("name", int, 0)          # ParseResult(ok=False, value=0)
        conditions.is_contains("status", int)     # True

    Args:
        data: Optional initial entries.  Keys are lowercased.
    """

    def __init__(self, data: abc.Mapping[Any, Any] | None = None) -> None:
        self._data: dict[str, Any] = {}
        for key, value in (data or {}).items():
            self.push(key, value)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def of(cls, key: Any, value: Any) -> ConditionHash:
        """Return a new bag holding a single ``key`` / ``value`` entry."""
        return cls().push(key, value)

    @classmethod
    def from_object(cls, obj: Any, *required_keys: str) -> ConditionHash:
        """Import ``obj``'s simple-typed attributes into a new bag.

        Attributes whose values are ``int``, ``float``, ``Decimal`` or ``str``
        are imported; ``bool`` and ``None`` values are skipped unless the
        attribute is named in ``required_keys``.

        Args:
            obj: A pydantic model, dataclass, mapping or plain object.
            required_keys: Attribute names imported regardless of value type.
        """
        bag = cls()
        for name, value in _object_attributes(obj).items():
            simple = isinstance(value, SIMPLE_TYPES) and not isinstance(value, bool)
            if name in required_keys or simple:
                bag.push(name, value)
        return bag

    # ------------------------------------------------------------------
    # Mapping protocol (read-only)
    # ------------------------------------------------------------------

    def __getitem__(self, key: Any) -> Any:
        return self._data[_normalize(key)]

    def __contains__(self, key: object) -> bool:
        return _normalize(key) in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ConditionHash({self._data!r})"

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def push(self, key: Any, value: Any) -> ConditionHash:
        """Insert or overwrite ``key`` (case-insensitive) and return ``self``.

        ``key`` may be a string or a :class:`~condql.schema.refs.FieldRef`, in
        which case the field's entity-level name is used.
        """
        self._data[_normalize(key)] = value
        return self

    def remove(self, key: Any) -> None:
        """Remove ``key`` if present."""
        self._data.pop(_normalize(key), None)

    def order_by(self, field: str, asc: bool = False) -> ConditionHash:
        """Seed the ``OrderBy`` / ``ASC`` pair unless ``OrderBy`` is already set."""
        if self.is_contains(ORDER_BY_KEY, str):
            return self
        self.push(ORDER_BY_KEY, field)
        self.push(ASC_KEY, asc)
        return self

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------

    def parse(self, key: Any, type_: Any, default: Any = None) -> ParseResult[Any]:
        """Coerce the value under ``key`` to ``type_``.

        Coercion order:

        1. value already of exactly ``type_``: returned as-is;
        2. both value and ``type_`` numeric: numeric widening / narrowing;
        3. ``type_`` is an ``Enum``: parse by name or value, must be defined;
        4. ``type_`` is a composite type: JSON round trip through pydantic;
        5. best-effort scalar conversion.

        Never raises.

        Returns:
            ``ParseResult(ok, value)``; ``value`` is ``default`` when ``ok`` is
            ``False``.
        """
        name = _normalize(key)
        value = self._data.get(name)
        if value is None:
            return ParseResult(False, default)

        target = converter.unwrap_optional(type_)
        if converter._is_class(target) and type(value) is target:
            return ParseResult(True, value)
        if self.is_num(name, target):
            return converter.parse_number(value, target, default)
        if converter.is_enum_type(target):
            return converter.parse_enum(value, target, default)
        if converter.is_composite_type(target):
            return converter.parse_composite(value, target, default)
        return converter.parse(value, type_, default)

    def get(self, key: Any, type_: Any = object, default: Any = None) -> Any:  # type: ignore[override]
        """Return the value under ``key`` coerced to ``type_``, else ``default``.

        When the second argument is not a type the call reads as
        ``Mapping.get(key, default)``: the stored value is returned uncoerced.
        """
        if not converter.is_type_like(type_):
            return abc.Mapping.get(self, key, type_)
        ok, value = self.parse(key, type_, default)
        return value if ok else default

    def get_array(
        self, key: Any, item_type: Any = object, default: list[Any] | None = None
    ) -> list[Any] | None:
        """Return the value under ``key`` as ``list[item_type]``, else ``default``."""
        ok, value = self.parse(key, list[item_type], default)
        return value if ok else default

    def is_num(self, key: Any, type_: Any) -> bool:
        """True when both ``type_`` and the stored value's type are numeric."""
        value = self._data.get(_normalize(key))
        if value is None or isinstance(value, bool):
            return False
        return converter.is_numeric_type(type_) and isinstance(value, converter.NUMERIC_TYPES)

    # ------------------------------------------------------------------
    # Presence predicates
    # ------------------------------------------------------------------

    def is_required(self, key: Any, expected_len: int = -1) -> bool:
        """Check that ``key`` is present with a meaningful value.

        Args:
            key: Bag key.
            expected_len: Length policy for sequence values: ``-1`` requires a
                non-empty sequence, any value below ``-1`` skips the check,
                ``n >= 0`` requires exactly ``n`` items.

        Returns:
            ``True`` for a non-empty string, a sequence satisfying
            ``expected_len``, or any other non-``None`` value.
        """
        name = _normalize(key)
        if name not in self._data:
            return False
        value = self._data[name]
        if isinstance(value, str):
            return value != ""
        if converter.is_sequence_value(value):
            return _length_satisfies(len(value), expected_len)
        return value is not None

    def is_contains(
        self,
        key: Any,
        type_: Any,
        expected_len: int = -1,
        predicate: Callable[[Any], bool] | None = None,
    ) -> bool:
        """Check that ``key`` holds a value coercible to ``type_``.

        When ``predicate`` is given it must also accept the coerced value;
        otherwise sequence values must satisfy ``expected_len`` (see
        :meth:`is_required`).
        """
        ok, value = self.parse(key, type_)
        if not ok or value is None:
            return False
        if predicate is not None:
            return bool(predicate(value))
        if converter.is_sequence_value(value):
            return _length_satisfies(len(value), expected_len)
        return True

    # ------------------------------------------------------------------
    # Paging shortcuts
    # ------------------------------------------------------------------

    @property
    def page_index(self) -> int:
        return self.get(PAGE_INDEX_KEY, int, DEFAULT_PAGE_INDEX)

    @property
    def page_size(self) -> int:
        return self.get(PAGE_SIZE_KEY, int, DEFAULT_PAGE_SIZE)

    # ------------------------------------------------------------------
    # Change description
    # ------------------------------------------------------------------

    def diff(self, obj: Any) -> str:
        """Describe how the bag's values differ from ``obj``'s attributes.

        Each differing attribute yields a line ``"<attr> : <old> -> <new>"``.
        Empty strings are shown as ``<NULL>``.
        """
        attributes = _object_attributes(obj)
        annotations = _object_annotations(obj)
        by_lower = {name.lower(): name for name in attributes}
        lines: list[str] = []
        for key in self._data:
            attr = by_lower.get(key)
            if attr is None:
                continue
            current = attributes[attr]
            target = annotations.get(attr) or (type(current) if current is not None else object)
            new_value = self.get(key, target)
            if new_value is None:
                continue
            if isinstance(new_value, str) and not new_value:
                new_value = "<NULL>"
            if isinstance(current, str) and not current:
                current = "<NULL>"
            if current != new_value:
                lines.append(f"{attr} : {current} -> {new_value}")
        return "".join(f"{line}\n" for line in lines)
