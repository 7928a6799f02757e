"""Clause store: the ordered multi-map behind :class:`SqlBuilder`.

Each :class:`ClauseKind` owns an ordered list of fragments.  Fragments of a
kind render in insertion order, joined by the kind's separator.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class StatementMode(str, Enum):
    """The statement a builder renders."""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ClauseKind(str, Enum):
    """Fragment categories tracked by :class:`ClauseStore`."""

    TABLE = "table"
    JOIN = "join"
    WHERE = "where"
    SELECT = "select"
    ORDER_BY = "orderby"
    GROUP_BY = "groupby"
    LIMIT = "limit"
    PAGE_ARGS = "page_args"
    INSERT_VALUE = "insert_value"
    UPDATE_VALUE = "update_value"
    DUPLICATE_UPDATE = "duplicate_update"
    FOR_UPDATE = "forupdate"


#: Separator used by :meth:`ClauseStore.join` for each text-valued kind.
SEPARATORS: dict[ClauseKind, str] = {
    ClauseKind.TABLE: ",",
    ClauseKind.JOIN: " ",
    ClauseKind.WHERE: " AND ",
    ClauseKind.SELECT: ",",
    ClauseKind.ORDER_BY: ",",
    ClauseKind.GROUP_BY: ",",
    ClauseKind.UPDATE_VALUE: ",",
}


@dataclass(frozen=True)
class LimitDirective:
    """``LIMIT offset,rows`` for a plain SELECT."""

    offset: int
    rows: int


@dataclass(frozen=True)
class PageDirective:
    """Pagination request consumed by SELECT rendering.

    Attributes:
        offset: Rows to skip, ``(page_index - 1) * page_size``.
        page_size: Rows per page.
        emit_count: Append the ``SELECT COUNT(0) AS Count ...`` statement.
        totals: Extra aggregate select list for the count statement.
    """

    offset: int
    page_size: int
    emit_count: bool = True
    totals: str = ""


class ClauseStore:
    """Ordered multi-map from :class:`ClauseKind` to fragments."""

    def __init__(self) -> None:
        self._parts: dict[ClauseKind, list[Any]] = {}

    def add(self, kind: ClauseKind, fragment: Any) -> None:
        self._parts.setdefault(kind, []).append(fragment)

    def copy(self) -> ClauseStore:
        """Return a store whose fragment lists are independent of this one."""
        store = ClauseStore()
        store._parts = {kind: list(parts) for kind, parts in self._parts.items()}
        return store

    def remove(self, kind: ClauseKind) -> None:
        """Drop every fragment of ``kind``."""
        self._parts.pop(kind, None)

    def replace(self, kind: ClauseKind, *fragments: Any) -> None:
        """Replace every fragment of ``kind`` with ``fragments``."""
        self._parts[kind] = list(fragments)

    def get(self, kind: ClauseKind) -> list[Any]:
        """Return a copy of the fragments of ``kind`` (empty when absent)."""
        return list(self._parts.get(kind, ()))

    def first(self, kind: ClauseKind, default: Any = None) -> Any:
        parts = self._parts.get(kind)
        return parts[0] if parts else default

    def has(self, kind: ClauseKind) -> bool:
        return bool(self._parts.get(kind))

    def count(self, kind: ClauseKind) -> int:
        return len(self._parts.get(kind, ()))

    def join(self, kind: ClauseKind) -> str:
        """Join the fragments of ``kind`` with its separator."""
        separator = SEPARATORS.get(kind, ",")
        return separator.join(str(part) for part in self._parts.get(kind, ()))
