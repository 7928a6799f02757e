"""Explicit field-selector objects.

``TableRef`` binds a :class:`~condql.schema.table.TableInfo` to a query alias;
attribute access on it yields ``FieldRef`` descriptors::

    o = Order.ref("o")
    o.status            # FieldRef(name='status', column='status', alias='o', ...)
    o.created_at.column # 'create_time' when the field declares that alias
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Any

from condql.errors import PreconditionError
from condql.schema.table import TableInfo

_IDENTIFIER = re.compile(r"^\w+$")


@dataclass(frozen=True)
class FieldRef:
    """A resolved ``(alias, column)`` pair plus the member's python type.

    Attributes:
        name: Entity-level member name (the ConditionHash key).
        column: SQL column name (and parameter name).
        alias: Table alias used to qualify the column in SELECT mode.
        python_type: Type used to coerce ConditionHash values.
        table: SQL table name, when known.
    """

    name: str
    column: str
    alias: str | None = None
    python_type: Any = object
    table: str | None = None

    @classmethod
    def parse(cls, ref: str, python_type: Any = object) -> FieldRef:
        """Parse a ``"alias.column"`` or bare ``"column"`` string.

        Backticks are stripped.  The column doubles as the member name.

        Raises:
            PreconditionError: If ``ref`` is empty.
        """
        cleaned = ref.replace("`", "").strip() if ref else ""
        parts = [p for p in cleaned.split(".") if p]
        if not parts:
            raise PreconditionError("Field reference can not be empty.", argument="ref")
        if len(parts) == 2:
            return cls(name=parts[1], column=parts[1], alias=parts[0], python_type=python_type)
        return cls(name=parts[-1], column=parts[-1], python_type=python_type)

    def with_alias(self, alias: str | None) -> FieldRef:
        return replace(self, alias=alias)

    @property
    def qualified(self) -> str:
        """``alias.column`` when aliased, else the bare column."""
        if self.alias:
            return f"{self.alias}.{self.column}"
        return self.column

    @property
    def is_identifier(self) -> bool:
        return bool(_IDENTIFIER.match(self.column))

    def __str__(self) -> str:
        return self.qualified


class TableRef:
    """A table bound to a query alias; attribute access resolves fields.

    The ref's own members carry a leading underscore, like ``namedtuple``'s
    ``_fields``.  Entity fields never start with one, so every field, even
    one called ``name``, ``table`` or ``alias``, resolves by attribute::

        o = Order.ref("o")
        o.name      # FieldRef for the ``name`` column
        o._name     # 'orders'

    Attributes:
        _table: The table metadata.
        _alias: Alias used in FROM / JOIN and to qualify columns.
    """

    __slots__ = ("_table", "_alias")

    def __init__(self, table: TableInfo, alias: str | None = None) -> None:
        self._table = table
        self._alias = alias

    @property
    def _name(self) -> str:
        return self._table.name

    def _field(self, name: str) -> FieldRef:
        """Resolve member ``name`` to a :class:`FieldRef`.

        Raises:
            PreconditionError: If the table has no such member.
        """
        col = self._table.get_column(name) if name else None
        if col is None:
            raise PreconditionError(
                f"Field '{name}' does not exist on table '{self._table.name}'.",
                argument="field",
            )
        return FieldRef(
            name=col.name,
            column=col.column,
            alias=self._alias,
            python_type=col.python_type,
            table=self._table.name,
        )

    def __getattr__(self, name: str) -> FieldRef:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._field(name)

    def __repr__(self) -> str:
        return f"TableRef({self._table.name!r}, alias={self._alias!r})"
