"""Pydantic models describing the tables a typed builder can reference.

A ``TableInfo`` is produced by the caller: declared as an
:class:`~condql.schema.entity.Entity` subclass, converted from SQLAlchemy
metadata (:mod:`condql.schema.converters`), or written out by hand.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from condql.schema.refs import TableRef


class ColumnInfo(BaseModel):
    """Metadata for a single column.

    Attributes:
        name: Entity-level member name; this is the ConditionHash key.
        column: SQL column name; also used as the parameter name.
        python_type: Type the ConditionHash value is coerced to.
        nullable: Whether the column can be NULL.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    name: str
    column: str
    python_type: Any = object
    nullable: bool = True


class TableInfo(BaseModel):
    """Metadata for a single table.

    Attributes:
        name: SQL table name.
        columns: Ordered list of column metadata.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    columns: list[ColumnInfo]

    def get_column(self, name: str) -> ColumnInfo | None:
        """Returns the column whose member name is ``name``, or ``None``.

        Exact matches win; otherwise the lookup is case-insensitive.
        """
        for col in self.columns:
            if col.name == name:
                return col
        lowered = name.lower()
        for col in self.columns:
            if col.name.lower() == lowered:
                return col
        return None

    @property
    def column_names(self) -> list[str]:
        """Returns all SQL column names for this table."""
        return [c.column for c in self.columns]

    def ref(self, alias: str | None = None) -> TableRef:
        """Return a :class:`~condql.schema.refs.TableRef` bound to ``alias``."""
        from condql.schema.refs import TableRef

        return TableRef(self, alias)
