"""Declarative entities: pydantic models that describe a table.

The SQL table name comes from ``__tablename__`` (falling back to the class
name).  Each pydantic field becomes a column; a field's
``serialization_alias`` (or ``alias``) overrides the SQL column name while the
field name stays the ConditionHash key::

    class Order(Entity):
        __tablename__ = "orders"

        id: int | None = None
        status: int | None = None
        created_at: datetime | None = Field(None, serialization_alias="create_time")

    o = Order.ref("o")
    o.created_at.column   # 'create_time'
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel

from condql.schema.refs import TableRef
from condql.schema.table import ColumnInfo, TableInfo


class Entity(BaseModel):
    """Base class for table-describing pydantic models."""

    __tablename__: ClassVar[str | None] = None

    @classmethod
    def table_name(cls) -> str:
        return cls.__tablename__ or cls.__name__

    @classmethod
    def table_info(cls) -> TableInfo:
        """Build the :class:`TableInfo` for this entity."""
        columns = [
            ColumnInfo(
                name=name,
                column=info.serialization_alias or info.alias or name,
                python_type=info.annotation,
            )
            for name, info in cls.model_fields.items()
        ]
        return TableInfo(name=cls.table_name(), columns=columns)

    @classmethod
    def ref(cls, alias: str | None = None) -> TableRef:
        """Return a :class:`TableRef` for this entity bound to ``alias``."""
        return TableRef(cls.table_info(), alias)
