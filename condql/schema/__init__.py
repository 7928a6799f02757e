"""condQL schema descriptors: TableInfo, Entity, TableRef, FieldRef."""
from condql.schema.entity import Entity
from condql.schema.refs import FieldRef, TableRef
from condql.schema.table import ColumnInfo, TableInfo

__all__ = [
    "ColumnInfo",
    "Entity",
    "FieldRef",
    "TableInfo",
    "TableRef",
]
