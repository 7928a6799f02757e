"""condQL – conditional, parameterized SQL assembly for MySQL.

Filter what the request sent. Drop what it didn't.

Public API
----------
``SqlBuilder``
    Fluent, untyped statement assembler.  Accumulates clause fragments and
    renders SELECT / INSERT / UPDATE / DELETE text with ``@name``
    placeholders, including the two-statement pagination protocol.

``TypedSqlBuilder``
    Wraps ``SqlBuilder`` with explicit field selectors and a
    ``ConditionHash``; ``when`` / ``between`` / ``set`` only emit a clause
    when the bag holds a usable value for the field.

``ConditionHash``
    Case-insensitive parameter bag with exception-free typed accessors.

Re-exported types
-----------------
``Entity``, ``TableInfo``, ``ColumnInfo``, ``TableRef``, ``FieldRef``,
``CompiledSQL``, ``WhereCompare``, ``OrderType``, ``DBConfig`` and all error
classes.  ``Dao`` and ``Pagination`` live in :mod:`condql.dao` and need the
``sqlalchemy`` extra.

Extensibility
-------------
Placeholder and quoting rules live on ``SQLCompiler``; pass a subclass to
the builder to change them::

    class ColonCompiler(MySQLCompiler):
        def param_placeholder(self, name: str) -> str:
            return f":{name}"

    SqlBuilder(ColonCompiler())
"""

from __future__ import annotations

from condql.compile.base import CompiledSQL, SQLCompiler
from condql.compile.builder import SqlBuilder
from condql.compile.clauses import ClauseKind, StatementMode
from condql.compile.mysql import MySQLCompiler
from condql.compile.typed import OrderType, TypedSqlBuilder, WhereCompare
from condql.conditions.converter import ParseResult
from condql.conditions.hash import ConditionHash
from condql.conditions.predicates import (
    array_not_empty,
    int_greater_zero,
    is_array,
    is_time_between,
    string_not_empty,
)
from condql.config import DBConfig, get_db_config, set_db_config
from condql.errors import CondQLError, ConfigurationError, PreconditionError
from condql.schema.entity import Entity
from condql.schema.refs import FieldRef, TableRef
from condql.schema.table import ColumnInfo, TableInfo

__all__ = [
    # Builders
    "SqlBuilder",
    "TypedSqlBuilder",
    "WhereCompare",
    "OrderType",
    "ClauseKind",
    "StatementMode",
    # Parameter bag
    "ConditionHash",
    "ParseResult",
    "array_not_empty",
    "int_greater_zero",
    "is_array",
    "is_time_between",
    "string_not_empty",
    # Schema
    "Entity",
    "TableInfo",
    "ColumnInfo",
    "TableRef",
    "FieldRef",
    # Compilation
    "CompiledSQL",
    "SQLCompiler",
    "MySQLCompiler",
    # Configuration
    "DBConfig",
    "get_db_config",
    "set_db_config",
    # Errors
    "CondQLError",
    "ConfigurationError",
    "PreconditionError",
]
