"""condQL compilation layer: builder calls → parameterized SQL."""
from condql.compile.base import CompiledSQL, SQLCompiler
from condql.compile.builder import SqlBuilder
from condql.compile.clauses import ClauseKind, StatementMode
from condql.compile.mysql import MySQLCompiler
from condql.compile.typed import OrderType, TypedSqlBuilder, WhereCompare

__all__ = [
    "ClauseKind",
    "CompiledSQL",
    "MySQLCompiler",
    "OrderType",
    "SQLCompiler",
    "SqlBuilder",
    "StatementMode",
    "TypedSqlBuilder",
    "WhereCompare",
]
