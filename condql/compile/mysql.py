"""MySQL dialect compiler."""

from __future__ import annotations

from condql.compile.base import SQLCompiler


class MySQLCompiler(SQLCompiler):
    """MySQL-flavoured syntax for :class:`~condql.compile.builder.SqlBuilder`.

    Parameter style: ``@name`` – compatible with ``MySqlConnector`` and with
    :class:`~condql.dao.Dao`, which rewrites it to SQLAlchemy's ``:name``.

    Identifiers are quoted with backticks (`` ` ``).  Pagination uses
    ``LIMIT offset,rows`` and upserts use ``ON DUPLICATE KEY UPDATE``.
    """

    @property
    def dialect_name(self) -> str:
        return "mysql"

    def param_placeholder(self, name: str) -> str:
        return f"@{name}"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace("`", "``")
        return f"`{escaped}`"

    def limit_clause(self, offset: int, rows: int) -> str:
        return f"LIMIT {offset},{rows}"

    def upsert_clause(self, assignments: list[tuple[str, str]]) -> str:
        assignments_sql = ",".join(f"{column}={expr}" for column, expr in assignments)
        return f"ON DUPLICATE KEY UPDATE {assignments_sql}"

    def identity_select(self) -> str:
        return "SELECT LAST_INSERT_ID() AS id"
