"""Statement-level SQL renderers.

Each class renders exactly one statement mode from a
:class:`~condql.compile.clauses.ClauseStore`.  Dialect syntax comes from the
injected :class:`~condql.compile.base.SQLCompiler`.

Classes
-------
SelectStatementBuilder  — ``SELECT … FROM … [LIMIT …][;SELECT COUNT(0) …]``
InsertStatementBuilder  — ``INSERT INTO … VALUES … [ON DUPLICATE KEY UPDATE …]``
UpdateStatementBuilder  — ``UPDATE … SET … [WHERE …]``
DeleteStatementBuilder  — ``DELETE FROM … [WHERE …]``
"""
from __future__ import annotations

from condql.compile.base import SQLCompiler
from condql.compile.clauses import (
    ClauseKind,
    ClauseStore,
    LimitDirective,
    PageDirective,
    StatementMode,
)
from condql.errors import ConfigurationError


class _StatementBuilder:
    mode: StatementMode

    def __init__(self, store: ClauseStore, compiler: SQLCompiler) -> None:
        self._store = store
        self._compiler = compiler

    def build(self) -> str:
        raise NotImplementedError

    def _single_table(self) -> str:
        count = self._store.count(ClauseKind.TABLE)
        if count != 1:
            raise ConfigurationError(
                f"{self.mode.value} requires exactly one table, got {count}.",
                clause=self.mode.value,
            )
        return str(self._store.first(ClauseKind.TABLE))

    def _where_sql(self) -> str:
        if not self._store.has(ClauseKind.WHERE):
            return ""
        return f" WHERE {self._store.join(ClauseKind.WHERE)}"


class SelectStatementBuilder(_StatementBuilder):
    """Builds a SELECT, including the dual-statement pagination protocol.

    With a :class:`PageDirective` the output is::

        <base> LIMIT <offset>,<size>[ FOR UPDATE][;SELECT COUNT(0) AS Count[, totals] FROM (<base>) AS CT]

    Callers execute both statements in one round trip and read rows from the
    first result set, count and totals from the second.
    """

    mode = StatementMode.SELECT

    def build(self) -> str:
        base_sql = self._base_sql()
        page = self._store.first(ClauseKind.PAGE_ARGS)
        for_update = bool(self._store.first(ClauseKind.FOR_UPDATE, False))

        if not isinstance(page, PageDirective):
            if for_update:
                return f"{base_sql} {self._compiler.for_update_clause()}"
            return base_sql

        sql = f"{base_sql} {self._compiler.limit_clause(page.offset, page.page_size)}"
        if for_update:
            sql += f" {self._compiler.for_update_clause()}"
        if page.emit_count:
            sql += f";{self._compiler.count_query(base_sql, page.totals)}"
        return sql

    def _base_sql(self) -> str:
        if not self._store.has(ClauseKind.TABLE):
            raise ConfigurationError("SELECT requires at least one table.", clause="SELECT")

        columns = self._store.join(ClauseKind.SELECT) or "*"
        parts = [f"SELECT {columns} FROM {self._store.join(ClauseKind.TABLE)}"]

        if self._store.has(ClauseKind.JOIN):
            parts.append(f" {self._store.join(ClauseKind.JOIN)}")

        parts.append(self._where_sql())

        if self._store.has(ClauseKind.GROUP_BY):
            parts.append(f" GROUP BY {self._store.join(ClauseKind.GROUP_BY)}")

        if self._store.has(ClauseKind.ORDER_BY):
            parts.append(f" ORDER BY {self._store.join(ClauseKind.ORDER_BY)}")

        limit = self._store.first(ClauseKind.LIMIT)
        if isinstance(limit, LimitDirective):
            parts.append(f" {self._compiler.limit_clause(limit.offset, limit.rows)}")

        return "".join(parts)


class InsertStatementBuilder(_StatementBuilder):
    """Builds an INSERT with optional upsert and identity-select suffixes."""

    mode = StatementMode.INSERT

    def __init__(
        self, store: ClauseStore, compiler: SQLCompiler, select_identity: bool = False
    ) -> None:
        super().__init__(store, compiler)
        self._select_identity = select_identity

    def build(self) -> str:
        table = self._single_table()
        values = self._store.get(ClauseKind.INSERT_VALUE)
        if not values:
            raise ConfigurationError("INSERT requires at least one value.", clause="INSERT")

        columns = ",".join(str(column) for column, _ in values)
        placeholders = ",".join(str(value) for _, value in values)
        sql = f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"

        duplicates = self._store.get(ClauseKind.DUPLICATE_UPDATE)
        if duplicates:
            sql += f" {self._compiler.upsert_clause(duplicates)}"

        if self._select_identity:
            sql += f";{self._compiler.identity_select()};"
        return sql


class UpdateStatementBuilder(_StatementBuilder):
    """Builds ``UPDATE <table> SET <assignments> [WHERE …]``."""

    mode = StatementMode.UPDATE

    def build(self) -> str:
        table = self._single_table()
        if not self._store.has(ClauseKind.UPDATE_VALUE):
            raise ConfigurationError(
                "UPDATE requires at least one SET assignment.", clause="UPDATE"
            )
        assignments = self._store.join(ClauseKind.UPDATE_VALUE)
        return f"UPDATE {table} SET {assignments}{self._where_sql()}"


class DeleteStatementBuilder(_StatementBuilder):
    """Builds ``DELETE FROM <table> [WHERE …]``."""

    mode = StatementMode.DELETE

    def build(self) -> str:
        table = self._single_table()
        return f"DELETE FROM {table}{self._where_sql()}"
