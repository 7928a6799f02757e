"""Compiler abstractions: CompiledSQL and the SQLCompiler ABC.

The Template Method pattern (GoF) is used:
- The statement renderers in :mod:`condql.compile.clause_builders` define
  the skeleton of each statement.
- ``SQLCompiler`` subclasses supply the dialect-specific pieces (parameter
  placeholder style, quoting, LIMIT, upsert and identity syntax).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class CompiledSQL:
    """The output of a successful render.

    Attributes:
        sql: The SQL text with ``@name`` placeholders.  Paginated SELECTs and
            identity-returning INSERTs hold two ``;``-joined statements.
        params: Values for every placeholder, keyed by name.
        dialect: The target dialect (``'mysql'``).
    """

    sql: str
    params: dict[str, Any]
    dialect: str

    @property
    def statements(self) -> list[str]:
        """The individual statements in :attr:`sql`, split on ``;``.

        Clause text is trusted developer input; a ``;`` inside a literal
        would split that literal.
        """
        return [s.strip() for s in self.sql.split(";") if s.strip()]

    def merge_runtime_params(self, runtime: dict[str, Any]) -> dict[str, Any]:
        """Return the compiled params overlaid with ``runtime`` values."""
        return {**self.params, **runtime}


class SQLCompiler(ABC):
    """Abstract base for dialect-specific SQL syntax.

    :class:`~condql.compile.builder.SqlBuilder` and its statement renderers
    call these hooks whenever syntax differs between databases.
    """

    @abstractmethod
    def param_placeholder(self, name: str) -> str:
        """Return the SQL placeholder string for a named parameter."""

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Return a properly-quoted SQL identifier."""

    @abstractmethod
    def limit_clause(self, offset: int, rows: int) -> str:
        """Return the row-limiting clause for ``rows`` rows after ``offset``."""

    @abstractmethod
    def upsert_clause(self, assignments: list[tuple[str, str]]) -> str:
        """Return the duplicate-key update clause for ``(column, expr)`` pairs."""

    @abstractmethod
    def identity_select(self) -> str:
        """Return a statement selecting the last generated identity as ``id``."""

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name."""

    def for_update_clause(self) -> str:
        return "FOR UPDATE"

    def count_query(self, base_sql: str, totals: str = "") -> str:
        """Wrap ``base_sql`` in the row-count (and aggregate totals) query.

        Args:
            base_sql: The unpaged SELECT.
            totals: Optional aggregate select list, e.g.
                ``"SUM(amount) AS amount"``.
        """
        totals_sql = f", {totals}" if totals else ""
        return f"SELECT COUNT(0) AS Count{totals_sql} FROM ({base_sql}) AS CT"
