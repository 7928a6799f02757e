"""SqlBuilder: the untyped, fluent statement assembler.

``SqlBuilder`` is a small state machine: a :class:`StatementMode` plus a
:class:`~condql.compile.clauses.ClauseStore` of fragments and a
:class:`~condql.compile.parameters.ParameterSet`.  Every method appends (or
replaces) fragments and returns the builder; :meth:`SqlBuilder.render`
dispatches to the statement renderer for the current mode::

    sql = (
        SqlBuilder()
        .table("orders", "o")
        .left_join("customers", "c", "c.id = o.customer_id")
        .where("o.status=@status and o.amount>@amount", 5, 100)
        .order_by("o.id")
        .page(2, 20)
        .render()
    )

Lifecycle
---------
A builder is created per logical statement and is not thread-safe.
``render`` does not reset the builder: rendering twice yields the same text,
and further calls keep accumulating onto the same fragments.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable

from condql.compile.base import CompiledSQL, SQLCompiler
from condql.compile.clause_builders import (
    DeleteStatementBuilder,
    InsertStatementBuilder,
    SelectStatementBuilder,
    UpdateStatementBuilder,
)
from condql.compile.clauses import (
    ClauseKind,
    ClauseStore,
    LimitDirective,
    PageDirective,
    StatementMode,
)
from condql.compile.mysql import MySQLCompiler
from condql.compile.parameters import ParameterSet, clean_parameter_name

logger = logging.getLogger(__name__)

_PARAMETER_RE = re.compile(r"@\w+")
_IDENTIFIER_RE = re.compile(r"^\w+$")


def parse_parameter_names(text: str) -> list[str]:
    """Return the ``@identifier`` tokens of ``text`` in order, without ``@``."""
    return [clean_parameter_name(m.group(0)) for m in _PARAMETER_RE.finditer(text)]


class SqlBuilder:
    """Accumulates clause fragments and renders parameterized SQL.

    Args:
        compiler: Dialect compiler; defaults to
            :class:`~condql.compile.mysql.MySQLCompiler`.
    """

    def __init__(self, compiler: SQLCompiler | None = None) -> None:
        self._compiler = compiler or MySQLCompiler()
        self._mode = StatementMode.SELECT
        self._select_identity = False
        self._clauses = ClauseStore()
        self._parameters = ParameterSet()

    @classmethod
    def instance(cls, compiler: SQLCompiler | None = None) -> SqlBuilder:
        return cls(compiler)

    def clone(self) -> SqlBuilder:
        """Return an independent copy; changes to either leave the other alone."""
        other = type(self)(self._compiler)
        other._mode = self._mode
        other._select_identity = self._select_identity
        other._clauses = self._clauses.copy()
        other._parameters.add_dynamic(self._parameters)
        return other

    # ------------------------------------------------------------------
    # Statement mode
    # ------------------------------------------------------------------

    def insert(self, table: str) -> SqlBuilder:
        """Switch to INSERT mode against ``table``.  Call once."""
        self._mode = StatementMode.INSERT
        self._clauses.add(ClauseKind.TABLE, table)
        return self

    def update(self, table: str) -> SqlBuilder:
        """Switch to UPDATE mode against ``table``.  Call once."""
        self._mode = StatementMode.UPDATE
        self._clauses.add(ClauseKind.TABLE, table)
        return self

    def delete(self, table: str) -> SqlBuilder:
        """Switch to DELETE mode against ``table``.  Call once."""
        self._mode = StatementMode.DELETE
        self._clauses.add(ClauseKind.TABLE, table)
        return self

    def table(self, name: str, alias: str | None = None) -> SqlBuilder:
        """Add a FROM table.  Repeated calls produce ``FROM t1,t2``."""
        self._clauses.add(ClauseKind.TABLE, f"{name} {alias}" if alias else name)
        return self

    # ------------------------------------------------------------------
    # INSERT / UPDATE values
    # ------------------------------------------------------------------

    def value(self, field: str, val: Any, literal: bool = False) -> SqlBuilder:
        """Add an INSERT column/value pair.

        Args:
            field: Column name, optionally backtick-quoted.
            val: Bound value, or raw SQL text when ``literal``.
            literal: Embed ``val`` verbatim (e.g. ``"NOW()"``).
        """
        if literal:
            self._clauses.add(ClauseKind.INSERT_VALUE, (field, str(val)))
            return self
        name = clean_parameter_name(field)
        self._clauses.add(
            ClauseKind.INSERT_VALUE, (field, self._compiler.param_placeholder(name))
        )
        self._parameters.add(name, val)
        return self

    def set(
        self, field: str, val: Any, literal: bool = False, *, is_extend: bool = True
    ) -> SqlBuilder:
        """Add an UPDATE ``SET`` assignment.

        A plain identifier renders as ``` `field`=@field ```.  Otherwise the
        first ``@name`` token inside ``field`` names the parameter, falling
        back to the last dotted segment (``"o.status"`` → ``status``).

        Args:
            field: Column name or expression.
            val: Bound value, or raw SQL text when ``literal``.
            literal: Render ``field=val`` verbatim.
            is_extend: When ``False`` the call is a no-op.
        """
        if not is_extend:
            return self
        if literal:
            self._clauses.add(ClauseKind.UPDATE_VALUE, f"{field}={val}")
            return self

        name = field if _IDENTIFIER_RE.match(field) else self._set_parameter_name(field)
        if name is None:
            logger.debug("Skipping SET for %r: no parameter name could be derived", field)
            return self
        quoted = self._compiler.quote_identifier(name)
        self._clauses.add(
            ClauseKind.UPDATE_VALUE, f"{quoted}={self._compiler.param_placeholder(name)}"
        )
        self._parameters.add(name, val)
        return self

    @staticmethod
    def _set_parameter_name(field: str) -> str | None:
        tokens = parse_parameter_names(field)
        if tokens:
            return tokens[0]
        candidate = clean_parameter_name(field).split(".")[-1].strip()
        return candidate if _IDENTIFIER_RE.match(candidate) else None

    def duplicate(self, field: str, value_expr: str) -> SqlBuilder:
        """Add an ``ON DUPLICATE KEY UPDATE field=value_expr`` assignment.

        Only meaningful in INSERT mode; otherwise, or when either argument
        is empty, the call is a no-op.
        """
        if not self.is_insert or not field or not value_expr:
            return self
        self._clauses.add(ClauseKind.DUPLICATE_UPDATE, (field, value_expr))
        return self

    def select_identity(self) -> SqlBuilder:
        """Append ``;SELECT LAST_INSERT_ID() AS id;`` to an INSERT."""
        if self.is_insert:
            self._select_identity = True
        return self

    # ------------------------------------------------------------------
    # WHERE
    # ------------------------------------------------------------------

    def where(self, condition: str, *args: Any, is_extend: bool = True) -> SqlBuilder:
        """Add a WHERE condition, binding its ``@name`` placeholders.

        When no argument is a structured object and the number of ``@name``
        tokens equals the number of ``args``, values bind positionally in
        token order.  Otherwise every structured argument (mapping, pydantic
        model, dataclass, ConditionHash) is bound in bulk by member name.

        Example::

            builder.where("age=@age and name=@name", 10, "bob")
            builder.where("age=@age", {"age": 10})

        Args:
            condition: Trusted SQL condition text.
            args: Positional values or structured parameter sources.
            is_extend: When ``False`` the call is a no-op.
        """
        if not is_extend:
            return self

        tokens = parse_parameter_names(condition)
        structured = any(ParameterSet.is_structured(arg) for arg in args)
        if tokens and not structured and len(tokens) == len(args):
            for token, arg in zip(tokens, args):
                self._parameters.add(token, arg)
        else:
            for arg in args:
                if ParameterSet.is_structured(arg):
                    self._parameters.add_dynamic(arg)
                else:
                    logger.debug(
                        "Ignoring non-structured argument %r for condition %r", arg, condition
                    )

        self._clauses.add(ClauseKind.WHERE, condition)
        return self

    def where_in(
        self, field: str, values: Iterable[Any], *, is_extend: bool = True
    ) -> SqlBuilder:
        """Add ``field in (@field_IN_0, @field_IN_1, …)``.

        Dots in ``field`` become underscores in the parameter names.  An
        empty ``values`` adds nothing.
        """
        items = list(values)
        if not is_extend or not items:
            return self
        prefix = clean_parameter_name(field).replace(".", "_")
        placeholders = ",".join(
            self._compiler.param_placeholder(f"{prefix}_IN_{i}") for i in range(len(items))
        )
        for i, item in enumerate(items):
            self._parameters.add(f"{prefix}_IN_{i}", item)
        self._clauses.add(ClauseKind.WHERE, f"{field} in ({placeholders})")
        return self

    # ------------------------------------------------------------------
    # JOIN
    # ------------------------------------------------------------------

    def join(
        self, table: str, alias: str | None, on: str, join_type: str = ""
    ) -> SqlBuilder:
        """Add ``[<join_type>] JOIN <table> <alias> ON <on>``."""
        keyword = f"{join_type.strip().upper()} JOIN" if join_type.strip() else "JOIN"
        target = f"{table} {alias}" if alias else table
        self._clauses.add(ClauseKind.JOIN, f"{keyword} {target} ON {on}")
        return self

    def left_join(self, table: str, alias: str | None, on: str) -> SqlBuilder:
        return self.join(table, alias, on, "LEFT")

    def right_join(self, table: str, alias: str | None, on: str) -> SqlBuilder:
        return self.join(table, alias, on, "RIGHT")

    def inner_join(self, table: str, alias: str | None, on: str) -> SqlBuilder:
        return self.join(table, alias, on, "INNER")

    def straight_join(self, table: str, alias: str | None, on: str) -> SqlBuilder:
        """Add MySQL's ``STRAIGHT_JOIN <table> <alias> ON <on>``."""
        target = f"{table} {alias}" if alias else table
        self._clauses.add(ClauseKind.JOIN, f"STRAIGHT_JOIN {target} ON {on}")
        return self

    # ------------------------------------------------------------------
    # SELECT list, ordering, grouping, limits
    # ------------------------------------------------------------------

    def select(self, *fields: str) -> SqlBuilder:
        for field in fields:
            self._clauses.add(ClauseKind.SELECT, field)
        return self

    def clear_select(self) -> SqlBuilder:
        """Drop every SELECT column, e.g. to turn a query into a COUNT."""
        self._clauses.remove(ClauseKind.SELECT)
        return self

    def order_by(self, field: str | None, direction: str = "DESC") -> SqlBuilder:
        """Add ``field direction`` to ORDER BY; an empty field orders by ``1``."""
        self._clauses.add(ClauseKind.ORDER_BY, f"{field or '1'} {direction}")
        return self

    def group_by(self, *fields: str) -> SqlBuilder:
        for field in fields:
            self._clauses.add(ClauseKind.GROUP_BY, field)
        return self

    def limit(self, offset: int, rows: int) -> SqlBuilder:
        """Set ``LIMIT offset,rows``; a later call replaces an earlier one."""
        self._clauses.replace(ClauseKind.LIMIT, LimitDirective(offset, rows))
        return self

    def for_update(self) -> SqlBuilder:
        self._clauses.replace(ClauseKind.FOR_UPDATE, True)
        return self

    def clear_page(self) -> SqlBuilder:
        """Drop pagination, LIMIT and FOR UPDATE, leaving the base SELECT."""
        for kind in (ClauseKind.PAGE_ARGS, ClauseKind.LIMIT, ClauseKind.FOR_UPDATE):
            self._clauses.remove(kind)
        return self

    def page(
        self,
        page_index: int,
        page_size: int,
        emit_count: bool = True,
        totals: str = "",
    ) -> SqlBuilder:
        """Paginate the SELECT.

        Args:
            page_index: 1-based page number.
            page_size: Rows per page.
            emit_count: Append the ``SELECT COUNT(0) AS Count …`` statement.
            totals: Extra aggregates for the count statement, e.g.
                ``"SUM(amount) AS amount"``.
        """
        offset = max(0, (page_index - 1) * page_size)
        self._clauses.replace(
            ClauseKind.PAGE_ARGS, PageDirective(offset, page_size, emit_count, totals)
        )
        return self

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def mode(self) -> StatementMode:
        return self._mode

    @property
    def is_select(self) -> bool:
        return self._mode is StatementMode.SELECT

    @property
    def is_insert(self) -> bool:
        return self._mode is StatementMode.INSERT

    @property
    def is_update(self) -> bool:
        return self._mode is StatementMode.UPDATE

    @property
    def is_delete(self) -> bool:
        return self._mode is StatementMode.DELETE

    @property
    def is_count_total(self) -> bool:
        """True when a page directive asks for the count statement."""
        page = self._clauses.first(ClauseKind.PAGE_ARGS)
        return isinstance(page, PageDirective) and page.emit_count

    @property
    def page_directive(self) -> PageDirective | None:
        return self._clauses.first(ClauseKind.PAGE_ARGS)

    @property
    def parameters(self) -> ParameterSet:
        return self._parameters

    @property
    def compiler(self) -> SQLCompiler:
        return self._compiler

    def fragments(self, kind: ClauseKind) -> list[Any]:
        """Return a copy of the stored fragments of ``kind``."""
        return self._clauses.get(kind)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> str:
        """Render the SQL text for the current mode.

        Raises:
            ConfigurationError: If the call sequence cannot form a statement
                (missing or repeated table, no INSERT values, no SET).
        """
        if self._mode is StatementMode.INSERT:
            renderer = InsertStatementBuilder(
                self._clauses, self._compiler, self._select_identity
            )
        elif self._mode is StatementMode.UPDATE:
            renderer = UpdateStatementBuilder(self._clauses, self._compiler)
        elif self._mode is StatementMode.DELETE:
            renderer = DeleteStatementBuilder(self._clauses, self._compiler)
        else:
            renderer = SelectStatementBuilder(self._clauses, self._compiler)
        return renderer.build()

    def to_sql(self) -> str:
        return self.render()

    def build(self) -> CompiledSQL:
        """Render and bundle the SQL with a snapshot of its parameters."""
        return CompiledSQL(
            sql=self.render(),
            params=self._parameters.as_dict(),
            dialect=self._compiler.dialect_name,
        )
