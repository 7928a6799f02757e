"""Data access on top of SQLAlchemy Core.

Install the optional dependency before using this module::

    pip install "condql[sqlalchemy]"

``Dao`` runs what the builders render.  Placeholders are rewritten from
``@name`` to SQLAlchemy's ``:name`` and each statement receives only the
parameters it references, so the two statements of a paginated SELECT (or
an identity-returning INSERT) run one after the other on one connection::

    dao = Dao(DBConfig(master_connection="mysql+pymysql://app@db/shop"))

    page = dao.paginate(
        TypedSqlBuilder(Order, conditions).table("o").when(o.status).page()
    )
    page.total_count, page.page_count, page.data

    with dao.transaction():
        dao.execute(SqlBuilder().update("orders").set("status", 2).where("id=@id", 7))
        dao.execute(SqlBuilder().delete("order_items").where("order_id=@order_id", 7))
"""

from __future__ import annotations

import logging
import random
import re
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, Generic, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

from condql.compile.base import CompiledSQL
from condql.compile.builder import SqlBuilder
from condql.compile.clauses import PageDirective
from condql.compile.parameters import clean_parameter_name
from condql.compile.typed import TypedSqlBuilder
from condql.conditions.hash import ConditionHash
from condql.config import DBConfig, get_db_config
from condql.errors import ConfigurationError
from condql.schema.entity import Entity

try:
    from sqlalchemy import Connection, Engine, create_engine, text
except ImportError as exc:
    raise ImportError(
        "SQLAlchemy is required for condql.dao. "
        'Install it with: pip install "condql[sqlalchemy]"'
    ) from exc

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PLACEHOLDER_RE = re.compile(r"@(\w+)")

Source = Union[str, CompiledSQL, SqlBuilder, TypedSqlBuilder]
BuilderFactory = Callable[[ConditionHash], Union[SqlBuilder, TypedSqlBuilder]]


class Pagination(BaseModel, Generic[T]):
    """One page of rows plus the count / totals statement's result.

    Attributes:
        data: Rows of the requested page.
        page_index: 1-based page number.
        page_size: Rows per page.
        total_count: Rows matching the unpaged query.
        totals: Extra aggregates requested through ``page(totals=...)``.
    """

    model_config = ConfigDict(extra="forbid")

    data: list[T] = Field(default_factory=list)
    page_index: int = 1
    page_size: int = 20
    total_count: int = 0
    totals: dict[str, Any] | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def page_count(self) -> int:
        if self.page_size <= 0:
            return 0
        return -(-self.total_count // self.page_size)


def to_bind_style(sql: str) -> str:
    """Rewrite ``@name`` placeholders to SQLAlchemy's ``:name``."""
    return _PLACEHOLDER_RE.sub(r":\1", sql)


def _statement_params(sql: str, params: dict[str, Any]) -> dict[str, Any]:
    names = {clean_parameter_name(m.group(0)) for m in _PLACEHOLDER_RE.finditer(sql)}
    return {name: value for name, value in params.items() if name in names}


def _split_statements(sql: str) -> list[str]:
    return [s.strip() for s in sql.split(";") if s.strip()]


def _to_model(model: type[T] | None, row: dict[str, Any]) -> Any:
    if model is None:
        return row
    if isinstance(model, type) and issubclass(model, Entity):
        names = {col.column: col.name for col in model.table_info().columns}
        return model.model_validate({names.get(k, k): v for k, v in row.items()})
    if isinstance(model, type) and issubclass(model, BaseModel):
        return model.model_validate(row)
    return model(**row)  # type: ignore[call-arg]


class Dao:
    """Executes rendered statements against the configured database.

    Args:
        config: Connection settings; defaults to :func:`get_db_config`.
        engine: A ready SQLAlchemy engine used instead of
            ``config.master_connection``.
    """

    def __init__(self, config: DBConfig | None = None, *, engine: Engine | None = None) -> None:
        self._config = config or get_db_config()
        self._engine = engine
        self._engines: dict[str, Engine] = {}
        self._connection: Connection | None = None

    @property
    def debug(self) -> bool:
        return bool(self._config and self._config.debug)

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def _engine_for(self, use_slave: bool = False) -> Engine:
        if use_slave and self._config and self._config.slave_connections:
            return self._cached_engine(random.choice(self._config.slave_connections))
        if self._engine is not None:
            return self._engine
        if self._config is None or not self._config.master_connection:
            raise ConfigurationError("Db connection can not be None.", clause="connection")
        return self._cached_engine(self._config.master_connection)

    def _cached_engine(self, url: str) -> Engine:
        engine = self._engines.get(url)
        if engine is None:
            engine = self._engines[url] = create_engine(url)
        return engine

    @contextmanager
    def _connect(self, use_slave: bool = False) -> Iterator[Connection]:
        if self._connection is not None:
            yield self._connection
            return
        with self._engine_for(use_slave).connect() as conn:
            yield conn

    @contextmanager
    def _begin(self) -> Iterator[Connection]:
        if self._connection is not None:
            yield self._connection
            return
        with self._engine_for().begin() as conn:
            yield conn

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Run every ``Dao`` call inside the block in one transaction.

        Commits when the block exits normally; rolls back and re-raises on
        any exception.  Nested blocks join the outer transaction.
        """
        if self._connection is not None:
            yield self._connection
            return
        try:
            with self._engine_for().begin() as conn:
                self._connection = conn
                yield conn
        except Exception:
            logger.exception("Transaction rolled back")
            raise
        finally:
            self._connection = None

    # ------------------------------------------------------------------
    # Execution primitives
    # ------------------------------------------------------------------

    def _compiled(self, source: Source, params: dict[str, Any] | None) -> tuple[str, dict[str, Any]]:
        if isinstance(source, (SqlBuilder, TypedSqlBuilder)):
            source = source.build()
        if isinstance(source, CompiledSQL):
            return source.sql, source.merge_runtime_params(params or {})
        return source, dict(params or {})

    def _trace(self, sql: str, params: dict[str, Any]) -> None:
        if self.debug:
            logger.debug("sql_trace: %s | params=%r", sql, params)

    def _run(self, conn: Connection, sql: str, params: dict[str, Any]) -> Any:
        bound = _statement_params(sql, params)
        self._trace(sql, bound)
        return conn.execute(text(to_bind_style(sql)), bound)

    def _rows(self, conn: Connection, sql: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        return [dict(row) for row in self._run(conn, sql, params).mappings()]

    def query(
        self,
        source: Source,
        params: dict[str, Any] | None = None,
        model: type[T] | None = None,
        *,
        use_slave: bool = False,
    ) -> list[Any]:
        """Return the rows of the first statement in ``source``.

        Later statements, such as the count query of a paginated SELECT, are
        not run; :meth:`paginate` reads those.

        Args:
            source: SQL text, a :class:`CompiledSQL` or a builder.
            params: Extra parameters overlaid on the compiled ones.
            model: Optional row type; entities are filled by column name.
            use_slave: Read from a random replica when configured.
        """
        sql, values = self._compiled(source, params)
        statements = _split_statements(sql)
        with self._connect(use_slave) as conn:
            rows = self._rows(conn, statements[0], values)
        return [_to_model(model, row) for row in rows]

    def single(
        self,
        source: Source,
        params: dict[str, Any] | None = None,
        model: type[T] | None = None,
        *,
        use_slave: bool = False,
    ) -> Any | None:
        """Return the first row of ``source``, or ``None``."""
        rows = self.query(source, params, model, use_slave=use_slave)
        return rows[0] if rows else None

    def execute(self, source: Source, params: dict[str, Any] | None = None) -> int:
        """Run a write statement and return the affected row count."""
        sql, values = self._compiled(source, params)
        affected = 0
        with self._begin() as conn:
            for statement in _split_statements(sql):
                result = self._run(conn, statement, values)
                if not result.returns_rows:
                    affected += max(result.rowcount, 0)
        return affected

    def execute_scalar(
        self, source: Source, params: dict[str, Any] | None = None, *, use_slave: bool = False
    ) -> Any:
        """Return the first column of the first row of the first result set.

        Statements that return no rows are run in order until one does;
        anything after it is not run.
        """
        sql, values = self._compiled(source, params)
        with self._connect(use_slave) as conn:
            for statement in _split_statements(sql):
                result = self._run(conn, statement, values)
                if result.returns_rows:
                    return result.scalar()
        return None

    def insert(self, source: Source, params: dict[str, Any] | None = None) -> Any:
        """Run an INSERT in a transaction and return the new row's identity.

        When the statement carries ``select_identity()`` the identity query's
        value is returned; otherwise the driver's ``lastrowid``.
        """
        sql, values = self._compiled(source, params)
        identity = None
        with self._begin() as conn:
            for statement in _split_statements(sql):
                result = self._run(conn, statement, values)
                if result.returns_rows:
                    identity = result.scalar()
                elif identity is None:
                    identity = result.lastrowid
        return identity

    # ------------------------------------------------------------------
    # Builder conveniences
    # ------------------------------------------------------------------

    def paginate(
        self,
        builder: SqlBuilder | TypedSqlBuilder,
        model: type[T] | None = None,
        *,
        use_slave: bool = False,
    ) -> Pagination:
        """Run a paginated SELECT and its count statement on one connection.

        The builder must have been given ``page(...)`` with ``emit_count``.
        Extra columns of the count row become :attr:`Pagination.totals`.

        Raises:
            ConfigurationError: If the builder renders no count statement.
        """
        inner = builder.builder if isinstance(builder, TypedSqlBuilder) else builder
        page = inner.page_directive
        if not isinstance(page, PageDirective) or not page.emit_count:
            raise ConfigurationError(
                "paginate() requires page() with emit_count enabled.", clause="SELECT"
            )
        compiled = inner.build()
        split = compiled.sql.rfind(";")
        data_sql, count_sql = compiled.sql[:split], compiled.sql[split + 1 :]

        with self._connect(use_slave) as conn:
            rows = self._rows(conn, data_sql, compiled.params)
            counts = self._rows(conn, count_sql, compiled.params)

        count_row = counts[0] if counts else {}
        total_count = int(count_row.get("Count", 0) or 0)
        totals = {k: v for k, v in count_row.items() if k != "Count"} or None
        page_size = page.page_size
        page_index = page.offset // page_size + 1 if page_size > 0 else 1
        return Pagination(
            data=[_to_model(model, row) for row in rows],
            page_index=page_index,
            page_size=page_size,
            total_count=total_count,
            totals=totals,
        )

    def list_entities(
        self, build: BuilderFactory, conditions: ConditionHash, model: type[T] | None = None
    ) -> list[Any]:
        """Query the statement ``build(conditions)`` returns."""
        return self.query(build(conditions), model=model)

    def page_entities(
        self, build: BuilderFactory, conditions: ConditionHash, model: type[T] | None = None
    ) -> Pagination:
        """Paginate ``build(conditions)`` by the bag's ``PageIndex`` / ``PageSize``."""
        builder = build(conditions).page(conditions.page_index, conditions.page_size)
        return self.paginate(builder, model)

    def get_entity(
        self, build: BuilderFactory, conditions: ConditionHash, model: type[T] | None = None
    ) -> Any | None:
        """Return the first row of ``build(conditions)`` limited to one row."""
        builder = build(conditions).limit(0, 1)
        return self.single(builder, model=model)

    def query_count(self, builder: SqlBuilder | TypedSqlBuilder) -> int:
        """Count the rows ``builder`` selects, ignoring any page or LIMIT.

        A copy is rewritten to ``SELECT COUNT(0) AS COUNT ...``; ``builder``
        itself is left untouched.
        """
        inner = builder.builder if isinstance(builder, TypedSqlBuilder) else builder
        counted = inner.clone().clear_page().clear_select().select("COUNT(0) AS COUNT")
        return int(self.execute_scalar(counted) or 0)

    def is_contain(self, table: str, **fields: Any) -> bool:
        """True when ``table`` has a row matching every ``column=value`` pair.

        Example::

            dao.is_contain("users", email="bob@example.com")
        """
        builder = SqlBuilder().table(table)
        for column, value in fields.items():
            builder.where(f"{column}=@{clean_parameter_name(column)}", value)
        return bool(self.query(builder))
