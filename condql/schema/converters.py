"""Utilities for building :class:`TableInfo` objects from SQLAlchemy.

Install the optional dependency before using this module::

    pip install "condql[sqlalchemy]"

Example::

    from sqlalchemy import create_engine
    from condql.schema.converters import tables_from_engine, table_from_sqlalchemy

    engine = create_engine("sqlite:///mydb.db")
    tables = tables_from_engine(engine)
    o = tables["orders"].ref("o")

    # Declarative models keep their attribute names as ConditionHash keys
    o = table_from_sqlalchemy(OrderModel).ref("o")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from condql.schema.table import ColumnInfo, TableInfo

if TYPE_CHECKING:
    from sqlalchemy import Column, Engine, MetaData, Table


def table_from_sqlalchemy(source: Any) -> TableInfo:
    """Convert a :class:`sqlalchemy.Table` or a declarative model class.

    For declarative models the mapped attribute key becomes the member name
    and the underlying column name the SQL column, mirroring an entity field
    with a ``serialization_alias``.

    Args:
        source: A ``Table`` instance or a mapped class.

    Returns:
        The equivalent :class:`TableInfo`.

    Raises:
        ImportError: If ``sqlalchemy`` is not installed.
    """
    try:
        from sqlalchemy import Table as _Table
        from sqlalchemy import inspect
    except ImportError as exc:
        raise ImportError(
            "SQLAlchemy is required for table_from_sqlalchemy(). "
            'Install it with: pip install "condql[sqlalchemy]"'
        ) from exc

    if isinstance(source, _Table):
        return _table_to_info(source)

    mapper = inspect(source).mapper
    columns = [
        _column_info(attr.key, attr.columns[0]) for attr in mapper.column_attrs
    ]
    return TableInfo(name=mapper.persist_selectable.name, columns=columns)


def tables_from_engine(
    engine: Engine,
    *,
    include_tables: list[str] | None = None,
    schema: str | None = None,
) -> dict[str, TableInfo]:
    """Reflect ``engine`` and return a ``{table_name: TableInfo}`` mapping.

    Args:
        engine: A connected :class:`sqlalchemy.engine.Engine`.
        include_tables: Optional allowlist of table names to reflect.
        schema: Optional database schema name.

    Raises:
        ImportError: If ``sqlalchemy`` is not installed.
    """
    try:
        from sqlalchemy import MetaData as _MetaData
    except ImportError as exc:
        raise ImportError(
            "SQLAlchemy is required for tables_from_engine(). "
            'Install it with: pip install "condql[sqlalchemy]"'
        ) from exc

    metadata = _MetaData()
    with engine.connect() as conn:
        metadata.reflect(bind=conn, only=include_tables, schema=schema)
    return _metadata_to_tables(metadata)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _metadata_to_tables(metadata: MetaData) -> dict[str, TableInfo]:
    return {table.name: _table_to_info(table) for table in metadata.sorted_tables}


def _table_to_info(table: Table) -> TableInfo:
    return TableInfo(
        name=table.name,
        columns=[_column_info(col.name, col) for col in table.columns],
    )


def _column_info(name: str, col: Column) -> ColumnInfo:
    try:
        python_type: Any = col.type.python_type
    except NotImplementedError:
        python_type = object
    return ColumnInfo(
        name=name,
        column=col.name,
        python_type=python_type,
        nullable=bool(col.nullable),
    )
