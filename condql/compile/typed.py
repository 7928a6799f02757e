"""TypedSqlBuilder: bag-driven clause emission over explicit field selectors.

``TypedSqlBuilder`` wraps a :class:`~condql.compile.builder.SqlBuilder` and a
:class:`~condql.conditions.hash.ConditionHash`.  Fields are named with
:class:`~condql.schema.refs.FieldRef` objects obtained from a
:class:`~condql.schema.refs.TableRef`::

    o = Order.ref("o")
    conditions = ConditionHash({"status": 5, "name": "bob"})

    sql = (
        TypedSqlBuilder(Order, conditions)
        .table("o")
        .when(o.status, compare=WhereCompare.NOT_EQUAL)
        .when(o.name, compare=WhereCompare.LIKE)
        .when(o.amount)                        # absent from the bag: dropped
        .order_by()
        .page()
        .render()
    )

``when`` / ``between`` / ``set`` look the field up in the bag by its
entity-level name and bind the parameter under its SQL column name.  A field
whose value is absent or does not coerce to the field's type emits nothing.
"""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import Any, Callable, Iterable

from condql.compile.base import CompiledSQL, SQLCompiler
from condql.compile.builder import SqlBuilder
from condql.compile.parameters import ParameterSet
from condql.conditions import converter
from condql.conditions.hash import ASC_KEY, ORDER_BY_KEY, ConditionHash
from condql.conditions.predicates import is_array
from condql.errors import PreconditionError, check_not_empty, check_not_none
from condql.schema.entity import Entity
from condql.schema.refs import FieldRef, TableRef
from condql.schema.table import TableInfo

logger = logging.getLogger(__name__)

#: Bag key suffix holding a per-field :class:`WhereCompare` override.
WHERE_COMPARE_SUFFIX = "_WhereCompare"


class WhereCompare(Enum):
    """Comparison operator emitted by :meth:`TypedSqlBuilder.when`."""

    EQUAL = 0
    NOT_EQUAL = 1
    GREATER = 2
    GREATER_OR_EQUAL = 3
    LESS = 4
    LESS_OR_EQUAL = 5
    LIKE = 6

    @property
    def symbol(self) -> str:
        return _COMPARE_SYMBOLS[self]


_COMPARE_SYMBOLS: dict[WhereCompare, str] = {
    WhereCompare.EQUAL: "=",
    WhereCompare.NOT_EQUAL: "<>",
    WhereCompare.GREATER: ">",
    WhereCompare.GREATER_OR_EQUAL: ">=",
    WhereCompare.LESS: "<",
    WhereCompare.LESS_OR_EQUAL: "<=",
    WhereCompare.LIKE: "LIKE",
}


class OrderType(str, Enum):
    DESC = "DESC"
    ASC = "ASC"


FieldLike = FieldRef | str
EntityLike = type[Entity] | TableInfo | TableRef


def _table_info(entity: EntityLike) -> TableInfo:
    if isinstance(entity, TableInfo):
        return entity
    if isinstance(entity, TableRef):
        return entity._table
    if isinstance(entity, type) and issubclass(entity, Entity):
        return entity.table_info()
    raise PreconditionError(
        f"Expected an Entity subclass, TableInfo or TableRef, got {entity!r}.",
        argument="entity",
    )


def _bindable(value: Any) -> Any:
    """Normalise datetimes and dates to ISO-8601 text for binding."""
    if isinstance(value, date):
        return value.isoformat()
    return value


class TypedSqlBuilder:
    """Field-selector and parameter-bag front end for :class:`SqlBuilder`.

    Args:
        entity: Default table for ``insert`` / ``update`` / ``delete`` /
            ``table`` and for resolving string field names.  An
            :class:`~condql.schema.entity.Entity` subclass, a
            :class:`~condql.schema.table.TableInfo` or a
            :class:`~condql.schema.refs.TableRef`.
        conditions: The parameter bag consulted by ``when``, ``between``,
            ``set``, ``order_by()`` and ``page()``.
        compiler: Dialect compiler passed to the wrapped :class:`SqlBuilder`.
    """

    def __init__(
        self,
        entity: EntityLike | None = None,
        conditions: ConditionHash | None = None,
        compiler: SQLCompiler | None = None,
    ) -> None:
        self._table = _table_info(entity) if entity is not None else None
        self._conditions = conditions
        self._builder = SqlBuilder(compiler)

    # ------------------------------------------------------------------
    # Resolution helpers
    # ------------------------------------------------------------------

    def _require_conditions(self) -> ConditionHash:
        check_not_none(self._conditions, "conditions")
        return self._conditions  # type: ignore[return-value]

    def _require_table(self, entity: EntityLike | None = None) -> TableInfo:
        if entity is not None:
            return _table_info(entity)
        check_not_none(self._table, "entity")
        return self._table  # type: ignore[return-value]

    def _resolve(self, field: FieldLike) -> FieldRef:
        """Return ``field`` as a :class:`FieldRef`.

        Strings (``"o.status"`` or ``"status"``) are looked up on the
        default entity when one is set, so they pick up the declared column
        name and type.
        """
        if isinstance(field, FieldRef):
            return field
        check_not_empty(field, "field")
        ref = FieldRef.parse(field)
        if self._table is not None:
            column = self._table.get_column(ref.name)
            if column is not None:
                return FieldRef(
                    name=column.name,
                    column=column.column,
                    alias=ref.alias,
                    python_type=column.python_type,
                    table=self._table.name,
                )
        return ref

    def _column(self, ref: FieldRef) -> str:
        """Render ``ref`` for the current mode.

        ``alias.column`` in SELECT mode, the quoted column otherwise, and the
        bare column when the field has no alias.
        """
        if not ref.alias:
            return ref.column
        if not self._builder.is_select:
            return self._builder.compiler.quote_identifier(ref.column)
        return f"{ref.alias}.{ref.column}"

    def _placeholder(self, name: str) -> str:
        return self._builder.compiler.param_placeholder(name)

    def _where_compare(self, name: str, compare: WhereCompare | None) -> WhereCompare:
        conditions = self._require_conditions()
        key = name if name.endswith(WHERE_COMPARE_SUFFIX) else f"{name}{WHERE_COMPARE_SUFFIX}"
        ok, override = conditions.parse(key, WhereCompare)
        if ok:
            return override
        return compare or WhereCompare.EQUAL

    def _bind_where(self, condition: str, params: dict[str, Any]) -> None:
        for name, value in params.items():
            self._builder.parameters.add(name, value)
        self._builder.where(condition)

    def _emit_compare(
        self, column_sql: str, parameter: str, value: Any, compare: WhereCompare
    ) -> None:
        placeholder = self._placeholder(parameter)
        if compare is WhereCompare.LIKE and isinstance(value, str):
            self._bind_where(f"{column_sql} LIKE {placeholder}", {parameter: f"%{value}%"})
            return
        if compare is WhereCompare.LIKE:
            compare = WhereCompare.EQUAL
        self._bind_where(f"{column_sql} {compare.symbol} {placeholder}", {parameter: value})

    # ------------------------------------------------------------------
    # Table and statement mode
    # ------------------------------------------------------------------

    def table(
        self, alias: str | TableRef | None = None, entity: EntityLike | None = None
    ) -> TypedSqlBuilder:
        """Add a FROM table.

        Example::

            builder.table("o")                   # default entity as ``o``
            builder.table("c", Customer)         # another entity as ``c``
            builder.table(Customer.ref("c"))     # same, from a TableRef
        """
        if isinstance(alias, TableRef):
            self._builder.table(alias._name, alias._alias)
            return self
        self._builder.table(self._require_table(entity).name, alias)
        return self

    def insert(self, entity: EntityLike | None = None) -> TypedSqlBuilder:
        self._builder.insert(self._require_table(entity).name)
        return self

    def update(self, entity: EntityLike | None = None) -> TypedSqlBuilder:
        self._builder.update(self._require_table(entity).name)
        return self

    def delete(self, entity: EntityLike | None = None) -> TypedSqlBuilder:
        self._builder.delete(self._require_table(entity).name)
        return self

    # ------------------------------------------------------------------
    # INSERT / UPDATE values
    # ------------------------------------------------------------------

    def value(self, field: FieldLike, value: Any) -> TypedSqlBuilder:
        ref = self._resolve(field)
        self._builder.value(self._builder.compiler.quote_identifier(ref.column), value)
        return self

    def value_literal(self, field: FieldLike, literal: str) -> TypedSqlBuilder:
        """INSERT ``field`` with raw SQL text, e.g. ``"NOW()"``."""
        ref = self._resolve(field)
        self._builder.value(ref.column, literal, True)
        return self

    def set(
        self,
        field: FieldLike,
        predicate: Callable[[Any], bool] | None = None,
        *,
        is_extend: bool = True,
    ) -> TypedSqlBuilder:
        """Add ``SET `column`=@column`` when the bag holds the field.

        Args:
            field: The field to assign.
            predicate: Extra acceptance test for the coerced bag value.
            is_extend: When ``False`` the call is a no-op.
        """
        if not is_extend:
            return self
        conditions = self._require_conditions()
        ref = self._resolve(field)
        if not conditions.is_contains(ref.name, ref.python_type, predicate=predicate):
            logger.debug("Dropping SET for %s: not present in conditions", ref.name)
            return self
        self._builder.set(ref.column, conditions.get(ref.name, ref.python_type))
        return self

    def set_value(
        self,
        field: FieldLike,
        value: Any,
        literal: bool = False,
        *,
        is_extend: bool = True,
    ) -> TypedSqlBuilder:
        """Add an explicit SET assignment, independent of the bag."""
        if not is_extend:
            return self
        ref = self._resolve(field)
        self._builder.set(ref.column, value, literal)
        return self

    def duplicate(self, field: FieldLike, value: str) -> TypedSqlBuilder:
        """Add ``ON DUPLICATE KEY UPDATE column=value`` (INSERT only)."""
        column = self._resolve(field).column if isinstance(field, FieldRef) else field
        self._builder.duplicate(column, value)
        return self

    def select_identity(self) -> TypedSqlBuilder:
        self._builder.select_identity()
        return self

    # ------------------------------------------------------------------
    # Bag-driven WHERE
    # ------------------------------------------------------------------

    def when(
        self,
        field: FieldLike,
        predicate: Callable[[Any], bool] | None = None,
        compare: WhereCompare | None = None,
        *,
        is_extend: bool = True,
    ) -> TypedSqlBuilder:
        """Add ``<column> <op> @<column>`` when the bag holds the field.

        The bag is read by the field's entity-level name and the value is
        coerced to the field's type.  A bag entry ``<column>_WhereCompare``
        overrides ``compare``, which defaults to ``EQUAL``.  ``LIKE`` binds
        ``%value%`` for strings and falls back to ``=`` for other values.

        Args:
            field: The field to filter on.
            predicate: Extra acceptance test for the coerced bag value.
            compare: Comparison operator.
            is_extend: When ``False`` the call is a no-op.

        Raises:
            PreconditionError: If the builder has no conditions.
        """
        if not is_extend:
            return self
        conditions = self._require_conditions()
        ref = self._resolve(field)
        if not conditions.is_contains(ref.name, ref.python_type, predicate=predicate):
            logger.debug("Dropping WHERE for %s: not present in conditions", ref.name)
            return self
        value = conditions.get(ref.name, ref.python_type)
        compare = self._where_compare(ref.column, compare)
        self._emit_compare(self._column(ref), ref.column, value, compare)
        return self

    def when_name(
        self,
        field_name: str,
        parameter_name: str | None = None,
        predicate: Callable[[Any], bool] | None = None,
        compare: WhereCompare | None = None,
        type_: Any = object,
        *,
        is_extend: bool = True,
    ) -> TypedSqlBuilder:
        """String-selector form of :meth:`when`.

        ``field_name`` (``"o.status"``, ``"`key`"``) is rendered verbatim.
        The bag key and parameter name default to its last segment; pass
        ``parameter_name`` when the request uses another name, e.g. filter
        ``username`` from a ``FromUsername`` entry.
        """
        if not is_extend:
            return self
        conditions = self._require_conditions()
        check_not_empty(field_name, "field_name")
        parameter = parameter_name or FieldRef.parse(field_name).column
        if not conditions.is_contains(parameter, type_, predicate=predicate):
            logger.debug("Dropping WHERE for %s: not present in conditions", parameter)
            return self
        value = conditions.get(parameter, type_)
        compare = self._where_compare(parameter, compare)
        self._emit_compare(field_name, parameter, value, compare)
        return self

    def between(
        self,
        field: FieldLike,
        predicate: Callable[[Any], bool] | None = None,
        *,
        is_extend: bool = True,
    ) -> TypedSqlBuilder:
        """Add ``<column> BETWEEN @<column>1 AND @<column>2`` from the bag.

        The bag must hold a two-item sequence whose items coerce to the
        field's type; ``predicate`` replaces that check when given.  Date
        and datetime bounds are bound as ISO-8601 strings.
        """
        if not is_extend:
            return self
        conditions = self._require_conditions()
        ref = self._resolve(field)
        item_type = converter.unwrap_optional(ref.python_type)
        list_type = list[Any] if item_type is object else list[item_type]
        check = predicate or is_array(item_type, 2)
        if not conditions.is_contains(ref.name, list_type, predicate=check):
            logger.debug("Dropping BETWEEN for %s: no two-item range in conditions", ref.name)
            return self
        bounds = conditions.get(ref.name, list_type)
        return self.between_values(ref, *bounds)

    def between_values(self, field: FieldLike, *values: Any) -> TypedSqlBuilder:
        """Add a BETWEEN clause with explicit bounds.

        Raises:
            PreconditionError: Unless exactly two values are given.
        """
        if len(values) != 2:
            raise PreconditionError(
                f"BETWEEN requires exactly 2 values, got {len(values)}.", argument="values"
            )
        ref = self._resolve(field)
        low, high = (_bindable(v) for v in values)
        first, second = f"{ref.column}1", f"{ref.column}2"
        self._bind_where(
            f"{self._column(ref)} BETWEEN {self._placeholder(first)} AND {self._placeholder(second)}",
            {first: low, second: high},
        )
        return self

    # ------------------------------------------------------------------
    # Explicit WHERE
    # ------------------------------------------------------------------

    def where(self, condition: str, *args: Any, is_extend: bool = True) -> TypedSqlBuilder:
        self._builder.where(condition, *args, is_extend=is_extend)
        return self

    def where_field(
        self, field: FieldLike, condition: str, *args: Any, is_extend: bool = True
    ) -> TypedSqlBuilder:
        """Add ``<column> <condition>``, e.g. ``where_field(o.amount, "> @min", 10)``."""
        if not is_extend:
            return self
        check_not_empty(condition, "condition")
        ref = self._resolve(field)
        self._builder.where(f"{self._column(ref)} {condition}", *args)
        return self

    def where_in(
        self, field: FieldLike, values: Iterable[Any] | None, *, is_extend: bool = True
    ) -> TypedSqlBuilder:
        """Add ``<column> in (...)``; nothing is added for empty ``values``."""
        items = list(values or ())
        if not is_extend or not items:
            return self
        ref = self._resolve(field)
        name = self._column(ref) if self._builder.is_select else ref.column
        self._builder.where_in(name, items)
        return self

    # ------------------------------------------------------------------
    # JOIN
    # ------------------------------------------------------------------

    def join(
        self, join_field: FieldRef, on: FieldRef | str, join_type: str = ""
    ) -> TypedSqlBuilder:
        """Join ``join_field``'s table under its alias.

        Args:
            join_field: Field of the joined table, e.g. ``c.id``.
            on: Another field (``o.customer_id``, rendered as an equality)
                or condition text appended after ``join_field``.
            join_type: ``"LEFT"``, ``"RIGHT"``, ``"INNER"`` or empty.

        Raises:
            PreconditionError: If ``join_field`` has no table or ``on`` is
                empty.
        """
        table, condition = self._join_parts(join_field, on)
        self._builder.join(table, join_field.alias, condition, join_type)
        return self

    def left_join(self, join_field: FieldRef, on: FieldRef | str) -> TypedSqlBuilder:
        return self.join(join_field, on, "LEFT")

    def right_join(self, join_field: FieldRef, on: FieldRef | str) -> TypedSqlBuilder:
        return self.join(join_field, on, "RIGHT")

    def inner_join(self, join_field: FieldRef, on: FieldRef | str) -> TypedSqlBuilder:
        return self.join(join_field, on, "INNER")

    def straight_join(self, join_field: FieldRef, on: FieldRef | str) -> TypedSqlBuilder:
        table, condition = self._join_parts(join_field, on)
        self._builder.straight_join(table, join_field.alias, condition)
        return self

    def _join_parts(self, join_field: FieldRef, on: FieldRef | str) -> tuple[str, str]:
        check_not_empty(join_field.table, "join_field.table")
        if isinstance(on, FieldRef):
            return join_field.table, f"{join_field.qualified} = {on.qualified}"  # type: ignore[return-value]
        check_not_empty(on, "on")
        return join_field.table, f"{join_field.qualified} {on}"  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # SELECT list, ordering, grouping, limits
    # ------------------------------------------------------------------

    def select(self, *fields: FieldLike) -> TypedSqlBuilder:
        """Add SELECT columns; strings are raw SQL, FieldRefs render ``alias.column``."""
        for field in fields:
            self._builder.select(field.qualified if isinstance(field, FieldRef) else field)
        return self

    def select_as(self, field: FieldLike, alias: str) -> TypedSqlBuilder:
        ref = self._resolve(field)
        self._builder.select(f"{ref.qualified} {alias}")
        return self

    def clear_select(self) -> TypedSqlBuilder:
        self._builder.clear_select()
        return self

    def order_by(
        self, field: FieldLike | None = None, order_type: OrderType = OrderType.DESC
    ) -> TypedSqlBuilder:
        """Order by ``field``, or by the bag's ``OrderBy`` / ``ASC`` pair.

        Without ``field`` the bag must be set; nothing is added when it has
        no ``OrderBy`` entry.
        """
        if field is None:
            conditions = self._require_conditions()
            if conditions.is_contains(ORDER_BY_KEY, str):
                direction = OrderType.ASC if conditions.get(ASC_KEY, bool, False) else OrderType.DESC
                self._builder.order_by(conditions.get(ORDER_BY_KEY, str), direction.value)
            return self
        ref = self._resolve(field)
        self._builder.order_by(self._column(ref), OrderType(order_type).value)
        return self

    def group_by(self, *fields: FieldLike) -> TypedSqlBuilder:
        for field in fields:
            self._builder.group_by(self._column(self._resolve(field)))
        return self

    def limit(self, offset: int, rows: int) -> TypedSqlBuilder:
        self._builder.limit(offset, rows)
        return self

    def for_update(self) -> TypedSqlBuilder:
        self._builder.for_update()
        return self

    def page(
        self,
        page_index: int | None = None,
        page_size: int | None = None,
        emit_count: bool = True,
        totals: str = "",
    ) -> TypedSqlBuilder:
        """Paginate, reading missing arguments from the bag.

        ``PageIndex`` / ``PageSize`` default to 1 / 20 when the bag lacks
        them.
        """
        if page_index is None or page_size is None:
            conditions = self._require_conditions()
            page_index = conditions.page_index if page_index is None else page_index
            page_size = conditions.page_size if page_size is None else page_size
        self._builder.page(page_index, page_size, emit_count, totals)
        return self

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    @property
    def builder(self) -> SqlBuilder:
        return self._builder

    @property
    def conditions(self) -> ConditionHash | None:
        return self._conditions

    @property
    def parameters(self) -> ParameterSet:
        return self._builder.parameters

    def render(self) -> str:
        return self._builder.render()

    def to_sql(self) -> str:
        return self._builder.render()

    def build(self) -> CompiledSQL:
        return self._builder.build()
