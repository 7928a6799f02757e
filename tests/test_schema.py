"""Unit tests for entities, field selectors and the SQLAlchemy converters."""

from __future__ import annotations

from datetime import datetime

import pydantic
import pytest
from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from condql.errors import PreconditionError
from condql.schema.entity import Entity
from condql.schema.converters import table_from_sqlalchemy, tables_from_engine
from condql.schema.refs import FieldRef, TableRef
from condql.schema.table import ColumnInfo, TableInfo
from tests.fixtures import AuditLog, Order


class TestEntity:
    def test_table_name(self):
        assert Order.table_name() == "orders"
        assert AuditLog.table_name() == "AuditLog"

    def test_serialization_alias_overrides_column(self):
        column = Order.table_info().get_column("created_at")
        assert column is not None
        assert column.column == "create_time"
        assert column.python_type == (datetime | None)

    def test_column_names(self):
        assert Order.table_info().column_names == [
            "id", "customer_id", "status", "name", "amount", "create_time",
        ]

    def test_get_column_is_case_insensitive(self):
        assert Order.table_info().get_column("CREATED_AT").name == "created_at"
        assert Order.table_info().get_column("nope") is None


class TestRefs:
    def test_field_resolution(self):
        o = Order.ref("o")
        status = o.status
        assert status == FieldRef(
            name="status", column="status", alias="o", python_type=int | None, table="orders"
        )
        assert status.qualified == "o.status"
        assert str(o.created_at) == "o.create_time"

    def test_unknown_field_raises(self):
        with pytest.raises(PreconditionError) as exc_info:
            Order.ref("o").missing
        assert exc_info.value.argument == "field"

    def test_private_names_are_not_fields(self):
        with pytest.raises(AttributeError):
            Order.ref("o")._missing

    def test_table_ref_name(self):
        ref = Order.ref("o")
        assert isinstance(ref, TableRef)
        assert ref._name == "orders"
        assert ref._alias == "o"
        assert repr(ref) == "TableRef('orders', alias='o')"

    def test_name_field_resolves_to_column(self):
        name = Order.ref("o").name
        assert isinstance(name, FieldRef)
        assert (name.column, name.qualified) == ("name", "o.name")

    def test_fields_named_like_ref_members(self):
        class Tag(Entity):
            __tablename__ = "tags"

            table: str | None = None
            alias: str | None = None
            field: str | None = None
            name: str | None = None

        t = Tag.ref("t")
        for member in ("table", "alias", "field", "name"):
            ref = getattr(t, member)
            assert isinstance(ref, FieldRef)
            assert ref.qualified == f"t.{member}"

    def test_unaliased_field(self):
        assert Order.ref().status.qualified == "status"

    def test_parse(self):
        ref = FieldRef.parse("`o`.`status`", int)
        assert (ref.alias, ref.column, ref.python_type) == ("o", "status", int)
        assert FieldRef.parse("status").alias is None
        with pytest.raises(PreconditionError):
            FieldRef.parse("")

    def test_with_alias_and_identifier(self):
        ref = FieldRef.parse("status").with_alias("x")
        assert ref.qualified == "x.status"
        assert ref.is_identifier
        assert not FieldRef(name="n", column="COUNT(0)").is_identifier

    def test_table_info_ref(self):
        info = TableInfo(name="t", columns=[ColumnInfo(name="a", column="a_col")])
        assert info.ref("x").a.qualified == "x.a_col"

    def test_column_info_forbids_extra_fields(self):
        with pytest.raises(pydantic.ValidationError):
            ColumnInfo(name="a", column="a", colour="red")


# ---------------------------------------------------------------------------
# SQLAlchemy converters
# ---------------------------------------------------------------------------


class _Base(DeclarativeBase):
    pass


class _OrderRow(_Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    created_at: Mapped[datetime] = mapped_column("create_time", DateTime)


def test_table_from_sqlalchemy_table():
    table = Table(
        "orders",
        MetaData(),
        Column("id", Integer, primary_key=True),
        Column("name", String(20), nullable=False),
        Column("create_time", DateTime, nullable=True),
    )
    info = table_from_sqlalchemy(table)
    assert info.name == "orders"
    assert info.column_names == ["id", "name", "create_time"]
    assert info.get_column("id").python_type is int
    assert info.get_column("name").nullable is False


def test_table_from_declarative_model_keeps_attribute_names():
    info = table_from_sqlalchemy(_OrderRow)
    column = info.get_column("created_at")
    assert column.column == "create_time"
    assert column.python_type is datetime


def test_tables_from_engine(engine):
    tables = tables_from_engine(engine, include_tables=["customers"])
    assert "customers" in tables
    assert tables["customers"].column_names == ["id", "name", "level"]
