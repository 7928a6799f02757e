"""Test fixtures: sample entities and the SQLite DDL they map to."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import Field

from condql.schema.entity import Entity


class OrderStatus(Enum):
    PENDING = 0
    PAID = 1
    SHIPPED = 2


class Order(Entity):
    __tablename__ = "orders"

    id: int | None = None
    customer_id: int | None = None
    status: int | None = None
    name: str | None = None
    amount: Decimal | None = None
    created_at: datetime | None = Field(default=None, serialization_alias="create_time")


class Customer(Entity):
    __tablename__ = "customers"

    id: int | None = None
    name: str | None = None
    level: OrderStatus | None = None


class AuditLog(Entity):
    """No ``__tablename__``: the class name is the table name."""

    id: int | None = None
    message: str | None = None


SQLITE_DDL = [
    """
    CREATE TABLE customers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        level INTEGER
    )
    """,
    """
    CREATE TABLE orders (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_id INTEGER NOT NULL REFERENCES customers(id),
        status INTEGER NOT NULL,
        name TEXT,
        amount REAL,
        create_time TEXT
    )
    """,
]

CUSTOMERS = [
    (1, "alice", 1),
    (2, "bob", 2),
]

ORDERS = [
    (1, 1, 0, "red chair", 10.0, "2024-01-05T10:00:00"),
    (2, 1, 1, "blue chair", 20.0, "2024-02-10T10:00:00"),
    (3, 2, 1, "red table", 30.0, "2024-03-15T10:00:00"),
    (4, 2, 2, "green lamp", 40.0, "2024-04-20T10:00:00"),
    (5, 2, 2, "red lamp", 50.0, "2024-05-25T10:00:00"),
]
