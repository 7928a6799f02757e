"""Shared pytest fixtures for condQL unit and integration tests."""
from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import Engine, create_engine, text

from condql.conditions.hash import ConditionHash
from condql.config import set_db_config
from tests.fixtures import CUSTOMERS, ORDERS, SQLITE_DDL


@pytest.fixture()
def conditions() -> ConditionHash:
    """An empty parameter bag."""
    return ConditionHash()


@pytest.fixture()
def engine(tmp_path: Path) -> Engine:
    """File-backed SQLite engine seeded with customers and orders."""
    eng = create_engine(f"sqlite:///{tmp_path / 'shop.db'}")
    with eng.begin() as conn:
        for ddl in SQLITE_DDL:
            conn.execute(text(ddl))
        conn.execute(
            text("INSERT INTO customers (id, name, level) VALUES (:id, :name, :level)"),
            [dict(zip(("id", "name", "level"), row)) for row in CUSTOMERS],
        )
        conn.execute(
            text(
                "INSERT INTO orders (id, customer_id, status, name, amount, create_time) "
                "VALUES (:id, :customer_id, :status, :name, :amount, :create_time)"
            ),
            [
                dict(zip(("id", "customer_id", "status", "name", "amount", "create_time"), row))
                for row in ORDERS
            ],
        )
    yield eng
    eng.dispose()


@pytest.fixture(autouse=True)
def _reset_db_config():
    yield
    set_db_config(None)
