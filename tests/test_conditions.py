"""Unit tests for ConditionHash and the bag predicates."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

import pytest

from condql.conditions.converter import ParseResult
from condql.conditions.hash import ConditionHash
from condql.conditions.predicates import (
    array_not_empty,
    int_greater_zero,
    is_array,
    is_time_between,
    string_not_empty,
)
from tests.fixtures import Order, OrderStatus


class TestMapping:
    def test_keys_are_case_insensitive(self):
        bag = ConditionHash({"Status": "5"})
        assert "status" in bag
        assert "STATUS" in bag
        assert bag["sTaTuS"] == "5"
        assert list(bag) == ["status"]
        assert len(bag) == 1

    def test_push_overwrites_and_chains(self):
        bag = ConditionHash().push("Name", "a").push("NAME", "b")
        assert len(bag) == 1
        assert bag["name"] == "b"

    def test_push_accepts_field_refs(self):
        o = Order.ref("o")
        bag = ConditionHash().push(o.created_at, "2024-01-01T00:00:00")
        assert "created_at" in bag

    def test_remove_is_a_noop_for_absent_keys(self):
        bag = ConditionHash.of("a", 1)
        bag.remove("missing")
        bag.remove("A")
        assert len(bag) == 0

    def test_no_item_assignment(self):
        bag = ConditionHash()
        with pytest.raises(TypeError):
            bag["a"] = 1  # type: ignore[index]


class TestTypedAccess:
    def test_parse_reports_success_and_failure(self):
        bag = ConditionHash({"x": "42", "y": "abc"})
        assert bag.parse("x", int, 0) == ParseResult(True, 42)
        assert bag.parse("y", int, 0) == ParseResult(False, 0)

    def test_get_returns_default_for_missing_and_none(self):
        bag = ConditionHash({"a": None})
        assert bag.get("a", int, 5) == 5
        assert bag.get("missing", int, 6) == 6

    def test_get_with_plain_default_reads_like_a_mapping(self):
        bag = ConditionHash({"Status": "1"})
        assert bag.get("status", 0) == "1"
        assert bag.get("missing", 0) == 0
        assert bag.get("missing", None) is None
        assert bag.get("status") == "1"

    def test_exact_type_is_returned_as_is(self):
        moment = datetime(2024, 1, 1)
        bag = ConditionHash({"at": moment})
        assert bag.get("at", datetime) is moment

    def test_numeric_widening_and_narrowing(self):
        bag = ConditionHash({"amount": 1.5, "n": 2.5, "big": 10})
        assert bag.get("amount", Decimal) == Decimal("1.5")
        assert bag.get("n", int) == 2
        assert bag.get("big", float) == 10.0

    def test_enum_by_name_or_value(self):
        bag = ConditionHash({"a": "shipped", "b": 1, "c": 7})
        assert bag.get("a", OrderStatus) is OrderStatus.SHIPPED
        assert bag.get("b", OrderStatus) is OrderStatus.PAID
        assert bag.get("c", OrderStatus) is None

    def test_composite_round_trip(self):
        bag = ConditionHash({"ids": ["1", "2"]})
        assert bag.get("ids", list[int]) == [1, 2]
        assert bag.get_array("ids", int) == [1, 2]

    def test_optional_targets_are_unwrapped(self):
        bag = ConditionHash({"status": "3", "blank": ""})
        assert bag.get("status", int | None) == 3
        assert bag.parse("blank", int | None, -1) == ParseResult(False, -1)

    def test_coercion_never_raises(self):
        bag = ConditionHash({"weird": object()})
        assert bag.parse("weird", int, 0) == ParseResult(False, 0)
        assert bag.get("weird", list[int]) is None

    def test_is_num(self):
        bag = ConditionHash({"a": 1, "b": "1", "c": True})
        assert bag.is_num("a", float)
        assert not bag.is_num("b", int)
        assert not bag.is_num("c", int)


class TestPresence:
    @pytest.mark.parametrize(
        ("value", "expected_len", "expected"),
        [
            ("", -1, False),
            ("x", -1, True),
            ([], -1, False),
            ([1], -1, True),
            ([1], 2, False),
            ([1, 2], 2, True),
            ([], -2, True),
            (0, -1, True),
            (None, -1, False),
        ],
    )
    def test_is_required(self, value, expected_len, expected):
        bag = ConditionHash({"k": value})
        assert bag.is_required("k", expected_len) is expected

    def test_is_required_missing_key(self):
        assert not ConditionHash().is_required("k")

    def test_is_contains_requires_coercion(self):
        bag = ConditionHash({"status": "5", "name": "x"})
        assert bag.is_contains("status", int)
        assert not bag.is_contains("name", int)
        assert not bag.is_contains("missing", int)

    def test_is_contains_length_policy(self):
        bag = ConditionHash({"pair": [1, 2], "single": [1]})
        assert bag.is_contains("pair", list[int], 2)
        assert not bag.is_contains("single", list[int], 2)

    def test_is_contains_predicate(self):
        bag = ConditionHash({"zero": 0, "one": "1"})
        assert not bag.is_contains("zero", int, predicate=int_greater_zero)
        assert bag.is_contains("one", int, predicate=int_greater_zero)


class TestOrderingAndPaging:
    def test_order_by_first_call_wins(self):
        bag = ConditionHash().order_by("o.id").order_by("o.name", asc=True)
        assert bag["OrderBy"] == "o.id"
        assert bag["asc"] is False

    def test_page_defaults(self):
        bag = ConditionHash()
        assert bag.page_index == 1
        assert bag.page_size == 20

    def test_page_values_are_coerced(self):
        bag = ConditionHash({"PageIndex": "3", "pagesize": 50})
        assert bag.page_index == 3
        assert bag.page_size == 50


@dataclass
class _Filter:
    status: int = 1
    name: str = "bob"
    amount: float = 2.5
    active: bool = True
    note: str | None = None
    tags: list[str] = field(default_factory=lambda: ["a"])


class TestFromObject:
    def test_imports_simple_typed_attributes(self):
        bag = ConditionHash.from_object(_Filter())
        assert dict(bag) == {"status": 1, "name": "bob", "amount": 2.5}

    def test_required_keys_are_always_imported(self):
        bag = ConditionHash.from_object(_Filter(), "tags", "active")
        assert bag["tags"] == ["a"]
        assert bag["active"] is True

    def test_pydantic_models(self):
        bag = ConditionHash.from_object(Order(id=3, name="chair"))
        assert bag["id"] == 3
        assert bag["name"] == "chair"
        assert "status" not in bag


def test_diff_reports_changed_attributes():
    order = Order(status=1, name="")
    bag = ConditionHash({"Status": "2", "Name": "x", "other": 1})
    assert bag.diff(order) == "status : 1 -> 2\nname : <NULL> -> x\n"


def test_diff_is_empty_when_nothing_changed():
    order = Order(status=1)
    assert ConditionHash({"status": "1"}).diff(order) == ""


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def test_string_not_empty():
    assert string_not_empty("a")
    assert not string_not_empty("")
    assert not string_not_empty(None)


def test_is_time_between():
    assert is_time_between([datetime(2024, 1, 1), datetime(2024, 2, 1)])
    assert is_time_between(["2024-01-01T00:00:00", "2024-02-01T00:00:00"])
    assert not is_time_between([datetime(2024, 1, 1)])
    assert not is_time_between("2024-01-01")


def test_is_array():
    pair_of_ints = is_array(int, 2)
    assert pair_of_ints([1, 2])
    assert not pair_of_ints([1, "2"])
    assert not pair_of_ints([1, 2, 3])
    assert not pair_of_ints(None)


def test_array_not_empty_and_int_greater_zero():
    assert array_not_empty([1])
    assert not array_not_empty([])
    assert not array_not_empty(None)
    assert int_greater_zero(1)
    assert not int_greater_zero(0)
