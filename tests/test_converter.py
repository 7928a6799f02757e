"""Unit tests for the exception-free coercion helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from condql.conditions import converter
from condql.conditions.converter import ParseResult
from tests.fixtures import Order, OrderStatus


def test_parse_result_unpacks_like_a_tuple():
    ok, value = ParseResult(True, 42)
    assert ok is True
    assert value == 42


# ---------------------------------------------------------------------------
# Type inspection
# ---------------------------------------------------------------------------


def test_unwrap_optional():
    assert converter.unwrap_optional(int | None) is int
    assert converter.unwrap_optional(str) is str


def test_is_type_like():
    for target in (int, object, OrderStatus, int | None, list[int], Any):
        assert converter.is_type_like(target)
    for target in (0, "x", None, [1]):
        assert not converter.is_type_like(target)


def test_bool_is_not_numeric():
    assert converter.is_numeric_type(int)
    assert converter.is_numeric_type(Decimal)
    assert not converter.is_numeric_type(bool)
    assert not converter.is_numeric_type(list[int])


def test_composite_types():
    assert converter.is_composite_type(list[int])
    assert converter.is_composite_type(dict[str, int])
    assert converter.is_composite_type(Order)
    assert not converter.is_composite_type(str)
    assert not converter.is_composite_type(int)


# ---------------------------------------------------------------------------
# Saturating narrowing and defaulting conversions
# ---------------------------------------------------------------------------


def test_saturating_clamps():
    assert converter.to_byte(300) == 255
    assert converter.to_byte(-5) == 0
    assert converter.to_short(40000) == 32767
    assert converter.to_short(-40000) == -32768
    assert converter.to_int32(2**40) == 2**31 - 1


def test_to_int_defaults_on_failure():
    assert converter.to_int("42") == 42
    assert converter.to_int("abc", 7) == 7
    assert converter.to_int(None, 3) == 3
    assert converter.to_int(str(2**31)) == 0


def test_to_int_with_base():
    assert converter.to_int("ff", base=16) == 255
    assert converter.to_int("101", base=2) == 5


def test_to_long_and_to_int16_ranges():
    assert converter.to_long(str(2**40)) == 2**40
    assert converter.to_int16("40000", -1) == -1


def test_to_double():
    assert converter.to_double("1.5") == 1.5
    assert converter.to_double("x", 2.0) == 2.0


def test_to_str_empty_handling():
    assert converter.to_str(None, "d") == "d"
    assert converter.to_str("", "d") == "d"
    assert converter.to_str("", "d", disallow_empty=False) == ""
    assert converter.to_str(12) == "12"


def test_to_datetime():
    assert converter.to_datetime("2024-01-05T10:00:00") == datetime(2024, 1, 5, 10)
    assert converter.to_datetime("not a date") is None


# ---------------------------------------------------------------------------
# parse_* helpers
# ---------------------------------------------------------------------------


def test_parse_number_rounds_half_to_even():
    assert converter.parse_number(2.5, int) == ParseResult(True, 2)
    assert converter.parse_number(Decimal("3.5"), int) == ParseResult(True, 4)


def test_parse_number_widening_to_decimal():
    assert converter.parse_number(1.5, Decimal) == ParseResult(True, Decimal("1.5"))


def test_parse_number_failure_returns_default():
    assert converter.parse_number("abc", int, -1) == ParseResult(False, -1)
    assert converter.parse_number(float("nan"), int, -1) == ParseResult(False, -1)


def test_parse_enum_by_name_number_and_value():
    assert converter.parse_enum("PAID", OrderStatus).value is OrderStatus.PAID
    assert converter.parse_enum("shipped", OrderStatus).value is OrderStatus.SHIPPED
    assert converter.parse_enum("1", OrderStatus).value is OrderStatus.PAID
    assert converter.parse_enum(0, OrderStatus).value is OrderStatus.PENDING


def test_parse_enum_rejects_undefined_members():
    assert converter.parse_enum(9, OrderStatus) == ParseResult(False, None)
    assert converter.parse_enum("refunded", OrderStatus) == ParseResult(False, None)


def test_parse_composite_round_trip():
    assert converter.parse_composite(("1", "2"), list[int]) == ParseResult(True, [1, 2])
    assert converter.parse_composite("x", list[int], []) == ParseResult(False, [])


def test_parse_composite_into_model():
    ok, order = converter.parse_composite({"id": 1, "status": 2}, Order)
    assert ok
    assert order.id == 1
    assert order.status == 2


def test_parse_dispatch():
    assert converter.parse(None, int, 0) == ParseResult(False, 0)
    assert converter.parse("", int | None) == ParseResult(False, None)
    assert converter.parse(5, str) == ParseResult(True, "5")
    assert converter.parse(True, int) == ParseResult(True, 1)
    assert converter.parse("7", object) == ParseResult(True, "7")


def test_parse_never_raises_on_unconvertible_objects():
    assert converter.parse(object(), int, 0) == ParseResult(False, 0)
    assert converter.parse(object(), datetime) == ParseResult(False, None)


# ---------------------------------------------------------------------------
# Misc helpers
# ---------------------------------------------------------------------------


def test_split_to_ints_skips_garbage():
    assert converter.split_to_ints("1,2,x,3") == [1, 2, 3]
    assert converter.split_to_ints("1;2|3", ";", "|") == [1, 2, 3]


def test_concat():
    assert converter.concat([1, "a", 2], "-") == "1-a-2"


def test_unix_time_helpers():
    assert converter.from_unix_millis(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert converter.to_unix(datetime(1970, 1, 1, 0, 0, 10, tzinfo=timezone.utc)) == 10
