from decimal import Decimal

import pytest

from core.amount import from_milliunits, parse_decimal, to_decimal, to_major_units, to_milliunits


def test_amount_unit_conversions():
    assert to_milliunits(Decimal("-12.34")) == -12_340
    assert from_milliunits(-12_340) == Decimal("-12.34")
    assert to_major_units(150_000, "milliunits") == Decimal(150)
    assert to_major_units("1,250.50") == Decimal("1250.50")
    assert to_major_units(None) == Decimal(0)


@pytest.mark.parametrize("value", ["NaN", "sNaN", float("nan"), "Infinity", Decimal("-Infinity"), "—", "N/A", None, True])
def test_unreadable_amounts(value):
    assert parse_decimal(value) is None
    assert to_decimal(value) == Decimal(0)


@pytest.mark.parametrize(
    "value, expected",
    [("$200", Decimal(200)), ("-1,250.50", Decimal("-1250.50")), (-149.99, Decimal("-149.99")), (0, Decimal(0))],
)
def test_readable_amounts(value, expected):
    assert parse_decimal(value) == expected
