# core/amount.py
"""
Amount units.

Intent params and extracted records carry amounts in MAJOR currency units
(e.g. 150.00). The ledger stores MILLIUNITS (1 major unit = 1000 milliunits).
Every comparison against a threshold happens in major units.
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

MILLIUNITS_PER_UNIT = Decimal(1000)


class AmountUnit(str, Enum):
    MAJOR = "major"
    MILLIUNITS = "milliunits"


def parse_decimal(value: Any) -> Optional[Decimal]:
    """
    Parse a loosely typed amount ("$200", -50, "1,250.5") into Decimal.
    Returns None for anything unparseable or non-finite (NaN, Infinity).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        text = str(value).strip().replace(",", "").replace("$", "")
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
    return amount if amount.is_finite() else None


def to_decimal(value: Any) -> Decimal:
    """Like parse_decimal, but unparseable values become 0."""
    amount = parse_decimal(value)
    return Decimal(0) if amount is None else amount


def to_major_units(value: Any, unit: AmountUnit | str | None = None) -> Decimal:
    amount = to_decimal(value)
    if unit == AmountUnit.MILLIUNITS or unit == AmountUnit.MILLIUNITS.value:
        return amount / MILLIUNITS_PER_UNIT
    return amount


def to_milliunits(value: Any) -> int:
    return int((to_decimal(value) * MILLIUNITS_PER_UNIT).to_integral_value())


def from_milliunits(value: int) -> Decimal:
    return (Decimal(value) / MILLIUNITS_PER_UNIT).quantize(Decimal("0.01"))
