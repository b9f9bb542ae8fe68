"""
Numeric policy for prices, totals and discounts.

Amounts are whole currency units (CLP has no minor unit). Arithmetic runs on
Decimal and is rounded half-up only where a percentage produces a fraction;
values leave the service as plain JSON numbers.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float]

_UNIT = Decimal("1")
_HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Convert int/float/str/Decimal to Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a monetary amount")
    return Decimal(str(value))


def round_currency(value) -> Decimal:
    """Round half-up to whole currency units."""
    return to_decimal(value).quantize(_UNIT, rounding=ROUND_HALF_UP)


def percent_of(total, percent) -> Decimal:
    """`percent`% of `total`, rounded half-up."""
    return round_currency(to_decimal(total) * to_decimal(percent) / _HUNDRED)


def to_number(value) -> Number:
    """Plain JSON number: integral amounts become int, the rest float."""
    value = to_decimal(value)
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def format_currency(value) -> str:
    """Format as es-CL currency, e.g. 27960 -> '$27.960'."""
    amount = round_currency(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(int(amount)):,}".replace(",", ".")
