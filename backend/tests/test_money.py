from decimal import Decimal

import pytest

from app.core.money import format_currency, percent_of, round_currency, to_decimal, to_number


def test_round_half_up_not_bankers():
    assert round_currency("5242.5") == Decimal("5243")
    assert round_currency("2.5") == Decimal("3")
    assert round_currency("2.4999") == Decimal("2")


def test_percent_of():
    assert percent_of(27960, 10) == Decimal("2796")
    assert percent_of(34950, 15) == Decimal("5243")


def test_to_number_prefers_int():
    assert to_number(Decimal("15.00")) == 15
    assert isinstance(to_number(Decimal("15.00")), int)
    assert to_number(Decimal("12.5")) == 12.5


def test_float_input_has_no_binary_noise():
    assert to_decimal(0.1) == Decimal("0.1")


def test_bool_is_not_money():
    with pytest.raises(TypeError):
        to_decimal(True)


@pytest.mark.parametrize("value, expected", [(27960, "$27.960"), (0, "$0"), (1234567, "$1.234.567"), (-500, "-$500")])
def test_format_currency(value, expected):
    assert format_currency(value) == expected
