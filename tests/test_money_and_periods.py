from datetime import date
from decimal import Decimal

import pytest

from service_ledger.constants import DateRangePreset
from service_ledger.exceptions import ValidationError
from service_ledger.utils.money import Money, sum_money
from service_ledger.utils.periods import (
    add_months, days_between, month_bounds, date_range_for_preset, to_date, format_display_date
)


# --------------------------------------------------------------------
# MONEY
# --------------------------------------------------------------------
def test_allocate_gives_remainder_to_first_shares():
    shares = Money(100).allocate(3)
    assert [s.minor_units for s in shares] == [34, 33, 33]
    assert sum_money(shares) == Money(100)


def test_allocate_rejects_bad_input():
    with pytest.raises(ValidationError):
        Money(100).allocate(0)
    with pytest.raises(ValidationError):
        Money(-100).allocate(2)


def test_from_major_parses_strings_and_decimals():
    assert Money.from_major("1,250.50").minor_units == 125050
    assert Money.from_major(Decimal("10")).minor_units == 1000
    assert Money.from_major("500", "JPY").minor_units == 500


def test_from_major_refuses_floats_and_extra_precision():
    with pytest.raises(ValidationError):
        Money.from_major(12.5)
    with pytest.raises(ValidationError):
        Money.from_major("1.005")
    with pytest.raises(ValidationError):
        Money.from_major("abc")


def test_money_requires_integer_minor_units():
    with pytest.raises(ValidationError):
        Money(10.0)
    with pytest.raises(ValidationError):
        Money(True)


def test_currency_mismatch_is_rejected():
    with pytest.raises(ValidationError):
        Money(100, "INR") + Money(100, "USD")


def test_format():
    assert Money(125050).format() == "₹1,250.50"
    assert str(Money(-500, "USD")) == "-$5.00"
    assert Money(7, "JPY").format() == "JPY 7"


# --------------------------------------------------------------------
# PERIODS
# --------------------------------------------------------------------
def test_add_months_clamps_to_month_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 1, 31), 2) == date(2024, 3, 31)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)


def test_days_between_can_be_negative():
    assert days_between(date(2024, 1, 10), date(2024, 1, 3)) == -7


def test_month_bounds():
    assert month_bounds(2, 2024) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(12, 2023) == (date(2023, 12, 1), date(2023, 12, 31))
    with pytest.raises(ValidationError):
        month_bounds(13, 2024)
    with pytest.raises(ValidationError):
        month_bounds(0, 2024)


@pytest.mark.parametrize("preset, expected", [
    (DateRangePreset.CURRENT_MONTH, (date(2024, 1, 1), date(2024, 1, 31))),
    (DateRangePreset.LAST_MONTH, (date(2023, 12, 1), date(2023, 12, 31))),
    (DateRangePreset.LAST_3_MONTHS, (date(2023, 11, 1), date(2024, 1, 31))),
    (DateRangePreset.CURRENT_YEAR, (date(2024, 1, 1), date(2024, 12, 31))),
])
def test_date_range_presets(preset, expected):
    assert date_range_for_preset(preset, date(2024, 1, 15)) == expected


def test_to_date():
    assert to_date("2024-03-05") == date(2024, 3, 5)
    assert to_date(date(2024, 3, 5)) == date(2024, 3, 5)
    assert to_date(None) is None
    assert to_date("2024-03-05T10:30:00") == date(2024, 3, 5)
    assert to_date(" 2024-03-05 10:30:00 ") == date(2024, 3, 5)
    with pytest.raises(ValidationError):
        to_date("2024-01-0199")
    with pytest.raises(ValidationError):
        to_date("05/03/2024")
    with pytest.raises(ValidationError):
        to_date(20240305)


def test_format_display_date():
    assert format_display_date(date(2024, 3, 5)) == "05/03/2024"
    assert format_display_date(None) == "-"
