from datetime import date

import pytest

from service_ledger.business_logic import schedule_generator
from service_ledger.constants import PaymentFrequency
from service_ledger.exceptions import InvalidSchedule, ValidationError
from service_ledger.utils.money import Money


@pytest.mark.parametrize("frequency, count", [
    (PaymentFrequency.FULL, 1),
    (PaymentFrequency.HALF_YEARLY, 2),
    (PaymentFrequency.QUARTERLY, 4),
    (PaymentFrequency.THREE_TIMES, 3),
    (PaymentFrequency.MONTHLY, 12),
])
@pytest.mark.parametrize("total", [0, 1, 100, 99999, 120000])
def test_installments_add_up_to_total(frequency, count, total):
    schedule = schedule_generator.generate(Money(total), date(2024, 3, 10), frequency)
    assert len(schedule) == count
    assert [item.payment_number for item in schedule] == list(range(1, count + 1))
    assert sum(item.amount.minor_units for item in schedule) == total
    assert [item.due_date for item in schedule] == sorted(item.due_date for item in schedule)


def test_monthly_schedule():
    schedule = schedule_generator.generate(Money(120000), date(2024, 1, 15), PaymentFrequency.MONTHLY)
    assert [item.amount.minor_units for item in schedule] == [10000] * 12
    assert [item.due_date for item in schedule] == [date(2024, month, 15) for month in range(1, 13)]


def test_remainder_goes_to_first_installments():
    schedule = schedule_generator.generate(Money(100), date(2024, 1, 1), PaymentFrequency.THREE_TIMES)
    assert [item.amount.minor_units for item in schedule] == [34, 33, 33]
    assert [item.due_date for item in schedule] == [date(2024, 1, 1), date(2024, 5, 1), date(2024, 9, 1)]


def test_quarterly_and_half_yearly_spacing():
    quarterly = schedule_generator.generate(Money(101), date(2024, 1, 1), "quarterly")
    assert [item.amount.minor_units for item in quarterly] == [26, 25, 25, 25]
    assert [item.due_date for item in quarterly] == [
        date(2024, 1, 1), date(2024, 4, 1), date(2024, 7, 1), date(2024, 10, 1)]

    half_yearly = schedule_generator.generate(Money(1000), date(2024, 8, 20), PaymentFrequency.HALF_YEARLY)
    assert [item.due_date for item in half_yearly] == [date(2024, 8, 20), date(2025, 2, 20)]


def test_month_end_start_clamps_each_month_independently():
    schedule = schedule_generator.generate(Money(1200), date(2024, 1, 31), PaymentFrequency.MONTHLY)
    due_dates = [item.due_date for item in schedule]
    assert due_dates[1] == date(2024, 2, 29)
    assert due_dates[2] == date(2024, 3, 31)
    assert due_dates[3] == date(2024, 4, 30)


def test_full_payment_is_due_on_agreement_date():
    schedule = schedule_generator.generate(Money(5000), date(2024, 6, 1), PaymentFrequency.FULL)
    assert len(schedule) == 1
    assert schedule[0].due_date == date(2024, 6, 1)
    assert schedule[0].reminder_date == date(2024, 5, 25)


def test_invalid_inputs():
    with pytest.raises(InvalidSchedule):
        schedule_generator.generate(Money(-1), date(2024, 1, 1), PaymentFrequency.MONTHLY)
    with pytest.raises(InvalidSchedule):
        schedule_generator.generate(1000, date(2024, 1, 1), PaymentFrequency.MONTHLY)
    with pytest.raises(InvalidSchedule):
        schedule_generator.generate(Money(1000), "2024-01-01", PaymentFrequency.MONTHLY)
    with pytest.raises(ValidationError):
        schedule_generator.generate(Money(1000), date(2024, 1, 1), "weekly")


def test_preview_and_describe_split():
    rows = schedule_generator.preview(Money(12000000), date(2024, 1, 15), PaymentFrequency.MONTHLY)
    assert rows[0]["due_date_display"] == "15/01/2024"
    assert rows[0]["amount_display"] == "₹10,000.00"
    assert rows[1]["days_from_agreement"] == 31
    assert schedule_generator.describe_split(Money(12000000), PaymentFrequency.MONTHLY) == "₹10,000.00 × 12 payments"
    assert schedule_generator.describe_split(Money(5000), PaymentFrequency.FULL) == "₹50.00 × 1 payment"
