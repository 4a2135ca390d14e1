# service_ledger/business_logic/schedule_generator.py

from dataclasses import dataclass
from datetime import date
from typing import List, Union
import logging

from service_ledger.config import REMINDER_LEAD_DAYS
from service_ledger.constants import PaymentFrequency, FREQUENCY_PLAN
from service_ledger.exceptions import InvalidSchedule, ValidationError
from service_ledger.utils.money import Money
from service_ledger.utils.periods import add_months, add_days, days_between, format_display_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduledInstallment:
    payment_number: int
    due_date: date
    amount: Money

    @property
    def reminder_date(self) -> date:
        return add_days(self.due_date, -REMINDER_LEAD_DAYS)


def parse_frequency(frequency: Union[PaymentFrequency, str]) -> PaymentFrequency:
    if isinstance(frequency, PaymentFrequency):
        return frequency
    try:
        return PaymentFrequency(frequency)
    except ValueError:
        raise ValidationError(f"Unknown payment frequency: {frequency!r}", entity="agreement")


def installment_plan(frequency: Union[PaymentFrequency, str]):
    """(number of installments, months between installments) for the frequency."""
    return FREQUENCY_PLAN[parse_frequency(frequency)]


def generate(total: Money, agreement_date: date, frequency: Union[PaymentFrequency, str]) -> List[ScheduledInstallment]:
    """
    Splits `total` into the installments of `frequency`.

    Every due date is computed from the agreement date itself (start + i*spacing
    months) rather than from the previous due date, so a 31st start clamps to
    each short month independently instead of drifting to the 28th for good.
    The remainder of the integer split goes to the first installments, one
    minor unit each. Pure: nothing is stored.
    """
    if not isinstance(total, Money):
        raise InvalidSchedule(f"Schedule total must be Money in integer minor units, got {total!r}.")
    if total.is_negative():
        raise InvalidSchedule(f"Schedule total cannot be negative: {total.minor_units}.")
    if not isinstance(agreement_date, date):
        raise InvalidSchedule(f"Agreement date must be a date, got {agreement_date!r}.")

    count, spacing_months = installment_plan(frequency)
    if count <= 0:
        raise InvalidSchedule(f"Frequency {frequency} yields no installments.")

    shares = total.allocate(count)
    schedule = [
        ScheduledInstallment(
            payment_number=index + 1,
            due_date=add_months(agreement_date, index * spacing_months),
            amount=share,
        )
        for index, share in enumerate(shares)
    ]
    logger.debug(f"Generated {len(schedule)} installments for total {total.minor_units} ({frequency}) from {agreement_date}.")
    return schedule


def preview(total: Money, agreement_date: date, frequency: Union[PaymentFrequency, str]) -> List[dict]:
    """Rows for the payment-plan preview shown before an agreement is saved."""
    return [
        {
            "payment_number": item.payment_number,
            "due_date": item.due_date,
            "due_date_display": format_display_date(item.due_date),
            "amount": item.amount.minor_units,
            "amount_display": item.amount.format(),
            "reminder_date": item.reminder_date,
            "reminder_date_display": format_display_date(item.reminder_date),
            "days_from_agreement": days_between(agreement_date, item.due_date),
        }
        for item in generate(total, agreement_date, frequency)
    ]


def describe_split(total: Money, frequency: Union[PaymentFrequency, str]) -> str:
    """e.g. "₹10,000.00 × 12 payments"; with a remainder the first (largest) share is shown."""
    count, _ = installment_plan(frequency)
    first_share = total.allocate(count)[0]
    noun = "payment" if count == 1 else "payments"
    return f"{first_share.format()} × {count} {noun}"
