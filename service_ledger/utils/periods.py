# service_ledger/utils/periods.py

import calendar
from datetime import date, datetime, timedelta
from typing import Optional, Tuple, Union

from dateutil.relativedelta import relativedelta

from service_ledger.constants import DATE_FORMAT, DISPLAY_DATE_FORMAT, DateRangePreset
from service_ledger.exceptions import ValidationError


def add_months(start: date, months: int) -> date:
    """Adds calendar months, clamping to the last day when the target month is shorter (Jan 31 + 1 -> Feb 28/29)."""
    return start + relativedelta(months=months)

def add_days(start: date, days: int) -> date:
    return start + timedelta(days=days)

def days_between(start: date, end: date) -> int:
    """Whole days from start to end; negative when end is before start."""
    return (end - start).days

def _check_month(month: int, year: int):
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month!r}.")
    if not isinstance(year, int) or not 1 <= year <= 9999:
        raise ValidationError(f"Invalid year: {year!r}.")

def month_bounds(month: int, year: int) -> Tuple[date, date]:
    """First and last day (inclusive) of the given calendar month."""
    _check_month(month, year)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)

def year_bounds(year: int) -> Tuple[date, date]:
    _check_month(1, year)
    return date(year, 1, 1), date(year, 12, 31)

def is_in_month(value: date, month: int, year: int) -> bool:
    return value.year == year and value.month == month

def date_range_for_preset(preset: DateRangePreset, today: date) -> Tuple[date, date]:
    """Resolves the named ranges offered on the accounting screen relative to `today`."""
    if preset == DateRangePreset.CURRENT_MONTH:
        return month_bounds(today.month, today.year)
    if preset == DateRangePreset.LAST_MONTH:
        last_month = add_months(today.replace(day=1), -1)
        return month_bounds(last_month.month, last_month.year)
    if preset == DateRangePreset.LAST_3_MONTHS:
        start = add_months(today.replace(day=1), -2)
        return start, month_bounds(today.month, today.year)[1]
    if preset == DateRangePreset.CURRENT_YEAR:
        return year_bounds(today.year)
    raise ValidationError(f"Unknown date range preset: {preset!r}")

def to_date(value: Union[date, datetime, str, None]) -> Optional[date]:
    """Normalises a date, datetime or ISO string (YYYY-MM-DD) to a date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        # a time part after 'T' or a space is ignored; the date part must be exact
        text = value.strip().split("T")[0].split(" ")[0]
        try:
            return datetime.strptime(text, DATE_FORMAT).date()
        except ValueError:
            raise ValidationError(f"Invalid date: {value!r}. Expected YYYY-MM-DD.")
    raise ValidationError(f"Invalid date value: {value!r}")

def format_display_date(value: Optional[date]) -> str:
    if value is None:
        return "-"
    return value.strftime(DISPLAY_DATE_FORMAT)
