"""Billing periods for recurring expenses.

Which period does a payment cover? Weeks here start on Monday and everything
works on civil dates, unlike the month-aligned buckets in ``periods``.
The two calendars are kept apart on purpose.
"""

from datetime import date, datetime, timedelta
from typing import Union

from models import RecurrenceType

DateOrDatetime = Union[date, datetime]


def _as_date(value: DateOrDatetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def calculate_period_start(day: DateOrDatetime, recurrence_type: str) -> date:
    day = _as_date(day)
    if recurrence_type in (RecurrenceType.weekly, RecurrenceType.fortnightly):
        return day - timedelta(days=day.weekday())
    if recurrence_type == RecurrenceType.quarterly:
        return date(day.year, (day.month - 1) // 3 * 3 + 1, 1)
    if recurrence_type == RecurrenceType.yearly:
        return date(day.year, 1, 1)
    # monthly, one-time and anything unrecognized bill per calendar month
    return day.replace(day=1)


def get_period_for_transaction(day: DateOrDatetime, recurrence_type: str) -> str:
    return calculate_period_start(day, recurrence_type).isoformat()


def is_transaction_in_period(
    instant: DateOrDatetime, period_start: DateOrDatetime, period_end: DateOrDatetime
) -> bool:
    return _as_date(period_start) <= _as_date(instant) <= _as_date(period_end)


def get_period_label(day: DateOrDatetime, recurrence_type: str) -> str:
    """Human readable label for the billing period containing ``day``."""
    start = calculate_period_start(day, recurrence_type)
    if recurrence_type == RecurrenceType.weekly:
        return f"Week of {start.day} {start.strftime('%b')}"
    if recurrence_type == RecurrenceType.fortnightly:
        return f"Fortnight of {start.day} {start.strftime('%b')}"
    if recurrence_type == RecurrenceType.quarterly:
        return f"Q{(start.month - 1) // 3 + 1} {start.year}"
    if recurrence_type == RecurrenceType.yearly:
        return str(start.year)
    return start.strftime("%B %Y")
