"""Budget period boundaries.

Budget periods are month-aligned and resolved in the budget's timezone:
weekly buckets are days 1-7, 8-14, 15-21 and 22-end of month, fortnightly
buckets are 1-14 and 15-end, monthly is the whole calendar month. Starts are
local midnight and ends are one millisecond before the next bucket's start.

The Monday-based calendar used for expense billing periods lives in
``billing_periods`` and is intentionally separate.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import get_settings
from models import PeriodType

WEEK_START_DAYS = (1, 8, 15, 22)
FORTNIGHT_START_DAYS = (1, 15)


@dataclass(frozen=True)
class PeriodRange:
    start: datetime
    end: datetime
    label: str

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


def resolve_timezone(name: Optional[str] = None) -> ZoneInfo:
    name = name or get_settings().timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name}") from exc


def as_utc(instant: datetime) -> datetime:
    """Treat naive datetimes as UTC instants."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def parse_date_or_instant(text: str) -> Union[date, datetime]:
    """ISO text with a time part becomes a datetime, a bare ``YYYY-MM-DD`` a date."""
    text = text.strip()
    if "T" in text or " " in text:
        return datetime.fromisoformat(text)
    return date.fromisoformat(text)


def local_date(instant: datetime, tz: Union[str, ZoneInfo, None] = None) -> date:
    """Civil date of an instant as observed in ``tz``."""
    zone = tz if isinstance(tz, ZoneInfo) else resolve_timezone(tz)
    return as_utc(instant).astimezone(zone).date()


def midnight_in_timezone(day: date, tz: Union[str, ZoneInfo, None] = None) -> datetime:
    zone = tz if isinstance(tz, ZoneInfo) else resolve_timezone(tz)
    return datetime(day.year, day.month, day.day, tzinfo=zone)


def days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - date(year, month, 1)).days


def _shift_month(year: int, month: int, months: int) -> date:
    total_months = year * 12 + (month - 1) + months
    return date(total_months // 12, total_months % 12 + 1, 1)


def _bucket_start(day: date, period_type: PeriodType) -> date:
    if period_type == PeriodType.weekly:
        starts = WEEK_START_DAYS
    elif period_type == PeriodType.fortnightly:
        starts = FORTNIGHT_START_DAYS
    else:
        return day.replace(day=1)
    start_day = max(s for s in starts if s <= day.day)
    return day.replace(day=start_day)


def _next_bucket_start(day: date, period_type: PeriodType) -> date:
    start = _bucket_start(day, period_type)
    if period_type == PeriodType.weekly:
        starts = WEEK_START_DAYS
    elif period_type == PeriodType.fortnightly:
        starts = FORTNIGHT_START_DAYS
    else:
        return _shift_month(start.year, start.month, 1)
    later = [s for s in starts if s > start.day]
    if later:
        return start.replace(day=later[0])
    return _shift_month(start.year, start.month, 1)


def _previous_bucket_start(day: date, period_type: PeriodType) -> date:
    # The day before a bucket starts always sits in the previous bucket,
    # including the last bucket of the previous month.
    start = _bucket_start(day, period_type)
    return _bucket_start(start - timedelta(days=1), period_type)


def _label(start: date, end: date, period_type: PeriodType) -> str:
    if period_type == PeriodType.weekly:
        return f"Week of {start.day} {start.strftime('%b')}"
    if period_type == PeriodType.fortnightly:
        return f"{start.day} {start.strftime('%b')} - {end.day} {end.strftime('%b')}"
    return start.strftime("%B %Y")


def get_budget_period_range(
    reference: datetime,
    period_type: PeriodType,
    tz: Optional[str] = None,
) -> PeriodRange:
    """Resolve the budget period containing ``reference``.

    The bucket is chosen from the civil date of ``reference`` in ``tz`` (the
    configured default when omitted), so an instant late on the last UTC day
    of a month can already belong to the next month locally.
    """
    period_type = PeriodType(period_type)
    zone = resolve_timezone(tz)
    today = local_date(reference, zone)
    start_day = _bucket_start(today, period_type)
    next_start_day = _next_bucket_start(today, period_type)

    start = midnight_in_timezone(start_day, zone)
    next_start = midnight_in_timezone(next_start_day, zone)
    end = (as_utc(next_start) - timedelta(milliseconds=1)).astimezone(zone)
    last_day = next_start_day - timedelta(days=1)
    return PeriodRange(start, end, _label(start_day, last_day, period_type))


def get_next_period_date(
    reference: datetime, period_type: PeriodType, tz: Optional[str] = None
) -> datetime:
    """Start instant of the period after the one containing ``reference``."""
    period_type = PeriodType(period_type)
    zone = resolve_timezone(tz)
    today = local_date(reference, zone)
    return midnight_in_timezone(_next_bucket_start(today, period_type), zone)


def get_previous_period_date(
    reference: datetime, period_type: PeriodType, tz: Optional[str] = None
) -> datetime:
    """Start instant of the period before the one containing ``reference``."""
    period_type = PeriodType(period_type)
    zone = resolve_timezone(tz)
    today = local_date(reference, zone)
    return midnight_in_timezone(_previous_bucket_start(today, period_type), zone)


def get_month_key_for_period(reference: datetime, tz: Optional[str] = None) -> str:
    """Assignment month key (``YYYY-MM-01``) for the local month of ``reference``."""
    today = local_date(reference, resolve_timezone(tz))
    return f"{today.year:04d}-{today.month:02d}-01"
