from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional, Union

from models import RecurrenceType
from periods import days_in_month

WEEKLY_INTERVAL_DAYS = {
    RecurrenceType.weekly: 7,
    RecurrenceType.fortnightly: 14,
}

MONTHLY_INTERVAL_MONTHS = {
    RecurrenceType.monthly: 1,
    RecurrenceType.quarterly: 3,
    RecurrenceType.yearly: 12,
}

AnchorValue = Union[str, date, datetime, None]


def parse_anchor(value: AnchorValue, tz: tzinfo) -> Optional[datetime]:
    """Turn an anchor (ISO string, date or datetime) into an aware datetime.

    Date-only anchors and naive datetimes are read as civil time in ``tz``.
    Returns None for empty or unparseable values.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz)
    try:
        return parsed.astimezone(tz)
    except OverflowError:
        # Shifting into tz would leave the year 1..9999 range.
        return None


def _clamped_occurrence(
    anchor: datetime, year: int, month: int, tz: tzinfo
) -> datetime:
    day = min(anchor.day, days_in_month(year, month))
    return datetime(
        year,
        month,
        day,
        anchor.hour,
        anchor.minute,
        anchor.second,
        anchor.microsecond,
        tzinfo=tz,
    )


def _on_date(anchor: datetime, day: date, tz: tzinfo) -> datetime:
    return datetime(
        day.year,
        day.month,
        day.day,
        anchor.hour,
        anchor.minute,
        anchor.second,
        anchor.microsecond,
        tzinfo=tz,
    )


def _count_day_interval(
    anchor: datetime, interval: int, start: datetime, end: datetime, tz: tzinfo
) -> int:
    # Snap the anchor onto the first grid date on or after the period's
    # first local day, whatever the distance between the two.
    start_day = start.astimezone(tz).date()
    offset = (start_day - anchor.date()).days
    try:
        candidate = start_day + timedelta(days=(-offset) % interval)
        occurrence = _on_date(anchor, candidate, tz)
        if occurrence < start:
            candidate += timedelta(days=interval)
            occurrence = _on_date(anchor, candidate, tz)
    except OverflowError:
        return 0

    count = 0
    while occurrence <= end:
        count += 1
        try:
            candidate += timedelta(days=interval)
        except OverflowError:
            # No occurrences exist past date.max.
            break
        occurrence = _on_date(anchor, candidate, tz)
    return count


def _count_month_interval(
    anchor: datetime, interval: int, start: datetime, end: datetime, tz: tzinfo
) -> int:
    local_start = start.astimezone(tz)
    local_end = end.astimezone(tz)
    anchor_month = anchor.year * 12 + anchor.month - 1
    first_month = local_start.year * 12 + local_start.month - 1
    last_month = local_end.year * 12 + local_end.month - 1

    count = 0
    for month_index in range(first_month, last_month + 1):
        if (month_index - anchor_month) % interval != 0:
            continue
        occurrence = _clamped_occurrence(
            anchor, month_index // 12, month_index % 12 + 1, tz
        )
        if start <= occurrence <= end:
            count += 1
    return count


def count_occurrences_in_period(
    anchor_date: AnchorValue,
    recurrence_type: Union[RecurrenceType, str],
    period_start: datetime,
    period_end: datetime,
) -> int:
    """Count how many times a recurring item falls inside ``[start, end]``.

    ``anchor_date`` is any known occurrence (usually the next due date); it may
    lie years before or after the period. Weekly and fortnightly items repeat
    on the anchor's weekday, monthly/quarterly/yearly ones on the anchor's day
    of month clamped to the target month's length. Civil dates are taken in the
    period's timezone. Invalid anchors and unknown recurrence types count 0.
    """
    try:
        recurrence_type = RecurrenceType(recurrence_type)
    except ValueError:
        return 0

    tz = period_start.tzinfo or timezone.utc
    if period_start.tzinfo is None:
        period_start = period_start.replace(tzinfo=tz)
    if period_end.tzinfo is None:
        period_end = period_end.replace(tzinfo=tz)

    anchor = parse_anchor(anchor_date, tz)
    if anchor is None:
        return 0

    if recurrence_type == RecurrenceType.one_time:
        return 1 if period_start <= anchor <= period_end else 0

    if recurrence_type in WEEKLY_INTERVAL_DAYS:
        return _count_day_interval(
            anchor,
            WEEKLY_INTERVAL_DAYS[recurrence_type],
            period_start,
            period_end,
            tz,
        )

    return _count_month_interval(
        anchor,
        MONTHLY_INTERVAL_MONTHS[recurrence_type],
        period_start,
        period_end,
        tz,
    )
