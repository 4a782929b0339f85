from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from models import PeriodType
from periods import (
    as_utc,
    get_budget_period_range,
    get_month_key_for_period,
    get_next_period_date,
    get_previous_period_date,
    parse_date_or_instant,
    resolve_timezone,
)

SYDNEY = ZoneInfo("Australia/Sydney")
UTC = timezone.utc


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=UTC)


def test_month_follows_local_calendar_not_utc() -> None:
    # 14:00 UTC on 28 Feb is 01:00 on 1 March in Sydney.
    period = get_budget_period_range(
        _utc(2026, 2, 28, 14), PeriodType.monthly, "Australia/Sydney"
    )
    assert period.label == "March 2026"
    assert period.start == datetime(2026, 3, 1, tzinfo=SYDNEY)
    assert period.end == datetime(2026, 3, 31, 23, 59, 59, 999000, tzinfo=SYDNEY)
    assert get_month_key_for_period(_utc(2026, 2, 28, 14), "Australia/Sydney") == (
        "2026-03-01"
    )


def test_same_instant_in_utc_stays_in_february() -> None:
    period = get_budget_period_range(_utc(2026, 2, 28, 14), PeriodType.monthly, "UTC")
    assert period.label == "February 2026"
    assert period.end == _utc(2026, 2, 28, 23, 59, 59, 999000)


def test_month_boundaries_across_dst_change() -> None:
    # Sydney leaves daylight saving on 5 April 2026.
    period = get_budget_period_range(
        _utc(2026, 4, 10), PeriodType.monthly, "Australia/Sydney"
    )
    assert as_utc(period.start) == _utc(2026, 3, 31, 13)
    assert as_utc(period.end) == _utc(2026, 4, 30, 13, 59, 59, 999000)


@pytest.mark.parametrize(
    "day, start_day, end_day, label",
    [
        (1, 1, 7, "Week of 1 Feb"),
        (7, 1, 7, "Week of 1 Feb"),
        (8, 8, 14, "Week of 8 Feb"),
        (21, 15, 21, "Week of 15 Feb"),
        (28, 22, 28, "Week of 22 Feb"),
    ],
)
def test_weekly_buckets_are_month_aligned(
    day: int, start_day: int, end_day: int, label: str
) -> None:
    period = get_budget_period_range(_utc(2026, 2, day, 12), PeriodType.weekly, "UTC")
    assert period.start == _utc(2026, 2, start_day)
    assert period.end == _utc(2026, 2, end_day, 23, 59, 59, 999000)
    assert period.label == label


def test_last_week_runs_to_end_of_long_month() -> None:
    period = get_budget_period_range(_utc(2026, 1, 30), PeriodType.weekly, "UTC")
    assert period.start == _utc(2026, 1, 22)
    assert period.end == _utc(2026, 1, 31, 23, 59, 59, 999000)


@pytest.mark.parametrize(
    "reference, label",
    [
        (_utc(2026, 2, 3), "1 Feb - 14 Feb"),
        (_utc(2026, 2, 20), "15 Feb - 28 Feb"),
        (_utc(2028, 2, 20), "15 Feb - 29 Feb"),
        (_utc(2026, 3, 31), "15 Mar - 31 Mar"),
    ],
)
def test_fortnight_labels(reference: datetime, label: str) -> None:
    period = get_budget_period_range(reference, PeriodType.fortnightly, "UTC")
    assert period.label == label


def test_leap_february_second_fortnight_ends_on_29th() -> None:
    period = get_budget_period_range(_utc(2028, 2, 16), PeriodType.fortnightly, "UTC")
    assert period.end == _utc(2028, 2, 29, 23, 59, 59, 999000)


@pytest.mark.parametrize(
    "reference, period_type, expected_next, expected_previous",
    [
        (_utc(2026, 1, 25), PeriodType.weekly, _utc(2026, 2, 1), _utc(2026, 1, 15)),
        (_utc(2026, 2, 3), PeriodType.weekly, _utc(2026, 2, 8), _utc(2026, 1, 22)),
        (_utc(2026, 3, 3), PeriodType.fortnightly, _utc(2026, 3, 15), _utc(2026, 2, 15)),
        (_utc(2026, 3, 20), PeriodType.fortnightly, _utc(2026, 4, 1), _utc(2026, 3, 1)),
        (_utc(2026, 12, 5), PeriodType.monthly, _utc(2027, 1, 1), _utc(2026, 11, 1)),
        (_utc(2026, 1, 5), PeriodType.monthly, _utc(2026, 2, 1), _utc(2025, 12, 1)),
    ],
)
def test_navigation_wraps_across_months(
    reference: datetime,
    period_type: PeriodType,
    expected_next: datetime,
    expected_previous: datetime,
) -> None:
    assert get_next_period_date(reference, period_type, "UTC") == expected_next
    assert get_previous_period_date(reference, period_type, "UTC") == expected_previous


def test_next_period_starts_one_millisecond_after_end() -> None:
    reference = _utc(2026, 2, 10)
    for period_type in PeriodType:
        period = get_budget_period_range(reference, period_type, "Australia/Sydney")
        following = get_next_period_date(reference, period_type, "Australia/Sydney")
        assert (following - period.end).total_seconds() == pytest.approx(0.001)


@pytest.mark.parametrize("period_type", list(PeriodType))
@pytest.mark.parametrize(
    "reference",
    [
        _utc(2026, 1, 1),
        _utc(2026, 2, 28, 13, 59),
        _utc(2026, 2, 28, 14),
        _utc(2026, 4, 4, 15, 30),
        _utc(2028, 2, 29, 23, 59),
        _utc(2026, 12, 31, 23, 59, 59),
    ],
)
@pytest.mark.parametrize("tz", ["UTC", "Australia/Sydney", "America/New_York"])
def test_reference_always_inside_its_period(
    reference: datetime, period_type: PeriodType, tz: str
) -> None:
    period = get_budget_period_range(reference, period_type, tz)
    assert period.start <= reference <= period.end


def test_naive_reference_is_treated_as_utc() -> None:
    period = get_budget_period_range(
        datetime(2026, 2, 28, 14), PeriodType.monthly, "Australia/Sydney"
    )
    assert period.label == "March 2026"


def test_default_timezone_is_sydney() -> None:
    assert resolve_timezone().key == "Australia/Sydney"


def test_unknown_timezone_raises() -> None:
    with pytest.raises(ValueError, match="Unknown timezone: Mars/Olympus"):
        resolve_timezone("Mars/Olympus")


def test_parse_date_or_instant() -> None:
    assert parse_date_or_instant("2026-02-10") == date(2026, 2, 10)
    assert parse_date_or_instant("2026-02-10T14:00:00+00:00") == _utc(2026, 2, 10, 14)
    with pytest.raises(ValueError):
        parse_date_or_instant("tomorrow")
