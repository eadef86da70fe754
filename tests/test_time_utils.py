from datetime import date, datetime, timedelta

import pytest

from tutoring_tracker.utils import (
    InvalidDate,
    coerce_date,
    days_since,
    format_relative_time,
    format_short_date,
    weekday_name,
)


def test_format_relative_time_minutes():
    now = datetime(2025, 10, 2, 12, 0, 0)
    timestamp = now - timedelta(minutes=30)
    assert format_relative_time(timestamp, now=now) == "30 minutes ago"


def test_format_relative_time_just_now():
    now = datetime(2025, 10, 2, 12, 0, 0)
    timestamp = now - timedelta(seconds=10)
    assert format_relative_time(timestamp, now=now) == "just now"


def test_format_relative_time_for_calendar_days():
    now = datetime(2025, 10, 2, 12, 0, 0)
    assert format_relative_time(date(2025, 10, 2), now=now) == "Today"
    assert format_relative_time(date(2025, 10, 1), now=now) == "Yesterday"
    assert format_relative_time(date(2025, 9, 18), now=now) == "2 weeks ago"


def test_coerce_date_accepts_common_inputs():
    assert coerce_date("2024-06-01") == date(2024, 6, 1)
    assert coerce_date("2024-06-01T08:00:00+00:00") == date(2024, 6, 1)
    assert coerce_date(datetime(2024, 6, 1, 23, 59)) == date(2024, 6, 1)

    with pytest.raises(InvalidDate):
        coerce_date("01/06/2024")


def test_weekday_and_short_date():
    assert weekday_name(date(2024, 6, 1)) == "Saturday"
    assert format_short_date(date(2024, 3, 5)) == "5/3/24"


def test_days_since_floors_whole_days():
    now = datetime(2024, 6, 15, 9, 0)
    assert days_since(date(2024, 6, 15), now=now) == 0
    assert days_since(date(2024, 6, 14), now=now) == 1
    assert days_since(date(2024, 6, 1), now=now) == 14
