from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from utils.date_helpers import (
    day_bounds, format_display_date, friendly_day, from_epoch_ms, month_bounds, month_of,
    month_range, months_between, next_month, parse_display_date, prev_month,
    to_epoch_ms, trailing_months, year_bounds,
)

UTC = timezone.utc


def ms(*args, tz=UTC):
    return to_epoch_ms(datetime(*args, tzinfo=tz))


@pytest.mark.parametrize("month, last_day", [
    ("2024-01", 31),
    ("2024-02", 29),
    ("2023-02", 28),
    ("2024-04", 30),
    ("2024-12", 31),
])
def test_month_range_last_day(month, last_day):
    first, last = month_range(month)
    assert first.day == 1
    assert last.day == last_day


def test_month_bounds_are_inclusive_to_the_millisecond():
    start, end = month_bounds("2024-01", UTC)
    assert start == ms(2024, 1, 1)
    assert end == ms(2024, 1, 31, 23, 59, 59, 999000)


def test_month_edges_fall_in_exactly_one_month():
    jan = month_bounds("2024-01", UTC)
    feb = month_bounds("2024-02", UTC)
    last_of_jan = ms(2024, 1, 31, 12)
    first_of_feb = ms(2024, 2, 1, 0)
    assert jan[0] <= last_of_jan <= jan[1]
    assert not feb[0] <= last_of_jan <= feb[1]
    assert feb[0] <= first_of_feb <= feb[1]
    assert not jan[0] <= first_of_feb <= jan[1]
    assert feb[0] - jan[1] == 1


def test_leap_day_is_inside_february():
    start, end = month_bounds("2024-02", UTC)
    assert start <= ms(2024, 2, 29, 23, 59, 59, 999000) <= end
    assert ms(2024, 3, 1) > end


def test_bounds_follow_reference_zone():
    tz = ZoneInfo("Asia/Tokyo")
    start, _ = month_bounds("2024-03", tz)
    assert from_epoch_ms(start) == datetime(2024, 2, 29, 15, tzinfo=UTC)


def test_day_bounds_single_day():
    start, end = day_bounds(date(2024, 5, 5), date(2024, 5, 5), UTC)
    assert end - start == 24 * 60 * 60 * 1000 - 1


def test_year_bounds():
    start, end = year_bounds(2023, UTC)
    assert start == ms(2023, 1, 1)
    assert end == ms(2023, 12, 31, 23, 59, 59, 999000)


def test_epoch_ms_round_trip_keeps_instant():
    when = datetime(2024, 7, 4, 10, 30, 15, 123000, tzinfo=ZoneInfo("Europe/Berlin"))
    assert from_epoch_ms(to_epoch_ms(when)) == when


def test_naive_datetime_read_in_given_zone():
    tz = ZoneInfo("America/New_York")
    assert to_epoch_ms(datetime(2024, 1, 1), tz) == ms(2024, 1, 1, tz=tz)


def test_trailing_months_crosses_year_newest_first():
    assert trailing_months("2024-02", 4) == ["2024-02", "2024-01", "2023-12", "2023-11"]


def test_months_between_oldest_first_and_empty_when_reversed():
    assert months_between("2023-11", "2024-01") == ["2023-11", "2023-12", "2024-01"]
    assert months_between("2024-02", "2024-01") == []


def test_prev_and_next_month():
    assert prev_month("2024-01") == "2023-12"
    assert next_month("2024-12") == "2025-01"
    with pytest.raises(ValueError):
        next_month("2024-13")


def test_display_date_round_trip_and_iso_fallback():
    d = date(2024, 3, 9)
    assert format_display_date(d, "DD.MM.YYYY") == "09.03.2024"
    assert parse_display_date("09.03.2024", "DD.MM.YYYY") == d
    assert parse_display_date("2024-03-09", "MM/DD/YYYY") == d
    assert format_display_date(None) == ""


def test_friendly_day_labels():
    ref = date(2024, 3, 5)
    assert friendly_day(ref, ref).startswith("Today")
    assert friendly_day(ref - timedelta(days=1), ref).startswith("Yesterday")
    assert friendly_day(date(2023, 12, 30), ref) == "Dec 30 2023 Saturday"


def test_months_before_year_1000_keep_four_digit_years():
    assert month_of(datetime(202, 3, 1, tzinfo=UTC), UTC) == "0202-03"
    assert months_between("0202-11", "0203-01") == ["0202-11", "0202-12", "0203-01"]
    assert next_month("0999-12") == "1000-01"
