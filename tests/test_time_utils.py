from datetime import date, datetime

import pytest

from core.time_utils import (
    add_days, format_date_key, format_seconds, minutes_left, minutes_to_seconds,
    pad, parse_date_key, start_of_day,
)


def test_pad():
    assert pad(0) == "00"
    assert pad(7) == "07"
    assert pad(42) == "42"


@pytest.mark.parametrize("seconds, expected", [
    (1500, "25:00"),
    (61, "01:01"),
    (59.9, "00:59"),
    (0, "00:00"),
    (-5, "00:00"),
    (7200, "120:00"),
])
def test_format_seconds(seconds, expected):
    assert format_seconds(seconds) == expected


def test_minutes_to_seconds():
    assert minutes_to_seconds(25) == 1500
    assert minutes_to_seconds(0) == 0


def test_minutes_left_rounds_up():
    assert minutes_left(1500) == 25
    assert minutes_left(1499) == 25
    assert minutes_left(61) == 2
    assert minutes_left(1) == 1
    assert minutes_left(0) == 0


def test_date_keys_are_zero_padded():
    assert format_date_key(date(2024, 1, 5)) == "2024-01-05"
    assert format_date_key(datetime(2024, 12, 31, 23, 59)) == "2024-12-31"


def test_parse_date_key():
    assert parse_date_key("2024-02-29") == date(2024, 2, 29)
    with pytest.raises(ValueError):
        parse_date_key("2023-02-29")
    with pytest.raises(ValueError):
        parse_date_key("2024-13-40")


def test_day_arithmetic_crosses_month_and_year():
    assert add_days(date(2024, 3, 1), -1) == date(2024, 2, 29)
    assert add_days(date(2023, 12, 31), 1) == date(2024, 1, 1)
    assert start_of_day(datetime(2024, 3, 10, 15, 30, 12)) == datetime(2024, 3, 10)
