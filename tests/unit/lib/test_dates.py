from datetime import datetime

from taskflow.lib.dates import day_bounds, end_of_day, parse_due

# a Wednesday
NOW = datetime(2025, 3, 12, 10, 30)


def test_day_bounds():
    start, tomorrow, week_end = day_bounds(NOW)
    assert start == datetime(2025, 3, 12)
    assert tomorrow == datetime(2025, 3, 13)
    assert week_end == datetime(2025, 3, 19)


def test_end_of_day():
    assert end_of_day(NOW.date()) == datetime(2025, 3, 12, 23, 59)


def test_relative_words():
    assert parse_due("today", NOW) == datetime(2025, 3, 12, 23, 59)
    assert parse_due("Tomorrow", NOW) == datetime(2025, 3, 13, 23, 59)
    assert parse_due("yesterday", NOW) == datetime(2025, 3, 11, 23, 59)
    assert parse_due("next week", NOW) == datetime(2025, 3, 19, 10, 30)


def test_weekday_names():
    assert parse_due("fri", NOW) == datetime(2025, 3, 14, 23, 59)
    assert parse_due("monday", NOW) == datetime(2025, 3, 17, 23, 59)
    assert parse_due("wed", NOW) == datetime(2025, 3, 12, 23, 59)


def test_iso_date_resolves_to_end_of_day():
    assert parse_due("2025-04-01", NOW) == datetime(2025, 4, 1, 23, 59)


def test_date_with_time():
    assert parse_due("2025-04-01 14:00", NOW) == datetime(2025, 4, 1, 14, 0)
    assert parse_due("2025-04-01 12am", NOW) == datetime(2025, 4, 1, 0, 0)


def test_unparseable_returns_none():
    assert parse_due("whenever", NOW) is None
    assert parse_due("   ", NOW) is None
