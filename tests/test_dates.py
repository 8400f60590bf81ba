from __future__ import annotations

import datetime as dt

import pytest

from expense_tracker.dates import (
    day_key,
    detect_preset,
    group_key,
    iso_week_key,
    month_key,
    parse_date,
    preset_range,
    range_label,
    week_key,
)


def test_day_and_month_keys() -> None:
    d = dt.date(2024, 3, 7)
    assert day_key(d) == "2024-03-07"
    assert month_key(d) == "2024-03"


@pytest.mark.parametrize(
    "d, expected",
    [
        (dt.date(2024, 1, 1), "2024-W1"),
        (dt.date(2024, 5, 20), "2024-W21"),
        (dt.date(2024, 12, 30), "2024-W53"),
        # Friday 1 Jan 2021 belongs to the week whose Thursday is in 2020
        (dt.date(2021, 1, 1), "2021-W0"),
        (dt.date(2022, 1, 2), "2022-W0"),
    ],
)
def test_week_key_counts_within_calendar_year(d: dt.date, expected: str) -> None:
    assert week_key(d) == expected


@pytest.mark.parametrize(
    "d, expected",
    [
        (dt.date(2024, 1, 1), "2024-W01"),
        (dt.date(2024, 12, 30), "2025-W01"),
        (dt.date(2021, 1, 1), "2020-W53"),
    ],
)
def test_iso_week_key_uses_iso_year(d: dt.date, expected: str) -> None:
    assert iso_week_key(d) == expected


def test_group_key_dispatch_and_unknown_mode() -> None:
    d = dt.date(2024, 5, 20)
    assert group_key(d, "day") == "2024-05-20"
    assert group_key(d, "week") == "2024-W21"
    assert group_key(d, "isoweek") == "2024-W21"
    assert group_key(d, "month") == "2024-05"
    with pytest.raises(ValueError):
        group_key(d, "year")


def test_parse_date_accepts_iso_datetime() -> None:
    assert parse_date("2024-05-20T10:30:00.000Z") == dt.date(2024, 5, 20)
    with pytest.raises(ValueError):
        parse_date("20/05/2024")
    with pytest.raises(ValueError):
        parse_date("2024-05-20garbage")
    assert parse_date("2024-05-20 08:15:00") == dt.date(2024, 5, 20)


def test_preset_ranges() -> None:
    today = dt.date(2024, 3, 14)  # Thursday
    assert preset_range("today", today) == (today, today)
    assert preset_range("yesterday", today) == (dt.date(2024, 3, 13), dt.date(2024, 3, 13))
    assert preset_range("last7days", today) == (dt.date(2024, 3, 8), today)
    assert preset_range("last30days", today) == (dt.date(2024, 2, 14), today)
    assert preset_range("thisWeek", today) == (dt.date(2024, 3, 11), dt.date(2024, 3, 17))
    assert preset_range("lastWeek", today) == (dt.date(2024, 3, 4), dt.date(2024, 3, 10))
    assert preset_range("thisMonth", today) == (dt.date(2024, 3, 1), dt.date(2024, 3, 31))
    assert preset_range("lastMonth", today) == (dt.date(2024, 2, 1), dt.date(2024, 2, 29))
    assert preset_range("thisYear", today) == (dt.date(2024, 1, 1), today)
    assert preset_range("all", today) == (None, None)
    assert preset_range("custom", today) == (None, None)
    with pytest.raises(ValueError):
        preset_range("nextDecade", today)


def test_last_month_wraps_year() -> None:
    assert preset_range("lastMonth", dt.date(2024, 1, 15)) == (dt.date(2023, 12, 1), dt.date(2023, 12, 31))


def test_detect_preset() -> None:
    today = dt.date(2024, 3, 14)
    assert detect_preset(None, None, today) == "all"
    assert detect_preset(dt.date(2024, 3, 1), dt.date(2024, 3, 31), today) == "thisMonth"
    assert detect_preset(dt.date(2024, 3, 8), today, today) == "last7days"
    assert detect_preset(dt.date(2024, 3, 2), dt.date(2024, 3, 5), today) == "custom"


def test_range_label() -> None:
    assert range_label(None, None) == "All Time"
    assert range_label(dt.date(2024, 3, 1), dt.date(2024, 3, 31), "thisMonth") == "This Month"
    assert range_label(dt.date(2024, 1, 1), dt.date(2024, 1, 31)) == "1 Jan 2024 - 31 Jan 2024"
    assert range_label(dt.date(2024, 1, 1), None) == "From 1 Jan 2024"
    assert range_label(None, dt.date(2024, 2, 5)) == "Until 5 Feb 2024"
