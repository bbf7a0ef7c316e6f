"""Unit tests for calendar arithmetic"""

import pytest
from datetime import date
from finance_gateway.utils.date_utils import (
    add_days,
    add_months,
    day_of_month,
    get_month_range,
    normalize_month,
    parse_date,
    remaining_days_in_month,
    to_date_string,
)


def test_add_months_clamps_to_last_day_of_short_month():
    """Jan 31 + 1 month lands on the last day of February"""
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)  # leap year
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 3, 31), 1) == date(2024, 4, 30)


def test_add_months_crosses_year_boundaries():
    assert add_months(date(2024, 12, 15), 1) == date(2025, 1, 15)
    assert add_months(date(2024, 1, 15), -13) == date(2022, 12, 15)
    assert add_months(date(2024, 3, 31), -1) == date(2024, 2, 29)


def test_add_days():
    assert add_days(date(2024, 2, 28), 1) == date(2024, 2, 29)
    assert add_days(date(2024, 3, 1), -1) == date(2024, 2, 29)


def test_parse_date_falls_back_to_default():
    default = date(2024, 3, 15)

    assert parse_date("2024-03-05", default) == date(2024, 3, 5)
    assert parse_date("2024-03-05T10:00:00", default) == date(2024, 3, 5)
    assert parse_date("", default) == default
    assert parse_date(None, default) == default
    assert parse_date("05/03/2024", default) == default
    assert parse_date(date(2020, 1, 1), default) == date(2020, 1, 1)


def test_month_range_and_labels():
    start, end = get_month_range(date(2024, 2, 10))
    assert start == date(2024, 2, 1)
    assert end == date(2024, 2, 29)
    assert to_date_string(end) == "2024-02-29"


def test_normalize_month():
    today = date(2024, 3, 15)

    assert normalize_month("", today) == date(2024, 3, 1)
    assert normalize_month("2024-07", today) == date(2024, 7, 1)
    assert normalize_month("2024-07-19", today) == date(2024, 7, 1)

    with pytest.raises(ValueError):
        normalize_month("2024-13", today)


@pytest.mark.parametrize(
    "any_day, day, expected",
    [
        (date(2024, 2, 10), 31, date(2024, 2, 29)),
        (date(2023, 2, 10), 30, date(2023, 2, 28)),
        (date(2024, 4, 30), 31, date(2024, 4, 30)),
        (date(2024, 3, 31), 10, date(2024, 3, 10)),
    ],
)
def test_day_of_month_clamps(any_day, day, expected):
    assert day_of_month(any_day, day) == expected


def test_remaining_days_in_month_counts_today():
    assert remaining_days_in_month(date(2024, 3, 15)) == 17
    assert remaining_days_in_month(date(2024, 2, 29)) == 1
    assert remaining_days_in_month(date(2024, 2, 1)) == 29
