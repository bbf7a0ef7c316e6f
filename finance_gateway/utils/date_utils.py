"""Date manipulation utilities

Month arithmetic clamps to the last valid day of the target month:
Jan 31 + 1 month is Feb 28 (or 29), never Mar 2.
"""

from datetime import date, timedelta
from typing import Tuple
from dateutil.relativedelta import relativedelta


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping the day-of-month when it doesn't exist"""
    return from_date + relativedelta(months=months)


def day_of_month(any_day: date, day: int) -> date:
    """Same month as `any_day`, on `day` or the month's last day if shorter"""
    return any_day + relativedelta(day=day)


def add_days(from_date: date, days: int) -> date:
    return from_date + timedelta(days=days)


def to_date_string(value: date) -> str:
    """Canonical YYYY-MM-DD representation used at the persistence boundary"""
    return value.isoformat()


def parse_date(value, default: date) -> date:
    """
    Parse a YYYY-MM-DD string (or pass a date through).

    Empty or unparseable input returns `default`; callers supply it, this
    never reads the clock.
    """
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return default
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return default


def month_start(value: date) -> date:
    return value.replace(day=1)


def get_month_range(target: date) -> Tuple[date, date]:
    """First and last day of the month containing `target`"""
    return month_start(target), day_of_month(target, 31)


def remaining_days_in_month(today: date) -> int:
    """Days left in the month counting today: 1 on the last day"""
    return (day_of_month(today, 31) - today).days + 1


def normalize_month(value: str, today: date) -> date:
    """
    Resolve a budget month key to the first day of that month.

    "" -> current month, "2024-03" -> 2024-03-01, "2024-03-17" -> 2024-03-01
    """
    value = (value or "").strip()
    if not value:
        return month_start(today)
    if len(value) == 7:
        value = f"{value}-01"
    return month_start(date.fromisoformat(value))
