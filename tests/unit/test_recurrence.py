"""Unit tests for recurring rules"""

from dataclasses import replace
from datetime import date
from finance_gateway.domain.models import Frequency, TransactionDraft
from finance_gateway.domain.recurrence import (
    build_recurring_rule,
    next_occurrence,
    occurrence_date,
    resolve_frequency,
    upcoming_occurrences,
)


def _draft(occurred_on=date(2024, 1, 31)):
    return TransactionDraft(
        kind="expense",
        amount=59.9,
        occurred_on=occurred_on,
        account_id="account_1",
        description="Streaming",
    )


def test_build_rule_defaults():
    rule = build_recurring_rule(_draft(), frequency="", interval=0, occurrences=0)

    assert rule.frequency == "monthly"
    assert rule.interval == 1
    assert rule.occurrences is None
    assert rule.start_on == date(2024, 1, 31)
    assert rule.next_run_on == date(2024, 1, 31)
    assert rule.amount == 59.9
    assert rule.description == "Streaming"


def test_resolve_frequency():
    assert resolve_frequency("WEEKLY") is Frequency.WEEKLY
    assert resolve_frequency("biweekly") is Frequency.MONTHLY
    assert resolve_frequency(None) is Frequency.MONTHLY


def test_monthly_occurrences_keep_end_of_month():
    rule = build_recurring_rule(_draft(), frequency="monthly")

    assert upcoming_occurrences(rule, date(2024, 5, 1)) == [
        date(2024, 1, 31),
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
    ]


def test_weekly_occurrences_with_interval():
    rule = build_recurring_rule(_draft(date(2024, 1, 1)), frequency="weekly", interval=2)

    assert upcoming_occurrences(rule, date(2024, 1, 31)) == [date(2024, 1, 1), date(2024, 1, 15), date(2024, 1, 29)]


def test_daily_and_yearly_occurrences():
    daily = build_recurring_rule(_draft(date(2024, 2, 27)), frequency="daily")
    assert upcoming_occurrences(daily, date(2024, 3, 1)) == [
        date(2024, 2, 27),
        date(2024, 2, 28),
        date(2024, 2, 29),
        date(2024, 3, 1),
    ]

    yearly = build_recurring_rule(_draft(date(2024, 2, 29)), frequency="yearly")
    assert upcoming_occurrences(yearly, date(2026, 12, 31)) == [date(2024, 2, 29), date(2025, 2, 28), date(2026, 2, 28)]


def test_occurrences_respect_cap_and_end_date():
    capped = build_recurring_rule(_draft(date(2024, 1, 10)), frequency="monthly", occurrences=2)
    assert upcoming_occurrences(capped, date(2024, 12, 31)) == [date(2024, 1, 10), date(2024, 2, 10)]

    ended = replace(capped, occurrences=None, end_on=date(2024, 3, 9))
    assert upcoming_occurrences(ended, date(2024, 12, 31)) == [date(2024, 1, 10), date(2024, 2, 10)]


def test_next_occurrence():
    rule = build_recurring_rule(_draft(), frequency="monthly", occurrences=3)

    assert next_occurrence(rule, date(2024, 1, 30)) == date(2024, 1, 31)
    assert next_occurrence(rule, date(2024, 1, 31)) == date(2024, 2, 29)
    assert next_occurrence(rule, date(2024, 3, 31)) is None  # all three runs done


def test_yearly_occurrences_return_to_leap_day():
    rule = build_recurring_rule(_draft(date(2024, 2, 29)), frequency="yearly", interval=4)

    assert occurrence_date(rule, 1) == date(2028, 2, 29)
    assert upcoming_occurrences(rule, date(2032, 3, 1)) == [date(2024, 2, 29), date(2028, 2, 29), date(2032, 2, 29)]
