"""Recurring transaction rules"""

from datetime import date
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from finance_gateway.domain.models import Frequency, RecurringRule, TransactionDraft


def resolve_frequency(value: Optional[str]) -> Frequency:
    """Unknown or empty frequencies fall back to monthly"""
    try:
        return Frequency((value or "").strip().lower())
    except ValueError:
        return Frequency.MONTHLY


def build_recurring_rule(
    draft: TransactionDraft,
    frequency: Optional[str] = None,
    interval: int = 1,
    end_on: Optional[date] = None,
    occurrences: Optional[int] = None,
) -> RecurringRule:
    """Rule that repeats `draft` starting on its own date"""
    return RecurringRule(
        kind=draft.kind,
        amount=draft.amount,
        account_id=draft.account_id,
        description=draft.description,
        to_account_id=draft.to_account_id,
        category_id=draft.category_id,
        card_id=draft.card_id,
        frequency=resolve_frequency(frequency).value,
        interval=max(interval or 1, 1),
        start_on=draft.occurred_on,
        next_run_on=draft.occurred_on,
        end_on=end_on,
        occurrences=occurrences if occurrences and occurrences > 0 else None,
    )


def occurrence_date(rule: RecurringRule, index: int) -> date:
    """Date of the index-th run (0-based), always measured from start_on"""
    step = rule.interval * index
    frequency = resolve_frequency(rule.frequency)
    if frequency is Frequency.DAILY:
        return rule.start_on + relativedelta(days=step)
    if frequency is Frequency.WEEKLY:
        return rule.start_on + relativedelta(weeks=step)
    if frequency is Frequency.YEARLY:
        return rule.start_on + relativedelta(years=step)
    return rule.start_on + relativedelta(months=step)


def upcoming_occurrences(rule: RecurringRule, until: date) -> List[date]:
    """Run dates from start_on through `until`, honoring end_on and the occurrence cap"""
    last_day = min(until, rule.end_on) if rule.end_on else until
    dates = []
    index = 0
    while rule.occurrences is None or index < rule.occurrences:
        day = occurrence_date(rule, index)
        if day > last_day:
            break
        dates.append(day)
        index += 1
    return dates


def next_occurrence(rule: RecurringRule, after: date) -> Optional[date]:
    """First run strictly after `after`, or None once the rule is exhausted"""
    index = 0
    while rule.occurrences is None or index < rule.occurrences:
        day = occurrence_date(rule, index)
        if rule.end_on and day > rule.end_on:
            return None
        if day > after:
            return day
        index += 1
    return None
