"""Credit card statement cycle, due date and usage computation"""

import math
from datetime import date
from typing import Iterable

from dateutil.relativedelta import relativedelta

from finance_gateway.domain.models import Card, StatementSummary, StatementWindow, TransactionDraft, TransactionKind
from finance_gateway.utils.date_utils import add_days


def _clamp_day(day: int) -> int:
    return max(1, min(int(day), 31))


def get_statement_window(closing_day: int, reference_date: date) -> StatementWindow:
    """
    Billing window containing `reference_date` for a card closing on `closing_day`.

    A cycle runs from the day after one closing to, and including, the next
    closing. If the reference day has not passed this month's closing, the
    last closing happened in the previous month.

    Closing days past the end of a short month close on its last day
    (closing_day=31 closes Feb 29 in 2024), computed per month so that
    consecutive windows tile the calendar.

    Example:
        closing_day=10, reference 2024-03-15 -> 2024-03-11 .. 2024-04-10
        closing_day=10, reference 2024-03-05 -> 2024-02-11 .. 2024-03-10
    """
    safe_closing_day = _clamp_day(closing_day)

    if reference_date.day <= safe_closing_day:
        last_closing = reference_date + relativedelta(months=-1, day=safe_closing_day)
    else:
        last_closing = reference_date + relativedelta(day=safe_closing_day)

    next_closing = last_closing + relativedelta(months=1, day=safe_closing_day)
    start = add_days(last_closing, 1)

    return StatementWindow(start=start, end=next_closing, closing_date=next_closing)


def get_statement_due_date(closing_date: date, due_day: int) -> date:
    """
    Payment due date of the statement closing on `closing_date`.

    Due dates always follow the closing: when the due day (clamped to the
    closing month's length) is on or before the closing day, payment is due
    the following month. closing 2024-03-10, due_day=10 -> 2024-04-10.
    """
    safe_due_day = _clamp_day(due_day)
    same_month_due = closing_date + relativedelta(day=safe_due_day)

    if same_month_due <= closing_date:
        return closing_date + relativedelta(months=1, day=safe_due_day)
    return same_month_due


def get_card_due_date(card: Card, reference_date: date) -> date:
    """Due date of the card statement that bills a purchase made on `reference_date`"""
    window = get_statement_window(card.closing_day, reference_date)
    return get_statement_due_date(window.closing_date, card.due_day)


def summarize_statement(
    window: StatementWindow,
    transactions: Iterable[TransactionDraft],
    card: Card,
) -> StatementSummary:
    """
    Spending and payments on `card` within one statement window.

    Rules:
    - Expenses charged to the card inside the window count as spent
    - Bill payments (transfers into the card's account flagged
      is_bill_payment) inside the window count as paid
    - Anything outside the window, on another card, or with a zero or
      non-finite amount is ignored
    - outstanding = max(spent - paid, 0); the remaining limit never goes
      below 0 and usage is capped at 1. A card without a limit reports
      usage 0 and is never over limit.
    """
    spent = 0.0
    paid = 0.0
    for transaction in transactions:
        if transaction.card_id != card.id or not window.contains(transaction.occurred_on):
            continue
        amount = float(transaction.amount or 0)
        if not math.isfinite(amount) or amount == 0:
            continue
        if transaction.kind == TransactionKind.EXPENSE.value:
            spent += amount
        elif (
            transaction.kind == TransactionKind.TRANSFER.value
            and transaction.is_bill_payment
            and transaction.to_account_id == card.account_id
        ):
            paid += amount

    limit_amount = max(float(card.limit_amount or 0), 0.0)
    outstanding = max(spent - paid, 0.0)

    return StatementSummary(
        spent=round(spent, 2),
        paid=round(paid, 2),
        outstanding=round(outstanding, 2),
        remaining_limit=round(max(limit_amount - outstanding, 0.0), 2),
        usage=min(outstanding / limit_amount, 1.0) if limit_amount > 0 else 0.0,
        over_limit=limit_amount > 0 and outstanding > limit_amount,
    )
