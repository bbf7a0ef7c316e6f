"""Unit tests for statement windows and due dates"""

import pytest
from datetime import date, timedelta
from finance_gateway.domain.models import Card, TransactionDraft
from finance_gateway.domain.statements import (
    get_card_due_date,
    get_statement_due_date,
    get_statement_window,
    summarize_statement,
)


def test_window_after_closing_day():
    """Reference past this month's closing: cycle closes next month"""
    window = get_statement_window(10, date(2024, 3, 15))

    assert window.start == date(2024, 3, 11)
    assert window.end == date(2024, 4, 10)
    assert window.closing_date == date(2024, 4, 10)
    assert window.start_label == "2024-03-11"
    assert window.end_label == "2024-04-10"


def test_window_before_closing_day():
    """Reference before this month's closing: cycle closes this month"""
    window = get_statement_window(10, date(2024, 3, 5))

    assert window.start == date(2024, 2, 11)
    assert window.end == date(2024, 3, 10)


def test_window_on_closing_day_belongs_to_closing_cycle():
    window = get_statement_window(10, date(2024, 3, 10))

    assert window.start == date(2024, 2, 11)
    assert window.closing_date == date(2024, 3, 10)


def test_window_closing_day_beyond_short_month():
    """Closing on the 31st closes on the last day of February"""
    february = get_statement_window(31, date(2024, 2, 15))
    assert february.start == date(2024, 2, 1)
    assert february.closing_date == date(2024, 2, 29)

    march = get_statement_window(31, date(2024, 3, 1))
    assert march.start == date(2024, 3, 1)
    assert march.closing_date == date(2024, 3, 31)


def test_window_clamps_closing_day_to_at_least_one():
    window = get_statement_window(0, date(2024, 3, 15))

    assert window.start == date(2024, 3, 2)
    assert window.closing_date == date(2024, 4, 1)


def test_window_crosses_year_boundary():
    window = get_statement_window(25, date(2024, 12, 28))

    assert window.start == date(2024, 12, 26)
    assert window.closing_date == date(2025, 1, 25)


@pytest.mark.parametrize("closing_day", [1, 10, 28, 29, 30, 31])
def test_consecutive_windows_tile_the_calendar(closing_day):
    """Each window starts the day after the previous one ends and contains its reference"""
    reference = date(2023, 1, 1)
    window = get_statement_window(closing_day, reference)

    for _ in range(36):
        assert window.contains(reference)
        following = get_statement_window(closing_day, window.end + timedelta(days=1))
        assert following.start == window.end + timedelta(days=1)
        assert following.start <= following.end
        reference = following.start
        window = following


def test_due_date_same_month_when_due_day_after_closing():
    assert get_statement_due_date(date(2024, 3, 10), 20) == date(2024, 3, 20)


def test_due_date_next_month_when_due_day_equals_closing_day():
    """closing_day == due_day: payment is due one month after the closing"""
    assert get_statement_due_date(date(2024, 3, 10), 10) == date(2024, 4, 10)


def test_due_date_next_month_when_due_day_before_closing():
    assert get_statement_due_date(date(2024, 3, 10), 5) == date(2024, 4, 5)
    assert get_statement_due_date(date(2024, 12, 10), 5) == date(2025, 1, 5)


def test_due_date_short_months():
    # Due day 30 doesn't exist in February: last day instead
    assert get_statement_due_date(date(2024, 1, 31), 30) == date(2024, 2, 29)
    # Closing Feb 29 with due day 30: Feb 30 would collapse onto the closing, so March
    assert get_statement_due_date(date(2024, 2, 29), 30) == date(2024, 3, 30)


def test_due_date_always_after_closing():
    for closing_day in range(1, 32):
        for due_day in range(1, 32):
            for month in range(1, 13):
                closing = get_statement_window(closing_day, date(2024, month, 15)).closing_date
                assert get_statement_due_date(closing, due_day) > closing


def test_card_due_date_for_purchase():
    card = Card(id="card_1", account_id="account_1", closing_day=10, due_day=20)

    assert get_card_due_date(card, date(2024, 3, 15)) == date(2024, 4, 20)
    assert get_card_due_date(card, date(2024, 3, 5)) == date(2024, 3, 20)


def _card_transaction(kind, amount, occurred_on, card_id="card_1", **kwargs) -> TransactionDraft:
    return TransactionDraft(
        kind=kind, amount=amount, occurred_on=occurred_on, account_id="account_1", card_id=card_id, **kwargs
    )


def _bill_payment(amount, occurred_on, is_bill_payment=True) -> TransactionDraft:
    return _card_transaction(
        "transfer",
        amount,
        occurred_on,
        to_account_id="account_1",
        is_bill_payment=is_bill_payment,
    )


def test_summarize_statement_counts_window_purchases_and_payments(card):
    window = get_statement_window(card.closing_day, date(2024, 3, 15))
    transactions = [
        _card_transaction("expense", 1200.0, date(2024, 3, 12)),
        _card_transaction("expense", 300.0, date(2024, 4, 10)),  # closing day is inside
        _card_transaction("expense", 999.0, date(2024, 3, 10)),  # previous cycle
        _card_transaction("expense", 500.0, date(2024, 3, 20), card_id="card_2"),
        _card_transaction("expense", float("nan"), date(2024, 3, 20)),
        _bill_payment(700.0, date(2024, 3, 25)),
        _bill_payment(50.0, date(2024, 3, 26), is_bill_payment=False),
    ]

    summary = summarize_statement(window, transactions, card)

    assert summary.spent == 1500.0
    assert summary.paid == 700.0
    assert summary.outstanding == 800.0
    assert summary.remaining_limit == 4200.0
    assert summary.usage == pytest.approx(0.16)
    assert summary.over_limit is False


def test_summarize_statement_over_limit_caps_usage(card):
    card.limit_amount = 1000.0
    window = get_statement_window(card.closing_day, date(2024, 3, 15))

    summary = summarize_statement(window, [_card_transaction("expense", 1500.0, date(2024, 3, 20))], card)

    assert summary.outstanding == 1500.0
    assert summary.remaining_limit == 0.0
    assert summary.usage == 1.0
    assert summary.over_limit is True


def test_summarize_statement_overpayment_leaves_nothing_outstanding(card):
    window = get_statement_window(card.closing_day, date(2024, 3, 15))
    transactions = [
        _card_transaction("expense", 100.0, date(2024, 3, 20)),
        _bill_payment(250.0, date(2024, 3, 21)),
    ]

    summary = summarize_statement(window, transactions, card)

    assert summary.outstanding == 0.0
    assert summary.remaining_limit == 5000.0
    assert summary.usage == 0.0


def test_summarize_statement_without_limit(card):
    card.limit_amount = 0.0
    window = get_statement_window(card.closing_day, date(2024, 3, 15))

    summary = summarize_statement(window, [_card_transaction("expense", 800.0, date(2024, 3, 20))], card)

    assert summary.outstanding == 800.0
    assert summary.remaining_limit == 0.0
    assert summary.usage == 0.0
    assert summary.over_limit is False


def test_summarize_statement_empty_window(card):
    window = get_statement_window(card.closing_day, date(2024, 3, 15))

    summary = summarize_statement(window, [], card)

    assert (summary.spent, summary.paid, summary.outstanding) == (0.0, 0.0, 0.0)
    assert summary.remaining_limit == 5000.0
