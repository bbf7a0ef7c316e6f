"""Unit tests for installment series generation and continuation"""

import pytest
from dataclasses import replace
from datetime import date
from finance_gateway.domain.installments import (
    continue_installments,
    extract_installment_ratio,
    generate_installments,
    link_installments_to_parent,
    upsert_installment_ratio,
)
from finance_gateway.domain.models import Card, InstallmentRatio


class RecordingObserver:
    def __init__(self):
        self.events = []

    def event(self, name, **data):
        self.events.append((name, data))


@pytest.mark.parametrize(
    "description, expected",
    [
        ("Amazon 2/5", InstallmentRatio(2, 5)),
        ("Amazon 2 / 5", InstallmentRatio(2, 5)),
        ("PARC 03/12 LOJA", InstallmentRatio(3, 12)),
        ("Amazon 6/5", None),  # number past total
        ("Amazon 0/5", None),
        ("Amazon", None),
        ("", None),
        (None, None),
        ("Fatura 12/2024", None),  # year isn't a 1-2 digit total
    ],
)
def test_extract_installment_ratio(description, expected):
    assert extract_installment_ratio(description) == expected


def test_upsert_replaces_existing_ratio_in_place():
    assert upsert_installment_ratio("Amazon 2/5", 3, 5) == "Amazon 3/5"
    assert upsert_installment_ratio("Parcela 1 / 3 loja", 2, 3) == "Parcela 2/3 loja"


def test_upsert_appends_when_missing():
    assert upsert_installment_ratio("Amazon", 1, 3) == "Amazon 1/3"
    assert upsert_installment_ratio("  Amazon  ", 1, 3) == "Amazon 1/3"
    assert upsert_installment_ratio("", 1, 3) == "1/3"


def test_upsert_is_noop_for_invalid_numbers():
    assert upsert_installment_ratio("Amazon 2/5", 0, 5) == "Amazon 2/5"
    assert upsert_installment_ratio("Amazon", 4, 3) == "Amazon"
    assert upsert_installment_ratio("Amazon", None, 3) == "Amazon"


def test_generate_installments_monthly_series(expense_template):
    """Dates are anchored on the first date, so the 31st survives February"""
    observer = RecordingObserver()
    drafts = generate_installments(
        date(2024, 1, 31), 300.0, 3, "Geladeira", template=expense_template, observer=observer
    )

    assert [d.occurred_on for d in drafts] == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]
    assert [d.description for d in drafts] == ["Geladeira 1/3", "Geladeira 2/3", "Geladeira 3/3"]
    assert [d.installment_number for d in drafts] == [1, 2, 3]
    assert all(d.total_installments == 3 for d in drafts)
    assert all(d.amount == 300.0 for d in drafts)
    assert all(d.is_installment_payment for d in drafts)
    assert all(d.card_id == "card_1" and d.category_id == "category_1" for d in drafts)
    assert all(d.parent_transaction_id is None for d in drafts)
    assert observer.events[0][0] == "installments_generated"
    assert observer.events[0][1]["count"] == 3


@pytest.mark.parametrize("count", [2, 5, 12, 24])
def test_generate_installments_count_invariant(count):
    drafts = generate_installments(date(2024, 5, 15), 99.9, count, "Curso")

    assert len(drafts) == count
    assert sorted(d.installment_number for d in drafts) == list(range(1, count + 1))
    assert all(d.amount == 99.9 for d in drafts)


@pytest.mark.parametrize("count", [1, 0, -3])
def test_generate_single_transaction(count, expense_template):
    """count <= 1 is a plain transaction without installment numbers"""
    drafts = generate_installments(date(2024, 3, 15), 50.0, count, "Padaria", template=expense_template)

    assert len(drafts) == 1
    assert drafts[0].installment_number is None
    assert drafts[0].total_installments is None
    assert drafts[0].description == "Padaria"
    assert drafts[0].occurred_on == date(2024, 3, 15)
    assert drafts[0].is_installment_payment is False


def test_link_installments_to_parent():
    drafts = generate_installments(date(2024, 3, 1), 10.0, 3, "TV")
    linked = link_installments_to_parent(drafts, "parent-id")

    assert linked[0].parent_transaction_id is None
    assert [d.parent_transaction_id for d in linked[1:]] == ["parent-id", "parent-id"]


def _edited(expense_template, number=2, total=5, occurred_on=date(2024, 3, 15)):
    return replace(
        expense_template,
        id="tx_1",
        occurred_on=occurred_on,
        description="Geladeira 2/5",
        installment_number=number,
        total_installments=total,
        is_installment_payment=True,
    )


def test_continue_installments_calendar_months(expense_template):
    """Without card billing parameters the remaining installments follow the calendar"""
    drafts = continue_installments(_edited(expense_template))

    assert [d.occurred_on for d in drafts] == [date(2024, 4, 15), date(2024, 5, 15), date(2024, 6, 15)]
    assert [d.installment_number for d in drafts] == [3, 4, 5]
    assert [d.description for d in drafts] == ["Geladeira 3/5", "Geladeira 4/5", "Geladeira 5/5"]
    assert all(d.parent_transaction_id == "tx_1" for d in drafts)
    assert all(d.id is None for d in drafts)


def test_continue_installments_aligned_to_card_due_dates(expense_template, card):
    """Each installment moves to the due date of the statement billing its naive date"""
    observer = RecordingObserver()
    drafts = continue_installments(_edited(expense_template), card=card, observer=observer)

    # Apr 15 falls in the cycle closing May 10, due May 20; and so on
    assert [d.occurred_on for d in drafts] == [date(2024, 5, 20), date(2024, 6, 20), date(2024, 7, 20)]
    assert observer.events[0][1]["aligned_to_card"] is True


def test_continue_installments_ignores_card_without_due_day(expense_template, card):
    drafts = continue_installments(_edited(expense_template), card=replace(card, due_day=0))

    assert drafts[0].occurred_on == date(2024, 4, 15)


@pytest.mark.parametrize("number, total", [(5, 5), (6, 5), (None, 5), (2, None)])
def test_continue_installments_nothing_remaining(expense_template, number, total):
    assert continue_installments(_edited(expense_template, number=number, total=total)) == []
