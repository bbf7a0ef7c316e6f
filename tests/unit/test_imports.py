"""Unit tests for statement CSV parsing and category suggestions"""

import pytest
from datetime import date
from finance_gateway.domain.exceptions import InvalidImportError
from finance_gateway.domain.imports import (
    apply_category_suggestions,
    normalize_import_description,
    parse_statement_csv,
    unique_descriptions,
)
from finance_gateway.domain.models import ImportRow

STATEMENT = """Date,Title,Amount
2024-03-01,Padaria Pão Quente,12.50
05/03/2024,Uber 2/3,-30

,Missing date,10
2024-03-07,Estorno,0
2024-03-08,  padaria pão quente ,8.00
"""


def test_parse_statement_csv():
    rows = parse_statement_csv(STATEMENT)

    assert [row.row_id for row in rows] == [0, 1, 2]
    assert rows[0] == ImportRow(row_id=0, occurred_on=date(2024, 3, 1), title="Padaria Pão Quente", amount=12.5)
    assert rows[1].occurred_on == date(2024, 3, 5)  # dd/mm/yyyy
    assert rows[1].amount == 30.0  # bank sign dropped
    assert rows[2].title == "padaria pão quente"


def test_parse_statement_csv_any_column_order():
    rows = parse_statement_csv("amount,title,date\n10,Cinema,2024-03-02\n")

    assert rows[0].title == "Cinema"
    assert rows[0].amount == 10.0


@pytest.mark.parametrize(
    "content",
    [
        "",
        "date,title,amount\n",
        "date,description,value\n2024-03-01,Padaria,10\n",
        "date,title,amount\n2024-03-01,Padaria,0\nnot-a-date,Uber,10\n",
    ],
)
def test_parse_statement_csv_rejects_unusable_files(content):
    with pytest.raises(InvalidImportError):
        parse_statement_csv(content)


def test_normalize_import_description():
    assert normalize_import_description("  Padaria   Pão\tQuente ") == "padaria pão quente"


def test_unique_descriptions_keeps_first_spelling():
    rows = parse_statement_csv(STATEMENT)

    assert unique_descriptions(rows) == ["Padaria Pão Quente", "Uber 2/3"]


def test_apply_category_suggestions_with_fallback():
    rows = [
        ImportRow(row_id=0, occurred_on=date(2024, 3, 1), title="Padaria", amount=10),
        ImportRow(row_id=1, occurred_on=date(2024, 3, 2), title="Uber", amount=20),
        ImportRow(row_id=2, occurred_on=date(2024, 3, 3), title="Cinema", amount=30, category_id="cat_lazer"),
        ImportRow(row_id=3, occurred_on=date(2024, 3, 4), title="Farmácia", amount=40),
    ]
    suggestions = {"PADARIA ": "Mercado", "Uber": "Categoria inexistente"}
    categories = {"Mercado": "cat_mercado", "Outros": "cat_outros"}

    result = apply_category_suggestions(rows, suggestions, categories, default_category_id="cat_outros")

    assert [row.category_id for row in result] == ["cat_mercado", "cat_outros", "cat_lazer", "cat_outros"]
    assert rows[0].category_id is None  # input rows untouched


def test_apply_category_suggestions_without_default():
    rows = [ImportRow(row_id=0, occurred_on=date(2024, 3, 1), title="Padaria", amount=10)]

    assert apply_category_suggestions(rows, {}, {})[0].category_id is None
