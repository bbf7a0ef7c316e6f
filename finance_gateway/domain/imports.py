"""Statement CSV parsing and category suggestion merging"""

import csv
import io
import re
from dataclasses import replace
from datetime import date
from typing import Dict, List, Mapping, Optional

from finance_gateway.domain.amounts import parse_amount
from finance_gateway.domain.exceptions import InvalidImportError
from finance_gateway.domain.models import ImportRow

REQUIRED_HEADERS = ("date", "title", "amount")

_WHITESPACE = re.compile(r"\s+")
_BR_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def normalize_import_description(value: str) -> str:
    """Key used to match descriptions: trimmed, single-spaced, lowercase"""
    return _WHITESPACE.sub(" ", (value or "").strip()).lower()


def _parse_row_date(raw: str) -> Optional[date]:
    raw = raw.strip()
    match = _BR_DATE.match(raw)
    try:
        if match:
            day, month, year = (int(part) for part in match.groups())
            return date(year, month, day)
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def _cell(values: List[str], index: int) -> str:
    return values[index].strip() if index < len(values) else ""


def parse_statement_csv(content: str) -> List[ImportRow]:
    """
    Parse a statement export with `date,title,amount` columns.

    Rows missing a date or title, with an unreadable date, or with a zero
    amount are skipped. Amounts are kept positive whatever sign the
    file uses.

    Raises:
        InvalidImportError: empty file, missing headers, or no usable rows
    """
    lines = [line for line in (content or "").splitlines() if line.strip()]
    if len(lines) < 2:
        raise InvalidImportError("CSV is empty or has no data rows")

    reader = csv.reader(io.StringIO("\n".join(lines)))
    headers = [header.strip().lower() for header in next(reader)]
    if any(name not in headers for name in REQUIRED_HEADERS):
        raise InvalidImportError("Expected headers: date,title,amount")

    date_index, title_index, amount_index = (headers.index(name) for name in REQUIRED_HEADERS)

    rows = []
    for values in reader:
        raw_date = _cell(values, date_index)
        occurred_on = _parse_row_date(raw_date) if raw_date else None
        title = _cell(values, title_index)
        amount = parse_amount(_cell(values, amount_index))
        if occurred_on is None or not title or amount == 0:
            continue
        rows.append(ImportRow(row_id=len(rows), occurred_on=occurred_on, title=title, amount=abs(amount)))

    if not rows:
        raise InvalidImportError("No valid rows to import")
    return rows


def unique_descriptions(rows: List[ImportRow]) -> List[str]:
    """One description per normalized key, first spelling wins, file order kept"""
    by_key: Dict[str, str] = {}
    for row in rows:
        key = normalize_import_description(row.title)
        if key and key not in by_key:
            by_key[key] = row.title
    return list(by_key.values())


def apply_category_suggestions(
    rows: List[ImportRow],
    suggestions: Mapping[str, str],
    category_ids_by_name: Mapping[str, str],
    default_category_id: Optional[str] = None,
) -> List[ImportRow]:
    """
    Assign suggested categories to rows.

    A suggestion only counts when it names a known category. Rows without one
    keep their current category, or get `default_category_id`.
    """
    normalized = {normalize_import_description(description): name for description, name in suggestions.items()}

    result = []
    for row in rows:
        suggested_name = normalized.get(normalize_import_description(row.title))
        category_id = category_ids_by_name.get(suggested_name) if suggested_name else None
        result.append(replace(row, category_id=category_id or row.category_id or default_category_id))
    return result
