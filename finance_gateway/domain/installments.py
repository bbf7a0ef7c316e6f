"""Installment series generation for card purchases"""

import re
from dataclasses import replace
from datetime import date
from typing import List, Optional

from finance_gateway.domain.models import Card, InstallmentRatio, TransactionDraft
from finance_gateway.domain.observer import EngineObserver, resolve_observer
from finance_gateway.domain.statements import get_statement_due_date, get_statement_window
from finance_gateway.utils.date_utils import add_months

INSTALLMENT_RATIO_PATTERN = re.compile(r"\b(\d{1,2})\s*/\s*(\d{1,2})\b")


def _valid_ratio(installment_number: int, total_installments: int) -> bool:
    return bool(installment_number) and bool(total_installments) and installment_number <= total_installments


def extract_installment_ratio(description: Optional[str]) -> Optional[InstallmentRatio]:
    """
    First "k/N" marker in a description, if it is a valid ratio.

    "Amazon 2/5" -> 2/5; "Amazon 6/5" and "Amazon 0/5" -> None
    """
    if not description:
        return None
    match = INSTALLMENT_RATIO_PATTERN.search(description)
    if not match:
        return None
    installment_number = int(match.group(1))
    total_installments = int(match.group(2))
    if not _valid_ratio(installment_number, total_installments):
        return None
    return InstallmentRatio(installment_number, total_installments)


def upsert_installment_ratio(
    description: Optional[str],
    installment_number: Optional[int],
    total_installments: Optional[int],
) -> str:
    """
    Write "k/N" into a description, replacing an existing valid marker in place.

    Example:
        ("Amazon 2/5", 3, 5) -> "Amazon 3/5"
        ("Amazon", 1, 3)     -> "Amazon 1/3"
    """
    description = description or ""
    if not installment_number or not total_installments or installment_number > total_installments:
        return description

    marker = f"{installment_number}/{total_installments}"
    for match in INSTALLMENT_RATIO_PATTERN.finditer(description):
        if _valid_ratio(int(match.group(1)), int(match.group(2))):
            return description[: match.start()] + marker + description[match.end():]

    trimmed = description.strip()
    return f"{trimmed} {marker}" if trimmed else marker


def generate_installments(
    first_date: date,
    amount: float,
    count: int,
    base_description: str,
    template: Optional[TransactionDraft] = None,
    observer: Optional[EngineObserver] = None,
) -> List[TransactionDraft]:
    """
    Split a purchase into `count` monthly installments.

    Requirements:
    - Installment i (0-based) is dated first_date + i calendar months,
      always computed from first_date (Jan 31 -> Feb 29 -> Mar 31)
    - Every installment carries the full `amount` given
    - Descriptions get a "k/N" marker
    - The first draft is the parent; the rest are linked to it once the store
      assigns its id (see link_installments_to_parent)

    `template` supplies the remaining fields (kind, accounts, category, card).
    count <= 1 returns a single plain transaction without installment numbers.
    """
    observer = resolve_observer(observer)
    base = template or TransactionDraft(kind="expense", amount=amount, occurred_on=first_date, account_id=None)

    if count <= 1:
        return [
            replace(
                base,
                amount=amount,
                occurred_on=first_date,
                description=base_description or "",
                installment_number=None,
                total_installments=None,
                parent_transaction_id=None,
                id=None,
            )
        ]

    drafts = []
    for i in range(count):
        drafts.append(
            replace(
                base,
                amount=amount,
                occurred_on=add_months(first_date, i),
                description=upsert_installment_ratio(base_description, i + 1, count),
                installment_number=i + 1,
                total_installments=count,
                parent_transaction_id=None,
                is_installment_payment=True,
                id=None,
            )
        )

    observer.event(
        "installments_generated",
        count=count,
        first_date=first_date.isoformat(),
        last_date=drafts[-1].occurred_on.isoformat(),
    )
    return drafts


def link_installments_to_parent(drafts: List[TransactionDraft], parent_id: str) -> List[TransactionDraft]:
    """Point every installment after the first at the first one"""
    return [draft if index == 0 else replace(draft, parent_transaction_id=parent_id) for index, draft in enumerate(drafts)]


def continue_installments(
    edited: TransactionDraft,
    card: Optional[Card] = None,
    observer: Optional[EngineObserver] = None,
) -> List[TransactionDraft]:
    """
    Generate the installments that follow an edited one.

    For each remaining installment the date is edited.occurred_on plus the
    month offset. When the card has both a closing and a due day the date
    is moved to the due date of the statement that bills that naive date.

    Returns [] when there is nothing left to generate.
    """
    observer = resolve_observer(observer)
    number = edited.installment_number
    total = edited.total_installments
    if not number or not total or total <= number:
        return []

    align_to_card = card is not None and bool(card.closing_day) and bool(card.due_day)

    drafts = []
    for i in range(number + 1, total + 1):
        occurred_on = add_months(edited.occurred_on, i - number)
        if align_to_card:
            window = get_statement_window(card.closing_day, occurred_on)
            occurred_on = get_statement_due_date(window.closing_date, card.due_day)

        drafts.append(
            replace(
                edited,
                occurred_on=occurred_on,
                description=upsert_installment_ratio(edited.description, i, total),
                installment_number=i,
                total_installments=total,
                parent_transaction_id=edited.id,
                is_installment_payment=True,
                id=None,
            )
        )

    observer.event(
        "installments_continued",
        transaction_id=edited.id,
        from_number=number + 1,
        total=total,
        aligned_to_card=align_to_card,
    )
    return drafts
