"""/v1/transactions - create, edit and list transactions; /v1/recurring-rules"""

import time
import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from finance_gateway.api.v1.schemas import (
    RecurringRuleListResponse,
    RecurringRuleSchema,
    TransactionCreateRequest,
    TransactionCreateResponse,
    TransactionListResponse,
    TransactionSchema,
    TransactionUpdateRequest,
    TransactionUpdateResponse,
)
from finance_gateway.api.dependencies import get_observer, get_request_id, get_today, get_user_id
from finance_gateway.infrastructure.database.session import get_db
from finance_gateway.infrastructure.database import models
from finance_gateway.infrastructure.database.repositories import (
    AccountRepository,
    CardRepository,
    CategoryRepository,
    RecurringRuleRepository,
    TransactionRepository,
)
from finance_gateway.infrastructure.observability.logging import LoggingObserver, log_transaction_created
from finance_gateway.infrastructure.observability.metrics import record_transactions, recurring_rule_counter
from finance_gateway.config import settings
from finance_gateway.domain.amounts import format_amount, parse_amount, parse_positive_int
from finance_gateway.domain.exceptions import InvalidTransactionDataError, NotFoundError
from finance_gateway.domain.installments import continue_installments, generate_installments, upsert_installment_ratio
from finance_gateway.domain.models import RecurringRule, TransactionDraft, TransactionKind
from finance_gateway.domain.recurrence import build_recurring_rule, next_occurrence, upcoming_occurrences
from finance_gateway.utils.date_utils import get_month_range, normalize_month, parse_date

router = APIRouter()


def transaction_to_schema(row: models.Transaction) -> TransactionSchema:
    draft = TransactionRepository.to_domain(row)
    return TransactionSchema(
        id=draft.id,
        kind=draft.kind,
        amount=draft.amount,
        amount_display=format_amount(draft.amount, settings.currency_prefix),
        occurred_on=draft.occurred_on,
        description=draft.description,
        account_id=draft.account_id,
        to_account_id=draft.to_account_id,
        category_id=draft.category_id,
        card_id=draft.card_id,
        installment_number=draft.installment_number,
        total_installments=draft.total_installments,
        parent_transaction_id=draft.parent_transaction_id,
        is_installment_payment=draft.is_installment_payment,
        is_recurring_payment=draft.is_recurring_payment,
        is_bill_payment=draft.is_bill_payment,
    )


def build_transaction_draft(
    db: Session,
    user_id: str,
    kind: str,
    amount: float,
    occurred_on: date,
    description: str = "",
    account_id: Optional[str] = None,
    to_account_id: Optional[str] = None,
    category_id: Optional[str] = None,
    card_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> TransactionDraft:
    """
    Validate references and resolve the account a transaction is booked on.

    Rules:
    - A card books the purchase on the card's account (transfers keep theirs)
    - A credit account needs one of its own cards
    - Transfers need a destination account
    - Amount must be positive

    Raises:
        NotFoundError: A referenced account, card or category doesn't exist
        InvalidTransactionDataError: The combination is inconsistent
    """
    accounts = AccountRepository(db)
    card = None
    if card_id:
        card = CardRepository(db).get_card(user_id, card_id)
        if card is None:
            raise NotFoundError("Card not found")

    if account_id:
        account = accounts.get_account(user_id, account_id)
        if account is None:
            raise NotFoundError("Account not found")
        if account.type == "credit" and (card is None or card.account_id != account.id):
            raise InvalidTransactionDataError("Credit accounts require one of their own cards")

    resolved_account_id = account_id
    if card is not None and kind != TransactionKind.TRANSFER.value:
        resolved_account_id = str(card.account_id)

    if amount <= 0:
        raise InvalidTransactionDataError("Amount must be a positive value")
    if not resolved_account_id:
        raise InvalidTransactionDataError("Account is required")

    if kind == TransactionKind.TRANSFER.value:
        if not to_account_id:
            raise InvalidTransactionDataError("Transfers require a destination account")
        if accounts.get_account(user_id, to_account_id) is None:
            raise NotFoundError("Destination account not found")
    else:
        to_account_id = None

    if category_id and CategoryRepository(db).get_category(user_id, category_id) is None:
        raise NotFoundError("Category not found")

    return TransactionDraft(
        kind=kind,
        amount=amount,
        occurred_on=occurred_on,
        account_id=resolved_account_id,
        description=description.strip(),
        to_account_id=to_account_id,
        category_id=category_id or None,
        card_id=str(card.id) if card is not None else None,
        notes=notes or None,
    )


@router.post("/transactions", response_model=TransactionCreateResponse, status_code=201)
def create_transaction(
    request_body: TransactionCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    today: date = Depends(get_today),
    observer: LoggingObserver = Depends(get_observer),
):
    """
    Record a transaction.

    Flow:
    1. Parse amount and dates (missing dates mean today)
    2. Validate accounts/card/category and resolve the booking account
    3. Write one row, or one row per installment linked to the first
    4. Store a recurring rule when requested
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        amount = parse_amount(request_body.amount)
        occurred_on = parse_date(request_body.occurred_on, today)
        template = build_transaction_draft(
            db,
            user_id,
            kind=request_body.kind,
            amount=amount,
            occurred_on=occurred_on,
            description=request_body.description,
            account_id=request_body.account_id,
            to_account_id=request_body.to_account_id,
            category_id=request_body.category_id,
            card_id=request_body.card_id,
            notes=request_body.notes,
        )
        template = replace(
            template,
            is_bill_payment=request_body.is_bill_payment and template.kind == TransactionKind.TRANSFER.value,
            is_recurring_payment=request_body.is_recurring,
        )

        transactions = TransactionRepository(db)
        if request_body.installments > 1:
            first_installment_on = parse_date(request_body.first_installment_on, occurred_on)
            drafts = generate_installments(
                first_installment_on,
                amount,
                request_body.installments,
                template.description,
                template=template,
                observer=observer,
            )
            rows = transactions.create_installment_series(user_id, drafts)
            source = "installment"
        else:
            drafts = generate_installments(occurred_on, amount, 1, template.description, template=template)
            rows = transactions.create_transactions(user_id, drafts)
            source = "manual"

        rule_id = None
        if request_body.is_recurring:
            rule = build_recurring_rule(
                template,
                frequency=request_body.recurrence_frequency,
                interval=request_body.recurrence_interval,
                end_on=request_body.recurrence_end_on,
                occurrences=request_body.recurrence_occurrences,
            )
            db_rule = RecurringRuleRepository(db).create_rule(user_id, rule)
            rule_id = str(db_rule.id)
            recurring_rule_counter.labels(frequency=rule.frequency).inc()

        db.commit()

        duration_ms = (time.time() - start_time) * 1000
        record_transactions(template.kind, source, len(rows))
        log_transaction_created(request_id, user_id, template.kind, len(rows), duration_ms)

        return TransactionCreateResponse(
            transactions=[transaction_to_schema(row) for row in rows],
            recurring_rule_id=rule_id,
        )

    except NotFoundError as e:
        db.rollback()
        logging.warning(f"Reference not found: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidTransactionDataError as e:
        db.rollback()
        logging.warning(f"Invalid transaction: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))


@router.patch("/transactions/{transaction_id}", response_model=TransactionUpdateResponse)
def update_transaction(
    transaction_id: str,
    request_body: TransactionUpdateRequest,
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    observer: LoggingObserver = Depends(get_observer),
):
    """
    Edit a transaction.

    When the edit marks it as installment k of N, the "k/N" marker is written
    into the description. Installments k+1..N are only created when the
    caller confirms with create_future_installments.
    """
    request_id = get_request_id(request)
    transactions = TransactionRepository(db)
    row = transactions.get_transaction(user_id, transaction_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Transaction not found")

    try:
        installment_number = parse_positive_int(request_body.installment_number)
        total_installments = parse_positive_int(request_body.total_installments)
        has_ratio = (
            request_body.is_installment_payment
            and installment_number is not None
            and total_installments is not None
            and installment_number <= total_installments
        )
        description = request_body.description
        if has_ratio:
            description = upsert_installment_ratio(description, installment_number, total_installments)

        draft = build_transaction_draft(
            db,
            user_id,
            kind=request_body.kind,
            amount=parse_amount(request_body.amount),
            occurred_on=parse_date(request_body.occurred_on, row.occurred_on),
            description=description,
            account_id=request_body.account_id,
            to_account_id=request_body.to_account_id,
            category_id=request_body.category_id,
            card_id=request_body.card_id,
            notes=row.notes,
        )
        draft = replace(
            draft,
            id=str(row.id),
            parent_transaction_id=str(row.parent_transaction_id) if row.parent_transaction_id else None,
            installment_number=installment_number if has_ratio else None,
            total_installments=total_installments if has_ratio else None,
            is_installment_payment=request_body.is_installment_payment,
            is_recurring_payment=request_body.is_recurring_payment,
            is_bill_payment=request_body.is_bill_payment and draft.kind == TransactionKind.TRANSFER.value,
        )
        transactions.update_transaction(row, draft)

        created_rows = []
        warning = None
        if request_body.create_future_installments:
            card = None
            if draft.card_id:
                card = CardRepository.to_domain(CardRepository(db).get_card(user_id, draft.card_id))
            future = continue_installments(draft, card=card, observer=observer)
            if future:
                created_rows = transactions.create_transactions(user_id, future)
            else:
                warning = "No remaining installments to create"

        db.commit()

        if created_rows:
            record_transactions(draft.kind, "continuation", len(created_rows))

        return TransactionUpdateResponse(
            ok=True,
            transaction=transaction_to_schema(row),
            created=[transaction_to_schema(created) for created in created_rows],
            warning=warning,
        )

    except NotFoundError as e:
        db.rollback()
        logging.warning(f"Reference not found: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidTransactionDataError as e:
        db.rollback()
        logging.warning(f"Invalid transaction: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    month: str = Query("", description="YYYY-MM; defaults to the current month"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    today: date = Depends(get_today),
):
    """Transactions dated within one calendar month"""
    try:
        month_date = normalize_month(month, today)
    except ValueError:
        raise HTTPException(status_code=422, detail="Invalid month, expected YYYY-MM")

    rows = TransactionRepository(db).get_transactions_between(user_id, get_month_range(month_date))
    return TransactionListResponse(month=month_date, transactions=[transaction_to_schema(row) for row in rows])


@router.get("/recurring-rules", response_model=RecurringRuleListResponse)
def list_recurring_rules(
    until: Optional[date] = Query(None, description="Last day to project runs for; defaults to 90 days ahead"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    today: date = Depends(get_today),
):
    """Recurring rules with their runs from today through `until`"""
    until = until or today + timedelta(days=90)
    rules = []
    for db_rule in RecurringRuleRepository(db).get_rules_by_user(user_id):
        rule = RecurringRule(
            kind=db_rule.kind,
            amount=db_rule.amount,
            account_id=None,
            frequency=db_rule.frequency,
            interval=db_rule.interval,
            start_on=db_rule.start_on,
            next_run_on=db_rule.next_run_on,
            end_on=db_rule.end_on,
            occurrences=db_rule.occurrences,
        )
        rules.append(
            RecurringRuleSchema(
                id=str(db_rule.id),
                kind=rule.kind,
                amount=rule.amount,
                frequency=rule.frequency,
                interval=rule.interval,
                start_on=rule.start_on,
                end_on=rule.end_on,
                occurrences=rule.occurrences,
                next_run_on=next_occurrence(rule, today - timedelta(days=1)),
                upcoming=[day for day in upcoming_occurrences(rule, until) if day >= today],
            )
        )

    return RecurringRuleListResponse(until=until, rules=rules)
