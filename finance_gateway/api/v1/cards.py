"""Accounts, categories and credit cards; card statements and bill payments"""

import time
import logging
from dataclasses import replace
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from finance_gateway.api.v1.schemas import (
    AccountRequest,
    AccountResponse,
    CardPaymentRequest,
    CardRequest,
    CardResponse,
    CategoryRequest,
    CategoryResponse,
    StatementResponse,
    TransactionSchema,
)
from finance_gateway.api.dependencies import get_request_id, get_today, get_user_id
from finance_gateway.api.v1.transactions import build_transaction_draft, transaction_to_schema
from finance_gateway.infrastructure.database.session import get_db
from finance_gateway.infrastructure.database.repositories import (
    AccountRepository,
    CardRepository,
    CategoryRepository,
    TransactionRepository,
)
from finance_gateway.infrastructure.observability.logging import log_transaction_created
from finance_gateway.infrastructure.observability.metrics import record_transactions
from finance_gateway.domain.amounts import parse_amount
from finance_gateway.domain.exceptions import InvalidTransactionDataError, NotFoundError
from finance_gateway.domain.models import TransactionKind
from finance_gateway.domain.statements import get_statement_due_date, get_statement_window, summarize_statement
from finance_gateway.utils.date_utils import parse_date

router = APIRouter()


@router.post("/accounts", response_model=AccountResponse, status_code=201)
def create_account(
    request_body: AccountRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    db_account = AccountRepository(db).create_account(user_id, request_body.name.strip(), request_body.type)
    db.commit()
    return AccountResponse(id=str(db_account.id), name=db_account.name, type=db_account.type)


@router.post("/categories", response_model=CategoryResponse, status_code=201)
def create_category(
    request_body: CategoryRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    db_category = CategoryRepository(db).create_category(user_id, request_body.name.strip())
    db.commit()
    return CategoryResponse(id=str(db_category.id), name=db_category.name)


@router.get("/categories", response_model=List[CategoryResponse])
def list_categories(db: Session = Depends(get_db), user_id: str = Depends(get_user_id)):
    return [
        CategoryResponse(id=str(category.id), name=category.name)
        for category in CategoryRepository(db).get_categories_by_user(user_id)
    ]


@router.post("/cards", response_model=CardResponse, status_code=201)
def create_card(
    request_body: CardRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    """Register a card on one of the user's credit accounts"""
    account = AccountRepository(db).get_account(user_id, request_body.account_id)
    if account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    if account.type != "credit":
        raise HTTPException(status_code=422, detail="Cards can only be attached to credit accounts")

    db_card = CardRepository(db).create_card(
        user_id=user_id,
        account_id=account.id,
        name=request_body.name.strip(),
        closing_day=request_body.closing_day,
        due_day=request_body.due_day,
        limit_amount=parse_amount(request_body.limit_amount),
    )
    db.commit()

    return CardResponse(
        id=str(db_card.id),
        account_id=str(db_card.account_id),
        name=db_card.name,
        closing_day=db_card.closing_day,
        due_day=db_card.due_day,
        limit_amount=db_card.limit_amount,
    )


@router.get("/cards/{card_id}/statement", response_model=StatementResponse)
def get_card_statement(
    card_id: str,
    reference_date: Optional[date] = Query(None, description="Defaults to today"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    today: date = Depends(get_today),
):
    """
    Statement cycle containing `reference_date`, its payment due date and how
    much of the card's limit the cycle has used.

    Computed on every call from the card's closing/due days and the
    transactions inside the window; nothing is cached.
    """
    db_card = CardRepository(db).get_card(user_id, card_id)
    if db_card is None:
        raise HTTPException(status_code=404, detail="Card not found")

    reference_date = reference_date or today
    window = get_statement_window(db_card.closing_day, reference_date)
    rows = TransactionRepository(db).get_card_transactions_between(user_id, db_card.id, (window.start, window.end))
    summary = summarize_statement(
        window,
        [TransactionRepository.to_domain(row) for row in rows],
        CardRepository.to_domain(db_card),
    )

    return StatementResponse(
        card_id=str(db_card.id),
        reference_date=reference_date,
        start=window.start,
        end=window.end,
        closing_date=window.closing_date,
        due_date=get_statement_due_date(window.closing_date, db_card.due_day),
        spent=summary.spent,
        paid=summary.paid,
        outstanding=summary.outstanding,
        remaining_limit=summary.remaining_limit,
        usage=summary.usage,
        over_limit=summary.over_limit,
    )


@router.post("/cards/{card_id}/payments", response_model=TransactionSchema, status_code=201)
def pay_card_bill(
    card_id: str,
    request_body: CardPaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    today: date = Depends(get_today),
):
    """
    Pay a card's bill: a transfer from `account_id` into the card's account,
    tagged with the card so it counts as paid on that card's statement.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    db_card = CardRepository(db).get_card(user_id, card_id)
    if db_card is None:
        raise HTTPException(status_code=404, detail="Card not found")

    try:
        draft = build_transaction_draft(
            db,
            user_id,
            kind=TransactionKind.TRANSFER.value,
            amount=parse_amount(request_body.amount),
            occurred_on=parse_date(request_body.occurred_on, today),
            description=f"Pagamento fatura - {db_card.name}",
            account_id=request_body.account_id,
            to_account_id=str(db_card.account_id),
            card_id=str(db_card.id),
        )
        rows = TransactionRepository(db).create_transactions(user_id, [replace(draft, is_bill_payment=True)])
        db.commit()

    except NotFoundError as e:
        db.rollback()
        logging.warning(f"Reference not found: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidTransactionDataError as e:
        db.rollback()
        logging.warning(f"Invalid bill payment: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    duration_ms = (time.time() - start_time) * 1000
    record_transactions(TransactionKind.TRANSFER.value, "bill_payment", len(rows))
    log_transaction_created(request_id, user_id, TransactionKind.TRANSFER.value, len(rows), duration_ms)

    return transaction_to_schema(rows[0])
