"""/v1/budgets/{month} - monthly income split and per-category limits"""

import logging
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from finance_gateway.api.v1.schemas import (
    BudgetItemRequest,
    BudgetItemSchema,
    BudgetItemUsageSchema,
    BudgetRequest,
    BudgetResponse,
    BudgetSummarySchema,
)
from finance_gateway.api.dependencies import get_request_id, get_today, get_user_id
from finance_gateway.infrastructure.database import models
from finance_gateway.infrastructure.database.session import get_db
from finance_gateway.infrastructure.database.repositories import (
    BudgetRepository,
    CategoryRepository,
    TransactionRepository,
)
from finance_gateway.infrastructure.observability.logging import log_budget_saved
from finance_gateway.infrastructure.observability.metrics import budget_upsert_counter
from finance_gateway.domain.amounts import parse_amount
from finance_gateway.domain.budgets import build_monthly_budget, parse_percent, percent_of, summarize_budget
from finance_gateway.domain.models import BudgetItem, MonthlyBudget
from finance_gateway.utils.date_utils import get_month_range, normalize_month

router = APIRouter()


def _resolve_month(month: str, today: date) -> date:
    try:
        return normalize_month(month, today)
    except ValueError:
        raise HTTPException(status_code=422, detail="Invalid month, expected YYYY-MM")


def budget_to_response(db_budget: models.MonthlyBudget) -> BudgetResponse:
    return BudgetResponse(
        month=db_budget.month,
        income_target=db_budget.income_target,
        investment_target=db_budget.investment_target,
        reserve_target=db_budget.reserve_target,
        expense_limit=db_budget.expense_limit,
        investment_percent=percent_of(db_budget.investment_target, db_budget.income_target),
        reserve_percent=percent_of(db_budget.reserve_target, db_budget.income_target),
        items=[
            BudgetItemSchema(category_id=str(item.category_id), amount_limit=item.amount_limit)
            for item in db_budget.items
        ],
    )


@router.put("/budgets/{month}", response_model=BudgetResponse)
def upsert_monthly_budget(
    month: str,
    request_body: BudgetRequest,
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    today: date = Depends(get_today),
):
    """
    Save the month's income target and investment/reserve split.

    Percentages adding up to more than 100 are rescaled; the expense limit is
    what remains of the income.
    """
    month_date = _resolve_month(month, today)
    investment_pct = parse_percent(request_body.investment_percent)
    reserve_pct = parse_percent(request_body.reserve_percent)
    rescaled = investment_pct + reserve_pct > 100

    budget = build_monthly_budget(
        user_id=user_id,
        month=month_date,
        income_target=parse_amount(request_body.income_target),
        investment_pct=investment_pct,
        reserve_pct=reserve_pct,
    )
    db_budget = BudgetRepository(db).upsert_budget(budget)
    db.commit()

    budget_upsert_counter.labels(rescaled=str(rescaled).lower()).inc()
    log_budget_saved(get_request_id(request), user_id, month_date.isoformat(), rescaled)

    return budget_to_response(db_budget)


@router.put("/budgets/{month}/items", response_model=BudgetResponse)
def upsert_budget_item(
    month: str,
    request_body: BudgetItemRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    today: date = Depends(get_today),
):
    """Set a category's limit, creating the month's budget if it doesn't exist yet"""
    month_date = _resolve_month(month, today)
    category = CategoryRepository(db).get_category(user_id, request_body.category_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")

    budgets = BudgetRepository(db)
    db_budget = budgets.get_or_create_budget(user_id, month_date)
    budgets.upsert_item(db_budget.id, category.id, parse_amount(request_body.amount_limit))
    db.commit()
    logging.info("Budget item saved", extra={"user_id": user_id, "month": month_date.isoformat()})

    db.refresh(db_budget)
    return budget_to_response(db_budget)


def summary_to_schema(summary) -> BudgetSummarySchema:
    return BudgetSummarySchema(
        income=summary.income,
        expense=summary.expense,
        investment_contribution=summary.investment_contribution,
        investment_withdrawal=summary.investment_withdrawal,
        saved=summary.saved,
        remaining=summary.remaining,
        remaining_days=summary.remaining_days,
        daily_allowance=summary.daily_allowance,
        commitment=summary.commitment,
        items=[
            BudgetItemUsageSchema(
                category_id=item.category_id,
                amount_limit=item.amount_limit,
                spent=item.spent,
                remaining=item.remaining,
            )
            for item in summary.items
        ],
    )


@router.get("/budgets/{month}", response_model=BudgetResponse)
def get_monthly_budget(
    month: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    today: date = Depends(get_today),
):
    """The month's budget plus how much of it the month's transactions have consumed as of today"""
    month_date = _resolve_month(month, today)
    db_budget = BudgetRepository(db).get_budget(user_id, month_date)
    if db_budget is None:
        raise HTTPException(status_code=404, detail="Budget not found")

    transactions = TransactionRepository(db)
    rows = transactions.get_transactions_between(user_id, get_month_range(month_date))
    budget = MonthlyBudget(
        user_id=user_id,
        month=db_budget.month,
        income_target=db_budget.income_target,
        investment_target=db_budget.investment_target,
        reserve_target=db_budget.reserve_target,
        expense_limit=db_budget.expense_limit,
    )
    summary = summarize_budget(
        budget,
        [BudgetItem(category_id=str(item.category_id), amount_limit=item.amount_limit) for item in db_budget.items],
        [TransactionRepository.to_domain(row) for row in rows],
        today,
    )

    response = budget_to_response(db_budget)
    response.summary = summary_to_schema(summary)
    return response
