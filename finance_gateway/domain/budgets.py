"""Monthly budget allocation: income split between investment, reserve and expenses"""

import math
from datetime import date
from typing import Dict, Iterable, List

from finance_gateway.domain.amounts import parse_amount
from finance_gateway.domain.models import (
    BudgetItem,
    BudgetItemUsage,
    BudgetSummary,
    BudgetTargets,
    MonthlyBudget,
    PercentPair,
    TransactionDraft,
    TransactionKind,
)
from finance_gateway.utils.date_utils import get_month_range, remaining_days_in_month


def _clamp_percent(value: float) -> float:
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return 0.0
    return min(max(float(value), 0.0), 100.0)


def parse_percent(raw) -> float:
    """Parse "12,5" / "12.5%" style input into [0, 100]; anything unusable is 0"""
    return _clamp_percent(parse_amount(raw))


def normalize_percent_pair(investment_pct: float, reserve_pct: float) -> PercentPair:
    """
    Keep investment + reserve within 100%.

    Each share is clamped to [0, 100]. If the sum still exceeds 100 both are
    rescaled by 100 / sum to whole percents using largest-remainder rounding,
    so a rescaled pair sums to exactly 100. Ties go to investment.

    Example:
        (70, 50) -> 58.33 / 41.67 -> (58, 42)
        (75, 45) -> 62.5 / 37.5   -> (63, 37)
    """
    investment = _clamp_percent(investment_pct)
    reserve = _clamp_percent(reserve_pct)
    total = investment + reserve

    if total <= 100 or total == 0:
        return PercentPair(investment=investment, reserve=reserve)

    factor = 100 / total
    scaled_investment = round(investment * factor, 9)
    scaled_reserve = round(reserve * factor, 9)

    whole_investment = math.floor(scaled_investment)
    whole_reserve = math.floor(scaled_reserve)
    leftover = 100 - whole_investment - whole_reserve

    if leftover > 0:
        if scaled_investment - whole_investment >= scaled_reserve - whole_reserve:
            whole_investment += leftover
        else:
            whole_reserve += leftover

    return PercentPair(investment=float(whole_investment), reserve=float(whole_reserve))


def compute_budget_targets(income_target: float, investment_pct: float, reserve_pct: float) -> BudgetTargets:
    """Money amounts for each share; the expense limit is whatever is left, never negative"""
    investment_target = income_target * investment_pct / 100
    reserve_target = income_target * reserve_pct / 100
    expense_limit = max(income_target - investment_target - reserve_target, 0.0)

    return BudgetTargets(
        investment_target=investment_target,
        reserve_target=reserve_target,
        expense_limit=expense_limit,
    )


def percent_of(target: float, income_target: float) -> float:
    """Stored target expressed back as a percentage of income (whole numbers stay whole)"""
    if not income_target:
        return 0.0
    percent = target / income_target * 100
    if not math.isfinite(percent) or percent <= 0:
        return 0.0
    return float(round(percent)) if percent % 1 == 0 else round(percent, 2)


def build_monthly_budget(
    user_id: str,
    month: date,
    income_target: float,
    investment_pct: float,
    reserve_pct: float,
) -> MonthlyBudget:
    """Normalize the requested split and derive the month's targets"""
    income_target = max(income_target, 0.0)
    shares = normalize_percent_pair(investment_pct, reserve_pct)
    targets = compute_budget_targets(income_target, shares.investment, shares.reserve)

    return MonthlyBudget(
        user_id=user_id,
        month=month.replace(day=1),
        income_target=income_target,
        investment_target=targets.investment_target,
        reserve_target=targets.reserve_target,
        expense_limit=targets.expense_limit,
    )


def _remaining_days(month: date, today: date) -> int:
    first_day, last_day = get_month_range(month)
    if today > last_day:
        return 0
    if today < first_day:
        return last_day.day
    return remaining_days_in_month(today)


def summarize_budget(
    budget: MonthlyBudget,
    items: List[BudgetItem],
    month_transactions: Iterable[TransactionDraft],
    today: date,
) -> BudgetSummary:
    """
    Consumption of a monthly budget as of `today`.

    Requirements:
    - Totals per kind over the month's transactions (transfers don't count)
    - remaining = max(expense_limit - expenses, 0), spread evenly over the
      days left in the month, today included
    - A future month has every day left; a past month has none, so its
      daily allowance is 0
    - commitment = expenses / expense_limit, 0 without a limit
    - Each category limit reports what was spent on that category and what
      is left (negative once exceeded)
    """
    totals: Dict[str, float] = {kind.value: 0.0 for kind in TransactionKind}
    spent_by_category: Dict[str, float] = {}

    for transaction in month_transactions:
        amount = float(transaction.amount or 0)
        if not math.isfinite(amount):
            continue
        totals[transaction.kind] = totals.get(transaction.kind, 0.0) + amount
        if transaction.kind == TransactionKind.EXPENSE.value and transaction.category_id:
            spent_by_category[transaction.category_id] = spent_by_category.get(transaction.category_id, 0.0) + amount

    expense = totals[TransactionKind.EXPENSE.value]
    remaining = max(budget.expense_limit - expense, 0.0)
    remaining_days = _remaining_days(budget.month, today)

    usage = []
    for item in items:
        spent = spent_by_category.get(item.category_id, 0.0)
        usage.append(
            BudgetItemUsage(
                category_id=item.category_id,
                amount_limit=item.amount_limit,
                spent=round(spent, 2),
                remaining=round(item.amount_limit - spent, 2),
            )
        )

    return BudgetSummary(
        income=round(totals[TransactionKind.INCOME.value], 2),
        expense=round(expense, 2),
        investment_contribution=round(totals[TransactionKind.INVESTMENT_CONTRIBUTION.value], 2),
        investment_withdrawal=round(totals[TransactionKind.INVESTMENT_WITHDRAWAL.value], 2),
        saved=round(
            totals[TransactionKind.INCOME.value] - expense - totals[TransactionKind.INVESTMENT_CONTRIBUTION.value], 2
        ),
        remaining=round(remaining, 2),
        remaining_days=remaining_days,
        daily_allowance=round(remaining / remaining_days, 2) if remaining_days > 0 else 0.0,
        commitment=round(expense / budget.expense_limit, 4) if budget.expense_limit > 0 else 0.0,
        items=usage,
    )
