"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional

from finance_gateway.utils.date_utils import to_date_string


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"
    INVESTMENT_CONTRIBUTION = "investment_contribution"
    INVESTMENT_WITHDRAWAL = "investment_withdrawal"


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass
class Card:
    """Credit card billing parameters"""

    id: str
    account_id: str
    closing_day: int
    due_day: int
    limit_amount: float = 0.0


@dataclass
class StatementWindow:
    """Billing cycle of a card: from the day after one closing to the next closing (inclusive)"""

    start: date
    end: date
    closing_date: date

    @property
    def start_label(self) -> str:
        return to_date_string(self.start)

    @property
    def end_label(self) -> str:
        return to_date_string(self.end)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass
class StatementSummary:
    """Card usage within one statement window"""

    spent: float
    paid: float
    outstanding: float
    remaining_limit: float
    usage: float  # outstanding / limit, capped at 1
    over_limit: bool


@dataclass
class PercentPair:
    """Investment and reserve shares of the income target, in percent"""

    investment: float
    reserve: float


@dataclass
class BudgetTargets:
    """Money amounts derived from an income target and a PercentPair"""

    investment_target: float
    reserve_target: float
    expense_limit: float


@dataclass
class MonthlyBudget:
    user_id: str
    month: date  # first day of month
    income_target: float
    investment_target: float
    reserve_target: float
    expense_limit: float


@dataclass
class BudgetItem:
    """Spending limit for one category within a monthly budget"""

    category_id: str
    amount_limit: float


@dataclass
class BudgetItemUsage:
    category_id: str
    amount_limit: float
    spent: float
    remaining: float  # negative once the limit is exceeded


@dataclass
class BudgetSummary:
    """How much of a month's budget has been consumed as of a given day"""

    income: float
    expense: float
    investment_contribution: float
    investment_withdrawal: float
    saved: float
    remaining: float
    remaining_days: int
    daily_allowance: float
    commitment: float
    items: List[BudgetItemUsage] = field(default_factory=list)


@dataclass(frozen=True)
class InstallmentRatio:
    """The "k/N" marker embedded in a description"""

    installment_number: int
    total_installments: int


@dataclass
class TransactionDraft:
    """
    Transaction ready to be written to the store.

    `amount` is always positive; direction is carried by `kind`.
    `id` is only set for rows already persisted.
    """

    kind: str
    amount: float
    occurred_on: date
    account_id: Optional[str]
    description: str = ""
    to_account_id: Optional[str] = None
    category_id: Optional[str] = None
    card_id: Optional[str] = None
    notes: Optional[str] = None
    installment_number: Optional[int] = None
    total_installments: Optional[int] = None
    parent_transaction_id: Optional[str] = None
    is_installment_payment: bool = False
    is_recurring_payment: bool = False
    is_bill_payment: bool = False
    id: Optional[str] = None


@dataclass
class RecurringRule:
    """Template that spawns a transaction every `interval` x `frequency`"""

    kind: str
    amount: float
    account_id: Optional[str]
    frequency: str
    interval: int
    start_on: date
    next_run_on: date
    description: str = ""
    to_account_id: Optional[str] = None
    category_id: Optional[str] = None
    card_id: Optional[str] = None
    end_on: Optional[date] = None
    occurrences: Optional[int] = None


@dataclass
class ImportRow:
    """Single row of a bank/card statement CSV"""

    row_id: int
    occurred_on: date
    title: str
    amount: float
    category_id: Optional[str] = None
