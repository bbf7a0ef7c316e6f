"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import Dict, List, Literal, Optional

AccountType = Literal["checking", "savings", "credit", "investment"]
Kind = Literal["income", "expense", "transfer", "investment_contribution", "investment_withdrawal"]


class AccountRequest(BaseModel):
    name: str = Field(..., min_length=1)
    type: AccountType


class AccountResponse(BaseModel):
    id: str
    name: str
    type: str


class CategoryRequest(BaseModel):
    name: str = Field(..., min_length=1)


class CategoryResponse(BaseModel):
    id: str
    name: str


class CardRequest(BaseModel):
    """Request body for POST /v1/cards"""

    account_id: str
    name: str = Field(..., min_length=1)
    closing_day: int = Field(..., ge=1, le=31)
    due_day: int = Field(..., ge=1, le=31)
    limit_amount: str = Field("0", description="Free-text amount, e.g. '5.000,00'")


class CardResponse(BaseModel):
    id: str
    account_id: str
    name: str
    closing_day: int
    due_day: int
    limit_amount: float


class StatementResponse(BaseModel):
    """Response for GET /v1/cards/{card_id}/statement"""

    card_id: str
    reference_date: date
    start: date
    end: date
    closing_date: date
    due_date: date
    spent: float = 0.0
    paid: float = 0.0
    outstanding: float = 0.0
    remaining_limit: float = 0.0
    usage: float = 0.0
    over_limit: bool = False


class CardPaymentRequest(BaseModel):
    """Request body for POST /v1/cards/{card_id}/payments: pays the bill from `account_id`"""

    account_id: str
    amount: str
    occurred_on: Optional[str] = None


class TransactionCreateRequest(BaseModel):
    """
    Request body for POST /v1/transactions.

    Amounts are free text ("1.234,56", "R$ 10"); validity is checked after parsing.
    """

    kind: Kind
    amount: str
    occurred_on: Optional[str] = None
    description: str = ""
    account_id: Optional[str] = None
    to_account_id: Optional[str] = None
    category_id: Optional[str] = None
    card_id: Optional[str] = None
    notes: Optional[str] = None
    installments: int = Field(0, ge=0, le=99)
    first_installment_on: Optional[str] = None
    is_recurring: bool = False
    recurrence_frequency: Optional[str] = None
    recurrence_interval: int = 1
    recurrence_end_on: Optional[date] = None
    recurrence_occurrences: Optional[int] = None
    is_bill_payment: bool = False


class TransactionUpdateRequest(BaseModel):
    """Request body for PATCH /v1/transactions/{transaction_id}"""

    kind: Kind
    amount: str
    occurred_on: str
    description: str = ""
    account_id: Optional[str] = None
    to_account_id: Optional[str] = None
    category_id: Optional[str] = None
    card_id: Optional[str] = None
    is_bill_payment: bool = False
    is_installment_payment: bool = False
    is_recurring_payment: bool = False
    installment_number: Optional[str] = None
    total_installments: Optional[str] = None
    create_future_installments: bool = False


class TransactionSchema(BaseModel):
    id: str
    kind: str
    amount: float
    amount_display: str = ""
    occurred_on: date
    description: Optional[str] = None
    account_id: Optional[str] = None
    to_account_id: Optional[str] = None
    category_id: Optional[str] = None
    card_id: Optional[str] = None
    installment_number: Optional[int] = None
    total_installments: Optional[int] = None
    parent_transaction_id: Optional[str] = None
    is_installment_payment: bool = False
    is_recurring_payment: bool = False
    is_bill_payment: bool = False


class TransactionCreateResponse(BaseModel):
    transactions: List[TransactionSchema]
    recurring_rule_id: Optional[str] = None


class TransactionUpdateResponse(BaseModel):
    ok: bool
    transaction: TransactionSchema
    created: List[TransactionSchema] = []
    warning: Optional[str] = None


class TransactionListResponse(BaseModel):
    month: date
    transactions: List[TransactionSchema]


class RecurringRuleSchema(BaseModel):
    id: str
    kind: str
    amount: float
    frequency: str
    interval: int
    start_on: date
    end_on: Optional[date] = None
    occurrences: Optional[int] = None
    next_run_on: Optional[date] = None
    upcoming: List[date] = []


class RecurringRuleListResponse(BaseModel):
    until: date
    rules: List[RecurringRuleSchema]


class BudgetRequest(BaseModel):
    """Request body for PUT /v1/budgets/{month}"""

    income_target: str
    investment_percent: str = "0"
    reserve_percent: str = "0"


class BudgetItemRequest(BaseModel):
    category_id: str
    amount_limit: str


class BudgetItemSchema(BaseModel):
    category_id: str
    amount_limit: float


class BudgetItemUsageSchema(BaseModel):
    category_id: str
    amount_limit: float
    spent: float
    remaining: float


class BudgetSummarySchema(BaseModel):
    income: float
    expense: float
    investment_contribution: float
    investment_withdrawal: float
    saved: float
    remaining: float
    remaining_days: int
    daily_allowance: float
    commitment: float
    items: List[BudgetItemUsageSchema] = []


class BudgetResponse(BaseModel):
    month: date
    income_target: float
    investment_target: float
    reserve_target: float
    expense_limit: float
    investment_percent: float
    reserve_percent: float
    items: List[BudgetItemSchema] = []
    summary: Optional[BudgetSummarySchema] = None


class ImportPreviewRequest(BaseModel):
    """Request body for POST /v1/imports/preview"""

    csv_content: str


class ImportRowSchema(BaseModel):
    row_id: int
    occurred_on: date
    title: str
    amount: float
    category_id: Optional[str] = None
    installment_number: Optional[int] = None
    total_installments: Optional[int] = None


class ImportPreviewResponse(BaseModel):
    rows: List[ImportRowSchema]
    suggestions: Dict[str, str] = {}
    failed_batches: int = 0


class ImportCommitRequest(BaseModel):
    """Request body for POST /v1/imports"""

    account_id: str
    card_id: Optional[str] = None
    rows: List[ImportRowSchema] = Field(..., min_length=1)


class ImportCommitResponse(BaseModel):
    imported: int
