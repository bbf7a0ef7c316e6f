"""Data access layer for accounts, cards, budgets and transactions"""

import uuid
from datetime import date
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
from finance_gateway.infrastructure.database import models
from finance_gateway.domain import models as domain
from finance_gateway.domain.installments import link_installments_to_parent


def parse_uuid(value) -> Optional[uuid.UUID]:
    """UUID from user input; None when missing or malformed"""
    if value is None or value == "":
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _str_or_none(value: Optional[uuid.UUID]) -> Optional[str]:
    return str(value) if value is not None else None


class AccountRepository:
    """Repository for accounts"""

    def __init__(self, db: Session):
        self.db = db

    def create_account(self, user_id: str, name: str, type: str) -> models.Account:
        db_account = models.Account(user_id=user_id, name=name, type=type)
        self.db.add(db_account)
        self.db.flush()
        return db_account

    def get_account(self, user_id: str, account_id) -> Optional[models.Account]:
        account_uuid = parse_uuid(account_id)
        if account_uuid is None:
            return None
        return (
            self.db.query(models.Account)
            .filter(models.Account.user_id == user_id, models.Account.id == account_uuid)
            .first()
        )


class CardRepository:
    """Repository for credit cards"""

    def __init__(self, db: Session):
        self.db = db

    def create_card(
        self,
        user_id: str,
        account_id: uuid.UUID,
        name: str,
        closing_day: int,
        due_day: int,
        limit_amount: float,
    ) -> models.Card:
        db_card = models.Card(
            user_id=user_id,
            account_id=account_id,
            name=name,
            closing_day=closing_day,
            due_day=due_day,
            limit_amount=limit_amount,
        )
        self.db.add(db_card)
        self.db.flush()
        return db_card

    def get_card(self, user_id: str, card_id) -> Optional[models.Card]:
        card_uuid = parse_uuid(card_id)
        if card_uuid is None:
            return None
        return (
            self.db.query(models.Card)
            .filter(models.Card.user_id == user_id, models.Card.id == card_uuid)
            .first()
        )

    @staticmethod
    def to_domain(db_card: models.Card) -> domain.Card:
        return domain.Card(
            id=str(db_card.id),
            account_id=str(db_card.account_id),
            closing_day=db_card.closing_day,
            due_day=db_card.due_day,
            limit_amount=db_card.limit_amount or 0.0,
        )


class CategoryRepository:
    """Repository for spending categories"""

    def __init__(self, db: Session):
        self.db = db

    def create_category(self, user_id: str, name: str) -> models.Category:
        db_category = models.Category(user_id=user_id, name=name)
        self.db.add(db_category)
        self.db.flush()
        return db_category

    def get_category(self, user_id: str, category_id) -> Optional[models.Category]:
        category_uuid = parse_uuid(category_id)
        if category_uuid is None:
            return None
        return (
            self.db.query(models.Category)
            .filter(models.Category.user_id == user_id, models.Category.id == category_uuid)
            .first()
        )

    def get_categories_by_user(self, user_id: str) -> List[models.Category]:
        return (
            self.db.query(models.Category)
            .filter(models.Category.user_id == user_id)
            .order_by(models.Category.name)
            .all()
        )


class BudgetRepository:
    """Repository for monthly budgets and their per-category items"""

    def __init__(self, db: Session):
        self.db = db

    def get_budget(self, user_id: str, month: date) -> Optional[models.MonthlyBudget]:
        return (
            self.db.query(models.MonthlyBudget)
            .filter(models.MonthlyBudget.user_id == user_id, models.MonthlyBudget.month == month)
            .first()
        )

    def upsert_budget(self, budget: domain.MonthlyBudget) -> models.MonthlyBudget:
        """Insert or overwrite the single budget row for (user_id, month)"""
        db_budget = self.get_budget(budget.user_id, budget.month)
        if db_budget is None:
            db_budget = models.MonthlyBudget(user_id=budget.user_id, month=budget.month)
            self.db.add(db_budget)

        db_budget.income_target = budget.income_target
        db_budget.investment_target = budget.investment_target
        db_budget.reserve_target = budget.reserve_target
        db_budget.expense_limit = budget.expense_limit
        self.db.flush()
        return db_budget

    def get_or_create_budget(self, user_id: str, month: date) -> models.MonthlyBudget:
        db_budget = self.get_budget(user_id, month)
        if db_budget is None:
            db_budget = models.MonthlyBudget(
                user_id=user_id,
                month=month,
                income_target=0,
                investment_target=0,
                reserve_target=0,
                expense_limit=0,
            )
            self.db.add(db_budget)
            self.db.flush()
        return db_budget

    def upsert_item(self, budget_id: uuid.UUID, category_id: uuid.UUID, amount_limit: float) -> models.BudgetItem:
        """Insert or overwrite the limit for (budget, category)"""
        db_item = (
            self.db.query(models.BudgetItem)
            .filter(models.BudgetItem.monthly_budget_id == budget_id, models.BudgetItem.category_id == category_id)
            .first()
        )
        if db_item is None:
            db_item = models.BudgetItem(monthly_budget_id=budget_id, category_id=category_id)
            self.db.add(db_item)
        db_item.amount_limit = amount_limit
        self.db.flush()
        return db_item


class TransactionRepository:
    """Repository for transactions and installment series"""

    def __init__(self, db: Session):
        self.db = db

    def _add(self, user_id: str, draft: domain.TransactionDraft) -> models.Transaction:
        db_transaction = models.Transaction(user_id=user_id)
        self._apply(db_transaction, draft)
        self.db.add(db_transaction)
        return db_transaction

    @staticmethod
    def _apply(db_transaction: models.Transaction, draft: domain.TransactionDraft) -> None:
        db_transaction.kind = draft.kind
        db_transaction.description = draft.description
        db_transaction.notes = draft.notes
        db_transaction.amount = draft.amount
        db_transaction.occurred_on = draft.occurred_on
        db_transaction.account_id = parse_uuid(draft.account_id)
        db_transaction.to_account_id = parse_uuid(draft.to_account_id)
        db_transaction.category_id = parse_uuid(draft.category_id)
        db_transaction.card_id = parse_uuid(draft.card_id)
        db_transaction.installment_number = draft.installment_number
        db_transaction.total_installments = draft.total_installments
        db_transaction.parent_transaction_id = parse_uuid(draft.parent_transaction_id)
        db_transaction.is_installment_payment = draft.is_installment_payment
        db_transaction.is_recurring_payment = draft.is_recurring_payment
        db_transaction.is_bill_payment = draft.is_bill_payment

    def create_transactions(self, user_id: str, drafts: List[domain.TransactionDraft]) -> List[models.Transaction]:
        """Persist drafts as given, in order"""
        rows = [self._add(user_id, draft) for draft in drafts]
        self.db.flush()
        return rows

    def create_installment_series(self, user_id: str, drafts: List[domain.TransactionDraft]) -> List[models.Transaction]:
        """
        Persist a generated installment series.

        The first row is written alone so the store assigns its id, then the
        remaining rows are written pointing at it.
        """
        if not drafts:
            return []

        parent = self._add(user_id, drafts[0])
        self.db.flush()  # Get ID without committing

        siblings = link_installments_to_parent(drafts, str(parent.id))[1:]
        return [parent] + self.create_transactions(user_id, siblings)

    def get_transaction(self, user_id: str, transaction_id) -> Optional[models.Transaction]:
        transaction_uuid = parse_uuid(transaction_id)
        if transaction_uuid is None:
            return None
        return (
            self.db.query(models.Transaction)
            .filter(models.Transaction.user_id == user_id, models.Transaction.id == transaction_uuid)
            .first()
        )

    def update_transaction(self, db_transaction: models.Transaction, draft: domain.TransactionDraft) -> models.Transaction:
        self._apply(db_transaction, draft)
        self.db.flush()
        return db_transaction

    def get_transactions_between(self, user_id: str, period: Tuple[date, date]) -> List[models.Transaction]:
        start, end = period
        return (
            self.db.query(models.Transaction)
            .filter(
                models.Transaction.user_id == user_id,
                models.Transaction.occurred_on >= start,
                models.Transaction.occurred_on <= end,
            )
            .order_by(models.Transaction.occurred_on, models.Transaction.installment_number)
            .all()
        )

    def get_card_transactions_between(self, user_id: str, card_id, period: Tuple[date, date]) -> List[models.Transaction]:
        """Transactions charged to, or paying, one card within a statement window"""
        start, end = period
        return (
            self.db.query(models.Transaction)
            .filter(
                models.Transaction.user_id == user_id,
                models.Transaction.card_id == parse_uuid(card_id),
                models.Transaction.occurred_on >= start,
                models.Transaction.occurred_on <= end,
            )
            .order_by(models.Transaction.occurred_on)
            .all()
        )

    @staticmethod
    def to_domain(db_transaction: models.Transaction) -> domain.TransactionDraft:
        return domain.TransactionDraft(
            id=str(db_transaction.id),
            kind=db_transaction.kind,
            amount=db_transaction.amount,
            occurred_on=db_transaction.occurred_on,
            account_id=_str_or_none(db_transaction.account_id),
            description=db_transaction.description or "",
            to_account_id=_str_or_none(db_transaction.to_account_id),
            category_id=_str_or_none(db_transaction.category_id),
            card_id=_str_or_none(db_transaction.card_id),
            notes=db_transaction.notes,
            installment_number=db_transaction.installment_number,
            total_installments=db_transaction.total_installments,
            parent_transaction_id=_str_or_none(db_transaction.parent_transaction_id),
            is_installment_payment=bool(db_transaction.is_installment_payment),
            is_recurring_payment=bool(db_transaction.is_recurring_payment),
            is_bill_payment=bool(db_transaction.is_bill_payment),
        )


class RecurringRuleRepository:
    """Repository for recurring rules"""

    def __init__(self, db: Session):
        self.db = db

    def create_rule(self, user_id: str, rule: domain.RecurringRule) -> models.RecurringRule:
        db_rule = models.RecurringRule(
            user_id=user_id,
            kind=rule.kind,
            description=rule.description,
            amount=rule.amount,
            account_id=parse_uuid(rule.account_id),
            to_account_id=parse_uuid(rule.to_account_id),
            category_id=parse_uuid(rule.category_id),
            card_id=parse_uuid(rule.card_id),
            frequency=rule.frequency,
            interval=rule.interval,
            start_on=rule.start_on,
            end_on=rule.end_on,
            occurrences=rule.occurrences,
            next_run_on=rule.next_run_on,
        )
        self.db.add(db_rule)
        self.db.flush()
        return db_rule

    def get_rules_by_user(self, user_id: str) -> List[models.RecurringRule]:
        return (
            self.db.query(models.RecurringRule)
            .filter(models.RecurringRule.user_id == user_id)
            .order_by(models.RecurringRule.next_run_on)
            .all()
        )
