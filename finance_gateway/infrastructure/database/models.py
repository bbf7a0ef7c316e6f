"""SQLAlchemy ORM models for accounts, cards, budgets and transactions"""

import uuid
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

# Money in the currency's major unit, read back as float
Money = Numeric(14, 2, asdecimal=False)


class Account(Base):
    """Checking, savings, credit or investment account"""

    __tablename__ = "accounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    type = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    cards = relationship("Card", back_populates="account", cascade="all, delete-orphan")


class Card(Base):
    """Credit card attached to a credit account"""

    __tablename__ = "cards"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    account_id = Column(Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    closing_day = Column(Integer, nullable=False)
    due_day = Column(Integer, nullable=False)
    limit_amount = Column(Money, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    account = relationship("Account", back_populates="cards")


class Category(Base):
    __tablename__ = "categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class MonthlyBudget(Base):
    """One budget per user per month"""

    __tablename__ = "monthly_budgets"
    __table_args__ = (UniqueConstraint("user_id", "month", name="uq_monthly_budget_user_month"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    month = Column(Date, nullable=False)
    income_target = Column(Money, nullable=False, default=0)
    investment_target = Column(Money, nullable=False, default=0)
    reserve_target = Column(Money, nullable=False, default=0)
    expense_limit = Column(Money, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    items = relationship("BudgetItem", back_populates="budget", cascade="all, delete-orphan")


class BudgetItem(Base):
    """Spending limit for one category within a monthly budget"""

    __tablename__ = "budget_items"
    __table_args__ = (UniqueConstraint("monthly_budget_id", "category_id", name="uq_budget_item_category"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    monthly_budget_id = Column(Uuid, ForeignKey("monthly_budgets.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(Uuid, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    amount_limit = Column(Money, nullable=False, default=0)

    budget = relationship("MonthlyBudget", back_populates="items")


class Transaction(Base):
    """Money movement; amount is always positive, direction comes from kind"""

    __tablename__ = "transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    kind = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    amount = Column(Money, nullable=False)
    occurred_on = Column(Date, nullable=False, index=True)
    account_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False)
    to_account_id = Column(Uuid, ForeignKey("accounts.id"), nullable=True)
    category_id = Column(Uuid, ForeignKey("categories.id"), nullable=True)
    card_id = Column(Uuid, ForeignKey("cards.id"), nullable=True)
    installment_number = Column(Integer, nullable=True)
    total_installments = Column(Integer, nullable=True)
    parent_transaction_id = Column(Uuid, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True)
    is_installment_payment = Column(Boolean, nullable=False, default=False)
    is_recurring_payment = Column(Boolean, nullable=False, default=False)
    is_bill_payment = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class RecurringRule(Base):
    """Schedule that repeats a transaction"""

    __tablename__ = "recurring_rules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    kind = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    amount = Column(Money, nullable=False)
    account_id = Column(Uuid, ForeignKey("accounts.id"), nullable=True)
    to_account_id = Column(Uuid, ForeignKey("accounts.id"), nullable=True)
    category_id = Column(Uuid, ForeignKey("categories.id"), nullable=True)
    card_id = Column(Uuid, ForeignKey("cards.id"), nullable=True)
    frequency = Column(Text, nullable=False, default="monthly")
    interval = Column(Integer, nullable=False, default=1)
    start_on = Column(Date, nullable=False)
    end_on = Column(Date, nullable=True)
    occurrences = Column(Integer, nullable=True)
    next_run_on = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
