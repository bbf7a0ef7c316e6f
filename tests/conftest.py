"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import date
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from finance_gateway.api.main import create_app
from finance_gateway.api.dependencies import get_today
from finance_gateway.infrastructure.database.models import Base
from finance_gateway.infrastructure.database.session import get_db
from finance_gateway.domain.models import Card, TransactionDraft


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Fixed clock for every request made through the test client
TODAY = date(2024, 3, 15)
USER_ID = "user_test"


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and a pinned clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: TODAY
    return TestClient(app, headers={"X-User-Id": USER_ID})


@pytest.fixture
def credit_setup(client: TestClient) -> dict:
    """Credit account with a card closing on the 10th and due on the 20th, plus a category"""
    account = client.post("/v1/accounts", json={"name": "Nubank", "type": "credit"}).json()
    checking = client.post("/v1/accounts", json={"name": "Conta corrente", "type": "checking"}).json()
    card = client.post(
        "/v1/cards",
        json={
            "account_id": account["id"],
            "name": "Roxinho",
            "closing_day": 10,
            "due_day": 20,
            "limit_amount": "5.000,00",
        },
    ).json()
    category = client.post("/v1/categories", json={"name": "Mercado"}).json()
    return {"account": account, "checking": checking, "card": card, "category": category}


@pytest.fixture
def card() -> Card:
    """Card closing on the 10th, due on the 20th"""
    return Card(id="card_1", account_id="account_1", closing_day=10, due_day=20, limit_amount=5000.0)


@pytest.fixture
def expense_template() -> TransactionDraft:
    """Card purchase used as the base for generated installments"""
    return TransactionDraft(
        kind="expense",
        amount=300.0,
        occurred_on=date(2024, 1, 31),
        account_id="account_1",
        card_id="card_1",
        category_id="category_1",
        description="Geladeira",
    )
