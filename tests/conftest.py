"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from cardcycle.api.main import create_app
from cardcycle.infrastructure.database.models import Base, CreditCard, CardTransaction
from cardcycle.infrastructure.database.session import get_db
from cardcycle.domain.models import Card, Transaction


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


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
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def sample_card() -> Card:
    """Card with a statement closing 2024-06-15, due 2024-07-10 (25-day grace)"""
    return Card(
        card_id="card_rewards",
        name="Rewards Visa",
        balance_current_cents=60000,
        available_credit_cents=440000,
        reported_limit_cents=None,
        last_statement_balance_cents=100000,
        last_statement_date=date(2024, 6, 15),
        next_payment_due_date=date(2024, 7, 10),
        open_date=date(2023, 1, 1),
        minimum_payment_cents=3500,
    )


@pytest.fixture
def sample_transactions() -> list[Transaction]:
    """A year of monthly purchases plus one payment after the last statement"""
    transactions = [
        Transaction(
            transaction_id=f"purchase_{month:02d}",
            date=date(2023 if month >= 7 else 2024, month, 5),
            amount_cents=10000,  # $100 groceries
            description="WHOLE FOODS MARKET",
        )
        for month in range(1, 13)
    ]
    transactions.append(
        Transaction(
            transaction_id="payment_0620",
            date=date(2024, 6, 20),
            amount_cents=-40000,
            description="AUTOPAY PAYMENT - THANK YOU",
        )
    )
    return transactions


@pytest.fixture
def stored_card(db: Session, sample_card: Card, sample_transactions: list[Transaction]) -> CreditCard:
    """sample_card and sample_transactions persisted to the test database"""
    row = CreditCard(
        id=sample_card.card_id,
        name=sample_card.name,
        balance_current_cents=sample_card.balance_current_cents,
        available_credit_cents=sample_card.available_credit_cents,
        reported_limit_cents=sample_card.reported_limit_cents,
        last_statement_balance_cents=sample_card.last_statement_balance_cents,
        last_statement_date=sample_card.last_statement_date,
        next_payment_due_date=sample_card.next_payment_due_date,
        open_date=sample_card.open_date,
        open_date_source="reported",
        minimum_payment_cents=sample_card.minimum_payment_cents,
    )
    db.add(row)
    for txn in sample_transactions:
        db.add(
            CardTransaction(
                card_id=sample_card.card_id,
                transaction_id=txn.transaction_id,
                description=txn.description,
                amount_cents=txn.amount_cents,
                date=txn.date,
                authorized_date=txn.authorized_date,
            )
        )
    db.commit()
    return row
