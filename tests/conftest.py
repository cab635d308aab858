"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from wallet_ledger.api.main import create_app
from wallet_ledger.api.dependencies import get_today
from wallet_ledger.infrastructure.database.models import Base
from wallet_ledger.infrastructure.database.session import get_db
from wallet_ledger.domain.models import Transaction, Wallet


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TODAY = date(2024, 6, 20)


class FixedClock:
    """Mutable reference date shared by the app under test"""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(TODAY)


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
def client(db: Session, clock: FixedClock) -> TestClient:
    """Create FastAPI test client with test database and a pinned date"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = clock
    return TestClient(app)


@pytest.fixture
def credit_wallet() -> Wallet:
    """Credit card billed on the 15th, due 20 days later"""
    return Wallet(
        id="card",
        name="Visa",
        type="credit",
        balance=Decimal("0"),
        credit_limit=Decimal("5000"),
        billing_date=15,
        due_date_duration=20,
    )


@pytest.fixture
def make_txn() -> Callable[..., Transaction]:
    """Factory for transactions on the `card` wallet"""
    counter = iter(range(1, 10_000))

    def _make(
        type: str,
        amount: str,
        on: date,
        wallet_id: str = "card",
        **fields,
    ) -> Transaction:
        return Transaction(
            id=f"t{next(counter)}",
            wallet_id=wallet_id,
            type=type,
            amount=Decimal(amount),
            date=datetime.combine(on, datetime.min.time()).replace(hour=12),
            **fields,
        )

    return _make
