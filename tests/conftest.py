"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from finance_core.api.main import create_app
from finance_core.infrastructure.database.models import Base
from finance_core.infrastructure.database.session import get_db
from finance_core.domain.models import EXPENSE, INCOME, Entity, Movement, RecurringRule


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
def entities() -> list[Entity]:
    return [
        Entity(id="bank", name="Bancolombia", total_cents=999),  # stale cache on purpose
        Entity(id="cash", name="Efectivo"),
    ]


@pytest.fixture
def sample_movements() -> list[Movement]:
    """Three months of salary with rent, groceries and transport"""
    movements = []
    for month in (1, 2, 3):
        movements.append(
            Movement(
                id=f"salary-{month}",
                description="Salario",
                amount_cents=500000000,
                direction=INCOME,
                category="salary",
                date=date(2026, month, 1),
                entity_id="bank",
                payment_method="transfer",
            )
        )
        movements.append(
            Movement(
                id=f"rent-{month}",
                description="Arriendo apartamento",
                amount_cents=150000000,
                direction=EXPENSE,
                category="housing",
                date=date(2026, month, 5),
                entity_id="bank",
                payment_method="transfer",
            )
        )
        movements.append(
            Movement(
                id=f"groceries-{month}",
                description="Mercado Éxito",
                amount_cents=80000000,
                direction=EXPENSE,
                category="groceries",
                date=date(2026, month, 15),
                entity_id="cash",
                payment_method="cash",
            )
        )
    return movements


@pytest.fixture
def netflix_rule() -> RecurringRule:
    return RecurringRule(
        id="netflix",
        description="Netflix",
        amount_cents=3890000,
        category="subscriptions",
        frequency="monthly",
        start_date=date(2026, 1, 31),
        next_due_date=date(2026, 1, 31),
        entity_id="bank",
    )
