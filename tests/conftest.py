"""Pytest fixtures for testing"""

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from pocket_ledger.api.main import create_app
from pocket_ledger.domain.models import (
    Card,
    Expense,
    Goal,
    Income,
    Recurrence,
    RecurrenceKind,
    Snapshot,
)

TODAY = date(2024, 5, 15)


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client"""
    return TestClient(create_app())


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def visa() -> Card:
    """Closes on the 20th, due on the 5th of the next month"""
    return Card(
        id="visa",
        name="Visa",
        issuer="Bank A",
        credit_limit=Decimal("5000.00"),
        balance=Decimal("200.00"),
        closing_day=20,
        payment_day=5,
    )


@pytest.fixture
def amex() -> Card:
    """Half-used card: 500 of 1000"""
    return Card(
        id="amex",
        name="Amex",
        issuer="Bank B",
        credit_limit=Decimal("1000.00"),
        balance=Decimal("500.00"),
        closing_day=10,
        payment_day=25,
    )


@pytest.fixture
def sample_snapshot(visa: Card, amex: Card) -> Snapshot:
    """
    Salary already materialized for May, rent paid in cash, groceries on
    the Visa. Available cash is 2000.00.
    """
    return Snapshot(
        cards=[visa, amex],
        transactions=[
            Income(
                id="t-salary-may",
                amount=Decimal("3000.00"),
                description="Salary (Auto)",
                category="Salary",
                date=date(2024, 5, 1),
                recurrence_id="rec-salary",
            ),
            Expense(
                id="t-rent",
                amount=Decimal("1000.00"),
                description="Rent",
                category="Housing",
                date=date(2024, 5, 3),
            ),
            Expense(
                id="t-groceries",
                amount=Decimal("200.00"),
                description="Groceries",
                category="Food",
                date=date(2024, 5, 10),
                card_id="visa",
            ),
        ],
        recurrences=[
            Recurrence(
                id="rec-salary",
                kind=RecurrenceKind.INCOME,
                description="Salary",
                amount=Decimal("3000.00"),
                day=1,
                category="Salary",
            ),
            Recurrence(
                id="rec-gym",
                kind=RecurrenceKind.EXPENSE,
                description="Gym",
                amount=Decimal("50.00"),
                day=20,
                category="Health",
            ),
        ],
        goals=[
            Goal(
                id="goal-trip",
                name="Trip",
                category="Travel",
                target_amount=Decimal("2000.00"),
                saved_amount=Decimal("500.00"),
                start_date=date(2024, 1, 1),
                target_date=date(2024, 12, 31),
            )
        ],
    )


@pytest.fixture
def snapshot_payload() -> dict:
    """JSON body equivalent of ``sample_snapshot``"""
    return {
        "cards": [
            {
                "id": "visa",
                "name": "Visa",
                "issuer": "Bank A",
                "credit_limit": "5000.00",
                "balance": "200.00",
                "closing_day": 20,
                "payment_day": 5,
            },
            {
                "id": "amex",
                "name": "Amex",
                "issuer": "Bank B",
                "credit_limit": "1000.00",
                "balance": "500.00",
                "closing_day": 10,
                "payment_day": 25,
            },
        ],
        "transactions": [
            {
                "kind": "income",
                "id": "t-salary-may",
                "amount": "3000.00",
                "description": "Salary (Auto)",
                "category": "Salary",
                "date": "2024-05-01",
                "recurrence_id": "rec-salary",
            },
            {
                "kind": "expense",
                "id": "t-rent",
                "amount": "1000.00",
                "description": "Rent",
                "category": "Housing",
                "date": "2024-05-03",
            },
            {
                "kind": "expense",
                "id": "t-groceries",
                "amount": "200.00",
                "description": "Groceries",
                "category": "Food",
                "date": "2024-05-10",
                "card_id": "visa",
            },
        ],
        "recurrences": [
            {
                "id": "rec-salary",
                "kind": "income",
                "description": "Salary",
                "amount": "3000.00",
                "day": 1,
                "category": "Salary",
            },
            {
                "id": "rec-gym",
                "kind": "expense",
                "description": "Gym",
                "amount": "50.00",
                "day": 20,
                "category": "Health",
            },
        ],
        "goals": [
            {
                "id": "goal-trip",
                "name": "Trip",
                "category": "Travel",
                "target_amount": "2000.00",
                "saved_amount": "500.00",
                "start_date": "2024-01-01",
                "target_date": "2024-12-31",
            }
        ],
    }
