"""Shared fixtures for the expense tracker tests."""

from datetime import datetime
from decimal import Decimal

import pytest

from expense_tracker.models.record import (
    ExpenseCategory,
    ExpenseRecord,
    IncomeCategory,
    IncomeRecord,
    RecordKind,
)
from expense_tracker.services.storage import InMemoryRecordStorage

OWNER = "user-1"
OTHER_OWNER = "user-2"


@pytest.fixture
def now() -> datetime:
    """Fixed reference time: mid March 2024."""
    return datetime(2024, 3, 15, 12, 0, 0)


@pytest.fixture
def make_expense():
    def _make(
        amount="10.00",
        category=ExpenseCategory.FOOD,
        date=datetime(2024, 3, 10),
        owner_id=OWNER,
        description="Lunch",
    ) -> ExpenseRecord:
        return ExpenseRecord(
            owner_id=owner_id,
            amount=Decimal(amount),
            category=category,
            description=description,
            date=date,
        )
    return _make


@pytest.fixture
def make_income():
    def _make(
        amount="100.00",
        category=IncomeCategory.SALARY,
        date=datetime(2024, 3, 1),
        owner_id=OWNER,
        description="Paycheck",
    ) -> IncomeRecord:
        return IncomeRecord(
            owner_id=owner_id,
            amount=Decimal(amount),
            category=category,
            description=description,
            date=date,
        )
    return _make


@pytest.fixture
def income_storage() -> InMemoryRecordStorage:
    return InMemoryRecordStorage(RecordKind.INCOME)


@pytest.fixture
def expense_storage() -> InMemoryRecordStorage:
    return InMemoryRecordStorage(RecordKind.EXPENSE)
