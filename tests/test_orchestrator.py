"""Integration tests for the record and dashboard flows."""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

from expense_tracker.audit import AuditLogger
from expense_tracker.config import SummarySettings
from expense_tracker.errors import ValidationError
from expense_tracker.models.audit import AuditEventType
from expense_tracker.models.record import ExpenseCategory, RecordKind
from expense_tracker.orchestrator import DashboardFlow, RecordFlow
from expense_tracker.queries import SummaryExecutor
from expense_tracker.services.storage import (
    InMemoryAuditStorage,
    NotFoundError,
    StorageError,
)


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def record_flow(income_storage, expense_storage, audit_storage) -> RecordFlow:
    return RecordFlow(income_storage, expense_storage, AuditLogger(audit_storage))


@pytest.fixture
def dashboard_flow(income_storage, expense_storage, audit_storage) -> DashboardFlow:
    executor = SummaryExecutor(income_storage, expense_storage, settings=SummarySettings())
    return DashboardFlow(executor, AuditLogger(audit_storage))


def event_types(audit_storage):
    return [e.event_type for e in audit_storage.events]


class TestRecordFlow:
    """Tests for adding, updating and deleting records."""

    @pytest.mark.asyncio
    async def test_add_expense(self, record_flow, expense_storage, audit_storage):
        record = await record_flow.add_record(
            "user-1",
            RecordKind.EXPENSE,
            {"amount": "42.50", "category": "Food", "description": "Dinner", "date": "2024-03-10"},
        )

        assert record.amount == Decimal("42.50")
        assert record.category == ExpenseCategory.FOOD
        assert record.date == datetime(2024, 3, 10)
        assert await expense_storage.get_record("user-1", record.id) == record
        assert event_types(audit_storage) == [AuditEventType.RECORD_SAVED]

    @pytest.mark.asyncio
    async def test_add_without_date_uses_now(self, record_flow):
        record = await record_flow.add_record(
            "user-1",
            "income",
            {"amount": 1000, "category": "Salary", "description": "Pay", "date": ""},
        )
        assert record.date.year >= 2024

    @pytest.mark.asyncio
    async def test_caller_cannot_set_owner_or_id(self, record_flow):
        forged_id = uuid4()
        record = await record_flow.add_record(
            "user-1",
            RecordKind.EXPENSE,
            {
                "amount": "1",
                "category": "Other",
                "description": "Forged",
                "owner_id": "user-2",
                "id": forged_id,
            },
        )
        assert record.owner_id == "user-1"
        assert record.id != forged_id

    @pytest.mark.asyncio
    async def test_invalid_input_is_audited_and_raised(self, record_flow, expense_storage, audit_storage):
        with pytest.raises(ValidationError) as exc_info:
            await record_flow.add_record(
                "user-1",
                RecordKind.EXPENSE,
                {"amount": "-5", "category": "Salary", "description": ""},
            )

        assert len(exc_info.value.issues) == 3
        assert await expense_storage.find_all_by_owner("user-1") == []
        assert event_types(audit_storage) == [AuditEventType.VALIDATION_FAILED]

    @pytest.mark.asyncio
    async def test_update_keeps_unspecified_fields(self, record_flow):
        created = await record_flow.add_record(
            "user-1",
            RecordKind.EXPENSE,
            {"amount": "10", "category": "Travel", "description": "Cab", "date": "2024-03-01"},
        )

        updated = await record_flow.update_record(
            "user-1", RecordKind.EXPENSE, created.id, {"amount": "12"}
        )

        assert updated.id == created.id
        assert updated.amount == Decimal("12")
        assert updated.description == "Cab"
        assert updated.date == datetime(2024, 3, 1)
        assert updated.created_at == created.created_at
        assert updated.updated_at >= created.updated_at

    @pytest.mark.asyncio
    async def test_update_other_owner_not_found(self, record_flow, audit_storage):
        created = await record_flow.add_record(
            "user-1",
            RecordKind.EXPENSE,
            {"amount": "10", "category": "Travel", "description": "Cab"},
        )

        with pytest.raises(NotFoundError):
            await record_flow.update_record("user-2", RecordKind.EXPENSE, created.id, {"amount": "1"})
        assert event_types(audit_storage)[-1] == AuditEventType.STORAGE_ERROR

    @pytest.mark.asyncio
    async def test_update_validates(self, record_flow):
        created = await record_flow.add_record(
            "user-1",
            RecordKind.INCOME,
            {"amount": "10", "category": "Gifts", "description": "Birthday"},
        )
        with pytest.raises(ValidationError):
            await record_flow.update_record(
                "user-1", RecordKind.INCOME, created.id, {"category": "Rent"}
            )

    @pytest.mark.asyncio
    async def test_delete(self, record_flow, expense_storage, audit_storage):
        created = await record_flow.add_record(
            "user-1",
            RecordKind.EXPENSE,
            {"amount": "10", "category": "Travel", "description": "Cab"},
        )

        await record_flow.delete_record("user-1", RecordKind.EXPENSE, created.id)

        assert await expense_storage.get_record("user-1", created.id) is None
        assert event_types(audit_storage)[-1] == AuditEventType.RECORD_DELETED

        with pytest.raises(NotFoundError):
            await record_flow.delete_record("user-1", RecordKind.EXPENSE, created.id)


class TestDashboardFlow:
    """Tests for audited dashboard queries."""

    @pytest.mark.asyncio
    async def test_summary_audited(self, record_flow, dashboard_flow, audit_storage):
        await record_flow.add_record(
            "user-1", RecordKind.INCOME,
            {"amount": "100", "category": "Salary", "description": "Pay", "date": "2024-03-01"},
        )
        await record_flow.add_record(
            "user-1", RecordKind.EXPENSE,
            {"amount": "30", "category": "Food", "description": "Lunch", "date": "2024-03-02"},
        )

        combined = await dashboard_flow.summary("user-1", now=datetime(2024, 3, 15))

        assert combined.balance == Decimal("70")
        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.SUMMARY_COMPUTED
        assert event.details["transaction_count"] == 2
        assert event.details["balance"] == "70"

    @pytest.mark.asyncio
    async def test_events_share_correlation_id(self, dashboard_flow, audit_storage):
        correlation_id = uuid4()
        await dashboard_flow.summary("user-1", correlation_id=correlation_id)
        await dashboard_flow.feed("user-1", correlation_id=correlation_id)

        events = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [
            AuditEventType.SUMMARY_COMPUTED,
            AuditEventType.FEED_COMPUTED,
        ]

    @pytest.mark.asyncio
    async def test_bad_filter_audited_and_raised(self, dashboard_flow, audit_storage):
        with pytest.raises(ValidationError):
            await dashboard_flow.summary("user-1", {"endDate": "31-03-2024"})

        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.VALIDATION_FAILED
        assert event.details["field"] == "end_date"

    @pytest.mark.asyncio
    async def test_storage_error_audited_and_raised(self, income_storage, expense_storage, audit_storage):
        expense_storage.find_all_by_owner = AsyncMock(side_effect=StorageError("timeout"))
        executor = SummaryExecutor(income_storage, expense_storage, settings=SummarySettings())
        flow = DashboardFlow(executor, AuditLogger(audit_storage))

        with pytest.raises(StorageError):
            await flow.summary("user-1")

        assert event_types(audit_storage) == [AuditEventType.STORAGE_ERROR]

    @pytest.mark.asyncio
    async def test_records_and_export(self, record_flow, dashboard_flow, audit_storage):
        await record_flow.add_record(
            "user-1", RecordKind.EXPENSE,
            {"amount": "30", "category": "Food", "description": "Lunch", "date": "2024-03-02"},
        )

        records = await dashboard_flow.records("user-1", RecordKind.EXPENSE)
        sheets = await dashboard_flow.export("user-1")

        assert len(records) == 1
        assert len(sheets[RecordKind.EXPENSE]) == 2
        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.EXPORT_GENERATED
        assert event.details["row_counts"] == {"expense": 1, "income": 0}

    @pytest.mark.asyncio
    async def test_works_without_audit_logger(self, income_storage, expense_storage):
        executor = SummaryExecutor(income_storage, expense_storage, settings=SummarySettings())
        combined = await DashboardFlow(executor).summary("user-1")
        assert combined.transaction_count == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
