"""
Main Orchestrator for the Expense Tracker

This module ties the components together and defines the flows for:
1. Record management (validate → save/update/delete → audit)
2. Dashboard queries (filter → fetch → summarize/merge → audit)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Records are validated before they reach storage
- Every request is scoped to one owner
- Every step is audited, and failures are audited AND re-raised
"""

from datetime import datetime
from typing import Any, Awaitable, Mapping, Optional, TypeVar
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError

from expense_tracker.audit import AuditLogger, configure_logging, create_correlation_id
from expense_tracker.config import get_settings
from expense_tracker.errors import ValidationError
from expense_tracker.models.record import Record, RecordKind, record_model_for, utcnow
from expense_tracker.models.summary import CombinedSummary, FeedEntry, SortSpec
from expense_tracker.queries import SummaryExecutor
from expense_tracker.queries.executor import Params
from expense_tracker.services.storage import (
    AuditStorageInterface,
    GoogleSheetsClient,
    GoogleSheetsRecordStorage,
    InMemoryAuditStorage,
    InMemoryRecordStorage,
    NotFoundError,
    RecordStorageInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Fields a caller may set on a record; id, owner and timestamps are ours
EDITABLE_FIELDS = ("amount", "category", "description", "date")


def _editable(data: Mapping[str, Any]) -> dict[str, Any]:
    fields = {k: data[k] for k in EDITABLE_FIELDS if k in data}
    # A missing or blank date means "keep the default"
    if fields.get("date") in (None, ""):
        fields.pop("date", None)
    return fields


def _to_validation_error(e: PydanticValidationError) -> ValidationError:
    issues = [
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
        for err in e.errors()
    ]
    first_field = str(e.errors()[0]["loc"][0]) if e.errors() and e.errors()[0]["loc"] else None
    return ValidationError("Invalid record data", field=first_field, issues=issues)


class _AuditedFlow:
    """Shared audit handling for flows."""

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._audit_logger = audit_logger

    async def _audited(
        self,
        owner_id: Optional[str],
        operation: str,
        call: Awaitable[T],
        correlation_id: UUID,
    ) -> T:
        """Await `call`, auditing validation and storage failures before re-raising."""
        try:
            return await call
        except ValidationError as e:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    owner_id=owner_id,
                    field=e.field,
                    message=e.message,
                    issues=e.issues,
                    correlation_id=correlation_id,
                )
            raise
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    owner_id=owner_id,
                    operation=operation,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"owner_id": owner_id, "operation": operation},
                    correlation_id=correlation_id,
                )
            raise


class RecordFlow(_AuditedFlow):
    """
    Add, update and delete income/expense records.

    Validation rules:
    - amount is a non-negative number
    - category belongs to the kind's vocabulary
    - description is 1-200 characters
    - date is optional ISO-8601 (defaults to now)
    """

    def __init__(
        self,
        income_storage: RecordStorageInterface,
        expense_storage: RecordStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(audit_logger)
        self._stores = {
            RecordKind.INCOME: income_storage,
            RecordKind.EXPENSE: expense_storage,
        }

    def _build(self, kind: RecordKind, values: dict[str, Any]) -> Record:
        try:
            return record_model_for(kind).model_validate(values)
        except PydanticValidationError as e:
            raise _to_validation_error(e)

    async def add_record(
        self,
        owner_id: str,
        kind: RecordKind,
        data: Mapping[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> Record:
        """
        Validate and save a new record.

        Raises:
            ValidationError: If the data breaks any validation rule
            StorageError: If the save fails
        """
        correlation_id = correlation_id or create_correlation_id()
        kind = RecordKind(kind)

        async def _add() -> Record:
            record = self._build(kind, {**_editable(data), "owner_id": owner_id})
            await self._stores[kind].save_record(record)
            return record

        record = await self._audited(owner_id, f"add_{kind.value}", _add(), correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_record_saved(
                owner_id=owner_id,
                kind=kind.value,
                record_id=record.id,
                amount=str(record.amount),
                correlation_id=correlation_id,
            )
        return record

    async def update_record(
        self,
        owner_id: str,
        kind: RecordKind,
        record_id: UUID,
        data: Mapping[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> Record:
        """
        Validate and apply changes to one of the owner's records.

        Fields missing from `data` keep their current values.

        Raises:
            NotFoundError: If the owner has no such record
            ValidationError: If the updated record is invalid
        """
        correlation_id = correlation_id or create_correlation_id()
        kind = RecordKind(kind)
        store = self._stores[kind]

        async def _update() -> Record:
            existing = await store.get_record(owner_id, record_id)
            if existing is None:
                raise NotFoundError(f"{kind.value.capitalize()} not found: {record_id}")
            values = existing.model_dump()
            values.update(_editable(data))
            values["updated_at"] = utcnow()
            updated = self._build(kind, values)
            await store.update_record(updated)
            return updated

        updated = await self._audited(owner_id, f"update_{kind.value}", _update(), correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_record_updated(
                owner_id=owner_id,
                kind=kind.value,
                record_id=updated.id,
                correlation_id=correlation_id,
            )
        return updated

    async def delete_record(
        self,
        owner_id: str,
        kind: RecordKind,
        record_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Delete one of the owner's records.

        Raises:
            NotFoundError: If the owner has no such record
        """
        correlation_id = correlation_id or create_correlation_id()
        kind = RecordKind(kind)

        async def _delete() -> None:
            deleted = await self._stores[kind].delete_record(owner_id, record_id)
            if not deleted:
                raise NotFoundError(f"{kind.value.capitalize()} not found: {record_id}")

        await self._audited(owner_id, f"delete_{kind.value}", _delete(), correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_record_deleted(
                owner_id=owner_id,
                kind=kind.value,
                record_id=record_id,
                correlation_id=correlation_id,
            )


class DashboardFlow(_AuditedFlow):
    """
    Dashboard queries: combined summary, recent feed, record lists, export.

    All computation is delegated to the SummaryExecutor; this flow only
    adds correlation IDs and audit events.
    """

    def __init__(
        self,
        executor: SummaryExecutor,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(audit_logger)
        self._executor = executor

    async def summary(
        self,
        owner_id: str,
        params: Params = None,
        now: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> CombinedSummary:
        correlation_id = correlation_id or create_correlation_id()
        result = await self._audited(
            owner_id,
            "compute_summary",
            self._executor.compute_summary(owner_id, params, now),
            correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_summary_computed(
                owner_id=owner_id,
                filter_description=_describe(params),
                transaction_count=result.transaction_count,
                balance=str(result.balance),
                correlation_id=correlation_id,
            )
        return result

    async def feed(
        self,
        owner_id: str,
        params: Params = None,
        max_entries: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[FeedEntry]:
        correlation_id = correlation_id or create_correlation_id()
        entries = await self._audited(
            owner_id,
            "compute_feed",
            self._executor.compute_feed(owner_id, params, max_entries),
            correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_feed_computed(
                owner_id=owner_id,
                entry_count=len(entries),
                correlation_id=correlation_id,
            )
        return entries

    async def records(
        self,
        owner_id: str,
        kind: RecordKind,
        params: Params = None,
        sort: Optional[SortSpec] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[Record]:
        correlation_id = correlation_id or create_correlation_id()
        return await self._audited(
            owner_id,
            f"list_{RecordKind(kind).value}",
            self._executor.list_records(owner_id, kind, params, sort),
            correlation_id,
        )

    async def export(
        self,
        owner_id: str,
        params: Params = None,
        correlation_id: Optional[UUID] = None,
    ) -> dict[RecordKind, list[list[str]]]:
        correlation_id = correlation_id or create_correlation_id()
        sheets = await self._audited(
            owner_id,
            "export",
            self._executor.export(owner_id, params),
            correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_export_generated(
                owner_id=owner_id,
                # Header row excluded
                row_counts={kind.value: len(rows) - 1 for kind, rows in sheets.items()},
                correlation_id=correlation_id,
            )
        return sheets


def _describe(params: Params) -> str:
    if params is None:
        return "all records"
    if isinstance(params, Mapping):
        items = params.items()
    else:
        items = params.model_dump(exclude_none=True).items()
    parts = [f"{k}={v}" for k, v in items if v not in (None, "")]
    return ", ".join(parts) or "all records"


def create_app_components(
    use_storage: bool = True,
) -> tuple[RecordFlow, DashboardFlow, AuditStorageInterface]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured storage backend.
                    Set to False to run entirely in memory.

    Returns:
        (record_flow, dashboard_flow, audit_storage)
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)

    income_storage: RecordStorageInterface = InMemoryRecordStorage(RecordKind.INCOME)
    expense_storage: RecordStorageInterface = InMemoryRecordStorage(RecordKind.EXPENSE)

    if use_storage and settings.app.storage_backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient()
            income_storage = GoogleSheetsRecordStorage(RecordKind.INCOME, sheets_client)
            expense_storage = GoogleSheetsRecordStorage(RecordKind.EXPENSE, sheets_client)
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))

    audit_storage = InMemoryAuditStorage()
    audit_logger = AuditLogger(audit_storage)

    record_flow = RecordFlow(
        income_storage=income_storage,
        expense_storage=expense_storage,
        audit_logger=audit_logger,
    )
    dashboard_flow = DashboardFlow(
        executor=SummaryExecutor(
            income_storage=income_storage,
            expense_storage=expense_storage,
            settings=settings.summary,
        ),
        audit_logger=audit_logger,
    )

    return record_flow, dashboard_flow, audit_storage
