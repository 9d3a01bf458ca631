"""
In-Memory Storage Implementation

Keeps records in a dict keyed by ID. Used by the test suite and when
AppSettings.storage_backend is "memory".

Returned records are copies, so callers can never mutate stored state.
"""

from typing import Iterable, Optional
from uuid import UUID

from expense_tracker.filters.builder import RecordFilter
from expense_tracker.models.audit import AuditEvent
from expense_tracker.models.record import Record, RecordKind, record_model_for
from expense_tracker.models.summary import SortSpec
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    RecordStorageInterface,
    StorageError,
    apply_limit,
    apply_sort,
)


class InMemoryRecordStorage(RecordStorageInterface):
    """Dict-backed storage for one record kind."""

    def __init__(self, kind: RecordKind, records: Iterable[Record] = ()):
        self.kind = RecordKind(kind)
        self._model = record_model_for(self.kind)
        self._records: dict[UUID, Record] = {}
        for record in records:
            self._check_kind(record)
            self._records[record.id] = record.model_copy()

    def _check_kind(self, record: Record) -> None:
        if not isinstance(record, self._model):
            raise StorageError(
                f"Cannot store {type(record).__name__} in {self.kind.value} storage"
            )

    async def save_record(self, record: Record) -> bool:
        self._check_kind(record)
        if record.id in self._records:
            raise DuplicateError(f"Record already exists: {record.id}")
        self._records[record.id] = record.model_copy()
        return True

    async def get_record(self, owner_id: str, record_id: UUID) -> Optional[Record]:
        record = self._records.get(record_id)
        if record is None or record.owner_id != owner_id:
            return None
        return record.model_copy()

    async def update_record(self, record: Record) -> bool:
        self._check_kind(record)
        existing = self._records.get(record.id)
        if existing is None or existing.owner_id != record.owner_id:
            raise NotFoundError(f"Record not found: {record.id}")
        self._records[record.id] = record.model_copy()
        return True

    async def delete_record(self, owner_id: str, record_id: UUID) -> bool:
        existing = self._records.get(record_id)
        if existing is None or existing.owner_id != owner_id:
            return False
        del self._records[record_id]
        return True

    async def find_by_owner_and_filter(
        self,
        owner_id: str,
        predicate: RecordFilter,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> list[Record]:
        matches = [
            r.model_copy()
            for r in self._records.values()
            if r.owner_id == owner_id and predicate.matches(r)
        ]
        return apply_limit(apply_sort(matches, sort), limit)

    async def find_all_by_owner(self, owner_id: str) -> list[Record]:
        return [r.model_copy() for r in self._records.values() if r.owner_id == owner_id]


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)[:limit]
