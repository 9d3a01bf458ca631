"""
Abstract Storage Interface

DESIGN DECISION: The summary engine never talks to a backend directly.
It depends on this interface so that:
1. Google Sheets can be swapped for a real database later
2. In-memory storage can be used for tests and local runs
3. Every query is owner-scoped at the interface level

One RecordStorageInterface instance serves one record kind.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from expense_tracker.filters.builder import RecordFilter
from expense_tracker.models.audit import AuditEvent
from expense_tracker.models.record import Record, RecordKind
from expense_tracker.models.summary import SortOrder, SortSpec


class RecordStorageInterface(ABC):
    """
    Abstract interface for the records of one kind.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    kind: RecordKind

    @abstractmethod
    async def save_record(self, record: Record) -> bool:
        """
        Save a new record.

        Raises:
            StorageError: If save fails
            DuplicateError: If a record with the same ID exists
        """
        pass

    @abstractmethod
    async def get_record(self, owner_id: str, record_id: UUID) -> Optional[Record]:
        """
        Retrieve one of the owner's records.

        Returns:
            The record if found and owned by `owner_id`, None otherwise
        """
        pass

    @abstractmethod
    async def update_record(self, record: Record) -> bool:
        """
        Replace an existing record (matched on ID and owner).

        Raises:
            NotFoundError: If the owner has no record with that ID
        """
        pass

    @abstractmethod
    async def delete_record(self, owner_id: str, record_id: UUID) -> bool:
        """
        Delete one of the owner's records.

        Returns:
            True if a record was deleted, False if none matched
        """
        pass

    @abstractmethod
    async def find_by_owner_and_filter(
        self,
        owner_id: str,
        predicate: RecordFilter,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> list[Record]:
        """
        The owner's records matching `predicate`.

        Args:
            owner_id: Scope of the query; other owners' records never match
            predicate: Filter built by the filter builder
            sort: Ordering (default: date, newest first)
            limit: Maximum number of results, None for all
        """
        pass

    @abstractmethod
    async def find_all_by_owner(self, owner_id: str) -> list[Record]:
        """All of the owner's records, in no particular order."""
        pass


def apply_sort(records: list[Record], sort: Optional[SortSpec]) -> list[Record]:
    """Order records per `sort`. Shared by implementations that filter in Python."""
    sort = sort or SortSpec()

    def key(record: Record):
        value = getattr(record, sort.field.value)
        return getattr(value, "value", value)

    return sorted(records, key=key, reverse=sort.order == SortOrder.DESC)


def apply_limit(records: list[Record], limit: Optional[int]) -> list[Record]:
    return records if limit is None else records[:limit]


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event to the log."""
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Events of one request, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Most recent events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
