"""Services package."""

from expense_tracker.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    GoogleSheetsClient,
    GoogleSheetsRecordStorage,
    InMemoryAuditStorage,
    InMemoryRecordStorage,
    NotFoundError,
    RecordStorageInterface,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "DuplicateError",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStorage",
    "InMemoryAuditStorage",
    "InMemoryRecordStorage",
    "NotFoundError",
    "RecordStorageInterface",
    "StorageConnectionError",
    "StorageError",
]
