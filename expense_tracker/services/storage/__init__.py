"""
Storage Services Package

Provides the abstract record store interface and its implementations:
in-memory (tests, local runs) and Google Sheets.
"""

from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    RecordStorageInterface,
    StorageConnectionError,
    StorageError,
)
from expense_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryRecordStorage,
)
from expense_tracker.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsRecordStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RecordStorageInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryRecordStorage",
    # Google Sheets implementation
    "GoogleSheetsClient",
    "GoogleSheetsRecordStorage",
]
