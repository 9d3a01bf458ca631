"""
Data Models Package

Pydantic models for records, derived summaries and audit events.
"""

from expense_tracker.models.record import (
    CATEGORY_VOCABULARY,
    ExpenseCategory,
    ExpenseRecord,
    IncomeCategory,
    IncomeRecord,
    Record,
    RecordKind,
    category_names,
    normalize_timestamp,
    record_model_for,
    utcnow,
)
from expense_tracker.models.summary import (
    CategoryBucket,
    CombinedSummary,
    DailyBucket,
    FeedEntry,
    FilterParams,
    MonthlyBucket,
    SortField,
    SortOrder,
    SortSpec,
    Summary,
    TransactionCountPolicy,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "CATEGORY_VOCABULARY",
    "ExpenseCategory",
    "ExpenseRecord",
    "IncomeCategory",
    "IncomeRecord",
    "Record",
    "RecordKind",
    "category_names",
    "normalize_timestamp",
    "record_model_for",
    "utcnow",
    # Summary models
    "CategoryBucket",
    "CombinedSummary",
    "DailyBucket",
    "FeedEntry",
    "FilterParams",
    "MonthlyBucket",
    "SortField",
    "SortOrder",
    "SortSpec",
    "Summary",
    "TransactionCountPolicy",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
