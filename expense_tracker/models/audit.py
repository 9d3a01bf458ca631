"""
Audit Models for the Expense Tracker

Every record change and every dashboard computation produces an audit
event. This gives:
1. Traceability of who changed what
2. Debugging information when a summary looks wrong
3. A history the owner can inspect

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from expense_tracker.models.record import utcnow


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Record management
    RECORD_SAVED = "record_saved"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"

    # Dashboard computations
    SUMMARY_COMPUTED = "summary_computed"
    FEED_COMPUTED = "feed_computed"
    EXPORT_GENERATED = "export_generated"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of the audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context
    owner_id: Optional[str] = Field(
        default=None,
        description="Owner whose data the event concerns"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'income', 'expense', 'summary')"
    )
    entity_id: Optional[UUID] = None
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one request"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "owner_id": self.owner_id,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_saved(owner_id, "expense", record_id, "150.00")
        await audit_logger.log(event)
    """

    @staticmethod
    def record_saved(
        owner_id: str,
        kind: str,
        record_id: UUID,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_SAVED,
            owner_id=owner_id,
            entity_type=kind,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Saved {kind} record of {amount}",
            details={"amount": amount},
        )

    @staticmethod
    def record_updated(
        owner_id: str,
        kind: str,
        record_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            owner_id=owner_id,
            entity_type=kind,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Updated {kind} record",
        )

    @staticmethod
    def record_deleted(
        owner_id: str,
        kind: str,
        record_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            owner_id=owner_id,
            entity_type=kind,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Deleted {kind} record",
        )

    @staticmethod
    def summary_computed(
        owner_id: str,
        filter_description: str,
        transaction_count: int,
        balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUMMARY_COMPUTED,
            owner_id=owner_id,
            entity_type="summary",
            correlation_id=correlation_id,
            description=f"Computed summary ({filter_description})",
            details={
                "filter": filter_description,
                "transaction_count": transaction_count,
                "balance": balance,
            },
        )

    @staticmethod
    def feed_computed(
        owner_id: str,
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FEED_COMPUTED,
            owner_id=owner_id,
            entity_type="feed",
            correlation_id=correlation_id,
            description=f"Built recent transactions feed with {entry_count} entries",
            details={"entry_count": entry_count},
        )

    @staticmethod
    def export_generated(
        owner_id: str,
        row_counts: dict[str, int],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_GENERATED,
            owner_id=owner_id,
            entity_type="export",
            correlation_id=correlation_id,
            description="Generated export rows",
            details={"row_counts": row_counts},
        )

    @staticmethod
    def validation_failed(
        owner_id: Optional[str],
        field: Optional[str],
        message: str,
        issues: Optional[list[str]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Validation failed for {field or 'input'}",
            details={"field": field, "issues": issues or []},
            error_message=message,
        )

    @staticmethod
    def storage_error(
        owner_id: Optional[str],
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Storage failure during {operation}",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
