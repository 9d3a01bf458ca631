"""
Audit Logger

DESIGN DECISION: Every record change and every dashboard computation
is logged. This provides:
1. Traceability of who changed what
2. Debugging capability when a total looks wrong
3. History the owner can inspect

The audit logger:
- Always logs locally through structlog
- Persists to audit storage when one is configured
- Never breaks the main flow if persisting fails
- Supports correlation IDs to trace the events of one request
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder
from expense_tracker.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog for JSON output through the stdlib logger."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("expense_tracker.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_record_saved(
        self,
        owner_id: str,
        kind: str,
        record_id: UUID,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.record_saved(
            owner_id=owner_id,
            kind=kind,
            record_id=record_id,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_record_updated(
        self,
        owner_id: str,
        kind: str,
        record_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.record_updated(
            owner_id=owner_id,
            kind=kind,
            record_id=record_id,
            correlation_id=correlation_id,
        ))

    async def log_record_deleted(
        self,
        owner_id: str,
        kind: str,
        record_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.record_deleted(
            owner_id=owner_id,
            kind=kind,
            record_id=record_id,
            correlation_id=correlation_id,
        ))

    async def log_summary_computed(
        self,
        owner_id: str,
        filter_description: str,
        transaction_count: int,
        balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.summary_computed(
            owner_id=owner_id,
            filter_description=filter_description,
            transaction_count=transaction_count,
            balance=balance,
            correlation_id=correlation_id,
        ))

    async def log_feed_computed(
        self,
        owner_id: str,
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.feed_computed(
            owner_id=owner_id,
            entry_count=entry_count,
            correlation_id=correlation_id,
        ))

    async def log_export_generated(
        self,
        owner_id: str,
        row_counts: dict[str, int],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.export_generated(
            owner_id=owner_id,
            row_counts=row_counts,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        owner_id: Optional[str],
        field: Optional[str],
        message: str,
        issues: Optional[list[str]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(
            owner_id=owner_id,
            field=field,
            message=message,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        owner_id: Optional[str],
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.storage_error(
            owner_id=owner_id,
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a request and pass it through all
    subsequent operations.
    """
    return uuid4()
