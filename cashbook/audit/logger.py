"""
Audit Logger

DESIGN DECISION: Every change to the books is logged.
This provides:
1. Traceability of who changed what
2. Debugging capability when the store rejects a request
3. A history the owner can read in the audit sheet

The audit logger:
- Is async so it fits the page workflows
- Gracefully handles failures (doesn't break the app if logging fails)
"""

import logging
from typing import Optional
from uuid import UUID

import structlog

from cashbook.models.audit import AuditEvent, AuditEventBuilder
from cashbook.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog for local JSON logging. Safe to call more than once."""
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


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and owner visibility)
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
        self._logger = structlog.get_logger(__name__)

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
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
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

    async def recent_events(self, limit: int = 20) -> list[AuditEvent]:
        """
        Newest persisted events first. Empty when only logging locally.

        Raises:
            StoreError: If the audit sheet cannot be read
        """
        if not self._storage:
            return []
        return await self._storage.get_recent_events(limit)

    async def log_transaction_created(
        self,
        transaction_id: Optional[UUID],
        transaction_type: str,
        amount: str,
        actor: Optional[str] = None,
    ) -> None:
        """Log a new transaction."""
        await self.log(AuditEventBuilder.transaction_created(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            actor=actor,
        ))

    async def log_transaction_updated(
        self,
        transaction_id: UUID,
        changed_fields: list[str],
        actor: Optional[str] = None,
    ) -> None:
        """Log a committed edit."""
        await self.log(AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            changed_fields=changed_fields,
            actor=actor,
        ))

    async def log_transaction_deleted(
        self,
        transaction_id: UUID,
        actor: Optional[str] = None,
    ) -> None:
        """Log a deletion."""
        await self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            actor=actor,
        ))

    async def log_edit_cancelled(
        self,
        transaction_id: UUID,
        actor: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.edit_cancelled(
            transaction_id=transaction_id,
            actor=actor,
        ))

    async def log_form_rejected(
        self,
        form: str,
        issues: list[dict],
        actor: Optional[str] = None,
    ) -> None:
        """Log a submission that failed validation."""
        await self.log(AuditEventBuilder.form_rejected(
            form=form,
            issues=issues,
            actor=actor,
        ))

    async def log_balance_saved(
        self,
        balance_id: Optional[UUID],
        label: str,
        kind: str,
        amount: str,
        actor: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.balance_saved(
            balance_id=balance_id,
            label=label,
            kind=kind,
            amount=amount,
            actor=actor,
        ))

    async def log_balance_deleted(
        self,
        balance_id: UUID,
        actor: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.balance_deleted(
            balance_id=balance_id,
            actor=actor,
        ))

    async def log_csv_exported(
        self,
        row_count: int,
        filename: str,
        actor: Optional[str] = None,
    ) -> None:
        """Log a CSV download."""
        await self.log(AuditEventBuilder.csv_exported(
            row_count=row_count,
            filename=filename,
            actor=actor,
        ))

    async def log_store_error(
        self,
        operation: str,
        error_message: str,
        entity_id: Optional[UUID] = None,
        actor: Optional[str] = None,
    ) -> None:
        """Log a request the store rejected."""
        await self.log(AuditEventBuilder.store_error(
            operation=operation,
            error_message=error_message,
            entity_id=entity_id,
            actor=actor,
        ))
