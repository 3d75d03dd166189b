"""
Audit Models for Cashbook

Every change a user makes to the books is logged for audit purposes.
This provides:
1. Traceability of who added, changed or removed what
2. Debugging information when the store rejects a request
3. A history the owner can read back from the audit sheet

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    EDIT_CANCELLED = "edit_cancelled"
    FORM_REJECTED = "form_rejected"

    # Balances
    BALANCE_SAVED = "balance_saved"
    BALANCE_DELETED = "balance_deleted"

    # Export
    CSV_EXPORTED = "csv_exported"

    # Failures
    STORE_ERROR = "store_error"


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

    This is the core unit of our audit trail.
    Every user-visible change creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'balance', 'export')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Who did it
    actor: Optional[str] = Field(
        default=None,
        description="Display identity of the signed-in user"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    # Additional data (event-specific)
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "actor": self.actor,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         actor, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            self.actor or "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(tx_id, "expense", "40.00")
        event = AuditEventBuilder.store_error("update", "row not found")
    """

    @staticmethod
    def transaction_created(
        transaction_id: Optional[UUID],
        transaction_type: str,
        amount: str,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor=actor,
            description=f"Transaction added: {transaction_type} {amount}",
            details={
                "type": transaction_type,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        transaction_id: UUID,
        changed_fields: list[str],
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor=actor,
            description=f"Transaction updated ({len(changed_fields)} fields changed)",
            details={
                "changed_fields": changed_fields,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: UUID,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor=actor,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def edit_cancelled(
        transaction_id: UUID,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EDIT_CANCELLED,
            severity=AuditSeverity.DEBUG,
            entity_type="transaction",
            entity_id=transaction_id,
            actor=actor,
            description="Edit discarded without saving",
            is_user_action=True,
        )

    @staticmethod
    def form_rejected(
        form: str,
        issues: list[dict],
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FORM_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type=form,
            actor=actor,
            description=f"{form.capitalize()} form rejected with {len(issues)} issues",
            details={
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def balance_saved(
        balance_id: Optional[UUID],
        label: str,
        kind: str,
        amount: str,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_SAVED,
            entity_type="balance",
            entity_id=balance_id,
            actor=actor,
            description=f"Balance saved: {label} ({kind}) = {amount}",
            details={
                "label": label,
                "kind": kind,
                "balance": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def balance_deleted(
        balance_id: UUID,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_DELETED,
            entity_type="balance",
            entity_id=balance_id,
            actor=actor,
            description="Balance deleted",
            is_user_action=True,
        )

    @staticmethod
    def csv_exported(
        row_count: int,
        filename: str,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CSV_EXPORTED,
            entity_type="export",
            actor=actor,
            description=f"Exported {row_count} transactions to {filename}",
            details={
                "row_count": row_count,
                "filename": filename,
            },
            is_user_action=True,
        )

    @staticmethod
    def store_error(
        operation: str,
        error_message: str,
        entity_id: Optional[UUID] = None,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_id=entity_id,
            actor=actor,
            description=f"Store rejected {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
        )
