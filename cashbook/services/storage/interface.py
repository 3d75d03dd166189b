"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for the hosted data store.
This allows us to:
1. Swap Google Sheets for a hosted database later
2. Use in-memory storage for testing
3. Keep page workflows decoupled from the storage implementation

The store owns identity too: it knows who is signed in and stamps
owner, id and timestamps onto new records. Callers never set those.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from cashbook.models.audit import AuditEvent
from cashbook.models.ledger import (
    Balance,
    BalanceFields,
    CurrentUser,
    PaymentMethod,
    Transaction,
    TransactionFields,
    TransactionType,
)


DEFAULT_ROW_LIMIT = 1000


class LedgerStoreInterface(ABC):
    """
    Abstract interface for the remote ledger store.

    Any storage implementation (Google Sheets, hosted Postgres, etc.)
    must implement these methods. Every failure is reported as a
    StoreError carrying the store's message.
    """

    @abstractmethod
    async def get_current_user(self) -> Optional[CurrentUser]:
        """
        Identify the signed-in user.

        Returns:
            The current user, or None when nobody is authenticated
        """
        pass

    @abstractmethod
    async def fetch_transactions(
        self,
        transaction_type: Optional[TransactionType] = None,
        method: Optional[PaymentMethod] = None,
        limit: int = DEFAULT_ROW_LIMIT,
    ) -> list[Transaction]:
        """
        Fetch transactions, newest date first.

        Args:
            transaction_type: Exact match on type (None matches all)
            method: Exact match on payment method (None matches all)
            limit: Maximum number of rows returned

        Returns:
            Matching transactions ordered by date descending

        Raises:
            StoreError: If the fetch fails
        """
        pass

    @abstractmethod
    async def insert_transaction(self, fields: TransactionFields) -> Transaction:
        """
        Create a transaction owned by the current user.

        Returns:
            The stored transaction with id, owner and timestamp assigned

        Raises:
            NotAuthenticatedError: If nobody is signed in
            StoreError: If the insert fails
        """
        pass

    @abstractmethod
    async def update_transaction(
        self,
        transaction_id: UUID,
        fields: TransactionFields,
    ) -> Transaction:
        """
        Overwrite the mutable fields of a transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
            StoreError: If the update fails
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: UUID) -> bool:
        """
        Delete a transaction by ID.

        Returns:
            True if a row was deleted, False if it was already gone
        """
        pass

    @abstractmethod
    async def fetch_balances(self) -> list[Balance]:
        """
        Fetch all balances, most recently updated first.

        Raises:
            StoreError: If the fetch fails
        """
        pass

    @abstractmethod
    async def insert_balance(self, fields: BalanceFields) -> Balance:
        """Create a balance owned by the current user."""
        pass

    @abstractmethod
    async def update_balance(self, balance_id: UUID, fields: BalanceFields) -> Balance:
        """
        Overwrite a balance and bump its updated_at.

        Raises:
            NotFoundError: If the balance doesn't exist
        """
        pass

    @abstractmethod
    async def delete_balance(self, balance_id: UUID) -> bool:
        """Delete a balance by ID."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StoreError(Exception):
    """Base exception for remote store operations."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(StoreError):
    """Entity not found in storage."""
    pass


class NotAuthenticatedError(StoreError):
    """No signed-in user for an operation that needs one."""
    pass


class StoreConnectionError(StoreError):
    """Could not connect to storage backend."""
    pass
