"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements Google Sheets as the hosted backend, but designed to be swappable.
"""

from cashbook.services.storage.interface import (
    DEFAULT_ROW_LIMIT,
    AuditStorageInterface,
    LedgerStoreInterface,
    NotAuthenticatedError,
    NotFoundError,
    StoreConnectionError,
    StoreError,
)
from cashbook.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
)
from cashbook.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "DEFAULT_ROW_LIMIT",
    "LedgerStoreInterface",
    # Exceptions
    "NotAuthenticatedError",
    "NotFoundError",
    "StoreConnectionError",
    "StoreError",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStore",
]
