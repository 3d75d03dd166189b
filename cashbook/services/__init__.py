"""Services package."""

from cashbook.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    LedgerStoreInterface,
    NotAuthenticatedError,
    NotFoundError,
    StoreConnectionError,
    StoreError,
)

__all__ = [
    "AuditStorageInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
    "InMemoryAuditStorage",
    "InMemoryLedgerStore",
    "LedgerStoreInterface",
    "NotAuthenticatedError",
    "NotFoundError",
    "StoreConnectionError",
    "StoreError",
]
