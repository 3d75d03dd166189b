"""
Data Models Package

This package contains all Pydantic models used in Cashbook.
All data flowing through the system must conform to these schemas.
"""

from cashbook.models.ledger import (
    BALANCE_FIELD_NAMES,
    CASH_ON_HAND_KINDS,
    TRANSACTION_FIELD_NAMES,
    Balance,
    BalanceFields,
    BalanceKind,
    BalanceTotals,
    CurrentUser,
    FormValidationResult,
    LedgerTotals,
    PaymentMethod,
    Transaction,
    TransactionFields,
    TransactionQuery,
    TransactionType,
    ValidationIssue,
    quantize_money,
)
from cashbook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "BALANCE_FIELD_NAMES",
    "CASH_ON_HAND_KINDS",
    "TRANSACTION_FIELD_NAMES",
    "Balance",
    "BalanceFields",
    "BalanceKind",
    "BalanceTotals",
    "CurrentUser",
    "FormValidationResult",
    "LedgerTotals",
    "PaymentMethod",
    "Transaction",
    "TransactionFields",
    "TransactionQuery",
    "TransactionType",
    "ValidationIssue",
    "quantize_money",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
