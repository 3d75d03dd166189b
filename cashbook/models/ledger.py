"""
Core Data Models for Cashbook

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and export
4. Keep money exact (Decimal at cent scale, never float)

DESIGN DECISION: Record models are frozen. A change to a transaction or a
balance always produces a new instance, which is what the edit draft relies on.
"""

import datetime as dt
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Optional, Union
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


CENT = Decimal("0.01")

# Thirteen digits before the decimal point, two after
MONEY_MAX_DIGITS = 15


def quantize_money(value: Decimal) -> Decimal:
    """Normalise a monetary amount to cent scale (e.g. 25.5 -> 25.50).

    Raises:
        ValueError: If the amount is too large to hold at cent scale
    """
    try:
        return value.quantize(CENT)
    except InvalidOperation:
        raise ValueError(f"Amount out of range: {value}")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a money movement."""
    INCOME = "income"
    EXPENSE = "expense"


class PaymentMethod(str, Enum):
    """How the money moved."""
    CASH = "cash"
    GCASH = "gcash"
    BANK = "bank"


class BalanceKind(str, Enum):
    """
    Kind of balance snapshot.

    CASH, GCASH and BANK count towards cash on hand.
    CAPITAL is the owner's beginning capital and is reported separately.
    """
    CASH = "cash"
    GCASH = "gcash"
    BANK = "bank"
    CAPITAL = "capital"


CASH_ON_HAND_KINDS = frozenset({BalanceKind.CASH, BalanceKind.GCASH, BalanceKind.BANK})

# Mutable fields of a transaction, in display/export order
TRANSACTION_FIELD_NAMES = ("date", "type", "category", "method", "amount", "notes")

BALANCE_FIELD_NAMES = ("label", "kind", "balance")


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionFields(BaseModel):
    """
    The user-editable part of a transaction.

    This is what the add form produces, what the edit draft holds
    and what an update sends to the store.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    date: dt.date = Field(
        ...,
        description="Calendar date of the movement (primary sort key)"
    )
    type: TransactionType = Field(
        ...,
        description="Income or expense"
    )
    category: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Free-text category, e.g. Sales / COGS / Rent"
    )
    method: PaymentMethod = Field(
        ...,
        description="Payment method"
    )
    amount: Annotated[
        Decimal,
        Field(ge=0, max_digits=MONEY_MAX_DIGITS, decimal_places=2, description="Amount (non-negative, two decimals)")
    ]
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Optional notes"
    )

    @field_validator('category', 'notes', mode='before')
    @classmethod
    def blank_text_is_absent(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator('amount')
    @classmethod
    def amount_at_cent_scale(cls, v: Decimal) -> Decimal:
        return quantize_money(v)


class Transaction(TransactionFields):
    """
    A transaction as stored remotely.

    id, owner_id and inserted_at are assigned by the store and never edited.
    """

    id: UUID = Field(
        ...,
        description="Unique transaction ID"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="Identifier of the user who owns the record"
    )
    inserted_at: dt.datetime = Field(
        ...,
        description="When the store created the record"
    )

    def to_fields(self) -> TransactionFields:
        """Project onto the six mutable fields."""
        return TransactionFields(**self.model_dump(include=set(TRANSACTION_FIELD_NAMES)))


# =============================================================================
# BALANCES
# =============================================================================

class BalanceFields(BaseModel):
    """The user-editable part of a balance snapshot."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    label: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Account label, e.g. 'BPI savings'"
    )
    kind: BalanceKind = Field(
        ...,
        description="Kind of balance"
    )
    balance: Annotated[
        Decimal,
        Field(max_digits=MONEY_MAX_DIGITS, decimal_places=2, description="Signed balance (two decimals)")
    ]

    @field_validator('balance')
    @classmethod
    def balance_at_cent_scale(cls, v: Decimal) -> Decimal:
        return quantize_money(v)


class Balance(BalanceFields):
    """A balance snapshot as stored remotely."""

    id: UUID
    owner_id: str = Field(..., min_length=1)
    updated_at: dt.datetime = Field(
        ...,
        description="Last time the balance was written"
    )


# =============================================================================
# QUERIES AND AGGREGATES
# =============================================================================

class TransactionQuery(BaseModel):
    """
    Filters for the transactions list.

    type and method are exact matches executed by the store.
    text is a case-insensitive substring match over category and notes,
    executed locally.
    """
    model_config = ConfigDict(frozen=True)

    text: str = ""
    type: Optional[TransactionType] = None
    method: Optional[PaymentMethod] = None


class LedgerTotals(BaseModel):
    """Income, expense and net over a set of transactions."""
    model_config = ConfigDict(frozen=True)

    income: Decimal = Decimal("0.00")
    expense: Decimal = Decimal("0.00")
    net: Decimal = Decimal("0.00")


class BalanceTotals(BaseModel):
    """Cash on hand and capital over a set of balances."""
    model_config = ConfigDict(frozen=True)

    cash_on_hand: Decimal = Decimal("0.00")
    capital: Decimal = Decimal("0.00")


class CurrentUser(BaseModel):
    """The authenticated user as reported by the identity provider."""
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    display_identity: str = Field(
        ...,
        description="What to show in the header, usually an email address"
    )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in a submitted form."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'invalid_format', 'not_allowed', 'negative')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class FormValidationResult(BaseModel):
    """
    Result of parsing a submitted form.

    record is only set when there are no error-level issues.
    """

    record: Optional[Union[TransactionFields, BalanceFields]] = None
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def is_valid(self) -> bool:
        return self.record is not None and not self.has_errors

    def summary(self) -> str:
        """One line per issue, for showing to the user."""
        return "\n".join(f"{issue.field}: {issue.message}" for issue in self.issues)
