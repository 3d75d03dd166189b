"""Shared fixtures: a signed-in user, row factories and an in-memory store."""

from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from cashbook.models.ledger import (
    Balance,
    BalanceKind,
    CurrentUser,
    PaymentMethod,
    Transaction,
    TransactionType,
)
from cashbook.services.storage import InMemoryAuditStorage, InMemoryLedgerStore


OWNER = CurrentUser(user_id="owner@example.com", display_identity="owner@example.com")


def make_transaction(
    amount="0.00",
    type=TransactionType.INCOME,
    method=PaymentMethod.CASH,
    category=None,
    notes=None,
    on=date(2024, 1, 1),
) -> Transaction:
    return Transaction(
        id=uuid4(),
        owner_id=OWNER.user_id,
        inserted_at=datetime(2024, 1, 1, 12, 0, 0),
        date=on,
        type=type,
        category=category,
        method=method,
        amount=Decimal(amount),
        notes=notes,
    )


def make_balance(balance="0.00", kind=BalanceKind.CASH, label="Drawer") -> Balance:
    return Balance(
        id=uuid4(),
        owner_id=OWNER.user_id,
        updated_at=datetime(2024, 1, 1, 12, 0, 0),
        label=label,
        kind=kind,
        balance=Decimal(balance),
    )


@pytest.fixture
def store():
    return InMemoryLedgerStore(current_user=OWNER)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()
