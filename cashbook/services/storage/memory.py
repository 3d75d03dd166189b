"""
In-Memory Storage Implementation

Keeps records in process memory with the same contract as the hosted
store: store-side exact filters, date-descending order, a row cap, and
server-assigned id/owner/timestamps. Used by the test suite and for
wiring the app without credentials.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

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
from cashbook.services.storage.interface import (
    DEFAULT_ROW_LIMIT,
    AuditStorageInterface,
    LedgerStoreInterface,
    NotAuthenticatedError,
    NotFoundError,
)


class InMemoryLedgerStore(LedgerStoreInterface):
    """Dictionary-backed ledger store."""

    def __init__(
        self,
        current_user: Optional[CurrentUser] = None,
        transactions: Optional[list[Transaction]] = None,
        balances: Optional[list[Balance]] = None,
    ):
        self._current_user = current_user
        # dicts keep insertion order, which breaks date ties
        self._transactions: dict[UUID, Transaction] = {
            t.id: t for t in (transactions or [])
        }
        self._balances: dict[UUID, Balance] = {
            b.id: b for b in (balances or [])
        }

    def sign_in(self, user: Optional[CurrentUser]) -> None:
        """Switch the signed-in user (None signs out)."""
        self._current_user = user

    def _require_user(self) -> CurrentUser:
        if self._current_user is None:
            raise NotAuthenticatedError("Not signed in")
        return self._current_user

    async def get_current_user(self) -> Optional[CurrentUser]:
        return self._current_user

    async def fetch_transactions(
        self,
        transaction_type: Optional[TransactionType] = None,
        method: Optional[PaymentMethod] = None,
        limit: int = DEFAULT_ROW_LIMIT,
    ) -> list[Transaction]:
        transactions = [
            t for t in self._transactions.values()
            if (transaction_type is None or t.type == transaction_type)
            and (method is None or t.method == method)
        ]
        transactions.sort(key=lambda t: t.date, reverse=True)
        return transactions[:limit]

    async def insert_transaction(self, fields: TransactionFields) -> Transaction:
        user = self._require_user()
        transaction = Transaction(
            id=uuid4(),
            owner_id=user.user_id,
            inserted_at=datetime.utcnow(),
            **fields.model_dump(),
        )
        self._transactions[transaction.id] = transaction
        return transaction

    async def update_transaction(
        self,
        transaction_id: UUID,
        fields: TransactionFields,
    ) -> Transaction:
        current = self._transactions.get(transaction_id)
        if current is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        updated = current.model_copy(update=fields.model_dump())
        self._transactions[transaction_id] = updated
        return updated

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        return self._transactions.pop(transaction_id, None) is not None

    async def fetch_balances(self) -> list[Balance]:
        return sorted(self._balances.values(), key=lambda b: b.updated_at, reverse=True)

    async def insert_balance(self, fields: BalanceFields) -> Balance:
        user = self._require_user()
        balance = Balance(
            id=uuid4(),
            owner_id=user.user_id,
            updated_at=datetime.utcnow(),
            **fields.model_dump(),
        )
        self._balances[balance.id] = balance
        return balance

    async def update_balance(self, balance_id: UUID, fields: BalanceFields) -> Balance:
        current = self._balances.get(balance_id)
        if current is None:
            raise NotFoundError(f"Balance not found: {balance_id}")
        updated = current.model_copy(
            update={**fields.model_dump(), "updated_at": datetime.utcnow()}
        )
        self._balances[balance_id] = updated
        return updated

    async def delete_balance(self, balance_id: UUID) -> bool:
        return self._balances.pop(balance_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """List-backed audit log."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
