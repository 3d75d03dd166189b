"""
Record Editor

Holds at most one transaction being edited.

States:
    IDLE     - nothing is being edited
    EDITING  - one draft, keyed by the original transaction id

The draft only contains the six mutable fields; id, owner and
creation timestamp stay with the stored record. Every change produces
a new frozen draft. A failed commit leaves the draft exactly as it was
so the user can retry or cancel.
"""

from enum import Enum
from typing import Any, Optional
from uuid import UUID

import structlog

from cashbook.models.ledger import (
    TRANSACTION_FIELD_NAMES,
    Transaction,
    TransactionFields,
)
from cashbook.services.storage import LedgerStoreInterface


logger = structlog.get_logger(__name__)


class EditorState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"


class EditorStateError(Exception):
    """Operation not allowed in the editor's current state."""
    pass


class RecordEditor:
    """Single-draft edit state machine for transactions."""

    def __init__(self):
        self._transaction_id: Optional[UUID] = None
        self._original: Optional[TransactionFields] = None
        self._draft: Optional[TransactionFields] = None

    @property
    def state(self) -> EditorState:
        return EditorState.IDLE if self._draft is None else EditorState.EDITING

    @property
    def transaction_id(self) -> Optional[UUID]:
        return self._transaction_id

    @property
    def draft(self) -> Optional[TransactionFields]:
        return self._draft

    def is_editing(self, transaction_id: Optional[UUID] = None) -> bool:
        """True when editing anything, or the given transaction."""
        if self._draft is None:
            return False
        return transaction_id is None or transaction_id == self._transaction_id

    def begin(self, transaction: Transaction) -> TransactionFields:
        """Start editing a row. Selecting another row replaces the draft."""
        self._transaction_id = transaction.id
        self._original = transaction.to_fields()
        self._draft = self._original
        logger.debug("edit_started", transaction_id=str(transaction.id))
        return self._draft

    def change(self, **changes: Any) -> TransactionFields:
        """Produce a new draft with some fields replaced.

        Raises:
            EditorStateError: If nothing is being edited.
            ValueError: For unknown or invalid field values (draft unchanged).
        """
        if self._draft is None:
            raise EditorStateError("No transaction is being edited")

        unknown = set(changes) - set(TRANSACTION_FIELD_NAMES)
        if unknown:
            raise ValueError(f"Not editable: {', '.join(sorted(unknown))}")

        self._draft = TransactionFields.model_validate(
            {**self._draft.model_dump(), **changes}
        )
        return self._draft

    def changed_fields(self) -> list[str]:
        """Names of fields where the draft differs from the row it started from."""
        if self._draft is None or self._original is None:
            return []
        return [
            name for name in TRANSACTION_FIELD_NAMES
            if getattr(self._draft, name) != getattr(self._original, name)
        ]

    def cancel(self) -> Optional[UUID]:
        """Drop the draft. Returns the id that was being edited, if any."""
        transaction_id = self._transaction_id
        self._reset()
        return transaction_id

    def discard(self, transaction_id: UUID) -> bool:
        """Drop the draft if it belongs to transaction_id (used on delete)."""
        if self.is_editing(transaction_id):
            self._reset()
            return True
        return False

    async def commit(self, store: LedgerStoreInterface) -> Transaction:
        """Send the draft to the store, keyed by the original id.

        On success the editor returns to IDLE. On StoreError the draft is
        kept and the error propagates.
        """
        if self._draft is None or self._transaction_id is None:
            raise EditorStateError("No transaction is being edited")

        transaction_id = self._transaction_id
        draft = self._draft

        updated = await store.update_transaction(transaction_id, draft)

        # Only leave EDITING if the same draft is still open
        if self._transaction_id == transaction_id and self._draft == draft:
            self._reset()
        return updated

    def _reset(self) -> None:
        self._transaction_id = None
        self._original = None
        self._draft = None
