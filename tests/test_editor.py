"""Tests for the single-draft record editor."""

import pytest
from decimal import Decimal
from uuid import uuid4

from cashbook.ledger import EditorState, EditorStateError, RecordEditor
from cashbook.models.ledger import TransactionType
from cashbook.services.storage import InMemoryLedgerStore, NotFoundError, StoreError

from conftest import OWNER, make_transaction


class FailingStore(InMemoryLedgerStore):
    """Store whose updates are always rejected."""

    async def update_transaction(self, transaction_id, fields):
        raise StoreError("permission denied")


class TestRecordEditor:

    def test_starts_idle(self):
        editor = RecordEditor()
        assert editor.state == EditorState.IDLE
        assert editor.draft is None
        assert not editor.is_editing()

    def test_begin_copies_fields(self):
        tx = make_transaction("40", category="Supplies")
        editor = RecordEditor()
        draft = editor.begin(tx)
        assert editor.state == EditorState.EDITING
        assert editor.transaction_id == tx.id
        assert draft == tx.to_fields()
        assert editor.is_editing(tx.id)
        assert not editor.is_editing(uuid4())

    def test_begin_on_another_row_replaces_draft(self):
        first, second = make_transaction("1"), make_transaction("2")
        editor = RecordEditor()
        editor.begin(first)
        editor.change(amount=Decimal("9"))
        editor.begin(second)
        assert editor.transaction_id == second.id
        assert editor.draft.amount == Decimal("2.00")

    def test_change_produces_new_draft(self):
        tx = make_transaction("40")
        editor = RecordEditor()
        before = editor.begin(tx)
        after = editor.change(amount="45.5", category="Supplies")
        assert before.amount == Decimal("40.00")
        assert after.amount == Decimal("45.50")
        assert editor.changed_fields() == ["category", "amount"]

    def test_change_rejects_unknown_field(self):
        editor = RecordEditor()
        editor.begin(make_transaction("1"))
        with pytest.raises(ValueError, match="owner_id"):
            editor.change(owner_id="someone-else")

    def test_invalid_change_keeps_draft(self):
        editor = RecordEditor()
        draft = editor.begin(make_transaction("1"))
        with pytest.raises(ValueError):
            editor.change(amount="-5")
        assert editor.draft == draft

    def test_change_to_huge_amount_keeps_draft(self):
        editor = RecordEditor()
        draft = editor.begin(make_transaction("1"))
        with pytest.raises(ValueError):
            editor.change(amount="1e30")
        assert editor.draft == draft

    def test_change_while_idle(self):
        with pytest.raises(EditorStateError):
            RecordEditor().change(amount="1")

    def test_cancel_returns_to_idle(self):
        tx = make_transaction("1")
        editor = RecordEditor()
        editor.begin(tx)
        assert editor.cancel() == tx.id
        assert editor.state == EditorState.IDLE
        assert editor.cancel() is None

    def test_discard_only_matching_row(self):
        tx = make_transaction("1")
        editor = RecordEditor()
        editor.begin(tx)
        assert editor.discard(uuid4()) is False
        assert editor.is_editing(tx.id)
        assert editor.discard(tx.id) is True
        assert editor.state == EditorState.IDLE

    @pytest.mark.asyncio
    async def test_commit_sends_draft_under_original_id(self):
        tx = make_transaction("40", TransactionType.EXPENSE)
        store = InMemoryLedgerStore(current_user=OWNER, transactions=[tx])
        editor = RecordEditor()
        editor.begin(tx)
        editor.change(amount="45.00", type=TransactionType.INCOME)

        updated = await editor.commit(store)

        assert updated.id == tx.id
        assert updated.amount == Decimal("45.00")
        assert updated.type == TransactionType.INCOME
        assert updated.inserted_at == tx.inserted_at
        assert editor.state == EditorState.IDLE

    @pytest.mark.asyncio
    async def test_failed_commit_keeps_draft(self):
        tx = make_transaction("40")
        store = FailingStore(current_user=OWNER, transactions=[tx])
        editor = RecordEditor()
        editor.begin(tx)
        draft = editor.change(amount="45.00")

        with pytest.raises(StoreError, match="permission denied"):
            await editor.commit(store)

        assert editor.state == EditorState.EDITING
        assert editor.draft == draft

    @pytest.mark.asyncio
    async def test_commit_of_vanished_row(self):
        tx = make_transaction("40")
        editor = RecordEditor()
        editor.begin(tx)
        with pytest.raises(NotFoundError):
            await editor.commit(InMemoryLedgerStore(current_user=OWNER))
        assert editor.is_editing(tx.id)

    @pytest.mark.asyncio
    async def test_commit_while_idle(self):
        with pytest.raises(EditorStateError):
            await RecordEditor().commit(InMemoryLedgerStore(current_user=OWNER))
