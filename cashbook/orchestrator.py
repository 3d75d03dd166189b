"""
Main Orchestrator for Cashbook

This module ties together all the components and defines the two
page workflows:
1. Dashboard (load → totals; balance add/edit/delete → reload)
2. Transactions (filter → load; add / edit / delete → reload; export)

DESIGN DECISION: Every mutation is followed by a full reload from the
store instead of patching the in-memory rows. At a 1000-row cap this
is cheap, and the screen can never drift from what the store holds.

Error policy: a StoreError is audited, logged and re-raised unchanged.
The page shows the message and nothing local is reset (form contents,
edit draft), so the user can fix and resubmit.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict, Field

from cashbook.audit import AuditLogger, configure_logging
from cashbook.config import AppSettings, get_settings
from cashbook.ledger import (
    EXPORT_FILENAME,
    EditorStateError,
    RecordEditor,
    aggregate_balances,
    aggregate_transactions,
    export_csv,
)
from cashbook.models.ledger import (
    Balance,
    BalanceTotals,
    CurrentUser,
    FormValidationResult,
    LedgerTotals,
    Transaction,
    TransactionFields,
    TransactionQuery,
)
from cashbook.queries import TransactionQueryExecutor, TransactionQueryResult
from cashbook.services.storage import (
    DEFAULT_ROW_LIMIT,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    InMemoryLedgerStore,
    LedgerStoreInterface,
    StoreError,
)
from cashbook.validation import BalanceFormValidator, TransactionFormValidator


logger = structlog.get_logger(__name__)


class _Flow:
    """Shared plumbing: who is signed in, and how store errors are reported."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self.user: Optional[CurrentUser] = None

    @property
    def actor(self) -> Optional[str]:
        return self.user.display_identity if self.user else None

    async def identify(self) -> Optional[CurrentUser]:
        """Ask the store who is signed in."""
        self.user = await self._store.get_current_user()
        return self.user

    async def _report_store_error(
        self,
        operation: str,
        error: StoreError,
        entity_id: Optional[UUID] = None,
    ) -> None:
        logger.error(
            "store_request_failed",
            operation=operation,
            error=error.message,
            entity_id=str(entity_id) if entity_id else None,
        )
        if self._audit_logger:
            await self._audit_logger.log_store_error(
                operation=operation,
                error_message=error.message,
                entity_id=entity_id,
                actor=self.actor,
            )

    async def _report_rejected_form(self, form: str, result: FormValidationResult) -> None:
        if self._audit_logger:
            await self._audit_logger.log_form_rejected(
                form=form,
                issues=[
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.issues
                ],
                actor=self.actor,
            )


class DashboardSnapshot(BaseModel):
    """Everything the dashboard shows, computed from one load."""
    model_config = ConfigDict(frozen=True)

    user: Optional[CurrentUser] = None
    transactions: list[Transaction] = Field(default_factory=list)
    balances: list[Balance] = Field(default_factory=list)
    ledger_totals: LedgerTotals = Field(default_factory=LedgerTotals)
    balance_totals: BalanceTotals = Field(default_factory=BalanceTotals)


class DashboardFlow(_Flow):
    """
    Orchestrates the dashboard page.

    Shows the five headline numbers (income, expense, net, cash on hand,
    capital) and lets the user maintain balances.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        validator: Optional[BalanceFormValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        limit: int = DEFAULT_ROW_LIMIT,
    ):
        super().__init__(store, audit_logger)
        self._validator = validator or BalanceFormValidator()
        self._limit = limit
        self.snapshot = DashboardSnapshot()

    async def load(self) -> DashboardSnapshot:
        """
        Reload user, transactions and balances and recompute totals.

        Raises:
            StoreError: If either fetch fails (previous snapshot kept)
        """
        user = await self.identify()
        try:
            transactions = await self._store.fetch_transactions(limit=self._limit)
            balances = await self._store.fetch_balances()
        except StoreError as e:
            await self._report_store_error("load", e)
            raise

        self.snapshot = DashboardSnapshot(
            user=user,
            transactions=transactions,
            balances=balances,
            ledger_totals=aggregate_transactions(transactions),
            balance_totals=aggregate_balances(balances),
        )
        return self.snapshot

    async def save_balance(
        self,
        raw: Mapping[str, Any],
        balance_id: Optional[UUID] = None,
    ) -> FormValidationResult:
        """
        Create a balance, or overwrite balance_id, then reload.

        Returns:
            The validation result; nothing is sent when it is invalid

        Raises:
            StoreError: If the store rejects the write
        """
        result = self._validator.validate(raw)
        if not result.is_valid:
            await self._report_rejected_form("balance", result)
            return result

        fields = result.record
        try:
            if balance_id is None:
                saved = await self._store.insert_balance(fields)
            else:
                saved = await self._store.update_balance(balance_id, fields)
        except StoreError as e:
            await self._report_store_error("save_balance", e, balance_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_balance_saved(
                balance_id=saved.id,
                label=saved.label,
                kind=saved.kind.value,
                amount=str(saved.balance),
                actor=self.actor,
            )
        await self.load()
        return result

    async def delete_balance(self, balance_id: UUID, confirmed: bool) -> bool:
        """Delete a balance after explicit confirmation, then reload."""
        if not confirmed:
            return False
        try:
            deleted = await self._store.delete_balance(balance_id)
        except StoreError as e:
            await self._report_store_error("delete_balance", e, balance_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_balance_deleted(balance_id, actor=self.actor)
        await self.load()
        return deleted


class TransactionsFlow(_Flow):
    """
    Orchestrates the transactions page.

    Flow:
    1. Filters are edited freely; nothing is fetched until load()
    2. load() → store applies type/method, we apply the text filter
    3. add / save_edit / remove → store write → full reload
    4. export() → CSV of exactly the rows on screen

    Overlapping loads: each load takes a ticket and only the newest
    ticket may replace the rows. A slow older response is dropped.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        executor: Optional[TransactionQueryExecutor] = None,
        validator: Optional[TransactionFormValidator] = None,
        editor: Optional[RecordEditor] = None,
        audit_logger: Optional[AuditLogger] = None,
        export_filename: str = EXPORT_FILENAME,
    ):
        super().__init__(store, audit_logger)
        self._executor = executor or TransactionQueryExecutor(store)
        self._validator = validator or TransactionFormValidator()
        self._editor = editor or RecordEditor()
        self._export_filename = export_filename
        self._result: Optional[TransactionQueryResult] = None
        self._load_ticket = 0
        self.query = TransactionQuery()

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    @property
    def rows(self) -> list[Transaction]:
        return self._result.rows if self._result else []

    @property
    def truncated(self) -> bool:
        return self._result.truncated if self._result else False

    @property
    def limit(self) -> int:
        return self._executor.limit

    @property
    def totals(self) -> LedgerTotals:
        """Recomputed from the rows on screen on every access."""
        return aggregate_transactions(self.rows)

    @property
    def editor(self) -> RecordEditor:
        return self._editor

    @property
    def export_filename(self) -> str:
        return self._export_filename

    def set_query(self, query: TransactionQuery) -> None:
        """Change the filters. Takes effect on the next load()."""
        self.query = query

    async def start(self) -> None:
        """First render: identify the user, then load."""
        await self.identify()
        await self.load()

    async def load(self) -> bool:
        """
        Fetch rows for the current filters.

        Returns:
            False if a newer load started meanwhile and this response was dropped

        Raises:
            StoreError: If the fetch fails (rows on screen kept)
        """
        self._load_ticket += 1
        ticket = self._load_ticket
        query = self.query

        try:
            result = await self._executor.execute(query)
        except StoreError as e:
            await self._report_store_error("load", e)
            raise

        if ticket != self._load_ticket:
            logger.info("stale_load_discarded", ticket=ticket, latest=self._load_ticket)
            return False

        self._result = result
        return True

    def find(self, transaction_id: UUID) -> Optional[Transaction]:
        for row in self.rows:
            if row.id == transaction_id:
                return row
        return None

    # -------------------------------------------------------------------------
    # Write side
    # -------------------------------------------------------------------------

    async def add(self, raw: Mapping[str, Any]) -> FormValidationResult:
        """
        Validate the add form, insert, reload.

        Returns:
            The validation result; nothing is sent when it is invalid

        Raises:
            StoreError: If the store rejects the insert
        """
        result = self._validator.validate(raw)
        if not result.is_valid:
            await self._report_rejected_form("transaction", result)
            return result

        try:
            created = await self._store.insert_transaction(result.record)
        except StoreError as e:
            await self._report_store_error("insert", e)
            raise

        if self._audit_logger:
            await self._audit_logger.log_transaction_created(
                transaction_id=created.id,
                transaction_type=created.type.value,
                amount=str(created.amount),
                actor=self.actor,
            )
        await self.load()
        return result

    def begin_edit(self, transaction_id: UUID) -> TransactionFields:
        """Open the edit draft for a row on screen."""
        transaction = self.find(transaction_id)
        if transaction is None:
            raise EditorStateError(f"Transaction {transaction_id} is not on screen")
        return self._editor.begin(transaction)

    def change_draft(self, **changes: Any) -> TransactionFields:
        return self._editor.change(**changes)

    async def cancel_edit(self) -> None:
        transaction_id = self._editor.cancel()
        if transaction_id and self._audit_logger:
            await self._audit_logger.log_edit_cancelled(transaction_id, actor=self.actor)

    async def save_edit(self) -> Optional[Transaction]:
        """
        Commit the draft, then reload.

        Returns:
            The updated transaction, or None when nothing was being edited

        Raises:
            StoreError: If the store rejects the update (draft kept)
        """
        if not self._editor.is_editing():
            return None

        transaction_id = self._editor.transaction_id
        changed = self._editor.changed_fields()
        try:
            updated = await self._editor.commit(self._store)
        except StoreError as e:
            await self._report_store_error("update", e, transaction_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_transaction_updated(
                transaction_id=updated.id,
                changed_fields=changed,
                actor=self.actor,
            )
        await self.load()
        return updated

    async def remove(self, transaction_id: UUID, confirmed: bool) -> bool:
        """
        Delete a transaction after explicit confirmation, then reload.

        Issuing the delete closes any open edit of that transaction,
        whatever the store answers.

        Raises:
            StoreError: If the store rejects the delete
        """
        if not confirmed:
            return False

        self._editor.discard(transaction_id)
        try:
            deleted = await self._store.delete_transaction(transaction_id)
        except StoreError as e:
            await self._report_store_error("delete", e, transaction_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_transaction_deleted(transaction_id, actor=self.actor)
        await self.load()
        return deleted

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def export(self) -> bytes:
        """CSV bytes for the rows currently on screen."""
        return export_csv(self.rows)

    async def record_export(self) -> None:
        """Audit a download of the current rows."""
        if self._audit_logger:
            await self._audit_logger.log_csv_exported(
                row_count=len(self.rows),
                filename=self._export_filename,
                actor=self.actor,
            )


@dataclass
class AppComponents:
    """Process-wide collaborators. Page flows are created per session."""

    store: LedgerStoreInterface
    audit_logger: AuditLogger
    settings: AppSettings
    sheets_client: Optional[GoogleSheetsClient] = None

    @property
    def storage_configured(self) -> bool:
        return self.sheets_client is not None

    def dashboard_flow(self) -> DashboardFlow:
        return DashboardFlow(
            store=self.store,
            audit_logger=self.audit_logger,
            limit=self.settings.row_limit,
        )

    def transactions_flow(self) -> TransactionsFlow:
        return TransactionsFlow(
            store=self.store,
            executor=TransactionQueryExecutor(self.store, limit=self.settings.row_limit),
            audit_logger=self.audit_logger,
            export_filename=self.settings.export_filename,
        )


def create_app_components(
    use_storage: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False for testing without storage.

    Returns:
        AppComponents sharing one store client
    """
    settings = get_settings().app
    configure_logging(settings.log_level)

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            return AppComponents(
                store=GoogleSheetsLedgerStore(sheets_client),
                audit_logger=AuditLogger(GoogleSheetsAuditStorage(sheets_client)),
                settings=settings,
                sheets_client=sheets_client,
            )
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))

    # Nobody is signed in to an unconfigured store, so the auth gate stays shut
    return AppComponents(
        store=InMemoryLedgerStore(),
        audit_logger=AuditLogger(),  # Local-only logging
        settings=settings,
    )
