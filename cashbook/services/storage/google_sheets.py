"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the hosted storage backend because:
1. The owner can view and fix their books directly in Sheets
2. No database setup required
3. Built-in backup and sharing (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (a row cap of 1000 per load is plenty)
- No transactions (every write touches exactly one row)
- Limited query capabilities (we filter and sort in Python, store-side)

The implementation follows the abstract interface, so we can swap
to a hosted database later without changing the page workflows.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional, TypeVar
from uuid import UUID, uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from cashbook.config import GoogleSheetsSettings, get_settings
from cashbook.models.audit import AuditEvent, AuditEventType, AuditSeverity
from cashbook.models.ledger import (
    Balance,
    BalanceFields,
    BalanceKind,
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
    StoreConnectionError,
    StoreError,
)


logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "owner_id",
    "date",
    "type",
    "category",
    "method",
    "amount",
    "notes",
    "inserted_at",
]

# Column mappings for Balances sheet
BALANCE_COLUMNS = [
    "id",
    "owner_id",
    "label",
    "kind",
    "balance",
    "updated_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "actor",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows and empty cells."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def _parse_rows(rows: list[list], parse: Callable[[list], T], sheet: str) -> list[T]:
    """Parse data rows (header already removed), skipping blank and malformed ones."""
    records = []
    for row_number, row in enumerate(rows, start=2):
        if not row or not row[0]:  # Skip empty rows
            continue
        try:
            records.append(parse(row))
        except (ValueError, ArithmeticError) as e:
            logger.warning(
                "malformed_row_skipped",
                sheet=sheet,
                row_number=row_number,
                error=str(e),
            )
    return records


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for connecting.
    Built once per process and shared by every store.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._credentials: Optional[Credentials] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(StoreConnectionError),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                self._credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=SCOPES,
                )
                self._client = gspread.authorize(self._credentials)
            except FileNotFoundError:
                raise NotAuthenticatedError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StoreConnectionError(f"Failed to connect to Google Sheets: {e}")

            logger.info(
                "sheets_connected",
                service_account=self._credentials.service_account_email,
            )

        return self._client

    def current_user(self) -> Optional[CurrentUser]:
        """The service account the client is signed in as, if any."""
        try:
            self.connect()
        except StoreError as e:
            logger.warning("sheets_not_authenticated", error=e.message)
            return None

        email = getattr(self._credentials, "service_account_email", None)
        if not email:
            return None
        return CurrentUser(user_id=email, display_identity=email)

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StoreConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
            logger.info("sheet_created", title=title)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        """Get or create the Transactions worksheet."""
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name,
            TRANSACTION_COLUMNS,
            rows=2000,
        )

    def get_balances_sheet(self) -> gspread.Worksheet:
        """Get or create the Balances worksheet."""
        return self._get_or_create_sheet(
            self._settings.balances_sheet_name,
            BALANCE_COLUMNS,
            rows=100,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


class GoogleSheetsLedgerStore(LedgerStoreInterface):
    """
    Google Sheets implementation of the ledger store.

    Transactions and balances live in separate worksheets, one record per row.
    Row 1 of each sheet is the header.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    # -------------------------------------------------------------------------
    # Row mapping
    # -------------------------------------------------------------------------

    @staticmethod
    def _transaction_to_row(transaction: Transaction) -> list:
        """Convert a Transaction to a spreadsheet row."""
        return [
            str(transaction.id),
            transaction.owner_id,
            transaction.date.isoformat(),
            transaction.type.value,
            transaction.category or "",
            transaction.method.value,
            str(transaction.amount),
            transaction.notes or "",
            transaction.inserted_at.isoformat(),
        ]

    @staticmethod
    def _row_to_transaction(row: list) -> Transaction:
        """Convert a spreadsheet row to a Transaction."""
        return Transaction(
            id=UUID(_cell(row, 0)),
            owner_id=_cell(row, 1),
            date=date.fromisoformat(_cell(row, 2)),
            type=TransactionType(_cell(row, 3)),
            category=_cell(row, 4) or None,
            method=PaymentMethod(_cell(row, 5)),
            amount=Decimal(_cell(row, 6, "0")),
            notes=_cell(row, 7) or None,
            inserted_at=datetime.fromisoformat(_cell(row, 8)),
        )

    @staticmethod
    def _balance_to_row(balance: Balance) -> list:
        """Convert a Balance to a spreadsheet row."""
        return [
            str(balance.id),
            balance.owner_id,
            balance.label,
            balance.kind.value,
            str(balance.balance),
            balance.updated_at.isoformat(),
        ]

    @staticmethod
    def _row_to_balance(row: list) -> Balance:
        """Convert a spreadsheet row to a Balance."""
        return Balance(
            id=UUID(_cell(row, 0)),
            owner_id=_cell(row, 1),
            label=_cell(row, 2),
            kind=BalanceKind(_cell(row, 3)),
            balance=Decimal(_cell(row, 4, "0")),
            updated_at=datetime.fromisoformat(_cell(row, 5)),
        )

    @staticmethod
    def _find_row_index(all_rows: list[list], record_id: UUID) -> Optional[int]:
        """1-based sheet row index of a record, header included."""
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == str(record_id):
                return idx
        return None

    def _require_user(self) -> CurrentUser:
        user = self._client.current_user()
        if user is None:
            raise NotAuthenticatedError("Not signed in")
        return user

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    async def get_current_user(self) -> Optional[CurrentUser]:
        """The service account is the signed-in user."""
        return self._client.current_user()

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def fetch_transactions(
        self,
        transaction_type: Optional[TransactionType] = None,
        method: Optional[PaymentMethod] = None,
        limit: int = DEFAULT_ROW_LIMIT,
    ) -> list[Transaction]:
        """Fetch transactions with exact filters, newest date first."""
        try:
            sheet = self._client.get_transactions_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to load transactions: {e}")

        transactions = _parse_rows(all_rows, self._row_to_transaction, "transactions")

        # Apply exact filters
        if transaction_type:
            transactions = [t for t in transactions if t.type == transaction_type]
        if method:
            transactions = [t for t in transactions if t.method == method]

        # Sort by date descending (newest first)
        transactions.sort(key=lambda t: t.date, reverse=True)

        return transactions[:limit]

    async def insert_transaction(self, fields: TransactionFields) -> Transaction:
        """Append a new transaction row."""
        user = self._require_user()
        transaction = Transaction(
            id=uuid4(),
            owner_id=user.user_id,
            inserted_at=datetime.utcnow(),
            **fields.model_dump(),
        )
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.append_row(self._transaction_to_row(transaction), value_input_option="RAW")
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to save transaction: {e}")

        logger.info("transaction_inserted", transaction_id=str(transaction.id))
        return transaction

    async def update_transaction(
        self,
        transaction_id: UUID,
        fields: TransactionFields,
    ) -> Transaction:
        """Rewrite the row of an existing transaction."""
        try:
            sheet = self._client.get_transactions_sheet()
            all_rows = sheet.get_all_values()

            idx = self._find_row_index(all_rows, transaction_id)
            if idx is None:
                raise NotFoundError(f"Transaction not found: {transaction_id}")

            current = self._row_to_transaction(all_rows[idx - 1])
            updated = Transaction(
                id=current.id,
                owner_id=current.owner_id,
                inserted_at=current.inserted_at,
                **fields.model_dump(),
            )
            sheet.update(
                range_name=f"A{idx}",
                values=[self._transaction_to_row(updated)],
                value_input_option="RAW",
            )
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to update transaction: {e}")

        logger.info("transaction_updated", transaction_id=str(transaction_id))
        return updated

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        """Delete the row of a transaction."""
        try:
            sheet = self._client.get_transactions_sheet()
            idx = self._find_row_index(sheet.get_all_values(), transaction_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to delete transaction: {e}")

        logger.info("transaction_deleted", transaction_id=str(transaction_id))
        return True

    # -------------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------------

    async def fetch_balances(self) -> list[Balance]:
        """Fetch all balances, most recently updated first."""
        try:
            sheet = self._client.get_balances_sheet()
            all_rows = sheet.get_all_values()[1:]
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to load balances: {e}")

        balances = _parse_rows(all_rows, self._row_to_balance, "balances")
        balances.sort(key=lambda b: b.updated_at, reverse=True)
        return balances

    async def insert_balance(self, fields: BalanceFields) -> Balance:
        """Append a new balance row."""
        user = self._require_user()
        balance = Balance(
            id=uuid4(),
            owner_id=user.user_id,
            updated_at=datetime.utcnow(),
            **fields.model_dump(),
        )
        try:
            sheet = self._client.get_balances_sheet()
            sheet.append_row(self._balance_to_row(balance), value_input_option="RAW")
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to save balance: {e}")
        return balance

    async def update_balance(self, balance_id: UUID, fields: BalanceFields) -> Balance:
        """Rewrite a balance row and bump updated_at."""
        try:
            sheet = self._client.get_balances_sheet()
            all_rows = sheet.get_all_values()

            idx = self._find_row_index(all_rows, balance_id)
            if idx is None:
                raise NotFoundError(f"Balance not found: {balance_id}")

            current = self._row_to_balance(all_rows[idx - 1])
            updated = Balance(
                id=current.id,
                owner_id=current.owner_id,
                updated_at=datetime.utcnow(),
                **fields.model_dump(),
            )
            sheet.update(
                range_name=f"A{idx}",
                values=[self._balance_to_row(updated)],
                value_input_option="RAW",
            )
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to update balance: {e}")
        return updated

    async def delete_balance(self, balance_id: UUID) -> bool:
        """Delete a balance row."""
        try:
            sheet = self._client.get_balances_sheet()
            idx = self._find_row_index(sheet.get_all_values(), balance_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to delete balance: {e}")
        return True


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=datetime.fromisoformat(_cell(row, 1)),
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            entity_type=_cell(row, 4) or None,
            entity_id=UUID(_cell(row, 5)) if _cell(row, 5) else None,
            actor=_cell(row, 6) or None,
            description=_cell(row, 7),
            details=json.loads(_cell(row, 8)) if _cell(row, 8) else {},
            error_message=_cell(row, 9) or None,
            is_user_action=_cell(row, 10).lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning(
                "audit_append_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to get audit events: {e}")

        events = _parse_rows(all_rows, self._row_to_event, "audit")

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
