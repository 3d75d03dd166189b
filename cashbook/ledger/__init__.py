"""
Ledger core: totals, filtering, CSV export and the edit state machine.

Everything here except RecordEditor.commit is pure:
- No I/O operations
- No side effects
- Easy to test
"""

from cashbook.ledger.editor import EditorState, EditorStateError, RecordEditor
from cashbook.ledger.export import (
    EXPORT_COLUMNS,
    EXPORT_FILENAME,
    EXPORT_MIME_TYPE,
    export_csv,
    project_row,
)
from cashbook.ledger.filters import filter_transactions, matches_exact, matches_text
from cashbook.ledger.money import format_money
from cashbook.ledger.totals import aggregate_balances, aggregate_transactions

__all__ = [
    "EXPORT_COLUMNS",
    "EXPORT_FILENAME",
    "EXPORT_MIME_TYPE",
    "EditorState",
    "EditorStateError",
    "RecordEditor",
    "aggregate_balances",
    "aggregate_transactions",
    "export_csv",
    "filter_transactions",
    "format_money",
    "matches_exact",
    "matches_text",
    "project_row",
]
