"""CSV export of the transactions currently on screen."""

import csv
import io
from collections.abc import Iterable
from typing import Optional

from cashbook.models.ledger import TRANSACTION_FIELD_NAMES, Transaction


EXPORT_COLUMNS = TRANSACTION_FIELD_NAMES
EXPORT_FILENAME = "transactions.csv"
EXPORT_MIME_TYPE = "text/csv"


def project_row(transaction: Transaction) -> dict[str, Optional[str]]:
    """Project a transaction onto the export columns.

    id, owner and creation timestamp are dropped. Missing text stays
    None so the CSV writer renders it as an empty field.
    """
    return {
        "date": transaction.date.isoformat(),
        "type": transaction.type.value,
        "category": transaction.category,
        "method": transaction.method.value,
        "amount": f"{transaction.amount:.2f}",
        "notes": transaction.notes,
    }


def export_csv(rows: Iterable[Transaction]) -> bytes:
    """Serialize transactions to UTF-8 CSV with a header row.

    Values containing commas, quotes or line breaks are quoted with
    doubled inner quotes. No rows gives a header-only file.
    """
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=EXPORT_COLUMNS,
        quoting=csv.QUOTE_MINIMAL,
        lineterminator="\r\n",
    )
    writer.writeheader()
    for transaction in rows:
        writer.writerow(project_row(transaction))
    return buffer.getvalue().encode("utf-8")
