"""Two-stage filtering of transactions.

Stage one is an exact match on type and method. The store runs it when
fetching, and running it again here over already-narrowed rows changes
nothing. Stage two is a case-insensitive substring match of the query
text against category and notes, run locally over the fetched snapshot.
"""

from collections.abc import Iterable

from cashbook.models.ledger import Transaction, TransactionQuery


def matches_exact(transaction: Transaction, query: TransactionQuery) -> bool:
    """Check the enumerated filters. An unset filter matches everything."""
    if query.type is not None and transaction.type != query.type:
        return False
    if query.method is not None and transaction.method != query.method:
        return False
    return True


def matches_text(transaction: Transaction, text: str) -> bool:
    """Check whether category or notes contain text, ignoring case.

    Missing category or notes count as the empty string. Empty text
    matches every transaction.
    """
    if not text:
        return True
    needle = text.lower()
    return (
        needle in (transaction.category or "").lower()
        or needle in (transaction.notes or "").lower()
    )


def filter_transactions(
    candidates: Iterable[Transaction],
    query: TransactionQuery,
) -> list[Transaction]:
    """Apply both stages, keeping the incoming order."""
    return [
        t for t in candidates
        if matches_exact(t, query) and matches_text(t, query.text)
    ]
