"""Query execution package."""

from cashbook.queries.executor import TransactionQueryExecutor, TransactionQueryResult

__all__ = ["TransactionQueryExecutor", "TransactionQueryResult"]
