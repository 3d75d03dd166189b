"""
Transaction Query Execution

DESIGN DECISION: Filtering happens in two places on purpose.
The store applies the exact type/method filters, orders by date and
caps the result. This engine then applies the free-text filter to that
snapshot, locally.

KNOWN LIMIT: the text filter only ever sees the capped candidate set.
When the exact filters alone match more rows than the cap, older rows
that would match the text are never fetched. We do not hide this: the
result says whether the candidate set was truncated so the page can
warn the user to narrow the type/method filters.
"""

from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from cashbook.ledger.filters import filter_transactions
from cashbook.models.ledger import Transaction, TransactionQuery
from cashbook.services.storage import DEFAULT_ROW_LIMIT, LedgerStoreInterface


logger = structlog.get_logger(__name__)


class TransactionQueryResult(BaseModel):
    """Rows to display plus what was needed to get them."""
    model_config = ConfigDict(frozen=True)

    query: TransactionQuery
    rows: list[Transaction] = Field(default_factory=list)
    candidate_count: int = Field(
        default=0,
        ge=0,
        description="Rows the store returned before the text filter"
    )
    limit: int = Field(default=DEFAULT_ROW_LIMIT, ge=1)

    @property
    def truncated(self) -> bool:
        """
        The store hit the row cap, so older matches may be missing.

        Also true when the store holds exactly `limit` rows, since a full
        page cannot be told apart from a cut-off one.
        """
        return self.candidate_count >= self.limit


class TransactionQueryExecutor:
    """
    Executes transaction queries against the ledger store.

    GUARANTEES:
    - Only returns rows the store actually returned
    - Never requests more than the row cap
    - Keeps the store's date-descending order
    """

    def __init__(self, store: LedgerStoreInterface, limit: Optional[int] = None):
        self._store = store
        self._limit = min(limit or DEFAULT_ROW_LIMIT, DEFAULT_ROW_LIMIT)

    @property
    def limit(self) -> int:
        return self._limit

    async def execute(self, query: TransactionQuery) -> TransactionQueryResult:
        """
        Fetch candidates with the exact filters, then apply the text filter.

        Raises:
            StoreError: If the fetch fails
        """
        candidates = await self._store.fetch_transactions(
            transaction_type=query.type,
            method=query.method,
            limit=self._limit,
        )
        rows = filter_transactions(candidates, query)

        result = TransactionQueryResult(
            query=query,
            rows=rows,
            candidate_count=len(candidates),
            limit=self._limit,
        )
        if result.truncated:
            logger.warning(
                "query_truncated",
                limit=self._limit,
                type=query.type.value if query.type else None,
                method=query.method.value if query.method else None,
            )
        return result
