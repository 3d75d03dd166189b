"""Aggregate totals over transactions and balances.

All sums are Decimal and start from zero, so an empty list yields
all-zero totals and repeated summation never drifts.
"""

from collections.abc import Iterable
from decimal import Decimal

from cashbook.models.ledger import (
    CASH_ON_HAND_KINDS,
    Balance,
    BalanceKind,
    BalanceTotals,
    LedgerTotals,
    Transaction,
    TransactionType,
    quantize_money,
)


ZERO = Decimal("0.00")


def aggregate_transactions(transactions: Iterable[Transaction]) -> LedgerTotals:
    """Compute income, expense and net for a list of transactions.

    Args:
        transactions: Transactions to total (order does not matter).

    Returns:
        LedgerTotals where net = income - expense (may be negative).
    """
    income = ZERO
    expense = ZERO
    for transaction in transactions:
        if transaction.type == TransactionType.INCOME:
            income += transaction.amount
        elif transaction.type == TransactionType.EXPENSE:
            expense += transaction.amount

    income = quantize_money(income)
    expense = quantize_money(expense)
    return LedgerTotals(income=income, expense=expense, net=income - expense)


def aggregate_balances(balances: Iterable[Balance]) -> BalanceTotals:
    """Compute cash on hand (cash, gcash, bank) and capital.

    Args:
        balances: Balance snapshots to total.

    Returns:
        BalanceTotals for the two disjoint groups of kinds.
    """
    cash_on_hand = ZERO
    capital = ZERO
    for balance in balances:
        if balance.kind in CASH_ON_HAND_KINDS:
            cash_on_hand += balance.balance
        elif balance.kind == BalanceKind.CAPITAL:
            capital += balance.balance

    return BalanceTotals(
        cash_on_hand=quantize_money(cash_on_hand),
        capital=quantize_money(capital),
    )
