"""Money display helpers."""

from decimal import Decimal

from cashbook.models.ledger import quantize_money


def format_money(amount: Decimal, symbol: str = "₱") -> str:
    """Format an amount for display.

    Args:
        amount: Amount in currency units.
        symbol: Currency symbol to prefix.

    Returns:
        Formatted string (e.g., "₱1,234.50" or "-₱40.00").
    """
    amount = quantize_money(Decimal(amount))
    formatted = f"{symbol}{abs(amount):,.2f}"
    if amount < 0:
        return f"-{formatted}"
    return formatted
