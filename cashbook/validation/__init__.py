"""Form validation package."""

from cashbook.validation.validator import BalanceFormValidator, TransactionFormValidator

__all__ = ["BalanceFormValidator", "TransactionFormValidator"]
