"""Tests for the add-transaction and balance form validators."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from cashbook.models.ledger import BalanceKind, PaymentMethod, TransactionType
from cashbook.validation import BalanceFormValidator, TransactionFormValidator


TODAY = date(2024, 6, 30)


@pytest.fixture
def validator():
    return TransactionFormValidator(today=lambda: TODAY)


class TestTransactionFormValidator:

    def test_full_form(self, validator):
        result = validator.validate({
            "date": "2024-01-05",
            "type": "expense",
            "category": " Supplies ",
            "method": "gcash",
            "amount": "40.5",
            "notes": "",
        })
        assert result.is_valid
        record = result.record
        assert record.date == date(2024, 1, 5)
        assert record.type == TransactionType.EXPENSE
        assert record.category == "Supplies"
        assert record.method == PaymentMethod.GCASH
        assert record.amount == Decimal("40.50")
        assert record.notes is None

    def test_defaults_for_absent_fields(self, validator):
        result = validator.validate({})
        assert result.is_valid
        record = result.record
        assert record.date == TODAY
        assert record.type == TransactionType.INCOME
        assert record.method == PaymentMethod.CASH
        assert record.amount == Decimal("0.00")

    def test_accepts_widget_values(self, validator):
        result = validator.validate({"date": date(2024, 2, 29), "amount": 12.5})
        assert result.is_valid
        assert result.record.date == date(2024, 2, 29)
        assert result.record.amount == Decimal("12.50")

    @pytest.mark.parametrize("field, value", [
        ("type", "Income"),
        ("type", "transfer"),
        ("method", "card"),
        ("amount", "12,50"),
        ("amount", "abc"),
        ("amount", "NaN"),
        ("amount", "-1"),
        ("amount", "1.005"),
        ("amount", True),
        ("date", "2024/01/05"),
        ("date", "2024-02-30"),
        ("date", datetime(2024, 1, 5, 10, 0)),
    ])
    def test_rejects_bad_value(self, validator, field, value):
        result = validator.validate({field: value})
        assert not result.is_valid
        assert result.record is None
        assert [issue.field for issue in result.issues if issue.severity == "error"] == [field]

    def test_unknown_field_is_only_a_warning(self, validator):
        result = validator.validate({"amount": "1", "colour": "red"})
        assert result.is_valid
        assert result.issues[0].field == "colour"
        assert result.issues[0].severity == "warning"

    def test_overlong_category_rejected(self, validator):
        result = validator.validate({"category": "x" * 201})
        assert not result.is_valid
        assert result.issues[0].field == "category"

    @pytest.mark.parametrize("amount", ["1e30", "9" * 29, "10000000000000"])
    def test_rejects_amount_too_large(self, validator, amount):
        result = validator.validate({"amount": amount})
        assert not result.is_valid
        assert [issue.field for issue in result.issues] == ["amount"]

    def test_largest_amount_accepted(self, validator):
        result = validator.validate({"amount": "9999999999999.99"})
        assert result.is_valid
        assert result.record.amount == Decimal("9999999999999.99")

    def test_several_errors_reported_together(self, validator):
        result = validator.validate({"type": "?", "method": "?", "amount": "?"})
        assert result.error_count == 3


class TestBalanceFormValidator:

    def test_valid_form(self):
        result = BalanceFormValidator().validate(
            {"label": "BPI savings", "kind": "bank", "balance": "-120.25"}
        )
        assert result.is_valid
        assert result.record.label == "BPI savings"
        assert result.record.kind == BalanceKind.BANK
        assert result.record.balance == Decimal("-120.25")

    def test_defaults(self):
        result = BalanceFormValidator().validate({"label": "Drawer"})
        assert result.is_valid
        assert result.record.kind == BalanceKind.CASH
        assert result.record.balance == Decimal("0.00")

    def test_label_required(self):
        result = BalanceFormValidator().validate({"label": "  ", "balance": "10"})
        assert not result.is_valid
        assert result.issues[0].field == "label"
        assert result.issues[0].issue_type == "missing"

    def test_rejects_unknown_kind(self):
        result = BalanceFormValidator().validate({"label": "Vault", "kind": "gold"})
        assert not result.is_valid
        assert "capital" in result.issues[0].message

    @pytest.mark.parametrize("balance", ["9" * 29, "-1e30"])
    def test_rejects_balance_too_large(self, balance):
        result = BalanceFormValidator().validate({"label": "Vault", "balance": balance})
        assert not result.is_valid
        assert [issue.field for issue in result.issues] == ["balance"]
