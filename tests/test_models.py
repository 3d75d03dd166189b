"""
Tests for Cashbook

Test strategy:
1. Unit tests for individual components (models, totals, filters, export, validators)
2. Flow tests against the in-memory store (no network)
3. Google Sheets store tests against a fake worksheet (no real API calls)
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from cashbook.models.ledger import (
    BalanceFields,
    BalanceKind,
    FormValidationResult,
    PaymentMethod,
    Transaction,
    TransactionFields,
    TransactionQuery,
    TransactionType,
    ValidationIssue,
)
from cashbook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestTransactionModels:
    """Tests for transaction-related Pydantic models."""

    def test_transaction_fields_creation(self):
        """Test TransactionFields model creation."""
        fields = TransactionFields(
            date=date(2024, 1, 5),
            type=TransactionType.INCOME,
            category="Sales",
            method=PaymentMethod.GCASH,
            amount=Decimal("1500"),
        )
        assert fields.category == "Sales"
        assert fields.amount == Decimal("1500.00")
        assert str(fields.amount) == "1500.00"
        assert fields.notes is None

    def test_blank_text_becomes_none(self):
        """Test that blank category and notes are treated as absent."""
        fields = TransactionFields(
            date=date(2024, 1, 5),
            type=TransactionType.EXPENSE,
            category="   ",
            method=PaymentMethod.CASH,
            amount=Decimal("10"),
            notes="",
        )
        assert fields.category is None
        assert fields.notes is None

    def test_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            TransactionFields(
                date=date(2024, 1, 5),
                type=TransactionType.EXPENSE,
                method=PaymentMethod.CASH,
                amount=Decimal("-1"),
            )

    def test_rejects_sub_cent_amount(self):
        """Test that more than two decimal places are rejected."""
        with pytest.raises(ValueError):
            TransactionFields(
                date=date(2024, 1, 5),
                type=TransactionType.EXPENSE,
                method=PaymentMethod.CASH,
                amount=Decimal("1.005"),
            )

    def test_fields_are_frozen(self):
        fields = TransactionFields(
            date=date(2024, 1, 5),
            type=TransactionType.INCOME,
            method=PaymentMethod.CASH,
            amount=Decimal("1"),
        )
        with pytest.raises(ValueError):
            fields.amount = Decimal("2")

    def test_transaction_to_fields(self):
        """Test projection onto the editable fields."""
        tx = Transaction(
            id=uuid4(),
            owner_id="owner@example.com",
            inserted_at=datetime(2024, 1, 5, 9, 0),
            date=date(2024, 1, 5),
            type=TransactionType.EXPENSE,
            category="Rent",
            method=PaymentMethod.BANK,
            amount=Decimal("8000"),
        )
        fields = tx.to_fields()
        assert type(fields) is TransactionFields
        assert fields.category == "Rent"
        assert fields.amount == Decimal("8000.00")

    def test_transaction_requires_owner(self):
        with pytest.raises(ValueError):
            Transaction(
                id=uuid4(),
                owner_id="",
                inserted_at=datetime(2024, 1, 5, 9, 0),
                date=date(2024, 1, 5),
                type=TransactionType.EXPENSE,
                method=PaymentMethod.BANK,
                amount=Decimal("1"),
            )

    def test_balance_may_be_negative(self):
        """Test that balances are signed."""
        fields = BalanceFields(label="BPI", kind=BalanceKind.BANK, balance=Decimal("-250.5"))
        assert fields.balance == Decimal("-250.50")

    def test_balance_requires_label(self):
        with pytest.raises(ValueError):
            BalanceFields(label="", kind=BalanceKind.CASH, balance=Decimal("0"))

    def test_query_defaults_match_everything(self):
        query = TransactionQuery()
        assert query.text == ""
        assert query.type is None
        assert query.method is None


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            description="Transaction added",
        )
        assert event.event_type == AuditEventType.TRANSACTION_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.BALANCE_SAVED,
            description="Balance saved",
            details={"label": "Drawer", "amount": "1000.00"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "balance_saved"
        assert log_dict["details"]["label"] == "Drawer"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            description="Transaction deleted",
            actor="owner@example.com",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 11  # Expected number of columns
        assert row[2] == "transaction_deleted"  # event_type
        assert row[6] == "owner@example.com"  # actor
        assert row[10] == "True"  # is_user_action

    def test_audit_event_builder_transaction_created(self):
        """Test AuditEventBuilder.transaction_created."""
        transaction_id = uuid4()

        event = AuditEventBuilder.transaction_created(
            transaction_id=transaction_id,
            transaction_type="income",
            amount="100.00",
            actor="owner@example.com",
        )

        assert event.event_type == AuditEventType.TRANSACTION_CREATED
        assert event.entity_id == transaction_id
        assert event.actor == "owner@example.com"
        assert event.is_user_action is True

    def test_audit_event_builder_store_error(self):
        """Test AuditEventBuilder.store_error."""
        event = AuditEventBuilder.store_error(
            operation="update",
            error_message="row not found",
        )

        assert event.event_type == AuditEventType.STORE_ERROR
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "row not found"


class TestFormValidationResult:
    """Tests for FormValidationResult model."""

    def test_result_has_errors(self):
        """Test has_errors property."""
        result = FormValidationResult(
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message="'abc' is not a number",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert result.is_valid is False
        assert result.summary() == "amount: 'abc' is not a number"

    def test_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = FormValidationResult(
            record=BalanceFields(label="Drawer", kind=BalanceKind.CASH, balance=Decimal("0")),
            issues=[
                ValidationIssue(
                    field="colour",
                    issue_type="unknown_field",
                    message="Field is not part of this form and was ignored",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0
        assert result.is_valid is True


class TestEnums:
    """Tests for ledger enums."""

    def test_transaction_type_values(self):
        assert [t.value for t in TransactionType] == ["income", "expense"]

    def test_payment_method_values(self):
        assert [m.value for m in PaymentMethod] == ["cash", "gcash", "bank"]

    def test_balance_kind_values(self):
        """Test balance kind string values."""
        for kind in ("cash", "gcash", "bank", "capital"):
            assert BalanceKind(kind) is not None
        with pytest.raises(ValueError):
            BalanceKind("Cash")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
