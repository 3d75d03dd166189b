"""Tests for the pure ledger core: totals, filters, export and money formatting."""

import csv
import io

import pytest
from datetime import date
from decimal import Decimal

from cashbook.ledger import (
    EXPORT_COLUMNS,
    aggregate_balances,
    aggregate_transactions,
    export_csv,
    filter_transactions,
    format_money,
    matches_text,
    project_row,
)
from cashbook.models.ledger import (
    BalanceKind,
    PaymentMethod,
    TransactionQuery,
    TransactionType,
)

from conftest import make_balance, make_transaction


INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE


class TestAggregateTransactions:
    """Tests for income / expense / net totals."""

    def test_empty_is_zero(self):
        totals = aggregate_transactions([])
        assert totals.income == Decimal("0")
        assert totals.expense == Decimal("0")
        assert totals.net == Decimal("0")

    def test_mixed_rows(self):
        rows = [
            make_transaction("1500.00", INCOME),
            make_transaction("40.00", EXPENSE),
            make_transaction("200.25", INCOME),
        ]
        totals = aggregate_transactions(rows)
        assert totals.income == Decimal("1700.25")
        assert totals.expense == Decimal("40.00")
        assert totals.net == Decimal("1660.25")

    def test_income_expense_scenario(self):
        rows = [
            make_transaction("100.00", INCOME),
            make_transaction("40.00", EXPENSE),
            make_transaction("25.50", INCOME),
        ]
        totals = aggregate_transactions(rows)
        assert totals.income == Decimal("125.50")
        assert totals.expense == Decimal("40.00")
        assert totals.net == Decimal("85.50")

    def test_expense_only_gives_negative_net(self):
        totals = aggregate_transactions([make_transaction("75.50", EXPENSE)])
        assert totals.income == Decimal("0")
        assert totals.net == Decimal("-75.50")

    def test_zero_amount_rows_count_for_nothing(self):
        totals = aggregate_transactions([make_transaction("0", INCOME), make_transaction("0", EXPENSE)])
        assert totals.net == Decimal("0")

    def test_many_small_amounts_stay_exact(self):
        """Test that 10,000 ten-cent entries add up to exactly 1000.00."""
        rows = [make_transaction("0.10", INCOME) for _ in range(10_000)]
        totals = aggregate_transactions(rows)
        assert totals.income == Decimal("1000.00")
        assert totals.net == Decimal("1000.00")

    def test_net_is_income_minus_expense(self):
        rows = [
            make_transaction("0.10", INCOME),
            make_transaction("0.20", INCOME),
            make_transaction("0.30", EXPENSE),
        ]
        totals = aggregate_transactions(rows)
        assert totals.net == totals.income - totals.expense == Decimal("0.00")


class TestAggregateBalances:
    """Tests for cash on hand and capital."""

    def test_capital_is_separate(self):
        balances = [
            make_balance("1000.00", BalanceKind.CASH),
            make_balance("250.50", BalanceKind.GCASH),
            make_balance("-50.00", BalanceKind.BANK),
            make_balance("20000.00", BalanceKind.CAPITAL),
        ]
        totals = aggregate_balances(balances)
        assert totals.cash_on_hand == Decimal("1200.50")
        assert totals.capital == Decimal("20000.00")

    def test_cash_bank_capital_scenario(self):
        totals = aggregate_balances([
            make_balance("500", BalanceKind.CASH),
            make_balance("1200", BalanceKind.BANK),
            make_balance("5000", BalanceKind.CAPITAL),
        ])
        assert totals.cash_on_hand == Decimal("1700.00")
        assert totals.capital == Decimal("5000.00")

    def test_groups_partition_all_balances(self):
        balances = [
            make_balance(amount, kind)
            for amount, kind in [
                ("10.10", BalanceKind.CASH),
                ("-3.05", BalanceKind.GCASH),
                ("999.99", BalanceKind.BANK),
                ("250.00", BalanceKind.CAPITAL),
                ("0.01", BalanceKind.CAPITAL),
            ]
        ]
        totals = aggregate_balances(balances)
        assert totals.cash_on_hand + totals.capital == sum(b.balance for b in balances)

    def test_empty_is_zero(self):
        totals = aggregate_balances([])
        assert totals.cash_on_hand == Decimal("0")
        assert totals.capital == Decimal("0")


class TestFilters:
    """Tests for the local text filter."""

    def test_text_matches_category_case_insensitively(self):
        sales = make_transaction("10", category="Sales")
        rent = make_transaction("10", category="Rent")
        result = filter_transactions([sales, rent], TransactionQuery(text="sa"))
        assert result == [sales]

    def test_text_matches_notes(self):
        tx = make_transaction("10", category="COGS", notes="Flour from SUPPLIER A")
        assert matches_text(tx, "supplier")

    def test_missing_text_fields_never_match_non_empty_text(self):
        tx = make_transaction("10")
        assert not matches_text(tx, "x")
        assert matches_text(tx, "")

    def test_empty_text_is_identity(self):
        rows = [make_transaction("1"), make_transaction("2", category="Sales")]
        assert filter_transactions(rows, TransactionQuery()) == rows

    def test_filter_is_idempotent(self):
        rows = [
            make_transaction("1", category="Sales"),
            make_transaction("2", category="Rent"),
            make_transaction("3", notes="sales return"),
        ]
        query = TransactionQuery(text="sales")
        once = filter_transactions(rows, query)
        assert filter_transactions(once, query) == once
        assert len(once) == 2

    def test_order_is_preserved(self):
        rows = [
            make_transaction("1", category="Sales", on=date(2024, 3, 1)),
            make_transaction("2", category="Sales", on=date(2024, 2, 1)),
            make_transaction("3", category="Sales", on=date(2024, 1, 1)),
        ]
        assert filter_transactions(rows, TransactionQuery(text="sales")) == rows

    def test_exact_filters_also_apply(self):
        cash = make_transaction("1", method=PaymentMethod.CASH, category="Sales")
        bank = make_transaction("2", method=PaymentMethod.BANK, category="Sales")
        result = filter_transactions([cash, bank], TransactionQuery(method=PaymentMethod.BANK))
        assert result == [bank]


class TestExport:
    """Tests for CSV export."""

    def test_zero_rows_gives_header_only(self):
        assert export_csv([]) == b"date,type,category,method,amount,notes\r\n"

    def test_row_formatting(self):
        tx = make_transaction(
            "1500", INCOME, PaymentMethod.GCASH, category="Sales", on=date(2024, 1, 5)
        )
        data = export_csv([tx]).decode("utf-8")
        assert data.splitlines()[1] == "2024-01-05,income,Sales,gcash,1500.00,"

    def test_commas_and_quotes_survive(self):
        tx = make_transaction("40", EXPENSE, category='Supplies, "bulk"', notes="line one")
        rows = list(csv.reader(io.StringIO(export_csv([tx]).decode("utf-8"))))
        assert rows[0] == list(EXPORT_COLUMNS)
        assert rows[1][2] == 'Supplies, "bulk"'
        assert rows[1][4] == "40.00"

    def test_full_row_survives_csv_reader(self):
        tx = make_transaction(
            "1234.5",
            EXPENSE,
            PaymentMethod.BANK,
            category="Rent, shop",
            notes='Paid "late"\nsecond line',
            on=date(2024, 3, 9),
        )
        rows = list(csv.reader(io.StringIO(export_csv([tx]).decode("utf-8"), newline="")))
        assert rows == [
            list(EXPORT_COLUMNS),
            ["2024-03-09", "expense", "Rent, shop", "bank", "1234.50", 'Paid "late"\nsecond line'],
        ]

    def test_utf8_text(self):
        tx = make_transaction("1", category="Piña")
        assert "Piña".encode("utf-8") in export_csv([tx])

    def test_project_row_keeps_missing_as_none(self):
        row = project_row(make_transaction("3.5"))
        assert row["category"] is None
        assert row["notes"] is None
        assert row["amount"] == "3.50"

    def test_one_line_per_row(self):
        rows = [make_transaction(str(i)) for i in range(3)]
        assert export_csv(rows).count(b"\r\n") == 4


class TestFormatMoney:

    @pytest.mark.parametrize("amount, expected", [
        (Decimal("0"), "₱0.00"),
        (Decimal("1234.5"), "₱1,234.50"),
        (Decimal("-40"), "-₱40.00"),
        (Decimal("1000000"), "₱1,000,000.00"),
    ])
    def test_format(self, amount, expected):
        assert format_money(amount) == expected

    def test_custom_symbol(self):
        assert format_money(Decimal("5"), symbol="$") == "$5.00"
