"""
Form Validation

DESIGN DECISION: Forms arrive as an untyped bag of field values
(strings from text inputs, dates and floats from widgets). Each
recognised field has one explicit parse rule, and every rule fails
closed: a value that doesn't parse rejects the whole submission.

Defaults apply only to ABSENT values (the original form behaviour):
- date   -> today
- type   -> income
- method -> cash
- amount -> 0

IMPORTANT: Validation NEVER silently fixes issues.
"12,50" is not an amount, "Income" is not a type, "2024/01/05" is not a date.
"""

from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

from pydantic import ValidationError

from cashbook.models.ledger import (
    BALANCE_FIELD_NAMES,
    TRANSACTION_FIELD_NAMES,
    BalanceFields,
    BalanceKind,
    FormValidationResult,
    PaymentMethod,
    TransactionFields,
    TransactionType,
    ValidationIssue,
)


E = TypeVar("E", bound=Enum)


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class _FormValidator:
    """Shared parse rules."""

    fields: tuple[str, ...] = ()

    def _check_unknown(self, raw: Mapping[str, Any], issues: list[ValidationIssue]) -> None:
        for name in sorted(set(raw) - set(self.fields)):
            issues.append(ValidationIssue(
                field=name,
                issue_type="unknown_field",
                message="Field is not part of this form and was ignored",
                severity="warning",
            ))

    @staticmethod
    def _parse_enum(
        name: str,
        value: Any,
        enum_type: type[E],
        default: E,
        issues: list[ValidationIssue],
    ) -> Optional[E]:
        if _is_absent(value):
            return default
        try:
            return enum_type(value)
        except ValueError:
            allowed = ", ".join(member.value for member in enum_type)
            issues.append(ValidationIssue(
                field=name,
                issue_type="not_allowed",
                message=f"'{value}' is not one of: {allowed}",
            ))
            return None

    @staticmethod
    def _parse_decimal(
        name: str,
        value: Any,
        issues: list[ValidationIssue],
        allow_negative: bool,
    ) -> Optional[Decimal]:
        if _is_absent(value):
            return Decimal("0")

        if isinstance(value, bool):
            number = None
        elif isinstance(value, Decimal):
            number = value
        elif isinstance(value, (int, float)):
            number = Decimal(str(value))
        elif isinstance(value, str):
            try:
                number = Decimal(value.strip())
            except InvalidOperation:
                number = None
        else:
            number = None

        if number is None or not number.is_finite():
            issues.append(ValidationIssue(
                field=name,
                issue_type="invalid_format",
                message=f"'{value}' is not a number",
            ))
            return None

        if not allow_negative and number < 0:
            issues.append(ValidationIssue(
                field=name,
                issue_type="negative",
                message="Must be zero or more",
            ))
            return None

        if number.as_tuple().exponent < -2:
            issues.append(ValidationIssue(
                field=name,
                issue_type="too_precise",
                message="Use at most two decimal places",
            ))
            return None

        return number

    @staticmethod
    def _parse_text(value: Any) -> Optional[str]:
        if _is_absent(value):
            return None
        return str(value).strip()

    @staticmethod
    def _build(
        model: Callable[..., Any],
        parsed: dict[str, Any],
        issues: list[ValidationIssue],
    ) -> FormValidationResult:
        """Run the model's own validation on top of the parse rules."""
        try:
            record = model(**parsed)
        except ValidationError as e:
            for error in e.errors():
                issues.append(ValidationIssue(
                    field=str(error["loc"][0]) if error["loc"] else "form",
                    issue_type=error["type"],
                    message=error["msg"],
                ))
            return FormValidationResult(issues=issues)
        return FormValidationResult(record=record, issues=issues)


class TransactionFormValidator(_FormValidator):
    """
    Parses the add-transaction form.

    Recognised fields: date, type, category, method, amount, notes.
    """

    fields = TRANSACTION_FIELD_NAMES

    def __init__(self, today: Optional[Callable[[], date]] = None):
        """
        Args:
            today: Clock used for the default date. Defaults to date.today.
        """
        self._today = today or date.today

    def validate(self, raw: Mapping[str, Any]) -> FormValidationResult:
        """
        Parse and validate a submitted form.

        Returns:
            FormValidationResult with record set only when there are no errors
        """
        issues: list[ValidationIssue] = []
        self._check_unknown(raw, issues)

        parsed = {
            "date": self._parse_date(raw.get("date"), issues),
            "type": self._parse_enum(
                "type", raw.get("type"), TransactionType, TransactionType.INCOME, issues
            ),
            "category": self._parse_text(raw.get("category")),
            "method": self._parse_enum(
                "method", raw.get("method"), PaymentMethod, PaymentMethod.CASH, issues
            ),
            "amount": self._parse_decimal(
                "amount", raw.get("amount"), issues, allow_negative=False
            ),
            "notes": self._parse_text(raw.get("notes")),
        }

        if any(issue.severity == "error" for issue in issues):
            return FormValidationResult(issues=issues)

        return self._build(TransactionFields, parsed, issues)

    def _parse_date(self, value: Any, issues: list[ValidationIssue]) -> Optional[date]:
        if _is_absent(value):
            return self._today()
        if isinstance(value, datetime):
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message="Expected a calendar date without a time",
            ))
            return None
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value).strip())
        except ValueError:
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=f"'{value}' is not a date (expected YYYY-MM-DD)",
            ))
            return None


class BalanceFormValidator(_FormValidator):
    """
    Parses the balance form.

    Recognised fields: label, kind, balance. The balance may be negative.
    """

    fields = BALANCE_FIELD_NAMES

    def validate(self, raw: Mapping[str, Any]) -> FormValidationResult:
        issues: list[ValidationIssue] = []
        self._check_unknown(raw, issues)

        label = self._parse_text(raw.get("label"))
        if label is None:
            issues.append(ValidationIssue(
                field="label",
                issue_type="missing",
                message="A label is required",
            ))

        parsed = {
            "label": label,
            "kind": self._parse_enum(
                "kind", raw.get("kind"), BalanceKind, BalanceKind.CASH, issues
            ),
            "balance": self._parse_decimal(
                "balance", raw.get("balance"), issues, allow_negative=True
            ),
        }

        if any(issue.severity == "error" for issue in issues):
            return FormValidationResult(issues=issues)

        return self._build(BalanceFields, parsed, issues)
