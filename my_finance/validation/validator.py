"""
Input Validation for Ledger Operations

Raw input reaches the ledger from forms and imports: numbers arrive as
strings, enums as free text, dates in several shapes. The validator turns
that input into typed values or explains why it cannot.

CHECKS:
- Required text is present and not blank
- Amounts parse as finite decimals that can be stored without rounding
- Amounts that must be positive are positive
- Months are 1-12, durations are whole positive months
- Enum values are among the known ones
- Dates are ISO dates

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the operation can be declined.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Type

from my_finance.models.ledger import (
    AccountTarget,
    CashDirection,
    Currency,
    Frequency,
    InterestKind,
    TransactionKind,
    fits_json_number,
)
from my_finance.models.reports import ValidationIssue, ValidationResult


MAX_TEXT_LENGTH = 200


class LedgerValidator:
    """
    Validates the raw input of each ledger operation.

    Every `validate_*` method returns a ValidationResult whose `values`
    are keyed by the attribute names of the record being created.
    """

    # -------------------------------------------------------------------------
    # Field parsers
    # -------------------------------------------------------------------------

    def _text(
        self,
        issues: list[ValidationIssue],
        field: str,
        value: Any,
        required: bool = True,
    ) -> Optional[str]:
        text = "" if value is None else str(value).strip()
        if not text:
            if required:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{field} is required",
                ))
            return None
        if len(text) > MAX_TEXT_LENGTH:
            issues.append(ValidationIssue(
                field=field,
                issue_type="too_long",
                message=f"{field} must be at most {MAX_TEXT_LENGTH} characters",
            ))
            return None
        return text

    def _decimal(
        self,
        issues: list[ValidationIssue],
        field: str,
        value: Any,
        positive: bool = False,
        non_negative: bool = False,
    ) -> Optional[Decimal]:
        amount = self._safe_decimal(value)
        if amount is None:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{field} must be a number",
            ))
            return None
        if not fits_json_number(amount):
            issues.append(ValidationIssue(
                field=field,
                issue_type="too_precise",
                message=f"{field} has more digits than can be stored",
            ))
            return None
        if positive and amount <= 0:
            issues.append(ValidationIssue(
                field=field,
                issue_type="not_positive",
                message=f"{field} must be greater than zero",
            ))
            return None
        if non_negative and amount < 0:
            issues.append(ValidationIssue(
                field=field,
                issue_type="negative",
                message=f"{field} cannot be negative",
            ))
            return None
        return amount

    def _int(
        self,
        issues: list[ValidationIssue],
        field: str,
        value: Any,
        minimum: Optional[int] = None,
        maximum: Optional[int] = None,
    ) -> Optional[int]:
        number = self._safe_decimal(value)
        if number is None or number != number.to_integral_value():
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{field} must be a whole number",
            ))
            return None
        result = int(number)
        if (minimum is not None and result < minimum) or (
            maximum is not None and result > maximum
        ):
            issues.append(ValidationIssue(
                field=field,
                issue_type="out_of_range",
                message=f"{field} must be between {minimum} and {maximum}"
                if maximum is not None
                else f"{field} must be at least {minimum}",
            ))
            return None
        return result

    def _enum(
        self,
        issues: list[ValidationIssue],
        field: str,
        value: Any,
        enum_cls: Type[Enum],
    ) -> Optional[Enum]:
        try:
            return enum_cls(value)
        except ValueError:
            allowed = ", ".join(member.value for member in enum_cls)
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{field} must be one of: {allowed}",
            ))
            return None

    def _date(
        self,
        issues: list[ValidationIssue],
        field: str,
        value: Any,
        required: bool = True,
    ) -> Optional[date]:
        if value is None or value == "":
            if required:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{field} is required",
                ))
            return None
        parsed = self._safe_date(value)
        if parsed is None:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{field} must be a date (YYYY-MM-DD)",
            ))
        return parsed

    @staticmethod
    def _safe_decimal(value: Any) -> Optional[Decimal]:
        """Safely convert a value to a finite Decimal."""
        if value is None or isinstance(value, bool):
            return None
        try:
            if isinstance(value, Decimal):
                amount = value
            elif isinstance(value, float):
                amount = Decimal(str(value))
            else:
                amount = Decimal(str(value).strip())
        except (InvalidOperation, TypeError, ValueError):
            return None
        return amount if amount.is_finite() else None

    @staticmethod
    def _safe_date(value: Any) -> Optional[date]:
        """Safely convert a value to a date."""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            text = value.strip().split("T", 1)[0]
            try:
                return date.fromisoformat(text)
            except ValueError:
                return None
        return None

    @staticmethod
    def _result(issues: list[ValidationIssue], **values: Any) -> ValidationResult:
        if issues:
            return ValidationResult(issues=issues)
        return ValidationResult(values=values)

    # -------------------------------------------------------------------------
    # Operation validators
    # -------------------------------------------------------------------------

    def validate_salary_entry(self, year, month, description, amount) -> ValidationResult:
        """Salary amounts may be negative (deductions) but must be numbers."""
        issues: list[ValidationIssue] = []
        return self._result(
            issues,
            year=self._int(issues, "year", year, minimum=1900, maximum=2200),
            month=self._int(issues, "month", month, minimum=1, maximum=12),
            description=self._text(issues, "description", description),
            amount=self._decimal(issues, "amount", amount),
        )

    def validate_card_transaction(
        self, description, kind, amount, category_id=None
    ) -> ValidationResult:
        issues: list[ValidationIssue] = []
        return self._result(
            issues,
            description=self._text(issues, "description", description),
            kind=self._enum(issues, "kind", kind, TransactionKind),
            amount=self._decimal(issues, "amount", amount, positive=True),
            category_id=self._text(issues, "category_id", category_id, required=False),
        )

    def validate_cash_change(
        self, currency, description, direction, amount
    ) -> ValidationResult:
        issues: list[ValidationIssue] = []
        return self._result(
            issues,
            currency=self._enum(issues, "currency", currency, Currency),
            description=self._text(issues, "description", description),
            direction=self._enum(issues, "direction", direction, CashDirection),
            amount=self._decimal(issues, "amount", amount, positive=True),
        )

    def validate_term_deposit(
        self, principal, duration_months, interest_kind, annual_rate_percent, start_date
    ) -> ValidationResult:
        issues: list[ValidationIssue] = []
        return self._result(
            issues,
            principal=self._decimal(issues, "principal", principal, positive=True),
            duration_months=self._int(issues, "duration_months", duration_months, minimum=1),
            interest_kind=self._enum(issues, "interest_kind", interest_kind, InterestKind),
            annual_rate_percent=self._decimal(
                issues, "annual_rate_percent", annual_rate_percent, positive=True
            ),
            start_date=self._date(issues, "start_date", start_date),
        )

    def validate_monthly_budget(self, category_id, amount, year, month) -> ValidationResult:
        issues: list[ValidationIssue] = []
        return self._result(
            issues,
            category_id=self._text(issues, "category_id", category_id),
            amount=self._decimal(issues, "amount", amount, positive=True),
            year=self._int(issues, "year", year, minimum=1900, maximum=2200),
            month=self._int(issues, "month", month, minimum=1, maximum=12),
        )

    def validate_savings_goal(
        self, name, target_amount, current_amount=0, deadline=None
    ) -> ValidationResult:
        issues: list[ValidationIssue] = []
        if current_amount is None or current_amount == "":
            current_amount = 0
        return self._result(
            issues,
            name=self._text(issues, "name", name),
            target_amount=self._decimal(issues, "target_amount", target_amount, positive=True),
            current_amount=self._decimal(
                issues, "current_amount", current_amount, non_negative=True
            ),
            deadline=self._date(issues, "deadline", deadline, required=False),
        )

    def validate_goal_amount(self, current_amount) -> ValidationResult:
        issues: list[ValidationIssue] = []
        return self._result(
            issues,
            current_amount=self._decimal(
                issues, "current_amount", current_amount, non_negative=True
            ),
        )

    def validate_recurring_transaction(
        self, description, amount, category_id, frequency, start_date, account_target
    ) -> ValidationResult:
        issues: list[ValidationIssue] = []
        return self._result(
            issues,
            description=self._text(issues, "description", description),
            amount=self._decimal(issues, "amount", amount, positive=True),
            category_id=self._text(issues, "category_id", category_id, required=False),
            frequency=self._enum(issues, "frequency", frequency, Frequency),
            start_date=self._date(issues, "start_date", start_date),
            account_target=self._enum(issues, "account_target", account_target, AccountTarget),
        )

    def validate_category(self, name, kind, color=None) -> ValidationResult:
        issues: list[ValidationIssue] = []
        return self._result(
            issues,
            name=self._text(issues, "name", name),
            kind=self._enum(issues, "kind", kind, TransactionKind),
            color=self._text(issues, "color", color, required=False) or "#6b7280",
        )

    def validate_exchange_rate(self, rate) -> ValidationResult:
        issues: list[ValidationIssue] = []
        return self._result(
            issues,
            exchange_rate=self._decimal(issues, "exchange_rate", rate, positive=True),
        )
