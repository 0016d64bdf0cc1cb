"""
Result Models for My Finance

Two families of models live here:
1. Validation results - what the validator found wrong with user input
2. Report results - what the calculation engine derives from the ledger

All of them are read-only views. Nothing here is persisted.
"""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'not_positive')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating raw input for one ledger operation.

    `values` holds the parsed, typed values and is only meaningful
    when `is_valid` is True.
    """

    issues: list[ValidationIssue] = Field(default_factory=list)
    values: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        """Valid unless there is an error-level issue."""
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")


class OperationResult(BaseModel):
    """
    Outcome of a ledger operation.

    A declined operation carries the issues and leaves the ledger untouched.
    """

    accepted: bool
    record: Optional[Any] = None
    issues: list[ValidationIssue] = Field(default_factory=list)

    @classmethod
    def declined(cls, issues: list[ValidationIssue]) -> "OperationResult":
        return cls(accepted=False, issues=issues)

    @property
    def messages(self) -> list[str]:
        return [issue.message for issue in self.issues]


# =============================================================================
# REPORT MODELS
# =============================================================================

class _Report(BaseModel):
    model_config = ConfigDict(frozen=True)


class YearlySummary(_Report):
    """Salary statistics for one year."""

    total: Decimal = Decimal("0")
    count: int = 0

    @property
    def average(self) -> Decimal:
        if self.count == 0:
            return Decimal("0")
        return self.total / self.count


class BudgetStatus(_Report):
    """
    How one category is doing against its monthly budget.

    When no budget exists only `has_budget` (False) is meaningful.
    """

    has_budget: bool
    limit: Decimal = Decimal("0")
    spent: Decimal = Decimal("0")
    remaining: Decimal = Decimal("0")
    percentage: Decimal = Decimal("0")
    is_over: bool = False


# Returned by budget_status when the category has no budget for the month
NO_BUDGET = BudgetStatus(has_budget=False)


class BudgetSummary(_Report):
    """All budgets of one month added together."""

    total_budget: Decimal = Decimal("0")
    total_spent: Decimal = Decimal("0")
    total_remaining: Decimal = Decimal("0")
    percentage: Decimal = Decimal("0")


class WealthBreakdown(_Report):
    """
    Dashboard figures, all in RSD except `cash_eur`.

    Salary entries are never part of any of these.
    """

    exchange_rate: Decimal
    card: Decimal
    cash_eur: Decimal
    cash_eur_in_rsd: Decimal
    cash_rsd: Decimal
    deposits: Decimal
    total: Decimal


class GoalProgress(_Report):
    """How far a savings goal has come."""

    percentage: Decimal
    remaining: Decimal
    is_complete: bool
    is_past_deadline: bool
