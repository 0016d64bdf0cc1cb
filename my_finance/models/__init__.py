"""
Data Models Package

This package contains all Pydantic models used in My Finance.
All data flowing through the system must conform to these schemas.
"""

from my_finance.models.ledger import (
    DEFAULT_CATEGORIES,
    DEFAULT_EXPENSE_CATEGORY_ID,
    AccountTarget,
    CardTransaction,
    CashChange,
    CashDirection,
    Category,
    Currency,
    Frequency,
    InterestKind,
    LastSalaryEntry,
    MonthlyBudget,
    RecurringTransaction,
    SalaryEntry,
    SavingsGoal,
    TermDeposit,
    TransactionKind,
    default_categories,
)
from my_finance.models.reports import (
    NO_BUDGET,
    BudgetStatus,
    BudgetSummary,
    GoalProgress,
    OperationResult,
    ValidationIssue,
    ValidationResult,
    WealthBreakdown,
    YearlySummary,
)
from my_finance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_CATEGORIES",
    "DEFAULT_EXPENSE_CATEGORY_ID",
    "AccountTarget",
    "CardTransaction",
    "CashChange",
    "CashDirection",
    "Category",
    "Currency",
    "Frequency",
    "InterestKind",
    "LastSalaryEntry",
    "MonthlyBudget",
    "RecurringTransaction",
    "SalaryEntry",
    "SavingsGoal",
    "TermDeposit",
    "TransactionKind",
    "default_categories",
    # Report models
    "NO_BUDGET",
    "BudgetStatus",
    "BudgetSummary",
    "GoalProgress",
    "OperationResult",
    "ValidationIssue",
    "ValidationResult",
    "WealthBreakdown",
    "YearlySummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
