"""
Ledger Record Models for My Finance

These models define the strict schemas for every record kept in the ledger.
They are designed to:
1. Enforce the shape invariants of each record kind at runtime
2. Read and write the persisted JSON keys of the browser version of the app
3. Keep money exact (Decimal) while still writing plain JSON numbers

DESIGN DECISION: Python attribute names are snake_case, persisted keys are
camelCase. Where the persisted key differs from the attribute name (e.g. a
deposit's principal is stored as "amount"), the alias is declared explicitly.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


def fits_json_number(value: Decimal) -> bool:
    """True if `value` reads back unchanged after being written as a JSON number."""
    return Decimal(repr(float(value))) == value


def _storable(value: Decimal) -> Decimal:
    if not fits_json_number(value):
        raise ValueError("amount has more digits than can be stored")
    return value


# Money is kept as Decimal in memory and written as a JSON number
Money = Annotated[
    Decimal,
    AfterValidator(_storable),
    PlainSerializer(float, return_type=float, when_used="json"),
]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Currency(str, Enum):
    """Currencies the ledger keeps cash in."""
    EUR = "EUR"
    RSD = "RSD"


class TransactionKind(str, Enum):
    """Direction of a card transaction, also the kind of a category."""
    INCOME = "income"
    EXPENSE = "expense"


class CashDirection(str, Enum):
    """Direction of a change to cash on hand."""
    ADD = "add"
    SUBTRACT = "subtract"


class InterestKind(str, Enum):
    """
    How deposit interest accrues.

    COMPOUND means annual compounding over a fractional number of years,
    not monthly compounding.
    """
    SIMPLE = "simple"
    COMPOUND = "compound"


class Frequency(str, Enum):
    """Schedule of a recurring transaction."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class AccountTarget(str, Enum):
    """Where a recurring transaction would be booked."""
    CARD = "card"
    CASH_EUR = "cashEUR"
    CASH_RSD = "cashRSD"


# =============================================================================
# BASE RECORD
# =============================================================================

def _created_at_field() -> Any:
    # Older snapshots stored the creation time of log-like records as "date"
    return Field(
        default_factory=utc_now,
        validation_alias=AliasChoices("createdAt", "created_at", "date"),
        serialization_alias="createdAt",
        description="When the record was created",
    )


def _coerce_date(value: Any) -> Any:
    """Accept bare ISO dates as well as full ISO timestamps."""
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


class LedgerRecord(BaseModel):
    """Common configuration for all persisted records."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        alias_generator=to_camel,
        validate_assignment=True,
    )


# =============================================================================
# RECORD KINDS
# =============================================================================

class SalaryEntry(LedgerRecord):
    """
    A salary/income log entry.

    Used for statistics only. It NEVER contributes to wealth.
    The amount may be negative (e.g. a deduction).
    """

    id: int
    year: int = Field(..., ge=1900, le=2200)
    month: int = Field(..., ge=1, le=12)
    description: str = Field(..., max_length=200)
    amount: Money
    created_at: datetime = _created_at_field()


class CardTransaction(LedgerRecord):
    """A card account movement. Income adds to the balance, expense subtracts."""

    id: int
    description: str = Field(..., max_length=200)
    kind: TransactionKind = Field(
        ...,
        validation_alias=AliasChoices("type", "kind"),
        serialization_alias="type",
    )
    amount: Money = Field(..., ge=0)
    category_id: Optional[str] = None
    created_at: datetime = _created_at_field()

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.kind == TransactionKind.INCOME else -self.amount


class CashChange(LedgerRecord):
    """A change to cash on hand in one currency."""

    id: int
    description: str = Field(..., max_length=200)
    direction: CashDirection = Field(
        ...,
        validation_alias=AliasChoices("type", "direction"),
        serialization_alias="type",
    )
    amount: Money = Field(..., ge=0)
    created_at: datetime = _created_at_field()

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.direction == CashDirection.ADD else -self.amount


class TermDeposit(LedgerRecord):
    """
    A fixed-term bank deposit.

    Immutable once created (deletion only). Its maturity value is a pure
    function of these fields.
    """

    id: int
    principal: Money = Field(..., gt=0, alias="amount")
    duration_months: int = Field(..., gt=0, alias="duration")
    interest_kind: InterestKind = Field(..., alias="interestType")
    annual_rate_percent: Money = Field(..., gt=0, alias="interestRate")
    start_date: date
    created_at: datetime = _created_at_field()

    @field_validator("start_date", mode="before")
    @classmethod
    def parse_start_date(cls, v: Any) -> Any:
        return _coerce_date(v)


class Category(LedgerRecord):
    """A spending or income category referenced by id from other records."""

    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    kind: TransactionKind = Field(
        ...,
        validation_alias=AliasChoices("type", "kind"),
        serialization_alias="type",
    )
    color: str = Field(default="#6b7280", max_length=20)


class MonthlyBudget(LedgerRecord):
    """
    Spending limit for one category in one month.

    At most one budget exists per (category_id, year, month).
    """

    id: int
    category_id: str = Field(..., min_length=1)
    amount: Money = Field(..., gt=0)
    year: int = Field(..., ge=1900, le=2200)
    month: int = Field(..., ge=1, le=12)
    created_at: datetime = _created_at_field()

    @property
    def period_key(self) -> tuple[str, int, int]:
        return (self.category_id, self.year, self.month)


class SavingsGoal(LedgerRecord):
    """A savings target whose current amount is updated in place."""

    id: int
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: Money = Field(..., gt=0)
    current_amount: Money = Field(default=Decimal("0"), ge=0)
    deadline: Optional[date] = None
    created_at: datetime = _created_at_field()

    @field_validator("deadline", mode="before")
    @classmethod
    def empty_deadline_is_none(cls, v: Any) -> Any:
        """The browser form stores an empty string when no deadline is set."""
        if v == "" or v is None:
            return None
        return _coerce_date(v)


class RecurringTransaction(LedgerRecord):
    """
    A transaction that repeats on a schedule.

    Stored and listed only. Nothing books it into the ledger automatically.
    """

    id: int
    description: str = Field(..., max_length=200)
    amount: Money
    category_id: Optional[str] = None
    frequency: Frequency
    start_date: date
    account_target: AccountTarget = Field(..., alias="accountType")
    active: bool = True
    created_at: datetime = _created_at_field()

    @field_validator("start_date", mode="before")
    @classmethod
    def parse_start_date(cls, v: Any) -> Any:
        return _coerce_date(v)


class LastSalaryEntry(LedgerRecord):
    """The most recent salary description/amount, used to prefill the form."""

    description: str
    amount: Money


# =============================================================================
# SEED DATA
# =============================================================================

# Spending without a category is booked here
DEFAULT_EXPENSE_CATEGORY_ID = "other-expense"

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="food", name="🍔 Food", kind=TransactionKind.EXPENSE, color="#ef4444"),
    Category(id="transport", name="🚗 Transport", kind=TransactionKind.EXPENSE, color="#f97316"),
    Category(id="utilities", name="💡 Utilities", kind=TransactionKind.EXPENSE, color="#eab308"),
    Category(id="entertainment", name="🎬 Entertainment", kind=TransactionKind.EXPENSE, color="#8b5cf6"),
    Category(id="shopping", name="🛍️ Shopping", kind=TransactionKind.EXPENSE, color="#ec4899"),
    Category(id="health", name="⚕️ Health", kind=TransactionKind.EXPENSE, color="#10b981"),
    Category(id="education", name="📚 Education", kind=TransactionKind.EXPENSE, color="#3b82f6"),
    Category(id=DEFAULT_EXPENSE_CATEGORY_ID, name="📦 Other", kind=TransactionKind.EXPENSE, color="#6b7280"),
    Category(id="salary", name="💼 Salary", kind=TransactionKind.INCOME, color="#10b981"),
    Category(id="bonus", name="🎁 Bonus", kind=TransactionKind.INCOME, color="#14b8a6"),
    Category(id="freelance", name="💻 Freelance", kind=TransactionKind.INCOME, color="#06b6d4"),
    Category(id="other-income", name="💰 Other Income", kind=TransactionKind.INCOME, color="#84cc16"),
)


def default_categories() -> list[Category]:
    """Fresh copies of the seed categories."""
    return [category.model_copy() for category in DEFAULT_CATEGORIES]
