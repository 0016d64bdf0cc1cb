"""
Ledger Store

The in-memory ledger: nine record collections plus the exchange rate.

DESIGN DECISION: The store is an explicit object handed to every operation
and every calculation. There is no module-level state, so two stores (e.g.
the live one and an imported candidate) can exist side by side.

Identity is allocated by the store itself from a strictly increasing
counter, seeded above the largest id already present. Two records created
within the same instant still get different ids.
"""

from datetime import datetime
from decimal import Decimal
from itertools import chain
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from pydantic.alias_generators import to_camel

from my_finance.models.ledger import (
    CardTransaction,
    CashChange,
    Category,
    Currency,
    LastSalaryEntry,
    MonthlyBudget,
    Money,
    RecurringTransaction,
    SalaryEntry,
    SavingsGoal,
    TermDeposit,
    default_categories,
    utc_now,
)


DEFAULT_EXCHANGE_RATE = Decimal("117")
CUSTOM_CATEGORY_PREFIX = "custom-"


class LedgerStore(BaseModel):
    """
    All ledger data of one user.

    Field aliases are the keys of the persisted snapshot.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        validate_assignment=True,
    )

    salary_entries: list[SalaryEntry] = Field(default_factory=list)
    card_transactions: list[CardTransaction] = Field(default_factory=list)
    cash_history_eur: list[CashChange] = Field(default_factory=list, alias="cashHistoryEUR")
    cash_history_rsd: list[CashChange] = Field(default_factory=list, alias="cashHistoryRSD")
    term_deposits: list[TermDeposit] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=default_categories)
    monthly_budgets: list[MonthlyBudget] = Field(default_factory=list)
    savings_goals: list[SavingsGoal] = Field(default_factory=list)
    recurring_transactions: list[RecurringTransaction] = Field(default_factory=list)

    exchange_rate: Money = Field(default=DEFAULT_EXCHANGE_RATE, gt=0)
    last_rate_update: Optional[datetime] = None
    last_salary_entry: Optional[LastSalaryEntry] = None

    _last_id: int = PrivateAttr(default=0)
    _clock: Optional[Callable[[], datetime]] = PrivateAttr(default=None)

    def model_post_init(self, __context) -> None:
        self._last_id = max(self._numeric_ids(), default=0)

    @classmethod
    def empty(cls) -> "LedgerStore":
        """A store holding only the seed categories."""
        return cls()

    # -------------------------------------------------------------------------
    # Identity and time
    # -------------------------------------------------------------------------

    def _numeric_ids(self) -> Iterable[int]:
        records = chain(
            self.salary_entries,
            self.card_transactions,
            self.cash_history_eur,
            self.cash_history_rsd,
            self.term_deposits,
            self.monthly_budgets,
            self.savings_goals,
            self.recurring_transactions,
        )
        ids = [record.id for record in records]
        # Custom categories are named after an allocated id: "custom-<id>"
        for category in self.categories:
            suffix = category.id.removeprefix(CUSTOM_CATEGORY_PREFIX)
            if suffix != category.id and suffix.isdigit():
                ids.append(int(suffix))
        return ids

    def next_id(self) -> int:
        """Allocate a new record id. Never returns the same id twice."""
        self._last_id += 1
        return self._last_id

    def set_clock(self, clock: Callable[[], datetime]) -> None:
        """Replace the clock used for creation timestamps (tests, replays)."""
        self._clock = clock

    @property
    def clock(self) -> Callable[[], datetime]:
        return self._clock or utc_now

    def now(self) -> datetime:
        return self.clock()

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def cash_history(self, currency: Currency) -> list[CashChange]:
        """The cash collection kept in the given currency."""
        if Currency(currency) == Currency.EUR:
            return self.cash_history_eur
        return self.cash_history_rsd

    def find_category(self, category_id: Optional[str]) -> Optional[Category]:
        if category_id is None:
            return None
        return next((c for c in self.categories if c.id == category_id), None)

    def find_budget(
        self,
        category_id: str,
        year: int,
        month: int,
    ) -> Optional[MonthlyBudget]:
        key = (category_id, year, month)
        return next((b for b in self.monthly_budgets if b.period_key == key), None)

    def find_goal(self, goal_id: int) -> Optional[SavingsGoal]:
        return next((g for g in self.savings_goals if g.id == goal_id), None)

    def counts(self) -> dict[str, int]:
        """Number of records per collection, for logs and audit details."""
        return {
            "salary_entries": len(self.salary_entries),
            "card_transactions": len(self.card_transactions),
            "cash_history_eur": len(self.cash_history_eur),
            "cash_history_rsd": len(self.cash_history_rsd),
            "term_deposits": len(self.term_deposits),
            "categories": len(self.categories),
            "monthly_budgets": len(self.monthly_budgets),
            "savings_goals": len(self.savings_goals),
            "recurring_transactions": len(self.recurring_transactions),
        }

    def snapshot(self) -> "LedgerStore":
        """A deep, independent copy sharing no records with this store."""
        copy = self.model_copy(deep=True)
        copy._last_id = self._last_id
        copy._clock = self._clock
        return copy
