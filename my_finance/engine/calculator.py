"""
Calculation Engine

DESIGN DECISION: Every calculation is a PURE function of a LedgerStore.
No function here mutates the store, reads the clock, or touches storage
or the network. The exchange rate is whatever scalar the caller hands in
(by default the one saved in the store).

GUARANTEES:
- Aggregates over empty collections are 0, never an error
- Percentages with a zero denominator are 0, never NaN or an exception
- Salary entries are statistics only and NEVER part of wealth
- Money stays Decimal end to end; nothing is rounded here (rounding is a
  display concern)
"""

import calendar
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from my_finance.ledger.store import LedgerStore
from my_finance.models.ledger import (
    DEFAULT_EXPENSE_CATEGORY_ID,
    Currency,
    InterestKind,
    SalaryEntry,
    SavingsGoal,
    TermDeposit,
    TransactionKind,
)
from my_finance.models.reports import (
    NO_BUDGET,
    BudgetStatus,
    BudgetSummary,
    GoalProgress,
    WealthBreakdown,
    YearlySummary,
)


Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
MONTHS_PER_YEAR = Decimal("12")

# Display bucket for spending whose category no longer exists
UNCATEGORIZED_NAME = "Uncategorized"

# Budget usage above these percentages is shown as a warning / overrun
BUDGET_WARNING_PERCENT = Decimal("80")
BUDGET_OVER_PERCENT = Decimal("100")


def _dec(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def _percentage(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole * 100, or 0 when whole is not positive."""
    if whole <= 0:
        return ZERO
    return part / whole * HUNDRED


def _local(timestamp: datetime) -> datetime:
    """Calendar month/year are taken in local time, like the user sees them."""
    return timestamp.astimezone() if timestamp.tzinfo else timestamp


# =============================================================================
# BALANCES
# =============================================================================

def card_balance(store: LedgerStore) -> Decimal:
    """Sum of card transactions: income positive, expense negative."""
    return sum((t.signed_amount for t in store.card_transactions), ZERO)


def cash_balance(store: LedgerStore, currency: Currency) -> Decimal:
    """Running sum of cash changes in one currency: add positive, subtract negative."""
    return sum((c.signed_amount for c in store.cash_history(currency)), ZERO)


def convert(amount_eur: Number, rate: Number) -> Decimal:
    """EUR to RSD at the given rate."""
    return _dec(amount_eur) * _dec(rate)


# =============================================================================
# TERM DEPOSITS
# =============================================================================

def deposit_maturity(
    principal: Number,
    annual_rate_percent: Number,
    duration_months: int,
    kind: InterestKind,
) -> Decimal:
    """
    Value of a deposit at the end of its term.

    r = annual_rate_percent / 100, t = duration_months / 12 (fractional years)
        simple:   P * (1 + r * t)
        compound: P * (1 + r) ** t

    Compound interest is ANNUAL compounding raised to a fractional number
    of years, not monthly compounding P * (1 + r/12) ** months. The two
    give different results for any term that is not a whole number of years.
    """
    p = _dec(principal)
    r = _dec(annual_rate_percent) / HUNDRED
    t = Decimal(int(duration_months)) / MONTHS_PER_YEAR

    if InterestKind(kind) == InterestKind.SIMPLE:
        return p * (ONE + r * t)
    return p * (ONE + r) ** t


def maturity_of(deposit: TermDeposit) -> Decimal:
    return deposit_maturity(
        deposit.principal,
        deposit.annual_rate_percent,
        deposit.duration_months,
        deposit.interest_kind,
    )


def deposit_interest(deposit: TermDeposit) -> Decimal:
    """Interest earned by the end of the term."""
    return maturity_of(deposit) - deposit.principal


def deposit_maturity_date(deposit: TermDeposit) -> date:
    """
    Start date plus the duration in months.

    The day is clamped to the end of a shorter month (Jan 31 + 1 month
    is the last day of February).
    """
    start = deposit.start_date
    month_index = start.month - 1 + deposit.duration_months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def total_deposits_value(store: LedgerStore) -> Decimal:
    """Sum of the maturity values of all deposits."""
    return sum((maturity_of(d) for d in store.term_deposits), ZERO)


# =============================================================================
# WEALTH
# =============================================================================

def total_wealth(store: LedgerStore, rate: Optional[Number] = None) -> Decimal:
    """
    Net wealth in RSD.

    card + cash EUR converted at `rate` + cash RSD + deposits at maturity.
    Salary entries are excluded.
    """
    return wealth_breakdown(store, rate).total


def wealth_breakdown(store: LedgerStore, rate: Optional[Number] = None) -> WealthBreakdown:
    """The individual parts of total wealth, as shown on the dashboard."""
    rate = _dec(rate) if rate is not None else store.exchange_rate
    card = card_balance(store)
    cash_eur = cash_balance(store, Currency.EUR)
    cash_eur_in_rsd = convert(cash_eur, rate)
    cash_rsd = cash_balance(store, Currency.RSD)
    deposits = total_deposits_value(store)
    return WealthBreakdown(
        exchange_rate=rate,
        card=card,
        cash_eur=cash_eur,
        cash_eur_in_rsd=cash_eur_in_rsd,
        cash_rsd=cash_rsd,
        deposits=deposits,
        total=card + cash_eur_in_rsd + cash_rsd + deposits,
    )


# =============================================================================
# SALARY STATISTICS
# =============================================================================

def total_salary(store: LedgerStore) -> Decimal:
    """Sum of all salary entries. Statistics only."""
    return sum((e.amount for e in store.salary_entries), ZERO)


def yearly_summary(store: LedgerStore) -> dict[int, YearlySummary]:
    """
    Salary totals and entry counts per year, in year order.

    A year only appears if it has at least one entry, so every
    summary's average is well defined.
    """
    totals: dict[int, Decimal] = defaultdict(lambda: ZERO)
    counts: dict[int, int] = defaultdict(int)
    for entry in store.salary_entries:
        totals[entry.year] += entry.amount
        counts[entry.year] += 1
    return {
        year: YearlySummary(total=totals[year], count=counts[year])
        for year in sorted(totals)
    }


def monthly_salary_totals(store: LedgerStore) -> dict[str, Decimal]:
    """Salary per "YYYY-MM", in chronological order."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for entry in store.salary_entries:
        totals[f"{entry.year}-{entry.month:02d}"] += entry.amount
    return dict(sorted(totals.items()))


def filter_salary_entries(
    store: LedgerStore,
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> list[SalaryEntry]:
    """Salary entries matching the filters, newest first."""
    entries = [
        e for e in store.salary_entries
        if (year is None or e.year == year) and (month is None or e.month == month)
    ]
    return sorted(entries, key=lambda e: e.id, reverse=True)


# =============================================================================
# CATEGORIES AND BUDGETS
# =============================================================================

def category_spending(store: LedgerStore, year: int, month: int) -> dict[str, Decimal]:
    """
    Card expenses of one month grouped by category id.

    A transaction's month is the month it was recorded in. Transactions
    without a category are booked under the default expense category.
    Ids of deleted categories are kept as they are.
    """
    spending: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for t in store.card_transactions:
        if t.kind != TransactionKind.EXPENSE:
            continue
        created = _local(t.created_at)
        if created.year != year or created.month != month:
            continue
        spending[t.category_id or DEFAULT_EXPENSE_CATEGORY_ID] += t.amount
    return dict(spending)


def spending_by_category_name(store: LedgerStore, year: int, month: int) -> dict[str, Decimal]:
    """
    Like category_spending, but keyed by category name for display.

    Spending under ids that no longer name a category is merged into
    the UNCATEGORIZED_NAME bucket.
    """
    names = {c.id: c.name for c in store.categories}
    result: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for category_id, amount in category_spending(store, year, month).items():
        result[names.get(category_id, UNCATEGORIZED_NAME)] += amount
    return dict(result)


def budget_status(
    store: LedgerStore,
    category_id: str,
    year: int,
    month: int,
) -> BudgetStatus:
    """How a category is doing against its budget; NO_BUDGET if it has none."""
    budget = store.find_budget(category_id, year, month)
    if budget is None:
        return NO_BUDGET

    spent = category_spending(store, year, month).get(category_id, ZERO)
    return BudgetStatus(
        has_budget=True,
        limit=budget.amount,
        spent=spent,
        remaining=budget.amount - spent,
        percentage=_percentage(spent, budget.amount),
        is_over=spent > budget.amount,
    )


def monthly_budget_summary(store: LedgerStore, year: int, month: int) -> BudgetSummary:
    """All budgets of a month added up against what was spent in their categories."""
    spending = category_spending(store, year, month)
    total_budget = ZERO
    total_spent = ZERO
    for budget in store.monthly_budgets:
        if budget.year == year and budget.month == month:
            total_budget += budget.amount
            total_spent += spending.get(budget.category_id, ZERO)

    return BudgetSummary(
        total_budget=total_budget,
        total_spent=total_spent,
        total_remaining=total_budget - total_spent,
        percentage=_percentage(total_spent, total_budget),
    )


def budget_level(percentage: Decimal) -> str:
    """'ok', 'warning' (over 80%) or 'over' (over 100%)."""
    if percentage > BUDGET_OVER_PERCENT:
        return "over"
    if percentage > BUDGET_WARNING_PERCENT:
        return "warning"
    return "ok"


# =============================================================================
# SAVINGS GOALS
# =============================================================================

def goal_progress(goal: SavingsGoal, today: date) -> GoalProgress:
    percentage = _percentage(goal.current_amount, goal.target_amount)
    return GoalProgress(
        percentage=percentage,
        remaining=goal.target_amount - goal.current_amount,
        is_complete=percentage >= HUNDRED,
        is_past_deadline=goal.deadline is not None and goal.deadline < today,
    )
