"""
Tests for the calculation engine.

Stores are built directly from records so each test states exactly
what the ledger holds.
"""

import time
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from my_finance.engine import (
    UNCATEGORIZED_NAME,
    budget_level,
    budget_status,
    card_balance,
    cash_balance,
    category_spending,
    convert,
    deposit_interest,
    deposit_maturity,
    deposit_maturity_date,
    filter_salary_entries,
    goal_progress,
    monthly_budget_summary,
    monthly_salary_totals,
    spending_by_category_name,
    total_deposits_value,
    total_salary,
    total_wealth,
    wealth_breakdown,
    yearly_summary,
)
from my_finance.ledger import LedgerStore
from my_finance.models import (
    NO_BUDGET,
    CardTransaction,
    CashChange,
    Currency,
    InterestKind,
    MonthlyBudget,
    SalaryEntry,
    SavingsGoal,
    TermDeposit,
)


MARCH = datetime(2024, 3, 10, 9, 30)
APRIL = datetime(2024, 4, 2, 18, 0)


def card(id, kind, amount, category_id=None, created_at=MARCH):
    return CardTransaction(
        id=id,
        description=f"tx {id}",
        kind=kind,
        amount=Decimal(amount),
        category_id=category_id,
        created_at=created_at,
    )


def cash(id, direction, amount):
    return CashChange(id=id, description=f"cash {id}", direction=direction, amount=Decimal(amount))


def salary(id, year, month, amount):
    return SalaryEntry(id=id, year=year, month=month, description="Salary", amount=Decimal(amount))


def deposit(principal, rate, months, kind, start=date(2024, 1, 10)):
    return TermDeposit(
        id=1,
        principal=Decimal(principal),
        annual_rate_percent=Decimal(rate),
        duration_months=months,
        interest_kind=kind,
        start_date=start,
    )


def budget(id, category_id, amount, year=2024, month=3):
    return MonthlyBudget(
        id=id, category_id=category_id, amount=Decimal(amount), year=year, month=month
    )


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def wealthy_store():
    return LedgerStore(
        card_transactions=[card(1, "income", "1000"), card(2, "expense", "200")],
        cash_history_eur=[cash(3, "add", "150"), cash(4, "subtract", "50")],
        cash_history_rsd=[cash(5, "add", "5000")],
        term_deposits=[deposit("100000", "5", 12, InterestKind.SIMPLE)],
        salary_entries=[salary(6, 2024, 3, "150000")],
    )


class TestBalances:
    """Tests for card and cash balances."""

    def test_empty_store_is_zero(self):
        store = LedgerStore.empty()

        assert card_balance(store) == 0
        assert cash_balance(store, Currency.EUR) == 0
        assert total_deposits_value(store) == 0
        assert total_wealth(store) == 0

    def test_card_balance_is_signed_sum(self, wealthy_store):
        assert card_balance(wealthy_store) == Decimal("800")

    def test_cash_balance_per_currency(self, wealthy_store):
        assert cash_balance(wealthy_store, Currency.EUR) == Decimal("100")
        assert cash_balance(wealthy_store, "RSD") == Decimal("5000")

    def test_convert(self):
        assert convert(Decimal("100"), Decimal("117.2")) == Decimal("11720.0")


class TestDepositMaturity:
    """Tests for term deposit valuation."""

    def test_simple_interest(self):
        """Test P * (1 + r * t) with t in fractional years, exactly."""
        value = deposit_maturity(Decimal("534284"), Decimal("4.10"), 3, InterestKind.SIMPLE)

        assert value == Decimal("539760.411")

    def test_compound_interest_is_annual_with_fractional_exponent(self):
        """Test P * (1 + r) ** (months / 12)."""
        value = deposit_maturity(Decimal("534284"), Decimal("4.10"), 3, InterestKind.COMPOUND)

        expected = 534284 * 1.041 ** (3 / 12)
        assert float(value) == pytest.approx(expected, abs=1e-6)

    def test_compound_is_not_monthly_compounding(self):
        """Test the result differs from compounding monthly at r / 12."""
        value = deposit_maturity(Decimal("534284"), Decimal("4.10"), 3, "compound")

        monthly = 534284 * (1 + 0.041 / 12) ** 3
        assert abs(float(value) - monthly) > 1

    def test_whole_years_agree(self):
        """Test simple and compound agree over exactly one year."""
        simple = deposit_maturity(Decimal("100000"), Decimal("5"), 12, "simple")
        compound = deposit_maturity(Decimal("100000"), Decimal("5"), 12, "compound")

        assert simple == compound == Decimal("105000")

    def test_interest_and_maturity_date(self):
        d = deposit("100000", "6", 6, InterestKind.SIMPLE, start=date(2024, 1, 10))

        assert deposit_interest(d) == Decimal("3000")
        assert deposit_maturity_date(d) == date(2024, 7, 10)

    def test_maturity_date_clamps_to_month_end(self):
        """Test Jan 31 plus one month is the last day of February."""
        d = deposit("1000", "1", 1, InterestKind.SIMPLE, start=date(2024, 1, 31))

        assert deposit_maturity_date(d) == date(2024, 2, 29)

    def test_maturity_date_crosses_year(self):
        d = deposit("1000", "1", 14, InterestKind.SIMPLE, start=date(2024, 11, 5))

        assert deposit_maturity_date(d) == date(2026, 1, 5)


class TestWealth:
    """Tests for total wealth."""

    def test_total_wealth(self, wealthy_store):
        """Test card + EUR cash at the rate + RSD cash + deposits at maturity."""
        # 800 + 100 * 117 + 5000 + 105000
        assert total_wealth(wealthy_store) == Decimal("122500")

    def test_rate_override(self, wealthy_store):
        # 800 + 100 * 120 + 5000 + 105000
        assert total_wealth(wealthy_store, Decimal("120")) == Decimal("122800")

    def test_salary_is_excluded(self, wealthy_store):
        """Test adding salary entries leaves wealth unchanged."""
        before = total_wealth(wealthy_store)
        wealthy_store.salary_entries.append(salary(99, 2024, 4, "1000000"))

        assert total_wealth(wealthy_store) == before

    def test_breakdown_adds_up(self, wealthy_store):
        breakdown = wealth_breakdown(wealthy_store)

        assert breakdown.exchange_rate == Decimal("117")
        assert breakdown.cash_eur_in_rsd == Decimal("11700")
        assert breakdown.total == (
            breakdown.card + breakdown.cash_eur_in_rsd + breakdown.cash_rsd + breakdown.deposits
        )


class TestSalaryStatistics:
    """Tests for salary summaries."""

    @pytest.fixture
    def salary_store(self):
        return LedgerStore(salary_entries=[
            salary(1, 2023, 12, "100000"),
            salary(2, 2024, 1, "120000"),
            salary(3, 2024, 2, "130000"),
            salary(4, 2024, 2, "5000"),
        ])

    def test_total_salary(self, salary_store):
        assert total_salary(salary_store) == Decimal("355000")

    def test_yearly_summary(self, salary_store):
        summary = yearly_summary(salary_store)

        assert list(summary) == [2023, 2024]
        assert summary[2024].total == Decimal("255000")
        assert summary[2024].count == 3
        assert summary[2024].average == Decimal("85000")

    def test_yearly_summary_empty(self):
        assert yearly_summary(LedgerStore.empty()) == {}

    def test_monthly_totals_are_chronological(self, salary_store):
        totals = monthly_salary_totals(salary_store)

        assert list(totals) == ["2023-12", "2024-01", "2024-02"]
        assert totals["2024-02"] == Decimal("135000")

    def test_filter_newest_first(self, salary_store):
        entries = filter_salary_entries(salary_store, year=2024)

        assert [e.id for e in entries] == [4, 3, 2]
        assert [e.id for e in filter_salary_entries(salary_store, month=12)] == [1]


class TestBudgets:
    """Tests for category spending and budgets."""

    @pytest.fixture
    def spending_store(self):
        return LedgerStore(
            card_transactions=[
                card(1, "expense", "3000", "food"),
                card(2, "expense", "2000", "food"),
                card(3, "expense", "700", None),
                card(4, "income", "100000", "salary"),
                card(5, "expense", "9999", "food", created_at=APRIL),
                card(6, "expense", "400", "custom-deleted"),
            ],
            monthly_budgets=[
                budget(10, "food", "4000"),
                budget(11, "transport", "1000"),
                budget(12, "food", "50000", month=4),
            ],
        )

    def test_category_spending(self, spending_store):
        """Test only this month's expenses count, missing category goes to other-expense."""
        spending = category_spending(spending_store, 2024, 3)

        assert spending == {
            "food": Decimal("5000"),
            "other-expense": Decimal("700"),
            "custom-deleted": Decimal("400"),
        }

    def test_budget_status_over(self, spending_store):
        status = budget_status(spending_store, "food", 2024, 3)

        assert status.has_budget
        assert status.limit == Decimal("4000")
        assert status.spent == Decimal("5000")
        assert status.remaining == Decimal("-1000")
        assert status.percentage == Decimal("125")
        assert status.is_over

    def test_budget_status_untouched(self, spending_store):
        status = budget_status(spending_store, "transport", 2024, 3)

        assert status.spent == 0
        assert status.percentage == 0
        assert not status.is_over

    def test_no_budget(self, spending_store):
        assert budget_status(spending_store, "health", 2024, 3) == NO_BUDGET
        assert not NO_BUDGET.has_budget

    def test_monthly_summary(self, spending_store):
        summary = monthly_budget_summary(spending_store, 2024, 3)

        assert summary.total_budget == Decimal("5000")
        assert summary.total_spent == Decimal("5000")
        assert summary.total_remaining == Decimal("0")
        assert summary.percentage == Decimal("100")

    def test_summary_without_budgets_is_zero_percent(self):
        summary = monthly_budget_summary(LedgerStore.empty(), 2024, 3)

        assert summary.total_budget == 0
        assert summary.percentage == 0

    def test_spending_by_category_name(self, spending_store):
        """Test spending is labelled by name and deleted categories are merged."""
        spending = spending_by_category_name(spending_store, 2024, 3)

        assert spending["🍔 Food"] == Decimal("5000")
        assert spending["📦 Other"] == Decimal("700")
        assert spending[UNCATEGORIZED_NAME] == Decimal("400")

    @pytest.mark.parametrize("percentage,level", [
        (Decimal("0"), "ok"),
        (Decimal("80"), "ok"),
        (Decimal("80.1"), "warning"),
        (Decimal("100"), "warning"),
        (Decimal("100.5"), "over"),
    ])
    def test_budget_level(self, percentage, level):
        assert budget_level(percentage) == level


class TestLocalMonth:
    """Tests for month bucketing of timezone-aware UTC timestamps."""

    @pytest.fixture
    def central_europe(self, monkeypatch):
        """Local time pinned to CET/CEST."""
        monkeypatch.setenv("TZ", "CET-1CEST,M3.5.0,M10.5.0/3")
        time.tzset()
        yield
        monkeypatch.undo()
        time.tzset()

    @pytest.fixture
    def boundary_store(self):
        return LedgerStore(
            card_transactions=[
                # 2024-03-01 00:30 local
                card(1, "expense", "100", "food", created_at=utc(2024, 2, 29, 23, 30)),
                # 2024-03-31 23:30 local (summer time)
                card(2, "expense", "200", "food", created_at=utc(2024, 3, 31, 21, 30)),
                # 2024-04-01 00:30 local
                card(3, "expense", "400", "food", created_at=utc(2024, 3, 31, 22, 30)),
            ],
            monthly_budgets=[budget(10, "food", "1000")],
        )

    def test_spending_uses_local_month(self, central_europe, boundary_store):
        assert category_spending(boundary_store, 2024, 2) == {}
        assert category_spending(boundary_store, 2024, 3) == {"food": Decimal("300")}
        assert category_spending(boundary_store, 2024, 4) == {"food": Decimal("400")}

    def test_budget_status_uses_local_month(self, central_europe, boundary_store):
        status = budget_status(boundary_store, "food", 2024, 3)

        assert status.spent == Decimal("300")
        assert status.percentage == Decimal("30")


class TestGoalProgress:
    """Tests for savings goal progress."""

    def test_progress(self):
        goal = SavingsGoal(
            id=1, name="Car", target_amount=Decimal("1000"),
            current_amount=Decimal("250"), deadline=date(2024, 6, 1),
        )

        progress = goal_progress(goal, today=date(2024, 3, 1))

        assert progress.percentage == Decimal("25")
        assert progress.remaining == Decimal("750")
        assert not progress.is_complete
        assert not progress.is_past_deadline

    def test_complete_and_past_deadline(self):
        goal = SavingsGoal(
            id=1, name="Car", target_amount=Decimal("1000"),
            current_amount=Decimal("1200"), deadline=date(2024, 1, 1),
        )

        progress = goal_progress(goal, today=date(2024, 3, 1))

        assert progress.is_complete
        assert progress.is_past_deadline
        assert progress.remaining == Decimal("-200")

    def test_no_deadline_is_never_past(self):
        goal = SavingsGoal(id=1, name="Car", target_amount=Decimal("1000"))

        assert not goal_progress(goal, today=date(2100, 1, 1)).is_past_deadline
