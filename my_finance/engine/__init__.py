"""Calculation engine package."""

from my_finance.engine.calculator import (
    UNCATEGORIZED_NAME,
    budget_level,
    budget_status,
    card_balance,
    cash_balance,
    spending_by_category_name,
    category_spending,
    convert,
    deposit_interest,
    deposit_maturity,
    deposit_maturity_date,
    filter_salary_entries,
    goal_progress,
    maturity_of,
    monthly_budget_summary,
    monthly_salary_totals,
    total_deposits_value,
    total_salary,
    total_wealth,
    wealth_breakdown,
    yearly_summary,
)

__all__ = [
    "UNCATEGORIZED_NAME",
    "budget_level",
    "budget_status",
    "card_balance",
    "cash_balance",
    "spending_by_category_name",
    "category_spending",
    "convert",
    "deposit_interest",
    "deposit_maturity",
    "deposit_maturity_date",
    "filter_salary_entries",
    "goal_progress",
    "maturity_of",
    "monthly_budget_summary",
    "monthly_salary_totals",
    "total_deposits_value",
    "total_salary",
    "total_wealth",
    "wealth_breakdown",
    "yearly_summary",
]
