"""
Streamlit Frontend for My Finance

The screen the user opens to see what they own and to record what
changed: salary, card transactions, cash in two currencies, term
deposits, budgets, savings goals and recurring payments.

DESIGN PRINCIPLES:
1. Thin: every number on screen comes from the calculation engine
2. Every change goes through LedgerOperations (validated, saved, audited)
3. Rejected input is shown back to the user, field by field
4. Money is rounded only here, for display
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st

from my_finance.audit import configure_logging
from my_finance.config import get_settings, validate_all_settings
from my_finance.engine import (
    budget_level,
    budget_status,
    card_balance,
    cash_balance,
    deposit_interest,
    deposit_maturity_date,
    filter_salary_entries,
    goal_progress,
    maturity_of,
    monthly_budget_summary,
    monthly_salary_totals,
    spending_by_category_name,
    total_salary,
    yearly_summary,
)
from my_finance.models import (
    AccountTarget,
    CashDirection,
    Currency,
    Frequency,
    InterestKind,
    OperationResult,
    TransactionKind,
)
from my_finance.orchestrator import FinanceApp, create_app_components


# Page configuration
st.set_page_config(
    page_title="My Finance",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


LEVEL_ICONS = {"ok": "🟢", "warning": "🟠", "over": "🔴"}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_app() -> FinanceApp:
    """Get or create the application (cached)."""
    configure_logging(get_settings().app.debug_mode)
    return create_app_components()


def fmt(amount: Decimal, currency: str = "RSD") -> str:
    return f"{amount:,.2f} {currency}"


def show_result(result: OperationResult, success: str) -> None:
    if result.accepted:
        st.success(success)
    else:
        for message in result.messages:
            st.error(message)


def category_label(app: FinanceApp, category_id) -> str:
    category = app.store.find_category(category_id)
    return category.name if category else "Uncategorized"


def main():
    """Main application entry point."""
    app = get_app()

    st.sidebar.title("💰 My Finance")
    st.sidebar.markdown("---")

    pages = {
        "📊 Dashboard": render_dashboard_page,
        "💼 Salary": render_salary_page,
        "💳 Card": render_card_page,
        "💶 Cash": render_cash_page,
        "🏦 Deposits": render_deposits_page,
        "📅 Budgets": render_budgets_page,
        "🎯 Goals": render_goals_page,
        "🔁 Recurring": render_recurring_page,
        "⚙️ Settings": render_settings_page,
    }
    page = st.sidebar.radio("Navigate to:", list(pages), index=0)

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        f"**EUR → RSD:** {app.store.exchange_rate:,.4f}"
    )
    if app.store.last_rate_update:
        st.sidebar.caption(f"Updated {app.store.last_rate_update:%Y-%m-%d %H:%M}")

    pages[page](app)


def render_dashboard_page(app: FinanceApp):
    """Net wealth and what it is made of."""
    st.title("📊 Dashboard")
    wealth = app.dashboard()

    st.markdown(
        f'<div class="big-number">{fmt(wealth.total)}</div>',
        unsafe_allow_html=True,
    )
    st.caption("Total wealth: card + cash + deposits at maturity. Salary is not included.")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("💳 Card", fmt(wealth.card))
    col2.metric("💶 Cash EUR", fmt(wealth.cash_eur, "EUR"), fmt(wealth.cash_eur_in_rsd))
    col3.metric("💵 Cash RSD", fmt(wealth.cash_rsd))
    col4.metric("🏦 Deposits", fmt(wealth.deposits))

    today = date.today()
    summary = monthly_budget_summary(app.store, today.year, today.month)
    if summary.total_budget > 0:
        st.markdown("### This month's budgets")
        st.progress(min(float(summary.percentage) / 100, 1.0))
        st.markdown(
            f"{LEVEL_ICONS[budget_level(summary.percentage)]} "
            f"{fmt(summary.total_spent)} of {fmt(summary.total_budget)} spent"
        )


def render_salary_page(app: FinanceApp):
    """Salary log and yearly statistics."""
    st.title("💼 Salary")
    st.caption("Salary entries are statistics only; they do not change your balances.")

    last = app.store.last_salary_entry
    today = date.today()
    with st.form("salary_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        year = col1.number_input("Year", min_value=1900, max_value=2200, value=today.year)
        month = col2.number_input("Month", min_value=1, max_value=12, value=today.month)
        description = st.text_input("Description", value=last.description if last else "")
        amount = st.number_input(
            "Amount (RSD)",
            min_value=0.0,
            value=float(last.amount) if last else 0.0,
            step=1000.0,
        )
        if st.form_submit_button("➕ Add entry", type="primary"):
            result = app.operations.add_salary_entry(
                int(year), int(month), description, Decimal(str(amount))
            )
            show_result(result, "Salary entry added")

    st.metric("Total salary", fmt(total_salary(app.store)))

    summaries = yearly_summary(app.store)
    if summaries:
        st.markdown("### By year")
        st.table([
            {
                "Year": year,
                "Total": fmt(s.total),
                "Entries": s.count,
                "Average": fmt(s.average),
            }
            for year, s in summaries.items()
        ])
        st.bar_chart({k: float(v) for k, v in monthly_salary_totals(app.store).items()})

    st.markdown("### Entries")
    years = sorted({e.year for e in app.store.salary_entries}, reverse=True)
    year_filter = st.selectbox(
        "Year",
        options=[None] + years,
        format_func=lambda y: "All years" if y is None else str(y),
        key="salary_year_filter",
    )
    for entry in filter_salary_entries(app.store, year=year_filter):
        col1, col2 = st.columns([5, 1])
        col1.markdown(
            f"**{entry.year}-{entry.month:02d}** {entry.description}: {fmt(entry.amount)}"
        )
        if col2.button("🗑️", key=f"salary_{entry.id}"):
            app.operations.delete_salary_entry(entry.id)
            st.rerun()


def render_card_page(app: FinanceApp):
    """Card transactions and the running balance."""
    st.title("💳 Card")
    st.metric("Balance", fmt(card_balance(app.store)))

    with st.form("card_form", clear_on_submit=True):
        description = st.text_input("Description")
        kind = st.radio(
            "Type",
            list(TransactionKind),
            format_func=lambda k: k.value.title(),
            horizontal=True,
        )
        amount = st.number_input("Amount (RSD)", min_value=0.0, step=100.0)
        category = st.selectbox(
            "Category",
            options=[None] + list(app.store.categories),
            format_func=lambda c: "None" if c is None else c.name,
        )
        if st.form_submit_button("➕ Add transaction", type="primary"):
            result = app.operations.add_card_transaction(
                description,
                kind,
                Decimal(str(amount)),
                category.id if category else None,
            )
            show_result(result, "Transaction added")

    for t in reversed(app.store.card_transactions):
        col1, col2 = st.columns([5, 1])
        sign = "+" if t.kind == TransactionKind.INCOME else "-"
        col1.markdown(
            f"{t.created_at:%Y-%m-%d} · {t.description} · "
            f"{category_label(app, t.category_id)} · **{sign}{fmt(t.amount)}**"
        )
        if col2.button("🗑️", key=f"card_{t.id}"):
            app.operations.delete_card_transaction(t.id)
            st.rerun()


def render_cash_page(app: FinanceApp):
    """Cash on hand, kept separately in EUR and RSD."""
    st.title("💶 Cash")

    for currency, tab in zip(Currency, st.tabs([c.value for c in Currency])):
        with tab:
            st.metric("Balance", fmt(cash_balance(app.store, currency), currency.value))

            with st.form(f"cash_form_{currency.value}", clear_on_submit=True):
                description = st.text_input("Description")
                direction = st.radio(
                    "Change",
                    list(CashDirection),
                    format_func=lambda d: d.value.title(),
                    horizontal=True,
                )
                amount = st.number_input(f"Amount ({currency.value})", min_value=0.0)
                if st.form_submit_button("💾 Save", type="primary"):
                    result = app.operations.add_cash_change(
                        currency, description, direction, Decimal(str(amount))
                    )
                    show_result(result, "Cash updated")

            for change in reversed(app.store.cash_history(currency)):
                col1, col2 = st.columns([5, 1])
                sign = "+" if change.direction == CashDirection.ADD else "-"
                col1.markdown(
                    f"{change.created_at:%Y-%m-%d} · {change.description} · "
                    f"**{sign}{fmt(change.amount, currency.value)}**"
                )
                if col2.button("🗑️", key=f"cash_{currency.value}_{change.id}"):
                    app.operations.delete_cash_change(currency, change.id)
                    st.rerun()


def render_deposits_page(app: FinanceApp):
    """Term deposits and what they will be worth."""
    st.title("🏦 Term Deposits")

    with st.form("deposit_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        principal = col1.number_input("Principal (RSD)", min_value=0.0, step=10000.0)
        duration = col2.number_input("Duration (months)", min_value=1, value=12)
        rate = col1.number_input("Annual rate (%)", min_value=0.0, step=0.1)
        kind = col2.selectbox(
            "Interest", list(InterestKind), format_func=lambda k: k.value.title()
        )
        start = st.date_input("Start date", value=date.today())
        if st.form_submit_button("➕ Add deposit", type="primary"):
            result = app.operations.add_term_deposit(
                Decimal(str(principal)), int(duration), kind, Decimal(str(rate)), start
            )
            show_result(result, "Deposit added")

    for deposit in app.store.term_deposits:
        with st.expander(
            f"{fmt(deposit.principal)} · {deposit.annual_rate_percent}% · "
            f"{deposit.duration_months} months"
        ):
            st.markdown(f"**Interest:** {deposit.interest_kind.value}")
            st.markdown(f"**Matures:** {deposit_maturity_date(deposit):%Y-%m-%d}")
            st.markdown(f"**Interest earned:** {fmt(deposit_interest(deposit))}")
            st.markdown(f"**Value at maturity:** {fmt(maturity_of(deposit))}")
            if st.button("🗑️ Delete", key=f"deposit_{deposit.id}"):
                app.operations.delete_term_deposit(deposit.id)
                st.rerun()


def render_budgets_page(app: FinanceApp):
    """Monthly spending limits per expense category."""
    st.title("📅 Budgets")
    today = date.today()
    col1, col2 = st.columns(2)
    year = int(col1.number_input("Year", min_value=1900, max_value=2200, value=today.year))
    month = int(col2.number_input("Month", min_value=1, max_value=12, value=today.month))

    expense_categories = [
        c for c in app.store.categories if c.kind == TransactionKind.EXPENSE
    ]
    with st.form("budget_form", clear_on_submit=True):
        category = st.selectbox(
            "Category", expense_categories, format_func=lambda c: c.name
        )
        amount = st.number_input("Limit (RSD)", min_value=0.0, step=1000.0)
        if st.form_submit_button("💾 Set budget", type="primary") and category:
            result = app.operations.add_monthly_budget(
                category.id, Decimal(str(amount)), year, month
            )
            show_result(result, "Budget saved")

    summary = monthly_budget_summary(app.store, year, month)
    st.metric(
        "Spent of budget",
        f"{fmt(summary.total_spent)} / {fmt(summary.total_budget)}",
        f"{summary.percentage:.0f}%",
        delta_color="off",
    )

    for budget in app.store.monthly_budgets:
        if (budget.year, budget.month) != (year, month):
            continue
        status = budget_status(app.store, budget.category_id, year, month)
        col1, col2 = st.columns([5, 1])
        col1.markdown(
            f"{LEVEL_ICONS[budget_level(status.percentage)]} "
            f"**{category_label(app, budget.category_id)}**: "
            f"{fmt(status.spent)} of {fmt(status.limit)} "
            f"({fmt(status.remaining)} left)"
        )
        col1.progress(min(float(status.percentage) / 100, 1.0))
        if col2.button("🗑️", key=f"budget_{budget.id}"):
            app.operations.delete_monthly_budget(budget.id)
            st.rerun()

    spending = spending_by_category_name(app.store, year, month)
    if spending:
        st.markdown("### Spending by category")
        st.bar_chart({name: float(amount) for name, amount in spending.items()})


def render_goals_page(app: FinanceApp):
    """Savings goals and how close they are."""
    st.title("🎯 Savings Goals")

    with st.form("goal_form", clear_on_submit=True):
        name = st.text_input("Goal")
        col1, col2 = st.columns(2)
        target = col1.number_input("Target (RSD)", min_value=0.0, step=10000.0)
        current = col2.number_input("Saved so far (RSD)", min_value=0.0, step=1000.0)
        deadline = st.date_input("Deadline", value=None)
        if st.form_submit_button("➕ Add goal", type="primary"):
            result = app.operations.add_savings_goal(
                name, Decimal(str(target)), Decimal(str(current)), deadline
            )
            show_result(result, "Goal added")

    today = date.today()
    for goal in app.store.savings_goals:
        progress = goal_progress(goal, today)
        with st.expander(f"{goal.name} · {progress.percentage:.0f}%"):
            st.progress(min(float(progress.percentage) / 100, 1.0))
            st.markdown(
                f"{fmt(goal.current_amount)} of {fmt(goal.target_amount)} "
                f"({fmt(progress.remaining)} to go)"
            )
            if progress.is_complete:
                st.success("Goal reached 🎉")
            elif progress.is_past_deadline:
                st.warning(f"Deadline {goal.deadline:%Y-%m-%d} has passed")

            new_amount = st.number_input(
                "Saved so far", min_value=0.0,
                value=float(goal.current_amount), key=f"goal_amount_{goal.id}",
            )
            col1, col2 = st.columns(2)
            if col1.button("💾 Update", key=f"goal_update_{goal.id}"):
                app.operations.update_savings_goal(goal.id, Decimal(str(new_amount)))
                st.rerun()
            if col2.button("🗑️ Delete", key=f"goal_delete_{goal.id}"):
                app.operations.delete_savings_goal(goal.id)
                st.rerun()


def render_recurring_page(app: FinanceApp):
    """Recurring payments, kept as reminders."""
    st.title("🔁 Recurring")
    st.caption("Recurring transactions are reminders; they are never booked automatically.")

    with st.form("recurring_form", clear_on_submit=True):
        description = st.text_input("Description")
        col1, col2 = st.columns(2)
        amount = col1.number_input("Amount", min_value=0.0, step=100.0)
        frequency = col2.selectbox(
            "Frequency", list(Frequency), format_func=lambda f: f.value.title()
        )
        account = col1.selectbox(
            "Account", list(AccountTarget), format_func=lambda a: a.value
        )
        category = col2.selectbox(
            "Category",
            options=[None] + list(app.store.categories),
            format_func=lambda c: "None" if c is None else c.name,
        )
        start = st.date_input("Starts", value=date.today())
        if st.form_submit_button("➕ Add", type="primary"):
            result = app.operations.add_recurring_transaction(
                description,
                Decimal(str(amount)),
                category.id if category else None,
                frequency,
                start,
                account,
            )
            show_result(result, "Recurring transaction added")

    for recurring in app.store.recurring_transactions:
        col1, col2 = st.columns([5, 1])
        col1.markdown(
            f"{recurring.description} · {fmt(recurring.amount)} · "
            f"{recurring.frequency.value} · {recurring.account_target.value} · "
            f"from {recurring.start_date:%Y-%m-%d}"
        )
        if col2.button("🗑️", key=f"recurring_{recurring.id}"):
            app.operations.delete_recurring_transaction(recurring.id)
            st.rerun()


def render_settings_page(app: FinanceApp):
    """Exchange rate, backup and reset."""
    st.title("⚙️ Settings")

    st.markdown("### Exchange rate")
    if st.button("🔄 Refresh EUR → RSD rate"):
        with st.spinner("Fetching rate..."):
            rate = run_async(app.refresh_exchange_rate())
        st.success(f"Rate is now {rate:,.4f}")

    st.markdown("### Backup")
    st.download_button(
        "⬇️ Export data",
        data=app.export_json(),
        file_name=f"my-finance-{date.today():%Y-%m-%d}.json",
        mime="application/json",
    )
    uploaded = st.file_uploader("Import data", type=["json"])
    if uploaded is not None and st.button("⬆️ Import (replaces current data)"):
        if app.import_json(uploaded.getvalue()):
            st.success("Data imported")
        else:
            st.error("This file could not be read. Your data was not changed.")

    st.markdown("### Categories")
    with st.form("category_form", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        name = col1.text_input("Name")
        kind = col2.selectbox(
            "Type", list(TransactionKind), format_func=lambda k: k.value.title()
        )
        color = col3.color_picker("Colour", value="#6b7280")
        if st.form_submit_button("➕ Add category"):
            show_result(app.operations.add_category(name, kind, color), "Category added")

    st.markdown("### Danger zone")
    confirm = st.checkbox("I understand this deletes all my data")
    if st.button("🗑️ Reset all data", disabled=not confirm):
        app.reset()
        st.rerun()

    st.markdown("### Connection status")
    status = validate_all_settings()
    if status.get("fastforex_api_key_set"):
        st.success("✅ FastForex API key configured")
    else:
        st.warning("FastForex API key missing; the fallback rate is used")

    with st.expander("Recent activity"):
        for event in app.recent_events(limit=20):
            st.markdown(f"`{event.timestamp:%Y-%m-%d %H:%M}` {event.description}")


if __name__ == "__main__":
    main()
