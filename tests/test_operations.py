"""
Tests for ledger operations.

Every change goes through LedgerOperations: validated, given an id and a
timestamp, saved, audited. Rejected input never reaches the store.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from my_finance.engine import card_balance, cash_balance, total_wealth
from my_finance.ledger import LedgerStore
from my_finance.ledger.operations import LedgerOperations
from my_finance.models import (
    AccountTarget,
    CashDirection,
    Currency,
    Frequency,
    InterestKind,
    TransactionKind,
)
from my_finance.models.audit import AuditEventType
from my_finance.services.storage import SnapshotStorageInterface, StorageError


class FailingStorage(SnapshotStorageInterface):
    """Storage whose every write fails."""

    def load(self):
        return None

    def save(self, store):
        raise StorageError("disk full")

    def clear(self):
        return False


class TestSalaryEntries:
    """Tests for the salary log."""

    def test_add_salary_entry(self, ops, store, storage, now):
        """Test an accepted entry is stored, timestamped and saved."""
        result = ops.add_salary_entry(2024, 3, "March salary", "150000")

        assert result.accepted
        entry = result.record
        assert entry.amount == Decimal("150000")
        assert entry.created_at == now
        assert store.salary_entries == [entry]
        assert storage.save_count == 1

    def test_add_remembers_last_entry(self, ops, store):
        """Test the last description and amount are kept to prefill the form."""
        ops.add_salary_entry(2024, 3, "March salary", "150000")

        assert store.last_salary_entry.description == "March salary"
        assert store.last_salary_entry.amount == Decimal("150000")

    @pytest.mark.parametrize("year,month,description,amount", [
        (2024, 13, "Salary", "100"),
        (2024, 0, "Salary", "100"),
        (2024, 3, "   ", "100"),
        (2024, 3, "Salary", "abc"),
        (2024, 3, "Salary", "NaN"),
    ])
    def test_invalid_entry_is_declined(self, ops, store, storage, year, month, description, amount):
        """Test invalid input is rejected before entering the store."""
        result = ops.add_salary_entry(year, month, description, amount)

        assert not result.accepted
        assert result.issues
        assert store.salary_entries == []
        assert storage.save_count == 0

    def test_delete_salary_entry(self, ops, store):
        """Test deleting an existing entry."""
        entry = ops.add_salary_entry(2024, 3, "Salary", "100").record

        assert ops.delete_salary_entry(entry.id) is True
        assert store.salary_entries == []

    def test_salary_does_not_change_wealth(self, ops, store):
        """Test total wealth is the same before, during and after a salary entry."""
        ops.add_card_transaction("Opening", "income", "5000")
        before = total_wealth(store)

        entry = ops.add_salary_entry(2024, 3, "Salary", "150000").record
        assert total_wealth(store) == before

        ops.delete_salary_entry(entry.id)
        assert total_wealth(store) == before


class TestCardTransactions:
    """Tests for card transactions and the card balance."""

    def test_balance_tracks_adds_and_deletes(self, ops, store):
        """Test the balance is the signed sum of the remaining transactions."""
        salary = ops.add_card_transaction("Salary", TransactionKind.INCOME, "100000").record
        ops.add_card_transaction("Groceries", TransactionKind.EXPENSE, "4500.50", "food")
        rent = ops.add_card_transaction("Rent", "expense", "40000").record

        assert card_balance(store) == Decimal("55499.50")

        ops.delete_card_transaction(rent.id)
        assert card_balance(store) == Decimal("95499.50")

        ops.delete_card_transaction(salary.id)
        assert card_balance(store) == Decimal("-4500.50")

    def test_category_is_optional(self, ops):
        """Test a transaction without a category is accepted."""
        result = ops.add_card_transaction("Coffee", "expense", "250")

        assert result.accepted
        assert result.record.category_id is None

    @pytest.mark.parametrize("amount", ["0", "-10", "", None])
    def test_non_positive_amount_is_declined(self, ops, store, amount):
        """Test card amounts must be positive."""
        result = ops.add_card_transaction("Coffee", "expense", amount)

        assert not result.accepted
        assert store.card_transactions == []

    def test_unknown_kind_is_declined(self, ops):
        """Test the kind must be income or expense."""
        result = ops.add_card_transaction("Coffee", "transfer", "250")

        assert not result.accepted
        assert result.issues[0].field == "kind"

    def test_delete_unknown_id_is_noop(self, ops, store, storage):
        """Test deleting a missing id changes nothing and does not raise."""
        ops.add_card_transaction("Coffee", "expense", "250")
        saves = storage.save_count

        assert ops.delete_card_transaction(999999) is False
        assert len(store.card_transactions) == 1
        assert storage.save_count == saves


class TestCash:
    """Tests for cash kept in EUR and RSD."""

    def test_currencies_are_kept_apart(self, ops, store):
        """Test EUR and RSD cash have independent histories and balances."""
        ops.add_cash_change(Currency.EUR, "ATM", CashDirection.ADD, "200")
        ops.add_cash_change("EUR", "Dinner", "subtract", "45.50")
        ops.add_cash_change("RSD", "Gift", "add", "10000")

        assert len(store.cash_history_eur) == 2
        assert len(store.cash_history_rsd) == 1
        assert cash_balance(store, Currency.EUR) == Decimal("154.50")
        assert cash_balance(store, Currency.RSD) == Decimal("10000")

    def test_unknown_currency_is_declined(self, ops, store):
        """Test only EUR and RSD cash exist."""
        result = ops.add_cash_change("USD", "ATM", "add", "100")

        assert not result.accepted
        assert store.cash_history_eur == []
        assert store.cash_history_rsd == []

    def test_delete_cash_change(self, ops, store):
        """Test a cash change is deleted from its own currency only."""
        change = ops.add_cash_change("EUR", "ATM", "add", "200").record

        assert ops.delete_cash_change("RSD", change.id) is False
        assert ops.delete_cash_change("EUR", change.id) is True
        assert store.cash_history_eur == []

    def test_delete_cash_change_unknown_currency(self, ops, store):
        change = ops.add_cash_change("EUR", "ATM", "add", "200").record

        assert ops.delete_cash_change("USD", change.id) is False
        assert store.cash_history_eur == [change]


class TestIdentity:
    """Tests for record ids."""

    def test_ids_are_unique_within_the_same_instant(self, ops):
        """Test records created at the same time still get distinct ids."""
        ids = [
            ops.add_card_transaction("Coffee", "expense", "250").record.id
            for _ in range(5)
        ]
        ids.append(ops.add_salary_entry(2024, 3, "Salary", "1").record.id)

        assert len(set(ids)) == len(ids)
        assert ids == sorted(ids)

    def test_counter_starts_above_existing_ids(self, storage, audit_logger):
        """Test a loaded store never reissues an id already in use."""
        seeded = LedgerStore(card_transactions=[{
            "id": 1700000000000,
            "description": "Old",
            "type": "income",
            "amount": 1,
        }])
        ops = LedgerOperations(seeded, storage=storage, audit_logger=audit_logger)

        new = ops.add_salary_entry(2024, 3, "Salary", "1").record
        assert new.id > 1700000000000


class TestClock:
    """Tests for the time source of creation timestamps."""

    def test_default_clock_is_utc(self):
        stamp = LedgerStore.empty().now()

        assert stamp.utcoffset() == timedelta(0)

    def test_default_clock_stamps_records(self, storage, audit_logger):
        ops = LedgerOperations(LedgerStore.empty(), storage=storage, audit_logger=audit_logger)

        record = ops.add_card_transaction("Coffee", "expense", "250").record

        assert record.created_at.tzinfo is not None

    def test_set_clock(self, now):
        store = LedgerStore.empty()
        store.set_clock(lambda: now)

        assert store.now() == now
        assert store.clock() == now
        assert store.snapshot().now() == now


class TestTermDeposits:
    """Tests for term deposits."""

    def test_add_term_deposit(self, ops, store):
        """Test a deposit is stored with its parsed fields."""
        result = ops.add_term_deposit("534284", 3, "simple", "4.10", "2024-01-10")

        assert result.accepted
        deposit = result.record
        assert deposit.principal == Decimal("534284")
        assert deposit.duration_months == 3
        assert deposit.interest_kind == InterestKind.SIMPLE
        assert deposit.start_date == date(2024, 1, 10)
        assert store.term_deposits == [deposit]

    @pytest.mark.parametrize("principal,months,kind,rate,start", [
        ("0", 3, "simple", "4.1", "2024-01-10"),
        ("1000", 0, "simple", "4.1", "2024-01-10"),
        ("1000", "2.5", "simple", "4.1", "2024-01-10"),
        ("1000", 3, "daily", "4.1", "2024-01-10"),
        ("1000", 3, "simple", "0", "2024-01-10"),
        ("1000", 3, "simple", "4.1", "not a date"),
    ])
    def test_invalid_deposit_is_declined(self, ops, store, principal, months, kind, rate, start):
        """Test each deposit field is checked."""
        result = ops.add_term_deposit(principal, months, kind, rate, start)

        assert not result.accepted
        assert store.term_deposits == []


class TestMonthlyBudgets:
    """Tests for the budget upsert."""

    def test_upsert_keeps_one_record_with_latest_amount(self, ops, store):
        """Test setting a budget twice for the same month replaces the amount."""
        first = ops.add_monthly_budget("food", "20000", 2024, 3).record
        second = ops.add_monthly_budget("food", "25000", 2024, 3).record

        assert len(store.monthly_budgets) == 1
        assert store.monthly_budgets[0].amount == Decimal("25000")
        assert second.id == first.id

    def test_upsert_is_keyed_by_month(self, ops, store):
        """Test a different month gets its own budget."""
        ops.add_monthly_budget("food", "20000", 2024, 3)
        ops.add_monthly_budget("food", "20000", 2024, 4)
        ops.add_monthly_budget("transport", "5000", 2024, 3)

        assert len(store.monthly_budgets) == 3

    def test_upsert_is_audited(self, ops, audit_storage):
        """Test both the insert and the replacement are audited."""
        ops.add_monthly_budget("food", "20000", 2024, 3)
        ops.add_monthly_budget("food", "25000", 2024, 3)

        events = audit_storage.of_type(AuditEventType.BUDGET_UPSERTED)
        assert [e.details["replaced"] for e in events] == [False, True]

    def test_non_positive_budget_is_declined(self, ops, store):
        """Test a budget amount must be positive."""
        assert not ops.add_monthly_budget("food", "0", 2024, 3).accepted
        assert store.monthly_budgets == []

    def test_delete_monthly_budget(self, ops, store):
        """Test removing a budget."""
        budget = ops.add_monthly_budget("food", "20000", 2024, 3).record

        assert ops.delete_monthly_budget(budget.id) is True
        assert store.monthly_budgets == []


class TestSavingsGoals:
    """Tests for savings goals."""

    def test_add_goal_defaults(self, ops):
        """Test a goal starts at zero with no deadline."""
        goal = ops.add_savings_goal("Car", "1000000").record

        assert goal.current_amount == Decimal("0")
        assert goal.deadline is None

    def test_empty_deadline_means_none(self, ops):
        """Test the empty string a date field submits is no deadline."""
        goal = ops.add_savings_goal("Car", "1000000", "0", "").record

        assert goal.deadline is None

    def test_update_goal(self, ops, store):
        """Test the saved amount can be updated."""
        goal = ops.add_savings_goal("Car", "1000000", "100000", "2025-06-01").record

        result = ops.update_savings_goal(goal.id, "250000")

        assert result.accepted
        assert store.find_goal(goal.id).current_amount == Decimal("250000")

    def test_update_unknown_goal_is_noop(self, ops, storage):
        """Test updating a missing goal is not accepted and saves nothing."""
        result = ops.update_savings_goal(424242, "100")

        assert not result.accepted
        assert result.issues[0].issue_type == "not_found"
        assert result.issues[0].severity == "info"
        assert storage.save_count == 0

    def test_negative_amount_is_declined(self, ops, store):
        """Test the saved amount cannot be negative."""
        goal = ops.add_savings_goal("Car", "1000000").record

        assert not ops.update_savings_goal(goal.id, "-1").accepted
        assert store.find_goal(goal.id).current_amount == Decimal("0")

    def test_target_must_be_positive(self, ops):
        """Test a goal needs a positive target."""
        assert not ops.add_savings_goal("Car", "0").accepted


class TestRecurringTransactions:
    """Tests for recurring transactions."""

    def test_recurring_is_stored_but_never_booked(self, ops, store):
        """Test a recurring transaction does not touch any balance."""
        before = total_wealth(store)

        result = ops.add_recurring_transaction(
            "Netflix", "1500", "entertainment", Frequency.MONTHLY, "2024-01-05", AccountTarget.CARD
        )

        assert result.accepted
        assert result.record.active is True
        assert store.card_transactions == []
        assert total_wealth(store) == before

    def test_amount_must_be_positive(self, ops):
        """Test zero or negative recurring amounts are declined."""
        result = ops.add_recurring_transaction(
            "Netflix", "0", None, "monthly", "2024-01-05", "card"
        )
        assert not result.accepted

    def test_delete_recurring(self, ops, store):
        """Test removing a recurring transaction."""
        recurring = ops.add_recurring_transaction(
            "Gym", "3000", None, "monthly", "2024-01-05", "cashRSD"
        ).record

        assert ops.delete_recurring_transaction(recurring.id) is True
        assert store.recurring_transactions == []


class TestCategories:
    """Tests for user-defined categories."""

    def test_add_category(self, ops, store):
        """Test a custom category gets a custom- id."""
        category = ops.add_category("Pets", "expense", "#123456").record

        assert category.id.startswith("custom-")
        assert store.find_category(category.id) is category

    def test_delete_category_keeps_references(self, ops, store):
        """Test deleting a category leaves transactions pointing at it alone."""
        category = ops.add_category("Pets", "expense").record
        ops.add_card_transaction("Vet", "expense", "3000", category.id)

        assert ops.delete_category(category.id) is True
        assert store.find_category(category.id) is None
        assert store.card_transactions[0].category_id == category.id

    def test_delete_unknown_category(self, ops):
        assert ops.delete_category("does-not-exist") is False


class TestExchangeRate:
    """Tests for recording the exchange rate."""

    def test_set_exchange_rate(self, ops, store, now):
        result = ops.set_exchange_rate("117.25")

        assert result.accepted
        assert store.exchange_rate == Decimal("117.25")
        assert store.last_rate_update == now

    @pytest.mark.parametrize("rate", ["0", "-1", "abc"])
    def test_invalid_rate_is_declined(self, ops, store, rate):
        """Test the rate must stay positive."""
        assert not ops.set_exchange_rate(rate).accepted
        assert store.exchange_rate == Decimal("117")


class TestAuditAndPersistence:
    """Tests for what operations log and save."""

    def test_add_and_delete_are_audited(self, ops, audit_storage):
        tx = ops.add_card_transaction("Coffee", "expense", "250").record
        ops.delete_card_transaction(tx.id)

        added = audit_storage.of_type(AuditEventType.RECORD_ADDED)
        deleted = audit_storage.of_type(AuditEventType.RECORD_DELETED)
        assert added[0].entity_type == "card_transaction"
        assert deleted[0].entity_id == str(tx.id)

    def test_declined_operation_is_audited(self, ops, audit_storage):
        ops.add_card_transaction("", "expense", "250")

        declined = audit_storage.of_type(AuditEventType.OPERATION_DECLINED)
        assert len(declined) == 1

    def test_save_failure_does_not_lose_the_change(self, store, audit_logger, audit_storage):
        """Test a failed save keeps the record in memory and is audited, not raised."""
        ops = LedgerOperations(store, storage=FailingStorage(), audit_logger=audit_logger)

        result = ops.add_card_transaction("Coffee", "expense", "250")

        assert result.accepted
        assert len(store.card_transactions) == 1
        assert audit_storage.of_type(AuditEventType.SAVE_FAILED)

    def test_saved_snapshot_reflects_the_change(self, ops, storage):
        """Test what was saved loads back with the new record."""
        ops.add_card_transaction("Coffee", "expense", "250.75")

        loaded = storage.load()
        assert loaded.card_transactions[0].amount == Decimal("250.75")
