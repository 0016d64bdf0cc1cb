"""
Ledger Operations

The only code that mutates a LedgerStore.

Every "add" operation:
1. Validates the raw input (declines the operation if invalid)
2. Assigns a new id and creation timestamp from the store
3. Appends the record to its collection
4. Audits the change
5. Saves the full snapshot

Every "delete" removes by id. Deleting an unknown id is a no-op, not an
error, and does not trigger a save.

IMPORTANT: Operations never raise for bad input or storage trouble.
Bad input comes back as a declined OperationResult. A failed save is
logged and audited; the in-memory ledger keeps the change.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ValidationError

from my_finance.audit import AuditLogger
from my_finance.ledger.store import CUSTOM_CATEGORY_PREFIX, LedgerStore
from my_finance.models.ledger import (
    CardTransaction,
    CashChange,
    Category,
    Currency,
    LastSalaryEntry,
    MonthlyBudget,
    RecurringTransaction,
    SalaryEntry,
    SavingsGoal,
    TermDeposit,
)
from my_finance.models.reports import OperationResult, ValidationIssue, ValidationResult
from my_finance.services.storage import SnapshotStorageInterface, StorageError
from my_finance.validation import LedgerValidator


logger = structlog.get_logger(__name__)


class LedgerOperations:
    """
    Create, update and delete records in a LedgerStore.

    Storage and audit logger are optional so the ledger can be driven
    entirely in memory (tests, previews of an import).
    """

    def __init__(
        self,
        store: LedgerStore,
        storage: Optional[SnapshotStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[LedgerValidator] = None,
    ):
        self._store = store
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or LedgerValidator()

    @property
    def store(self) -> LedgerStore:
        return self._store

    def replace_store(self, store: LedgerStore) -> bool:
        """Swap in a whole new ledger (import, reset) and save it."""
        self._store = store
        return self._persist()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _persist(self) -> bool:
        """Save the full snapshot. Last write wins."""
        if self._storage is None:
            return True
        try:
            return self._storage.save(self._store)
        except StorageError as e:
            logger.error("snapshot_save_failed", error=str(e))
            self._audit_logger.log_save_failed(str(e))
            return False

    def _decline(self, operation: str, issues: list[ValidationIssue]) -> OperationResult:
        self._audit_logger.log_operation_declined(
            operation,
            [issue.model_dump() for issue in issues],
        )
        return OperationResult.declined(issues)

    def _build(
        self,
        operation: str,
        model: type[BaseModel],
        validation: ValidationResult,
        **extra: Any,
    ) -> tuple[Optional[BaseModel], Optional[OperationResult]]:
        """
        Turn validated values into a record.

        Returns (record, None) on success, (None, declined result) otherwise.
        """
        try:
            record = model(**validation.values, **extra)
        except ValidationError as e:
            issues = [
                ValidationIssue(
                    field=".".join(str(part) for part in error["loc"]) or operation,
                    issue_type=error["type"],
                    message=error["msg"],
                )
                for error in e.errors()
            ]
            return None, self._decline(operation, issues)
        return record, None

    def _new_identity(self) -> dict[str, Any]:
        return {"id": self._store.next_id(), "created_at": self._store.now()}

    def _append(self, records: list, entity_type: str, record: BaseModel) -> OperationResult:
        records.append(record)
        self._audit_logger.log_record_added(
            entity_type,
            record.id,
            record.model_dump(mode="json", by_alias=True),
        )
        self._persist()
        return OperationResult(accepted=True, record=record)

    def _delete(self, records: list, entity_type: str, record_id: Any) -> bool:
        for index, record in enumerate(records):
            if record.id == record_id:
                del records[index]
                self._audit_logger.log_record_deleted(entity_type, record_id)
                self._persist()
                return True
        return False

    # -------------------------------------------------------------------------
    # Salary entries
    # -------------------------------------------------------------------------

    def add_salary_entry(self, year, month, description, amount) -> OperationResult:
        """Record a salary/income log entry and remember it for the next form."""
        validation = self._validator.validate_salary_entry(year, month, description, amount)
        if not validation.is_valid:
            return self._decline("add_salary_entry", validation.issues)

        entry, declined = self._build(
            "add_salary_entry", SalaryEntry, validation, **self._new_identity()
        )
        if declined:
            return declined

        self._store.last_salary_entry = LastSalaryEntry(
            description=entry.description,
            amount=entry.amount,
        )
        return self._append(self._store.salary_entries, "salary_entry", entry)

    def delete_salary_entry(self, entry_id: int) -> bool:
        return self._delete(self._store.salary_entries, "salary_entry", entry_id)

    # -------------------------------------------------------------------------
    # Card transactions
    # -------------------------------------------------------------------------

    def add_card_transaction(
        self,
        description,
        kind,
        amount,
        category_id: Optional[str] = None,
    ) -> OperationResult:
        validation = self._validator.validate_card_transaction(
            description, kind, amount, category_id
        )
        if not validation.is_valid:
            return self._decline("add_card_transaction", validation.issues)

        transaction, declined = self._build(
            "add_card_transaction", CardTransaction, validation, **self._new_identity()
        )
        if declined:
            return declined
        return self._append(self._store.card_transactions, "card_transaction", transaction)

    def delete_card_transaction(self, transaction_id: int) -> bool:
        return self._delete(self._store.card_transactions, "card_transaction", transaction_id)

    # -------------------------------------------------------------------------
    # Cash
    # -------------------------------------------------------------------------

    def add_cash_change(self, currency, description, direction, amount) -> OperationResult:
        """Add or take away cash in one currency."""
        validation = self._validator.validate_cash_change(
            currency, description, direction, amount
        )
        if not validation.is_valid:
            return self._decline("add_cash_change", validation.issues)

        currency = validation.values.pop("currency")
        change, declined = self._build(
            "add_cash_change", CashChange, validation, **self._new_identity()
        )
        if declined:
            return declined
        return self._append(
            self._store.cash_history(currency),
            f"cash_change_{currency.value.lower()}",
            change,
        )

    def delete_cash_change(self, currency, change_id: int) -> bool:
        try:
            currency = Currency(currency)
        except ValueError:
            logger.warning("unknown_cash_currency", currency=str(currency))
            return False
        return self._delete(
            self._store.cash_history(currency),
            f"cash_change_{currency.value.lower()}",
            change_id,
        )

    # -------------------------------------------------------------------------
    # Term deposits
    # -------------------------------------------------------------------------

    def add_term_deposit(
        self,
        principal,
        duration_months,
        interest_kind,
        annual_rate_percent,
        start_date,
    ) -> OperationResult:
        validation = self._validator.validate_term_deposit(
            principal, duration_months, interest_kind, annual_rate_percent, start_date
        )
        if not validation.is_valid:
            return self._decline("add_term_deposit", validation.issues)

        deposit, declined = self._build(
            "add_term_deposit", TermDeposit, validation, **self._new_identity()
        )
        if declined:
            return declined
        return self._append(self._store.term_deposits, "term_deposit", deposit)

    def delete_term_deposit(self, deposit_id: int) -> bool:
        return self._delete(self._store.term_deposits, "term_deposit", deposit_id)

    # -------------------------------------------------------------------------
    # Monthly budgets
    # -------------------------------------------------------------------------

    def add_monthly_budget(self, category_id, amount, year, month) -> OperationResult:
        """
        Set the budget of a category for a month.

        Upsert keyed by (category_id, year, month): an existing budget keeps
        its id and position and takes the new amount.
        """
        validation = self._validator.validate_monthly_budget(category_id, amount, year, month)
        if not validation.is_valid:
            return self._decline("add_monthly_budget", validation.issues)

        values = validation.values
        existing = self._store.find_budget(values["category_id"], values["year"], values["month"])
        if existing is not None:
            existing.amount = values["amount"]
            budget = existing
        else:
            budget, declined = self._build(
                "add_monthly_budget", MonthlyBudget, validation, **self._new_identity()
            )
            if declined:
                return declined
            self._store.monthly_budgets.append(budget)

        self._audit_logger.log_budget_upserted(
            budget.id,
            budget.category_id,
            str(budget.amount),
            replaced=existing is not None,
        )
        self._persist()
        return OperationResult(accepted=True, record=budget)

    def delete_monthly_budget(self, budget_id: int) -> bool:
        return self._delete(self._store.monthly_budgets, "monthly_budget", budget_id)

    # -------------------------------------------------------------------------
    # Savings goals
    # -------------------------------------------------------------------------

    def add_savings_goal(
        self,
        name,
        target_amount,
        current_amount=0,
        deadline=None,
    ) -> OperationResult:
        validation = self._validator.validate_savings_goal(
            name, target_amount, current_amount, deadline
        )
        if not validation.is_valid:
            return self._decline("add_savings_goal", validation.issues)

        goal, declined = self._build(
            "add_savings_goal", SavingsGoal, validation, **self._new_identity()
        )
        if declined:
            return declined
        return self._append(self._store.savings_goals, "savings_goal", goal)

    def update_savings_goal(self, goal_id: int, current_amount) -> OperationResult:
        """
        Set how much has been saved towards a goal.

        An unknown goal id is a no-op (not accepted, nothing saved).
        """
        validation = self._validator.validate_goal_amount(current_amount)
        if not validation.is_valid:
            return self._decline("update_savings_goal", validation.issues)

        goal = self._store.find_goal(goal_id)
        if goal is None:
            return OperationResult(
                accepted=False,
                issues=[ValidationIssue(
                    field="id",
                    issue_type="not_found",
                    message=f"No savings goal with id {goal_id}",
                    severity="info",
                )],
            )

        goal.current_amount = validation.values["current_amount"]
        self._audit_logger.log_goal_updated(goal.id, str(goal.current_amount))
        self._persist()
        return OperationResult(accepted=True, record=goal)

    def delete_savings_goal(self, goal_id: int) -> bool:
        return self._delete(self._store.savings_goals, "savings_goal", goal_id)

    # -------------------------------------------------------------------------
    # Recurring transactions
    # -------------------------------------------------------------------------

    def add_recurring_transaction(
        self,
        description,
        amount,
        category_id,
        frequency,
        start_date,
        account_target,
    ) -> OperationResult:
        """Store a recurring transaction. It is never booked automatically."""
        validation = self._validator.validate_recurring_transaction(
            description, amount, category_id, frequency, start_date, account_target
        )
        if not validation.is_valid:
            return self._decline("add_recurring_transaction", validation.issues)

        recurring, declined = self._build(
            "add_recurring_transaction",
            RecurringTransaction,
            validation,
            **self._new_identity(),
        )
        if declined:
            return declined
        return self._append(
            self._store.recurring_transactions, "recurring_transaction", recurring
        )

    def delete_recurring_transaction(self, recurring_id: int) -> bool:
        return self._delete(
            self._store.recurring_transactions, "recurring_transaction", recurring_id
        )

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def add_category(self, name, kind, color=None) -> OperationResult:
        """Add a user-defined category next to the seed ones."""
        validation = self._validator.validate_category(name, kind, color)
        if not validation.is_valid:
            return self._decline("add_category", validation.issues)

        category, declined = self._build(
            "add_category",
            Category,
            validation,
            id=f"{CUSTOM_CATEGORY_PREFIX}{self._store.next_id()}",
        )
        if declined:
            return declined
        return self._append(self._store.categories, "category", category)

    def delete_category(self, category_id: str) -> bool:
        """
        Remove a category.

        Records that still reference it keep the id; calculations treat
        such references as uncategorized.
        """
        return self._delete(self._store.categories, "category", category_id)

    # -------------------------------------------------------------------------
    # Exchange rate
    # -------------------------------------------------------------------------

    def set_exchange_rate(
        self,
        rate,
        updated_at: Optional[datetime] = None,
        is_fallback: bool = False,
    ) -> OperationResult:
        validation = self._validator.validate_exchange_rate(rate)
        if not validation.is_valid:
            return self._decline("set_exchange_rate", validation.issues)

        new_rate: Decimal = validation.values["exchange_rate"]
        self._store.exchange_rate = new_rate
        self._store.last_rate_update = updated_at or self._store.now()
        self._audit_logger.log_rate_updated(str(new_rate), is_fallback)
        self._persist()
        return OperationResult(accepted=True, record=new_rate)
