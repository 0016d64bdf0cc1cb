"""
Snapshot Codec

Converts between a LedgerStore and the plain JSON document it is saved as,
and between a LedgerStore and the export file a user can download.

BACKWARD COMPATIBILITY:
Older versions of the app saved data under different keys:
- "cashHistory"     - cash was kept in EUR only; becomes "cashHistoryEUR"
- "monthlyEntries"  - income AND expense lines; only the income lines
                      are carried over, as salary entries
Record-level legacy keys (e.g. "date" for the creation time) are handled
by the record models themselves.

Missing collections default to empty, missing categories to the seed set,
a missing or non-positive rate to the fallback rate. A single malformed
record is skipped and logged rather than failing the whole load.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Union

import structlog
from pydantic import BaseModel, ValidationError

from my_finance.ledger.store import DEFAULT_EXCHANGE_RATE, LedgerStore
from my_finance.models.ledger import (
    CardTransaction,
    CashChange,
    Category,
    LastSalaryEntry,
    MonthlyBudget,
    RecurringTransaction,
    SalaryEntry,
    SavingsGoal,
    TermDeposit,
    default_categories,
    fits_json_number,
)
from my_finance.services.storage.interface import CorruptSnapshotError


logger = structlog.get_logger(__name__)


# (snapshot key, LedgerStore attribute, record model)
COLLECTIONS: tuple[tuple[str, str, type[BaseModel]], ...] = (
    ("salaryEntries", "salary_entries", SalaryEntry),
    ("cardTransactions", "card_transactions", CardTransaction),
    ("cashHistoryEUR", "cash_history_eur", CashChange),
    ("cashHistoryRSD", "cash_history_rsd", CashChange),
    ("termDeposits", "term_deposits", TermDeposit),
    ("categories", "categories", Category),
    ("monthlyBudgets", "monthly_budgets", MonthlyBudget),
    ("savingsGoals", "savings_goals", SavingsGoal),
    ("recurringTransactions", "recurring_transactions", RecurringTransaction),
)

# Not part of an export: they describe this device, not the user's money
TRANSIENT_KEYS = ("exchangeRate", "lastRateUpdate", "lastSalaryEntry")

LEGACY_CASH_KEY = "cashHistory"
LEGACY_ENTRIES_KEY = "monthlyEntries"


def migrate_legacy_keys(data: dict[str, Any]) -> dict[str, Any]:
    """
    Map legacy top-level keys onto current ones.

    Current keys always win over legacy ones. The input is not modified.
    """
    migrated = dict(data)

    if migrated.get("salaryEntries") is None and data.get(LEGACY_ENTRIES_KEY) is not None:
        legacy_entries = data[LEGACY_ENTRIES_KEY]
        if isinstance(legacy_entries, list):
            migrated["salaryEntries"] = [
                entry for entry in legacy_entries
                if isinstance(entry, dict) and entry.get("type") == "income"
            ]
            logger.info(
                "legacy_entries_migrated",
                total=len(legacy_entries),
                kept=len(migrated["salaryEntries"]),
            )

    if migrated.get("cashHistoryEUR") is None and data.get(LEGACY_CASH_KEY) is not None:
        migrated["cashHistoryEUR"] = data[LEGACY_CASH_KEY]
        logger.info("legacy_cash_history_migrated")

    migrated.pop(LEGACY_ENTRIES_KEY, None)
    migrated.pop(LEGACY_CASH_KEY, None)
    return migrated


def _parse_records(key: str, raw: Any, model: type[BaseModel]) -> list:
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning("snapshot_collection_not_a_list", collection=key)
        return []

    records = []
    for index, item in enumerate(raw):
        try:
            records.append(model.model_validate(item))
        except ValidationError as e:
            # Skip malformed records
            logger.warning(
                "snapshot_record_skipped",
                collection=key,
                index=index,
                error_count=e.error_count(),
                error=str(e),
            )
    return records


def _parse_rate(raw: Any) -> Decimal:
    try:
        rate = Decimal(str(raw))
    except (ArithmeticError, ValueError, TypeError):
        return DEFAULT_EXCHANGE_RATE
    if not rate.is_finite() or rate <= 0 or not fits_json_number(rate):
        return DEFAULT_EXCHANGE_RATE
    return rate


def _parse_timestamp(raw: Any) -> Optional[datetime]:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None


def _parse_last_salary_entry(raw: Any) -> Optional[LastSalaryEntry]:
    if raw is None:
        return None
    try:
        return LastSalaryEntry.model_validate(raw)
    except ValidationError:
        logger.warning("snapshot_last_salary_entry_skipped")
        return None


def load_snapshot(data: Any) -> LedgerStore:
    """
    Build a LedgerStore from a saved (or imported) document.

    Raises:
        CorruptSnapshotError: If the document is not a JSON object
    """
    if not isinstance(data, dict):
        raise CorruptSnapshotError(
            f"Snapshot must be a JSON object, got {type(data).__name__}"
        )

    data = migrate_legacy_keys(data)

    collections = {
        attribute: _parse_records(key, data.get(key), model)
        for key, attribute, model in COLLECTIONS
    }
    if data.get("categories") is None:
        collections["categories"] = default_categories()

    return LedgerStore(
        **collections,
        exchange_rate=_parse_rate(data.get("exchangeRate", DEFAULT_EXCHANGE_RATE)),
        last_rate_update=_parse_timestamp(data.get("lastRateUpdate")),
        last_salary_entry=_parse_last_salary_entry(data.get("lastSalaryEntry")),
    )


def dump_snapshot(store: LedgerStore) -> dict[str, Any]:
    """The full snapshot: all nine collections, rate, last update, last salary entry."""
    return store.model_dump(mode="json", by_alias=True)


def export_payload(store: LedgerStore, now: datetime) -> dict[str, Any]:
    """The downloadable backup: the snapshot minus transient fields, plus exportDate."""
    payload = {
        key: value
        for key, value in dump_snapshot(store).items()
        if key not in TRANSIENT_KEYS
    }
    payload["exportDate"] = now.isoformat()
    return payload


def import_payload(data: Any) -> LedgerStore:
    """
    Read a backup produced by export_payload (or by an older app version).

    Same tolerance as load_snapshot; `exportDate` is ignored.
    """
    return load_snapshot(data)


def dumps(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def loads(text: Union[str, bytes]) -> Any:
    """
    Parse JSON text, reading every non-integer number as an exact Decimal.

    Bytes are decoded as UTF-8 (or UTF-16/32 when they start that way).

    Raises:
        CorruptSnapshotError: If the text is not valid JSON
    """
    try:
        return json.loads(text, parse_float=Decimal)
    except (json.JSONDecodeError, TypeError) as e:
        raise CorruptSnapshotError(f"Snapshot is not valid JSON: {e}") from e
    except UnicodeDecodeError as e:
        raise CorruptSnapshotError(f"Snapshot is not valid text: {e}") from e
