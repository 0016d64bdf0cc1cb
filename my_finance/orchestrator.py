"""
Main Orchestrator for My Finance

This module ties the components together and defines the flows that
span more than one of them:
1. Startup (snapshot storage -> ledger store, with a safe fallback)
2. Rate refresh (rate provider -> store -> storage)
3. Export / import of the whole ledger as a JSON backup
4. Reset and the dashboard figures

DESIGN DECISION: Nothing here is fatal.
- A missing or unreadable snapshot starts the user with an empty ledger
- A failed rate fetch still yields a usable (fallback) rate
- A bad import file leaves the current ledger untouched
Every one of these is logged and audited.
"""

from decimal import Decimal
from typing import Optional, Union

import structlog

from my_finance.audit import AuditLogger
from my_finance.config import Settings, get_settings
from my_finance.engine import wealth_breakdown
from my_finance.ledger import LedgerStore
from my_finance.ledger.operations import LedgerOperations
from my_finance.models.audit import AuditEvent
from my_finance.models.reports import WealthBreakdown
from my_finance.services.rates import (
    ExchangeRateProvider,
    FastForexRateProvider,
    StaticRateProvider,
)
from my_finance.services.storage import (
    JsonFileSnapshotStorage,
    JsonLinesAuditStorage,
    SnapshotStorageInterface,
    StorageError,
)
from my_finance.services.storage.snapshot import (
    dumps,
    export_payload,
    import_payload,
    loads,
)


logger = structlog.get_logger(__name__)


def _describe(storage: SnapshotStorageInterface) -> str:
    return str(getattr(storage, "path", type(storage).__name__))


class FinanceApp:
    """
    The application as the UI sees it.

    `operations` is the way to change records; everything read-only goes
    through `store` and the engine functions.
    """

    def __init__(
        self,
        store: LedgerStore,
        storage: Optional[SnapshotStorageInterface] = None,
        rate_provider: Optional[ExchangeRateProvider] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._rate_provider = rate_provider or StaticRateProvider()
        self._audit_logger = audit_logger or AuditLogger()
        self.operations = LedgerOperations(
            store,
            storage=storage,
            audit_logger=self._audit_logger,
        )

    @classmethod
    def load(
        cls,
        storage: SnapshotStorageInterface,
        rate_provider: Optional[ExchangeRateProvider] = None,
        audit_logger: Optional[AuditLogger] = None,
    ) -> "FinanceApp":
        """
        Start from whatever the storage holds.

        No snapshot yet, or one that cannot be read, means an empty ledger
        with the seed categories.
        """
        audit_logger = audit_logger or AuditLogger()
        source = _describe(storage)

        store: Optional[LedgerStore] = None
        try:
            store = storage.load()
        except StorageError as e:
            logger.error("snapshot_load_failed", source=source, error=str(e))
            audit_logger.log_snapshot_load_failed(source, str(e))

        if store is None:
            store = LedgerStore.empty()
        else:
            audit_logger.log_snapshot_loaded(source, store.counts())

        return cls(
            store,
            storage=storage,
            rate_provider=rate_provider,
            audit_logger=audit_logger,
        )

    @property
    def store(self) -> LedgerStore:
        return self.operations.store

    # -------------------------------------------------------------------------
    # Exchange rate
    # -------------------------------------------------------------------------

    async def refresh_exchange_rate(self) -> Decimal:
        """
        Fetch the current EUR to RSD rate, record it and save.

        Returns the rate now in effect.
        """
        rate = await self._rate_provider.fetch_rate()
        result = self.operations.set_exchange_rate(
            rate,
            is_fallback=self._rate_provider.last_was_fallback,
        )
        if not result.accepted:
            logger.warning("exchange_rate_rejected", rate=str(rate), issues=result.messages)
        return self.store.exchange_rate

    # -------------------------------------------------------------------------
    # Backup
    # -------------------------------------------------------------------------

    def export_json(self) -> str:
        """The whole ledger as a downloadable JSON document."""
        text = dumps(export_payload(self.store, self.store.now()))
        self._audit_logger.log_data_exported(self.store.counts())
        return text

    def import_json(self, text: Union[str, bytes]) -> bool:
        """
        Replace the ledger with the contents of a backup (text or raw file bytes).

        The exchange rate, its update time and the last salary entry
        belong to this device and are kept. Returns False (and changes
        nothing) if the document cannot be read.
        """
        try:
            imported = import_payload(loads(text))
        except StorageError as e:
            logger.warning("import_failed", error=str(e))
            self._audit_logger.log_import_failed(str(e))
            return False

        current = self.store
        imported.exchange_rate = current.exchange_rate
        imported.last_rate_update = current.last_rate_update
        imported.last_salary_entry = current.last_salary_entry
        imported.set_clock(current.clock)

        self.operations.replace_store(imported)
        self._audit_logger.log_data_imported(imported.counts())
        return True

    def reset(self) -> bool:
        """Drop every record and start over with the seed categories."""
        empty = LedgerStore.empty()
        empty.set_clock(self.store.clock)
        saved = self.operations.replace_store(empty)
        self._audit_logger.log_data_reset()
        return saved

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    def dashboard(self) -> WealthBreakdown:
        """Wealth figures at the rate currently saved in the ledger."""
        return wealth_breakdown(self.store)

    def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        return self._audit_logger.recent_events(limit=limit)


def create_app_components(settings: Optional[Settings] = None) -> FinanceApp:
    """
    Factory function to build the application from settings.

    Args:
        settings: Settings to use. Defaults to get_settings().

    Returns:
        A FinanceApp loaded from the configured data file
    """
    settings = settings or get_settings()

    audit_storage = None
    if settings.storage.audit_log_path is not None:
        audit_storage = JsonLinesAuditStorage(settings.storage.audit_log_path)
    audit_logger = AuditLogger(audit_storage)

    rate_provider = FastForexRateProvider(
        api_key=settings.fastforex.api_key,
        base_url=settings.fastforex.base_url,
        timeout_seconds=settings.fastforex.timeout_seconds,
        fallback_rate=settings.app.fallback_exchange_rate,
    )

    return FinanceApp.load(
        JsonFileSnapshotStorage(settings.storage.data_path),
        rate_provider=rate_provider,
        audit_logger=audit_logger,
    )
