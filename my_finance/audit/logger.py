"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged.
This provides:
1. Traceability of every add, delete and update
2. Debugging capability when loading or saving fails
3. A history the user can inspect after an import

The audit logger:
- Is synchronous, like the ledger operations that call it
- Gracefully handles failures (doesn't crash the app if logging fails)
"""

import logging
from typing import Any, Optional

import structlog

from my_finance.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from my_finance.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(debug: bool = False) -> None:
    """Route structlog output through the stdlib root logger."""
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("my_finance.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent persisted events, newest first. Empty without storage."""
        if not self._storage:
            return []
        return self._storage.get_recent_events(limit=limit)

    def log_record_added(
        self,
        entity_type: str,
        entity_id: Any,
        details: dict[str, Any],
    ) -> None:
        self.log(AuditEventBuilder.record_added(entity_type, entity_id, details))

    def log_record_deleted(self, entity_type: str, entity_id: Any) -> None:
        self.log(AuditEventBuilder.record_deleted(entity_type, entity_id))

    def log_budget_upserted(
        self,
        budget_id: int,
        category_id: str,
        amount: str,
        replaced: bool,
    ) -> None:
        self.log(AuditEventBuilder.budget_upserted(budget_id, category_id, amount, replaced))

    def log_goal_updated(self, goal_id: int, current_amount: str) -> None:
        self.log(AuditEventBuilder.goal_updated(goal_id, current_amount))

    def log_operation_declined(self, operation: str, issues: list[dict]) -> None:
        """Log a ledger operation rejected by validation."""
        self.log(AuditEventBuilder.operation_declined(operation, issues))

    def log_snapshot_loaded(self, source: str, counts: dict[str, int]) -> None:
        self.log(AuditEventBuilder.snapshot_loaded(source, counts))

    def log_snapshot_load_failed(self, source: str, error_message: str) -> None:
        self.log(AuditEventBuilder.snapshot_load_failed(source, error_message))

    def log_save_failed(self, error_message: str) -> None:
        self.log(AuditEventBuilder.save_failed(error_message))

    def log_data_exported(self, counts: dict[str, int]) -> None:
        self.log(AuditEventBuilder.data_exported(counts))

    def log_data_imported(self, counts: dict[str, int]) -> None:
        self.log(AuditEventBuilder.data_imported(counts))

    def log_import_failed(self, error_message: str) -> None:
        self.log(AuditEventBuilder.import_failed(error_message))

    def log_data_reset(self) -> None:
        self.log(AuditEventBuilder.data_reset())

    def log_rate_updated(self, rate: str, is_fallback: bool) -> None:
        self.log(AuditEventBuilder.rate_updated(rate, is_fallback))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(error_type, error_message, details))
