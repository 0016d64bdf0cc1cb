"""
Audit Models for My Finance

Every change to the ledger is logged for audit purposes.
This provides:
1. Traceability of what was added, changed or deleted and when
2. Debugging information when loading or saving goes wrong
3. Ability to reconstruct history after a bad import

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from my_finance.models.ledger import utc_now


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Ledger mutations
    RECORD_ADDED = "record_added"
    RECORD_DELETED = "record_deleted"
    BUDGET_UPSERTED = "budget_upserted"
    GOAL_UPDATED = "goal_updated"
    OPERATION_DECLINED = "operation_declined"

    # Persistence
    SNAPSHOT_LOADED = "snapshot_loaded"
    SNAPSHOT_LOAD_FAILED = "snapshot_load_failed"
    SAVE_FAILED = "save_failed"
    DATA_EXPORTED = "data_exported"
    DATA_IMPORTED = "data_imported"
    IMPORT_FAILED = "import_failed"
    DATA_RESET = "data_reset"

    # Exchange rate
    RATE_UPDATED = "rate_updated"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what record is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Collection of the record (e.g., 'card_transaction', 'savings_goal')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the record this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_added("card_transaction", 7, {...})
        event = AuditEventBuilder.save_failed("disk full")
    """

    @staticmethod
    def record_added(
        entity_type: str,
        entity_id: Any,
        details: dict[str, Any],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_ADDED,
            entity_type=entity_type,
            entity_id=str(entity_id),
            description=f"Added {entity_type.replace('_', ' ')} {entity_id}",
            details=details,
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(entity_type: str, entity_id: Any) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_type=entity_type,
            entity_id=str(entity_id),
            description=f"Deleted {entity_type.replace('_', ' ')} {entity_id}",
            is_user_action=True,
        )

    @staticmethod
    def budget_upserted(
        budget_id: int,
        category_id: str,
        amount: str,
        replaced: bool,
    ) -> AuditEvent:
        action = "Replaced" if replaced else "Set"
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPSERTED,
            entity_type="monthly_budget",
            entity_id=str(budget_id),
            description=f"{action} budget for {category_id}: {amount}",
            details={
                "category_id": category_id,
                "amount": amount,
                "replaced": replaced,
            },
            is_user_action=True,
        )

    @staticmethod
    def goal_updated(goal_id: int, current_amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_UPDATED,
            entity_type="savings_goal",
            entity_id=str(goal_id),
            description=f"Savings goal {goal_id} now at {current_amount}",
            details={"current_amount": current_amount},
            is_user_action=True,
        )

    @staticmethod
    def operation_declined(
        operation: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_DECLINED,
            severity=AuditSeverity.WARNING,
            description=f"Declined {operation} with {len(issues)} issues",
            details={
                "operation": operation,
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def snapshot_loaded(source: str, counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            description=f"Snapshot loaded from {source}",
            details={"source": source, "counts": counts},
        )

    @staticmethod
    def snapshot_load_failed(source: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Could not load snapshot from {source}, starting empty",
            error_message=error_message,
            details={"source": source},
        )

    @staticmethod
    def save_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            description="Snapshot save failed",
            error_message=error_message,
        )

    @staticmethod
    def data_exported(counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_EXPORTED,
            description="Data exported",
            details={"counts": counts},
            is_user_action=True,
        )

    @staticmethod
    def data_imported(counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_IMPORTED,
            description="Data imported, ledger replaced",
            details={"counts": counts},
            is_user_action=True,
        )

    @staticmethod
    def import_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_FAILED,
            severity=AuditSeverity.WARNING,
            description="Import rejected, ledger unchanged",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def data_reset() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_RESET,
            severity=AuditSeverity.WARNING,
            description="All ledger data erased",
            is_user_action=True,
        )

    @staticmethod
    def rate_updated(rate: str, is_fallback: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATE_UPDATED,
            severity=AuditSeverity.WARNING if is_fallback else AuditSeverity.INFO,
            description=f"Exchange rate set to 1 EUR = {rate} RSD",
            details={"rate": rate, "is_fallback": is_fallback},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
