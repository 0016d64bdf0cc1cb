"""Shared fixtures: a ledger with a frozen clock, in-memory storage, a recording audit trail."""

from datetime import datetime

import pytest

from my_finance.audit import AuditLogger
from my_finance.ledger import LedgerStore
from my_finance.ledger.operations import LedgerOperations
from my_finance.models.audit import AuditEvent
from my_finance.services.storage import AuditStorageInterface, InMemorySnapshotStorage


FIXED_NOW = datetime(2024, 3, 15, 12, 0, 0)


class RecordingAuditStorage(AuditStorageInterface):
    """Keeps audit events in a list."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self.events))[:limit]

    def of_type(self, event_type) -> list[AuditEvent]:
        return [e for e in self.events if e.event_type == event_type]


@pytest.fixture
def store() -> LedgerStore:
    store = LedgerStore.empty()
    store.set_clock(lambda: FIXED_NOW)
    return store


@pytest.fixture
def storage() -> InMemorySnapshotStorage:
    return InMemorySnapshotStorage()


@pytest.fixture
def audit_storage() -> RecordingAuditStorage:
    return RecordingAuditStorage()


@pytest.fixture
def audit_logger(audit_storage) -> AuditLogger:
    return AuditLogger(audit_storage)


@pytest.fixture
def ops(store, storage, audit_logger) -> LedgerOperations:
    return LedgerOperations(store, storage=storage, audit_logger=audit_logger)


@pytest.fixture
def now() -> datetime:
    """The time the `store` fixture's clock is frozen at."""
    return FIXED_NOW
