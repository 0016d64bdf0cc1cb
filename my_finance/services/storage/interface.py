"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the local JSON file for another backend later
2. Use in-memory storage for testing
3. Keep ledger logic decoupled from storage implementation

The ledger is saved as ONE snapshot, overwritten on every change.
Last write wins; there is no partial-write recovery.
"""

from abc import ABC, abstractmethod
from typing import Optional

from my_finance.ledger.store import LedgerStore
from my_finance.models.audit import AuditEvent


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for ledger snapshot storage.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load(self) -> Optional[LedgerStore]:
        """
        Load the saved ledger.

        Returns:
            The ledger, or None if nothing has been saved yet

        Raises:
            CorruptSnapshotError: If saved data exists but cannot be read
            StorageError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    def save(self, store: LedgerStore) -> bool:
        """
        Overwrite the saved ledger with the full contents of `store`.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    def clear(self) -> bool:
        """
        Remove the saved ledger.

        Returns:
            True if something was removed
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptSnapshotError(StorageError):
    """Saved data exists but is not a readable ledger snapshot."""
    pass
