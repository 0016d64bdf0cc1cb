"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements a local JSON file as the backend, but designed to be swappable.
"""

from my_finance.services.storage.interface import (
    AuditStorageInterface,
    CorruptSnapshotError,
    SnapshotStorageInterface,
    StorageError,
)
from my_finance.services.storage.json_file import (
    InMemorySnapshotStorage,
    JsonFileSnapshotStorage,
    JsonLinesAuditStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "SnapshotStorageInterface",
    # Exceptions
    "CorruptSnapshotError",
    "StorageError",
    # Implementations
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
    "JsonLinesAuditStorage",
]
