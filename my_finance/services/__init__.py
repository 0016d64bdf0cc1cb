"""Services package."""

from my_finance.services.rates import (
    ExchangeRateProvider,
    FastForexRateProvider,
    RateFetchError,
    StaticRateProvider,
)
from my_finance.services.storage import (
    AuditStorageInterface,
    CorruptSnapshotError,
    InMemorySnapshotStorage,
    JsonFileSnapshotStorage,
    JsonLinesAuditStorage,
    SnapshotStorageInterface,
    StorageError,
)

__all__ = [
    # Rate services
    "ExchangeRateProvider",
    "FastForexRateProvider",
    "RateFetchError",
    "StaticRateProvider",
    # Storage services
    "AuditStorageInterface",
    "CorruptSnapshotError",
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
    "JsonLinesAuditStorage",
    "SnapshotStorageInterface",
    "StorageError",
]
