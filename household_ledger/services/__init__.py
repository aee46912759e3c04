"""Services package."""

from household_ledger.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryMonthStorage,
    JsonFileMonthStorage,
    JsonLinesAuditStorage,
    MonthStorageInterface,
    StorageError,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryMonthStorage",
    "JsonFileMonthStorage",
    "JsonLinesAuditStorage",
    "MonthStorageInterface",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
]
