"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Months are kept as JSON files on disk, or in memory for tests.
"""

from household_ledger.services.storage.interface import (
    AuditStorageInterface,
    MonthStorageInterface,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from household_ledger.services.storage.json_file import (
    JsonFileMonthStorage,
    JsonLinesAuditStorage,
)
from household_ledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryMonthStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "MonthStorageInterface",
    # Exceptions
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryMonthStorage",
    "JsonFileMonthStorage",
    "JsonLinesAuditStorage",
]
