"""
Abstract Storage Interface

DESIGN DECISION: The ledger only needs a key-value store.
This allows us to:
1. Keep months in plain JSON files on disk
2. Use in-memory storage for testing
3. Swap in another backend without touching the engine

The interface is intentionally tiny: load, save and delete one month by key.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from household_ledger.models.audit import AuditEvent
from household_ledger.models.ledger import MonthRecord


class MonthStorageInterface(ABC):
    """
    Abstract interface for month record storage.
    
    Keys are the strings produced by household_ledger.keys.month_key.
    """
    
    @abstractmethod
    async def load_month(self, key: str) -> Optional[MonthRecord]:
        """
        Load a month record.
        
        Args:
            key: The month's storage key
            
        Returns:
            The record if stored, None if the month was never saved
            
        Raises:
            StorageReadError: If a record exists but cannot be read
        """
        pass
    
    @abstractmethod
    async def save_month(self, key: str, record: MonthRecord) -> bool:
        """
        Save a month record, replacing any previous version.
        
        Args:
            key: The month's storage key
            record: The record to persist
            
        Returns:
            True if saved successfully
            
        Raises:
            StorageWriteError: If the store rejects the write
        """
        pass
    
    @abstractmethod
    async def delete_month(self, key: str) -> bool:
        """
        Delete a month record.
        
        Returns:
            True if a record was deleted, False if none existed
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.
    
    Audit logs are append-only - we never delete or modify them.
    """
    
    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.
        
        Returns:
            True if logged successfully
        """
        pass
    
    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one navigation step).
        
        Returns:
            List of related events in chronological order
        """
        pass
    
    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.
        
        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """A stored record exists but is corrupt or unreadable."""
    pass


class StorageWriteError(StorageError):
    """The store rejected a write."""
    pass

