"""
In-Memory Storage Implementation

Holds each month as its serialized JSON string rather than as a live
object, so a save followed by a load goes through exactly the same
serialization as the file store (an unset starting balance stays unset).

Used for tests and for the "memory" storage backend.
"""

from typing import Optional
from uuid import UUID

from household_ledger.models.audit import AuditEvent
from household_ledger.models.ledger import MonthRecord
from household_ledger.services.storage.interface import (
    AuditStorageInterface,
    MonthStorageInterface,
    StorageReadError,
)


class InMemoryMonthStorage(MonthStorageInterface):
    """Dictionary-backed month storage."""
    
    def __init__(self, initial: Optional[dict[str, str]] = None):
        """
        Args:
            initial: Raw stored documents by key, e.g. for seeding tests
        """
        self._data: dict[str, str] = dict(initial or {})
    
    @property
    def raw(self) -> dict[str, str]:
        """The stored documents, keyed by storage key."""
        return self._data
    
    async def load_month(self, key: str) -> Optional[MonthRecord]:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return MonthRecord.from_storage_json(raw)
        except ValueError as e:
            raise StorageReadError(f"Corrupt month record {key}: {e}")
    
    async def save_month(self, key: str, record: MonthRecord) -> bool:
        self._data[key] = record.to_storage_json()
        return True
    
    async def delete_month(self, key: str) -> bool:
        return self._data.pop(key, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """List-backed audit log."""
    
    def __init__(self):
        self.events: list[AuditEvent] = []
    
    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True
    
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self.events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events
    
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
