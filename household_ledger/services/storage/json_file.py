"""
JSON File Storage Implementation

DESIGN DECISION: Each month is one small JSON document on disk, named
after its storage key:

    <data_dir>/budget-data-2025-0.json

TRADEOFFS:
- One file per key keeps a corrupt month from taking the others with it
- Writes go to a temporary file first and are swapped in with os.replace,
  so a crash mid-write leaves the previous version intact
- No locking; a single process is assumed to own the directory

Audit events go to a separate append-only JSON-lines file.
"""

import os
from pathlib import Path
from typing import Optional
from uuid import UUID

import structlog
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from household_ledger.config import StorageSettings
from household_ledger.models.audit import AuditEvent
from household_ledger.models.ledger import MonthRecord
from household_ledger.services.storage.interface import (
    AuditStorageInterface,
    MonthStorageInterface,
    StorageError,
    StorageReadError,
    StorageWriteError,
)


logger = structlog.get_logger(__name__)


class JsonFileMonthStorage(MonthStorageInterface):
    """
    Directory-backed month storage.
    
    Transient OS errors on write are retried with exponential backoff
    before being reported as StorageWriteError.
    """
    
    def __init__(
        self,
        data_dir: Optional[Path] = None,
        settings: Optional[StorageSettings] = None,
    ):
        self._settings = settings or StorageSettings()
        self._data_dir = Path(data_dir or self._settings.data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
    
    @property
    def data_dir(self) -> Path:
        return self._data_dir
    
    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}.json"
    
    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self._settings.write_retry_attempts),
            wait=wait_exponential(
                multiplier=self._settings.write_retry_min_wait,
                min=self._settings.write_retry_min_wait,
                max=self._settings.write_retry_max_wait,
            ),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
    
    def _write_atomic(self, path: Path, payload: str) -> None:
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, path)
    
    async def load_month(self, key: str) -> Optional[MonthRecord]:
        """Load a month, None if no file exists for it."""
        path = self._path_for(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageReadError(f"Failed to read month {key}: {e}")
        except UnicodeDecodeError as e:
            raise StorageReadError(f"Month file {key} is not valid UTF-8: {e}")
        
        try:
            return MonthRecord.from_storage_json(raw)
        except ValueError as e:
            raise StorageReadError(f"Corrupt month record {key}: {e}")
    
    async def save_month(self, key: str, record: MonthRecord) -> bool:
        """Write a month atomically, retrying transient failures."""
        path = self._path_for(key)
        payload = record.to_storage_json()
        try:
            async for attempt in self._retrying():
                with attempt:
                    self._write_atomic(path, payload)
        except OSError as e:
            raise StorageWriteError(f"Failed to save month {key}: {e}")
        
        logger.debug("month_written", key=key, path=str(path))
        return True
    
    async def delete_month(self, key: str) -> bool:
        """Delete a month's file."""
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete month {key}: {e}")
        return True


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Append-only audit log, one JSON object per line.
    
    Unreadable lines are skipped when reading back.
    """
    
    def __init__(self, path: Path):
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
    
    def _read_events(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        
        events = []
        with self._path.open(encoding="utf-8", errors="replace") as fh:
            for line in fh:
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(AuditEvent.model_validate_json(line))
                except ValidationError:
                    continue  # Skip malformed lines
        return events
    
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(event.model_dump_json() + "\n")
            return True
        except OSError as e:
            # Audit logging must not break the main flow
            logger.warning("audit_append_failed", error=str(e), path=str(self._path))
            return False
    
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        except OSError as e:
            raise StorageError(f"Failed to read audit log: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events
    
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        try:
            events = self._read_events()
        except OSError as e:
            raise StorageError(f"Failed to read audit log: {e}")
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
