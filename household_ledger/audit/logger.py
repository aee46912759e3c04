"""
Audit Logger

DESIGN DECISION: Every significant ledger action is logged.
This provides:
1. A trace of how each month's starting balance came to be
2. Visibility into saves that failed and were kept in memory only
3. Debugging capability

The audit logger:
- Is async, like the storage it writes to
- Gracefully handles failures (doesn't crash the engine if logging fails)
- Supports correlation IDs to trace related events
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from household_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from household_ledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.
    
    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
    """
    
    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.
        
        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("household_ledger.audit")
    
    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.
        
        Always logs locally. Persists to storage if available.
        
        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()
        
        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)
        
        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False
        
        return True
    
    async def log_month_loaded(
        self,
        storage_key: str,
        balance_state: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a month read that needed no resolution."""
        await self.log(AuditEventBuilder.month_loaded(storage_key, balance_state, correlation_id))
    
    async def log_month_created(
        self,
        storage_key: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a month created from the default template."""
        await self.log(AuditEventBuilder.month_created(storage_key, correlation_id))
    
    async def log_starting_balance_resolved(
        self,
        storage_key: str,
        starting_balance: Decimal,
        balance_state: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log the one-time resolution of a starting balance."""
        event = AuditEventBuilder.starting_balance_resolved(
            storage_key=storage_key,
            starting_balance=starting_balance,
            balance_state=balance_state,
            correlation_id=correlation_id,
        )
        await self.log(event)
    
    async def log_month_saved(
        self,
        storage_key: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a month save."""
        await self.log(AuditEventBuilder.month_saved(storage_key, correlation_id))
    
    async def log_save_failed(
        self,
        storage_key: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected save."""
        await self.log(AuditEventBuilder.save_failed(storage_key, error_message, correlation_id))
    
    async def log_load_failed(
        self,
        storage_key: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an unreadable month."""
        await self.log(AuditEventBuilder.load_failed(storage_key, error_message, correlation_id))
    
    async def log_navigated(
        self,
        from_key: str,
        to_key: str,
        direction: str,
        correlation_id: UUID,
    ) -> None:
        """Log a month change."""
        event = AuditEventBuilder.navigated(
            from_key=from_key,
            to_key=to_key,
            direction=direction,
            correlation_id=correlation_id,
        )
        await self.log(event)
    
    async def log_row_changed(
        self,
        event_type: AuditEventType,
        storage_key: str,
        kind: str,
        row_id: int,
        changes: Optional[dict] = None,
    ) -> None:
        """Log a row being added, removed or updated."""
        event = AuditEventBuilder.row_changed(
            event_type=event_type,
            storage_key=storage_key,
            kind=kind,
            row_id=row_id,
            changes=changes,
        )
        await self.log(event)
    
    async def log_numeric_parse_anomaly(
        self,
        storage_key: str,
        issues: list[dict],
    ) -> None:
        """Log amounts that could not be read as numbers."""
        await self.log(AuditEventBuilder.numeric_parse_anomaly(storage_key, issues))
    
    async def log_budget_data_cleared(
        self,
        storage_keys: list[str],
    ) -> None:
        """Log an administrative clear."""
        await self.log(AuditEventBuilder.budget_data_cleared(storage_keys))
    
    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.
    
    Use this at the start of a navigation step and pass it through
    the flush and the resolution that follow.
    """
    return uuid4()
