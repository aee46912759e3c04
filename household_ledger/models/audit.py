"""
Audit Models for Household Ledger

Every significant ledger action is recorded as an audit event:
1. When and how each month's starting balance was resolved
2. Every save, and every save that failed
3. Navigation between months and row edits

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Month resolution
    MONTH_LOADED = "month_loaded"
    MONTH_CREATED = "month_created"
    STARTING_BALANCE_RESOLVED = "starting_balance_resolved"
    
    # Persistence
    MONTH_SAVED = "month_saved"
    SAVE_FAILED = "save_failed"
    LOAD_FAILED = "load_failed"
    BUDGET_DATA_CLEARED = "budget_data_cleared"
    
    # User actions
    NAVIGATED = "navigated"
    ROW_ADDED = "row_added"
    ROW_REMOVED = "row_removed"
    ROW_UPDATED = "row_updated"
    
    # Data quality
    NUMERIC_PARSE_ANOMALY = "numeric_parse_anomaly"
    
    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.
    
    Month-related events use the month's storage key as entity_id.
    """
    
    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )
    
    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )
    
    # Context
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'month', 'row')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity, the storage key for months"
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events of one navigation)"
    )
    
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    
    error_message: Optional[str] = None
    
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )
    
    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.
    
    Usage:
        event = AuditEventBuilder.month_saved(storage_key, correlation_id)
    """
    
    @staticmethod
    def month_loaded(
        storage_key: str,
        balance_state: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_LOADED,
            severity=AuditSeverity.DEBUG,
            entity_type="month",
            entity_id=storage_key,
            correlation_id=correlation_id,
            description=f"Month loaded: {storage_key}",
            details={"balance_state": balance_state},
        )
    
    @staticmethod
    def month_created(
        storage_key: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_CREATED,
            entity_type="month",
            entity_id=storage_key,
            correlation_id=correlation_id,
            description=f"Month created from default template: {storage_key}",
        )
    
    @staticmethod
    def starting_balance_resolved(
        storage_key: str,
        starting_balance: Decimal,
        balance_state: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STARTING_BALANCE_RESOLVED,
            entity_type="month",
            entity_id=storage_key,
            correlation_id=correlation_id,
            description=f"Starting balance resolved to {starting_balance}",
            details={
                "starting_balance": str(starting_balance),
                "balance_state": balance_state,
            },
        )
    
    @staticmethod
    def month_saved(
        storage_key: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_SAVED,
            severity=AuditSeverity.DEBUG,
            entity_type="month",
            entity_id=storage_key,
            correlation_id=correlation_id,
            description=f"Month saved: {storage_key}",
        )
    
    @staticmethod
    def save_failed(
        storage_key: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="month",
            entity_id=storage_key,
            correlation_id=correlation_id,
            description=f"Failed to save month {storage_key}; keeping in-memory copy",
            error_message=error_message,
        )
    
    @staticmethod
    def load_failed(
        storage_key: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="month",
            entity_id=storage_key,
            correlation_id=correlation_id,
            description=f"Unreadable month {storage_key}; treating as absent",
            error_message=error_message,
        )
    
    @staticmethod
    def navigated(
        from_key: str,
        to_key: str,
        direction: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NAVIGATED,
            entity_type="month",
            entity_id=to_key,
            correlation_id=correlation_id,
            description=f"Navigated {direction} from {from_key} to {to_key}",
            details={
                "from": from_key,
                "to": to_key,
                "direction": direction,
            },
            is_user_action=True,
        )
    
    @staticmethod
    def row_changed(
        event_type: AuditEventType,
        storage_key: str,
        kind: str,
        row_id: int,
        changes: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="row",
            entity_id=f"{storage_key}/{kind}/{row_id}",
            description=f"{kind.capitalize()} row {row_id} {event_type.value.split('_')[-1]}",
            details=changes or {},
            is_user_action=True,
        )
    
    @staticmethod
    def numeric_parse_anomaly(
        storage_key: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NUMERIC_PARSE_ANOMALY,
            severity=AuditSeverity.WARNING,
            entity_type="month",
            entity_id=storage_key,
            description=f"{len(issues)} non-numeric amount(s) counted as zero",
            details={"issues": issues},
        )
    
    @staticmethod
    def budget_data_cleared(
        storage_keys: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_DATA_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="month",
            description=f"Cleared {len(storage_keys)} month(s) of budget data",
            details={"storage_keys": storage_keys},
            is_user_action=True,
        )
    
    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
