"""
Data Models Package

This package contains all Pydantic models used in the Household Ledger.
All data flowing through the system must conform to these schemas.
"""

from household_ledger.models.ledger import (
    BalanceState,
    BudgetRow,
    CategoryShare,
    LedgerSnapshot,
    LedgerSummary,
    MonthRecord,
    RowKind,
    RowNotFoundError,
    ValidationIssue,
    ValidationResult,
)
from household_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "BalanceState",
    "BudgetRow",
    "CategoryShare",
    "LedgerSnapshot",
    "LedgerSummary",
    "MonthRecord",
    "RowKind",
    "RowNotFoundError",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
