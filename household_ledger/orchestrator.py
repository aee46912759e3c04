"""
Main Orchestrator for Household Ledger

This module ties together all the components and defines the
month-to-month flow:
1. Startup (resolve the calendar's current month)
2. Navigation (flush the month being left → resolve the month entered)
3. Row editing on the current month

DESIGN DECISION: The navigator owns the cursor. Nothing else decides
which month is current, and every month change goes through:

    flush outgoing month → resolve incoming month → replace snapshot

The flush always completes before the incoming month is read, so a
carry-over never sees stale data for the month just left.
"""

from datetime import date
from pathlib import Path
from typing import Optional
from uuid import UUID

import structlog

from household_ledger.audit import AuditLogger, create_correlation_id
from household_ledger.config import LedgerSettings, StorageSettings, get_settings
from household_ledger.keys import MonthKey, month_key
from household_ledger.ledger import CarryOverResolver, current_balance, summarize
from household_ledger.models.audit import AuditEventType
from household_ledger.models.ledger import (
    BudgetRow,
    LedgerSnapshot,
    LedgerSummary,
    RowKind,
)
from household_ledger.services.storage import (
    InMemoryAuditStorage,
    InMemoryMonthStorage,
    JsonFileMonthStorage,
    JsonLinesAuditStorage,
    MonthStorageInterface,
    StorageError,
)
from household_ledger.validation import SnapshotValidator


logger = structlog.get_logger(__name__)


class NavigatorNotInitializedError(RuntimeError):
    """The navigator was used before initialize() was awaited."""
    pass


class MonthNavigator:
    """
    Navigation controller over a single "current month" cursor.
    
    States:
        uninitialized → (initialize) → current month set
        current month → (go_to_previous / go_to_next) → adjacent month
    
    The cursor wraps within the year it was initialized in.
    """
    
    def __init__(
        self,
        resolver: CarryOverResolver,
        validator: Optional[SnapshotValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._resolver = resolver
        self._validator = validator or SnapshotValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._snapshot: Optional[LedgerSnapshot] = None
    
    @property
    def settings(self) -> LedgerSettings:
        return self._resolver.settings
    
    @property
    def is_initialized(self) -> bool:
        return self._snapshot is not None
    
    @property
    def cursor(self) -> Optional[MonthKey]:
        """The current month, None before initialize()."""
        return self._snapshot.key if self._snapshot else None
    
    @property
    def snapshot(self) -> LedgerSnapshot:
        if self._snapshot is None:
            raise NavigatorNotInitializedError("Call initialize() before using the ledger")
        return self._snapshot
    
    async def initialize(self, today: Optional[date] = None) -> LedgerSnapshot:
        """
        Open the month containing today (or the given date).
        
        This is a plain load, not a navigation: no month is flushed and
        the month's balance is resolved from storage alone.
        """
        key = MonthKey.for_date(today or date.today())
        correlation_id = create_correlation_id()
        self._snapshot = await self._resolver.resolve(key, correlation_id=correlation_id)
        return self._snapshot
    
    async def flush(self, correlation_id: Optional[UUID] = None) -> bool:
        """
        Persist the current month as it is in memory.
        
        The starting balance is written back unchanged; flushing never
        recomputes it. Returns False if the store refused the write.
        """
        snapshot = self.snapshot
        
        result = self._validator.validate(snapshot.key, snapshot.record)
        if result.warnings:
            await self._audit_logger.log_numeric_parse_anomaly(
                self._resolver.storage_key(snapshot.key),
                [issue.model_dump(mode="json") for issue in result.warnings],
            )
        
        return await self._resolver.save(snapshot.key, snapshot.record, correlation_id)
    
    async def go_to_previous(self) -> LedgerSnapshot:
        """
        Move one month back.
        
        The month being left is saved as-is. The previous month's stored
        balance is only read, never touched.
        """
        outgoing = self.snapshot
        correlation_id = create_correlation_id()
        
        await self.flush(correlation_id)
        target = outgoing.key.previous()
        self._snapshot = await self._resolver.resolve(target, correlation_id=correlation_id)
        
        await self._audit_logger.log_navigated(
            from_key=self._resolver.storage_key(outgoing.key),
            to_key=self._resolver.storage_key(target),
            direction="previous",
            correlation_id=correlation_id,
        )
        return self._snapshot
    
    async def go_to_next(self) -> LedgerSnapshot:
        """
        Move one month forward, carrying the ending balance over.
        
        The ending balance only lands in the next month if that month has
        no starting balance yet. Moving from December into January
        applies the anchor instead.
        """
        outgoing = self.snapshot
        correlation_id = create_correlation_id()
        
        await self.flush(correlation_id)
        ending = current_balance(outgoing)
        target = outgoing.key.next()
        self._snapshot = await self._resolver.resolve(
            target,
            carry_in=ending,
            correlation_id=correlation_id,
        )
        
        await self._audit_logger.log_navigated(
            from_key=self._resolver.storage_key(outgoing.key),
            to_key=self._resolver.storage_key(target),
            direction="next",
            correlation_id=correlation_id,
        )
        return self._snapshot
    
    async def _after_edit(
        self,
        event_type: AuditEventType,
        kind: RowKind,
        row_id: int,
        changes: Optional[dict] = None,
    ) -> None:
        await self._audit_logger.log_row_changed(
            event_type=event_type,
            storage_key=self._resolver.storage_key(self.snapshot.key),
            kind=kind.value,
            row_id=row_id,
            changes=changes,
        )
        if self.settings.autosave_on_edit:
            await self.flush()
    
    async def add_row(self, kind: RowKind, label: Optional[str] = None) -> BudgetRow:
        """Add an empty row to the current month."""
        if label is None:
            if kind == RowKind.EXPENSE:
                label = self.settings.new_expense_label
            else:
                label = self.settings.new_income_label
        row = self.snapshot.add_row(kind, label)
        await self._after_edit(AuditEventType.ROW_ADDED, kind, row.id, {"label": row.label})
        return row
    
    async def remove_row(self, kind: RowKind, row_id: int) -> BudgetRow:
        """Remove a row from the current month. Raises RowNotFoundError."""
        row = self.snapshot.remove_row(kind, row_id)
        await self._after_edit(AuditEventType.ROW_REMOVED, kind, row_id)
        return row
    
    async def update_row(
        self,
        kind: RowKind,
        row_id: int,
        *,
        label: Optional[str] = None,
        planned: Optional[str] = None,
        actual: Optional[str] = None,
    ) -> BudgetRow:
        """Edit a row of the current month. Raises RowNotFoundError."""
        row = self.snapshot.update_row(kind, row_id, label=label, planned=planned, actual=actual)
        changes = {
            name: value
            for name, value in (("label", label), ("planned", planned), ("actual", actual))
            if value is not None
        }
        await self._after_edit(AuditEventType.ROW_UPDATED, kind, row_id, changes)
        return row
    
    def summary(self) -> LedgerSummary:
        """Totals for the current month."""
        return summarize(self.snapshot)


async def clear_budget_data(
    storage: MonthStorageInterface,
    settings: Optional[LedgerSettings] = None,
    year: Optional[int] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> list[str]:
    """
    Delete every month of a year and of the year before it.
    
    Administrative only; this sits outside the navigation flow and
    leaves any open navigator's in-memory month alone.
    
    Returns:
        Storage keys that were actually deleted
    """
    settings = settings or LedgerSettings()
    if year is None:
        year = date.today().year
    audit_logger = audit_logger or AuditLogger()
    
    deleted = []
    for target_year in (year, year - 1):
        for month_index in range(12):
            key = month_key(month_index, target_year, settings.storage_key_prefix)
            try:
                removed = await storage.delete_month(key)
            except StorageError as e:
                await audit_logger.log_error(
                    error_type="clear_budget_data_failed",
                    error_message=str(e),
                    details={"storage_key": key, "deleted": deleted},
                )
                raise
            if removed:
                deleted.append(key)
    
    await audit_logger.log_budget_data_cleared(deleted)
    return deleted


def create_ledger_components(
    use_storage: bool = True,
) -> tuple[MonthNavigator, MonthStorageInterface]:
    """
    Factory function to create all application components.
    
    Args:
        use_storage: Whether to keep months on disk.
                    Set to False to run fully in memory.
                    
    Returns:
        (navigator, month_storage)
    """
    settings = get_settings()
    ledger_settings = settings.ledger
    storage_settings: StorageSettings = settings.storage
    
    month_storage: MonthStorageInterface
    audit_storage = None
    
    if use_storage and storage_settings.backend == "json_file":
        try:
            month_storage = JsonFileMonthStorage(settings=storage_settings)
            if storage_settings.audit_log_path:
                audit_storage = JsonLinesAuditStorage(Path(storage_settings.audit_log_path))
        except (OSError, StorageError) as e:
            # Storage not usable - continue in memory
            logger.warning("storage_unavailable", error=str(e), backend=storage_settings.backend)
            month_storage = InMemoryMonthStorage()
            audit_storage = None
    else:
        month_storage = InMemoryMonthStorage()
        if use_storage:
            audit_storage = InMemoryAuditStorage()
    
    audit_logger = AuditLogger(audit_storage)
    resolver = CarryOverResolver(
        storage=month_storage,
        settings=ledger_settings,
        audit_logger=audit_logger,
    )
    navigator = MonthNavigator(
        resolver=resolver,
        audit_logger=audit_logger,
    )
    
    return navigator, month_storage
