"""
Carry-Over Resolver

Decides a month's starting balance. A month is in one of three states:

    UNRESOLVED             no starting balance stored yet
    ANCHOR_RESOLVED        first month of the year, opened at the anchor
    CARRIED_OVER_RESOLVED  opened at the previous month's ending balance

resolve_month() is the pure transition: given what is stored for the
month and its predecessor, it returns the resolved record and whether
anything changed. CarryOverResolver wraps it with the storage reads and
the single write.

GUARANTEES:
- A stored starting balance is returned as-is, never recomputed
- January never looks at December
- Only the immediate predecessor is consulted
- Existing rows are kept when a balance is filled in; the default
  template is used only for months that were never stored
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from household_ledger.audit import AuditLogger
from household_ledger.config import LedgerSettings
from household_ledger.keys import MonthKey
from household_ledger.ledger.aggregates import ending_balance
from household_ledger.models.ledger import (
    BalanceState,
    BudgetRow,
    LedgerSnapshot,
    MonthRecord,
)
from household_ledger.services.storage import (
    MonthStorageInterface,
    StorageReadError,
    StorageWriteError,
)


class Resolution(BaseModel):
    """Outcome of resolving one month."""
    
    record: MonthRecord
    state: BalanceState
    created: bool = False
    changed: bool = False


def default_month_record(settings: LedgerSettings) -> MonthRecord:
    """A brand-new month: template rows, no starting balance."""
    return MonthRecord(
        expense_rows=[
            BudgetRow(id=i, label=label)
            for i, label in enumerate(settings.default_expense_labels_list, start=1)
        ],
        income_rows=[
            BudgetRow(id=i, label=label)
            for i, label in enumerate(settings.default_income_labels_list, start=1)
        ],
    )


def balance_state_for(key: MonthKey, record: Optional[MonthRecord]) -> BalanceState:
    """State of a stored month, derived from its key and balance."""
    if record is None or record.starting_balance is None:
        return BalanceState.UNRESOLVED
    if key.is_anchor_month:
        return BalanceState.ANCHOR_RESOLVED
    return BalanceState.CARRIED_OVER_RESOLVED


def resolve_month(
    key: MonthKey,
    record: Optional[MonthRecord],
    predecessor: Optional[MonthRecord],
    settings: LedgerSettings,
    carry_in: Optional[Decimal] = None,
) -> Resolution:
    """
    Resolve a month's starting balance.
    
    Args:
        key: The month being resolved
        record: What is stored for it, None if never stored
        predecessor: What is stored for the previous month, None if nothing
        settings: Anchor balance and default template
        carry_in: Ending balance handed over by forward navigation. When
                  given it replaces the predecessor lookup.
    """
    state = balance_state_for(key, record)
    if state != BalanceState.UNRESOLVED:
        return Resolution(record=record, state=state)
    
    created = record is None
    base = default_month_record(settings) if created else record
    
    if key.is_anchor_month:
        starting_balance = settings.anchor_balance
        state = BalanceState.ANCHOR_RESOLVED
    else:
        if carry_in is not None:
            starting_balance = carry_in
        elif predecessor is not None:
            starting_balance = ending_balance(predecessor, settings.anchor_balance)
        else:
            starting_balance = settings.anchor_balance
        state = BalanceState.CARRIED_OVER_RESOLVED
    
    resolved = base.model_copy(update={"starting_balance": starting_balance})
    return Resolution(record=resolved, state=state, created=created, changed=True)


class CarryOverResolver:
    """
    Loads a month, resolves its starting balance once, and persists it.
    
    Storage problems never escape: an unreadable month is treated as
    absent, and a failed save is logged while the resolved month is
    still returned for use in memory.
    """
    
    def __init__(
        self,
        storage: MonthStorageInterface,
        settings: Optional[LedgerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._settings = settings or LedgerSettings()
        self._audit_logger = audit_logger or AuditLogger()
    
    @property
    def settings(self) -> LedgerSettings:
        return self._settings
    
    def storage_key(self, key: MonthKey) -> str:
        return key.storage_key(self._settings.storage_key_prefix)
    
    async def load(
        self,
        key: MonthKey,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[MonthRecord]:
        """Read a month, None if absent or unreadable."""
        storage_key = self.storage_key(key)
        try:
            return await self._storage.load_month(storage_key)
        except StorageReadError as e:
            await self._audit_logger.log_load_failed(storage_key, str(e), correlation_id)
            return None
    
    async def save(
        self,
        key: MonthKey,
        record: MonthRecord,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Write a month. Returns False (after logging) if the store refuses."""
        storage_key = self.storage_key(key)
        try:
            saved = await self._storage.save_month(storage_key, record)
        except StorageWriteError as e:
            await self._audit_logger.log_save_failed(storage_key, str(e), correlation_id)
            return False
        if saved:
            await self._audit_logger.log_month_saved(storage_key, correlation_id)
        return saved
    
    async def resolve(
        self,
        key: MonthKey,
        carry_in: Optional[Decimal] = None,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerSnapshot:
        """
        Produce the snapshot for a month with its starting balance resolved.
        
        Args:
            key: Month to resolve
            carry_in: Ending balance of the month navigated away from, used
                      instead of reading the predecessor from storage
            correlation_id: Ties the resulting audit events together
        """
        storage_key = self.storage_key(key)
        record = await self.load(key, correlation_id)
        
        predecessor = None
        needs_predecessor = (
            balance_state_for(key, record) == BalanceState.UNRESOLVED
            and not key.is_anchor_month
            and carry_in is None
        )
        if needs_predecessor:
            predecessor = await self.load(key.previous(), correlation_id)
        
        resolution = resolve_month(
            key=key,
            record=record,
            predecessor=predecessor,
            settings=self._settings,
            carry_in=carry_in,
        )
        
        if resolution.changed:
            if resolution.created:
                await self._audit_logger.log_month_created(storage_key, correlation_id)
            await self._audit_logger.log_starting_balance_resolved(
                storage_key=storage_key,
                starting_balance=resolution.record.starting_balance,
                balance_state=resolution.state.value,
                correlation_id=correlation_id,
            )
            await self.save(key, resolution.record, correlation_id)
        else:
            await self._audit_logger.log_month_loaded(
                storage_key, resolution.state.value, correlation_id
            )
        
        return LedgerSnapshot(
            key=key,
            record=resolution.record,
            balance_state=resolution.state,
        )
