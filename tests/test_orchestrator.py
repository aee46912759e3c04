"""Tests for month navigation and the component factory."""

import json
from datetime import date
from decimal import Decimal

import pytest

from household_ledger.config import LedgerSettings, get_settings
from household_ledger.ledger import CarryOverResolver
from household_ledger.models.audit import AuditEventType
from household_ledger.models.ledger import BalanceState, RowKind, RowNotFoundError
from household_ledger.orchestrator import (
    MonthNavigator,
    NavigatorNotInitializedError,
    clear_budget_data,
    create_ledger_components,
)
from household_ledger.services.storage import (
    InMemoryMonthStorage,
    JsonFileMonthStorage,
    StorageError,
    StorageWriteError,
)

from conftest import ANCHOR, make_record, store


def stored(storage, month_index, year=2025):
    return json.loads(storage.raw[f"budget-data-{year}-{month_index}"])


async def fill_january(navigator):
    """January: income actual 2000 + 0, expenses actual 500 + 300 + 0."""
    await navigator.update_row(RowKind.INCOME, 1, actual="2000")
    await navigator.update_row(RowKind.INCOME, 2, actual="0")
    await navigator.update_row(RowKind.EXPENSE, 1, actual="500")
    await navigator.update_row(RowKind.EXPENSE, 2, actual="300")
    await navigator.update_row(RowKind.EXPENSE, 3, actual="0")


class TestInitialize:
    """Tests for startup."""
    
    def test_uninitialized_navigator(self, navigator):
        assert navigator.is_initialized is False
        assert navigator.cursor is None
        with pytest.raises(NavigatorNotInitializedError):
            navigator.summary()
    
    @pytest.mark.asyncio
    async def test_edit_before_initialize_raises(self, navigator):
        with pytest.raises(NavigatorNotInitializedError):
            await navigator.add_row(RowKind.EXPENSE)
    
    @pytest.mark.asyncio
    async def test_fresh_january(self, navigator, storage):
        snapshot = await navigator.initialize(date(2025, 1, 10))
        assert navigator.cursor.month_index == 0
        assert snapshot.starting_balance == Decimal("1579.00")
        assert [r.label for r in snapshot.income_rows] == ["Salary", "Bonus", "Other"]
        assert stored(storage, 0)["startingBalance"] == 1579
    
    @pytest.mark.asyncio
    async def test_restart_keeps_persisted_balance(self, navigator, storage):
        store(storage, "budget-data-2025-0", make_record(income=[5000], starting_balance=ANCHOR))
        store(storage, "budget-data-2025-1", make_record(starting_balance=Decimal("3000")))
        snapshot = await navigator.initialize(date(2025, 2, 3))
        assert snapshot.starting_balance == Decimal("3000")
        assert snapshot.balance_state == BalanceState.CARRIED_OVER_RESOLVED
    
    @pytest.mark.asyncio
    async def test_month_without_history_opens_at_anchor(self, navigator):
        snapshot = await navigator.initialize(date(2025, 7, 1))
        assert snapshot.starting_balance == ANCHOR
    
    @pytest.mark.asyncio
    async def test_undecodable_month_file_treated_as_absent(self, tmp_path, settings, audit_logger):
        storage = JsonFileMonthStorage(data_dir=tmp_path)
        (tmp_path / "budget-data-2025-1.json").write_bytes(b"\xff\xfe{garbage")
        navigator = MonthNavigator(CarryOverResolver(storage, settings, audit_logger), audit_logger=audit_logger)
    
        snapshot = await navigator.initialize(date(2025, 2, 1))
        assert snapshot.starting_balance == ANCHOR
        assert (await storage.load_month("budget-data-2025-1")).starting_balance == ANCHOR


class TestNavigation:
    """Tests for previous/next transitions."""
    
    @pytest.mark.asyncio
    async def test_january_carries_into_february(self, navigator, storage):
        await navigator.initialize(date(2025, 1, 10))
        await fill_january(navigator)
        
        february = await navigator.go_to_next()
        assert navigator.cursor.month_index == 1
        assert february.starting_balance == Decimal("2779")
        assert stored(storage, 1)["startingBalance"] == 2779
        assert stored(storage, 0)["incomeRows"][0]["actual"] == "2000"
    
    @pytest.mark.asyncio
    async def test_december_wraps_to_anchored_january(self, navigator, storage):
        await navigator.initialize(date(2025, 12, 5))
        await navigator.update_row(RowKind.INCOME, 1, actual="3421")
        assert navigator.summary().current_balance == Decimal("5000")
        
        january = await navigator.go_to_next()
        assert navigator.cursor.month_index == 0
        assert january.starting_balance == ANCHOR
        assert january.balance_state == BalanceState.ANCHOR_RESOLVED
    
    @pytest.mark.asyncio
    async def test_next_does_not_overwrite_resolved_month(self, navigator, storage):
        await navigator.initialize(date(2025, 1, 10))
        await navigator.go_to_next()
        assert navigator.snapshot.starting_balance == ANCHOR
        
        await navigator.go_to_previous()
        await navigator.update_row(RowKind.INCOME, 1, actual="100")
        february = await navigator.go_to_next()
        assert february.starting_balance == ANCHOR
        assert stored(storage, 1)["startingBalance"] == 1579
    
    @pytest.mark.asyncio
    async def test_previous_leaves_earlier_balance_alone(self, navigator, storage):
        store(storage, "budget-data-2025-2", make_record(starting_balance=Decimal("800")))
        store(storage, "budget-data-2025-3", make_record(income=[50], starting_balance=Decimal("900")))
        await navigator.initialize(date(2025, 4, 1))
        
        march = await navigator.go_to_previous()
        assert navigator.cursor.month_index == 2
        assert march.starting_balance == Decimal("800")
        assert stored(storage, 2)["startingBalance"] == 800
    
    @pytest.mark.asyncio
    async def test_previous_resolves_unopened_month_from_its_predecessor(self, navigator, storage):
        store(storage, "budget-data-2025-0", make_record(income=[400], expenses=[100], starting_balance=Decimal("1000")))
        await navigator.initialize(date(2025, 3, 1))
        february = await navigator.go_to_previous()
        assert february.starting_balance == Decimal("1300")
    
    @pytest.mark.asyncio
    async def test_previous_from_january_wraps_to_december(self, navigator):
        await navigator.initialize(date(2025, 1, 1))
        await navigator.go_to_previous()
        assert navigator.cursor.month_index == 11
        assert navigator.cursor.year == 2025
    
    @pytest.mark.asyncio
    async def test_empty_month_stays_empty(self, settings, storage, audit_logger):
        settings = settings.model_copy(update={"autosave_on_edit": False})
        navigator = MonthNavigator(CarryOverResolver(storage, settings, audit_logger), audit_logger=audit_logger)
        await navigator.initialize(date(2025, 5, 1))
        for row in list(navigator.snapshot.expense_rows):
            await navigator.remove_row(RowKind.EXPENSE, row.id)
        for row in list(navigator.snapshot.income_rows):
            await navigator.remove_row(RowKind.INCOME, row.id)
        
        await navigator.go_to_next()
        may = await navigator.go_to_previous()
        assert may.expense_rows == []
        assert may.income_rows == []
    
    @pytest.mark.asyncio
    async def test_navigation_events_share_correlation_id(self, navigator, audit_storage):
        await navigator.initialize(date(2025, 1, 10))
        await navigator.go_to_next()
        navigated = [e for e in audit_storage.events if e.event_type == AuditEventType.NAVIGATED][-1]
        related = await audit_storage.get_events_by_correlation_id(navigated.correlation_id)
        types = {e.event_type for e in related}
        assert AuditEventType.STARTING_BALANCE_RESOLVED in types
        assert AuditEventType.MONTH_SAVED in types
        assert navigated.details == {
            "from": "budget-data-2025-0",
            "to": "budget-data-2025-1",
            "direction": "next",
        }
    
    @pytest.mark.asyncio
    async def test_failed_flush_does_not_stop_navigation(self, settings, audit_logger, audit_storage):
        class FlakyStorage(InMemoryMonthStorage):
            fail = False
            
            async def save_month(self, key, record):
                if self.fail:
                    raise StorageWriteError("disk full")
                return await super().save_month(key, record)
        
        storage = FlakyStorage()
        navigator = MonthNavigator(CarryOverResolver(storage, settings, audit_logger), audit_logger=audit_logger)
        await navigator.initialize(date(2025, 1, 10))
        storage.fail = True
        await navigator.update_row(RowKind.INCOME, 1, actual="250")
        
        february = await navigator.go_to_next()
        assert february.starting_balance == Decimal("1829")
        assert any(e.event_type == AuditEventType.SAVE_FAILED for e in audit_storage.events)


class TestRowEditing:
    """Tests for row edits through the navigator."""
    
    @pytest.mark.asyncio
    async def test_add_row_autosaves(self, navigator, storage):
        await navigator.initialize(date(2025, 1, 10))
        row = await navigator.add_row(RowKind.EXPENSE)
        assert row.id == 4
        assert row.label == "New category"
        assert stored(storage, 0)["expenseRows"][-1]["label"] == "New category"
        
        income = await navigator.add_row(RowKind.INCOME)
        assert income.label == "New income"
    
    @pytest.mark.asyncio
    async def test_edits_keep_starting_balance(self, navigator, storage):
        await navigator.initialize(date(2025, 1, 10))
        await navigator.update_row(RowKind.EXPENSE, 1, label="Rent", planned="900", actual="900")
        await navigator.remove_row(RowKind.INCOME, 3)
        assert stored(storage, 0)["startingBalance"] == 1579
        assert navigator.snapshot.starting_balance == ANCHOR
        assert navigator.summary().current_balance == Decimal("679")
    
    @pytest.mark.asyncio
    async def test_unknown_row_raises(self, navigator):
        await navigator.initialize(date(2025, 1, 10))
        with pytest.raises(RowNotFoundError):
            await navigator.update_row(RowKind.EXPENSE, 99, actual="1")
    
    @pytest.mark.asyncio
    async def test_non_numeric_amount_counts_as_zero(self, navigator, audit_storage):
        await navigator.initialize(date(2025, 1, 10))
        await navigator.update_row(RowKind.EXPENSE, 1, actual="lots")
        assert navigator.summary().expense_total_actual == Decimal("0")
        anomalies = [e for e in audit_storage.events if e.event_type == AuditEventType.NUMERIC_PARSE_ANOMALY]
        assert anomalies
        assert anomalies[-1].details["issues"][0]["field"] == "actual"


class TestClearBudgetData:
    """Tests for the administrative clear."""
    
    @pytest.mark.asyncio
    async def test_clears_this_and_previous_year(self, storage, settings, audit_logger):
        for key in ("budget-data-2025-0", "budget-data-2025-11", "budget-data-2024-5", "budget-data-2023-5"):
            store(storage, key, make_record(starting_balance=ANCHOR))
        
        deleted = await clear_budget_data(storage, settings, year=2025, audit_logger=audit_logger)
        assert sorted(deleted) == ["budget-data-2024-5", "budget-data-2025-0", "budget-data-2025-11"]
        assert list(storage.raw) == ["budget-data-2023-5"]
    
    @pytest.mark.asyncio
    async def test_store_error_is_audited_and_raised(self, settings, audit_logger, audit_storage):
        class LockedStorage(InMemoryMonthStorage):
            async def delete_month(self, key):
                if key == "budget-data-2025-3":
                    raise StorageError("permission denied")
                return await super().delete_month(key)
    
        storage = LockedStorage()
        store(storage, "budget-data-2025-0", make_record(starting_balance=ANCHOR))
    
        with pytest.raises(StorageError):
            await clear_budget_data(storage, settings, year=2025, audit_logger=audit_logger)
    
        errors = [e for e in audit_storage.events if e.event_type == AuditEventType.SYSTEM_ERROR]
        assert len(errors) == 1
        assert errors[0].error_message == "permission denied"
        assert errors[0].details == {
            "storage_key": "budget-data-2025-3",
            "deleted": ["budget-data-2025-0"],
        }


class TestCreateLedgerComponents:
    """Tests for the component factory."""
    
    def test_memory_backend(self, monkeypatch):
        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "memory")
        get_settings.cache_clear()
        navigator, storage = create_ledger_components()
        assert isinstance(storage, InMemoryMonthStorage)
        assert navigator.is_initialized is False
    
    def test_without_storage(self):
        get_settings.cache_clear()
        _, storage = create_ledger_components(use_storage=False)
        assert isinstance(storage, InMemoryMonthStorage)
    
    @pytest.mark.asyncio
    async def test_json_file_backend(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "json_file")
        monkeypatch.setenv("LEDGER_STORAGE_DATA_DIR", str(tmp_path / "months"))
        monkeypatch.setenv("LEDGER_STORAGE_AUDIT_LOG_PATH", str(tmp_path / "audit.jsonl"))
        monkeypatch.setenv("LEDGER_ANCHOR_BALANCE", "250.00")
        get_settings.cache_clear()
        
        navigator, storage = create_ledger_components()
        assert isinstance(storage, JsonFileMonthStorage)
        
        snapshot = await navigator.initialize(date(2025, 1, 1))
        assert snapshot.starting_balance == Decimal("250")
        assert (tmp_path / "months" / "budget-data-2025-0.json").exists()
        assert (tmp_path / "audit.jsonl").exists()
