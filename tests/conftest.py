"""Shared fixtures: in-memory storage and a ledger wired around it."""

from decimal import Decimal

import pytest

from household_ledger.audit import AuditLogger
from household_ledger.config import LedgerSettings
from household_ledger.ledger import CarryOverResolver
from household_ledger.models.ledger import BudgetRow, MonthRecord
from household_ledger.orchestrator import MonthNavigator
from household_ledger.services.storage import InMemoryAuditStorage, InMemoryMonthStorage


ANCHOR = Decimal("1579")


def make_record(income=(), expenses=(), starting_balance=None) -> MonthRecord:
    """Build a month from lists of actual amounts."""
    return MonthRecord(
        income_rows=[
            BudgetRow(id=i, label=f"Income {i}", actual=str(value))
            for i, value in enumerate(income, start=1)
        ],
        expense_rows=[
            BudgetRow(id=i, label=f"Expense {i}", actual=str(value))
            for i, value in enumerate(expenses, start=1)
        ],
        starting_balance=starting_balance,
    )


def store(storage: InMemoryMonthStorage, key: str, record: MonthRecord) -> None:
    storage.raw[key] = record.to_storage_json()


@pytest.fixture
def settings():
    return LedgerSettings(anchor_balance=ANCHOR, autosave_on_edit=True)


@pytest.fixture
def storage():
    return InMemoryMonthStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def resolver(storage, settings, audit_logger):
    return CarryOverResolver(storage=storage, settings=settings, audit_logger=audit_logger)


@pytest.fixture
def navigator(resolver, audit_logger):
    return MonthNavigator(resolver=resolver, audit_logger=audit_logger)
