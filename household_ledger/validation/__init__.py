"""Validation package."""

from household_ledger.validation.validator import SnapshotValidator

__all__ = ["SnapshotValidator"]
