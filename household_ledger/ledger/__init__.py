"""Ledger engine package: balance resolution and totals."""

from household_ledger.ledger.aggregates import (
    balance_scale,
    current_balance,
    ending_balance,
    expense_breakdown,
    parse_amount,
    row_scale,
    summarize,
    total_actual,
    total_planned,
)
from household_ledger.ledger.resolver import (
    CarryOverResolver,
    Resolution,
    balance_state_for,
    default_month_record,
    resolve_month,
)

__all__ = [
    "CarryOverResolver",
    "Resolution",
    "balance_scale",
    "balance_state_for",
    "current_balance",
    "default_month_record",
    "ending_balance",
    "expense_breakdown",
    "parse_amount",
    "resolve_month",
    "row_scale",
    "summarize",
    "total_actual",
    "total_planned",
]
