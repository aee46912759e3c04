"""
Aggregate Calculator

Pure functions over rows and snapshots. No storage access, no caching.

Amounts are the raw text the user entered. Empty text, text that is not
a number, NaN and infinities all count as zero.
"""

from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from household_ledger.models.ledger import (
    BudgetRow,
    CategoryShare,
    LedgerSnapshot,
    LedgerSummary,
    MonthRecord,
)


ZERO = Decimal("0")


def parse_amount(value: Optional[str]) -> Decimal:
    """Read an entered amount, zero if empty or not a number."""
    if value is None:
        return ZERO
    text = str(value).strip()
    if not text:
        return ZERO
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return ZERO
    if not amount.is_finite():
        return ZERO
    return amount


def is_numeric_amount(value: Optional[str]) -> bool:
    """True for empty text or a finite number; False for anything else."""
    text = (value or "").strip()
    if not text:
        return True
    try:
        return Decimal(text).is_finite()
    except InvalidOperation:
        return False


def total_planned(rows: Iterable[BudgetRow]) -> Decimal:
    return sum((parse_amount(row.planned) for row in rows), ZERO)


def total_actual(rows: Iterable[BudgetRow]) -> Decimal:
    return sum((parse_amount(row.actual) for row in rows), ZERO)


def ending_balance(record: MonthRecord, anchor: Decimal) -> Decimal:
    """
    Balance at the end of a month.
    
    A month with no starting balance is treated as opening at the anchor.
    """
    start = record.starting_balance if record.starting_balance is not None else anchor
    return start + total_actual(record.income_rows) - total_actual(record.expense_rows)


def current_balance(snapshot: LedgerSnapshot) -> Decimal:
    """Starting balance plus actual income minus actual expenses."""
    start = snapshot.starting_balance if snapshot.starting_balance is not None else ZERO
    return start + total_actual(snapshot.income_rows) - total_actual(snapshot.expense_rows)


def summarize(snapshot: LedgerSnapshot) -> LedgerSummary:
    """All totals for one month."""
    return LedgerSummary(
        key=snapshot.key,
        starting_balance=snapshot.starting_balance if snapshot.starting_balance is not None else ZERO,
        expense_total_planned=total_planned(snapshot.expense_rows),
        expense_total_actual=total_actual(snapshot.expense_rows),
        income_total_planned=total_planned(snapshot.income_rows),
        income_total_actual=total_actual(snapshot.income_rows),
        current_balance=current_balance(snapshot),
    )


def expense_breakdown(rows: Iterable[BudgetRow]) -> list[CategoryShare]:
    """
    Each expense row's share of actual spending.
    
    Negative actuals count as zero; rows with nothing spent are left out.
    """
    values = [(row, max(ZERO, parse_amount(row.actual))) for row in rows]
    total = sum((value for _, value in values), ZERO)
    if not total:
        return []
    
    return [
        CategoryShare(
            row_id=row.id,
            label=row.label,
            value=value,
            share=value / total,
        )
        for row, value in values
        if value > 0
    ]


def balance_scale(snapshot: LedgerSnapshot) -> Decimal:
    """Largest of actual income, actual spending and |current balance|; at least 1."""
    scale = max(
        total_actual(snapshot.expense_rows),
        total_actual(snapshot.income_rows),
        abs(current_balance(snapshot)),
    )
    return scale or Decimal("1")


def row_scale(rows: Iterable[BudgetRow]) -> Decimal:
    """Largest planned or actual amount across rows; at least 1."""
    scale = ZERO
    for row in rows:
        scale = max(scale, parse_amount(row.planned), parse_amount(row.actual))
    return scale or Decimal("1")
