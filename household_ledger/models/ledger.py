"""
Core Data Models for Household Ledger

These models define the schemas for one month of budget data:
1. BudgetRow - a single planned/actual line
2. MonthRecord - what is persisted per month
3. LedgerSnapshot - the working copy of the month on screen
4. Summary, breakdown and validation results derived from a snapshot

DESIGN DECISION: Amount fields on rows are kept as the text the user typed.
An empty string means "nothing entered" and is NOT the same as "0".
The starting balance is Optional[Decimal]; None means "not yet resolved"
and must never be collapsed to zero.
"""

import json
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel

from household_ledger.keys import MonthKey


# =============================================================================
# ENUMS
# =============================================================================

class RowKind(str, Enum):
    """The two row groups of a month."""
    EXPENSE = "expense"
    INCOME = "income"


class BalanceState(str, Enum):
    """
    Resolution state of a month's starting balance.
    
    UNRESOLVED -> ANCHOR_RESOLVED        (first month of the year)
    UNRESOLVED -> CARRIED_OVER_RESOLVED  (any other month)
    
    Both resolved states are final.
    """
    UNRESOLVED = "unresolved"
    ANCHOR_RESOLVED = "anchor_resolved"
    CARRIED_OVER_RESOLVED = "carried_over_resolved"


DEFAULT_NEW_ROW_LABELS = {
    RowKind.EXPENSE: "New category",
    RowKind.INCOME: "New income",
}


class RowNotFoundError(KeyError):
    """A row id does not exist in the requested row group."""
    pass


# =============================================================================
# PERSISTED MODELS
# =============================================================================

class BudgetRow(BaseModel):
    """
    One planned/actual line of a month.
    
    planned and actual hold the raw text entered. Non-numeric text is
    tolerated here and counts as zero in every total.
    """
    model_config = ConfigDict(coerce_numbers_to_str=True)
    
    id: int = Field(
        ...,
        description="Row id, unique within its row group"
    )
    label: str = Field(
        default="",
        description="Category or income source name"
    )
    planned: str = Field(
        default="",
        description="Planned amount as entered, empty if not entered"
    )
    actual: str = Field(
        default="",
        description="Actual amount as entered, empty if not entered"
    )


class MonthRecord(BaseModel):
    """
    Everything persisted for one month.
    
    Stored as:
        {"expenseRows": [...], "incomeRows": [...], "startingBalance": 1579}
    
    CRITICAL: startingBalance is omitted from the stored document while
    unresolved. It must come back as None, never as 0.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
    
    expense_rows: list[BudgetRow] = Field(default_factory=list)
    income_rows: list[BudgetRow] = Field(default_factory=list)
    starting_balance: Optional[Decimal] = Field(
        default=None,
        description="Opening balance, None until resolved"
    )
    
    @property
    def is_resolved(self) -> bool:
        return self.starting_balance is not None
    
    def rows(self, kind: RowKind) -> list[BudgetRow]:
        if kind == RowKind.EXPENSE:
            return self.expense_rows
        return self.income_rows
    
    def to_storage_json(self) -> str:
        """
        Serialize to the stored document, leaving out an unset balance.
        
        The balance is written as an exact JSON number (integer when
        whole), never routed through float.
        """
        body = self.model_dump_json(by_alias=True, exclude={"starting_balance"})
        if self.starting_balance is None:
            return body
        return f'{body[:-1]},"startingBalance":{_json_number(self.starting_balance)}}}'
    
    @classmethod
    def from_storage_json(cls, raw: str) -> "MonthRecord":
        """
        Parse a stored document.
        
        Raises ValueError if corrupt: json.JSONDecodeError for malformed
        text, pydantic.ValidationError for a wrong shape.
        """
        return cls.model_validate(json.loads(raw, parse_float=Decimal))


def _json_number(value: Decimal) -> str:
    if value == value.to_integral_value():
        return str(int(value))
    return format(value, "f")


# =============================================================================
# IN-MEMORY WORKING COPY
# =============================================================================

class LedgerSnapshot(BaseModel):
    """
    The month currently being viewed and edited.
    
    Row edits happen here. There is deliberately no way to change the
    starting balance through a snapshot.
    """
    
    key: MonthKey
    record: MonthRecord
    balance_state: BalanceState = Field(
        default=BalanceState.UNRESOLVED,
        description="How the starting balance was resolved"
    )
    
    @property
    def expense_rows(self) -> list[BudgetRow]:
        return self.record.expense_rows
    
    @property
    def income_rows(self) -> list[BudgetRow]:
        return self.record.income_rows
    
    @property
    def starting_balance(self) -> Optional[Decimal]:
        return self.record.starting_balance
    
    def _find_row(self, kind: RowKind, row_id: int) -> BudgetRow:
        for row in self.record.rows(kind):
            if row.id == row_id:
                return row
        raise RowNotFoundError(f"No {kind.value} row with id {row_id} in {self.key}")
    
    def add_row(self, kind: RowKind, label: Optional[str] = None) -> BudgetRow:
        """Append an empty row with the next free id."""
        rows = self.record.rows(kind)
        next_id = max(row.id for row in rows) + 1 if rows else 1
        row = BudgetRow(
            id=next_id,
            label=label if label is not None else DEFAULT_NEW_ROW_LABELS[kind],
        )
        rows.append(row)
        return row
    
    def remove_row(self, kind: RowKind, row_id: int) -> BudgetRow:
        """Remove a row. Raises RowNotFoundError if it does not exist."""
        row = self._find_row(kind, row_id)
        self.record.rows(kind).remove(row)
        return row
    
    def update_row(
        self,
        kind: RowKind,
        row_id: int,
        *,
        label: Optional[str] = None,
        planned: Optional[str] = None,
        actual: Optional[str] = None,
    ) -> BudgetRow:
        """
        Change the given fields of a row.
        
        Fields left as None are not touched; pass "" to clear an amount.
        """
        row = self._find_row(kind, row_id)
        if label is not None:
            row.label = label
        if planned is not None:
            row.planned = planned
        if actual is not None:
            row.actual = actual
        return row


# =============================================================================
# DERIVED VALUES
# =============================================================================

class LedgerSummary(BaseModel):
    """Totals shown alongside a month."""
    
    key: MonthKey
    starting_balance: Decimal
    expense_total_planned: Decimal
    expense_total_actual: Decimal
    income_total_planned: Decimal
    income_total_actual: Decimal
    current_balance: Decimal = Field(
        ...,
        description="Starting balance + actual income - actual expenses"
    )


class CategoryShare(BaseModel):
    """One expense row's part of the month's actual spending."""
    
    row_id: int
    label: str
    value: Decimal = Field(ge=0)
    share: Decimal = Field(
        ...,
        ge=0,
        le=1,
        description="Fraction of total actual spending (0-1)"
    )


class ValidationIssue(BaseModel):
    """A single problem found in a month's rows."""
    
    kind: RowKind
    row_id: int
    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'numeric_parse_anomaly', 'duplicate_id')"
    )
    message: str
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of checking a month's rows.
    
    Never blocks saving; it only reports.
    """
    
    key: MonthKey
    issues: list[ValidationIssue] = Field(default_factory=list)
    
    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)
    
    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]
    
    @model_validator(mode='after')
    def sort_issues(self) -> 'ValidationResult':
        """Keep issues in a stable order for display."""
        self.issues.sort(key=lambda i: (i.kind.value, i.row_id, i.field))
        return self
