"""
Row Validation

Checks a month's rows for data the totals silently work around:
- planned/actual text that is not a number (counted as zero)
- two rows in one group sharing an id

IMPORTANT: Validation NEVER fixes or blocks anything.
Non-numeric amounts are warnings only; the user is never shown them as
errors. Duplicate ids are reported as errors because row edits address
rows by id.
"""

from household_ledger.keys import MonthKey
from household_ledger.ledger.aggregates import is_numeric_amount
from household_ledger.models.ledger import (
    MonthRecord,
    RowKind,
    ValidationIssue,
    ValidationResult,
)


class SnapshotValidator:
    """Validates the rows of one month."""
    
    def _check_amounts(self, kind: RowKind, record: MonthRecord) -> list[ValidationIssue]:
        issues = []
        for row in record.rows(kind):
            for field in ("planned", "actual"):
                value = getattr(row, field)
                if not is_numeric_amount(value):
                    issues.append(ValidationIssue(
                        kind=kind,
                        row_id=row.id,
                        field=field,
                        issue_type="numeric_parse_anomaly",
                        message=f"'{value}' is not a number and counts as 0",
                        severity="warning",
                    ))
        return issues
    
    def _check_ids(self, kind: RowKind, record: MonthRecord) -> list[ValidationIssue]:
        issues = []
        seen = set()
        for row in record.rows(kind):
            if row.id in seen:
                issues.append(ValidationIssue(
                    kind=kind,
                    row_id=row.id,
                    field="id",
                    issue_type="duplicate_id",
                    message=f"More than one {kind.value} row has id {row.id}",
                    severity="error",
                ))
            seen.add(row.id)
        return issues
    
    def validate(self, key: MonthKey, record: MonthRecord) -> ValidationResult:
        issues = []
        for kind in RowKind:
            issues.extend(self._check_ids(kind, record))
            issues.extend(self._check_amounts(kind, record))
        return ValidationResult(key=key, issues=issues)
