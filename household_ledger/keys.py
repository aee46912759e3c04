"""
Month Key Derivation

A month is addressed in storage by a plain string key built from its
calendar year and zero-based month index:

    "<prefix>-<year>-<monthIndex>"   e.g. "budget-data-2025-0" for January

The month index is NOT zero-padded; keys written by earlier versions of
the ledger use the same format and must keep resolving.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_KEY_PREFIX = "budget-data"

MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]


def month_key(
    month_index: int,
    year: Optional[int] = None,
    prefix: str = DEFAULT_KEY_PREFIX,
) -> str:
    """
    Build the storage key for a month.
    
    Args:
        month_index: Zero-based month (0 = January, 11 = December)
        year: Calendar year, defaults to the current year
        prefix: Key namespace
        
    Raises:
        ValueError: If month_index is outside 0-11
    """
    if not 0 <= month_index <= 11:
        raise ValueError(f"Month index must be between 0 and 11, got {month_index}")
    if year is None:
        year = date.today().year
    return f"{prefix}-{year}-{month_index}"


class MonthKey(BaseModel):
    """
    Identity of one month in the ledger.
    
    Navigation wraps within the year: the month after December is the
    January of the same year, and vice versa.
    """
    model_config = ConfigDict(frozen=True)
    
    year: int = Field(
        ...,
        description="Calendar year"
    )
    month_index: int = Field(
        ...,
        ge=0,
        le=11,
        description="Zero-based month (0 = January)"
    )
    
    @classmethod
    def for_date(cls, day: date) -> "MonthKey":
        return cls(year=day.year, month_index=day.month - 1)
    
    @property
    def month_name(self) -> str:
        return MONTH_NAMES[self.month_index]
    
    @property
    def is_anchor_month(self) -> bool:
        """The first month of the year opens at the anchor balance."""
        return self.month_index == 0
    
    def previous(self) -> "MonthKey":
        return MonthKey(year=self.year, month_index=(self.month_index - 1 + 12) % 12)
    
    def next(self) -> "MonthKey":
        return MonthKey(year=self.year, month_index=(self.month_index + 1) % 12)
    
    def storage_key(self, prefix: str = DEFAULT_KEY_PREFIX) -> str:
        return month_key(self.month_index, self.year, prefix)
    
    def __str__(self) -> str:
        return f"{self.month_name} {self.year}"
