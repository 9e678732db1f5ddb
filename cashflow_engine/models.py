"""Plain data records shared by the detector, distributor and advancer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Optional, Union

from .frequency import to_monthly

WEEKLY = 'weekly'
FORTNIGHTLY = 'fortnightly'
MONTHLY = 'monthly'


@dataclass(frozen=True)
class Transaction:
    """A single bank transaction. Amounts are signed minor currency units."""
    description: str
    amount_minor_units: int
    occurred_at: datetime
    category: Optional[str] = None


@dataclass(frozen=True)
class RecurringPattern:
    description: str
    average_amount_minor_units: int
    frequency: str
    last_occurrence: date
    next_expected_occurrence: date
    occurrence_count: int
    category_hint: str

    @property
    def monthly_estimate_minor_units(self) -> int:
        return to_monthly(self.average_amount_minor_units, self.frequency)


@dataclass(frozen=True)
class CategoryDistribution:
    category_name: str
    amount_minor_units: int
    percentage_of_total: float


@dataclass(frozen=True)
class DistributionCheck:
    """Outcome of comparing a distribution against the amount it should sum to."""
    valid: bool
    actual_total: int
    difference: int


@dataclass(frozen=True)
class IncomeSource:
    """Schedule-bearing entity owned by the surrounding application.

    Only ``next_expected_date`` is ever rewritten by this package; anything
    else the caller tracks rides along untouched in ``extra``.
    """
    id: str
    name: str = ''
    next_expected_date: Union[str, date, None] = None
    frequency: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
