"""Helpers for detecting recurring payments like subscriptions or rent."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, List, Optional, Union

import numpy as np
import pandas as pd

from .category_hints import category_hint
from .config import current_date
from .frequency import label_frequency, round_half_up
from .logging_setup import get_logger
from .models import RecurringPattern, Transaction
from .normalize import transactions_frame

logger = get_logger(__name__)

# Every gap must sit within 30% of the mean gap, every amount within 20%
# of the mean amount. Strict comparisons.
INTERVAL_TOLERANCE = 0.30
AMOUNT_TOLERANCE = 0.20
MIN_OCCURRENCES = 2

_ONE_DAY = pd.Timedelta(days=1)


def detect_recurring(
    transactions: Union[pd.DataFrame, Iterable[Transaction], None],
) -> List[RecurringPattern]:
    """Identify recurring payments, soonest next expected occurrence first.

    Transactions are grouped by normalized description. A group becomes a
    pattern only when it has at least two members, its day-gaps and absolute
    amounts are consistent, and its average gap lands in a frequency band.
    Groups that fail any check are dropped silently.
    """
    working = transactions_frame(transactions)
    if working.empty:
        return []

    grouped = working.groupby('Key', sort=False)
    patterns = [
        pattern
        for pattern in (_summarize_group(key, group) for key, group in grouped)
        if pattern is not None
    ]
    logger.debug("Detected %d recurring patterns across %d groups", len(patterns), grouped.ngroups)
    # sorted() is stable, so ties keep the order groups were first seen in
    return sorted(patterns, key=lambda pattern: pattern.next_expected_occurrence)


def upcoming_patterns(
    patterns: Iterable[RecurringPattern],
    within_days: int = 14,
    today: Optional[date] = None,
) -> List[RecurringPattern]:
    """Patterns expected between ``today`` and ``today + within_days`` inclusive."""
    start = today or current_date()
    end = start + timedelta(days=max(0, within_days))
    return [p for p in patterns if start <= p.next_expected_occurrence <= end]


def day_gaps(dates: pd.Series) -> pd.Series:
    """Whole-day gaps between consecutive dates, halves rounded up."""
    ordered = dates.sort_values(kind='mergesort')
    diffs = ordered.diff().dropna() / _ONE_DAY
    return np.floor(diffs + 0.5)


def intervals_consistent(gaps: pd.Series, avg_interval: float) -> bool:
    if gaps.empty or avg_interval <= 0:
        return False
    return bool(((gaps - avg_interval).abs() / avg_interval < INTERVAL_TOLERANCE).all())


def amounts_consistent(amounts: pd.Series, avg_amount: float) -> bool:
    if amounts.empty or avg_amount <= 0:
        return False
    return bool(((amounts - avg_amount).abs() / avg_amount < AMOUNT_TOLERANCE).all())


def _summarize_group(key: str, group: pd.DataFrame) -> Optional[RecurringPattern]:
    if len(group) < MIN_OCCURRENCES:
        return None

    ordered = group.sort_values('Transaction Date', kind='mergesort')
    gaps = day_gaps(ordered['Transaction Date'])
    avg_interval = float(gaps.mean()) if not gaps.empty else 0.0
    if not intervals_consistent(gaps, avg_interval):
        return None

    amounts = ordered['Amount'].abs().astype(float)
    avg_amount = float(amounts.mean())
    if not amounts_consistent(amounts, avg_amount):
        return None

    frequency = label_frequency(avg_interval)
    if frequency is None:
        return None

    last_occurrence = ordered['Transaction Date'].iloc[-1].date()
    next_expected = last_occurrence + timedelta(days=round_half_up(avg_interval))

    return RecurringPattern(
        # groupby keeps input row order, so this is the first label seen for the key
        description=str(group['Description'].iloc[0]) or key,
        average_amount_minor_units=round_half_up(avg_amount),
        frequency=frequency,
        last_occurrence=last_occurrence,
        next_expected_occurrence=next_expected,
        occurrence_count=len(group),
        category_hint=category_hint(key),
    )
