"""Spread one budget assignment across the categories underneath it.

A methodology category (e.g. "Needs") usually maps onto several raw spending
categories. When a user assigns an amount to it, ``distribute`` decides how
much each underlying category receives:

* ``equal`` splits evenly, the first category absorbing any remainder;
* ``proportional`` follows recent historical spending, the last category
  absorbing rounding drift;
* ``manual`` takes user-entered amounts as they are.

Amounts are integer minor units (cents). Under ``equal`` and ``proportional``
the results always sum to the requested total.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Mapping, Optional, Sequence

import numpy as np

from . import config
from .logging_setup import get_logger
from .models import CategoryDistribution, DistributionCheck

logger = get_logger(__name__)

EQUAL = 'equal'
PROPORTIONAL = 'proportional'
MANUAL = 'manual'
STRATEGIES = (EQUAL, PROPORTIONAL, MANUAL)

# (category names, months) -> {category: summed absolute spend}
HistoricalLookup = Callable[[Sequence[str], int], Mapping[str, int]]


def distribute(
    total: int,
    categories: Sequence[str],
    historical_spending: Optional[Mapping[str, int]] = None,
    strategy: str = EQUAL,
    manual_amounts: Optional[Mapping[str, int]] = None,
) -> List[CategoryDistribution]:
    """Distribute ``total`` across ``categories`` using ``strategy``.

    Args:
        total: Amount to split, in minor units
        categories: Underlying category names; order matters for remainders
        historical_spending: Category -> summed spend, used by ``proportional``
        strategy: One of ``equal``, ``proportional`` or ``manual``
        manual_amounts: Category -> amount, used by ``manual``

    Returns:
        One ``CategoryDistribution`` per input category, in input order.
        Unknown strategies, and ``manual`` without amounts, fall back to ``equal``.

    Example:
        >>> [d.amount_minor_units for d in distribute(100, ['A', 'B', 'C'])]
        [34, 33, 33]
    """
    if not categories:
        return []

    if strategy == PROPORTIONAL:
        return _proportional_split(total, categories, historical_spending or {})
    if strategy == MANUAL and manual_amounts is not None:
        return _manual_split(total, categories, manual_amounts)
    if strategy != EQUAL:
        logger.debug("Strategy %r not applicable, splitting equally", strategy)
    return _equal_split(total, categories)


def validate_distribution(
    distribution: Sequence[CategoryDistribution],
    expected_total: int,
) -> DistributionCheck:
    """Report whether ``distribution`` sums to ``expected_total``."""
    actual_total = sum(item.amount_minor_units for item in distribution)
    difference = actual_total - expected_total
    return DistributionCheck(valid=difference == 0, actual_total=actual_total, difference=difference)


def fetch_historical_spending(
    lookup: Optional[HistoricalLookup],
    categories: Sequence[str],
    months: Optional[int] = None,
) -> Dict[str, int]:
    """Call the injected spending lookup, degrading to an empty mapping on failure."""
    if lookup is None or not categories:
        return {}
    window = months if months is not None else config.HISTORY_MONTHS
    try:
        result = lookup(list(categories), window)
    except Exception:
        logger.exception("Historical spending lookup failed for %d categories", len(categories))
        return {}
    return dict(result or {})


def distribute_with_history(
    total: int,
    categories: Sequence[str],
    strategy: str,
    lookup: Optional[HistoricalLookup] = None,
    manual_amounts: Optional[Mapping[str, int]] = None,
    months: Optional[int] = None,
) -> List[CategoryDistribution]:
    """``distribute`` with historical spending pulled from ``lookup`` when needed."""
    history: Dict[str, int] = {}
    if strategy == PROPORTIONAL:
        history = fetch_historical_spending(lookup, categories, months)
    return distribute(total, categories, history, strategy, manual_amounts)


def _equal_split(total: int, categories: Sequence[str]) -> List[CategoryDistribution]:
    count = len(categories)
    per_category = total // count
    remainder = total - per_category * count
    percentage = 100 / count
    return [
        CategoryDistribution(
            category_name=name,
            amount_minor_units=per_category + (remainder if index == 0 else 0),
            percentage_of_total=percentage,
        )
        for index, name in enumerate(categories)
    ]


def _proportional_split(
    total: int,
    categories: Sequence[str],
    historical_spending: Mapping[str, int],
) -> List[CategoryDistribution]:
    spend = [historical_spending.get(name, 0) or 0 for name in categories]
    total_history = sum(spend)
    if total_history <= 0:
        return _equal_split(total, categories)

    last = len(categories) - 1
    distributed = 0
    rows: List[CategoryDistribution] = []
    for index, (name, amount) in enumerate(zip(categories, spend)):
        share = amount / total_history
        if index == last:
            allocated = total - distributed
        else:
            allocated = int(np.floor(total * share))
            distributed += allocated
        rows.append(CategoryDistribution(name, allocated, share * 100))
    return rows


def _manual_split(
    total: int,
    categories: Sequence[str],
    manual_amounts: Mapping[str, int],
) -> List[CategoryDistribution]:
    rows: List[CategoryDistribution] = []
    for name in categories:
        amount = manual_amounts.get(name, 0) or 0
        percentage = (amount / total) * 100 if total > 0 else 0.0
        rows.append(CategoryDistribution(name, amount, percentage))
    return rows
