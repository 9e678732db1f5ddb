"""Cadence tables: detection bands, calendar steps and monthly conversion."""

from __future__ import annotations

from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

# Closed, non-overlapping bands of average day-gaps used by the detector.
# Anything outside (quarterly, annual, irregular) is not detected.
FREQUENCY_BANDS: Tuple[Tuple[str, float, float], ...] = (
    ('weekly', 5, 9),
    ('fortnightly', 12, 16),
    ('monthly', 26, 34),
)

# One period per stored schedule frequency.
PERIOD_OFFSETS: Dict[str, pd.DateOffset] = {
    'weekly': pd.DateOffset(days=7),
    'fortnightly': pd.DateOffset(days=14),
    'monthly': pd.DateOffset(months=1),
    'bi-monthly': pd.DateOffset(months=2),
    'quarterly': pd.DateOffset(months=3),
    'yearly': pd.DateOffset(years=1),
}

# Budgeting uses 4 weeks / 2 fortnights per month rather than 52/12.
MONTHLY_MULTIPLIERS: Dict[str, float] = {
    'weekly': 4.0,
    'fortnightly': 2.0,
    'monthly': 1.0,
    'bi-monthly': 1 / 2,
    'quarterly': 1 / 3,
    'yearly': 1 / 12,
}


def label_frequency(avg_interval: float) -> Optional[str]:
    """Map an average day-gap onto a named cadence, or None when no band matches."""
    if avg_interval <= 0:
        return None
    for label, low, high in FREQUENCY_BANDS:
        if low <= avg_interval <= high:
            return label
    return None


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up."""
    return int(np.floor(value + 0.5))


def to_monthly(amount_minor_units: int, frequency: str) -> int:
    """Convert a per-period amount into its monthly equivalent in minor units."""
    multiplier = MONTHLY_MULTIPLIERS.get(frequency)
    if multiplier is None:
        raise ValueError(f"Unknown frequency: {frequency!r}")
    return round_half_up(amount_minor_units * multiplier)
