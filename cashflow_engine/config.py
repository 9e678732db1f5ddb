"""Configuration management for the cashflow engine.

This module centralizes configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path
from typing import Optional

# Base project root - assumes this file is in cashflow_engine/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("CASHFLOW_DATA_DIR", _PROJECT_ROOT / "data"))

# Database
DB_PATH = Path(
    os.getenv("CASHFLOW_DB_PATH", DATA_DIR / "cashflow.db")
).resolve()

# How many calendar months of spending feed proportional distribution
HISTORY_MONTHS = int(os.getenv("CASHFLOW_HISTORY_MONTHS", "3"))

# Upper bound on schedule corrections waiting for the background writer
WRITER_MAX_PENDING = int(os.getenv("CASHFLOW_WRITER_MAX_PENDING", "256"))

# Demo deployments pin "today" so forecasts stay reproducible
FROZEN_DATE = os.getenv("CASHFLOW_FROZEN_DATE", "").strip()


def ensure_data_directories() -> None:
    """Create the data directory if it doesn't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)


def frozen_date() -> Optional[date]:
    """Return the frozen demo date, or None when running against the real clock."""
    if not FROZEN_DATE:
        return None
    try:
        return date.fromisoformat(FROZEN_DATE)
    except ValueError:
        return None


def current_date() -> date:
    """Today's date, honouring ``CASHFLOW_FROZEN_DATE`` when set."""
    return frozen_date() or date.today()


def get_db_path() -> str:
    """Get the database path as a string."""
    return str(DB_PATH)
