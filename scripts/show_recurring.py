#!/usr/bin/env python3
"""Show detected recurring payments and roll stale income schedules forward."""

from __future__ import annotations

import argparse
import sys
from functools import partial
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from cashflow_engine import db
from cashflow_engine.logging_setup import configure_logging
from cashflow_engine.recurring import detect_recurring, upcoming_patterns
from cashflow_engine.schedule import ScheduleWriter, advance_stale_schedules


def _money(minor_units: int) -> str:
    return f"${minor_units / 100:,.2f}"


def main(db_path: Optional[str] = None, within_days: int = 14, advance: bool = False) -> None:
    db.init_db(db_path)
    patterns = detect_recurring(db.fetch_transactions(path=db_path))
    if not patterns:
        print("No recurring payments detected.")
    else:
        print(f"Recurring payments detected: {len(patterns)}")
        for pattern in patterns:
            print(
                f"  {pattern.next_expected_occurrence}  {pattern.frequency:<11}  "
                f"{_money(pattern.average_amount_minor_units):>12}  "
                f"x{pattern.occurrence_count:<3} [{pattern.category_hint}] {pattern.description}"
            )
        soon = upcoming_patterns(patterns, within_days=within_days)
        print(f"\nDue in the next {within_days} days: {len(soon)}")

    sources = db.fetch_income_sources(db_path)
    if not sources:
        return
    writer = ScheduleWriter(partial(db.update_next_expected_date, path=db_path)) if advance else None
    try:
        current = advance_stale_schedules(sources, writer)
    finally:
        if writer is not None:
            writer.close(wait=True)
    print("\nIncome sources:")
    for before, after in zip(sources, current):
        marker = '' if before.next_expected_date == after.next_expected_date else f"  (was {before.next_expected_date})"
        print(f"  {after.name or after.id}: next {after.next_expected_date} [{after.frequency}]{marker}")


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Show recurring payments and upcoming income.')
    parser.add_argument('--db', dest='db_path', default=None, help='SQLite database path')
    parser.add_argument('--days', type=int, default=14, help='Window for upcoming payments')
    parser.add_argument('--advance', action='store_true', help='Persist corrected income dates')
    parser.add_argument('--log-level', default=None, help='Logging level (e.g. DEBUG)')
    args = parser.parse_args()
    configure_logging(args.log_level)
    main(db_path=args.db_path, within_days=args.days, advance=args.advance)
