from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Union

import pandas as pd

from . import config
from .logging_setup import get_logger
from .models import IncomeSource, Transaction
from .normalize import normalize_key

logger = get_logger(__name__)

PathLike = Union[str, Path, None]

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    occurred_at TEXT NOT NULL,
    description TEXT,
    normalized_description TEXT,
    category TEXT,
    amount_cents INTEGER NOT NULL,
    is_transfer INTEGER NOT NULL DEFAULT 0,
    imported_at TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_txn_dedup
ON transactions (occurred_at, description, amount_cents);

CREATE INDEX IF NOT EXISTS ix_txn_occurred ON transactions (occurred_at);
CREATE INDEX IF NOT EXISTS ix_txn_category ON transactions (category);

CREATE TABLE IF NOT EXISTS income_sources (
    id TEXT PRIMARY KEY,
    name TEXT,
    next_expected_date TEXT,
    frequency TEXT,
    updated_at TEXT
);
"""


def _utc_now() -> str:
    return datetime.now(tz=timezone.utc).replace(tzinfo=None).isoformat()


def _resolve(path: PathLike) -> Path:
    return Path(path) if path is not None else config.DB_PATH


@contextmanager
def connect(path: PathLike = None) -> Iterator[sqlite3.Connection]:
    target = _resolve(path)
    if path is None:
        config.ensure_data_directories()
    target.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(target))
    try:
        yield conn
    finally:
        conn.close()


def init_db(path: PathLike = None) -> None:
    with connect(path) as conn:
        conn.executescript(SCHEMA_SQL)
        conn.commit()


def _to_iso_date(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    ts = pd.to_datetime(value, errors='coerce')
    if pd.isna(ts):
        return None
    return ts.date().isoformat()


def _to_iso_timestamp(value: Any) -> Optional[str]:
    ts = pd.to_datetime(value, errors='coerce')
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert('UTC').tz_localize(None)
    return ts.isoformat()


def insert_transactions(
    transactions: Iterable[Transaction],
    path: PathLike = None,
    *,
    transfer: bool = False,
) -> int:
    """Insert transactions, skipping exact duplicates. Returns the inserted count."""
    imported_at = _utc_now()
    records = []
    for txn in transactions:
        occurred = _to_iso_timestamp(txn.occurred_at)
        if occurred is None:
            logger.warning("Skipping transaction %r with unparseable date", txn.description)
            continue
        records.append((
            occurred,
            txn.description,
            normalize_key(txn.description),
            txn.category,
            int(txn.amount_minor_units),
            1 if transfer else 0,
            imported_at,
        ))
    if not records:
        return 0

    insert_sql = (
        "INSERT OR IGNORE INTO transactions (occurred_at, description, normalized_description, "
        "category, amount_cents, is_transfer, imported_at) VALUES (?, ?, ?, ?, ?, ?, ?)"
    )
    with connect(path) as conn:
        before_changes = conn.total_changes
        conn.executemany(insert_sql, records)
        conn.commit()
        inserted = conn.total_changes - before_changes
    return inserted


def fetch_transactions(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    path: PathLike = None,
    *,
    include_transfers: bool = False,
) -> pd.DataFrame:
    """Return transactions as a frame ``detect_recurring`` accepts directly."""
    where: List[str] = []
    params: List[Any] = []

    if start_date:
        where.append("occurred_at >= ?")
        params.append(start_date)
    if end_date:
        # inclusive of the whole end day
        where.append("occurred_at < ?")
        params.append((pd.Timestamp(end_date) + pd.Timedelta(days=1)).date().isoformat())
    if not include_transfers:
        where.append("is_transfer = 0")

    sql = (
        "SELECT id, occurred_at AS 'Transaction Date', description AS 'Description', "
        "category AS 'Category', amount_cents AS 'Amount' FROM transactions"
    )
    if where:
        sql += " WHERE " + " AND ".join(where)
    sql += " ORDER BY occurred_at ASC, id ASC"

    with connect(path) as conn:
        df = pd.read_sql_query(sql, conn, params=params)
    if not df.empty:
        df['Transaction Date'] = pd.to_datetime(df['Transaction Date'])
    return df


def historical_spending(
    categories: Sequence[str],
    months: Optional[int] = None,
    today: Optional[date] = None,
    path: PathLike = None,
) -> Dict[str, int]:
    """Summed absolute outgoing spend per category over the last ``months`` months.

    Transfers and incoming amounts are ignored. Categories without spending are
    simply absent from the result.
    """
    names = [name for name in dict.fromkeys(categories or []) if name]
    if not names:
        return {}
    window = months if months is not None else config.HISTORY_MONTHS
    end = today or config.current_date()
    start = (pd.Timestamp(end) - pd.DateOffset(months=window)).date()
    until = end + timedelta(days=1)

    sql = (
        "SELECT category, SUM(ABS(amount_cents)) FROM transactions "
        "WHERE category IN ({}) AND amount_cents < 0 AND is_transfer = 0 "
        "AND occurred_at >= ? AND occurred_at < ? GROUP BY category"
    ).format(",".join("?" for _ in names))
    params: List[Any] = [*names, start.isoformat(), until.isoformat()]

    with connect(path) as conn:
        rows = conn.execute(sql, params).fetchall()
    return {category: int(total) for category, total in rows if total}


def upsert_income_source(source: IncomeSource, path: PathLike = None) -> None:
    with connect(path) as conn:
        conn.execute(
            "INSERT INTO income_sources (id, name, next_expected_date, frequency, updated_at) "
            "VALUES (?, ?, ?, ?, ?) ON CONFLICT(id) DO UPDATE SET name = excluded.name, "
            "next_expected_date = excluded.next_expected_date, frequency = excluded.frequency, "
            "updated_at = excluded.updated_at",
            (
                source.id,
                source.name,
                _to_iso_date(source.next_expected_date),
                source.frequency,
                _utc_now(),
            ),
        )
        conn.commit()


def fetch_income_sources(path: PathLike = None) -> List[IncomeSource]:
    with connect(path) as conn:
        rows = conn.execute(
            "SELECT id, name, next_expected_date, frequency FROM income_sources ORDER BY name, id"
        ).fetchall()
    return [
        IncomeSource(id=row[0], name=row[1] or '', next_expected_date=row[2], frequency=row[3])
        for row in rows
    ]


def update_next_expected_date(source_id: str, corrected_date: Any, path: PathLike = None) -> bool:
    """Persist a corrected next expected date. Returns False when no row matched."""
    iso = _to_iso_date(corrected_date)
    if iso is None:
        return False
    with connect(path) as conn:
        cur = conn.execute(
            "UPDATE income_sources SET next_expected_date = ?, updated_at = ? WHERE id = ?",
            (iso, _utc_now(), source_id),
        )
        conn.commit()
        return cur.rowcount > 0
