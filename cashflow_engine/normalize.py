"""Description normalization and the transaction frame the detector groups on."""

from __future__ import annotations

import re
from typing import Any, Iterable, Union

import pandas as pd

from .models import Transaction

FRAME_COLUMNS = ['Description', 'Amount', 'Transaction Date', 'Category']

_DIGITS = re.compile(r'[0-9]+')
_WHITESPACE = re.compile(r'\s+')


def normalize_key(value: Any) -> str:
    """Canonical grouping key: lower-cased, digits stripped, whitespace collapsed.

    >>> normalize_key('  NETFLIX.COM 8839  Sydney ')
    'netflix.com sydney'
    """
    if not isinstance(value, str):
        return ''
    text = _DIGITS.sub('', value.lower())
    return _WHITESPACE.sub(' ', text).strip()


def transactions_frame(transactions: Union[pd.DataFrame, Iterable[Transaction], None]) -> pd.DataFrame:
    """Build a clean frame with a ``Key`` column, rows kept in input order.

    Accepts either ``Transaction`` records or a DataFrame already using the
    ``Description`` / ``Amount`` / ``Transaction Date`` columns, with amounts
    in signed minor units. Rows with an unparseable date or amount are dropped.
    """
    if transactions is None:
        return pd.DataFrame(columns=FRAME_COLUMNS + ['Key'])
    if isinstance(transactions, pd.DataFrame):
        working = transactions.copy()
    else:
        working = pd.DataFrame(
            [
                {
                    'Description': txn.description,
                    'Amount': txn.amount_minor_units,
                    'Transaction Date': txn.occurred_at,
                    'Category': txn.category,
                }
                for txn in transactions
            ],
            columns=FRAME_COLUMNS,
        )

    for column in ('Description', 'Amount', 'Transaction Date'):
        if column not in working.columns:
            return pd.DataFrame(columns=FRAME_COLUMNS + ['Key'])
    if working.empty:
        return working.assign(Key=pd.Series(dtype=str))

    working = working.reset_index(drop=True)
    dates = pd.to_datetime(working['Transaction Date'], errors='coerce', utc=True)
    working['Transaction Date'] = dates.dt.tz_localize(None)
    working['Amount'] = pd.to_numeric(working['Amount'], errors='coerce')
    working = working.dropna(subset=['Transaction Date', 'Amount'])
    working['Description'] = working['Description'].fillna('').astype(str)
    working['Key'] = working['Description'].map(normalize_key)
    return working
