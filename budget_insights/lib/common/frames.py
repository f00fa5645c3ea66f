"""Transaction DataFrame preparation.

Every aggregation in the engine runs on a DataFrame with the columns
``Transaction Date``, ``Description``, ``Amount``, ``Category``, ``Type``
plus the derived ``Category Key``, ``Abs Amount`` and ``Month`` columns.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Iterable, List, Optional

import numpy as np
import pandas as pd

from ...models import Transaction, parse_date
from ..config import get_budget_config

FRAME_COLUMNS = ['id', 'Transaction Date', 'Description', 'Amount', 'Category', 'Type']
_MONTH_PATTERN = re.compile(r'^\d{4}-\d{2}$')


def as_transaction(item: Any) -> Transaction:
    if isinstance(item, Transaction):
        return item
    return Transaction.from_dict(item)


def month_key(value: Any) -> Optional[str]:
    """Normalize a month selector or date into a ``YYYY-MM`` key."""
    if isinstance(value, str) and _MONTH_PATTERN.match(value.strip()):
        try:
            return datetime.strptime(value.strip(), '%Y-%m').strftime('%Y-%m')
        except ValueError:
            return None
    parsed = parse_date(value)
    return parsed.strftime('%Y-%m') if parsed else None


def transactions_frame(transactions: Optional[Iterable[Any]]) -> pd.DataFrame:
    """Build the analysis DataFrame from Transaction objects or dictionaries."""
    records = []
    for item in transactions or []:
        txn = as_transaction(item)
        records.append({
            'id': txn.id,
            'Transaction Date': txn.timestamp,
            'Description': txn.description,
            'Amount': txn.amount,
            'Category': txn.category,
            'Type': txn.type,
        })

    data = pd.DataFrame(records, columns=FRAME_COLUMNS)
    data['Transaction Date'] = pd.to_datetime(data['Transaction Date'], errors='coerce')
    data['Amount'] = pd.to_numeric(data['Amount'], errors='coerce').fillna(0.0).astype(float)
    data['Description'] = data['Description'].fillna('').astype(str)
    data['Category'] = data['Category'].fillna('').astype(str)
    data['Type'] = data['Type'].fillna('').astype(str)

    data['Category Key'] = data['Category'].str.strip().str.lower()
    data['Abs Amount'] = np.abs(data['Amount'].to_numpy(dtype=float))
    data['Month'] = data['Transaction Date'].dt.to_period('M').astype(str)
    return data


def income_mask(frame: pd.DataFrame, income_category: Optional[str] = None) -> pd.Series:
    """Rows that count as income: the income category or an income-typed entry."""
    if income_category is None:
        income_category = get_budget_config()['constants']['income_category']
    key = income_category.strip().lower()
    return frame['Category Key'].eq(key) | frame['Type'].eq('income')


def income_rows(frame: pd.DataFrame, income_category: Optional[str] = None) -> pd.DataFrame:
    return frame[income_mask(frame, income_category)].copy()


def expense_rows(frame: pd.DataFrame, income_category: Optional[str] = None) -> pd.DataFrame:
    return frame[~income_mask(frame, income_category)].copy()


def filter_by_months(transactions: Iterable[Any], months: Optional[Iterable[Any]]) -> List[Transaction]:
    """Keep transactions dated inside the selected months.

    An empty or missing selection means no window: everything is returned.
    Undated transactions are dropped once a window is applied.
    """
    items = [as_transaction(t) for t in transactions or []]
    keys = {k for k in (month_key(m) for m in months or []) if k}
    if not keys:
        return items
    selected = []
    for txn in items:
        stamp = txn.timestamp
        if stamp is not None and stamp.strftime('%Y-%m') in keys:
            selected.append(txn)
    return selected
