"""Compute how much of a budget the ledger has actually consumed or earned.

The ledger is read-only.  It can be passed as ``Transaction`` records, as
raw store records, or as a DataFrame; :func:`ledger_frame` normalizes any
of these into one DataFrame.  Normalizing is the expensive step, so
callers that evaluate many budgets against one snapshot should call
:func:`ledger_frame` once and pass the result along.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, FrozenSet, Iterable, Mapping, NamedTuple, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..categories import CategoryIndex, category_type
from ..currency import convert_or_original
from ..models import (
    CANCELLED,
    EXPENSE,
    INCOME,
    TRANSFER_OUT,
    Budget,
    ExchangeRate,
    Transaction,
    optional_id,
    optional_timestamp,
)
from ..months import month_bounds
from .windows import resolve_window

LEDGER_COLUMNS = ['transaction_id', 'category_id', 'currency', 'amount', 'type', 'status', 'date', 'deleted_at']

# Spending against an expense budget includes money transferred out;
# earning against an income budget only counts income.
INCOME_TYPES: FrozenSet[str] = frozenset({INCOME})
EXPENSE_TYPES: FrozenSet[str] = frozenset({EXPENSE, TRANSFER_OUT})

Ledger = Union[pd.DataFrame, Iterable[Union[Transaction, Mapping[str, Any]]]]


class CategoryActual(NamedTuple):
    amount: float
    currencies: Tuple[str, ...]
    original_by_currency: Dict[str, float]


def matching_types(category_kind: str) -> FrozenSet[str]:
    """Transaction types that count towards a budget of ``category_kind``."""
    return INCOME_TYPES if category_kind == INCOME else EXPENSE_TYPES


def ledger_frame(ledger: Ledger) -> pd.DataFrame:
    """Normalize a ledger into a DataFrame with :data:`LEDGER_COLUMNS`.

    Category ids become strings, currency codes are upper-cased, dates
    are parsed to naive timestamps and amounts are coerced to floats.
    Rows with an unparseable date are dropped.  The input is never
    modified.
    """
    if isinstance(ledger, pd.DataFrame):
        if ledger.attrs.get('normalized'):
            return ledger
        frame = ledger.copy()
    else:
        rows = [asdict(item) if isinstance(item, Transaction) else dict(item) for item in ledger]
        frame = pd.DataFrame(rows)

    for column in LEDGER_COLUMNS:
        if column not in frame.columns:
            frame[column] = None
    frame = frame[LEDGER_COLUMNS].copy()

    frame['category_id'] = frame['category_id'].map(optional_id).astype(object)
    frame['currency'] = frame['currency'].fillna('').astype(str).str.strip().str.upper()
    frame['amount'] = pd.to_numeric(frame['amount'], errors='coerce').fillna(0.0).astype(float)
    frame['type'] = frame['type'].fillna('').astype(str)
    frame['status'] = frame['status'].fillna('').astype(str)
    frame['date'] = _naive_datetimes(frame['date'])
    frame['deleted_at'] = _naive_datetimes(frame['deleted_at'])
    frame = frame.dropna(subset=['date']).reset_index(drop=True)

    frame.attrs['normalized'] = True
    return frame


def _naive_datetimes(series: pd.Series) -> pd.Series:
    def _coerce(value: Any) -> pd.Timestamp:
        try:
            stamp = optional_timestamp(value)
        except (TypeError, ValueError):
            return pd.NaT
        return pd.NaT if stamp is None else stamp

    return pd.to_datetime(series.map(_coerce))


def _live_rows(frame: pd.DataFrame) -> pd.Series:
    return (frame['status'] != CANCELLED) & frame['deleted_at'].isna()


def actual_amount(
    budget: Budget,
    reference_month: Any,
    ledger: Ledger,
    category_index: CategoryIndex,
) -> float:
    """Sum the ledger entries that count towards ``budget`` in ``reference_month``.

    An entry counts when its category and currency match the budget
    exactly, its type matches the budget's category type, it is neither
    cancelled nor soft-deleted, and its date lies in the budget window.
    Amounts are summed as absolute values.  Returns ``0.0`` when the
    budget does not apply to ``reference_month``.

    Raises:
        UnknownCategoryError: If the budget's category is not in the index
    """
    types = matching_types(category_type(category_index, budget.category_id))
    window = resolve_window(budget, reference_month)
    if window is None:
        return 0.0

    frame = ledger_frame(ledger)
    if frame.empty:
        return 0.0

    mask = (
        (frame['category_id'] == budget.category_id)
        & (frame['currency'] == budget.currency)
        & frame['type'].isin(types)
        & _live_rows(frame)
        & frame['date'].between(window.start, window.end)
    )
    return float(np.abs(frame.loc[mask, 'amount'].to_numpy()).sum())


def category_actual(
    category_ids: Sequence[str],
    reference_month: Any,
    ledger: Ledger,
    category_kind: str,
    rates: Sequence[ExchangeRate],
    base_currency: str,
) -> CategoryActual:
    """Actual total for several categories in one month, in ``base_currency``.

    Unlike :func:`actual_amount` this spans every currency: each entry is
    converted on its own, keeping the original amount when no rate exists.
    """
    frame = ledger_frame(ledger)
    if frame.empty:
        return CategoryActual(0.0, (), {})

    start, end = month_bounds(reference_month)
    mask = (
        frame['category_id'].isin(list(category_ids))
        & frame['type'].isin(matching_types(category_kind))
        & _live_rows(frame)
        & frame['date'].between(start, end)
    )
    matched = frame.loc[mask, ['currency', 'amount']].copy()
    if matched.empty:
        return CategoryActual(0.0, (), {})

    matched['currency'] = matched['currency'].replace('', base_currency.upper())
    matched['amount'] = matched['amount'].abs()
    by_currency = matched.groupby('currency')['amount'].sum()

    total = 0.0
    for currency, amount in by_currency.items():
        value, _ = convert_or_original(float(amount), currency, base_currency, rates)
        total += value
    return CategoryActual(
        amount=total,
        currencies=tuple(sorted(by_currency.index)),
        original_by_currency={cur: float(val) for cur, val in by_currency.items()},
    )
