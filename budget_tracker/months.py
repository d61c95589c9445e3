"""Year-month helpers built on :class:`pandas.Period`.

Every month in the package is a ``pandas.Period`` with monthly frequency.
Periods compare naturally, support ``+``/``-`` by whole months and expose
their first and last instants, which is all the budget engine needs.

The hosted store saves months as the 6th day of the month
(``'2024-03-06'``) so that timezone shifts never move a value into the
neighbouring month.  :func:`to_month` accepts that form as well as the
plain ``'YYYY-MM'`` form used by forms and filters.
"""

from __future__ import annotations

from datetime import date, datetime
import re
from typing import Any, List, Optional, Tuple

import pandas as pd

MONTH_FREQ = 'M'
STORE_DAY = 6

_MONTH_RE = re.compile(r'^\s*(\d{4})-(\d{1,2})(?:-\d{1,2}(?:[T ].*)?)?\s*$')


def to_month(value: Any) -> pd.Period:
    """Coerce ``value`` into a monthly ``pandas.Period``.

    Args:
        value: ``'YYYY-MM'``, ``'YYYY-MM-DD'``, a date/datetime, a
            ``pandas.Timestamp`` or a ``pandas.Period``

    Returns:
        Monthly period

    Raises:
        ValueError: If the value cannot be read as a month

    Example:
        >>> to_month('2024-03-06')
        Period('2024-03', 'M')
    """
    if isinstance(value, pd.Period):
        return value.asfreq(MONTH_FREQ) if value.freqstr != MONTH_FREQ else value
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return pd.Period(year=value.year, month=value.month, freq=MONTH_FREQ)
    if isinstance(value, str):
        match = _MONTH_RE.match(value)
        if match:
            year, month = int(match.group(1)), int(match.group(2))
            if 1 <= month <= 12:
                return pd.Period(year=year, month=month, freq=MONTH_FREQ)
    raise ValueError(f"Not a valid month: {value!r}")


def optional_month(value: Any) -> Optional[pd.Period]:
    """Like :func:`to_month` but maps ``None``/blank/NaN to ``None``."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    if not isinstance(value, (pd.Period, str)) and pd.isna(value):
        return None
    return to_month(value)


def month_bounds(month: Any) -> Tuple[pd.Timestamp, pd.Timestamp]:
    """Return the first and last instant of ``month``."""
    period = to_month(month)
    return period.start_time, period.end_time


def previous_month(month: Any) -> pd.Period:
    return to_month(month) - 1


def next_month(month: Any) -> pd.Period:
    return to_month(month) + 1


def current_month() -> pd.Period:
    return pd.Timestamp.now().to_period(MONTH_FREQ)


def format_month(month: Any) -> str:
    """Format a month as ``'YYYY-MM'``."""
    return to_month(month).strftime('%Y-%m')


def month_to_store_date(month: Any) -> str:
    """Format a month the way the budget store saves it (``'YYYY-MM-06'``)."""
    period = to_month(month)
    return f"{period.year:04d}-{period.month:02d}-{STORE_DAY:02d}"


def months_between(start: Any, end: Any) -> List[pd.Period]:
    """Inclusive list of months from ``start`` to ``end`` (empty if reversed)."""
    first, last = to_month(start), to_month(end)
    if last < first:
        return []
    return list(pd.period_range(first, last, freq=MONTH_FREQ))
