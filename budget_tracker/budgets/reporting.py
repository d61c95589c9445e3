"""Budget totals, per-budget rows and category reports in a base currency.

Sign convention for ``remaining`` (``budget - actual``, never clamped):

* Expense budgets: headroom left.  Negative once the budget is overspent.
* Income budgets: amount still needed to reach the goal.  Negative once
  the goal has been exceeded.

Every figure is converted into the base currency on its own.  When a
rate is missing the unconverted figure is used for that value only, so a
missing rate lowers the precision of a total but never hides a budget.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..categories import CategoryIndex, category_and_descendant_ids, get_category, parent_group_id
from ..currency import convert_or_original
from ..models import EXPENSE, INCOME, Budget, ExchangeRate, UnknownCategoryError
from ..months import to_month
from .actuals import Ledger, actual_amount, category_actual, ledger_frame
from .windows import budget_applies

logger = logging.getLogger(__name__)

ROW_COLUMNS = [
    'budget_id',
    'category_id',
    'Category',
    'Type',
    'Kind',
    'Currency',
    'Budget',
    'Actual',
    'Remaining',
    'Budget (base)',
    'Actual (base)',
    'Remaining (base)',
    'Converted',
    'Percent Used',
    'Status',
]


@dataclass
class Totals:
    total_budget: float = 0.0
    total_actual: float = 0.0
    total_remaining: float = 0.0
    over_budget: float = 0.0
    count: int = 0


@dataclass
class BudgetSummary:
    """Income and expense totals for one month.

    ``groups`` holds the same figures split by ``(type, kind)`` where kind
    is ``'One-time'`` or ``'Recurring'``; the partition totals sum both.
    """

    reference_month: pd.Period
    base_currency: str
    income: Totals = field(default_factory=Totals)
    expense: Totals = field(default_factory=Totals)
    groups: Dict[Tuple[str, str], Totals] = field(default_factory=dict)
    unconverted_currencies: Tuple[str, ...] = ()


@dataclass
class CategoryReport:
    category_id: str
    name: str
    type: str
    budget: float
    actual: float
    difference: float
    variance_pct: Optional[float]
    currencies: Tuple[str, ...]
    budget_by_currency: Dict[str, float]
    actual_by_currency: Dict[str, float]


def _status(category_kind: str, remaining: float) -> str:
    if category_kind == INCOME:
        return 'Reached' if remaining <= 0 else 'Short'
    return 'Over' if remaining < 0 else 'Under'


def budget_rows(
    budgets: Iterable[Budget],
    reference_month: Any,
    ledger: Ledger,
    rates: Sequence[ExchangeRate],
    category_index: CategoryIndex,
    base_currency: str,
) -> pd.DataFrame:
    """One row per budget that applies to ``reference_month``.

    Args:
        budgets: Budget records
        reference_month: Month being viewed
        ledger: Transaction ledger snapshot
        rates: Exchange-rate table
        category_index: Category lookup
        base_currency: Currency totals are reported in

    Returns:
        DataFrame with :data:`ROW_COLUMNS`.  ``Converted`` is ``False``
        when at least one of the row's figures had no exchange rate.
    """
    month = to_month(reference_month)
    frame = ledger_frame(ledger)
    base = base_currency.upper()

    rows: List[Dict[str, Any]] = []
    for budget in budgets:
        if not budget_applies(budget, month):
            continue
        try:
            category = get_category(category_index, budget.category_id)
        except UnknownCategoryError:
            logger.warning("Skipping budget %s: unknown category %s", budget.budget_id, budget.category_id)
            continue

        actual = actual_amount(budget, month, frame, category_index)
        remaining = budget.amount - actual

        budget_base, budget_ok = convert_or_original(budget.amount, budget.currency, base, rates)
        actual_base, actual_ok = convert_or_original(actual, budget.currency, base, rates)
        remaining_base, remaining_ok = convert_or_original(remaining, budget.currency, base, rates)

        rows.append({
            'budget_id': budget.budget_id,
            'category_id': budget.category_id,
            'Category': category.name,
            'Type': category.type,
            'Kind': budget.kind,
            'Currency': budget.currency,
            'Budget': budget.amount,
            'Actual': actual,
            'Remaining': remaining,
            'Budget (base)': budget_base,
            'Actual (base)': actual_base,
            'Remaining (base)': remaining_base,
            'Converted': budget_ok and actual_ok and remaining_ok,
            'Percent Used': (actual / budget.amount * 100.0) if budget.amount else None,
            'Status': _status(category.type, remaining),
        })

    if not rows:
        return pd.DataFrame(columns=ROW_COLUMNS)
    return pd.DataFrame(rows, columns=ROW_COLUMNS)


def _totals(rows: pd.DataFrame) -> Totals:
    if rows.empty:
        return Totals()
    remaining = rows['Remaining (base)'].to_numpy(dtype=float)
    return Totals(
        total_budget=float(rows['Budget (base)'].sum()),
        total_actual=float(rows['Actual (base)'].sum()),
        total_remaining=float(remaining.sum()),
        over_budget=float(np.where(remaining < 0, -remaining, 0.0).sum()),
        count=int(len(rows)),
    )


def summarize(
    budgets: Iterable[Budget],
    reference_month: Any,
    ledger: Ledger,
    rates: Sequence[ExchangeRate],
    category_index: CategoryIndex,
    base_currency: str,
) -> BudgetSummary:
    """Aggregate budgets for ``reference_month`` into income and expense totals.

    Budgets that do not apply to the month are left out.  See the module
    docstring for the sign convention of ``total_remaining``.
    """
    month = to_month(reference_month)
    rows = budget_rows(budgets, month, ledger, rates, category_index, base_currency)
    return summarize_rows(rows, month, base_currency)


def summarize_rows(rows: pd.DataFrame, reference_month: Any, base_currency: str) -> BudgetSummary:
    """Build the :class:`BudgetSummary` for rows already produced by :func:`budget_rows`."""
    summary = BudgetSummary(reference_month=to_month(reference_month), base_currency=base_currency.upper())
    if rows.empty:
        return summary

    summary.income = _totals(rows[rows['Type'] == INCOME])
    summary.expense = _totals(rows[rows['Type'] != INCOME])
    for (kind_type, kind), group in rows.groupby(['Type', 'Kind'], sort=True):
        summary.groups[(kind_type, kind)] = _totals(group)

    unconverted = rows.loc[~rows['Converted'].astype(bool), 'Currency']
    summary.unconverted_currencies = tuple(sorted(set(unconverted)))
    if summary.unconverted_currencies:
        logger.info(
            "No %s rate for %s; using unconverted amounts",
            summary.base_currency,
            ', '.join(summary.unconverted_currencies),
        )
    return summary


def organize_by_category(budgets: Iterable[Budget], category_index: CategoryIndex) -> Dict[str, Dict[str, Any]]:
    """Group budgets under their parent category, then their own category.

    Returns:
        ``{parent_id: {'parent': Category, 'total_amount': float,
        'subcategories': {category_id: {'category': Category,
        'budgets': [Budget], 'total_amount': float}}}}``.  Budgets whose
        category is unknown are skipped.
    """
    grouped: Dict[str, Dict[str, Any]] = {}
    for budget in budgets:
        category = category_index.get(budget.category_id)
        if category is None:
            continue
        parent_id = parent_group_id(category_index, category.category_id)
        parent = category_index.get(parent_id, category)
        entry = grouped.setdefault(parent_id, {'parent': parent, 'subcategories': {}, 'total_amount': 0.0})
        sub = entry['subcategories'].setdefault(
            category.category_id,
            {'category': category, 'budgets': [], 'total_amount': 0.0},
        )
        sub['budgets'].append(budget)
        sub['total_amount'] += budget.amount
        entry['total_amount'] += budget.amount
    return grouped


def organize_by_kind(budgets: Iterable[Budget], category_index: CategoryIndex) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """Split budgets into one-time and recurring, each organized by category."""
    items = list(budgets)
    return {
        'one_time': organize_by_category([b for b in items if not b.recurring], category_index),
        'recurring': organize_by_category([b for b in items if b.recurring], category_index),
    }


def effective_budget(own_budget: float, children_budgets: Iterable[Optional[float]]) -> float:
    """Budget of a category given its own budget and its children's.

    Example:
        >>> effective_budget(300, [100, 150])
        300
        >>> effective_budget(200, [100, 150])
        250
    """
    children_total = sum(amount or 0 for amount in children_budgets)
    if own_budget > 0 and children_total > 0:
        return max(own_budget, children_total)
    if own_budget > 0:
        return own_budget
    return children_total


def category_report(
    category_id: str,
    reference_month: Any,
    budgets: Iterable[Budget],
    ledger: Ledger,
    rates: Sequence[ExchangeRate],
    category_index: CategoryIndex,
    base_currency: str,
) -> CategoryReport:
    """Budget versus actual for a category and all of its descendants.

    Only ``Active`` budgets that apply to the month count.  Variance is
    ``(actual - budget) / budget * 100``: negative means short of an
    income goal or under an expense budget.
    """
    month = to_month(reference_month)
    category = get_category(category_index, category_id)
    family = set(category_and_descendant_ids(category_index, category_id))
    base = base_currency.upper()

    budget_total = 0.0
    budget_by_currency: Dict[str, float] = {}
    for budget in budgets:
        if budget.category_id not in family or budget.status != 'Active':
            continue
        if not budget_applies(budget, month):
            continue
        value, _ = convert_or_original(budget.amount, budget.currency, base, rates)
        budget_total += value
        budget_by_currency[budget.currency] = budget_by_currency.get(budget.currency, 0.0) + budget.amount

    actual = category_actual(sorted(family), month, ledger, category.type or EXPENSE, rates, base)
    difference = budget_total - actual.amount
    variance = ((actual.amount - budget_total) / budget_total * 100.0) if budget_total > 0 else None

    return CategoryReport(
        category_id=category_id,
        name=category.name,
        type=category.type,
        budget=budget_total,
        actual=actual.amount,
        difference=difference,
        variance_pct=variance,
        currencies=tuple(sorted(set(budget_by_currency) | set(actual.currencies))),
        budget_by_currency=budget_by_currency,
        actual_by_currency=actual.original_by_currency,
    )
