"""Resolve which date range a budget covers for a viewed month."""

from __future__ import annotations

from typing import Any, Iterable, List, NamedTuple, Optional

import pandas as pd

from ..months import month_bounds, to_month
from ..models import Budget


class BudgetWindow(NamedTuple):
    start: pd.Timestamp
    end: pd.Timestamp

    def contains(self, when: pd.Timestamp) -> bool:
        return self.start <= when <= self.end


def resolve_window(budget: Budget, reference_month: Any) -> Optional[BudgetWindow]:
    """Return the window ledger entries are matched against, or ``None``.

    One-time budgets only resolve when ``reference_month`` is their month.
    Recurring budgets resolve to ``reference_month`` itself as long as it
    lies within ``start_month``..``end_month`` (open-ended when no end).

    ``None`` means the budget does not apply to ``reference_month``;
    callers must skip it rather than aggregate against an empty window.
    """
    reference = to_month(reference_month)

    if not budget.recurring:
        if budget.month is None:
            raise ValueError(f"One-time budget {budget.budget_id!r} has no month")
        if reference != budget.month:
            return None
        return BudgetWindow(*month_bounds(budget.month))

    if budget.start_month is None:
        raise ValueError(f"Recurring budget {budget.budget_id!r} has no start month")
    if reference < budget.start_month:
        return None
    if budget.end_month is not None and reference > budget.end_month:
        return None
    return BudgetWindow(*month_bounds(reference))


def budget_applies(budget: Budget, month: Any) -> bool:
    return resolve_window(budget, month) is not None


def filter_budgets(
    budgets: Iterable[Budget],
    month: Any = None,
    *,
    category_id: Optional[str] = None,
    currency: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Budget]:
    """Filter budgets the way the budgets page lists them.

    Args:
        budgets: Budget records
        month: Only keep budgets that apply to this month
        category_id: Only keep budgets for this category
        currency: Only keep budgets in this currency
        status: Only keep budgets with this status (e.g. ``'Active'``)

    Returns:
        Matching budgets, most recently created first
    """
    filtered = list(budgets)
    if month is not None:
        reference = to_month(month)
        filtered = [b for b in filtered if budget_applies(b, reference)]
    if category_id:
        filtered = [b for b in filtered if b.category_id == category_id]
    if currency:
        filtered = [b for b in filtered if b.currency == currency.upper()]
    if status:
        filtered = [b for b in filtered if b.status == status]

    epoch = pd.Timestamp(0)
    return sorted(
        filtered,
        key=lambda b: b.created_at if b.created_at is not None else epoch,
        reverse=True,
    )
