"""Streamlit budgets page.

Shows, for a chosen month, every budget that applies with its actual
amount, remaining headroom (or shortfall for income goals) and the
income/expense totals converted into the base currency.  Recurring
budgets can be edited; edits made while viewing a later month split the
budget so earlier months keep their original amount.

To run the page from the command line::

    streamlit run budget_tracker/dashboard.py

Data comes from the snapshot file named by ``BUDGET_TRACKER_SNAPSHOT``
(see :mod:`budget_tracker.config`) or from an uploaded snapshot.
"""

from __future__ import annotations

import json
import os
import sys
from typing import List, Optional

import pandas as pd
import streamlit as st

# Support both ``streamlit run budget_tracker/dashboard.py`` and package imports
if __package__:
    from . import config
    from . import visualization as viz
    from .budgets import (
        InMemoryBudgetStore, BudgetEditError, budget_rows, edit_budget, filter_budgets, summarize_rows,
    )
    from .currency import format_currency
    from .models import BudgetChanges, BudgetValidationError
    from .months import current_month, format_month, to_month
    from .snapshot import Snapshot, load_snapshot, parse_snapshot
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from budget_tracker import config  # type: ignore
    from budget_tracker import visualization as viz  # type: ignore
    from budget_tracker.budgets import (  # type: ignore
        InMemoryBudgetStore, BudgetEditError, budget_rows, edit_budget, filter_budgets, summarize_rows,
    )
    from budget_tracker.currency import format_currency  # type: ignore
    from budget_tracker.models import BudgetChanges, BudgetValidationError  # type: ignore
    from budget_tracker.months import current_month, format_month, to_month  # type: ignore
    from budget_tracker.snapshot import Snapshot, load_snapshot, parse_snapshot  # type: ignore

STORE_KEY = 'budget_store'
STORE_SOURCE_KEY = 'budget_store_source'


def month_options(snapshot: Snapshot, around: Optional[pd.Period] = None, span: int = 12) -> List[str]:
    """Months offered in the picker: ``span`` months either side of ``around``."""
    centre = around or current_month()
    months = {centre + offset for offset in range(-span, span + 1)}
    for budget in snapshot.budgets:
        for month in (budget.month, budget.start_month, budget.end_month):
            if month is not None:
                months.add(month)
    return [format_month(m) for m in sorted(months, reverse=True)]


def totals_table(summary) -> pd.DataFrame:
    """Income and expense totals as a display table."""
    rows = []
    for label, totals in (('Income', summary.income), ('Expense', summary.expense)):
        rows.append({
            'Type': label,
            'Budgets': totals.count,
            'Budget': totals.total_budget,
            'Actual': totals.total_actual,
            'Remaining': totals.total_remaining,
            'Over Budget': totals.over_budget,
        })
    return pd.DataFrame(rows)


def _get_store(snapshot: Snapshot) -> InMemoryBudgetStore:
    """Session store seeded from ``snapshot``; reseeded when its budgets change."""
    source = hash(snapshot.budgets)
    if STORE_KEY not in st.session_state or st.session_state.get(STORE_SOURCE_KEY) != source:
        st.session_state[STORE_KEY] = InMemoryBudgetStore(list(snapshot.budgets))
        st.session_state[STORE_SOURCE_KEY] = source
    return st.session_state[STORE_KEY]


def _load(uploaded) -> Optional[Snapshot]:
    try:
        if uploaded is not None:
            return parse_snapshot(json.load(uploaded))
        return load_snapshot()
    except FileNotFoundError:
        st.info("No snapshot found. Upload one in the sidebar or set BUDGET_TRACKER_SNAPSHOT.")
    except ValueError as exc:  # pragma: no cover - UI display only
        st.error(f"Failed to read snapshot: {exc}")
    return None


def _render_edit_form(snapshot: Snapshot, store: InMemoryBudgetStore, month: pd.Period) -> None:
    visible = filter_budgets(store.list_budgets(), month, status='Active')
    if not visible:
        return
    with st.expander("Edit a budget"):
        labels = {
            f"{snapshot.categories[b.category_id].name if b.category_id in snapshot.categories else b.category_id}"
            f" · {b.kind} · {format_currency(b.amount, b.currency)}": b
            for b in visible
        }
        choice = st.selectbox("Budget", list(labels))
        budget = labels[choice]
        amount = st.number_input("New amount", min_value=0.01, value=float(budget.amount))
        notes = st.text_input("Notes", value=budget.notes)
        if st.button("Save"):
            try:
                result = edit_budget(budget, BudgetChanges(amount=amount, notes=notes), month, store)
            except (BudgetEditError, BudgetValidationError) as exc:
                st.error(str(exc))
            else:
                st.success(f"Saved ({result.action}).")


def main() -> None:
    """Entry point for the Streamlit page."""
    config.configure_logging()
    st.set_page_config(page_title="Budgets", layout="wide")
    st.title("Budgets")

    uploaded = st.sidebar.file_uploader("Snapshot JSON", type=["json"], accept_multiple_files=False)
    snapshot = _load(uploaded)
    if snapshot is None:
        return

    store = _get_store(snapshot)
    month = to_month(st.sidebar.selectbox("Month", month_options(snapshot), index=0))
    base = st.sidebar.text_input("Base currency", value=snapshot.base_currency).strip().upper() or snapshot.base_currency

    budgets = filter_budgets(store.list_budgets(), month, status='Active')
    rows = budget_rows(budgets, month, snapshot.ledger, snapshot.rates, snapshot.categories, base)
    summary = summarize_rows(rows, month, base)

    col_income, col_expense = st.columns(2)
    with col_income:
        st.subheader("Income")
        st.metric("Goal", format_currency(summary.income.total_budget, base))
        st.metric("Earned", format_currency(summary.income.total_actual, base))
        st.metric("Still needed", format_currency(summary.income.total_remaining, base))
    with col_expense:
        st.subheader("Expense")
        st.metric("Budget", format_currency(summary.expense.total_budget, base))
        st.metric("Spent", format_currency(summary.expense.total_actual, base))
        st.metric("Remaining", format_currency(summary.expense.total_remaining, base))

    if summary.unconverted_currencies:
        st.warning(
            f"No exchange rate to {base} for {', '.join(summary.unconverted_currencies)}; "
            "those amounts are shown unconverted."
        )

    st.plotly_chart(viz.create_totals_chart(summary), use_container_width=True)
    st.plotly_chart(viz.create_budget_vs_actual_chart(rows, base), use_container_width=True)
    st.plotly_chart(viz.create_percent_used_chart(rows), use_container_width=True)

    st.subheader("Budgets")
    st.dataframe(rows.drop(columns=['budget_id', 'category_id']), use_container_width=True)
    st.dataframe(totals_table(summary), use_container_width=True)

    _render_edit_form(snapshot, store, month)


if __name__ == "__main__":
    main()
