"""Plotly visualisation helpers for the budgets page.

Each function accepts the data objects returned by
:mod:`budget_tracker.budgets.reporting` and produces an interactive
Plotly figure that Streamlit renders via ``st.plotly_chart``.
"""

from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .budgets.reporting import BudgetSummary


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_budget_vs_actual_chart(rows: pd.DataFrame, base_currency: str, title: str | None = None) -> go.Figure:
    """Grouped bar chart of budget versus actual per category.

    Parameters
    ----------
    rows : pandas.DataFrame
        Output of :func:`budget_tracker.budgets.reporting.budget_rows`.
    base_currency : str
        Currency the ``(base)`` columns are expressed in.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Bars for budget and actual, one pair per category.
    """
    if rows.empty:
        return _empty_figure()
    by_category = (
        rows.groupby(['Category', 'Type'], as_index=False)[['Budget (base)', 'Actual (base)']]
        .sum()
        .rename(columns={'Budget (base)': 'Budget', 'Actual (base)': 'Actual'})
    )
    long = by_category.melt(
        id_vars=['Category', 'Type'],
        value_vars=['Budget', 'Actual'],
        var_name='Metric',
        value_name='Amount',
    )
    fig = px.bar(
        long,
        x='Category',
        y='Amount',
        color='Metric',
        barmode='group',
        facet_col='Type',
        hover_data=['Type'],
    )
    fig.update_layout(
        title=title or "Budget vs actual",
        yaxis_title=f"Amount ({base_currency})",
        legend_title_text="",
    )
    return fig


def create_totals_chart(summary: BudgetSummary) -> go.Figure:
    """Bar chart of the income and expense partition totals."""
    if summary.income.count == 0 and summary.expense.count == 0:
        return _empty_figure()
    fig = go.Figure()
    labels = ['Income', 'Expense']
    partitions = [summary.income, summary.expense]
    fig.add_trace(go.Bar(name='Budget', x=labels, y=[t.total_budget for t in partitions]))
    fig.add_trace(go.Bar(name='Actual', x=labels, y=[t.total_actual for t in partitions]))
    fig.add_trace(go.Bar(name='Remaining', x=labels, y=[t.total_remaining for t in partitions]))
    fig.update_layout(
        barmode='group',
        title=f"Totals for {summary.reference_month} ({summary.base_currency})",
        yaxis_title=summary.base_currency,
    )
    return fig


def create_percent_used_chart(rows: pd.DataFrame) -> go.Figure:
    """Horizontal bars of percent used, coloured by status."""
    if rows.empty:
        return _empty_figure()
    data = rows.dropna(subset=['Percent Used']).sort_values('Percent Used')
    if data.empty:
        return _empty_figure()
    fig = px.bar(
        data,
        x='Percent Used',
        y='Category',
        color='Status',
        orientation='h',
        hover_data=['Kind', 'Currency', 'Budget', 'Actual'],
    )
    fig.add_vline(x=100, line_dash='dash', line_color='gray')
    fig.update_layout(title="Percent of budget used", xaxis_title="% used")
    return fig
