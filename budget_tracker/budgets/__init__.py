"""Budget-specific business logic.

This package provides:
- Budget windows: which dates a budget covers for a viewed month
- Actual amounts: what the ledger has consumed or earned against a budget
- Reporting: income/expense totals and category reports in a base currency
- Recurring budget edits: update, shift, or split without rewriting history
- A budget store interface and an in-memory store
"""

from .windows import (
    BudgetWindow,
    resolve_window,
    budget_applies,
    filter_budgets,
)
from .actuals import (
    CategoryActual,
    ledger_frame,
    matching_types,
    actual_amount,
    category_actual,
)
from .reporting import (
    Totals,
    BudgetSummary,
    CategoryReport,
    budget_rows,
    summarize,
    summarize_rows,
    organize_by_category,
    organize_by_kind,
    effective_budget,
    category_report,
)
from .storage import (
    BudgetStore,
    BudgetNotFoundError,
    InMemoryBudgetStore,
)
from .splitter import (
    UPDATE,
    SHIFT,
    SPLIT,
    EditPlan,
    EditResult,
    BudgetEditError,
    plan_recurring_edit,
    plan_edit,
    apply_edit_plan,
    edit_budget,
)

__all__ = [
    # Windows
    'BudgetWindow',
    'resolve_window',
    'budget_applies',
    'filter_budgets',
    # Actuals
    'CategoryActual',
    'ledger_frame',
    'matching_types',
    'actual_amount',
    'category_actual',
    # Reporting
    'Totals',
    'BudgetSummary',
    'CategoryReport',
    'budget_rows',
    'summarize',
    'summarize_rows',
    'organize_by_category',
    'organize_by_kind',
    'effective_budget',
    'category_report',
    # Storage
    'BudgetStore',
    'BudgetNotFoundError',
    'InMemoryBudgetStore',
    # Recurring edits
    'UPDATE',
    'SHIFT',
    'SPLIT',
    'EditPlan',
    'EditResult',
    'BudgetEditError',
    'plan_recurring_edit',
    'plan_edit',
    'apply_edit_plan',
    'edit_budget',
]
