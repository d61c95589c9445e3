"""Budget store interface and an in-memory implementation.

The real budget store is a hosted service reached through an API layer.
The engine only needs :class:`BudgetStore`; :class:`InMemoryBudgetStore`
implements it with the same validation rules so the dashboard and the
tests can run without a backend.
"""

from __future__ import annotations

from contextlib import contextmanager
from copy import copy
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol
from uuid import uuid4

import pandas as pd

from ..models import BUDGET_STATUSES, Budget, BudgetValidationError, normalize_currency
from ..months import current_month, optional_month

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    'category_id', 'currency', 'amount', 'recurring', 'month',
    'start_month', 'end_month', 'status', 'notes',
}


class BudgetStore(Protocol):
    """Write interface the recurring budget editor depends on."""

    def create_budget(self, data: Mapping[str, Any]) -> Budget:  # pragma: no cover - interface
        ...

    def update_budget(self, budget_id: str, updates: Mapping[str, Any]) -> Budget:  # pragma: no cover - interface
        ...


class BudgetNotFoundError(LookupError):
    pass


def generate_budget_id() -> str:
    return f"BDG-{uuid4().hex[:12].upper()}"


class InMemoryBudgetStore:
    """Holds budget records in a dict keyed by ``budget_id``."""

    def __init__(self, budgets: Optional[List[Budget]] = None):
        """Initialize the store.

        Args:
            budgets: Optional records to seed the store with
        """
        self._budgets: Dict[str, Budget] = {}
        for budget in budgets or []:
            self._budgets[budget.budget_id] = budget.validate()

    def get_budget(self, budget_id: str) -> Budget:
        """Return a budget by id.

        Raises:
            BudgetNotFoundError: If no such budget exists
        """
        try:
            return self._budgets[budget_id]
        except KeyError:
            raise BudgetNotFoundError(f"Budget not found: {budget_id}") from None

    def list_budgets(self) -> List[Budget]:
        return list(self._budgets.values())

    def create_budget(self, data: Mapping[str, Any]) -> Budget:
        """Create a budget from a field mapping.

        Args:
            data: Budget fields; months may be periods or ``'YYYY-MM'`` strings

        Returns:
            The stored budget

        Raises:
            BudgetValidationError: If required fields are missing or invalid
        """
        if not data.get('category_id') or not data.get('currency') or data.get('amount') is None:
            raise BudgetValidationError("Category ID, currency, and amount are required")

        recurring = bool(data.get('recurring', False))
        start_month = optional_month(data.get('start_month'))
        if recurring and start_month is None:
            start_month = current_month()

        budget = Budget(
            budget_id=str(data.get('budget_id') or generate_budget_id()),
            category_id=str(data['category_id']),
            currency=normalize_currency(data['currency']),
            amount=float(data['amount']),
            recurring=recurring,
            month=None if recurring else optional_month(data.get('month')),
            start_month=start_month if recurring else None,
            end_month=optional_month(data.get('end_month')) if recurring else None,
            status=str(data.get('status') or 'Active'),
            notes=str(data.get('notes') or ''),
            created_at=pd.Timestamp.now(),
        ).validate()

        if budget.budget_id in self._budgets:
            raise BudgetValidationError(f"Budget already exists: {budget.budget_id}")
        self._budgets[budget.budget_id] = budget
        logger.debug("Created budget %s", budget.budget_id)
        return budget

    def update_budget(self, budget_id: str, updates: Mapping[str, Any]) -> Budget:
        """Apply ``updates`` to an existing budget.

        Raises:
            BudgetNotFoundError: If no such budget exists
            BudgetValidationError: If the result breaks a budget invariant
        """
        existing = self.get_budget(budget_id)
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise BudgetValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if 'status' in updates and updates['status'] not in BUDGET_STATUSES:
            raise BudgetValidationError(
                f"Invalid status. Must be one of: {', '.join(BUDGET_STATUSES)}"
            )

        changes = dict(updates)
        if 'currency' in changes:
            changes['currency'] = normalize_currency(changes['currency'])
        if 'amount' in changes:
            changes['amount'] = float(changes['amount'])
        for name in ('month', 'start_month', 'end_month'):
            if name in changes:
                changes[name] = optional_month(changes[name])

        updated = existing.with_changes(**changes).validate()
        self._budgets[budget_id] = updated
        logger.debug("Updated budget %s: %s", budget_id, sorted(changes))
        return updated

    @contextmanager
    def transaction(self) -> Iterator['InMemoryBudgetStore']:
        """Run several writes as one unit; all of them are undone on error."""
        saved = copy(self._budgets)
        try:
            yield self
        except Exception:
            self._budgets = saved
            raise
