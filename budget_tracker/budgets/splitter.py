"""Edit recurring budgets without rewriting their history.

Editing a recurring budget while viewing some month is one of three
actions, decided by comparing the viewed month with the budget's start:

``update``
    viewed month is the start month; the record is changed in place.
``shift``
    viewed month is before the start month; the record starts earlier and
    takes the new values.
``split``
    viewed month is after the start month; the record keeps its original
    values but ends the month before the viewed month, and a new record
    with the new values starts at the viewed month.

Planning is pure (:func:`plan_edit`).  Writing (:func:`apply_edit_plan`)
truncates first and only creates the successor once the truncation has
succeeded.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Union

from ..models import Budget, BudgetChanges
from ..months import format_month, to_month
from .storage import BudgetStore

logger = logging.getLogger(__name__)

UPDATE = 'update'
SHIFT = 'shift'
SPLIT = 'split'

Changes = Union[BudgetChanges, Mapping[str, Any]]


@dataclass(frozen=True)
class EditPlan:
    action: str
    budget_id: str
    updates: Dict[str, Any]
    new_budget: Optional[Dict[str, Any]] = None


class EditResult(NamedTuple):
    action: str
    budgets: List[Budget]


class BudgetEditError(RuntimeError):
    """A budget edit failed; no partial success may be assumed.

    ``needs_reconciliation`` is set when the original record was already
    truncated but its successor could not be created and nothing rolled
    the truncation back.
    """

    def __init__(self, message: str, *, plan: EditPlan, needs_reconciliation: bool = False):
        super().__init__(message)
        self.plan = plan
        self.needs_reconciliation = needs_reconciliation


def _updates(changes: Changes) -> Dict[str, Any]:
    if isinstance(changes, BudgetChanges):
        return changes.as_updates()
    return BudgetChanges(**dict(changes)).as_updates()


def plan_recurring_edit(budget: Budget, changes: Changes, viewed_month: Any) -> EditPlan:
    """Decide how to apply ``changes`` to a recurring budget viewed at ``viewed_month``.

    Args:
        budget: The recurring budget being edited
        changes: Edited fields (:class:`BudgetChanges` or a mapping of its fields)
        viewed_month: Month the user was looking at when editing

    Returns:
        The plan to hand to :func:`apply_edit_plan`

    Raises:
        ValueError: If ``budget`` is not a recurring budget with a start month
        BudgetValidationError: If the record a split would create is invalid
    """
    if not budget.recurring or budget.start_month is None:
        raise ValueError(f"Budget {budget.budget_id!r} is not a recurring budget")

    viewed = to_month(viewed_month)
    updates = _updates(changes)
    updates.pop('month', None)

    if viewed == budget.start_month:
        return EditPlan(UPDATE, budget.budget_id, updates)

    if viewed < budget.start_month:
        updates['start_month'] = viewed
        return EditPlan(SHIFT, budget.budget_id, updates)

    end_of_old_period = viewed - 1
    original_end = budget.end_month
    # Truncation may shorten a record but never lengthen it
    truncated_end = end_of_old_period if original_end is None else min(original_end, end_of_old_period)

    if original_end is not None and original_end >= viewed:
        new_end = original_end
    else:
        new_end = updates.get('end_month')

    new_budget = {
        'category_id': updates.get('category_id', budget.category_id),
        'currency': updates.get('currency', budget.currency),
        'amount': updates.get('amount', budget.amount),
        'recurring': True,
        'start_month': viewed,
        'end_month': new_end,
        'status': updates.get('status', budget.status),
        'notes': updates.get('notes', budget.notes),
    }
    # Reject an invalid successor before anything is written
    Budget(budget_id='', **new_budget).validate()
    return EditPlan(SPLIT, budget.budget_id, {'end_month': truncated_end}, new_budget)


def plan_edit(budget: Budget, changes: Changes, viewed_month: Any) -> EditPlan:
    """Plan any budget edit.

    One-time budgets, and edits that switch the recurring flag, are plain
    updates; recurring budgets go through :func:`plan_recurring_edit`.
    """
    updates = _updates(changes)
    if not budget.recurring or updates.get('recurring') is False:
        return EditPlan(UPDATE, budget.budget_id, updates)
    return plan_recurring_edit(budget, changes, viewed_month)


def _write(plan: EditPlan, store: BudgetStore, transactional: bool) -> List[Budget]:
    try:
        updated = store.update_budget(plan.budget_id, plan.updates)
    except Exception as exc:
        raise BudgetEditError(f"Failed to {plan.action} budget {plan.budget_id}: {exc}", plan=plan) from exc

    if plan.new_budget is None:
        return [updated]

    try:
        created = store.create_budget(plan.new_budget)
    except Exception as exc:
        if not transactional:
            logger.error(
                "Budget %s now ends %s but its successor from %s could not be created; "
                "manual reconciliation required: %s",
                plan.budget_id,
                format_month(plan.updates['end_month']),
                format_month(plan.new_budget['start_month']),
                exc,
            )
        raise BudgetEditError(
            f"Failed to create successor of budget {plan.budget_id}: {exc}",
            plan=plan,
            needs_reconciliation=not transactional,
        ) from exc
    return [updated, created]


def apply_edit_plan(plan: EditPlan, store: BudgetStore) -> List[Budget]:
    """Carry out ``plan`` against ``store``.

    Returns the written records: the updated budget, followed by the new
    budget for a split.  Stores exposing a ``transaction()`` context
    manager get both writes inside one transaction.  Nothing is retried.

    Raises:
        BudgetEditError: If either write fails
    """
    transaction = getattr(store, 'transaction', None)
    if callable(transaction):
        with transaction():
            written = _write(plan, store, transactional=True)
    else:
        written = _write(plan, store, transactional=False)

    logger.info("Budget %s edit applied as %s", plan.budget_id, plan.action)
    return written


def edit_budget(budget: Budget, changes: Changes, viewed_month: Any, store: BudgetStore) -> EditResult:
    """Plan and apply an edit made while viewing ``viewed_month``."""
    plan = plan_edit(budget, changes, viewed_month)
    return EditResult(plan.action, apply_edit_plan(plan, store))
