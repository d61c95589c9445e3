import pandas as pd
import pytest

from budget_tracker.budgets.splitter import (
    SHIFT,
    SPLIT,
    UPDATE,
    BudgetEditError,
    edit_budget,
    plan_edit,
    plan_recurring_edit,
)
from budget_tracker.budgets.storage import InMemoryBudgetStore
from budget_tracker.models import Budget, BudgetChanges, BudgetValidationError


def _month(value):
    return pd.Period(value, freq='M')


def _recurring(**kwargs):
    fields = dict(recurring=True, start_month=_month('2024-01'))
    fields.update(kwargs)
    return Budget('BDG-1', 'GROC', 'USD', 50.0, **fields)


class _FailingStore:
    """Store without transactions whose writes can be made to fail."""

    def __init__(self, budget, fail_update=False, fail_create=False):
        self.budget = budget
        self.fail_update = fail_update
        self.fail_create = fail_create
        self.calls = []

    def update_budget(self, budget_id, updates):
        self.calls.append(('update', budget_id))
        if self.fail_update:
            raise RuntimeError('update rejected')
        self.budget = self.budget.with_changes(**updates)
        return self.budget

    def create_budget(self, data):
        self.calls.append(('create', data['start_month']))
        if self.fail_create:
            raise RuntimeError('create rejected')
        return Budget('BDG-2', **data)


class _CreateFailsStore(InMemoryBudgetStore):
    def create_budget(self, data):
        raise RuntimeError('create rejected')


def test_split_preserves_history():
    budget = _recurring()
    store = InMemoryBudgetStore([budget])

    result = edit_budget(budget, BudgetChanges(amount=80), '2024-04', store)

    assert result.action == SPLIT
    old, new = result.budgets
    assert old.budget_id == 'BDG-1'
    assert old.amount == 50.0
    assert old.start_month == _month('2024-01')
    assert old.end_month == _month('2024-03')
    assert new.budget_id != 'BDG-1'
    assert new.amount == 80.0
    assert new.start_month == _month('2024-04')
    assert new.end_month is None
    assert new.recurring
    assert len(store.list_budgets()) == 2


def test_edit_at_start_month_updates_in_place():
    plan = plan_recurring_edit(_recurring(), BudgetChanges(amount=80, notes='n'), '2024-01')
    assert plan.action == UPDATE
    assert plan.updates == {'amount': 80.0, 'notes': 'n'}
    assert plan.new_budget is None


def test_edit_before_start_shifts_start():
    budget = _recurring()
    store = InMemoryBudgetStore([budget])
    result = edit_budget(budget, {'amount': 70}, '2023-11', store)
    assert result.action == SHIFT
    [shifted] = result.budgets
    assert shifted.start_month == _month('2023-11')
    assert shifted.amount == 70.0
    assert len(store.list_budgets()) == 1


def test_split_carries_later_end_month_to_new_record():
    plan = plan_recurring_edit(_recurring(end_month=_month('2024-12')), BudgetChanges(amount=80), '2024-04')
    assert plan.updates == {'end_month': _month('2024-03')}
    assert plan.new_budget['end_month'] == _month('2024-12')


def test_split_never_extends_an_earlier_end_month():
    budget = _recurring(end_month=_month('2024-02'))
    plan = plan_recurring_edit(budget, BudgetChanges(amount=80, end_month='2024-08'), '2024-04')
    assert plan.updates == {'end_month': _month('2024-02')}
    assert plan.new_budget['start_month'] == _month('2024-04')
    assert plan.new_budget['end_month'] == _month('2024-08')


def test_split_new_record_takes_edited_fields():
    budget = _recurring(notes='old')
    plan = plan_recurring_edit(budget, BudgetChanges(currency='eur', category_id='DINE'), '2024-02')
    assert plan.new_budget['currency'] == 'EUR'
    assert plan.new_budget['category_id'] == 'DINE'
    assert plan.new_budget['amount'] == 50.0
    assert plan.new_budget['notes'] == 'old'


def test_one_time_and_non_recurring_edits_are_updates():
    one_time = Budget('B2', 'GROC', 'USD', 10.0, month=_month('2024-03'))
    assert plan_edit(one_time, BudgetChanges(amount=20), '2024-05').action == UPDATE

    plan = plan_edit(_recurring(), BudgetChanges(recurring=False, month='2024-04'), '2024-04')
    assert plan.action == UPDATE
    assert plan.updates['recurring'] is False

    with pytest.raises(ValueError):
        plan_recurring_edit(one_time, BudgetChanges(amount=20), '2024-05')


def test_failed_truncation_skips_create():
    store = _FailingStore(_recurring(), fail_update=True)
    with pytest.raises(BudgetEditError) as excinfo:
        edit_budget(store.budget, BudgetChanges(amount=80), '2024-04', store)
    assert store.calls == [('update', 'BDG-1')]
    assert not excinfo.value.needs_reconciliation
    assert excinfo.value.plan.action == SPLIT


def test_failed_create_without_transaction_needs_reconciliation():
    store = _FailingStore(_recurring(), fail_create=True)
    with pytest.raises(BudgetEditError) as excinfo:
        edit_budget(store.budget, BudgetChanges(amount=80), '2024-04', store)
    assert [call[0] for call in store.calls] == ['update', 'create']
    assert excinfo.value.needs_reconciliation
    assert store.budget.end_month == _month('2024-03')


def test_failed_create_in_transaction_rolls_back_truncation():
    budget = _recurring()
    store = _CreateFailsStore([budget])
    with pytest.raises(BudgetEditError) as excinfo:
        edit_budget(budget, BudgetChanges(amount=80), '2024-04', store)
    assert not excinfo.value.needs_reconciliation
    assert store.get_budget('BDG-1').end_month is None
    assert len(store.list_budgets()) == 1


@pytest.mark.parametrize(
    'changes',
    [
        BudgetChanges(amount=0),
        BudgetChanges(amount=80, end_month='2024-02'),
        BudgetChanges(status='Deleted'),
    ],
)
def test_invalid_split_is_rejected_before_any_write(changes):
    store = _FailingStore(_recurring())
    with pytest.raises(BudgetValidationError):
        edit_budget(store.budget, changes, '2024-04', store)
    assert store.calls == []
    assert store.budget.end_month is None
