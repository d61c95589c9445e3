import pandas as pd
import pytest

from budget_tracker.models import (
    CLEAR,
    Budget,
    BudgetChanges,
    BudgetValidationError,
    Category,
    ExchangeRate,
    Transaction,
)


def _record(**overrides):
    record = {
        'budget_id': 'BDG-1',
        'category_id': 'CAT-1',
        'currency': 'usd',
        'amount': 100,
        'recurring': False,
        'month': '2024-03-06',
        'status': 'Active',
    }
    record.update(overrides)
    return record


def test_budget_from_record_normalizes_fields():
    budget = Budget.from_record(_record())
    assert budget.currency == 'USD'
    assert budget.month == pd.Period('2024-03', freq='M')
    assert budget.start_month is None
    assert budget.kind == 'One-time'


def test_recurring_budget_ignores_month_field():
    budget = Budget.from_record(_record(recurring=True, start_month='2024-01', end_month='2024-06'))
    assert budget.month is None
    assert budget.start_month == pd.Period('2024-01', freq='M')
    assert budget.end_month == pd.Period('2024-06', freq='M')
    assert budget.kind == 'Recurring'


@pytest.mark.parametrize(
    'overrides',
    [
        {'month': None},
        {'recurring': True, 'start_month': None},
        {'recurring': True, 'start_month': '2024-05', 'end_month': '2024-04'},
        {'currency': 'US'},
        {'amount': 0},
        {'status': 'Deleted'},
        {'month': 'not-a-month'},
    ],
)
def test_invalid_budgets_are_rejected(overrides):
    with pytest.raises(BudgetValidationError):
        Budget.from_record(_record(**overrides))


def test_to_record_uses_store_month_dates():
    record = Budget.from_record(_record(recurring=True, start_month='2024-01')).to_record()
    assert record['start_month'] == '2024-01-06'
    assert record['end_month'] is None
    assert record['month'] is None


def test_transaction_void_flags():
    base = {'transaction_id': 'T1', 'category_id': 'C', 'currency': 'usd', 'amount': -5, 'type': 'Expense', 'date': '2024-03-01'}
    assert not Transaction.from_record(base).is_void
    assert Transaction.from_record({**base, 'status': 'Cancelled'}).is_void
    assert Transaction.from_record({**base, 'deleted_at': '2024-03-02T00:00:00Z'}).is_void


def test_exchange_rate_must_be_positive():
    with pytest.raises(BudgetValidationError):
        ExchangeRate('EUR', 'USD', 0, pd.Timestamp('2024-01-01'))


def test_category_parent_key_from_store():
    category = Category.from_record({'category_id': 'C2', 'name': 'Rent', 'type': 'expense', 'parent_category_id': 'C1'})
    assert category.parent_id == 'C1'
    assert category.type == 'Expense'


def test_budget_changes_only_reports_set_fields():
    updates = BudgetChanges(amount=80, end_month=CLEAR).as_updates()
    assert updates == {'amount': 80.0, 'end_month': None}
    assert BudgetChanges(start_month='2024-02').as_updates() == {'start_month': pd.Period('2024-02', freq='M')}
