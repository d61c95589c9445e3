import pandas as pd
import pytest

from budget_tracker.budgets.reporting import (
    budget_rows,
    category_report,
    effective_budget,
    organize_by_category,
    organize_by_kind,
    summarize,
)
from budget_tracker.categories import build_category_index
from budget_tracker.models import Budget, Category, ExchangeRate, Transaction

MARCH = pd.Period('2024-03', freq='M')


def _categories():
    return build_category_index([
        Category('FOOD', 'Food', 'Expense'),
        Category('GROC', 'Groceries', 'Expense', parent_id='FOOD'),
        Category('DINE', 'Dining', 'Expense', parent_id='FOOD'),
        Category('SAL', 'Salary', 'Income'),
    ])


def _txn(txn_id, category, amount, currency='USD', type='Expense', day='2024-03-10'):
    return Transaction(txn_id, category, currency, amount, type, pd.Timestamp(day))


def _rates():
    return [ExchangeRate('EUR', 'USD', 1.1, pd.Timestamp('2024-01-01'))]


def test_expense_overspend_gives_negative_remaining():
    budget = Budget('B1', 'GROC', 'USD', 100.0, month=MARCH)
    ledger = [_txn('T1', 'GROC', -120)]
    summary = summarize([budget], MARCH, ledger, [], _categories(), 'USD')
    assert summary.expense.total_budget == pytest.approx(100.0)
    assert summary.expense.total_actual == pytest.approx(120.0)
    assert summary.expense.total_remaining == pytest.approx(-20.0)
    assert summary.expense.over_budget == pytest.approx(20.0)
    assert summary.income.count == 0


def test_income_and_expense_are_partitioned_by_category_type():
    budgets = [
        Budget('B1', 'GROC', 'USD', 400.0, recurring=True, start_month=pd.Period('2024-01', freq='M')),
        Budget('B2', 'DINE', 'EUR', 100.0, month=MARCH),
        Budget('B3', 'SAL', 'USD', 5000.0, recurring=True, start_month=pd.Period('2024-01', freq='M')),
    ]
    ledger = [
        _txn('T1', 'GROC', -150),
        _txn('T2', 'DINE', -40, currency='EUR'),
        _txn('T3', 'SAL', 5200, type='Income'),
    ]
    summary = summarize(budgets, MARCH, ledger, _rates(), _categories(), 'usd')

    assert summary.base_currency == 'USD'
    assert summary.expense.count == 2
    assert summary.expense.total_budget == pytest.approx(400 + 110)
    assert summary.expense.total_actual == pytest.approx(150 + 44)
    assert summary.expense.total_remaining == pytest.approx(250 + 66)
    assert summary.income.total_budget == pytest.approx(5000)
    assert summary.income.total_remaining == pytest.approx(-200)

    assert set(summary.groups) == {('Expense', 'One-time'), ('Expense', 'Recurring'), ('Income', 'Recurring')}
    assert summary.groups[('Expense', 'One-time')].total_budget == pytest.approx(110)
    assert summary.unconverted_currencies == ()


def test_missing_rate_keeps_budget_with_unconverted_figures():
    budgets = [
        Budget('B1', 'GROC', 'USD', 100.0, month=MARCH),
        Budget('B2', 'DINE', 'JPY', 5000.0, month=MARCH),
    ]
    ledger = [_txn('T1', 'DINE', -1000, currency='JPY')]
    summary = summarize(budgets, MARCH, ledger, _rates(), _categories(), 'USD')

    assert summary.expense.count == 2
    assert summary.expense.total_budget == pytest.approx(5100.0)
    assert summary.expense.total_actual == pytest.approx(1000.0)
    assert summary.unconverted_currencies == ('JPY',)


def test_budgets_outside_the_month_do_not_contribute():
    budgets = [
        Budget('B1', 'GROC', 'USD', 100.0, month=pd.Period('2024-02', freq='M')),
        Budget('B2', 'GROC', 'USD', 50.0, recurring=True,
               start_month=pd.Period('2024-04', freq='M')),
    ]
    summary = summarize(budgets, MARCH, [], [], _categories(), 'USD')
    assert summary.expense.count == 0
    assert summary.expense.total_budget == 0


def test_budget_rows_columns_and_status():
    budgets = [
        Budget('B1', 'GROC', 'USD', 100.0, month=MARCH),
        Budget('B2', 'SAL', 'USD', 1000.0, month=MARCH),
        Budget('B3', 'MISSING', 'USD', 10.0, month=MARCH),
    ]
    ledger = [_txn('T1', 'GROC', -25), _txn('T2', 'SAL', 1200, type='Income')]
    rows = budget_rows(budgets, MARCH, ledger, [], _categories(), 'USD').set_index('budget_id')

    assert list(rows.index) == ['B1', 'B2']
    assert rows.loc['B1', 'Status'] == 'Under'
    assert rows.loc['B1', 'Percent Used'] == pytest.approx(25.0)
    assert rows.loc['B2', 'Status'] == 'Reached'
    assert rows.loc['B2', 'Remaining'] == pytest.approx(-200.0)
    assert bool(rows.loc['B1', 'Converted'])


def test_budget_rows_empty_has_columns():
    rows = budget_rows([], MARCH, [], [], _categories(), 'USD')
    assert rows.empty
    assert 'Remaining (base)' in rows.columns


def test_organize_by_category_groups_under_parent():
    budgets = [
        Budget('B1', 'GROC', 'USD', 100.0, month=MARCH),
        Budget('B2', 'DINE', 'USD', 50.0, month=MARCH),
        Budget('B3', 'FOOD', 'USD', 25.0, recurring=True, start_month=MARCH),
        Budget('B4', 'UNKNOWN', 'USD', 5.0, month=MARCH),
    ]
    grouped = organize_by_category(budgets, _categories())
    assert list(grouped) == ['FOOD']
    assert grouped['FOOD']['total_amount'] == pytest.approx(175.0)
    assert set(grouped['FOOD']['subcategories']) == {'GROC', 'DINE', 'FOOD'}

    by_kind = organize_by_kind(budgets, _categories())
    assert by_kind['recurring']['FOOD']['total_amount'] == pytest.approx(25.0)
    assert by_kind['one_time']['FOOD']['total_amount'] == pytest.approx(150.0)


def test_effective_budget():
    assert effective_budget(300, [100, 150]) == 300
    assert effective_budget(200, [100, 150]) == 250
    assert effective_budget(200, []) == 200
    assert effective_budget(0, [100, None]) == 100


def test_category_report_includes_descendants():
    budgets = [
        Budget('B1', 'FOOD', 'USD', 100.0, month=MARCH),
        Budget('B2', 'GROC', 'USD', 300.0, recurring=True, start_month=pd.Period('2024-01', freq='M')),
        Budget('B3', 'DINE', 'EUR', 100.0, month=MARCH),
        Budget('B4', 'DINE', 'USD', 999.0, month=MARCH, status='Archived'),
    ]
    ledger = [
        _txn('T1', 'GROC', -200),
        _txn('T2', 'DINE', -50, currency='EUR'),
        _txn('T3', 'DINE', -10, type='Transfer Out'),
    ]
    report = category_report('FOOD', MARCH, budgets, ledger, _rates(), _categories(), 'USD')

    assert report.budget == pytest.approx(100 + 300 + 110)
    assert report.actual == pytest.approx(200 + 55 + 10)
    assert report.difference == pytest.approx(report.budget - report.actual)
    assert report.variance_pct == pytest.approx((report.actual - report.budget) / report.budget * 100)
    assert report.currencies == ('EUR', 'USD')
    assert report.budget_by_currency == {'USD': 400.0, 'EUR': 100.0}


def test_category_report_without_budget_has_no_variance():
    ledger = [_txn('T1', 'SAL', 100, type='Income')]
    report = category_report('SAL', MARCH, [], ledger, [], _categories(), 'USD')
    assert report.budget == 0
    assert report.actual == pytest.approx(100)
    assert report.variance_pct is None
