#!/usr/bin/env python3
"""Print budget totals for a month from a ledger snapshot."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from budget_tracker import config
from budget_tracker.budgets import budget_rows, filter_budgets, summarize_rows
from budget_tracker.currency import format_currency
from budget_tracker.months import current_month, to_month
from budget_tracker.snapshot import load_snapshot


def main(snapshot_path: Path | None = None, month: str | None = None, base: str | None = None) -> None:
    snapshot = load_snapshot(snapshot_path)
    reference = to_month(month) if month else current_month()
    base_currency = (base or snapshot.base_currency).upper()

    budgets = filter_budgets(snapshot.budgets, reference, status='Active')
    if not budgets:
        print(f"No active budgets for {reference}.")
        return

    rows = budget_rows(budgets, reference, snapshot.ledger, snapshot.rates, snapshot.categories, base_currency)
    summary = summarize_rows(rows, reference, base_currency)

    print(f"Budgets for {reference} ({base_currency})\n")
    columns = ['Category', 'Type', 'Kind', 'Currency', 'Budget', 'Actual', 'Remaining', 'Status']
    print(rows[columns].to_string(index=False))

    for label, totals in (('Income', summary.income), ('Expense', summary.expense)):
        print(f"\n{label}:")
        print(f"  Budget:    {format_currency(totals.total_budget, base_currency)}")
        print(f"  Actual:    {format_currency(totals.total_actual, base_currency)}")
        print(f"  Remaining: {format_currency(totals.total_remaining, base_currency)}")
        if totals.over_budget:
            print(f"  Over:      {format_currency(totals.over_budget, base_currency)}")

    if summary.unconverted_currencies:
        print(f"\nUnconverted (no rate to {base_currency}): {', '.join(summary.unconverted_currencies)}")


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Show budget totals for a month.')
    parser.add_argument('--snapshot', type=Path, default=None, help='Snapshot JSON (defaults to config)')
    parser.add_argument('--month', default=None, help='Month as YYYY-MM (defaults to the current month)')
    parser.add_argument('--base', default=None, help='Base currency (defaults to the snapshot setting)')
    parser.add_argument('--log-level', default=None, help='Logging level, e.g. DEBUG')
    args = parser.parse_args()
    config.configure_logging(args.log_level)
    main(snapshot_path=args.snapshot, month=args.month, base=args.base)
