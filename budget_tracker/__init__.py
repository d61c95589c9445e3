"""Top-level package for the Budget Tracker.

Budget tracking and multi-currency reconciliation over a transaction
ledger snapshot.  The primary modules are:

* ``budgets`` – budget windows, actual amounts, reporting and recurring edits
* ``currency`` – conversion over a sparse exchange-rate table
* ``months`` – year-month helpers built on ``pandas.Period``
* ``visualization`` – Plotly figures for the budgets page
* ``dashboard`` – a Streamlit budgets page

To run the budgets page from the command line you can execute:

```bash
streamlit run budget_tracker/dashboard.py
```
"""

from . import budgets  # noqa: F401  # re-exported for convenience
from . import currency  # noqa: F401  # re-exported for convenience
from . import months  # noqa: F401  # re-exported for convenience

__all__ = ["budgets", "currency", "months"]
