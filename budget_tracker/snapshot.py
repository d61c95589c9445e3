"""Read-only loading of a ledger snapshot from JSON.

A snapshot file mirrors what the application fetches from the hosted
store for one user::

    {
      "transactions": [...],
      "budgets": [...],
      "exchange_rates": [...],
      "categories": [...],
      "settings": [{"setting_key": "BaseCurrency", "setting_value": "EUR"}]
    }

Missing sections are treated as empty.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

import pandas as pd

from .budgets.actuals import ledger_frame
from .categories import build_category_index
from .config import SNAPSHOT_PATH, get_base_currency
from .models import Budget, Category, ExchangeRate, normalize_currency

logger = logging.getLogger(__name__)

BASE_CURRENCY_SETTING = 'BaseCurrency'


@dataclass(frozen=True)
class Snapshot:
    ledger: pd.DataFrame
    budgets: Tuple[Budget, ...]
    rates: Tuple[ExchangeRate, ...]
    categories: Dict[str, Category]
    base_currency: str


def _section(data: Dict[str, Any], key: str) -> Iterable[Dict[str, Any]]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ValueError(f"Snapshot section {key!r} must be a list")
    return value


def _base_currency(settings: Iterable[Dict[str, Any]], default: str) -> str:
    for entry in settings:
        if entry.get('setting_key') == BASE_CURRENCY_SETTING and entry.get('setting_value'):
            return normalize_currency(entry['setting_value'])
    return default


def parse_snapshot(data: Dict[str, Any], *, default_currency: Optional[str] = None) -> Snapshot:
    """Build a :class:`Snapshot` from already-decoded JSON data.

    Raises:
        ValueError: If a section has the wrong shape
        BudgetValidationError: If a budget, rate or category record is invalid
    """
    if not isinstance(data, dict):
        raise ValueError("Snapshot must be a JSON object")

    budgets = tuple(Budget.from_record(record) for record in _section(data, 'budgets'))
    rates = tuple(ExchangeRate.from_record(record) for record in _section(data, 'exchange_rates'))
    categories = build_category_index(
        Category.from_record(record) for record in _section(data, 'categories')
    )
    ledger = ledger_frame(_section(data, 'transactions'))
    base = _base_currency(_section(data, 'settings'), default_currency or get_base_currency())

    logger.debug(
        "Snapshot: %d transactions, %d budgets, %d rates, %d categories",
        len(ledger), len(budgets), len(rates), len(categories),
    )
    return Snapshot(ledger=ledger, budgets=budgets, rates=rates, categories=categories, base_currency=base)


def load_snapshot(path: Path | None = None) -> Snapshot:
    """Load a snapshot file.

    Args:
        path: Snapshot file; defaults to ``SNAPSHOT_PATH`` from config

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid snapshot JSON
    """
    target = Path(path) if path is not None else SNAPSHOT_PATH
    if not target.exists():
        raise FileNotFoundError(f"Snapshot not found: {target}")
    try:
        with target.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Snapshot {target} is not valid JSON: {exc}") from exc
    return parse_snapshot(data)
