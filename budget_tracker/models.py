"""Domain records for the budget engine.

Records arrive from the hosted store as plain mappings with snake_case
keys (``budget_id``, ``category_id``, ``start_month``...).  Each record
type offers ``from_record`` to parse such a mapping and ``to_record`` to
produce one, so the engine itself only ever deals with frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

import pandas as pd

from .months import format_month, month_to_store_date, optional_month

BUDGET_STATUSES = ('Active', 'Archived')
CATEGORY_TYPES = ('Income', 'Expense')

INCOME = 'Income'
EXPENSE = 'Expense'
TRANSFER_OUT = 'Transfer Out'
TRANSFER_IN = 'Transfer In'
TRANSACTION_TYPES = (INCOME, EXPENSE, TRANSFER_OUT, TRANSFER_IN)

CANCELLED = 'Cancelled'
MIN_BUDGET_AMOUNT = 0.01


class BudgetValidationError(ValueError):
    """Raised when a record breaks the budget data-model invariants."""


class UnknownCategoryError(KeyError):
    """Raised when a budget references a category missing from the index."""


def normalize_currency(value: Any) -> str:
    """Upper-case and validate a 3-letter currency code."""
    code = str(value or '').strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise BudgetValidationError(f"Currency must be a 3-letter ISO code, got {value!r}")
    return code


def optional_timestamp(value: Any) -> Optional[pd.Timestamp]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    stamp = pd.Timestamp(value)
    if pd.isna(stamp):
        return None
    # Ledger dates are compared against naive month bounds
    return stamp.tz_localize(None) if stamp.tzinfo is not None else stamp


def optional_id(value: Any) -> Optional[str]:
    """Normalize a record id to a string; blank or missing ids become ``None``.

    Ids may arrive as numbers, including floats from a pandas column
    holding missing values (``2.0``).

    Example:
        >>> optional_id(2.0)
        '2'
    """
    if value is None:
        return None
    if isinstance(value, float):
        if pd.isna(value):
            return None
        if value.is_integer():
            value = int(value)
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class Category:
    category_id: str
    name: str
    type: str = EXPENSE
    parent_id: Optional[str] = None
    status: str = 'Active'

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'Category':
        category_id = optional_id(record.get('category_id'))
        if category_id is None:
            raise BudgetValidationError("Category ID is required")
        category_type = str(record.get('type') or EXPENSE).strip().title()
        if category_type not in CATEGORY_TYPES:
            raise BudgetValidationError(f"Unknown category type {record.get('type')!r}")
        return cls(
            category_id=category_id,
            name=str(record.get('name') or ''),
            type=category_type,
            parent_id=optional_id(record.get('parent_category_id')) or optional_id(record.get('parent_id')),
            status=str(record.get('status') or 'Active'),
        )

    @property
    def is_income(self) -> bool:
        return self.type == INCOME


@dataclass(frozen=True)
class Transaction:
    transaction_id: str
    category_id: Optional[str]
    currency: str
    amount: float
    type: str
    date: pd.Timestamp
    status: str = 'Cleared'
    deleted_at: Optional[pd.Timestamp] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'Transaction':
        date = optional_timestamp(record.get('date'))
        if date is None:
            raise BudgetValidationError(f"Transaction {record.get('transaction_id')!r} has no date")
        return cls(
            transaction_id=str(record.get('transaction_id') or ''),
            category_id=optional_id(record.get('category_id')),
            currency=str(record.get('currency') or '').strip().upper(),
            amount=float(record.get('amount') or 0.0),
            type=str(record.get('type') or ''),
            date=date,
            status=str(record.get('status') or 'Cleared'),
            deleted_at=optional_timestamp(record.get('deleted_at')),
        )

    @property
    def is_void(self) -> bool:
        """Cancelled or soft-deleted entries never count towards a budget."""
        return self.status == CANCELLED or self.deleted_at is not None


@dataclass(frozen=True)
class ExchangeRate:
    from_currency: str
    to_currency: str
    rate: float
    date: pd.Timestamp

    def __post_init__(self) -> None:
        if not self.rate or self.rate <= 0:
            raise BudgetValidationError(
                f"Exchange rate {self.from_currency}->{self.to_currency} must be positive, got {self.rate!r}"
            )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'ExchangeRate':
        date = optional_timestamp(record.get('date'))
        return cls(
            from_currency=normalize_currency(record.get('from_currency')),
            to_currency=normalize_currency(record.get('to_currency')),
            rate=float(record.get('rate') or 0.0),
            date=date if date is not None else pd.Timestamp.min,
        )


@dataclass(frozen=True)
class Budget:
    """A target amount for a category over one month or a range of months.

    One-time budgets use ``month``.  Recurring budgets use ``start_month``
    and an optional inclusive ``end_month``; without one they run forever.
    """

    budget_id: str
    category_id: str
    currency: str
    amount: float
    recurring: bool = False
    month: Optional[pd.Period] = None
    start_month: Optional[pd.Period] = None
    end_month: Optional[pd.Period] = None
    status: str = 'Active'
    notes: str = ''
    created_at: Optional[pd.Timestamp] = None

    def validate(self) -> 'Budget':
        """Check the record invariants and return ``self``.

        Raises:
            BudgetValidationError: If any invariant is broken
        """
        if not self.category_id:
            raise BudgetValidationError("Category ID is required")
        normalize_currency(self.currency)
        if self.amount is None or self.amount < MIN_BUDGET_AMOUNT:
            raise BudgetValidationError(f"Amount must be greater than 0, got {self.amount!r}")
        if self.status not in BUDGET_STATUSES:
            raise BudgetValidationError(
                f"Invalid status. Must be one of: {', '.join(BUDGET_STATUSES)}"
            )
        if self.recurring:
            if self.start_month is None:
                raise BudgetValidationError("Start month is required for recurring budgets")
            if self.end_month is not None and self.end_month < self.start_month:
                raise BudgetValidationError(
                    f"End month {format_month(self.end_month)} precedes start month "
                    f"{format_month(self.start_month)}"
                )
        elif self.month is None:
            raise BudgetValidationError("Month is required for non-recurring budgets")
        return self

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'Budget':
        recurring = bool(record.get('recurring', False))
        try:
            budget = cls(
                budget_id=str(record.get('budget_id') or ''),
                category_id=optional_id(record.get('category_id')) or '',
                currency=normalize_currency(record.get('currency')),
                amount=float(record.get('amount') or 0.0),
                recurring=recurring,
                month=None if recurring else optional_month(record.get('month')),
                start_month=optional_month(record.get('start_month')) if recurring else None,
                end_month=optional_month(record.get('end_month')) if recurring else None,
                status=str(record.get('status') or 'Active'),
                notes=str(record.get('notes') or ''),
                created_at=optional_timestamp(record.get('created_at')),
            )
        except BudgetValidationError:
            raise
        except (TypeError, ValueError) as exc:
            raise BudgetValidationError(f"Invalid budget record {record.get('budget_id')!r}: {exc}") from exc
        return budget.validate()

    def to_record(self) -> Dict[str, Any]:
        """Serialize using the store's field names and ``YYYY-MM-06`` month dates."""
        return {
            'budget_id': self.budget_id,
            'category_id': self.category_id,
            'currency': self.currency,
            'amount': self.amount,
            'recurring': self.recurring,
            'month': month_to_store_date(self.month) if self.month is not None else None,
            'start_month': month_to_store_date(self.start_month) if self.start_month is not None else None,
            'end_month': month_to_store_date(self.end_month) if self.end_month is not None else None,
            'status': self.status,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at is not None else None,
        }

    def with_changes(self, **changes: Any) -> 'Budget':
        return replace(self, **changes)

    @property
    def kind(self) -> str:
        return 'Recurring' if self.recurring else 'One-time'


@dataclass(frozen=True)
class BudgetChanges:
    """Fields a user may change when editing a budget.

    ``None`` means "leave unchanged"; ``end_month`` additionally accepts
    :data:`CLEAR` to remove an existing end month.
    """

    amount: Optional[float] = None
    currency: Optional[str] = None
    category_id: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None
    recurring: Optional[bool] = None
    month: Optional[Any] = None
    start_month: Optional[Any] = None
    end_month: Optional[Any] = None

    def as_updates(self) -> Dict[str, Any]:
        """Return only the fields that were set, with months coerced to periods."""
        updates: Dict[str, Any] = {}
        for name in ('amount', 'currency', 'category_id', 'notes', 'status', 'recurring'):
            value = getattr(self, name)
            if value is not None:
                updates[name] = value
        if 'currency' in updates:
            updates['currency'] = normalize_currency(updates['currency'])
        if 'amount' in updates:
            updates['amount'] = float(updates['amount'])
        for name in ('month', 'start_month'):
            value = getattr(self, name)
            if value is not None:
                updates[name] = optional_month(value)
        if self.end_month is CLEAR:
            updates['end_month'] = None
        elif self.end_month is not None:
            updates['end_month'] = optional_month(self.end_month)
        return updates


class _Clear:
    def __repr__(self) -> str:
        return 'CLEAR'


CLEAR: Any = _Clear()
