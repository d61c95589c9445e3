"""Currency conversion over a sparse, directional exchange-rate table.

The rate table holds whatever the user recorded: usually one direction
per pair, sometimes several historical entries.  A rate means
``1 from_currency = rate to_currency``.  Lookups prefer a direct rate,
fall back to inverting the reverse pair, and always use the most recent
entry by date.  When several entries share that date, the one that
appears last in the table wins.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd

from .models import ExchangeRate

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = {'USD': '$', 'EUR': '€', 'GBP': '£', 'JPY': '¥', 'INR': '₹'}

RateTable = Iterable[Union[ExchangeRate, Mapping[str, Any]]]


def rate_table(rates: Optional[RateTable]) -> List[ExchangeRate]:
    """Return ``rates`` as :class:`ExchangeRate` records, parsing raw store records."""
    return [
        rate if isinstance(rate, ExchangeRate) else ExchangeRate.from_record(rate)
        for rate in rates or ()
    ]


def _latest(rates: Iterable[ExchangeRate], from_currency: str, to_currency: str) -> Optional[ExchangeRate]:
    best: Optional[ExchangeRate] = None
    for rate in rates:
        if rate.from_currency != from_currency or rate.to_currency != to_currency:
            continue
        # >= so that later entries win date ties
        if best is None or rate.date >= best.date:
            best = rate
    return best


def latest_rate(
    from_currency: str,
    to_currency: str,
    rates: RateTable,
) -> Optional[ExchangeRate]:
    """Return the rate that converts ``from_currency`` into ``to_currency``.

    Args:
        from_currency: Source currency code (any case)
        to_currency: Target currency code (any case)
        rates: Exchange-rate table; raw store records are parsed

    Returns:
        The most recent direct rate; otherwise a synthetic record that
        inverts the most recent reverse rate; a rate of 1 for identical
        currencies; ``None`` when the table has nothing for the pair.
    """
    source, target = from_currency.upper(), to_currency.upper()
    if source == target:
        return ExchangeRate(source, target, 1.0, pd.Timestamp.now().normalize())

    table = rate_table(rates)
    direct = _latest(table, source, target)
    if direct is not None:
        return direct

    reverse = _latest(table, target, source)
    if reverse is not None:
        return ExchangeRate(source, target, 1.0 / reverse.rate, reverse.date)
    return None


def convert(
    amount: float,
    from_currency: str,
    to_currency: str,
    rates: RateTable,
) -> Optional[float]:
    """Convert ``amount`` between currencies.

    Returns ``None`` when no rate is available in either direction.  A
    ``None`` means "cannot convert", never zero; callers should keep the
    unconverted figure.

    Example:
        >>> rates = [ExchangeRate('EUR', 'USD', 1.1, pd.Timestamp('2024-01-01'))]
        >>> round(convert(10, 'usd', 'eur', rates), 2)
        9.09
    """
    source, target = from_currency.upper(), to_currency.upper()
    if source == target:
        return amount

    table = rate_table(rates)
    direct = _latest(table, source, target)
    if direct is not None:
        return amount * direct.rate

    reverse = _latest(table, target, source)
    if reverse is not None:
        return amount / reverse.rate

    logger.debug("No exchange rate between %s and %s", source, target)
    return None


def convert_or_original(
    amount: float,
    from_currency: str,
    to_currency: str,
    rates: RateTable,
) -> Tuple[float, bool]:
    """Convert ``amount`` or keep it as-is; the flag says whether conversion happened."""
    converted = convert(amount, from_currency, to_currency, rates)
    if converted is None:
        return float(amount), False
    return float(converted), True


def rates_frame(rates: RateTable) -> pd.DataFrame:
    """Tabulate a rate table, newest first, for display."""
    rows = [
        {
            'From': rate.from_currency,
            'To': rate.to_currency,
            'Rate': rate.rate,
            'Date': rate.date,
        }
        for rate in rate_table(rates)
    ]
    if not rows:
        return pd.DataFrame(columns=['From', 'To', 'Rate', 'Date'])
    return pd.DataFrame(rows).sort_values('Date', ascending=False, kind='stable').reset_index(drop=True)


def format_currency(amount: float, currency: str = 'USD') -> str:
    """Format an amount with its currency.

    Example:
        >>> format_currency(1234.5)
        '$1,234.50'
        >>> format_currency(-20, 'CHF')
        '-20.00 CHF'
    """
    code = (currency or 'USD').upper()
    sign = '-' if amount < 0 else ''
    formatted = f"{abs(amount):,.2f}"
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{sign}{symbol}{formatted}"
    return f"{sign}{formatted} {code}"
