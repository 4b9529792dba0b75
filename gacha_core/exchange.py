"""Direct-rate currency conversion."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Optional

from .models import ExchangeRate


def find_direct_rate(
    rates: Iterable[ExchangeRate],
    from_currency_id: str,
    to_currency_id: str,
) -> Optional[ExchangeRate]:
    """Return the first rate converting ``from_currency_id`` into ``to_currency_id``."""

    for rate in rates:
        if rate.from_currency_id == from_currency_id and rate.to_currency_id == to_currency_id:
            return rate
    return None


def convert_by_direct_rate(
    rates: Iterable[ExchangeRate],
    amount: Decimal | int | str,
    from_currency_id: str,
    to_currency_id: str,
) -> Optional[Decimal]:
    """Convert ``amount`` through a direct rate.

    Returns ``None`` when the pair has no direct rate; identical currencies
    convert at 1.
    """

    value = Decimal(str(amount))
    if from_currency_id == to_currency_id:
        return value
    rate = find_direct_rate(rates, from_currency_id, to_currency_id)
    if rate is None:
        return None
    return value * Decimal(rate.rate)
