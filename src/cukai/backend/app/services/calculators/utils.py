"""Utility helpers for calculator modules."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from cukai.backend.config.year_config import TaxBracket


def format_percentage(value: float) -> str:
    """Return a human-readable percentage label for ``value``."""

    percentage = value * 100
    if float(int(percentage)) == percentage:
        return f"{int(percentage)}%"
    return f"{percentage:.2f}%"


def format_currency(amount: float, symbol: str = "RM") -> str:
    """Return a display string such as ``RM1,234`` rounded to whole ringgit."""

    rounded = int(round(abs(amount)))
    sign = "-" if amount < 0 and rounded else ""
    return f"{sign}{symbol}{rounded:,}"


def calculate_progressive_tax(amount: float, brackets: Sequence[TaxBracket]) -> float:
    """Calculate progressive tax for ``amount`` using ``brackets``.

    Each bracket taxes the slice between the previous bound and its own upper
    bound. An amount that lands exactly on a bound is taxed entirely by the
    brackets up to and including that bound.
    """

    if amount <= 0:
        return 0.0

    total = 0.0
    previous_bound = 0.0

    for bracket in brackets:
        upper = bracket.upper_bound
        ceiling = amount if upper is None else min(amount, upper)
        taxable_slice = ceiling - previous_bound
        if taxable_slice > 0:
            total += taxable_slice * bracket.rate
        if upper is None:
            break
        previous_bound = upper
        if amount <= previous_bound:
            break

    return total


def bracket_rate_for(amount: float, brackets: Sequence[TaxBracket]) -> float:
    """Return the rate applied to the last ringgit of ``amount``."""

    if amount <= 0 or not brackets:
        return 0.0

    for bracket in brackets:
        upper = bracket.upper_bound
        if upper is None or amount <= upper:
            return bracket.rate
    return brackets[-1].rate


def is_date_in_year(value: date | str | None, year: int) -> bool:
    """Return ``True`` when ``value`` is a valid date within ``year``."""

    if not value:
        return False
    if isinstance(value, date):
        return value.year == year
    try:
        parsed = date.fromisoformat(str(value).strip())
    except ValueError:
        return False
    return parsed.year == year


def round_currency(value: float) -> float:
    """Round monetary amounts to two decimals."""

    return round(value, 2)


def round_rate(value: float) -> float:
    """Round rate values to four decimals."""

    return round(value, 4)
