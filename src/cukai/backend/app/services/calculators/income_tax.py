"""Bracket tax and dividend surcharge calculations."""

from __future__ import annotations

from cukai.backend.config.year_config import (
    YearConfiguration,
    resolve_year_configuration,
)

from .utils import bracket_rate_for, calculate_progressive_tax


def compute_tax_for_configuration(
    chargeable_income: float, config: YearConfiguration
) -> float:
    """Return bracket tax on ``chargeable_income`` under ``config``."""

    return calculate_progressive_tax(chargeable_income, config.brackets)


def compute_tax(chargeable_income: float, year: int) -> float:
    """Return bracket tax on ``chargeable_income`` for assessment ``year``.

    Unconfigured years borrow the schedule of the nearest configured year.
    Zero and negative incomes yield no tax.
    """

    config = resolve_year_configuration(year)
    return compute_tax_for_configuration(chargeable_income, config)


def calculate_dividend_surcharge(dividends: float, config: YearConfiguration) -> float:
    """Return the flat surcharge on dividends above the configured threshold.

    Only years that publish a ``dividend_surcharge`` section levy it, and only
    the excess over the threshold is charged.
    """

    surcharge = config.dividend_surcharge
    if surcharge is None:
        return 0.0

    excess = dividends - surcharge.threshold
    if excess <= 0:
        return 0.0
    return excess * surcharge.rate


def marginal_rate(chargeable_income: float, config: YearConfiguration) -> float:
    """Return the bracket rate applied to the last ringgit of income."""

    return bracket_rate_for(chargeable_income, config.brackets)


__all__ = [
    "calculate_dividend_surcharge",
    "compute_tax",
    "compute_tax_for_configuration",
    "marginal_rate",
]
