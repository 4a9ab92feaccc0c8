"""Unit tests for progressive bracket tax and the dividend surcharge."""

from __future__ import annotations

import pytest

from cukai.backend.app.services.calculators.income_tax import (
    calculate_dividend_surcharge,
    compute_tax,
    compute_tax_for_configuration,
    marginal_rate,
)
from cukai.backend.config.year_config import (
    available_years,
    load_year_configuration,
)


def test_tax_on_one_hundred_thousand_under_current_schedule() -> None:
    assert compute_tax(100_000, 2025) == pytest.approx(9_400)


def test_tax_on_one_hundred_thousand_under_previous_schedule() -> None:
    # 150 + 450 + 1,200 + 2,600 + 6,300
    assert compute_tax(100_000, 2022) == pytest.approx(10_700)


@pytest.mark.parametrize("year", list(available_years()))
def test_first_five_thousand_is_tax_free(year: int) -> None:
    assert compute_tax(5_000, year) == 0.0
    assert compute_tax(5_000.01, year) > 0.0


@pytest.mark.parametrize("income", [0, -100, -0.01])
def test_non_positive_income_is_not_taxed(income: float) -> None:
    assert compute_tax(income, 2025) == 0.0


def test_income_on_a_bound_is_taxed_by_the_lower_brackets() -> None:
    assert compute_tax(20_000, 2025) == pytest.approx(150)
    assert compute_tax(35_000, 2025) == pytest.approx(600)
    assert compute_tax(20_001, 2025) - compute_tax(20_000, 2025) == pytest.approx(0.03)


@pytest.mark.parametrize("year", [2019, 2023, 2025])
def test_tax_is_monotonic(year: int) -> None:
    incomes = [amount * 2_500 for amount in range(0, 1_000)]
    taxes = [compute_tax(income, year) for income in incomes]

    assert all(later >= earlier for earlier, later in zip(taxes, taxes[1:]))


@pytest.mark.parametrize("year", [2019, 2025])
def test_tax_slope_matches_bracket_rate(year: int) -> None:
    config = load_year_configuration(year)
    lower = 0.0
    for bracket in config.brackets:
        upper = bracket.upper_bound if bracket.upper_bound is not None else lower * 2
        width = upper - lower
        delta = compute_tax_for_configuration(
            upper, config
        ) - compute_tax_for_configuration(lower, config)
        assert delta == pytest.approx(width * bracket.rate)
        lower = upper


def test_unconfigured_year_uses_fallback_schedule() -> None:
    assert compute_tax(250_000, 2040) == compute_tax(250_000, 2025)
    assert compute_tax(250_000, 2001) == compute_tax(250_000, 2019)


def test_top_bracket_applies_above_two_million() -> None:
    base = compute_tax(2_000_000, 2025)

    assert compute_tax(2_100_000, 2025) - base == pytest.approx(30_000)


def test_dividend_surcharge_applies_to_excess_over_threshold() -> None:
    config = load_year_configuration(2025)

    assert calculate_dividend_surcharge(150_000, config) == pytest.approx(1_000)
    assert calculate_dividend_surcharge(100_000, config) == 0.0
    assert calculate_dividend_surcharge(-5, config) == 0.0


def test_no_dividend_surcharge_before_2025() -> None:
    config = load_year_configuration(2024)

    assert calculate_dividend_surcharge(500_000, config) == 0.0


def test_marginal_rate_reports_bracket_of_last_ringgit() -> None:
    config = load_year_configuration(2025)

    assert marginal_rate(0, config) == 0.0
    assert marginal_rate(100_000, config) == pytest.approx(0.19)
    assert marginal_rate(100_000.01, config) == pytest.approx(0.25)
    assert marginal_rate(5_000_000, config) == pytest.approx(0.30)
