"""Unit tests for donation deductions and rebates."""

from __future__ import annotations

import pytest

from cukai.backend.app.models import UserProfile
from cukai.backend.app.services.calculators.rebates import (
    calculate_donation_deduction,
    calculate_rebates,
)
from cukai.backend.config.year_config import load_year_configuration

CONFIG = load_year_configuration(2025)


def test_donations_capped_at_share_of_income() -> None:
    assert calculate_donation_deduction(8_000, 60_000, CONFIG) == pytest.approx(6_000)
    assert calculate_donation_deduction(1_000, 60_000, CONFIG) == pytest.approx(1_000)
    assert calculate_donation_deduction(1_000, 0, CONFIG) == 0.0


def test_individual_rebate_within_ceiling() -> None:
    rebates = calculate_rebates(35_000, UserProfile(), CONFIG)

    assert rebates.individual == pytest.approx(400)
    assert rebates.spouse == 0.0
    assert rebates.total == pytest.approx(400)


@pytest.mark.parametrize("chargeable", [0, 35_000.01, 80_000])
def test_no_statutory_rebate_outside_range(chargeable: float) -> None:
    profile = UserProfile(marital_status="married", spouse_working=False)

    rebates = calculate_rebates(chargeable, profile, CONFIG)

    assert rebates.individual == 0.0
    assert rebates.spouse == 0.0


def test_spouse_rebate_for_non_working_spouse() -> None:
    profile = UserProfile(marital_status="married", spouse_working=False, zakat=150)

    rebates = calculate_rebates(20_000, profile, CONFIG)

    assert rebates.spouse == pytest.approx(400)
    assert rebates.total == pytest.approx(950)


def test_zakat_applies_at_any_income() -> None:
    rebates = calculate_rebates(500_000, UserProfile(zakat=3_000), CONFIG)

    assert rebates.total == pytest.approx(3_000)
