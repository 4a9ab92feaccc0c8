"""Donation deductions and tax rebates."""

from __future__ import annotations

from dataclasses import dataclass

from cukai.backend.app.models import UserProfile
from cukai.backend.config.year_config import YearConfiguration


@dataclass(frozen=True, slots=True)
class RebateBreakdown:
    """Rebates deducted from computed tax."""

    zakat: float = 0.0
    individual: float = 0.0
    spouse: float = 0.0

    @property
    def total(self) -> float:
        return self.zakat + self.individual + self.spouse


def calculate_donation_deduction(
    donations: float, aggregate_income: float, config: YearConfiguration
) -> float:
    """Return approved donations capped at a share of aggregate income."""

    requested = max(0.0, donations)
    cap = max(0.0, aggregate_income) * config.donations.income_cap_rate
    return min(requested, cap)


def calculate_rebates(
    chargeable_income: float, profile: UserProfile, config: YearConfiguration
) -> RebateBreakdown:
    """Return zakat and statutory rebates for ``chargeable_income``.

    Statutory rebates only apply to a positive chargeable income at or below
    the configured ceiling. The spouse rebate additionally requires a married
    taxpayer whose spouse has no income.
    """

    rules = config.rebates
    individual = 0.0
    spouse = 0.0
    if 0 < chargeable_income <= rules.chargeable_income_ceiling:
        individual = rules.individual
        if profile.is_married and not profile.spouse_working:
            spouse = rules.spouse

    return RebateBreakdown(
        zakat=max(0.0, profile.zakat),
        individual=individual,
        spouse=spouse,
    )


__all__ = ["RebateBreakdown", "calculate_donation_deduction", "calculate_rebates"]
