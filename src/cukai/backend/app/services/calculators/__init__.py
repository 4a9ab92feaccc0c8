"""Domain-specific calculation helpers."""

from .categories import build_categories_for_year, calculate_child_relief_limit
from .income_tax import calculate_dividend_surcharge, compute_tax, marginal_rate
from .optimizer import build_optimisation_tips
from .rebates import calculate_donation_deduction, calculate_rebates
from .relief import (
    aggregate_reliefs,
    apply_shared_pools,
    clamp_item_totals,
    compute_category_stats,
)
from .utils import (
    calculate_progressive_tax,
    format_currency,
    format_percentage,
    is_date_in_year,
    round_currency,
    round_rate,
)

__all__ = [
    "aggregate_reliefs",
    "apply_shared_pools",
    "build_categories_for_year",
    "build_optimisation_tips",
    "calculate_child_relief_limit",
    "calculate_dividend_surcharge",
    "calculate_donation_deduction",
    "calculate_progressive_tax",
    "calculate_rebates",
    "clamp_item_totals",
    "compute_category_stats",
    "compute_tax",
    "format_currency",
    "format_percentage",
    "is_date_in_year",
    "marginal_rate",
    "round_currency",
    "round_rate",
]
