"""Highlight categories with the most unused relief headroom."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from cukai.backend.app.localization import Translator
from cukai.backend.app.models import CategoryConfig, CategoryStats

from .utils import format_currency, round_currency

MINIMUM_REMAINING = 50.0
MAX_TIPS = 3


def build_optimisation_tips(
    categories: Sequence[CategoryConfig],
    stats: Mapping[str, CategoryStats],
    marginal_rate: float,
    translate: Translator,
    limit: int = MAX_TIPS,
) -> list[dict[str, Any]]:
    """Return up to ``limit`` tips ordered by remaining headroom.

    Automatic and fully used categories are skipped, as are categories with
    no more than ``MINIMUM_REMAINING`` left to claim. The estimated saving
    assumes the unused relief would be taxed at ``marginal_rate``.
    """

    candidates = [
        category
        for category in categories
        if category.id in stats
        and not category.automatic
        and stats[category.id].percent_used < 100
        and stats[category.id].remaining > MINIMUM_REMAINING
    ]
    candidates.sort(key=lambda category: stats[category.id].remaining, reverse=True)

    template = translate("tips.message")
    tips: list[dict[str, Any]] = []
    for category in candidates[:limit]:
        remaining = stats[category.id].remaining
        saving = remaining * marginal_rate
        tips.append(
            {
                "category": category.id,
                "title": category.title,
                "remaining": round_currency(remaining),
                "estimated_saving": round_currency(saving),
                "message": template.format(
                    title=category.title,
                    remaining=format_currency(remaining),
                    saving=format_currency(saving),
                ),
            }
        )
    return tips


__all__ = ["MAX_TIPS", "MINIMUM_REMAINING", "build_optimisation_tips"]
