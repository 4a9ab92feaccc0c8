"""Relief aggregation across receipts for a set of categories.

Claims are capped in three stages that must run in this order:

1. each item total is clamped to the item's own sub-limit;
2. items that share a pool are summed and the sum is clamped to the pool limit;
3. the category total is clamped to the category limit.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from cukai.backend.app.models import (
    CategoryConfig,
    CategoryStats,
    Receipt,
    ReliefTotals,
    SharedPool,
)

from .utils import is_date_in_year


def sum_item_totals(
    category: CategoryConfig, receipts: Iterable[Receipt]
) -> dict[str, float]:
    """Return raw per-item totals of verified receipts filed under ``category``.

    Receipts for other categories or for items outside the category are
    ignored. Negative amounts count as zero.
    """

    item_ids = category.item_ids
    totals: dict[str, float] = {}
    for receipt in receipts:
        if not receipt.is_verified or receipt.category != category.id:
            continue
        if receipt.sub_category not in item_ids:
            continue
        amount = receipt.amount if receipt.amount > 0 else 0.0
        totals[receipt.sub_category] = totals.get(receipt.sub_category, 0.0) + amount
    return totals


def clamp_item_totals(
    item_totals: Mapping[str, float], category: CategoryConfig
) -> dict[str, float]:
    """Clamp each item total to its sub-limit when one is configured."""

    clamped: dict[str, float] = {}
    for item_id, total in item_totals.items():
        amount = max(0.0, total)
        item = category.get_item(item_id)
        if item is not None and item.sub_limit is not None:
            amount = min(amount, item.sub_limit)
        clamped[item_id] = amount
    return clamped


def apply_shared_pools(
    clamped_totals: Mapping[str, float], pools: Sequence[SharedPool]
) -> float:
    """Return the category contribution after clamping each shared pool.

    An item listed in several pools is counted by the first one only.
    """

    pooled_sums = [0.0] * len(pools)
    contribution = 0.0

    for item_id, amount in clamped_totals.items():
        for index, pool in enumerate(pools):
            if item_id in pool.items:
                pooled_sums[index] += amount
                break
        else:
            contribution += amount

    for pool, pooled in zip(pools, pooled_sums):
        contribution += min(pooled, pool.limit)

    return contribution


def compute_category_stats(
    category: CategoryConfig, receipts: Iterable[Receipt]
) -> CategoryStats:
    """Return claimable relief and usage for ``category``.

    Automatic categories are profile entitlements and are always fully
    claimed, whatever receipts are supplied.
    """

    limit = max(0.0, category.limit)

    if category.automatic:
        return CategoryStats(
            claimable=limit,
            remaining=0.0,
            percent_used=100.0,
            total_spent=limit,
            automatic=True,
        )

    raw_totals = sum_item_totals(category, receipts)
    clamped = clamp_item_totals(raw_totals, category)
    contribution = apply_shared_pools(clamped, category.shared_pools)

    claimable = min(contribution, limit)
    remaining = max(0.0, limit - claimable)
    percent_used = min(100.0, claimable / limit * 100) if limit > 0 else 0.0

    return CategoryStats(
        claimable=claimable,
        remaining=remaining,
        percent_used=percent_used,
        total_spent=sum(raw_totals.values()),
        automatic=False,
    )


def aggregate_reliefs(
    categories: Sequence[CategoryConfig],
    receipts: Iterable[Receipt],
    year: int | None = None,
) -> ReliefTotals:
    """Compute stats for every category and the total claimable relief.

    When ``year`` is given only receipts dated within that year are counted.
    """

    selected = [
        receipt
        for receipt in receipts
        if year is None or is_date_in_year(receipt.date, year)
    ]

    totals = ReliefTotals()
    for category in categories:
        totals.add(category.id, compute_category_stats(category, selected))
    return totals


__all__ = [
    "aggregate_reliefs",
    "apply_shared_pools",
    "clamp_item_totals",
    "compute_category_stats",
    "sum_item_totals",
]
