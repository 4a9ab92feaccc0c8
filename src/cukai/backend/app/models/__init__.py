"""Typed request/response models shared across the calculation services.

Inputs arriving over HTTP are validated with the Pydantic models in
:mod:`.api`. The relief engine itself works on the small frozen dataclasses
below: category definitions are rebuilt for every (year, profile) pair and the
derived statistics are recomputed on each request, so neither is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .api import (
    CalculationRequest,
    CalculationResponse,
    CategoryItemEntry,
    CategoryStatsEntry,
    OptimisationTip,
    Receipt,
    ReceiptStatus,
    ResponseMeta,
    SuggestionRequest,
    Summary,
    SummaryLabels,
    TaxRequest,
    UserProfile,
    YearIncome,
    format_validation_error,
)

__all__ = [
    "CategoryConfig",
    "CategoryStats",
    "DeductibleItem",
    "ReliefTotals",
    "SharedPool",
    "CalculationRequest",
    "CalculationResponse",
    "CategoryItemEntry",
    "CategoryStatsEntry",
    "OptimisationTip",
    "Receipt",
    "ReceiptStatus",
    "ResponseMeta",
    "SuggestionRequest",
    "Summary",
    "SummaryLabels",
    "TaxRequest",
    "UserProfile",
    "YearIncome",
    "format_validation_error",
]


@dataclass(frozen=True, slots=True)
class DeductibleItem:
    """Leaf expense type that receipts are filed under."""

    id: str
    label: str
    parent: str
    sub_limit: float | None = None


@dataclass(frozen=True, slots=True)
class SharedPool:
    """Items that jointly share one cap inside a category."""

    limit: float
    items: frozenset[str]


@dataclass(frozen=True, slots=True)
class CategoryConfig:
    """Relief category active for one assessment year and profile."""

    id: str
    title: str
    limit: float
    items: tuple[DeductibleItem, ...] = ()
    shared_pools: tuple[SharedPool, ...] = ()
    automatic: bool = False
    advice: str = ""
    details: str | None = None

    @property
    def item_ids(self) -> frozenset[str]:
        return frozenset(item.id for item in self.items)

    def get_item(self, item_id: str) -> DeductibleItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


@dataclass(frozen=True, slots=True)
class CategoryStats:
    """Derived relief usage for a single category."""

    claimable: float
    remaining: float
    percent_used: float
    total_spent: float
    automatic: bool = False


@dataclass(slots=True)
class ReliefTotals:
    """Tracks per-category statistics and the overall claimable relief."""

    stats: dict[str, CategoryStats] = field(default_factory=dict)
    total_claimable: float = 0.0

    def add(self, category_id: str, stats: CategoryStats) -> None:
        self.stats[category_id] = stats
        self.total_claimable += stats.claimable
