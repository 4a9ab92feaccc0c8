"""Build the relief categories a profile qualifies for in a given year.

Which categories and items exist is driven by the shared relief catalogue and
the feature flags of the year configuration. Profile facts only decide
eligibility and the derived child relief limit.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from cukai.backend.app.localization import Translator, get_translator
from cukai.backend.app.models import (
    CategoryConfig,
    DeductibleItem,
    SharedPool,
    UserProfile,
)
from cukai.backend.config.year_config import (
    CategoryDefinition,
    ReliefCatalog,
    YearConfiguration,
    load_catalog,
    resolve_year_configuration,
)

_LOGGER = logging.getLogger(__name__)

# Profile counter -> per-child amount key in ``category_limits``.
CHILD_RELIEF_LIMITS: tuple[tuple[str, str], ...] = (
    ("kids_under_18", "child_under_18"),
    ("kids_pre_university", "child_pre_university"),
    ("kids_degree", "child_degree"),
    ("kids_disabled", "child_disabled"),
    ("kids_disabled_higher_education", "child_disabled_higher_education"),
)


def calculate_child_relief_limit(
    profile: UserProfile, config: YearConfiguration
) -> float:
    """Return the child relief entitlement for ``profile`` in ``config``."""

    total = 0.0
    for counter, limit_key in CHILD_RELIEF_LIMITS:
        count = getattr(profile, counter)
        if count > 0:
            total += count * config.limit_for(limit_key)
    return total


EligibilityRule = Callable[[UserProfile, YearConfiguration], bool]


def _spouse_relief(profile: UserProfile, config: YearConfiguration) -> bool:
    return profile.is_married and (not profile.spouse_working or profile.alimony)


def _self_disabled(profile: UserProfile, config: YearConfiguration) -> bool:
    return profile.self_disabled


def _spouse_disabled(profile: UserProfile, config: YearConfiguration) -> bool:
    return profile.is_married and profile.spouse_disabled


def _has_children(profile: UserProfile, config: YearConfiguration) -> bool:
    return (
        calculate_child_relief_limit(profile, config) > 0 or profile.kids_disabled > 0
    )


def _any_disability(profile: UserProfile, config: YearConfiguration) -> bool:
    return (
        profile.self_disabled
        or (profile.is_married and profile.spouse_disabled)
        or profile.kids_disabled > 0
    )


ELIGIBILITY_RULES: Mapping[str, EligibilityRule] = {
    "spouse_relief": _spouse_relief,
    "self_disabled": _self_disabled,
    "spouse_disabled": _spouse_disabled,
    "has_children": _has_children,
    "any_disability": _any_disability,
}

DERIVED_LIMITS: Mapping[str, Callable[[UserProfile, YearConfiguration], float]] = {
    "children": calculate_child_relief_limit,
}


def _is_eligible(
    definition: CategoryDefinition, profile: UserProfile, config: YearConfiguration
) -> bool:
    if definition.eligibility is None:
        return True
    rule = ELIGIBILITY_RULES.get(definition.eligibility)
    if rule is None:
        _LOGGER.warning(
            "Unknown eligibility rule '%s' for category '%s'; skipping category",
            definition.eligibility,
            definition.id,
        )
        return False
    return rule(profile, config)


def _resolve_limit(
    definition: CategoryDefinition, profile: UserProfile, config: YearConfiguration
) -> float:
    if definition.derived_limit is None:
        return config.limit_for(definition.limit_key)
    handler = DERIVED_LIMITS.get(definition.derived_limit)
    if handler is None:
        _LOGGER.warning(
            "Unknown derived limit '%s' for category '%s'",
            definition.derived_limit,
            definition.id,
        )
        return 0.0
    return handler(profile, config)


def _optional_text(translate: Translator, key: str) -> str | None:
    return translate(key) if translate.has(key) else None


def _build_category(
    definition: CategoryDefinition,
    limit: float,
    catalog: ReliefCatalog,
    config: YearConfiguration,
    translate: Translator,
) -> CategoryConfig:
    items: list[DeductibleItem] = []
    for item_id in definition.items:
        entry = catalog.get_item(item_id)
        if not config.feature_enabled(entry.requires):
            continue
        items.append(
            DeductibleItem(
                id=entry.id,
                label=translate(entry.label_key),
                parent=entry.parent,
                sub_limit=entry.sub_limit,
            )
        )

    active_ids = {item.id for item in items}
    pools = tuple(
        SharedPool(
            limit=config.limit_for(pool.limit),
            items=frozenset(member for member in pool.items if member in active_ids),
        )
        for pool in definition.shared_pools
    )

    return CategoryConfig(
        id=definition.id,
        title=translate(definition.title_key),
        limit=limit,
        items=tuple(items),
        shared_pools=pools,
        automatic=definition.automatic,
        advice=translate(definition.advice_key),
        details=_optional_text(translate, definition.details_key),
    )


def build_categories_for_configuration(
    config: YearConfiguration,
    profile: UserProfile,
    translator: Translator | None = None,
    catalog: ReliefCatalog | None = None,
) -> list[CategoryConfig]:
    """Return the categories ``profile`` qualifies for under ``config``."""

    translate = translator or get_translator()
    catalog = catalog or load_catalog()

    categories: list[CategoryConfig] = []
    for definition in catalog.categories:
        if not config.feature_enabled(definition.requires):
            continue
        if not _is_eligible(definition, profile, config):
            continue

        limit = _resolve_limit(definition, profile, config)
        if limit <= 0:
            continue

        categories.append(_build_category(definition, limit, catalog, config, translate))

    return categories


def build_categories_for_year(
    year: int,
    profile: UserProfile | None = None,
    translator: Translator | None = None,
) -> list[CategoryConfig]:
    """Return the ordered relief categories for ``year`` and ``profile``.

    Unconfigured years use the nearest configured year's rules. The builder
    never raises for profile combinations; it simply omits categories the
    profile does not qualify for.
    """

    config = resolve_year_configuration(year)
    return build_categories_for_configuration(
        config, profile or UserProfile(), translator=translator
    )


__all__ = [
    "CHILD_RELIEF_LIMITS",
    "DERIVED_LIMITS",
    "ELIGIBILITY_RULES",
    "build_categories_for_configuration",
    "build_categories_for_year",
    "calculate_child_relief_limit",
]
