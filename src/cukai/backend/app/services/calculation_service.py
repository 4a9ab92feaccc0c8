"""Orchestrate request validation, relief aggregation and tax calculations.

The calculation service ties the request models, translation layer and
year-based configuration together so that each calculator can focus on its own
arithmetic. Profiling hooks and validation live here to give the rest of the
application a simple ``calculate_tax`` entry point.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from contextlib import contextmanager
from time import perf_counter
from typing import Any

from pydantic import ValidationError

from cukai.backend.app.localization import Translator, get_translator
from cukai.backend.app.models import (
    CalculationRequest,
    CalculationResponse,
    CategoryConfig,
    CategoryStats,
    Receipt,
    TaxRequest,
    UserProfile,
    format_validation_error,
)
from cukai.backend.config.year_config import (
    YearConfiguration,
    resolve_year_configuration,
)

from .calculators import (
    aggregate_reliefs,
    build_optimisation_tips,
    calculate_dividend_surcharge,
    calculate_donation_deduction,
    calculate_rebates,
    is_date_in_year,
    marginal_rate,
    round_currency,
    round_rate,
)
from .calculators.categories import build_categories_for_configuration
from .calculators.income_tax import compute_tax_for_configuration

_LOGGER = logging.getLogger(__name__)


def _profiling_enabled() -> bool:
    """Return ``True`` when calculation profiling should be captured."""

    flag = os.getenv("CUKAI_PROFILE_CALCULATIONS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


def _validate_request(
    payload: Mapping[str, Any] | CalculationRequest,
) -> CalculationRequest:
    if isinstance(payload, CalculationRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise ValueError("Payload must be a mapping")
    if "year" not in payload:
        raise ValueError("Payload must include a tax year")
    try:
        return CalculationRequest.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc)) from exc


def serialise_category(
    category: CategoryConfig, stats: CategoryStats | None = None
) -> dict[str, Any]:
    """Return a JSON-ready representation of ``category`` and its usage."""

    entry: dict[str, Any] = {
        "id": category.id,
        "title": category.title,
        "advice": category.advice,
        "details": category.details,
        "automatic": category.automatic,
        "limit": round_currency(category.limit),
        "items": [
            {"id": item.id, "label": item.label, "sub_limit": item.sub_limit}
            for item in category.items
        ],
    }
    if category.shared_pools:
        entry["shared_pools"] = [
            {"limit": round_currency(pool.limit), "items": sorted(pool.items)}
            for pool in category.shared_pools
        ]
    if stats is not None:
        entry.update(
            {
                "claimable": round_currency(stats.claimable),
                "remaining": round_currency(stats.remaining),
                "percent_used": round_currency(stats.percent_used),
                "total_spent": round_currency(stats.total_spent),
            }
        )
    return entry


def categories_for_year(
    year: int,
    profile: Mapping[str, Any] | UserProfile | None = None,
    locale: str | None = None,
) -> dict[str, Any]:
    """Return the categories a profile qualifies for in ``year``."""

    if isinstance(profile, UserProfile) or profile is None:
        profile_model = profile or UserProfile()
    else:
        try:
            profile_model = UserProfile.model_validate(profile)
        except ValidationError as exc:
            raise ValueError(format_validation_error(exc, "profile payload")) from exc

    config = resolve_year_configuration(year)
    translator = get_translator(locale)
    categories = build_categories_for_configuration(
        config, profile_model, translator=translator
    )
    return {
        "year": year,
        "resolved_year": config.year,
        "fallback": config.year != year,
        "locale": translator.locale,
        "categories": [serialise_category(category) for category in categories],
    }


def calculate_bracket_tax(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Return bracket tax and dividend surcharge for a chargeable income."""

    if not isinstance(payload, Mapping):
        raise ValueError("Payload must be a mapping")
    try:
        request = TaxRequest.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc, "tax payload")) from exc

    config = resolve_year_configuration(request.year)
    bracket_tax = compute_tax_for_configuration(request.chargeable_income, config)
    surcharge = calculate_dividend_surcharge(request.dividends, config)
    return {
        "year": request.year,
        "resolved_year": config.year,
        "chargeable_income": round_currency(request.chargeable_income),
        "bracket_tax": round_currency(bracket_tax),
        "dividend_surcharge": round_currency(surcharge),
        "tax": round_currency(bracket_tax + surcharge),
        "marginal_rate": round_rate(marginal_rate(request.chargeable_income, config)),
    }


def _count_pending(receipts: Sequence[Receipt], year: int) -> int:
    return sum(
        1
        for receipt in receipts
        if not receipt.is_verified and is_date_in_year(receipt.date, year)
    )


def _summary_labels(translator: Translator) -> dict[str, str]:
    keys = (
        "aggregate_income",
        "donations_deduction",
        "personal_relief",
        "total_relief",
        "chargeable_income",
        "bracket_tax",
        "dividend_surcharge",
        "rebates",
        "tax_payable",
        "effective_tax_rate",
        "marginal_rate",
    )
    return {key: translator(f"summary.{key}") for key in keys}


def calculate_tax(
    payload: Mapping[str, Any] | CalculationRequest,
) -> dict[str, Any]:
    """Compute relief usage and the tax summary for the provided payload."""

    request_model = _validate_request(payload)

    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    overall_start = perf_counter() if timings is not None else None

    year = request_model.year
    config: YearConfiguration = resolve_year_configuration(year)
    translator = get_translator(request_model.locale)
    profile = request_model.profile
    income = request_model.income

    with _profile_section("categories", timings):
        categories = build_categories_for_configuration(
            config, profile, translator=translator
        )

    with _profile_section("reliefs", timings):
        reliefs = aggregate_reliefs(categories, request_model.receipts, year=year)

    with _profile_section("tax", timings):
        gross = max(0.0, income.gross)
        other = max(0.0, income.other)
        dividends = max(0.0, income.dividends)
        aggregate_income = gross + other + dividends

        donations = calculate_donation_deduction(
            profile.donations, aggregate_income, config
        )
        chargeable_income = max(
            0.0,
            aggregate_income
            - donations
            - config.personal_relief
            - reliefs.total_claimable,
        )

        bracket_tax = compute_tax_for_configuration(chargeable_income, config)
        surcharge = calculate_dividend_surcharge(dividends, config)
        rebates = calculate_rebates(chargeable_income, profile, config)
        tax_payable = max(0.0, bracket_tax + surcharge - rebates.total)

        effective_rate = tax_payable / aggregate_income if aggregate_income > 0 else 0.0
        top_rate = marginal_rate(chargeable_income, config)

    with _profile_section("tips", timings):
        tips = build_optimisation_tips(categories, reliefs.stats, top_rate, translator)

    if timings is not None and overall_start is not None:
        timings["total"] = perf_counter() - overall_start
        _LOGGER.debug(
            "calculate_tax timings (ms): %s",
            {name: round(duration * 1000, 3) for name, duration in timings.items()},
        )

    summary: dict[str, Any] = {
        "aggregate_income": round_currency(aggregate_income),
        "donations_deduction": round_currency(donations),
        "personal_relief": round_currency(config.personal_relief),
        "total_relief": round_currency(reliefs.total_claimable),
        "chargeable_income": round_currency(chargeable_income),
        "bracket_tax": round_currency(bracket_tax),
        "dividend_surcharge": round_currency(surcharge),
        "rebates": round_currency(rebates.total),
        "tax_payable": round_currency(tax_payable),
        "effective_tax_rate": round_rate(effective_rate),
        "marginal_rate": round_rate(top_rate),
        "labels": _summary_labels(translator),
    }

    meta_payload: dict[str, Any] = {
        "year": year,
        "resolved_year": config.year,
        "fallback": config.year != year,
        "locale": translator.locale,
        "filing_deadline": config.filing_deadline,
        "pending_receipts": _count_pending(request_model.receipts, year),
    }

    response_model = CalculationResponse.model_validate(
        {
            "summary": summary,
            "categories": [
                serialise_category(category, reliefs.stats[category.id])
                for category in categories
            ],
            "tips": tips,
            "meta": meta_payload,
        }
    )

    return response_model.model_dump(mode="json", exclude_none=True)


__all__ = [
    "calculate_bracket_tax",
    "calculate_tax",
    "categories_for_year",
    "serialise_category",
]
