"""Expose year configuration and relief categories to front-end consumers.

These endpoints surface the YAML-backed year configuration so that clients can
render bracket tables, limits and the categories a profile qualifies for
without duplicating business rules.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from flask import Blueprint, jsonify, request

from cukai.backend.app.services.calculation_service import categories_for_year
from cukai.backend.config.year_config import (
    TaxBracket,
    YearConfiguration,
    available_years,
    load_manifest,
    resolve_year_configuration,
)
from cukai.backend.services.request_parser import (
    parse_json_object,
    resolve_request_locale,
)
from cukai.backend.version import get_project_version

blueprint = Blueprint("config", __name__, url_prefix="/api/v1/config")


def get_configuration_metadata() -> dict[str, Any]:
    """Expose runtime metadata derived from the configuration manifest."""

    manifest = load_manifest()
    supported_years = list(manifest.supported_years)
    default_year = supported_years[-1] if supported_years else None
    return {
        "version": get_project_version(),
        "supported_years": supported_years,
        "default_year": default_year,
    }


def _serialise_brackets(brackets: Sequence[TaxBracket]) -> list[dict[str, Any]]:
    serialised: list[dict[str, Any]] = []
    lower = 0.0
    for bracket in brackets:
        serialised.append(
            {"lower": lower, "upper": bracket.upper_bound, "rate": bracket.rate}
        )
        if bracket.upper_bound is not None:
            lower = bracket.upper_bound
    return serialised


def _serialise_configuration(config: YearConfiguration) -> dict[str, Any]:
    surcharge = config.dividend_surcharge
    return {
        "year": config.year,
        "filing_deadline": config.filing_deadline.isoformat(),
        "meta": dict(config.meta),
        "brackets": _serialise_brackets(config.brackets),
        "personal_relief": config.personal_relief,
        "category_limits": dict(config.category_limits),
        "features": dict(config.features),
        "rebates": config.rebates.model_dump(),
        "donations": config.donations.model_dump(),
        "dividend_surcharge": surcharge.model_dump() if surcharge else None,
    }


def _serialise_year_entry(year: int) -> dict[str, Any]:
    entry = load_manifest().get_entry(year)
    config = resolve_year_configuration(year)
    payload: dict[str, Any] = {
        "year": year,
        "status": entry.status,
        "filing_deadline": config.filing_deadline.isoformat(),
    }
    if entry.notes_url:
        payload["notes_url"] = entry.notes_url
    return payload


@blueprint.get("/meta")
def get_application_metadata() -> tuple[Any, int]:
    """Expose lightweight application metadata such as the version identifier."""

    payload = get_configuration_metadata()
    return jsonify(payload), 200


@blueprint.get("/years")
def list_years() -> tuple[Any, int]:
    """Return all configured years with lightweight metadata."""

    years = [_serialise_year_entry(year) for year in available_years()]
    metadata = get_configuration_metadata()
    payload = {
        "years": years,
        "default_year": metadata["default_year"],
        "supported_years": metadata["supported_years"],
    }
    return jsonify(payload), 200


@blueprint.get("/<int:year>")
def get_year_configuration(year: int) -> tuple[Any, int]:
    """Return the rules applied to ``year``, flagging any fallback."""

    config = resolve_year_configuration(year)
    payload = {
        "requested_year": year,
        "fallback": config.year != year,
        "configuration": _serialise_configuration(config),
    }
    return jsonify(payload), 200


@blueprint.get("/<int:year>/categories")
def get_default_categories(year: int) -> tuple[Any, int]:
    """Return the categories available to a default (single) profile."""

    locale = resolve_request_locale(request)
    return jsonify(categories_for_year(year, None, locale)), 200


@blueprint.post("/<int:year>/categories")
def get_profile_categories(year: int) -> tuple[Any, int]:
    """Return the categories available to the posted profile."""

    payload = parse_json_object(request)
    locale = resolve_request_locale(request, payload.pop("locale", None))
    profile = payload.get("profile", payload)
    return jsonify(categories_for_year(year, profile, locale)), 200
