"""REST endpoints for relief and tax calculations."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from cukai.backend.app.services.calculation_service import (
    calculate_bracket_tax,
    calculate_tax,
)
from cukai.backend.app.services.suggestion_service import suggest_from_payload
from cukai.backend.services.request_parser import (
    parse_calculation_payload,
    parse_json_object,
)
from cukai.backend.services.response_builder import (
    build_calculation_response,
    build_json_response,
)

blueprint = Blueprint("calculations", __name__, url_prefix="/api/v1")


@blueprint.post("/calculations")
def create_calculation() -> tuple[Any, int]:
    """Create a relief and tax calculation using the submitted JSON payload."""

    payload = parse_calculation_payload(request)
    result = calculate_tax(payload)

    return build_calculation_response(result)


@blueprint.post("/calculations/tax")
def create_bracket_tax() -> tuple[Any, int]:
    """Compute bracket tax for a known chargeable income."""

    payload = parse_json_object(request)
    return build_json_response(calculate_bracket_tax(payload))


@blueprint.post("/suggestions")
def create_suggestion() -> tuple[Any, int]:
    """Suggest a receipt category from its free-text description."""

    payload = parse_json_object(request)
    return build_json_response(suggest_from_payload(payload))
