"""Service-layer helpers shared by the HTTP routes."""

from cukai.backend.app.services.calculation_service import calculate_tax

from .request_parser import parse_calculation_payload, parse_json_object
from .response_builder import build_calculation_response, build_json_response

__all__ = [
    "build_calculation_response",
    "build_json_response",
    "calculate_tax",
    "parse_calculation_payload",
    "parse_json_object",
]
