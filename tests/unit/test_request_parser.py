"""Unit tests for calculation request parsing helpers."""

from __future__ import annotations

import pytest
from flask import Flask, request
from werkzeug.exceptions import BadRequest

from cukai.backend.services.request_parser import (
    parse_calculation_payload,
    parse_json_object,
    resolve_request_locale,
)


def test_parse_payload_uses_accept_language(app: Flask) -> None:
    """Accept-Language header should supply the locale when absent."""

    with app.test_request_context(
        "/api/v1/calculations",
        method="POST",
        json={"year": 2025, "income": {"gross": 50_000}},
        headers={"Accept-Language": "ms-MY,ms;q=0.9,en;q=0.8"},
    ):
        payload = parse_calculation_payload(request)

    assert payload["locale"] == "ms"


def test_parse_payload_preserves_explicit_locale(app: Flask) -> None:
    """Explicit locale fields should be normalised without overrides."""

    with app.test_request_context(
        "/api/v1/calculations",
        method="POST",
        json={"year": 2025, "locale": "BM"},
        headers={"Accept-Language": "en"},
    ):
        payload = parse_calculation_payload(request)

    assert payload["locale"] == "ms"


def test_query_parameter_overrides_header(app: Flask) -> None:
    with app.test_request_context(
        "/api/v1/dashboard/2025?locale=ms",
        headers={"Accept-Language": "en"},
    ):
        assert resolve_request_locale(request) == "ms"


def test_locale_defaults_to_english(app: Flask) -> None:
    with app.test_request_context("/api/v1/dashboard/2025"):
        assert resolve_request_locale(request) == "en"


def test_parse_payload_rejects_non_object(app: Flask) -> None:
    """Non-object JSON payloads should trigger BadRequest responses."""

    with app.test_request_context(
        "/api/v1/calculations",
        method="POST",
        json=["not", "an", "object"],
    ):
        with pytest.raises(BadRequest):
            parse_calculation_payload(request)


def test_parse_json_object_rejects_invalid_json(app: Flask) -> None:
    with app.test_request_context(
        "/api/v1/receipts",
        method="POST",
        data="{not json",
        content_type="application/json",
    ):
        with pytest.raises(BadRequest, match="valid JSON"):
            parse_json_object(request)
