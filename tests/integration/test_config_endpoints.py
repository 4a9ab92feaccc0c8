"""Integration tests for the configuration endpoints."""

from __future__ import annotations

from http import HTTPStatus

import pytest
from flask.testing import FlaskClient

from cukai.backend.config.year_config import available_years


def test_meta_endpoint(client: FlaskClient) -> None:
    response = client.get("/api/v1/config/meta")

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["default_year"] == 2025
    assert payload["supported_years"] == list(available_years())


def test_years_endpoint_lists_manifest(client: FlaskClient) -> None:
    response = client.get("/api/v1/config/years")

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    years = {entry["year"]: entry for entry in payload["years"]}
    assert set(years) == set(available_years())
    assert years[2025]["status"] == "current"
    assert years[2025]["filing_deadline"] == "2026-05-15"
    assert "notes_url" in years[2025]
    assert years[2019]["status"] == "archived"


def test_year_configuration_endpoint(client: FlaskClient) -> None:
    response = client.get("/api/v1/config/2025")

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["requested_year"] == 2025
    assert payload["fallback"] is False
    configuration = payload["configuration"]
    assert configuration["brackets"][0] == {"lower": 0.0, "upper": 5000.0, "rate": 0.0}
    assert configuration["brackets"][-1]["upper"] is None
    assert configuration["dividend_surcharge"]["rate"] == pytest.approx(0.02)
    assert configuration["features"]["dental"] is True


def test_year_configuration_endpoint_flags_fallback(client: FlaskClient) -> None:
    response = client.get("/api/v1/config/2012")

    payload = response.get_json()
    assert payload["fallback"] is True
    assert payload["configuration"]["year"] == 2019
    assert payload["configuration"]["dividend_surcharge"] is None


def test_default_categories_endpoint(client: FlaskClient) -> None:
    response = client.get("/api/v1/config/2025/categories?locale=ms")

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["locale"] == "ms"
    ids = [entry["id"] for entry in payload["categories"]]
    assert ids[0] == "lifestyle"
    assert "spouse" not in ids
    assert payload["categories"][0]["title"] == "Gaya Hidup"


def test_profile_categories_endpoint(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/config/2025/categories",
        json={
            "profile": {
                "marital_status": "married",
                "spouse_working": False,
                "kids_under_18": 3,
            }
        },
    )

    assert response.status_code == HTTPStatus.OK
    categories = {entry["id"]: entry for entry in response.get_json()["categories"]}
    assert categories["spouse"]["automatic"] is True
    assert categories["child_relief"]["limit"] == pytest.approx(6_000)
    assert "childcare" in categories


def test_profile_categories_endpoint_accepts_bare_profile(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/config/2025/categories", json={"self_disabled": True}
    )

    ids = [entry["id"] for entry in response.get_json()["categories"]]
    assert "disabled_self" in ids


def test_profile_categories_endpoint_rejects_invalid_profile(
    client: FlaskClient,
) -> None:
    response = client.post(
        "/api/v1/config/2025/categories", json={"profile": {"kids_degree": -2}}
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert "value cannot be negative" in response.get_json()["message"]
