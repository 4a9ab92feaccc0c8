"""Integration tests for the translations endpoints."""

from http import HTTPStatus

from flask.testing import FlaskClient


def test_default_translations(client: FlaskClient) -> None:
    response = client.get("/api/v1/translations")

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["locale"] == "en"
    assert payload["backend"]["summary.tax_payable"] == "Tax payable"


def test_translations_query_parameter(client: FlaskClient) -> None:
    response = client.get("/api/v1/translations?locale=ms")

    assert response.get_json()["locale"] == "ms"


def test_locale_path_with_alias(client: FlaskClient) -> None:
    response = client.get("/api/v1/translations/bm")

    payload = response.get_json()
    assert payload["locale"] == "ms"
    assert payload["fallback"]["locale"] == "en"
    assert payload["backend"]["categories.lifestyle.title"] == "Gaya Hidup"


def test_unknown_locale_falls_back_to_english(client: FlaskClient) -> None:
    response = client.get("/api/v1/translations/de")

    assert response.status_code == HTTPStatus.OK
    assert response.get_json()["locale"] == "en"
