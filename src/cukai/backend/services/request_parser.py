"""Helpers for normalising incoming JSON requests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Request
from werkzeug.exceptions import BadRequest

from cukai.backend.app.localization import normalise_locale


def resolve_request_locale(req: Request, explicit: Any = None) -> str:
    """Return the locale hinted by ``explicit``, ``?locale=`` or ``Accept-Language``."""

    if isinstance(explicit, str) and explicit.strip():
        return normalise_locale(explicit)

    locale_param = req.args.get("locale")
    if locale_param:
        return normalise_locale(locale_param)

    accept_language = req.headers.get("Accept-Language")
    if accept_language:
        primary = accept_language.split(",")[0].split(";")[0].strip()
        if primary:
            return normalise_locale(primary)

    return normalise_locale(None)


def parse_json_object(req: Request) -> dict[str, Any]:
    """Return the JSON object body of ``req`` or raise ``BadRequest``."""

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")
    return dict(data)


def parse_calculation_payload(req: Request) -> dict[str, Any]:
    """Extract a calculation payload from ``req`` with its locale resolved."""

    payload = parse_json_object(req)
    payload["locale"] = resolve_request_locale(req, payload.get("locale"))
    return payload
