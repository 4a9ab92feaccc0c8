"""Keyword heuristics that pre-fill a receipt category from its description.

Suggestions are a convenience for data entry only; they never influence how
relief is calculated.
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from pydantic import ValidationError

from cukai.backend.app.models import SuggestionRequest, format_validation_error
from cukai.backend.config.year_config import load_catalog

# Checked in order; the first matching pattern wins.
_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("medical_checkup", re.compile(r"clinic|hospital|doctor|checkup|medical", re.I)),
    ("lifestyle_books", re.compile(r"book|kinokuniya|mph|popular", re.I)),
    (
        "lifestyle_internet",
        re.compile(r"unifi|maxis|digi|celcom|time|internet", re.I),
    ),
    ("lifestyle_tech", re.compile(r"apple|samsung|phone|laptop|computer|ipad", re.I)),
    ("sports_equip", re.compile(r"decathlon|sport|gym|fitness|adidas|nike", re.I)),
)


def suggest_category(description: str | None) -> dict[str, str] | None:
    """Return ``{"parent": ..., "sub": ...}`` for ``description`` or ``None``."""

    if not description:
        return None

    catalog = load_catalog()
    for item_id, pattern in _PATTERNS:
        if pattern.search(description):
            try:
                item = catalog.get_item(item_id)
            except KeyError:
                continue
            return {"parent": item.parent, "sub": item.id}
    return None


def suggest_from_payload(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a suggestion request and return the suggestion envelope."""

    if not isinstance(payload, Mapping):
        raise ValueError("Payload must be a mapping")
    try:
        request = SuggestionRequest.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc, "suggestion payload")) from exc

    return {
        "description": request.description,
        "suggestion": suggest_category(request.description),
    }


__all__ = ["suggest_category", "suggest_from_payload"]
