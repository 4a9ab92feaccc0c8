"""Unit tests for receipt category suggestions."""

from __future__ import annotations

import pytest

from cukai.backend.app.services.suggestion_service import (
    suggest_category,
    suggest_from_payload,
)


@pytest.mark.parametrize(
    ("description", "parent", "sub"),
    [
        ("Klinik Dr. Lim annual checkup", "medical", "medical_checkup"),
        ("Kinokuniya KLCC", "lifestyle", "lifestyle_books"),
        ("Unifi monthly bill", "lifestyle", "lifestyle_internet"),
        ("Samsung Galaxy Tab", "lifestyle", "lifestyle_tech"),
        ("Decathlon running shoes", "sports", "sports_equip"),
    ],
)
def test_known_merchants_are_recognised(description: str, parent: str, sub: str) -> None:
    assert suggest_category(description) == {"parent": parent, "sub": sub}


def test_matching_is_case_insensitive() -> None:
    assert suggest_category("HOSPITAL PANTAI")["sub"] == "medical_checkup"


def test_first_matching_pattern_wins() -> None:
    # Mentions both a clinic and a phone; medical patterns are checked first.
    assert suggest_category("Phone consult with doctor")["sub"] == "medical_checkup"


@pytest.mark.parametrize("description", ["", None, "Nasi lemak"])
def test_unmatched_descriptions_return_none(description: str | None) -> None:
    assert suggest_category(description) is None


def test_suggest_from_payload_wraps_result() -> None:
    result = suggest_from_payload({"description": "MPH Bookstores"})

    assert result == {
        "description": "MPH Bookstores",
        "suggestion": {"parent": "lifestyle", "sub": "lifestyle_books"},
    }


def test_suggest_from_payload_rejects_unknown_fields() -> None:
    with pytest.raises(ValueError, match="suggestion payload"):
        suggest_from_payload({"description": "x", "amount": 10})
