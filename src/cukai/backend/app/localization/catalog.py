"""Translation catalogue helpers backed by shared JSON resources.

Each locale ships one ``<locale>.json`` file in :mod:`cukai.translations` with
a flat ``backend`` mapping (summary labels, category texts and item labels)
and a free-form ``frontend`` section served verbatim to clients.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import cache
from importlib import resources
from typing import Any, Mapping

_BASE_LOCALE = "en"
_TRANSLATIONS_PACKAGE = "cukai.translations"

# Common spellings of Bahasa Melayu that clients send instead of ``ms``.
_LOCALE_ALIASES = {"bm": "ms", "my": "ms", "zsm": "ms", "malay": "ms"}


@dataclass(frozen=True)
class Translator:
    """Callable helper for retrieving localized strings."""

    locale: str
    _messages: Mapping[str, str]
    _fallback: Mapping[str, str]

    def __call__(self, key: str) -> str:
        return self._messages.get(key) or self._fallback.get(key, key)

    def has(self, key: str) -> bool:
        return key in self._messages or key in self._fallback


@dataclass(frozen=True)
class Catalogue:
    """Representation of a locale catalogue backed by the shared resources."""

    locale: str
    backend: Mapping[str, str]
    frontend: Mapping[str, Any]


@cache
def available_locales() -> tuple[str, ...]:
    """Return the locales with published translation payloads."""

    root = resources.files(_TRANSLATIONS_PACKAGE)
    locales = sorted(
        entry.name.removesuffix(".json")
        for entry in root.iterdir()
        if entry.name.endswith(".json")
    )
    return tuple(locales) or (_BASE_LOCALE,)


@cache
def _read_catalogue_payload(locale: str) -> dict[str, Any]:
    resource = resources.files(_TRANSLATIONS_PACKAGE).joinpath(f"{locale}.json")
    if not resource.is_file():
        return {"backend": {}, "frontend": {}}

    with resource.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)

    backend = payload.get("backend") or {}
    frontend = payload.get("frontend") or {}
    if not isinstance(backend, dict):
        backend = {}
    if not isinstance(frontend, dict):
        frontend = {}

    return {"backend": backend, "frontend": frontend}


@cache
def _load_catalogue(locale: str) -> Catalogue:
    payload = _read_catalogue_payload(locale)
    backend = {key: str(value) for key, value in payload["backend"].items()}
    return Catalogue(locale=locale, backend=backend, frontend=payload["frontend"])


def normalise_locale(locale: str | None) -> str:
    """Normalise requested locale to a supported catalogue key.

    ``ms-MY`` and ``ms_my`` map to ``ms``; unknown locales fall back to English.
    """

    if not locale:
        return _BASE_LOCALE

    primary = locale.strip().lower().replace("_", "-").split("-")[0]
    primary = _LOCALE_ALIASES.get(primary, primary)
    return primary if primary in available_locales() else _BASE_LOCALE


def get_translator(locale: str | None = None) -> Translator:
    """Return a translator instance for the requested locale."""

    normalized = normalise_locale(locale)
    catalogue = _load_catalogue(normalized)
    fallback = _load_catalogue(_BASE_LOCALE)

    return Translator(
        locale=catalogue.locale,
        _messages=catalogue.backend,
        _fallback=fallback.backend,
    )


def load_translations(locale: str | None = None) -> dict[str, Any]:
    """Expose combined backend/frontend translations for API consumers."""

    normalized = normalise_locale(locale)
    catalogue = _load_catalogue(normalized)
    fallback = _load_catalogue(_BASE_LOCALE)

    return {
        "locale": normalized,
        "available_locales": list(available_locales()),
        "backend": dict(catalogue.backend),
        "frontend": catalogue.frontend,
        "fallback": {
            "locale": _BASE_LOCALE,
            "backend": dict(fallback.backend),
            "frontend": fallback.frontend,
        },
    }


__all__ = [
    "Translator",
    "Catalogue",
    "available_locales",
    "get_translator",
    "load_translations",
    "normalise_locale",
]
