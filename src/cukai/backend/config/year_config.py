"""Configuration loader wrapping the shared schema models."""

from __future__ import annotations

import logging
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Any, Sequence

import yaml
from pydantic import ValidationError

from .schema import (
    CategoryDefinition,
    ConfigurationError,
    DeductibleItemConfig,
    DividendSurchargeConfig,
    DonationConfig,
    RebateConfig,
    ReliefCatalog,
    SharedPoolConfig,
    TaxBracket,
    TaxYearManifest,
    TaxYearManifestEntry,
    YearConfiguration,
)

_LOGGER = logging.getLogger(__name__)

CONFIG_DIRECTORY = Path(__file__).resolve().parent / "data"
MANIFEST_FILE = CONFIG_DIRECTORY / "manifest.yaml"
CATALOG_FILE = CONFIG_DIRECTORY / "catalog.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must define a mapping at the top level")
    return data


@lru_cache(maxsize=1)
def load_manifest() -> TaxYearManifest:
    """Load and cache the configuration manifest."""

    if not MANIFEST_FILE.exists():
        raise FileNotFoundError("Configuration manifest not found")

    raw_manifest = _load_yaml(MANIFEST_FILE)

    try:
        return TaxYearManifest.model_validate(raw_manifest)
    except ValidationError as error:  # pragma: no cover - defensive
        raise ConfigurationError(f"Manifest validation failed: {error}") from error


@lru_cache(maxsize=1)
def load_catalog() -> ReliefCatalog:
    """Load and cache the relief catalogue shared across years."""

    if not CATALOG_FILE.exists():
        raise FileNotFoundError("Relief catalog not found")

    try:
        return ReliefCatalog.model_validate(_load_yaml(CATALOG_FILE))
    except ValidationError as error:
        raise ConfigurationError(f"Relief catalog validation failed: {error}") from error


def manifest_entries() -> Sequence[TaxYearManifestEntry]:
    """Expose the configured manifest entries."""

    return load_manifest().years


@lru_cache(maxsize=16)
def load_year_configuration(year: int) -> YearConfiguration:
    """Load configuration for the specified assessment year from disk."""

    try:
        manifest_entry = load_manifest().get_entry(year)
    except KeyError as exc:
        raise FileNotFoundError(f"Configuration for year {year} not declared in manifest") from exc

    config_file = CONFIG_DIRECTORY / manifest_entry.resolved_filename
    if not config_file.exists():
        raise FileNotFoundError(
            f"Configuration file for year {year} missing: {config_file.name}"
        )

    raw_config = _load_yaml(config_file)
    raw_config.setdefault("year", year)

    try:
        configuration = YearConfiguration.model_validate(raw_config)
    except ValidationError as error:
        raise ConfigurationError(f"Configuration validation failed for {year}: {error}") from error

    if configuration.year != year:
        raise ConfigurationError(
            f"Configuration year mismatch: expected {year}, found {configuration.year}"
        )

    return configuration


def available_years() -> Sequence[int]:
    """Return the assessment years declared in the manifest."""

    return load_manifest().supported_years


def resolve_year(year: int) -> int:
    """Return the configured year whose rules apply to ``year``.

    Years outside the configured range borrow the rules of the nearest
    configured year: the newest for future years and the oldest for years
    before the first configuration.
    """

    years = available_years()
    if year in years:
        return year
    if year > years[-1]:
        return years[-1]
    if year < years[0]:
        return years[0]
    # Gaps inside the range resolve to the closest earlier year.
    return max(entry for entry in years if entry < year)


def resolve_year_configuration(year: int) -> YearConfiguration:
    """Return the configuration for ``year``, falling back to the nearest year.

    Never raises for an unconfigured year; the fallback is logged as a warning.
    """

    resolved = resolve_year(year)
    if resolved != year:
        _LOGGER.warning(
            "Tax configuration for year %s not found; using %s rules as fallback",
            year,
            resolved,
        )
    return load_year_configuration(resolved)


def get_filing_deadline(year: int) -> date:
    """Return the filing deadline published for ``year`` (or its fallback)."""

    return resolve_year_configuration(year).filing_deadline


__all__ = [
    "CATALOG_FILE",
    "CONFIG_DIRECTORY",
    "CategoryDefinition",
    "ConfigurationError",
    "DeductibleItemConfig",
    "DividendSurchargeConfig",
    "DonationConfig",
    "MANIFEST_FILE",
    "RebateConfig",
    "ReliefCatalog",
    "SharedPoolConfig",
    "TaxBracket",
    "TaxYearManifest",
    "TaxYearManifestEntry",
    "YearConfiguration",
    "available_years",
    "get_filing_deadline",
    "load_catalog",
    "load_manifest",
    "load_year_configuration",
    "manifest_entries",
    "resolve_year",
    "resolve_year_configuration",
]
