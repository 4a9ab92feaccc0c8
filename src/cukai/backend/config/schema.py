"""Pydantic models describing the tax year configuration schema."""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Mapping, Sequence

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)
from typing_extensions import Self


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


def _coerce_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value in {0, "0", "false", "False", None}:
        return False
    if value in {1, "1", "true", "True"}:
        return True
    raise ConfigurationError("Boolean flags must be explicit true/false values")


class TaxBracket(ImmutableModel):
    """Represents a single progressive tax bracket."""

    upper_bound: float | None = Field(default=None, alias="upper")
    rate: float

    @model_validator(mode="after")
    def _validate_values(self) -> TaxBracket:
        if self.rate < 0 or self.rate > 1:
            raise ConfigurationError("Tax rates must be between 0 and 1")
        if self.upper_bound is not None and self.upper_bound <= 0:
            raise ConfigurationError("Upper bounds must be positive values")
        return self


class DividendSurchargeConfig(ImmutableModel):
    """Flat surcharge applied to dividend income above a threshold."""

    threshold: float
    rate: float

    @model_validator(mode="after")
    def _validate_values(self) -> DividendSurchargeConfig:
        if self.threshold < 0:
            raise ConfigurationError("Dividend surcharge threshold must be non-negative")
        if self.rate < 0 or self.rate > 1:
            raise ConfigurationError("Dividend surcharge rate must be between 0 and 1")
        return self


class RebateConfig(ImmutableModel):
    """Statutory rebates granted to low chargeable incomes."""

    chargeable_income_ceiling: float = 35_000.0
    individual: float = 400.0
    spouse: float = 400.0

    @model_validator(mode="after")
    def _validate_values(self) -> RebateConfig:
        for field_name in ("chargeable_income_ceiling", "individual", "spouse"):
            if getattr(self, field_name) < 0:
                raise ConfigurationError(f"Rebate '{field_name}' must be non-negative")
        return self


class DonationConfig(ImmutableModel):
    """Limits on approved donation deductions."""

    income_cap_rate: float = 0.10

    @model_validator(mode="after")
    def _validate_rate(self) -> DonationConfig:
        if not (0 <= self.income_cap_rate <= 1):
            raise ConfigurationError("Donation income cap rate must be between 0 and 1")
        return self


class YearConfiguration(ImmutableModel):
    """Structured representation of an assessment year configuration."""

    year: int
    filing_deadline: date
    meta: Mapping[str, Any] = Field(default_factory=dict)
    brackets: Sequence[TaxBracket] = Field(alias="tax_brackets")
    personal_relief: float = 9_000.0
    category_limits: Mapping[str, float]
    features: Mapping[str, bool] = Field(default_factory=dict)
    rebates: RebateConfig = Field(default_factory=RebateConfig)
    donations: DonationConfig = Field(default_factory=DonationConfig)
    dividend_surcharge: DividendSurchargeConfig | None = None

    @field_validator("meta", mode="before")
    @classmethod
    def _default_meta(cls, value: Any) -> Mapping[str, Any]:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise ConfigurationError("'meta' section must be a mapping if provided")
        return value

    @field_validator("category_limits", mode="before")
    @classmethod
    def _coerce_limits(cls, value: Any) -> Mapping[str, float]:
        if not isinstance(value, Mapping):
            raise ConfigurationError("'category_limits' must be a mapping")
        limits = {str(key): float(amount) for key, amount in value.items()}
        for key, amount in limits.items():
            if amount < 0:
                raise ConfigurationError(f"Category limit '{key}' must be non-negative")
        return limits

    @field_validator("features", mode="before")
    @classmethod
    def _coerce_features(cls, value: Any) -> Mapping[str, bool]:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise ConfigurationError("'features' must be a mapping of flags")
        return {str(key): _coerce_boolean(flag) for key, flag in value.items()}

    @model_validator(mode="after")
    def _validate_year(self) -> YearConfiguration:
        self._validate_bracket_sequence(self.brackets)
        if self.personal_relief < 0:
            raise ConfigurationError("'personal_relief' must be non-negative")
        return self

    @staticmethod
    def _validate_bracket_sequence(brackets: Sequence[TaxBracket]) -> None:
        if not brackets:
            raise ConfigurationError("At least one tax bracket must be defined")
        last_upper: float | None = None
        last_rate: float | None = None
        for bracket in brackets[:-1]:
            upper = bracket.upper_bound
            if upper is None:
                raise ConfigurationError("Only the final tax bracket may be open-ended")
            if last_upper is not None and upper <= last_upper:
                raise ConfigurationError("Tax brackets must be in ascending order")
            last_upper = upper
        for bracket in brackets:
            if last_rate is not None and bracket.rate < last_rate:
                raise ConfigurationError("Tax rates must not decrease as income rises")
            last_rate = bracket.rate
        if brackets[-1].upper_bound is not None:
            raise ConfigurationError("Final tax bracket must have an open upper bound")

    def feature_enabled(self, flag: str | None) -> bool:
        """Return ``True`` when ``flag`` is unset or enabled for this year."""

        if not flag:
            return True
        return bool(self.features.get(flag, False))

    def limit_for(self, key: str) -> float:
        return self.category_limits.get(key, 0.0)


class DeductibleItemConfig(ImmutableModel):
    """Catalogue entry for a receipt-level expense type."""

    id: str
    label_key: str
    parent: str
    sub_limit: float | None = None
    requires: str | None = None

    @model_validator(mode="after")
    def _validate_sub_limit(self) -> DeductibleItemConfig:
        if self.sub_limit is not None and self.sub_limit <= 0:
            raise ConfigurationError(
                f"Item '{self.id}' sub-limit must be positive when provided"
            )
        return self


class SharedPoolConfig(ImmutableModel):
    """Group of items sharing one limit drawn from ``category_limits``."""

    limit: str
    items: Sequence[str]

    @field_validator("items", mode="before")
    @classmethod
    def _coerce_items(cls, value: Any) -> Sequence[str]:
        if isinstance(value, Iterable) and not isinstance(value, str):
            return tuple(str(entry) for entry in value)
        raise ConfigurationError("Shared pool 'items' must be a list of item ids")


class CategoryDefinition(ImmutableModel):
    """Catalogue entry describing a relief category."""

    id: str
    items: Sequence[str] = Field(default_factory=tuple)
    limit: str | None = None
    automatic: bool = False
    requires: str | None = None
    eligibility: str | None = None
    derived_limit: str | None = None
    shared_pools: Sequence[SharedPoolConfig] = Field(default_factory=tuple)

    @field_validator("items", mode="before")
    @classmethod
    def _coerce_items(cls, value: Any) -> Sequence[str]:
        if value is None:
            return ()
        if isinstance(value, Iterable) and not isinstance(value, str):
            return tuple(str(entry) for entry in value)
        raise ConfigurationError("Category 'items' must be a list of item ids")

    @field_validator("automatic", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        return _coerce_boolean(value)

    @computed_field
    @property
    def limit_key(self) -> str:
        return self.limit or self.id

    @computed_field
    @property
    def title_key(self) -> str:
        return f"categories.{self.id}.title"

    @computed_field
    @property
    def advice_key(self) -> str:
        return f"categories.{self.id}.advice"

    @computed_field
    @property
    def details_key(self) -> str:
        return f"categories.{self.id}.details"


class ReliefCatalog(ImmutableModel):
    """Deductible items and category definitions shared by all years."""

    items: Sequence[DeductibleItemConfig]
    categories: Sequence[CategoryDefinition]

    @model_validator(mode="after")
    def _validate_references(self) -> Self:
        item_ids: set[str] = set()
        for item in self.items:
            if item.id in item_ids:
                raise ConfigurationError(f"Duplicate item '{item.id}' in relief catalog")
            item_ids.add(item.id)

        category_ids: set[str] = set()
        for category in self.categories:
            if category.id in category_ids:
                raise ConfigurationError(
                    f"Duplicate category '{category.id}' in relief catalog"
                )
            category_ids.add(category.id)

            for item_id in category.items:
                if item_id not in item_ids:
                    raise ConfigurationError(
                        f"Category '{category.id}' references unknown item '{item_id}'"
                    )
            for pool in category.shared_pools:
                outside = [entry for entry in pool.items if entry not in category.items]
                if outside:
                    raise ConfigurationError(
                        f"Shared pool in '{category.id}' lists items outside the "
                        f"category: {sorted(outside)}"
                    )
        return self

    def get_item(self, item_id: str) -> DeductibleItemConfig:
        for item in self.items:
            if item.id == item_id:
                return item
        raise KeyError(item_id)


class TaxYearManifestEntry(ImmutableModel):
    """Entry describing a supported assessment year in the manifest."""

    year: int
    filename: str | None = None
    status: str = "active"
    notes_url: str | None = None

    @computed_field
    @property
    def resolved_filename(self) -> str:
        return self.filename or f"{self.year}.yaml"


class TaxYearManifest(ImmutableModel):
    """Manifest describing the available year configuration files."""

    years: Sequence[TaxYearManifestEntry]

    @model_validator(mode="after")
    def _validate_years(self) -> TaxYearManifest:
        if not self.years:
            raise ConfigurationError("The configuration manifest must declare a year")
        seen: set[int] = set()
        for entry in self.years:
            if entry.year in seen:
                raise ConfigurationError(
                    f"Duplicate year {entry.year} declared in the configuration manifest"
                )
            seen.add(entry.year)
        return self

    def get_entry(self, year: int) -> TaxYearManifestEntry:
        for entry in self.years:
            if entry.year == year:
                return entry
        raise KeyError(year)

    @computed_field
    @property
    def supported_years(self) -> tuple[int, ...]:
        return tuple(sorted(entry.year for entry in self.years))


__all__ = [
    "CategoryDefinition",
    "ConfigurationError",
    "DeductibleItemConfig",
    "DividendSurchargeConfig",
    "DonationConfig",
    "ImmutableModel",
    "RebateConfig",
    "ReliefCatalog",
    "SharedPoolConfig",
    "TaxBracket",
    "TaxYearManifest",
    "TaxYearManifestEntry",
    "ValidationError",
    "YearConfiguration",
]
