"""Pydantic models describing the public API surface."""

from __future__ import annotations

import datetime as dt
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

__all__ = [
    "ReceiptStatus",
    "Receipt",
    "UserProfile",
    "YearIncome",
    "CalculationRequest",
    "TaxRequest",
    "SuggestionRequest",
    "CategoryItemEntry",
    "SharedPoolEntry",
    "CategoryStatsEntry",
    "OptimisationTip",
    "SummaryLabels",
    "Summary",
    "ResponseMeta",
    "CalculationResponse",
    "format_validation_error",
]


ReceiptStatus = Literal["pending", "analyzing", "review", "verified"]

_STATUS_ALIASES = {
    "needs-review": "review",
    "needs_review": "review",
    "needs review": "review",
}


class Receipt(BaseModel):
    """A single expense record entered manually or captured from a scan."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1)
    status: ReceiptStatus = "pending"
    amount: float = 0.0
    description: str = ""
    category: str = ""
    sub_category: str = ""
    date: dt.date
    attachment: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalise_status(cls, value: Any) -> Any:
        if value is None:
            return "pending"
        if isinstance(value, str):
            text = value.strip().lower()
            return _STATUS_ALIASES.get(text, text)
        return value

    @property
    def is_verified(self) -> bool:
        return self.status == "verified"


class UserProfile(BaseModel):
    """Taxpayer facts that drive automatic reliefs and eligibility."""

    model_config = ConfigDict(extra="forbid")

    display_name: str = ""
    marital_status: Literal["single", "married"] = "single"
    spouse_working: bool = True
    spouse_disabled: bool = False
    self_disabled: bool = False
    alimony: bool = False
    kids_under_18: int = Field(default=0, ge=0, le=30)
    kids_pre_university: int = Field(default=0, ge=0, le=30)
    kids_degree: int = Field(default=0, ge=0, le=30)
    kids_disabled: int = Field(default=0, ge=0, le=30)
    kids_disabled_higher_education: int = Field(default=0, ge=0, le=30)
    zakat: float = Field(default=0.0, ge=0)
    donations: float = Field(default=0.0, ge=0)

    @field_validator("marital_status", mode="before")
    @classmethod
    def _normalise_marital_status(cls, value: Any) -> Any:
        if value is None:
            return "single"
        if isinstance(value, str):
            return value.strip().lower() or "single"
        return value

    @field_validator(
        "spouse_working",
        "spouse_disabled",
        "self_disabled",
        "alimony",
        mode="before",
    )
    @classmethod
    def _coerce_flags(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return info.field_name == "spouse_working"
        return value

    @property
    def is_married(self) -> bool:
        return self.marital_status == "married"


class YearIncome(BaseModel):
    """Income declared for one assessment year."""

    model_config = ConfigDict(extra="forbid")

    gross: float = 0.0
    dividends: float = 0.0
    other: float = 0.0


class CalculationRequest(BaseModel):
    """Complete payload accepted by the calculation endpoint."""

    model_config = ConfigDict(extra="forbid")

    year: int = Field(..., ge=0)
    locale: str = Field(default="en")
    profile: UserProfile = Field(default_factory=UserProfile)
    income: YearIncome = Field(default_factory=YearIncome)
    receipts: list[Receipt] = Field(default_factory=list)

    @field_validator("locale", mode="before")
    @classmethod
    def _normalise_locale(cls, value: Any) -> str:
        if value is None:
            return "en"
        text = str(value).strip()
        return text or "en"

    @field_validator("receipts", mode="before")
    @classmethod
    def _normalise_receipts(cls, value: Any) -> Any:
        if value is None:
            return []
        return value


class TaxRequest(BaseModel):
    """Payload for computing bracket tax on a known chargeable income."""

    model_config = ConfigDict(extra="forbid")

    year: int = Field(..., ge=0)
    chargeable_income: float
    dividends: float = 0.0


class SuggestionRequest(BaseModel):
    """Free-text description used to pre-fill a receipt category."""

    model_config = ConfigDict(extra="forbid")

    description: str = ""


class CategoryItemEntry(BaseModel):
    """Deductible item exposed within a category response."""

    model_config = ConfigDict(extra="forbid")

    id: str
    label: str
    sub_limit: float | None = None


class SharedPoolEntry(BaseModel):
    """Shared sub-limit exposed within a category response."""

    model_config = ConfigDict(extra="forbid")

    limit: float
    items: list[str]


class CategoryStatsEntry(BaseModel):
    """Per-category relief usage returned to clients."""

    model_config = ConfigDict(extra="forbid")

    id: str
    title: str
    advice: str
    details: str | None = None
    automatic: bool
    limit: float
    claimable: float
    remaining: float
    percent_used: float
    total_spent: float
    items: list[CategoryItemEntry]
    shared_pools: list[SharedPoolEntry] | None = None


class OptimisationTip(BaseModel):
    """Suggestion highlighting unused relief headroom."""

    model_config = ConfigDict(extra="forbid")

    category: str
    title: str
    remaining: float
    estimated_saving: float
    message: str


class SummaryLabels(BaseModel):
    """Localized labels for summary fields."""

    model_config = ConfigDict(extra="forbid")

    aggregate_income: str
    donations_deduction: str
    personal_relief: str
    total_relief: str
    chargeable_income: str
    bracket_tax: str
    dividend_surcharge: str
    rebates: str
    tax_payable: str
    effective_tax_rate: str
    marginal_rate: str


class Summary(BaseModel):
    """Aggregated calculation results."""

    model_config = ConfigDict(extra="forbid")

    aggregate_income: float
    donations_deduction: float
    personal_relief: float
    total_relief: float
    chargeable_income: float
    bracket_tax: float
    dividend_surcharge: float
    rebates: float
    tax_payable: float
    effective_tax_rate: float
    marginal_rate: float
    labels: SummaryLabels


class ResponseMeta(BaseModel):
    """Metadata returned alongside the calculation output."""

    model_config = ConfigDict(extra="forbid")

    year: int
    resolved_year: int
    fallback: bool
    locale: str
    filing_deadline: dt.date
    pending_receipts: int


class CalculationResponse(BaseModel):
    """Full response payload produced by the calculation service."""

    model_config = ConfigDict(extra="forbid")

    summary: Summary
    categories: list[CategoryStatsEntry]
    tips: list[OptimisationTip]
    meta: ResponseMeta


def format_validation_error(
    error: ValidationError, subject: str = "calculation payload"
) -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if "greater than or equal to 0" in message.lower():
            message = "value cannot be negative"
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid {subject}: {details}"
