"""Endpoints managing the local ledger of receipts, profile and income."""

from __future__ import annotations

import logging
from typing import Any, TypeVar
from uuid import uuid4

from flask import Blueprint, current_app, request
from pydantic import BaseModel, ValidationError

from cukai.backend.app.http import not_found
from cukai.backend.app.models import (
    Receipt,
    UserProfile,
    YearIncome,
    format_validation_error,
)
from cukai.backend.app.services.ledger_service import (
    LedgerRepository,
    build_dashboard,
)
from cukai.backend.services.request_parser import (
    parse_json_object,
    resolve_request_locale,
)
from cukai.backend.services.response_builder import build_json_response

blueprint = Blueprint("ledger", __name__, url_prefix="/api/v1")

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_ledger() -> LedgerRepository:
    """Return the ledger repository attached to the running application."""

    return current_app.extensions["cukai.ledger"]


def _validate(model: type[ModelT], payload: dict[str, Any], subject: str) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc, subject)) from exc


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", exclude_none=True)


@blueprint.get("/receipts")
def list_receipts() -> tuple[Any, int]:
    """Return stored receipts, optionally filtered by ``?year=``."""

    receipts = get_ledger().load_receipts()
    year = request.args.get("year", type=int)
    if year is not None:
        receipts = [receipt for receipt in receipts if receipt.date.year == year]
    return build_json_response({"receipts": [_dump(receipt) for receipt in receipts]})


@blueprint.post("/receipts")
def create_receipt() -> tuple[Any, int]:
    payload = parse_json_object(request)
    payload.setdefault("id", uuid4().hex)
    receipt = _validate(Receipt, payload, "receipt payload")
    get_ledger().save_receipt(receipt)
    logger.info("Stored receipt %s", receipt.id)
    return build_json_response(_dump(receipt), status=201)


@blueprint.put("/receipts/<receipt_id>")
def update_receipt(receipt_id: str) -> tuple[Any, int]:
    """Replace an existing receipt; the path id wins over any body id."""

    ledger = get_ledger()
    try:
        ledger.get_receipt(receipt_id)
    except KeyError:
        return not_found(f"Receipt '{receipt_id}' not found")

    payload = parse_json_object(request)
    payload["id"] = receipt_id
    receipt = _validate(Receipt, payload, "receipt payload")
    ledger.save_receipt(receipt)
    return build_json_response(_dump(receipt))


@blueprint.delete("/receipts/<receipt_id>")
def delete_receipt(receipt_id: str) -> tuple[Any, int]:
    try:
        get_ledger().delete_receipt(receipt_id)
    except KeyError:
        return not_found(f"Receipt '{receipt_id}' not found")
    logger.info("Deleted receipt %s", receipt_id)
    return build_json_response({"deleted": receipt_id})


@blueprint.get("/profile")
def get_profile() -> tuple[Any, int]:
    return build_json_response(_dump(get_ledger().load_profile()))


@blueprint.put("/profile")
def update_profile() -> tuple[Any, int]:
    payload = parse_json_object(request)
    profile = _validate(UserProfile, payload, "profile payload")
    get_ledger().save_profile(profile)
    return build_json_response(_dump(profile))


@blueprint.get("/income")
def list_income() -> tuple[Any, int]:
    income_map = get_ledger().load_income_map()
    payload = {str(year): _dump(income) for year, income in sorted(income_map.items())}
    return build_json_response({"income": payload})


@blueprint.put("/income/<int:year>")
def update_income(year: int) -> tuple[Any, int]:
    payload = parse_json_object(request)
    income = _validate(YearIncome, payload, "income payload")
    get_ledger().save_income(year, income)
    return build_json_response({"year": year, **_dump(income)})


@blueprint.get("/dashboard/<int:year>")
def get_dashboard(year: int) -> tuple[Any, int]:
    """Calculate relief usage and tax for ``year`` from the stored ledger."""

    locale = resolve_request_locale(request)
    return build_json_response(build_dashboard(get_ledger(), year, locale))


@blueprint.delete("/ledger")
def clear_ledger() -> tuple[Any, int]:
    get_ledger().clear()
    logger.info("Cleared ledger")
    return build_json_response({"status": "cleared"})
