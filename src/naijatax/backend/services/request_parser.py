"""Helpers for normalising incoming API requests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from flask import Request
from pydantic import BaseModel, ValidationError
from werkzeug.exceptions import BadRequest

from naijatax.backend.app.models import TaxPeriod, format_validation_error

_ModelT = TypeVar("_ModelT", bound=BaseModel)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def parse_json_payload(req: Request) -> dict[str, Any]:
    """Extract a JSON object from ``req``."""

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")
    return dict(data)


def parse_request_model(req: Request, model: type[_ModelT]) -> _ModelT:
    """Validate the JSON body of ``req`` against ``model``."""

    payload = parse_json_payload(req)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc)) from exc


def _int_arg(req: Request, name: str, *, required: bool) -> int | None:
    raw = req.args.get(name)
    if raw is None or not raw.strip():
        if required:
            raise BadRequest(f"Query parameter '{name}' is required")
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise BadRequest(f"Query parameter '{name}' must be an integer") from exc


def parse_period_args(req: Request) -> TaxPeriod:
    """Build a :class:`TaxPeriod` from ``account_id``/``year``/``month`` query args."""

    account_id = req.args.get("account_id", "")
    year = _int_arg(req, "year", required=True)
    month = _int_arg(req, "month", required=False)
    return TaxPeriod(account_id=account_id, year=year, month=month)


def parse_flag(req: Request, name: str) -> bool:
    return (req.args.get(name) or "").strip().lower() in _TRUE_VALUES


__all__ = ["parse_flag", "parse_json_payload", "parse_period_args", "parse_request_model"]
