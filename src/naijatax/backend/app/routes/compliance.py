"""Compliance scoring endpoint."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from naijatax.backend.app.http import current_engine
from naijatax.backend.app.models import ComplianceRequest
from naijatax.backend.services import build_response, parse_request_model

blueprint = Blueprint("compliance", __name__, url_prefix="/api/v1/compliance")


@blueprint.post("/evaluate")
def evaluate() -> tuple[Any, int]:
    """Score the period's stored summary and VAT position against the submitted signals."""

    payload = parse_request_model(request, ComplianceRequest)
    report = current_engine().evaluate_compliance(
        payload.period.to_domain(),
        payload.to_signals(),
        tax_type=payload.tax_type,
    )
    return build_response(report)


__all__ = ["blueprint"]
