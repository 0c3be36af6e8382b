"""Endpoints for managing remittances and reading ledger positions.

Every mutation refreshes the pending balance of the affected period when a
summary exists for it, so the figures clients read next are never stale.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request
from werkzeug.exceptions import BadRequest

from naijatax.backend.app.http import current_engine, problem_response
from naijatax.backend.app.models import (
    Remittance,
    RemittanceCreateRequest,
    RemittanceUpdateRequest,
    TaxSummary,
    tax_type_of,
)
from naijatax.backend.services import (
    build_response,
    parse_flag,
    parse_period_args,
    parse_request_model,
)

blueprint = Blueprint("remittances", __name__, url_prefix="/api/v1/remittances")


def _refresh(entry: Remittance) -> TaxSummary | None:
    engine = current_engine()
    if engine.summary(entry.period, entry.tax_type) is None:
        return None
    return engine.refresh_position(entry.period, entry.tax_type)


def _mutation_response(entry: Remittance, *, status: int = 200) -> tuple[Any, int]:
    summary = _refresh(entry)
    return build_response({"remittance": entry, "summary": summary}, status=status)


def _tax_type_arg() -> str:
    raw = request.args.get("tax_type")
    if not raw:
        raise BadRequest("Query parameter 'tax_type' is required")
    return raw


@blueprint.post("")
def create_remittance() -> tuple[Any, int]:
    payload = parse_request_model(request, RemittanceCreateRequest)
    entry = current_engine().ledger.record(
        payload.period.to_domain(),
        payload.tax_type,
        paid_on=payload.paid_on,
        amount=payload.amount,
        reference=payload.reference,
        receipt=payload.receipt,
    )
    return _mutation_response(entry, status=201)


@blueprint.get("")
def list_remittances() -> tuple[Any, int]:
    """List a period's remittances ordered by payment date."""

    period = parse_period_args(request)
    tax_type = tax_type_of(_tax_type_arg())
    entries = current_engine().ledger.remittances(period, tax_type)
    return build_response({"remittances": entries})


@blueprint.get("/position")
def get_position() -> tuple[Any, int]:
    """Return the last computed pending balance for a period."""

    period = parse_period_args(request)
    tax_type = tax_type_of(_tax_type_arg())
    position = current_engine().ledger.position(period, tax_type)
    if position is None:
        return problem_response(
            "not_found",
            status=404,
            message=f"No {tax_type.value} position has been computed for {period.label}",
        ).to_response()
    return build_response(position)


@blueprint.get("/<string:remittance_id>")
def get_remittance(remittance_id: str) -> tuple[Any, int]:
    return build_response(current_engine().ledger.get(remittance_id))


@blueprint.patch("/<string:remittance_id>")
def edit_remittance(remittance_id: str) -> tuple[Any, int]:
    """Edit a recorded remittance; the body must carry the version last read."""

    payload = parse_request_model(request, RemittanceUpdateRequest)
    entry = current_engine().ledger.edit(
        remittance_id,
        expected_version=payload.expected_version,
        changes=payload.changes(),
    )
    return _mutation_response(entry)


@blueprint.post("/<string:remittance_id>/verify")
def verify_remittance(remittance_id: str) -> tuple[Any, int]:
    data = request.get_json(silent=True) or {}
    expected = data.get("expected_version") if isinstance(data, dict) else None
    if expected is not None and (isinstance(expected, bool) or not isinstance(expected, int)):
        raise BadRequest("'expected_version' must be an integer")
    entry = current_engine().ledger.verify(remittance_id, expected_version=expected)
    return _mutation_response(entry)


@blueprint.delete("/<string:remittance_id>")
def delete_remittance(remittance_id: str) -> tuple[Any, int]:
    """Delete a remittance; requires ``?confirmed=true``."""

    entry = current_engine().ledger.delete(
        remittance_id, confirmed=parse_flag(request, "confirmed")
    )
    return _mutation_response(entry)


__all__ = ["blueprint"]
