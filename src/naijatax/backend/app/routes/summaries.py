"""Endpoints for recording period inputs and reading the authoritative summaries."""

from __future__ import annotations

import logging
from typing import Any

from flask import Blueprint, request

from naijatax.backend.app.http import current_engine, problem_response
from naijatax.backend.app.models import (
    PeriodInputsRequest,
    RecomputeRequest,
    TaxType,
    tax_type_of,
)
from naijatax.backend.app.services.engine import InMemoryInputProvider
from naijatax.backend.services import (
    build_response,
    parse_period_args,
    parse_request_model,
)

blueprint = Blueprint("summaries", __name__, url_prefix="/api/v1")

logger = logging.getLogger(__name__)


@blueprint.post("/inputs")
def record_inputs() -> tuple[Any, int]:
    """Store the aggregated figures for a period without recomputing anything."""

    engine = current_engine()
    if not isinstance(engine.provider, InMemoryInputProvider):
        return problem_response(
            "inputs_read_only",
            status=405,
            message="The configured input provider does not accept submissions",
        ).to_response()

    payload = parse_request_model(request, PeriodInputsRequest)
    period = payload.period.to_domain()
    engine.provider.store(period, payload.to_inputs())
    logger.info("Stored inputs for %s %s", period.account_id, period.label)
    return build_response({"period": period, "stored": True}, status=201)


@blueprint.post("/summaries/<string:tax_type>/recompute")
def recompute_summary(tax_type: str) -> tuple[Any, int]:
    """Recompute the summary for one period and replace the stored one."""

    kind = tax_type_of(tax_type)
    payload = parse_request_model(request, RecomputeRequest)
    period = payload.period.to_domain()
    engine = current_engine()
    if kind is TaxType.PIT:
        summary = engine.recompute_pit(period)
    elif kind is TaxType.CIT:
        summary = engine.recompute_cit(period)
    else:
        return problem_response(
            "unsupported_summary",
            status=400,
            message=f"Summaries are computed for pit and cit, not {kind.value}",
        ).to_response()
    return build_response(summary)


@blueprint.get("/summaries/<string:tax_type>")
def get_summary(tax_type: str) -> tuple[Any, int]:
    kind = tax_type_of(tax_type)
    period = parse_period_args(request)
    summary = current_engine().summary(period, kind)
    if summary is None:
        return problem_response(
            "not_found",
            status=404,
            message=f"No {kind.value} summary has been computed for {period.label}",
        ).to_response()
    return build_response(summary)


@blueprint.post("/vat/position")
def compute_vat_position() -> tuple[Any, int]:
    """Net the stored output and input VAT figures for a period."""

    payload = parse_request_model(request, RecomputeRequest)
    return build_response(current_engine().compute_vat(payload.period.to_domain()))


@blueprint.get("/vat/position")
def get_vat_position() -> tuple[Any, int]:
    period = parse_period_args(request)
    position = current_engine().vat_position(period)
    if position is None:
        return problem_response(
            "not_found",
            status=404,
            message=f"No VAT position has been computed for {period.label}",
        ).to_response()
    return build_response(position)


__all__ = ["blueprint"]
