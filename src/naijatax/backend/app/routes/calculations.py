"""Stateless calculation endpoints.

Nothing submitted here is stored: these routes run the calculators on the
request body and return the result, which makes them suitable for previews
and what-if comparisons.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from naijatax.backend.app.http import current_engine
from naijatax.backend.app.models import (
    CITCalculationRequest,
    CreditReconciliationRequest,
    PITCalculationRequest,
    PayrollRequest,
    VATRequest,
    WithholdingRequest,
    to_payload,
)
from naijatax.backend.app.services.calculators import (
    calculate_net_vat,
    calculate_payroll,
    calculate_withholding,
    reconcile_credits,
    vat_on_amount,
)
from naijatax.backend.app.services.engine import (
    compute_cit_summary,
    compute_pit_summary,
    configuration_for_year,
)
from naijatax.backend.services import build_response, parse_request_model

blueprint = Blueprint("calculations", __name__, url_prefix="/api/v1/calculations")


@blueprint.post("/pit")
def calculate_pit() -> tuple[Any, int]:
    """Preview a personal income tax summary from the submitted figures."""

    payload = parse_request_model(request, PITCalculationRequest)
    period = payload.period.to_domain()
    config = configuration_for_year(period.year)
    summary = compute_pit_summary(
        period,
        payload.to_inputs(),
        config,
        today=current_engine().today(),
        brackets=payload.bracket_table(),
    )
    return build_response(summary)


@blueprint.post("/cit")
def calculate_cit() -> tuple[Any, int]:
    """Preview a company income tax summary from the submitted figures."""

    payload = parse_request_model(request, CITCalculationRequest)
    period = payload.period.to_domain()
    config = configuration_for_year(period.year)
    summary = compute_cit_summary(period, payload.to_inputs(), config, today=current_engine().today())
    return build_response(summary)


@blueprint.post("/vat")
def calculate_vat() -> tuple[Any, int]:
    """Net output against input VAT, optionally pricing a single supply."""

    payload = parse_request_model(request, VATRequest)
    config = configuration_for_year(payload.year)
    position = calculate_net_vat(
        payload.output_vat,
        payload.input_vat,
        payload.annual_turnover,
        config.turnover_thresholds,
    )
    result: dict[str, Any] = {"position": to_payload(position)}
    if payload.amount is not None:
        result["charge"] = to_payload(vat_on_amount(payload.amount, config.vat, payload.category))
    return build_response(result)


@blueprint.post("/withholding")
def calculate_wht() -> tuple[Any, int]:
    """Return the tax to withhold from a single payment."""

    payload = parse_request_model(request, WithholdingRequest)
    config = configuration_for_year(payload.year)
    computation = calculate_withholding(
        payload.amount,
        payload.payment_type,
        config.withholding,
        config.turnover_thresholds,
        payee_type=payload.payee_type,
        non_resident=payload.non_resident,
        supplier_turnover=payload.supplier_turnover,
        service_payment=payload.service_payment,
    )
    return build_response(computation)


@blueprint.post("/payroll")
def calculate_employee_payroll() -> tuple[Any, int]:
    """Monthly contributions, PAYE and net salary for one employee."""

    payload = parse_request_model(request, PayrollRequest)
    config = configuration_for_year(payload.year)
    return build_response(calculate_payroll(payload.to_inputs(), config))


@blueprint.post("/credits")
def calculate_credits() -> tuple[Any, int]:
    """Apply withholding tax credits to a liability."""

    payload = parse_request_model(request, CreditReconciliationRequest)
    return build_response(reconcile_credits(payload.liability, payload.credits_available))


__all__ = ["blueprint"]
