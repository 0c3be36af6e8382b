"""Compliance scoring.

``evaluate_compliance`` is a pure function of its arguments: every call
builds a fresh alert list, so re-evaluating unchanged inputs gives the same
score, status and alerts (only the evaluation id differs).
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import NamedTuple

from naijatax.backend.app.models import (
    AlertSeverity,
    ComplianceAlert,
    ComplianceReport,
    ComplianceSignals,
    ComplianceStatus,
    TaxPeriod,
    TaxSummary,
    VATPosition,
    VATStatus,
)
from naijatax.backend.config.schema import ComplianceConfig, TurnoverThresholds

from .utils import CENT
from .vat import is_vat_exempt_turnover

MAX_SCORE = 100


class _Condition(NamedTuple):
    key: str
    category: str
    message: str
    action_required: str


_CONDITIONS = {
    "missing_tax_id": _Condition(
        "missing_tax_id",
        "registration",
        "No tax identification number (TIN) is on record.",
        "Register for a TIN with the tax authority and add it to the profile.",
    ),
    "missing_business_registration": _Condition(
        "missing_business_registration",
        "registration",
        "No business registration (CAC) number is on record.",
        "Add the Corporate Affairs Commission registration number to the profile.",
    ),
    "overdue_filing": _Condition(
        "overdue_filing",
        "filing",
        "A filing deadline has passed without a return being filed.",
        "File the outstanding return immediately to limit penalties.",
    ),
    "vat_mismatch": _Condition(
        "vat_mismatch",
        "vat",
        "Output VAT was recorded without matching input VAT.",
        "Record VAT paid on purchases so input VAT can be claimed.",
    ),
    "high_vat_payable": _Condition(
        "high_vat_payable",
        "vat",
        "Net VAT payable for the period is unusually high.",
        "Review input VAT claims and remit the VAT due before the deadline.",
    ),
    "unfiled_vat_above_threshold": _Condition(
        "unfiled_vat_above_threshold",
        "vat",
        "Turnover exceeds the VAT registration threshold but no VAT is recorded.",
        "Record VAT on invoices and expenses; VAT filing is mandatory at this turnover.",
    ),
    "no_invoices": _Condition(
        "no_invoices",
        "records",
        "No invoices were recorded for the period.",
        "Record sales invoices so income and output VAT are complete.",
    ),
    "outstanding_past_deadline": _Condition(
        "outstanding_past_deadline",
        "payment",
        "Tax remains unpaid after the filing deadline.",
        "Remit the outstanding balance and record the payment reference.",
    ),
    "overpayment": _Condition(
        "overpayment",
        "payment",
        "Remittances exceed the tax due for the period.",
        "Confirm the remittances and request a refund or carry the credit forward.",
    ),
}


def compliance_status(score: int, config: ComplianceConfig) -> ComplianceStatus:
    if score >= config.compliant_score:
        return ComplianceStatus.COMPLIANT
    if score >= config.at_risk_score:
        return ComplianceStatus.AT_RISK
    return ComplianceStatus.NON_COMPLIANT


def _vat_mismatch(vat: VATPosition | None, config: ComplianceConfig) -> bool:
    if vat is None or vat.status is VATStatus.EXEMPT:
        return False
    return vat.output_vat > 0 and vat.input_vat <= config.vat_mismatch_tolerance


def _triggered(
    summary: TaxSummary | None,
    signals: ComplianceSignals,
    config: ComplianceConfig,
    thresholds: TurnoverThresholds,
    vat: VATPosition | None,
    today: date | None,
) -> list[str]:
    triggered: list[str] = []
    if signals.missing_tax_id:
        triggered.append("missing_tax_id")
    if signals.missing_business_registration:
        triggered.append("missing_business_registration")
    if signals.overdue_filing:
        triggered.append("overdue_filing")
    if signals.vat_mismatch or _vat_mismatch(vat, config):
        triggered.append("vat_mismatch")
    if (
        vat is not None
        and vat.status is VATStatus.PAYABLE
        and vat.net_vat > config.high_vat_payable_threshold
    ):
        triggered.append("high_vat_payable")

    turnover = signals.annual_turnover
    if turnover is None and vat is not None:
        turnover = vat.turnover
    if (
        signals.vat_record_missing
        and turnover is not None
        and not is_vat_exempt_turnover(turnover, thresholds)
    ):
        triggered.append("unfiled_vat_above_threshold")

    if signals.no_invoices:
        triggered.append("no_invoices")

    if summary is not None:
        if (
            today is not None
            and summary.pending >= CENT
            and today > summary.filing_deadline
        ):
            triggered.append("outstanding_past_deadline")
        if summary.overpaid:
            triggered.append("overpayment")
    return triggered


def evaluate_compliance(
    summary: TaxSummary | None,
    signals: ComplianceSignals,
    config: ComplianceConfig,
    thresholds: TurnoverThresholds,
    *,
    vat: VATPosition | None = None,
    today: date | None = None,
    period: TaxPeriod | None = None,
    evaluation_id: str | None = None,
) -> ComplianceReport:
    """Score ``summary`` and ``signals`` from 100 down to a floor of zero.

    Each triggered condition deducts its configured amount and yields one
    alert. Alerts are ordered from high to low severity.
    """

    run_id = evaluation_id or uuid.uuid4().hex
    score = MAX_SCORE
    alerts: list[ComplianceAlert] = []

    for key in _triggered(summary, signals, config, thresholds, vat, today):
        rule = config.rules[key]
        condition = _CONDITIONS[key]
        score -= rule.deduction
        alerts.append(
            ComplianceAlert(
                severity=AlertSeverity(rule.severity),
                code=condition.key,
                category=condition.category,
                message=condition.message,
                action_required=condition.action_required,
                evaluation_id=run_id,
            )
        )

    score = max(0, score)
    alerts.sort(key=lambda alert: alert.severity.rank)

    return ComplianceReport(
        evaluation_id=run_id,
        score=score,
        status=compliance_status(score, config),
        alerts=tuple(alerts),
        period=period if period is not None else (summary.period if summary else None),
        evaluated_on=today,
    )


__all__ = ["MAX_SCORE", "compliance_status", "evaluate_compliance"]
