"""Value-added tax netting and per-supply VAT."""

from __future__ import annotations

from decimal import Decimal

from naijatax.backend.app.models import (
    ZERO,
    TaxPeriod,
    VATCharge,
    VATPosition,
    VATStatus,
    require_non_negative,
)
from naijatax.backend.config.schema import TurnoverThresholds, VATConfig

from .utils import round_currency


def is_vat_exempt_turnover(turnover: Decimal, thresholds: TurnoverThresholds) -> bool:
    """Return ``True`` when ``turnover`` is below the VAT registration threshold."""

    return turnover < thresholds.vat_registration


def calculate_net_vat(
    output_vat: Decimal | float | int,
    input_vat: Decimal | float | int,
    annual_turnover: Decimal | float | int,
    thresholds: TurnoverThresholds,
    *,
    period: TaxPeriod | None = None,
) -> VATPosition:
    """Net output VAT against input VAT, keeping the sign of the result.

    A refundable position stays negative. Below the registration threshold the
    obligation is suppressed entirely while the collected and paid figures are
    still reported.
    """

    output_amount = round_currency(require_non_negative("output_vat", output_vat))
    input_amount = round_currency(require_non_negative("input_vat", input_vat))
    turnover = round_currency(require_non_negative("annual_turnover", annual_turnover))

    if is_vat_exempt_turnover(turnover, thresholds):
        return VATPosition(
            output_vat=output_amount,
            input_vat=input_amount,
            net_vat=round_currency(ZERO),
            status=VATStatus.EXEMPT,
            owed=False,
            turnover=turnover,
            period=period,
        )

    net = output_amount - input_amount
    if net > 0:
        status = VATStatus.PAYABLE
    elif net < 0:
        status = VATStatus.REFUNDABLE
    else:
        status = VATStatus.ZERO

    return VATPosition(
        output_vat=output_amount,
        input_vat=input_amount,
        net_vat=net,
        status=status,
        owed=status is VATStatus.PAYABLE,
        turnover=turnover,
        period=period,
    )


def vat_on_amount(
    amount: Decimal | float | int,
    vat: VATConfig,
    category: str | None = None,
) -> VATCharge:
    """Return the VAT chargeable on a supply of ``amount`` in ``category``."""

    base = require_non_negative("amount", amount)
    normalised = category.strip().lower() if category else None
    exempt = normalised is not None and normalised in vat.exempt_categories
    rate = ZERO if exempt else vat.standard_rate

    return VATCharge(
        amount=round_currency(base),
        category=normalised,
        rate=rate,
        vat=round_currency(base * rate),
        exempt=exempt,
    )


__all__ = ["calculate_net_vat", "is_vat_exempt_turnover", "vat_on_amount"]
