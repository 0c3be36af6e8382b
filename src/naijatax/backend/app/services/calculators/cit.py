"""Company income tax classification and assessment."""

from __future__ import annotations

from decimal import Decimal

from naijatax.backend.app.models import (
    ZERO,
    CITAssessment,
    CITClassification,
    CompanySize,
    require_non_negative,
)
from naijatax.backend.config.schema import CorporateIncomeConfig, TurnoverThresholds

from .utils import round_currency


def classify_company(
    annual_turnover: Decimal | float | int,
    thresholds: TurnoverThresholds,
    corporate: CorporateIncomeConfig,
) -> CITClassification:
    """Map ``annual_turnover`` to a size band and its company tax rate.

    The same :class:`TurnoverThresholds` table also drives the VAT registration
    and WHT small-supplier checks, so every size decision reads one source.
    """

    turnover = require_non_negative("annual_turnover", annual_turnover)
    if turnover <= thresholds.small_company:
        size = CompanySize.SMALL
    elif turnover <= thresholds.large_company:
        size = CompanySize.MEDIUM
    else:
        size = CompanySize.LARGE

    rate = ZERO if size is CompanySize.SMALL else corporate.rates[size.value]
    return CITClassification(
        turnover=round_currency(turnover),
        size=size,
        rate=rate,
        cit_applies=size is not CompanySize.SMALL and rate > 0,
    )


def assess_company_tax(
    annual_turnover: Decimal | float | int,
    assessable_profit: Decimal | float | int,
    thresholds: TurnoverThresholds,
    corporate: CorporateIncomeConfig,
) -> CITAssessment:
    """Return company income tax and development levy on ``assessable_profit``."""

    classification = classify_company(annual_turnover, thresholds, corporate)
    profit = require_non_negative("assessable_profit", assessable_profit)

    if not classification.cit_applies:
        return CITAssessment(
            classification=classification,
            assessable_profit=round_currency(profit),
            cit_amount=round_currency(ZERO),
            development_levy_rate=ZERO,
            development_levy=round_currency(ZERO),
        )

    levy_rate = corporate.development_levy_rate
    return CITAssessment(
        classification=classification,
        assessable_profit=round_currency(profit),
        cit_amount=round_currency(profit * classification.rate),
        development_levy_rate=levy_rate,
        development_levy=round_currency(profit * levy_rate),
    )


__all__ = ["assess_company_tax", "classify_company"]
