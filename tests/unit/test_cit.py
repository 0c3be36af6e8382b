"""Unit tests for company classification and company income tax."""

from __future__ import annotations

from decimal import Decimal

import pytest

from naijatax.backend.app.models import CompanySize
from naijatax.backend.app.services.calculators import assess_company_tax, classify_company
from naijatax.backend.config.year_config import load_year_configuration


@pytest.mark.parametrize(
    ("turnover", "size", "applies"),
    [
        (0, CompanySize.SMALL, False),
        (50_000_000, CompanySize.SMALL, False),
        (50_000_001, CompanySize.MEDIUM, True),
        (500_000_000, CompanySize.MEDIUM, True),
        (600_000_000, CompanySize.LARGE, True),
    ],
)
def test_classification_by_turnover(turnover: int, size: CompanySize, applies: bool) -> None:
    config = load_year_configuration(2026)

    result = classify_company(turnover, config.turnover_thresholds, config.corporate_income)

    assert result.size is size
    assert result.cit_applies is applies


def test_medium_company_pays_cit_and_development_levy() -> None:
    config = load_year_configuration(2026)

    result = assess_company_tax(
        100_000_000, 20_000_000, config.turnover_thresholds, config.corporate_income
    )

    assert result.cit_amount == Decimal("6000000.00")
    assert result.development_levy == Decimal("800000.00")
    assert result.total_tax == Decimal("6800000.00")


def test_levy_rate_follows_the_tax_year() -> None:
    config = load_year_configuration(2027)

    result = assess_company_tax(
        100_000_000, 20_000_000, config.turnover_thresholds, config.corporate_income
    )

    assert result.development_levy_rate == Decimal("0.035")
    assert result.development_levy == Decimal("700000.00")


def test_small_company_owes_nothing() -> None:
    config = load_year_configuration(2026)

    result = assess_company_tax(
        30_000_000, 10_000_000, config.turnover_thresholds, config.corporate_income
    )

    assert result.classification.rate == Decimal("0")
    assert result.total_tax == Decimal("0.00")
    assert result.assessable_profit == Decimal("10000000.00")
