"""Unit tests for deduction aggregation and exemption handling."""

from __future__ import annotations

from decimal import Decimal

import pytest

from naijatax.backend.app.models import (
    AccountType,
    DeductionEntry,
    DeductionType,
    ExemptionReason,
)
from naijatax.backend.app.services.calculators import (
    aggregate_deductions,
    nhf_allowance,
    rent_relief,
)
from naijatax.backend.config.year_config import load_year_configuration
from naijatax.backend.errors import ErrorKind, InputValidationError

THRESHOLD = Decimal("800000")


@pytest.fixture()
def reliefs():
    return load_year_configuration(2026).reliefs


def _aggregate(gross, entries, reliefs, account_type=AccountType.INDIVIDUAL):
    return aggregate_deductions(Decimal(gross), entries, account_type, reliefs, THRESHOLD)


def test_pension_and_nhf_reduce_taxable_income(reliefs) -> None:
    outcome = _aggregate(
        5_000_000,
        [
            DeductionEntry(deduction_type=DeductionType.PENSION, amount=400_000),
            DeductionEntry(deduction_type=DeductionType.NATIONAL_HOUSING_FUND, amount=125_000),
        ],
        reliefs,
    )

    assert outcome.total_deductions == Decimal("525000.00")
    assert outcome.taxable_income == Decimal("4475000.00")
    assert outcome.is_exempt is False
    assert outcome.exemption_reason is None
    assert outcome.exemption_threshold == THRESHOLD


def test_nhf_is_limited_to_its_rate_of_gross_income(reliefs) -> None:
    assert nhf_allowance(Decimal("200000"), Decimal("5000000"), reliefs) == Decimal("125000")

    outcome = _aggregate(
        5_000_000,
        [DeductionEntry(deduction_type="national_housing_fund", amount=200_000)],
        reliefs,
    )

    line = outcome.lines[0]
    assert line.stated == Decimal("200000.00")
    assert line.allowed == Decimal("125000.00")


def test_rent_relief_uses_rate_then_cap(reliefs) -> None:
    assert rent_relief(Decimal("1000000"), reliefs) == Decimal("200000")
    assert rent_relief(Decimal("5000000"), reliefs) == Decimal("500000")


def test_entries_of_one_type_are_summed_before_the_cap(reliefs) -> None:
    outcome = _aggregate(
        10_000_000,
        [
            DeductionEntry(deduction_type="rent", amount=1_500_000),
            DeductionEntry(deduction_type="rent", amount=1_500_000),
        ],
        reliefs,
    )

    assert len(outcome.lines) == 1
    assert outcome.lines[0].stated == Decimal("3000000.00")
    assert outcome.lines[0].allowed == Decimal("500000.00")


def test_business_expenses_need_a_business_account(reliefs) -> None:
    entry = DeductionEntry(deduction_type="business_expense", amount=100_000)

    with pytest.raises(InputValidationError) as exc_info:
        _aggregate(1_000_000, [entry], reliefs)
    assert exc_info.value.kind is ErrorKind.INVALID_DEDUCTION

    outcome = _aggregate(1_000_000, [entry], reliefs, account_type=AccountType.BUSINESS)
    assert outcome.taxable_income == Decimal("900000.00")


def test_income_under_threshold_is_exempt(reliefs) -> None:
    outcome = _aggregate(700_000, [], reliefs)

    assert outcome.is_exempt is True
    assert outcome.exemption_reason is ExemptionReason.BELOW_THRESHOLD
    # The threshold is the 0% band, never a deduction.
    assert outcome.taxable_income == Decimal("700000.00")


def test_deductions_exceeding_income_floor_at_zero(reliefs) -> None:
    entry = DeductionEntry(deduction_type="pension", amount=1_200_000)
    outcome = _aggregate(1_000_000, [entry], reliefs)

    assert outcome.taxable_income == Decimal("0.00")
    assert outcome.is_exempt is True
    assert outcome.exemption_reason is ExemptionReason.DEDUCTIONS_REDUCED_TO_ZERO


def test_no_income_is_reported_without_exemption(reliefs) -> None:
    outcome = _aggregate(0, [], reliefs)

    assert outcome.is_exempt is False
    assert outcome.exemption_reason is ExemptionReason.NO_INCOME


def test_deduction_entry_validation() -> None:
    with pytest.raises(InputValidationError) as unknown:
        DeductionEntry(deduction_type="holiday", amount=100)
    assert unknown.value.kind is ErrorKind.INVALID_DEDUCTION

    with pytest.raises(InputValidationError) as negative:
        DeductionEntry(deduction_type="pension", amount=-5)
    assert negative.value.kind is ErrorKind.NEGATIVE_AMOUNT

    with pytest.raises(InputValidationError) as undocumented:
        DeductionEntry(deduction_type="life_insurance", amount=10_000, evidence="other")
    assert undocumented.value.kind is ErrorKind.MISSING_DESCRIPTION

    documented = DeductionEntry(
        deduction_type="life_insurance",
        amount=10_000,
        evidence="other",
        description="Insurer letter",
    )
    assert documented.amount == Decimal("10000")
