"""Deduction and exemption aggregation for personal income tax.

This module is the only place where relief amounts (rent relief, the NHF
allowance) are derived from what the taxpayer stated.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from naijatax.backend.app.models import (
    ZERO,
    AccountType,
    DeductionEntry,
    DeductionLine,
    DeductionOutcome,
    DeductionType,
    ExemptionReason,
    require_non_negative,
)
from naijatax.backend.config.schema import ReliefConfig
from naijatax.backend.errors import ErrorKind, InputValidationError

from .utils import round_currency


def rent_relief(annual_rent: Decimal, reliefs: ReliefConfig) -> Decimal:
    """Return ``min(rate × annual rent, cap)``."""

    return min(annual_rent * reliefs.rent_relief_rate, reliefs.rent_relief_cap)


def nhf_allowance(stated: Decimal, gross_income: Decimal, reliefs: ReliefConfig) -> Decimal:
    """Return the NHF contribution allowed against ``gross_income``."""

    base = gross_income
    if reliefs.nhf_income_cap is not None:
        base = min(base, reliefs.nhf_income_cap)
    return min(stated, reliefs.nhf_rate * base)


def _allowed_amount(
    deduction_type: DeductionType,
    stated: Decimal,
    gross_income: Decimal,
    reliefs: ReliefConfig,
) -> Decimal:
    if deduction_type is DeductionType.RENT:
        return rent_relief(stated, reliefs)
    if deduction_type is DeductionType.NATIONAL_HOUSING_FUND:
        return nhf_allowance(stated, gross_income, reliefs)
    return stated


def _exemption(
    gross_income: Decimal, taxable_income: Decimal, threshold: Decimal
) -> tuple[bool, ExemptionReason | None]:
    if gross_income == 0:
        return False, ExemptionReason.NO_INCOME
    if taxable_income == 0:
        return True, ExemptionReason.DEDUCTIONS_REDUCED_TO_ZERO
    if taxable_income <= threshold:
        return True, ExemptionReason.BELOW_THRESHOLD
    return False, None


def aggregate_deductions(
    gross_income: Decimal,
    entries: Iterable[DeductionEntry],
    account_type: AccountType,
    reliefs: ReliefConfig,
    exemption_threshold: Decimal,
) -> DeductionOutcome:
    """Combine ``entries`` into total deductions and taxable income.

    Entries of the same type are summed before their cap applies. Business
    expenses are only accepted for business and company accounts. The
    exemption threshold is reported but never subtracted: it is the 0% first
    bracket of the rate table.
    """

    gross = require_non_negative("gross_income", gross_income)
    threshold = require_non_negative("exemption_threshold", exemption_threshold)

    stated_by_type: dict[DeductionType, Decimal] = {}
    for entry in entries:
        if (
            entry.deduction_type is DeductionType.BUSINESS_EXPENSE
            and account_type is AccountType.INDIVIDUAL
        ):
            raise InputValidationError(
                ErrorKind.INVALID_DEDUCTION,
                "Business expenses can only be deducted by business or company accounts",
                details={"deduction_type": entry.deduction_type.value},
            )
        stated_by_type[entry.deduction_type] = (
            stated_by_type.get(entry.deduction_type, ZERO) + entry.amount
        )

    lines: list[DeductionLine] = []
    total = ZERO
    for deduction_type in DeductionType:
        if deduction_type not in stated_by_type:
            continue
        stated = stated_by_type[deduction_type]
        allowed = _allowed_amount(deduction_type, stated, gross, reliefs)
        total += allowed
        lines.append(
            DeductionLine(
                deduction_type=deduction_type,
                stated=round_currency(stated),
                allowed=round_currency(allowed),
            )
        )

    taxable = max(ZERO, gross - total)
    is_exempt, reason = _exemption(gross, taxable, threshold)

    return DeductionOutcome(
        gross_income=round_currency(gross),
        lines=tuple(lines),
        total_deductions=round_currency(total),
        taxable_income=round_currency(taxable),
        exemption_threshold=round_currency(threshold),
        is_exempt=is_exempt,
        exemption_reason=reason,
    )


__all__ = ["aggregate_deductions", "nhf_allowance", "rent_relief"]
