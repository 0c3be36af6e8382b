"""Statutory filing deadlines and remittance status."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from naijatax.backend.app.models import RemittanceStatus, TaxPeriod, TaxType
from naijatax.backend.config.schema import DeadlineConfig

from .utils import CENT


def _following_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def filing_deadline(period: TaxPeriod, tax_type: TaxType, deadlines: DeadlineConfig) -> date:
    """Return the date by which ``tax_type`` for ``period`` must be filed and paid.

    Annual PIT and CIT returns fall due in the year after the tax year. Monthly
    PIT periods are PAYE remittances. VAT and WHT fall due in the month after
    the period; an annual VAT or WHT period is treated as ending in December.
    """

    if tax_type is TaxType.CIT:
        return date(period.year + 1, deadlines.cit.month, deadlines.cit.day)

    if tax_type is TaxType.PIT:
        if period.month is None:
            return date(period.year + 1, deadlines.pit.month, deadlines.pit.day)
        year, month = _following_month(period.year, period.month)
        return date(year, month, deadlines.paye_day)

    day = deadlines.vat_day if tax_type is TaxType.VAT else deadlines.wht_day
    year, month = _following_month(period.year, period.month or 12)
    return date(year, month, day)


def remittance_status(pending: Decimal, deadline: date, today: date) -> RemittanceStatus:
    """Classify an outstanding balance against its deadline.

    Balances under one kobo count as settled; overpayments are compliant.
    """

    if pending < CENT:
        return RemittanceStatus.COMPLIANT
    if today > deadline:
        return RemittanceStatus.OVERDUE
    return RemittanceStatus.PENDING


def days_until(deadline: date, today: date) -> int:
    return (deadline - today).days


__all__ = ["days_until", "filing_deadline", "remittance_status"]
