"""Pydantic models describing the public API surface.

These models only check the *shape* of incoming JSON. Domain rules (negative
amounts, unsupported tax years, missing descriptions) are enforced when a
payload is converted into the domain models, so API clients receive the same
error kinds as direct callers of the engine.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from naijatax.backend.config.schema import Amount

if TYPE_CHECKING:  # pragma: no cover - only for static type checkers
    from . import (
        ComplianceSignals,
        DeductionEntry,
        IncomeFigure,
        PayrollInputs,
        PeriodInputs,
        TaxPeriod,
    )

__all__ = [
    "BracketPayload",
    "CITCalculationRequest",
    "ComplianceRequest",
    "CreditReconciliationRequest",
    "DeductionEntryPayload",
    "IncomeFigurePayload",
    "PITCalculationRequest",
    "PayrollRequest",
    "PeriodInputsRequest",
    "PeriodPayload",
    "RecomputeRequest",
    "RemittanceCreateRequest",
    "RemittanceUpdateRequest",
    "VATRequest",
    "WithholdingRequest",
    "format_validation_error",
]


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class PeriodPayload(_Payload):
    account_id: str
    year: int
    month: int | None = None

    def to_domain(self) -> TaxPeriod:
        from . import TaxPeriod

        return TaxPeriod(account_id=self.account_id, year=self.year, month=self.month)


class IncomeFigurePayload(_Payload):
    amount: Amount
    source: str = "employment"
    description: str | None = None

    def to_domain(self) -> IncomeFigure:
        from . import IncomeFigure

        return IncomeFigure(amount=self.amount, source=self.source, description=self.description)


class DeductionEntryPayload(_Payload):
    deduction_type: str = Field(alias="type")
    amount: Amount
    evidence: str = "manual"
    description: str | None = None

    def to_domain(self) -> DeductionEntry:
        from . import DeductionEntry

        return DeductionEntry(
            deduction_type=self.deduction_type,
            amount=self.amount,
            evidence=self.evidence,
            description=self.description,
        )


class BracketPayload(_Payload):
    lower: Amount
    upper: Amount | None = None
    rate: Amount


class PeriodInputsRequest(_Payload):
    """Aggregated figures for one period, as recorded by upstream systems."""

    period: PeriodPayload
    account_type: str = "individual"
    income: list[IncomeFigurePayload] = Field(default_factory=list)
    deductions: list[DeductionEntryPayload] = Field(default_factory=list)
    wht_credits: Amount = Decimal("0")
    annual_turnover: Amount | None = None
    revenue: Amount | None = None
    expenses: Amount = Decimal("0")
    output_vat: Amount = Decimal("0")
    input_vat: Amount = Decimal("0")

    def to_inputs(self) -> PeriodInputs:
        from . import PeriodInputs

        return PeriodInputs(
            account_type=self.account_type,
            income=tuple(item.to_domain() for item in self.income),
            deductions=tuple(item.to_domain() for item in self.deductions),
            wht_credits=self.wht_credits,
            annual_turnover=self.annual_turnover,
            revenue=self.revenue,
            expenses=self.expenses,
            output_vat=self.output_vat,
            input_vat=self.input_vat,
        )


class PITCalculationRequest(PeriodInputsRequest):
    """Stateless personal income tax preview, optionally with a custom table."""

    brackets: list[BracketPayload] | None = None

    def bracket_table(self) -> Sequence[BracketPayload] | None:
        return tuple(self.brackets) if self.brackets is not None else None


class CITCalculationRequest(PeriodInputsRequest):
    pass


class RecomputeRequest(_Payload):
    period: PeriodPayload


class VATRequest(_Payload):
    year: int
    output_vat: Amount = Decimal("0")
    input_vat: Amount = Decimal("0")
    annual_turnover: Amount
    amount: Amount | None = None
    category: str | None = None


class WithholdingRequest(_Payload):
    year: int
    amount: Amount
    payment_type: str
    payee_type: str = "company"
    non_resident: bool = False
    supplier_turnover: Amount | None = None
    service_payment: bool = False


class PayrollRequest(_Payload):
    """Monthly salary of one employee; ``annual_rent`` feeds rent relief."""

    year: int
    gross_salary: Amount
    annual_rent: Amount = Decimal("0")
    has_pension: bool = True
    has_nhf: bool = True
    has_nhis: bool = True

    def to_inputs(self) -> PayrollInputs:
        from . import PayrollInputs

        return PayrollInputs(
            gross_salary=self.gross_salary,
            annual_rent=self.annual_rent,
            has_pension=self.has_pension,
            has_nhf=self.has_nhf,
            has_nhis=self.has_nhis,
        )


class CreditReconciliationRequest(_Payload):
    liability: Amount
    credits_available: Amount = Decimal("0")


class RemittanceCreateRequest(_Payload):
    period: PeriodPayload
    tax_type: str
    paid_on: date
    amount: Amount
    reference: str
    receipt: str | None = None


class RemittanceUpdateRequest(_Payload):
    expected_version: int = Field(ge=1)
    paid_on: date | None = None
    amount: Amount | None = None
    reference: str | None = None
    receipt: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude={"expected_version"}, exclude_unset=True)


class ComplianceRequest(_Payload):
    period: PeriodPayload
    tax_type: str = "pit"
    missing_tax_id: bool = False
    missing_business_registration: bool = False
    overdue_filing: bool = False
    vat_mismatch: bool = False
    vat_record_missing: bool = False
    no_invoices: bool = False
    annual_turnover: Amount | None = None

    @field_validator("tax_type")
    @classmethod
    def _normalise_tax_type(cls, value: str) -> str:
        return value.strip().lower()

    def to_signals(self) -> ComplianceSignals:
        from . import ComplianceSignals

        return ComplianceSignals(
            missing_tax_id=self.missing_tax_id,
            missing_business_registration=self.missing_business_registration,
            overdue_filing=self.overdue_filing,
            vat_mismatch=self.vat_mismatch,
            vat_record_missing=self.vat_record_missing,
            no_invoices=self.no_invoices,
            annual_turnover=self.annual_turnover,
        )


def format_validation_error(error: ValidationError) -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid request payload: {details}"
