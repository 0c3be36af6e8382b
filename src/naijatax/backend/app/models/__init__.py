"""Domain models shared by the calculators, the engine and the HTTP layer.

Inputs are frozen Pydantic models built on the configuration schema's
:class:`~naijatax.backend.config.schema.ImmutableModel`. A rejected value is
reported as :class:`~naijatax.backend.errors.InputValidationError` carrying a
specific error kind, so calculators never see negative amounts, unknown
categories or periods outside the supported tax years. Derived results are
frozen dataclasses: they are replaced wholesale on recomputation and compare
by value, which keeps recomputation observably idempotent. HTTP payloads are
described separately by the models in :mod:`.api`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar

from pydantic import (
    AfterValidator,
    BaseModel,
    Field,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError
from typing_extensions import Annotated

from naijatax.backend.config.schema import (
    MAX_SUPPORTED_TAX_YEAR,
    MIN_SUPPORTED_TAX_YEAR,
    Amount,
    ImmutableModel,
)
from naijatax.backend.errors import ErrorKind, InputValidationError

from .api import (
    BracketPayload,
    CITCalculationRequest,
    ComplianceRequest,
    CreditReconciliationRequest,
    DeductionEntryPayload,
    IncomeFigurePayload,
    PayrollRequest,
    PITCalculationRequest,
    PeriodInputsRequest,
    PeriodPayload,
    RecomputeRequest,
    RemittanceCreateRequest,
    RemittanceUpdateRequest,
    VATRequest,
    WithholdingRequest,
    format_validation_error,
)

ZERO = Decimal("0")


class AccountType(str, Enum):
    INDIVIDUAL = "individual"
    BUSINESS = "business"
    COMPANY = "company"


class TaxType(str, Enum):
    PIT = "pit"
    CIT = "cit"
    VAT = "vat"
    WHT = "wht"


class IncomeSource(str, Enum):
    EMPLOYMENT = "employment"
    BUSINESS_REVENUE = "business_revenue"
    OTHER = "other"


class DeductionType(str, Enum):
    PENSION = "pension"
    NATIONAL_HOUSING_FUND = "national_housing_fund"
    HEALTH_INSURANCE = "health_insurance"
    LIFE_INSURANCE = "life_insurance"
    HOUSING_LOAN_INTEREST = "housing_loan_interest"
    RENT = "rent"
    BUSINESS_EXPENSE = "business_expense"


class EvidenceSource(str, Enum):
    PAYSLIP = "payslip"
    EMPLOYER_STATEMENT = "employer_statement"
    MANUAL = "manual"
    OTHER = "other"


class ExemptionReason(str, Enum):
    BELOW_THRESHOLD = "below_threshold"
    DEDUCTIONS_REDUCED_TO_ZERO = "deductions_reduced_to_zero"
    NO_INCOME = "no_income"
    SMALL_COMPANY = "small_company"


class CompanySize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class VATStatus(str, Enum):
    PAYABLE = "payable"
    REFUNDABLE = "refundable"
    ZERO = "zero"
    EXEMPT = "exempt"


class PayeeType(str, Enum):
    COMPANY = "company"
    INDIVIDUAL = "individual"


class RemittanceState(str, Enum):
    """Lifecycle of a single remittance record."""

    RECORDED = "recorded"
    VERIFIED = "verified"


class RemittanceStatus(str, Enum):
    """Status of a period's obligation relative to its filing deadline."""

    PENDING = "pending"
    OVERDUE = "overdue"
    COMPLIANT = "compliant"


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {AlertSeverity.HIGH: 0, AlertSeverity.MEDIUM: 1, AlertSeverity.LOW: 2}


class ComplianceStatus(str, Enum):
    COMPLIANT = "compliant"
    AT_RISK = "at_risk"
    NON_COMPLIANT = "non_compliant"


_ERROR_KINDS = {kind.value: kind for kind in ErrorKind}

#: Kind reported when Pydantic rejects one of these fields with a generic error.
_FIELD_KINDS = {
    "account_id": ErrorKind.INVALID_PERIOD,
    "year": ErrorKind.INVALID_PERIOD,
    "month": ErrorKind.INVALID_PERIOD,
    "deduction_type": ErrorKind.INVALID_DEDUCTION,
    "evidence": ErrorKind.INVALID_DEDUCTION,
}


def input_error(
    error: ValidationError,
    *,
    field: str | None = None,
    kind: ErrorKind | None = None,
) -> InputValidationError:
    """Translate the first issue in ``error`` into an engine error.

    Validators raise :class:`PydanticCustomError` with an :class:`ErrorKind`
    value as the error type; other issues map through ``_FIELD_KINDS`` or fall
    back to ``invalid_value``. Model-level issues name their field in the
    ``field`` context entry. ``kind`` overrides the mapping, ``field``
    prefixes the reported location.
    """

    issue = error.errors()[0]
    context = issue.get("ctx") or {}
    location = [str(part) for part in issue.get("loc", ())]
    if not location and context.get("field"):
        location = [str(context["field"])]
    if field:
        location.insert(0, field)
    path = ".".join(location)

    if kind is None:
        names = [part for part in issue.get("loc", ()) if isinstance(part, str)]
        kind = _ERROR_KINDS.get(issue["type"]) or _FIELD_KINDS.get(
            names[-1] if names else "", ErrorKind.INVALID_VALUE
        )

    details: dict[str, Any] = {}
    if path:
        details["field"] = path
    value = issue.get("input")
    if isinstance(value, (str, int, float, Decimal)):
        details["value"] = str(value)
    message = f"Field '{path}': {issue['msg']}" if path else issue["msg"]
    return InputValidationError(kind, message, details=details)


def _non_negative(value: Decimal) -> Decimal:
    if value < 0:
        raise PydanticCustomError(ErrorKind.NEGATIVE_AMOUNT.value, "Amounts cannot be negative")
    return value


#: Monetary amount that must be zero or more.
NonNegativeAmount = Annotated[Amount, AfterValidator(_non_negative)]

#: Required free text; surrounding whitespace is dropped.
Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

_AMOUNT = TypeAdapter(Amount)
_NON_NEGATIVE_AMOUNT = TypeAdapter(NonNegativeAmount)
_TAX_TYPE = TypeAdapter(TaxType)


def to_decimal(value: Any, field_name: str = "amount") -> Decimal:
    """Convert ``value`` to a finite :class:`Decimal`, rejecting non-numeric input."""

    try:
        return _AMOUNT.validate_python(value)
    except ValidationError as exc:
        raise input_error(exc, field=field_name) from exc


def require_non_negative(field_name: str, value: Any) -> Decimal:
    """Return ``value`` as a Decimal, raising ``negative_amount`` when below zero."""

    try:
        return _NON_NEGATIVE_AMOUNT.validate_python(value)
    except ValidationError as exc:
        raise input_error(exc, field=field_name) from exc


def tax_type_of(value: Any) -> TaxType:
    """Return ``value`` as a :class:`TaxType`, raising ``invalid_value`` otherwise."""

    try:
        return _TAX_TYPE.validate_python(value)
    except ValidationError as exc:
        raise input_error(exc, field="tax_type") from exc


def _has_text(value: str | None) -> bool:
    return isinstance(value, str) and bool(value.strip())


class DomainModel(ImmutableModel):
    """Validated domain input; rejected values raise :class:`InputValidationError`.

    ``_error_scope`` prefixes the field reported for a rejected value.
    """

    _error_scope: ClassVar[str | None] = None

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise input_error(exc, field=type(self)._error_scope) from exc


class TaxPeriod(DomainModel):
    """Account, tax year and optional month (``None`` for annual periods)."""

    account_id: Text
    year: int = Field(strict=True)
    month: int | None = Field(default=None, strict=True, ge=1, le=12)

    @field_validator("year")
    @classmethod
    def _check_supported_year(cls, value: int) -> int:
        if not MIN_SUPPORTED_TAX_YEAR <= value <= MAX_SUPPORTED_TAX_YEAR:
            raise PydanticCustomError(
                ErrorKind.UNSUPPORTED_TAX_YEAR.value,
                "Tax year {year} is not supported; only years {first}-{last} are accepted",
                {"year": value, "first": MIN_SUPPORTED_TAX_YEAR, "last": MAX_SUPPORTED_TAX_YEAR},
            )
        return value

    @property
    def is_annual(self) -> bool:
        return self.month is None

    @property
    def label(self) -> str:
        if self.month is None:
            return str(self.year)
        return f"{self.year}-{self.month:02d}"


class IncomeFigure(DomainModel):
    _error_scope: ClassVar[str | None] = "income"

    amount: NonNegativeAmount
    source: IncomeSource = IncomeSource.EMPLOYMENT
    description: str | None = None

    @model_validator(mode="after")
    def _require_description(self) -> IncomeFigure:
        if self.source is IncomeSource.OTHER and not _has_text(self.description):
            raise PydanticCustomError(
                ErrorKind.MISSING_DESCRIPTION.value,
                "Income from 'other' sources requires a description",
                {"field": "description"},
            )
        return self


class DeductionEntry(DomainModel):
    """Typed deduction; for ``rent`` the amount is the rent paid in the period."""

    _error_scope: ClassVar[str | None] = "deduction"

    deduction_type: DeductionType
    amount: NonNegativeAmount
    evidence: EvidenceSource = EvidenceSource.MANUAL
    description: str | None = None

    @model_validator(mode="after")
    def _require_description(self) -> DeductionEntry:
        if self.evidence is EvidenceSource.OTHER and not _has_text(self.description):
            raise PydanticCustomError(
                ErrorKind.MISSING_DESCRIPTION.value,
                "Deductions backed by 'other' evidence require a description",
                {"field": "description"},
            )
        return self


class PeriodInputs(DomainModel):
    """Aggregated figures resolved for one tax period."""

    account_type: AccountType = AccountType.INDIVIDUAL
    income: tuple[IncomeFigure, ...] = ()
    deductions: tuple[DeductionEntry, ...] = ()
    wht_credits: NonNegativeAmount = ZERO
    annual_turnover: NonNegativeAmount | None = None
    revenue: NonNegativeAmount | None = None
    expenses: NonNegativeAmount = ZERO
    output_vat: NonNegativeAmount = ZERO
    input_vat: NonNegativeAmount = ZERO

    @property
    def gross_income(self) -> Decimal:
        return sum((figure.amount for figure in self.income), ZERO)


class PayrollInputs(DomainModel):
    """Monthly salary and the statutory schemes an employee belongs to."""

    gross_salary: NonNegativeAmount
    annual_rent: NonNegativeAmount = ZERO
    has_pension: bool = True
    has_nhf: bool = True
    has_nhis: bool = True


@dataclass(frozen=True)
class BracketSlice:
    lower: Decimal
    upper: Decimal | None
    rate: Decimal
    taxable_amount: Decimal
    tax: Decimal


@dataclass(frozen=True)
class BracketComputation:
    taxable_income: Decimal
    total_tax: Decimal
    slices: tuple[BracketSlice, ...] = ()


@dataclass(frozen=True)
class DeductionLine:
    deduction_type: DeductionType
    stated: Decimal
    allowed: Decimal


@dataclass(frozen=True)
class DeductionOutcome:
    gross_income: Decimal
    lines: tuple[DeductionLine, ...]
    total_deductions: Decimal
    taxable_income: Decimal
    exemption_threshold: Decimal
    is_exempt: bool
    exemption_reason: ExemptionReason | None


@dataclass(frozen=True)
class CITClassification:
    turnover: Decimal
    size: CompanySize
    rate: Decimal
    cit_applies: bool


@dataclass(frozen=True)
class CITAssessment:
    classification: CITClassification
    assessable_profit: Decimal
    cit_amount: Decimal
    development_levy_rate: Decimal
    development_levy: Decimal

    @property
    def total_tax(self) -> Decimal:
        return self.cit_amount + self.development_levy


@dataclass(frozen=True)
class VATPosition:
    output_vat: Decimal
    input_vat: Decimal
    net_vat: Decimal
    status: VATStatus
    owed: bool
    turnover: Decimal | None = None
    period: TaxPeriod | None = None


@dataclass(frozen=True)
class VATCharge:
    amount: Decimal
    category: str | None
    rate: Decimal
    vat: Decimal
    exempt: bool

    @property
    def gross_amount(self) -> Decimal:
        return self.amount + self.vat


@dataclass(frozen=True)
class CreditReconciliation:
    liability: Decimal
    credits_available: Decimal
    credits_applied: Decimal
    tax_after_credits: Decimal
    unused_credit: Decimal


@dataclass(frozen=True)
class WithholdingComputation:
    payment_type: str
    payee_type: PayeeType
    non_resident: bool
    amount: Decimal
    rate: Decimal
    wht_amount: Decimal
    exempt: bool

    @property
    def net_amount(self) -> Decimal:
        return self.amount - self.wht_amount


@dataclass(frozen=True)
class PayrollComputation:
    """One month's statutory deductions and PAYE for a single employee."""

    gross_salary: Decimal
    employee_pension: Decimal
    employer_pension: Decimal
    nhf: Decimal
    nhis: Decimal
    rent_relief: Decimal
    taxable_income: Decimal
    paye: Decimal
    annual_paye: Decimal
    net_salary: Decimal
    brackets: tuple[BracketSlice, ...] = ()


class Remittance(DomainModel):
    """A payment made against one period's obligation for one tax type."""

    remittance_id: str
    period: TaxPeriod
    tax_type: TaxType
    paid_on: date = Field(strict=True)
    amount: NonNegativeAmount
    reference: Text
    receipt: str | None = None
    state: RemittanceState = RemittanceState.RECORDED
    version: int = Field(default=1, ge=1)

    @field_validator("amount")
    @classmethod
    def _require_payment(cls, value: Decimal) -> Decimal:
        if value == 0:
            raise PydanticCustomError(
                ErrorKind.INVALID_VALUE.value, "Remittance amounts must be greater than zero"
            )
        return value

    def revised(self, **changes: Any) -> Remittance:
        """Return a validated copy with ``changes`` applied and the version bumped."""

        return Remittance(**{**dict(self), **changes, "version": self.version + 1})


@dataclass(frozen=True)
class LedgerPosition:
    """Snapshot of what has been paid against a period's obligation."""

    period: TaxPeriod
    tax_type: TaxType
    tax_after_credits: Decimal
    remitted: Decimal
    pending: Decimal
    remittance_count: int

    @property
    def overpaid(self) -> bool:
        return self.pending < 0


@dataclass(frozen=True)
class TaxSummary:
    """Authoritative, derived result for one (period, tax type)."""

    period: TaxPeriod
    tax_type: TaxType
    account_type: AccountType
    gross_income: Decimal
    deductions: tuple[DeductionLine, ...]
    total_deductions: Decimal
    taxable_income: Decimal
    exemption_threshold: Decimal
    tax_before_credits: Decimal
    brackets: tuple[BracketSlice, ...]
    credits_available: Decimal
    credits_applied: Decimal
    unused_credit: Decimal
    tax_after_credits: Decimal
    is_exempt: bool
    exemption_reason: ExemptionReason | None
    remitted: Decimal
    pending: Decimal
    remittance_status: RemittanceStatus
    filing_deadline: date
    corporate: CITAssessment | None = None

    @property
    def overpaid(self) -> bool:
        return self.pending < 0


class ComplianceSignals(DomainModel):
    """Externally supplied facts feeding the compliance score."""

    missing_tax_id: bool = False
    missing_business_registration: bool = False
    overdue_filing: bool = False
    vat_mismatch: bool = False
    vat_record_missing: bool = False
    no_invoices: bool = False
    annual_turnover: NonNegativeAmount | None = None


@dataclass(frozen=True)
class ComplianceAlert:
    severity: AlertSeverity
    code: str
    category: str
    message: str
    action_required: str
    evaluation_id: str


@dataclass(frozen=True)
class ComplianceReport:
    evaluation_id: str
    score: int
    status: ComplianceStatus
    alerts: tuple[ComplianceAlert, ...] = field(default_factory=tuple)
    period: TaxPeriod | None = None
    evaluated_on: date | None = None


_DERIVED_FIELDS = ("overpaid", "net_amount", "gross_amount", "total_tax")


def _object_payload(value: Any, names: Iterable[str]) -> dict[str, Any]:
    payload = {name: to_payload(getattr(value, name)) for name in names}
    for name in _DERIVED_FIELDS:
        if isinstance(getattr(type(value), name, None), property):
            payload[name] = to_payload(getattr(value, name))
    return payload


def to_payload(value: Any) -> Any:
    """Convert domain objects into JSON-friendly primitives."""

    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return _object_payload(value, type(value).model_fields)
    if is_dataclass(value) and not isinstance(value, type):
        return _object_payload(value, [item.name for item in fields(value)])
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(key): to_payload(item) for key, item in value.items()}
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        return [to_payload(item) for item in value]
    return value


__all__ = [
    "AccountType",
    "AlertSeverity",
    "BracketComputation",
    "BracketPayload",
    "BracketSlice",
    "CITAssessment",
    "CITCalculationRequest",
    "CITClassification",
    "CompanySize",
    "ComplianceAlert",
    "ComplianceReport",
    "ComplianceRequest",
    "ComplianceSignals",
    "ComplianceStatus",
    "CreditReconciliation",
    "CreditReconciliationRequest",
    "DeductionEntry",
    "DeductionEntryPayload",
    "DeductionLine",
    "DeductionOutcome",
    "DeductionType",
    "DomainModel",
    "EvidenceSource",
    "ExemptionReason",
    "IncomeFigure",
    "IncomeFigurePayload",
    "IncomeSource",
    "LedgerPosition",
    "NonNegativeAmount",
    "PITCalculationRequest",
    "PayeeType",
    "PayrollComputation",
    "PayrollInputs",
    "PayrollRequest",
    "PeriodInputs",
    "PeriodInputsRequest",
    "PeriodPayload",
    "RecomputeRequest",
    "Remittance",
    "RemittanceCreateRequest",
    "RemittanceState",
    "RemittanceStatus",
    "RemittanceUpdateRequest",
    "TaxPeriod",
    "TaxSummary",
    "TaxType",
    "VATCharge",
    "VATPosition",
    "VATRequest",
    "VATStatus",
    "WithholdingComputation",
    "WithholdingRequest",
    "ZERO",
    "format_validation_error",
    "input_error",
    "require_non_negative",
    "tax_type_of",
    "to_decimal",
    "to_payload",
]
