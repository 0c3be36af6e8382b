"""Pydantic models describing the tax year configuration schema."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Sequence

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)
from typing_extensions import Annotated

#: Earliest tax year governed by the rule set; older years are rejected.
MIN_SUPPORTED_TAX_YEAR = 2026
MAX_SUPPORTED_TAX_YEAR = 2100


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


def coerce_decimal(value: Any) -> Any:
    """Convert YAML/JSON scalars to :class:`Decimal` without float artefacts."""

    if isinstance(value, Decimal) or value is None:
        return value
    if isinstance(value, bool):
        raise ConfigurationError("Boolean values are not valid amounts")
    if isinstance(value, (int, float, str)):
        try:
            return Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ConfigurationError(f"Invalid numeric value: {value!r}") from exc
    return value


#: Decimal amount that accepts ints/floats/strings and serialises to a JSON number.
Amount = Annotated[
    Decimal,
    BeforeValidator(coerce_decimal),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class TaxBracket(ImmutableModel):
    """Represents a single progressive tax bracket."""

    lower_bound: Amount = Field(alias="lower")
    upper_bound: Amount | None = Field(default=None, alias="upper")
    rate: Amount
    label: str | None = None

    @model_validator(mode="after")
    def _validate_values(self) -> TaxBracket:
        issue = bracket_issue(self.lower_bound, self.upper_bound, self.rate)
        if issue:
            raise ConfigurationError(issue)
        return self


def bracket_issue(
    lower: Decimal, upper: Decimal | None, rate: Decimal
) -> str | None:
    """Return a description of what is wrong with a single bracket, if anything."""

    if lower < 0:
        return "Bracket lower bounds must be non-negative"
    if upper is not None and upper <= lower:
        return "Bracket upper bounds must exceed their lower bounds"
    if rate < 0 or rate > 1:
        return "Bracket rates must lie between 0 and 1"
    return None


def bracket_sequence_issue(brackets: Sequence[TaxBracket]) -> str | None:
    """Return a description of the first structural problem in ``brackets``."""

    if not brackets:
        return "At least one tax bracket must be defined"
    if brackets[0].lower_bound != 0:
        return "The first tax bracket must start at zero"
    for index, bracket in enumerate(brackets):
        issue = bracket_issue(bracket.lower_bound, bracket.upper_bound, bracket.rate)
        if issue:
            return issue
        if index == 0:
            continue
        previous_upper = brackets[index - 1].upper_bound
        if previous_upper is None:
            return "Only the final tax bracket may be unbounded"
        if bracket.lower_bound > previous_upper:
            return "Tax brackets must not leave gaps between bounds"
        if bracket.lower_bound < previous_upper:
            return "Tax brackets must not overlap"
    if brackets[-1].upper_bound is not None:
        return "The final tax bracket must be unbounded"
    return None


class PersonalIncomeConfig(ImmutableModel):
    """Progressive personal income tax table and its zero-rated threshold."""

    exemption_threshold: Amount
    brackets: Sequence[TaxBracket] = Field(alias="tax_brackets")

    @model_validator(mode="after")
    def _validate_config(self) -> PersonalIncomeConfig:
        issue = bracket_sequence_issue(self.brackets)
        if issue:
            raise ConfigurationError(issue)
        first = self.brackets[0]
        if self.exemption_threshold < 0:
            raise ConfigurationError("Exemption threshold must be non-negative")
        if first.rate != 0 or first.upper_bound != self.exemption_threshold:
            raise ConfigurationError(
                "The first tax bracket must be the 0% band ending at the exemption threshold"
            )
        return self


class ReliefConfig(ImmutableModel):
    """Caps and rates applied to statutory deductions."""

    rent_relief_rate: Amount
    rent_relief_cap: Amount
    nhf_rate: Amount
    nhf_income_cap: Amount | None = None

    @model_validator(mode="after")
    def _validate_rates(self) -> ReliefConfig:
        for name in ("rent_relief_rate", "nhf_rate"):
            value = getattr(self, name)
            if value < 0 or value > 1:
                raise ConfigurationError(f"{name} must lie between 0 and 1")
        if self.rent_relief_cap < 0:
            raise ConfigurationError("Rent relief cap must be non-negative")
        if self.nhf_income_cap is not None and self.nhf_income_cap <= 0:
            raise ConfigurationError("NHF income cap must be positive when provided")
        return self


class PayrollConfig(ImmutableModel):
    """Statutory payroll contribution rates and the ITF levy."""

    employee_pension_rate: Amount
    employer_pension_rate: Amount
    nhis_rate: Amount
    itf_rate: Amount
    itf_turnover_threshold: Amount
    itf_employee_threshold: int = Field(ge=1)

    @model_validator(mode="after")
    def _validate_rates(self) -> PayrollConfig:
        for name in ("employee_pension_rate", "employer_pension_rate", "nhis_rate", "itf_rate"):
            value = getattr(self, name)
            if value < 0 or value > 1:
                raise ConfigurationError(f"{name} must lie between 0 and 1")
        if self.itf_turnover_threshold < 0:
            raise ConfigurationError("ITF turnover threshold must be non-negative")
        return self


class TurnoverThresholds(ImmutableModel):
    """Annual turnover thresholds driving classification and exemptions."""

    vat_registration: Amount
    small_company: Amount
    large_company: Amount
    wht_small_supplier: Amount

    @model_validator(mode="after")
    def _validate_thresholds(self) -> TurnoverThresholds:
        for name in ("vat_registration", "small_company", "large_company", "wht_small_supplier"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"Turnover threshold '{name}' must be non-negative")
        if self.large_company <= self.small_company:
            raise ConfigurationError(
                "Large company threshold must exceed the small company threshold"
            )
        return self


class CorporateIncomeConfig(ImmutableModel):
    """Company income tax rates per size band and the development levy."""

    rates: Mapping[str, Amount]
    development_levy_rate: Amount = Decimal("0")

    @field_validator("rates")
    @classmethod
    def _validate_rate_keys(cls, value: Mapping[str, Decimal]) -> Mapping[str, Decimal]:
        missing = {"small", "medium", "large"} - set(value)
        if missing:
            raise ConfigurationError(
                f"Corporate income rates missing for: {', '.join(sorted(missing))}"
            )
        for size, rate in value.items():
            if rate < 0 or rate > 1:
                raise ConfigurationError(f"Corporate rate for '{size}' must lie between 0 and 1")
        return value

    @model_validator(mode="after")
    def _validate_levy(self) -> CorporateIncomeConfig:
        if self.development_levy_rate < 0 or self.development_levy_rate > 1:
            raise ConfigurationError("Development levy rate must lie between 0 and 1")
        return self


class VATConfig(ImmutableModel):
    """Value-added tax standard rate and exempt supply categories."""

    standard_rate: Amount
    exempt_categories: Sequence[str] = Field(default_factory=tuple)

    @field_validator("exempt_categories", mode="before")
    @classmethod
    def _normalise_categories(cls, value: Any) -> Sequence[str]:
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return tuple(str(item).strip().lower() for item in value)
        raise ConfigurationError("VAT exempt categories must be a list")

    @model_validator(mode="after")
    def _validate_rate(self) -> VATConfig:
        if self.standard_rate < 0 or self.standard_rate > 1:
            raise ConfigurationError("VAT standard rate must lie between 0 and 1")
        return self


class WithholdingRate(ImmutableModel):
    """Resident and non-resident withholding rates for one payee type."""

    resident: Amount
    non_resident: Amount

    @model_validator(mode="after")
    def _validate_rates(self) -> WithholdingRate:
        for rate in (self.resident, self.non_resident):
            if rate < 0 or rate > 1:
                raise ConfigurationError("Withholding rates must lie between 0 and 1")
        return self


class WithholdingRule(ImmutableModel):
    """Rates for a payment type split by payee type."""

    company: WithholdingRate
    individual: WithholdingRate
    service: bool = False


class WithholdingConfig(ImmutableModel):
    """Withholding tax rate table keyed by payment type."""

    rates: Mapping[str, WithholdingRule]

    @model_validator(mode="after")
    def _validate_table(self) -> WithholdingConfig:
        if not self.rates:
            raise ConfigurationError("At least one withholding payment type must be defined")
        return self

    @computed_field
    @property
    def payment_types(self) -> tuple[str, ...]:
        return tuple(sorted(self.rates))


class AnnualDeadline(ImmutableModel):
    """Fixed day in the year following the tax year."""

    month: int = Field(ge=1, le=12)
    day: int = Field(ge=1, le=31)


class DeadlineConfig(ImmutableModel):
    """Statutory filing and remittance deadlines per tax type."""

    pit: AnnualDeadline
    cit: AnnualDeadline
    vat_day: int = Field(ge=1, le=28)
    wht_day: int = Field(ge=1, le=28)
    paye_day: int = Field(ge=1, le=28)


class ComplianceRule(ImmutableModel):
    """Score deduction and severity for one compliance condition."""

    deduction: int = Field(ge=0, le=100)
    severity: str

    @field_validator("severity")
    @classmethod
    def _validate_severity(cls, value: str) -> str:
        normalised = value.strip().lower()
        if normalised not in {"low", "medium", "high"}:
            raise ConfigurationError("Compliance severities must be low, medium or high")
        return normalised


COMPLIANCE_RULE_KEYS = (
    "missing_tax_id",
    "missing_business_registration",
    "overdue_filing",
    "vat_mismatch",
    "high_vat_payable",
    "unfiled_vat_above_threshold",
    "no_invoices",
    "outstanding_past_deadline",
    "overpayment",
)


class ComplianceConfig(ImmutableModel):
    """Score bands, alert thresholds and per-condition deductions."""

    compliant_score: int = Field(ge=0, le=100)
    at_risk_score: int = Field(ge=0, le=100)
    high_vat_payable_threshold: Amount
    vat_mismatch_tolerance: Amount = Decimal("0")
    rules: Mapping[str, ComplianceRule]

    @model_validator(mode="after")
    def _validate_config(self) -> ComplianceConfig:
        if self.at_risk_score > self.compliant_score:
            raise ConfigurationError("At-risk score band must not exceed the compliant band")
        missing = [key for key in COMPLIANCE_RULE_KEYS if key not in self.rules]
        if missing:
            raise ConfigurationError(
                f"Compliance rules missing for: {', '.join(missing)}"
            )
        return self


class YearConfiguration(ImmutableModel):
    """Complete rule set for a single tax year."""

    year: int
    meta: Mapping[str, Any] = Field(default_factory=dict)
    personal_income: PersonalIncomeConfig
    reliefs: ReliefConfig
    payroll: PayrollConfig
    turnover_thresholds: TurnoverThresholds
    corporate_income: CorporateIncomeConfig
    vat: VATConfig
    withholding: WithholdingConfig
    deadlines: DeadlineConfig
    compliance: ComplianceConfig

    @model_validator(mode="after")
    def _validate_year(self) -> YearConfiguration:
        if not MIN_SUPPORTED_TAX_YEAR <= self.year <= MAX_SUPPORTED_TAX_YEAR:
            raise ConfigurationError(
                f"Tax year {self.year} is outside the supported range "
                f"{MIN_SUPPORTED_TAX_YEAR}-{MAX_SUPPORTED_TAX_YEAR}"
            )
        return self


class TaxYearManifestEntry(ImmutableModel):
    """Entry describing a supported tax year in the manifest."""

    year: int
    filename: str | None = None
    status: str = "active"
    notes_url: str | None = None

    @computed_field
    @property
    def resolved_filename(self) -> str:
        return self.filename or f"{self.year}.yaml"


class TaxYearManifest(ImmutableModel):
    """Manifest describing the available tax year configuration files."""

    years: Sequence[TaxYearManifestEntry]

    @model_validator(mode="after")
    def _validate_years(self) -> TaxYearManifest:
        seen: set[int] = set()
        for entry in self.years:
            if entry.year in seen:
                raise ConfigurationError(
                    f"Duplicate year {entry.year} declared in the configuration manifest"
                )
            seen.add(entry.year)
        return self

    def get_entry(self, year: int) -> TaxYearManifestEntry:
        for entry in self.years:
            if entry.year == year:
                return entry
        raise KeyError(year)

    @computed_field
    @property
    def supported_years(self) -> tuple[int, ...]:
        return tuple(sorted(entry.year for entry in self.years))


__all__ = [
    "Amount",
    "AnnualDeadline",
    "COMPLIANCE_RULE_KEYS",
    "ComplianceConfig",
    "ComplianceRule",
    "ConfigurationError",
    "CorporateIncomeConfig",
    "DeadlineConfig",
    "ImmutableModel",
    "MAX_SUPPORTED_TAX_YEAR",
    "MIN_SUPPORTED_TAX_YEAR",
    "PayrollConfig",
    "PersonalIncomeConfig",
    "ReliefConfig",
    "TaxBracket",
    "TaxYearManifest",
    "TaxYearManifestEntry",
    "TurnoverThresholds",
    "VATConfig",
    "ValidationError",
    "WithholdingConfig",
    "WithholdingRate",
    "WithholdingRule",
    "YearConfiguration",
    "bracket_issue",
    "bracket_sequence_issue",
    "coerce_decimal",
]
