"""Resolve period inputs, run the calculators and own the authoritative summaries.

``compute_pit_summary`` and ``compute_cit_summary`` are pure: given the
resolved inputs and the year configuration they always return the same
summary. :class:`TaxEngine` wraps them with the stateful parts of the system:
it fetches inputs through an :class:`InputProvider`, refreshes the remittance
ledger position and atomically replaces the stored summary for the period.
If resolving inputs fails, nothing is replaced.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from time import perf_counter
from typing import Any, Protocol

from naijatax.backend.app.models import (
    ZERO,
    AccountType,
    ComplianceReport,
    ComplianceSignals,
    DeductionLine,
    DeductionType,
    ExemptionReason,
    LedgerPosition,
    PeriodInputs,
    TaxPeriod,
    TaxSummary,
    TaxType,
    VATPosition,
    tax_type_of,
)
from naijatax.backend.config.schema import MAX_SUPPORTED_TAX_YEAR, MIN_SUPPORTED_TAX_YEAR
from naijatax.backend.config.year_config import YearConfiguration, load_year_configuration
from naijatax.backend.errors import (
    ErrorKind,
    InputRequiredError,
    InputUnavailableError,
    InputValidationError,
    TaxEngineError,
)

from .calculators import (
    aggregate_deductions,
    assess_company_tax,
    calculate_bracket_tax,
    calculate_net_vat,
    evaluate_compliance as score_compliance,
    filing_deadline,
    personal_rules,
    reconcile_credits,
    remittance_status,
    round_currency,
)
from .ledger import RemittanceLedger

_LOGGER = logging.getLogger(__name__)

Clock = Callable[[], date]
ConfigLoader = Callable[[int], YearConfiguration]


class InputProvider(Protocol):
    """Collaborator that supplies the aggregated figures for a period."""

    def resolve(self, period: TaxPeriod) -> PeriodInputs:
        ...


class InMemoryInputProvider:
    """Thread-safe provider backed by a dictionary of recorded inputs."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._inputs: dict[TaxPeriod, PeriodInputs] = {}

    def store(self, period: TaxPeriod, inputs: PeriodInputs) -> None:
        with self._lock:
            self._inputs[period] = inputs

    def resolve(self, period: TaxPeriod) -> PeriodInputs:
        with self._lock:
            inputs = self._inputs.get(period)
        if inputs is None:
            raise InputRequiredError(
                f"No inputs have been recorded for {period.account_id} {period.label}",
                details={"account_id": period.account_id, "period": period.label},
            )
        return inputs


@dataclass(frozen=True)
class PeriodContext:
    """Everything one computation needs: the period, its inputs and its rules."""

    period: TaxPeriod
    inputs: PeriodInputs
    config: YearConfiguration
    today: date


def _profiling_enabled() -> bool:
    """Return ``True`` when engine profiling should be captured."""

    flag = os.getenv("NAIJATAX_PROFILE_CALCULATIONS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


def _log_timings(label: str, timings: dict[str, float] | None) -> None:
    if timings is None:
        return
    _LOGGER.debug(
        "%s timings (ms): %s",
        label,
        {name: round(duration * 1000, 3) for name, duration in timings.items()},
    )


def configuration_for_year(
    year: int, loader: ConfigLoader = load_year_configuration
) -> YearConfiguration:
    """Return the rule set bound to ``year``.

    Years outside the manifest are rejected rather than computed with another
    year's rules.
    """

    if not MIN_SUPPORTED_TAX_YEAR <= year <= MAX_SUPPORTED_TAX_YEAR:
        raise InputValidationError(
            ErrorKind.UNSUPPORTED_TAX_YEAR,
            f"Tax year {year} is outside the supported range "
            f"{MIN_SUPPORTED_TAX_YEAR}-{MAX_SUPPORTED_TAX_YEAR}",
            details={"year": year},
        )
    try:
        return loader(year)
    except FileNotFoundError as exc:
        raise InputValidationError(
            ErrorKind.UNSUPPORTED_TAX_YEAR,
            f"Tax year {year} has no configured rule set",
            details={"year": year},
        ) from exc


def _finalise(
    summary: TaxSummary, remitted: Decimal, today: date
) -> TaxSummary:
    pending = summary.tax_after_credits - remitted
    return replace(
        summary,
        remitted=remitted,
        pending=pending,
        remittance_status=remittance_status(pending, summary.filing_deadline, today),
    )


def apply_position(summary: TaxSummary, position: LedgerPosition, today: date) -> TaxSummary:
    """Return ``summary`` carrying the remitted and pending figures of ``position``."""

    return _finalise(summary, position.remitted, today)


def compute_pit_summary(
    period: TaxPeriod,
    inputs: PeriodInputs,
    config: YearConfiguration,
    *,
    today: date,
    remitted: Decimal = ZERO,
    brackets: Sequence[Any] | None = None,
    timings: dict[str, float] | None = None,
) -> TaxSummary:
    """Compute the personal income tax summary for ``period``.

    Rate tables and relief caps are annual; a monthly period applies them
    divided by twelve. ``brackets`` overrides the configured annual table,
    e.g. for what-if previews, and its first band sets the exemption
    threshold.
    """

    if not inputs.income:
        raise InputRequiredError(
            f"No income figure recorded for {period.account_id} {period.label}",
            details={"account_id": period.account_id, "period": period.label},
        )

    rules = personal_rules(config, monthly=not period.is_annual, brackets=brackets)
    with _profile_section("deductions", timings):
        deductions = aggregate_deductions(
            inputs.gross_income,
            inputs.deductions,
            inputs.account_type,
            rules.reliefs,
            rules.exemption_threshold,
        )
    with _profile_section("brackets", timings):
        bracket_tax = calculate_bracket_tax(deductions.taxable_income, rules.brackets)
    with _profile_section("credits", timings):
        credits = reconcile_credits(bracket_tax.total_tax, inputs.wht_credits)

    deadline = filing_deadline(period, TaxType.PIT, config.deadlines)
    summary = TaxSummary(
        period=period,
        tax_type=TaxType.PIT,
        account_type=inputs.account_type,
        gross_income=deductions.gross_income,
        deductions=deductions.lines,
        total_deductions=deductions.total_deductions,
        taxable_income=deductions.taxable_income,
        exemption_threshold=deductions.exemption_threshold,
        tax_before_credits=bracket_tax.total_tax,
        brackets=bracket_tax.slices,
        credits_available=credits.credits_available,
        credits_applied=credits.credits_applied,
        unused_credit=credits.unused_credit,
        tax_after_credits=credits.tax_after_credits,
        is_exempt=deductions.is_exempt,
        exemption_reason=deductions.exemption_reason,
        remitted=ZERO,
        pending=credits.tax_after_credits,
        remittance_status=remittance_status(credits.tax_after_credits, deadline, today),
        filing_deadline=deadline,
    )
    return _finalise(summary, round_currency(remitted), today)


def compute_cit_summary(
    period: TaxPeriod,
    inputs: PeriodInputs,
    config: YearConfiguration,
    *,
    today: date,
    remitted: Decimal = ZERO,
    timings: dict[str, float] | None = None,
) -> TaxSummary:
    """Compute the company income tax summary for ``period``.

    Assessable profit is revenue (turnover when no separate revenue figure is
    recorded) less business expenses.
    """

    if inputs.account_type is not AccountType.COMPANY:
        raise InputValidationError(
            ErrorKind.INVALID_VALUE,
            "Company income tax applies to company accounts only",
            details={"account_type": inputs.account_type.value},
        )
    if inputs.annual_turnover is None:
        raise InputRequiredError(
            f"No annual turnover recorded for {period.account_id} {period.label}",
            details={"account_id": period.account_id, "period": period.label},
        )

    revenue = inputs.revenue if inputs.revenue is not None else inputs.annual_turnover
    profit = max(ZERO, revenue - inputs.expenses)

    with _profile_section("classification", timings):
        assessment = assess_company_tax(
            inputs.annual_turnover,
            profit,
            config.turnover_thresholds,
            config.corporate_income,
        )
    with _profile_section("credits", timings):
        credits = reconcile_credits(assessment.total_tax, inputs.wht_credits)

    lines: tuple[DeductionLine, ...] = ()
    if inputs.expenses > 0:
        expenses = round_currency(inputs.expenses)
        lines = (
            DeductionLine(
                deduction_type=DeductionType.BUSINESS_EXPENSE,
                stated=expenses,
                allowed=expenses,
            ),
        )

    exempt = not assessment.classification.cit_applies
    deadline = filing_deadline(period, TaxType.CIT, config.deadlines)
    summary = TaxSummary(
        period=period,
        tax_type=TaxType.CIT,
        account_type=inputs.account_type,
        gross_income=round_currency(revenue),
        deductions=lines,
        total_deductions=round_currency(inputs.expenses),
        taxable_income=assessment.assessable_profit,
        exemption_threshold=config.turnover_thresholds.small_company,
        tax_before_credits=round_currency(assessment.total_tax),
        brackets=(),
        credits_available=credits.credits_available,
        credits_applied=credits.credits_applied,
        unused_credit=credits.unused_credit,
        tax_after_credits=credits.tax_after_credits,
        is_exempt=exempt,
        exemption_reason=ExemptionReason.SMALL_COMPANY if exempt else None,
        remitted=ZERO,
        pending=credits.tax_after_credits,
        remittance_status=remittance_status(credits.tax_after_credits, deadline, today),
        filing_deadline=deadline,
        corporate=assessment,
    )
    return _finalise(summary, round_currency(remitted), today)


class TaxEngine:
    """Service object coordinating inputs, calculators, ledger and summaries."""

    def __init__(
        self,
        provider: InputProvider,
        ledger: RemittanceLedger | None = None,
        clock: Clock | None = None,
        config_loader: ConfigLoader = load_year_configuration,
    ) -> None:
        self.provider = provider
        self.ledger = ledger or RemittanceLedger()
        self._clock = clock or date.today
        self._config_loader = config_loader
        self._lock = threading.Lock()
        self._summaries: dict[tuple[TaxPeriod, TaxType], TaxSummary] = {}
        self._vat_positions: dict[TaxPeriod, VATPosition] = {}

    def today(self) -> date:
        return self._clock()

    def _context(self, period: TaxPeriod) -> PeriodContext:
        config = configuration_for_year(period.year, self._config_loader)
        try:
            inputs = self.provider.resolve(period)
        except TaxEngineError:
            raise
        except Exception as exc:
            _LOGGER.warning(
                "Input resolution failed for %s %s: %s", period.account_id, period.label, exc
            )
            raise InputUnavailableError(
                f"Could not resolve inputs for {period.account_id} {period.label}",
                details={"account_id": period.account_id, "period": period.label},
            ) from exc
        return PeriodContext(period=period, inputs=inputs, config=config, today=self.today())

    def _store(self, summary: TaxSummary) -> None:
        with self._lock:
            self._summaries[(summary.period, summary.tax_type)] = summary

    def _recompute(
        self,
        period: TaxPeriod,
        tax_type: TaxType,
        compute: Callable[..., TaxSummary],
    ) -> TaxSummary:
        timings: dict[str, float] | None = {} if _profiling_enabled() else None
        overall_start = perf_counter() if timings is not None else None

        context = self._context(period)
        liability = compute(
            context.period, context.inputs, context.config, today=context.today, timings=timings
        )
        position = self.ledger.recompute(period, tax_type, liability.tax_after_credits)
        summary = apply_position(liability, position, context.today)
        self._store(summary)

        if timings is not None and overall_start is not None:
            timings["total"] = perf_counter() - overall_start
        _log_timings(f"recompute_{tax_type.value}", timings)
        _LOGGER.info(
            "Recomputed %s for %s %s: tax after credits %s, pending %s",
            tax_type.value,
            period.account_id,
            period.label,
            summary.tax_after_credits,
            summary.pending,
        )
        return summary

    def recompute_pit(self, period: TaxPeriod) -> TaxSummary:
        """Recompute and replace the personal income tax summary for ``period``."""

        return self._recompute(period, TaxType.PIT, compute_pit_summary)

    def recompute_cit(self, period: TaxPeriod) -> TaxSummary:
        """Recompute and replace the company income tax summary for ``period``."""

        return self._recompute(period, TaxType.CIT, compute_cit_summary)

    def refresh_position(self, period: TaxPeriod, tax_type: TaxType | str) -> TaxSummary:
        """Recompute the ledger position after remittance changes.

        The stored summary is replaced with one carrying the new remitted and
        pending totals; its liability figures are left untouched.
        """

        kind = tax_type_of(tax_type)
        current = self.summary(period, kind)
        if current is None:
            raise InputRequiredError(
                f"No {kind.value} summary has been computed for "
                f"{period.account_id} {period.label}",
                details={"tax_type": kind.value, "period": period.label},
            )
        position = self.ledger.recompute(period, kind, current.tax_after_credits)
        summary = apply_position(current, position, self.today())
        self._store(summary)
        return summary

    def summary(self, period: TaxPeriod, tax_type: TaxType | str) -> TaxSummary | None:
        kind = tax_type_of(tax_type)
        with self._lock:
            return self._summaries.get((period, kind))

    def compute_vat(self, period: TaxPeriod) -> VATPosition:
        """Net the period's output and input VAT and remember the position."""

        context = self._context(period)
        inputs = context.inputs
        if inputs.annual_turnover is None:
            raise InputRequiredError(
                f"No annual turnover recorded for {period.account_id} {period.label}",
                details={"account_id": period.account_id, "period": period.label},
            )
        position = calculate_net_vat(
            inputs.output_vat,
            inputs.input_vat,
            inputs.annual_turnover,
            context.config.turnover_thresholds,
            period=period,
        )
        with self._lock:
            self._vat_positions[period] = position
        _LOGGER.info(
            "Computed VAT for %s %s: %s %s",
            period.account_id,
            period.label,
            position.status.value,
            position.net_vat,
        )
        return position

    def vat_position(self, period: TaxPeriod) -> VATPosition | None:
        with self._lock:
            return self._vat_positions.get(period)

    def evaluate_compliance(
        self,
        period: TaxPeriod,
        signals: ComplianceSignals,
        tax_type: TaxType | str = TaxType.PIT,
    ) -> ComplianceReport:
        """Score the period's current summary together with ``signals``."""

        config = configuration_for_year(period.year, self._config_loader)
        return score_compliance(
            self.summary(period, tax_type),
            signals,
            config.compliance,
            config.turnover_thresholds,
            vat=self.vat_position(period),
            today=self.today(),
            period=period,
        )


__all__ = [
    "InMemoryInputProvider",
    "InputProvider",
    "PeriodContext",
    "TaxEngine",
    "apply_position",
    "compute_cit_summary",
    "compute_pit_summary",
    "configuration_for_year",
]
