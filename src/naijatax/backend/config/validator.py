"""Utilities for validating year configuration data and surfacing issues."""

from __future__ import annotations

import argparse
import calendar
from collections import Counter
from typing import Mapping, Sequence

from .year_config import (
    ComplianceConfig,
    ConfigurationError,
    DeadlineConfig,
    PayrollConfig,
    PersonalIncomeConfig,
    TurnoverThresholds,
    VATConfig,
    WithholdingConfig,
    YearConfiguration,
    available_years,
    load_year_configuration,
)


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _validate_brackets(scope: str, personal: PersonalIncomeConfig) -> list[str]:
    errors: list[str] = []
    rates = [bracket.rate for bracket in personal.brackets]
    if rates != sorted(rates):
        errors.append(_format_scope(scope, "bracket rates should not decrease as income rises"))

    labels = [bracket.label for bracket in personal.brackets if bracket.label]
    duplicates = [label for label, count in Counter(labels).items() if count > 1]
    if duplicates:
        errors.append(
            _format_scope(scope, f"duplicate bracket labels detected: {sorted(duplicates)}")
        )
    return errors


def _validate_thresholds(scope: str, thresholds: TurnoverThresholds) -> list[str]:
    errors: list[str] = []
    if thresholds.vat_registration > thresholds.small_company:
        errors.append(
            _format_scope(
                scope,
                "VAT registration threshold should not exceed the small company threshold",
            )
        )
    if thresholds.wht_small_supplier > thresholds.small_company:
        errors.append(
            _format_scope(
                scope,
                "WHT small supplier threshold should not exceed the small company threshold",
            )
        )
    return errors


def _validate_corporate_rates(scope: str, rates: Mapping[str, object]) -> list[str]:
    if rates.get("small") not in (None, 0):
        return [_format_scope(scope, "small companies are expected to pay 0% company tax")]
    return []


def _validate_vat(scope: str, vat: VATConfig) -> list[str]:
    duplicates = [
        category for category, count in Counter(vat.exempt_categories).items() if count > 1
    ]
    if duplicates:
        return [_format_scope(scope, f"duplicate exempt categories: {sorted(duplicates)}")]
    return []


def _validate_withholding(scope: str, withholding: WithholdingConfig) -> list[str]:
    errors: list[str] = []
    for payment_type, rule in withholding.rates.items():
        for payee, rates in (("company", rule.company), ("individual", rule.individual)):
            if rates.non_resident < rates.resident:
                errors.append(
                    _format_scope(
                        f"{scope}.{payment_type}.{payee}",
                        "non-resident rate should not be lower than the resident rate",
                    )
                )
    return errors


def _validate_payroll(scope: str, payroll: PayrollConfig) -> list[str]:
    if payroll.employer_pension_rate < payroll.employee_pension_rate:
        return [
            _format_scope(
                scope, "employer pension rate should not be lower than the employee rate"
            )
        ]
    return []


def _validate_deadlines(scope: str, deadlines: DeadlineConfig) -> list[str]:
    errors: list[str] = []
    # A non-leap year gives the strictest day counts.
    for name, deadline in (("pit", deadlines.pit), ("cit", deadlines.cit)):
        _, days_in_month = calendar.monthrange(2027, deadline.month)
        if deadline.day > days_in_month:
            errors.append(
                _format_scope(
                    f"{scope}.{name}",
                    f"day {deadline.day} does not exist in month {deadline.month}",
                )
            )
    return errors


def _validate_compliance(scope: str, compliance: ComplianceConfig) -> list[str]:
    errors: list[str] = []
    overpayment = compliance.rules.get("overpayment")
    if overpayment is not None and overpayment.deduction:
        errors.append(
            _format_scope(f"{scope}.overpayment", "overpayment alerts must not deduct points")
        )

    total = sum(rule.deduction for rule in compliance.rules.values())
    if total < 100 - compliance.at_risk_score:
        errors.append(
            _format_scope(
                scope,
                "configured deductions can never reach the non-compliant band",
            )
        )
    return errors


def validate_year_configuration(config: YearConfiguration) -> list[str]:
    """Return a list of human-readable issues detected in ``config``."""

    errors: list[str] = []

    errors.extend(_validate_brackets("personal_income", config.personal_income))
    errors.extend(_validate_thresholds("turnover_thresholds", config.turnover_thresholds))
    errors.extend(_validate_corporate_rates("corporate_income", config.corporate_income.rates))
    errors.extend(_validate_vat("vat", config.vat))
    errors.extend(_validate_withholding("withholding", config.withholding))
    errors.extend(_validate_payroll("payroll", config.payroll))
    errors.extend(_validate_deadlines("deadlines", config.deadlines))
    errors.extend(_validate_compliance("compliance", config.compliance))

    return errors


def validate_all_years(years: Sequence[int] | None = None) -> dict[int, list[str]]:
    """Validate all configured years and return issues keyed by year."""

    targets = years or available_years()
    results: dict[int, list[str]] = {}

    for year in targets:
        config = load_year_configuration(year)
        results[int(year)] = validate_year_configuration(config)

    return results


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate the configured tax years and report rule-table issues."
    )
    parser.add_argument(
        "years",
        nargs="*",
        type=int,
        help="Specific years to validate (defaults to all configured years)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    years = args.years or available_years()

    if not years:
        parser.print_help()
        return 1

    exit_code = 0

    for year in years:
        try:
            config = load_year_configuration(year)
        except (FileNotFoundError, ConfigurationError) as error:
            print(f"[{year}] failed to load configuration: {error}")
            exit_code = 1
            continue

        issues = validate_year_configuration(config)
        if issues:
            exit_code = 1
            print(f"[{year}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{year}] OK")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
