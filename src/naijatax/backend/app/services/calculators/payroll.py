"""Monthly payroll: statutory contributions, PAYE, net pay and the ITF levy."""

from __future__ import annotations

from decimal import Decimal

from naijatax.backend.app.models import (
    ZERO,
    AccountType,
    PayrollComputation,
    PayrollInputs,
    require_non_negative,
)
from naijatax.backend.config.schema import PayrollConfig
from naijatax.backend.config.year_config import YearConfiguration

from .brackets import calculate_bracket_tax
from .cit import assess_company_tax
from .deductions import nhf_allowance, rent_relief
from .periods import MONTHS_PER_YEAR, monthly_amount, personal_rules
from .utils import round_currency


def calculate_payroll(inputs: PayrollInputs, config: YearConfiguration) -> PayrollComputation:
    """Return one month's contributions, PAYE and net salary for an employee.

    Pension, NHF and NHIS are deducted from gross pay before PAYE; the
    employer's pension share is reported but never reduces net pay. Rent
    relief is the annual relief spread evenly over twelve months.
    """

    gross = inputs.gross_salary
    rates = config.payroll
    rules = personal_rules(config, monthly=True)

    employee_pension = employer_pension = ZERO
    if inputs.has_pension:
        employee_pension = round_currency(gross * rates.employee_pension_rate)
        employer_pension = round_currency(gross * rates.employer_pension_rate)
    nhf = (
        round_currency(nhf_allowance(gross * rules.reliefs.nhf_rate, gross, rules.reliefs))
        if inputs.has_nhf
        else ZERO
    )
    nhis = round_currency(gross * rates.nhis_rate) if inputs.has_nhis else ZERO
    relief = monthly_amount(rent_relief(inputs.annual_rent, config.reliefs))

    taxable = max(ZERO, gross - employee_pension - nhf - nhis - relief)
    tax = calculate_bracket_tax(taxable, rules.brackets)
    net = gross - employee_pension - nhf - nhis - tax.total_tax

    return PayrollComputation(
        gross_salary=round_currency(gross),
        employee_pension=employee_pension,
        employer_pension=employer_pension,
        nhf=nhf,
        nhis=nhis,
        rent_relief=relief,
        taxable_income=round_currency(taxable),
        paye=tax.total_tax,
        annual_paye=annual_pit_from_paye(tax.total_tax),
        net_salary=round_currency(net),
        brackets=tax.slices,
    )


def monthly_paye(taxable_income: Decimal | float | int, config: YearConfiguration) -> Decimal:
    """Return PAYE on one month's taxable income."""

    rules = personal_rules(config, monthly=True)
    return calculate_bracket_tax(taxable_income, rules.brackets).total_tax


def annual_pit_from_paye(paye: Decimal | float | int) -> Decimal:
    """Annualise a monthly PAYE deduction; nothing is owed when it is not positive."""

    monthly = require_non_negative("paye", paye)
    if monthly <= 0:
        return round_currency(ZERO)
    return round_currency(monthly * MONTHS_PER_YEAR)


def itf_levy(
    total_payroll: Decimal | float | int,
    annual_turnover: Decimal | float | int,
    employees: int,
    payroll: PayrollConfig,
) -> Decimal:
    """Industrial Training Fund levy on ``total_payroll``.

    Employers are liable once turnover or headcount reaches its threshold.
    """

    payroll_total = require_non_negative("total_payroll", total_payroll)
    turnover = require_non_negative("annual_turnover", annual_turnover)
    headcount = require_non_negative("employees", employees)
    if turnover >= payroll.itf_turnover_threshold or headcount >= payroll.itf_employee_threshold:
        return round_currency(payroll_total * payroll.itf_rate)
    return round_currency(ZERO)


def tax_savings(
    annual_income: Decimal | float | int,
    expenses: Decimal | float | int,
    config: YearConfiguration,
    account_type: AccountType = AccountType.INDIVIDUAL,
) -> Decimal:
    """Annual tax avoided by deducting ``expenses`` from ``annual_income``.

    Individuals and businesses are measured on the personal income table,
    companies on company income tax plus the development levy at the size
    band their turnover (``annual_income``) places them in.
    """

    income = require_non_negative("annual_income", annual_income)
    deductible = require_non_negative("expenses", expenses)
    if income == 0 or deductible == 0:
        return round_currency(ZERO)

    reduced = max(ZERO, income - deductible)
    if account_type is AccountType.COMPANY:
        before = assess_company_tax(
            income, income, config.turnover_thresholds, config.corporate_income
        ).total_tax
        after = assess_company_tax(
            income, reduced, config.turnover_thresholds, config.corporate_income
        ).total_tax
    else:
        brackets = config.personal_income.brackets
        before = calculate_bracket_tax(income, brackets).total_tax
        after = calculate_bracket_tax(reduced, brackets).total_tax
    return round_currency(before - after)


__all__ = [
    "annual_pit_from_paye",
    "calculate_payroll",
    "itf_levy",
    "monthly_paye",
    "tax_savings",
]
