"""Domain-specific calculation helpers."""

from .brackets import calculate_bracket_tax, normalise_brackets
from .cit import assess_company_tax, classify_company
from .compliance import compliance_status, evaluate_compliance
from .deadlines import days_until, filing_deadline, remittance_status
from .deductions import aggregate_deductions, nhf_allowance, rent_relief
from .payroll import annual_pit_from_paye, calculate_payroll, itf_levy, monthly_paye, tax_savings
from .periods import PersonalRules, exemption_threshold_of, monthly_amount, personal_rules
from .utils import format_percentage, round_currency, round_rate
from .vat import calculate_net_vat, is_vat_exempt_turnover, vat_on_amount
from .wht import calculate_withholding, payee_type_for_account, reconcile_credits

__all__ = [
    "PersonalRules",
    "aggregate_deductions",
    "annual_pit_from_paye",
    "assess_company_tax",
    "calculate_bracket_tax",
    "calculate_net_vat",
    "calculate_payroll",
    "calculate_withholding",
    "classify_company",
    "compliance_status",
    "days_until",
    "evaluate_compliance",
    "exemption_threshold_of",
    "filing_deadline",
    "format_percentage",
    "is_vat_exempt_turnover",
    "itf_levy",
    "monthly_amount",
    "monthly_paye",
    "nhf_allowance",
    "normalise_brackets",
    "payee_type_for_account",
    "personal_rules",
    "reconcile_credits",
    "remittance_status",
    "rent_relief",
    "round_currency",
    "round_rate",
    "tax_savings",
    "vat_on_amount",
]
