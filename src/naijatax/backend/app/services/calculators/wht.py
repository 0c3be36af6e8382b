"""Withholding tax: credit reconciliation and deduction at source."""

from __future__ import annotations

from decimal import Decimal

from naijatax.backend.app.models import (
    ZERO,
    AccountType,
    CreditReconciliation,
    PayeeType,
    WithholdingComputation,
    require_non_negative,
)
from naijatax.backend.config.schema import TurnoverThresholds, WithholdingConfig
from naijatax.backend.errors import ErrorKind, InputValidationError

from .utils import round_currency


def reconcile_credits(
    liability: Decimal | float | int,
    credits_available: Decimal | float | int,
) -> CreditReconciliation:
    """Apply WHT credits to ``liability``.

    Tax after credits never drops below zero; credits beyond the liability are
    reported as unused and left for the caller's refund or carry-over policy.
    """

    owed = require_non_negative("liability", liability)
    credits = require_non_negative("credits_available", credits_available)

    applied = min(credits, owed)
    return CreditReconciliation(
        liability=round_currency(owed),
        credits_available=round_currency(credits),
        credits_applied=round_currency(applied),
        tax_after_credits=round_currency(max(ZERO, owed - credits)),
        unused_credit=round_currency(max(ZERO, credits - owed)),
    )


def payee_type_for_account(account_type: AccountType) -> PayeeType:
    """Sole proprietors are withheld at individual rates."""

    if account_type is AccountType.COMPANY:
        return PayeeType.COMPANY
    return PayeeType.INDIVIDUAL


def calculate_withholding(
    amount: Decimal | float | int,
    payment_type: str,
    withholding: WithholdingConfig,
    thresholds: TurnoverThresholds,
    *,
    payee_type: PayeeType | str = PayeeType.COMPANY,
    non_resident: bool = False,
    supplier_turnover: Decimal | float | int | None = None,
    service_payment: bool = False,
) -> WithholdingComputation:
    """Return the tax to withhold from a payment of ``amount``.

    Service payments to suppliers whose turnover does not exceed the
    small-supplier threshold are exempt for service payment types; dividends,
    interest, royalties and rent are always withheld.
    """

    gross = require_non_negative("amount", amount)
    key = payment_type.strip().lower()
    rule = withholding.rates.get(key)
    if rule is None:
        raise InputValidationError(
            ErrorKind.INVALID_VALUE,
            f"Unknown withholding payment type '{payment_type}'",
            details={"payment_type": payment_type, "allowed": list(withholding.payment_types)},
        )
    try:
        payee = PayeeType(payee_type)
    except ValueError as exc:
        raise InputValidationError(
            ErrorKind.INVALID_VALUE,
            f"Unknown payee type '{payee_type}'",
            details={"payee_type": str(payee_type)},
        ) from exc

    small_supplier = False
    if supplier_turnover is not None:
        turnover = require_non_negative("supplier_turnover", supplier_turnover)
        small_supplier = turnover <= thresholds.wht_small_supplier

    exempt = small_supplier and service_payment and rule.service
    rates = rule.company if payee is PayeeType.COMPANY else rule.individual
    rate = ZERO if exempt else (rates.non_resident if non_resident else rates.resident)

    return WithholdingComputation(
        payment_type=key,
        payee_type=payee,
        non_resident=non_resident,
        amount=round_currency(gross),
        rate=rate,
        wht_amount=round_currency(gross * rate),
        exempt=exempt,
    )


__all__ = ["calculate_withholding", "payee_type_for_account", "reconcile_credits"]
