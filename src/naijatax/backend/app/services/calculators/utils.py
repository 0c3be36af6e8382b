"""Utility helpers for calculator modules."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from naijatax.backend.app.models import to_decimal

CENT = Decimal("0.01")
RATE_PRECISION = Decimal("0.0001")


def format_percentage(value: Decimal | float) -> str:
    """Return a human-readable percentage label for ``value``."""

    percentage = to_decimal(value, "rate") * 100
    if percentage == percentage.to_integral_value():
        return f"{int(percentage)}%"
    return f"{percentage.normalize():f}%"


def round_currency(value: Any) -> Decimal:
    """Round monetary amounts to kobo using half-up rounding."""

    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_rate(value: Any) -> Decimal:
    """Round rate values to four decimals."""

    return to_decimal(value, "rate").quantize(RATE_PRECISION, rounding=ROUND_HALF_UP)
