"""Progressive bracket tax calculator."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from pydantic import ValidationError

from naijatax.backend.app.models import (
    ZERO,
    BracketComputation,
    BracketSlice,
    input_error,
    require_non_negative,
)
from naijatax.backend.config.schema import TaxBracket, bracket_sequence_issue
from naijatax.backend.errors import ErrorKind, InputValidationError

from .utils import round_currency


def normalise_brackets(brackets: Sequence[Any]) -> tuple[TaxBracket, ...]:
    """Return ``brackets`` as validated :class:`TaxBracket` instances.

    Accepts configuration brackets, API payloads or plain mappings with
    ``lower``/``upper``/``rate`` keys. Raises a ``malformed_brackets`` error
    when the table is empty, does not start at zero, has gaps or overlaps,
    leaves an unbounded bracket anywhere but last, ends on a bounded bracket
    or carries invalid rates.
    """

    normalised: list[TaxBracket] = []
    for index, bracket in enumerate(brackets):
        try:
            normalised.append(TaxBracket.model_validate(bracket, from_attributes=True))
        except ValidationError as exc:
            raise input_error(
                exc, field=f"brackets.{index}", kind=ErrorKind.MALFORMED_BRACKETS
            ) from exc

    issue = bracket_sequence_issue(normalised)
    if issue:
        raise InputValidationError(ErrorKind.MALFORMED_BRACKETS, issue)
    return tuple(normalised)


def calculate_bracket_tax(amount: Decimal | float | int, brackets: Sequence[Any]) -> BracketComputation:
    """Apply ``brackets`` progressively to ``amount``.

    Income exactly equal to a bracket's upper bound is taxed entirely within
    that bracket. Slice taxes are reported to the kobo; the total is rounded
    once from the exact sum so rounding never compounds across brackets.
    """

    taxable = require_non_negative("taxable_income", amount)
    table = normalise_brackets(brackets)

    if taxable == 0:
        return BracketComputation(taxable_income=ZERO, total_tax=round_currency(ZERO))

    remaining = taxable
    total = ZERO
    slices: list[BracketSlice] = []

    for bracket in table:
        if remaining <= 0:
            break
        if bracket.upper_bound is None:
            portion = remaining
        else:
            portion = min(remaining, bracket.upper_bound - bracket.lower_bound)
        tax = portion * bracket.rate
        total += tax
        remaining -= portion
        slices.append(
            BracketSlice(
                lower=bracket.lower_bound,
                upper=bracket.upper_bound,
                rate=bracket.rate,
                taxable_amount=round_currency(portion),
                tax=round_currency(tax),
            )
        )

    return BracketComputation(
        taxable_income=round_currency(taxable),
        total_tax=round_currency(total),
        slices=tuple(slices),
    )


__all__ = ["calculate_bracket_tax", "normalise_brackets"]
