"""Personal income tax rules resolved for the length of a tax period.

Rate tables, the exemption threshold and relief caps are configured per year.
A monthly period uses each of them divided by twelve and rounded to the kobo;
this module is the only place where that scaling happens.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from naijatax.backend.app.models import ZERO
from naijatax.backend.config.schema import ReliefConfig, TaxBracket
from naijatax.backend.config.year_config import YearConfiguration
from naijatax.backend.errors import ErrorKind, InputValidationError

from .brackets import normalise_brackets
from .utils import round_currency

MONTHS_PER_YEAR = Decimal("12")


@dataclass(frozen=True)
class PersonalRules:
    """Brackets, zero-rated threshold and relief caps for one period."""

    brackets: tuple[TaxBracket, ...]
    exemption_threshold: Decimal
    reliefs: ReliefConfig


def monthly_amount(annual: Decimal) -> Decimal:
    return round_currency(annual / MONTHS_PER_YEAR)


def exemption_threshold_of(brackets: Sequence[TaxBracket]) -> Decimal:
    """Return the zero-rated income implied by the first band of ``brackets``.

    A table starting with a taxed band has no threshold. A 0% first band must
    be bounded, otherwise the table never taxes anything.
    """

    first = brackets[0]
    if first.rate > 0:
        return ZERO
    if first.upper_bound is None:
        raise InputValidationError(
            ErrorKind.MALFORMED_BRACKETS,
            "A 0% first tax bracket must have an upper bound",
            details={"field": "brackets.0.upper"},
        )
    return first.upper_bound


def _monthly_bracket(bracket: TaxBracket) -> TaxBracket:
    upper = bracket.upper_bound
    return bracket.model_copy(
        update={
            "lower_bound": monthly_amount(bracket.lower_bound),
            "upper_bound": None if upper is None else monthly_amount(upper),
        }
    )


def _monthly_reliefs(reliefs: ReliefConfig) -> ReliefConfig:
    income_cap = reliefs.nhf_income_cap
    return reliefs.model_copy(
        update={
            "rent_relief_cap": monthly_amount(reliefs.rent_relief_cap),
            "nhf_income_cap": None if income_cap is None else monthly_amount(income_cap),
        }
    )


def personal_rules(
    config: YearConfiguration,
    *,
    monthly: bool = False,
    brackets: Sequence[Any] | None = None,
) -> PersonalRules:
    """Return the personal income rules for an annual or monthly period.

    ``brackets`` replaces the configured annual table; its exemption threshold
    is read from its first band rather than from the configuration.
    """

    if brackets is None:
        table = tuple(config.personal_income.brackets)
        threshold = config.personal_income.exemption_threshold
    else:
        table = normalise_brackets(brackets)
        threshold = exemption_threshold_of(table)

    reliefs = config.reliefs
    if monthly:
        table = tuple(_monthly_bracket(bracket) for bracket in table)
        threshold = monthly_amount(threshold)
        reliefs = _monthly_reliefs(reliefs)

    return PersonalRules(brackets=table, exemption_threshold=threshold, reliefs=reliefs)


__all__ = [
    "MONTHS_PER_YEAR",
    "PersonalRules",
    "exemption_threshold_of",
    "monthly_amount",
    "personal_rules",
]
