"""Error types raised by the tax engine.

Every failure carries an :class:`ErrorKind` so callers (the HTTP layer, batch
jobs, tests) can branch on what went wrong without parsing messages: retry on
``input_unavailable``, prompt the user on ``input_required``, reload and retry
on ``conflict`` and so on.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping


class ErrorKind(str, Enum):
    """Closed set of failure categories surfaced by the engine."""

    NEGATIVE_AMOUNT = "negative_amount"
    INVALID_VALUE = "invalid_value"
    UNSUPPORTED_TAX_YEAR = "unsupported_tax_year"
    INVALID_PERIOD = "invalid_period"
    MALFORMED_BRACKETS = "malformed_brackets"
    MISSING_DESCRIPTION = "missing_description"
    INVALID_DEDUCTION = "invalid_deduction"
    INPUT_REQUIRED = "input_required"
    INPUT_UNAVAILABLE = "input_unavailable"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_TRANSITION = "invalid_transition"
    CONFIRMATION_REQUIRED = "confirmation_required"


class TaxEngineError(ValueError):
    """Base error for all engine failures."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = dict(details or {})

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.details:
            payload["details"] = dict(self.details)
        return payload


class InputValidationError(TaxEngineError):
    """Raised when a value is rejected at the input-validation boundary."""


class InputRequiredError(TaxEngineError):
    """Raised when upstream data needed for a computation has not been recorded."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(ErrorKind.INPUT_REQUIRED, message, details=details)


class InputUnavailableError(TaxEngineError):
    """Raised when resolving aggregated inputs from a collaborator fails."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(ErrorKind.INPUT_UNAVAILABLE, message, details=details)


class LedgerError(TaxEngineError):
    """Raised for remittance ledger lookups and lifecycle violations."""


class LedgerConflictError(LedgerError):
    """Raised when a remittance changed since the caller last read it."""

    def __init__(
        self,
        remittance_id: str,
        *,
        expected_version: int,
        actual_version: int,
    ) -> None:
        super().__init__(
            ErrorKind.CONFLICT,
            f"Remittance {remittance_id} was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})",
            details={
                "remittance_id": remittance_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )


__all__ = [
    "ErrorKind",
    "InputRequiredError",
    "InputUnavailableError",
    "InputValidationError",
    "LedgerConflictError",
    "LedgerError",
    "TaxEngineError",
]
