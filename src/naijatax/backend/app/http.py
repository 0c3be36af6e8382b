"""HTTP helper utilities shared across Flask blueprints."""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Final, Mapping

from flask import current_app, jsonify

from naijatax.backend.errors import ErrorKind, TaxEngineError

from .services.engine import TaxEngine

ENGINE_EXTENSION: Final = "naijatax.engine"

_STATUS_BY_KIND: Mapping[ErrorKind, HTTPStatus] = {
    ErrorKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.CONFLICT: HTTPStatus.CONFLICT,
    ErrorKind.INVALID_TRANSITION: HTTPStatus.CONFLICT,
    ErrorKind.CONFIRMATION_REQUIRED: HTTPStatus.UNPROCESSABLE_ENTITY,
    ErrorKind.INPUT_REQUIRED: HTTPStatus.UNPROCESSABLE_ENTITY,
    ErrorKind.INPUT_UNAVAILABLE: HTTPStatus.SERVICE_UNAVAILABLE,
}


@dataclass(frozen=True)
class ProblemResponse:
    """Lightweight representation of an RFC 7807-style error payload."""

    error: str
    status: int
    message: str | None = None
    extra: Mapping[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error, "status": self.status}
        if self.message:
            payload["message"] = self.message
        if self.extra:
            payload.update(self.extra)
        return payload

    def to_response(self) -> tuple[Any, int]:
        """Convert the problem payload into a Flask response tuple."""

        return jsonify(self.as_dict()), self.status


def problem_response(
    error: str,
    *,
    status: int,
    message: str | None = None,
    **extra: Any,
) -> ProblemResponse:
    """Convenience factory mirroring Flask's ``jsonify`` interface."""

    additional: Mapping[str, Any] | None = extra or None
    return ProblemResponse(error=error, status=status, message=message, extra=additional)


def status_for_kind(kind: ErrorKind) -> int:
    """Map an engine error kind onto an HTTP status code.

    Anything not listed is a validation failure of the submitted data.
    """

    return int(_STATUS_BY_KIND.get(kind, HTTPStatus.BAD_REQUEST))


def problem_from_error(error: TaxEngineError) -> ProblemResponse:
    extra: dict[str, Any] = {"kind": error.kind.value}
    if error.details:
        extra["details"] = error.details
    return problem_response(
        error.kind.value,
        status=status_for_kind(error.kind),
        message=error.message,
        **extra,
    )


def current_engine() -> TaxEngine:
    """Return the tax engine bound to the active Flask application."""

    return current_app.extensions[ENGINE_EXTENSION]


__all__ = [
    "ENGINE_EXTENSION",
    "ProblemResponse",
    "current_engine",
    "problem_from_error",
    "problem_response",
    "status_for_kind",
]
