"""Unit tests for request parsing helpers."""

from __future__ import annotations

import pytest
from flask import Flask, request
from werkzeug.exceptions import BadRequest

from naijatax.backend.app.models import RemittanceCreateRequest, TaxPeriod
from naijatax.backend.errors import ErrorKind, InputValidationError
from naijatax.backend.services.request_parser import (
    parse_flag,
    parse_json_payload,
    parse_period_args,
    parse_request_model,
)


def test_parse_payload_rejects_non_object(app: Flask) -> None:
    """Non-object JSON payloads should trigger BadRequest responses."""

    with app.test_request_context("/api/v1/inputs", method="POST", json=[1, 2, 3]):
        with pytest.raises(BadRequest):
            parse_json_payload(request)


def test_parse_request_model_reports_field_locations(app: Flask) -> None:
    with app.test_request_context(
        "/api/v1/remittances",
        method="POST",
        json={"period": {"account_id": "a", "year": 2026}, "tax_type": "pit"},
    ):
        with pytest.raises(ValueError) as exc_info:
            parse_request_model(request, RemittanceCreateRequest)

    message = str(exc_info.value)
    assert message.startswith("Invalid request payload:")
    assert "amount" in message
    assert "reference" in message


def test_parse_period_args(app: Flask) -> None:
    with app.test_request_context("/?account_id=acct-1&year=2026&month=4"):
        assert parse_period_args(request) == TaxPeriod(account_id="acct-1", year=2026, month=4)

    with app.test_request_context("/?account_id=acct-1"):
        with pytest.raises(BadRequest):
            parse_period_args(request)

    with app.test_request_context("/?account_id=acct-1&year=2026&month=13"):
        with pytest.raises(InputValidationError) as exc_info:
            parse_period_args(request)
    assert exc_info.value.kind is ErrorKind.INVALID_PERIOD


def test_parse_flag(app: Flask) -> None:
    with app.test_request_context("/?confirmed=TRUE"):
        assert parse_flag(request, "confirmed") is True
    with app.test_request_context("/?confirmed=no"):
        assert parse_flag(request, "confirmed") is False
    with app.test_request_context("/"):
        assert parse_flag(request, "confirmed") is False
