"""Integration tests for the compliance scoring endpoint."""

from __future__ import annotations

from http import HTTPStatus

from flask.testing import FlaskClient

PERIOD = {"account_id": "biz-3", "year": 2026}


def test_signals_without_summary(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/compliance/evaluate",
        json={"period": PERIOD, "missing_tax_id": True, "no_invoices": True},
    )

    assert response.status_code == HTTPStatus.OK
    body = response.get_json()
    assert body["score"] == 75
    assert body["status"] == "at_risk"
    assert [alert["severity"] for alert in body["alerts"]] == ["high", "low"]
    assert {alert["evaluation_id"] for alert in body["alerts"]} == {body["evaluation_id"]}
    assert body["evaluated_on"] == "2027-01-15"


def test_stored_vat_position_feeds_the_score(client: FlaskClient) -> None:
    client.post(
        "/api/v1/inputs",
        json={
            "period": PERIOD,
            "account_type": "business",
            "annual_turnover": 40000000,
            "output_vat": 250000,
        },
    )
    client.post("/api/v1/vat/position", json={"period": PERIOD})

    response = client.post("/api/v1/compliance/evaluate", json={"period": PERIOD})

    codes = [alert["code"] for alert in response.get_json()["alerts"]]
    assert codes == ["high_vat_payable", "vat_mismatch"]
    assert response.get_json()["score"] == 75


def test_repeated_evaluation_is_stable(client: FlaskClient) -> None:
    payload = {"period": PERIOD, "overdue_filing": True, "missing_business_registration": True}

    first = client.post("/api/v1/compliance/evaluate", json=payload).get_json()
    second = client.post("/api/v1/compliance/evaluate", json=payload).get_json()

    for body in (first, second):
        body.pop("evaluation_id")
        for alert in body["alerts"]:
            alert.pop("evaluation_id")
    assert first == second
    assert first["score"] == 65


def test_unknown_signal_is_rejected(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/compliance/evaluate", json={"period": PERIOD, "late_payroll": True}
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
