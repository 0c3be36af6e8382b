"""Integration coverage for configuration metadata endpoints."""

from http import HTTPStatus

import pytest
from flask.testing import FlaskClient

from naijatax.backend.version import get_project_version


def test_meta_endpoint(client: FlaskClient) -> None:
    response = client.get("/api/v1/config/meta")

    assert response.status_code == HTTPStatus.OK
    assert response.get_json() == {
        "version": get_project_version(),
        "supported_years": [2026, 2027],
        "default_year": 2027,
    }


def test_list_years_endpoint(client: FlaskClient) -> None:
    response = client.get("/api/v1/config/years")

    assert response.status_code == HTTPStatus.OK
    years = response.get_json()["years"]
    assert [entry["year"] for entry in years] == [2026, 2027]
    assert all(entry["status"] == "active" for entry in years)


def test_year_endpoint_exposes_rule_tables(client: FlaskClient) -> None:
    response = client.get("/api/v1/config/2026")

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()

    brackets = payload["personal_income"]["brackets"]
    assert brackets[0] == {
        "lower": 0,
        "upper": 800000,
        "rate": 0,
        "rate_label": "0%",
        "label": "First 800,000",
    }
    assert brackets[-1]["upper"] is None
    assert brackets[-1]["rate_label"] == "25%"

    assert payload["reliefs"]["rent_relief_cap"] == pytest.approx(500000)
    assert payload["payroll"]["employer_pension_rate"] == pytest.approx(0.10)
    assert payload["payroll"]["itf_employee_threshold"] == 5
    assert payload["turnover_thresholds"]["small_company"] == pytest.approx(50000000)
    assert payload["corporate_income"]["development_levy_rate"] == pytest.approx(0.04)
    assert payload["vat"]["standard_rate"] == pytest.approx(0.075)
    assert payload["withholding"]["rent"]["service"] is False
    assert payload["withholding"]["commission"]["individual"]["resident"] == pytest.approx(0.05)
    assert payload["deadlines"]["pit"] == {"month": 3, "day": 31}


@pytest.mark.parametrize("year", [2025, 2031])
def test_unknown_year_returns_not_found(client: FlaskClient, year: int) -> None:
    response = client.get(f"/api/v1/config/{year}")

    assert response.status_code == HTTPStatus.NOT_FOUND
    assert response.get_json()["error"] == "not_found"
