"""Integration tests for the infrastructure health check."""

from __future__ import annotations

from http import HTTPStatus

from flask.testing import FlaskClient

from naijatax.backend.version import get_project_version


def test_health_check_returns_metadata(client: FlaskClient) -> None:
    response = client.get("/health")

    assert response.status_code == HTTPStatus.OK
    assert response.get_json() == {
        "status": "ok",
        "version": get_project_version(),
        "supported_years": [2026, 2027],
        "default_year": 2027,
    }
