"""Integration tests covering CORS behaviour for API endpoints."""

import pytest
from flask.testing import FlaskClient

from naijatax.backend.app import create_app

ALLOWED_ORIGIN = "https://allowed.test"
ALLOWED_EMBEDDER = "https://embedder.test"
DISALLOWED_ORIGIN = "https://blocked.test"


@pytest.fixture()
def cors_client(monkeypatch: pytest.MonkeyPatch) -> FlaskClient:
    """Return a client configured with a known CORS allow-list."""

    monkeypatch.setenv(
        "NAIJATAX_ALLOWED_ORIGINS",
        ",".join([ALLOWED_ORIGIN, ALLOWED_EMBEDDER]),
    )

    app = create_app()
    app.config.update(TESTING=True)

    with app.test_client() as client:
        yield client


def test_config_years_endpoint_includes_cors_headers(cors_client: FlaskClient) -> None:
    response = cors_client.get("/api/v1/config/years", headers={"Origin": ALLOWED_ORIGIN})

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == ALLOWED_ORIGIN


def test_preflight_allows_ledger_methods(cors_client: FlaskClient) -> None:
    response = cors_client.options(
        "/api/v1/remittances/rem-1",
        headers={"Origin": ALLOWED_EMBEDDER, "Access-Control-Request-Method": "PATCH"},
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == ALLOWED_EMBEDDER
    assert "PATCH" in response.headers.get("Access-Control-Allow-Methods", "")


def test_disallowed_origin_does_not_receive_cors_headers(cors_client: FlaskClient) -> None:
    response = cors_client.get("/api/v1/config/years", headers={"Origin": DISALLOWED_ORIGIN})

    assert response.status_code == 200
    assert "Access-Control-Allow-Origin" not in response.headers


def test_missing_allow_list_warns(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NAIJATAX_ALLOWED_ORIGINS", raising=False)

    with pytest.warns(UserWarning, match="No allowed origins"):
        create_app()
