"""Test configuration utilities and shared fixtures."""

import sys
from datetime import date
from pathlib import Path

# Ensure the ``src`` directory is importable when tests are executed without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from naijatax.backend.app import create_app  # noqa: E402
from naijatax.backend.app.services.engine import (  # noqa: E402
    InMemoryInputProvider,
    TaxEngine,
)

# Inside tax year 2026's filing window: annual returns fall due on 31 March 2027.
FIXED_TODAY = date(2027, 1, 15)


@pytest.fixture()
def engine() -> TaxEngine:
    """Return an engine with an empty input store and a fixed clock."""

    return TaxEngine(InMemoryInputProvider(), clock=lambda: FIXED_TODAY)


@pytest.fixture()
def app(engine: TaxEngine) -> Flask:
    """Return a configured Flask application for integration tests."""

    application = create_app(engine)
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()
