"""Expose the year configuration so clients can render the rule tables.

Clients read brackets, relief caps, thresholds and rate tables from here
instead of duplicating them, which keeps the engine the single source of
truth for every figure.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify

from naijatax.backend.app.http import problem_response
from naijatax.backend.app.models import to_payload
from naijatax.backend.app.services.calculators import format_percentage
from naijatax.backend.config.year_config import (
    ConfigurationError,
    TaxBracket,
    YearConfiguration,
    load_manifest,
    load_year_configuration,
)
from naijatax.backend.version import get_project_version

blueprint = Blueprint("config", __name__, url_prefix="/api/v1/config")


def get_configuration_metadata() -> dict[str, Any]:
    """Expose runtime metadata derived from the configuration manifest."""

    manifest = load_manifest()
    supported_years = list(manifest.supported_years)
    return {
        "version": get_project_version(),
        "supported_years": supported_years,
        "default_year": supported_years[-1] if supported_years else None,
    }


def _serialise_bracket(bracket: TaxBracket) -> dict[str, Any]:
    return {
        "lower": float(bracket.lower_bound),
        "upper": float(bracket.upper_bound) if bracket.upper_bound is not None else None,
        "rate": float(bracket.rate),
        "rate_label": format_percentage(bracket.rate),
        "label": bracket.label,
    }


def _serialise_year(config: YearConfiguration) -> dict[str, Any]:
    withholding = {
        payment_type: {
            "service": rule.service,
            "company": rule.company.model_dump(mode="json"),
            "individual": rule.individual.model_dump(mode="json"),
        }
        for payment_type, rule in sorted(config.withholding.rates.items())
    }
    return {
        "year": config.year,
        "meta": to_payload(dict(config.meta)),
        "personal_income": {
            "exemption_threshold": float(config.personal_income.exemption_threshold),
            "brackets": [_serialise_bracket(item) for item in config.personal_income.brackets],
        },
        "reliefs": config.reliefs.model_dump(mode="json"),
        "payroll": config.payroll.model_dump(mode="json"),
        "turnover_thresholds": config.turnover_thresholds.model_dump(mode="json"),
        "corporate_income": config.corporate_income.model_dump(mode="json"),
        "vat": {
            "standard_rate": float(config.vat.standard_rate),
            "exempt_categories": list(config.vat.exempt_categories),
        },
        "withholding": withholding,
        "deadlines": config.deadlines.model_dump(mode="json"),
    }


@blueprint.get("/meta")
def get_application_metadata() -> tuple[Any, int]:
    """Return version and supported tax years."""

    return jsonify(get_configuration_metadata()), 200


@blueprint.get("/years")
def list_years() -> tuple[Any, int]:
    """List the manifest entries for every configured tax year."""

    manifest = load_manifest()
    years = [
        {"year": entry.year, "status": entry.status, "notes_url": entry.notes_url}
        for entry in sorted(manifest.years, key=lambda item: item.year)
    ]
    return jsonify({"years": years}), 200


@blueprint.get("/<int:year>")
def get_year(year: int) -> tuple[Any, int]:
    """Return the rule tables configured for ``year``."""

    try:
        configuration = load_year_configuration(year)
    except (FileNotFoundError, ConfigurationError) as exc:
        return problem_response("not_found", status=404, message=str(exc)).to_response()

    return jsonify(_serialise_year(configuration)), 200


__all__ = ["blueprint", "get_configuration_metadata"]
