"""Unit coverage for year configuration discovery and parsing utilities."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from shutil import copy2

import pytest
import yaml

from naijatax.backend.config import year_config


@pytest.fixture()
def isolated_config_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Return a temporary configuration directory patched into ``year_config``."""

    original_directory = year_config.CONFIG_DIRECTORY
    for filename in ("2026.yaml", "2027.yaml"):
        copy2(original_directory / filename, tmp_path / filename)

    manifest_path = tmp_path / "manifest.yaml"
    copy2(original_directory / "manifest.yaml", manifest_path)

    monkeypatch.setattr(year_config, "CONFIG_DIRECTORY", tmp_path)
    monkeypatch.setattr(year_config, "MANIFEST_FILE", manifest_path)
    year_config.load_year_configuration.cache_clear()
    year_config.load_manifest.cache_clear()

    yield tmp_path

    year_config.load_year_configuration.cache_clear()
    year_config.load_manifest.cache_clear()


def _add_year(directory: Path, year: int, **overrides) -> None:
    data = yaml.safe_load((directory / "2027.yaml").read_text(encoding="utf-8"))
    data["year"] = year
    data.update(overrides)
    (directory / f"{year}.yaml").write_text(yaml.safe_dump(data), encoding="utf-8")

    manifest_path = directory / "manifest.yaml"
    manifest = yaml.safe_load(manifest_path.read_text(encoding="utf-8"))
    manifest["years"].append({"year": year})
    manifest_path.write_text(yaml.safe_dump(manifest), encoding="utf-8")


def test_manifest_lists_supported_years() -> None:
    assert tuple(year_config.available_years()) == (2026, 2027)
    assert year_config.latest_year() == 2027


def test_configuration_exposes_rule_tables() -> None:
    config = year_config.load_year_configuration(2026)

    assert config.personal_income.exemption_threshold == Decimal("800000")
    assert config.personal_income.brackets[-1].upper_bound is None
    assert config.turnover_thresholds.vat_registration == Decimal("25000000")
    assert "food" in config.vat.exempt_categories
    assert config.withholding.rates["construction"].company.non_resident == Decimal("0.05")


def test_years_before_the_reform_are_rejected() -> None:
    with pytest.raises(year_config.ConfigurationError):
        year_config.load_year_configuration(2025)


def test_years_missing_from_the_manifest_are_not_found() -> None:
    with pytest.raises(FileNotFoundError):
        year_config.load_year_configuration(2030)


def test_new_year_is_discovered_from_the_manifest(isolated_config_directory: Path) -> None:
    _add_year(isolated_config_directory, 2028)

    assert 2028 in year_config.available_years()
    assert year_config.load_year_configuration(2028).year == 2028


def test_malformed_brackets_fail_loading(isolated_config_directory: Path) -> None:
    data = yaml.safe_load((isolated_config_directory / "2027.yaml").read_text(encoding="utf-8"))
    brackets = data["personal_income"]["tax_brackets"]
    brackets[2]["lower"] = brackets[1]["upper"] + 1
    _add_year(isolated_config_directory, 2029, personal_income=data["personal_income"])

    with pytest.raises(year_config.ConfigurationError, match="gaps"):
        year_config.load_year_configuration(2029)


def test_first_bracket_must_match_the_exemption_threshold(
    isolated_config_directory: Path,
) -> None:
    data = yaml.safe_load((isolated_config_directory / "2027.yaml").read_text(encoding="utf-8"))
    data["personal_income"]["exemption_threshold"] = 900000
    _add_year(isolated_config_directory, 2029, personal_income=data["personal_income"])

    with pytest.raises(year_config.ConfigurationError, match="exemption threshold"):
        year_config.load_year_configuration(2029)


def test_configuration_exposes_payroll_rates() -> None:
    payroll = year_config.load_year_configuration(2027).payroll

    assert payroll.employee_pension_rate == Decimal("0.08")
    assert payroll.employer_pension_rate == Decimal("0.10")
    assert payroll.itf_employee_threshold == 5


def test_bounded_final_bracket_fails_loading(isolated_config_directory: Path) -> None:
    data = yaml.safe_load((isolated_config_directory / "2027.yaml").read_text(encoding="utf-8"))
    data["personal_income"]["tax_brackets"][-1]["upper"] = 90000000
    _add_year(isolated_config_directory, 2029, personal_income=data["personal_income"])

    with pytest.raises(year_config.ConfigurationError, match="final tax bracket"):
        year_config.load_year_configuration(2029)
