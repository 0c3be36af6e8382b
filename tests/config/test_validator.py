from decimal import Decimal

from naijatax.backend.config.validator import (
    main,
    validate_all_years,
    validate_year_configuration,
)
from naijatax.backend.config.year_config import load_year_configuration


def test_current_configurations_are_valid() -> None:
    results = validate_all_years()
    assert set(results) == {2026, 2027}
    assert all(not issues for issues in results.values()), results


def test_validator_flags_threshold_above_small_company() -> None:
    config = load_year_configuration(2026)
    thresholds = config.turnover_thresholds.model_copy(
        update={"vat_registration": Decimal("60000000")}
    )
    broken = config.model_copy(update={"turnover_thresholds": thresholds})

    errors = validate_year_configuration(broken)

    assert any(error.startswith("turnover_thresholds") for error in errors)


def test_validator_flags_non_resident_rate_below_resident() -> None:
    config = load_year_configuration(2026)
    rule = config.withholding.rates["dividends"]
    lowered = rule.model_copy(
        update={"company": rule.company.model_copy(update={"non_resident": Decimal("0.05")})}
    )
    withholding = config.withholding.model_copy(
        update={"rates": {**config.withholding.rates, "dividends": lowered}}
    )
    broken = config.model_copy(update={"withholding": withholding})

    errors = validate_year_configuration(broken)

    assert errors == [
        "withholding.dividends.company: non-resident rate should not be lower than the resident rate"
    ]


def test_validator_flags_penalised_overpayment() -> None:
    config = load_year_configuration(2026)
    rules = dict(config.compliance.rules)
    rules["overpayment"] = rules["overpayment"].model_copy(update={"deduction": 5})
    broken = config.model_copy(
        update={"compliance": config.compliance.model_copy(update={"rules": rules})}
    )

    errors = validate_year_configuration(broken)

    assert any("compliance.overpayment" in error for error in errors)


def test_validator_flags_impossible_deadline() -> None:
    config = load_year_configuration(2026)
    deadlines = config.deadlines.model_copy(
        update={"pit": config.deadlines.pit.model_copy(update={"month": 2, "day": 30})}
    )
    broken = config.model_copy(update={"deadlines": deadlines})

    errors = validate_year_configuration(broken)

    assert errors == ["deadlines.pit: day 30 does not exist in month 2"]


def test_cli_reports_success(capsys) -> None:
    assert main(["2026"]) == 0
    assert "[2026] OK" in capsys.readouterr().out


def test_cli_reports_unknown_year(capsys) -> None:
    assert main(["2031"]) == 1
    assert "failed to load configuration" in capsys.readouterr().out


def test_validator_flags_employer_pension_below_employee_share() -> None:
    config = load_year_configuration(2026)
    payroll = config.payroll.model_copy(update={"employer_pension_rate": Decimal("0.05")})
    broken = config.model_copy(update={"payroll": payroll})

    errors = validate_year_configuration(broken)

    assert errors == ["payroll: employer pension rate should not be lower than the employee rate"]
