from decimal import Decimal

from finiquito.backend.config.validator import (
    main,
    validate_all_years,
    validate_benefit_tables,
    validate_year_configuration,
)
from finiquito.backend.config.year_config import (
    VacationEntitlement,
    load_benefit_tables,
    load_year_configuration,
)


def test_current_configurations_are_valid() -> None:
    results = validate_all_years()
    assert all(not issues for issues in results.values()), results


def test_current_benefit_tables_are_valid() -> None:
    assert validate_benefit_tables(load_benefit_tables()) == []


def test_validator_flags_decreasing_uma() -> None:
    config = load_year_configuration(2025)
    lowered = config.uma[1].model_copy(update={"value": Decimal("100.00")})
    broken = config.model_copy(update={"uma": (config.uma[0], lowered)})

    errors = validate_year_configuration(broken)

    assert any(error.startswith("uma[2025-02-01]") and "decreases" in error for error in errors)


def test_validator_flags_border_wage_below_general() -> None:
    config = load_year_configuration(2025)
    wage = config.minimum_wages[0].model_copy(update={"border": Decimal("200.00")})
    broken = config.model_copy(update={"minimum_wages": (wage,)})

    errors = validate_year_configuration(broken)

    assert any("border zone wage" in error for error in errors)


def test_validator_flags_decreasing_marginal_rates() -> None:
    config = load_year_configuration(2025)
    table = config.tax_tables[0]
    brackets = list(table.brackets)
    brackets[3] = brackets[3].model_copy(update={"marginal_percent": Decimal("1.00")})
    broken_table = table.model_copy(update={"brackets": tuple(brackets)})
    broken = config.model_copy(update={"tax_tables": (broken_table,)})

    errors = validate_year_configuration(broken)

    assert any("brackets[3]" in error and "percentages" in error for error in errors)


def test_validator_flags_vacation_table_gaps() -> None:
    tables = load_benefit_tables()
    table = tables.vacation_tables[-1]
    entries = tuple(entry for entry in table.entries if entry.years != 3) + (
        VacationEntitlement(years=36, days=10),
    )
    broken = tables.model_copy(
        update={"vacation_tables": (table.model_copy(update={"entries": entries}),)}
    )

    errors = validate_benefit_tables(broken)

    assert any("missing entry between 2 and 4" in error for error in errors)
    assert any("decreases to 10 days" in error for error in errors)


def test_validator_cli_reports_success(capsys) -> None:
    exit_code = main(["2025"])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "[benefits] OK" in output
    assert "[2025] OK" in output


def test_validator_cli_reports_missing_year(capsys) -> None:
    exit_code = main(["1999"])

    assert exit_code == 1
    assert "[1999] failed to load configuration" in capsys.readouterr().out
